from __future__ import annotations

import logging
import re
import subprocess
import time
from typing import Callable, List, Optional, Sequence

from .config_manager import ConfigManager
from .filters import median_dbm
from .models import DEFAULT_INTERVAL_MS, DEFAULT_SAMPLES

logger = logging.getLogger(__name__)

# 查询失败时该次采样的替代值
SENTINEL_DBM = -999

SIGNAL_PATTERN = re.compile(r"signal:\s*(-?\d+)\s*dBm")

DEFAULT_COMMAND = ("iw", "dev", "{interface}", "link")


class SignalQueryError(Exception):
    """外部链路查询失败（命令缺失、退出码非 0、输出无法解析）"""


def parse_signal_dbm(output: str) -> int:
    match = SIGNAL_PATTERN.search(output)
    if match is None:
        raise SignalQueryError("signal not found")
    return int(match.group(1))


class SignalSampler:
    """
    重复调用外部链路查询并对结果做中值滤波。
    采样严格串行：每次查询之间阻塞 sleep 固定间隔，不设超时。
    """

    def __init__(
        self,
        interface: str = "wlp0s20f3",
        command: Sequence[str] = DEFAULT_COMMAND,
        samples: int = DEFAULT_SAMPLES,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        query: Optional[Callable[[str], int]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.interface = interface
        self.command = list(command)
        # 请求未指定（<= 0）时使用的采样次数与间隔
        self.samples = samples if samples > 0 else DEFAULT_SAMPLES
        self.interval_ms = interval_ms if interval_ms > 0 else DEFAULT_INTERVAL_MS
        self._query = query or self.query_signal_dbm
        self._sleep = sleep

    @classmethod
    def from_config(cls, config_manager: ConfigManager, **kwargs) -> "SignalSampler":
        sampler_config = config_manager.get_sampler_config()
        return cls(
            interface=sampler_config.get("interface", "wlp0s20f3"),
            command=sampler_config.get("command", DEFAULT_COMMAND),
            samples=int(sampler_config.get("samples", DEFAULT_SAMPLES)),
            interval_ms=int(sampler_config.get("interval_ms", DEFAULT_INTERVAL_MS)),
            **kwargs,
        )

    def query_signal_dbm(self, interface: str) -> int:
        """执行 `iw dev <interface> link`，从合并后的输出中解析 dBm"""
        args = [part.format(interface=interface) for part in self.command]
        try:
            result = subprocess.run(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                check=True,
            )
        except (OSError, subprocess.CalledProcessError) as e:
            raise SignalQueryError(str(e)) from e
        return parse_signal_dbm(result.stdout)

    def collect(self, samples: int = 0, interval_ms: int = 0,
                interface: Optional[str] = None) -> List[int]:
        if samples <= 0:
            samples = self.samples
        if interval_ms <= 0:
            interval_ms = self.interval_ms
        iface = interface or self.interface

        readings: List[int] = []
        for i in range(samples):
            try:
                readings.append(int(self._query(iface)))
            except SignalQueryError as e:
                logger.warning("第 %d/%d 次采样失败 (%s): %s", i + 1, samples, iface, e)
                readings.append(SENTINEL_DBM)
            if i < samples - 1:
                self._sleep(interval_ms / 1000.0)
        return readings

    def sample(self, samples: int = 0, interval_ms: int = 0,
               interface: Optional[str] = None) -> int:
        readings = self.collect(samples, interval_ms, interface)
        dbm = median_dbm(readings)
        logger.debug("采样结果 %s -> 中值 %d dBm", readings, dbm)
        return dbm
