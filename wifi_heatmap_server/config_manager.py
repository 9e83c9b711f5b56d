from __future__ import annotations

import copy
import logging
import os
import yaml

from typing import Callable, Any


logger = logging.getLogger(__name__)


def _env_or_default(env_key: str, default: Any, cast: Callable[[str], Any] = str) -> Any:
    v = os.environ.get(env_key)
    if v is not None:
        try:
            return cast(v)
        except Exception:
            return v
    return default


DEFAULT_CONFIG_PATH = _env_or_default(
    "WIFI_HEATMAP_CONFIG",
    os.path.join(".", "config", "config.yaml"),
)


class ConfigManager:
    """配置管理类，负责读写YAML配置文件"""

    def __init__(self, config_file: str | None = None):
        self.config_file = config_file or DEFAULT_CONFIG_PATH
        self.default_config = {
            "server": {
                "base_url": _env_or_default("WIFI_HEATMAP_BASE_URL", "http://localhost:8080"),
            },
            "paths": {
                "measurements_file": _env_or_default(
                    "WIFI_HEATMAP_MEASUREMENTS_FILE", "measurements.json"
                ),
                "floors_file": _env_or_default("WIFI_HEATMAP_FLOORS_FILE", "floors.json"),
                "uploads_dir": _env_or_default("WIFI_HEATMAP_UPLOADS_DIR", "uploads"),
            },
            "sampler": {
                "interface": _env_or_default("WIFI_HEATMAP_INTERFACE", "wlp0s20f3"),
                "samples": _env_or_default("WIFI_HEATMAP_SAMPLES", 5, int),
                "interval_ms": _env_or_default("WIFI_HEATMAP_INTERVAL_MS", 500, int),
                "command": ["iw", "dev", "{interface}", "link"],
            },
        }
        self.load_config()

    def load_config(self) -> None:
        """加载配置文件，如果不存在则创建默认配置"""
        try:
            if os.path.exists(self.config_file):
                with open(self.config_file, "r", encoding="utf-8") as f:
                    self.config = yaml.safe_load(f) or {}
                self._merge_default_config()
            else:
                self.config = copy.deepcopy(self.default_config)
                self.save_config()
        except (OSError, yaml.YAMLError) as e:
            # 发生异常时回退到默认配置
            logger.warning("读取配置文件 %s 失败，使用默认配置: %s", self.config_file, e)
            self.config = copy.deepcopy(self.default_config)

    def _merge_default_config(self) -> None:
        def merge_dict(default, current):
            for key, value in default.items():
                if key not in current:
                    current[key] = copy.deepcopy(value)
                elif isinstance(value, dict) and isinstance(current[key], dict):
                    merge_dict(value, current[key])

        merge_dict(self.default_config, self.config)

    def save_config(self) -> None:
        try:
            os.makedirs(os.path.dirname(self.config_file) or ".", exist_ok=True)
            with open(self.config_file, "w", encoding="utf-8") as f:
                yaml.dump(
                    self.config,
                    f,
                    default_flow_style=False,
                    allow_unicode=True,
                    indent=2,
                )
        except OSError as e:
            logger.warning("保存配置文件 %s 失败: %s", self.config_file, e)

    # ---------- Accessors ----------
    def get_base_url(self) -> str:
        return self.config["server"]["base_url"]

    def get_paths(self):
        return self.config.get("paths", {})

    def get_measurements_path(self) -> str:
        return self.get_paths()["measurements_file"]

    def get_floors_path(self) -> str:
        return self.get_paths()["floors_file"]

    def get_uploads_dir(self) -> str:
        return self.get_paths()["uploads_dir"]

    def get_sampler_config(self):
        return self.config["sampler"]

    def set_sampler_config(self, interface: str, samples: int, interval_ms: int):
        self.config["sampler"]["interface"] = interface
        self.config["sampler"]["samples"] = samples
        self.config["sampler"]["interval_ms"] = interval_ms
        self.save_config()
