from __future__ import annotations

import subprocess
import sys

import pytest

from wifi_heatmap_server.sampler import (
    SENTINEL_DBM,
    SignalQueryError,
    SignalSampler,
    parse_signal_dbm,
)

IW_OUTPUT = """Connected to aa:bb:cc:dd:ee:ff (on wlan0)
\tSSID: office
\tfreq: 5180
\tsignal: -67 dBm
\ttx bitrate: 866.7 MBit/s
"""


class FakeQuery:
    def __init__(self, readings):
        self.readings = list(readings)
        self.interfaces: list[str] = []

    def __call__(self, interface: str) -> int:
        self.interfaces.append(interface)
        value = self.readings.pop(0)
        if value is None:
            raise SignalQueryError("interface down")
        return value


def _sampler(readings, sleeps: list[float]) -> tuple[SignalSampler, FakeQuery]:
    query = FakeQuery(readings)
    return SignalSampler(interface="wlan0", query=query, sleep=sleeps.append), query


def test_parse_signal_dbm() -> None:
    assert parse_signal_dbm(IW_OUTPUT) == -67
    assert parse_signal_dbm("signal:-42dBm") == -42


def test_parse_signal_dbm_rejects_missing_value() -> None:
    with pytest.raises(SignalQueryError):
        parse_signal_dbm("Not connected.")


def test_failed_sample_uses_sentinel_and_median() -> None:
    sleeps: list[float] = []
    sampler, _ = _sampler([-70, -65, None], sleeps)

    assert sampler.collect(3, 100) == [-70, -65, SENTINEL_DBM]


def test_sample_three_with_failure_gives_minus_70() -> None:
    sleeps: list[float] = []
    sampler, _ = _sampler([-70, -65, None], sleeps)

    assert sampler.sample(3, 100) == -70


def test_sleeps_between_samples_only() -> None:
    sleeps: list[float] = []
    sampler, _ = _sampler([-50, -51, -52, -53], sleeps)

    sampler.sample(4, 250)

    assert sleeps == [0.25, 0.25, 0.25]


def test_defaults_when_non_positive() -> None:
    sleeps: list[float] = []
    sampler, query = _sampler([-60] * 5, sleeps)

    assert sampler.sample(0, -1) == -60
    assert len(query.interfaces) == 5
    assert sleeps == [0.5] * 4


def test_interface_override() -> None:
    sleeps: list[float] = []
    sampler, query = _sampler([-60], sleeps)

    sampler.sample(1, 10, interface="wlp3s0")

    assert query.interfaces == ["wlp3s0"]


def test_query_signal_dbm_runs_command(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def fake_run(args, **kwargs):
        calls.append(args)
        return subprocess.CompletedProcess(args, 0, stdout=IW_OUTPUT)

    monkeypatch.setattr(subprocess, "run", fake_run)
    sampler = SignalSampler(interface="wlan0")

    assert sampler.query_signal_dbm("wlan0") == -67
    assert calls == [["iw", "dev", "wlan0", "link"]]


def test_missing_tool_becomes_sentinel(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(args, **kwargs):
        raise FileNotFoundError("iw")

    monkeypatch.setattr(subprocess, "run", fake_run)
    sampler = SignalSampler(interface="wlan0", sleep=lambda _: None)

    assert sampler.sample(2, 1) == SENTINEL_DBM


def test_non_zero_exit_becomes_sentinel(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(args, **kwargs):
        raise subprocess.CalledProcessError(1, args, output="command failed: No such device")

    monkeypatch.setattr(subprocess, "run", fake_run)
    sampler = SignalSampler(interface="wlan0", sleep=lambda _: None)

    assert sampler.collect(1, 1) == [SENTINEL_DBM]


def test_from_config(config_manager) -> None:
    sampler = SignalSampler.from_config(config_manager)

    assert sampler.interface == "wlan-test"
    assert sampler.command == ["iw", "dev", "{interface}", "link"]
    assert sampler.samples == 5
    assert sampler.interval_ms == 500


def test_from_config_sampling_defaults(config_manager) -> None:
    config_manager.set_sampler_config("wlan-test", 3, 50)
    sleeps: list[float] = []
    query = FakeQuery([-61, -62, -63])

    sampler = SignalSampler.from_config(config_manager, query=query, sleep=sleeps.append)

    assert sampler.collect() == [-61, -62, -63]
    assert sleeps == [0.05, 0.05]


def test_undecodable_output_is_still_parsed() -> None:
    command = [
        sys.executable,
        "-c",
        "import sys; sys.stdout.buffer.write(b'\\xff\\xfe signal: -50 dBm')",
    ]
    sampler = SignalSampler(interface="wlan0", command=command, sleep=lambda _: None)

    assert sampler.sample(1, 1) == -50


def test_undecodable_output_without_signal_becomes_sentinel() -> None:
    command = [sys.executable, "-c", "import sys; sys.stdout.buffer.write(b'\\xff\\xfe')"]
    sampler = SignalSampler(interface="wlan0", command=command, sleep=lambda _: None)

    assert sampler.collect(1, 1) == [SENTINEL_DBM]
