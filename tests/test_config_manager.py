from __future__ import annotations

from pathlib import Path

import yaml

from wifi_heatmap_server.config_manager import ConfigManager


def test_missing_file_writes_defaults(tmp_path: Path) -> None:
    config_file = tmp_path / "cfg" / "config.yaml"

    config = ConfigManager(str(config_file))

    assert config_file.exists()
    assert config.get_base_url() == "http://localhost:8080"
    assert config.get_uploads_dir() == "uploads"
    assert config.get_sampler_config()["samples"] == 5
    assert yaml.safe_load(config_file.read_text(encoding="utf-8"))["paths"]["floors_file"] == "floors.json"


def test_partial_file_is_merged_with_defaults(config_manager: ConfigManager, tmp_path: Path) -> None:
    assert config_manager.get_measurements_path() == str(tmp_path / "measurements.json")
    assert config_manager.get_sampler_config()["interface"] == "wlan-test"
    assert config_manager.get_sampler_config()["interval_ms"] == 500
    assert config_manager.get_base_url() == "http://localhost:8080"


def test_env_override(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("WIFI_HEATMAP_SAMPLES", "9")
    monkeypatch.setenv("WIFI_HEATMAP_INTERFACE", "wlan7")

    config = ConfigManager(str(tmp_path / "config.yaml"))

    assert config.get_sampler_config()["samples"] == 9
    assert config.get_sampler_config()["interface"] == "wlan7"


def test_invalid_yaml_falls_back_to_defaults(tmp_path: Path) -> None:
    config_file = tmp_path / "config.yaml"
    config_file.write_text("paths: [unclosed", encoding="utf-8")

    config = ConfigManager(str(config_file))

    assert config.get_floors_path() == "floors.json"


def test_set_sampler_config_persists(tmp_path: Path) -> None:
    config_file = tmp_path / "config.yaml"
    ConfigManager(str(config_file)).set_sampler_config("wlan1", 3, 250)

    reloaded = ConfigManager(str(config_file))

    assert reloaded.get_sampler_config()["interface"] == "wlan1"
    assert reloaded.get_sampler_config()["interval_ms"] == 250
