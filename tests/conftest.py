from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from wifi_heatmap_server.config_manager import ConfigManager
from wifi_heatmap_server.floor_store import FloorStore
from wifi_heatmap_server.map_assets import MapAssetManager
from wifi_heatmap_server.measurement_store import MeasurementStore


@pytest.fixture
def config_manager(tmp_path: Path) -> ConfigManager:
    config_file = tmp_path / "config" / "config.yaml"
    config_file.parent.mkdir()
    config_file.write_text(
        yaml.safe_dump(
            {
                "paths": {
                    "measurements_file": str(tmp_path / "measurements.json"),
                    "floors_file": str(tmp_path / "floors.json"),
                    "uploads_dir": str(tmp_path / "uploads"),
                },
                "sampler": {"interface": "wlan-test"},
            }
        ),
        encoding="utf-8",
    )
    return ConfigManager(str(config_file))


@pytest.fixture
def measurement_store(tmp_path: Path) -> MeasurementStore:
    return MeasurementStore(path=str(tmp_path / "measurements.json"))


@pytest.fixture
def floor_store(tmp_path: Path) -> FloorStore:
    return FloorStore(path=str(tmp_path / "floors.json"))


@pytest.fixture
def asset_manager(tmp_path: Path, floor_store: FloorStore) -> MapAssetManager:
    return MapAssetManager(
        floor_store,
        uploads_dir=str(tmp_path / "uploads"),
        base_url="http://localhost:8080",
    )
