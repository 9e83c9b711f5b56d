"""WiFi Heatmap Server package.

This package provides:
- ConfigManager: YAML-based configuration management
- SignalSampler: repeated `iw` link queries reduced with a median filter
- MeasurementStore / FloorStore: lock-guarded JSON snapshot stores
- MapAssetManager: floor-plan upload and /uploads/ path resolution
- HeatmapService: facade used by the HTTP layer and the CLI
"""

from .config_manager import ConfigManager
from .exceptions import HeatmapError, NotFoundError, StorageError, ValidationError
from .floor_store import FloorStore
from .map_assets import MapAsset, MapAssetManager
from .measurement_store import MeasurementStore
from .models import Floor, Measurement, MeasurementRequest, MeasurementType
from .sampler import SignalSampler
from .service import HeatmapService

__all__ = [
    "ConfigManager",
    "HeatmapError",
    "NotFoundError",
    "StorageError",
    "ValidationError",
    "FloorStore",
    "MapAsset",
    "MapAssetManager",
    "MeasurementStore",
    "Floor",
    "Measurement",
    "MeasurementRequest",
    "MeasurementType",
    "SignalSampler",
    "HeatmapService",
]
