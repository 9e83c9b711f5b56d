from __future__ import annotations

import logging
from typing import Any, BinaryIO, List, Optional

from .config_manager import ConfigManager
from .exceptions import ValidationError
from .floor_store import FloorStore
from .map_assets import MapAsset, MapAssetManager
from .measurement_store import MeasurementStore
from .models import Floor, Measurement, MeasurementRequest
from .sampler import SignalSampler


logger = logging.getLogger(__name__)


def parse_floor_filter(value: Any) -> int:
    """?floor= 查询参数：缺省或空为 0（全部楼层），非数字抛出 ValidationError"""
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"invalid floor: {value!r}") from None


def parse_floor_id(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"invalid floor ID: {value!r}") from None


class HeatmapService:
    """测量/楼层/平面图的统一入口，由 HTTP 层或 CLI 调用"""

    def __init__(self, config_manager: ConfigManager, sampler: Optional[SignalSampler] = None):
        self.config_manager = config_manager

        # 存储
        self.measurements = MeasurementStore(config_manager)
        self.floors = FloorStore(config_manager)
        self.assets = MapAssetManager(self.floors, config_manager)

        # 采样
        self.sampler = sampler or SignalSampler.from_config(config_manager)

    def start(self) -> None:
        """
        启动：创建 uploads 目录并加载两份快照。
        任何 StorageError 都直接抛出，由调用方终止进程。
        """
        self.assets.ensure_dir()
        self.measurements.load()
        self.floors.load()
        if len(self.floors) == 0:
            self.floors.save()
        self.assets.rebuild_index()
        logger.info(
            "服务已启动: %d 条测量记录, %d 个楼层", len(self.measurements), len(self.floors)
        )

    # ---------- Measurements ----------
    def record_measurement(self, request: MeasurementRequest, interface: Optional[str] = None) -> Measurement:
        # 阻塞采样，只影响当前请求线程
        dbm = self.sampler.sample(request.samples, request.interval, interface)
        record = Measurement.create(
            dbm=dbm,
            lat=request.lat,
            lng=request.lng,
            floor=request.floor,
            location=request.location,
            type=request.type,
        )
        self.measurements.add(record)
        logger.info(
            "新增测量 %s: %d dBm @ (%.2f, %.2f), 楼层 %d",
            record.id,
            record.dbm,
            record.lat,
            record.lng,
            record.floor,
        )
        return record

    def add_measurement(self, payload: Any) -> Measurement:
        return self.record_measurement(MeasurementRequest.from_dict(payload))

    def list_measurements(self, floor: Any = None) -> List[Measurement]:
        return self.measurements.list(parse_floor_filter(floor))

    def delete_measurement(self, measurement_id: str) -> None:
        if not measurement_id:
            raise ValidationError("ID is required")
        self.measurements.delete(measurement_id)

    def export_csv(self, floor: Any = None) -> str:
        return self.measurements.export_csv(parse_floor_filter(floor))

    # ---------- Floors ----------
    def list_floors(self) -> List[Floor]:
        return self.floors.list()

    def add_floor(self, payload: Any) -> Floor:
        if not isinstance(payload, dict):
            raise ValidationError("request body must be a JSON object")
        name = payload.get("name") or ""
        if not isinstance(name, str):
            raise ValidationError(f"field 'name' must be a string, got {name!r}")
        return self.floors.add(name)

    def upload_map(self, floor_id: Any, stream: BinaryIO, filename: str) -> str:
        return self.assets.upload(parse_floor_id(floor_id), stream, filename)

    def get_map(self, request_path: str) -> MapAsset:
        return self.assets.read(request_path)
