from __future__ import annotations

import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from .exceptions import ValidationError

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 8

DEFAULT_SAMPLES = 5
DEFAULT_INTERVAL_MS = 500


def generate_id() -> str:
    """8 位随机小写字母数字 id（不做唯一性检查）"""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


def format_timestamp(ts: datetime) -> str:
    """RFC 3339 秒级格式，UTC 以 Z 结尾，用于 CSV 导出"""
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _isoformat(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_timestamp(value: str) -> datetime:
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


class MeasurementType(Enum):
    LOCATION = "location"
    ACCESSPOINT = "accesspoint"

    @classmethod
    def parse(cls, value: Any) -> "MeasurementType":
        # 空值按 location 处理
        if value is None or value == "":
            return cls.LOCATION
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"unknown measurement type: {value!r}") from None


@dataclass(frozen=True)
class Measurement:
    """
    单次信号测量记录，创建后不可修改
    """

    id: str
    timestamp: datetime
    dbm: int
    lat: float
    lng: float
    floor: int
    location: str
    type: MeasurementType = MeasurementType.LOCATION

    @classmethod
    def create(
        cls,
        dbm: int,
        lat: float,
        lng: float,
        floor: int,
        location: str = "",
        type: MeasurementType = MeasurementType.LOCATION,
    ) -> "Measurement":
        return cls(
            id=generate_id(),
            timestamp=datetime.now(timezone.utc),
            dbm=int(dbm),
            lat=float(lat),
            lng=float(lng),
            floor=int(floor),
            location=location,
            type=type,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": _isoformat(self.timestamp),
            "dbm": self.dbm,
            "lat": self.lat,
            "lng": self.lng,
            "floor": self.floor,
            "location": self.location,
            "type": self.type.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Measurement":
        return cls(
            id=str(data["id"]),
            timestamp=_parse_timestamp(data["timestamp"]),
            dbm=int(data["dbm"]),
            lat=float(data["lat"]),
            lng=float(data["lng"]),
            floor=int(data["floor"]),
            location=str(data.get("location", "")),
            # 历史文件中的 type 可能为空
            type=MeasurementType.parse(data.get("type")),
        )


@dataclass
class Floor:
    """楼层；只有 map_path 会在上传平面图后被修改"""

    id: int
    name: str
    map_path: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "mapPath": self.map_path}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Floor":
        return cls(
            id=int(data["id"]),
            name=str(data.get("name", "")),
            map_path=str(data.get("mapPath", "") or ""),
        )


def _as_number(payload: Dict[str, Any], key: str, cast, default):
    value = payload.get(key)
    if value is None:
        return default
    # bool 是 int 的子类，这里不接受
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"field {key!r} must be a number, got {value!r}")
    if cast is int and isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"field {key!r} must be an integer, got {value!r}")
    return cast(value)


@dataclass(frozen=True)
class MeasurementRequest:
    """
    新增测量的请求体：{lat, lng, floor, location, type, samples, interval}
    samples / interval 未设置或 <= 0 时记为 0，由采样器使用配置中的默认值
    """

    lat: float
    lng: float
    floor: int
    location: str = ""
    type: MeasurementType = MeasurementType.LOCATION
    samples: int = 0
    interval: int = 0

    def __post_init__(self):
        if self.samples < 0:
            object.__setattr__(self, "samples", 0)
        if self.interval < 0:
            object.__setattr__(self, "interval", 0)

    @classmethod
    def from_dict(cls, payload: Any) -> "MeasurementRequest":
        if not isinstance(payload, dict):
            raise ValidationError("request body must be a JSON object")
        location = payload.get("location") or ""
        if not isinstance(location, str):
            raise ValidationError(f"field 'location' must be a string, got {location!r}")
        return cls(
            lat=_as_number(payload, "lat", float, 0.0),
            lng=_as_number(payload, "lng", float, 0.0),
            floor=_as_number(payload, "floor", int, 0),
            location=location,
            type=MeasurementType.parse(payload.get("type")),
            samples=_as_number(payload, "samples", int, 0),
            interval=_as_number(payload, "interval", int, 0),
        )
