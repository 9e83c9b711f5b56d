from __future__ import annotations

import io
import logging
import threading
from typing import List, Optional, TextIO

import pandas as pd

from ._storage import read_json, write_json_atomic
from .config_manager import ConfigManager
from .exceptions import NotFoundError, StorageError, ValidationError
from .models import Measurement, format_timestamp

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["id", "timestamp", "dbm", "lat", "lng", "floor", "location", "type"]


class MeasurementStore:
    """管理测量记录（按插入顺序）与 JSON 快照持久化，所有读写串行化"""

    def __init__(self, config_manager: Optional[ConfigManager] = None, path: Optional[str] = None):
        self.path = path or (config_manager or ConfigManager()).get_measurements_path()
        self._lock = threading.Lock()
        self._records: List[Measurement] = []

    # ---- Load/Save ----
    def load(self) -> None:
        """文件不存在视为空；其它读取或解析错误抛出 StorageError"""
        data = read_json(self.path, default=[])
        if not isinstance(data, list):
            raise StorageError(f"{self.path}: expected a JSON array", path=self.path)
        try:
            records = [Measurement.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError, AttributeError, ValidationError) as e:
            raise StorageError(f"{self.path}: invalid measurement record: {e}", path=self.path) from e
        with self._lock:
            self._records = records
        logger.info("已加载 %d 条测量记录: %s", len(records), self.path)

    def _save_locked(self) -> None:
        try:
            write_json_atomic(self.path, [m.to_dict() for m in self._records])
        except StorageError:
            # 内存中的修改保留，不回滚
            logger.exception("保存测量记录失败: %s", self.path)
            raise

    # ---- CRUD ----
    def add(self, record: Measurement) -> Measurement:
        with self._lock:
            self._records.append(record)
            self._save_locked()
        return record

    def delete(self, measurement_id: str) -> None:
        with self._lock:
            for i, m in enumerate(self._records):
                if m.id == measurement_id:
                    del self._records[i]
                    break
            else:
                raise NotFoundError(f"measurement not found: {measurement_id}")
            self._save_locked()

    # ---- Accessors ----
    def list(self, floor: int = 0) -> List[Measurement]:
        with self._lock:
            if floor > 0:
                return [m for m in self._records if m.floor == floor]
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    # ---- Export ----
    def to_dataframe(self, floor: int = 0) -> pd.DataFrame:
        rows = [
            {
                "id": m.id,
                "timestamp": format_timestamp(m.timestamp),
                "dbm": m.dbm,
                "lat": m.lat,
                "lng": m.lng,
                "floor": m.floor,
                "location": m.location,
                "type": m.type.value,
            }
            for m in self.list(floor)
        ]
        return pd.DataFrame(rows, columns=CSV_COLUMNS)

    def export_csv(self, floor: int = 0, target: Optional[TextIO] = None) -> Optional[str]:
        """
        导出 CSV，表头 id,timestamp,dbm,lat,lng,floor,location,type；
        lat/lng 保留 6 位小数。未指定 target 时返回字符串。
        """
        df = self.to_dataframe(floor)
        df["lat"] = df["lat"].map(lambda v: f"{v:.6f}")
        df["lng"] = df["lng"].map(lambda v: f"{v:.6f}")
        buf = target if target is not None else io.StringIO()
        df.to_csv(buf, index=False, lineterminator="\n")
        if target is None:
            return buf.getvalue()
        return None
