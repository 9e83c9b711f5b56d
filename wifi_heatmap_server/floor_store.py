from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Dict, List, Optional

from ._storage import read_json, write_json_atomic
from .config_manager import ConfigManager
from .exceptions import NotFoundError, StorageError
from .models import Floor

logger = logging.getLogger(__name__)


class FloorStore:
    """管理楼层（id -> Floor）与平面图路径，JSON 对象以 id 为键持久化"""

    def __init__(self, config_manager: Optional[ConfigManager] = None, path: Optional[str] = None):
        self.path = path or (config_manager or ConfigManager()).get_floors_path()
        self._lock = threading.Lock()
        self._floors: Dict[int, Floor] = {}

    # ---- Load/Save ----
    def load(self) -> None:
        data = read_json(self.path, default={})
        if not isinstance(data, dict):
            raise StorageError(f"{self.path}: expected a JSON object", path=self.path)
        floors: Dict[int, Floor] = {}
        try:
            for key, item in data.items():
                floor = Floor.from_dict(item)
                # 以键为准
                floor.id = int(key)
                floors[floor.id] = floor
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StorageError(f"{self.path}: invalid floor record: {e}", path=self.path) from e
        with self._lock:
            self._floors = floors
        logger.info("已加载 %d 个楼层: %s", len(floors), self.path)

    def save(self) -> None:
        with self._lock:
            self._save_locked()

    def _save_locked(self) -> None:
        try:
            write_json_atomic(self.path, {str(k): f.to_dict() for k, f in self._floors.items()})
        except StorageError:
            logger.exception("保存楼层数据失败: %s", self.path)
            raise

    # ---- CRUD ----
    def add(self, name: str) -> Floor:
        with self._lock:
            new_id = max(self._floors, default=0) + 1
            floor = Floor(id=new_id, name=name)
            self._floors[new_id] = floor
            self._save_locked()
            return replace(floor)

    def set_map_path(self, floor_id: int, path: str) -> None:
        with self._lock:
            floor = self._floors.get(floor_id)
            if floor is None:
                raise NotFoundError(f"floor not found: {floor_id}")
            floor.map_path = path
            self._save_locked()

    # ---- Accessors ----
    def has(self, floor_id: int) -> bool:
        with self._lock:
            return floor_id in self._floors

    def get(self, floor_id: int) -> Floor:
        with self._lock:
            floor = self._floors.get(floor_id)
            if floor is None:
                raise NotFoundError(f"floor not found: {floor_id}")
            return replace(floor)

    def list(self) -> List[Floor]:
        with self._lock:
            return [
                replace(f)
                for _, f in sorted(self._floors.items())
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._floors)
