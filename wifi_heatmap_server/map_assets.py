from __future__ import annotations

import logging
import os
import shutil
import threading
from dataclasses import dataclass
from typing import BinaryIO, Dict, Optional

from ._storage import discard
from .config_manager import ConfigManager
from .exceptions import NotFoundError, StorageError
from .floor_store import FloorStore

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads/"

CONTENT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def content_type(path: str) -> str:
    """按扩展名推断 Content-Type"""
    return CONTENT_TYPES.get(os.path.splitext(path)[1], DEFAULT_CONTENT_TYPE)


def map_filename(floor_id: int, original_filename: str) -> str:
    """floor_<id>_map<ext>，扩展名保留原始大小写"""
    ext = os.path.splitext(os.path.basename(original_filename or ""))[1]
    return f"floor_{floor_id}_map{ext}"


@dataclass(frozen=True)
class MapAsset:
    path: str
    content_type: str
    data: bytes


class MapAssetManager:
    """
    楼层平面图管理：
    - upload: 写入 uploads 目录并更新楼层 mapPath
    - resolve: 通过 URL 路径 -> 楼层 id 的索引反查磁盘文件
    """

    def __init__(
        self,
        floor_store: FloorStore,
        config_manager: Optional[ConfigManager] = None,
        uploads_dir: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        config = config_manager
        if uploads_dir is None or base_url is None:
            config = config or ConfigManager()
        self.floor_store = floor_store
        self.uploads_dir = uploads_dir or config.get_uploads_dir()
        self.base_url = (base_url if base_url is not None else config.get_base_url()).rstrip("/")
        self._lock = threading.RLock()
        # URL 路径 -> 楼层 id
        self._index: Dict[str, int] = {}

    def ensure_dir(self) -> None:
        try:
            os.makedirs(self.uploads_dir, exist_ok=True)
        except OSError as e:
            raise StorageError(f"failed to create uploads directory: {e}", path=self.uploads_dir) from e

    # ---- Index ----
    def _request_path(self, map_path: str) -> str:
        # 旧数据可能保存了带 base_url 的完整地址
        if self.base_url and map_path.startswith(self.base_url):
            return map_path[len(self.base_url):]
        return map_path

    def rebuild_index(self) -> None:
        index: Dict[str, int] = {}
        for floor in self.floor_store.list():
            if floor.map_path:
                index.setdefault(self._request_path(floor.map_path), floor.id)
        with self._lock:
            self._index = index
        logger.debug("平面图索引已重建: %d 条", len(index))

    def _index_floor(self, floor_id: int, map_path: str) -> None:
        # 同一楼层换了扩展名时，旧路径不再可解析
        self._index = {p: fid for p, fid in self._index.items() if fid != floor_id}
        self._index[map_path] = floor_id

    # ---- Upload ----
    def upload(self, floor_id: int, stream: BinaryIO, original_filename: str) -> str:
        if not self.floor_store.has(floor_id):
            raise NotFoundError(f"floor not found: {floor_id}")

        filename = map_filename(floor_id, original_filename)
        target = os.path.join(self.uploads_dir, filename)
        map_path = URL_PREFIX + filename

        with self._lock:
            self.ensure_dir()
            tmp = target + ".part"
            try:
                with open(tmp, "wb") as out:
                    shutil.copyfileobj(stream, out)
                os.replace(tmp, target)
            except OSError as e:
                discard(tmp)
                logger.exception("写入平面图失败: %s", target)
                raise StorageError(f"failed to save map file: {e}", path=target) from e

            try:
                self.floor_store.set_map_path(floor_id, map_path)
            except StorageError:
                # 楼层在内存中已更新，只是保存失败
                self._index_floor(floor_id, map_path)
                raise
            self._index_floor(floor_id, map_path)

        logger.info("楼层 %d 平面图已上传: %s", floor_id, map_path)
        return map_path

    # ---- Resolve ----
    def resolve(self, request_path: str) -> str:
        with self._lock:
            floor_id = self._index.get(request_path)
        if floor_id is None:
            raise NotFoundError(f"file not found in any floor map paths: {request_path}")

        file_path = os.path.join(self.uploads_dir, os.path.basename(request_path))
        if not os.path.isfile(file_path):
            raise NotFoundError(f"file not found on server: {request_path}")
        return file_path

    def read(self, request_path: str) -> MapAsset:
        file_path = self.resolve(request_path)
        try:
            with open(file_path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise StorageError(f"failed to read map file: {e}", path=file_path) from e
        return MapAsset(path=file_path, content_type=content_type(file_path), data=data)
