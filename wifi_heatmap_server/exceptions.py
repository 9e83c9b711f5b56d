"""异常层级：请求校验 / 未找到 / 存储读写"""

from __future__ import annotations


class HeatmapError(Exception):
    """Base exception for all wifi_heatmap_server errors."""


class ValidationError(HeatmapError):
    """请求体格式错误、测量类型未知或 id/楼层不是数字"""


class NotFoundError(HeatmapError):
    """未知的楼层、测量 id，或无法解析的地图路径"""


class StorageError(HeatmapError):
    """磁盘读写失败（快照保存、加载、地图文件写入）"""

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)
