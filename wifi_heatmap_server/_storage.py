"""JSON 快照读写：整份重写，先写临时文件再 rename"""

from __future__ import annotations

import contextlib
import json
import os
from typing import Any

from .exceptions import StorageError


def read_json(path: str, default: Any = None) -> Any:
    """读取 JSON 快照；文件不存在时返回 default，其余错误抛出 StorageError"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return default
    except (OSError, ValueError) as e:
        raise StorageError(f"failed to load {path}: {e}", path=path) from e


def discard(path: str) -> None:
    """删除写入失败后残留的临时文件"""
    with contextlib.suppress(OSError):
        os.remove(path)


def write_json_atomic(path: str, data: Any) -> None:
    tmp = path + ".tmp"
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, path)
    except (OSError, TypeError, ValueError) as e:
        discard(tmp)
        raise StorageError(f"failed to save {path}: {e}", path=path) from e
