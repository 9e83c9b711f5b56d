from __future__ import annotations

from typing import Sequence

import numpy as np


def median_dbm(values: Sequence[int]) -> int:
    """
    整数中值滤波：
    奇数个取中间值；偶数个取中间两个值之和除以 2，向零截断
    （不是向下取整，[-81, -80] -> -80）。空序列返回 0。
    """
    if len(values) == 0:
        return 0
    ordered = np.sort(np.asarray(values, dtype=np.int64))
    n = len(ordered)
    if n % 2 == 1:
        return int(ordered[n // 2])
    total = int(ordered[n // 2 - 1]) + int(ordered[n // 2])
    return int(np.fix(total / 2))
