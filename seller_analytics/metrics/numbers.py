"""数值字段的容错转换。"""

from __future__ import annotations

import math
from typing import Any


def to_float(value: Any, default: float = 0.0) -> float:
    """将任意字段转换为有限浮点数，缺失、非数字或非有限值返回默认值。"""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def first_nonzero(*candidates: Any) -> float:
    """按顺序返回第一个可转换且非零的数值，全部无效时为 0。"""
    for candidate in candidates:
        number = to_float(candidate)
        if number:
            return number
    return 0.0


def to_quantity(value: Any) -> float:
    """数量缺失、为零、为负或非数字时按 1 计。"""
    number = to_float(value)
    if number <= 0:
        return 1
    return int(number) if number.is_integer() else number

