"""封装时间分桶、时区换算与默认统计窗口的辅助函数。"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Optional

from ..errors import InvalidArgumentError

# 各粒度未显式指定起止时间时回溯的时长。
DEFAULT_WINDOWS = {
    "hour": timedelta(hours=24),
    "day": timedelta(days=7),
    "week": timedelta(days=30),
    "month": timedelta(days=365),
    "year": timedelta(days=3 * 365),
}


def validate_granularity(granularity: str) -> str:
    """
    功能说明:
        校验时间粒度是否受支持。
    参数:
        granularity (str): hour/day/week/month/year 之一。
    返回:
        str: 原样返回合法的粒度。
    异常:
        InvalidArgumentError: 粒度不在支持列表中。
    """
    if granularity not in DEFAULT_WINDOWS:
        raise InvalidArgumentError(
            f"Unsupported range {granularity!r}; expected one of {', '.join(DEFAULT_WINDOWS)}"
        )
    return granularity


def default_window(granularity: str, now: datetime) -> tuple[datetime, datetime]:
    """
    功能说明:
        根据粒度返回以 `now` 为终点的默认统计窗口。
    参数:
        granularity (str): 时间粒度。
        now (datetime): 注入的当前时间，保证结果可复现。
    返回:
        tuple[datetime, datetime]: (start, end) 时间元组。
    """
    validate_granularity(granularity)
    return now - DEFAULT_WINDOWS[granularity], now


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    功能说明:
        将文档中的时间字段解析为 datetime，兼容 ISO 字符串与毫秒时间戳。
    参数:
        value (Any): 原始字段值。
    返回:
        Optional[datetime]: 解析成功的时间；无法解析时返回 `None`。
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, (int, float)):
        return _from_epoch_millis(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return _from_epoch_millis(float(text))
        except ValueError:
            pass
        # Python 3.10 的 fromisoformat 不识别结尾的 Z。
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def parse_boundary(value: Optional[str], tz: tzinfo) -> Optional[datetime]:
    """
    功能说明:
        解析调用方传入的窗口边界；不带时区的时间视为统计时区。
    参数:
        value (Optional[str]): ISO 日期/时间或毫秒时间戳，空值表示未指定。
        tz (tzinfo): 统计时区。
    返回:
        Optional[datetime]: 带时区的时间；未指定时为 `None`。
    异常:
        InvalidArgumentError: 无法解析。
    """
    if not value:
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        raise InvalidArgumentError(f"Invalid date value: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def _from_epoch_millis(value: float) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def to_zone(moment: datetime, tz: tzinfo) -> datetime:
    """
    功能说明:
        将时间换算到统计时区；无时区信息的时间视为已处于该时区。
    参数:
        moment (datetime): 原始时间。
        tz (tzinfo): 统计时区。
    返回:
        datetime: 换算后的时间。
    """
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(tz)


def bucket_key(moment: datetime, granularity: str) -> str:
    """
    功能说明:
        生成可按字典序排序的时间分桶键。
    参数:
        moment (datetime): 已换算到统计时区的时间。
        granularity (str): 时间粒度。
    返回:
        str: 例如 `2024-03-05T14`、`2024-03-05`、`2024-W10`、`2024-03`、`2024`。
    """
    if granularity == "hour":
        return moment.strftime("%Y-%m-%dT%H")
    if granularity == "day":
        return moment.strftime("%Y-%m-%d")
    if granularity == "week":
        iso_year, iso_week, _ = moment.isocalendar()
        return f"{iso_year:04d}-W{iso_week:02d}"
    if granularity == "month":
        return moment.strftime("%Y-%m")
    if granularity == "year":
        return f"{moment.year:04d}"
    raise InvalidArgumentError(f"Unsupported range {granularity!r}")
