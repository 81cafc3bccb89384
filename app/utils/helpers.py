import calendar
import math
import re
from datetime import date, datetime, timedelta
from typing import Tuple

import pytz

MONTH_PATTERN = re.compile(r"^\d{4}-\d{2}$")


def parse_month(month: str) -> Tuple[date, date]:
    """解析 YYYY-MM，返回该月第一天和最后一天"""
    if not month or not MONTH_PATTERN.match(month):
        raise ValueError(f"月份格式应为 YYYY-MM: {month}")
    year, month_num = int(month[:4]), int(month[5:])
    if not 1 <= month_num <= 12:
        raise ValueError(f"月份超出范围: {month}")
    last = calendar.monthrange(year, month_num)[1]
    return date(year, month_num, 1), date(year, month_num, last)


def format_month(day: date) -> str:
    return f"{day.year}-{day.month:02d}"


def previous_month(day: date) -> str:
    """返回给定日期上一个自然月的 YYYY-MM"""
    first = day.replace(day=1)
    return format_month(first - timedelta(days=1))


def parse_iso_date(value: str) -> date:
    return datetime.strptime(value, "%Y-%m-%d").date()


def today_in(timezone_name: str) -> date:
    """指定时区的今天"""
    return datetime.now(pytz.timezone(timezone_name)).date()


def week_range(day: date) -> Tuple[date, date]:
    """周一到周日"""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def format_timestamp(dt: datetime = None) -> str:
    """格式化时间戳"""
    if not dt:
        dt = datetime.now(pytz.utc)
    return dt.isoformat()


def round_half_up(value: float) -> int:
    """四舍五入到整数（0.5 向上取整）"""
    return int(math.floor(value + 0.5))
