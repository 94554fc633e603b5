"""
유틸리티 패키지

절사 연산, 날짜 처리 등 공통 유틸리티
"""

from core.utils.arithmetic import to_decimal, truncate, truncate2, truncate6
from core.utils.timezone import (
    days_before,
    month_start,
    now_utc,
    to_iso_date,
    to_iso_timestamp,
    today_iso,
)

__all__ = [
    "to_decimal",
    "truncate",
    "truncate2",
    "truncate6",
    "days_before",
    "month_start",
    "now_utc",
    "to_iso_date",
    "to_iso_timestamp",
    "today_iso",
]
