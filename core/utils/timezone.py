"""
날짜/시간 유틸리티

내부 저장: UTC 원칙. 장부 날짜는 ISO 문자열(YYYY-MM-DD)로 통일.
"""

from datetime import date, datetime, timedelta, timezone


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def today_iso() -> str:
    """오늘 날짜 (UTC 기준, YYYY-MM-DD)"""
    return now_utc().date().isoformat()


def to_iso_date(value: date | datetime | str) -> str:
    """날짜 값을 YYYY-MM-DD 문자열로 정규화

    Args:
        value: date, datetime 또는 ISO 문자열

    Returns:
        YYYY-MM-DD 문자열

    Raises:
        ValueError: 날짜 형식이 아닌 경우

    Example:
        >>> to_iso_date(date(2026, 2, 21))
        '2026-02-21'
        >>> to_iso_date("2026-02-21T09:30:00")
        '2026-02-21'
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    # 날짜 부분만 검증 (시간 부분은 무시)
    return date.fromisoformat(text[:10]).isoformat()


def days_before(iso_date: str, days: int) -> str:
    """iso_date 기준 days일 전 날짜

    Example:
        >>> days_before("2026-03-01", 1)
        '2026-02-28'
    """
    return (date.fromisoformat(iso_date) - timedelta(days=days)).isoformat()


def month_start(iso_date: str) -> str:
    """해당 월 1일 날짜"""
    return date.fromisoformat(iso_date).replace(day=1).isoformat()


def to_iso_timestamp(dt: datetime) -> str:
    """datetime을 UTC ISO 타임스탬프 문자열로 변환

    naive datetime은 UTC로 간주.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()
