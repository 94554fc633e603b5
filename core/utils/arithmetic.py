"""
절사 연산 유틸리티

Binance 정산 방식: 수량 × 단가를 반올림하지 않고 절사(floor).
반올림 누적으로 법정화폐 합계가 +0.01씩 부풀려지는 것을 방지.
"""

from decimal import ROUND_FLOOR, Decimal, InvalidOperation

from core.constants import Precision


def to_decimal(value: Decimal | int | float | str | None) -> Decimal:
    """숫자를 Decimal로 변환

    float는 str()을 거쳐 최단 표현으로 변환 (0.1 → Decimal("0.1")).

    Args:
        value: 변환할 값 (None이면 0)

    Returns:
        Decimal 값

    Raises:
        ValueError: 숫자로 해석할 수 없는 경우
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"숫자가 아닙니다: {value!r}")
    try:
        return Decimal(str(value).replace(",", "").strip())
    except InvalidOperation as e:
        raise ValueError(f"숫자가 아닙니다: {value!r}") from e


def truncate(value: Decimal | int | float | str, decimals: int) -> Decimal:
    """소수점 decimals 자리에서 절사 (반올림 없음)

    epsilon(1e-12)을 더한 뒤 floor 하여 부동소수점 표현 오차를 보정.

    Args:
        value: 원본 값
        decimals: 남길 소수점 자릿수 (음수는 0으로 간주)

    Returns:
        절사된 Decimal (무한대/NaN은 0)

    Example:
        >>> truncate(Decimal("1.999999999"), 2)
        Decimal('1.99')
        >>> truncate(Decimal("3700"), 2)
        Decimal('3700.00')
    """
    amount = to_decimal(value)
    if not amount.is_finite():
        return Decimal("0")

    places = max(0, int(decimals))
    quantum = Decimal(1).scaleb(-places)
    return (amount + Precision.TRUNCATION_EPSILON).quantize(quantum, rounding=ROUND_FLOOR)


def truncate2(value: Decimal | int | float | str) -> Decimal:
    """소수점 2자리 절사 (법정화폐: LOCAL / FOREIGN)"""
    return truncate(value, Precision.FIAT_DECIMALS)


def truncate6(value: Decimal | int | float | str) -> Decimal:
    """소수점 6자리 절사 (USDT)"""
    return truncate(value, Precision.STABLECOIN_DECIMALS)
