"""
자금 이동 생성 / 이력 조회

입금(DEPOSIT), 출금(WITHDRAWAL), 이체(TRANSFER) 생성 시
끝점 검증과 생성 시점 잔고 스냅샷(AuditSnapshot)을 함께 기록.
"""

import logging
from datetime import date as date_type
from decimal import Decimal

from core.domain.errors import EntityNotFoundError, EntityValidationError
from core.domain.models import (
    AuditSnapshot,
    Movement,
    MovementEndpoint,
    Snapshot,
    make_created_at,
    new_id,
)
from core.ledger.balance import account_balance
from core.types import Currency, EndpointKind, MovementType
from core.utils.arithmetic import to_decimal, truncate
from core.utils.timezone import days_before, to_iso_date, today_iso

logger = logging.getLogger(__name__)

# 이체 유형별 필수 끝점 (source 필요, target 필요)
REQUIRED_ENDPOINTS: dict[MovementType, tuple[bool, bool]] = {
    MovementType.DEPOSIT: (False, True),
    MovementType.WITHDRAWAL: (True, False),
    MovementType.TRANSFER: (True, True),
}


def _as_endpoint(value: MovementEndpoint | str | None) -> MovementEndpoint | None:
    """계좌 id 문자열은 ACCOUNT 끝점으로 변환"""
    if value is None or isinstance(value, MovementEndpoint):
        return value
    return MovementEndpoint.account(value)


def _endpoint_label(endpoint: MovementEndpoint | None, snapshot: Snapshot) -> str:
    if endpoint is None:
        return "-"
    if endpoint.kind is EndpointKind.EXTERNAL:
        return endpoint.name or "외부"
    account = snapshot.find_account(endpoint.account_id or "")
    return account.name if account else "계좌"


def _endpoint_balance(endpoint: MovementEndpoint | None, snapshot: Snapshot) -> Decimal:
    if endpoint is None or endpoint.kind is not EndpointKind.ACCOUNT:
        return Decimal("0")
    return account_balance(endpoint.account_id or "", snapshot)


def _affects(endpoint: MovementEndpoint | None, currency: Currency, snapshot: Snapshot) -> bool:
    # 잔고 계산과 같은 규칙: 계좌 통화가 출발 통화와 같을 때만 반영
    if endpoint is None or endpoint.kind is not EndpointKind.ACCOUNT:
        return False
    account = snapshot.find_account(endpoint.account_id or "")
    return account is not None and account.currency is currency


def movement_title(
    movement_type: MovementType,
    amount: Decimal,
    currency: Currency,
    source: MovementEndpoint | None,
    target: MovementEndpoint | None,
    snapshot: Snapshot,
) -> str:
    """이력 표시용 제목

    Example:
        "이체: 은행 → 현금 (LOCAL 100.00)"
    """
    amt = f"{currency.value} {truncate(amount, currency.decimals):,}"
    src = _endpoint_label(source, snapshot)
    dst = _endpoint_label(target, snapshot)

    if movement_type is MovementType.TRANSFER:
        return f"이체: {src} → {dst} ({amt})"
    if movement_type is MovementType.DEPOSIT:
        return f"입금: {dst} ({amt})"
    return f"출금: {src} ({amt})"


def build_audit_snapshot(
    movement_type: MovementType,
    amount: Decimal,
    currency: Currency,
    source: MovementEndpoint | None,
    target: MovementEndpoint | None,
    snapshot: Snapshot,
) -> AuditSnapshot:
    """생성 시점 끝점 잔고 스냅샷

    이후 재계산하지 않음 (환율 설정 변경 등으로 실제 잔고와 달라질 수 있음).
    """
    from_before = _endpoint_balance(source, snapshot)
    to_before = _endpoint_balance(target, snapshot)

    moves_out = (
        movement_type in (MovementType.WITHDRAWAL, MovementType.TRANSFER)
        and _affects(source, currency, snapshot)
    )
    moves_in = (
        movement_type in (MovementType.DEPOSIT, MovementType.TRANSFER)
        and _affects(target, currency, snapshot)
    )

    return AuditSnapshot(
        title=movement_title(movement_type, amount, currency, source, target, snapshot),
        currency=currency,
        amount=amount,
        from_before=from_before,
        from_after=from_before - amount if moves_out else from_before,
        to_before=to_before,
        to_after=to_before + amount if moves_in else to_before,
        from_account_id=source.account_id if source else None,
        to_account_id=target.account_id if target else None,
    )


def _validate_endpoints(
    movement_type: MovementType,
    source: MovementEndpoint | None,
    target: MovementEndpoint | None,
    snapshot: Snapshot,
) -> None:
    needs_source, needs_target = REQUIRED_ENDPOINTS[movement_type]
    if needs_source and source is None:
        raise EntityValidationError(f"{movement_type.value}: 출발 끝점이 필요합니다")
    if needs_target and target is None:
        raise EntityValidationError(f"{movement_type.value}: 도착 끝점이 필요합니다")

    if movement_type is MovementType.TRANSFER and source == target:
        raise EntityValidationError("TRANSFER: 출발과 도착이 같을 수 없습니다")

    for endpoint in (source, target):
        if endpoint is None or endpoint.kind is not EndpointKind.ACCOUNT:
            continue
        if snapshot.find_account(endpoint.account_id or "") is None:
            raise EntityNotFoundError("Account", endpoint.account_id or "")


def build_movement(
    snapshot: Snapshot,
    movement_type: MovementType | str,
    amount: Decimal | int | float | str,
    currency: Currency | str,
    *,
    source: MovementEndpoint | str | None = None,
    target: MovementEndpoint | str | None = None,
    date: str | date_type | None = None,
    concept: str = "",
    currency_to: Currency | str | None = None,
    exchange_rate: Decimal | int | float | str | None = None,
    category: str | None = None,
    tags: tuple[str, ...] = (),
    note: str | None = None,
    created_at: str | None = None,
    movement_id: str | None = None,
) -> Movement:
    """자금 이동 생성 (검증 + 감사 스냅샷)

    Args:
        snapshot: 현재 장부 스냅샷 (감사 스냅샷 계산용)
        movement_type: DEPOSIT/WITHDRAWAL/TRANSFER
        amount: 출발 금액 (> 0)
        currency: 출발 통화
        source: 출발 끝점 (계좌 id 문자열 허용)
        target: 도착 끝점 (계좌 id 문자열 허용)
        currency_to: 도착 통화 (다르면 exchange_rate 필수)
        exchange_rate: 교차 통화 수동 환율 (도착 통화 per 출발 통화)

    Returns:
        CONFIRMED 상태의 새 Movement

    Raises:
        EntityValidationError: 금액/끝점/환율 검증 실패
        EntityNotFoundError: 끝점 계좌가 없는 경우
    """
    movement_type = MovementType(movement_type)
    currency = Currency(currency)
    target_currency = Currency(currency_to) if currency_to is not None else currency
    amount_from = truncate(to_decimal(amount), currency.decimals)
    if amount_from <= 0:
        raise EntityValidationError("Movement.amount: 0보다 커야 합니다")

    src = _as_endpoint(source)
    dst = _as_endpoint(target)
    _validate_endpoints(movement_type, src, dst, snapshot)

    rate: Decimal | None = None
    if target_currency is currency:
        amount_to = amount_from
    else:
        if exchange_rate is None:
            raise EntityValidationError("교차 통화 이동에는 exchange_rate가 필요합니다")
        rate = to_decimal(exchange_rate)
        if rate <= 0:
            raise EntityValidationError("Movement.exchange_rate: 0보다 커야 합니다")
        amount_to = truncate(amount_from * rate, target_currency.decimals)

    movement = Movement(
        id=movement_id or new_id(),
        date=to_iso_date(date) if date is not None else today_iso(),
        created_at=created_at or make_created_at(),
        type=movement_type,
        source=src,
        target=dst,
        currency_from=currency,
        amount_from=amount_from,
        currency_to=target_currency,
        amount_to=amount_to,
        exchange_rate=rate,
        concept=concept.strip(),
        category=category,
        tags=tuple(tags),
        note=note,
        audit=build_audit_snapshot(movement_type, amount_from, currency, src, dst, snapshot),
    )
    logger.debug(f"Movement built: {movement.id} {movement_type.value} {currency.value} {amount_from}")
    return movement


def list_movements(
    snapshot: Snapshot,
    range_days: int | None = None,
    today: str | date_type | None = None,
    include_voided: bool = True,
) -> list[Movement]:
    """자금 이동 이력 (최신순: 날짜, 생성 시각)

    Args:
        snapshot: 장부 스냅샷
        range_days: 최근 N일만 (None/0이면 전체)
        today: 기준 날짜 (None이면 오늘)
        include_voided: VOIDED 포함 여부
    """
    items = [m for m in snapshot.movements if include_voided or m.is_confirmed]
    items.sort(key=lambda m: m.sort_key, reverse=True)

    if not range_days:
        return items

    reference = to_iso_date(today) if today is not None else today_iso()
    min_date = days_before(reference, range_days)
    # YYYY-MM-DD 형식이라 문자열 비교로 충분
    return [m for m in items if m.date >= min_date]
