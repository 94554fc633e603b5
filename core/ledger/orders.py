"""
P2P 주문 보조 기능

매도 가능 수량 검사, USDT 입출 수량, 주문 이력 조회.
"""

import logging
from dataclasses import dataclass
from datetime import date as date_type
from decimal import Decimal

from core.domain.errors import InsufficientBalanceError
from core.domain.models import Order, Snapshot
from core.ledger.balance import exchange_venue_balance, order_total, order_total_local
from core.types import OrderSide
from core.utils.timezone import days_before, to_iso_date, today_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderFlow:
    """주문 1건의 요약

    Attributes:
        usdt_received: 매수 시 받은 USDT (quantity - commission, 최소 0)
        usdt_sent: 매도 시 보낸 USDT (quantity + commission)
        total: 정산 통화 총액 (절사)
        total_local: LOCAL 환산 총액 (절사)
    """

    usdt_received: Decimal
    usdt_sent: Decimal
    total: Decimal
    total_local: Decimal


def order_flow(order: Order, snapshot: Snapshot) -> OrderFlow:
    """주문 요약 계산"""
    zero = Decimal("0")
    if order.side is OrderSide.BUY:
        received = max(zero, order.quantity - order.commission)
        sent = zero
    else:
        received = zero
        sent = order.quantity + order.commission

    return OrderFlow(
        usdt_received=received,
        usdt_sent=sent,
        total=order_total(order),
        total_local=order_total_local(order, snapshot.settings),
    )


def check_sell_capacity(order: Order, snapshot: Snapshot) -> None:
    """매도 주문의 거래소 잔고 충분 여부 검사

    BUY 주문과 CANCELED 주문은 검사하지 않음.
    수정 중인 주문(같은 id)이 이미 스냅샷에 있으면 그 영향은 제외하고 계산.

    Raises:
        InsufficientBalanceError: quantity + commission > 거래소 USDT 잔고
    """
    if order.side is not OrderSide.SELL or not order.is_active:
        return

    available = exchange_venue_balance(snapshot)
    existing = next((o for o in snapshot.orders if o.id == order.id), None)
    if existing is not None and existing.is_active:
        if existing.side is OrderSide.BUY:
            available -= existing.quantity - existing.commission
        else:
            available += existing.quantity + existing.commission

    required = order.quantity + order.commission
    if available < required:
        logger.warning(f"Sell rejected: available={available}, required={required}")
        raise InsufficientBalanceError(available, required)


def list_orders(
    snapshot: Snapshot,
    range_days: int | None = None,
    today: str | date_type | None = None,
    include_canceled: bool = True,
) -> list[Order]:
    """주문 이력 (최신순)

    Args:
        snapshot: 장부 스냅샷
        range_days: 최근 N일만 (None이면 전체)
        today: 기준 날짜 (None이면 오늘)
        include_canceled: CANCELED 포함 여부
    """
    items = [o for o in snapshot.orders if include_canceled or o.is_active]
    items.sort(key=lambda o: o.date, reverse=True)

    if not range_days:
        return items

    reference = to_iso_date(today) if today is not None else today_iso()
    min_date = days_before(reference, range_days)
    return [o for o in items if o.date >= min_date]
