"""
잔고 계산기

계좌별 잔고 / 거래소(venue) USDT 잔고를 스냅샷에서 매번 다시 계산.
캐시 없음 - 호출할 때마다 전체 이벤트를 순회 (O(n)).
"""

import logging
from decimal import Decimal

from core.domain.models import Account, Order, RateSettings, Snapshot
from core.types import Currency, MovementType, OrderSide
from core.utils.arithmetic import truncate2

logger = logging.getLogger(__name__)


def order_total(order: Order) -> Decimal:
    """주문 정산 통화 기준 총액 (Binance 방식)

    total = truncate2(quantity × unit_price)
    """
    return truncate2(order.quantity * order.unit_price)


def order_total_local(order: Order, settings: RateSettings) -> Decimal:
    """주문 총액의 LOCAL 환산

    FOREIGN 주문은 매수 환율(buy_rate)로 환산 후 다시 절사.
    """
    total = order_total(order)
    if order.currency is Currency.FOREIGN:
        return truncate2(total * settings.buy_rate)
    return total


def _signed(order: Order, amount: Decimal) -> Decimal:
    # BUY = 법정화폐 지급, SELL = 법정화폐 수령
    return -amount if order.side is OrderSide.BUY else amount


def _order_effect(account: Account, order: Order, settings: RateSettings) -> Decimal:
    """주문 1건이 계좌 잔고에 미치는 영향"""
    total = order_total(order)

    if account.currency is order.currency:
        return _signed(order, total)

    if account.currency is Currency.LOCAL and order.currency is Currency.FOREIGN:
        return _signed(order, truncate2(total * settings.buy_rate))

    # 정의되지 않은 조합 (예: FOREIGN 계좌 + LOCAL 주문): 환산 없이 액면 그대로 반영
    logger.debug(
        f"Unconverted order effect: account={account.id} ({account.currency.value}), "
        f"order={order.id} ({order.currency.value})"
    )
    return _signed(order, total)


def account_balance(account_id: str, snapshot: Snapshot) -> Decimal:
    """계좌 잔고 계산

    1. 초기 잔고
    2. ACTIVE 주문 (BUY 차감 / SELL 가산, 필요 시 buy_rate 환산)
    3. 지출 차감 (액면가, 환산 없음)
    4. 계좌 통화와 같은 통화의 확정된 자금 이동 (입금/이체 도착 가산, 출금/이체 출발 차감)

    Args:
        account_id: 계좌 ID
        snapshot: 장부 스냅샷

    Returns:
        잔고 (음수 가능, 클램프하지 않음). 존재하지 않는 계좌는 0.
    """
    account = snapshot.find_account(account_id)
    if account is None:
        return Decimal("0")

    settings = snapshot.settings
    balance = account.initial_balance

    for order in snapshot.active_orders():
        if order.account_id == account_id:
            balance += _order_effect(account, order, settings)

    for expense in snapshot.expenses:
        if expense.account_id == account_id:
            balance -= expense.amount

    for movement in snapshot.confirmed_movements():
        # 통화가 다른 이동은 이 계좌에 반영하지 않음 (암묵적 환산 없음)
        if movement.currency_from is not account.currency:
            continue

        if movement.type in (MovementType.DEPOSIT, MovementType.TRANSFER):
            if movement.target is not None and movement.target.refers_to(account_id):
                balance += movement.amount_from

        if movement.type in (MovementType.WITHDRAWAL, MovementType.TRANSFER):
            if movement.source is not None and movement.source.refers_to(account_id):
                balance -= movement.amount_from

    return balance


def exchange_venue_balance(snapshot: Snapshot) -> Decimal:
    """거래소 USDT 잔고 계산

    첫 번째 EXCHANGE 계좌의 초기 잔고에서 시작하여,
    어느 계좌가 기록했는지와 무관하게 모든 ACTIVE 주문을 반영.
    - BUY: + (quantity - commission)
    - SELL: - (quantity + commission)

    Returns:
        USDT 잔고 (EXCHANGE 계좌가 없으면 0)
    """
    exchange = snapshot.exchange_account()
    if exchange is None:
        return Decimal("0")

    balance = exchange.initial_balance
    for order in snapshot.active_orders():
        if order.side is OrderSide.BUY:
            balance += order.quantity - order.commission
        else:
            balance -= order.quantity + order.commission

    return balance


def resolve_balance(account: Account, snapshot: Snapshot) -> Decimal:
    """계좌 종류에 맞는 잔고 (EXCHANGE는 venue 잔고)"""
    if account.is_exchange:
        return exchange_venue_balance(snapshot)
    return account_balance(account.id, snapshot)
