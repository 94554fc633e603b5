"""
평가 엔진

USDT 환율(가중평균 또는 수동)과 통화별 자본 합계 계산.

환율 사용 규칙 (의도된 비대칭):
- 주문 정산: buy_rate (취득 원가)
- 자본 평가: sell_rate (시가 평가)
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from core.domain.models import Account, Snapshot
from core.ledger.balance import order_total_local, resolve_balance
from core.types import Currency, OrderSide, StablecoinRateMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountValuation:
    """계좌별 평가 결과

    Attributes:
        account: 계좌
        balance: 계좌 통화 기준 잔고
        balance_local: LOCAL 환산 잔고
    """

    account: Account
    balance: Decimal
    balance_local: Decimal


def stablecoin_rate(snapshot: Snapshot) -> Decimal:
    """USDT 1개당 LOCAL 환율

    MANUAL: 수동 환율 그대로.
    AUTO: ACTIVE BUY 주문의 가중평균 취득 원가
        total_cost_local / total_received
        (received = quantity - commission, cost = 절사된 LOCAL 환산 총액)
    받은 USDT가 없으면 수동 환율로 대체 (0 나눗셈 방지, 오류 아님).
    """
    settings = snapshot.settings
    if settings.stablecoin_rate_mode is StablecoinRateMode.MANUAL:
        return settings.manual_stablecoin_rate

    total_received = Decimal("0")
    total_cost_local = Decimal("0")

    for order in snapshot.active_orders():
        if order.side is not OrderSide.BUY:
            continue
        total_received += order.quantity - order.commission
        total_cost_local += order_total_local(order, settings)

    if total_received > 0:
        return total_cost_local / total_received

    logger.debug("No stablecoin received yet, falling back to manual rate")
    return settings.manual_stablecoin_rate


def to_local(
    amount: Decimal,
    currency: Currency,
    snapshot: Snapshot,
    usdt_rate: Decimal | None = None,
) -> Decimal:
    """금액을 LOCAL로 환산

    Args:
        amount: 금액
        currency: 금액의 통화
        snapshot: 장부 스냅샷 (환율 설정)
        usdt_rate: 미리 계산한 USDT 환율 (None이면 계산)

    Returns:
        LOCAL 환산 금액
    """
    if currency is Currency.LOCAL:
        return amount
    if currency is Currency.FOREIGN:
        return amount * snapshot.settings.sell_rate
    if usdt_rate is None:
        usdt_rate = stablecoin_rate(snapshot)
    return amount * usdt_rate


def account_valuations(snapshot: Snapshot) -> list[AccountValuation]:
    """모든 계좌의 잔고와 LOCAL 환산 값

    EXCHANGE 계좌는 venue 잔고 사용.
    """
    usdt_rate = stablecoin_rate(snapshot)
    result: list[AccountValuation] = []

    for account in snapshot.accounts:
        balance = resolve_balance(account, snapshot)
        result.append(AccountValuation(
            account=account,
            balance=balance,
            balance_local=to_local(balance, account.currency, snapshot, usdt_rate),
        ))

    return result


def total_capital_local(snapshot: Snapshot) -> Decimal:
    """총 자본 (LOCAL)

    계좌별 환산 잔고의 합 (계좌당 정확히 한 번).
    """
    return sum(
        (v.balance_local for v in account_valuations(snapshot)),
        Decimal("0"),
    )


def total_capital_foreign(snapshot: Snapshot) -> Decimal:
    """총 자본 (FOREIGN) = LOCAL 총 자본 / sell_rate"""
    return total_capital_local(snapshot) / snapshot.settings.sell_rate
