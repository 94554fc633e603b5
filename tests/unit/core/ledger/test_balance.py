"""
core/ledger/balance.py 테스트

계좌 잔고, 거래소 venue 잔고 계산
"""

from decimal import Decimal

import pytest

from core.domain import mutations
from core.domain.models import Account, Movement, MovementEndpoint, Snapshot
from core.ledger.balance import (
    account_balance,
    exchange_venue_balance,
    order_total,
    order_total_local,
    resolve_balance,
)


def _movement(movement_id: str, type_: str, amount: str, currency: str = "LOCAL",
              source: str | None = None, target: str | None = None,
              status: str = "CONFIRMED", currency_to: str | None = None) -> Movement:
    return Movement(
        id=movement_id,
        date="2026-02-20",
        created_at=f"2026-02-20T10:00:0{movement_id[-1]}+00:00",
        type=type_,
        currency_from=currency,
        amount_from=amount,
        currency_to=currency_to,
        source=MovementEndpoint.account(source) if source else None,
        target=MovementEndpoint.account(target) if target else None,
        status=status,
    )


class TestOrderTotal:
    """주문 총액 테스트"""

    def test_truncated_product(self, make_order) -> None:
        """truncate2(quantity × unit_price)"""
        assert order_total(make_order(quantity="100", unit_price="37")) == Decimal("3700.00")
        assert order_total(make_order(quantity="3.333", unit_price="1.01")) == Decimal("3.36")

    def test_foreign_converted_with_buy_rate(self, make_order) -> None:
        """FOREIGN 주문은 buy_rate로 LOCAL 환산"""
        order = make_order(quantity="10", unit_price="1.01", currency="FOREIGN")
        snapshot = Snapshot()
        assert order_total_local(order, snapshot.settings) == Decimal("368.65")


class TestAccountBalance:
    """account_balance 테스트"""

    def test_buy_same_currency(self, bank_account, make_order) -> None:
        """LOCAL 계좌 1000에서 100 × 37 매수 → -2700 (음수 허용)"""
        snapshot = Snapshot(accounts=(bank_account,), orders=(make_order(),))
        assert account_balance("bank", snapshot) == Decimal("-2700")

    def test_sell_adds(self, bank_account, make_order) -> None:
        """매도는 법정화폐 수령"""
        snapshot = Snapshot(
            accounts=(bank_account,),
            orders=(make_order(side="SELL", quantity="10", unit_price="37.5"),),
        )
        assert account_balance("bank", snapshot) == Decimal("1375.00")

    def test_canceled_excluded(self, bank_account, make_order) -> None:
        """취소 주문 제외"""
        snapshot = Snapshot(accounts=(bank_account,), orders=(make_order(status="CANCELED"),))
        assert account_balance("bank", snapshot) == Decimal("1000")

    def test_foreign_order_on_local_account(self, bank_account, make_order) -> None:
        """LOCAL 계좌의 FOREIGN 주문은 buy_rate 환산"""
        order = make_order(quantity="10", unit_price="1.01", currency="FOREIGN")
        snapshot = Snapshot(accounts=(bank_account,), orders=(order,))
        # truncate2(10.10 × 36.5) = 368.65
        assert account_balance("bank", snapshot) == Decimal("631.35")

    def test_undefined_pair_face_value(self, usd_account, make_order) -> None:
        """FOREIGN 계좌의 LOCAL 주문은 환산 없이 액면 그대로"""
        order = make_order(side="SELL", quantity="1", unit_price="37", account_id="usd")
        snapshot = Snapshot(accounts=(usd_account,), orders=(order,))
        assert account_balance("usd", snapshot) == Decimal("137")

    def test_other_account_orders_ignored(self, bank_account, cash_account, make_order) -> None:
        """다른 계좌 주문은 반영 안 함"""
        snapshot = Snapshot(
            accounts=(bank_account, cash_account),
            orders=(make_order(account_id="cash", quantity="1"),),
        )
        assert account_balance("bank", snapshot) == Decimal("1000")
        assert account_balance("cash", snapshot) == Decimal("463")

    def test_expense_face_value(self, bank_account, make_expense) -> None:
        """지출은 통화 환산 없이 액면 차감"""
        snapshot = Snapshot(
            accounts=(bank_account,),
            expenses=(make_expense(amount="50"), make_expense(amount="2", currency="FOREIGN")),
        )
        assert account_balance("bank", snapshot) == Decimal("948")

    def test_unknown_account_is_zero(self, snapshot) -> None:
        """존재하지 않는 계좌는 0"""
        assert account_balance("missing", snapshot) == Decimal("0")

    def test_orphan_order_ignored(self, snapshot, make_order) -> None:
        """삭제된 계좌를 참조하는 주문은 무시"""
        snapshot = Snapshot(
            accounts=snapshot.accounts,
            orders=(make_order(account_id="deleted"),),
        )
        assert account_balance("bank", snapshot) == Decimal("1000")


class TestMovementEffect:
    """자금 이동 반영 테스트"""

    def test_deposit_and_withdrawal(self, bank_account) -> None:
        """입금 가산, 출금 차감"""
        snapshot = Snapshot(
            accounts=(bank_account,),
            movements=(
                _movement("m1", "DEPOSIT", "200", target="bank"),
                _movement("m2", "WITHDRAWAL", "50", source="bank"),
            ),
        )
        assert account_balance("bank", snapshot) == Decimal("1150")

    def test_transfer_conserves(self, bank_account, cash_account) -> None:
        """이체: 출발 차감, 도착 가산, 합계 보존"""
        snapshot = Snapshot(
            accounts=(bank_account, cash_account),
            movements=(_movement("m1", "TRANSFER", "100", source="bank", target="cash"),),
        )
        assert account_balance("bank", snapshot) == Decimal("900")
        assert account_balance("cash", snapshot) == Decimal("600")

    def test_voided_excluded(self, bank_account) -> None:
        """VOIDED 이동 제외"""
        snapshot = Snapshot(
            accounts=(bank_account,),
            movements=(_movement("m1", "DEPOSIT", "200", target="bank", status="VOIDED"),),
        )
        assert account_balance("bank", snapshot) == Decimal("1000")

    def test_currency_mismatch_ignored(self, bank_account, usd_account) -> None:
        """출발 통화와 계좌 통화가 다르면 반영 안 함"""
        snapshot = Snapshot(
            accounts=(bank_account, usd_account),
            movements=(
                _movement("m1", "TRANSFER", "370", source="bank", target="usd",
                          currency_to="FOREIGN"),
            ),
        )
        assert account_balance("bank", snapshot) == Decimal("630")
        assert account_balance("usd", snapshot) == Decimal("100")


class TestExchangeVenueBalance:
    """거래소 venue 잔고 테스트"""

    def test_all_active_orders(self, snapshot, make_order) -> None:
        """계좌와 무관하게 모든 ACTIVE 주문 반영"""
        snapshot = Snapshot(
            accounts=snapshot.accounts,
            orders=(
                make_order(side="BUY", quantity="100", commission="1", account_id="bank"),
                make_order(side="SELL", quantity="50", commission="0.5", account_id="cash"),
                make_order(side="BUY", quantity="999", status="CANCELED"),
            ),
        )
        # 10 + 99 - 50.5
        assert exchange_venue_balance(snapshot) == Decimal("58.5")

    def test_no_exchange_account(self, bank_account, make_order) -> None:
        """EXCHANGE 계좌가 없으면 0"""
        snapshot = Snapshot(accounts=(bank_account,), orders=(make_order(),))
        assert exchange_venue_balance(snapshot) == Decimal("0")

    def test_first_exchange_account_only(self, exchange_account) -> None:
        """EXCHANGE 계좌가 여러 개면 첫 번째 초기 잔고 사용"""
        second = Account(id="okx", name="OKX", venue_kind="EXCHANGE",
                         currency="STABLECOIN", initial_balance="500")
        snapshot = Snapshot(accounts=(exchange_account, second))
        assert exchange_venue_balance(snapshot) == Decimal("10")

    @pytest.mark.parametrize("account_fixture", ["bank_account", "exchange_account"])
    def test_resolve_balance(self, request, snapshot, make_order, account_fixture) -> None:
        """EXCHANGE 계좌는 venue 잔고, 그 외는 계좌 잔고"""
        account = request.getfixturevalue(account_fixture)
        snapshot = Snapshot(accounts=snapshot.accounts, orders=(make_order(quantity="1"),))
        expected = (
            exchange_venue_balance(snapshot) if account.is_exchange
            else account_balance(account.id, snapshot)
        )
        assert resolve_balance(account, snapshot) == expected


class TestProperties:
    """불변 조건 테스트"""

    def test_no_events_is_initial(self, snapshot) -> None:
        """이벤트가 없으면 초기 잔고"""
        for account in snapshot.accounts:
            assert account_balance(account.id, snapshot) == account.initial_balance

    def test_cancel_equals_never_existed(self, snapshot, make_order) -> None:
        """취소 = 존재하지 않았던 것과 동일, 복구 시 다시 반영"""
        placed = mutations.add_order(snapshot, make_order(order_id="o1", quantity="3"))
        canceled = mutations.cancel_order(placed, "o1")
        restored = mutations.restore_order(canceled, "o1")

        assert account_balance("bank", canceled) == account_balance("bank", snapshot)
        assert exchange_venue_balance(canceled) == exchange_venue_balance(snapshot)
        assert account_balance("bank", restored) == account_balance("bank", placed)

    def test_void_reverts_both_endpoints(self, snapshot) -> None:
        """무효화는 양쪽 끝점 영향을 모두 제거"""
        moved = mutations.add_movement(
            snapshot, _movement("m1", "TRANSFER", "100", source="bank", target="cash")
        )
        voided = mutations.void_movement(moved, "m1")

        for account_id in ("bank", "cash"):
            assert account_balance(account_id, voided) == account_balance(account_id, snapshot)
