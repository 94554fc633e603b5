"""
스냅샷 변경 연산

모든 연산은 (이전 스냅샷, 인자) → 새 스냅샷.
이전 스냅샷은 절대 변경하지 않음 (불변 데이터 + dataclasses.replace).

삭제는 참조 이벤트로 전파되지 않음 (고아 참조는 계산 시 0으로 처리).
"""

import logging
from dataclasses import replace
from typing import Callable, TypeVar

from core.domain.errors import DuplicateEntityError, EntityNotFoundError
from core.domain.models import Account, Expense, Movement, Order, Snapshot
from core.domain.patches import (
    AccountPatch,
    ExpensePatch,
    MovementPatch,
    OrderPatch,
    SettingsPatch,
)
from core.domain.state_machines import MovementStateMachine, OrderStateMachine
from core.types import MovementStatus, OrderStatus

logger = logging.getLogger(__name__)

T = TypeVar("T", Account, Order, Expense, Movement)


def _ensure_new(items: tuple[T, ...], entity: T, kind: str) -> None:
    if any(item.id == entity.id for item in items):
        raise DuplicateEntityError(kind, entity.id)


def _update(
    items: tuple[T, ...],
    entity_id: str,
    fn: Callable[[T], T],
    kind: str,
) -> tuple[T, ...]:
    """id가 일치하는 항목에 fn 적용한 새 튜플"""
    found = False
    result: list[T] = []
    for item in items:
        if item.id == entity_id:
            item = fn(item)
            found = True
        result.append(item)
    if not found:
        raise EntityNotFoundError(kind, entity_id)
    return tuple(result)


def _remove(items: tuple[T, ...], entity_id: str, kind: str) -> tuple[T, ...]:
    result = tuple(item for item in items if item.id != entity_id)
    if len(result) == len(items):
        raise EntityNotFoundError(kind, entity_id)
    return result


# =========================================================================
# 계좌
# =========================================================================

def add_account(snapshot: Snapshot, account: Account) -> Snapshot:
    """계좌 추가"""
    _ensure_new(snapshot.accounts, account, "Account")
    logger.info(f"Account added: {account.id} ({account.venue_kind.value}, {account.currency.value})")
    return replace(snapshot, accounts=snapshot.accounts + (account,))


def update_account(snapshot: Snapshot, account_id: str, patch: AccountPatch) -> Snapshot:
    """계좌 수정"""
    accounts = _update(snapshot.accounts, account_id, patch.apply, "Account")
    logger.info(f"Account updated: {account_id} {sorted(patch.changes())}")
    return replace(snapshot, accounts=accounts)


def delete_account(snapshot: Snapshot, account_id: str) -> Snapshot:
    """계좌 삭제 (참조 주문/지출/이동은 유지)"""
    accounts = _remove(snapshot.accounts, account_id, "Account")
    logger.info(f"Account deleted: {account_id}")
    return replace(snapshot, accounts=accounts)


# =========================================================================
# 주문
# =========================================================================

def add_order(snapshot: Snapshot, order: Order) -> Snapshot:
    """주문 추가 (status 기본값 ACTIVE)"""
    _ensure_new(snapshot.orders, order, "Order")
    logger.info(
        f"Order added: {order.id} {order.side.value} {order.quantity} @ {order.unit_price} "
        f"{order.currency.value}"
    )
    return replace(snapshot, orders=snapshot.orders + (order,))


def update_order(snapshot: Snapshot, order_id: str, patch: OrderPatch) -> Snapshot:
    """주문 수정 (상태 변경은 cancel_order / restore_order 사용)"""
    orders = _update(snapshot.orders, order_id, patch.apply, "Order")
    logger.info(f"Order updated: {order_id} {sorted(patch.changes())}")
    return replace(snapshot, orders=orders)


def delete_order(snapshot: Snapshot, order_id: str) -> Snapshot:
    """주문 영구 삭제"""
    orders = _remove(snapshot.orders, order_id, "Order")
    logger.info(f"Order deleted: {order_id}")
    return replace(snapshot, orders=orders)


def _set_order_status(snapshot: Snapshot, order_id: str, status: OrderStatus) -> Snapshot:
    def transition(order: Order) -> Order:
        machine = OrderStateMachine(order.status)
        machine.transition(status)
        return replace(order, status=status)

    orders = _update(snapshot.orders, order_id, transition, "Order")
    logger.info(f"Order {order_id} → {status.value}")
    return replace(snapshot, orders=orders)


def cancel_order(snapshot: Snapshot, order_id: str) -> Snapshot:
    """주문 취소 (삭제하지 않고 계산에서만 제외)

    Raises:
        StateMachineError: 이미 CANCELED인 경우
    """
    return _set_order_status(snapshot, order_id, OrderStatus.CANCELED)


def restore_order(snapshot: Snapshot, order_id: str) -> Snapshot:
    """취소된 주문 복구

    Raises:
        StateMachineError: ACTIVE 주문인 경우
    """
    return _set_order_status(snapshot, order_id, OrderStatus.ACTIVE)


# =========================================================================
# 지출
# =========================================================================

def add_expense(snapshot: Snapshot, expense: Expense) -> Snapshot:
    """지출 추가"""
    _ensure_new(snapshot.expenses, expense, "Expense")
    logger.info(f"Expense added: {expense.id} {expense.amount} {expense.currency.value}")
    return replace(snapshot, expenses=snapshot.expenses + (expense,))


def update_expense(snapshot: Snapshot, expense_id: str, patch: ExpensePatch) -> Snapshot:
    """지출 수정"""
    expenses = _update(snapshot.expenses, expense_id, patch.apply, "Expense")
    logger.info(f"Expense updated: {expense_id} {sorted(patch.changes())}")
    return replace(snapshot, expenses=expenses)


def delete_expense(snapshot: Snapshot, expense_id: str) -> Snapshot:
    """지출 삭제"""
    expenses = _remove(snapshot.expenses, expense_id, "Expense")
    logger.info(f"Expense deleted: {expense_id}")
    return replace(snapshot, expenses=expenses)


# =========================================================================
# 자금 이동
# =========================================================================

def add_movement(snapshot: Snapshot, movement: Movement) -> Snapshot:
    """자금 이동 추가 (생성은 core.ledger.movements.build_movement 사용)"""
    _ensure_new(snapshot.movements, movement, "Movement")
    logger.info(
        f"Movement added: {movement.id} {movement.type.value} "
        f"{movement.amount_from} {movement.currency_from.value}"
    )
    return replace(snapshot, movements=snapshot.movements + (movement,))


def update_movement(snapshot: Snapshot, movement_id: str, patch: MovementPatch) -> Snapshot:
    """자금 이동 설명 필드 수정"""
    movements = _update(snapshot.movements, movement_id, patch.apply, "Movement")
    logger.info(f"Movement updated: {movement_id} {sorted(patch.changes())}")
    return replace(snapshot, movements=movements)


def void_movement(snapshot: Snapshot, movement_id: str) -> Snapshot:
    """자금 이동 무효화 (단방향, 복구 없음)

    Raises:
        StateMachineError: 이미 VOIDED인 경우
    """
    def transition(movement: Movement) -> Movement:
        machine = MovementStateMachine(movement.status)
        machine.transition(MovementStatus.VOIDED)
        return replace(movement, status=MovementStatus.VOIDED)

    movements = _update(snapshot.movements, movement_id, transition, "Movement")
    logger.info(f"Movement voided: {movement_id}")
    return replace(snapshot, movements=movements)


# =========================================================================
# 설정
# =========================================================================

def update_settings(snapshot: Snapshot, patch: SettingsPatch) -> Snapshot:
    """환율 설정 수정 (이후 계산에만 영향)"""
    settings = patch.apply(snapshot.settings)
    logger.info(f"Settings updated: {sorted(patch.changes())}")
    return replace(snapshot, settings=settings)
