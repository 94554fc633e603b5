"""State Machine 테스트"""

import pytest

from core.domain.state_machines import (
    MovementStateMachine,
    OrderStateMachine,
    StateMachineError,
)
from core.types import MovementStatus, OrderStatus


class TestOrderStateMachine:
    """주문 상태 머신 테스트"""

    def test_cancel_and_restore(self) -> None:
        """ACTIVE → CANCELED → ACTIVE"""
        machine = OrderStateMachine()
        assert machine.is_active is True

        machine.transition(OrderStatus.CANCELED)
        assert machine.state == "CANCELED"
        assert machine.is_active is False

        machine.transition("ACTIVE")
        assert machine.is_active is True

    def test_cancel_twice(self) -> None:
        """이미 취소된 주문은 다시 취소 불가"""
        machine = OrderStateMachine(OrderStatus.CANCELED)
        assert machine.can_transition(OrderStatus.CANCELED) is False
        with pytest.raises(StateMachineError):
            machine.transition(OrderStatus.CANCELED)


class TestMovementStateMachine:
    """자금 이동 상태 머신 테스트"""

    def test_void(self) -> None:
        """CONFIRMED → VOIDED"""
        machine = MovementStateMachine()
        machine.transition(MovementStatus.VOIDED)
        assert machine.is_terminal is True

    def test_void_is_final(self) -> None:
        """VOIDED에서 나가는 전이 없음"""
        machine = MovementStateMachine(MovementStatus.VOIDED)
        assert machine.can_transition(MovementStatus.CONFIRMED) is False
        with pytest.raises(StateMachineError):
            machine.transition(MovementStatus.CONFIRMED)
        with pytest.raises(StateMachineError):
            machine.transition(MovementStatus.VOIDED)
