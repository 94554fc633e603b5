"""
엔티티 부분 수정 (Patch)

엔티티별 명시적 수정 계약. 모든 필드는 선택 사항이며
None이 아닌 필드만 덮어씀 (dataclasses.replace → 새 인스턴스, 재검증 포함).

상태(status) 필드는 Patch로 변경할 수 없음:
- 주문: cancel_order / restore_order
- 자금 이동: void_movement
"""

from dataclasses import dataclass, fields, replace
from decimal import Decimal
from typing import Any, TypeVar

from core.types import Currency, OrderSide, StablecoinRateMode, VenueKind

T = TypeVar("T")


@dataclass(frozen=True)
class Patch:
    """Patch 기본 클래스"""

    def changes(self) -> dict[str, Any]:
        """None이 아닌 필드만 dict로 반환"""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def apply(self, entity: T) -> T:
        """엔티티에 적용한 새 인스턴스 반환 (원본은 변경하지 않음)"""
        changes = self.changes()
        if not changes:
            return entity
        return replace(entity, **changes)

    def is_empty(self) -> bool:
        """변경 사항 없음 여부"""
        return not self.changes()


@dataclass(frozen=True)
class AccountPatch(Patch):
    """계좌 수정"""

    name: str | None = None
    venue_kind: VenueKind | None = None
    currency: Currency | None = None
    initial_balance: Decimal | None = None


@dataclass(frozen=True)
class OrderPatch(Patch):
    """주문 수정 (상태 제외)"""

    date: str | None = None
    side: OrderSide | None = None
    currency: Currency | None = None
    quantity: Decimal | None = None
    unit_price: Decimal | None = None
    commission: Decimal | None = None
    account_id: str | None = None


@dataclass(frozen=True)
class ExpensePatch(Patch):
    """지출 수정"""

    date: str | None = None
    concept: str | None = None
    amount: Decimal | None = None
    currency: Currency | None = None
    account_id: str | None = None


@dataclass(frozen=True)
class MovementPatch(Patch):
    """자금 이동 수정

    설명성 필드만 수정 가능. 금액/끝점을 바꾸려면 무효화 후 새로 등록.
    """

    date: str | None = None
    concept: str | None = None
    category: str | None = None
    tags: tuple[str, ...] | None = None
    note: str | None = None


@dataclass(frozen=True)
class SettingsPatch(Patch):
    """환율 설정 수정"""

    buy_rate: Decimal | None = None
    sell_rate: Decimal | None = None
    stablecoin_rate_mode: StablecoinRateMode | None = None
    manual_stablecoin_rate: Decimal | None = None
