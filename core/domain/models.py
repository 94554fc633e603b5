"""
장부 엔티티 모델

계좌, P2P 주문, 지출, 자금 이동, 환율 설정, 일일 리포트, 스냅샷.
모든 금액/수량은 Decimal 타입 사용.
모든 엔티티는 불변 (frozen) - 변경은 새 인스턴스 생성으로만 수행.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, Mapping
from uuid import uuid4

from core.constants import Defaults
from core.domain.errors import EntityValidationError
from core.types import (
    FIAT_CURRENCIES,
    Currency,
    EndpointKind,
    MovementStatus,
    MovementType,
    OrderSide,
    OrderStatus,
    StablecoinRateMode,
    VenueKind,
)
from core.utils.arithmetic import to_decimal
from core.utils.timezone import now_utc, to_iso_date, to_iso_timestamp


def new_id() -> str:
    """엔티티 id 생성 (UUID4 문자열)"""
    return str(uuid4())


def _set(obj: Any, name: str, value: Any) -> None:
    # frozen dataclass 정규화용
    object.__setattr__(obj, name, value)


def _coerce_enum(obj: Any, name: str, enum_cls: type[Enum]) -> None:
    value = getattr(obj, name)
    if isinstance(value, enum_cls):
        return
    try:
        _set(obj, name, enum_cls(value))
    except ValueError as e:
        valid = [m.value for m in enum_cls]
        raise EntityValidationError(
            f"{type(obj).__name__}.{name}: 유효하지 않은 값 '{value}'. 유효한 값: {valid}"
        ) from e


def _coerce_decimal(obj: Any, name: str) -> Decimal:
    try:
        value = to_decimal(getattr(obj, name))
    except ValueError as e:
        raise EntityValidationError(f"{type(obj).__name__}.{name}: {e}") from e
    if not value.is_finite():
        raise EntityValidationError(f"{type(obj).__name__}.{name}: 유한한 숫자여야 합니다")
    _set(obj, name, value)
    return value


def _coerce_date(obj: Any, name: str) -> None:
    try:
        _set(obj, name, to_iso_date(getattr(obj, name)))
    except (TypeError, ValueError) as e:
        raise EntityValidationError(
            f"{type(obj).__name__}.{name}: 날짜 형식(YYYY-MM-DD)이 아닙니다"
        ) from e


@dataclass(frozen=True)
class Account:
    """계좌

    Attributes:
        id: 계좌 ID
        name: 표시 이름
        venue_kind: 계좌 종류 (BANK/CASH/EXCHANGE)
        currency: 계좌 통화
        initial_balance: 초기 잔고 (부호 있음, 원본 정밀도 유지)
    """

    id: str
    name: str
    venue_kind: VenueKind
    currency: Currency
    initial_balance: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        _coerce_enum(self, "venue_kind", VenueKind)
        _coerce_enum(self, "currency", Currency)
        _coerce_decimal(self, "initial_balance")

    @property
    def is_exchange(self) -> bool:
        """거래소 계좌 여부"""
        return self.venue_kind is VenueKind.EXCHANGE


@dataclass(frozen=True)
class Order:
    """P2P 주문

    USDT를 법정화폐(LOCAL/FOREIGN)로 사고 파는 거래.
    취소된 주문은 감사 기록으로 보존되지만 모든 계산에서 제외.

    Attributes:
        id: 주문 ID
        date: 거래일 (YYYY-MM-DD)
        side: BUY/SELL
        currency: 정산 통화 (LOCAL/FOREIGN)
        quantity: USDT 수량
        unit_price: USDT 1개당 가격 (정산 통화)
        commission: 수수료 (USDT)
        account_id: 정산 계좌 ID
        status: ACTIVE/CANCELED
    """

    id: str
    date: str
    side: OrderSide
    currency: Currency
    quantity: Decimal
    unit_price: Decimal
    account_id: str
    commission: Decimal = Decimal("0")
    status: OrderStatus = OrderStatus.ACTIVE

    def __post_init__(self) -> None:
        _coerce_date(self, "date")
        _coerce_enum(self, "side", OrderSide)
        _coerce_enum(self, "currency", Currency)
        _coerce_enum(self, "status", OrderStatus)
        if self.currency not in FIAT_CURRENCIES:
            raise EntityValidationError(
                f"Order.currency: 법정화폐만 허용됩니다 (got {self.currency.value})"
            )
        if _coerce_decimal(self, "quantity") <= 0:
            raise EntityValidationError("Order.quantity: 0보다 커야 합니다")
        if _coerce_decimal(self, "unit_price") <= 0:
            raise EntityValidationError("Order.unit_price: 0보다 커야 합니다")
        if _coerce_decimal(self, "commission") < 0:
            raise EntityValidationError("Order.commission: 음수일 수 없습니다")

    @property
    def is_active(self) -> bool:
        """계산 대상 여부"""
        return self.status is OrderStatus.ACTIVE


@dataclass(frozen=True)
class Expense:
    """지출

    항상 잔고에 반영 (취소 상태 없음).
    """

    id: str
    date: str
    concept: str
    amount: Decimal
    currency: Currency
    account_id: str

    def __post_init__(self) -> None:
        _coerce_date(self, "date")
        _coerce_enum(self, "currency", Currency)
        if self.currency not in FIAT_CURRENCIES:
            raise EntityValidationError(
                f"Expense.currency: 법정화폐만 허용됩니다 (got {self.currency.value})"
            )
        if _coerce_decimal(self, "amount") <= 0:
            raise EntityValidationError("Expense.amount: 0보다 커야 합니다")


@dataclass(frozen=True)
class MovementEndpoint:
    """자금 이동 끝점 (계좌 참조 또는 외부 라벨)"""

    kind: EndpointKind
    account_id: str | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        _coerce_enum(self, "kind", EndpointKind)
        if self.kind is EndpointKind.ACCOUNT and not self.account_id:
            raise EntityValidationError("MovementEndpoint: ACCOUNT 끝점에는 account_id가 필요합니다")
        if self.kind is EndpointKind.EXTERNAL and not self.name:
            raise EntityValidationError("MovementEndpoint: EXTERNAL 끝점에는 name이 필요합니다")

    @classmethod
    def account(cls, account_id: str) -> "MovementEndpoint":
        """계좌 끝점 생성"""
        return cls(kind=EndpointKind.ACCOUNT, account_id=account_id)

    @classmethod
    def external(cls, name: str) -> "MovementEndpoint":
        """외부 끝점 생성"""
        return cls(kind=EndpointKind.EXTERNAL, name=name)

    def refers_to(self, account_id: str) -> bool:
        """해당 계좌를 가리키는지 여부"""
        return self.kind is EndpointKind.ACCOUNT and self.account_id == account_id


@dataclass(frozen=True)
class AuditSnapshot:
    """자금 이동 생성 시점의 잔고 스냅샷 (표시용 캐시)

    생성 시점에 한 번 계산되며 이후 재계산하지 않음.
    권위 있는 값이 아님 - 잔고는 항상 이벤트에서 다시 계산.
    """

    title: str
    currency: Currency
    amount: Decimal
    from_before: Decimal
    from_after: Decimal
    to_before: Decimal
    to_after: Decimal
    from_account_id: str | None = None
    to_account_id: str | None = None

    def __post_init__(self) -> None:
        _coerce_enum(self, "currency", Currency)
        for name in ("amount", "from_before", "from_after", "to_before", "to_after"):
            _coerce_decimal(self, name)


@dataclass(frozen=True)
class Movement:
    """자금 이동 (입금/출금/이체)

    VOIDED 상태는 보존되지만 잔고 계산에서 제외.
    무효화는 단방향 (복구 불가).

    Attributes:
        id: 이동 ID
        date: 이동일 (YYYY-MM-DD)
        created_at: 생성 시각 (같은 날짜 내 정렬용, UTC ISO)
        type: DEPOSIT/WITHDRAWAL/TRANSFER
        source: 출발 끝점 (DEPOSIT은 보통 None)
        target: 도착 끝점 (WITHDRAWAL은 보통 None)
        currency_from/amount_from: 출발 통화/금액
        currency_to/amount_to: 도착 통화/금액 (교차 통화가 아니면 출발과 동일)
        exchange_rate: 교차 통화일 때 수동 환율
        status: CONFIRMED/VOIDED
        audit: 생성 시점 잔고 스냅샷
    """

    id: str
    date: str
    created_at: str
    type: MovementType
    currency_from: Currency
    amount_from: Decimal
    currency_to: Currency | None = None
    amount_to: Decimal | None = None
    source: MovementEndpoint | None = None
    target: MovementEndpoint | None = None
    exchange_rate: Decimal | None = None
    concept: str = ""
    status: MovementStatus = MovementStatus.CONFIRMED
    category: str | None = None
    tags: tuple[str, ...] = ()
    note: str | None = None
    audit: AuditSnapshot | None = None

    def __post_init__(self) -> None:
        _coerce_date(self, "date")
        if isinstance(self.created_at, datetime):
            _set(self, "created_at", to_iso_timestamp(self.created_at))
        _coerce_enum(self, "type", MovementType)
        _coerce_enum(self, "status", MovementStatus)
        _coerce_enum(self, "currency_from", Currency)
        if _coerce_decimal(self, "amount_from") < 0:
            raise EntityValidationError("Movement.amount_from: 음수일 수 없습니다")

        # 도착 통화/금액 미지정 시 출발과 동일
        if self.currency_to is None:
            _set(self, "currency_to", self.currency_from)
        _coerce_enum(self, "currency_to", Currency)
        if self.amount_to is None:
            _set(self, "amount_to", self.amount_from)
        _coerce_decimal(self, "amount_to")

        if self.exchange_rate is not None:
            if _coerce_decimal(self, "exchange_rate") <= 0:
                raise EntityValidationError("Movement.exchange_rate: 0보다 커야 합니다")
        _set(self, "tags", tuple(self.tags))

    @property
    def is_confirmed(self) -> bool:
        """계산 대상 여부"""
        return self.status is not MovementStatus.VOIDED

    @property
    def is_cross_currency(self) -> bool:
        """교차 통화 이동 여부"""
        return self.currency_from is not self.currency_to

    @property
    def sort_key(self) -> tuple[str, str]:
        """정렬 키 (날짜, 생성 시각)"""
        return (self.date, self.created_at)


@dataclass(frozen=True)
class RateSettings:
    """환율 설정

    모든 평가 계산에 명시적 인자로 전달됨 (전역 상태 아님).
    변경은 이후 계산에만 영향 (저장된 리포트는 소급 변경 안 됨).

    Attributes:
        buy_rate: FOREIGN 1단위당 LOCAL (주문 정산용)
        sell_rate: FOREIGN 1단위당 LOCAL (자본 평가용)
        stablecoin_rate_mode: AUTO(가중평균) / MANUAL
        manual_stablecoin_rate: USDT 1개당 LOCAL (수동)
    """

    buy_rate: Decimal = Defaults.BUY_RATE
    sell_rate: Decimal = Defaults.SELL_RATE
    stablecoin_rate_mode: StablecoinRateMode = StablecoinRateMode.AUTO
    manual_stablecoin_rate: Decimal = Defaults.MANUAL_STABLECOIN_RATE

    def __post_init__(self) -> None:
        _coerce_enum(self, "stablecoin_rate_mode", StablecoinRateMode)
        for name in ("buy_rate", "sell_rate", "manual_stablecoin_rate"):
            if _coerce_decimal(self, name) <= 0:
                raise EntityValidationError(f"RateSettings.{name}: 0보다 커야 합니다")


@dataclass(frozen=True)
class DailyReport:
    """일일 자본 리포트

    날짜당 하나. 재저장 시 마감(closing) 값만 갱신되고 시작(opening) 값은 유지.
    """

    id: str
    date: str
    opening_local: Decimal
    closing_local: Decimal
    opening_foreign: Decimal
    closing_foreign: Decimal
    accounts_detail: Mapping[str, Decimal] | None = None

    def __post_init__(self) -> None:
        _coerce_date(self, "date")
        for name in ("opening_local", "closing_local", "opening_foreign", "closing_foreign"):
            _coerce_decimal(self, name)
        if self.accounts_detail is not None:
            try:
                detail = {str(k): to_decimal(v) for k, v in self.accounts_detail.items()}
            except ValueError as e:
                raise EntityValidationError(f"DailyReport.accounts_detail: {e}") from e
            _set(self, "accounts_detail", detail)

    @property
    def change_local(self) -> Decimal:
        """당일 증감 (LOCAL)"""
        return self.closing_local - self.opening_local

    @property
    def change_foreign(self) -> Decimal:
        """당일 증감 (FOREIGN)"""
        return self.closing_foreign - self.opening_foreign


@dataclass(frozen=True)
class Snapshot:
    """장부 스냅샷

    모든 계산의 유일한 입력. 한 번 생성되면 변경하지 않음.
    변경 연산은 새 Snapshot을 반환 (core.domain.mutations).
    """

    accounts: tuple[Account, ...] = ()
    orders: tuple[Order, ...] = ()
    expenses: tuple[Expense, ...] = ()
    reports: tuple[DailyReport, ...] = ()
    settings: RateSettings = field(default_factory=RateSettings)
    movements: tuple[Movement, ...] = ()

    def __post_init__(self) -> None:
        for name in ("accounts", "orders", "expenses", "reports", "movements"):
            _set(self, name, tuple(getattr(self, name)))

    def find_account(self, account_id: str) -> Account | None:
        """id로 계좌 조회 (없으면 None)"""
        return next((a for a in self.accounts if a.id == account_id), None)

    def exchange_account(self) -> Account | None:
        """첫 번째 EXCHANGE 계좌"""
        return next((a for a in self.accounts if a.is_exchange), None)

    def active_orders(self) -> Iterator[Order]:
        """ACTIVE 주문만"""
        return (o for o in self.orders if o.is_active)

    def confirmed_movements(self) -> Iterator[Movement]:
        """VOIDED가 아닌 이동만"""
        return (m for m in self.movements if m.is_confirmed)

    def find_report(self, date: str) -> DailyReport | None:
        """날짜로 리포트 조회"""
        return next((r for r in self.reports if r.date == date), None)


def make_created_at() -> str:
    """Movement.created_at 값 생성"""
    return to_iso_timestamp(now_utc())
