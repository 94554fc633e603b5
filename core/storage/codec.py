"""
스냅샷 교환 형식 (JSON)

내보내기/가져오기 문서 스키마 (Pydantic) 와 도메인 모델 변환.

문서 구조:
    {
        "accounts": [...], "orders": [...], "expenses": [...],
        "reports": [...], "settings": {...}, "movements": [...]
    }

- movements 필드가 없으면 빈 목록, settings 누락 필드는 기본 설정 (이전 버전 문서 호환)
- 컬렉션별 id, 리포트 날짜는 유일해야 함
- 금액은 문자열로 내보내고, 가져올 때는 숫자/문자열 모두 허용
- 형식 오류는 FormatError (부분 가져오기 없음)
"""

import json
import logging
from collections import Counter
from dataclasses import replace
from decimal import Decimal
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.domain.errors import EntityValidationError, FormatError
from core.domain.models import (
    Account,
    AuditSnapshot,
    DailyReport,
    Expense,
    Movement,
    MovementEndpoint,
    Order,
    RateSettings,
    Snapshot,
)
from core.types import (
    Currency,
    EndpointKind,
    MovementStatus,
    MovementType,
    OrderSide,
    OrderStatus,
    StablecoinRateMode,
    VenueKind,
)

logger = logging.getLogger(__name__)


# =========================================================================
# 문서 스키마
# =========================================================================

class AccountDoc(BaseModel):
    """계좌"""

    id: str
    name: str
    venue_kind: VenueKind
    currency: Currency
    initial_balance: Decimal = Decimal("0")


class OrderDoc(BaseModel):
    """P2P 주문 (status 없으면 ACTIVE)"""

    id: str
    date: str
    side: OrderSide
    currency: Currency
    quantity: Decimal
    unit_price: Decimal
    commission: Decimal = Decimal("0")
    account_id: str
    status: OrderStatus = OrderStatus.ACTIVE


class ExpenseDoc(BaseModel):
    """지출"""

    id: str
    date: str
    concept: str = ""
    amount: Decimal
    currency: Currency
    account_id: str


class EndpointDoc(BaseModel):
    """자금 이동 끝점"""

    kind: EndpointKind
    account_id: str | None = None
    name: str | None = None


class AuditDoc(BaseModel):
    """생성 시점 잔고 스냅샷"""

    title: str
    currency: Currency
    amount: Decimal
    from_before: Decimal
    from_after: Decimal
    to_before: Decimal
    to_after: Decimal
    from_account_id: str | None = None
    to_account_id: str | None = None


class MovementDoc(BaseModel):
    """자금 이동 (from/to는 예약어라 alias 사용)"""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    date: str
    created_at: str = ""
    type: MovementType
    source: EndpointDoc | None = Field(default=None, alias="from")
    target: EndpointDoc | None = Field(default=None, alias="to")
    currency_from: Currency
    amount_from: Decimal
    currency_to: Currency | None = None
    amount_to: Decimal | None = None
    exchange_rate: Decimal | None = None
    concept: str = ""
    status: MovementStatus = MovementStatus.CONFIRMED
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    note: str | None = None
    audit: AuditDoc | None = None


class SettingsDoc(BaseModel):
    """환율 설정 (누락 필드는 가져오기 시 기본 설정으로 채움)"""

    buy_rate: Decimal | None = None
    sell_rate: Decimal | None = None
    stablecoin_rate_mode: StablecoinRateMode | None = None
    manual_stablecoin_rate: Decimal | None = None


class ReportDoc(BaseModel):
    """일일 리포트"""

    id: str
    date: str
    opening_local: Decimal
    closing_local: Decimal
    opening_foreign: Decimal
    closing_foreign: Decimal
    accounts_detail: dict[str, Decimal] | None = None


class SnapshotDoc(BaseModel):
    """스냅샷 문서"""

    accounts: list[AccountDoc] = Field(default_factory=list)
    orders: list[OrderDoc] = Field(default_factory=list)
    expenses: list[ExpenseDoc] = Field(default_factory=list)
    reports: list[ReportDoc] = Field(default_factory=list)
    settings: SettingsDoc | None = None
    movements: list[MovementDoc] | None = None


# =========================================================================
# 문서 → 도메인
# =========================================================================

def _endpoint(doc: EndpointDoc | None) -> MovementEndpoint | None:
    if doc is None:
        return None
    return MovementEndpoint(kind=doc.kind, account_id=doc.account_id, name=doc.name)


def _movement(doc: MovementDoc) -> Movement:
    return Movement(
        id=doc.id,
        date=doc.date,
        created_at=doc.created_at,
        type=doc.type,
        source=_endpoint(doc.source),
        target=_endpoint(doc.target),
        currency_from=doc.currency_from,
        amount_from=doc.amount_from,
        currency_to=doc.currency_to,
        amount_to=doc.amount_to,
        exchange_rate=doc.exchange_rate,
        concept=doc.concept,
        status=doc.status,
        category=doc.category,
        tags=tuple(doc.tags),
        note=doc.note,
        audit=AuditSnapshot(**doc.audit.model_dump()) if doc.audit else None,
    )


def _check_unique(collection: str, field: str, values: Iterable[str]) -> None:
    """컬렉션 내 키 중복 검사

    Raises:
        FormatError: 중복 키 존재
    """
    duplicates = sorted(v for v, count in Counter(values).items() if count > 1)
    if duplicates:
        raise FormatError(f"{collection}.{field} 중복: {', '.join(duplicates)}")


def document_to_snapshot(
    doc: SnapshotDoc,
    default_settings: RateSettings | None = None,
) -> Snapshot:
    """검증된 문서를 Snapshot으로 변환

    settings의 누락 필드(또는 settings 전체 누락)는 default_settings로 채움.

    Raises:
        FormatError: 컬렉션별 id 중복, 리포트 날짜 중복
        EntityValidationError: 도메인 규칙 위반 (수량 <= 0 등)
    """
    _check_unique("accounts", "id", (a.id for a in doc.accounts))
    _check_unique("orders", "id", (o.id for o in doc.orders))
    _check_unique("expenses", "id", (e.id for e in doc.expenses))
    _check_unique("movements", "id", (m.id for m in doc.movements or []))
    _check_unique("reports", "id", (r.id for r in doc.reports))

    base = default_settings or RateSettings()
    if doc.settings is not None:
        settings = replace(base, **doc.settings.model_dump(exclude_none=True))
    else:
        settings = base

    reports = tuple(DailyReport(**r.model_dump()) for r in doc.reports)
    # 날짜 형식이 정규화된 뒤에 비교
    _check_unique("reports", "date", (r.date for r in reports))

    return Snapshot(
        accounts=tuple(Account(**a.model_dump()) for a in doc.accounts),
        orders=tuple(Order(**o.model_dump()) for o in doc.orders),
        expenses=tuple(Expense(**e.model_dump()) for e in doc.expenses),
        reports=reports,
        settings=settings,
        movements=tuple(_movement(m) for m in (doc.movements or [])),
    )


def import_snapshot(
    text: str | bytes,
    default_settings: RateSettings | None = None,
) -> Snapshot:
    """JSON 문서를 Snapshot으로 가져오기

    Args:
        text: JSON 문자열
        default_settings: settings 또는 그 필드가 누락됐을 때 사용할 기본값

    Returns:
        새 Snapshot

    Raises:
        FormatError: JSON 파싱 실패, 스키마 불일치, 도메인 규칙 위반
    """
    try:
        # float 대신 Decimal로 파싱 (정밀도 유지)
        data = json.loads(text, parse_float=Decimal)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FormatError(f"JSON 파싱 실패: {e}") from e

    if not isinstance(data, dict):
        raise FormatError("문서 최상위는 객체여야 합니다")

    try:
        doc = SnapshotDoc.model_validate(data)
        snapshot = document_to_snapshot(doc, default_settings)
    except ValidationError as e:
        raise FormatError(f"문서 구조 오류: {e.error_count()}건\n{e}") from e
    except EntityValidationError as e:
        raise FormatError(f"엔티티 검증 실패: {e}") from e

    logger.info(
        f"Snapshot imported: accounts={len(snapshot.accounts)}, orders={len(snapshot.orders)}, "
        f"expenses={len(snapshot.expenses)}, movements={len(snapshot.movements)}, "
        f"reports={len(snapshot.reports)}"
    )
    return snapshot


# =========================================================================
# 도메인 → 문서
# =========================================================================

def _endpoint_doc(endpoint: MovementEndpoint | None) -> EndpointDoc | None:
    if endpoint is None:
        return None
    return EndpointDoc(kind=endpoint.kind, account_id=endpoint.account_id, name=endpoint.name)


def _movement_doc(m: Movement) -> MovementDoc:
    audit = None
    if m.audit is not None:
        a = m.audit
        audit = AuditDoc(
            title=a.title,
            currency=a.currency,
            amount=a.amount,
            from_before=a.from_before,
            from_after=a.from_after,
            to_before=a.to_before,
            to_after=a.to_after,
            from_account_id=a.from_account_id,
            to_account_id=a.to_account_id,
        )
    return MovementDoc(
        id=m.id,
        date=m.date,
        created_at=m.created_at,
        type=m.type,
        source=_endpoint_doc(m.source),
        target=_endpoint_doc(m.target),
        currency_from=m.currency_from,
        amount_from=m.amount_from,
        currency_to=m.currency_to,
        amount_to=m.amount_to,
        exchange_rate=m.exchange_rate,
        concept=m.concept,
        status=m.status,
        category=m.category,
        tags=list(m.tags),
        note=m.note,
        audit=audit,
    )


def snapshot_to_document(snapshot: Snapshot) -> dict[str, Any]:
    """Snapshot을 JSON 직렬화 가능한 dict로 변환"""
    s = snapshot.settings
    doc = SnapshotDoc(
        accounts=[
            AccountDoc(
                id=a.id,
                name=a.name,
                venue_kind=a.venue_kind,
                currency=a.currency,
                initial_balance=a.initial_balance,
            )
            for a in snapshot.accounts
        ],
        orders=[
            OrderDoc(
                id=o.id,
                date=o.date,
                side=o.side,
                currency=o.currency,
                quantity=o.quantity,
                unit_price=o.unit_price,
                commission=o.commission,
                account_id=o.account_id,
                status=o.status,
            )
            for o in snapshot.orders
        ],
        expenses=[
            ExpenseDoc(
                id=e.id,
                date=e.date,
                concept=e.concept,
                amount=e.amount,
                currency=e.currency,
                account_id=e.account_id,
            )
            for e in snapshot.expenses
        ],
        reports=[
            ReportDoc(
                id=r.id,
                date=r.date,
                opening_local=r.opening_local,
                closing_local=r.closing_local,
                opening_foreign=r.opening_foreign,
                closing_foreign=r.closing_foreign,
                accounts_detail=dict(r.accounts_detail) if r.accounts_detail is not None else None,
            )
            for r in snapshot.reports
        ],
        settings=SettingsDoc(
            buy_rate=s.buy_rate,
            sell_rate=s.sell_rate,
            stablecoin_rate_mode=s.stablecoin_rate_mode,
            manual_stablecoin_rate=s.manual_stablecoin_rate,
        ),
        movements=[_movement_doc(m) for m in snapshot.movements],
    )
    return doc.model_dump(mode="json", by_alias=True)


def export_snapshot(snapshot: Snapshot) -> str:
    """Snapshot을 JSON 문자열로 내보내기 (들여쓰기 2칸)"""
    return json.dumps(snapshot_to_document(snapshot), indent=2, ensure_ascii=False)
