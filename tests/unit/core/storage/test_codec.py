"""
core/storage/codec.py 테스트

JSON 교환 형식 내보내기/가져오기
"""

import json
from decimal import Decimal

import pytest

from core.domain import mutations
from core.domain.errors import FormatError
from core.domain.models import MovementEndpoint, RateSettings
from core.domain.patches import SettingsPatch
from core.ledger.movements import build_movement
from core.ledger.reports import upsert_daily_report
from core.storage.codec import export_snapshot, import_snapshot, snapshot_to_document
from core.types import OrderStatus, StablecoinRateMode


@pytest.fixture
def populated(snapshot, make_order, make_expense):
    """모든 엔티티 종류가 들어간 스냅샷"""
    snapshot = mutations.update_settings(snapshot, SettingsPatch(
        stablecoin_rate_mode=StablecoinRateMode.MANUAL,
    ))
    snapshot = mutations.add_order(snapshot, make_order(order_id="o1", commission="0.15"))
    snapshot = mutations.add_order(
        snapshot, make_order(order_id="o2", side="SELL", quantity="5", status="CANCELED")
    )
    snapshot = mutations.add_expense(snapshot, make_expense(amount="12.34"))
    movement = build_movement(
        snapshot, "TRANSFER", "370", "LOCAL", source="bank", target="usd",
        currency_to="FOREIGN", exchange_rate="0.027", date="2026-02-20",
        category="cambio", tags=("usd",), note="nota",
    )
    snapshot = mutations.add_movement(snapshot, movement)
    snapshot = mutations.add_movement(snapshot, build_movement(
        snapshot, "DEPOSIT", "1.5", "STABLECOIN",
        source=MovementEndpoint.external("Cliente"), target="binance", date="2026-02-20",
    ))
    snapshot, _ = upsert_daily_report("2026-02-20", snapshot)
    return snapshot


class TestExport:
    """export_snapshot 테스트"""

    def test_document_shape(self, populated) -> None:
        """최상위 필드, 금액은 문자열, 끝점은 from/to"""
        doc = snapshot_to_document(populated)

        assert set(doc) == {"accounts", "orders", "expenses", "reports", "settings", "movements"}
        assert doc["orders"][0]["quantity"] == "100"
        assert doc["settings"]["stablecoin_rate_mode"] == "MANUAL"

        movement = doc["movements"][0]
        assert movement["from"] == {"kind": "ACCOUNT", "account_id": "bank", "name": None}
        assert movement["to"]["account_id"] == "usd"
        assert movement["amount_to"] == "9.99"
        assert movement["audit"]["title"].startswith("이체:")

    def test_json_text(self, populated) -> None:
        """들여쓰기 JSON, 한글 그대로"""
        text = export_snapshot(populated)

        assert text.startswith("{\n  ")
        assert "이체" in text
        assert json.loads(text)["accounts"][0]["id"] == "bank"


class TestImport:
    """import_snapshot 테스트"""

    def test_round_trip(self, populated) -> None:
        """내보낸 문서를 다시 가져오면 동일"""
        assert import_snapshot(export_snapshot(populated)) == populated

    def test_legacy_document_defaults(self) -> None:
        """movements/settings/status 누락 시 기본값"""
        text = json.dumps({
            "accounts": [
                {"id": "bank", "name": "Banco", "venue_kind": "BANK", "currency": "LOCAL",
                 "initial_balance": 1000},
            ],
            "orders": [
                {"id": "o1", "date": "2026-02-20", "side": "BUY", "currency": "LOCAL",
                 "quantity": 0.1, "unit_price": 37, "account_id": "bank"},
            ],
            "expenses": [],
            "reports": [],
        })
        defaults = RateSettings(sell_rate=Decimal("40"))

        snapshot = import_snapshot(text, default_settings=defaults)

        assert snapshot.movements == ()
        assert snapshot.settings == defaults
        assert snapshot.orders[0].status is OrderStatus.ACTIVE
        # JSON 실수는 Decimal로 정확하게 파싱
        assert snapshot.orders[0].quantity == Decimal("0.1")

    def test_partial_settings_use_defaults(self) -> None:
        """settings 일부 필드만 있으면 나머지는 기본 설정으로 채움"""
        text = json.dumps({"settings": {"buy_rate": "36"}})
        defaults = RateSettings(
            sell_rate=Decimal("40"),
            stablecoin_rate_mode=StablecoinRateMode.MANUAL,
            manual_stablecoin_rate=Decimal("38"),
        )

        settings = import_snapshot(text, default_settings=defaults).settings

        assert settings.buy_rate == Decimal("36")
        assert settings.sell_rate == Decimal("40")
        assert settings.stablecoin_rate_mode is StablecoinRateMode.MANUAL
        assert settings.manual_stablecoin_rate == Decimal("38")

    @pytest.mark.parametrize(
        "text",
        [
            "not json",
            "[1, 2, 3]",
            '{"accounts": [{"id": "a"}]}',
            '{"accounts": [{"id": "a", "name": "x", "venue_kind": "WALLET", "currency": "LOCAL"}]}',
            '{"orders": "nope"}',
        ],
    )
    def test_structural_errors(self, text: str) -> None:
        """구조 오류는 FormatError"""
        with pytest.raises(FormatError):
            import_snapshot(text)

    def test_domain_rule_violation(self) -> None:
        """도메인 규칙 위반 (quantity 0)도 FormatError"""
        text = json.dumps({"orders": [
            {"id": "o1", "date": "2026-02-20", "side": "BUY", "currency": "LOCAL",
             "quantity": "0", "unit_price": "37", "account_id": "bank"},
        ]})
        with pytest.raises(FormatError, match="엔티티 검증"):
            import_snapshot(text)


def _report(report_id: str, date: str) -> dict:
    return {"id": report_id, "date": date, "opening_local": "1", "closing_local": "1",
            "opening_foreign": "0.02", "closing_foreign": "0.02"}


def _order(order_id: str) -> dict:
    return {"id": order_id, "date": "2026-02-20", "side": "BUY", "currency": "LOCAL",
            "quantity": "1", "unit_price": "37", "account_id": "bank"}


class TestImportUniqueness:
    """가져오기 시 키 유일성 테스트"""

    def test_duplicate_report_date(self) -> None:
        """같은 날짜 리포트 두 건은 거부"""
        text = json.dumps({"reports": [_report("r1", "2026-02-20"), _report("r2", "2026-02-20")]})

        with pytest.raises(FormatError, match="reports.date"):
            import_snapshot(text)

    def test_duplicate_order_id(self) -> None:
        """같은 id 주문 두 건은 거부"""
        text = json.dumps({"orders": [_order("o1"), _order("o1")]})

        with pytest.raises(FormatError, match="orders.id"):
            import_snapshot(text)

    @pytest.mark.parametrize(
        "collection,item",
        [
            ("accounts", {"id": "a1", "name": "Banco", "venue_kind": "BANK", "currency": "LOCAL"}),
            ("expenses", {"id": "e1", "date": "2026-02-20", "amount": "5", "currency": "LOCAL",
                          "account_id": "bank"}),
            ("movements", {"id": "m1", "date": "2026-02-20", "type": "DEPOSIT",
                           "to": {"kind": "ACCOUNT", "account_id": "bank"},
                           "currency_from": "LOCAL", "amount_from": "10"}),
        ],
    )
    def test_duplicate_ids_per_collection(self, collection: str, item: dict) -> None:
        """컬렉션별 id 중복 거부"""
        text = json.dumps({collection: [item, item]})

        with pytest.raises(FormatError, match=f"{collection}.id"):
            import_snapshot(text)

    def test_same_id_across_collections_allowed(self) -> None:
        """다른 컬렉션 간 같은 id는 허용"""
        text = json.dumps({"orders": [_order("x1")], "reports": [_report("x1", "2026-02-20")]})

        snapshot = import_snapshot(text)

        assert len(snapshot.orders) == 1
        assert len(snapshot.reports) == 1

    def test_distinct_keys_import_cleanly(self) -> None:
        """중복이 없으면 이후 변경이 한 건에만 적용"""
        text = json.dumps({
            "orders": [_order("o1"), _order("o2")],
            "reports": [_report("r1", "2026-02-19"), _report("r2", "2026-02-20")],
        })

        snapshot = mutations.cancel_order(import_snapshot(text), "o1")

        assert [o.status for o in snapshot.orders] == [OrderStatus.CANCELED, OrderStatus.ACTIVE]
