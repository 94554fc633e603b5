"""
pytest 공통 fixture 정의

장부 계산 테스트용 계좌/주문/스냅샷 fixture
"""

import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Callable

import pytest

from core.config.loader import Config
from core.domain.models import (
    Account,
    Expense,
    Order,
    RateSettings,
    Snapshot,
    new_id,
)
from core.types import Currency, OrderSide, OrderStatus, StablecoinRateMode, VenueKind


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def reset_config():
    """Config 싱글턴 초기화"""
    Config.reset()
    yield
    Config.reset()


@pytest.fixture
def bank_account() -> Account:
    """LOCAL 은행 계좌 (초기 1000)"""
    return Account(
        id="bank",
        name="Banco",
        venue_kind=VenueKind.BANK,
        currency=Currency.LOCAL,
        initial_balance=Decimal("1000"),
    )


@pytest.fixture
def cash_account() -> Account:
    """LOCAL 현금 계좌 (초기 500)"""
    return Account(
        id="cash",
        name="Efectivo",
        venue_kind=VenueKind.CASH,
        currency=Currency.LOCAL,
        initial_balance=Decimal("500"),
    )


@pytest.fixture
def usd_account() -> Account:
    """FOREIGN 현금 계좌 (초기 100)"""
    return Account(
        id="usd",
        name="Dolares",
        venue_kind=VenueKind.CASH,
        currency=Currency.FOREIGN,
        initial_balance=Decimal("100"),
    )


@pytest.fixture
def exchange_account() -> Account:
    """거래소 USDT 계좌 (초기 10)"""
    return Account(
        id="binance",
        name="Binance",
        venue_kind=VenueKind.EXCHANGE,
        currency=Currency.STABLECOIN,
        initial_balance=Decimal("10"),
    )


@pytest.fixture
def manual_settings() -> RateSettings:
    """수동 USDT 환율 37 설정"""
    return RateSettings(
        buy_rate=Decimal("36.5"),
        sell_rate=Decimal("37"),
        stablecoin_rate_mode=StablecoinRateMode.MANUAL,
        manual_stablecoin_rate=Decimal("37"),
    )


@pytest.fixture
def snapshot(bank_account, cash_account, usd_account, exchange_account) -> Snapshot:
    """기본 스냅샷 (이벤트 없음, 기본 환율 설정)"""
    return Snapshot(accounts=(bank_account, cash_account, usd_account, exchange_account))


@pytest.fixture
def make_order() -> Callable[..., Order]:
    """Order 생성 헬퍼"""

    def _make(
        side: str = "BUY",
        quantity: str = "100",
        unit_price: str = "37",
        commission: str = "0",
        currency: str = "LOCAL",
        account_id: str = "bank",
        status: str = "ACTIVE",
        order_id: str | None = None,
        date: str = "2026-02-20",
    ) -> Order:
        return Order(
            id=order_id or new_id(),
            date=date,
            side=OrderSide(side),
            currency=Currency(currency),
            quantity=Decimal(quantity),
            unit_price=Decimal(unit_price),
            commission=Decimal(commission),
            account_id=account_id,
            status=OrderStatus(status),
        )

    return _make


@pytest.fixture
def make_expense() -> Callable[..., Expense]:
    """Expense 생성 헬퍼"""

    def _make(
        amount: str = "50",
        currency: str = "LOCAL",
        account_id: str = "bank",
        date: str = "2026-02-20",
        concept: str = "gasto",
    ) -> Expense:
        return Expense(
            id=new_id(),
            date=date,
            concept=concept,
            amount=Decimal(amount),
            currency=Currency(currency),
            account_id=account_id,
        )

    return _make
