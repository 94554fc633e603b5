"""
장부 계산 엔진

스냅샷에서 잔고, USDT 환율, 자본 합계, 일일 리포트를 계산하는 순수 함수 모음.
모든 함수는 스냅샷 전체를 입력으로 받아 매번 다시 계산 (캐시 없음).

사용 예시:
```python
from core.ledger import account_balance, stablecoin_rate, total_capital_local

balance = account_balance("bank-1", snapshot)
rate = stablecoin_rate(snapshot)
capital = total_capital_local(snapshot)

snapshot, report = upsert_daily_report("2026-02-21", snapshot)
```
"""

from core.ledger.balance import (
    account_balance,
    exchange_venue_balance,
    order_total,
    order_total_local,
    resolve_balance,
)
from core.ledger.movements import build_movement, list_movements
from core.ledger.orders import check_sell_capacity, list_orders, order_flow
from core.ledger.reports import (
    capital_variation,
    monthly_summary,
    save_report,
    sorted_reports,
    upsert_daily_report,
)
from core.ledger.valuation import (
    AccountValuation,
    account_valuations,
    stablecoin_rate,
    to_local,
    total_capital_foreign,
    total_capital_local,
)

__all__ = [
    # 잔고
    "account_balance",
    "exchange_venue_balance",
    "order_total",
    "order_total_local",
    "resolve_balance",
    # 평가
    "AccountValuation",
    "account_valuations",
    "stablecoin_rate",
    "to_local",
    "total_capital_local",
    "total_capital_foreign",
    # 리포트
    "upsert_daily_report",
    "save_report",
    "sorted_reports",
    "capital_variation",
    "monthly_summary",
    # 자금 이동 / 주문
    "build_movement",
    "list_movements",
    "check_sell_capacity",
    "list_orders",
    "order_flow",
]
