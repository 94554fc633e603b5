"""
일일 리포트 스냅샷

하루 한 번 자본 스냅샷을 저장 (upsert).
- 같은 날짜 재저장: 시작 값 유지, 마감 값만 갱신
- 신규: 직전 리포트의 마감 값을 시작 값으로 승계 (없으면 현재 값)
"""

import logging
from dataclasses import dataclass, replace
from datetime import date as date_type
from decimal import Decimal

from core.domain.models import DailyReport, Snapshot, new_id
from core.ledger.valuation import (
    account_valuations,
    total_capital_foreign,
    total_capital_local,
)
from core.types import Currency
from core.utils.timezone import month_start, to_iso_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapitalVariation:
    """자본 변동 (오늘 / 이번 달)"""

    capital_local: Decimal
    capital_foreign: Decimal
    day_local: Decimal
    day_foreign: Decimal
    month_local: Decimal
    month_foreign: Decimal
    has_day_reference: bool
    has_month_reference: bool


@dataclass(frozen=True)
class MonthlySummary:
    """월간 요약

    Attributes:
        year, month: 대상 월
        report_count: 해당 월 리포트 수
        opening_local/opening_foreign: 첫 리포트의 시작 값
        closing_local/closing_foreign: 마지막 리포트의 마감 값
        expenses_local: 해당 월 지출 합계 (LOCAL 환산, FOREIGN은 sell_rate)
    """

    year: int
    month: int
    report_count: int
    opening_local: Decimal
    closing_local: Decimal
    opening_foreign: Decimal
    closing_foreign: Decimal
    expenses_local: Decimal

    @property
    def gain_local(self) -> Decimal:
        return self.closing_local - self.opening_local

    @property
    def gain_foreign(self) -> Decimal:
        return self.closing_foreign - self.opening_foreign


def sorted_reports(snapshot: Snapshot) -> list[DailyReport]:
    """최신순 리포트 목록"""
    return sorted(snapshot.reports, key=lambda r: r.date, reverse=True)


def _previous_report(snapshot: Snapshot, date: str) -> DailyReport | None:
    """date 이전의 가장 최근 리포트"""
    earlier = [r for r in snapshot.reports if r.date < date]
    if not earlier:
        return None
    return max(earlier, key=lambda r: r.date)


def save_report(snapshot: Snapshot, report: DailyReport) -> Snapshot:
    """리포트 저장 (날짜 기준 병합)

    같은 날짜가 있으면 마감 값과 계좌 상세만 갱신, 없으면 추가.
    """
    existing = snapshot.find_report(report.date)
    if existing is None:
        return replace(snapshot, reports=snapshot.reports + (report,))

    merged = replace(
        existing,
        closing_local=report.closing_local,
        closing_foreign=report.closing_foreign,
        accounts_detail=report.accounts_detail,
    )
    return replace(
        snapshot,
        reports=tuple(merged if r.date == report.date else r for r in snapshot.reports),
    )


def upsert_daily_report(
    date: str | date_type,
    snapshot: Snapshot,
) -> tuple[Snapshot, DailyReport]:
    """일일 리포트 upsert

    Args:
        date: 리포트 날짜
        snapshot: 장부 스냅샷

    Returns:
        (새 스냅샷, 저장된 리포트)
    """
    report_date = to_iso_date(date)
    closing_local = total_capital_local(snapshot)
    closing_foreign = total_capital_foreign(snapshot)
    detail = {v.account.id: v.balance for v in account_valuations(snapshot)}

    existing = snapshot.find_report(report_date)
    if existing is not None:
        opening_local = existing.opening_local
        opening_foreign = existing.opening_foreign
        report_id = existing.id
    else:
        previous = _previous_report(snapshot, report_date)
        if previous is not None:
            opening_local = previous.closing_local
            opening_foreign = previous.closing_foreign
        else:
            # 첫 리포트: 순변동 0
            opening_local = closing_local
            opening_foreign = closing_foreign
        report_id = new_id()

    report = DailyReport(
        id=report_id,
        date=report_date,
        opening_local=opening_local,
        closing_local=closing_local,
        opening_foreign=opening_foreign,
        closing_foreign=closing_foreign,
        accounts_detail=detail,
    )

    logger.info(
        f"Daily report {'updated' if existing else 'created'}: {report_date} "
        f"closing_local={closing_local}"
    )
    return save_report(snapshot, report), report


def capital_variation(today: str | date_type, snapshot: Snapshot) -> CapitalVariation:
    """오늘/이번 달 자본 변동

    - 오늘: 현재 자본 - 오늘 리포트의 시작 값
    - 이번 달: 현재 자본 - 1일 리포트의 시작 값
    기준 리포트가 없으면 0.
    """
    today_iso = to_iso_date(today)
    capital_local = total_capital_local(snapshot)
    capital_foreign = capital_local / snapshot.settings.sell_rate

    day_report = snapshot.find_report(today_iso)
    month_report = snapshot.find_report(month_start(today_iso))
    zero = Decimal("0")

    return CapitalVariation(
        capital_local=capital_local,
        capital_foreign=capital_foreign,
        day_local=capital_local - day_report.opening_local if day_report else zero,
        day_foreign=capital_foreign - day_report.opening_foreign if day_report else zero,
        month_local=capital_local - month_report.opening_local if month_report else zero,
        month_foreign=capital_foreign - month_report.opening_foreign if month_report else zero,
        has_day_reference=day_report is not None,
        has_month_reference=month_report is not None,
    )


def monthly_summary(year: int, month: int, snapshot: Snapshot) -> MonthlySummary:
    """월간 리포트 요약"""
    prefix = f"{year:04d}-{month:02d}-"
    reports = sorted(
        (r for r in snapshot.reports if r.date.startswith(prefix)),
        key=lambda r: r.date,
    )
    zero = Decimal("0")
    first = reports[0] if reports else None
    last = reports[-1] if reports else None

    sell_rate = snapshot.settings.sell_rate
    expenses_local = sum(
        (
            e.amount * sell_rate if e.currency is Currency.FOREIGN else e.amount
            for e in snapshot.expenses
            if e.date.startswith(prefix)
        ),
        zero,
    )

    return MonthlySummary(
        year=year,
        month=month,
        report_count=len(reports),
        opening_local=first.opening_local if first else zero,
        closing_local=last.closing_local if last else zero,
        opening_foreign=first.opening_foreign if first else zero,
        closing_foreign=last.closing_foreign if last else zero,
        expenses_local=expenses_local,
    )
