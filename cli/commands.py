"""
CLI 명령 정의

argparse 서브커맨드와 핸들러.
각 핸들러는 (LedgerBook, args) → 종료 코드.
"""

import argparse
import sys
from decimal import Decimal
from pathlib import Path
from typing import Callable

from core.constants import Defaults
from core.domain.models import Account, Expense, MovementEndpoint, Order, new_id
from core.domain.mutations import (
    add_account,
    add_expense,
    cancel_order,
    restore_order,
    update_settings,
    void_movement,
)
from core.domain.patches import SettingsPatch
from core.ledger.movements import list_movements
from core.ledger.orders import list_orders
from core.ledger.reports import capital_variation, monthly_summary, sorted_reports
from core.ledger.valuation import account_valuations, stablecoin_rate
from core.storage.ledger_book import LedgerBook
from core.types import Currency, MovementType, OrderSide, StablecoinRateMode, VenueKind
from core.utils.arithmetic import to_decimal, truncate, truncate2
from core.utils.timezone import today_iso

Handler = Callable[[LedgerBook, argparse.Namespace], int]


def _money(value: Decimal, decimals: int = 2) -> str:
    """표시용 금액 (절사, 천 단위 콤마)"""
    return f"{truncate(value, decimals):,}"


def _endpoint(value: str | None) -> MovementEndpoint | None:
    """'ext:이름' 형식은 외부 끝점, 그 외는 계좌 id"""
    if not value:
        return None
    if value.startswith("ext:"):
        return MovementEndpoint.external(value[4:])
    return MovementEndpoint.account(value)


# =========================================================================
# 조회
# =========================================================================

def cmd_capital(book: LedgerBook, args: argparse.Namespace) -> int:
    """총 자본 + 오늘/이번 달 변동"""
    snapshot = book.snapshot
    variation = capital_variation(args.date or today_iso(), snapshot)

    print(f"Capital LOCAL   : {_money(variation.capital_local)}")
    print(f"Capital FOREIGN : {_money(variation.capital_foreign)}")
    print(f"USDT rate       : {_money(stablecoin_rate(snapshot), 4)} "
          f"({snapshot.settings.stablecoin_rate_mode.value})")
    if variation.has_day_reference:
        print(f"Today           : {variation.day_local:+,.2f} LOCAL / {variation.day_foreign:+,.2f} FOREIGN")
    if variation.has_month_reference:
        print(f"This month      : {variation.month_local:+,.2f} LOCAL / {variation.month_foreign:+,.2f} FOREIGN")
    return 0


def cmd_balances(book: LedgerBook, args: argparse.Namespace) -> int:
    """계좌별 잔고"""
    for v in account_valuations(book.snapshot):
        account = v.account
        print(
            f"{account.id:<38} {account.name:<20} {account.venue_kind.value:<8} "
            f"{account.currency.value:<10} {_money(v.balance, account.currency.decimals):>18} "
            f"≈ LOCAL {_money(v.balance_local):>16}"
        )
    return 0


def cmd_rate(book: LedgerBook, args: argparse.Namespace) -> int:
    """USDT 환율"""
    print(stablecoin_rate(book.snapshot))
    return 0


# =========================================================================
# 리포트
# =========================================================================

def cmd_report_save(book: LedgerBook, args: argparse.Namespace) -> int:
    report = book.save_daily_report(args.date or today_iso())
    print(
        f"{report.date}: LOCAL {_money(report.opening_local)} → {_money(report.closing_local)} "
        f"/ FOREIGN {_money(report.opening_foreign)} → {_money(report.closing_foreign)}"
    )
    return 0


def cmd_report_list(book: LedgerBook, args: argparse.Namespace) -> int:
    for report in sorted_reports(book.snapshot):
        print(
            f"{report.date}  LOCAL {_money(report.closing_local):>16} ({report.change_local:+,.2f})  "
            f"FOREIGN {_money(report.closing_foreign):>14} ({report.change_foreign:+,.2f})"
        )
    return 0


def cmd_report_month(book: LedgerBook, args: argparse.Namespace) -> int:
    today = today_iso()
    year = args.year or int(today[:4])
    month = args.month or int(today[5:7])
    summary = monthly_summary(year, month, book.snapshot)

    print(f"{year:04d}-{month:02d} ({summary.report_count} reports)")
    print(f"  LOCAL   : {_money(summary.opening_local)} → {_money(summary.closing_local)} "
          f"({summary.gain_local:+,.2f})")
    print(f"  FOREIGN : {_money(summary.opening_foreign)} → {_money(summary.closing_foreign)} "
          f"({summary.gain_foreign:+,.2f})")
    print(f"  Expenses: LOCAL {_money(summary.expenses_local)}")
    return 0


# =========================================================================
# 등록 / 상태 변경
# =========================================================================

def cmd_account_add(book: LedgerBook, args: argparse.Namespace) -> int:
    account = Account(
        id=args.id or new_id(),
        name=args.name,
        venue_kind=VenueKind(args.kind),
        currency=Currency(args.currency),
        initial_balance=to_decimal(args.initial_balance),
    )
    book.apply(add_account, account)
    print(account.id)
    return 0


def cmd_order_add(book: LedgerBook, args: argparse.Namespace) -> int:
    order = Order(
        id=new_id(),
        date=args.date or today_iso(),
        side=OrderSide(args.side),
        currency=Currency(args.currency),
        # 입력 정밀도 고정: USDT 6자리, 단가 2자리
        quantity=truncate(to_decimal(args.quantity), 6),
        unit_price=truncate2(to_decimal(args.price)),
        commission=truncate(to_decimal(args.commission), 6),
        account_id=args.account,
    )
    book.place_order(order)
    print(order.id)
    return 0


def cmd_order_list(book: LedgerBook, args: argparse.Namespace) -> int:
    for order in list_orders(book.snapshot, range_days=args.days):
        print(
            f"{order.date}  {order.id}  {order.side.value:<4} {order.quantity} @ {order.unit_price} "
            f"{order.currency.value:<7} {order.status.value}"
        )
    return 0


def cmd_order_cancel(book: LedgerBook, args: argparse.Namespace) -> int:
    book.apply(cancel_order, args.id)
    return 0


def cmd_order_restore(book: LedgerBook, args: argparse.Namespace) -> int:
    book.apply(restore_order, args.id)
    return 0


def cmd_expense_add(book: LedgerBook, args: argparse.Namespace) -> int:
    expense = Expense(
        id=new_id(),
        date=args.date or today_iso(),
        concept=args.concept,
        amount=truncate2(to_decimal(args.amount)),
        currency=Currency(args.currency),
        account_id=args.account,
    )
    book.apply(add_expense, expense)
    print(expense.id)
    return 0


def cmd_movement_add(book: LedgerBook, args: argparse.Namespace) -> int:
    movement = book.record_movement(
        MovementType(args.type),
        args.amount,
        Currency(args.currency),
        source=_endpoint(args.source),
        target=_endpoint(args.target),
        date=args.date,
        concept=args.concept,
        currency_to=args.currency_to,
        exchange_rate=args.rate,
    )
    print(movement.id)
    if movement.audit is not None:
        print(movement.audit.title)
    return 0


def cmd_movement_list(book: LedgerBook, args: argparse.Namespace) -> int:
    for m in list_movements(book.snapshot, range_days=args.days):
        title = m.audit.title if m.audit else m.concept
        print(f"{m.date}  {m.id}  {m.type.value:<10} {m.status.value:<9} {title}")
    return 0


def cmd_movement_void(book: LedgerBook, args: argparse.Namespace) -> int:
    book.apply(void_movement, args.id)
    return 0


# =========================================================================
# 설정 / 가져오기 / 내보내기
# =========================================================================

def cmd_settings_show(book: LedgerBook, args: argparse.Namespace) -> int:
    s = book.snapshot.settings
    print(f"buy_rate               : {s.buy_rate}")
    print(f"sell_rate              : {s.sell_rate}")
    print(f"stablecoin_rate_mode   : {s.stablecoin_rate_mode.value}")
    print(f"manual_stablecoin_rate : {s.manual_stablecoin_rate}")
    return 0


def cmd_settings_set(book: LedgerBook, args: argparse.Namespace) -> int:
    patch = SettingsPatch(
        buy_rate=to_decimal(args.buy_rate) if args.buy_rate else None,
        sell_rate=to_decimal(args.sell_rate) if args.sell_rate else None,
        stablecoin_rate_mode=StablecoinRateMode(args.mode) if args.mode else None,
        manual_stablecoin_rate=to_decimal(args.manual_rate) if args.manual_rate else None,
    )
    if patch.is_empty():
        print("변경할 값이 없습니다", file=sys.stderr)
        return 2
    book.apply(update_settings, patch)
    return cmd_settings_show(book, args)


def cmd_export(book: LedgerBook, args: argparse.Namespace) -> int:
    text = book.export_data()
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
    else:
        print(text)
    return 0


def cmd_import(book: LedgerBook, args: argparse.Namespace) -> int:
    snapshot = book.import_data(Path(args.file).read_text(encoding="utf-8"))
    print(
        f"Imported: {len(snapshot.accounts)} accounts, {len(snapshot.orders)} orders, "
        f"{len(snapshot.expenses)} expenses, {len(snapshot.movements)} movements, "
        f"{len(snapshot.reports)} reports"
    )
    return 0


# =========================================================================
# 파서
# =========================================================================

def build_parser() -> argparse.ArgumentParser:
    """CLI 파서 생성"""
    parser = argparse.ArgumentParser(prog="capitalp2p", description="P2P 자본 장부")
    parser.add_argument("--config", type=Path, default=None, help="settings.yaml 경로")
    parser.add_argument("--snapshot", type=Path, default=None, help="스냅샷 파일 경로")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("capital", help="총 자본")
    p.add_argument("--date", default=None)
    p.set_defaults(handler=cmd_capital)

    sub.add_parser("balances", help="계좌별 잔고").set_defaults(handler=cmd_balances)
    sub.add_parser("rate", help="USDT 환율").set_defaults(handler=cmd_rate)

    # report
    report = sub.add_parser("report", help="일일 리포트").add_subparsers(dest="action", required=True)
    p = report.add_parser("save")
    p.add_argument("--date", default=None)
    p.set_defaults(handler=cmd_report_save)
    report.add_parser("list").set_defaults(handler=cmd_report_list)
    p = report.add_parser("month")
    p.add_argument("--year", type=int, default=None)
    p.add_argument("--month", type=int, default=None)
    p.set_defaults(handler=cmd_report_month)

    # account
    account = sub.add_parser("account", help="계좌").add_subparsers(dest="action", required=True)
    p = account.add_parser("add")
    p.add_argument("name")
    p.add_argument("--id", default=None)
    p.add_argument("--kind", choices=[k.value for k in VenueKind], default=VenueKind.BANK.value)
    p.add_argument("--currency", choices=[c.value for c in Currency], default=Currency.LOCAL.value)
    p.add_argument("--initial-balance", default="0")
    p.set_defaults(handler=cmd_account_add)

    # order
    order = sub.add_parser("order", help="P2P 주문").add_subparsers(dest="action", required=True)
    p = order.add_parser("add")
    p.add_argument("side", choices=[s.value for s in OrderSide])
    p.add_argument("quantity")
    p.add_argument("price")
    p.add_argument("--account", required=True)
    p.add_argument("--currency", choices=[Currency.LOCAL.value, Currency.FOREIGN.value],
                   default=Currency.LOCAL.value)
    p.add_argument("--commission", default="0")
    p.add_argument("--date", default=None)
    p.set_defaults(handler=cmd_order_add)
    p = order.add_parser("list")
    p.add_argument("--days", type=int, default=Defaults.ORDER_RANGE_DAYS)
    p.set_defaults(handler=cmd_order_list)
    for action, handler in (("cancel", cmd_order_cancel), ("restore", cmd_order_restore)):
        p = order.add_parser(action)
        p.add_argument("id")
        p.set_defaults(handler=handler)

    # expense
    expense = sub.add_parser("expense", help="지출").add_subparsers(dest="action", required=True)
    p = expense.add_parser("add")
    p.add_argument("amount")
    p.add_argument("concept")
    p.add_argument("--account", required=True)
    p.add_argument("--currency", choices=[Currency.LOCAL.value, Currency.FOREIGN.value],
                   default=Currency.LOCAL.value)
    p.add_argument("--date", default=None)
    p.set_defaults(handler=cmd_expense_add)

    # movement
    movement = sub.add_parser("movement", help="자금 이동").add_subparsers(dest="action", required=True)
    p = movement.add_parser("add")
    p.add_argument("type", choices=[t.value for t in MovementType])
    p.add_argument("amount")
    p.add_argument("--currency", choices=[c.value for c in Currency], default=Currency.LOCAL.value)
    p.add_argument("--from", dest="source", default=None, help="계좌 id 또는 ext:이름")
    p.add_argument("--to", dest="target", default=None, help="계좌 id 또는 ext:이름")
    p.add_argument("--currency-to", choices=[c.value for c in Currency], default=None)
    p.add_argument("--rate", default=None)
    p.add_argument("--concept", default="")
    p.add_argument("--date", default=None)
    p.set_defaults(handler=cmd_movement_add)
    p = movement.add_parser("list")
    p.add_argument("--days", type=int, default=Defaults.MOVEMENT_RANGE_DAYS)
    p.set_defaults(handler=cmd_movement_list)
    p = movement.add_parser("void")
    p.add_argument("id")
    p.set_defaults(handler=cmd_movement_void)

    # settings
    settings = sub.add_parser("settings", help="환율 설정").add_subparsers(dest="action", required=True)
    settings.add_parser("show").set_defaults(handler=cmd_settings_show)
    p = settings.add_parser("set")
    p.add_argument("--buy-rate", default=None)
    p.add_argument("--sell-rate", default=None)
    p.add_argument("--mode", choices=[m.value for m in StablecoinRateMode], default=None)
    p.add_argument("--manual-rate", default=None)
    p.set_defaults(handler=cmd_settings_set)

    # import / export
    p = sub.add_parser("export", help="JSON 내보내기")
    p.add_argument("--output", default=None)
    p.set_defaults(handler=cmd_export)
    p = sub.add_parser("import", help="JSON 가져오기")
    p.add_argument("file")
    p.set_defaults(handler=cmd_import)

    return parser
