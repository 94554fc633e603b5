"""
LedgerBook - 현재 스냅샷 보관 + 변경 직렬화

엔진의 유일한 상태 보유 객체.
변경은 Lock 안에서 하나씩 적용되고, 저장까지 끝난 뒤 다음 변경을 받음.
조회는 항상 현재 스냅샷에서 다시 계산 (캐시 없음).
"""

import logging
import threading
from datetime import date as date_type
from decimal import Decimal
from typing import Any, Callable

from core.domain.errors import FormatError
from core.domain.models import DailyReport, Movement, Order, Snapshot
from core.domain.mutations import add_movement, add_order, update_order
from core.domain.patches import OrderPatch
from core.ledger.balance import account_balance, exchange_venue_balance
from core.ledger.movements import build_movement
from core.ledger.orders import check_sell_capacity
from core.ledger.reports import upsert_daily_report
from core.ledger.valuation import (
    stablecoin_rate,
    total_capital_foreign,
    total_capital_local,
)
from core.storage.codec import export_snapshot, import_snapshot
from core.storage.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


class LedgerBook:
    """장부

    Args:
        store: 스냅샷 저장소 (None이면 메모리에만 유지)
        snapshot: 초기 스냅샷 (None이면 store에서 로드, store도 없으면 빈 스냅샷)

    사용 예시:
    ```python
    book = LedgerBook(SnapshotStore(Paths.SNAPSHOT_FILE))

    book.apply(add_account, account)
    book.place_order(order)
    report = book.save_daily_report("2026-02-21")
    print(book.total_capital_local())
    ```
    """

    def __init__(self, store: SnapshotStore | None = None, snapshot: Snapshot | None = None):
        self.store = store
        self._lock = threading.Lock()
        if snapshot is not None:
            self._snapshot = snapshot
        elif store is not None:
            self._snapshot = store.load()
        else:
            self._snapshot = Snapshot()

    @property
    def snapshot(self) -> Snapshot:
        """현재 스냅샷 (불변)"""
        return self._snapshot

    def _commit(self, snapshot: Snapshot) -> Snapshot:
        # Lock 보유 상태에서만 호출
        if self.store is not None:
            self.store.save(snapshot)
        self._snapshot = snapshot
        return snapshot

    def apply(self, mutation: Callable[..., Snapshot], *args: Any, **kwargs: Any) -> Snapshot:
        """변경 연산 적용

        Args:
            mutation: (snapshot, *args, **kwargs) -> Snapshot 형태의 함수

        Returns:
            새 스냅샷 (예외 발생 시 기존 스냅샷 유지)
        """
        with self._lock:
            return self._commit(mutation(self._snapshot, *args, **kwargs))

    # =========================================================================
    # 검증이 필요한 변경
    # =========================================================================

    def place_order(self, order: Order) -> Snapshot:
        """주문 등록 (매도는 거래소 잔고 검사)

        Raises:
            InsufficientBalanceError: 매도 수량 + 수수료 > 거래소 USDT 잔고
        """
        with self._lock:
            check_sell_capacity(order, self._snapshot)
            return self._commit(add_order(self._snapshot, order))

    def amend_order(self, order_id: str, patch: OrderPatch) -> Snapshot:
        """주문 수정 (수정 결과가 매도면 잔고 재검사)"""
        with self._lock:
            updated = update_order(self._snapshot, order_id, patch)
            order = next(o for o in updated.orders if o.id == order_id)
            check_sell_capacity(order, self._snapshot)
            return self._commit(updated)

    def record_movement(self, *args: Any, **kwargs: Any) -> Movement:
        """자금 이동 생성 + 등록

        인자는 core.ledger.movements.build_movement 참고 (snapshot 제외).
        """
        with self._lock:
            movement = build_movement(self._snapshot, *args, **kwargs)
            self._commit(add_movement(self._snapshot, movement))
            return movement

    def save_daily_report(self, date: str | date_type) -> DailyReport:
        """일일 리포트 저장 (upsert)"""
        with self._lock:
            snapshot, report = upsert_daily_report(date, self._snapshot)
            self._commit(snapshot)
            return report

    # =========================================================================
    # 가져오기 / 내보내기
    # =========================================================================

    def import_data(self, text: str | bytes) -> Snapshot:
        """JSON 문서로 스냅샷 교체

        Raises:
            FormatError: 문서 오류 (현재 스냅샷은 그대로 유지)
        """
        with self._lock:
            default_settings = self.store.default_settings if self.store else None
            try:
                snapshot = import_snapshot(text, default_settings=default_settings)
            except FormatError:
                logger.warning("Import rejected, keeping current snapshot")
                raise
            return self._commit(snapshot)

    def export_data(self) -> str:
        """현재 스냅샷을 JSON 문자열로"""
        return export_snapshot(self._snapshot)

    # =========================================================================
    # 조회 (매번 재계산)
    # =========================================================================

    def account_balance(self, account_id: str) -> Decimal:
        return account_balance(account_id, self._snapshot)

    def exchange_venue_balance(self) -> Decimal:
        return exchange_venue_balance(self._snapshot)

    def stablecoin_rate(self) -> Decimal:
        return stablecoin_rate(self._snapshot)

    def total_capital_local(self) -> Decimal:
        return total_capital_local(self._snapshot)

    def total_capital_foreign(self) -> Decimal:
        return total_capital_foreign(self._snapshot)
