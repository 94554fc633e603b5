"""
SnapshotStore 통합 테스트

실제 파일 시스템에 저장/로드
"""

from decimal import Decimal
from pathlib import Path

import pytest

from core.domain import mutations
from core.domain.errors import FormatError
from core.domain.models import RateSettings, Snapshot
from core.storage.snapshot_store import SnapshotStore


class TestSnapshotStore:
    """SnapshotStore 테스트"""

    def test_missing_file_starts_empty(self, temp_dir: Path) -> None:
        """파일이 없으면 기본 설정의 빈 스냅샷"""
        defaults = RateSettings(buy_rate=Decimal("35"))
        store = SnapshotStore(temp_dir / "ledger.json", defaults)

        snapshot = store.load()

        assert store.exists() is False
        assert snapshot == Snapshot(settings=defaults)

    def test_save_and_load(self, temp_dir: Path, snapshot, make_order) -> None:
        """저장 후 다시 로드하면 동일"""
        snapshot = mutations.add_order(snapshot, make_order(order_id="o1"))
        store = SnapshotStore(temp_dir / "nested" / "ledger.json")

        store.save(snapshot)

        assert store.exists() is True
        assert store.load() == snapshot
        # 임시 파일은 남지 않음
        assert list((temp_dir / "nested").iterdir()) == [temp_dir / "nested" / "ledger.json"]

    def test_overwrite(self, temp_dir: Path, snapshot) -> None:
        """재저장 시 마지막 스냅샷만 유지"""
        store = SnapshotStore(temp_dir / "ledger.json")
        store.save(snapshot)

        store.save(Snapshot())

        assert store.load().accounts == ()

    def test_corrupted_file(self, temp_dir: Path) -> None:
        """손상된 파일은 FormatError"""
        path = temp_dir / "ledger.json"
        path.write_text("{broken", encoding="utf-8")

        with pytest.raises(FormatError):
            SnapshotStore(path).load()
