"""
스토리지 모듈

스냅샷 교환 형식(JSON), 파일 저장소, 변경 직렬화(LedgerBook) 제공
"""

from core.storage.codec import export_snapshot, import_snapshot
from core.storage.ledger_book import LedgerBook
from core.storage.snapshot_store import SnapshotStore

__all__ = [
    "export_snapshot",
    "import_snapshot",
    "LedgerBook",
    "SnapshotStore",
]
