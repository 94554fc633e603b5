"""
SnapshotStore - 스냅샷 파일 저장소

장부 엔진은 I/O를 하지 않음. 이 저장소가 시작 시 마지막 스냅샷을 읽고
새 스냅샷이 생길 때마다 저장하는 역할을 담당.

저장은 임시 파일에 쓴 뒤 교체 (중간에 중단되어도 기존 파일 유지).
"""

import logging
import os
from pathlib import Path

from core.domain.models import RateSettings, Snapshot
from core.storage.codec import export_snapshot, import_snapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """스냅샷 JSON 파일 저장소

    Args:
        path: 스냅샷 파일 경로
        default_settings: 새 스냅샷(파일 없음)에 사용할 환율 설정

    사용 예시:
    ```python
    store = SnapshotStore(Paths.SNAPSHOT_FILE)
    snapshot = store.load()
    snapshot = add_account(snapshot, account)
    store.save(snapshot)
    ```
    """

    def __init__(self, path: Path | str, default_settings: RateSettings | None = None):
        self.path = Path(path)
        self.default_settings = default_settings or RateSettings()

    def exists(self) -> bool:
        """저장된 파일 존재 여부"""
        return self.path.exists()

    def load(self) -> Snapshot:
        """마지막으로 저장된 스냅샷 로드

        Returns:
            저장된 Snapshot (파일이 없으면 기본 설정의 빈 Snapshot)

        Raises:
            FormatError: 파일 내용이 올바르지 않은 경우
        """
        if not self.path.exists():
            logger.info(f"Snapshot file not found, starting empty: {self.path}")
            return Snapshot(settings=self.default_settings)

        text = self.path.read_text(encoding="utf-8")
        snapshot = import_snapshot(text, default_settings=self.default_settings)
        logger.debug(f"Snapshot loaded: {self.path}")
        return snapshot

    def save(self, snapshot: Snapshot) -> None:
        """스냅샷 저장 (원자적 교체)"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")

        tmp_path.write_text(export_snapshot(snapshot), encoding="utf-8")
        os.replace(tmp_path, self.path)

        logger.debug(f"Snapshot saved: {self.path}")
