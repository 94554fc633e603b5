"""
CLI 진입점

실행 방법:
    python -m cli capital
    python -m cli report save
    python -m cli order add BUY 100 37 --account bank-1
"""

import logging
import sys

from cli.commands import build_parser
from core.config.loader import ConfigLoadError, get_config
from core.domain.errors import LedgerError
from core.logging import setup_logging
from core.storage.ledger_book import LedgerBook
from core.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("cli")


def main(argv: list[str] | None = None) -> int:
    """CLI 실행

    Returns:
        종료 코드 (0 성공, 1 장부/설정 오류)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = get_config(args.config)
    except ConfigLoadError as e:
        print(f"설정 오류: {e}", file=sys.stderr)
        return 1

    setup_logging("cli", file_level=logging.getLevelName(config.log_level))

    store = SnapshotStore(args.snapshot or config.snapshot_path, config.default_rates)
    try:
        book = LedgerBook(store)
        return args.handler(book, args)
    except LedgerError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    except ValueError as e:
        # 숫자/날짜 입력 오류
        logger.error(f"{args.command}: 잘못된 입력: {e}")
        return 1
    except OSError as e:
        logger.error(f"{args.command}: 파일 오류: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
