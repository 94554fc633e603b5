"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → capitalp2p/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Precision:
    """소수점 자릿수 (Binance P2P 정산 기준)"""

    FIAT_DECIMALS: int = 2  # LOCAL / FOREIGN
    STABLECOIN_DECIMALS: int = 6  # USDT

    # float 표현 오차 보정용 (1.999999999 → 1.99 방지)
    TRUNCATION_EPSILON: Decimal = Decimal("1e-12")


class Defaults:
    """기본값 상수

    신규 스냅샷의 환율 설정 기본값 포함
    """

    BUY_RATE: Decimal = Decimal("36.5")  # LOCAL per FOREIGN (매수)
    SELL_RATE: Decimal = Decimal("37.0")  # LOCAL per FOREIGN (매도)
    STABLECOIN_RATE_MODE: str = "AUTO"
    MANUAL_STABLECOIN_RATE: Decimal = Decimal("37.0")

    LOG_LEVEL: str = "INFO"
    MOVEMENT_RANGE_DAYS: int = 90
    ORDER_RANGE_DAYS: int = 90


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # 스냅샷 파일
    SNAPSHOT_FILE: Path = DATA_DIR / "capital_p2p.json"
