"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class Currency(str, Enum):
    """통화

    LOCAL/FOREIGN은 법정화폐 (소수점 2자리),
    STABLECOIN은 USDT (소수점 6자리)
    """

    LOCAL = "LOCAL"
    FOREIGN = "FOREIGN"
    STABLECOIN = "STABLECOIN"

    @property
    def decimals(self) -> int:
        """절사 자릿수"""
        return 6 if self is Currency.STABLECOIN else 2

    @property
    def is_fiat(self) -> bool:
        """법정화폐 여부"""
        return self is not Currency.STABLECOIN


# 주문/지출에 허용되는 정산 통화
FIAT_CURRENCIES: frozenset[Currency] = frozenset({Currency.LOCAL, Currency.FOREIGN})


class VenueKind(str, Enum):
    """계좌 종류"""

    BANK = "BANK"
    CASH = "CASH"
    EXCHANGE = "EXCHANGE"  # 거래소 (USDT 보관)


class OrderSide(str, Enum):
    """주문 방향"""

    BUY = "BUY"  # USDT 매수 (법정화폐 지급)
    SELL = "SELL"  # USDT 매도 (법정화폐 수령)


class OrderStatus(str, Enum):
    """주문 상태"""

    ACTIVE = "ACTIVE"
    CANCELED = "CANCELED"  # Binance 표기 (미국식 철자)


class MovementType(str, Enum):
    """자금 이동 유형"""

    DEPOSIT = "DEPOSIT"  # 외부 → 계좌
    WITHDRAWAL = "WITHDRAWAL"  # 계좌 → 외부
    TRANSFER = "TRANSFER"  # 계좌 → 계좌


class MovementStatus(str, Enum):
    """자금 이동 상태"""

    CONFIRMED = "CONFIRMED"
    VOIDED = "VOIDED"


class EndpointKind(str, Enum):
    """자금 이동 끝점 종류"""

    ACCOUNT = "ACCOUNT"
    EXTERNAL = "EXTERNAL"


class StablecoinRateMode(str, Enum):
    """USDT 환율 산정 방식"""

    AUTO = "AUTO"  # 매수 주문 가중평균
    MANUAL = "MANUAL"  # 수동 입력
