"""
도메인 예외

잔고/평가 계산 경로는 예외를 던지지 않음 (고아 참조 = 0, 0 나눗셈 = 수동 환율).
예외는 입력 검증, 스냅샷 변경, 가져오기(import)에서만 발생.
"""


class LedgerError(Exception):
    """장부 예외 기본 클래스"""

    pass


class FormatError(LedgerError):
    """가져오기 문서 형식 오류

    JSON 파싱 실패 또는 구조 검증 실패.
    발생 시 기존 스냅샷은 변경되지 않음.
    """

    pass


class EntityValidationError(LedgerError, ValueError):
    """엔티티 값 검증 실패 (수량 <= 0 등)"""

    pass


class EntityNotFoundError(LedgerError, KeyError):
    """변경 대상 엔티티 없음"""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found: {entity_id}")

    def __str__(self) -> str:
        return f"{self.kind} not found: {self.entity_id}"


class DuplicateEntityError(LedgerError):
    """같은 id의 엔티티가 이미 존재"""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} already exists: {entity_id}")


class InsufficientBalanceError(LedgerError):
    """거래소 USDT 잔고 부족 (매도 주문)"""

    def __init__(self, available, required):
        self.available = available
        self.required = required
        super().__init__(
            f"거래소 USDT 잔고 부족: 가용 {available}, 필요 {required}"
        )
