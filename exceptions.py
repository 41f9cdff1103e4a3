"""
시너지 엔진 커스텀 예외 클래스 정의

모든 예외는 SynergyEngineError를 상속받아 일관된 에러 처리를 제공합니다.
쇼 진행 중의 데이터 오류(알 수 없는 조건, 끊어진 체인 등)는 예외로 올리지 않고
"발동하지 않음"으로 처리합니다. 여기 정의된 예외는 기동 시점 또는
명시적인 조회 API에서만 사용됩니다.
"""


class SynergyEngineError(Exception):
    """시너지 엔진 기본 예외 클래스"""

    def __init__(self, message: str = "알 수 없는 오류가 발생했습니다"):
        self.message = message
        super().__init__(self.message)


# =============================================================================
# 카탈로그 관련 예외
# =============================================================================


class CatalogLoadError(SynergyEngineError):
    """카탈로그 로드 실패 (기동 불가)"""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"시너지 카탈로그를 불러올 수 없습니다 ({source}): {reason}")


class DuplicateSynergyError(CatalogLoadError):
    """중복된 시너지 ID"""

    def __init__(self, synergy_id: str):
        self.synergy_id = synergy_id
        super().__init__("catalog", f"중복된 시너지 ID입니다: {synergy_id}")


class SynergyNotFoundError(SynergyEngineError):
    """시너지를 찾을 수 없음"""

    def __init__(self, synergy_id: str):
        self.synergy_id = synergy_id
        super().__init__(f"시너지를 찾을 수 없습니다: {synergy_id}")


# =============================================================================
# 저장소 관련 예외
# =============================================================================


class StateStoreError(SynergyEngineError):
    """상태 저장소 읽기/쓰기 실패"""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"상태 저장소 {operation} 실패: {reason}")
