"""쇼 결과 합성 설정"""
from dataclasses import dataclass


@dataclass(frozen=True)
class ComposerConfig:
    """효과 합성 및 점수 설정"""

    CHAIN_BONUS_SCALE: int = 1000
    """체인 보너스 점수 = SCALE * (최고 체인 배율 - 1)"""

    SCORE_REPUTATION_WEIGHT: int = 10
    """숙련도 점수 계산 시 평판 가중치"""

    SCORE_ATTENDANCE_WEIGHT: int = 5
    """숙련도 점수 계산 시 관객 수 가중치"""


COMPOSER = ComposerConfig()
