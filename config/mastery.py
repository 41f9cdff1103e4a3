"""시너지 숙련도 시스템 설정"""
from dataclasses import dataclass


@dataclass(frozen=True)
class MasteryConfig:
    """숙련도 설정"""

    LEVEL_THRESHOLDS: tuple[int, ...] = (0, 5, 15, 30, 50, 100)
    """레벨별 필요 사용 횟수 (인덱스 = 레벨, 오름차순)"""

    CHAIN_ENABLE_BASE_BONUS: float = 0.5
    """숙련도로 열린 체인의 기본 배율 보너스"""

    CHAIN_ENABLE_LEVEL_INCREMENT: float = 0.1
    """숙련도 레벨당 체인 배율 보너스 증가량"""

    # 누적 숙련도 업적 (총 레벨 합, 업적 ID)
    MILESTONES: tuple[tuple[int, str], ...] = (
        (10, "mastery_apprentice"),
        (25, "mastery_expert"),
        (50, "mastery_master"),
    )

    @property
    def MAX_LEVEL(self) -> int:
        return len(self.LEVEL_THRESHOLDS) - 1


MASTERY = MasteryConfig()
