"""시너지 발견 시스템 설정"""
from dataclasses import dataclass


@dataclass(frozen=True)
class DiscoveryConfig:
    """발견 보상 설정"""

    # 희귀도별 최초 발견 보상
    COMMON_REWARD_FAME: int = 10
    """일반 시너지 최초 발견 명성"""

    UNCOMMON_REWARD_FAME: int = 25
    """고급 시너지 최초 발견 명성"""

    RARE_REWARD_FAME: int = 50
    """희귀 시너지 최초 발견 명성"""

    LEGENDARY_REWARD_LEGACY: int = 1
    """전설 시너지 최초 발견 레거시 (프리미엄 재화)"""

    HINT_COUNT: int = 3
    """미발견 시너지 힌트 노출 개수"""


DISCOVERY = DiscoveryConfig()
