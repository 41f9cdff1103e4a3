"""
업적 시너지 판정

업적 해금으로 게이트되는 시너지를 판정합니다.
해금된 업적 ID 집합은 외부(메타 진행 시스템)에서 읽기 전용으로 전달받습니다.
"""
from dataclasses import dataclass
from typing import AbstractSet, List, Mapping, Optional

from service.synergy.catalog import SynergyCatalog
from service.synergy.requirement_matcher import RequirementMatcher
from service.synergy.types import ContextSnapshot, SynergyDefinition


@dataclass(frozen=True)
class NearlyUnlockedSynergy:
    """해금 직전 업적 시너지"""
    synergy: SynergyDefinition
    unlock_progress: float  # 0.0 ~ 1.0


class AchievementSynergyMatcher:
    """업적 시너지 판정 서비스"""

    def __init__(self, catalog: SynergyCatalog):
        self.catalog = catalog

    @staticmethod
    def matches(
        synergy: SynergyDefinition,
        unlocked_achievements: AbstractSet[str],
        context: ContextSnapshot,
    ) -> bool:
        """
        업적 시너지 발동 여부

        게이트 업적이 해금되어 있고 (있다면) 발동 조건이 모두 충족되어야 합니다.
        발동 조건이 없는 시너지는 해금 이후 항상 발동합니다.
        """
        if not synergy.is_achievement_gated:
            return False
        if synergy.required_achievement not in unlocked_achievements:
            return False
        return RequirementMatcher.matches_all(synergy.requirements, context)

    def active(
        self,
        unlocked_achievements: AbstractSet[str],
        context: ContextSnapshot,
    ) -> List[SynergyDefinition]:
        """이번 쇼에서 발동하는 업적 시너지 (카탈로그 순서)"""
        return [
            synergy
            for synergy in self.catalog.achievement_synergies
            if self.matches(synergy, unlocked_achievements, context)
        ]

    def available(self, unlocked_achievements: AbstractSet[str]) -> List[SynergyDefinition]:
        """해금된 업적 시너지 (발동 조건과 무관)"""
        return [
            synergy
            for synergy in self.catalog.achievement_synergies
            if synergy.required_achievement in unlocked_achievements
        ]

    def is_unlocked(self, synergy_id: str, unlocked_achievements: AbstractSet[str]) -> bool:
        synergy = self.catalog.find(synergy_id)
        if synergy is None or not synergy.is_achievement_gated:
            return False
        return synergy.required_achievement in unlocked_achievements

    def nearly_unlocked(
        self,
        achievement_progress: Mapping[str, float],
        threshold: float = 0.8,
    ) -> List[NearlyUnlockedSynergy]:
        """
        해금 직전인 업적 시너지

        Args:
            achievement_progress: 업적 ID -> 진행률 (0.0~1.0)
            threshold: 최소 진행률

        Returns:
            진행률이 threshold 이상 1.0 미만인 업적에 묶인 시너지
        """
        result = []
        for synergy in self.catalog.achievement_synergies:
            progress = achievement_progress.get(synergy.required_achievement)
            if progress is not None and threshold <= progress < 1.0:
                result.append(NearlyUnlockedSynergy(synergy, progress))
        return result

    def requirement_description(
        self,
        synergy_id: str,
        achievement_progress: Mapping[str, float],
    ) -> Optional[str]:
        """
        해금 조건 설명

        Returns:
            설명 문자열 (이미 해금되었거나 업적 시너지가 아니면 None)
        """
        synergy = self.catalog.find(synergy_id)
        if synergy is None or not synergy.is_achievement_gated:
            return None

        progress = achievement_progress.get(synergy.required_achievement)
        if progress is None:
            return f"업적 해금 필요: {synergy.required_achievement}"
        if progress < 1.0:
            return f"{synergy.required_achievement}: {int(progress * 100)}% 달성"
        return None
