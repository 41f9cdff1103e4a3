"""
시너지 엔진

쇼 한 번의 시너지 판정 흐름을 조율합니다.

컨텍스트 스냅샷 -> 요구 조건 판정 (+ 업적 시너지) -> 발견 장부
-> 숙련도 장부 (사용 기록, 레벨업/해금) -> 강화기 -> 체인 그래프
-> 효과 합성 -> 숙련도 장부 (합성 결과 점수 누적)

판정과 합성은 동기 처리하고, 메모리 상태 변경이 끝난 뒤에만
저장(flush)과 이벤트 발행을 await 합니다.
"""
import logging
from dataclasses import dataclass, field
from typing import AbstractSet, List

from service.event import EventBus, GameEvent, GameEventType
from service.synergy.achievement_synergy import AchievementSynergyMatcher
from service.synergy.catalog import SynergyCatalog
from service.synergy.chain_service import ChainGraph, ChainReaction
from service.synergy.discovery_service import DiscoveryLedger, DiscoveryNotification
from service.synergy.effect_composer import EffectComposer, ShowResult
from service.synergy.enhancer import EffectiveSynergy, SynergyEnhancer
from service.synergy.mastery_service import LevelUp, MasteryLedger
from service.synergy.requirement_matcher import RequirementMatcher
from service.synergy.types import ContextSnapshot, SynergyDefinition

logger = logging.getLogger(__name__)


@dataclass
class ShowResolution:
    """쇼 한 번의 시너지 판정 결과"""
    notifications: List[DiscoveryNotification]
    chains: List[ChainReaction]
    result: ShowResult
    level_ups: List[LevelUp] = field(default_factory=list)
    score_generated: float = 0
    new_achievements: List[str] = field(default_factory=list)

    @property
    def discoveries(self) -> List[DiscoveryNotification]:
        """최초 발견 알림만"""
        return [n for n in self.notifications if n.first_time]


class SynergyEngine:
    """
    시너지 엔진

    카탈로그, 상태 저장소, 이벤트 버스를 주입받아 서비스를 구성합니다.
    한 번에 하나의 판정만 수행한다고 가정합니다 (잠금 없음).
    """

    def __init__(
        self,
        catalog: SynergyCatalog,
        store,
        event_bus: EventBus = None,
        profile_id: str = "default",
    ):
        self.catalog = catalog
        self.store = store
        self.event_bus = event_bus or EventBus()
        self.profile_id = profile_id

        self.achievements = AchievementSynergyMatcher(catalog)
        self.discovery = DiscoveryLedger(catalog, store)
        self.mastery = MasteryLedger(catalog, store)
        self.enhancer = SynergyEnhancer(catalog, self.mastery)
        self.chain_graph = ChainGraph(catalog)
        self.composer = EffectComposer()

        self._earned_achievements: set = set()
        self._started = False

    async def start(self) -> None:
        """
        저장된 발견/숙련도 상태 로드

        Raises:
            StateStoreError: 저장소 읽기 실패
        """
        await self.discovery.load()
        await self.mastery.load()
        self._earned_achievements = set(self.mastery.mastery_achievements())
        self._started = True
        logger.info(f"Synergy engine started for profile {self.profile_id}")

    # ==========================================================================
    # 판정 (부수 효과 없음)
    # ==========================================================================

    def active_synergies(
        self,
        context: ContextSnapshot,
        unlocked_achievements: AbstractSet[str] = frozenset(),
    ) -> List[SynergyDefinition]:
        """
        활성 시너지 (일반 시너지 다음에 업적 시너지, 각각 카탈로그 순서)
        """
        active = [
            synergy
            for synergy in self.catalog.context_synergies
            if RequirementMatcher.matches_all(synergy.requirements, context)
        ]
        active += self.achievements.active(unlocked_achievements, context)
        return active

    def preview(
        self,
        context: ContextSnapshot,
        unlocked_achievements: AbstractSet[str] = frozenset(),
    ) -> List[EffectiveSynergy]:
        """발동 예정 시너지 미리보기 (장부 변경 없음)"""
        return [
            self.enhancer.effective_for(synergy)
            for synergy in self.active_synergies(context, unlocked_achievements)
        ]

    def preview_lineup(self, context: ContextSnapshot) -> List[SynergyDefinition]:
        """출연진 정보만으로 판정되는 시너지 (라인업 미리보기)"""
        return [
            synergy
            for synergy in self.catalog.context_synergies
            if RequirementMatcher.matches_lineup_only(synergy.requirements, context)
        ]

    # ==========================================================================
    # 쇼 판정
    # ==========================================================================

    async def resolve_show(
        self,
        context: ContextSnapshot,
        base_result: ShowResult,
        unlocked_achievements: AbstractSet[str] = frozenset(),
    ) -> ShowResolution:
        """
        쇼 한 번의 시너지 판정

        Args:
            context: 컨텍스트 스냅샷
            base_result: 시너지 적용 전 쇼 결과 (변경하지 않음)
            unlocked_achievements: 해금된 업적 ID

        Returns:
            ShowResolution
        """
        if not self._started:
            await self.start()

        active = self.active_synergies(context, unlocked_achievements)
        notifications = self.discovery.resolve(active, context)
        await self.discovery.flush()

        # 사용 기록이 강화기보다 먼저: 이번 레벨업 강화가 이번 쇼에 적용됨
        for synergy in active:
            self.mastery.record_use(synergy.id)
        level_ups = self.mastery.drain_level_ups()

        effective = [self.enhancer.effective_for(synergy) for synergy in active]
        totals = self.composer.accumulate(effective)
        chains = self.chain_graph.build_chains(effective, context, totals.as_mapping())
        result = self.composer.compose(effective, chains, base_result)

        score = self.composer.score(result)
        for synergy in active:
            self.mastery.add_score(synergy.id, score)
        await self.mastery.flush()

        new_achievements = [
            achievement_id
            for achievement_id in self.mastery.mastery_achievements()
            if achievement_id not in self._earned_achievements
        ]
        self._earned_achievements.update(new_achievements)

        resolution = ShowResolution(
            notifications=notifications,
            chains=chains,
            result=result,
            level_ups=level_ups,
            score_generated=score,
            new_achievements=new_achievements,
        )
        logger.info(
            f"Show resolved: {len(active)} synergies "
            f"({len(resolution.discoveries)} new), {len(chains)} chains, "
            f"chain bonus {result.chain_bonus}"
        )
        await self._publish_events(resolution)
        return resolution

    async def _publish_events(self, resolution: ShowResolution) -> None:
        for notification in resolution.notifications:
            synergy = notification.synergy
            await self._publish(GameEventType.SYNERGY_TRIGGERED, {
                "synergy_id": synergy.id,
                "first_time": notification.first_time,
            })
            if notification.first_time:
                await self._publish(GameEventType.SYNERGY_DISCOVERED, {
                    "synergy_id": synergy.id,
                    "rarity": synergy.rarity.value,
                    "reward_currency": notification.reward.currency,
                    "reward_amount": notification.reward.amount,
                })

        for chain in resolution.chains:
            if len(chain.links) < 2:
                continue
            await self._publish(GameEventType.CHAIN_REACTION, {
                "chain_id": chain.id,
                "synergy_ids": chain.synergy_ids,
                "total_multiplier": chain.total_multiplier,
                "interrupted": chain.interrupted,
                "interrupted_by": chain.interrupted_by,
                "description": ChainGraph.describe(chain),
            })

        for level_up in resolution.level_ups:
            await self._publish(GameEventType.MASTERY_LEVEL_UP, {
                "synergy_id": level_up.synergy_id,
                "old_level": level_up.old_level,
                "new_level": level_up.new_level,
            })
            for enhancement in level_up.unlocked:
                await self._publish(GameEventType.ENHANCEMENT_UNLOCKED, {
                    "synergy_id": level_up.synergy_id,
                    "enhancement_id": enhancement.id,
                    "description": enhancement.description,
                })

        for achievement_id in resolution.new_achievements:
            await self._publish(GameEventType.ACHIEVEMENT_UNLOCKED, {
                "achievement_id": achievement_id,
            })

    async def _publish(self, event_type: GameEventType, data: dict) -> None:
        await self.event_bus.publish(GameEvent(type=event_type, profile_id=self.profile_id, data=data))
