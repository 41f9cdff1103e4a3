"""
시너지 발견 장부

한 번이라도 발동된 시너지 ID를 기록하고, 최초 발동 시 희귀도별 보상을 지급합니다.
발견 목록은 저장소에 영속화되므로 재시작 후에도 보상이 중복 지급되지 않습니다.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from config.discovery import DISCOVERY
from exceptions import StateStoreError
from service.synergy.catalog import SynergyCatalog
from service.synergy.types import ContextSnapshot, Rarity, SynergyDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoveryReward:
    """발견 보상 (재화 종류, 수량)"""
    currency: str
    amount: int


@dataclass(frozen=True)
class DiscoveryNotification:
    """시너지 발동 알림 (최초 발견이면 보상 포함)"""
    synergy: SynergyDefinition
    first_time: bool
    reward: Optional[DiscoveryReward] = None


@dataclass(frozen=True)
class DiscoveryHistoryEntry:
    """발동 이력 (정보용)"""
    synergy_id: str
    timestamp: datetime
    context: ContextSnapshot


@dataclass(frozen=True)
class DiscoveryProgress:
    """도감 진행도"""
    discovered: int
    total: int
    by_rarity: Dict[Rarity, tuple]  # 희귀도 -> (발견 수, 전체 수)

    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return self.discovered / self.total * 100


@dataclass(frozen=True)
class DiscoveryHint:
    """미발견 시너지 힌트"""
    synergy_id: str
    rarity: Rarity
    text: str


def reward_for(rarity: Rarity) -> DiscoveryReward:
    """희귀도별 최초 발견 보상"""
    if rarity == Rarity.LEGENDARY:
        return DiscoveryReward("legacy", DISCOVERY.LEGENDARY_REWARD_LEGACY)
    if rarity == Rarity.RARE:
        return DiscoveryReward("fame", DISCOVERY.RARE_REWARD_FAME)
    if rarity == Rarity.UNCOMMON:
        return DiscoveryReward("fame", DISCOVERY.UNCOMMON_REWARD_FAME)
    return DiscoveryReward("fame", DISCOVERY.COMMON_REWARD_FAME)


class DiscoveryLedger:
    """
    시너지 발견 장부

    발견 목록(영속), 발동 횟수(세션), 발동 이력(세션)을 관리합니다.
    업적 시너지는 미리 해금된 것으로 취급하여 보상 없이 알림만 발생하고
    발견 목록에도 추가하지 않습니다.
    """

    def __init__(self, catalog: SynergyCatalog, store):
        self.catalog = catalog
        self.store = store
        self._discovered: Dict[str, None] = {}  # 삽입 순서 유지
        self._pending: List[str] = []
        self._trigger_counts: Dict[str, int] = {}
        self._history: List[DiscoveryHistoryEntry] = []

    async def load(self) -> None:
        """
        저장소에서 발견 목록 로드

        카탈로그에 없는 ID도 그대로 보존합니다 (이후 배포에서 복구될 수 있음).

        Raises:
            StateStoreError: 저장소 읽기 실패 (기동 시 처리)
        """
        for synergy_id in await self.store.load_discovered():
            self._discovered[synergy_id] = None
        logger.info(f"Loaded {len(self._discovered)} discovered synergies")

    def resolve(
        self,
        active_synergies: Iterable[SynergyDefinition],
        context: ContextSnapshot,
    ) -> List[DiscoveryNotification]:
        """
        활성 시너지 발견 처리

        Args:
            active_synergies: 이번 쇼의 활성 시너지
            context: 컨텍스트 스냅샷 (이력 기록용)

        Returns:
            시너지별 알림 (입력 순서)
        """
        notifications = []
        now = datetime.now()

        for synergy in active_synergies:
            self._trigger_counts[synergy.id] = self._trigger_counts.get(synergy.id, 0) + 1
            self._history.append(DiscoveryHistoryEntry(synergy.id, now, context))

            if synergy.is_achievement_gated or synergy.id in self._discovered:
                notifications.append(DiscoveryNotification(synergy, first_time=False))
                continue

            self._discovered[synergy.id] = None
            self._pending.append(synergy.id)
            reward = reward_for(synergy.rarity)
            logger.info(
                f"Synergy discovered: {synergy.id} ({synergy.rarity.value}), "
                f"reward {reward.amount} {reward.currency}"
            )
            notifications.append(DiscoveryNotification(synergy, first_time=True, reward=reward))

        return notifications

    async def flush(self) -> bool:
        """
        새로 발견한 ID 저장

        실패 시 대기 목록을 유지하고 다음 flush 에서 다시 시도합니다.

        Returns:
            저장 성공 여부 (저장할 것이 없으면 True)
        """
        if not self._pending:
            return True
        pending = list(self._pending)
        try:
            await self.store.save_discovered(pending)
        except StateStoreError as e:
            logger.error(f"Failed to persist discoveries {pending}: {e}", exc_info=True)
            return False
        del self._pending[:len(pending)]
        return True

    # ==========================================================================
    # 조회
    # ==========================================================================

    def is_discovered(self, synergy_id: str) -> bool:
        return synergy_id in self._discovered

    def discovered_synergies(self) -> List[SynergyDefinition]:
        """발견한 시너지 정의 목록 (발견 순서, 카탈로그에 없는 ID 제외)"""
        return [
            synergy
            for synergy in (self.catalog.find(sid) for sid in self._discovered)
            if synergy is not None
        ]

    def trigger_count(self, synergy_id: str) -> int:
        """이번 세션 발동 횟수"""
        return self._trigger_counts.get(synergy_id, 0)

    @property
    def history(self) -> tuple:
        return tuple(self._history)

    @property
    def has_pending_writes(self) -> bool:
        return bool(self._pending)

    def progress(self) -> DiscoveryProgress:
        """발견 가능한(일반) 시너지 기준 도감 진행도"""
        synergies = self.catalog.context_synergies
        by_rarity = {}
        for rarity in Rarity:
            of_rarity = [s for s in synergies if s.rarity == rarity]
            found = sum(1 for s in of_rarity if s.id in self._discovered)
            by_rarity[rarity] = (found, len(of_rarity))
        return DiscoveryProgress(
            discovered=sum(found for found, _ in by_rarity.values()),
            total=len(synergies),
            by_rarity=by_rarity,
        )

    def hints(self, limit: int = DISCOVERY.HINT_COUNT) -> List[DiscoveryHint]:
        """
        미발견 시너지 힌트

        희귀도가 낮은(쉬운) 순으로 limit 개, 첫 번째 요구 조건으로 문구를 만듭니다.
        """
        undiscovered = sorted(
            (s for s in self.catalog.context_synergies if s.id not in self._discovered),
            key=lambda s: s.rarity.rank,
        )
        return [
            DiscoveryHint(synergy.id, synergy.rarity, _hint_text(synergy))
            for synergy in undiscovered[:limit]
        ]


def _hint_text(synergy: SynergyDefinition) -> str:
    if not synergy.requirements:
        return "여러 조합을 계속 시도해 보세요!"
    requirement = synergy.requirements[0]
    if requirement.kind == "performer_genre":
        return f"{requirement.value} 밴드를 섭외해 보세요..."
    if requirement.kind == "location_type":
        return f"{requirement.value} 공연장에서 특별한 일이 일어납니다..."
    if requirement.kind == "performer_trait":
        return f"\"{requirement.value}\" 특성을 가진 밴드에게 숨은 잠재력이 있습니다..."
    return "여러 조합을 계속 시도해 보세요!"
