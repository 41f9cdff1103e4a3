"""
시너지 체인 그래프

정적 체인 간선(카탈로그)과 숙련도로 열린 동적 간선(강화기)을 합쳐
동시에 활성화된 시너지들 사이의 연쇄 반응을 구성합니다.

- 각 시너지는 한 번의 판정에서 최대 하나의 체인에만 포함됩니다.
- 충돌 시너지가 활성 상태면 체인이 중단됩니다 (중단된 체인은 보너스 없음).
- 깊이와 링크 수는 CHAIN.MAX_CHAIN_DEPTH 에서 멈춥니다 (순환 간선 대비).
"""
import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from config.chain import CHAIN
from service.synergy.catalog import SynergyCatalog
from service.synergy.enhancer import EffectiveSynergy
from service.synergy.types import (
    ChainEdge,
    ComboInChainCondition,
    ContextSnapshot,
    EffectThresholdCondition,
    MinimumLinksCondition,
    NoConflictCondition,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChainLink:
    """체인의 한 마디"""
    synergy: EffectiveSynergy
    triggered_by: Optional[str]  # 루트면 None
    multiplier: float
    depth: int

    @property
    def synergy_id(self) -> str:
        return self.synergy.id


@dataclass
class ChainReaction:
    """연쇄 반응 (루트 링크부터 DFS 순서)"""
    links: List[ChainLink]
    interrupted: bool = False
    interrupted_by: Optional[str] = None
    id: str = field(default_factory=lambda: f"chain-{uuid.uuid4().hex[:12]}")
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def total_multiplier(self) -> float:
        """모든 링크 배율의 곱 (중단된 체인도 진단용으로 계산)"""
        return math.prod(link.multiplier for link in self.links)

    @property
    def synergy_ids(self) -> List[str]:
        return [link.synergy_id for link in self.links]

    @property
    def root(self) -> ChainLink:
        return self.links[0]


class ChainGraph:
    """
    체인 그래프 서비스

    정적 간선은 카탈로그 로드 시 검증된 것만 사용하며 변경되지 않습니다.
    동적 간선은 탐색 시점에 실효 시너지(EffectiveSynergy)에서 읽습니다.
    """

    def __init__(self, catalog: SynergyCatalog, max_depth: int = CHAIN.MAX_CHAIN_DEPTH):
        self.max_depth = max_depth
        self._edges: Dict[str, List[ChainEdge]] = {}
        for edge in catalog.edges:
            self._edges.setdefault(edge.source_id, []).append(edge)
        self._conflicts = catalog.conflicts

    def edges_from(self, synergy: EffectiveSynergy) -> List[ChainEdge]:
        """정적 간선 다음에 동적 간선"""
        return self._edges.get(synergy.id, []) + list(synergy.dynamic_edges)

    def build_chains(
        self,
        active: Sequence[EffectiveSynergy],
        context: ContextSnapshot,
        effect_totals: Mapping[str, float],
    ) -> List[ChainReaction]:
        """
        연쇄 반응 구성

        Args:
            active: 활성 실효 시너지 (판정 순서)
            context: 컨텍스트 스냅샷
            effect_totals: 효과 종류별 누적값 (효과 임계 조건 판정용)

        Returns:
            루트 하나짜리 체인을 포함한 전체 체인 목록
        """
        active_by_id = {synergy.id: synergy for synergy in active}
        active_sources = [sid for sid in active_by_id if sid in self._conflicts]
        consumed: set = set()
        chains = []

        for synergy in active:
            if synergy.id in consumed:
                continue
            consumed.add(synergy.id)
            chain = ChainReaction(links=[ChainLink(synergy, None, CHAIN.ROOT_MULTIPLIER, 0)])

            reason = self.conflict_reason(synergy.id, active_by_id)
            if reason:
                chain.interrupted = True
                chain.interrupted_by = reason
            else:
                self._expand(chain, synergy, 0, active_by_id, effect_totals, active_sources, consumed)

            logger.debug(f"Chain built: {self.describe(chain)}")
            chains.append(chain)

        return chains

    def _expand(
        self,
        chain: ChainReaction,
        current: EffectiveSynergy,
        depth: int,
        active_by_id: Mapping[str, EffectiveSynergy],
        effect_totals: Mapping[str, float],
        active_sources: List[str],
        consumed: set,
    ) -> None:
        if depth >= self.max_depth:
            return

        for edge in self.edges_from(current):
            # 분기가 있어도 링크 수는 max_depth + 1 을 넘지 않음
            if len(chain.links) > self.max_depth:
                return
            target = active_by_id.get(edge.target_id)
            if target is None or target.id in consumed:
                continue
            if not self._conditions_hold(edge, chain, effect_totals, active_sources):
                continue

            consumed.add(target.id)
            chain.links.append(ChainLink(
                synergy=target,
                triggered_by=current.id,
                multiplier=1.0 + edge.multiplier_bonus + depth * CHAIN.DEPTH_BONUS,
                depth=depth + 1,
            ))

            reason = self.conflict_reason(target.id, active_by_id)
            if reason:
                chain.interrupted = True
                chain.interrupted_by = reason
                return

            self._expand(chain, target, depth + 1, active_by_id, effect_totals, active_sources, consumed)
            if chain.interrupted:
                return

    def _conditions_hold(
        self,
        edge: ChainEdge,
        chain: ChainReaction,
        effect_totals: Mapping[str, float],
        active_sources: List[str],
    ) -> bool:
        for condition in edge.conditions:
            if isinstance(condition, EffectThresholdCondition):
                if effect_totals.get(condition.effect, 0) < condition.threshold:
                    return False
            elif isinstance(condition, MinimumLinksCondition):
                if len(chain.links) < condition.count:
                    return False
            elif isinstance(condition, ComboInChainCondition):
                if condition.synergy_id not in chain.synergy_ids:
                    return False
            elif isinstance(condition, NoConflictCondition):
                if condition.synergy_id is None:
                    if active_sources:
                        return False
                elif condition.synergy_id in active_sources:
                    return False
            else:
                # UnknownCondition: 간선 미발동
                return False
        return True

    def conflict_reason(
        self,
        synergy_id: str,
        active_ids: Iterable[str],
    ) -> Optional[str]:
        """
        활성 시너지와의 충돌 사유 (양방향)

        Returns:
            충돌 사유 (충돌이 없으면 None)
        """
        active_ids = list(active_ids)
        for source_id in active_ids:
            record = self._conflicts.get(source_id)
            if record and source_id != synergy_id and synergy_id in record.conflicts_with:
                return record.reason or f"{source_id} conflicts with {synergy_id}"

        record = self._conflicts.get(synergy_id)
        if record:
            for other_id in active_ids:
                if other_id != synergy_id and other_id in record.conflicts_with:
                    return record.reason or f"{synergy_id} conflicts with {other_id}"
        return None

    # ==========================================================================
    # 조회 / 표시
    # ==========================================================================

    @staticmethod
    def describe(chain: ChainReaction) -> str:
        """체인 표시 문자열"""
        names = " → ".join(link.synergy.name for link in chain.links)
        multiplier = f"{chain.total_multiplier:.1f}"
        if chain.interrupted:
            return f"{names} (×{multiplier} - INTERRUPTED: {chain.interrupted_by})"
        return f"{names} (×{multiplier} MULTIPLIER!)"

    def potential_chains(self, active: Iterable[EffectiveSynergy]) -> List[ChainEdge]:
        """활성 시너지에서 출발하는 모든 간선 (조건 미판정)"""
        return [edge for synergy in active for edge in self.edges_from(synergy)]

    @staticmethod
    def contains_pattern(chains: Iterable[ChainReaction], synergy_ids: Iterable[str]) -> bool:
        """주어진 시너지들을 모두 포함하는 체인이 있는지"""
        pattern = set(synergy_ids)
        return any(pattern.issubset(chain.synergy_ids) for chain in chains)
