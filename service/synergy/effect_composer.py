"""
시너지 효과 합성

활성 시너지의 효과와 체인 보너스를 종류별 누적값으로 합친 뒤
쇼 결과(관객 수, 수익, 평판 변화, 스트레스 변화)에 반영합니다.

단위 규칙:
- 관객 수/수익: 퍼센트 포인트로 합산 (배율형 1.5 -> 50, 퍼센트형 50 -> 50),
  결과 = floor(기본값 * (1 + 합계 / 100))
- 평판: 고정값은 그대로 더하고, 퍼센트형은 기본 평판 변화량의 비율로 더함
- 스트레스 감소: stress_change 에서 뺌
- 문자열 효과(이벤트/해금/변신)와 알 수 없는 수치 효과는 부가 채널로 전달
"""
import logging
import math
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Sequence

from config.composer import COMPOSER
from service.synergy.types import (
    MULTIPLICATIVE_KINDS,
    SIDE_CHANNEL_KINDS,
    Effect,
    EffectKind,
)

logger = logging.getLogger(__name__)

_ATTENDANCE = EffectKind.MULTIPLY_ATTENDANCE.value
_REVENUE = EffectKind.MULTIPLY_REVENUE.value
_REPUTATION = EffectKind.BONUS_REPUTATION.value
_STRESS = EffectKind.REDUCE_STRESS.value


@dataclass
class ShowResult:
    """쇼 결과 (기본값 입력 / 합성 결과 출력 공용)"""
    attendance: int = 0
    revenue: int = 0
    reputation_change: float = 0
    stress_change: float = 0
    triggered_events: List[str] = field(default_factory=list)
    unlocks: List[str] = field(default_factory=list)
    transformations: List[str] = field(default_factory=list)
    extra_effects: Dict[str, float] = field(default_factory=dict)
    chain_bonus: int = 0
    chain_reactions: list = field(default_factory=list)


class EffectTotals:
    """
    효과 종류별 누적값

    flat: 고정값 및 배율형 효과(퍼센트 포인트로 환산)
    percent: 배율형이 아닌 효과의 퍼센트 값
    """

    def __init__(self):
        self.flat: Dict[str, float] = {}
        self.percent: Dict[str, float] = {}
        self.side_channels: Dict[str, List[str]] = {kind: [] for kind in sorted(SIDE_CHANNEL_KINDS)}

    def add(self, effect: Effect, scale: float = 1.0) -> None:
        """
        효과 하나 누적

        Args:
            effect: 효과
            scale: 누적 배율 (체인 보너스는 link.multiplier - 1)
        """
        if not effect.is_numeric:
            if scale == 1.0:
                channel = self.side_channels.setdefault(effect.kind, [])
                channel.append(str(effect.value))
            return

        if effect.kind in MULTIPLICATIVE_KINDS:
            amount = effect.value if effect.is_percentage else (effect.value - 1) * 100
            bucket = self.flat
        else:
            amount = effect.value
            bucket = self.percent if effect.is_percentage else self.flat
        bucket[effect.kind] = bucket.get(effect.kind, 0) + amount * scale

    def get(self, kind: str) -> float:
        return self.flat.get(kind, 0) + self.percent.get(kind, 0)

    def as_mapping(self) -> Dict[str, float]:
        """종류별 합계 (체인 효과 임계 조건 판정용)"""
        kinds = set(self.flat) | set(self.percent)
        return {kind: self.get(kind) for kind in sorted(kinds)}


class EffectComposer:
    """효과 합성 서비스"""

    @staticmethod
    def accumulate(active_effective: Iterable) -> EffectTotals:
        """1단계: 활성 실효 시너지의 모든 효과 누적"""
        totals = EffectTotals()
        for synergy in active_effective:
            for effect in synergy.effects:
                totals.add(effect)
        return totals

    @staticmethod
    def apply_chains(totals: EffectTotals, chains: Sequence) -> None:
        """2단계: 중단되지 않은 체인의 루트 이후 링크마다 value * (multiplier - 1) 추가"""
        for chain in chains:
            if chain.interrupted:
                continue
            for link in chain.links[1:]:
                for effect in link.synergy.effects:
                    totals.add(effect, scale=link.multiplier - 1)

    @staticmethod
    def compose(active_effective: Sequence, chains: Sequence, base_result: ShowResult) -> ShowResult:
        """
        효과 합성

        Args:
            active_effective: 활성 실효 시너지 목록
            chains: 체인 목록 (중단된 체인은 보너스 없음)
            base_result: 기본 쇼 결과 (변경하지 않음)

        Returns:
            합성된 새 ShowResult
        """
        totals = EffectComposer.accumulate(active_effective)
        EffectComposer.apply_chains(totals, chains)
        logger.debug(f"Effect totals: {totals.as_mapping()}")
        result = EffectComposer.translate(totals, base_result)
        result.chain_bonus = EffectComposer.chain_bonus(chains)
        result.chain_reactions = list(chains)
        return result

    @staticmethod
    def translate(totals: EffectTotals, base_result: ShowResult) -> ShowResult:
        """3단계: 누적값을 쇼 결과로 변환"""
        attendance_pct = totals.get(_ATTENDANCE)
        revenue_pct = totals.get(_REVENUE)
        base_reputation = base_result.reputation_change

        extra = dict(base_result.extra_effects)
        for kind, value in totals.as_mapping().items():
            if kind in (_ATTENDANCE, _REVENUE, _REPUTATION, _STRESS):
                continue
            extra[kind] = extra.get(kind, 0) + value

        return replace(
            base_result,
            attendance=_floor(base_result.attendance * (1 + attendance_pct / 100)),
            revenue=_floor(base_result.revenue * (1 + revenue_pct / 100)),
            reputation_change=(
                base_reputation
                + totals.flat.get(_REPUTATION, 0)
                + base_reputation * totals.percent.get(_REPUTATION, 0) / 100
            ),
            stress_change=(
                base_result.stress_change
                - totals.flat.get(_STRESS, 0)
                - abs(base_result.stress_change) * totals.percent.get(_STRESS, 0) / 100
            ),
            triggered_events=_merge(base_result.triggered_events, totals.side_channels.get(EffectKind.SPAWN_EVENT.value, [])),
            unlocks=_merge(base_result.unlocks, totals.side_channels.get(EffectKind.UNLOCK_CONTENT.value, [])),
            transformations=_merge(base_result.transformations, totals.side_channels.get(EffectKind.TRANSFORM_ENTITY.value, [])),
            extra_effects=extra,
        )

    @staticmethod
    def chain_bonus(chains: Sequence) -> int:
        """4단계: 중단되지 않은 체인 중 최고 배율 기준 점수"""
        multipliers = [chain.total_multiplier for chain in chains if not chain.interrupted]
        if not multipliers:
            return 0
        return max(0, _floor(COMPOSER.CHAIN_BONUS_SCALE * (max(multipliers) - 1)))

    @staticmethod
    def score(result: ShowResult) -> float:
        """숙련도 점수 = 수익 + 평판 * 10 + 관객 수 * 5"""
        return (
            result.revenue
            + result.reputation_change * COMPOSER.SCORE_REPUTATION_WEIGHT
            + result.attendance * COMPOSER.SCORE_ATTENDANCE_WEIGHT
        )


def _floor(value: float) -> int:
    # 부동소수 오차 보정 (100 * 0.7 -> 69.99999999999999)
    return math.floor(round(value, 6))


def _merge(existing: List[str], added: List[str]) -> List[str]:
    merged = list(existing)
    for value in added:
        if value not in merged:
            merged.append(value)
    return merged
