"""
시너지 강화기

기본 시너지 정의와 현재 숙련도 기록으로 "실효" 시너지를 만듭니다.
매 호출마다 기본 정의에서 새로 계산하므로 강화가 누적 적용되지 않습니다.
"""
import logging
from dataclasses import dataclass, replace
from typing import List

from config.mastery import MASTERY
from service.synergy.catalog import SynergyCatalog
from service.synergy.mastery_service import MasteryLedger
from service.synergy.types import (
    ChainEdge,
    ChainEnable,
    Effect,
    EffectBoost,
    EffectKind,
    NewEffect,
    SynergyDefinition,
    TransformEnable,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EffectiveSynergy:
    """숙련도 강화가 반영된 시너지"""
    definition: SynergyDefinition
    effects: tuple
    level: int = 0
    dynamic_edges: tuple = ()
    applied_enhancements: tuple = ()

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def name(self) -> str:
        return self.definition.name


class SynergyEnhancer:
    """숙련도 기반 시너지 강화 서비스 (부수 효과 없음)"""

    def __init__(self, catalog: SynergyCatalog, mastery: MasteryLedger):
        self.catalog = catalog
        self.mastery = mastery

    def effective(self, synergy_id: str) -> EffectiveSynergy:
        """
        실효 시너지 계산

        Raises:
            SynergyNotFoundError: 카탈로그에 없는 ID
        """
        return self.effective_for(self.catalog.get(synergy_id))

    def effective_for(self, definition: SynergyDefinition) -> EffectiveSynergy:
        """
        실효 시너지 계산

        해금된 강화를 정의 순서대로 적용합니다.
        - 효과 강화: 같은 종류의 첫 번째 효과 값에 배율 적용 (없으면 무시)
        - 새 효과: 효과 목록 끝에 추가
        - 체인 해금: 효과는 그대로, 이 시너지에서 출발하는 동적 간선 추가
        - 변신 해금: transform_entity 효과 추가
        """
        record = self.mastery.get(definition.id)
        if record is None or not record.unlocked_enhancements:
            return EffectiveSynergy(definition, tuple(definition.effects), record.level if record else 0)

        effects: List[Effect] = list(definition.effects)
        edges = []
        applied = []
        for enhancement in self.catalog.enhancements_for(definition.id):
            if enhancement.id not in record.unlocked_enhancements:
                continue
            kind = enhancement.kind

            if isinstance(kind, EffectBoost):
                index = _first_numeric(effects, kind.effect)
                if index is None:
                    logger.debug(f"Boost {enhancement.id} has no '{kind.effect}' effect to modify")
                    continue
                effects[index] = replace(effects[index], value=effects[index].value * kind.multiplier)
            elif isinstance(kind, NewEffect):
                effects.append(kind.effect)
            elif isinstance(kind, ChainEnable):
                base = MASTERY.CHAIN_ENABLE_BASE_BONUS if kind.base_bonus is None else kind.base_bonus
                edges.append(ChainEdge(
                    source_id=definition.id,
                    target_id=kind.target_id,
                    multiplier_bonus=base + record.level * MASTERY.CHAIN_ENABLE_LEVEL_INCREMENT,
                    dynamic=True,
                ))
            elif isinstance(kind, TransformEnable):
                effects.append(Effect(
                    kind=EffectKind.TRANSFORM_ENTITY.value,
                    value=kind.target,
                    description=enhancement.description,
                ))
            applied.append(enhancement.id)

        return EffectiveSynergy(
            definition=definition,
            effects=tuple(effects),
            level=record.level,
            dynamic_edges=tuple(edges),
            applied_enhancements=tuple(applied),
        )

    def dynamic_edges(self, synergy_id: str) -> tuple:
        """숙련도로 열린 체인 간선 (카탈로그에 없는 ID면 빈 튜플)"""
        definition = self.catalog.find(synergy_id)
        if definition is None:
            return ()
        return self.effective_for(definition).dynamic_edges


def _first_numeric(effects: List[Effect], kind: str):
    for i, effect in enumerate(effects):
        if effect.kind == kind and effect.is_numeric:
            return i
    return None
