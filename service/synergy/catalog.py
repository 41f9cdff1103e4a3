"""
시너지 카탈로그

시너지 정의, 숙련도 강화, 체인 간선/충돌 데이터를 기동 시 한 번 로드합니다.
로드 이후에는 변경되지 않습니다 (콘텐츠 변경은 재배포로만).

데이터 소스: data/synergies.json, data/chains.json, data/enhancements.json
"""
import json
import logging
import os
from typing import Any, Dict, Iterator, List, Optional

from exceptions import CatalogLoadError, DuplicateSynergyError, SynergyNotFoundError
from service.synergy.types import (
    SIDE_CHANNEL_KINDS,
    ChainEdge,
    ChainEnable,
    ComboInChainCondition,
    Effect,
    EffectBoost,
    EffectThresholdCondition,
    Enhancement,
    EquipmentRequirement,
    GenreRequirement,
    LineupSizeRequirement,
    LocationTypeRequirement,
    MinimumLinksCondition,
    NewEffect,
    NoConflictCondition,
    ConflictRecord,
    Rarity,
    Requirement,
    RequirementOperator,
    SynergyDefinition,
    ThresholdRequirement,
    TimeOfDayRequirement,
    TraitRequirement,
    TransformEnable,
    UnknownCondition,
    UnknownRequirement,
    normalize_effect_kind,
)

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
    "data",
)

# 데이터 파일의 요구 조건 타입 -> 요구 조건 클래스
_REQUIREMENT_TYPES = {
    "band_genre": GenreRequirement,
    "performer_genre": GenreRequirement,
    "band_trait": TraitRequirement,
    "performer_trait": TraitRequirement,
    "venue_type": LocationTypeRequirement,
    "location_type": LocationTypeRequirement,
    "equipment": EquipmentRequirement,
    "bill_size": LineupSizeRequirement,
    "lineup_size": LineupSizeRequirement,
    "time_of_day": TimeOfDayRequirement,
}

_THRESHOLD_TYPES = {"authenticity", "energy"}


class SynergyCatalog:
    """
    시너지 카탈로그 (불변)

    시너지 ID는 업적 시너지를 포함해 카탈로그 전체에서 유일합니다.
    체인 간선과 충돌 기록은 로드 시점에 참조를 검증하고, 끊어진 참조는 경고 후 제외합니다.
    """

    def __init__(
        self,
        synergies: List[SynergyDefinition],
        enhancements: List[Enhancement] = (),
        edges: List[ChainEdge] = (),
        conflicts: List[ConflictRecord] = (),
    ):
        self._synergies: Dict[str, SynergyDefinition] = {}
        for synergy in synergies:
            if synergy.id in self._synergies:
                raise DuplicateSynergyError(synergy.id)
            self._synergies[synergy.id] = synergy

        self._enhancements: Dict[str, tuple] = {}
        for enhancement in enhancements:
            if enhancement.synergy_id not in self._synergies:
                logger.warning(
                    f"Enhancement {enhancement.id} references unknown synergy "
                    f"'{enhancement.synergy_id}', skipped"
                )
                continue
            if isinstance(enhancement.kind, ChainEnable) and enhancement.kind.target_id not in self._synergies:
                logger.warning(
                    f"Enhancement {enhancement.id} enables chain to unknown synergy "
                    f"'{enhancement.kind.target_id}', skipped"
                )
                continue
            current = self._enhancements.get(enhancement.synergy_id, ())
            self._enhancements[enhancement.synergy_id] = current + (enhancement,)

        self._edges: tuple = tuple(edge for edge in edges if self._validate_edge(edge))
        self._conflicts: Dict[str, ConflictRecord] = {}
        for conflict in conflicts:
            validated = self._validate_conflict(conflict)
            if validated:
                self._conflicts[validated.synergy_id] = validated

        logger.info(
            f"Synergy catalog loaded: {len(self._synergies)} synergies, "
            f"{sum(len(v) for v in self._enhancements.values())} enhancements, "
            f"{len(self._edges)} chain edges, {len(self._conflicts)} conflicts"
        )

    # ==========================================================================
    # 로드
    # ==========================================================================

    @classmethod
    def from_directory(cls, data_dir: str = DEFAULT_DATA_DIR) -> "SynergyCatalog":
        """
        데이터 디렉토리에서 카탈로그 로드

        Args:
            data_dir: synergies.json / chains.json / enhancements.json 위치

        Returns:
            SynergyCatalog

        Raises:
            CatalogLoadError: 파일이 없거나 형식이 잘못됨
        """
        synergies = _read_json(os.path.join(data_dir, "synergies.json"))
        chains = _read_json(os.path.join(data_dir, "chains.json"), required=False)
        enhancements = _read_json(os.path.join(data_dir, "enhancements.json"), required=False)
        return cls.from_dict(synergies, chains, enhancements)

    @classmethod
    def from_dict(
        cls,
        synergies: Dict[str, Any],
        chains: Optional[Dict[str, Any]] = None,
        enhancements: Optional[Dict[str, Any]] = None,
    ) -> "SynergyCatalog":
        """JSON 문서(dict)로부터 카탈로그 생성"""
        chains = chains or {}
        enhancements = enhancements or {}

        definitions = [parse_synergy(raw) for raw in synergies.get("synergies", [])]
        definitions += [
            parse_synergy(raw, gated=True)
            for raw in synergies.get("achievement_synergies", [])
        ]
        parsed_enhancements = [
            enhancement
            for enhancement in (parse_enhancement(raw) for raw in enhancements.get("enhancements", []))
            if enhancement is not None
        ]
        edges = [parse_chain_edge(raw) for raw in chains.get("edges", [])]
        conflicts = [parse_conflict(raw) for raw in chains.get("conflicts", [])]
        return cls(definitions, parsed_enhancements, edges, conflicts)

    # ==========================================================================
    # 조회
    # ==========================================================================

    def get(self, synergy_id: str) -> SynergyDefinition:
        """
        시너지 조회

        Raises:
            SynergyNotFoundError: 카탈로그에 없는 ID
        """
        synergy = self._synergies.get(synergy_id)
        if synergy is None:
            raise SynergyNotFoundError(synergy_id)
        return synergy

    def find(self, synergy_id: str) -> Optional[SynergyDefinition]:
        return self._synergies.get(synergy_id)

    def __contains__(self, synergy_id: object) -> bool:
        return synergy_id in self._synergies

    def __iter__(self) -> Iterator[SynergyDefinition]:
        return iter(self._synergies.values())

    def __len__(self) -> int:
        return len(self._synergies)

    @property
    def context_synergies(self) -> List[SynergyDefinition]:
        """컨텍스트 조건으로 발동하는 일반 시너지"""
        return [s for s in self._synergies.values() if not s.is_achievement_gated]

    @property
    def achievement_synergies(self) -> List[SynergyDefinition]:
        """업적 해금으로 게이트되는 시너지"""
        return [s for s in self._synergies.values() if s.is_achievement_gated]

    def enhancements_for(self, synergy_id: str) -> tuple:
        """시너지의 숙련도 강화 목록 (정의 순서)"""
        return self._enhancements.get(synergy_id, ())

    @property
    def edges(self) -> tuple:
        return self._edges

    @property
    def conflicts(self) -> Dict[str, ConflictRecord]:
        return dict(self._conflicts)

    # ==========================================================================
    # 검증
    # ==========================================================================

    def _validate_edge(self, edge: ChainEdge) -> bool:
        for ref in (edge.source_id, edge.target_id):
            if ref not in self._synergies:
                logger.warning(
                    f"Dangling chain edge {edge.source_id} -> {edge.target_id}: "
                    f"unknown synergy '{ref}', edge skipped"
                )
                return False
        return True

    def _validate_conflict(self, conflict: ConflictRecord) -> Optional[ConflictRecord]:
        if conflict.synergy_id not in self._synergies:
            logger.warning(f"Conflict record for unknown synergy '{conflict.synergy_id}' skipped")
            return None
        known = frozenset(c for c in conflict.conflicts_with if c in self._synergies)
        for missing in sorted(conflict.conflicts_with - known):
            logger.warning(f"Conflict {conflict.synergy_id} references unknown synergy '{missing}'")
        return ConflictRecord(conflict.synergy_id, known, conflict.reason)


# =============================================================================
# 파싱
# =============================================================================


def _read_json(path: str, required: bool = True) -> Dict[str, Any]:
    if not os.path.exists(path):
        if required:
            raise CatalogLoadError(path, "파일이 없습니다")
        logger.info(f"Optional catalog file not found: {path}")
        return {}
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogLoadError(path, str(e)) from e


def _require(raw: Dict[str, Any], key: str, source: str) -> Any:
    if key not in raw or raw[key] in (None, ""):
        raise CatalogLoadError(source, f"필수 항목 '{key}'가 없습니다")
    return raw[key]


def _number(value: Any, cast, source: str, key: str):
    try:
        return cast(value)
    except (TypeError, ValueError) as e:
        raise CatalogLoadError(source, f"'{key}' 항목은 숫자여야 합니다: {value!r}") from e


def parse_requirement(raw: Dict[str, Any]) -> Requirement:
    """요구 조건 파싱 (알 수 없는 종류는 UnknownRequirement)"""
    kind = str(raw.get("type", ""))
    value = raw.get("value")
    try:
        operator = RequirementOperator(raw.get("operator") or RequirementOperator.EQUALS.value)
    except ValueError:
        logger.warning(f"Unknown requirement operator {raw.get('operator')!r} on '{kind}'")
        return UnknownRequirement(value=value, raw_kind=kind)

    if kind in _THRESHOLD_TYPES:
        return ThresholdRequirement(value=value, operator=operator, metric=kind)
    requirement_cls = _REQUIREMENT_TYPES.get(kind)
    if requirement_cls is None:
        logger.warning(f"Unknown requirement kind '{kind}', it will never match")
        return UnknownRequirement(value=value, operator=operator, raw_kind=kind)
    return requirement_cls(value=value, operator=operator)


def parse_effect(raw: Dict[str, Any], source: str = "effect") -> Effect:
    """효과 파싱"""
    kind = normalize_effect_kind(_require(raw, "type", source))
    value = raw.get("value")
    if kind in SIDE_CHANNEL_KINDS:
        if not isinstance(value, str):
            raise CatalogLoadError(source, f"'{kind}' 효과는 문자열 값이 필요합니다")
    elif isinstance(value, bool) or not isinstance(value, (int, float)):
        raise CatalogLoadError(source, f"'{kind}' 효과는 숫자 값이 필요합니다: {value!r}")
    return Effect(
        kind=kind,
        value=value,
        is_percentage=bool(raw.get("is_percentage", raw.get("isPercentage", False))),
        description=raw.get("description", ""),
    )


def parse_synergy(raw: Dict[str, Any], gated: bool = False) -> SynergyDefinition:
    """
    시너지 정의 파싱

    Args:
        raw: JSON 객체
        gated: 업적 시너지 목록에서 읽은 항목인지

    Raises:
        CatalogLoadError: 필수 항목 누락 / 잘못된 희귀도 / 잘못된 효과
    """
    synergy_id = _require(raw, "id", "synergy")
    source = f"synergy:{synergy_id}"
    try:
        rarity = Rarity(_require(raw, "rarity", source))
    except ValueError as e:
        raise CatalogLoadError(source, f"알 수 없는 희귀도: {raw.get('rarity')!r}") from e

    required_achievement = raw.get("required_achievement")
    if gated and not required_achievement:
        raise CatalogLoadError(source, "업적 시너지에는 required_achievement 가 필요합니다")

    return SynergyDefinition(
        id=synergy_id,
        name=_require(raw, "name", source),
        rarity=rarity,
        requirements=tuple(parse_requirement(r) for r in raw.get("requirements", [])),
        effects=tuple(parse_effect(e, source) for e in raw.get("effects", [])),
        description=raw.get("description", ""),
        icon=raw.get("icon", ""),
        flavor_text=raw.get("flavor_text"),
        required_achievement=required_achievement,
    )


def parse_enhancement(raw: Dict[str, Any]) -> Optional[Enhancement]:
    """숙련도 강화 파싱 (알 수 없는 종류는 경고 후 None)"""
    enhancement_id = _require(raw, "id", "enhancement")
    source = f"enhancement:{enhancement_id}"
    body = raw.get("enhancement", {})
    kind_name = raw.get("type")

    if kind_name == "effect_boost":
        kind = EffectBoost(
            effect=normalize_effect_kind(_require(body, "effect", source)),
            multiplier=_number(_require(body, "multiplier", source), float, source, "multiplier"),
        )
    elif kind_name == "new_effect":
        kind = NewEffect(effect=parse_effect(body, source))
    elif kind_name == "chain_enable":
        base_bonus = body.get("base_bonus")
        kind = ChainEnable(
            target_id=_require(body, "enables_chain", source),
            base_bonus=_number(base_bonus, float, source, "base_bonus") if base_bonus is not None else None,
        )
    elif kind_name == "transform_enable":
        kind = TransformEnable(target=_require(body, "transform_to", source))
    else:
        logger.warning(f"Unknown enhancement type {kind_name!r} on {enhancement_id}, skipped")
        return None

    return Enhancement(
        id=enhancement_id,
        synergy_id=_require(raw, "synergy_id", source),
        required_level=_number(_require(raw, "required_level", source), int, source, "required_level"),
        kind=kind,
        description=raw.get("description", ""),
    )


def parse_condition(raw: Dict[str, Any]):
    """체인 조건 파싱 (알 수 없는 종류는 UnknownCondition)"""
    kind = raw.get("type")
    value = raw.get("value")
    try:
        if kind == "effect_threshold":
            return EffectThresholdCondition(
                effect=normalize_effect_kind(value["effect"]),
                threshold=float(value["threshold"]),
            )
        if kind in ("synergy_count", "minimum_links"):
            return MinimumLinksCondition(count=int(value))
        if kind in ("specific_combo", "combo_in_chain"):
            return ComboInChainCondition(synergy_id=str(value))
        if kind == "no_conflict":
            return NoConflictCondition(synergy_id=value or None)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Malformed chain condition {raw!r}: {e}")
        return UnknownCondition(raw_kind=str(kind), value=value)
    logger.warning(f"Unknown chain condition kind {kind!r}, the edge will never fire")
    return UnknownCondition(raw_kind=str(kind), value=value)


def parse_chain_edge(raw: Dict[str, Any]) -> ChainEdge:
    """체인 간선 파싱"""
    source_id = _require(raw, "from", "chain_edge")
    source = f"chain_edge:{source_id}"
    return ChainEdge(
        source_id=source_id,
        target_id=_require(raw, "to", source),
        conditions=tuple(parse_condition(c) for c in raw.get("conditions", [])),
        multiplier_bonus=_number(raw.get("multiplier_bonus", 0.0), float, source, "multiplier_bonus"),
    )


def parse_conflict(raw: Dict[str, Any]) -> ConflictRecord:
    """충돌 기록 파싱"""
    synergy_id = _require(raw, "synergy_id", "conflict")
    return ConflictRecord(
        synergy_id=synergy_id,
        conflicts_with=frozenset(raw.get("conflicts_with", [])),
        reason=raw.get("reason", ""),
    )
