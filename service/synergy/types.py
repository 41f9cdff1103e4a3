"""
시너지 도메인 타입 정의

카탈로그에 올라가는 정적 데이터(시너지, 요구 조건, 효과, 숙련도 강화, 체인 간선)와
쇼 한 번의 판정에 쓰이는 컨텍스트 스냅샷을 정의합니다.
카탈로그 타입은 모두 frozen 이며 로드 이후 변경되지 않습니다.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Iterable, Mapping, Optional, Union


class Rarity(str, Enum):
    """시너지 희귀도 (common < uncommon < rare < legendary)"""
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        return _RARITY_ORDER.index(self)


_RARITY_ORDER = [Rarity.COMMON, Rarity.UNCOMMON, Rarity.RARE, Rarity.LEGENDARY]


class RequirementOperator(str, Enum):
    """요구 조건 비교 연산자"""
    EQUALS = "equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


class EffectKind(str, Enum):
    """엔진이 직접 해석하는 효과 종류 (그 외 문자열은 커스텀 수치 효과)"""
    MULTIPLY_ATTENDANCE = "multiply_attendance"
    MULTIPLY_REVENUE = "multiply_revenue"
    BONUS_REPUTATION = "bonus_reputation"
    REDUCE_STRESS = "reduce_stress"
    SPAWN_EVENT = "spawn_event"
    UNLOCK_CONTENT = "unlock_content"
    TRANSFORM_ENTITY = "transform_entity"


# 데이터 파일의 효과 종류 별칭 -> 표준 효과 종류
EFFECT_KIND_ALIASES = {
    "attendance": EffectKind.MULTIPLY_ATTENDANCE.value,
    "revenue": EffectKind.MULTIPLY_REVENUE.value,
    "money": EffectKind.MULTIPLY_REVENUE.value,
    "reputation": EffectKind.BONUS_REPUTATION.value,
    "stress_reduction": EffectKind.REDUCE_STRESS.value,
    "transform_card": EffectKind.TRANSFORM_ENTITY.value,
}

# 배율형 효과 (관객 수, 수익)
MULTIPLICATIVE_KINDS = frozenset({
    EffectKind.MULTIPLY_ATTENDANCE.value,
    EffectKind.MULTIPLY_REVENUE.value,
})

# 문자열 값을 가지는 부가 채널 효과
SIDE_CHANNEL_KINDS = frozenset({
    EffectKind.SPAWN_EVENT.value,
    EffectKind.UNLOCK_CONTENT.value,
    EffectKind.TRANSFORM_ENTITY.value,
})


def normalize_effect_kind(kind: str) -> str:
    """효과 종류 문자열을 표준 이름으로 변환 (dict 키로 쓰므로 항상 str 반환)"""
    kind = str(kind).strip()
    return EFFECT_KIND_ALIASES.get(kind, kind)


# =============================================================================
# 컨텍스트 스냅샷
# =============================================================================


def time_of_day_bucket(hour: int) -> str:
    """시각(0~23)을 시간대 버킷으로 변환"""
    if hour < 12:
        return "morning"
    if hour < 17:
        return "afternoon"
    if hour < 21:
        return "evening"
    return "night"


@dataclass(frozen=True)
class ContextSnapshot:
    """
    쇼 한 번의 판정에 사용되는 읽기 전용 사실 모음

    외부(쇼 구성 단계)에서 만들어 전달하며 엔진은 절대 수정하지 않습니다.
    """
    genres: frozenset = frozenset()
    traits: frozenset = frozenset()
    avg_authenticity: float = 0.0
    avg_energy: float = 0.0
    lineup_size: int = 0
    equipment_types: frozenset = frozenset()
    location_type: str = ""
    time_of_day: str = ""

    @classmethod
    def from_lineup(
        cls,
        performers: Iterable[Mapping[str, Any]],
        location_type: str,
        equipment_types: Iterable[str] = (),
        time_of_day: str = "",
    ) -> "ContextSnapshot":
        """
        출연진 목록으로 스냅샷 생성

        Args:
            performers: genre, traits, authenticity, energy 키를 가진 매핑 목록
            location_type: 공연장 타입
            equipment_types: 장비 타입 목록
            time_of_day: 시간대 버킷

        Returns:
            ContextSnapshot
        """
        performers = list(performers)
        count = len(performers)
        genres = frozenset(p["genre"] for p in performers if p.get("genre"))
        traits = frozenset(t for p in performers for t in p.get("traits", ()))
        avg_auth = sum(p.get("authenticity", 0) for p in performers) / count if count else 0.0
        avg_energy = sum(p.get("energy", 0) for p in performers) / count if count else 0.0
        return cls(
            genres=genres,
            traits=traits,
            avg_authenticity=avg_auth,
            avg_energy=avg_energy,
            lineup_size=count,
            equipment_types=frozenset(equipment_types),
            location_type=location_type,
            time_of_day=time_of_day,
        )

    def to_dict(self) -> dict:
        return {
            "genres": sorted(self.genres),
            "traits": sorted(self.traits),
            "avg_authenticity": self.avg_authenticity,
            "avg_energy": self.avg_energy,
            "lineup_size": self.lineup_size,
            "equipment_types": sorted(self.equipment_types),
            "location_type": self.location_type,
            "time_of_day": self.time_of_day,
        }


# =============================================================================
# 요구 조건 (종류별 태그드 유니언)
# =============================================================================


@dataclass(frozen=True)
class Requirement:
    """요구 조건 공통 필드"""
    value: Any
    operator: RequirementOperator = RequirementOperator.EQUALS

    KIND: ClassVar[str] = ""
    LINEUP_ONLY: ClassVar[bool] = False  # 출연진 정보만으로 판정 가능한지

    @property
    def kind(self) -> str:
        return self.KIND


@dataclass(frozen=True)
class GenreRequirement(Requirement):
    """출연 장르 ("mixed" = 서로 다른 장르 2개 이상)"""
    KIND: ClassVar[str] = "performer_genre"
    LINEUP_ONLY: ClassVar[bool] = True
    MIXED: ClassVar[str] = "mixed"


@dataclass(frozen=True)
class TraitRequirement(Requirement):
    """출연진 특성"""
    KIND: ClassVar[str] = "performer_trait"
    LINEUP_ONLY: ClassVar[bool] = True


@dataclass(frozen=True)
class LineupSizeRequirement(Requirement):
    """출연 팀 수"""
    KIND: ClassVar[str] = "lineup_size"
    LINEUP_ONLY: ClassVar[bool] = True


@dataclass(frozen=True)
class ThresholdRequirement(Requirement):
    """컨텍스트 수치 필드 비교 (authenticity / energy)"""
    metric: str = "authenticity"
    KIND: ClassVar[str] = "threshold"
    LINEUP_ONLY: ClassVar[bool] = True

    @property
    def kind(self) -> str:
        return self.metric


@dataclass(frozen=True)
class LocationTypeRequirement(Requirement):
    """공연장 타입"""
    KIND: ClassVar[str] = "location_type"


@dataclass(frozen=True)
class EquipmentRequirement(Requirement):
    """장비 보유"""
    KIND: ClassVar[str] = "equipment"


@dataclass(frozen=True)
class TimeOfDayRequirement(Requirement):
    """시간대"""
    KIND: ClassVar[str] = "time_of_day"


@dataclass(frozen=True)
class UnknownRequirement(Requirement):
    """알 수 없는 종류 (항상 불일치로 판정)"""
    raw_kind: str = ""
    KIND: ClassVar[str] = "unknown"

    @property
    def kind(self) -> str:
        return self.raw_kind or self.KIND


# =============================================================================
# 효과
# =============================================================================


@dataclass(frozen=True)
class Effect:
    """시너지 효과"""
    kind: str
    value: Union[float, str]
    is_percentage: bool = False
    description: str = ""

    @property
    def is_numeric(self) -> bool:
        return isinstance(self.value, (int, float)) and not isinstance(self.value, bool)


# =============================================================================
# 시너지 정의
# =============================================================================


@dataclass(frozen=True)
class SynergyDefinition:
    """
    시너지(콤보) 정의

    requirements 는 모두 만족해야 발동합니다 (AND).
    required_achievement 가 있으면 업적 해금으로 게이트되는 시너지입니다.
    """
    id: str
    name: str
    rarity: Rarity
    requirements: tuple = ()
    effects: tuple = ()
    description: str = ""
    icon: str = ""
    flavor_text: Optional[str] = None
    required_achievement: Optional[str] = None

    @property
    def is_achievement_gated(self) -> bool:
        return self.required_achievement is not None


# =============================================================================
# 숙련도 강화
# =============================================================================


@dataclass(frozen=True)
class EffectBoost:
    """기존 효과 값 배율 강화"""
    effect: str
    multiplier: float


@dataclass(frozen=True)
class NewEffect:
    """새 효과 추가"""
    effect: Effect


@dataclass(frozen=True)
class ChainEnable:
    """이 시너지에서 출발하는 체인 간선 추가"""
    target_id: str
    base_bonus: Optional[float] = None  # None 이면 MASTERY.CHAIN_ENABLE_BASE_BONUS


@dataclass(frozen=True)
class TransformEnable:
    """변신 효과 해금 (transform_entity 효과로 노출)"""
    target: str


EnhancementKind = Union[EffectBoost, NewEffect, ChainEnable, TransformEnable]


@dataclass(frozen=True)
class Enhancement:
    """숙련도 레벨로 해금되는 시너지 강화"""
    id: str
    synergy_id: str
    required_level: int
    kind: Any  # EnhancementKind
    description: str = ""


# =============================================================================
# 체인 그래프
# =============================================================================


@dataclass(frozen=True)
class EffectThresholdCondition:
    """누적 효과 합계가 임계값 이상"""
    effect: str
    threshold: float


@dataclass(frozen=True)
class MinimumLinksCondition:
    """현재 체인 링크 수가 count 이상"""
    count: int


@dataclass(frozen=True)
class ComboInChainCondition:
    """특정 시너지가 체인 앞쪽에 존재"""
    synergy_id: str


@dataclass(frozen=True)
class NoConflictCondition:
    """
    충돌 시너지 부재

    synergy_id 가 있으면 해당 충돌 시너지가 활성 상태가 아니어야 하고,
    없으면 충돌을 선언한 활성 시너지가 하나도 없어야 합니다.
    """
    synergy_id: Optional[str] = None


@dataclass(frozen=True)
class UnknownCondition:
    """알 수 없는 조건 (항상 불충족)"""
    raw_kind: str
    value: Any = None


@dataclass(frozen=True)
class ChainEdge:
    """시너지 간 방향 간선"""
    source_id: str
    target_id: str
    conditions: tuple = ()
    multiplier_bonus: float = 0.0
    dynamic: bool = False  # 숙련도로 열린 간선


@dataclass(frozen=True)
class ConflictRecord:
    """synergy_id 가 활성화되어 있으면 conflicts_with 로 이어지는 체인이 끊깁니다"""
    synergy_id: str
    conflicts_with: frozenset = field(default_factory=frozenset)
    reason: str = ""


# =============================================================================
# 숙련도 레코드 (가변, 숙련도 장부만 수정)
# =============================================================================


@dataclass
class MasteryRecord:
    """
    시너지별 숙련도 기록

    level 은 usage_count 로부터 계산되는 값이며 직접 수정하지 않습니다.
    progress 는 다음 레벨까지의 진행률(0.0~1.0)이고 최대 레벨에서는 1.0 입니다.
    """
    synergy_id: str
    usage_count: int = 0
    level: int = 0
    progress: float = 0.0
    unlocked_enhancements: list = field(default_factory=list)
    total_score: float = 0.0
    last_used: Optional[datetime] = None

    def copy(self) -> "MasteryRecord":
        return replace(self, unlocked_enhancements=list(self.unlocked_enhancements))
