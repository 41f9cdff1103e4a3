"""
요구 조건 판정기

요구 조건 하나를 컨텍스트 스냅샷에 대해 평가합니다.
알 수 없는 종류나 잘못된 값은 예외 없이 False 를 반환하고 데이터 오류로 기록합니다.
"""
import logging
from typing import Iterable

from service.synergy.types import (
    ContextSnapshot,
    EquipmentRequirement,
    GenreRequirement,
    LineupSizeRequirement,
    LocationTypeRequirement,
    Requirement,
    RequirementOperator,
    ThresholdRequirement,
    TimeOfDayRequirement,
    TraitRequirement,
)

logger = logging.getLogger(__name__)

_THRESHOLD_FIELDS = {
    "authenticity": "avg_authenticity",
    "energy": "avg_energy",
}


class RequirementMatcher:
    """요구 조건 판정 서비스"""

    @staticmethod
    def matches(requirement: Requirement, context: ContextSnapshot) -> bool:
        """
        요구 조건 하나 판정

        Args:
            requirement: 요구 조건
            context: 컨텍스트 스냅샷

        Returns:
            조건 충족 여부 (판정 불가 시 False)
        """
        handler = _HANDLERS.get(type(requirement))
        if handler is None:
            logger.warning(f"Unknown requirement kind '{requirement.kind}', treated as non-matching")
            return False
        try:
            return handler(requirement, context)
        except (TypeError, ValueError) as e:
            logger.warning(
                f"Malformed requirement {requirement.kind}={requirement.value!r} "
                f"({requirement.operator}): {e}"
            )
            return False

    @staticmethod
    def matches_all(requirements: Iterable[Requirement], context: ContextSnapshot) -> bool:
        """모든 조건 충족 여부 (빈 목록은 항상 충족)"""
        return all(RequirementMatcher.matches(req, context) for req in requirements)

    @staticmethod
    def matches_lineup_only(requirements: Iterable[Requirement], context: ContextSnapshot) -> bool:
        """
        출연진 정보만으로 판정 가능한 시너지인지 확인하고 판정

        공연장/장비/시간대 조건이 하나라도 있으면 False 입니다 (라인업 미리보기용).
        """
        requirements = list(requirements)
        if not requirements:
            return False
        if not all(req.LINEUP_ONLY for req in requirements):
            return False
        return RequirementMatcher.matches_all(requirements, context)


# =============================================================================
# 종류별 판정
# =============================================================================


def _match_membership(requirement: Requirement, values: frozenset) -> bool:
    if requirement.operator in (RequirementOperator.EQUALS, RequirementOperator.CONTAINS):
        return requirement.value in values
    raise ValueError(f"operator {requirement.operator.value} is not valid for a set field")


def _match_text(requirement: Requirement, actual: str) -> bool:
    if not isinstance(requirement.value, str):
        raise TypeError("expected a string value")
    if requirement.operator == RequirementOperator.EQUALS:
        return actual == requirement.value
    if requirement.operator == RequirementOperator.CONTAINS:
        return requirement.value in actual
    raise ValueError(f"operator {requirement.operator.value} is not valid for a text field")


def _match_number(requirement: Requirement, actual: float) -> bool:
    expected = requirement.value
    if isinstance(expected, bool) or not isinstance(expected, (int, float)):
        raise TypeError("expected a numeric value")
    if requirement.operator == RequirementOperator.GREATER_THAN:
        return actual > expected
    if requirement.operator == RequirementOperator.LESS_THAN:
        return actual < expected
    if requirement.operator == RequirementOperator.EQUALS:
        return actual == expected
    raise ValueError(f"operator {requirement.operator.value} is not valid for a numeric field")


def _match_genre(requirement: GenreRequirement, context: ContextSnapshot) -> bool:
    # "mixed" 는 연산자와 무관하게 장르 다양성 판정
    if requirement.value == GenreRequirement.MIXED:
        return len(context.genres) > 1
    return _match_membership(requirement, context.genres)


def _match_trait(requirement: TraitRequirement, context: ContextSnapshot) -> bool:
    return _match_membership(requirement, context.traits)


def _match_equipment(requirement: EquipmentRequirement, context: ContextSnapshot) -> bool:
    return _match_membership(requirement, context.equipment_types)


def _match_location(requirement: LocationTypeRequirement, context: ContextSnapshot) -> bool:
    return _match_text(requirement, context.location_type)


def _match_time_of_day(requirement: TimeOfDayRequirement, context: ContextSnapshot) -> bool:
    return _match_text(requirement, context.time_of_day)


def _match_lineup_size(requirement: LineupSizeRequirement, context: ContextSnapshot) -> bool:
    return _match_number(requirement, context.lineup_size)


def _match_threshold(requirement: ThresholdRequirement, context: ContextSnapshot) -> bool:
    attr = _THRESHOLD_FIELDS.get(requirement.metric)
    if attr is None:
        raise ValueError(f"unknown context field '{requirement.metric}'")
    return _match_number(requirement, getattr(context, attr))


_HANDLERS = {
    GenreRequirement: _match_genre,
    TraitRequirement: _match_trait,
    EquipmentRequirement: _match_equipment,
    LocationTypeRequirement: _match_location,
    TimeOfDayRequirement: _match_time_of_day,
    LineupSizeRequirement: _match_lineup_size,
    ThresholdRequirement: _match_threshold,
}
