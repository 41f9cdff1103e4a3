"""
SynergyMastery Repository

시너지 숙련도 데이터 접근 레이어입니다.
"""
from typing import List

from models import SynergyMastery
from service.synergy.types import MasteryRecord


def _to_record(row: SynergyMastery) -> MasteryRecord:
    return MasteryRecord(
        synergy_id=row.synergy_id,
        usage_count=row.usage_count,
        level=row.level,
        progress=row.progress,
        unlocked_enhancements=list(row.unlocked_enhancements or []),
        total_score=row.total_score,
        last_used=row.last_used,
    )


async def get_mastery_records(profile_id: str) -> List[MasteryRecord]:
    """
    프로필의 숙련도 기록 전체 조회

    Args:
        profile_id: 프로필 ID

    Returns:
        MasteryRecord 목록 (시너지 ID 순)
    """
    rows = await SynergyMastery.filter(profile_id=profile_id).order_by("synergy_id")
    return [_to_record(row) for row in rows]


async def upsert_mastery(profile_id: str, record: MasteryRecord) -> SynergyMastery:
    """
    숙련도 기록 저장 (없으면 생성)

    Args:
        profile_id: 프로필 ID
        record: 저장할 기록

    Returns:
        저장된 SynergyMastery
    """
    row, _ = await SynergyMastery.update_or_create(
        profile_id=profile_id,
        synergy_id=record.synergy_id,
        defaults={
            "usage_count": record.usage_count,
            "level": record.level,
            "progress": record.progress,
            "unlocked_enhancements": list(record.unlocked_enhancements),
            "total_score": record.total_score,
            "last_used": record.last_used,
        },
    )
    return row
