"""
DiscoveredSynergy Repository

시너지 발견 기록 데이터 접근 레이어입니다.
"""
from typing import Iterable, List

from models import DiscoveredSynergy


async def get_discovered_ids(profile_id: str) -> List[str]:
    """
    발견한 시너지 ID 목록 조회

    Args:
        profile_id: 프로필 ID

    Returns:
        발견 순서대로 정렬된 시너지 ID 목록
    """
    return await (
        DiscoveredSynergy.filter(profile_id=profile_id)
        .order_by("discovered_at", "id")
        .values_list("synergy_id", flat=True)
    )


async def add_discovered(profile_id: str, synergy_ids: Iterable[str]) -> int:
    """
    발견 기록 추가 (이미 있는 ID는 무시)

    Args:
        profile_id: 프로필 ID
        synergy_ids: 추가할 시너지 ID 목록

    Returns:
        새로 추가된 개수
    """
    created_count = 0
    for synergy_id in synergy_ids:
        _, created = await DiscoveredSynergy.get_or_create(
            profile_id=profile_id,
            synergy_id=synergy_id,
        )
        if created:
            created_count += 1
    return created_count
