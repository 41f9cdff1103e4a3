"""
시너지 상태 저장소

발견 목록과 숙련도 기록의 영속화 어댑터입니다.
저장소는 생성 시 하나의 프로필에 묶이며, 실패는 StateStoreError 로 올립니다.
장부(Ledger)는 이 예외를 잡아 기록만 하고 메모리 상태를 유지합니다.
"""
import logging
from typing import Dict, Iterable, List, Protocol

from tortoise.exceptions import BaseORMException

from exceptions import StateStoreError
from models.repos import discovery_repo, mastery_repo
from service.synergy.types import MasteryRecord

logger = logging.getLogger(__name__)


class SynergyStateStore(Protocol):
    """발견/숙련도 저장소 인터페이스"""

    async def load_discovered(self) -> List[str]:
        ...

    async def save_discovered(self, synergy_ids: Iterable[str]) -> None:
        ...

    async def load_mastery(self) -> List[MasteryRecord]:
        ...

    async def save_mastery(self, records: Iterable[MasteryRecord]) -> None:
        ...


class InMemoryStateStore:
    """
    메모리 저장소

    테스트와 일회성 실행용입니다. 저장 시 레코드를 복사해 보관하므로
    장부의 이후 변경이 저장된 값에 영향을 주지 않습니다.
    """

    def __init__(self):
        self.discovered: List[str] = []
        self.mastery: Dict[str, MasteryRecord] = {}

    async def load_discovered(self) -> List[str]:
        return list(self.discovered)

    async def save_discovered(self, synergy_ids: Iterable[str]) -> None:
        for synergy_id in synergy_ids:
            if synergy_id not in self.discovered:
                self.discovered.append(synergy_id)

    async def load_mastery(self) -> List[MasteryRecord]:
        return [record.copy() for record in self.mastery.values()]

    async def save_mastery(self, records: Iterable[MasteryRecord]) -> None:
        for record in records:
            self.mastery[record.synergy_id] = record.copy()


class TortoiseStateStore:
    """Tortoise ORM 저장소 (discovered_synergy / synergy_mastery 테이블)"""

    def __init__(self, profile_id: str):
        self.profile_id = profile_id

    async def load_discovered(self) -> List[str]:
        try:
            return list(await discovery_repo.get_discovered_ids(self.profile_id))
        except BaseORMException as e:
            raise StateStoreError("load_discovered", str(e)) from e

    async def save_discovered(self, synergy_ids: Iterable[str]) -> None:
        try:
            created = await discovery_repo.add_discovered(self.profile_id, synergy_ids)
        except BaseORMException as e:
            raise StateStoreError("save_discovered", str(e)) from e
        logger.debug(f"Saved {created} discovered synergies for profile {self.profile_id}")

    async def load_mastery(self) -> List[MasteryRecord]:
        try:
            return await mastery_repo.get_mastery_records(self.profile_id)
        except BaseORMException as e:
            raise StateStoreError("load_mastery", str(e)) from e

    async def save_mastery(self, records: Iterable[MasteryRecord]) -> None:
        try:
            for record in records:
                await mastery_repo.upsert_mastery(self.profile_id, record)
        except BaseORMException as e:
            raise StateStoreError("save_mastery", str(e)) from e
