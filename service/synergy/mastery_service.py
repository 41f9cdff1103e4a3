"""
시너지 숙련도 장부

시너지별 사용 횟수와 누적 점수로 숙련도 레벨을 계산하고,
레벨 도달 시 숙련도 강화를 해금합니다 (해금된 강화는 회수하지 않음).
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from config.mastery import MASTERY
from exceptions import StateStoreError
from service.synergy.catalog import SynergyCatalog
from service.synergy.types import Enhancement, MasteryRecord

logger = logging.getLogger(__name__)


def level_for_usage(usage_count: int, thresholds: Sequence[int] = MASTERY.LEVEL_THRESHOLDS) -> int:
    """
    사용 횟수 -> 숙련도 레벨

    usage_count >= thresholds[i] 를 만족하는 가장 큰 i 입니다.
    """
    level = 0
    for i, threshold in enumerate(thresholds):
        if usage_count >= threshold:
            level = i
    return level


def progress_for_usage(
    usage_count: int,
    level: int,
    thresholds: Sequence[int] = MASTERY.LEVEL_THRESHOLDS,
) -> float:
    """현재 레벨 구간에서의 진행률 (최대 레벨이면 1.0)"""
    if level >= len(thresholds) - 1:
        return 1.0
    current = thresholds[level]
    span = thresholds[level + 1] - current
    return min(1.0, max(0.0, (usage_count - current) / span))


@dataclass(frozen=True)
class LevelUp:
    """숙련도 레벨업 정보"""
    synergy_id: str
    old_level: int
    new_level: int
    unlocked: tuple = ()  # 이번에 해금된 Enhancement

    @property
    def reached_max(self) -> bool:
        return self.new_level >= MASTERY.MAX_LEVEL


class MasteryLedger:
    """
    시너지 숙련도 장부

    기록은 처음 참조될 때 생성되며 이 장부만 수정합니다.
    get() 이 돌려주는 기록은 읽기 전용으로 취급해야 합니다.
    """

    def __init__(
        self,
        catalog: SynergyCatalog,
        store,
        thresholds: Sequence[int] = MASTERY.LEVEL_THRESHOLDS,
    ):
        self.catalog = catalog
        self.store = store
        self.thresholds = tuple(thresholds)
        self._records: Dict[str, MasteryRecord] = {}
        self._dirty: set = set()
        self._level_ups: List[LevelUp] = []

    @property
    def max_level(self) -> int:
        return len(self.thresholds) - 1

    async def load(self) -> None:
        """
        저장소에서 숙련도 기록 로드

        저장된 레벨이 사용 횟수와 맞지 않으면 사용 횟수 기준으로 보정합니다.

        Raises:
            StateStoreError: 저장소 읽기 실패 (기동 시 처리)
        """
        for record in await self.store.load_mastery():
            expected = level_for_usage(record.usage_count, self.thresholds)
            if record.level != expected:
                logger.warning(
                    f"Mastery level mismatch for {record.synergy_id}: "
                    f"stored {record.level}, usage implies {expected}"
                )
                record.level = expected
                self._dirty.add(record.synergy_id)
            self._records[record.synergy_id] = record
        logger.info(f"Loaded {len(self._records)} mastery records")

    def record_use(self, synergy_id: str, score_generated: float = 0) -> MasteryRecord:
        """
        시너지 사용 기록

        레벨업으로 해금된 강화는 같은 쇼의 강화기 계산부터 반영됩니다.
        쇼 점수를 합성 이후에 알게 되면 score_generated 없이 기록하고
        add_score() 로 따로 누적합니다.

        Args:
            synergy_id: 시너지 ID
            score_generated: 이번 쇼에서 발생한 점수

        Returns:
            갱신된 MasteryRecord
        """
        record = self._records.get(synergy_id)
        if record is None:
            record = MasteryRecord(synergy_id=synergy_id)
            self._records[synergy_id] = record

        old_level = record.level
        record.usage_count += 1
        record.total_score += score_generated
        record.last_used = datetime.now()
        record.level = level_for_usage(record.usage_count, self.thresholds)

        if record.level > old_level:
            record.progress = 0.0
            unlocked = self._unlock_enhancements(record, old_level)
            self._level_ups.append(LevelUp(synergy_id, old_level, record.level, unlocked))
            logger.info(
                f"Mastery level up: {synergy_id} {old_level} -> {record.level} "
                f"(unlocked: {[e.id for e in unlocked]})"
            )
        else:
            record.progress = progress_for_usage(record.usage_count, record.level, self.thresholds)

        self._dirty.add(synergy_id)
        return record

    def add_score(self, synergy_id: str, score_generated: float) -> None:
        """이미 기록된 사용에 쇼 점수 누적 (기록이 없으면 무시)"""
        record = self._records.get(synergy_id)
        if record is None:
            logger.warning(f"Score for unrecorded synergy {synergy_id} ignored")
            return
        record.total_score += score_generated
        self._dirty.add(synergy_id)

    def _unlock_enhancements(self, record: MasteryRecord, old_level: int) -> tuple:
        unlocked = []
        for enhancement in self.catalog.enhancements_for(record.synergy_id):
            if enhancement.id in record.unlocked_enhancements:
                continue
            if old_level < enhancement.required_level <= record.level:
                record.unlocked_enhancements.append(enhancement.id)
                unlocked.append(enhancement)
        return tuple(unlocked)

    def drain_level_ups(self) -> List[LevelUp]:
        """마지막 호출 이후 발생한 레벨업 목록을 꺼냄"""
        level_ups, self._level_ups = self._level_ups, []
        return level_ups

    async def flush(self) -> bool:
        """
        변경된 기록 저장

        실패 시 변경 표시를 유지하고 다음 flush 에서 다시 시도합니다.

        Returns:
            저장 성공 여부 (저장할 것이 없으면 True)
        """
        if not self._dirty:
            return True
        dirty = sorted(self._dirty)
        try:
            await self.store.save_mastery([self._records[sid].copy() for sid in dirty])
        except StateStoreError as e:
            logger.error(f"Failed to persist mastery for {dirty}: {e}", exc_info=True)
            return False
        self._dirty.difference_update(dirty)
        return True

    # ==========================================================================
    # 조회
    # ==========================================================================

    def get(self, synergy_id: str) -> Optional[MasteryRecord]:
        return self._records.get(synergy_id)

    def all_records(self) -> List[MasteryRecord]:
        return list(self._records.values())

    def has_level(self, synergy_id: str, level: int) -> bool:
        record = self._records.get(synergy_id)
        return record is not None and record.level >= level

    def next_unlock(self, synergy_id: str) -> Optional[Enhancement]:
        """다음으로 해금될 강화 (없으면 None)"""
        record = self._records.get(synergy_id)
        unlocked = record.unlocked_enhancements if record else []
        candidates = [
            e for e in self.catalog.enhancements_for(synergy_id)
            if e.id not in unlocked
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda e: e.required_level)

    def total_levels(self) -> int:
        return sum(record.level for record in self._records.values())

    def mastery_achievements(self) -> List[str]:
        """
        숙련도로 달성한 업적 ID

        총 레벨 마일스톤 업적과 최대 레벨 시너지별 master_<id> 업적입니다.
        """
        total = self.total_levels()
        achievements = [
            achievement_id
            for required, achievement_id in MASTERY.MILESTONES
            if total >= required
        ]
        achievements += [
            f"master_{record.synergy_id}"
            for record in self._records.values()
            if record.level >= self.max_level
        ]
        return achievements
