"""
시너지 엔진 패키지

콤보(시너지) 판정, 체인 반응, 숙련도 진행을 담당합니다.
"""
from service.synergy.catalog import SynergyCatalog
from service.synergy.effect_composer import ShowResult
from service.synergy.engine import ShowResolution, SynergyEngine
from service.synergy.state_store import InMemoryStateStore, TortoiseStateStore
from service.synergy.types import ContextSnapshot, time_of_day_bucket

__all__ = [
    "SynergyCatalog",
    "ShowResult",
    "ShowResolution",
    "SynergyEngine",
    "InMemoryStateStore",
    "TortoiseStateStore",
    "ContextSnapshot",
    "time_of_day_bucket",
]
