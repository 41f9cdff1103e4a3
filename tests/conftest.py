"""
pytest 설정 및 공통 픽스처 정의
"""
import sys
from pathlib import Path
from typing import AsyncGenerator

import pytest

# 프로젝트 루트를 Python 경로에 추가
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


# =============================================================================
# pytest 설정
# =============================================================================


def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


# =============================================================================
# 데이터베이스 픽스처
# =============================================================================


@pytest.fixture(scope="function")
async def test_db() -> AsyncGenerator[None, None]:
    """
    테스트용 인메모리 SQLite 데이터베이스
    각 테스트 함수마다 새로운 DB 생성
    """
    from tortoise import Tortoise, connections

    await Tortoise.init(
        db_url="sqlite://:memory:",
        modules={"models": ["models"]}
    )
    await Tortoise.generate_schemas()

    yield

    await connections.close_all()


# =============================================================================
# 카탈로그 / 저장소 픽스처
# =============================================================================


@pytest.fixture
def catalog():
    """테스트용 시너지 카탈로그"""
    from service.synergy.catalog import SynergyCatalog
    from tests.fixtures.synergies import SAMPLE_CHAINS, SAMPLE_ENHANCEMENTS, SAMPLE_SYNERGIES

    return SynergyCatalog.from_dict(SAMPLE_SYNERGIES, SAMPLE_CHAINS, SAMPLE_ENHANCEMENTS)


@pytest.fixture
def store():
    """메모리 상태 저장소"""
    from service.synergy.state_store import InMemoryStateStore

    return InMemoryStateStore()


@pytest.fixture
def mastery(catalog, store):
    """빈 숙련도 장부"""
    from service.synergy.mastery_service import MasteryLedger

    return MasteryLedger(catalog, store)


@pytest.fixture
def enhancer(catalog, mastery):
    """숙련도 장부에 연결된 강화기"""
    from service.synergy.enhancer import SynergyEnhancer

    return SynergyEnhancer(catalog, mastery)


# =============================================================================
# 컨텍스트 팩토리 픽스처
# =============================================================================


@pytest.fixture
def context_factory():
    """테스트용 ContextSnapshot 생성 팩토리"""
    from service.synergy.types import ContextSnapshot
    from tests.fixtures.synergies import DEFAULT_CONTEXT

    def _create_context(**overrides) -> ContextSnapshot:
        values = dict(DEFAULT_CONTEXT)
        values.update(overrides)
        for key in ("genres", "traits", "equipment_types"):
            values[key] = frozenset(values[key])
        return ContextSnapshot(**values)

    return _create_context


@pytest.fixture
def level_up(mastery):
    """시너지를 원하는 사용 횟수까지 기록하는 헬퍼"""

    def _use(synergy_id: str, times: int, score: float = 0):
        record = None
        for _ in range(times):
            record = mastery.record_use(synergy_id, score)
        return record

    return _use
