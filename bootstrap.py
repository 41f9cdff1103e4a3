# bootstrap.py
import asyncio
import logging
import os

from dotenv import load_dotenv
from tortoise import Tortoise, connections

from service.event import EventBus, GameEvent, GameEventType
from service.synergy import (
    ContextSnapshot,
    ShowResult,
    SynergyCatalog,
    SynergyEngine,
    TortoiseStateStore,
    time_of_day_bucket,
)
from service.synergy.catalog import DEFAULT_DATA_DIR

load_dotenv()

# 로그 기본 설정
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite://synergy.sqlite3"
SYNERGY_DATA_DIR = os.getenv("SYNERGY_DATA_DIR") or DEFAULT_DATA_DIR
PROFILE_ID = os.getenv("PROFILE_ID") or "default"


async def init_db(db_url: str = DATABASE_URL) -> None:
    await Tortoise.init(
        db_url=db_url,
        modules={"models": ["models"]}
    )
    await Tortoise.generate_schemas()


async def close_db() -> None:
    await connections.close_all()


async def create_engine(
    profile_id: str = PROFILE_ID,
    data_dir: str = SYNERGY_DATA_DIR,
    event_bus: EventBus = None,
) -> SynergyEngine:
    """
    카탈로그 로드 + 저장된 상태 로드까지 마친 엔진 생성

    Raises:
        CatalogLoadError: 카탈로그가 잘못됨 (기동 불가)
        StateStoreError: 저장소 읽기 실패
    """
    catalog = SynergyCatalog.from_directory(data_dir)
    engine = SynergyEngine(catalog, TortoiseStateStore(profile_id), event_bus, profile_id)
    await engine.start()
    return engine


async def _log_event(event: GameEvent) -> None:
    logging.info(f"[event] {event.type.value}: {event.data}")


async def main() -> None:
    logging.info("데이터 베이스 연결 시작")
    await init_db()
    logging.info("데이터 베이스 연결")

    event_bus = EventBus()
    for event_type in GameEventType:
        event_bus.subscribe(event_type, _log_event)

    try:
        engine = await create_engine(event_bus=event_bus)
        context = ContextSnapshot.from_lineup(
            performers=[
                {"genre": "PUNK", "traits": ["DIY"], "authenticity": 80, "energy": 75},
                {"genre": "PUNK", "traits": ["Wild Live Show"], "authenticity": 70, "energy": 90},
                {"genre": "METAL", "traits": [], "authenticity": 65, "energy": 85},
            ],
            location_type="BASEMENT",
            equipment_types=["professional_pa"],
            time_of_day=time_of_day_bucket(22),
        )
        resolution = await engine.resolve_show(
            context,
            ShowResult(attendance=100, revenue=500, reputation_change=5, stress_change=10),
        )
        for chain in resolution.chains:
            logging.info(engine.chain_graph.describe(chain))
        result = resolution.result
        logging.info(
            f"결과: 관객 {result.attendance}, 수익 {result.revenue}, "
            f"평판 {result.reputation_change:+}, 스트레스 {result.stress_change:+}, "
            f"체인 보너스 {result.chain_bonus}"
        )
        for hint in engine.discovery.hints():
            logging.info(f"힌트: {hint.text}")
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
