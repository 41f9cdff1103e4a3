"""
시너지 엔진 통합 흐름 테스트
"""
from unittest.mock import AsyncMock

import pytest

from exceptions import StateStoreError
from service.event import EventBus, GameEventType
from service.synergy.effect_composer import ShowResult
from service.synergy.engine import SynergyEngine


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def engine(catalog, store, event_bus):
    return SynergyEngine(catalog, store, event_bus=event_bus, profile_id="tester")


@pytest.fixture
def punk_context(context_factory):
    """punk_in_basement, punk_unity, scene_explosion, diy_ethos 활성"""
    return context_factory(genres={"PUNK"}, traits={"DIY"}, location_type="BASEMENT", lineup_size=3)


@pytest.fixture
def collect(event_bus):
    """이벤트 타입별 수신 목록"""
    received = {}

    def _collect(event_type):
        events = received.setdefault(event_type, [])

        async def on_event(event):
            events.append(event)

        on_event.__name__ = f"collect_{event_type.value}"
        event_bus.subscribe(event_type, on_event)
        return events

    return _collect


def _base():
    return ShowResult(attendance=100, revenue=200, reputation_change=0, stress_change=10)


class TestActiveSynergies:
    def test_context_then_achievement_order(self, engine, punk_context):
        active = engine.active_synergies(punk_context, {"punk_shows_50"})
        ids = [s.id for s in active]
        assert ids == ["punk_in_basement", "punk_unity", "scene_explosion", "diy_ethos", "punk_master"]

    def test_preview_has_no_side_effects(self, engine, punk_context):
        preview = engine.preview(punk_context)

        assert len(preview) == 4
        assert engine.discovery.trigger_count("punk_unity") == 0
        assert engine.mastery.get("punk_unity") is None

    def test_preview_lineup_ignores_venue(self, engine, punk_context):
        ids = [s.id for s in engine.preview_lineup(punk_context)]
        assert "punk_unity" in ids
        assert "punk_in_basement" not in ids


class TestResolveShow:
    async def test_full_resolution(self, engine, punk_context):
        resolution = await engine.resolve_show(punk_context, _base())
        result = resolution.result

        assert len(resolution.discoveries) == 4
        assert result.attendance == 170
        assert result.reputation_change == pytest.approx(23)
        assert result.chain_bonus == 300
        assert [c.synergy_ids for c in resolution.chains if len(c.links) > 1] == [
            ["punk_in_basement", "diy_ethos"],
        ]

    async def test_base_result_unchanged(self, engine, punk_context):
        base = _base()
        await engine.resolve_show(punk_context, base)
        assert base.attendance == 100
        assert base.chain_bonus == 0

    async def test_second_show_has_no_discoveries(self, engine, punk_context):
        await engine.resolve_show(punk_context, _base())
        resolution = await engine.resolve_show(punk_context, _base())

        assert resolution.discoveries == []
        assert len(resolution.notifications) == 4

    async def test_mastery_records_score(self, engine, punk_context):
        resolution = await engine.resolve_show(punk_context, _base())
        record = engine.mastery.get("punk_unity")

        assert record.usage_count == 1
        assert record.total_score == pytest.approx(resolution.score_generated)

    async def test_no_active_synergies(self, engine, context_factory):
        resolution = await engine.resolve_show(context_factory(), _base())

        assert resolution.notifications == []
        assert resolution.chains == []
        assert resolution.result.attendance == 100

    async def test_achievement_synergy_not_discovered(self, engine, context_factory):
        resolution = await engine.resolve_show(context_factory(), _base(), {"shows_100"})

        assert [n.synergy.id for n in resolution.notifications] == ["scene_veteran_bonus"]
        assert resolution.discoveries == []
        assert engine.mastery.get("scene_veteran_bonus").usage_count == 1

    async def test_level_up_unlocks_enhancement(self, engine, context_factory):
        context = context_factory(genres={"METAL"})
        for _ in range(4):
            await engine.resolve_show(context, _base())
        resolution = await engine.resolve_show(context, _base())

        assert [(l.synergy_id, l.new_level) for l in resolution.level_ups] == [("metal_brotherhood", 1)]
        next_show = engine.preview(context)[0]
        assert next_show.effects[0].value == pytest.approx(15)

    async def test_level_up_applies_to_same_show(self, engine, context_factory):
        """레벨업한 쇼의 결과에 해금된 강화가 바로 반영됨"""
        context = context_factory(genres={"METAL"})
        for _ in range(4):
            resolution = await engine.resolve_show(context, _base())
        assert resolution.result.extra_effects["authenticity"] == pytest.approx(10)

        resolution = await engine.resolve_show(context, _base())

        assert [(l.synergy_id, l.new_level) for l in resolution.level_ups] == [("metal_brotherhood", 1)]
        assert resolution.result.extra_effects["authenticity"] == pytest.approx(15)
        assert engine.mastery.get("metal_brotherhood").usage_count == 5


class TestPersistence:
    async def test_restart_keeps_discoveries_and_mastery(self, catalog, store, punk_context):
        await SynergyEngine(catalog, store).resolve_show(punk_context, _base())

        restarted = SynergyEngine(catalog, store)
        resolution = await restarted.resolve_show(punk_context, _base())

        assert resolution.discoveries == []
        assert restarted.mastery.get("punk_unity").usage_count == 2

    async def test_auto_start_loads_state(self, engine, store, punk_context):
        store.discovered.append("punk_unity")
        resolution = await engine.resolve_show(punk_context, _base())
        assert "punk_unity" not in [n.synergy.id for n in resolution.discoveries]

    async def test_store_failure_does_not_abort_show(self, engine, store, punk_context):
        await engine.start()
        store.save_discovered = AsyncMock(side_effect=StateStoreError("save_discovered", "locked"))
        store.save_mastery = AsyncMock(side_effect=StateStoreError("save_mastery", "locked"))

        resolution = await engine.resolve_show(punk_context, _base())

        assert len(resolution.discoveries) == 4
        assert engine.discovery.has_pending_writes
        assert engine.discovery.is_discovered("punk_unity")


class TestEvents:
    async def test_discovery_and_trigger_events(self, engine, collect, punk_context):
        discovered = collect(GameEventType.SYNERGY_DISCOVERED)
        triggered = collect(GameEventType.SYNERGY_TRIGGERED)

        await engine.resolve_show(punk_context, _base())
        await engine.resolve_show(punk_context, _base())

        assert len(discovered) == 4
        assert len(triggered) == 8
        assert discovered[0].profile_id == "tester"
        assert discovered[0].data["reward_currency"] == "fame"

    async def test_chain_event_only_for_linked_chains(self, engine, collect, punk_context):
        chains = collect(GameEventType.CHAIN_REACTION)
        await engine.resolve_show(punk_context, _base())

        assert len(chains) == 1
        assert chains[0].data["synergy_ids"] == ["punk_in_basement", "diy_ethos"]
        assert chains[0].data["interrupted"] is False

    async def test_level_up_events(self, engine, collect, context_factory):
        level_ups = collect(GameEventType.MASTERY_LEVEL_UP)
        unlocks = collect(GameEventType.ENHANCEMENT_UNLOCKED)
        context = context_factory(genres={"METAL"})

        for _ in range(5):
            await engine.resolve_show(context, _base())

        assert [e.data["new_level"] for e in level_ups] == [1]
        assert [e.data["enhancement_id"] for e in unlocks] == ["metal_brotherhood_1"]

    async def test_failing_subscriber_does_not_abort_show(self, engine, event_bus, punk_context):
        async def broken(event):
            raise RuntimeError("subscriber down")

        event_bus.subscribe(GameEventType.SYNERGY_DISCOVERED, broken)
        resolution = await engine.resolve_show(punk_context, _base())
        assert len(resolution.discoveries) == 4
