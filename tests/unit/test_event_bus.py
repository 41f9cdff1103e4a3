"""
이벤트 버스 테스트
"""
import pytest

from service.event import EventBus, GameEvent, GameEventType


def _event(event_type=GameEventType.SYNERGY_DISCOVERED, **data) -> GameEvent:
    return GameEvent(type=event_type, profile_id="default", data=data)


@pytest.fixture
def bus():
    return EventBus()


class TestSubscribe:
    async def test_publish_reaches_subscriber(self, bus):
        received = []

        async def on_event(event):
            received.append(event)

        bus.subscribe(GameEventType.SYNERGY_DISCOVERED, on_event)
        await bus.publish(_event(synergy_id="punk_unity"))

        assert len(received) == 1
        assert received[0].data == {"synergy_id": "punk_unity"}

    async def test_other_event_types_not_delivered(self, bus):
        received = []

        async def on_event(event):
            received.append(event)

        bus.subscribe(GameEventType.CHAIN_REACTION, on_event)
        await bus.publish(_event())
        assert received == []

    def test_duplicate_subscription_ignored(self, bus):
        async def on_event(event):
            pass

        bus.subscribe(GameEventType.SYNERGY_TRIGGERED, on_event)
        bus.subscribe(GameEventType.SYNERGY_TRIGGERED, on_event)
        assert bus.get_subscriber_count(GameEventType.SYNERGY_TRIGGERED) == 1

    def test_unsubscribe(self, bus):
        async def on_event(event):
            pass

        bus.subscribe(GameEventType.SYNERGY_TRIGGERED, on_event)
        bus.unsubscribe(GameEventType.SYNERGY_TRIGGERED, on_event)
        assert bus.get_subscriber_count(GameEventType.SYNERGY_TRIGGERED) == 0

    def test_clear_all(self, bus):
        async def on_event(event):
            pass

        bus.subscribe(GameEventType.SYNERGY_TRIGGERED, on_event)
        bus.subscribe(GameEventType.MASTERY_LEVEL_UP, on_event)
        bus.clear_all_subscribers()
        assert bus.get_subscriber_count(GameEventType.MASTERY_LEVEL_UP) == 0


class TestIsolation:
    async def test_failing_subscriber_does_not_block_others(self, bus, caplog):
        """한 구독자의 에러가 다른 구독자에게 영향을 주지 않음"""
        received = []

        async def broken(event):
            raise RuntimeError("boom")

        async def healthy(event):
            received.append(event)

        bus.subscribe(GameEventType.SYNERGY_DISCOVERED, broken)
        bus.subscribe(GameEventType.SYNERGY_DISCOVERED, healthy)
        await bus.publish(_event())

        assert len(received) == 1
        assert "boom" in caplog.text

    def test_buses_are_independent(self):
        async def on_event(event):
            pass

        first, second = EventBus(), EventBus()
        first.subscribe(GameEventType.SYNERGY_DISCOVERED, on_event)
        assert second.get_subscriber_count(GameEventType.SYNERGY_DISCOVERED) == 0
