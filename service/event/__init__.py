from service.event.event_bus import EventBus, GameEvent, GameEventType

__all__ = ["EventBus", "GameEvent", "GameEventType"]
