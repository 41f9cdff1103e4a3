"""
이벤트 버스 (Event Bus)

옵저버 패턴을 사용하여 시너지 엔진의 이벤트를 발행하고 구독합니다.
엔진은 이벤트를 발행하기만 하면 되고, 구독자(연출, 재화 장부, 업적 등)가 처리합니다.
"""

import logging
from datetime import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Any

logger = logging.getLogger(__name__)


class GameEventType(Enum):
    """게임 이벤트 타입"""

    # 시너지 이벤트
    SYNERGY_DISCOVERED = "synergy_discovered"   # 시너지 최초 발견
    SYNERGY_TRIGGERED = "synergy_triggered"     # 시너지 발동 (최초 포함)

    # 체인 이벤트
    CHAIN_REACTION = "chain_reaction"           # 2링크 이상 연쇄 반응

    # 숙련도 이벤트
    MASTERY_LEVEL_UP = "mastery_level_up"       # 숙련도 레벨업
    ENHANCEMENT_UNLOCKED = "enhancement_unlocked"  # 숙련도 강화 해금

    # 업적 이벤트
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"  # 숙련도 업적 달성


@dataclass
class GameEvent:
    """게임 이벤트"""

    type: GameEventType
    profile_id: str
    data: Dict[str, Any]
    timestamp: datetime = field(default_factory=datetime.now)

    def __repr__(self) -> str:
        return f"GameEvent(type={self.type.value}, profile_id={self.profile_id}, data={self.data})"


class EventBus:
    """
    이벤트 버스

    엔진 인스턴스마다 하나씩 생성하여 주입합니다.
    발행자(Publisher)는 이벤트를 발행하고, 구독자(Subscriber)는 이벤트를 수신합니다.

    Example:
        >>> event_bus = EventBus()
        >>>
        >>> # 구독
        >>> async def on_discovered(event: GameEvent):
        ...     print(f"Discovered: {event.data['synergy_id']}")
        >>>
        >>> event_bus.subscribe(GameEventType.SYNERGY_DISCOVERED, on_discovered)
        >>>
        >>> # 발행
        >>> await event_bus.publish(GameEvent(
        ...     type=GameEventType.SYNERGY_DISCOVERED,
        ...     profile_id="default",
        ...     data={"synergy_id": "punk_in_basement"}
        ... ))
    """

    def __init__(self):
        self._subscribers: Dict[GameEventType, List[Callable]] = {}

    def subscribe(self, event_type: GameEventType, callback: Callable) -> None:
        """
        이벤트 구독

        Args:
            event_type: 구독할 이벤트 타입
            callback: 이벤트 발생 시 호출할 콜백 함수 (async function)
        """
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []

        if callback not in self._subscribers[event_type]:
            self._subscribers[event_type].append(callback)
            logger.debug(f"Subscribed to {event_type.value}: {callback.__name__}")

    def unsubscribe(self, event_type: GameEventType, callback: Callable) -> None:
        """
        구독 취소

        Args:
            event_type: 구독 취소할 이벤트 타입
            callback: 구독 취소할 콜백 함수
        """
        callbacks = self._subscribers.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)
            logger.debug(f"Unsubscribed from {event_type.value}: {callback.__name__}")

    async def publish(self, event: GameEvent) -> None:
        """
        이벤트 발행

        구독자들에게 이벤트를 전파합니다.
        각 구독자의 콜백이 순차적으로 호출되며, 에러가 발생해도 다른 구독자에게 영향을 주지 않습니다.

        Args:
            event: 발행할 이벤트
        """
        if event.type not in self._subscribers:
            logger.debug(f"No subscribers for event: {event.type.value}")
            return

        logger.debug(f"Publishing event: {event}")

        for callback in list(self._subscribers[event.type]):
            try:
                await callback(event)
            except Exception as e:
                logger.error(
                    f"Error in event callback {callback.__name__} for {event.type.value}: {e}",
                    exc_info=True
                )

    def get_subscriber_count(self, event_type: GameEventType) -> int:
        """
        특정 이벤트 타입의 구독자 수 반환

        Args:
            event_type: 이벤트 타입

        Returns:
            구독자 수
        """
        return len(self._subscribers.get(event_type, []))

    def clear_all_subscribers(self) -> None:
        """모든 구독자 제거"""
        self._subscribers.clear()
        logger.info("All subscribers cleared")
