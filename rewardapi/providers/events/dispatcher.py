"""
In-process domain event dispatcher.

Ledger services publish events after a balance change commits; subscribers
(notifications) run afterwards and a failing subscriber never reaches the
publisher.
"""

import logging
from collections import defaultdict
from typing import Callable, DefaultDict, List, Type

from pydantic import BaseModel

logger = logging.getLogger(__name__)

Handler = Callable[[BaseModel], None]


class EventDispatcher:
    def __init__(self):
        self._handlers: DefaultDict[Type[BaseModel], List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: Type[BaseModel], handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def handlers_for(self, event_type: Type[BaseModel]) -> List[Handler]:
        return list(self._handlers.get(event_type, []))

    def publish(self, event: BaseModel) -> int:
        """이벤트 발행 - 성공한 핸들러 수 반환 (실패는 로그만 남김)"""
        delivered = 0
        for handler in self.handlers_for(type(event)):
            try:
                handler(event)
                delivered += 1
            except Exception as e:
                logger.warning(
                    f"Event handler {getattr(handler, '__name__', handler)} failed for "
                    f"{type(event).__name__}: {e}"
                )
        return delivered


def create_event_dispatcher(session_factory) -> EventDispatcher:
    """알림 구독자가 연결된 디스패처 생성"""
    from rewardapi.providers.events.domain_events import (
        CoinsChangedEvent,
        CreditsChangedEvent,
        PokemonGrantedEvent,
    )
    from rewardapi.services.notification_service import NotificationSubscriber

    dispatcher = EventDispatcher()
    subscriber = NotificationSubscriber(session_factory)
    dispatcher.subscribe(CoinsChangedEvent, subscriber.on_coins_changed)
    dispatcher.subscribe(PokemonGrantedEvent, subscriber.on_pokemon_granted)
    dispatcher.subscribe(CreditsChangedEvent, subscriber.on_credits_changed)
    return dispatcher
