"""
Per-match event notifications.

Each GameState owns one EventBus. Handlers are fire-and-forget: the core
never reads anything back from them, and a handler that raises is logged
and skipped so it cannot break a turn.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, Dict, List

logger = logging.getLogger(__name__)

TURN_SWITCHED = "turn_switched"
UNIT_MOVED = "unit_moved"
ATTACK_EXECUTED = "attack_executed"
GAME_ENDED = "game_ended"

Handler = Callable[[Dict[str, Any]], None]


class EventBus:
    def __init__(self) -> None:
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, event: str, handler: Handler) -> None:
        self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: Handler) -> None:
        if handler in self._handlers[event]:
            self._handlers[event].remove(handler)

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        for handler in list(self._handlers[event]):
            try:
                handler(payload)
            except Exception:
                logger.exception("Handler for %s failed", event)
