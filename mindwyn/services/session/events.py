import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    KEYDOWN = "keydown"
    MOUSEMOVE = "mousemove"
    CLICK = "click"
    WHEEL = "wheel"
    VISIBILITY_CHANGE = "visibilitychange"


@dataclass(frozen=True)
class InteractionEvent:
    type: EventType
    timestamp_ms: float
    delta: Optional[float] = None      # wheel only
    visible: Optional[bool] = None     # visibilitychange only


Listener = Callable[[InteractionEvent], None]


class EventHub:
    """
    Listener registry that fans inbound interaction events out to handlers.
    Dispatch is synchronous, in registration order.
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[Listener]] = defaultdict(list)

    def add_listener(self, event_type: EventType, listener: Listener) -> None:
        self._listeners[event_type].append(listener)

    def remove_listener(self, event_type: EventType, listener: Listener) -> None:
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event_type: Optional[EventType] = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return sum(len(listeners) for listeners in self._listeners.values())

    def dispatch(self, event: InteractionEvent) -> int:
        """Deliver an event to its listeners. Returns how many were called."""
        listeners = list(self._listeners.get(event.type, []))
        for listener in listeners:
            listener(event)
        return len(listeners)
