from collections import defaultdict
from typing import Any, Callable, Dict, List, Type

from .events import Event

Handler = Callable[[Any], None]


class MessageBus:
    """
    In-process, synchronous event dispatch. Subscribing to the base `Event`
    type receives every event; any other type matches exactly.
    """

    def __init__(self):
        self._subscribers: Dict[Type[Event], List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: Type[Event], handler: Handler):
        self._subscribers[event_type].append(handler)

    def unsubscribe(self, event_type: Type[Event], handler: Handler):
        handlers = self._subscribers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def publish(self, event: Event):
        exact = self._subscribers.get(type(event), []) if type(event) is not Event else []
        for handler in list(exact) + list(self._subscribers.get(Event, [])):
            handler(event)
