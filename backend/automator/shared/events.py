"""In-process event bus.

Handlers are stored in memory and awaited in subscription order.
A failing handler is logged and never stops the others, nor the emitter.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List

logger = logging.getLogger(__name__)

EventHandler = Callable[..., Awaitable[None]]


class EventBus:
    """
    Fire-and-forget event dispatcher.

    Example:
        >>> bus = EventBus()
        >>> bus.subscribe("activity.processed", on_processed)
        >>> await bus.emit("activity.processed", user, activity)
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = {}

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        """Subscribe a handler to an event name."""
        self._handlers.setdefault(event_name, []).append(handler)
        logger.debug(f"Handler {handler.__name__} subscribed to {event_name}")

    async def emit(self, event_name: str, *args: Any) -> None:
        """Call every handler subscribed to the event."""
        for handler in self._handlers.get(event_name, []):
            try:
                await handler(*args)
            except Exception as e:
                logger.error(
                    f"Event handler {handler.__name__} failed for {event_name}: {e}",
                    exc_info=True,
                )
