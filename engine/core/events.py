"""
Typed event bus for decoupled communication.

Uses Enums for event types to prevent magic strings. The rules engine
announces what happened (level-ups, unlocks, quest transitions) and the
surrounding game loop decides what to show.

Usage:
    # Define events
    class ProgressionEvent(Enum):
        LEVEL_UP = auto()
        PROFESSION_CHOSEN = auto()

    # Subscribe
    event_bus.subscribe(ProgressionEvent.LEVEL_UP, on_level_up)

    # Publish
    event_bus.publish(ProgressionEvent.LEVEL_UP, level=6, previous_level=5)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
from weakref import WeakMethod, ref

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """
    Event data container.

    Attributes:
        type: The event type (Enum member)
        data: Dictionary of event-specific data
        consumed: Whether the event has been handled
    """
    type: Enum
    data: dict[str, Any] = field(default_factory=dict)
    consumed: bool = False

    def consume(self) -> None:
        """Mark event as consumed (stops propagation)."""
        self.consumed = True

    def get(self, key: str, default: Any = None) -> Any:
        """Get event data by key."""
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]


EventHandler = Callable[[Event], None]


@dataclass(eq=False)
class _Subscription:
    priority: int
    handler_ref: Any
    one_shot: bool
    weak: bool

    def resolve(self) -> EventHandler | None:
        if self.weak:
            return self.handler_ref()
        return self.handler_ref


class EventBus:
    """
    Central event bus for publish/subscribe messaging.

    Features:
    - Typed events (Enum-based)
    - Priority ordering (stable for equal priorities)
    - Weak references (auto-cleanup when handlers are deleted)
    - One-shot handlers
    - Event consumption (stops propagation)
    - Re-entrant publishing is queued, so handlers see events in order
    """

    def __init__(self):
        self._subscriptions: dict[Enum, list[_Subscription]] = {}
        self._event_queue: list[Event] = []
        self._is_publishing = False

    def subscribe(
        self,
        event_type: Enum,
        handler: EventHandler,
        priority: int = 0,
        one_shot: bool = False,
        weak: bool = True,
    ) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: The event type to listen for
            handler: Callback function(event: Event)
            priority: Higher priority handlers are called first (default 0)
            one_shot: If True, handler is removed after first call
            weak: If True, hold only a weak reference to the handler
        """
        if weak:
            handler_ref = WeakMethod(handler) if hasattr(handler, '__self__') else ref(handler)
        else:
            handler_ref = handler

        subscriptions = self._subscriptions.setdefault(event_type, [])
        entry = _Subscription(priority, handler_ref, one_shot, weak)

        # After every handler of the same or higher priority
        index = len(subscriptions)
        for i, existing in enumerate(subscriptions):
            if priority > existing.priority:
                index = i
                break
        subscriptions.insert(index, entry)

    def unsubscribe(self, event_type: Enum, handler: EventHandler) -> None:
        """Remove a handler from an event type."""
        subscriptions = self._subscriptions.get(event_type)
        if not subscriptions:
            return
        self._subscriptions[event_type] = [
            s for s in subscriptions if s.resolve() != handler
        ]

    def publish(self, event_type: Enum, **data: Any) -> Event:
        """
        Publish an event.

        Args:
            event_type: The event type
            **data: Event data as keyword arguments

        Returns:
            The Event object (check .consumed to see if it was handled)
        """
        event = Event(type=event_type, data=data)
        self.publish_event(event)
        return event

    def publish_event(self, event: Event) -> None:
        """Publish a pre-created event."""
        if self._is_publishing:
            self._event_queue.append(event)
            return

        self._dispatch(event)
        while self._event_queue:
            self._dispatch(self._event_queue.pop(0))

    def has_subscribers(self, event_type: Enum) -> bool:
        return bool(self._subscriptions.get(event_type))

    def clear(self, event_type: Enum | None = None) -> None:
        """
        Clear handlers.

        Args:
            event_type: If given, only clear handlers for this type
        """
        if event_type is None:
            self._subscriptions.clear()
        else:
            self._subscriptions.pop(event_type, None)

    def _dispatch(self, event: Event) -> None:
        subscriptions = self._subscriptions.get(event.type)
        if not subscriptions:
            return

        self._is_publishing = True
        finished: list[_Subscription] = []
        try:
            for subscription in list(subscriptions):
                handler = subscription.resolve()
                if handler is None:
                    # Weak reference was garbage collected
                    finished.append(subscription)
                    continue

                try:
                    handler(event)
                except Exception:
                    logger.exception("Error in event handler for %s", event.type)

                if subscription.one_shot:
                    finished.append(subscription)

                if event.consumed:
                    break
        finally:
            self._is_publishing = False

        if finished:
            # Handlers may have (un)subscribed during dispatch
            live = self._subscriptions.get(event.type, [])
            self._subscriptions[event.type] = [
                s for s in live if s not in finished
            ]
