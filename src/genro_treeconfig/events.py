# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Change events and listener registration.

Every mutating operation on an event-aware source produces two events:
one with before_update=True right before the change and an identical one
with before_update=False right after it. Listeners are plain callables
receiving a SourceEvent.

Example:
    >>> registry = ListenerRegistry()
    >>> registry.add(print)
    >>> registry.fire(SourceEvent(source, SourceEventType.CLEAR_SOURCE))
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator


class SourceEventType(Enum):
    """The kind of change a SourceEvent reports."""

    ADD_PROPERTY = 'add_property'
    CLEAR_SOURCE = 'clear_source'
    CLEAR_PROPERTY = 'clear_property'
    MODIFY_PROPERTY = 'modify_property'
    CLEAR_TREE = 'clear_tree'


@dataclass(frozen=True)
class SourceEvent:
    """A change notification.

    Attributes:
        source: The object whose content changes.
        type: What kind of change.
        property_name: The affected key, None for CLEAR_SOURCE.
        property_value: The value involved, None for removals.
        before_update: True for the event sent before the change.
        data: Optional extra payload.
    """

    source: Any
    type: SourceEventType
    property_name: str | None = None
    property_value: Any = None
    before_update: bool = True
    data: Any = None


SourceListener = Callable[[SourceEvent], Any]


class ListenerRegistry:
    """Ordered collection of listeners.

    Listeners are notified in registration order. Notification iterates over
    a snapshot, so a listener may add or remove listeners while an event is
    being delivered; the change applies from the next event on.
    """

    __slots__ = ('_listeners',)

    def __init__(self) -> None:
        self._listeners: list[SourceListener] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def __iter__(self) -> Iterator[SourceListener]:
        return iter(list(self._listeners))

    def add(self, listener: SourceListener) -> None:
        """Register a listener.

        Raises:
            ValueError: If listener is None.
        """
        if listener is None:
            raise ValueError("Listener must not be None")
        self._listeners.append(listener)

    def remove(self, listener: SourceListener | None) -> bool:
        """Unregister a listener.

        Returns:
            True if the listener was registered and has been removed.
        """
        if listener is None:
            return False
        for i, current in enumerate(self._listeners):
            if current is listener or current == listener:
                del self._listeners[i]
                return True
        return False

    def fire(self, event: SourceEvent) -> None:
        """Deliver an event to all listeners registered at call time."""
        for listener in list(self._listeners):
            listener(event)

    def fire_pair(
        self,
        source: Any,
        event_type: SourceEventType,
        name: str | None,
        value: Any,
        before: bool,
    ) -> None:
        """Build and deliver one half of a before/after event pair."""
        if not self._listeners:
            return
        self.fire(SourceEvent(source, event_type, name, value, before))
