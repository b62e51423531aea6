# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""EventWrapper - adds change events to any flat configuration source.

The wrapper forwards every call to the wrapped source. Around the four
mutating operations it notifies its listeners twice: once before the call
(before_update=True) and once after it (before_update=False), with the same
event type, key and value:

    ============== ================ ============ ==============
    operation      event type       name         value
    ============== ================ ============ ==============
    add_property   ADD_PROPERTY     key          value
    set_property   MODIFY_PROPERTY  key          value
    clear_property CLEAR_PROPERTY   key          None
    clear          CLEAR_SOURCE     None         None
    ============== ================ ============ ==============

If the wrapped source raises, the exception propagates and no after-event
is sent. Every other call, get_capability included, returns exactly what
the wrapped source returns.

Example:
    >>> source = EventWrapper(InMemorySource())
    >>> source.add_listener(lambda event: print(event.type, event.before_update))
    >>> source.add_property('debug', True)
    SourceEventType.ADD_PROPERTY True
    SourceEventType.ADD_PROPERTY False
"""

from __future__ import annotations

from typing import Any, Iterable, TypeVar

from ..events import ListenerRegistry, SourceEventType, SourceListener
from .base import FlatConfigurationSource

T = TypeVar('T')


class EventWrapper:
    """Decorator emitting before/after events for a flat source."""

    __slots__ = ('_wrapped', '_listeners')

    def __init__(self, wrapped: FlatConfigurationSource) -> None:
        """Initialize an EventWrapper.

        Args:
            wrapped: The source to decorate.

        Raises:
            ValueError: If wrapped is None.
        """
        if wrapped is None:
            raise ValueError("Wrapped source must not be None")
        self._wrapped = wrapped
        self._listeners = ListenerRegistry()

    def __repr__(self) -> str:
        return f"EventWrapper({self._wrapped!r})"

    @property
    def wrapped_source(self) -> FlatConfigurationSource:
        return self._wrapped

    # ==================== Listeners ====================

    def add_listener(self, listener: SourceListener) -> None:
        """Register a listener.

        Raises:
            ValueError: If listener is None.
        """
        self._listeners.add(listener)

    def remove_listener(self, listener: SourceListener | None) -> bool:
        """Unregister a listener.

        Returns:
            True if the listener was registered, False otherwise (including
            None).
        """
        return self._listeners.remove(listener)

    @property
    def listeners(self) -> list[SourceListener]:
        """The registered listeners, in notification order."""
        return list(self._listeners)

    def _fire(
        self, event_type: SourceEventType, key: str | None, value: Any, before: bool
    ) -> None:
        self._listeners.fire_pair(self, event_type, key, value, before)

    # ==================== Mutating Operations ====================

    def add_property(self, key: str, value: Any) -> None:
        self._fire(SourceEventType.ADD_PROPERTY, key, value, True)
        self._wrapped.add_property(key, value)
        self._fire(SourceEventType.ADD_PROPERTY, key, value, False)

    def set_property(self, key: str, value: Any) -> None:
        self._fire(SourceEventType.MODIFY_PROPERTY, key, value, True)
        self._wrapped.set_property(key, value)
        self._fire(SourceEventType.MODIFY_PROPERTY, key, value, False)

    def clear_property(self, key: str) -> None:
        self._fire(SourceEventType.CLEAR_PROPERTY, key, None, True)
        self._wrapped.clear_property(key)
        self._fire(SourceEventType.CLEAR_PROPERTY, key, None, False)

    def clear(self) -> None:
        self._fire(SourceEventType.CLEAR_SOURCE, None, None, True)
        self._wrapped.clear()
        self._fire(SourceEventType.CLEAR_SOURCE, None, None, False)

    # ==================== Pass-through Operations ====================

    def contains_key(self, key: str) -> bool:
        return self._wrapped.contains_key(key)

    def get_property(self, key: str) -> Any:
        return self._wrapped.get_property(key)

    def keys(self, prefix: str | None = None) -> Iterable[str]:
        if prefix is None:
            return self._wrapped.keys()
        return self._wrapped.keys(prefix)

    def is_empty(self) -> bool:
        return self._wrapped.is_empty()

    def size(self) -> int:
        return self._wrapped.size()

    def value_count(self, key: str) -> int:
        return self._wrapped.value_count(key)

    def get_capability(self, cls: type[T]) -> T | None:
        return self._wrapped.get_capability(cls)
