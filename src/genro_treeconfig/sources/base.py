# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Flat configuration sources.

A flat source maps plain string keys to one or more values, without any
hierarchy. FlatConfigurationSource is the protocol every such source
implements; TreeConfiguration satisfies it as well, so anything written
against the protocol also works with hierarchical configurations.
"""

from __future__ import annotations

from typing import Any, Iterable, Protocol, TypeVar, runtime_checkable

from ..capabilities import CapabilityRegistry

T = TypeVar('T')


@runtime_checkable
class FlatConfigurationSource(Protocol):
    """Protocol for key/value configuration sources."""

    def add_property(self, key: str, value: Any) -> None:
        """Add a value to key, keeping the existing values."""
        ...

    def set_property(self, key: str, value: Any) -> None:
        """Replace all values of key."""
        ...

    def clear_property(self, key: str) -> None:
        """Remove key and its values."""
        ...

    def clear(self) -> None:
        """Remove all keys."""
        ...

    def contains_key(self, key: str) -> bool:
        ...

    def get_property(self, key: str) -> Any:
        """Return None, the single value, or the list of values of key."""
        ...

    def keys(self, prefix: str | None = None) -> Iterable[str]:
        """Return all keys, or the keys starting with prefix."""
        ...

    def is_empty(self) -> bool:
        ...

    def size(self) -> int:
        """Return the number of keys."""
        ...

    def value_count(self, key: str) -> int:
        """Return the number of values stored under key."""
        ...

    def get_capability(self, cls: type[T]) -> T | None:
        """Return the capability of type cls, or None."""
        ...


class InMemorySource(CapabilityRegistry):
    """A FlatConfigurationSource keeping its data in a dict.

    Each key holds a list of values; lists and tuples passed as values are
    stored element by element.

    Example:
        >>> source = InMemorySource({'db.host': 'localhost'})
        >>> source.add_property('db.port', 5432)
        >>> source.keys('db')
        ['db.host', 'db.port']
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        """Initialize an InMemorySource.

        Args:
            data: Optional initial key/value pairs.
        """
        super().__init__()
        self._store: dict[str, list[Any]] = {}
        if data:
            for key, value in data.items():
                self.add_property(key, value)

    def __repr__(self) -> str:
        return f"InMemorySource({self.keys()})"

    def __len__(self) -> int:
        return len(self._store)

    @staticmethod
    def _as_list(value: Any) -> list[Any]:
        if isinstance(value, (list, tuple)):
            return list(value)
        return [value]

    def add_property(self, key: str, value: Any) -> None:
        values = self._as_list(value)
        if values:
            self._store.setdefault(key, []).extend(values)

    def set_property(self, key: str, value: Any) -> None:
        """Replace the values of key. None or an empty list removes key."""
        values = [] if value is None else self._as_list(value)
        if values:
            self._store[key] = values
        else:
            self._store.pop(key, None)

    def clear_property(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def contains_key(self, key: str) -> bool:
        return key in self._store

    def get_property(self, key: str) -> Any:
        values = self._store.get(key)
        if not values:
            return None
        return values[0] if len(values) == 1 else list(values)

    def keys(self, prefix: str | None = None) -> list[str]:
        """Return the keys in insertion order.

        Args:
            prefix: If given, only prefix itself and keys starting with
                prefix followed by a dot are returned.
        """
        if prefix is None:
            return list(self._store)
        return [k for k in self._store if k == prefix or k.startswith(f"{prefix}.")]

    def is_empty(self) -> bool:
        return not self._store

    def size(self) -> int:
        return len(self._store)

    def value_count(self, key: str) -> int:
        return len(self._store.get(key, ()))
