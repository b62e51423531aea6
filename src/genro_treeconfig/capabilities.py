# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Typed capability lookup.

A capability is an optional facet an object exposes beyond its base
contract, looked up by type: ``source.get_capability(Locator)``.
"""

from __future__ import annotations

from typing import Any, TypeVar

T = TypeVar('T')


class CapabilityRegistry:
    """Mixin providing a type-keyed capability map."""

    def __init__(self) -> None:
        self._capabilities: dict[type, Any] = {}

    def add_capability(self, cls: type[T], instance: T) -> None:
        """Register instance as the capability for cls.

        Raises:
            TypeError: If instance is not an instance of cls.
        """
        if not isinstance(instance, cls):
            raise TypeError(
                f"Capability must be an instance of {cls.__name__}, "
                f"not {type(instance).__name__}"
            )
        self._capabilities[cls] = instance

    def get_capability(self, cls: type[T]) -> T | None:
        """Return the capability registered for cls, or None.

        An exact registration wins; otherwise the first registered instance
        of a subclass of cls is returned.
        """
        capabilities = self._capabilities
        if cls in capabilities:
            return capabilities[cls]
        for instance in capabilities.values():
            if isinstance(instance, cls):
                return instance
        return None
