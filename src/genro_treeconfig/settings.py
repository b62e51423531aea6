# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Configuration settings and their inheritance by sub-configurations.

A root TreeConfiguration owns four settings: the expression engine, the
list delimiter, the delimiter-parsing-disabled flag and the
throw-on-missing flag. A SubConfiguration reads each of them live from the
configuration it inherits from until the setting is assigned locally; from
then on the local value is used and the parent is left untouched.

Only the expression engine can go back to inheritance, by assigning None.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .expression import ExpressionEngine

_INHERIT = object()


@dataclass(frozen=True)
class ConfigOptions:
    """The effective settings an operation runs with."""

    engine: ExpressionEngine
    list_delimiter: str = ','
    delimiter_parsing_disabled: bool = False
    throw_on_missing: bool = False


def check_list_delimiter(value: Any) -> str:
    """Validate a list delimiter: a single character string.

    Raises:
        ValueError: If value is not a one-character string.
    """
    if not isinstance(value, str) or len(value) != 1:
        raise ValueError(f"List delimiter must be a single character, not {value!r}")
    return value


def check_engine(value: Any) -> ExpressionEngine:
    """Validate an expression engine.

    Raises:
        TypeError: If value is not an ExpressionEngine.
    """
    if not isinstance(value, ExpressionEngine):
        raise TypeError(
            f"Expected an ExpressionEngine, not {type(value).__name__}"
        )
    return value


class InheritedSetting:
    """Descriptor for a setting inherited from a parent configuration.

    The owner class stores local values in an ``_overrides`` dict and
    provides ``_inherit_from()``, returning the object the setting is read
    from while it is not overridden.

    Args:
        check: Optional callable validating (and possibly converting) a
            local value before it is stored.
        resettable: If True, assigning None drops the local value and the
            setting is inherited again.

    Example:
        >>> class View:
        ...     throw_on_missing = InheritedSetting(bool)
    """

    def __init__(
        self,
        check: Callable[[Any], Any] | None = None,
        resettable: bool = False,
    ) -> None:
        self.check = check
        self.resettable = resettable
        self.name = ''

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        local = instance._overrides.get(self.name, _INHERIT)
        if local is not _INHERIT:
            return local
        return getattr(instance._inherit_from(), self.name)

    def __set__(self, instance: Any, value: Any) -> None:
        if value is None and self.resettable:
            instance._overrides.pop(self.name, None)
            return
        if self.check is not None:
            value = self.check(value)
        instance._overrides[self.name] = value

    def is_overridden(self, instance: Any) -> bool:
        """True if instance holds a local value for this setting."""
        return self.name in instance._overrides
