# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""TreeConfig exceptions."""

from __future__ import annotations


class TreeConfigError(Exception):
    """Base exception for TreeConfig errors."""

    pass


class ExpressionError(TreeConfigError):
    """Raised when an expression engine cannot parse or evaluate a key."""

    pass


class MissingKeyError(TreeConfigError, KeyError):
    """Raised when reading an undefined key with throw_on_missing enabled."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Key '{self.key}' does not map to an existing value"
