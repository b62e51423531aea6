# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Flat configuration sources and the event-emitting wrapper.

Available classes:
- FlatConfigurationSource: protocol of key/value sources
- InMemorySource: dict-backed source
- EventWrapper: adds before/after change events to any source

Example:
    >>> from genro_treeconfig.sources import EventWrapper, InMemorySource
    >>> source = EventWrapper(InMemorySource())
    >>> source.add_listener(events.append)
"""

from .base import FlatConfigurationSource, InMemorySource
from .wrapper import EventWrapper

__all__ = [
    'FlatConfigurationSource',
    'InMemorySource',
    'EventWrapper',
]
