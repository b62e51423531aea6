# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Genro-TreeConfig - Hierarchical configurations with live sub-views.

A lightweight, zero-dependency library providing tree-backed
configurations, live views on their subtrees, and change events for flat
key/value sources, for the Genro ecosystem (Genro Kyō).
"""

__version__ = "0.1.0"

from .capabilities import CapabilityRegistry
from .events import ListenerRegistry, SourceEvent, SourceEventType, SourceListener
from .exceptions import (
    ExpressionError,
    MissingKeyError,
    TreeConfigError,
)
from .expression import (
    DEFAULT_SYMBOLS,
    DefaultExpressionEngine,
    ExpressionEngine,
    ExpressionSymbols,
    NodeAddData,
    QueryResult,
)
from .handler import ConfigNodeHandler, NodeHandler
from .node import ConfigNode
from .settings import ConfigOptions, InheritedSetting
from .sources import EventWrapper, FlatConfigurationSource, InMemorySource
from .store import MISSING, SubConfiguration, TreeConfiguration

__all__ = [
    # Core classes
    "TreeConfiguration",
    "SubConfiguration",
    "ConfigNode",
    "MISSING",
    # Node access
    "NodeHandler",
    "ConfigNodeHandler",
    # Expression engines
    "ExpressionEngine",
    "DefaultExpressionEngine",
    "ExpressionSymbols",
    "DEFAULT_SYMBOLS",
    "QueryResult",
    "NodeAddData",
    # Settings
    "ConfigOptions",
    "InheritedSetting",
    # Flat sources and events
    "FlatConfigurationSource",
    "InMemorySource",
    "EventWrapper",
    "ListenerRegistry",
    "SourceEvent",
    "SourceEventType",
    "SourceListener",
    "CapabilityRegistry",
    # Exceptions
    "TreeConfigError",
    "ExpressionError",
    "MissingKeyError",
]
