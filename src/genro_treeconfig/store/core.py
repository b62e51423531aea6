# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""TreeConfiguration - a hierarchical configuration backed by a node tree.

This module provides the TreeConfiguration class, the root of a
configuration hierarchy. It owns the node tree, the expression engine that
interprets keys, and the global settings. Live views on parts of the tree
are obtained with configuration_at().

Key Features:
    - **Key-based access**: every operation takes a key interpreted by the
      replaceable expression engine
    - **Multi-valued keys**: a key may select several nodes
    - **List splitting**: string values are split at the list delimiter
    - **Change events**: before/after events around every mutation
    - **Sub-configurations**: live views rooted at an interior node

Example:
    Basic usage::

        config = TreeConfiguration()
        config.add_property('tables.table(-1).name', 'documents')
        config.add_property('tables.table(-1).name', 'users')

        config.get('tables.table(1).name')     # 'users'
        config.get_list('tables.table.name')   # ['documents', 'users']

        users = config.configuration_at('tables.table(1)')
        users.get('name')                      # 'users'

Thread safety:
    None of the classes lock. A configuration shared between threads, and
    any view on it, must be synchronized by the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, TYPE_CHECKING

from ..capabilities import CapabilityRegistry
from ..events import ListenerRegistry, SourceEventType, SourceListener
from ..exceptions import MissingKeyError
from ..expression import DefaultExpressionEngine, ExpressionEngine, QueryResult
from ..handler import ConfigNodeHandler, NodeHandler
from ..node import ConfigNode
from ..settings import ConfigOptions, check_engine, check_list_delimiter

if TYPE_CHECKING:
    from .subconfig import SubConfiguration

logger = logging.getLogger(__name__)

MISSING: Any = object()


def split_values(value: Any, delimiter: str, disabled: bool = False) -> list[Any]:
    """Split a value into the list of values it stands for.

    Strings are split at every delimiter not preceded by a backslash and
    each part is stripped. Lists and tuples are flattened. Any other value
    is returned as a single-element list.

    Args:
        value: The value to split.
        delimiter: The list delimiter character.
        disabled: If True, strings are kept whole.

    Example:
        >>> split_values('a, b\\\\,c', ',')
        ['a', 'b,c']
    """
    if isinstance(value, (list, tuple)):
        result: list[Any] = []
        for item in value:
            result.extend(split_values(item, delimiter, disabled))
        return result
    if not isinstance(value, str) or disabled:
        return [value]

    parts: list[str] = []
    buf: list[str] = []
    pos = 0
    while pos < len(value):
        char = value[pos]
        if char == '\\' and value.startswith(delimiter, pos + 1):
            buf.append(delimiter)
            pos += 2
            continue
        if char == delimiter:
            parts.append(''.join(buf).strip())
            buf = []
        else:
            buf.append(char)
        pos += 1
    parts.append(''.join(buf).strip())
    return parts


class TreeConfiguration(CapabilityRegistry):
    """A hierarchical configuration owning a tree of ConfigNode.

    TreeConfiguration provides:
    - get_property / get / get_list / config[key]: Read values
    - set_property / add_property: Write values
    - clear_property / clear_tree / clear: Remove values or subtrees
    - keys / contains_key / size / value_count / is_empty: Inspect
    - configuration_at(key): Live SubConfiguration on one node

    Attributes:
        list_delimiter: Character splitting string values into lists.
        delimiter_parsing_disabled: If True, string values are never split.
        throw_on_missing: If True, get() raises MissingKeyError for
            undefined keys instead of returning None.
    """

    def __init__(
        self,
        root: ConfigNode | None = None,
        expression_engine: ExpressionEngine | None = None,
        list_delimiter: str = ',',
        delimiter_parsing_disabled: bool = False,
        throw_on_missing: bool = False,
        handler: NodeHandler | None = None,
    ) -> None:
        """Initialize a TreeConfiguration.

        Args:
            root: Optional root node; a new empty root is created if None.
                It must not have a parent.
            expression_engine: Engine interpreting keys. Defaults to a
                DefaultExpressionEngine.
            list_delimiter: Character splitting string values into lists.
            delimiter_parsing_disabled: If True, never split values.
            throw_on_missing: If True, reading undefined keys raises.
            handler: NodeHandler for the tree. Defaults to ConfigNodeHandler.

        Raises:
            ValueError: If root has a parent or list_delimiter is invalid.
        """
        super().__init__()
        if root is not None and root.parent is not None:
            raise ValueError(f"Root node '{root.name}' must not have a parent")
        self._root = root if root is not None else ConfigNode('')
        self._handler = handler or ConfigNodeHandler()
        self._engine: ExpressionEngine = (
            check_engine(expression_engine)
            if expression_engine is not None
            else DefaultExpressionEngine()
        )
        self._list_delimiter = check_list_delimiter(list_delimiter)
        self.delimiter_parsing_disabled = bool(delimiter_parsing_disabled)
        self.throw_on_missing = bool(throw_on_missing)
        self._listeners = ListenerRegistry()
        self._version = 0

    def __repr__(self) -> str:
        return f"TreeConfiguration({self.keys()})"

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[str]:
        return self.iter_keys()

    def __contains__(self, key: str) -> bool:
        return self.contains_key(key)

    def __getitem__(self, key: str) -> Any:
        """Get the first value of key.

        Raises:
            KeyError: If key is undefined.
        """
        values = self._values(key, self._options())
        if not values:
            raise KeyError(key)
        return values[0]

    def __setitem__(self, key: str, value: Any) -> None:
        self.set_property(key, value)

    # ==================== Settings ====================

    @property
    def root_node(self) -> ConfigNode:
        """The root node of the tree."""
        return self._root

    @property
    def node_handler(self) -> NodeHandler:
        return self._handler

    @property
    def expression_engine(self) -> ExpressionEngine:
        """The engine interpreting keys.

        Assigning None restores a DefaultExpressionEngine. Views that
        inherit the engine re-resolve their keys against the new one.
        """
        return self._engine

    @expression_engine.setter
    def expression_engine(self, engine: ExpressionEngine | None) -> None:
        self._engine = check_engine(engine) if engine is not None else DefaultExpressionEngine()
        self._changed()

    @property
    def list_delimiter(self) -> str:
        return self._list_delimiter

    @list_delimiter.setter
    def list_delimiter(self, value: str) -> None:
        self._list_delimiter = check_list_delimiter(value)

    @property
    def structure_version(self) -> int:
        """Counter increased by every change of the tree or of the engine."""
        return self._version

    def _options(self) -> ConfigOptions:
        return ConfigOptions(
            self._engine,
            self._list_delimiter,
            self.delimiter_parsing_disabled,
            self.throw_on_missing,
        )

    def _changed(self) -> None:
        self._version += 1

    # ==================== Listeners ====================

    def add_listener(self, listener: SourceListener) -> None:
        """Register a listener for change events of this configuration.

        Raises:
            ValueError: If listener is None.
        """
        self._listeners.add(listener)

    def remove_listener(self, listener: SourceListener | None) -> bool:
        """Unregister a listener. Returns True if it was registered."""
        return self._listeners.remove(listener)

    def _fire(
        self, event_type: SourceEventType, key: str | None, value: Any, before: bool
    ) -> None:
        self._listeners.fire_pair(self, event_type, key, value, before)

    # ==================== Public API ====================

    def get_property(self, key: str | None) -> Any:
        """Get the raw value of key.

        Returns:
            None if undefined, the value if key has one value, otherwise
            the list of all values.
        """
        return self._get_property(key, self._options())

    def get(self, key: str | None, default: Any = MISSING) -> Any:
        """Get the first value of key.

        Args:
            key: The key to read.
            default: Returned if key is undefined.

        Raises:
            MissingKeyError: If key is undefined, no default is given and
                throw_on_missing is set.
        """
        return self._get(key, default, self._options())

    def get_list(self, key: str | None) -> list[Any]:
        """Get all values of key (empty list if undefined)."""
        return self._values(key, self._options())

    def set_property(self, key: str | None, value: Any) -> None:
        """Replace the values of key.

        The value is split into a list; the values are assigned to the
        selected nodes in order, remaining values are added and remaining
        nodes are cleared.
        """
        self._set_property(key, value, self._options())

    def add_property(self, key: str, value: Any) -> None:
        """Add value(s) under key, creating the nodes the key needs.

        Raises:
            ExpressionError: If key is empty or not valid for an add.
        """
        self._add_property(key, value, self._options())

    def clear_property(self, key: str | None) -> None:
        """Remove the values of key. Nodes stay, attributes are removed."""
        self._clear_property(key, self._options())

    def clear_tree(self, key: str | None) -> None:
        """Remove the nodes selected by key together with their subtrees."""
        self._clear_tree(key, self._options())

    def clear(self) -> None:
        """Remove all content of this configuration."""
        self._clear(None, self._options())

    def contains_key(self, key: str | None) -> bool:
        """True if key has at least one value."""
        return self._contains_key(key, self._options())

    def iter_keys(self, prefix: str | None = None) -> Iterator[str]:
        """Yield the distinct defined keys, in tree order.

        Args:
            prefix: If given, only keys below the nodes selected by prefix
                (and prefix itself if it has a value) are yielded.
        """
        return self._iter_keys(prefix, self._options())

    def keys(self, prefix: str | None = None) -> list[str]:
        """Return the distinct defined keys, in tree order."""
        return list(self.iter_keys(prefix))

    def size(self) -> int:
        """Return the number of distinct defined keys."""
        return self._size(None, self._options())

    def value_count(self, key: str | None) -> int:
        """Return the number of values stored under key."""
        return len(self._values(key, self._options()))

    def is_empty(self) -> bool:
        """True if no key holds a value."""
        return self._is_empty(None, self._options())

    def configuration_at(self, key: str) -> SubConfiguration:
        """Return a live view rooted at the node selected by key.

        Raises:
            ValueError: If key does not select exactly one node.
        """
        return self._configuration_at(key, self._options())

    # ==================== Keyed Operations ====================
    #
    # The methods below take the effective options explicitly, so that a
    # SubConfiguration can forward composed keys together with its own
    # (possibly overridden) settings.

    def _fetch(self, key: str | None, opts: ConfigOptions) -> list[QueryResult]:
        return opts.engine.query(self._root, key, self._handler)

    def _values(self, key: str | None, opts: ConfigOptions) -> list[Any]:
        values: list[Any] = []
        for result in self._fetch(key, opts):
            values.extend(result.values(self._handler))
        return values

    def _get_property(self, key: str | None, opts: ConfigOptions) -> Any:
        values = self._values(key, opts)
        if not values:
            return None
        return values[0] if len(values) == 1 else values

    def _get(self, key: str | None, default: Any, opts: ConfigOptions) -> Any:
        values = self._values(key, opts)
        if values:
            return values[0]
        if default is not MISSING:
            return default
        if opts.throw_on_missing:
            raise MissingKeyError(key or '')
        return None

    def _split(self, value: Any, opts: ConfigOptions) -> list[Any]:
        return split_values(value, opts.list_delimiter, opts.delimiter_parsing_disabled)

    def _add_value(self, key: str, value: Any, opts: ConfigOptions) -> None:
        handler = self._handler
        data = opts.engine.prepare_add(self._root, key, handler)
        node = data.parent
        for name in data.path_nodes:
            node = handler.add_child(node, name)
        if data.is_attribute:
            handler.add_attribute_value(node, data.new_name, value)
        else:
            child = handler.add_child(node, data.new_name)
            handler.set_value(child, value)

    def _set_property(self, key: str | None, value: Any, opts: ConfigOptions) -> None:
        items = self._split(value, opts)
        results = self._fetch(key, opts)
        if len(items) > len(results):
            # Raises before anything changes if key cannot take new values
            opts.engine.prepare_add(self._root, key or '', self._handler)

        self._fire(SourceEventType.MODIFY_PROPERTY, key, value, True)
        values = iter(items)
        for result in results:
            current = next(values, MISSING)
            if current is MISSING:
                result.clear(self._handler)
            else:
                result.set_value(self._handler, current)
        for remaining in values:
            self._add_value(key or '', remaining, opts)
        self._changed()
        self._fire(SourceEventType.MODIFY_PROPERTY, key, value, False)

    def _add_property(self, key: str, value: Any, opts: ConfigOptions) -> None:
        items = self._split(value, opts)
        if items:
            opts.engine.prepare_add(self._root, key, self._handler)

        self._fire(SourceEventType.ADD_PROPERTY, key, value, True)
        for item in items:
            self._add_value(key, item, opts)
        self._changed()
        self._fire(SourceEventType.ADD_PROPERTY, key, value, False)

    def _clear_property(self, key: str | None, opts: ConfigOptions) -> None:
        self._fire(SourceEventType.CLEAR_PROPERTY, key, None, True)
        for result in self._fetch(key, opts):
            result.clear(self._handler)
        self._changed()
        self._fire(SourceEventType.CLEAR_PROPERTY, key, None, False)

    def _clear_tree(self, key: str | None, opts: ConfigOptions) -> None:
        handler = self._handler
        self._fire(SourceEventType.CLEAR_TREE, key, None, True)
        results = self._fetch(key, opts)
        for result in results:
            if result.is_attribute:
                result.clear(handler)
            elif result.node is self._root:
                handler.remove_content(result.node)
            else:
                parent = handler.parent(result.node)
                if parent is not None:
                    handler.remove_child(parent, result.node)
        logger.debug("clear_tree(%r) removed %d match(es)", key, len(results))
        self._changed()
        self._fire(SourceEventType.CLEAR_TREE, key, None, False)

    def _clear(self, key: str | None, opts: ConfigOptions) -> None:
        self._fire(SourceEventType.CLEAR_SOURCE, None, None, True)
        for result in self._fetch(key, opts):
            if result.is_attribute:
                result.clear(self._handler)
            else:
                self._handler.remove_content(result.node)
        self._changed()
        self._fire(SourceEventType.CLEAR_SOURCE, None, None, False)

    def _contains_key(self, key: str | None, opts: ConfigOptions) -> bool:
        return any(r.values(self._handler) for r in self._fetch(key, opts))

    def _walk_keys(
        self, node: Any, node_key: str, engine: ExpressionEngine
    ) -> Iterator[str]:
        handler = self._handler
        if handler.value(node) is not None:
            yield node_key
        for name in handler.attribute_names(node):
            if handler.attribute_values(node, name):
                yield engine.attribute_key(node_key, name, handler)
        for child in handler.children(node):
            yield from self._walk_keys(
                child, engine.node_key(child, node_key, handler), engine
            )

    def _iter_relative_keys(self, key: str | None, opts: ConfigOptions) -> Iterator[str]:
        """Yield distinct keys relative to the nodes selected by key."""
        seen: set[str] = set()
        for result in self._fetch(key, opts):
            candidates: Iterable[str]
            if result.is_attribute:
                candidates = [''] if result.values(self._handler) else []
            else:
                candidates = self._walk_keys(result.node, '', opts.engine)
            for candidate in candidates:
                if candidate not in seen:
                    seen.add(candidate)
                    yield candidate

    def _iter_keys(self, prefix: str | None, opts: ConfigOptions) -> Iterator[str]:
        for relative in self._iter_relative_keys(prefix, opts):
            yield opts.engine.compose_key(prefix, relative)

    def _size(self, key: str | None, opts: ConfigOptions) -> int:
        return sum(1 for _ in self._iter_relative_keys(key, opts))

    def _is_empty(self, key: str | None, opts: ConfigOptions) -> bool:
        return next(self._iter_relative_keys(key, opts), None) is None

    def _configuration_at(
        self,
        key: str,
        opts: ConfigOptions,
        local_engine: ExpressionEngine | None = None,
    ) -> SubConfiguration:
        from .subconfig import SubConfiguration

        results = self._fetch(key, opts)
        if len(results) != 1 or results[0].is_attribute:
            raise ValueError(
                f"Key '{key}' must select exactly one node, found {len(results)}"
            )
        return SubConfiguration(
            self, results[0].node, subnode_key=key, expression_engine=local_engine
        )
