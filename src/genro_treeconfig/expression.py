# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Expression engines - translate configuration keys into node queries.

An ExpressionEngine knows the key syntax of a configuration. It evaluates
keys against a node tree (query), tells where new data must be added
(prepare_add), builds keys for existing nodes (node_key, attribute_key)
and derives the unique key leading from a root to one of its descendants
(unique_key).

Default Key Syntax:
    - Dotted paths: 'tables.table.name'
    - Indexes: 'tables.table(1).name' (zero-based among same-named siblings)
    - Attributes: 'tables.table(0)[@type]'
    - Escaped delimiter: 'host..name' is the single segment 'host.name'

Example:
    >>> engine = DefaultExpressionEngine()
    >>> results = engine.query(root, 'tables.table(1).name', handler)
    >>> [r.values(handler) for r in results]
    [['users']]

    A different dialect only needs a different symbol set::

        slash = DefaultExpressionEngine(ExpressionSymbols(
            property_delimiter='/', escaped_delimiter=None))
        slash.query(root, 'tables/table(1)/name', handler)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from .exceptions import ExpressionError
from .handler import NodeHandler


@dataclass(frozen=True)
class QueryResult:
    """A single match of a query: a node, or an attribute of a node."""

    node: Any
    attribute_name: str | None = None

    @property
    def is_attribute(self) -> bool:
        return self.attribute_name is not None

    def values(self, handler: NodeHandler) -> list[Any]:
        """Return the values held by this match (empty if undefined)."""
        if self.attribute_name is not None:
            return handler.attribute_values(self.node, self.attribute_name)
        value = handler.value(self.node)
        return [] if value is None else [value]

    def set_value(self, handler: NodeHandler, value: Any) -> None:
        if self.attribute_name is not None:
            handler.set_attribute_value(self.node, self.attribute_name, value)
        else:
            handler.set_value(self.node, value)

    def clear(self, handler: NodeHandler) -> None:
        """Remove the value (attributes are removed entirely)."""
        if self.attribute_name is not None:
            handler.remove_attribute(self.node, self.attribute_name)
        else:
            handler.set_value(self.node, None)


@dataclass(frozen=True)
class NodeAddData:
    """Where and how to add a new value to a tree.

    Attributes:
        parent: Existing node below which the new data goes.
        path_nodes: Names of intermediate nodes to create, outermost first.
        new_name: Name of the new node or attribute.
        is_attribute: True if new_name is an attribute of the last node.
    """

    parent: Any
    path_nodes: tuple[str, ...]
    new_name: str
    is_attribute: bool = False


@dataclass(frozen=True)
class ExpressionSymbols:
    """The tokens that make up a key for DefaultExpressionEngine."""

    property_delimiter: str = '.'
    escaped_delimiter: str | None = '..'
    index_start: str = '('
    index_end: str = ')'
    attribute_start: str = '[@'
    attribute_end: str = ']'


DEFAULT_SYMBOLS = ExpressionSymbols()


@dataclass(frozen=True)
class _KeyPart:
    name: str
    index: int | None = None
    is_attribute: bool = False


class ExpressionEngine(ABC):
    """Abstract base class for key evaluation strategies.

    Engines report keys they cannot handle by raising ExpressionError (or a
    subclass of it). Sub-configurations rely on this: a view whose key can
    no longer be evaluated detaches instead of failing.
    """

    @abstractmethod
    def query(self, root: Any, key: str | None, handler: NodeHandler) -> list[QueryResult]:
        """Return all nodes and attributes selected by key below root.

        An empty or None key selects root itself.

        Raises:
            ExpressionError: If the key cannot be parsed or evaluated.
        """

    @abstractmethod
    def node_key(self, node: Any, parent_key: str | None, handler: NodeHandler) -> str:
        """Return the key of a child node given the key of its parent."""

    @abstractmethod
    def attribute_key(self, parent_key: str | None, name: str, handler: NodeHandler) -> str:
        """Return the key of an attribute given the key of its node."""

    @abstractmethod
    def prepare_add(self, root: Any, key: str, handler: NodeHandler) -> NodeAddData:
        """Compute where a value added under key must be stored.

        Raises:
            ExpressionError: If key is empty or invalid for an add.
        """

    @abstractmethod
    def compose_key(self, base: str | None, key: str | None) -> str:
        """Append a relative key to a base key.

        An empty relative key returns the bare base key.
        """

    @abstractmethod
    def unique_key(self, root: Any, node: Any, handler: NodeHandler) -> str:
        """Return the key selecting exactly node when queried from root.

        Raises:
            ExpressionError: If node is not a descendant of root.
        """


class DefaultExpressionEngine(ExpressionEngine):
    """Expression engine for dotted keys with indexes and attributes.

    All tokens come from an ExpressionSymbols instance, so one class serves
    several key dialects.
    """

    def __init__(self, symbols: ExpressionSymbols = DEFAULT_SYMBOLS) -> None:
        self.symbols = symbols

    def __repr__(self) -> str:
        return f"DefaultExpressionEngine(delimiter={self.symbols.property_delimiter!r})"

    # ==================== Key Parsing ====================

    def _escape(self, name: str) -> str:
        """Escape delimiters contained in a node name."""
        sym = self.symbols
        if sym.escaped_delimiter is None:
            return name
        return name.replace(sym.property_delimiter, sym.escaped_delimiter)

    def _parse_index(self, segment: str) -> tuple[str, int | None]:
        """Split 'name(i)' into ('name', i); plain names get index None."""
        sym = self.symbols
        if not segment.endswith(sym.index_end):
            return segment, None
        start = segment.rfind(sym.index_start)
        if start <= 0:
            return segment, None
        try:
            index = int(segment[start + len(sym.index_start):-len(sym.index_end)])
        except ValueError:
            return segment, None
        return segment[:start], index

    def _split_key(self, key: str) -> list[_KeyPart]:
        """Parse a key into its parts.

        Raises:
            ExpressionError: On an unterminated attribute or empty segment.
        """
        sym = self.symbols
        parts: list[_KeyPart] = []
        pos = 0
        length = len(key)

        while pos < length:
            if key.startswith(sym.attribute_start, pos):
                begin = pos + len(sym.attribute_start)
                end = key.find(sym.attribute_end, begin)
                if end < 0:
                    raise ExpressionError(f"Unterminated attribute in key '{key}'")
                parts.append(_KeyPart(key[begin:end], is_attribute=True))
                pos = end + len(sym.attribute_end)
                if key.startswith(sym.property_delimiter, pos):
                    pos += len(sym.property_delimiter)
                continue

            buf: list[str] = []
            while pos < length:
                if sym.escaped_delimiter and key.startswith(sym.escaped_delimiter, pos):
                    buf.append(sym.property_delimiter)
                    pos += len(sym.escaped_delimiter)
                elif key.startswith(sym.property_delimiter, pos):
                    pos += len(sym.property_delimiter)
                    break
                elif key.startswith(sym.attribute_start, pos):
                    break
                else:
                    buf.append(key[pos])
                    pos += 1

            name, index = self._parse_index(''.join(buf))
            if not name:
                raise ExpressionError(f"Empty segment in key '{key}'")
            parts.append(_KeyPart(name, index))

        return parts

    # ==================== ExpressionEngine API ====================

    def query(self, root: Any, key: str | None, handler: NodeHandler) -> list[QueryResult]:
        if not key:
            return [QueryResult(root)]

        parts = self._split_key(key)
        nodes = [root]
        last = len(parts) - 1

        for pos, part in enumerate(parts):
            if part.is_attribute:
                if pos != last:
                    # Attributes have no children
                    return []
                return [
                    QueryResult(n, part.name)
                    for n in nodes
                    if handler.attribute_values(n, part.name)
                ]

            selected: list[Any] = []
            for node in nodes:
                children = handler.children(node, part.name)
                if part.index is None:
                    selected.extend(children)
                elif 0 <= part.index < len(children):
                    selected.append(children[part.index])
            nodes = selected
            if not nodes:
                return []

        return [QueryResult(n) for n in nodes]

    def node_key(self, node: Any, parent_key: str | None, handler: NodeHandler) -> str:
        return self.compose_key(parent_key, self._escape(handler.name(node)))

    def attribute_key(self, parent_key: str | None, name: str, handler: NodeHandler) -> str:
        sym = self.symbols
        return f"{parent_key or ''}{sym.attribute_start}{name}{sym.attribute_end}"

    def prepare_add(self, root: Any, key: str, handler: NodeHandler) -> NodeAddData:
        if not key:
            raise ExpressionError("Key for add operation must be defined")

        parts = self._split_key(key)
        node = root
        pos = 0

        # Descend as long as existing nodes match; the last part is always new
        while pos < len(parts) - 1:
            part = parts[pos]
            if part.is_attribute:
                raise ExpressionError(
                    f"Invalid key for add operation: '{key}' (attribute in the middle)"
                )
            children = handler.children(node, part.name)
            idx = part.index if part.index is not None else len(children) - 1
            if idx < 0 or idx >= len(children):
                break
            node = children[idx]
            pos += 1

        path: list[str] = []
        for part in parts[pos:-1]:
            if part.is_attribute:
                raise ExpressionError(
                    f"Invalid key for add operation: '{key}' (attribute in the middle)"
                )
            path.append(part.name)

        new = parts[-1]
        return NodeAddData(node, tuple(path), new.name, new.is_attribute)

    def compose_key(self, base: str | None, key: str | None) -> str:
        if not key:
            return base or ''
        if not base:
            return key
        if key.startswith(self.symbols.attribute_start):
            return f"{base}{key}"
        return f"{base}{self.symbols.property_delimiter}{key}"

    def unique_key(self, root: Any, node: Any, handler: NodeHandler) -> str:
        sym = self.symbols
        segments: list[str] = []
        current = node

        while current is not root:
            parent = handler.parent(current)
            if parent is None:
                raise ExpressionError(
                    f"Node '{handler.name(node)}' is not part of the tree"
                )
            name = handler.name(current)
            segment = self._escape(name)
            siblings = handler.children(parent, name)
            if len(siblings) > 1:
                index = next(i for i, s in enumerate(siblings) if s is current)
                segment = f"{segment}{sym.index_start}{index}{sym.index_end}"
            segments.append(segment)
            current = parent

        return sym.property_delimiter.join(reversed(segments))
