# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""ConfigNode - the building block of a configuration tree."""

from __future__ import annotations

import weakref
from typing import Any, Iterator


class ConfigNode:
    """A node in a configuration tree.

    Each node has:
    - name: The node's name (siblings may share a name)
    - value: Optional scalar value
    - attr: Dictionary of attributes; an attribute added more than once
      holds a list of values
    - children: Ordered child nodes, owned by this node
    - parent: Weak reference to the owning node (None for a root)

    Example:
        >>> table = ConfigNode('table')
        >>> table.add_child(ConfigNode('name', 'users'))
        >>> table.get_children('name')[0].value
        'users'
    """

    __slots__ = ('name', 'value', 'attr', '_children', '_parent', '__weakref__')

    def __init__(
        self,
        name: str,
        value: Any = None,
        attr: dict[str, Any] | None = None,
    ) -> None:
        """Initialize a ConfigNode.

        Args:
            name: The node's name.
            value: Optional value of the node.
            attr: Optional dictionary of attributes.
        """
        self.name = name
        self.value = value
        self.attr: dict[str, Any] = dict(attr) if attr else {}
        self._children: list[ConfigNode] = []
        self._parent: weakref.ref[ConfigNode] | None = None

    def __repr__(self) -> str:
        return (
            f"ConfigNode({self.name!r}, value={self.value!r}, "
            f"children={len(self._children)})"
        )

    def __iter__(self) -> Iterator[ConfigNode]:
        """Iterate over child nodes in order."""
        return iter(list(self._children))

    # ==================== Structure ====================

    @property
    def parent(self) -> ConfigNode | None:
        """The owning node, or None for a root or a removed node."""
        if self._parent is None:
            return None
        return self._parent()

    @property
    def children(self) -> tuple[ConfigNode, ...]:
        """Child nodes in order (read-only view)."""
        return tuple(self._children)

    @property
    def is_leaf(self) -> bool:
        """True if this node has no children."""
        return not self._children

    @property
    def is_branch(self) -> bool:
        """True if this node has children."""
        return bool(self._children)

    def add_child(self, child: ConfigNode) -> ConfigNode:
        """Append a child node and return it."""
        return self.insert_child(len(self._children), child)

    def insert_child(self, index: int, child: ConfigNode) -> ConfigNode:
        """Insert a child node at the given position and return it.

        Raises:
            ValueError: If the child already has a parent or the insertion
                would create a cycle.
        """
        if child.parent is not None:
            raise ValueError(f"Node '{child.name}' already has a parent")
        if self.is_attached_to(child):
            raise ValueError(f"Node '{child.name}' is an ancestor of '{self.name}'")
        self._children.insert(index, child)
        child._parent = weakref.ref(self)
        return child

    def remove_child(self, child: ConfigNode) -> bool:
        """Remove a child node. Returns False if it is not a child of this node."""
        for i, current in enumerate(self._children):
            if current is child:
                del self._children[i]
                child._parent = None
                return True
        return False

    def remove_children(self) -> None:
        """Remove all child nodes."""
        for child in self._children:
            child._parent = None
        self._children.clear()

    def get_children(self, name: str | None = None) -> list[ConfigNode]:
        """Return the children, optionally only those with the given name."""
        if name is None:
            return list(self._children)
        return [c for c in self._children if c.name == name]

    def child_count(self, name: str | None = None) -> int:
        """Return the number of children, optionally with the given name."""
        if name is None:
            return len(self._children)
        return sum(1 for c in self._children if c.name == name)

    def get_child(self, index: int) -> ConfigNode:
        """Return the child at the given position.

        Raises:
            IndexError: If index is out of range.
        """
        return self._children[index]

    def index_of(self, child: ConfigNode) -> int:
        """Return the position of a child node, or -1 if not a child."""
        for i, current in enumerate(self._children):
            if current is child:
                return i
        return -1

    def is_attached_to(self, root: ConfigNode) -> bool:
        """True if root is this node or one of its ancestors."""
        node: ConfigNode | None = self
        while node is not None:
            if node is root:
                return True
            node = node.parent
        return False

    # ==================== Attributes ====================

    def get_attr(self, attr: str | None = None, default: Any = None) -> Any:
        """Get attribute value or all attributes.

        Args:
            attr: Attribute name. If None, returns all attributes.
            default: Default value if attribute not found.
        """
        if attr is None:
            return self.attr
        return self.attr.get(attr, default)

    def set_attr(self, _attr: dict[str, Any] | None = None, **kwargs: Any) -> None:
        """Set attributes on the node, replacing existing values."""
        if _attr:
            self.attr.update(_attr)
        self.attr.update(kwargs)

    def add_attr(self, name: str, value: Any) -> None:
        """Add a value to an attribute, turning it into a list if already set."""
        if name not in self.attr:
            self.attr[name] = value
            return
        current = self.attr[name]
        if isinstance(current, list):
            current.append(value)
        else:
            self.attr[name] = [current, value]

    def remove_attr(self, name: str) -> bool:
        """Remove an attribute. Returns False if it was not set."""
        return self.attr.pop(name, _NOT_SET) is not _NOT_SET

    def attr_values(self, name: str) -> list[Any]:
        """Return the values of an attribute as a list (empty if not set)."""
        if name not in self.attr:
            return []
        current = self.attr[name]
        if isinstance(current, list):
            return list(current)
        return [current]

    # ==================== State ====================

    @property
    def is_defined(self) -> bool:
        """True if this node or any descendant holds a value or attribute."""
        if self.value is not None or self.attr:
            return True
        return any(c.is_defined for c in self._children)

    def copy(self) -> ConfigNode:
        """Return a deep copy of this subtree as a new, parentless root."""
        clone = ConfigNode(
            self.name,
            self.value,
            {k: list(v) if isinstance(v, list) else v for k, v in self.attr.items()},
        )
        for child in self._children:
            clone.add_child(child.copy())
        return clone


_NOT_SET = object()
