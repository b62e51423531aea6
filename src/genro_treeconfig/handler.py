# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""NodeHandler - structural access to configuration nodes.

Expression engines and configurations never touch node internals directly;
they go through a NodeHandler, so the same engine works for any node
representation that has a handler.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .node import ConfigNode


class NodeHandler(ABC):
    """Abstract accessor for the structure of a node tree."""

    @abstractmethod
    def name(self, node: Any) -> str:
        """Return the name of a node."""

    @abstractmethod
    def value(self, node: Any) -> Any:
        """Return the value of a node."""

    @abstractmethod
    def set_value(self, node: Any, value: Any) -> None:
        """Set the value of a node."""

    @abstractmethod
    def parent(self, node: Any) -> Any | None:
        """Return the parent of a node, or None."""

    @abstractmethod
    def children(self, node: Any, name: str | None = None) -> list[Any]:
        """Return the children of a node, optionally filtered by name."""

    @abstractmethod
    def add_child(self, parent: Any, name: str) -> Any:
        """Create a new child with the given name and return it."""

    @abstractmethod
    def remove_child(self, parent: Any, child: Any) -> bool:
        """Remove a child. Returns False if it is not a child of parent."""

    @abstractmethod
    def attribute_names(self, node: Any) -> list[str]:
        """Return the names of the attributes of a node."""

    @abstractmethod
    def attribute_values(self, node: Any, name: str) -> list[Any]:
        """Return the values of an attribute (empty list if not set)."""

    @abstractmethod
    def add_attribute_value(self, node: Any, name: str, value: Any) -> None:
        """Add a value to an attribute."""

    @abstractmethod
    def set_attribute_value(self, node: Any, name: str, value: Any) -> None:
        """Replace all values of an attribute with a single value."""

    @abstractmethod
    def remove_attribute(self, node: Any, name: str) -> bool:
        """Remove an attribute. Returns False if it was not set."""

    @abstractmethod
    def remove_content(self, node: Any) -> None:
        """Remove value, attributes and children of a node."""

    @abstractmethod
    def copy(self, node: Any) -> Any:
        """Return a deep copy of the subtree rooted at node, without parent."""

    def is_attached(self, node: Any, root: Any) -> bool:
        """True if root is node or one of its ancestors."""
        current = node
        while current is not None:
            if current is root:
                return True
            current = self.parent(current)
        return False

    def child_count(self, node: Any, name: str | None = None) -> int:
        """Return the number of children, optionally filtered by name."""
        return len(self.children(node, name))

    def index_of(self, node: Any) -> int:
        """Return the position of a node among its same-named siblings.

        Returns -1 for a node without parent.
        """
        parent = self.parent(node)
        if parent is None:
            return -1
        for i, sibling in enumerate(self.children(parent, self.name(node))):
            if sibling is node:
                return i
        return -1

    def is_defined(self, node: Any) -> bool:
        """True if the node or one of its descendants holds data."""
        if self.value(node) is not None or self.attribute_names(node):
            return True
        return any(self.is_defined(c) for c in self.children(node))


class ConfigNodeHandler(NodeHandler):
    """NodeHandler implementation for ConfigNode trees."""

    def name(self, node: ConfigNode) -> str:
        return node.name

    def value(self, node: ConfigNode) -> Any:
        return node.value

    def set_value(self, node: ConfigNode, value: Any) -> None:
        node.value = value

    def parent(self, node: ConfigNode) -> ConfigNode | None:
        return node.parent

    def children(self, node: ConfigNode, name: str | None = None) -> list[ConfigNode]:
        return node.get_children(name)

    def child_count(self, node: ConfigNode, name: str | None = None) -> int:
        return node.child_count(name)

    def add_child(self, parent: ConfigNode, name: str) -> ConfigNode:
        return parent.add_child(ConfigNode(name))

    def remove_child(self, parent: ConfigNode, child: ConfigNode) -> bool:
        return parent.remove_child(child)

    def attribute_names(self, node: ConfigNode) -> list[str]:
        return list(node.attr)

    def attribute_values(self, node: ConfigNode, name: str) -> list[Any]:
        return node.attr_values(name)

    def add_attribute_value(self, node: ConfigNode, name: str, value: Any) -> None:
        node.add_attr(name, value)

    def set_attribute_value(self, node: ConfigNode, name: str, value: Any) -> None:
        node.attr[name] = value

    def remove_attribute(self, node: ConfigNode, name: str) -> bool:
        return node.remove_attr(name)

    def remove_content(self, node: ConfigNode) -> None:
        node.value = None
        node.attr.clear()
        node.remove_children()

    def copy(self, node: ConfigNode) -> ConfigNode:
        return node.copy()

    def is_attached(self, node: ConfigNode, root: ConfigNode) -> bool:
        return node.is_attached_to(root)

    def is_defined(self, node: ConfigNode) -> bool:
        return node.is_defined
