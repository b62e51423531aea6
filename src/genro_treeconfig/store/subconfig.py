# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""SubConfiguration - a live view on a subtree of a TreeConfiguration.

A SubConfiguration is rooted at one node of its parent's tree. It stores no
data: every operation composes the view's key (the path from the parent's
root to the view's node) with the local key and forwards the result to the
parent, so changes made through the view and through the parent are
visible to each other.

Key Resolution:
    The key is derived on first use and cached. Whenever the parent's
    structure changed since the last check (or its expression engine was
    replaced), the key is evaluated again before the next operation. If it
    still selects exactly the view's node it is kept. If it selects no node,
    several nodes or another node, or if the engine fails on it, the view
    detaches. A view is never moved to a different key because its
    siblings changed.

    Assigning a local expression engine only changes the dialect of the
    key: the key is rewritten for the new engine, it is not re-checked
    with it.

Detachment:
    A detached view copies the subtree it was rooted at into a private
    configuration and serves every later operation from that copy. Changes
    never propagate to the parent again, and the view never re-attaches.
    subnode_key is None from then on; this is the only way to observe
    detachment.

Example:
    >>> users = config.configuration_at('tables.table(1)')
    >>> users.get('name')
    'users'
    >>> config.clear_tree('tables.table(1)')
    >>> users.get('name')  # served from the private copy
    'users'
    >>> users.subnode_key is None
    True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator

from ..expression import ExpressionEngine
from ..settings import ConfigOptions, InheritedSetting, check_engine, check_list_delimiter
from .core import MISSING, TreeConfiguration

logger = logging.getLogger(__name__)


@dataclass
class _Attached:
    """View tracking a node of its parent through a key."""

    key: str | None
    node: Any
    engine: ExpressionEngine
    local: ExpressionEngine | None = None
    version: int | None = None


@dataclass(frozen=True)
class _Detached:
    """View serving a private copy of its former subtree."""

    config: TreeConfiguration


class SubConfiguration:
    """A live view rooted at an interior node of a TreeConfiguration.

    The four settings are inherited from the parent configuration and read
    live until assigned on the view; a local assignment never changes the
    parent. Assigning None to expression_engine makes it inherited again.

    Attributes:
        throw_on_missing: If True, get() raises for undefined keys.
        delimiter_parsing_disabled: If True, values are never split.
        list_delimiter: Character splitting string values into lists.
        expression_engine: Engine interpreting the view's keys.
    """

    throw_on_missing = InheritedSetting(bool)
    delimiter_parsing_disabled = InheritedSetting(bool)
    list_delimiter = InheritedSetting(check_list_delimiter)
    expression_engine = InheritedSetting(check_engine, resettable=True)

    def __init__(
        self,
        parent: TreeConfiguration,
        root_node: Any,
        subnode_key: str | None = None,
        expression_engine: ExpressionEngine | None = None,
    ) -> None:
        """Initialize a SubConfiguration.

        Args:
            parent: The configuration owning the tree.
            root_node: The node the view is rooted at.
            subnode_key: Key selecting root_node, if already known. It is
                derived on first use otherwise.
            expression_engine: Optional local engine. subnode_key must then
                be written for this engine.

        Raises:
            ValueError: If parent or root_node is None.
        """
        if parent is None:
            raise ValueError("Parent configuration must not be None")
        if root_node is None:
            raise ValueError("Root node must not be None")
        self._parent = parent
        self._overrides: dict[str, Any] = {}
        if expression_engine is not None:
            self.expression_engine = expression_engine
        self._state: _Attached | _Detached = _Attached(
            subnode_key,
            root_node,
            expression_engine or parent.expression_engine,
            local=expression_engine,
        )

    def __repr__(self) -> str:
        state = self._state
        if isinstance(state, _Detached):
            return "SubConfiguration(detached)"
        return f"SubConfiguration(subnode_key={state.key!r})"

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[str]:
        return self.iter_keys()

    def __contains__(self, key: str) -> bool:
        return self.contains_key(key)

    def __getitem__(self, key: str) -> Any:
        config, full_key, opts = self._forward(key)
        values = config._values(full_key, opts)
        if not values:
            raise KeyError(key)
        return values[0]

    def __setitem__(self, key: str, value: Any) -> None:
        self.set_property(key, value)

    # ==================== State ====================

    @property
    def parent(self) -> TreeConfiguration:
        """The root configuration this view was created on."""
        return self._parent

    @property
    def subnode_key(self) -> str | None:
        """The key selecting this view's node in the parent, None if detached."""
        state = self._resolve()
        if isinstance(state, _Detached):
            return None
        return state.key

    @property
    def root_node(self) -> Any:
        """The node this view is rooted at (the private copy once detached)."""
        state = self._resolve()
        if isinstance(state, _Detached):
            return state.config.root_node
        return state.node

    def _inherit_from(self) -> TreeConfiguration:
        state = self._state
        if isinstance(state, _Detached):
            return state.config
        return self._parent

    def _resolve(self) -> _Attached | _Detached:
        """Bring the state up to date with the parent and return it."""
        state = self._state
        if isinstance(state, _Detached):
            return state

        parent = self._parent
        version = parent.structure_version
        engine = self.expression_engine
        local = self._overrides.get('expression_engine')
        if (
            state.key is not None
            and state.version == version
            and state.engine is engine
            and state.local is local
        ):
            return state

        # A new local engine only changes the dialect of the key: the key
        # is checked with the engine it was written for, then rewritten.
        translate = local is not state.local
        check_engine = state.engine if translate else engine

        handler = parent.node_handler
        root = parent.root_node
        try:
            if state.key is None:
                state.key = engine.unique_key(root, state.node, handler)
                logger.debug("Derived sub configuration key %r", state.key)
            else:
                if state.version != version or check_engine is not state.engine:
                    results = check_engine.query(root, state.key, handler)
                    if not (
                        len(results) == 1
                        and not results[0].is_attribute
                        and results[0].node is state.node
                    ):
                        return self._detach(
                            state, f"key selects {len(results)} node(s)"
                        )
                if translate:
                    key = engine.unique_key(root, state.node, handler)
                    logger.debug("Sub configuration key %r rewritten as %r", state.key, key)
                    state.key = key
        except Exception as exc:
            return self._detach(state, f"{type(exc).__name__}: {exc}")

        state.version = version
        state.engine = engine
        state.local = local
        return state

    def _detach(self, state: _Attached, reason: str) -> _Detached:
        parent = self._parent
        handler = parent.node_handler
        private = TreeConfiguration(
            root=handler.copy(state.node),
            expression_engine=state.engine,
            list_delimiter=self.list_delimiter,
            delimiter_parsing_disabled=self.delimiter_parsing_disabled,
            throw_on_missing=self.throw_on_missing,
            handler=handler,
        )
        logger.info("Sub configuration at %r detached: %s", state.key, reason)
        detached = _Detached(private)
        self._state = detached
        return detached

    def _options(self) -> ConfigOptions:
        return ConfigOptions(
            self.expression_engine,
            self.list_delimiter,
            self.delimiter_parsing_disabled,
            self.throw_on_missing,
        )

    def _forward(self, key: str | None) -> tuple[TreeConfiguration, str, ConfigOptions]:
        """Return the target configuration, the full key and the options."""
        state = self._resolve()
        if isinstance(state, _Detached):
            config, base = state.config, None
        else:
            config, base = self._parent, state.key
        opts = self._options()
        return config, opts.engine.compose_key(base, key), opts

    # ==================== Keyed Operations ====================

    def get_property(self, key: str | None = None) -> Any:
        """Get the raw value of key: None, one value or a list of values."""
        config, full_key, opts = self._forward(key)
        return config._get_property(full_key, opts)

    def get(self, key: str | None = None, default: Any = MISSING) -> Any:
        """Get the first value of key.

        Raises:
            MissingKeyError: If key is undefined, no default is given and
                throw_on_missing is in effect for this view.
        """
        config, full_key, opts = self._forward(key)
        return config._get(full_key, default, opts)

    def get_list(self, key: str | None = None) -> list[Any]:
        config, full_key, opts = self._forward(key)
        return config._values(full_key, opts)

    def set_property(self, key: str | None, value: Any) -> None:
        """Replace the values of key. An empty key targets the view's node."""
        config, full_key, opts = self._forward(key)
        config._set_property(full_key, value, opts)

    def add_property(self, key: str, value: Any) -> None:
        config, full_key, opts = self._forward(key)
        config._add_property(full_key, value, opts)

    def clear_property(self, key: str | None) -> None:
        config, full_key, opts = self._forward(key)
        config._clear_property(full_key, opts)

    def clear_tree(self, key: str | None) -> None:
        """Remove the selected subtrees. An empty key removes the view's node."""
        config, full_key, opts = self._forward(key)
        config._clear_tree(full_key, opts)

    def clear(self) -> None:
        """Remove the content of the view's node; the node itself stays."""
        config, full_key, opts = self._forward(None)
        config._clear(full_key, opts)

    def contains_key(self, key: str | None) -> bool:
        config, full_key, opts = self._forward(key)
        return config._contains_key(full_key, opts)

    def iter_keys(self, prefix: str | None = None) -> Iterator[str]:
        """Yield the distinct defined keys of the view, relative to it."""
        config, full_key, opts = self._forward(prefix)
        for relative in config._iter_relative_keys(full_key, opts):
            yield opts.engine.compose_key(prefix, relative)

    def keys(self, prefix: str | None = None) -> list[str]:
        return list(self.iter_keys(prefix))

    def size(self) -> int:
        config, full_key, opts = self._forward(None)
        return config._size(full_key, opts)

    def value_count(self, key: str | None) -> int:
        config, full_key, opts = self._forward(key)
        return len(config._values(full_key, opts))

    def is_empty(self) -> bool:
        config, full_key, opts = self._forward(None)
        return config._is_empty(full_key, opts)

    def configuration_at(self, key: str) -> SubConfiguration:
        """Return a view on a node below this one.

        The new view's parent is the root configuration, never this view.
        A locally overridden expression engine is passed on.

        Raises:
            ValueError: If key does not select exactly one node.
        """
        config, full_key, opts = self._forward(key)
        local = opts.engine if type(self).expression_engine.is_overridden(self) else None
        return config._configuration_at(full_key, opts, local)

    def get_capability(self, cls: type) -> None:
        """Views expose no capabilities, whatever their parent provides."""
        return None
