# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Tests for SubConfiguration."""

import logging

import pytest

from genro_treeconfig import (
    DefaultExpressionEngine,
    ExpressionError,
    ExpressionSymbols,
    MissingKeyError,
    SourceEventType,
    SubConfiguration,
    TreeConfiguration,
)

TABLE_NAMES = ['documents', 'users']
TABLE_FIELDS = [
    ['docid', 'docname', 'author', 'dateOfCreation', 'version', 'size'],
    ['userid', 'uname', 'firstName', 'lastName'],
]


def make_tables():
    """Build a configuration holding two tables with their fields."""
    config = TreeConfiguration()
    for name, fields in zip(TABLE_NAMES, TABLE_FIELDS):
        config.add_property('tables.table(-1).name', name)
        for field in fields:
            config.add_property('tables.table.fields.field(-1).name', field)
    return config


def table_node(config, index=0):
    return config.root_node.get_child(0).get_children('table')[index]


def slash_engine():
    return DefaultExpressionEngine(
        ExpressionSymbols(property_delimiter='/', escaped_delimiter=None)
    )


class FailingEngine(DefaultExpressionEngine):
    """Engine whose queries always fail."""

    def __init__(self, error=ExpressionError):
        super().__init__()
        self.error = error
        self.queries = []

    def query(self, root, key, handler):
        self.queries.append(key)
        raise self.error("Test exception")


class TestSubConfigurationCreate:
    """Tests for creating sub configurations."""

    def test_init(self):
        """Test a view created on a node."""
        config = make_tables()
        node = table_node(config)
        sub = SubConfiguration(config, node)
        assert sub.parent is config
        assert sub.root_node is node

    def test_init_requires_parent_and_node(self):
        """Test None arguments are rejected."""
        config = make_tables()
        with pytest.raises(ValueError, match="Parent"):
            SubConfiguration(None, table_node(config))
        with pytest.raises(ValueError, match="Root node"):
            SubConfiguration(config, None)

    def test_subnode_key_derived(self):
        """Test the key is derived from the node position."""
        config = make_tables()
        assert SubConfiguration(config, table_node(config, 0)).subnode_key == 'tables.table(0)'
        assert SubConfiguration(config, table_node(config, 1)).subnode_key == 'tables.table(1)'

    def test_configuration_at(self):
        """Test views created from a key keep that key."""
        config = make_tables()
        sub = config.configuration_at('tables.table(1)')
        assert sub.subnode_key == 'tables.table(1)'
        assert sub.root_node is table_node(config, 1)
        assert sub.get('name') == 'users'

    def test_configuration_at_needs_single_node(self):
        """Test keys selecting zero or several nodes are rejected."""
        config = make_tables()
        with pytest.raises(ValueError, match="exactly one node"):
            config.configuration_at('tables.table')
        with pytest.raises(ValueError, match="exactly one node"):
            config.configuration_at('tables.missing')

    def test_nested_configuration_at(self):
        """Test nested views are rooted at the root configuration."""
        config = make_tables()
        sub = config.configuration_at('tables.table(0)')
        fields = sub.configuration_at('fields')
        field = fields.configuration_at('field(1)')
        assert fields.parent is config
        assert field.parent is config
        assert field.subnode_key == 'tables.table(0).fields.field(1)'
        assert field.get('name') == 'docname'

    def test_get_capability(self):
        """Test views expose no capability even if the parent does."""
        config = make_tables()
        config.add_capability(str, 'locator')
        sub = config.configuration_at('tables.table(0)')
        assert config.get_capability(str) == 'locator'
        assert sub.get_capability(str) is None


class TestSubConfigurationAccess:
    """Tests for reading and writing through a view."""

    def test_get(self):
        """Test relative reads."""
        config = make_tables()
        sub = SubConfiguration(config, table_node(config))
        assert sub.get('name') == 'documents'
        assert sub.get_list('fields.field.name') == TABLE_FIELDS[0]
        assert sub.get_property('fields.field(1).name') == 'docname'
        assert sub['fields.field(2).name'] == 'author'

    def test_set_property(self):
        """Test writes through the view reach the parent and back."""
        config = make_tables()
        sub = SubConfiguration(config, table_node(config))
        sub.set_property(None, 'testTable')
        sub.set_property('name', 'documents_tested')
        assert config.get('tables.table(0)') == 'testTable'
        assert config.get('tables.table(0).name') == 'documents_tested'

        config.set_property('tables.table(0).fields.field(1).name', 'testField')
        assert sub.get('fields.field(1).name') == 'testField'

    def test_add_property(self):
        """Test adds through the view, including attributes."""
        config = make_tables()
        sub = SubConfiguration(config, table_node(config))
        sub.add_property('[@table-type]', 'test')
        assert config.get('tables.table(0)[@table-type]') == 'test'

        sub.add_property('fields.field(-1).name', 'newField')
        assert config.get_list('tables.table(0).fields.field.name')[-1] == 'newField'
        assert sub.value_count('fields.field.name') == 7

    def test_changes_in_parent_are_visible(self):
        """Test the view has no private data while attached."""
        config = make_tables()
        sub = config.configuration_at('tables.table(0)')
        config.add_property('tables.table(0).fields.field(-1).name', 'newField')
        assert sub.get_list('fields.field.name')[-1] == 'newField'

    def test_keys(self):
        """Test keys are relative to the view."""
        config = make_tables()
        sub = SubConfiguration(config, table_node(config))
        assert sub.keys() == ['name', 'fields.field.name']
        assert sub.size() == 2
        assert sub.keys('fields') == ['fields.field.name']
        assert list(sub) == sub.keys()

    def test_contains_key(self):
        """Test contains_key through the view."""
        config = make_tables()
        sub = config.configuration_at('tables.table(1)')
        assert sub.contains_key('name') is True
        assert 'fields.field(3).name' in sub
        assert sub.contains_key('fields.field(4).name') is False

    def test_clear_property(self):
        """Test clear_property through the view."""
        config = make_tables()
        sub = config.configuration_at('tables.table(0)')
        sub.clear_property('name')
        assert config.get_list('tables.table.name') == ['users']

    def test_clear(self):
        """Test clear empties the view's node but keeps it."""
        config = make_tables()
        sub = config.configuration_at('tables.table(0)')
        sub.clear()
        assert sub.is_empty() is True
        assert sub.subnode_key == 'tables.table(0)'
        assert config.get_list('tables.table.name') == ['users']
        assert config.value_count('tables.table.fields.field.name') == 4

    def test_events_use_full_keys(self):
        """Test events of view operations carry the composed key."""
        config = make_tables()
        events = []
        config.add_listener(events.append)
        sub = config.configuration_at('tables.table(0)')
        sub.set_property('name', 'docs')
        assert [(e.type, e.property_name) for e in events] == [
            (SourceEventType.MODIFY_PROPERTY, 'tables.table(0).name'),
            (SourceEventType.MODIFY_PROPERTY, 'tables.table(0).name'),
        ]
        assert all(e.source is config for e in events)


class TestSubConfigurationSettings:
    """Tests for inherited and overridden settings."""

    def test_throw_on_missing(self):
        """Test throw_on_missing is inherited and can be overridden."""
        config = make_tables()
        config.throw_on_missing = True
        sub = config.configuration_at('tables.table(0)')
        assert sub.throw_on_missing is True
        with pytest.raises(MissingKeyError):
            sub.get('non existing key')

        sub.throw_on_missing = False
        assert sub.get('non existing key') is None
        assert config.throw_on_missing is True

    def test_settings_are_read_live(self):
        """Test non-overridden settings follow the parent."""
        config = make_tables()
        sub = config.configuration_at('tables.table(0)')
        config.throw_on_missing = True
        config.list_delimiter = ';'
        assert sub.throw_on_missing is True
        assert sub.list_delimiter == ';'

    def test_delimiter_parsing_disabled(self):
        """Test delimiter parsing inheritance."""
        config = make_tables()
        config.delimiter_parsing_disabled = True
        sub = config.configuration_at('tables.table(0)')
        assert sub.delimiter_parsing_disabled is True
        sub.add_property('newProp', 'test1,test2,test3')
        assert config.get('tables.table(0).newProp') == 'test1,test2,test3'

        sub.delimiter_parsing_disabled = False
        sub.add_property('other', 'a,b')
        assert config.get_list('tables.table(0).other') == ['a', 'b']
        assert config.delimiter_parsing_disabled is True

    def test_list_delimiter(self):
        """Test list delimiter inheritance and override."""
        config = make_tables()
        config.list_delimiter = '/'
        sub = config.configuration_at('tables.table(0)')
        assert sub.list_delimiter == '/'
        sub.add_property('newProp', 'test1,test2/test3')
        assert config.get('tables.table(0).newProp') == 'test1,test2'

        sub.list_delimiter = ','
        config.list_delimiter = ';'
        assert sub.list_delimiter == ','
        with pytest.raises(ValueError):
            sub.list_delimiter = ''

    def test_inherited_engine(self):
        """Test the view uses the parent's engine."""
        config = make_tables()
        config.expression_engine = slash_engine()
        sub = SubConfiguration(config, table_node(config))
        assert sub.get('fields/field(1)/name') == 'docname'
        assert sub.keys() == ['name', 'fields/field/name']
        assert sub.subnode_key == 'tables/table(0)'

    def test_override_engine(self):
        """Test a local engine applies to the view only."""
        config = make_tables()
        sub = config.configuration_at('tables.table(0)')
        engine = slash_engine()
        sub.expression_engine = engine
        assert sub.expression_engine is engine
        assert sub.get('fields/field(1)/name') == 'docname'
        assert sub.subnode_key == 'tables/table(0)'
        assert config.get('tables.table(0).fields.field(1).name') == 'docname'
        assert isinstance(config.expression_engine, DefaultExpressionEngine)
        assert config.expression_engine is not engine

    def test_reset_engine(self):
        """Test assigning None makes the engine inherited again."""
        config = make_tables()
        sub = config.configuration_at('tables.table(0)')
        sub.expression_engine = slash_engine()
        sub.expression_engine = None
        assert sub.expression_engine is config.expression_engine
        assert sub.get('fields.field(1).name') == 'docname'
        assert sub.subnode_key == 'tables.table(0)'

    def test_nested_view_gets_engine(self):
        """Test a locally overridden engine is passed to nested views."""
        config = make_tables()
        sub = config.configuration_at('tables.table(0)')
        engine = slash_engine()
        sub.expression_engine = engine
        field = sub.configuration_at('fields/field(2)')
        assert field.expression_engine is engine
        assert field.get('name') == 'author'
        assert field.parent is config


class TestSubConfigurationTracking:
    """Tests for key tracking and detachment."""

    def test_detach_on_sibling_removal(self):
        """Test a key that selects another node detaches the view."""
        config = make_tables()
        sub = config.configuration_at('tables.table(1)')
        config.clear_tree('tables.table(0)')
        assert sub.subnode_key is None
        assert sub.get('name') == 'users'
        assert sub.get_list('fields.field.name') == TABLE_FIELDS[1]

        config.set_property('tables.table.name', 'people')
        assert sub.get('name') == 'users'

    def test_detach_on_ambiguous_key(self):
        """Test a key that selects several nodes detaches the view."""
        config = TreeConfiguration()
        config.add_property('tables.table.name', 'documents')
        sub = config.configuration_at('tables.table')
        assert sub.subnode_key == 'tables.table'
        config.add_property('tables.table(-1).name', 'users')
        assert sub.subnode_key is None
        assert sub.get('name') == 'documents'
        assert sub.keys() == ['name']

    def test_unrelated_changes_keep_view_attached(self):
        """Test changes that leave the key valid do not detach."""
        config = make_tables()
        sub = config.configuration_at('tables.table(0)')
        config.add_property('tables.table(1).fields.field(-1).name', 'email')
        config.clear_tree('tables.table(1).fields.field(0)')
        assert sub.subnode_key == 'tables.table(0)'
        config.set_property('tables.table(0).name', 'docs')
        assert sub.get('name') == 'docs'

    def test_detach_on_clear_tree(self):
        """Test a removed node detaches the view, which keeps its data."""
        config = make_tables()
        sub = config.configuration_at('tables.table(1)')
        assert sub.subnode_key == 'tables.table(1)'
        config.clear_tree('tables.table(1)')

        assert sub.get('name') == 'users'
        assert sub.get_list('fields.field.name') == TABLE_FIELDS[1]
        assert sub.subnode_key is None

    def test_detach_on_ancestor_removed(self):
        """Test removing an ancestor detaches the view."""
        config = make_tables()
        sub = config.configuration_at('tables.table(0)')
        config.clear_tree('tables')
        assert sub.get('name') == 'documents'
        assert sub.subnode_key is None

    def test_detached_changes_do_not_propagate(self):
        """Test a detached view is independent from its former parent."""
        config = make_tables()
        sub = config.configuration_at('tables.table(1)')
        config.clear_tree('tables.table(1)')
        sub.set_property('name', 'changed')
        assert sub.get('name') == 'changed'
        assert config.get_list('tables.table.name') == ['documents']

        config.add_property('tables.table(-1).name', 'users')
        assert sub.subnode_key is None
        assert sub.get('name') == 'changed'

    def test_detach_on_view_clear_tree(self):
        """Test removing the view's own node detaches it."""
        config = make_tables()
        sub = config.configuration_at('tables.table(0)')
        sub.clear_tree(None)
        assert config.get_list('tables.table.name') == ['users']
        assert sub.subnode_key is None
        assert sub.get('name') == 'documents'

    def test_detach_on_engine_failure(self):
        """Test a failing engine detaches the view with its last content."""
        config = make_tables()
        sub = config.configuration_at('tables.table(1)')
        assert sub.subnode_key == 'tables.table(1)'

        engine = FailingEngine()
        config.expression_engine = engine
        assert sub.get('name') == 'users'
        assert sub.subnode_key is None
        assert engine.queries == ['tables.table(1)']

    def test_detach_on_foreign_engine_error(self):
        """Test any exception raised by the engine detaches the view."""
        config = make_tables()
        sub = config.configuration_at('tables.table(1)')
        assert sub.subnode_key == 'tables.table(1)'

        config.expression_engine = FailingEngine(RuntimeError)
        assert sub.get('name') == 'users'
        assert sub.subnode_key is None

    def test_local_engine_does_not_detach(self):
        """Test a local engine rewrites the key instead of checking it."""
        config = make_tables()
        sub = config.configuration_at('tables.table(1)')
        assert sub.subnode_key == 'tables.table(1)'
        sub.expression_engine = slash_engine()
        assert sub.subnode_key == 'tables/table(1)'
        sub.expression_engine = None
        assert sub.subnode_key == 'tables.table(1)'
        assert sub.get('name') == 'users'

    def test_detached_settings(self):
        """Test a detached view keeps the settings in effect when detaching."""
        config = make_tables()
        config.list_delimiter = ';'
        sub = config.configuration_at('tables.table(0)')
        config.clear_tree('tables.table(0)')
        assert sub.subnode_key is None
        config.list_delimiter = ','
        assert sub.list_delimiter == ';'

    def test_detach_is_logged(self, caplog):
        """Test detachment is logged."""
        config = make_tables()
        sub = config.configuration_at('tables.table(1)')
        config.clear_tree('tables.table(1)')
        with caplog.at_level(logging.INFO, logger='genro_treeconfig.store.subconfig'):
            assert sub.subnode_key is None
        assert 'detached' in caplog.text

    def test_nested_view_of_detached_view(self):
        """Test views created on a detached view use its private copy."""
        config = make_tables()
        sub = config.configuration_at('tables.table(0)')
        config.clear_tree('tables.table(0)')
        field = sub.configuration_at('fields.field(1)')
        assert field.get('name') == 'docname'
        assert field.parent is not config
        assert field.subnode_key == 'fields.field(1)'
