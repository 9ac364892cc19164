"""Tests for strategy objects and hooks files."""

import pytest

from schema_explorer.codegen.core.config import ConfigurationError, GeneratorSettings
from schema_explorer.codegen.core.filters import ConfigurationFilter
from schema_explorer.codegen.core.naming import InflectPluralizer
from schema_explorer.codegen.core.strategies import (
    MappingOverrideStrategy,
    OverrideStrategy,
    Strategies,
    load_hooks_module,
)
from schema_explorer.codegen.pipeline import generate

HOOKS = '''
from schema_explorer.codegen.core.naming import InflectPluralizer
from schema_explorer.codegen.core.strategies import OverrideStrategy


class AuditedOverrides(OverrideStrategy):
    def base_type(self, schema, table):
        return "AuditedEntity"


overrides = AuditedOverrides()
pluralizer = InflectPluralizer({"octopus": "octopodes"})
'''


class TestMappingOverrides:
    def test_lookup_order(self):
        overrides = MappingOverrideStrategy(
            base_types={"*": "Entity", "dbo.Orders": "OrderBase"},
            property_types={"Orders": {"Total": "Money"}},
            default_values={"*": {"Quantity": "1"}},
        )
        assert overrides.base_type("dbo", "Orders") == "OrderBase"
        assert overrides.base_type("dbo", "Customers") == "Entity"
        assert overrides.property_type("dbo", "Orders", "Total", "Decimal") == "Money"
        assert overrides.property_type("dbo", "Orders", "OrderID", "int") == "int"
        assert overrides.default_value("dbo", "OrderLines", "Quantity", "int") == "1"
        assert overrides.code_before_property("dbo", "Orders", "Total") is None

    def test_base_strategy_is_a_no_op(self):
        overrides = OverrideStrategy()
        assert overrides.base_type("dbo", "Orders") is None
        assert overrides.property_type("dbo", "Orders", "Total", "Decimal") == "Decimal"


class TestStrategies:
    def test_from_settings(self):
        settings = GeneratorSettings(
            irregular_plurals={"cactus": "cacti"}, exclude_schemas=["audit"]
        )
        strategies = Strategies.from_settings(settings)
        assert isinstance(strategies.filters, ConfigurationFilter)
        assert strategies.filters.exclude_schemas == ["audit"]
        assert strategies.pluralizer.pluralize("cactus") == "cacti"

    def test_hooks_file(self, tmp_path, settings, raw_db):
        path = tmp_path / "hooks.py"
        path.write_text(HOOKS, encoding="utf-8")

        strategies = Strategies.from_settings(settings).with_hooks_file(path)
        assert isinstance(strategies.pluralizer, InflectPluralizer)
        assert strategies.pluralizer.pluralize("octopus") == "octopodes"

        content = generate(settings, raw_db, strategies)[0].content
        assert "class Customer(AuditedEntity):" in content

    def test_hooks_file_keeps_other_strategies(self, tmp_path, settings):
        path = tmp_path / "hooks.py"
        path.write_text(HOOKS, encoding="utf-8")
        base = Strategies.from_settings(settings)
        assert base.with_hooks_file(path).filters is base.filters

    def test_wrong_hook_type(self, tmp_path):
        path = tmp_path / "hooks.py"
        path.write_text("filters = 'nothing'\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="filters"):
            Strategies().with_hooks_file(path)

    def test_missing_hooks_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_hooks_module(tmp_path / "absent.py")

    def test_broken_hooks_file(self, tmp_path):
        path = tmp_path / "hooks.py"
        path.write_text("raise RuntimeError('nope')\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Failed to execute"):
            load_hooks_module(path)
