"""Tests for include/exclude filtering."""

from schema_explorer.codegen.core.filters import (
    ConfigurationFilter,
    FilterChain,
    FilterStrategy,
    matches_any,
)
from schema_explorer.codegen.core.normalize import normalize
from schema_explorer.codegen.core.raw import RawDatabase


def table_names(raw, schema="dbo"):
    return [t.name for t in raw.get_schema(schema).tables]


class TestMatching:
    def test_exact_and_pattern(self):
        assert matches_any("Orders", ["Orders"])
        assert matches_any("audit_log", ["audit_*"])
        assert not matches_any("Orders", ["orders"])
        assert not matches_any("Orders", [])


class TestConfigurationFilter:
    def test_exclude_wins_over_include(self):
        strategy = ConfigurationFilter(include_schemas=["dbo"], exclude_schemas=["dbo"])
        assert not strategy.include_schema("dbo")

    def test_include_list_is_allow_list(self):
        strategy = ConfigurationFilter(include_tables={"dbo": ["Orders"]})
        assert strategy.include_table("dbo", "Orders")
        assert not strategy.include_table("dbo", "Customers")
        # Other schemas are unaffected
        assert strategy.include_table("sales", "Customers")

    def test_wildcard_schema_key(self):
        strategy = ConfigurationFilter(exclude_tables={"*": ["sysdiagrams"]})
        assert not strategy.include_table("dbo", "sysdiagrams")
        assert not strategy.include_table("sales", "sysdiagrams")

    def test_column_scope(self):
        strategy = ConfigurationFilter(exclude_columns={"dbo": {"Orders": ["Shape"]}})
        assert not strategy.include_column("dbo", "Orders", "Shape")
        assert strategy.include_column("dbo", "Customers", "Shape")


class TestFilterChain:
    """Applying a strategy to a snapshot."""

    def test_default_keeps_everything(self, raw_db):
        filtered = FilterChain(FilterStrategy()).apply(raw_db)
        assert table_names(filtered) == ["Customers", "Orders", "OrderLines"]

    def test_schema_excluded(self, raw_db):
        filtered = FilterChain(ConfigurationFilter(exclude_schemas=["dbo"])).apply(raw_db)
        assert filtered.schemas == []

    def test_original_is_untouched(self, raw_db):
        FilterChain(ConfigurationFilter(exclude_tables={"dbo": ["Orders"]})).apply(raw_db)
        assert table_names(raw_db) == ["Customers", "Orders", "OrderLines"]

    def test_foreign_keys_to_excluded_table_dropped(self, raw_db):
        strategy = ConfigurationFilter(exclude_tables={"dbo": ["Customers"]})
        filtered = FilterChain(strategy).apply(raw_db)
        orders = filtered.get_schema("dbo").tables[0]
        assert orders.name == "Orders"
        assert orders.foreign_keys == []

        db = normalize(filtered)
        assert db.get_table("dbo", "Orders").warnings == ()

    def test_excluded_columns_prune_constraints(self, raw_db):
        strategy = ConfigurationFilter(exclude_columns={"dbo": {"Orders": ["CustomerID"]}})
        filtered = FilterChain(strategy).apply(raw_db)
        orders = filtered.get_schema("dbo").tables[1]

        assert [c.name for c in orders.columns] == ["OrderID", "OrderDate", "Total", "Shape"]
        assert orders.foreign_keys == []
        assert orders.indexes == []

    def test_excluded_referenced_column_drops_foreign_key(self, raw_db):
        strategy = ConfigurationFilter(exclude_columns={"dbo": {"Customers": ["CustomerID"]}})
        filtered = FilterChain(strategy).apply(raw_db)
        customers, orders, _ = filtered.get_schema("dbo").tables

        assert customers.primary_key is None
        assert orders.foreign_keys == []

    def test_missing_target_kept_for_reporting(self, snapshot_data):
        snapshot_data["schemas"][0]["tables"][1]["foreignKeys"].append(
            {"name": "FK_Orders_Stores", "columns": ["Shape"], "referencedTable": "Stores"}
        )
        filtered = FilterChain(FilterStrategy()).apply(RawDatabase.from_dict(snapshot_data))
        orders = filtered.get_schema("dbo").tables[1]
        assert [fk.name for fk in orders.foreign_keys] == ["FK_Orders_Customers", "FK_Orders_Stores"]

    def test_views_filtered_like_tables(self, raw_db):
        strategy = ConfigurationFilter(
            exclude_columns={"dbo": {"CustomerTotals": ["Total"]}},
        )
        filtered = FilterChain(strategy).apply(raw_db)
        view = filtered.get_schema("dbo").views[0]
        assert [c.name for c in view.columns] == ["CustomerID"]

        filtered = FilterChain(ConfigurationFilter(exclude_tables={"dbo": ["Customer*"]})).apply(raw_db)
        assert filtered.get_schema("dbo").views == []
        assert table_names(filtered) == ["Orders", "OrderLines"]
