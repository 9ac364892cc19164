"""Tests for relationship resolution and model annotation."""

import pytest

from schema_explorer.codegen.core.annotate import ModelAnnotator
from schema_explorer.codegen.core.naming import NamingResolver
from schema_explorer.codegen.core.normalize import normalize
from schema_explorer.codegen.core.raw import RawDatabase
from schema_explorer.codegen.core.relationships import (
    NavigationKind,
    RelationshipResolver,
    RelationshipStrategy,
)
from schema_explorer.codegen.core.strategies import MappingOverrideStrategy, OverrideStrategy
from schema_explorer.codegen.languages.python.config import PythonTypeMapper


def annotate(raw, relationships=None, overrides=None, naming=None):
    naming = naming or NamingResolver()
    annotator = ModelAnnotator(
        naming=naming,
        relationships=RelationshipResolver(naming, relationships),
        overrides=overrides,
        type_mapper=PythonTypeMapper(),
    )
    return annotator.annotate(normalize(raw))


class TestRelationshipStrategy:
    @pytest.mark.parametrize(
        "name,expected",
        [("CustomerId", "Customer"), ("ParentID", "Parent"), ("Parent", "Parent_"), ("Id", "Id_")],
    )
    def test_reference_names(self, name, expected):
        assert RelationshipStrategy().foreign_key_reference_name(name) == expected


class TestNavigations:
    """References and collections between entities."""

    def test_entities_in_table_order(self, raw_db):
        model = annotate(raw_db)
        assert [e.class_name for e in model.entities] == ["Customer", "OrderLine", "Order"]

    def test_reference_navigation(self, raw_db):
        order = annotate(raw_db).get_entity("dbo", "Orders")
        assert len(order.references) == 1
        ref = order.references[0]
        assert ref.name == "Customer"
        assert ref.kind == NavigationKind.REFERENCE
        assert ref.target_class == "Customer"
        assert ref.via_column == "CustomerID"
        assert not ref.is_collection

    def test_collection_navigation(self, raw_db):
        model = annotate(raw_db)
        customer = model.get_entity("dbo", "Customers")
        assert [c.name for c in customer.collections] == ["Orders"]
        assert customer.collections[0].target_class == "Order"
        assert customer.collections[0].is_collection

        order = model.get_entity("dbo", "Orders")
        assert [c.name for c in order.collections] == ["OrderLines"]

    def test_primary_key_column_has_no_reference(self, raw_db):
        line = annotate(raw_db).get_entity("dbo", "OrderLines")
        assert line.references == ()

    def test_foreign_key_target_on_property(self, raw_db):
        order = annotate(raw_db).get_entity("dbo", "Orders")
        prop = next(p for p in order.properties if p.column_name == "CustomerID")
        assert prop.foreign_key_target == "Customer"
        assert prop.association.name == "FK_Orders_Customers"

    def test_reference_name_collision(self, snapshot_data):
        orders = snapshot_data["schemas"][0]["tables"][1]
        orders["columns"].append(
            {"name": "Customer", "dataType": "nvarchar(50)", "ordinal": 6}
        )
        order = annotate(RawDatabase.from_dict(snapshot_data)).get_entity("dbo", "Orders")
        assert order.references[0].name == "Customer_"

    def test_strategy_can_drop_collections(self, raw_db):
        class NoCollections(RelationshipStrategy):
            def include_collection_reference(self, schema, table, child_schema, child_table):
                return False

        model = annotate(raw_db, relationships=NoCollections())
        assert all(e.collections == () for e in model.entities)
        assert model.get_entity("dbo", "Orders").references

    def test_cross_schema_has_no_navigations(self, snapshot_data):
        snapshot_data["schemas"].append(
            {
                "name": "sales",
                "tables": [
                    {
                        "name": "Invoices",
                        "columns": [
                            {"name": "InvoiceID", "dataType": "int", "ordinal": 1, "nullable": False},
                            {"name": "CustomerID", "dataType": "int", "ordinal": 2, "nullable": False},
                        ],
                        "primaryKey": ["InvoiceID"],
                        "foreignKeys": [
                            {
                                "name": "FK_Invoices_Customers",
                                "columns": ["CustomerID"],
                                "referencedSchema": "dbo",
                                "referencedTable": "Customers",
                            }
                        ],
                    }
                ],
            }
        )
        model = annotate(RawDatabase.from_dict(snapshot_data))
        invoice = model.get_entity("sales", "Invoices")
        customer = model.get_entity("dbo", "Customers")

        assert invoice.references == ()
        assert [c.name for c in customer.collections] == ["Orders"]
        assert model.database.find_association("FK_Invoices_Customers").is_cross_schema
        prop = next(p for p in invoice.properties if p.column_name == "CustomerID")
        assert prop.foreign_key_target == "Customer"


@pytest.fixture
def two_customer_tables(snapshot_data):
    """dbo.Customers plus a sales.Customers table referenced by sales.Invoices."""
    snapshot_data["schemas"].append(
        {
            "name": "sales",
            "tables": [
                {
                    "name": "Customers",
                    "columns": [
                        {"name": "CustomerID", "dataType": "int", "ordinal": 1, "nullable": False},
                    ],
                    "primaryKey": ["CustomerID"],
                },
                {
                    "name": "Invoices",
                    "columns": [
                        {"name": "InvoiceID", "dataType": "int", "ordinal": 1, "nullable": False},
                        {"name": "CustomerID", "dataType": "int", "ordinal": 2, "nullable": False},
                    ],
                    "primaryKey": ["InvoiceID"],
                    "foreignKeys": [
                        {
                            "name": "FK_Invoices_Customers",
                            "columns": ["CustomerID"],
                            "referencedTable": "Customers",
                        }
                    ],
                },
            ],
        }
    )
    return RawDatabase.from_dict(snapshot_data)


class TestClassNames:
    """Class names are unique across schemas."""

    def test_same_table_in_two_schemas(self, two_customer_tables):
        model = annotate(two_customer_tables)
        names = [e.class_name for e in model.entities]
        assert len(names) == len(set(names))
        assert model.get_entity("dbo", "Customers").class_name == "Customer"
        assert model.get_entity("sales", "Customers").class_name == "Customer_1"

    def test_renamed_class_carries_warning(self, two_customer_tables):
        model = annotate(two_customer_tables)
        renamed = model.get_entity("sales", "Customers")
        assert any("renamed to 'Customer_1'" in w for w in renamed.warnings)
        assert not any("Class name" in w for w in model.get_entity("dbo", "Customers").warnings)

    def test_navigations_use_renamed_class(self, two_customer_tables):
        model = annotate(two_customer_tables)
        invoice = model.get_entity("sales", "Invoices")
        assert invoice.references[0].target_class == "Customer_1"
        prop = next(p for p in invoice.properties if p.column_name == "CustomerID")
        assert prop.foreign_key_target == "Customer_1"

        customer = model.get_entity("sales", "Customers")
        assert [c.target_class for c in customer.collections] == ["Invoice"]
        assert model.get_entity("dbo", "Orders").references[0].target_class == "Customer"

    def test_renamed_class_gets_alias(self, two_customer_tables):
        entity = annotate(two_customer_tables).get_entity("sales", "Customers")
        assert entity.needs_alias


class TestProperties:
    def test_property_names_and_types(self, raw_db):
        order = annotate(raw_db).get_entity("dbo", "Orders")
        names = {p.column_name: (p.name, p.type_name) for p in order.properties}
        assert names["OrderID"] == ("OrderId", "int")
        assert names["Total"] == ("Total", "Decimal | None")
        assert names["Shape"] == ("Shape", "Any")

    def test_unknown_type_flagged(self, raw_db):
        order = annotate(raw_db).get_entity("dbo", "Orders")
        shape = next(p for p in order.properties if p.column_name == "Shape")
        assert shape.is_unknown_type
        assert shape.warnings == ("unrecognized native type 'geography'",)

    def test_property_collision_renamed(self, snapshot_data):
        orders = snapshot_data["schemas"][0]["tables"][1]
        orders["columns"].append({"name": "Order Date", "dataType": "date", "ordinal": 6})
        order = annotate(RawDatabase.from_dict(snapshot_data)).get_entity("dbo", "Orders")

        names = [p.name for p in order.properties]
        assert names.count("OrderDate") == 1
        assert "OrderDate_1" in names
        renamed = next(p for p in order.properties if p.name == "OrderDate_1")
        assert renamed.column_name == "Order Date"
        assert any("OrderDate_1" in w for w in order.warnings)

    def test_mapping_overrides(self, raw_db):
        overrides = MappingOverrideStrategy(
            class_code={"*": "# generated"},
            base_types={"dbo.Orders": "BaseEntity"},
            property_types={"Orders": {"Total": "Money"}},
            default_values={"Orders": {"Total": "Money(0)"}},
            property_code={"Orders": {"Total": "# money column"}},
        )
        order = annotate(raw_db, overrides=overrides).get_entity("dbo", "Orders")
        total = next(p for p in order.properties if p.column_name == "Total")

        assert order.base_type == "BaseEntity"
        assert order.code_before == "# generated"
        assert total.type_name == "Money"
        assert total.default_value == "Money(0)"
        assert total.code_before == "# money column"

    def test_failing_hook_marks_property(self, raw_db):
        class Broken(OverrideStrategy):
            def property_type(self, schema, table, column, type_name):
                if column == "Total":
                    raise ValueError("boom")
                return type_name

        order = annotate(raw_db, overrides=Broken()).get_entity("dbo", "Orders")
        total = next(p for p in order.properties if p.column_name == "Total")
        assert total.error == "unable to process column Total: boom"
        # Other columns are unaffected
        assert all(p.error is None for p in order.properties if p.column_name != "Total")
