"""Pytest configuration and fixtures for schema-explorer tests."""

import copy
from datetime import datetime, timezone

import pytest

from schema_explorer.codegen.core.config import GeneratorSettings
from schema_explorer.codegen.core.raw import RawDatabase


# Markers for test categorization
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that touch a real database or the file system end to end"
    )


SHOP_SNAPSHOT = {
    "dialect": "sqlserver",
    "provider": "System.Data.SqlClient",
    "schemas": [
        {
            "name": "dbo",
            "tables": [
                {
                    "name": "Customers",
                    "description": "People who place orders",
                    "columns": [
                        {"name": "CustomerID", "dataType": "int", "ordinal": 1, "nullable": False, "isIdentity": True},
                        {"name": "Name", "dataType": "nvarchar(100)", "ordinal": 2, "nullable": False, "length": 100},
                        {"name": "Email", "dataType": "nvarchar(200)", "ordinal": 3, "nullable": True, "length": 200},
                    ],
                    "primaryKey": {"name": "PK_Customers", "columns": ["CustomerID"]},
                    "uniqueKeys": [{"name": "UQ_Customers_Email", "columns": ["Email"]}],
                },
                {
                    "name": "Orders",
                    "columns": [
                        {"name": "OrderID", "dataType": "int", "ordinal": 1, "nullable": False, "isIdentity": True},
                        {"name": "CustomerID", "dataType": "int", "ordinal": 2, "nullable": False},
                        {"name": "OrderDate", "dataType": "datetime2", "ordinal": 3, "nullable": False},
                        {"name": "Total", "dataType": "decimal(18,2)", "ordinal": 4, "nullable": True, "precision": 18, "scale": 2},
                        {"name": "Shape", "dataType": "geography", "ordinal": 5, "nullable": True},
                    ],
                    "primaryKey": ["OrderID"],
                    "foreignKeys": [
                        {
                            "name": "FK_Orders_Customers",
                            "columns": ["CustomerID"],
                            "referencedTable": "Customers",
                            "referencedColumns": ["CustomerID"],
                            "deleteRule": "CASCADE",
                            "updateRule": "NO ACTION",
                        }
                    ],
                    "indexes": [
                        {"name": "IX_Orders_Customer_Date", "columns": ["CustomerID", "OrderDate"], "unique": False}
                    ],
                },
                {
                    "name": "OrderLines",
                    "columns": [
                        {"name": "OrderID", "dataType": "int", "ordinal": 1, "nullable": False},
                        {"name": "LineNo", "dataType": "smallint", "ordinal": 2, "nullable": False},
                        {"name": "Quantity", "dataType": "int", "ordinal": 3, "nullable": False},
                    ],
                    "primaryKey": {"name": "PK_OrderLines", "columns": ["OrderID", "LineNo"]},
                    "foreignKeys": [
                        {
                            "name": "FK_OrderLines_Orders",
                            "columns": ["OrderID"],
                            "referencedTable": "Orders",
                            "referencedColumns": ["OrderID"],
                        }
                    ],
                },
            ],
            "views": [
                {
                    "name": "CustomerTotals",
                    "columns": [
                        {"name": "CustomerID", "dataType": "int", "ordinal": 1},
                        {"name": "Total", "dataType": "money", "ordinal": 2},
                    ],
                    "sql": "SELECT CustomerID, SUM(Total) AS Total FROM Orders GROUP BY CustomerID",
                }
            ],
            "procedures": [
                {
                    "name": "GetCustomerOrders",
                    "arguments": [
                        {"name": "@CustomerID", "dataType": "int", "ordinal": 1},
                        {"name": "@Count", "dataType": "int", "ordinal": 2, "direction": "out"},
                    ],
                }
            ],
        }
    ],
}


@pytest.fixture
def snapshot_data():
    """A fresh copy of the shop snapshot document."""
    return copy.deepcopy(SHOP_SNAPSHOT)


@pytest.fixture
def raw_db(snapshot_data):
    return RawDatabase.from_dict(snapshot_data)


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2024, 1, 31, 13, 45, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings(tmp_path):
    """Settings writing into a temporary directory, without timestamps."""
    return GeneratorSettings(output=str(tmp_path / "out"), emit_timestamp=False)
