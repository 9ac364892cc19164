"""
Python-specific type mappings.

Maps canonical column categories onto Python annotations and works out
the imports generated modules need.
"""

import re
from typing import Iterable, Set

from ...core.annotate import TypeMapper
from ...core.schema import Column, TypeCategory


# Python type mappings
PYTHON_TYPE_MAP = {
    TypeCategory.STRING: "str",
    TypeCategory.SMALL_INTEGER: "int",
    TypeCategory.INTEGER: "int",
    TypeCategory.BIG_INTEGER: "int",
    TypeCategory.FLOAT: "float",
    TypeCategory.DECIMAL: "Decimal",
    TypeCategory.BOOLEAN: "bool",
    TypeCategory.DATE: "date",
    TypeCategory.TIME: "time",
    TypeCategory.DATETIME: "datetime",
    TypeCategory.GUID: "UUID",
    TypeCategory.BINARY: "bytes",
    TypeCategory.UNKNOWN: "Any",
}

# Types that require imports
PYTHON_IMPORT_MAP = {
    "Decimal": ("decimal", "Decimal"),
    "date": ("datetime", "date"),
    "time": ("datetime", "time"),
    "datetime": ("datetime", "datetime"),
    "UUID": ("uuid", "UUID"),
    "Any": ("typing", "Any"),
    "ClassVar": ("typing", "ClassVar"),
}


class PythonTypeMapper(TypeMapper):
    """Column to Python annotation; nullable columns become ``T | None``."""

    def map_column(self, column: Column) -> str:
        base = PYTHON_TYPE_MAP.get(column.type_category, "Any")
        if column.is_nullable:
            return f"{base} | None"
        return base

    def unknown_type(self, column: Column) -> str:
        return "Any"


def get_required_imports(type_names: Iterable[str]) -> Set[str]:
    """
    Get import statements for the types used.

    Returns:
        Set of "from x import y" lines, one per module
    """
    by_module = {}
    for type_name in type_names:
        for token in re.findall(r"\b[A-Za-z_][A-Za-z0-9_]*\b", type_name):
            if token in PYTHON_IMPORT_MAP:
                module, name = PYTHON_IMPORT_MAP[token]
                by_module.setdefault(module, set()).add(name)

    return {
        f"from {module} import {', '.join(sorted(names))}"
        for module, names in by_module.items()
    }
