"""
C#-specific type mappings.
"""

from ...core.annotate import TypeMapper
from ...core.normalize import base_type_name
from ...core.schema import Column, TypeCategory

CSHARP_TYPE_MAP = {
    TypeCategory.STRING: "string",
    TypeCategory.SMALL_INTEGER: "short",
    TypeCategory.INTEGER: "int",
    TypeCategory.BIG_INTEGER: "long",
    TypeCategory.FLOAT: "double",
    TypeCategory.DECIMAL: "decimal",
    TypeCategory.BOOLEAN: "bool",
    TypeCategory.DATE: "DateTime",
    TypeCategory.TIME: "TimeSpan",
    TypeCategory.DATETIME: "DateTime",
    TypeCategory.GUID: "Guid",
    TypeCategory.BINARY: "byte[]",
}

# Native types with a more precise C# counterpart than their category
CSHARP_NATIVE_OVERRIDES = {
    "tinyint": "byte",
    "real": "float",
    "float4": "float",
    "datetimeoffset": "DateTimeOffset",
    "timestamptz": "DateTimeOffset",
    "timestamp with time zone": "DateTimeOffset",
}

# Reference types never take a nullable marker
CSHARP_REFERENCE_TYPES = {"string", "byte[]", "object"}

DEFAULT_USING_NAMESPACES = ["System", "System.Collections.Generic", "ServiceStack.DataAnnotations"]


class CSharpTypeMapper(TypeMapper):
    """Column to C# type; nullable value types get a trailing "?"."""

    def map_column(self, column: Column) -> str:
        base = CSHARP_NATIVE_OVERRIDES.get(
            base_type_name(column.native_type), CSHARP_TYPE_MAP[column.type_category]
        )
        if column.is_nullable and base not in CSHARP_REFERENCE_TYPES:
            return f"{base}?"
        return base

    def unknown_type(self, column: Column) -> str:
        return f"object /* DbDataType: {column.native_type} */"


def sort_usings(namespaces) -> list:
    """System namespaces first, then alphabetical, without duplicates."""
    unique = set(namespaces)
    return sorted(unique, key=lambda u: (not u.startswith("System"), u))
