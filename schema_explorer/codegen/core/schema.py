"""
Canonical database model for code generation.

The NormalizationEngine builds these records once from a raw snapshot.
They are frozen: emitters read them but never change them. Collections
keyed by name are plain dicts; ordered collections are tuples.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


class TypeCategory(Enum):
    """Canonical type families that native database types map onto."""

    STRING = "string"
    SMALL_INTEGER = "small_integer"
    INTEGER = "integer"
    BIG_INTEGER = "big_integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    GUID = "guid"
    BINARY = "binary"
    UNKNOWN = "unknown"


class Cardinality(Enum):
    """How many referencing rows a referenced row may have."""

    ONE = "One"
    ZERO_OR_ONE = "ZeroOrOne"
    MANY = "Many"


@dataclass(frozen=True)
class DataType:
    """Provider descriptor for a native type name."""

    type_name: str
    net_data_type: Optional[str] = None
    create_format: Optional[str] = None
    is_string: bool = False
    is_int: bool = False
    is_numeric: bool = False
    is_float: bool = False
    is_date_time: bool = False
    literal_prefix: Optional[str] = None
    literal_suffix: Optional[str] = None


@dataclass(frozen=True)
class Column:
    """A table or view column."""

    name: str
    ordinal: int
    native_type: str
    type_category: TypeCategory
    table_name: Optional[str] = None
    view_name: Optional[str] = None
    data_type_name: Optional[str] = None
    is_nullable: bool = True
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    date_time_precision: Optional[int] = None
    default_value: Optional[str] = None
    computed_definition: Optional[str] = None
    description: Optional[str] = None
    is_primary_key: bool = False
    is_foreign_key: bool = False
    is_unique: bool = False
    is_part_of_unique_key: bool = False
    is_indexed: bool = False
    is_identity: bool = False
    is_computed: bool = False
    unique_key_name: Optional[str] = None
    foreign_key_name: Optional[str] = None
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PrimaryKey:
    name: Optional[str]
    column_names: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Index:
    name: str
    column_names: Tuple[str, ...]
    is_unique: bool = False


@dataclass(frozen=True)
class Association:
    """A single-column foreign key relationship between two tables."""

    name: str
    schema_name: str
    fk_schema: str
    fk_table: str
    fk_column: str
    pk_schema: str
    pk_table: str
    pk_column: str
    cardinality: Cardinality
    pk_constraint_name: Optional[str] = None
    delete_rule: Optional[str] = None
    update_rule: Optional[str] = None

    @property
    def is_cross_schema(self) -> bool:
        return self.fk_schema != self.pk_schema


@dataclass(frozen=True)
class Table:
    name: str
    schema_name: str
    columns: Tuple[Column, ...] = ()
    primary_key: PrimaryKey = field(default_factory=lambda: PrimaryKey(None))
    indexes: Dict[str, Index] = field(default_factory=dict)
    foreign_key_association_names: Tuple[str, ...] = ()
    reverse_foreign_key_association_names: Tuple[str, ...] = ()
    description: Optional[str] = None
    has_composite_key: bool = False
    has_identity_column: bool = False
    is_many_to_many: bool = False
    warnings: Tuple[str, ...] = ()

    def get_column(self, name: str) -> Optional[Column]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    @property
    def ordered_columns(self) -> Tuple[Column, ...]:
        """Primary key columns first, then the rest by ordinal."""
        return tuple(
            sorted(self.columns, key=lambda c: (not c.is_primary_key, c.ordinal))
        )


@dataclass(frozen=True)
class View:
    name: str
    schema_name: str
    columns: Tuple[Column, ...] = ()
    sql: Optional[str] = None
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Argument:
    name: str
    ordinal: int
    native_type: str
    type_category: TypeCategory
    data_type_name: Optional[str] = None
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    is_in: bool = True
    is_out: bool = False


@dataclass(frozen=True)
class Procedure:
    name: str
    schema_name: str
    arguments: Tuple[Argument, ...] = ()
    sql: Optional[str] = None
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Function:
    name: str
    schema_name: str
    arguments: Tuple[Argument, ...] = ()
    sql: Optional[str] = None
    full_name: Optional[str] = None
    language: Optional[str] = None
    return_type: Optional[str] = None
    result_set_count: int = 0
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Schema:
    name: str
    tables: Dict[str, Table] = field(default_factory=dict)
    views: Dict[str, View] = field(default_factory=dict)
    procedures: Dict[str, Procedure] = field(default_factory=dict)
    functions: Dict[str, Function] = field(default_factory=dict)
    associations: Dict[str, Association] = field(default_factory=dict)
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Database:
    """Root of the canonical model."""

    dialect: Optional[str] = None
    provider: Optional[str] = None
    schemas: Dict[str, Schema] = field(default_factory=dict)
    data_types: Dict[str, DataType] = field(default_factory=dict)
    users: Tuple[str, ...] = ()

    def get_table(self, schema_name: str, table_name: str) -> Optional[Table]:
        schema = self.schemas.get(schema_name)
        if schema is None:
            return None
        return schema.tables.get(table_name)

    def find_association(self, name: str) -> Optional[Association]:
        """Look an association up by name across all schemas."""
        for schema in self.schemas.values():
            if name in schema.associations:
                return schema.associations[name]
        return None

    @property
    def schema_count(self) -> int:
        return len(self.schemas)
