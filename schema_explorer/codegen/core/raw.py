"""
Raw schema snapshot contract.

These records mirror what a schema reader hands to the pipeline: tables,
columns and constraints exactly as the database reports them, with no
naming or relationship inference applied. Snapshots are usually loaded
from JSON via ``RawDatabase.from_dict``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class SnapshotFormatError(ValueError):
    """Raised when a snapshot document does not match the expected shape."""

    pass


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _pick(data: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Read a key in snake_case or camelCase form."""
    if key in data:
        return data[key]
    return data.get(_camel(key), default)


def _require(data: Any, key: str, context: str) -> Any:
    if not isinstance(data, dict):
        raise SnapshotFormatError(f"{context} must be an object, got {type(data).__name__}")
    value = _pick(data, key)
    if value is None or value == "":
        raise SnapshotFormatError(f"{context} is missing required key '{key}'")
    return value


def _list(data: Dict[str, Any], key: str, context: str) -> List[Any]:
    value = _pick(data, key, [])
    if value is None:
        return []
    if not isinstance(value, list):
        raise SnapshotFormatError(f"{context}.{key} must be a list")
    return value


@dataclass
class RawColumn:
    """A column as reported by the database."""

    name: str
    data_type: str
    ordinal: Optional[int] = None
    nullable: bool = True
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    date_time_precision: Optional[int] = None
    default_value: Optional[str] = None
    computed_definition: Optional[str] = None
    description: Optional[str] = None
    is_identity: bool = False
    is_computed: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any], context: str = "column") -> "RawColumn":
        name = _require(data, "name", context)
        data_type = _pick(data, "data_type") or _pick(data, "type") or ""
        return cls(
            name=str(name),
            data_type=str(data_type),
            ordinal=_pick(data, "ordinal"),
            nullable=bool(_pick(data, "nullable", _pick(data, "is_nullable", True))),
            length=_pick(data, "length"),
            precision=_pick(data, "precision"),
            scale=_pick(data, "scale"),
            date_time_precision=_pick(data, "date_time_precision"),
            default_value=_pick(data, "default_value"),
            computed_definition=_pick(data, "computed_definition"),
            description=_pick(data, "description"),
            is_identity=bool(_pick(data, "is_identity", False)),
            is_computed=bool(_pick(data, "is_computed", False)),
        )


@dataclass
class RawPrimaryKey:
    name: Optional[str]
    columns: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any, context: str = "primary_key") -> Optional["RawPrimaryKey"]:
        if data is None:
            return None
        # A bare list of column names is accepted as shorthand
        if isinstance(data, list):
            return cls(name=None, columns=[str(c) for c in data]) if data else None
        columns = _list(data, "columns", context)
        if not columns:
            return None
        return cls(name=_pick(data, "name"), columns=[str(c) for c in columns])


@dataclass
class RawForeignKey:
    """A foreign key constraint, possibly spanning several columns."""

    name: Optional[str]
    columns: List[str]
    referenced_table: str
    referenced_columns: List[str]
    referenced_schema: Optional[str] = None
    referenced_constraint: Optional[str] = None
    delete_rule: Optional[str] = None
    update_rule: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], context: str = "foreign_key") -> "RawForeignKey":
        columns = _list(data, "columns", context)
        if not columns:
            raise SnapshotFormatError(f"{context} has no columns")
        return cls(
            name=_pick(data, "name"),
            columns=[str(c) for c in columns],
            referenced_table=str(_require(data, "referenced_table", context)),
            referenced_columns=[str(c) for c in _list(data, "referenced_columns", context)],
            referenced_schema=_pick(data, "referenced_schema"),
            referenced_constraint=_pick(data, "referenced_constraint"),
            delete_rule=_pick(data, "delete_rule"),
            update_rule=_pick(data, "update_rule"),
        )


@dataclass
class RawIndex:
    """A unique key or index; unique keys are loaded with ``unique=True``."""

    name: Optional[str]
    columns: List[str]
    unique: bool = False

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], context: str = "index", unique: Optional[bool] = None
    ) -> "RawIndex":
        columns = _list(data, "columns", context)
        is_unique = unique if unique is not None else bool(_pick(data, "unique", _pick(data, "is_unique", False)))
        return cls(name=_pick(data, "name"), columns=[str(c) for c in columns], unique=is_unique)


@dataclass
class RawTable:
    name: str
    columns: List[RawColumn] = field(default_factory=list)
    primary_key: Optional[RawPrimaryKey] = None
    foreign_keys: List[RawForeignKey] = field(default_factory=list)
    unique_keys: List[RawIndex] = field(default_factory=list)
    indexes: List[RawIndex] = field(default_factory=list)
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], context: str = "table") -> "RawTable":
        name = str(_require(data, "name", context))
        ctx = f"{context} '{name}'"
        return cls(
            name=name,
            columns=[RawColumn.from_dict(c, f"{ctx} column") for c in _list(data, "columns", ctx)],
            primary_key=RawPrimaryKey.from_dict(_pick(data, "primary_key"), f"{ctx} primary_key"),
            foreign_keys=[
                RawForeignKey.from_dict(fk, f"{ctx} foreign key")
                for fk in _list(data, "foreign_keys", ctx)
            ],
            unique_keys=[
                RawIndex.from_dict(uk, f"{ctx} unique key", unique=True)
                for uk in _list(data, "unique_keys", ctx)
            ],
            indexes=[RawIndex.from_dict(ix, f"{ctx} index") for ix in _list(data, "indexes", ctx)],
            description=_pick(data, "description"),
        )


@dataclass
class RawView:
    name: str
    columns: List[RawColumn] = field(default_factory=list)
    sql: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], context: str = "view") -> "RawView":
        name = str(_require(data, "name", context))
        ctx = f"{context} '{name}'"
        return cls(
            name=name,
            columns=[RawColumn.from_dict(c, f"{ctx} column") for c in _list(data, "columns", ctx)],
            sql=_pick(data, "sql", _pick(data, "definition")),
        )


@dataclass
class RawArgument:
    """A routine parameter. ``direction`` is one of in, out or inout."""

    name: str
    data_type: str
    ordinal: Optional[int] = None
    direction: str = "in"
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], context: str = "argument") -> "RawArgument":
        direction = str(_pick(data, "direction", _pick(data, "mode", "in")) or "in").lower()
        if direction not in ("in", "out", "inout"):
            raise SnapshotFormatError(f"{context} has invalid direction '{direction}'")
        return cls(
            name=str(_pick(data, "name") or ""),
            data_type=str(_pick(data, "data_type") or _pick(data, "type") or ""),
            ordinal=_pick(data, "ordinal"),
            direction=direction,
            length=_pick(data, "length"),
            precision=_pick(data, "precision"),
            scale=_pick(data, "scale"),
        )


@dataclass
class RawProcedure:
    name: str
    arguments: List[RawArgument] = field(default_factory=list)
    sql: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], context: str = "procedure") -> "RawProcedure":
        name = str(_require(data, "name", context))
        return cls(
            name=name,
            arguments=[
                RawArgument.from_dict(a, f"{context} '{name}' argument")
                for a in _list(data, "arguments", context)
            ],
            sql=_pick(data, "sql", _pick(data, "definition")),
        )


@dataclass
class RawFunction:
    name: str
    arguments: List[RawArgument] = field(default_factory=list)
    sql: Optional[str] = None
    full_name: Optional[str] = None
    language: Optional[str] = None
    return_type: Optional[str] = None
    result_set_count: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any], context: str = "function") -> "RawFunction":
        name = str(_require(data, "name", context))
        return cls(
            name=name,
            arguments=[
                RawArgument.from_dict(a, f"{context} '{name}' argument")
                for a in _list(data, "arguments", context)
            ],
            sql=_pick(data, "sql", _pick(data, "definition")),
            full_name=_pick(data, "full_name"),
            language=_pick(data, "language"),
            return_type=_pick(data, "return_type"),
            result_set_count=int(_pick(data, "result_set_count", 0) or 0),
        )


@dataclass
class RawDataType:
    """Provider description of a native data type."""

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

    @classmethod
    def from_dict(cls, data: Dict[str, Any], context: str = "data_type") -> "RawDataType":
        return cls(
            type_name=str(_require(data, "type_name", context)),
            net_data_type=_pick(data, "net_data_type"),
            create_format=_pick(data, "create_format"),
            is_string=bool(_pick(data, "is_string", False)),
            is_int=bool(_pick(data, "is_int", False)),
            is_numeric=bool(_pick(data, "is_numeric", False)),
            is_float=bool(_pick(data, "is_float", False)),
            is_date_time=bool(_pick(data, "is_date_time", False)),
            literal_prefix=_pick(data, "literal_prefix"),
            literal_suffix=_pick(data, "literal_suffix"),
        )


@dataclass
class RawSchema:
    name: str
    tables: List[RawTable] = field(default_factory=list)
    views: List[RawView] = field(default_factory=list)
    procedures: List[RawProcedure] = field(default_factory=list)
    functions: List[RawFunction] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], context: str = "schema") -> "RawSchema":
        name = str(_require(data, "name", context))
        ctx = f"schema '{name}'"
        return cls(
            name=name,
            tables=[RawTable.from_dict(t, f"{ctx} table") for t in _list(data, "tables", ctx)],
            views=[RawView.from_dict(v, f"{ctx} view") for v in _list(data, "views", ctx)],
            procedures=[
                RawProcedure.from_dict(p, f"{ctx} procedure")
                for p in _list(data, "procedures", ctx)
            ],
            functions=[
                RawFunction.from_dict(f, f"{ctx} function")
                for f in _list(data, "functions", ctx)
            ],
        )


@dataclass
class RawDatabase:
    """Root of a raw snapshot."""

    dialect: Optional[str] = None
    provider: Optional[str] = None
    schemas: List[RawSchema] = field(default_factory=list)
    data_types: List[RawDataType] = field(default_factory=list)
    users: List[str] = field(default_factory=list)

    def get_schema(self, name: str) -> Optional[RawSchema]:
        for schema in self.schemas:
            if schema.name == name:
                return schema
        return None

    @classmethod
    def from_dict(cls, data: Any) -> "RawDatabase":
        """
        Build a snapshot from a parsed JSON/YAML document.

        ``schemas`` may be a list of schema objects or a mapping of schema
        name to schema body.

        Raises:
            SnapshotFormatError: If required keys are missing or malformed
        """
        if not isinstance(data, dict):
            raise SnapshotFormatError("Snapshot root must be an object")

        raw_schemas = _pick(data, "schemas", [])
        if isinstance(raw_schemas, dict):
            raw_schemas = [{"name": name, **(body or {})} for name, body in raw_schemas.items()]
        elif not isinstance(raw_schemas, list):
            raise SnapshotFormatError("'schemas' must be a list or an object")

        users = _list(data, "users", "snapshot")
        return cls(
            dialect=_pick(data, "dialect"),
            provider=_pick(data, "provider"),
            schemas=[RawSchema.from_dict(s) for s in raw_schemas],
            data_types=[RawDataType.from_dict(d) for d in _list(data, "data_types", "snapshot")],
            users=[u if isinstance(u, str) else str(_pick(u, "name", "")) for u in users],
        )
