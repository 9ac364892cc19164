"""
Normalization of raw snapshots into the canonical model.

NormalizationEngine runs two passes over a RawDatabase. The first pass
turns single-column foreign keys into Associations and indexes them by
referencing and referenced table. The second pass builds the Table, View,
Procedure and Function records, reading relationship lists from that
index. Problems with individual items are recorded on the item and never
abort the run.
"""

import re
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .raw import (
    RawArgument,
    RawColumn,
    RawDatabase,
    RawDataType,
    RawForeignKey,
    RawFunction,
    RawIndex,
    RawProcedure,
    RawSchema,
    RawTable,
    RawView,
)
from .schema import (
    Argument,
    Association,
    Cardinality,
    Column,
    Database,
    DataType,
    Function,
    Index,
    PrimaryKey,
    Procedure,
    Schema,
    Table,
    TypeCategory,
    View,
)
from ...logging_config import get_logger

logger = get_logger(__name__)


class PerItemProcessingError(Exception):
    """A single table, column or routine could not be normalized."""

    pass


# Base type names (lower case, parameters stripped) to canonical families
NATIVE_TYPE_MAP: Dict[str, TypeCategory] = {}

for _category, _names in {
    TypeCategory.STRING: (
        "char", "nchar", "varchar", "nvarchar", "text", "ntext", "tinytext",
        "mediumtext", "longtext", "character", "character varying", "varchar2",
        "nvarchar2", "clob", "nclob", "citext", "string", "xml", "json", "jsonb",
        "enum", "set", "sysname", "bpchar", "name", "long",
    ),
    TypeCategory.SMALL_INTEGER: ("tinyint", "smallint", "int2", "smallserial"),
    TypeCategory.INTEGER: ("int", "integer", "int4", "mediumint", "serial"),
    TypeCategory.BIG_INTEGER: ("bigint", "int8", "bigserial"),
    TypeCategory.FLOAT: (
        "float", "real", "double", "double precision", "float4", "float8",
        "binary_float", "binary_double",
    ),
    TypeCategory.DECIMAL: ("decimal", "numeric", "money", "smallmoney", "number", "dec"),
    TypeCategory.BOOLEAN: ("bit", "bool", "boolean"),
    TypeCategory.DATE: ("date",),
    TypeCategory.TIME: (
        "time", "time with time zone", "time without time zone", "timetz", "interval",
    ),
    TypeCategory.DATETIME: (
        "datetime", "datetime2", "smalldatetime", "datetimeoffset", "timestamp",
        "timestamptz", "timestamp with time zone", "timestamp without time zone",
    ),
    TypeCategory.GUID: ("uniqueidentifier", "uuid"),
    TypeCategory.BINARY: (
        "binary", "varbinary", "image", "blob", "tinyblob", "mediumblob",
        "longblob", "bytea", "raw", "long raw", "rowversion",
    ),
}.items():
    for _name in _names:
        NATIVE_TYPE_MAP[_name] = _category

# .NET type names reported by provider descriptors
NET_TYPE_MAP: Dict[str, TypeCategory] = {
    "system.string": TypeCategory.STRING,
    "system.char": TypeCategory.STRING,
    "system.byte": TypeCategory.SMALL_INTEGER,
    "system.sbyte": TypeCategory.SMALL_INTEGER,
    "system.int16": TypeCategory.SMALL_INTEGER,
    "system.int32": TypeCategory.INTEGER,
    "system.int64": TypeCategory.BIG_INTEGER,
    "system.single": TypeCategory.FLOAT,
    "system.double": TypeCategory.FLOAT,
    "system.decimal": TypeCategory.DECIMAL,
    "system.boolean": TypeCategory.BOOLEAN,
    "system.datetime": TypeCategory.DATETIME,
    "system.datetimeoffset": TypeCategory.DATETIME,
    "system.timespan": TypeCategory.TIME,
    "system.guid": TypeCategory.GUID,
    "system.byte[]": TypeCategory.BINARY,
}


def base_type_name(native_type: str) -> str:
    """Strip size parameters and modifiers: ``varchar(50)`` -> ``varchar``."""
    name = re.sub(r"\(.*?\)", " ", native_type.lower())
    name = re.sub(r"\b(unsigned|zerofill|identity)\b", " ", name)
    return " ".join(name.split())


class NormalizationEngine:
    """Builds a Database from a RawDatabase in two passes."""

    def __init__(self, type_map: Optional[Dict[str, TypeCategory]] = None):
        """
        Initialize the engine.

        Args:
            type_map: Extra native type names (lower case) mapped to categories.
                These take precedence over the built-in table.
        """
        self.type_map = dict(NATIVE_TYPE_MAP)
        if type_map:
            self.type_map.update({k.lower(): v for k, v in type_map.items()})

    def normalize(self, raw: RawDatabase) -> Database:
        """
        Normalize a raw snapshot.

        Args:
            raw: Raw snapshot from a schema reader

        Returns:
            Immutable canonical Database
        """
        data_types = self._build_data_types(raw.data_types)
        descriptors = {name.lower(): dt for name, dt in data_types.items()}

        raw_tables: Dict[Tuple[str, str], RawTable] = {}
        failed: Dict[Tuple[str, str], str] = {}
        for raw_schema in raw.schemas:
            for raw_table in raw_schema.tables:
                key = (raw_schema.name, raw_table.name)
                raw_tables[key] = raw_table
                try:
                    self._check_table(raw_table)
                except PerItemProcessingError as e:
                    failed[key] = str(e)

        associations, table_warnings = self._build_associations(raw, raw_tables, failed)

        forward: Dict[Tuple[str, str], List[str]] = defaultdict(list)
        reverse: Dict[Tuple[str, str], List[str]] = defaultdict(list)
        by_schema: Dict[str, Dict[str, Association]] = defaultdict(dict)
        for assoc in associations:
            forward[(assoc.fk_schema, assoc.fk_table)].append(assoc.name)
            reverse[(assoc.pk_schema, assoc.pk_table)].append(assoc.name)
            by_schema[assoc.schema_name][assoc.name] = assoc

        schemas: Dict[str, Schema] = {}
        for raw_schema in sorted(raw.schemas, key=lambda s: s.name):
            schemas[raw_schema.name] = self._build_schema(
                raw_schema,
                descriptors,
                by_schema[raw_schema.name],
                forward,
                reverse,
                table_warnings,
                failed,
            )

        logger.info(
            "Normalized %d schema(s) with %d association(s)",
            len(schemas),
            len(associations),
        )

        return Database(
            dialect=raw.dialect,
            provider=raw.provider,
            schemas=schemas,
            data_types=data_types,
            users=tuple(raw.users),
        )

    @staticmethod
    def _check_table(raw_table: RawTable):
        """
        Table-level checks run before any association is built.

        Raises:
            PerItemProcessingError: If the table cannot be normalized at all
        """
        pk_columns = raw_table.primary_key.columns if raw_table.primary_key else []
        names = {c.name for c in raw_table.columns}
        missing = [c for c in pk_columns if c not in names]
        if missing:
            raise PerItemProcessingError(
                f"primary key references unknown column(s): {', '.join(missing)}"
            )

    # Pass 1

    def _build_associations(
        self,
        raw: RawDatabase,
        raw_tables: Dict[Tuple[str, str], RawTable],
        failed: Dict[Tuple[str, str], str],
    ) -> Tuple[List[Association], Dict[Tuple[str, str], List[str]]]:
        associations: List[Association] = []
        warnings: Dict[Tuple[str, str], List[str]] = defaultdict(list)
        used_names: Set[str] = set()

        for raw_schema in sorted(raw.schemas, key=lambda s: s.name):
            for raw_table in sorted(raw_schema.tables, key=lambda t: t.name):
                key = (raw_schema.name, raw_table.name)
                if key in failed:
                    continue
                for fk in raw_table.foreign_keys:
                    if len(fk.columns) != 1:
                        logger.debug(
                            "Skipping multi-column foreign key %s on %s.%s",
                            fk.name,
                            raw_schema.name,
                            raw_table.name,
                        )
                        continue

                    pk_schema = fk.referenced_schema or raw_schema.name
                    target = raw_tables.get((pk_schema, fk.referenced_table))
                    if target is None:
                        message = (
                            f"Foreign key {fk.name or fk.columns[0]} references missing "
                            f"table {pk_schema}.{fk.referenced_table}; skipped"
                        )
                        logger.warning(message)
                        warnings[key].append(message)
                        continue
                    if (pk_schema, fk.referenced_table) in failed:
                        message = (
                            f"Foreign key {fk.name or fk.columns[0]} references table "
                            f"{pk_schema}.{fk.referenced_table}, which could not be "
                            "processed; skipped"
                        )
                        logger.warning(message)
                        warnings[key].append(message)
                        continue

                    pk_column = self._referenced_column(fk, target)
                    if pk_column is None:
                        message = (
                            f"Foreign key {fk.name or fk.columns[0]} has no referenced "
                            f"column on {pk_schema}.{fk.referenced_table}; skipped"
                        )
                        logger.warning(message)
                        warnings[key].append(message)
                        continue

                    name = self._association_name(fk, raw_table.name, used_names)
                    used_names.add(name)

                    associations.append(
                        Association(
                            name=name,
                            schema_name=raw_schema.name,
                            fk_schema=raw_schema.name,
                            fk_table=raw_table.name,
                            fk_column=fk.columns[0],
                            pk_schema=pk_schema,
                            pk_table=fk.referenced_table,
                            pk_column=pk_column,
                            cardinality=self._cardinality(raw_table, fk.columns[0]),
                            pk_constraint_name=fk.referenced_constraint
                            or (target.primary_key.name if target.primary_key else None),
                            delete_rule=fk.delete_rule,
                            update_rule=fk.update_rule,
                        )
                    )

        return associations, warnings

    @staticmethod
    def _referenced_column(fk: RawForeignKey, target: RawTable) -> Optional[str]:
        if fk.referenced_columns:
            return fk.referenced_columns[0]
        if target.primary_key and len(target.primary_key.columns) == 1:
            return target.primary_key.columns[0]
        return None

    @staticmethod
    def _association_name(fk: RawForeignKey, table_name: str, used: Set[str]) -> str:
        if fk.name and fk.name not in used:
            return fk.name
        if fk.name:
            logger.warning("Duplicate foreign key name %s; generating a new one", fk.name)

        base = f"FK_{table_name}_{fk.columns[0]}_{fk.referenced_table}"
        candidate = base
        counter = 1
        while candidate in used:
            candidate = f"{base}_{counter}"
            counter += 1
        return candidate

    def _cardinality(self, raw_table: RawTable, column_name: str) -> Cardinality:
        column = next((c for c in raw_table.columns if c.name == column_name), None)
        if not self._is_single_column_unique(raw_table, column_name):
            return Cardinality.MANY
        if column is not None and column.nullable:
            return Cardinality.ZERO_OR_ONE
        return Cardinality.ONE

    @staticmethod
    def _is_single_column_unique(raw_table: RawTable, column_name: str) -> bool:
        for key in raw_table.unique_keys:
            if key.columns == [column_name]:
                return True
        for index in raw_table.indexes:
            if index.unique and index.columns == [column_name]:
                return True
        pk = raw_table.primary_key
        return bool(pk and pk.columns == [column_name])

    # Pass 2

    def _build_schema(
        self,
        raw_schema: RawSchema,
        descriptors: Dict[str, DataType],
        associations: Dict[str, Association],
        forward: Dict[Tuple[str, str], List[str]],
        reverse: Dict[Tuple[str, str], List[str]],
        table_warnings: Dict[Tuple[str, str], List[str]],
        failed: Dict[Tuple[str, str], str],
    ) -> Schema:
        schema_warnings: List[str] = []

        tables: Dict[str, Table] = {}
        for raw_table in sorted(raw_schema.tables, key=lambda t: t.name):
            key = (raw_schema.name, raw_table.name)
            if key in failed:
                message = (
                    f"Unable to process table {raw_schema.name}.{raw_table.name}: {failed[key]}"
                )
                logger.warning(message)
                schema_warnings.append(message)
                continue
            tables[raw_table.name] = self._build_table(
                raw_schema.name,
                raw_table,
                descriptors,
                associations,
                tuple(forward.get(key, ())),
                tuple(reverse.get(key, ())),
                table_warnings.get(key, []),
            )

        views = {
            v.name: self._build_view(raw_schema.name, v, descriptors)
            for v in sorted(raw_schema.views, key=lambda v: v.name)
        }
        procedures = {
            p.name: self._build_procedure(raw_schema.name, p, descriptors)
            for p in sorted(raw_schema.procedures, key=lambda p: p.name)
        }
        functions = {
            f.name: self._build_function(raw_schema.name, f, descriptors)
            for f in sorted(raw_schema.functions, key=lambda f: f.name)
        }

        return Schema(
            name=raw_schema.name,
            tables=tables,
            views=views,
            procedures=procedures,
            functions=functions,
            associations=dict(sorted(associations.items())),
            warnings=tuple(schema_warnings),
        )

    def _build_table(
        self,
        schema_name: str,
        raw_table: RawTable,
        descriptors: Dict[str, DataType],
        associations: Dict[str, Association],
        forward_names: Tuple[str, ...],
        reverse_names: Tuple[str, ...],
        extra_warnings: List[str],
    ) -> Table:
        warnings = list(extra_warnings)
        pk_columns = tuple(raw_table.primary_key.columns) if raw_table.primary_key else ()

        fk_columns = {c for fk in raw_table.foreign_keys for c in fk.columns}
        fk_names_by_column = {
            associations[name].fk_column: name
            for name in forward_names
            if name in associations
        }
        unique_keys = [uk for uk in raw_table.unique_keys if uk.columns]
        indexed_columns = {c for ix in raw_table.indexes for c in ix.columns}
        indexed_columns.update(c for uk in unique_keys for c in uk.columns)

        ordinals = self._ordinals(raw_table.columns)
        if ordinals is None:
            ordinals = list(range(1, len(raw_table.columns) + 1))
            warnings.append(
                f"Column ordinals of {schema_name}.{raw_table.name} were missing or "
                "duplicated and have been renumbered"
            )

        columns = []
        for raw_column, ordinal in zip(raw_table.columns, ordinals):
            unique_key = next((uk for uk in unique_keys if raw_column.name in uk.columns), None)
            columns.append(
                self._build_column(
                    raw_column,
                    ordinal,
                    descriptors,
                    table_name=raw_table.name,
                    is_primary_key=raw_column.name in pk_columns,
                    is_foreign_key=raw_column.name in fk_columns,
                    is_unique=self._is_single_column_unique(raw_table, raw_column.name)
                    and raw_column.name not in pk_columns,
                    is_part_of_unique_key=unique_key is not None,
                    unique_key_name=unique_key.name if unique_key else None,
                    is_indexed=raw_column.name in indexed_columns,
                    foreign_key_name=fk_names_by_column.get(raw_column.name),
                )
            )

        return Table(
            name=raw_table.name,
            schema_name=schema_name,
            columns=tuple(columns),
            primary_key=PrimaryKey(
                raw_table.primary_key.name if raw_table.primary_key else None, pk_columns
            ),
            indexes=self._build_indexes(raw_table, pk_columns),
            foreign_key_association_names=forward_names,
            reverse_foreign_key_association_names=reverse_names,
            description=raw_table.description,
            has_composite_key=len(pk_columns) > 1,
            has_identity_column=any(c.is_identity for c in raw_table.columns),
            is_many_to_many=self._is_many_to_many(
                raw_table, pk_columns, set(fk_names_by_column)
            ),
            warnings=tuple(warnings),
        )

    @staticmethod
    def _ordinals(columns: Iterable) -> Optional[List[int]]:
        """Return declared ordinals, or None when any is missing, invalid or repeated."""
        try:
            ordinals = [int(c.ordinal) for c in columns]
        except (TypeError, ValueError):
            return None
        if len(set(ordinals)) != len(ordinals):
            return None
        return ordinals

    @staticmethod
    def _is_many_to_many(
        raw_table: RawTable, pk_columns: Tuple[str, ...], fk_columns: Set[str]
    ) -> bool:
        return (
            len(pk_columns) == 2
            and len(raw_table.columns) == 2
            and all(c in fk_columns for c in pk_columns)
        )

    @staticmethod
    def _build_indexes(raw_table: RawTable, pk_columns: Tuple[str, ...]) -> Dict[str, Index]:
        pk_name = raw_table.primary_key.name if raw_table.primary_key else None

        def is_pk(entry: RawIndex) -> bool:
            return (pk_name is not None and entry.name == pk_name) or (
                bool(pk_columns) and tuple(entry.columns) == pk_columns
            )

        indexes: Dict[str, Index] = {}
        for prefix, entries in (("UQ", raw_table.unique_keys), ("IX", raw_table.indexes)):
            for entry in entries:
                if not entry.columns or is_pk(entry):
                    continue
                name = entry.name or f"{prefix}_{raw_table.name}_{'_'.join(entry.columns)}"
                if name in indexes:
                    continue
                indexes[name] = Index(
                    name=name,
                    column_names=tuple(entry.columns),
                    is_unique=entry.unique or prefix == "UQ",
                )
        return indexes

    def _build_column(
        self,
        raw_column: RawColumn,
        ordinal: int,
        descriptors: Dict[str, DataType],
        table_name: Optional[str] = None,
        view_name: Optional[str] = None,
        **flags,
    ) -> Column:
        warnings = []
        try:
            category, descriptor = self.resolve_type(raw_column.data_type, descriptors)
        except PerItemProcessingError as e:
            owner = table_name or view_name
            logger.warning("Column %s.%s: %s", owner, raw_column.name, e)
            warnings.append(str(e))
            category, descriptor = TypeCategory.UNKNOWN, None

        return Column(
            name=raw_column.name,
            ordinal=ordinal,
            native_type=raw_column.data_type,
            type_category=category,
            table_name=table_name,
            view_name=view_name,
            data_type_name=descriptor.type_name if descriptor else None,
            is_nullable=raw_column.nullable,
            length=raw_column.length,
            precision=raw_column.precision,
            scale=raw_column.scale,
            date_time_precision=raw_column.date_time_precision,
            default_value=raw_column.default_value,
            computed_definition=raw_column.computed_definition,
            description=raw_column.description,
            is_identity=raw_column.is_identity,
            is_computed=raw_column.is_computed or bool(raw_column.computed_definition),
            warnings=tuple(warnings),
            **flags,
        )

    def _build_view(
        self, schema_name: str, raw_view: RawView, descriptors: Dict[str, DataType]
    ) -> View:
        warnings = []
        ordinals = self._ordinals(raw_view.columns)
        if ordinals is None:
            ordinals = list(range(1, len(raw_view.columns) + 1))
            if raw_view.columns:
                warnings.append(
                    f"Column ordinals of view {schema_name}.{raw_view.name} were "
                    "missing or duplicated and have been renumbered"
                )
        columns = tuple(
            self._build_column(c, o, descriptors, view_name=raw_view.name)
            for c, o in zip(raw_view.columns, ordinals)
        )
        return View(
            name=raw_view.name,
            schema_name=schema_name,
            columns=columns,
            sql=raw_view.sql,
            warnings=tuple(warnings),
        )

    def _build_arguments(
        self, owner: str, raw_arguments: List[RawArgument], descriptors: Dict[str, DataType]
    ) -> Tuple[Tuple[Argument, ...], List[str]]:
        warnings = []
        ordinals = self._ordinals(raw_arguments) or list(range(1, len(raw_arguments) + 1))
        arguments = []
        for raw_arg, ordinal in zip(raw_arguments, ordinals):
            try:
                category, descriptor = self.resolve_type(raw_arg.data_type, descriptors)
            except PerItemProcessingError as e:
                warnings.append(f"Argument {raw_arg.name or ordinal} of {owner}: {e}")
                category, descriptor = TypeCategory.UNKNOWN, None
            arguments.append(
                Argument(
                    name=raw_arg.name,
                    ordinal=ordinal,
                    native_type=raw_arg.data_type,
                    type_category=category,
                    data_type_name=descriptor.type_name if descriptor else None,
                    length=raw_arg.length,
                    precision=raw_arg.precision,
                    scale=raw_arg.scale,
                    is_in=raw_arg.direction in ("in", "inout"),
                    is_out=raw_arg.direction in ("out", "inout"),
                )
            )
        return tuple(arguments), warnings

    def _build_procedure(
        self, schema_name: str, raw: RawProcedure, descriptors: Dict[str, DataType]
    ) -> Procedure:
        arguments, warnings = self._build_arguments(raw.name, raw.arguments, descriptors)
        return Procedure(
            name=raw.name,
            schema_name=schema_name,
            arguments=arguments,
            sql=raw.sql,
            warnings=tuple(warnings),
        )

    def _build_function(
        self, schema_name: str, raw: RawFunction, descriptors: Dict[str, DataType]
    ) -> Function:
        arguments, warnings = self._build_arguments(raw.name, raw.arguments, descriptors)
        return Function(
            name=raw.name,
            schema_name=schema_name,
            arguments=arguments,
            sql=raw.sql,
            full_name=raw.full_name or f"{schema_name}.{raw.name}",
            language=raw.language,
            return_type=raw.return_type,
            result_set_count=raw.result_set_count,
            warnings=tuple(warnings),
        )

    # Types

    def resolve_type(
        self, native_type: str, descriptors: Dict[str, DataType]
    ) -> Tuple[TypeCategory, Optional[DataType]]:
        """
        Map a native type onto a canonical category.

        Provider descriptors are consulted first, then the built-in table.

        Raises:
            PerItemProcessingError: If the type is not recognized
        """
        if not native_type:
            raise PerItemProcessingError("missing native type")

        base = base_type_name(native_type)
        descriptor = descriptors.get(base) or descriptors.get(native_type.lower())
        if descriptor is not None:
            category = self._category_from_descriptor(descriptor, base)
            if category is not None:
                return category, descriptor

        category = self.type_map.get(base)
        if category is None:
            raise PerItemProcessingError(f"unrecognized native type '{native_type}'")
        return category, descriptor

    def _category_from_descriptor(
        self, descriptor: DataType, base: str
    ) -> Optional[TypeCategory]:
        if descriptor.net_data_type:
            category = NET_TYPE_MAP.get(descriptor.net_data_type.lower())
            if category is not None:
                return category

        builtin = self.type_map.get(base)
        if descriptor.is_string:
            return TypeCategory.STRING
        if descriptor.is_int:
            if builtin in (TypeCategory.SMALL_INTEGER, TypeCategory.BIG_INTEGER):
                return builtin
            return TypeCategory.INTEGER
        if descriptor.is_float:
            return TypeCategory.FLOAT
        if descriptor.is_date_time:
            if builtin in (TypeCategory.DATE, TypeCategory.TIME):
                return builtin
            return TypeCategory.DATETIME
        if descriptor.is_numeric:
            return TypeCategory.DECIMAL
        return None

    @staticmethod
    def _build_data_types(raw_types: List[RawDataType]) -> Dict[str, DataType]:
        return {
            t.type_name: DataType(
                type_name=t.type_name,
                net_data_type=t.net_data_type,
                create_format=t.create_format,
                is_string=t.is_string,
                is_int=t.is_int,
                is_numeric=t.is_numeric,
                is_float=t.is_float,
                is_date_time=t.is_date_time,
                literal_prefix=t.literal_prefix,
                literal_suffix=t.literal_suffix,
            )
            for t in sorted(raw_types, key=lambda t: t.type_name)
        }


def normalize(raw: RawDatabase) -> Database:
    """Normalize a raw snapshot with the default engine."""
    return NormalizationEngine().normalize(raw)
