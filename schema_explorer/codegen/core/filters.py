"""
Include/exclude filtering of raw snapshots.

A FilterStrategy decides which schemas, tables and columns take part in
generation. FilterChain applies it to a RawDatabase before normalization,
in the order schema, table, column, and returns a pruned copy.
"""

from dataclasses import dataclass, field, replace
from fnmatch import fnmatchcase
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .raw import RawDatabase, RawIndex, RawPrimaryKey, RawSchema, RawTable
from ...logging_config import get_logger

logger = get_logger(__name__)


def matches_any(name: str, patterns: Iterable[str]) -> bool:
    """True if name equals, or shell-matches, any of the patterns."""
    return any(name == p or fnmatchcase(name, p) for p in patterns)


class FilterStrategy:
    """Base strategy: keeps everything. Subclass to customize."""

    def include_schema(self, schema: str) -> bool:
        return True

    def include_table(self, schema: str, table: str) -> bool:
        return True

    def include_column(self, schema: str, table: str, column: str) -> bool:
        return True


@dataclass
class ConfigurationFilter(FilterStrategy):
    """
    Filter built from include/exclude lists.

    Schema lists hold schema names. Table maps are keyed by schema and
    column maps by schema then table. Any key or entry may be a shell
    pattern such as ``audit_*``. A non-empty include list is an allow-list
    for its scope. Exclusion always wins over inclusion.
    """

    include_schemas: List[str] = field(default_factory=list)
    exclude_schemas: List[str] = field(default_factory=list)
    include_tables: Dict[str, List[str]] = field(default_factory=dict)
    exclude_tables: Dict[str, List[str]] = field(default_factory=dict)
    include_columns: Dict[str, Dict[str, List[str]]] = field(default_factory=dict)
    exclude_columns: Dict[str, Dict[str, List[str]]] = field(default_factory=dict)

    def include_schema(self, schema: str) -> bool:
        if matches_any(schema, self.exclude_schemas):
            return False
        return not self.include_schemas or matches_any(schema, self.include_schemas)

    def include_table(self, schema: str, table: str) -> bool:
        if matches_any(table, self._scoped(self.exclude_tables, schema)):
            return False
        allowed = self._scoped(self.include_tables, schema)
        return not allowed or matches_any(table, allowed)

    def include_column(self, schema: str, table: str, column: str) -> bool:
        excluded = self._scoped_columns(self.exclude_columns, schema, table)
        if matches_any(column, excluded):
            return False
        allowed = self._scoped_columns(self.include_columns, schema, table)
        return not allowed or matches_any(column, allowed)

    @staticmethod
    def _scoped(mapping: Dict[str, List[str]], schema: str) -> List[str]:
        entries: List[str] = []
        for key, values in mapping.items():
            if matches_any(schema, [key]):
                entries.extend(values)
        return entries

    @staticmethod
    def _scoped_columns(
        mapping: Dict[str, Dict[str, List[str]]], schema: str, table: str
    ) -> List[str]:
        entries: List[str] = []
        for schema_key, tables in mapping.items():
            if not matches_any(schema, [schema_key]):
                continue
            for table_key, columns in tables.items():
                if matches_any(table, [table_key]):
                    entries.extend(columns)
        return entries


class FilterChain:
    """Applies a FilterStrategy to a raw snapshot."""

    def __init__(self, strategy: Optional[FilterStrategy] = None):
        self.strategy = strategy or FilterStrategy()

    def apply(self, raw: RawDatabase) -> RawDatabase:
        """
        Return a filtered copy of the snapshot.

        Foreign keys, unique keys and indexes that mention a removed table
        or column are dropped as well.
        """
        original = {(s.name, t.name) for s in raw.schemas for t in s.tables}
        schemas = [s for s in raw.schemas if self.strategy.include_schema(s.name)]
        dropped = len(raw.schemas) - len(schemas)
        if dropped:
            logger.debug("Excluded %d schema(s)", dropped)

        schemas = [self._filter_schema(s) for s in schemas]

        kept_columns: Dict[Tuple[str, str], Set[str]] = {
            (s.name, t.name): {c.name for c in t.columns}
            for s in schemas
            for t in s.tables
        }
        schemas = [
            replace(
                s,
                tables=[self._prune_foreign_keys(s.name, t, kept_columns, original)
                    for t in s.tables],
            )
            for s in schemas
        ]

        return replace(raw, schemas=schemas)

    def _filter_schema(self, schema: RawSchema) -> RawSchema:
        tables = [
            self._filter_columns(schema.name, t)
            for t in schema.tables
            if self.strategy.include_table(schema.name, t.name)
        ]
        views = [
            replace(
                v,
                columns=[
                    c
                    for c in v.columns
                    if self.strategy.include_column(schema.name, v.name, c.name)
                ],
            )
            for v in schema.views
            if self.strategy.include_table(schema.name, v.name)
        ]
        return replace(schema, tables=tables, views=views)

    def _filter_columns(self, schema: str, table: RawTable) -> RawTable:
        columns = [
            c for c in table.columns if self.strategy.include_column(schema, table.name, c.name)
        ]
        if len(columns) == len(table.columns):
            return table

        kept = {c.name for c in columns}
        logger.debug(
            "Excluded %d column(s) from %s.%s",
            len(table.columns) - len(columns),
            schema,
            table.name,
        )

        primary_key = table.primary_key
        if primary_key is not None:
            pk_columns = [c for c in primary_key.columns if c in kept]
            primary_key = RawPrimaryKey(primary_key.name, pk_columns) if pk_columns else None

        def keep_index(entry: RawIndex) -> bool:
            return all(c in kept for c in entry.columns)

        return replace(
            table,
            columns=columns,
            primary_key=primary_key,
            foreign_keys=[fk for fk in table.foreign_keys if all(c in kept for c in fk.columns)],
            unique_keys=[uk for uk in table.unique_keys if keep_index(uk)],
            indexes=[ix for ix in table.indexes if keep_index(ix)],
        )

    @staticmethod
    def _prune_foreign_keys(
        schema: str,
        table: RawTable,
        kept_columns: Dict[Tuple[str, str], Set[str]],
        original: Set[Tuple[str, str]],
    ) -> RawTable:
        foreign_keys = []
        for fk in table.foreign_keys:
            key = (fk.referenced_schema or schema, fk.referenced_table)
            if key not in original:
                # Never existed; the normalizer reports it
                foreign_keys.append(fk)
                continue
            target = kept_columns.get(key)
            if target is None or not all(c in target for c in fk.referenced_columns):
                logger.debug(
                    "Dropping foreign key %s on %s.%s: referenced table or column excluded",
                    fk.name,
                    schema,
                    table.name,
                )
                continue
            foreign_keys.append(fk)
        if len(foreign_keys) == len(table.foreign_keys):
            return table
        return replace(table, foreign_keys=foreign_keys)
