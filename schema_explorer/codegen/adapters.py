"""
Schema readers.

A reader produces the raw snapshot the pipeline consumes. Two are built
in: one loads a saved snapshot document (file or URL), the other reflects
a live database through the SQLAlchemy inspector.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError, NoSuchModuleError, SQLAlchemyError

from .core.config import ConfigurationError, GeneratorSettings
from .core.raw import (
    RawColumn,
    RawDatabase,
    RawForeignKey,
    RawIndex,
    RawPrimaryKey,
    RawSchema,
    RawTable,
    RawView,
    SnapshotFormatError,
)
from ..logging_config import get_logger
from ..utils import SnapshotLoaderError, load_snapshot

logger = get_logger(__name__)

# Catalog schemas that never hold user tables
SYSTEM_SCHEMAS = {"information_schema", "pg_catalog", "pg_toast", "sys", "mysql", "performance_schema"}


class IntrospectionError(Exception):
    """Raised when a schema reader cannot produce a snapshot."""

    pass


class SchemaReaderAdapter(ABC):
    """Source of raw snapshots."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human readable name of the source."""
        pass

    @abstractmethod
    def read(self) -> RawDatabase:
        """
        Read the schema.

        Raises:
            IntrospectionError: If the source cannot be read
        """
        pass


class SnapshotSchemaReader(SchemaReaderAdapter):
    """Reads a snapshot document saved as JSON or YAML."""

    def __init__(self, source: str, timeout: Optional[float] = None):
        self.source = source
        self.timeout = timeout or 30

    @property
    def description(self) -> str:
        return f"snapshot {self.source}"

    def read(self) -> RawDatabase:
        try:
            _, data = load_snapshot(self.source, timeout=self.timeout)
            raw = RawDatabase.from_dict(data)
        except FileNotFoundError as e:
            raise IntrospectionError(str(e)) from e
        except (SnapshotLoaderError, SnapshotFormatError) as e:
            raise IntrospectionError(f"Cannot read snapshot {self.source}: {e}") from e

        logger.info(
            "Loaded snapshot %s with %d schema(s)", self.source, len(raw.schemas)
        )
        return raw


def _type_name(column_type: Any, engine: Engine) -> str:
    try:
        return column_type.compile(dialect=engine.dialect).lower()
    except Exception:  # some reflected types cannot be compiled back
        return type(column_type).__name__.lower()


def _optional(call, *args, **kwargs):
    """Run an inspector call that some dialects do not implement."""
    try:
        return call(*args, **kwargs)
    except NotImplementedError:
        return None


class SqlAlchemySchemaReader(SchemaReaderAdapter):
    """Reflects tables, views and constraints from a live database."""

    def __init__(
        self,
        connection_string: str,
        dialect: Optional[str] = None,
        engine: Optional[Engine] = None,
    ):
        self.connection_string = connection_string
        self.dialect = dialect
        self._engine = engine

    @property
    def description(self) -> str:
        return f"database ({self.dialect or 'auto'})"

    def _get_engine(self) -> Engine:
        if self._engine is None:
            try:
                self._engine = create_engine(self.connection_string)
            except (ArgumentError, NoSuchModuleError) as e:
                raise IntrospectionError(f"Invalid connection string: {e}") from e
        return self._engine

    def read(self) -> RawDatabase:
        engine = self._get_engine()
        try:
            inspector = inspect(engine)
            schemas = [
                self._read_schema(engine, inspector, name)
                for name in self._schema_names(inspector)
            ]
        except SQLAlchemyError as e:
            raise IntrospectionError(f"Introspection failed: {e}") from e

        logger.info("Introspected %d schema(s) from %s", len(schemas), engine.dialect.name)
        return RawDatabase(
            dialect=self.dialect or engine.dialect.name,
            provider=engine.driver,
            schemas=schemas,
        )

    @staticmethod
    def _schema_names(inspector) -> List[str]:
        names = [
            n for n in inspector.get_schema_names()
            if n.lower() not in SYSTEM_SCHEMAS and not n.lower().startswith("pg_")
        ]
        return names or [inspector.default_schema_name]

    def _read_schema(self, engine: Engine, inspector, schema: str) -> RawSchema:
        tables = [
            self._read_table(engine, inspector, schema, name)
            for name in inspector.get_table_names(schema=schema)
        ]
        views = []
        for name in inspector.get_view_names(schema=schema):
            views.append(
                RawView(
                    name=name,
                    columns=self._read_columns(
                        engine, inspector.get_columns(name, schema=schema)
                    ),
                    sql=_optional(inspector.get_view_definition, name, schema=schema),
                )
            )
        logger.debug("Schema %s: %d table(s), %d view(s)", schema, len(tables), len(views))
        return RawSchema(name=schema, tables=tables, views=views)

    def _read_columns(self, engine: Engine, columns: List[Dict[str, Any]]) -> List[RawColumn]:
        result = []
        for ordinal, col in enumerate(columns, start=1):
            column_type = col["type"]
            computed = col.get("computed") or {}
            default = col.get("default")
            result.append(
                RawColumn(
                    name=col["name"],
                    data_type=_type_name(column_type, engine),
                    ordinal=ordinal,
                    nullable=bool(col.get("nullable", True)),
                    length=getattr(column_type, "length", None),
                    precision=getattr(column_type, "precision", None),
                    scale=getattr(column_type, "scale", None),
                    default_value=str(default) if default is not None else None,
                    computed_definition=computed.get("sqltext"),
                    description=col.get("comment"),
                    is_identity=bool(col.get("identity")) or col.get("autoincrement") is True,
                    is_computed=bool(computed),
                )
            )
        return result

    def _read_table(self, engine: Engine, inspector, schema: str, name: str) -> RawTable:
        pk = inspector.get_pk_constraint(name, schema=schema) or {}
        pk_columns = pk.get("constrained_columns") or []

        foreign_keys = []
        for fk in inspector.get_foreign_keys(name, schema=schema):
            options = fk.get("options") or {}
            foreign_keys.append(
                RawForeignKey(
                    name=fk.get("name"),
                    columns=list(fk["constrained_columns"]),
                    referenced_table=fk["referred_table"],
                    referenced_columns=list(fk.get("referred_columns") or []),
                    referenced_schema=fk.get("referred_schema") or schema,
                    delete_rule=options.get("ondelete"),
                    update_rule=options.get("onupdate"),
                )
            )

        unique_keys = [
            RawIndex(name=uk.get("name"), columns=list(uk["column_names"]), unique=True)
            for uk in _optional(inspector.get_unique_constraints, name, schema=schema) or []
        ]
        indexes = [
            RawIndex(
                name=ix.get("name"),
                columns=[c for c in ix.get("column_names") or [] if c],
                unique=bool(ix.get("unique")),
            )
            for ix in inspector.get_indexes(name, schema=schema)
        ]
        comment = _optional(inspector.get_table_comment, name, schema=schema) or {}

        return RawTable(
            name=name,
            columns=self._read_columns(engine, inspector.get_columns(name, schema=schema)),
            primary_key=RawPrimaryKey(pk.get("name"), list(pk_columns)) if pk_columns else None,
            foreign_keys=foreign_keys,
            unique_keys=unique_keys,
            indexes=indexes,
            description=comment.get("text"),
        )


def create_reader(
    settings: GeneratorSettings, snapshot: Optional[str] = None
) -> SchemaReaderAdapter:
    """
    Pick a reader: a snapshot document wins over a connection string.

    Raises:
        ConfigurationError: If neither source is available
    """
    if snapshot:
        return SnapshotSchemaReader(snapshot, timeout=settings.timeout)
    if settings.connection_string:
        return SqlAlchemySchemaReader(settings.connection_string, dialect=settings.dialect)
    raise ConfigurationError("A connection string or snapshot is required")
