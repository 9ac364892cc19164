"""
Annotated model shared by all emitters.

ModelAnnotator combines the normalized Database with naming, relationship
and override strategies into ResolvedEntity records. Direct emitters and
templates both render from this one structure, so names, navigations and
hook output are identical across output kinds.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Set, Tuple

from .naming import NamingResolver, unique_name
from .relationships import NavigationProperty, RelationshipResolver
from .schema import Association, Column, Database, Table, TypeCategory
from .strategies import OverrideStrategy
from ...logging_config import get_logger

logger = get_logger(__name__)


class TypeMapper:
    """Maps columns onto type names of a target language."""

    def map_column(self, column: Column) -> str:
        return column.type_category.value

    def unknown_type(self, column: Column) -> str:
        return "object"


@dataclass(frozen=True)
class ResolvedProperty:
    """A column-backed member with its final name and type."""

    name: str
    column: Column
    type_name: str
    default_value: Optional[str] = None
    code_before: Optional[str] = None
    is_unknown_type: bool = False
    association: Optional[Association] = None
    foreign_key_target: Optional[str] = None
    warnings: Tuple[str, ...] = ()
    error: Optional[str] = None

    @property
    def column_name(self) -> str:
        return self.column.name

    @property
    def needs_alias(self) -> bool:
        return self.name != self.column.name


@dataclass(frozen=True)
class ResolvedEntity:
    """A table with every name, navigation and hook resolved."""

    table: Table
    class_name: str
    collection_name: str
    properties: Tuple[ResolvedProperty, ...] = ()
    references: Tuple[NavigationProperty, ...] = ()
    collections: Tuple[NavigationProperty, ...] = ()
    base_type: Optional[str] = None
    code_before: Optional[str] = None
    warnings: Tuple[str, ...] = ()

    @property
    def schema_name(self) -> str:
        return self.table.schema_name

    @property
    def table_name(self) -> str:
        return self.table.name

    @property
    def needs_alias(self) -> bool:
        return self.class_name != self.table.name


@dataclass(frozen=True)
class ResolvedModel:
    database: Database
    entities: Tuple[ResolvedEntity, ...] = ()

    @property
    def schema_count(self) -> int:
        return self.database.schema_count

    def get_entity(self, schema_name: str, table_name: str) -> Optional[ResolvedEntity]:
        for entity in self.entities:
            if entity.schema_name == schema_name and entity.table_name == table_name:
                return entity
        return None


class ModelAnnotator:
    """Builds the ResolvedModel for one run."""

    def __init__(
        self,
        naming: NamingResolver,
        relationships: RelationshipResolver,
        overrides: Optional[OverrideStrategy] = None,
        type_mapper: Optional[TypeMapper] = None,
    ):
        self.naming = naming
        self.relationships = relationships
        self.overrides = overrides or OverrideStrategy()
        self.type_mapper = type_mapper or TypeMapper()

    def annotate(self, database: Database) -> ResolvedModel:
        class_names = self.class_names(database)
        entities = []
        for schema in database.schemas.values():
            for table in schema.tables.values():
                entities.append(self.annotate_table(database, table, class_names))
        return ResolvedModel(database=database, entities=tuple(entities))

    def class_names(self, database: Database) -> Dict[Tuple[str, str], str]:
        """
        Class name per (schema, table), unique across the whole database.

        Tables are visited in schema then table order; a later table whose
        class name is already taken gets a numeric suffix.
        """
        names: Dict[Tuple[str, str], str] = {}
        used: Set[str] = set()
        for schema in database.schemas.values():
            for table in schema.tables.values():
                name = unique_name(
                    self.naming.table_to_class_name(schema.name, table.name), used
                )
                used.add(name)
                names[(schema.name, table.name)] = name
        return names

    def annotate_table(
        self,
        database: Database,
        table: Table,
        class_names: Optional[Dict[Tuple[str, str], str]] = None,
    ) -> ResolvedEntity:
        schema_name = table.schema_name
        if class_names is None:
            class_names = self.class_names(database)
        preferred = self.naming.table_to_class_name(schema_name, table.name)
        class_name = class_names.get((schema_name, table.name), preferred)
        warnings: List[str] = list(table.warnings)
        if class_name != preferred:
            message = (
                f"Class name '{preferred}' for table {schema_name}.{table.name} "
                f"collides with another class; renamed to '{class_name}'"
            )
            logger.warning(message)
            warnings.append(message)

        # Members may not share the class name
        used: Set[str] = {class_name}
        single_pk = len(table.primary_key.column_names) == 1

        properties = []
        for column in table.ordered_columns:
            prop = self._resolve_property(
                database, table, column, single_pk and column.is_primary_key, class_names
            )
            name = unique_name(prop.name, used)
            if name != prop.name:
                message = (
                    f"Property name '{prop.name}' for column {table.name}.{column.name} "
                    f"collides with another member; renamed to '{name}'"
                )
                logger.warning(message)
                warnings.append(message)
                prop = replace(prop, name=name, warnings=prop.warnings + (message,))
            used.add(name)
            properties.append(prop)

        references, collections = self.relationships.resolve(
            database, table, {p.column.name: p.name for p in properties}, class_names
        )
        references = [self._dedupe(nav, used, warnings, table) for nav in references]
        collections = [self._dedupe(nav, used, warnings, table) for nav in collections]

        return ResolvedEntity(
            table=table,
            class_name=class_name,
            collection_name=self.naming.table_to_collection_name(schema_name, table.name),
            properties=tuple(properties),
            references=tuple(references),
            collections=tuple(collections),
            base_type=self.overrides.base_type(schema_name, table.name),
            code_before=self.overrides.code_before_class(schema_name, table.name),
            warnings=tuple(warnings),
        )

    def _resolve_property(
        self,
        database: Database,
        table: Table,
        column: Column,
        is_single_pk: bool,
        class_names: Dict[Tuple[str, str], str],
    ) -> ResolvedProperty:
        schema_name = table.schema_name
        association = None
        target = None
        if column.foreign_key_name:
            association = database.find_association(column.foreign_key_name)
            if association is not None:
                target = class_names.get(
                    (association.pk_schema, association.pk_table),
                    self.naming.table_to_class_name(
                        association.pk_schema, association.pk_table
                    ),
                )
        name = self.naming.column_to_property_name(
            schema_name, table.name, column.name, is_single_primary_key=is_single_pk
        )
        unknown = column.type_category == TypeCategory.UNKNOWN
        try:
            if unknown:
                type_name = self.type_mapper.unknown_type(column)
            else:
                type_name = self.type_mapper.map_column(column)
            type_name = self.overrides.property_type(
                schema_name, table.name, column.name, type_name
            )
            default = self.overrides.default_value(
                schema_name, table.name, column.name, type_name
            )
            code_before = self.overrides.code_before_property(
                schema_name, table.name, column.name
            )
        except Exception as e:  # hooks are user code
            message = f"unable to process column {column.name}: {e}"
            logger.error("%s.%s: %s", schema_name, table.name, message)
            return ResolvedProperty(
                name=name, column=column, type_name="", warnings=column.warnings, error=message
            )

        return ResolvedProperty(
            name=name,
            column=column,
            type_name=type_name,
            default_value=default,
            code_before=code_before,
            is_unknown_type=unknown,
            association=association,
            foreign_key_target=target,
            warnings=column.warnings,
        )

    @staticmethod
    def _dedupe(
        nav: NavigationProperty, used: Set[str], warnings: List[str], table: Table
    ) -> NavigationProperty:
        name = unique_name(nav.name, used)
        used.add(name)
        if name == nav.name:
            return nav
        message = (
            f"Navigation '{nav.name}' on {table.name} collides with another member; "
            f"renamed to '{name}'"
        )
        logger.warning(message)
        warnings.append(message)
        return replace(nav, name=name)
