"""
Navigation properties derived from associations.

A foreign key column gets a reference navigation to the parent class and
the parent gets a collection navigation back to the child. Only
associations whose two ends live in the same schema produce navigations.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from .naming import NamingResolver
from .schema import Association, Cardinality, Database, Table
from ...logging_config import get_logger

logger = get_logger(__name__)


class NavigationKind(Enum):
    REFERENCE = "reference"
    COLLECTION = "collection"


@dataclass(frozen=True)
class NavigationProperty:
    """A generated member that points at another entity."""

    name: str
    kind: NavigationKind
    target_class: str
    target_schema: str
    target_table: str
    association_name: str
    cardinality: Cardinality
    via_column: str

    @property
    def is_collection(self) -> bool:
        return self.kind == NavigationKind.COLLECTION


class RelationshipStrategy:
    """Decides which navigations exist and how references are named."""

    def include_foreign_key_reference(self, schema: str, table: str, column: str) -> bool:
        return True

    def include_collection_reference(
        self, schema: str, table: str, child_schema: str, child_table: str
    ) -> bool:
        return True

    def foreign_key_reference_name(self, property_name: str) -> str:
        """CustomerId -> Customer; names without an Id suffix get a trailing underscore."""
        if len(property_name) > 2 and property_name.lower().endswith("id"):
            return property_name[:-2]
        return f"{property_name}_"


class RelationshipResolver:
    """Resolves reference and collection navigations for a table."""

    def __init__(
        self, naming: NamingResolver, strategy: Optional[RelationshipStrategy] = None
    ):
        self.naming = naming
        self.strategy = strategy or RelationshipStrategy()

    def resolve(
        self,
        database: Database,
        table: Table,
        property_names: Dict[str, str],
        class_names: Optional[Dict[Tuple[str, str], str]] = None,
    ) -> Tuple[List[NavigationProperty], List[NavigationProperty]]:
        """
        Resolve navigations for one table.

        Args:
            database: Normalized database
            table: Table to resolve navigations for
            property_names: Column name to resolved property name
            class_names: Final class name per (schema, table)

        Returns:
            Tuple of (references, collections)
        """
        used: Set[str] = set(property_names.values())
        class_names = class_names or {}
        references = self._references(database, table, property_names, used, class_names)
        collections = self._collections(database, table, class_names)
        return references, collections

    def _references(
        self,
        database: Database,
        table: Table,
        property_names: Dict[str, str],
        used: Set[str],
        class_names: Dict[Tuple[str, str], str],
    ) -> List[NavigationProperty]:
        schema = database.schemas[table.schema_name]
        references = []

        for name in table.foreign_key_association_names:
            assoc = schema.associations.get(name)
            if assoc is None or assoc.is_cross_schema:
                continue
            column = table.get_column(assoc.fk_column)
            if column is None or column.is_primary_key:
                continue
            if not self.strategy.include_foreign_key_reference(
                table.schema_name, table.name, column.name
            ):
                continue

            nav_name = self.strategy.foreign_key_reference_name(
                property_names.get(column.name, column.name)
            )
            if nav_name in used:
                nav_name = f"{nav_name}_"
            used.add(nav_name)

            references.append(
                NavigationProperty(
                    name=nav_name,
                    kind=NavigationKind.REFERENCE,
                    target_class=self._class_name(class_names, assoc.pk_schema, assoc.pk_table),
                    target_schema=assoc.pk_schema,
                    target_table=assoc.pk_table,
                    association_name=assoc.name,
                    cardinality=assoc.cardinality,
                    via_column=assoc.fk_column,
                )
            )

        return references

    def _class_name(
        self, class_names: Dict[Tuple[str, str], str], schema: str, table: str
    ) -> str:
        name = class_names.get((schema, table))
        return name if name is not None else self.naming.table_to_class_name(schema, table)

    def _collections(
        self,
        database: Database,
        table: Table,
        class_names: Dict[Tuple[str, str], str],
    ) -> List[NavigationProperty]:
        collections = []

        for name in table.reverse_foreign_key_association_names:
            assoc: Optional[Association] = database.find_association(name)
            if assoc is None or assoc.is_cross_schema:
                if assoc is not None:
                    logger.debug("Skipping cross-schema collection for %s", assoc.name)
                continue
            if not self.strategy.include_collection_reference(
                table.schema_name, table.name, assoc.fk_schema, assoc.fk_table
            ):
                continue

            collections.append(
                NavigationProperty(
                    name=self.naming.table_to_collection_name(assoc.fk_schema, assoc.fk_table),
                    kind=NavigationKind.COLLECTION,
                    target_class=self._class_name(class_names, assoc.fk_schema, assoc.fk_table),
                    target_schema=assoc.fk_schema,
                    target_table=assoc.fk_table,
                    association_name=assoc.name,
                    cardinality=assoc.cardinality,
                    via_column=assoc.fk_column,
                )
            )

        return collections
