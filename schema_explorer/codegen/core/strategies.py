"""
Pluggable strategy objects used by a generation run.

Customization points are objects with methods rather than callables stored
in settings. ``Strategies`` bundles one of each; ``from_settings`` builds
the defaults from configuration maps and ``with_hooks_file`` swaps in
objects defined in a user Python file.
"""

import importlib.util
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config import GeneratorSettings, ConfigurationError
from .filters import ConfigurationFilter, FilterStrategy
from .naming import InflectPluralizer, Pluralizer
from .relationships import RelationshipStrategy
from ...logging_config import get_logger

logger = get_logger(__name__)


class OverrideStrategy:
    """
    Injection hooks applied during emission.

    Every hook returns None (or the value it was given) to leave the
    default output unchanged.
    """

    def code_before_class(self, schema: str, table: str) -> Optional[str]:
        return None

    def base_type(self, schema: str, table: str) -> Optional[str]:
        return None

    def property_type(self, schema: str, table: str, column: str, type_name: str) -> str:
        return type_name

    def default_value(
        self, schema: str, table: str, column: str, type_name: str
    ) -> Optional[str]:
        return None

    def code_before_property(self, schema: str, table: str, column: str) -> Optional[str]:
        return None


def _lookup_table(mapping: Dict[str, Any], schema: str, table: str) -> Any:
    for key in (f"{schema}.{table}", table, "*"):
        if key in mapping:
            return mapping[key]
    return None


def _lookup_column(
    mapping: Dict[str, Dict[str, Any]], schema: str, table: str, column: str
) -> Any:
    for key in (f"{schema}.{table}", table, "*"):
        columns = mapping.get(key)
        if columns and column in columns:
            return columns[column]
    return None


@dataclass
class MappingOverrideStrategy(OverrideStrategy):
    """
    Overrides read from configuration maps.

    Class-level maps are keyed by "schema.table", table name or "*".
    Property-level maps nest a column map under the same keys.
    """

    class_code: Dict[str, str] = field(default_factory=dict)
    base_types: Dict[str, str] = field(default_factory=dict)
    property_types: Dict[str, Dict[str, str]] = field(default_factory=dict)
    default_values: Dict[str, Dict[str, str]] = field(default_factory=dict)
    property_code: Dict[str, Dict[str, str]] = field(default_factory=dict)

    def code_before_class(self, schema: str, table: str) -> Optional[str]:
        return _lookup_table(self.class_code, schema, table)

    def base_type(self, schema: str, table: str) -> Optional[str]:
        return _lookup_table(self.base_types, schema, table)

    def property_type(self, schema: str, table: str, column: str, type_name: str) -> str:
        return _lookup_column(self.property_types, schema, table, column) or type_name

    def default_value(
        self, schema: str, table: str, column: str, type_name: str
    ) -> Optional[str]:
        return _lookup_column(self.default_values, schema, table, column)

    def code_before_property(self, schema: str, table: str, column: str) -> Optional[str]:
        return _lookup_column(self.property_code, schema, table, column)


@dataclass
class Strategies:
    """The strategy objects for one generation run."""

    pluralizer: Pluralizer = field(default_factory=InflectPluralizer)
    filters: FilterStrategy = field(default_factory=FilterStrategy)
    relationships: RelationshipStrategy = field(default_factory=RelationshipStrategy)
    overrides: OverrideStrategy = field(default_factory=OverrideStrategy)

    @classmethod
    def from_settings(cls, settings: GeneratorSettings) -> "Strategies":
        """Build the configuration-driven strategies for a run."""
        return cls(
            pluralizer=InflectPluralizer(settings.irregular_plurals),
            filters=ConfigurationFilter(
                include_schemas=list(settings.include_schemas),
                exclude_schemas=list(settings.exclude_schemas),
                include_tables=dict(settings.include_tables),
                exclude_tables=dict(settings.exclude_tables),
                include_columns=dict(settings.include_columns),
                exclude_columns=dict(settings.exclude_columns),
            ),
            relationships=RelationshipStrategy(),
            overrides=MappingOverrideStrategy(
                class_code=dict(settings.code_before_class),
                base_types=dict(settings.base_types),
                property_types=dict(settings.property_types),
                default_values=dict(settings.default_values),
                property_code=dict(settings.code_before_property),
            ),
        )

    def with_hooks_file(self, path: Union[str, Path]) -> "Strategies":
        """
        Replace strategies with objects defined in a Python file.

        The file may define any of ``pluralizer``, ``filters``,
        ``relationships`` and ``overrides`` at module level.

        Raises:
            ConfigurationError: If the file cannot be loaded or defines an
                object of the wrong type
        """
        module = load_hooks_module(path)
        expected = {
            "pluralizer": Pluralizer,
            "filters": FilterStrategy,
            "relationships": RelationshipStrategy,
            "overrides": OverrideStrategy,
        }
        changes = {}
        for attr, base in expected.items():
            if not hasattr(module, attr):
                continue
            value = getattr(module, attr)
            if not isinstance(value, base):
                raise ConfigurationError(
                    f"Hook '{attr}' in {path} must be a {base.__name__} instance"
                )
            changes[attr] = value
            logger.info("Using %s from hooks file %s", attr, path)
        return replace(self, **changes)


def load_hooks_module(path: Union[str, Path]):
    """Import a Python file as a module without touching sys.path."""
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Hooks file not found: {path}")

    spec = importlib.util.spec_from_file_location(f"schema_explorer_hooks_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"Cannot load hooks file: {path}")
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise ConfigurationError(f"Failed to execute hooks file {path}: {e}") from e
    return module
