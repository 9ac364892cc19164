"""
Configuration management for code generation.

Handles loading settings from JSON files, merging command-line overrides,
validating values and resolving the database dialect.
"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .naming import to_snake_case
from ...logging_config import get_logger

logger = get_logger(__name__)


class ConfigurationError(Exception):
    """Exception raised for invalid or inconsistent settings."""

    pass


# Accepted spellings of each dialect, mapped to the canonical name
DIALECT_ALIASES = {
    "sqlserver": "sqlserver",
    "mssql": "sqlserver",
    "sqlserverce": "sqlserver",
    "sqlserver2005": "sqlserver",
    "sqlserver2008": "sqlserver",
    "sqlserver2012": "sqlserver",
    "sqlserver2014": "sqlserver",
    "sqlserver2016": "sqlserver",
    "mysql": "mysql",
    "mariadb": "mysql",
    "pgsql": "postgresql",
    "postgres": "postgresql",
    "postgresql": "postgresql",
    "oracle": "oracle",
    "sqlite": "sqlite",
}

# Key spellings used by older configuration files
LEGACY_KEYS = {
    "table_name_to_class_name_overrides": "class_name_overrides",
    "table_name_to_collection_class_name_overrides": "collection_name_overrides",
    "column_name_to_property_name_overrides": "property_name_overrides",
    "include_foreign_key_delete_and_update_rules": "include_foreign_key_rules",
    "omit_schema_annotation_if_only_one_schema_exists": "omit_schema_marker_if_single_schema",
    "include_schema_tables": "include_tables",
    "exclude_schema_tables": "exclude_tables",
    "include_schema_table_columns": "include_columns",
    "exclude_schema_table_columns": "exclude_columns",
    "templates": "template_dir",
}


@dataclass
class GeneratorSettings:
    """All settings for one generation run."""

    # Source
    connection_string: Optional[str] = None
    dialect: Optional[str] = None
    timeout: Optional[float] = None

    # Output
    language: str = "python"
    namespace: str = "Models"
    output: str = "generated"
    template_dir: Optional[str] = None
    template_output_extension: Optional[str] = None

    # Artifacts
    generate_models: bool = True
    generate_json: bool = False
    generate_templates: bool = True
    generate_snapshot: bool = True
    models_file: Optional[str] = None
    json_file: str = "model.json"
    snapshot_file: str = "codegen.json"
    extra_imports: Dict[str, List[str]] = field(default_factory=dict)

    # Filters
    include_schemas: List[str] = field(default_factory=list)
    exclude_schemas: List[str] = field(default_factory=list)
    include_tables: Dict[str, List[str]] = field(default_factory=dict)
    exclude_tables: Dict[str, List[str]] = field(default_factory=dict)
    include_columns: Dict[str, Dict[str, List[str]]] = field(default_factory=dict)
    exclude_columns: Dict[str, Dict[str, List[str]]] = field(default_factory=dict)

    # Naming
    class_name_overrides: Dict[str, str] = field(default_factory=dict)
    collection_name_overrides: Dict[str, str] = field(default_factory=dict)
    property_name_overrides: Dict[str, Dict[str, str]] = field(default_factory=dict)
    irregular_plurals: Dict[str, str] = field(default_factory=dict)
    # None uses the target language default; "" keeps column-derived names
    primary_key_property_name: Optional[str] = None

    # Injection hooks
    code_before_class: Dict[str, str] = field(default_factory=dict)
    base_types: Dict[str, str] = field(default_factory=dict)
    property_types: Dict[str, Dict[str, str]] = field(default_factory=dict)
    default_values: Dict[str, Dict[str, str]] = field(default_factory=dict)
    code_before_property: Dict[str, Dict[str, str]] = field(default_factory=dict)

    # Emission
    include_foreign_key_rules: bool = True
    omit_schema_marker_if_single_schema: bool = True
    emit_timestamp: bool = True

    @property
    def is_single_json_output(self) -> bool:
        return self.output.lower().endswith(".json")


# Expected shape of each map setting: "list", "map_list", "map_str", "nested_list", "nested_str"
_SHAPES = {
    "include_schemas": "list",
    "exclude_schemas": "list",
    "include_tables": "map_list",
    "exclude_tables": "map_list",
    "extra_imports": "map_list",
    "include_columns": "nested_list",
    "exclude_columns": "nested_list",
    "class_name_overrides": "map_str",
    "collection_name_overrides": "map_str",
    "irregular_plurals": "map_str",
    "code_before_class": "map_str",
    "base_types": "map_str",
    "property_name_overrides": "nested_str",
    "property_types": "nested_str",
    "default_values": "nested_str",
    "code_before_property": "nested_str",
}


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _is_str_map(value: Any) -> bool:
    return isinstance(value, dict) and all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    )


def _check_shape(key: str, value: Any, shape: str):
    ok = {
        "list": lambda v: _is_str_list(v),
        "map_list": lambda v: isinstance(v, dict) and all(_is_str_list(x) for x in v.values()),
        "map_str": _is_str_map,
        "nested_list": lambda v: isinstance(v, dict)
        and all(
            isinstance(x, dict) and all(_is_str_list(y) for y in x.values())
            for x in v.values()
        ),
        "nested_str": lambda v: isinstance(v, dict) and all(_is_str_map(x) for x in v.values()),
    }[shape](value)
    if not ok:
        raise ConfigurationError(f"Setting '{key}' has an invalid shape (expected {shape})")


def resolve_dialect(name: Optional[str]) -> str:
    """
    Resolve a dialect name or alias to its canonical form.

    Raises:
        ConfigurationError: If the dialect is missing or unsupported
    """
    if not name:
        raise ConfigurationError("Dialect is required")
    key = name.strip().lower().replace(" ", "")
    # SQLAlchemy URLs carry the driver after a plus sign
    key = key.split("+", 1)[0]
    if key not in DIALECT_ALIASES:
        raise ConfigurationError(
            f"Unsupported dialect '{name}'. Supported: "
            f"{', '.join(sorted(set(DIALECT_ALIASES.values())))}"
        )
    return DIALECT_ALIASES[key]


def dialect_from_url(connection_string: str) -> Optional[str]:
    """Return the dialect named by a URL-style connection string, if any."""
    if "://" not in connection_string:
        return None
    try:
        return resolve_dialect(connection_string.split("://", 1)[0])
    except ConfigurationError:
        return None


class ConfigManager:
    """Loads, merges, validates and saves generator settings."""

    def __init__(self):
        self._known = {f.name for f in fields(GeneratorSettings)}

    def load(
        self,
        config_file: Optional[Union[str, Path]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> GeneratorSettings:
        """
        Build settings from defaults, an optional file and overrides.

        Args:
            config_file: Path to a JSON configuration file
            overrides: Values that win over the file (None values are ignored)

        Returns:
            Settings instance

        Raises:
            ConfigurationError: For unreadable files, unknown keys or bad values
        """
        merged: Dict[str, Any] = {}
        if config_file:
            merged.update(self.normalize_keys(self.load_file(config_file)))
        if overrides:
            merged.update(
                {k: v for k, v in self.normalize_keys(overrides).items() if v is not None}
            )
        return self._dict_to_settings(merged)

    def load_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from a JSON file."""
        path = Path(config_path)

        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        if path.suffix.lower() != ".json":
            raise ConfigurationError(f"Configuration file must be JSON: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in configuration file {path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration file {path}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigurationError(f"Configuration file must contain a JSON object: {path}")

        logger.debug("Loaded configuration from %s", path)
        return config

    def normalize_keys(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Map camelCase, PascalCase and legacy keys onto setting names."""
        result = {}
        for key, value in config.items():
            name = to_snake_case(key)
            name = LEGACY_KEYS.get(name, name)
            if name not in self._known:
                raise ConfigurationError(f"Unknown setting: '{key}'")
            result[name] = value
        return result

    def _dict_to_settings(self, config: Dict[str, Any]) -> GeneratorSettings:
        for key, shape in _SHAPES.items():
            if key in config:
                _check_shape(key, config[key], shape)
        try:
            return GeneratorSettings(**config)
        except TypeError as e:
            raise ConfigurationError(f"Invalid settings: {e}") from e

    def validate(self, settings: GeneratorSettings, require_source: bool = False) -> List[str]:
        """
        Validate settings before any introspection happens.

        Resolves the dialect in place. Problems that would make the run
        meaningless raise; softer issues are returned as warnings.

        Args:
            settings: Settings to check
            require_source: True when a live connection will be opened

        Returns:
            List of warning messages

        Raises:
            ConfigurationError: For fatal problems
        """
        warnings = []

        if settings.connection_string:
            dialect = settings.dialect or dialect_from_url(settings.connection_string)
            if not dialect:
                raise ConfigurationError(
                    "A dialect is required when a connection string is given"
                )
            settings.dialect = resolve_dialect(dialect)
        elif require_source:
            raise ConfigurationError("A connection string or snapshot is required")
        elif settings.dialect:
            settings.dialect = resolve_dialect(settings.dialect)

        if not settings.namespace or not all(
            part.isidentifier() for part in settings.namespace.split(".")
        ):
            raise ConfigurationError(f"Invalid namespace: '{settings.namespace}'")

        if settings.timeout is not None and settings.timeout <= 0:
            raise ConfigurationError("Timeout must be positive")

        if settings.template_dir and not Path(settings.template_dir).is_dir():
            raise ConfigurationError(f"Template directory not found: {settings.template_dir}")

        overlap = set(settings.include_schemas) & set(settings.exclude_schemas)
        if overlap:
            warnings.append(
                f"Schemas both included and excluded (excluded wins): {', '.join(sorted(overlap))}"
            )

        if settings.is_single_json_output and settings.template_dir:
            warnings.append("Template directory is ignored when output is a .json file")

        for message in warnings:
            logger.warning(message)
        return warnings

    def save_config(self, settings: GeneratorSettings, output_path: Union[str, Path]):
        """Save settings to a JSON file."""
        path = Path(output_path)
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(asdict(settings), f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration to {path}: {e}") from e

    def create_sample(self, output_path: Union[str, Path]) -> Path:
        """Write a sample configuration file and return its path."""
        path = Path(output_path)
        if path.exists():
            raise ConfigurationError(f"Refusing to overwrite existing file: {path}")
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(EXAMPLE_CONFIG, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ConfigurationError(f"Failed to write sample configuration {path}: {e}") from e
        logger.info("Sample configuration written to %s", path)
        return path


def load_settings(
    config_file: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> GeneratorSettings:
    """
    Convenience function to load settings.

    Args:
        config_file: Path to JSON configuration file
        overrides: Values that win over the file

    Returns:
        Settings instance
    """
    return ConfigManager().load(config_file, overrides)


# Example configuration written by --create-config
EXAMPLE_CONFIG = {
    "connectionString": "sqlite:///example.db",
    "dialect": "sqlite",
    "namespace": "Models",
    "language": "python",
    "output": "generated",
    "generateModels": True,
    "generateJson": False,
    "includeForeignKeyRules": True,
    "omitSchemaMarkerIfSingleSchema": True,
    "excludeSchemas": ["sys", "INFORMATION_SCHEMA"],
    "excludeTables": {"*": ["__EFMigrationsHistory", "sysdiagrams"]},
    "excludeColumns": {},
    "classNameOverrides": {"SalesEmployee": "SalesPerson"},
    "collectionNameOverrides": {"SalesPerson": "SalesPeople"},
    "propertyNameOverrides": {},
    "irregularPlurals": {},
}
