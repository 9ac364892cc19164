"""
Core code generation components.

Provides the schema model, the normalization and annotation passes and
the base classes used by all language generators.
"""

from .annotate import ModelAnnotator, ResolvedEntity, ResolvedModel, ResolvedProperty, TypeMapper
from .config import ConfigManager, ConfigurationError, GeneratorSettings, load_settings
from .emission import EmissionContext
from .filters import ConfigurationFilter, FilterChain, FilterStrategy
from .generator import CodeGenerator, OutputArtifact, generate_code
from .naming import InflectPluralizer, NamingCase, NamingResolver, Pluralizer
from .normalize import NormalizationEngine, PerItemProcessingError, normalize
from .raw import RawDatabase, SnapshotFormatError
from .relationships import NavigationProperty, RelationshipResolver, RelationshipStrategy
from .schema import Association, Cardinality, Column, Database, Table, TypeCategory
from .strategies import MappingOverrideStrategy, OverrideStrategy, Strategies
from .templates import HelperRegistry, TemplateEngine, TemplateError

__all__ = [
    # Raw snapshot and normalized model
    "RawDatabase",
    "SnapshotFormatError",
    "Database",
    "Table",
    "Column",
    "Association",
    "Cardinality",
    "TypeCategory",
    "NormalizationEngine",
    "PerItemProcessingError",
    "normalize",
    # Filters, naming and relationships
    "FilterStrategy",
    "ConfigurationFilter",
    "FilterChain",
    "NamingCase",
    "NamingResolver",
    "Pluralizer",
    "InflectPluralizer",
    "NavigationProperty",
    "RelationshipResolver",
    "RelationshipStrategy",
    # Annotation
    "ModelAnnotator",
    "ResolvedModel",
    "ResolvedEntity",
    "ResolvedProperty",
    "TypeMapper",
    # Strategies
    "OverrideStrategy",
    "MappingOverrideStrategy",
    "Strategies",
    # Configuration system
    "GeneratorSettings",
    "ConfigManager",
    "ConfigurationError",
    "load_settings",
    # Emission
    "CodeGenerator",
    "OutputArtifact",
    "EmissionContext",
    "generate_code",
    # Template system
    "HelperRegistry",
    "TemplateEngine",
    "TemplateError",
]
