"""
Base generator interface for direct structural emission.

Defines the contract every target language implements and the
OutputArtifact container shared by all output kinds.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set

from .annotate import ResolvedModel, TypeMapper
from .config import GeneratorSettings
from .emission import EmissionContext
from ...logging_config import get_logger

logger = get_logger(__name__)


class OutputArtifact:
    """One generated file, or the record of its failure."""

    def __init__(
        self,
        name: str,
        content: str,
        kind: str = "models",
        warnings: List[str] = None,
        metadata: Dict[str, Any] = None,
    ):
        """
        Initialize an artifact.

        Args:
            name: File name relative to the output directory
            content: Generated content
            kind: models, json, template or snapshot
            warnings: Warnings collected while generating
            metadata: Additional metadata about generation
        """
        self.name = name
        self.content = content
        self.kind = kind
        self.warnings = warnings or []
        self.metadata = metadata or {}
        self.success = True
        self.error_message: Optional[str] = None
        self.exception: Optional[Exception] = None
        self.path = None

    @classmethod
    def failed(
        cls, name: str, message: str, kind: str = "models", exception: Exception = None
    ) -> "OutputArtifact":
        """Create a failed artifact."""
        artifact = cls(name=name, content="", kind=kind)
        artifact.success = False
        artifact.error_message = message
        artifact.exception = exception
        return artifact

    def __repr__(self) -> str:
        state = "ok" if self.success else f"failed: {self.error_message}"
        return f"OutputArtifact({self.name!r}, kind={self.kind!r}, {state})"


class CodeGenerator(ABC):
    """Abstract base class for direct code generators."""

    def __init__(
        self,
        settings: Optional[GeneratorSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize generator.

        Args:
            settings: Settings for this run
            clock: Time source for the generated header
        """
        self.settings = settings or GeneratorSettings()
        self.clock = clock or datetime.now

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Return the name of the target language (e.g., 'python', 'csharp')."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Return the file extension for generated files (e.g., '.py', '.cs')."""
        pass

    @property
    def reserved_words(self) -> Set[str]:
        """Keywords of the target language; property names must avoid them."""
        return set()

    @property
    def default_primary_key_property_name(self) -> Optional[str]:
        """Property name for single-column primary keys, or None to keep column names."""
        return None

    @property
    def indent(self) -> str:
        return "    "

    @abstractmethod
    def create_type_mapper(self) -> TypeMapper:
        """Return the column type mapper for this language."""
        pass

    @property
    def default_file_name(self) -> str:
        return f"models{self.file_extension}"

    def create_context(self) -> EmissionContext:
        """Fresh emission context for one render."""
        return EmissionContext(indent=self.indent)

    @abstractmethod
    def generate(self, model: ResolvedModel) -> str:
        """
        Generate code for all entities.

        Args:
            model: Annotated model to render

        Returns:
            Generated code as a string
        """
        pass

    def get_import_statements(self, model: ResolvedModel) -> List[str]:
        """
        Get any required import statements for the generated code.

        Extra imports configured for the models artifact are appended.
        """
        return list(self.settings.extra_imports.get("models", []))

    def validate_model(self, model: ResolvedModel) -> List[str]:
        """
        Collect warnings about the model that affect generated code.

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = []

        for schema in model.database.schemas.values():
            warnings.extend(schema.warnings)

        for entity in model.entities:
            if not entity.table.primary_key.column_names:
                warnings.append(f"Table {entity.schema_name}.{entity.table_name} has no primary key")
            warnings.extend(entity.warnings)
            for prop in entity.properties:
                if prop.error:
                    warnings.append(f"{entity.class_name}: {prop.error}")
                for message in prop.warnings:
                    warnings.append(f"{entity.class_name}.{prop.name}: {message}")

        return warnings

    def format_code(self, code: str) -> str:
        """
        Apply basic formatting to generated code.

        Strips trailing whitespace and collapses runs of blank lines.
        """
        lines = code.split("\n")
        formatted_lines = []
        blank_count = 0

        for line in lines:
            stripped = line.rstrip()
            if not stripped:
                blank_count += 1
                if blank_count <= 2:  # Allow max 2 consecutive blank lines
                    formatted_lines.append("")
            else:
                blank_count = 0
                formatted_lines.append(stripped)

        return "\n".join(formatted_lines)


def generate_code(
    generator: CodeGenerator, model: ResolvedModel, file_name: Optional[str] = None
) -> OutputArtifact:
    """
    Generate code using the specified generator with error handling.

    Args:
        generator: Code generator instance
        model: Annotated model to render
        file_name: Output file name (defaults to the generator's)

    Returns:
        OutputArtifact with code, warnings, and metadata
    """
    name = file_name or generator.default_file_name
    try:
        warnings = generator.validate_model(model)
        code = generator.format_code(generator.generate(model))

        metadata = {
            "language": generator.language_name,
            "file_extension": generator.file_extension,
            "entity_count": len(model.entities),
            "schema_count": model.schema_count,
            "has_unknowns": any(
                p.is_unknown_type for e in model.entities for p in e.properties
            ),
        }
        return OutputArtifact(name, code, kind="models", warnings=warnings, metadata=metadata)

    except Exception as e:
        logger.error("Code generation failed for %s: %s", name, e, exc_info=True)
        return OutputArtifact.failed(name, f"Code generation failed: {e}", exception=e)
