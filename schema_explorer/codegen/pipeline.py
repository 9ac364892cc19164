"""
Generation pipeline.

generate() runs one pass over a raw snapshot: filter, normalize, annotate,
then emit every enabled artifact. run() adds reading the snapshot from a
schema reader and writing the artifacts to disk.
"""

import time
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from .core.annotate import ModelAnnotator, ResolvedModel
from .core.config import ConfigManager, GeneratorSettings
from .core.filters import FilterChain
from .core.generator import CodeGenerator, OutputArtifact, generate_code
from .core.naming import NamingResolver
from .core.normalize import NormalizationEngine
from .core.raw import RawDatabase
from .core.relationships import RelationshipResolver
from .core.serialize import to_json, to_json_data
from .core.strategies import Strategies
from .core.templates import HelperRegistry, TemplateEngine, TemplateError
from .registry import GeneratorRegistry, create_registry
from ..logging_config import get_logger

logger = get_logger(__name__)


class GenerationCancelled(Exception):
    """Raised when a run is cancelled or times out between phases."""

    pass


class CancellationToken:
    """Cooperative cancellation, checked between pipeline phases."""

    def __init__(self, timeout: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._deadline = clock() + timeout if timeout else None
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        if self._cancelled:
            return True
        return self._deadline is not None and self._clock() >= self._deadline

    def check(self, phase: str):
        """
        Raises:
            GenerationCancelled: If cancelled or past the deadline
        """
        if self.is_cancelled:
            reason = "cancelled" if self._cancelled else "timed out"
            logger.warning("Generation %s before %s", reason, phase)
            raise GenerationCancelled(f"Generation {reason} before {phase}")


def create_naming_resolver(
    settings: GeneratorSettings, strategies: Strategies, generator: CodeGenerator
) -> NamingResolver:
    pk_name = settings.primary_key_property_name
    if pk_name is None:
        pk_name = generator.default_primary_key_property_name
    return NamingResolver(
        pluralizer=strategies.pluralizer,
        reserved_words=generator.reserved_words,
        class_name_overrides=settings.class_name_overrides,
        collection_name_overrides=settings.collection_name_overrides,
        property_name_overrides=settings.property_name_overrides,
        primary_key_property_name=pk_name or None,
    )


def build_model(
    settings: GeneratorSettings,
    raw: RawDatabase,
    generator: CodeGenerator,
    strategies: Strategies,
    cancellation: CancellationToken,
) -> ResolvedModel:
    """Filter, normalize and annotate a raw snapshot."""
    cancellation.check("filtering")
    filtered = FilterChain(strategies.filters).apply(raw)

    cancellation.check("normalization")
    database = NormalizationEngine().normalize(filtered)

    cancellation.check("annotation")
    naming = create_naming_resolver(settings, strategies, generator)
    annotator = ModelAnnotator(
        naming=naming,
        relationships=RelationshipResolver(naming, strategies.relationships),
        overrides=strategies.overrides,
        type_mapper=generator.create_type_mapper(),
    )
    return annotator.annotate(database)


def generate(
    settings: GeneratorSettings,
    raw: RawDatabase,
    strategies: Optional[Strategies] = None,
    cancellation: Optional[CancellationToken] = None,
    registry: Optional[GeneratorRegistry] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> List[OutputArtifact]:
    """
    Generate all enabled artifacts from a raw snapshot.

    Args:
        settings: Settings for this run
        raw: Raw snapshot
        strategies: Strategy objects (built from settings by default)
        cancellation: Token checked between phases
        registry: Generator registry (a fresh one by default)
        clock: Time source for timestamps

    Returns:
        One OutputArtifact per output file; failed artifacts carry their error

    Raises:
        GenerationCancelled: If the token fires between phases
        RegistryError: If the target language is unknown
    """
    strategies = strategies or Strategies.from_settings(settings)
    cancellation = cancellation or CancellationToken(settings.timeout)
    registry = registry or create_registry()

    generator = registry.create_generator(settings.language, settings, clock=clock)
    model = build_model(settings, raw, generator, strategies, cancellation)
    database = model.database

    if settings.is_single_json_output:
        cancellation.check("json output")
        return [OutputArtifact(Path(settings.output).name, to_json(database), kind="json")]

    artifacts: List[OutputArtifact] = []

    if settings.generate_models:
        cancellation.check("models")
        artifacts.append(generate_code(generator, model, settings.models_file))

    if settings.generate_json:
        cancellation.check("json output")
        artifacts.append(OutputArtifact(settings.json_file, to_json(database), kind="json"))

    if settings.template_dir and settings.generate_templates:
        artifacts.extend(
            render_templates(settings, model, strategies, cancellation, clock)
        )

    for artifact in artifacts:
        if not artifact.success:
            logger.error("%s: %s", artifact.name, artifact.error_message)
    return artifacts


def render_templates(
    settings: GeneratorSettings,
    model: ResolvedModel,
    strategies: Strategies,
    cancellation: CancellationToken,
    clock: Optional[Callable[[], datetime]] = None,
) -> List[OutputArtifact]:
    """Render every top-level template; a failing template fails only its own artifact."""
    template_dir = Path(settings.template_dir)
    artifacts: List[OutputArtifact] = []

    try:
        engine = TemplateEngine(
            template_dir,
            helpers=HelperRegistry(strategies.pluralizer, clock),
            output_extension=settings.template_output_extension,
            excluded_data_files=[settings.snapshot_file],
        )
        data = engine.load_data()
    except TemplateError as e:
        return [OutputArtifact.failed(template_dir.name, str(e), kind="template", exception=e)]

    db_data = to_json_data(model.database)
    base_context = {
        "namespace": settings.namespace,
        "template": template_dir.name,
        "db": db_data,
        "data": data,
        "model": model,
        "entities": model.entities,
        "schema_count": model.schema_count,
        "settings": settings,
    }

    if settings.generate_snapshot:
        snapshot = {
            "namespace": settings.namespace,
            "template": template_dir.name,
            "db": db_data,
            "data": data,
        }
        artifacts.append(
            OutputArtifact(settings.snapshot_file, to_json(snapshot), kind="snapshot")
        )

    for template_name in engine.templates:
        cancellation.check(f"template {template_name}")
        output_name = engine.output_name(template_name)
        try:
            content = engine.render_template(template_name, base_context)
        except TemplateError as e:
            logger.error("Template %s failed: %s", template_name, e)
            artifacts.append(
                OutputArtifact.failed(output_name, str(e), kind="template", exception=e)
            )
            continue
        artifacts.append(
            OutputArtifact(
                output_name, content, kind="template", metadata={"template": template_name}
            )
        )

    return artifacts


def write_artifacts(artifacts: List[OutputArtifact], output_dir: Path) -> List[Path]:
    """
    Write successful artifacts under output_dir.

    Each file is written independently. A failed write marks its artifact
    as failed and does not affect files already written.

    Returns:
        Paths written
    """
    output_dir = Path(output_dir)
    written = []
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        for artifact in artifacts:
            if artifact.success:
                artifact.success = False
                artifact.error_message = f"Cannot create output directory {output_dir}: {e}"
                artifact.exception = e
        logger.error("Cannot create output directory %s: %s", output_dir, e)
        return written

    for artifact in artifacts:
        if not artifact.success:
            continue
        path = output_dir / artifact.name
        try:
            path.write_text(artifact.content, encoding="utf-8")
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e)
            artifact.success = False
            artifact.error_message = f"Failed to write {path}: {e}"
            artifact.exception = e
            continue
        artifact.path = path
        written.append(path)
        logger.info("Wrote %s", path)
    return written


def run(
    settings: GeneratorSettings,
    reader,
    strategies: Optional[Strategies] = None,
    cancellation: Optional[CancellationToken] = None,
    registry: Optional[GeneratorRegistry] = None,
) -> List[OutputArtifact]:
    """
    Read a snapshot, generate every artifact and write them out.

    Args:
        settings: Settings for this run (validated here)
        reader: Schema reader with a ``read()`` method returning a RawDatabase

    Raises:
        ConfigurationError: If settings are invalid
        IntrospectionError: If the reader fails
        GenerationCancelled: If the token fires between phases
    """
    ConfigManager().validate(settings)
    cancellation = cancellation or CancellationToken(settings.timeout)

    cancellation.check("introspection")
    raw = reader.read()
    if settings.dialect and not raw.dialect:
        raw.dialect = settings.dialect

    artifacts = generate(settings, raw, strategies, cancellation, registry)

    output = Path(settings.output)
    output_dir = output.parent if settings.is_single_json_output else output
    write_artifacts(artifacts, output_dir)
    return artifacts
