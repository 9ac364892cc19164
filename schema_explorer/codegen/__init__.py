"""
Schema Explorer Code Generation Module

Generates model classes, a JSON model and template output from a
database schema snapshot.
"""

from .registry import GeneratorRegistry, RegistryError, create_registry
from .core.generator import CodeGenerator, OutputArtifact, generate_code
from .core.config import ConfigManager, ConfigurationError, GeneratorSettings, load_settings
from .core.raw import RawDatabase
from .core.strategies import Strategies
from .pipeline import (
    CancellationToken,
    GenerationCancelled,
    build_model,
    generate,
    run,
    write_artifacts,
)

# Version info
__version__ = "0.1.0"


def quick_generate(snapshot, language="python", **options):
    """
    Quick code generation from a snapshot document.

    Args:
        snapshot: Snapshot as a dict or a JSON string
        language: Target language
        **options: Setting overrides

    Returns:
        Generated models source
    """
    if isinstance(snapshot, str):
        import json

        snapshot = json.loads(snapshot)

    settings = load_settings(overrides={"language": language, **options})
    artifacts = generate(settings, RawDatabase.from_dict(snapshot))
    models = [a for a in artifacts if a.kind == "models"]
    if not models:
        raise ConfigurationError("Model generation is disabled")

    result = models[0]
    if result.success:
        return result.content
    else:
        raise RuntimeError(f"Code generation failed: {result.error_message}")


# Export main interfaces
__all__ = [
    "GeneratorRegistry",
    "RegistryError",
    "create_registry",
    "CodeGenerator",
    "OutputArtifact",
    "generate_code",
    "GeneratorSettings",
    "ConfigManager",
    "ConfigurationError",
    "load_settings",
    "RawDatabase",
    "Strategies",
    "CancellationToken",
    "GenerationCancelled",
    "build_model",
    "generate",
    "run",
    "write_artifacts",
    "quick_generate",
]
