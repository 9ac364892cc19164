"""
Template engine wrapper for code generation.

Wraps a Jinja2 environment per run. A template directory holds top-level
templates (one output file each), partials whose file names start with an
underscore, and auxiliary JSON/YAML documents exposed to every template
under ``data``.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml
from jinja2 import (
    ChoiceLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    StrictUndefined,
    select_autoescape,
)

from .naming import InflectPluralizer, Pluralizer, to_camel_case, to_pascal_case, to_snake_case
from ...logging_config import get_logger

logger = get_logger(__name__)

TEMPLATE_SUFFIXES = (".j2", ".jinja", ".jinja2")
DATA_SUFFIXES = (".json", ".yaml", ".yml")


class TemplateError(Exception):
    """Exception raised for template-related errors."""

    pass


def format_now(fmt: str = "u", clock: Optional[Callable[[], datetime]] = None) -> str:
    """
    Format the current time.

    "u" gives the universal sortable form (2024-01-31 13:45:00Z), "o" an
    ISO 8601 round-trip string; anything else is a strftime pattern.
    """
    now = (clock or (lambda: datetime.now(timezone.utc)))()
    if fmt == "u":
        return now.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%SZ")
    if fmt == "o":
        return now.isoformat()
    return now.strftime(fmt)


class HelperRegistry:
    """Helpers available to templates. One instance per engine."""

    def __init__(
        self,
        pluralizer: Optional[Pluralizer] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.pluralizer = pluralizer or InflectPluralizer()
        self.clock = clock
        self.globals: Dict[str, Callable] = {}
        self.filters: Dict[str, Callable] = {}
        self._register_defaults()

    def register_global(self, name: str, func: Callable):
        self.globals[name] = func

    def register_filter(self, name: str, func: Callable):
        self.filters[name] = func

    def _register_defaults(self):
        self.register_global("now", lambda fmt="u": format_now(fmt, self.clock))
        self.register_filter("snake_case", to_snake_case)
        self.register_filter("camel_case", to_camel_case)
        self.register_filter("pascal_case", to_pascal_case)
        self.register_filter("pluralize", self.pluralizer.pluralize)
        self.register_filter("singularize", self.pluralizer.singularize)
        self.register_filter("comment", _comment_filter)
        self.register_filter("indent_code", _indent_filter)


def _indent_filter(value: str, spaces: int = 4) -> str:
    """Indent all non-blank lines in a string."""
    indent = " " * spaces
    lines = str(value).split("\n")
    return "\n".join(indent + line if line.strip() else line for line in lines)


def _comment_filter(value: str, style: str = "//") -> str:
    """Add comment markers to each line."""
    lines = str(value).split("\n")
    return "\n".join(f"{style} {line}" if line.strip() else line for line in lines)


def _strip_template_suffix(name: str) -> str:
    for suffix in TEMPLATE_SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


class TemplateEngine:
    """Wrapper for a Jinja2 environment bound to one template directory."""

    def __init__(
        self,
        template_dir: Optional[Path] = None,
        helpers: Optional[HelperRegistry] = None,
        output_extension: Optional[str] = None,
        excluded_data_files: Optional[List[str]] = None,
    ):
        """
        Initialize template engine.

        Args:
            template_dir: Directory containing templates, partials and data files
            helpers: Helper registry for this engine (a fresh one by default)
            output_extension: Extension appended to output names that have none
            excluded_data_files: Data file names never loaded as auxiliary data
        """
        self.template_dir = Path(template_dir) if template_dir else None
        self.helpers = helpers or HelperRegistry()
        self.output_extension = output_extension
        self.excluded_data_files = set(excluded_data_files or [])
        self._memory = DictLoader({})
        self._partials: Dict[str, str] = {}
        self._templates: List[str] = []
        self._env: Environment = None
        self._setup_environment()

    def _setup_environment(self):
        """Setup Jinja2 environment with code generation utilities."""
        loaders = [self._memory]
        if self.template_dir is not None:
            if not self.template_dir.is_dir():
                raise TemplateError(f"Template directory not found: {self.template_dir}")
            self._discover()
            loaders.append(DictLoader(self._partials))
            loaders.append(FileSystemLoader(str(self.template_dir)))

        self._env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(["html", "xml"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.globals.update(self.helpers.globals)
        self._env.filters.update(self.helpers.filters)

    def _discover(self):
        for path in sorted(self.template_dir.iterdir()):
            if not path.is_file() or not path.name.endswith(TEMPLATE_SUFFIXES):
                continue
            if path.name.startswith("_"):
                name = _strip_template_suffix(path.name[1:])
                try:
                    self._partials[name] = path.read_text(encoding="utf-8")
                except OSError as e:
                    raise TemplateError(f"Cannot read partial {path}: {e}") from e
                logger.debug("Registered partial '%s' from %s", name, path.name)
            else:
                self._templates.append(path.name)
        logger.info(
            "Found %d template(s) and %d partial(s) in %s",
            len(self._templates),
            len(self._partials),
            self.template_dir,
        )

    @property
    def templates(self) -> List[str]:
        """Top-level template file names, sorted."""
        return list(self._templates)

    @property
    def partials(self) -> List[str]:
        return sorted(self._partials)

    def output_name(self, template_name: str) -> str:
        """Output file name for a template: models.py.j2 -> models.py."""
        name = _strip_template_suffix(template_name)
        if self.output_extension and not Path(name).suffix:
            name += self.output_extension
        return name

    def load_data(self) -> Dict[str, Any]:
        """
        Load auxiliary documents keyed by file stem.

        Raises:
            TemplateError: If a document cannot be parsed
        """
        data: Dict[str, Any] = {}
        if self.template_dir is None:
            return data
        for path in sorted(self.template_dir.iterdir()):
            if not path.is_file() or path.suffix.lower() not in DATA_SUFFIXES:
                continue
            if path.name in self.excluded_data_files:
                continue
            try:
                text = path.read_text(encoding="utf-8")
                if path.suffix.lower() == ".json":
                    data[path.stem] = json.loads(text)
                else:
                    data[path.stem] = yaml.safe_load(text)
            except (OSError, ValueError, yaml.YAMLError) as e:
                raise TemplateError(f"Failed to load data file {path.name}: {e}") from e
        return data

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with the given context.

        Args:
            template_name: Name of template file
            context: Variables to pass to template

        Returns:
            Rendered template content

        Raises:
            TemplateError: If the template is missing or fails to render
        """
        try:
            template = self._env.get_template(template_name)
            return template.render(**context)
        except Exception as e:
            raise TemplateError(f"Failed to render template {template_name}: {e}") from e

    def render_string(self, template_string: str, context: Dict[str, Any]) -> str:
        """Render a template string with the given context."""
        try:
            template = self._env.from_string(template_string)
            return template.render(**context)
        except Exception as e:
            raise TemplateError(f"Failed to render template string: {e}") from e

    def add_template(self, name: str, content: str):
        """Add an in-memory template (takes precedence over files)."""
        self._memory.mapping[name] = content

    def template_exists(self, template_name: str) -> bool:
        return template_name in self._env.list_templates()
