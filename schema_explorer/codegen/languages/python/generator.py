"""
Python code generator implementation.

Emits one module of keyword-only dataclasses, one per table. Database
mapping details (schema, alias, keys, foreign keys) are carried as class
level markers and per-field ``metadata``.
"""

import json
from typing import Any, Dict, List, Set

from ...core.annotate import ResolvedEntity, ResolvedModel, ResolvedProperty
from ...core.emission import EmissionContext
from ...core.generator import CodeGenerator
from ...core.relationships import NavigationProperty
from ...core.schema import TypeCategory
from ...core.templates import format_now
from .config import PythonTypeMapper, get_required_imports
from .naming import get_python_reserved_words


def _literal(value: Any) -> str:
    """Render a Python literal for generated code."""
    if isinstance(value, bool) or value is None:
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, dict):
        items = ", ".join(f"{_literal(k)}: {_literal(v)}" for k, v in value.items())
        return "{" + items + "}"
    if isinstance(value, (list, tuple)):
        inner = ", ".join(_literal(v) for v in value)
        if len(value) == 1:
            inner += ","
        return f"({inner})"
    return repr(value)


class PythonGenerator(CodeGenerator):
    """Code generator for Python dataclasses."""

    @property
    def language_name(self) -> str:
        """Return the language name."""
        return "python"

    @property
    def file_extension(self) -> str:
        """Return Python file extension."""
        return ".py"

    @property
    def reserved_words(self) -> Set[str]:
        return get_python_reserved_words()

    def create_type_mapper(self) -> PythonTypeMapper:
        return PythonTypeMapper()

    def generate(self, model: ResolvedModel) -> str:
        """Generate the complete module for all entities."""
        ctx = self.create_context()
        self._emit_header(ctx, model)

        for entity in model.entities:
            ctx.line()
            ctx.line()
            self._emit_entity(ctx, entity, model)

        return ctx.render()

    def get_import_statements(self, model: ResolvedModel) -> List[str]:
        type_names = ["ClassVar"]
        for entity in model.entities:
            type_names.extend(p.type_name for p in entity.properties if not p.error)

        imports = get_required_imports(type_names)
        # Sort imports: standard library modules alphabetically
        sorted_imports = sorted(imports)
        return sorted_imports + super().get_import_statements(model)

    def _emit_header(self, ctx: EmissionContext, model: ResolvedModel):
        ctx.line('"""')
        ctx.line(f"Models for {self.settings.namespace}.")
        if self.settings.emit_timestamp:
            ctx.line()
            ctx.line(f"Auto-generated on {format_now('u', self.clock)}")
        ctx.line('"""')
        ctx.line()
        ctx.line("from __future__ import annotations")
        ctx.line()
        ctx.line("from dataclasses import dataclass, field")
        ctx.extend(self.get_import_statements(model))

    def _emit_entity(self, ctx: EmissionContext, entity: ResolvedEntity, model: ResolvedModel):
        ctx.lines(entity.code_before)
        for message in entity.warnings:
            ctx.line(f"# Warning: {message}")

        base = f"({entity.base_type})" if entity.base_type else ""
        ctx.line("@dataclass(kw_only=True)")
        with ctx.block(f"class {entity.class_name}{base}:"):
            if entity.table.description:
                ctx.line(f'"""{entity.table.description}"""')
                ctx.line()

            markers = self._class_markers(entity, model)
            ctx.extend(markers)

            if markers and (entity.properties or entity.references or entity.collections):
                ctx.line()

            for prop in entity.properties:
                self._emit_property(ctx, entity, prop)

            if entity.references or entity.collections:
                ctx.blank()
            for nav in entity.references:
                self._emit_navigation(ctx, nav)
            for nav in entity.collections:
                self._emit_navigation(ctx, nav)

            if not (markers or entity.properties or entity.references or entity.collections):
                ctx.line("pass")

    def _class_markers(self, entity: ResolvedEntity, model: ResolvedModel) -> List[str]:
        table = entity.table
        markers = []

        if not (self.settings.omit_schema_marker_if_single_schema and model.schema_count == 1):
            markers.append(f"__schema__: ClassVar[str] = {_literal(entity.schema_name)}")

        if entity.needs_alias:
            markers.append(f"__alias__: ClassVar[str] = {_literal(table.name)}")

        if table.has_composite_key:
            markers.append(
                "__composite_key__: ClassVar[tuple[str, ...]] = "
                f"{_literal(table.primary_key.column_names)}"
            )

        composite = [
            (index.column_names, index.is_unique)
            for index in table.indexes.values()
            if len(index.column_names) > 1
        ]
        if composite:
            rendered = ", ".join(
                f"({_literal(columns)}, {_literal(unique)})" for columns, unique in composite
            )
            if len(composite) == 1:
                rendered += ","
            markers.append(f"__composite_indexes__: ClassVar[tuple] = ({rendered})")

        return markers

    def _field_metadata(self, entity: ResolvedEntity, prop: ResolvedProperty) -> Dict[str, Any]:
        column = prop.column
        metadata: Dict[str, Any] = {}

        if prop.needs_alias:
            metadata["alias"] = column.name
        if column.is_primary_key:
            metadata["primary_key"] = True
        elif not column.is_nullable:
            metadata["required"] = True
        if column.is_unique:
            metadata["unique"] = True

        assoc = prop.association
        if assoc is not None and prop.foreign_key_target:
            foreign_key = {"references": prop.foreign_key_target, "name": assoc.name}
            if self.settings.include_foreign_key_rules:
                if assoc.delete_rule:
                    foreign_key["on_delete"] = assoc.delete_rule
                if assoc.update_rule:
                    foreign_key["on_update"] = assoc.update_rule
            metadata["foreign_key"] = foreign_key

        if column.is_identity:
            metadata["auto_increment"] = True
        if column.is_computed:
            metadata["computed"] = True
        if column.type_category == TypeCategory.STRING and column.length and column.length > 0:
            metadata["max_length"] = column.length

        return metadata

    def _emit_property(self, ctx: EmissionContext, entity: ResolvedEntity, prop: ResolvedProperty):
        if prop.error:
            ctx.line(f"# ERR: {prop.error}")
            return

        for message in prop.warnings:
            ctx.line(f"# Warning: {message}")
        ctx.lines(prop.code_before)

        metadata = self._field_metadata(entity, prop)
        default = prop.default_value
        if default is None and prop.column.is_nullable:
            default = "None"

        args = []
        if default is not None:
            args.append(f"default={default}")
        if metadata:
            args.append(f"metadata={_literal(metadata)}")

        line = f"{prop.name}: {prop.type_name}"
        if metadata:
            line += f" = field({', '.join(args)})"
        elif default is not None:
            line += f" = {default}"

        if prop.is_unknown_type:
            line += f"  # DbDataType: {prop.column.native_type}"
        ctx.line(line)

    def _emit_navigation(self, ctx: EmissionContext, nav: NavigationProperty):
        metadata = _literal({"reference": True, "foreign_key": nav.via_column})
        if nav.is_collection:
            ctx.line(
                f"{nav.name}: list[{nav.target_class}] = "
                f"field(default_factory=list, metadata={metadata})"
            )
        else:
            ctx.line(
                f"{nav.name}: {nav.target_class} | None = "
                f"field(default=None, metadata={metadata})"
            )