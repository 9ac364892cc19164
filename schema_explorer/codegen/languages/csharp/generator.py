"""
C# code generator implementation.

Emits one file of partial POCO classes decorated with ServiceStack
OrmLite data annotations. References to parent rows follow the foreign
key property they navigate; child collections close each class.
"""

import json
from typing import Dict, List, Optional, Set

from ...core.annotate import ResolvedEntity, ResolvedModel, ResolvedProperty
from ...core.emission import EmissionContext
from ...core.generator import CodeGenerator
from ...core.relationships import NavigationProperty
from ...core.schema import TypeCategory
from ...core.templates import format_now
from .config import DEFAULT_USING_NAMESPACES, CSharpTypeMapper, sort_usings
from .naming import CSHARP_RESERVED_WORDS

RULE = "// " + "-" * 70


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


class CSharpGenerator(CodeGenerator):
    """Code generator for C# OrmLite classes."""

    @property
    def language_name(self) -> str:
        return "csharp"

    @property
    def file_extension(self) -> str:
        return ".cs"

    @property
    def reserved_words(self) -> Set[str]:
        return set(CSHARP_RESERVED_WORDS)

    @property
    def default_primary_key_property_name(self) -> Optional[str]:
        return "Id"

    def create_type_mapper(self) -> CSharpTypeMapper:
        return CSharpTypeMapper()

    def get_import_statements(self, model: ResolvedModel) -> List[str]:
        """Using directives, System namespaces first."""
        namespaces = DEFAULT_USING_NAMESPACES + super().get_import_statements(model)
        return [f"using {ns};" for ns in sort_usings(namespaces)]

    def generate(self, model: ResolvedModel) -> str:
        ctx = self.create_context()

        ctx.line(RULE)
        if self.settings.emit_timestamp:
            ctx.line(f"// Auto-generated on {format_now('u', self.clock)}")
            ctx.line("//")
        ctx.line("// Use partial classes to override or extend functionality.")
        ctx.line(RULE)
        ctx.line()
        ctx.extend(self.get_import_statements(model))
        ctx.line()

        ctx.line(f"namespace {self.settings.namespace}")
        with ctx.block("{", footer="}"):
            first = True
            for entity in model.entities:
                if not first:
                    ctx.line()
                first = False
                self._emit_entity(ctx, entity, model)

        return ctx.render()

    def _emit_entity(self, ctx: EmissionContext, entity: ResolvedEntity, model: ResolvedModel):
        table = entity.table
        names_by_column: Dict[str, str] = {p.column.name: p.name for p in entity.properties}

        ctx.lines(entity.code_before)
        for message in entity.warnings:
            ctx.line(f"// Warning: {message}")

        if table.description:
            ctx.line("/// <summary>")
            ctx.line(f"/// {table.description}")
            ctx.line("/// </summary>")
        if not (self.settings.omit_schema_marker_if_single_schema and model.schema_count == 1):
            ctx.line(f"[Schema({_quote(entity.schema_name)})]")
        ctx.line(f"[Alias({_quote(table.name)})]")

        for index in table.indexes.values():
            if len(index.column_names) < 2:
                continue
            columns = ", ".join(_quote(names_by_column.get(c, c)) for c in index.column_names)
            unique = "true" if index.is_unique else "false"
            ctx.line(
                f"[CompositeIndex({columns}, Name = {_quote(index.name)}, Unique = {unique})]"
            )
        if table.has_composite_key:
            columns = ", ".join(
                _quote(names_by_column.get(c, c)) for c in table.primary_key.column_names
            )
            ctx.line(f"[CompositeKey({columns})]")

        base = f" : {entity.base_type}" if entity.base_type else ""
        references = {nav.via_column: nav for nav in entity.references}
        # Composite keys are declared on the class instead
        single_key = not table.has_composite_key and len(table.primary_key.column_names) == 1

        ctx.line(f"public partial class {entity.class_name}{base}")
        with ctx.block("{", footer="}"):
            ctx.line("#region Properties")
            for prop in entity.properties:
                ctx.line()
                self._emit_property(ctx, prop, single_key)
                nav = references.pop(prop.column.name, None)
                if nav is not None:
                    ctx.line()
                    self._emit_navigation(ctx, nav)
            for nav in list(references.values()) + list(entity.collections):
                ctx.line()
                self._emit_navigation(ctx, nav)
            ctx.line()
            ctx.line("#endregion //Properties")

    def _emit_property(self, ctx: EmissionContext, prop: ResolvedProperty, single_key: bool):
        if prop.error:
            ctx.line(f"//ERR: {prop.error}")
            return

        column = prop.column
        for message in prop.warnings:
            ctx.line(f"// Warning: {message}")
        ctx.lines(prop.code_before)

        ctx.line(f"[Alias({_quote(column.name)})]")
        if column.is_primary_key and single_key:
            ctx.line("[PrimaryKey]")
        elif not column.is_nullable:
            ctx.line("[Required]")
        if column.is_unique:
            ctx.line("[Index(true)]")

        assoc = prop.association
        if assoc is not None and prop.foreign_key_target:
            args = [f"typeof({prop.foreign_key_target})", f"ForeignKeyName = {_quote(assoc.name)}"]
            if self.settings.include_foreign_key_rules:
                if assoc.delete_rule:
                    args.append(f"OnDelete = {_quote(assoc.delete_rule)}")
                if assoc.update_rule:
                    args.append(f"OnUpdate = {_quote(assoc.update_rule)}")
            ctx.line(f"[ForeignKey({', '.join(args)})]")

        if column.is_identity:
            ctx.line("[AutoIncrement]")
        if column.is_computed:
            ctx.line("[Compute]")
        if column.type_category == TypeCategory.STRING and column.length and column.length > 0:
            ctx.line(f"[StringLength({column.length})]")

        line = f"public virtual {prop.type_name} {prop.name} {{ get; set; }}"
        if prop.default_value is not None:
            line += f" = {prop.default_value};"
        ctx.line(line)

    def _emit_navigation(self, ctx: EmissionContext, nav: NavigationProperty):
        ctx.line("[Reference]")
        if nav.is_collection:
            ctx.line(f"public virtual List<{nav.target_class}> {nav.name} {{ get; set; }}")
        else:
            ctx.line(f"public virtual {nav.target_class} {nav.name} {{ get; set; }}")
