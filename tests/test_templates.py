"""Tests for the template engine."""

import pytest

from schema_explorer.codegen.core.naming import InflectPluralizer
from schema_explorer.codegen.core.templates import (
    HelperRegistry,
    TemplateEngine,
    TemplateError,
    format_now,
)


@pytest.fixture
def template_dir(tmp_path):
    directory = tmp_path / "shop"
    directory.mkdir()
    (directory / "_header.j2").write_text("// {{ namespace }}\n", encoding="utf-8")
    (directory / "entities.txt.j2").write_text(
        "{% include 'header' %}{% for name in names %}{{ name | pluralize }}\n{% endfor %}",
        encoding="utf-8",
    )
    (directory / "Readme.j2").write_text("owner={{ data.team.owner }}\n", encoding="utf-8")
    (directory / "team.yaml").write_text("owner: platform\n", encoding="utf-8")
    (directory / "flags.json").write_text('{"debug": true}', encoding="utf-8")
    (directory / "codegen.json").write_text("{}", encoding="utf-8")
    (directory / "notes.md").write_text("ignored", encoding="utf-8")
    return directory


class TestFormatNow:
    def test_universal_format(self, fixed_clock):
        assert format_now("u", fixed_clock) == "2024-01-31 13:45:00Z"

    def test_iso_and_pattern(self, fixed_clock):
        assert format_now("o", fixed_clock).startswith("2024-01-31T13:45:00")
        assert format_now("%Y", fixed_clock) == "2024"


class TestHelperRegistry:
    def test_default_helpers(self):
        helpers = HelperRegistry(InflectPluralizer({"person": "people"}))
        assert helpers.filters["pluralize"]("Person") == "People"
        assert helpers.filters["singularize"]("Orders") == "Order"
        assert helpers.filters["snake_case"]("OrderDate") == "order_date"
        assert "now" in helpers.globals

    def test_registries_are_independent(self):
        first = HelperRegistry()
        second = HelperRegistry()
        first.register_filter("shout", str.upper)
        assert "shout" not in second.filters


class TestTemplateEngine:
    """Discovery, partials, data files and rendering."""

    def test_discovery(self, template_dir):
        engine = TemplateEngine(template_dir)
        assert engine.templates == ["Readme.j2", "entities.txt.j2"]
        assert engine.partials == ["header"]

    def test_partials_and_filters(self, template_dir):
        engine = TemplateEngine(template_dir)
        output = engine.render_template(
            "entities.txt.j2", {"namespace": "Shop", "names": ["Customer", "Order"]}
        )
        assert output == "// Shop\nCustomers\nOrders\n"

    def test_data_files(self, template_dir):
        engine = TemplateEngine(template_dir, excluded_data_files=["codegen.json"])
        data = engine.load_data()
        assert data == {"team": {"owner": "platform"}, "flags": {"debug": True}}

    def test_render_with_data(self, template_dir):
        engine = TemplateEngine(template_dir)
        output = engine.render_template("Readme.j2", {"data": {"team": {"owner": "x"}}})
        assert output == "owner=x\n"

    def test_output_names(self, template_dir):
        engine = TemplateEngine(template_dir, output_extension=".cs")
        assert engine.output_name("entities.txt.j2") == "entities.txt"
        assert engine.output_name("Readme.j2") == "Readme.cs"

    def test_undefined_variable_fails(self, template_dir):
        engine = TemplateEngine(template_dir)
        with pytest.raises(TemplateError, match="Readme.j2"):
            engine.render_template("Readme.j2", {})

    def test_bad_data_file(self, template_dir):
        (template_dir / "broken.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(TemplateError, match="broken.json"):
            TemplateEngine(template_dir).load_data()

    def test_missing_directory(self, tmp_path):
        with pytest.raises(TemplateError, match="not found"):
            TemplateEngine(tmp_path / "missing")

    def test_in_memory_templates(self, fixed_clock):
        engine = TemplateEngine(helpers=HelperRegistry(clock=fixed_clock))
        engine.add_template("greeting", "Hello {{ name | camel_case }} at {{ now() }}")
        assert engine.template_exists("greeting")
        assert engine.render_template("greeting", {"name": "order_date"}) == (
            "Hello orderDate at 2024-01-31 13:45:00Z"
        )

    def test_render_string(self):
        engine = TemplateEngine()
        assert engine.render_string("{{ text | comment('#') }}", {"text": "a\nb"}) == "# a\n# b"
        assert engine.render_string("{{ 'x' | indent_code(2) }}", {}) == "  x"
