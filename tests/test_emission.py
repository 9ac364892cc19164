"""Tests for the per-render emission context."""

import pytest

from schema_explorer.codegen.core.emission import EmissionContext


class TestEmissionContext:
    def test_block_indents_body(self):
        ctx = EmissionContext(indent="  ")
        with ctx.block("class A:"):
            ctx.line("x = 1")
            with ctx.block("def f(self):"):
                ctx.line("pass")
        ctx.line("done")
        assert ctx.render() == "class A:\n  x = 1\n  def f(self):\n    pass\ndone\n"

    def test_footer_at_header_depth(self):
        ctx = EmissionContext()
        with ctx.block("{", footer="}"):
            ctx.line("body")
        assert ctx.render() == "{\n    body\n}\n"

    def test_depth_restored_after_exception(self):
        ctx = EmissionContext()
        with pytest.raises(RuntimeError):
            with ctx.block("outer"):
                with ctx.block("inner"):
                    raise RuntimeError("fail")
        assert ctx.depth == 0
        ctx.line("after")
        assert ctx.render().endswith("\nafter\n")

    def test_contexts_are_independent(self):
        first = EmissionContext()
        second = EmissionContext()
        with first.block("a"):
            second.line("b")
        assert second.render() == "b\n"

    def test_lines_and_blank(self):
        ctx = EmissionContext()
        ctx.lines("one\ntwo  \n")
        ctx.lines(None)
        ctx.blank()
        ctx.blank()
        assert ctx.render() == "one\ntwo\n\n"
        assert len(ctx) == 3

    def test_line_ending(self):
        ctx = EmissionContext(line_ending="\r\n")
        ctx.extend(["a", "b"])
        assert ctx.render() == "a\r\nb\r\n"
