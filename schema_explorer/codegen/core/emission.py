"""
Per-render emission context for direct code generation.

Each render call creates its own EmissionContext, which owns the output
buffer and the current indentation depth. Nothing about indentation is
shared between renders.
"""

from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional


class EmissionContext:
    """Line buffer with explicit indentation depth."""

    def __init__(self, indent: str = "    ", line_ending: str = "\n"):
        self.indent = indent
        self.line_ending = line_ending
        self.depth = 0
        self._lines: List[str] = []

    def line(self, text: str = ""):
        """Append one line at the current depth; empty text gives a blank line."""
        if text:
            self._lines.append(f"{self.indent * self.depth}{text}")
        else:
            self._lines.append("")

    def lines(self, text: Optional[str]):
        """Append multi-line text, each line at the current depth."""
        if not text:
            return
        for part in text.splitlines():
            self.line(part.rstrip())

    def extend(self, texts: Iterable[str]):
        for text in texts:
            self.line(text)

    def blank(self):
        """Append a blank line unless the buffer already ends with one."""
        if self._lines and self._lines[-1] != "":
            self._lines.append("")

    @contextmanager
    def block(self, header: Optional[str] = None, footer: Optional[str] = None) -> Iterator["EmissionContext"]:
        """
        Emit an indented block.

        The header is written at the current depth, the body one level
        deeper and the footer back at the original depth. The depth is
        restored on every exit path, including exceptions.
        """
        if header is not None:
            self.line(header)
        saved = self.depth
        self.depth += 1
        try:
            yield self
        finally:
            self.depth = saved
        if footer is not None:
            self.line(footer)

    def render(self) -> str:
        return self.line_ending.join(self._lines) + self.line_ending

    def __len__(self) -> int:
        return len(self._lines)
