"""Markdown rendering for question text shown on the taker page.

Question text may contain markdown and ``$...$`` LaTeX. The server turns the
markdown into an HTML fragment and the browser typesets the math with
MathJax, so the same source renders identically wherever it is displayed.
Raw HTML in author text is escaped, never passed through.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        sanitized = markdown_text.strip()
        if not sanitized:
            return "<p><em>No content provided.</em></p>"
        return self._markdown.render(sanitized)


renderer = MarkdownMathRenderer()
# Shared instance; MarkdownIt renders are read-only, and the API runs on a
# single event loop.
