"""Render comment, issue, pull request and release bodies for display."""

from __future__ import annotations

import html
import re
from enum import Enum
from typing import Protocol

_FENCE = re.compile(r"```[^\n`]*\n(?P<code>.*?)(?:```|\Z)", re.DOTALL)
_INLINE_CODE = re.compile(r"(`[^`\n]+`)")
_LINK = re.compile(r"\[(?P<label>[^\]\n]+)\]\((?P<url>[^)\s]+)\)")
_SPANS = re.compile(r"(`[^`\n]+`|\[[^\]\n]+\]\([^)\s]+\))")
_SAFE_URL = re.compile(r"(?:https?://|mailto:)", re.IGNORECASE)
_BOLD = re.compile(r"(\*\*|__)(?P<text>[^\n]+?)\1")
_ITALIC = re.compile(r"(?<![\w*])([*_])(?P<text>[^\s*_](?:[^\n]*?[^\s*_])?)\1(?![\w*])")
_HEADING = re.compile(r"^\s{0,3}#{1,6}\s+", re.MULTILINE)
_BLANK_LINES = re.compile(r"\n\s*\n+")

LINE_BREAK = "<br/>"


class MarkdownMode(str, Enum):
    """Rendering modes for text bodies."""

    INLINE = "inline"  # Inline HTML, fenced code truncated
    NONE = "none"  # Raw text


class ContentRenderer(Protocol):
    """Protocol for content renderers used by the classifier."""

    def render(self, text: str | None, *, mode: str, codelines: int) -> str:
        """Render a text body.

        Args:
            text: Raw markdown body (may be None)
            mode: Rendering mode
            codelines: Maximum lines kept per fenced code block
        """


class MarkdownRenderer:
    """Small markdown-to-inline-HTML renderer for activity cards."""

    def render(
        self,
        text: str | None,
        *,
        mode: str = MarkdownMode.INLINE.value,
        codelines: int = 2,
    ) -> str:
        """Render a text body according to the requested mode.

        Args:
            text: Raw markdown body (None renders as an empty string)
            mode: "inline" or "none"
            codelines: Maximum lines kept per fenced code block

        Returns:
            Rendered text

        Raises:
            ValueError: If the mode is unknown
        """
        try:
            resolved = MarkdownMode(mode)
        except ValueError as e:
            raise ValueError(f"Unsupported markdown mode: {mode}") from e

        if text is None:
            return ""
        if resolved is MarkdownMode.NONE:
            return text

        source = text.replace("\r\n", "\n").strip()
        parts: list[str] = []
        position = 0
        for match in _FENCE.finditer(source):
            parts.append(self._render_prose(source[position : match.start()]))
            parts.append(self._render_code(match.group("code"), codelines))
            position = match.end()
        parts.append(self._render_prose(source[position:]))

        return LINE_BREAK.join(part for part in parts if part)

    def _render_code(self, code: str, codelines: int) -> str:
        """Render a fenced code block truncated to ``codelines`` lines."""
        lines = code.rstrip("\n").split("\n")
        if codelines >= 0 and len(lines) > codelines:
            lines = [*lines[:codelines], "..."]
        escaped = LINE_BREAK.join(html.escape(line) for line in lines)
        return f"<code>{escaped}</code>"

    def _emphasize(self, text: str) -> str:
        text = _BOLD.sub(r"<b>\g<text></b>", text)
        return _ITALIC.sub(r"<i>\g<text></i>", text)

    def _render_link(self, label: str, url: str) -> str:
        """Render a link; a URL that is not http(s) or mailto renders as its label."""
        label = self._emphasize(label)
        if not _SAFE_URL.match(url):
            return label
        return f'<a href="{url}">{label}</a>'

    def _render_prose(self, text: str) -> str:
        text = _HEADING.sub("", text.strip())
        if not text:
            return ""

        rendered = []
        for piece in _SPANS.split(html.escape(text)):
            if _INLINE_CODE.fullmatch(piece):
                rendered.append(f"<code>{piece[1:-1]}</code>")
                continue
            link = _LINK.fullmatch(piece)
            if link:
                rendered.append(self._render_link(link.group("label"), link.group("url")))
                continue
            rendered.append(self._emphasize(piece))

        paragraphs = _BLANK_LINES.split("".join(rendered))
        return LINE_BREAK.join(
            " ".join(line.strip() for line in paragraph.split("\n") if line.strip())
            for paragraph in paragraphs
        )
