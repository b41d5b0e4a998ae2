"""Markdown parsing with syntax highlighting.

Converts GitHub-flavored markdown to HTML with mistune, highlighting code
fences with Pygments and intercepting diagram fences for later reinjection.
"""

import html
import logging
import re
from dataclasses import dataclass
from typing import Any

import mistune
from mistune.util import escape
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_by_name, guess_lexer
from pygments.util import ClassNotFound

from mdpress.core.diagrams import DiagramBlock, ExtractionContext, Node, split_nodes

logger = logging.getLogger(__name__)

GFM_PLUGINS = ["table", "task_lists", "strikethrough"]

TAG_RE = re.compile(r"<[^>]+>")


@dataclass
class ParseResult:
    """Result of parsing a markdown document."""

    nodes: list[Node]
    diagrams: list[DiagramBlock]
    title: str | None


class HighlightRenderer(mistune.HTMLRenderer):
    """HTML renderer with Pygments highlighting and diagram interception.

    Raw HTML in the source is passed through, as GitHub does.
    """

    def __init__(self, context: ExtractionContext, diagram_language: str = "mermaid") -> None:
        super().__init__(escape=False)
        self._context = context
        self._diagram_language = diagram_language
        self._formatter = HtmlFormatter(nowrap=True)
        self.title: str | None = None

    def heading(self, text: str, level: int, **attrs: Any) -> str:
        if level == 1 and self.title is None:
            self.title = html.unescape(TAG_RE.sub("", text)).strip() or None
        return super().heading(text, level, **attrs)

    def block_code(self, code: str, info: str | None = None) -> str:
        lang = info.strip().split(None, 1)[0] if info and info.strip() else ""

        if lang == self._diagram_language:
            source = code[:-1] if code.endswith("\n") else code
            return self._context.register(source) + "\n"

        lexer = _resolve_lexer(lang, code)
        highlighted = highlight(code, lexer, self._formatter)
        class_attr = f"highlight language-{escape(lang)}" if lang else "highlight"
        return f'<pre><code class="{class_attr}">{highlighted}</code></pre>\n'


def _resolve_lexer(lang: str, code: str) -> Lexer:
    """Pick a Pygments lexer for a code fence.

    Named languages use their lexer. Unknown or missing tags fall back to
    content-based detection, then to plain text.

    Args:
        lang: Language tag from the fence info string (may be empty)
        code: Fence contents

    Returns:
        Lexer instance
    """
    if lang:
        try:
            return get_lexer_by_name(lang)
        except ClassNotFound:
            logger.debug(f"Unknown language {lang!r}, guessing from content")

    try:
        return guess_lexer(code)
    except ClassNotFound:
        return TextLexer()


def parse_markdown(text: str, *, diagram_language: str = "mermaid") -> ParseResult:
    """Parse markdown into typed nodes and extracted diagram blocks.

    Args:
        text: Markdown source
        diagram_language: Fence language tag marking diagram source

    Returns:
        ParseResult with the node sequence, diagram blocks and first H1 title
    """
    context = ExtractionContext.for_source(text)
    renderer = HighlightRenderer(context, diagram_language)
    markdown = mistune.create_markdown(renderer=renderer, plugins=GFM_PLUGINS)

    logger.debug(f"Parsing {len(text)} characters of markdown")
    body = markdown(text)
    nodes = split_nodes(body, context)

    logger.info(f"Parsed markdown: {len(context.diagrams)} diagram(s)")
    return ParseResult(nodes=nodes, diagrams=list(context.diagrams), title=renderer.title)
