"""HTML document assembly."""

import html
import logging
from dataclasses import dataclass

from pygments.formatters import HtmlFormatter
from pygments.util import ClassNotFound

logger = logging.getLogger(__name__)

DEFAULT_MERMAID_URL = "https://cdn.jsdelivr.net/npm/mermaid@11/dist/mermaid.min.js"


@dataclass(frozen=True)
class RenderableDocument:
    """A complete HTML document ready for the render engine."""

    html: str
    has_diagrams: bool


@dataclass(frozen=True)
class DocumentOptions:
    """Presentation options for the document shell."""

    title: str | None = None
    mermaid_url: str = DEFAULT_MERMAID_URL
    mermaid_theme: str = "default"
    highlight_style: str | None = "default"


def build_document(
    body_html: str,
    stylesheet: str,
    *,
    has_diagrams: bool,
    options: DocumentOptions | None = None,
) -> RenderableDocument:
    """Wrap body HTML in a printable document shell.

    The Mermaid bootstrap is only included when the document has diagrams,
    so plain documents load without fetching the diagram engine.

    Args:
        body_html: Final body markup
        stylesheet: Stylesheet text, embedded verbatim
        has_diagrams: Whether the body contains diagram containers
        options: Title, Mermaid and highlighting options

    Returns:
        RenderableDocument carrying the has_diagrams flag
    """
    options = options or DocumentOptions()

    head = [
        '  <meta charset="UTF-8">',
        '  <meta name="viewport" content="width=device-width, initial-scale=1.0">',
    ]
    if options.title:
        head.append(f"  <title>{html.escape(options.title)}</title>")

    highlight_css = _highlight_css(options.highlight_style)
    if highlight_css:
        head.append(f"  <style>{highlight_css}</style>")
    head.append(f"  <style>{stylesheet}</style>")

    if has_diagrams:
        head.append(_mermaid_bootstrap(options))

    document = (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        + "\n".join(head)
        + "\n</head>\n"
        "<body>\n"
        f"  <article>{body_html}</article>\n"
        "</body>\n"
        "</html>\n"
    )

    logger.debug(f"Assembled document: {len(document)} characters, diagrams={has_diagrams}")
    return RenderableDocument(html=document, has_diagrams=has_diagrams)


def _mermaid_bootstrap(options: DocumentOptions) -> str:
    url = html.escape(options.mermaid_url)
    theme = options.mermaid_theme.replace("\\", "\\\\").replace("'", "\\'")
    return (
        f'  <script src="{url}"></script>\n'
        "  <script>\n"
        f"    mermaid.initialize({{ startOnLoad: true, theme: '{theme}' }});\n"
        "  </script>"
    )


def _highlight_css(style: str | None) -> str:
    """Return Pygments CSS for highlighted code, or "" when disabled.

    Unknown style names are logged and skipped.
    """
    if not style:
        return ""
    try:
        return HtmlFormatter(style=style).get_style_defs(".highlight")
    except ClassNotFound:
        logger.warning(f"Unknown highlight style {style!r}, skipping highlight CSS")
        return ""
