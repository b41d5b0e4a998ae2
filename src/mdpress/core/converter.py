"""Markdown to PDF conversion pipeline.

Runs parse, diagram reinjection, document assembly and rendering for one
document. Each conversion gets its own extraction state and browser.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path

from mdpress.core.diagrams import reinject_diagrams
from mdpress.core.document import DocumentOptions, RenderableDocument, build_document
from mdpress.core.engine import ExportedArtifact, RenderEngine, SurfaceLauncher
from mdpress.core.parser import parse_markdown

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConverterOptions:
    """Options for a conversion pipeline."""

    diagram_language: str = "mermaid"
    strict_diagrams: bool = False
    document: DocumentOptions = field(default_factory=DocumentOptions)
    diagram_timeout: float = 30.0
    poll_interval: float = 0.1
    settle_delay: float = 0.5


class Converter:
    """Converts markdown text to a paginated PDF."""

    def __init__(
        self,
        options: ConverterOptions | None = None,
        *,
        launcher: SurfaceLauncher | None = None,
    ) -> None:
        """Initialize converter.

        Args:
            options: Pipeline options (defaults if omitted)
            launcher: Render surface factory (default: headless Chromium)
        """
        self._options = options or ConverterOptions()
        self._launcher = launcher

    def build_html(self, markdown_text: str, stylesheet: str) -> RenderableDocument:
        """Produce the assembled HTML document without rendering it.

        Args:
            markdown_text: Markdown source
            stylesheet: Stylesheet text

        Returns:
            RenderableDocument with has_diagrams computed from extracted blocks
        """
        options = self._options
        parsed = parse_markdown(markdown_text, diagram_language=options.diagram_language)
        body = reinject_diagrams(parsed.nodes, parsed.diagrams, strict=options.strict_diagrams)

        has_diagrams = len(parsed.diagrams) > 0
        if has_diagrams:
            logger.info(f"{len(parsed.diagrams)} diagram(s) detected, Mermaid will be loaded")

        document_options = options.document
        if document_options.title is None and parsed.title:
            document_options = replace(document_options, title=parsed.title)

        return build_document(
            body,
            stylesheet,
            has_diagrams=has_diagrams,
            options=document_options,
        )

    async def convert_async(
        self,
        markdown_text: str,
        stylesheet: str,
        output_path: Path,
    ) -> ExportedArtifact:
        """Convert markdown to a PDF file.

        Args:
            markdown_text: Markdown source
            stylesheet: Stylesheet text
            output_path: Destination PDF path

        Returns:
            ExportedArtifact with resolved path and PDF bytes

        Raises:
            ConversionError: If any fatal pipeline stage fails
        """
        document = self.build_html(markdown_text, stylesheet)
        engine = self.create_engine()
        artifact = await engine.render(document, output_path)
        logger.info(f"Exported {len(artifact.data)} bytes to {artifact.path}")
        return artifact

    def convert(self, markdown_text: str, stylesheet: str, output_path: Path) -> ExportedArtifact:
        """Synchronous wrapper around convert_async()."""
        return asyncio.run(self.convert_async(markdown_text, stylesheet, output_path))

    def create_engine(self) -> RenderEngine:
        options = self._options
        return RenderEngine(
            self._launcher,
            diagram_timeout=options.diagram_timeout,
            poll_interval=options.poll_interval,
            settle_delay=options.settle_delay,
        )
