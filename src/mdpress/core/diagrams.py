"""Diagram extraction and reinjection.

Diagram fences are pulled out of the markdown stream while it is rendered:
each one is recorded as a DiagramBlock and replaced by a placeholder token.
The rendered HTML is then split on those tokens into a sequence of typed
nodes, and reinjection renders that sequence with each diagram node turned
into a Mermaid container holding the original source.
"""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass, field

from mistune.util import escape

from mdpress.core.errors import UnresolvedDiagramError

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "mdpress-diagram"


@dataclass(frozen=True)
class DiagramBlock:
    """A diagram fence extracted from the markdown source."""

    index: int
    source: str


@dataclass(frozen=True)
class HtmlNode:
    """Rendered markup between diagrams."""

    html: str


@dataclass(frozen=True)
class DiagramNode:
    """Position of a diagram block in the rendered stream."""

    block: DiagramBlock


Node = HtmlNode | DiagramNode


def make_nonce(text: str) -> str:
    """Derive a placeholder nonce that does not occur in the source text.

    The nonce is a digest of the text, so the same document always yields the
    same tokens. If the digest happens to be present in the text, it is
    re-derived with a counter until it is not.

    Args:
        text: Markdown source

    Returns:
        Hex nonce absent from the text
    """
    salt = 0
    while True:
        digest = hashlib.sha256(f"{salt}:{text}".encode("utf-8")).hexdigest()[:16]
        if f"{TOKEN_PREFIX}-{digest}" not in text:
            return digest
        salt += 1


@dataclass
class ExtractionContext:
    """Per-parse state for diagram extraction.

    Created for a single parse call and returned with its result, so block
    indices never leak between conversions.
    """

    nonce: str
    diagrams: list[DiagramBlock] = field(default_factory=list)

    @classmethod
    def for_source(cls, text: str) -> ExtractionContext:
        return cls(nonce=make_nonce(text))

    def register(self, source: str) -> str:
        """Record a diagram block and return its placeholder token.

        Args:
            source: Verbatim fence contents

        Returns:
            Placeholder token addressing the new block
        """
        block = DiagramBlock(index=len(self.diagrams), source=source)
        self.diagrams.append(block)
        logger.debug(f"Extracted diagram {block.index} ({len(source)} characters)")
        return self.token(block.index)

    def token(self, index: int) -> str:
        return f"<!--{TOKEN_PREFIX}-{self.nonce}-{index}-->"

    @property
    def token_pattern(self) -> re.Pattern[str]:
        return re.compile(rf"<!--{TOKEN_PREFIX}-{self.nonce}-(\d+)-->")


def split_nodes(html: str, context: ExtractionContext) -> list[Node]:
    """Split rendered HTML on placeholder tokens into typed nodes.

    Tokens that address an unknown block are kept verbatim as markup.

    Args:
        html: HTML produced by the markdown renderer
        context: Extraction context used while rendering

    Returns:
        Ordered node sequence
    """
    nodes: list[Node] = []
    parts = context.token_pattern.split(html)

    for position, part in enumerate(parts):
        if position % 2 == 0:
            if part:
                nodes.append(HtmlNode(part))
            continue

        index = int(part)
        if index < len(context.diagrams):
            nodes.append(DiagramNode(context.diagrams[index]))
        else:
            logger.warning(f"Placeholder references unknown diagram {index}")
            nodes.append(HtmlNode(context.token(index)))

    return nodes


def escape_diagram_source(source: str) -> str:
    """Escape diagram source for embedding as element text.

    Escapes ampersand, angle brackets and double quote exactly once.
    """
    return escape(source, quote=True)


def render_diagram_container(block: DiagramBlock) -> str:
    """Render the Mermaid container for a diagram block."""
    return (
        '<div class="mermaid-container">'
        f'<div class="mermaid">{escape_diagram_source(block.source)}</div>'
        "</div>"
    )


def reinject_diagrams(
    nodes: list[Node],
    diagrams: list[DiagramBlock],
    *,
    strict: bool = False,
) -> str:
    """Render a node sequence with diagrams turned into Mermaid containers.

    Args:
        nodes: Node sequence from the parser
        diagrams: Diagram blocks extracted during the same parse
        strict: Raise instead of degrading when blocks are left unplaced

    Returns:
        Final body HTML

    Raises:
        UnresolvedDiagramError: If strict and a block has no position in
            the node sequence
    """
    chunks: list[str] = []
    placed: set[int] = set()

    for node in nodes:
        if isinstance(node, DiagramNode):
            chunks.append(render_diagram_container(node.block))
            placed.add(node.block.index)
        else:
            chunks.append(node.html)

    unplaced = [block.index for block in diagrams if block.index not in placed]
    if unplaced:
        message = f"{len(unplaced)} diagram(s) could not be placed: {unplaced}"
        if strict:
            raise UnresolvedDiagramError(message)
        logger.warning(message)

    logger.debug(f"Reinjected {len(placed)} of {len(diagrams)} diagrams")
    return "".join(chunks)
