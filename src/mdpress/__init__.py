"""mdpress - Markdown to print-ready PDF with Mermaid diagrams."""

__version__ = "0.1.0"
