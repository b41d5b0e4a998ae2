"""Conversion pipeline for mdpress.

This package provides markdown parsing, diagram reinjection, document
assembly and headless-browser PDF rendering.
"""

from .converter import Converter, ConverterOptions
from .engine import ExportedArtifact, RenderEngine, RenderState

__all__ = ["Converter", "ConverterOptions", "ExportedArtifact", "RenderEngine", "RenderState"]
