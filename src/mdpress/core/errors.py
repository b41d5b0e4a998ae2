"""Conversion error types.

Every fatal failure is surfaced as a single ConversionError subclass that
names the pipeline stage and chains the underlying cause.
"""


class ConversionError(Exception):
    """A conversion aborted in one of the pipeline stages."""

    stage = "convert"

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        return f"{self.stage}: {self.message}"


class UnresolvedDiagramError(ConversionError):
    """Diagram placeholders and extracted blocks disagree (strict mode only)."""

    stage = "reinject"


class RenderEngineLaunchError(ConversionError):
    """The headless browser could not be started."""

    stage = "launch"


class DocumentLoadError(ConversionError):
    """The assembled document could not be loaded into the browser page."""

    stage = "load"


class DiagramRenderTimeout(ConversionError):
    """Diagrams did not finish rendering before the deadline."""

    stage = "diagrams"


class ExportError(ConversionError):
    """PDF export failed."""

    stage = "export"
