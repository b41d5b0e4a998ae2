"""Headless browser rendering and PDF export.

The render engine loads an assembled document into a browser page, waits for
Mermaid diagrams to materialize when the document has any, and prints the page
to a fixed-format PDF. The browser is released on every exit path.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from mdpress.core.document import RenderableDocument
from mdpress.core.errors import (
    ConversionError,
    DiagramRenderTimeout,
    DocumentLoadError,
    ExportError,
    RenderEngineLaunchError,
)

logger = logging.getLogger(__name__)

PDF_OPTIONS: dict[str, Any] = {
    "format": "A4",
    "margin": {"top": "20mm", "right": "15mm", "bottom": "20mm", "left": "15mm"},
    "print_background": True,
    "prefer_css_page_size": False,
}

DIAGRAMS_READY_JS = """() => Array.from(document.querySelectorAll('.mermaid')).every(
    (el) => el.getAttribute('data-processed') === 'true' || el.querySelector('svg') !== null
)"""


class RenderState(enum.Enum):
    INIT = "init"
    LOADED = "loaded"
    DIAGRAMS_PENDING = "diagrams_pending"
    DIAGRAMS_READY = "diagrams_ready"
    TIMED_OUT = "timed_out"
    EXPORTED = "exported"
    CLOSED = "closed"


@dataclass(frozen=True)
class ExportedArtifact:
    """The exported PDF and where it was written."""

    path: Path
    data: bytes


class RenderSurface(Protocol):
    """A loaded browser page owned by one conversion."""

    async def load(self, html: str) -> None: ...

    async def diagrams_ready(self) -> bool: ...

    async def export_pdf(self, path: Path, options: dict[str, Any]) -> bytes: ...

    async def close(self) -> None: ...


class SurfaceLauncher(Protocol):
    """Factory for render surfaces."""

    async def launch(self) -> RenderSurface: ...


class ChromiumSurface:
    """Render surface backed by a Playwright Chromium page."""

    def __init__(self, playwright: Any, browser: Any, page: Any) -> None:
        self._playwright = playwright
        self._browser = browser
        self._page = page

    async def load(self, html: str) -> None:
        await self._page.set_content(html, wait_until="networkidle")

    async def diagrams_ready(self) -> bool:
        return bool(await self._page.evaluate(DIAGRAMS_READY_JS))

    async def export_pdf(self, path: Path, options: dict[str, Any]) -> bytes:
        return await self._page.pdf(path=str(path), **options)

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


class ChromiumLauncher:
    """Launches headless Chromium through Playwright."""

    def __init__(self, *, sandbox: bool = False) -> None:
        """Initialize launcher.

        Args:
            sandbox: Keep the Chromium sandbox enabled. Containers and CI
                     runners usually need it disabled.
        """
        self._sandbox = sandbox

    @property
    def args(self) -> list[str]:
        if self._sandbox:
            return []
        return ["--no-sandbox", "--disable-setuid-sandbox"]

    async def launch(self) -> ChromiumSurface:
        from playwright.async_api import async_playwright

        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(headless=True, args=self.args)
        except BaseException:
            await playwright.stop()
            raise

        try:
            page = await browser.new_page()
        except BaseException:
            try:
                await browser.close()
            finally:
                await playwright.stop()
            raise

        return ChromiumSurface(playwright, browser, page)


class RenderEngine:
    """Drives a render surface from loaded document to exported PDF.

    Each call to render() acquires its own surface and releases it before
    returning or raising. The states visited by the latest run are kept in
    ``transitions``.
    """

    def __init__(
        self,
        launcher: SurfaceLauncher | None = None,
        *,
        diagram_timeout: float = 30.0,
        poll_interval: float = 0.1,
        settle_delay: float = 0.5,
    ) -> None:
        """Initialize engine.

        Args:
            launcher: Surface factory (default: headless Chromium)
            diagram_timeout: Seconds to wait for diagrams before failing
            poll_interval: Seconds between diagram completion checks
            settle_delay: Seconds to wait after diagrams complete
        """
        self._launcher = launcher or ChromiumLauncher()
        self._diagram_timeout = diagram_timeout
        self._poll_interval = poll_interval
        self._settle_delay = settle_delay
        self.transitions: list[RenderState] = []

    @property
    def state(self) -> RenderState | None:
        return self.transitions[-1] if self.transitions else None

    async def render(self, document: RenderableDocument, output_path: Path) -> ExportedArtifact:
        """Render a document to PDF.

        Args:
            document: Assembled document
            output_path: Where the PDF is written

        Returns:
            ExportedArtifact with the resolved path and PDF bytes

        Raises:
            RenderEngineLaunchError: If the browser cannot be started
            DocumentLoadError: If the document cannot be loaded
            DiagramRenderTimeout: If diagrams do not render in time
            ExportError: If PDF export fails
            ConversionError: If the browser cannot be closed after export
        """
        self.transitions = []
        self._transition(RenderState.INIT)
        path = Path(output_path).resolve()

        try:
            surface = await self._launcher.launch()
        except Exception as e:
            self._transition(RenderState.CLOSED)
            raise RenderEngineLaunchError(f"Could not start browser: {e}") from e

        try:
            await self._load(surface, document)
            if document.has_diagrams:
                await self._wait_for_diagrams(surface)
            data = await self._export(surface, path)
        except BaseException:
            await self._release(surface, quiet=True)
            raise

        await self._release(surface)
        return ExportedArtifact(path=path, data=data)

    def _transition(self, state: RenderState) -> None:
        logger.debug(f"Render state: {state.value}")
        self.transitions.append(state)

    async def _load(self, surface: RenderSurface, document: RenderableDocument) -> None:
        logger.info("Loading document into browser")
        try:
            await surface.load(document.html)
        except Exception as e:
            raise DocumentLoadError(f"Could not load document: {e}") from e
        self._transition(RenderState.LOADED)

    async def _wait_for_diagrams(self, surface: RenderSurface) -> None:
        """Poll until every diagram has rendered or the deadline passes.

        The deadline also bounds a single check, so a page that stops
        responding cannot hold the wait open.

        Raises:
            DiagramRenderTimeout: If the deadline passes first
        """
        self._transition(RenderState.DIAGRAMS_PENDING)
        deadline = asyncio.get_running_loop().time() + self._diagram_timeout
        checks = 0

        try:
            async with asyncio.timeout_at(deadline):
                while True:
                    checks += 1
                    if await self._check_diagrams(surface):
                        break
                    await asyncio.sleep(self._poll_interval)
        except TimeoutError:
            self._transition(RenderState.TIMED_OUT)
            raise DiagramRenderTimeout(
                f"Diagrams not rendered after {self._diagram_timeout:g}s ({checks} checks)"
            ) from None

        logger.info(f"Diagrams rendered after {checks} check(s)")
        self._transition(RenderState.DIAGRAMS_READY)
        await asyncio.sleep(self._settle_delay)

    async def _check_diagrams(self, surface: RenderSurface) -> bool:
        try:
            return await surface.diagrams_ready()
        except Exception as e:
            raise ConversionError(f"Diagram check failed: {e}", stage="diagrams") from e

    async def _export(self, surface: RenderSurface, path: Path) -> bytes:
        logger.info(f"Exporting PDF to {path}")
        try:
            data = await surface.export_pdf(path, dict(PDF_OPTIONS))
        except Exception as e:
            raise ExportError(f"Could not export PDF: {e}") from e
        if not data:
            path.unlink(missing_ok=True)
            raise ExportError("Browser produced an empty PDF")
        self._transition(RenderState.EXPORTED)
        return data

    async def _release(self, surface: RenderSurface, *, quiet: bool = False) -> None:
        """Close the surface.

        Args:
            surface: Surface to close
            quiet: Log close failures instead of raising, used while another
                   error is propagating
        """
        try:
            await surface.close()
        except Exception as e:
            if not quiet:
                raise ConversionError(f"Could not close browser: {e}", stage="release") from e
            logger.warning(f"Could not close browser: {e}")
        finally:
            self._transition(RenderState.CLOSED)
