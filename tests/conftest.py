"""Shared test fixtures.

FakeLauncher stands in for headless Chromium so render engine behavior can
be tested without a browser. It counts every surface it hands out and every
surface that gets closed.
"""

import asyncio
from pathlib import Path
from typing import Any

import pytest

FAKE_PDF = b"%PDF-1.7\n% fake\n%%EOF\n"


class FakeSurface:
    """Render surface with scripted behavior."""

    def __init__(
        self,
        *,
        ready_after: int | None = 0,
        fail_load: bool = False,
        fail_export: bool = False,
        hang_check: bool = False,
        fail_close: bool = False,
        pdf: bytes = FAKE_PDF,
    ) -> None:
        """Initialize surface.

        Args:
            ready_after: Completion checks that report pending before the
                         diagrams are reported ready (None: never ready)
            fail_load: Raise when loading the document
            fail_export: Raise when exporting the PDF
            hang_check: Never return from a completion check
            fail_close: Raise when closing, after marking the surface closed
            pdf: Bytes returned by export
        """
        self.ready_after = ready_after
        self.fail_load = fail_load
        self.fail_export = fail_export
        self.hang_check = hang_check
        self.fail_close = fail_close
        self.pdf = pdf
        self.loaded_html: str | None = None
        self.checks = 0
        self.export_path: Path | None = None
        self.export_options: dict[str, Any] | None = None
        self.closed = False

    async def load(self, html: str) -> None:
        if self.fail_load:
            raise RuntimeError("page crashed")
        self.loaded_html = html

    async def diagrams_ready(self) -> bool:
        self.checks += 1
        if self.hang_check:
            await asyncio.Event().wait()
        if self.ready_after is None:
            return False
        return self.checks > self.ready_after

    async def export_pdf(self, path: Path, options: dict[str, Any]) -> bytes:
        if self.fail_export:
            raise RuntimeError("target closed")
        self.export_path = path
        self.export_options = options
        path.write_bytes(self.pdf)
        return self.pdf

    async def close(self) -> None:
        self.closed = True
        if self.fail_close:
            raise RuntimeError("Target page, context or browser has been closed")


class FakeLauncher:
    """Launcher handing out FakeSurface instances."""

    def __init__(self, fail: bool = False, **surface_kwargs: Any) -> None:
        self.fail = fail
        self.surface_kwargs = surface_kwargs
        self.surfaces: list[FakeSurface] = []

    async def launch(self) -> FakeSurface:
        if self.fail:
            raise RuntimeError("No usable sandbox!")
        surface = FakeSurface(**self.surface_kwargs)
        self.surfaces.append(surface)
        return surface

    @property
    def acquired(self) -> int:
        return len(self.surfaces)

    @property
    def released(self) -> int:
        return sum(1 for surface in self.surfaces if surface.closed)


@pytest.fixture
def launcher() -> FakeLauncher:
    """Launcher whose surfaces report diagrams ready immediately."""
    return FakeLauncher()


@pytest.fixture
def stylesheet() -> str:
    return "body { color: #222; }"


@pytest.fixture
def mixed_markdown() -> str:
    """Document with one diagram, one tagged fence and one untagged fence."""
    return """# Report

Intro paragraph.

```mermaid
graph TD
    A["Start"] --> B{x < y & z}
```

```python
def add(a, b):
    return a + b
```

```
SELECT id, name FROM users WHERE active = 1;
```
"""
