"""Configuration management for mdpress.

Supports TOML configuration format with auto-discovery.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

from mdpress.core.converter import ConverterOptions
from mdpress.core.document import DEFAULT_MERMAID_URL, DocumentOptions

CONFIG_FILENAME = "mdpress.toml"


@dataclass
class DiagramsConfig:
    """Diagram extraction and rendering configuration."""

    language: str = "mermaid"
    script_url: str = DEFAULT_MERMAID_URL
    theme: str = "default"
    timeout: float = 30.0
    poll_interval: float = 0.1
    settle_delay: float = 0.5
    strict: bool = False


@dataclass
class HighlightConfig:
    """Code highlighting configuration."""

    style: str | None = "default"


@dataclass
class BrowserConfig:
    """Headless browser configuration."""

    sandbox: bool = False


@dataclass
class Config:
    """Application configuration."""

    diagrams: DiagramsConfig
    highlight: HighlightConfig
    browser: BrowserConfig
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for mdpress.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls._default()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents.

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _default(cls) -> Config:
        return cls(
            diagrams=DiagramsConfig(),
            highlight=HighlightConfig(),
            browser=BrowserConfig(),
        )

    @classmethod
    def _load_from_file(cls, path: Path) -> Config:
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            data = tomllib.load(f)

        return cls(
            diagrams=cls._parse_diagrams(data.get("diagrams")),
            highlight=cls._parse_highlight(data.get("highlight")),
            browser=cls._parse_browser(data.get("browser")),
            config_path=path,
        )

    @classmethod
    def _parse_diagrams(cls, data: object) -> DiagramsConfig:
        """Parse diagrams configuration section.

        Args:
            data: Raw diagrams section data

        Returns:
            DiagramsConfig instance
        """
        if data is None:
            return DiagramsConfig()

        if not isinstance(data, dict):
            raise ValueError("diagrams section must be a dictionary")

        language = data.get("language", "mermaid")
        if not isinstance(language, str) or not language:
            raise ValueError("diagrams.language must be a non-empty string")

        script_url = data.get("script_url", DEFAULT_MERMAID_URL)
        if not isinstance(script_url, str):
            raise ValueError("diagrams.script_url must be a string")

        theme = data.get("theme", "default")
        if not isinstance(theme, str):
            raise ValueError("diagrams.theme must be a string")

        strict = data.get("strict", False)
        if not isinstance(strict, bool):
            raise ValueError("diagrams.strict must be a boolean")

        return DiagramsConfig(
            language=language,
            script_url=script_url,
            theme=theme,
            timeout=_parse_seconds(data, "timeout", 30.0),
            poll_interval=_parse_seconds(data, "poll_interval", 0.1, positive=True),
            settle_delay=_parse_seconds(data, "settle_delay", 0.5),
            strict=strict,
        )

    @classmethod
    def _parse_highlight(cls, data: object) -> HighlightConfig:
        if data is None:
            return HighlightConfig()

        if not isinstance(data, dict):
            raise ValueError("highlight section must be a dictionary")

        style = data.get("style", "default")
        if not isinstance(style, str):
            raise ValueError("highlight.style must be a string")

        return HighlightConfig(style=style or None)

    @classmethod
    def _parse_browser(cls, data: object) -> BrowserConfig:
        if data is None:
            return BrowserConfig()

        if not isinstance(data, dict):
            raise ValueError("browser section must be a dictionary")

        sandbox = data.get("sandbox", False)
        if not isinstance(sandbox, bool):
            raise ValueError("browser.sandbox must be a boolean")

        return BrowserConfig(sandbox=sandbox)

    def with_overrides(
        self,
        *,
        diagram_timeout: float | None = None,
        sandbox: bool | None = None,
    ) -> Config:
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Args:
            diagram_timeout: Override diagrams.timeout
            sandbox: Override browser.sandbox

        Returns:
            New Config instance with overrides applied

        Raises:
            ValueError: If an override value is invalid
        """
        diagrams = self.diagrams
        if diagram_timeout is not None:
            timeout = _check_seconds("timeout", diagram_timeout)
            diagrams = replace(self.diagrams, timeout=timeout)

        browser = self.browser
        if sandbox is not None:
            browser = replace(self.browser, sandbox=sandbox)

        return replace(self, diagrams=diagrams, browser=browser)

    def converter_options(self, *, title: str | None = None) -> ConverterOptions:
        """Build pipeline options from this configuration.

        Args:
            title: Document title (default: first H1 of the document)

        Returns:
            ConverterOptions instance
        """
        return ConverterOptions(
            diagram_language=self.diagrams.language,
            strict_diagrams=self.diagrams.strict,
            document=DocumentOptions(
                title=title,
                mermaid_url=self.diagrams.script_url,
                mermaid_theme=self.diagrams.theme,
                highlight_style=self.highlight.style,
            ),
            diagram_timeout=self.diagrams.timeout,
            poll_interval=self.diagrams.poll_interval,
            settle_delay=self.diagrams.settle_delay,
        )


def _parse_seconds(data: dict, key: str, default: float, *, positive: bool = False) -> float:
    """Read a duration in seconds from a config section."""
    return _check_seconds(key, data.get(key, default), positive=positive)


def _check_seconds(key: str, value: object, *, positive: bool = False) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"diagrams.{key} must be a number")
    if positive and value <= 0:
        raise ValueError(f"diagrams.{key} must be positive")
    if value < 0:
        raise ValueError(f"diagrams.{key} must not be negative")
    return float(value)
