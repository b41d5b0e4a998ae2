"""CLI interface for mdpress.

Command-line tool for converting markdown to print-ready PDF.
"""

import logging
import sys
from pathlib import Path

import click

from mdpress.assets import get_default_stylesheet
from mdpress.config import Config
from mdpress.core.converter import Converter
from mdpress.core.engine import ChromiumLauncher
from mdpress.core.errors import ConversionError


@click.group()
def cli() -> None:
    """mdpress - Markdown to print-ready PDF."""


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    "output_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output PDF path (default: input path with .pdf extension)",
)
@click.option(
    "--css",
    "css_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Stylesheet to embed (default: bundled print.css)",
)
@click.option(
    "--title",
    default=None,
    help="Document title (default: first H1 heading)",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover mdpress.toml)",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Seconds to wait for diagrams to render (overrides config)",
)
@click.option(
    "--sandbox/--no-sandbox",
    default=None,
    help="Enable/disable the Chromium sandbox (overrides config, default: disabled)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
def convert(
    input_file: Path,
    output_file: Path | None,
    css_file: Path | None,
    title: str | None,
    config_path: Path | None,
    timeout: float | None,
    sandbox: bool | None,
    verbose: bool,
) -> None:
    """Convert a markdown file to PDF."""
    _configure_logging(verbose)

    try:
        config = Config.load(config_path).with_overrides(
            diagram_timeout=timeout,
            sandbox=sandbox,
        )

        input_path = input_file.resolve()
        output_path = (output_file or input_path.with_suffix(".pdf")).resolve()
        css_path = (css_file or get_default_stylesheet()).resolve()

        click.echo(f"Input:  {input_path}")
        click.echo(f"Output: {output_path}")
        click.echo(f"CSS:    {css_path}")

        markdown_text = input_path.read_text(encoding="utf-8")
        stylesheet = css_path.read_text(encoding="utf-8")
        output_path.parent.mkdir(parents=True, exist_ok=True)

        converter = Converter(
            config.converter_options(title=title),
            launcher=ChromiumLauncher(sandbox=config.browser.sandbox),
        )
        click.echo("Generating PDF...")
        artifact = converter.convert(markdown_text, stylesheet, output_path)

    except (ConversionError, OSError, ValueError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style(f"\nPDF generated: {artifact.path}", fg="green", bold=True))


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    "output_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write HTML to this file instead of stdout",
)
@click.option(
    "--css",
    "css_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Stylesheet to embed (default: bundled print.css)",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover mdpress.toml)",
)
def html(
    input_file: Path,
    output_file: Path | None,
    css_file: Path | None,
    config_path: Path | None,
) -> None:
    """Print the assembled HTML document that would be rendered."""
    try:
        config = Config.load(config_path)
        markdown_text = input_file.read_text(encoding="utf-8")
        stylesheet = (css_file or get_default_stylesheet()).read_text(encoding="utf-8")

        document = Converter(config.converter_options()).build_html(markdown_text, stylesheet)

        if output_file is None:
            click.echo(document.html, nl=False)
        else:
            output_file.write_text(document.html, encoding="utf-8")
            click.echo(f"HTML written to {output_file}", err=True)

    except (ConversionError, OSError, ValueError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)


def _configure_logging(verbose: bool) -> None:
    """Route library logging to stderr.

    Args:
        verbose: Show debug output instead of warnings only
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":
    cli()
