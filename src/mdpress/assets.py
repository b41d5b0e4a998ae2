"""Asset discovery for bundled stylesheets.

Locates static assets shipped inside the mdpress package.
"""

from importlib.resources import files
from pathlib import Path


def get_static_dir() -> Path:
    """Return path to bundled static assets.

    Returns:
        Path to the static directory.

    Raises:
        FileNotFoundError: If static assets are not bundled.
    """
    static = files("mdpress").joinpath("static")
    if not static.is_dir():
        msg = "Bundled static assets not found. Reinstall mdpress with package data included."
        raise FileNotFoundError(msg)
    return Path(str(static))


def get_default_stylesheet() -> Path:
    """Return path to the bundled print stylesheet."""
    return get_static_dir() / "print.css"
