"""Asset discovery for bundled editor assets.

Locates the static files shipped inside the pagestage package.
"""

from importlib.resources import files
from pathlib import Path


def get_static_dir() -> Path:
    """Return path to bundled static assets.

    Returns:
        Path to the static directory containing editor assets.

    Raises:
        FileNotFoundError: If static assets are not bundled.
    """
    static = files("pagestage").joinpath("static")
    if not static.is_dir():
        msg = "Bundled static assets not found. Reinstall pagestage."
        raise FileNotFoundError(msg)
    return Path(str(static))
