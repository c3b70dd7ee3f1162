"""Live reload support for development mode."""

from pagestage.live.reload import LiveReloadManager

__all__ = ["LiveReloadManager"]
