"""Shared test fixtures."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from pagestage.config import (
    ComponentsConfig,
    Config,
    LiveReloadConfig,
    PreviewConfig,
    ServerConfig,
    SitesConfig,
)

DOMAIN = "example.com"


class SequentialIds:
    """Deterministic identifier generator: id1, id2, ..."""

    def __init__(self, prefix: str = "id") -> None:
        self._prefix = prefix
        self._count = 0

    def next(self) -> str:
        self._count += 1
        return f"{self._prefix}{self._count}"


@pytest.fixture
def ids() -> SequentialIds:
    return SequentialIds()


@pytest.fixture
def sites_dir(tmp_path: Path) -> Path:
    sites = tmp_path / "sites"
    sites.mkdir(exist_ok=True)
    return sites


@pytest.fixture
def test_config(sites_dir: Path) -> Config:
    """Create a test configuration serving DOMAIN for localhost requests.

    Live reload is disabled so tests never start a file watcher.
    """
    return Config(
        server=ServerConfig(),
        sites=SitesConfig(sites_dir=sites_dir, default_domain=DOMAIN),
        components=ComponentsConfig(fetch_timeout=2.0),
        preview=PreviewConfig(),
        live_reload=LiveReloadConfig(enabled=False),
    )


@pytest.fixture
def write_site(sites_dir: Path) -> Callable[..., Path]:
    """Write site JSON for a domain and return the file path."""

    def _write(
        data: dict[str, Any],
        domain: str = DOMAIN,
        filename: str = "site.json",
    ) -> Path:
        path = sites_dir / domain / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sample_site() -> dict[str, Any]:
    """Site with a home page, a styled component and a private component."""
    return {
        "pages": {
            "home": {
                "head": {"elements": [{"type": "title", "text": "Home"}]},
                "body": {
                    "elements": [
                        {
                            "type": "div",
                            "style": {"color": "red"},
                            "elements": [{"type": "h1", "text": "Hi"}],
                        },
                        {"import": "button", "text": "Go"},
                    ]
                },
            },
            "account": {
                "body": {"elements": [{"type": "p", "text": "Your account"}]},
                "redirectForLogout": "/login",
            },
            "login": {
                "body": {"elements": [{"type": "p", "text": "Please log in"}]},
                "redirectForLogin": "/account",
            },
        },
        "components": {
            "button": {
                "type": "button",
                "style": {"padding": "4px"},
                "text": "Click",
            },
            "secret": {"type": "span", "text": "hidden", "private": True},
        },
    }
