"""Tests for live reload."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from aiohttp import web

from pagestage.app_keys import config_key
from pagestage.config import Config
from pagestage.core.cache import MemoryCache
from pagestage.core.store import FileSiteStore
from pagestage.live import LiveReloadManager
from pagestage.live.reload import create_live_reload_routes

from tests.conftest import DOMAIN


class TestPathMapping:
    """Tests for mapping changed files to tenants."""

    def test__site_file__maps_to_domain(self, sites_dir: Path) -> None:
        manager = LiveReloadManager(sites_dir)

        assert manager._to_domain(sites_dir / DOMAIN / "site.json") == DOMAIN

    def test__top_level_file__has_no_domain(self, sites_dir: Path) -> None:
        manager = LiveReloadManager(sites_dir)

        assert manager._to_domain(sites_dir / "notes.json") is None

    @pytest.mark.parametrize(
        ("relative", "expected"),
        [
            (f"{DOMAIN}/site.json", True),
            (f"{DOMAIN}/preview.json", True),
            (f"{DOMAIN}/notes.txt", False),
        ],
    )
    def test__default_patterns__match_json(
        self, sites_dir: Path, relative: str, expected: bool
    ) -> None:
        manager = LiveReloadManager(sites_dir)

        assert manager._matches_patterns(sites_dir / relative) is expected

    def test__custom_patterns__are_used(self, sites_dir: Path) -> None:
        manager = LiveReloadManager(sites_dir, watch_patterns=["*/site.json"])

        assert manager._matches_patterns(sites_dir / DOMAIN / "site.json")
        assert not manager._matches_patterns(sites_dir / DOMAIN / "preview.json")

    def test__path_outside_sites_dir__does_not_match(
        self, sites_dir: Path, tmp_path: Path
    ) -> None:
        manager = LiveReloadManager(sites_dir)

        assert not manager._matches_patterns(tmp_path / "elsewhere" / "site.json")


class TestInvalidation:
    """Tests for dropping cached sites on change."""

    def test__invalidate__reloads_site_from_disk(
        self,
        sites_dir: Path,
        write_site: Callable[..., Path],
        sample_site: dict[str, Any],
    ) -> None:
        store = FileSiteStore(sites_dir, MemoryCache())
        manager = LiveReloadManager(sites_dir, store=store)
        write_site(sample_site)
        first = store.fetch(DOMAIN)

        manager._invalidate_caches(DOMAIN)

        assert store.fetch(DOMAIN) is not first

    def test__without_store__is_noop(self, sites_dir: Path) -> None:
        manager = LiveReloadManager(sites_dir)

        manager._invalidate_caches(DOMAIN)


class TestLifecycle:
    """Tests for start() and stop()."""

    @pytest.mark.asyncio
    async def test__missing_sites_dir__does_not_start_watcher(self, tmp_path: Path) -> None:
        manager = LiveReloadManager(tmp_path / "missing")

        await manager.start()

        assert manager._watch_task is None
        await manager.stop()

    @pytest.mark.asyncio
    async def test__stop__cancels_watcher(self, sites_dir: Path) -> None:
        manager = LiveReloadManager(sites_dir)

        await manager.start()
        assert manager._watch_task is not None
        await manager.stop()

        assert manager._watch_task is None


class TestBroadcast:
    """Tests for notifying connected clients."""

    @pytest.mark.asyncio
    async def test__connected_client__receives_reload_for_its_domain(
        self, aiohttp_client: Any, sites_dir: Path, test_config: Config
    ) -> None:
        """Clients only hear about the tenant they are viewing."""
        manager = LiveReloadManager(sites_dir)
        app = web.Application()
        app[config_key] = test_config
        app.router.add_routes(create_live_reload_routes(manager))
        client = await aiohttp_client(app)

        async with client.ws_connect("/ws/live-reload") as ws:
            while not manager._connections:
                await ws.ping()
            await manager._broadcast_reload("other.org")
            await manager._broadcast_reload(DOMAIN)
            message = await ws.receive_str()

        assert json.loads(message) == {"type": "reload", "domain": DOMAIN}
