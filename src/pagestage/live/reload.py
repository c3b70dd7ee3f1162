"""WebSocket-based live reload for development mode.

Monitors tenant site files for changes and notifies connected clients
via WebSocket to trigger page reloads.
"""

import asyncio
import json
import logging
import weakref
from pathlib import Path
from typing import TYPE_CHECKING

from aiohttp import WSMsgType, web
from watchfiles import Change, awatch

from pagestage.api.context import request_domain

if TYPE_CHECKING:
    from pagestage.core.store import FileSiteStore

logger = logging.getLogger(__name__)


class LiveReloadManager:
    """Manages WebSocket connections and file watching for live reload.

    Coordinates between file system watcher and connected WebSocket clients
    to provide automatic page refresh when a tenant's site data changes.
    """

    def __init__(
        self,
        sites_dir: Path,
        watch_patterns: list[str] | None = None,
        *,
        store: "FileSiteStore | None" = None,
    ) -> None:
        """Initialize the live reload manager.

        Args:
            sites_dir: Directory to watch for changes
            watch_patterns: Glob patterns to watch (default: ["**/*.json"])
            store: Site store whose cached entries are dropped on change
        """
        self._sites_dir = sites_dir
        self._watch_patterns = watch_patterns or ["**/*.json"]
        # Connected clients and the tenant domain each one is viewing
        self._connections: weakref.WeakKeyDictionary[web.WebSocketResponse, str] = (
            weakref.WeakKeyDictionary()
        )
        self._watch_task: asyncio.Task[None] | None = None
        self._store = store

    async def start(self) -> None:
        """Start the file watcher."""
        if self._watch_task is not None:
            return
        if not self._sites_dir.is_dir():
            logger.warning(f"Live reload disabled: {self._sites_dir} is not a directory")
            return
        self._watch_task = asyncio.create_task(self._watch_files())

    async def stop(self) -> None:
        """Stop the file watcher and close all connections."""
        if self._watch_task is not None:
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass
            self._watch_task = None

        for ws in list(self._connections):
            await ws.close()

    async def handle_websocket(self, request: web.Request) -> web.WebSocketResponse:
        """Handle WebSocket connection for live reload.

        Args:
            request: aiohttp request

        Returns:
            WebSocket response
        """
        ws = web.WebSocketResponse()
        await ws.prepare(request)

        self._connections[ws] = request_domain(request)

        try:
            async for msg in ws:
                if msg.type == WSMsgType.ERROR:
                    break
        finally:
            self._connections.pop(ws, None)

        return ws

    async def _watch_files(self) -> None:
        """Watch for file changes and broadcast reload events."""
        async for changes in awatch(self._sites_dir):
            domains: set[str] = set()
            for change_type, path_str in changes:
                if change_type == Change.deleted:
                    continue

                path = Path(path_str)
                if not self._matches_patterns(path):
                    continue

                domain = self._to_domain(path)
                if domain is not None:
                    domains.add(domain)

            for domain in sorted(domains):
                self._invalidate_caches(domain)
                await self._broadcast_reload(domain)

    def _invalidate_caches(self, domain: str) -> None:
        if self._store is not None:
            self._store.invalidate(domain)

    def _matches_patterns(self, path: Path) -> bool:
        """Check if a path matches any watch pattern.

        Args:
            path: Path to check

        Returns:
            True if path matches any pattern
        """
        try:
            relative = path.relative_to(self._sites_dir)
        except ValueError:
            return False

        for pattern in self._watch_patterns:
            if relative.match(pattern):
                return True
        return False

    def _to_domain(self, file_path: Path) -> str | None:
        """Tenant domain owning a changed file.

        Args:
            file_path: Absolute file path

        Returns:
            Name of the first directory below sites_dir, or None for files
            directly in sites_dir
        """
        relative = file_path.relative_to(self._sites_dir)
        if len(relative.parts) < 2:
            return None
        return relative.parts[0]

    async def _broadcast_reload(self, domain: str) -> None:
        """Send a reload event to the clients viewing a domain.

        Args:
            domain: Tenant domain whose site data changed
        """
        if not self._connections:
            return

        message = json.dumps({"type": "reload", "domain": domain})
        logger.info(f"Site data changed for {domain}, reloading clients")

        for ws, client_domain in list(self._connections.items()):
            if ws.closed or client_domain != domain:
                continue
            try:
                await ws.send_str(message)
            except ConnectionResetError:
                # Client disconnected mid-send, dropped with its last reference
                pass


def create_live_reload_routes(manager: LiveReloadManager) -> list[web.RouteDef]:
    """Create routes for live reload WebSocket.

    Args:
        manager: LiveReloadManager instance

    Returns:
        List of route definitions
    """
    return [web.get("/ws/live-reload", manager.handle_websocket)]
