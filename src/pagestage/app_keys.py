"""Application keys for type-safe app configuration access."""

import httpx
from aiohttp import web

from pagestage.config import Config
from pagestage.core.cache import MemoryCache
from pagestage.core.internal import InternalRouter
from pagestage.core.store import FileSiteStore

config_key = web.AppKey("config", Config)
store_key = web.AppKey("store", FileSiteStore)
preview_cache_key = web.AppKey("preview_cache", MemoryCache)
internal_router_key = web.AppKey("internal_router", InternalRouter)
http_client_key = web.AppKey("http_client", httpx.Client)
