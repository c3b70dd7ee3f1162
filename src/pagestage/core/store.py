"""File-based site store with mtime-validated caching.

Store structure:
    sites/
    ├── example.com/
    │   ├── site.json       # Published site data
    │   └── preview.json    # Draft edited in preview mode (optional)
    └── other.org/
        └── site.json
"""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from pagestage.core.cache import Cache
from pagestage.core.site import SiteData

logger = logging.getLogger(__name__)

PUBLISHED_FILENAME = "site.json"
PREVIEW_FILENAME = "preview.json"

_DOMAIN_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9.-]*[A-Za-z0-9])?$")


class SiteNotFoundError(FileNotFoundError):
    """No site data exists for a domain."""


@dataclass
class _CachedSite:
    site: SiteData
    source_mtime: float


class FileSiteStore:
    """Loads tenant sites from JSON files.

    Parsed sites are cached and reused while the source file's mtime is
    unchanged. Cached sites are shared between requests and must be treated
    as read-only; copy before mutating.
    """

    def __init__(self, sites_dir: Path, cache: Cache) -> None:
        """Initialize store.

        Args:
            sites_dir: Root directory with one subdirectory per domain
            cache: Cache for parsed site data
        """
        self._sites_dir = sites_dir
        self._cache = cache

    @property
    def sites_dir(self) -> Path:
        """Root directory containing tenant sites."""
        return self._sites_dir

    def fetch(self, domain: str) -> SiteData:
        """Load the published site for a domain.

        Args:
            domain: Tenant domain (e.g., "example.com")

        Returns:
            Parsed site data (shared; do not mutate)

        Raises:
            SiteNotFoundError: If the domain has no published site
            ValueError: If the site file is not valid site JSON
        """
        return self._load(domain, PUBLISHED_FILENAME)

    def fetch_preview(self, domain: str) -> SiteData:
        """Load the draft site for a domain, falling back to the published one.

        Raises:
            SiteNotFoundError: If the domain has neither draft nor site
            ValueError: If the file is not valid site JSON
        """
        if self._site_path(domain, PREVIEW_FILENAME).exists():
            return self._load(domain, PREVIEW_FILENAME)
        return self._load(domain, PUBLISHED_FILENAME)

    def save_preview(self, domain: str, text: str) -> SiteData:
        """Validate and store a draft.

        Args:
            domain: Tenant domain
            text: Site data as JSON text

        Returns:
            The parsed draft

        Raises:
            ValueError: If text is not valid site JSON
            SiteNotFoundError: If the domain name is invalid
        """
        site = SiteData.from_json(text)
        path = self._site_path(domain, PREVIEW_FILENAME)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(site.to_dict(), indent=2), encoding="utf-8")
        self._cache.delete(self._cache_key(domain, PREVIEW_FILENAME))
        logger.info(f"Saved draft for {domain}")
        return site

    def publish(self, domain: str) -> None:
        """Promote the draft of a domain to its published site.

        Raises:
            SiteNotFoundError: If the domain has no draft
        """
        preview_path = self._site_path(domain, PREVIEW_FILENAME)
        if not preview_path.exists():
            raise SiteNotFoundError(f"No draft found for domain: {domain}")

        preview_path.replace(self._site_path(domain, PUBLISHED_FILENAME))
        self.invalidate(domain)
        logger.info(f"Published draft for {domain}")

    def invalidate(self, domain: str) -> None:
        """Drop cached data for a domain."""
        self._cache.delete(self._cache_key(domain, PUBLISHED_FILENAME))
        self._cache.delete(self._cache_key(domain, PREVIEW_FILENAME))

    def domains(self) -> list[str]:
        """Domains that have a published site."""
        if not self._sites_dir.is_dir():
            return []
        return sorted(
            path.name
            for path in self._sites_dir.iterdir()
            if (path / PUBLISHED_FILENAME).is_file()
        )

    def _load(self, domain: str, filename: str) -> SiteData:
        path = self._site_path(domain, filename)
        try:
            source_mtime = path.stat().st_mtime
        except OSError as e:
            raise SiteNotFoundError(f"No site data found for domain: {domain}") from e

        key = self._cache_key(domain, filename)
        cached = self._cache.get(key)
        if isinstance(cached, _CachedSite) and cached.source_mtime == source_mtime:
            return cached.site

        logger.info(f"Loading site data for {domain} from {path}")
        site = SiteData.from_json(path.read_text(encoding="utf-8"))
        self._cache.set(key, _CachedSite(site=site, source_mtime=source_mtime))
        return site

    def _site_path(self, domain: str, filename: str) -> Path:
        if not _DOMAIN_RE.match(domain) or ".." in domain:
            raise SiteNotFoundError(f"Invalid domain: {domain}")
        return self._sites_dir / domain / filename

    @staticmethod
    def _cache_key(domain: str, filename: str) -> str:
        return f"{domain}/{filename}"
