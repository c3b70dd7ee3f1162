"""Configuration management for Pagestage.

Supports TOML configuration format with auto-discovery.
"""

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

CONFIG_FILENAME = "pagestage.toml"


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class SitesConfig:
    """Tenant site storage configuration."""

    sites_dir: Path = field(default_factory=lambda: Path("sites"))
    default_domain: str | None = None


@dataclass
class ComponentsConfig:
    """External component fetching configuration."""

    fetch_timeout: float = 10.0


@dataclass
class PreviewConfig:
    """Preview mode configuration."""

    handle_header: str = "X-User-Handle"


@dataclass
class LiveReloadConfig:
    """Live reload configuration."""

    enabled: bool = True
    watch_patterns: list[str] | None = None


@dataclass
class Config:
    """Application configuration."""

    server: ServerConfig
    sites: SitesConfig
    components: ComponentsConfig
    preview: PreviewConfig
    live_reload: LiveReloadConfig
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for pagestage.toml in current directory and parents.

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
    def _default(cls) -> "Config":
        return cls(
            server=ServerConfig(),
            sites=SitesConfig(),
            components=ComponentsConfig(),
            preview=PreviewConfig(),
            live_reload=LiveReloadConfig(),
        )

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid TOML in {path}: {e}") from e

        config_dir = path.parent

        return cls(
            server=cls._parse_server(data.get("server")),
            sites=cls._parse_sites(data.get("sites"), config_dir),
            components=cls._parse_components(data.get("components")),
            preview=cls._parse_preview(data.get("preview")),
            live_reload=cls._parse_live_reload(data.get("live_reload")),
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "127.0.0.1")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")

        port = data.get("port", 8080)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValueError("server.port must be an integer")

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_sites(cls, data: object, config_dir: Path) -> SitesConfig:
        """Parse sites configuration section.

        Args:
            data: Raw sites section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            SitesConfig instance
        """
        if data is None:
            return SitesConfig(sites_dir=config_dir / "sites")

        if not isinstance(data, dict):
            raise ValueError("sites section must be a dictionary")

        sites_dir = data.get("dir", "sites")
        if not isinstance(sites_dir, str):
            raise ValueError("sites.dir must be a string")

        default_domain = data.get("default_domain")
        if default_domain is not None and not isinstance(default_domain, str):
            raise ValueError("sites.default_domain must be a string")

        return SitesConfig(sites_dir=config_dir / sites_dir, default_domain=default_domain)

    @classmethod
    def _parse_components(cls, data: object) -> ComponentsConfig:
        if data is None:
            return ComponentsConfig()

        if not isinstance(data, dict):
            raise ValueError("components section must be a dictionary")

        fetch_timeout = data.get("fetch_timeout", 10.0)
        if not isinstance(fetch_timeout, (int, float)) or isinstance(fetch_timeout, bool):
            raise ValueError("components.fetch_timeout must be a number")
        if fetch_timeout <= 0:
            raise ValueError("components.fetch_timeout must be positive")

        return ComponentsConfig(fetch_timeout=float(fetch_timeout))

    @classmethod
    def _parse_preview(cls, data: object) -> PreviewConfig:
        if data is None:
            return PreviewConfig()

        if not isinstance(data, dict):
            raise ValueError("preview section must be a dictionary")

        handle_header = data.get("handle_header", "X-User-Handle")
        if not isinstance(handle_header, str) or not handle_header:
            raise ValueError("preview.handle_header must be a non-empty string")

        return PreviewConfig(handle_header=handle_header)

    @classmethod
    def _parse_live_reload(cls, data: object) -> LiveReloadConfig:
        """Parse live_reload configuration section.

        Args:
            data: Raw live_reload section data

        Returns:
            LiveReloadConfig instance
        """
        if data is None:
            return LiveReloadConfig()

        if not isinstance(data, dict):
            raise ValueError("live_reload section must be a dictionary")

        enabled = data.get("enabled", True)
        if not isinstance(enabled, bool):
            raise ValueError("live_reload.enabled must be a boolean")

        watch_patterns_raw = data.get("watch_patterns")
        watch_patterns: list[str] | None = None
        if watch_patterns_raw is not None:
            if not isinstance(watch_patterns_raw, list):
                raise ValueError("live_reload.watch_patterns must be a list")
            watch_patterns = []
            for item in watch_patterns_raw:
                if not isinstance(item, str):
                    raise ValueError("live_reload.watch_patterns items must be strings")
                watch_patterns.append(item)

        return LiveReloadConfig(enabled=enabled, watch_patterns=watch_patterns)

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        sites_dir: Path | None = None,
        default_domain: str | None = None,
        live_reload_enabled: bool | None = None,
    ) -> "Config":
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Args:
            host: Override server.host
            port: Override server.port
            sites_dir: Override sites.dir
            default_domain: Override sites.default_domain
            live_reload_enabled: Override live_reload.enabled

        Returns:
            New Config instance with overrides applied
        """
        server = self.server
        if host is not None or port is not None:
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        sites = self.sites
        if sites_dir is not None or default_domain is not None:
            sites = replace(
                self.sites,
                sites_dir=sites_dir if sites_dir is not None else self.sites.sites_dir,
                default_domain=(
                    default_domain if default_domain is not None else self.sites.default_domain
                ),
            )

        live_reload = self.live_reload
        if live_reload_enabled is not None:
            live_reload = replace(self.live_reload, enabled=live_reload_enabled)

        return replace(self, server=server, sites=sites, live_reload=live_reload)
