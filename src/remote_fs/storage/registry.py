"""
Backend registry with scheme-based dispatch.

A BackendRegistry maps scheme names to backend factories. It is an explicit
object owned by the caller, populated at startup (default_registry() wires
the built-in "file" and "s3" backends), so tests can build registries with
fakes without touching global state.

Backends can be configured two ways: a Settings object, or a plain config
mapping using the backend config keys (access_key, secret_key,
session_token, region, profile, endpoint_url). A mapping is layered on top
of the given settings, or on top of the environment when none are given.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Mapping, Optional

from ..errors import BackendNotFound
from ..settings import Settings, create_settings_from_config, create_settings_from_env
from .base import Backend, ReadStream, WriteStream
from .local_backend import FILE_SCHEME, LocalBackend
from .s3_backend import make_s3_backend
from .s3_handle import S3_SCHEME
from .uri import get_root, parse_fs_uri

__all__ = ["BackendConfig", "BackendFactory", "BackendRegistry", "default_registry"]

logger = logging.getLogger(__name__)

# (root, settings) -> Backend
BackendFactory = Callable[[str, Optional[Settings]], Backend]

BackendConfig = Mapping[str, str]


def resolve_settings(settings: Optional[Settings], config: Optional[BackendConfig]) -> Optional[Settings]:
    """Apply a backend config mapping on top of ``settings`` (or the environment)."""
    if config is None:
        return settings
    base = settings if settings is not None else create_settings_from_env()
    return create_settings_from_config(config, base=base)


class BackendRegistry:
    """Scheme -> backend factory mapping."""

    def __init__(self) -> None:
        self._factories: Dict[str, BackendFactory] = {}

    def register(self, scheme: str, factory: BackendFactory) -> None:
        """Register (or replace) the factory for ``scheme``."""
        scheme = scheme.lower()
        if scheme in self._factories:
            logger.debug(f"Replacing backend factory for scheme {scheme}")
        self._factories[scheme] = factory

    def schemes(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, scheme: str) -> bool:
        return scheme.lower() in self._factories

    def dial(
        self,
        scheme: str,
        root: str,
        settings: Optional[Settings] = None,
        config: Optional[BackendConfig] = None,
    ) -> Backend:
        """
        Build the backend registered for ``scheme``.

        Args:
            scheme: Backend scheme, e.g. "s3" or "file"
            root: Root object (the bucket for s3; may be empty for file)
            settings: Backend settings (backends fall back to their defaults)
            config: Backend config mapping, e.g. {"region": "eu-west-1"}

        Raises:
            BackendNotFound: If no factory is registered for scheme
            ValueError: If the resulting settings are invalid
        """
        factory = self._factories.get(scheme.lower())
        if factory is None:
            raise BackendNotFound(scheme)
        settings = resolve_settings(settings, config)
        logger.debug(f"Dialing {scheme} backend with root {root!r}")
        return factory(root, settings)

    def dial_url(
        self,
        url: str,
        settings: Optional[Settings] = None,
        config: Optional[BackendConfig] = None,
    ) -> Backend:
        """
        Build a backend from a URL: scheme selects the backend, host is the root.

        When the URL has no host but an absolute path (file:///tmp/data), the
        first path component becomes the root.
        """
        parsed = parse_fs_uri(url)
        root = parsed.root
        if not root and parsed.path.startswith("/"):
            root = get_root(parsed.path)
        return self.dial(parsed.scheme, root, settings, config)

    def open(
        self,
        url: str,
        settings: Optional[Settings] = None,
        config: Optional[BackendConfig] = None,
    ) -> ReadStream:
        """
        Open the object at ``url`` for reading without handling the backend.

        Examples:
            >>> registry.open("s3://my-bucket/my/file/path")
            >>> registry.open("s3://my-bucket/key", config={"region": "eu-west-1"})
            >>> registry.open("file:///tmp/my/file/path")
        """
        parsed = parse_fs_uri(url)
        backend = self.dial(parsed.scheme, parsed.root, settings, config)
        return backend.open(parsed.path)

    def create(
        self,
        url: str,
        settings: Optional[Settings] = None,
        config: Optional[BackendConfig] = None,
    ) -> WriteStream:
        """Create the object at ``url`` for writing without handling the backend."""
        parsed = parse_fs_uri(url)
        backend = self.dial(parsed.scheme, parsed.root, settings, config)
        return backend.create(parsed.path)


def default_registry() -> BackendRegistry:
    """Registry with the built-in file and s3 backends."""
    registry = BackendRegistry()
    registry.register(FILE_SCHEME, LocalBackend.from_settings)
    registry.register(S3_SCHEME, make_s3_backend)
    return registry
