# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Storage endpoint registry.

The registry owns one ``StorageEndpoint`` per scheme. Endpoints are built
on first use from the configuration provider and the client factory, and
reused for the registry's lifetime. First-use construction is serialized
per scheme, so concurrent callers share a single endpoint.
"""

import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional
from urllib.parse import quote

from blobvfs.client.exceptions import ConfigurationError
from blobvfs.client.retry import RetryingStoreClient
from .config import EndpointConfig
from .utils import logger, time_function


@dataclass(frozen=True)
class StorageEndpoint:
    """A scheme bound to its container, client and upload defaults."""

    scheme: str
    container: str
    client: object
    cache_control: str
    url_base: Optional[str] = None

    def url_for(self, key: str) -> str:
        """
        Build an externally reachable URL for ``key``.

        Raises:
            ConfigurationError: If the endpoint has no base URL
        """
        if not self.url_base:
            raise ConfigurationError(f"No public URL configured for scheme {self.scheme}")
        return f"{self.url_base.rstrip('/')}/{quote(self.container)}/{quote(key)}"


class EndpointRegistry:
    """
    Per-scheme endpoint cache with single-flight initialization.

    Attributes:
        config_provider: Object with ``lookup(scheme) -> EndpointConfig | None``
        client_factory (callable): Builds a store client from an ``EndpointConfig``
    """

    def __init__(self, config_provider, client_factory: Callable[[EndpointConfig], object]):
        self.config_provider = config_provider
        self.client_factory = client_factory
        self._endpoints: Dict[str, StorageEndpoint] = {}
        self._scheme_locks: Dict[str, Lock] = {}
        self._lock = Lock()

    def _scheme_lock(self, scheme):
        with self._lock:
            lock = self._scheme_locks.get(scheme)
            if lock is None:
                lock = self._scheme_locks[scheme] = Lock()
            return lock

    def endpoint(self, scheme: str) -> StorageEndpoint:
        """
        Return the endpoint for ``scheme``, building it on first use.

        Raises:
            ConfigurationError: If the scheme is not configured or its client
                cannot be constructed
        """
        endpoint = self._endpoints.get(scheme)
        if endpoint is not None:
            return endpoint

        with self._scheme_lock(scheme):
            endpoint = self._endpoints.get(scheme)
            if endpoint is None:
                endpoint = self._build(scheme)
                self._endpoints[scheme] = endpoint
            return endpoint

    def _build(self, scheme):
        start_time = time.time()
        logger.info(f"Initializing storage endpoint for scheme {scheme}")

        config = self.config_provider.lookup(scheme)
        if config is None:
            logger.error(f"No configuration registered for scheme {scheme}")
            raise ConfigurationError(f"No configuration registered for scheme {scheme}")

        try:
            client = self.client_factory(config)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Failed to construct client for scheme {scheme}: {e}", exc_info=True)
            raise ConfigurationError(f"Failed to construct client for scheme {scheme}: {e}") from e

        # Always wrapped so gRPC errors are converted even without retries.
        client = RetryingStoreClient(client, max_attempts=config.max_attempts)

        endpoint = StorageEndpoint(
            scheme=scheme,
            container=config.container,
            client=client,
            cache_control=config.cache_control,
            url_base=config.url_base,
        )
        logger.info(f"Endpoint for scheme {scheme} bound to container {config.container}")
        time_function("endpoint", start_time)
        return endpoint

    def register(self, scheme: str, endpoint: StorageEndpoint) -> None:
        """Install a prebuilt endpoint, bypassing configuration lookup."""
        with self._scheme_lock(scheme):
            self._endpoints[scheme] = endpoint

    def schemes(self):
        return sorted(self._endpoints)
