# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Endpoint configuration.

A configuration provider answers ``lookup(scheme)`` with an
``EndpointConfig`` or ``None`` when the scheme is unknown. Two providers
are shipped: a static mapping and one reading environment variables of
the form ``BLOBVFS_<SCHEME>_<SETTING>``.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from blobvfs.client.exceptions import ConfigurationError

DEFAULT_CACHE_CONTROL = "max-age=0"
DEFAULT_MAX_ATTEMPTS = 5


@dataclass(frozen=True)
class EndpointConfig:
    """
    Settings for one scheme.

    Attributes:
        container (str): Container every key of the scheme lives in
        credentials (dict): Opaque values handed to the client factory
        cache_control (str): Cache-Control header attached to uploads
        url_base (str, optional): Public base URL used to build object URLs
        max_attempts (int): Attempts per store call; 1 disables retries but errors are still converted
    """

    container: str
    credentials: Dict[str, str] = field(default_factory=dict)
    cache_control: str = DEFAULT_CACHE_CONTROL
    url_base: Optional[str] = None
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def __post_init__(self):
        if not self.container:
            raise ConfigurationError("Endpoint configuration requires a container name")
        if self.max_attempts < 1:
            raise ConfigurationError(f"max_attempts must be at least 1, got {self.max_attempts}")


class StaticConfigProvider:
    """Configuration provider backed by a ``{scheme: EndpointConfig}`` mapping."""

    def __init__(self, configs: Mapping[str, EndpointConfig] = None):
        self.configs = dict(configs or {})

    def lookup(self, scheme: str) -> Optional[EndpointConfig]:
        return self.configs.get(scheme)


class EnvironConfigProvider:
    """
    Configuration provider reading environment variables.

    For scheme ``media`` it reads ``BLOBVFS_MEDIA_CONTAINER`` (required),
    ``BLOBVFS_MEDIA_CACHE_CONTROL``, ``BLOBVFS_MEDIA_URL``,
    ``BLOBVFS_MEDIA_ACCOUNT``, ``BLOBVFS_MEDIA_KEY`` and
    ``BLOBVFS_MEDIA_MAX_ATTEMPTS``.
    """

    def __init__(self, environ: Mapping[str, str] = None, prefix: str = "BLOBVFS"):
        self.environ = os.environ if environ is None else environ
        self.prefix = prefix

    def _get(self, scheme, setting):
        name = f"{self.prefix}_{scheme.upper().replace('-', '_')}_{setting}"
        value = self.environ.get(name, "").strip()
        return value or None

    def lookup(self, scheme: str) -> Optional[EndpointConfig]:
        container = self._get(scheme, "CONTAINER")
        if container is None:
            return None

        credentials = {}
        for setting in ("ACCOUNT", "KEY"):
            value = self._get(scheme, setting)
            if value is not None:
                credentials[setting.lower()] = value

        attempts = self._get(scheme, "MAX_ATTEMPTS")
        try:
            max_attempts = int(attempts) if attempts else DEFAULT_MAX_ATTEMPTS
        except ValueError:
            raise ConfigurationError(f"Invalid max attempts for scheme {scheme}: {attempts!r}") from None

        return EndpointConfig(
            container=container,
            credentials=credentials,
            cache_control=self._get(scheme, "CACHE_CONTROL") or DEFAULT_CACHE_CONTROL,
            url_base=self._get(scheme, "URL"),
            max_attempts=max_attempts,
        )
