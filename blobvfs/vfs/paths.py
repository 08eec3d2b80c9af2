# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Path resolution.

Paths have the form ``scheme://nested/key``. The scheme selects a storage
endpoint (and with it, the container); the key is the object name inside
that container, always handled in trimmed form: no leading or trailing
separators, no empty segments, forward slashes only.
"""

from dataclasses import dataclass
from typing import Tuple

from blobvfs.client.exceptions import InvalidPathError

SCHEME_SEPARATOR = "://"
PLACEHOLDER_NAME = ".placeholder"


def trim_key(key: str) -> str:
    """Normalize a key: back-slashes to slashes, no outer or repeated separators."""
    key = key.replace("\\", "/")
    return "/".join(part for part in key.split("/") if part)


def split_path(path: str) -> Tuple[str, str]:
    """
    Split a path identifier into ``(scheme, key)``.

    Raises:
        InvalidPathError: If the path has no ``scheme://`` prefix
    """
    if not isinstance(path, str):
        raise InvalidPathError(f"Path must be a string, got {type(path).__name__}")
    normalized = path.replace("\\", "/")
    scheme, sep, rest = normalized.partition(SCHEME_SEPARATOR)
    if not sep or not scheme or "/" in scheme:
        raise InvalidPathError(f"Path {path!r} has no scheme:// prefix")
    return scheme, trim_key(rest)


def dirname(path: str) -> str:
    """Parent of ``path``; the parent of a top-level key is the container root ``scheme://``."""
    scheme, key = split_path(path)
    parent = key.rpartition("/")[0]
    return f"{scheme}{SCHEME_SEPARATOR}{parent}"


def basename(path: str) -> str:
    return split_path(path)[1].rpartition("/")[2]


def join(path: str, *names: str) -> str:
    scheme, key = split_path(path)
    key = trim_key("/".join((key,) + names))
    return f"{scheme}{SCHEME_SEPARATOR}{key}"


@dataclass(frozen=True)
class ResourcePath:
    """A resolved path: the scheme, its endpoint's container and the trimmed key."""

    scheme: str
    container: str
    key: str

    @property
    def uri(self) -> str:
        return f"{self.scheme}{SCHEME_SEPARATOR}{self.key}"

    @property
    def is_root(self) -> bool:
        return self.key == ""

    @property
    def name(self) -> str:
        return self.key.rpartition("/")[2]

    @property
    def parent(self) -> "ResourcePath":
        return ResourcePath(self.scheme, self.container, self.key.rpartition("/")[0])

    @property
    def directory_prefix(self) -> str:
        """Listing prefix for the key's children (empty for the root)."""
        return f"{self.key}/" if self.key else ""

    @property
    def placeholder_key(self) -> str:
        return f"{self.directory_prefix}{PLACEHOLDER_NAME}"

    def __str__(self):
        return self.uri


class PathResolver:
    """
    Resolves path identifiers against an endpoint registry.

    Attributes:
        registry (EndpointRegistry): Supplies the container bound to each scheme
    """

    def __init__(self, registry):
        self.registry = registry

    def locate(self, path: str) -> Tuple[object, ResourcePath]:
        """
        Resolve ``path`` and return it together with its endpoint.

        Raises:
            InvalidPathError: If the path is malformed
            ConfigurationError: If the scheme has no configured endpoint
        """
        scheme, key = split_path(path)
        endpoint = self.registry.endpoint(scheme)
        return endpoint, ResourcePath(scheme, endpoint.container, key)

    def resolve(self, path: str) -> ResourcePath:
        return self.locate(path)[1]
