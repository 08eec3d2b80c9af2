# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Filesystem facade.

This module provides the host-facing entry point of blobvfs. It resolves
``scheme://key`` paths through an ``EndpointRegistry`` and dispatches to
the directory emulator, lister, stream handles, rename coordinator and
metadata synthesis.

Every operation returns a ``Result``. Store, path and staging errors
never escape. Configuration errors (an unknown scheme, a client that
cannot be built) do propagate, except from ``open``, which reports them
as a ``CONFIGURATION`` failure.

Usage:
    registry = EndpointRegistry(StaticConfigProvider({"media": EndpointConfig("media")}),
                                lambda config: InMemoryObjectStore())
    fs = BlobFileSystem(registry)

    with fs.open("media://photos/cat.txt", "w").unwrap() as handle:
        handle.write(b"meow")

    fs.stat("media://photos").unwrap().is_dir  # True
"""

import time

from blobvfs.client.exceptions import ConfigurationError
from .directory import DirectoryEmulator
from .listing import DirectoryLister
from .metadata import stat_path
from .mime import guess_mime_type
from .paths import PathResolver
from .rename import RenameCoordinator
from .result import ErrorKind, Result
from .stream import StreamHandle
from .utils import logger, time_function, trace_op


class BlobFileSystem:
    """
    File and directory operations over object storage.

    Attributes:
        registry (EndpointRegistry): Per-scheme endpoints
        resolver (PathResolver): Path parsing bound to ``registry``
        staging_dir (str, optional): Where write handles stage their content
        mime_type_of (callable): Content type inference for uploads
    """

    def __init__(self, registry, staging_dir=None, mime_type_of=guess_mime_type):
        self.registry = registry
        self.resolver = PathResolver(registry)
        self.staging_dir = staging_dir
        self.mime_type_of = mime_type_of

    def _resolve(self, path):
        return self.resolver.locate(path)

    def _failure(self, operation, path, exc) -> Result:
        result = Result.from_exception(exc)
        if result.error in (ErrorKind.NOT_FOUND, ErrorKind.NON_EMPTY_DIRECTORY,
                            ErrorKind.INVALID_PATH, ErrorKind.CONTAINER_MISMATCH):
            logger.warning(f"{operation}: {path}: {exc}")
        else:
            logger.error(f"{operation}: Error on {path}: {exc}", exc_info=True)
        return result

    def open(self, path: str, mode: str = "r") -> Result:
        """
        Open a file.

        Returns:
            Result: the ``StreamHandle`` on success
        """
        trace_op("open", path, mode=mode)
        try:
            endpoint, resource = self._resolve(path)
            handle = StreamHandle.open(endpoint, resource, mode,
                                       staging_dir=self.staging_dir,
                                       mime_type_of=self.mime_type_of)
            return Result.success(handle)
        except Exception as e:
            return self._failure("open", path, e)

    def opendir(self, path: str) -> Result:
        """
        List a directory.

        Returns:
            Result: a ``DirectoryListing`` of the immediate children
        """
        trace_op("opendir", path)
        try:
            endpoint, resource = self._resolve(path)
            return Result.success(DirectoryLister(endpoint).open(resource))
        except ConfigurationError:
            raise
        except Exception as e:
            return self._failure("opendir", path, e)

    def listdir(self, path: str) -> Result:
        """Child names of a directory as a list."""
        listing = self.opendir(path)
        if not listing:
            return listing
        with listing.value as entries:
            return Result.success(list(entries))

    def stat(self, path: str) -> Result:
        """
        Metadata for a file or directory.

        Returns:
            Result: a ``StatResult``, or a ``NOT_FOUND`` failure
        """
        trace_op("stat", path)
        try:
            endpoint, resource = self._resolve(path)
            return Result.success(stat_path(endpoint, resource))
        except ConfigurationError:
            raise
        except Exception as e:
            return self._failure("stat", path, e)

    def exists(self, path: str) -> bool:
        return bool(self.stat(path))

    def is_dir(self, path: str) -> bool:
        """Whether ``path`` is a directory. Never writes to the store."""
        try:
            endpoint, resource = self._resolve(path)
            return DirectoryEmulator(endpoint).directory_exists(resource)
        except ConfigurationError:
            raise
        except Exception as e:
            self._failure("is_dir", path, e)
            return False

    def unlink(self, path: str) -> Result:
        """Delete a file."""
        trace_op("unlink", path)
        start_time = time.time()
        try:
            endpoint, resource = self._resolve(path)
            if resource.is_root:
                return Result.failure(ErrorKind.INVALID_PATH, f"Cannot unlink the container root {path}")
            endpoint.client.delete_object(resource.container, resource.key)
            logger.debug(f"Unlink successful for {path}")
            return Result.success()
        except ConfigurationError:
            raise
        except Exception as e:
            return self._failure("unlink", path, e)
        finally:
            time_function("unlink", start_time)

    def rename(self, source: str, target: str) -> Result:
        """
        Move a file or directory within one container.

        A failure after the copy step can leave both source and target in
        place; there is no rollback.
        """
        trace_op("rename", target, old=source)
        try:
            endpoint, old = self._resolve(source)
            _, new = self._resolve(target)
            RenameCoordinator(endpoint).rename(old, new)
            return Result.success()
        except ConfigurationError:
            raise
        except Exception as e:
            return self._failure("rename", f"{source} -> {target}", e)

    def mkdir(self, path: str) -> Result:
        """Create a directory. Creating an existing directory succeeds."""
        trace_op("mkdir", path)
        try:
            endpoint, resource = self._resolve(path)
            DirectoryEmulator(endpoint).create_directory(resource)
            return Result.success()
        except ConfigurationError:
            raise
        except Exception as e:
            return self._failure("mkdir", path, e)

    def rmdir(self, path: str) -> Result:
        """Remove an empty directory."""
        trace_op("rmdir", path)
        try:
            endpoint, resource = self._resolve(path)
            DirectoryEmulator(endpoint).remove_directory(resource)
            return Result.success()
        except ConfigurationError:
            raise
        except Exception as e:
            return self._failure("rmdir", path, e)

    def ensure_directory(self, path: str) -> Result:
        """
        Report whether ``path`` is a directory, creating the container if
        needed and writing a missing placeholder when children exist.

        Returns:
            Result: True or False
        """
        try:
            endpoint, resource = self._resolve(path)
            return Result.success(DirectoryEmulator(endpoint).ensure_directory(resource))
        except ConfigurationError:
            raise
        except Exception as e:
            return self._failure("ensure_directory", path, e)

    def read_bytes(self, path: str) -> Result:
        """Whole content of a file."""
        opened = self.open(path, "r")
        if not opened:
            return opened
        with opened.value as handle:
            return handle.read()

    def write_bytes(self, path: str, data: bytes) -> Result:
        """Replace a file's content with ``data``."""
        opened = self.open(path, "w")
        if not opened:
            return opened
        handle = opened.value
        written = handle.write(data)
        closed = handle.close()
        if not written:
            return written
        return written if closed else closed

    def url(self, path: str) -> str:
        """
        Externally reachable URL of ``path``.

        Raises:
            InvalidPathError: If the path is malformed
            ConfigurationError: If the scheme has no endpoint or no public URL
        """
        endpoint, resource = self._resolve(path)
        return endpoint.url_for(resource.key)
