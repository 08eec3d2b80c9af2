# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Mount adapter for blobvfs.

Translates filesystem calls in the FUSE calling convention (absolute mount
paths, integer handle numbers, byte offsets) into ``BlobFileSystem``
operations. Failed results are raised as ``error_type`` with the errno of
their ``ErrorKind``. This module does not import fusepy; the FUSE binding in
``blobvfs.fuse.fuse_mount`` swaps in ``FuseOSError``.
"""

import errno
import importlib
import itertools
import os
from threading import Lock

from blobvfs.client.memory import InMemoryObjectStore
from blobvfs.vfs.config import EndpointConfig, EnvironConfigProvider, StaticConfigProvider
from blobvfs.vfs.filesystem import BlobFileSystem
from blobvfs.vfs.registry import EndpointRegistry
from blobvfs.vfs.utils import logger, trace_op

BLOCK_SIZE = 4096


class MountError(OSError):
    """Failed mount operation, carrying the errno reported to the kernel."""

    def __init__(self, errno):
        super().__init__(errno, os.strerror(errno))


def flags_to_mode(flags):
    """
    Translate ``open(2)`` flags into a blobvfs open mode.

    Writes without O_TRUNC must keep the existing content, so they stage
    the current object first (``r+``).
    """
    accmode = flags & os.O_ACCMODE
    if accmode == os.O_RDONLY:
        return "r"
    plus = "+" if accmode == os.O_RDWR else ""
    if flags & os.O_APPEND:
        return "a" + plus
    if flags & os.O_TRUNC:
        return "w" + plus
    return "r+"


class MountAdapter:
    """
    Mount operations backed by a ``BlobFileSystem``.

    Attributes:
        fs (BlobFileSystem): The filesystem facade
        scheme (str): Scheme mounted at the root
        handles (dict): Open file handle numbers to ``StreamHandle``
        error_type (type): Exception raised with an errno on failure
    """

    error_type = MountError

    def __init__(self, fs, scheme):
        self.fs = fs
        self.scheme = scheme
        self.handles = {}
        self._counter = itertools.count(1)
        self._lock = Lock()

    def _uri(self, path):
        return f"{self.scheme}://{path.lstrip('/')}"

    def _check(self, result):
        if not result:
            raise self.error_type(result.error.errno)
        return result.value

    def _handle(self, fh):
        handle = self.handles.get(fh)
        if handle is None:
            raise self.error_type(errno.EBADF)
        return handle

    def _register(self, handle):
        with self._lock:
            fh = next(self._counter)
            self.handles[fh] = handle
        return fh

    def _staged_size(self, uri):
        with self._lock:
            handles = list(self.handles.values())
        for handle in handles:
            if handle.path.uri == uri and handle.mode.writable:
                size = handle.size()
                if size:
                    return size.value
        return None

    def _move_to(self, handle, offset):
        """
        Position ``handle`` at ``offset``.

        Sequential access leaves the handle alone. A read handle whose remote
        stream cannot seek is staged locally before the first random access.
        """
        if self._check(handle.tell()) == offset:
            return
        if not handle.seekable():
            logger.debug(f"Staging {handle.path} for random access at offset {offset}")
            self._check(handle.stage_remote())
        self._check(handle.seek(offset))

    def getattr(self, path, fh=None):
        """
        Get file attributes.

        Files with an open write handle report the size of their staged
        content, since the object is only replaced on flush.

        Raises:
            MountError: ENOENT if the path is neither a file nor a directory
        """
        trace_op("getattr", path, fh=fh)
        uri = self._uri(path)
        attrs = self._check(self.fs.stat(uri)).as_dict()
        staged = self._staged_size(uri)
        if staged is not None and not (attrs['st_mode'] & 0o040000):
            attrs['st_size'] = staged
            attrs['st_blocks'] = (staged + BLOCK_SIZE - 1) // BLOCK_SIZE
        return attrs

    def readdir(self, path, fh):
        trace_op("readdir", path, fh=fh)
        return ['.', '..'] + self._check(self.fs.listdir(self._uri(path)))

    def mkdir(self, path, mode):
        self._check(self.fs.mkdir(self._uri(path)))
        return 0

    def rmdir(self, path):
        self._check(self.fs.rmdir(self._uri(path)))
        return 0

    def unlink(self, path):
        self._check(self.fs.unlink(self._uri(path)))
        return 0

    def rename(self, old, new):
        self._check(self.fs.rename(self._uri(old), self._uri(new)))
        return 0

    def create(self, path, mode, fi=None):
        """
        Create a new file and return its handle number.

        The empty object is uploaded immediately so the file is visible to
        getattr before anything is written.
        """
        trace_op("create", path, mode=oct(mode))
        handle = self._check(self.fs.open(self._uri(path), "w+"))
        flushed = handle.flush()
        if not flushed:
            handle.close()
            raise self.error_type(flushed.error.errno)
        return self._register(handle)

    def open(self, path, flags):
        trace_op("open", path, flags=flags)
        handle = self._check(self.fs.open(self._uri(path), flags_to_mode(flags)))
        return self._register(handle)

    def read(self, path, size, offset, fh):
        trace_op("read", path, size=size, offset=offset, fh=fh)
        handle = self._handle(fh)
        self._move_to(handle, offset)
        return self._check(handle.read(size))

    def write(self, path, data, offset, fh):
        trace_op("write", path, offset=offset, size=len(data))
        handle = self._handle(fh)
        self._move_to(handle, offset)
        return self._check(handle.write(data))

    def truncate(self, path, length, fh=None):
        """Truncate through the open handle, or by staging and re-uploading the object."""
        if fh is not None and fh in self.handles:
            self._check(self.handles[fh].truncate(length))
            return 0

        handle = self._check(self.fs.open(self._uri(path), "r+"))
        truncated = handle.truncate(length)
        closed = handle.close()
        self._check(truncated)
        self._check(closed)
        return 0

    def flush(self, path, fh):
        self._check(self._handle(fh).flush())
        return 0

    def fsync(self, path, datasync, fh):
        return self.flush(path, fh)

    def release(self, path, fh):
        """Close the handle, uploading pending content."""
        trace_op("release", path, fh=fh)
        with self._lock:
            handle = self.handles.pop(fh, None)
        if handle is None:
            return 0
        self._check(handle.close())
        return 0

    def chmod(self, path, mode):
        # Permissions are not stored.
        return 0

    def chown(self, path, uid, gid):
        return 0

    def statfs(self, path):
        return {
            'f_bsize': BLOCK_SIZE,
            'f_frsize': BLOCK_SIZE,
            'f_blocks': 1024 * 1024 * 1024,
            'f_bfree': 1024 * 1024 * 1024,
            'f_bavail': 1024 * 1024 * 1024,
            'f_files': 1000000,
            'f_ffree': 1000000,
            'f_favail': 1000000,
            'f_namemax': 1024,
        }

    def destroy(self, path):
        """Close every handle left open at unmount."""
        with self._lock:
            handles, self.handles = list(self.handles.values()), {}
        for handle in handles:
            result = handle.close()
            if not result:
                logger.error(f"Failed to upload {handle.path} at unmount: {result.message}")


def memory_client_factory(config):
    """Client factory returning a fresh in-memory store."""
    return InMemoryObjectStore()


def load_client_factory(target):
    """
    Import a client factory given as ``module:callable``.

    Raises:
        ValueError: If ``target`` is malformed
    """
    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Client factory must look like module:callable, got {target!r}")
    module = importlib.import_module(module_name)
    return getattr(module, attribute)


def build_filesystem(scheme, client_factory, container=None, staging_dir=None):
    """Build the ``BlobFileSystem`` for a mount."""
    if container:
        provider = StaticConfigProvider({scheme: EndpointConfig(container=container)})
    else:
        provider = EnvironConfigProvider()
    registry = EndpointRegistry(provider, client_factory)
    # Fail fast on an unconfigured scheme instead of on the first FUSE call.
    registry.endpoint(scheme)
    return BlobFileSystem(registry, staging_dir=staging_dir)
