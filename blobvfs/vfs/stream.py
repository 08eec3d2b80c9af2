# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
File handles over whole-object storage.

A read handle streams the remote object directly until random access needs
a local copy (``stage_remote``). Write and append handles stage their
content in a local file (see ``blobvfs.vfs.buffer``) and upload it as the
object's new value on flush or close. The staging file is removed on close
whatever the outcome of the upload.

State machine::

    CLOSED -> OPENING -> READ_OPEN | WRITE_OPEN -> CLOSED
"""

import os
import time
from dataclasses import dataclass
from enum import Enum

from blobvfs.client.exceptions import InvalidOperationError, InvalidPathError
from blobvfs.client.types import PutObjectOptions
from .buffer import StagingBuffer
from .directory import DirectoryEmulator
from .mime import guess_mime_type
from .paths import ResourcePath
from .result import Result
from .utils import logger, time_function, trace_op


class HandleState(Enum):
    CLOSED = "closed"
    OPENING = "opening"
    READ_OPEN = "read_open"
    WRITE_OPEN = "write_open"


class ModeKind(Enum):
    READ = "read"
    WRITE = "write"
    APPEND = "append"


@dataclass(frozen=True)
class OpenMode:
    """
    Parsed open mode.

    ``r`` streams the remote object; ``w`` starts from empty staged content;
    ``a`` and ``r+`` stage the existing object first. ``+`` adds the missing
    direction; ``b`` and ``t`` are accepted and ignored.
    """

    kind: ModeKind
    readable: bool
    writable: bool
    at_end: bool = False

    @property
    def fetches(self) -> bool:
        return self.kind is not ModeKind.WRITE

    @classmethod
    def parse(cls, mode: str) -> "OpenMode":
        flags = mode.replace("b", "").replace("t", "")
        plus = "+" in flags
        base = flags.replace("+", "")
        if base == "r":
            if plus:
                return cls(ModeKind.APPEND, readable=True, writable=True)
            return cls(ModeKind.READ, readable=True, writable=False)
        if base == "w":
            return cls(ModeKind.WRITE, readable=plus, writable=True)
        if base == "a":
            return cls(ModeKind.APPEND, readable=plus, writable=True, at_end=True)
        raise InvalidOperationError(f"Unsupported open mode {mode!r}")


class StreamHandle:
    """
    An open file on a storage endpoint.

    Handles are created through ``StreamHandle.open`` (or
    ``BlobFileSystem.open``). Every operation returns a ``Result``.

    Attributes:
        path (ResourcePath): The object the handle reads or writes
        mode (OpenMode): How the handle was opened
        state (HandleState): Current lifecycle state
    """

    def __init__(self, endpoint, path: ResourcePath, mode: OpenMode,
                 staging_dir=None, mime_type_of=guess_mime_type):
        self.endpoint = endpoint
        self.path = path
        self.mode = mode
        self.state = HandleState.CLOSED
        self.staging_dir = staging_dir
        self.mime_type_of = mime_type_of
        self._stream = None
        self._staging = None
        self._position = 0
        self._exhausted = False
        self._dirty = False

    @classmethod
    def open(cls, endpoint, path: ResourcePath, mode: str, staging_dir=None,
             mime_type_of=guess_mime_type) -> "StreamHandle":
        """
        Open ``path`` and return the handle.

        Raises:
            InvalidPathError: If the key is empty
            InvalidOperationError: If the mode is not supported
            BlobVFSError: If the object cannot be fetched, staging cannot be
                allocated, or the parent directory cannot be ensured
        """
        handle = cls(endpoint, path, OpenMode.parse(mode), staging_dir, mime_type_of)
        handle._open()
        return handle

    @property
    def staging_path(self):
        """Location of the staging file, or None for read handles and closed handles."""
        return self._staging.path if self._staging is not None else None

    @property
    def closed(self) -> bool:
        return self.state is HandleState.CLOSED

    def _open(self):
        trace_op("open", self.path, mode=self.mode)
        start_time = time.time()
        if self.path.is_root:
            raise InvalidPathError(f"Cannot open directory {self.path} as a file")

        self.state = HandleState.OPENING
        try:
            client = self.endpoint.client
            if self.mode.kind is ModeKind.READ:
                self._stream = client.get_object(self.path.container, self.path.key)
                self.state = HandleState.READ_OPEN
                logger.debug(f"open: streaming {self.path} for reading")
                return

            remote = client.get_object(self.path.container, self.path.key) if self.mode.fetches else None
            self._staging = StagingBuffer(self.staging_dir, label=self.path.uri)
            if remote is not None:
                try:
                    self._staging.fill_from(remote)
                finally:
                    remote.close()
                if not self.mode.at_end:
                    self._staging.seek(0)
            # Opening for write replaces the object even if nothing is written.
            self._dirty = self.mode.kind is ModeKind.WRITE

            DirectoryEmulator(self.endpoint).ensure_parent(self.path)
            self.state = HandleState.WRITE_OPEN
            logger.debug(f"open: staging {self.path} at {self._staging.path}")
        except Exception:
            self._release()
            raise
        finally:
            time_function("open", start_time)

    def _failure(self, operation, exc) -> Result:
        if isinstance(exc, InvalidOperationError):
            logger.warning(f"{operation}: {exc}")
        else:
            logger.error(f"{operation}: Error on {self.path}: {exc}", exc_info=True)
        return Result.from_exception(exc)

    def _require(self, readable=False, writable=False):
        if self.state not in (HandleState.READ_OPEN, HandleState.WRITE_OPEN):
            raise InvalidOperationError(f"Handle for {self.path} is not open")
        if readable and not self.mode.readable:
            raise InvalidOperationError(f"Handle for {self.path} is not open for reading")
        if writable and not self.mode.writable:
            raise InvalidOperationError(f"Handle for {self.path} is not open for writing")

    def read(self, count: int = -1) -> Result:
        """
        Read up to ``count`` bytes (all remaining bytes when negative).

        Returns:
            Result: bytes read; fewer than ``count`` at the end of the object
        """
        trace_op("read", self.path, count=count)
        try:
            self._require(readable=True)
            if self._staging is not None:
                return Result.success(self._staging.read(count))

            data = self._stream.read(count) if count >= 0 else self._stream.read()
            self._position += len(data)
            if count < 0 or len(data) < count:
                self._exhausted = True
            return Result.success(data)
        except Exception as e:
            return self._failure("read", e)

    def write(self, data: bytes) -> Result:
        """
        Stage ``data``; append handles always write at the end.

        Returns:
            Result: number of bytes accepted, always ``len(data)``
        """
        trace_op("write", self.path, size=len(data))
        try:
            self._require(writable=True)
            if self.mode.at_end:
                self._staging.seek(0, os.SEEK_END)
            written = self._staging.write(data)
            self._dirty = True
            return Result.success(written)
        except Exception as e:
            return self._failure("write", e)

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> Result:
        """
        Move the position of the staging file or of a seekable remote stream.

        Returns:
            Result: the new absolute position
        """
        try:
            self._require()
            if whence == os.SEEK_SET and offset < 0:
                raise InvalidOperationError(f"Negative seek position {offset}")
            if self._staging is not None:
                return Result.success(self._staging.seek(offset, whence))

            seekable = getattr(self._stream, "seekable", None)
            if seekable is None or not seekable():
                raise InvalidOperationError(f"Remote stream for {self.path} is not seekable")
            self._position = self._stream.seek(offset, whence)
            self._exhausted = False
            return Result.success(self._position)
        except Exception as e:
            return self._failure("seek", e)

    def tell(self) -> Result:
        try:
            self._require()
            if self._staging is not None:
                return Result.success(self._staging.tell())
            return Result.success(self._position)
        except Exception as e:
            return self._failure("tell", e)

    def size(self) -> Result:
        """
        Current size of the staged content, including unflushed writes.

        Returns:
            Result: the size in bytes, or ``INVALID_OPERATION`` for a handle
            that streams the remote object
        """
        try:
            self._require()
            if self._staging is None:
                raise InvalidOperationError(f"Handle for {self.path} has no staged content")
            return Result.success(self._staging.get_size())
        except Exception as e:
            return self._failure("size", e)

    def seekable(self) -> bool:
        """Whether ``seek`` can succeed without staging the remote object first."""
        if self.state not in (HandleState.READ_OPEN, HandleState.WRITE_OPEN):
            return False
        if self._staging is not None:
            return True
        seekable = getattr(self._stream, "seekable", None)
        return seekable is not None and bool(seekable())

    def stage_remote(self) -> Result:
        """
        Replace the remote stream of a read handle with a local copy.

        The object is fetched again in full and the position is carried
        over, so random access works on streams that cannot seek.
        """
        trace_op("stage_remote", self.path)
        start_time = time.time()
        try:
            self._require(readable=True)
            if self._staging is not None:
                return Result.success()

            remote = self.endpoint.client.get_object(self.path.container, self.path.key)
            staging = None
            try:
                staging = StagingBuffer(self.staging_dir, label=self.path.uri)
                staging.fill_from(remote)
                staging.seek(self._position)
            except Exception:
                if staging is not None:
                    staging.close()
                raise
            finally:
                remote.close()

            self._stream.close()
            self._stream = None
            self._staging = staging
            logger.debug(f"stage_remote: {self.path} staged at {staging.path}")
            return Result.success()
        except Exception as e:
            return self._failure("stage_remote", e)
        finally:
            time_function("stage_remote", start_time)

    def truncate(self, size: int = None) -> Result:
        """Truncate (or zero-extend) the staged content; defaults to the current position."""
        try:
            self._require(writable=True)
            if size is None:
                size = self._staging.tell()
            if size < 0:
                raise InvalidOperationError(f"Negative truncate size {size}")
            self._staging.truncate(size)
            self._dirty = True
            return Result.success(size)
        except Exception as e:
            return self._failure("truncate", e)

    def eof(self) -> bool:
        """True when nothing is open or the underlying resource is exhausted."""
        if self.state not in (HandleState.READ_OPEN, HandleState.WRITE_OPEN):
            return True
        if self._staging is not None:
            return self._staging.tell() >= self._staging.get_size()

        seekable = getattr(self._stream, "seekable", None)
        if seekable is not None and seekable():
            position = self._stream.tell()
            end = self._stream.seek(0, os.SEEK_END)
            self._stream.seek(position)
            return position >= end
        return self._exhausted

    def _upload(self):
        start_time = time.time()
        DirectoryEmulator(self.endpoint).ensure_container()

        with self._staging.upload_source() as source:
            data = source.read()

        options = PutObjectOptions(
            content_type=self.mime_type_of(self.path.uri),
            cache_control=self.endpoint.cache_control,
        )
        self.endpoint.client.put_object(self.path.container, self.path.key, data, options)
        self._dirty = False

        upload_time = time.time() - start_time
        logger.info(f"Flushed {len(data)} bytes to {self.path} in {upload_time:.2f}s")

    def flush(self) -> Result:
        """
        Upload the staged content if it changed since the last upload.

        The staged content is kept, so a failed flush can be retried and the
        handle stays usable.
        """
        trace_op("flush", self.path)
        try:
            self._require()
            if self.state is HandleState.WRITE_OPEN and self._dirty:
                self._upload()
            return Result.success()
        except Exception as e:
            return self._failure("flush", e)

    def close(self) -> Result:
        """
        Upload pending content, then release the handle.

        The staging file is removed and the endpoint reference dropped even
        when the upload fails; the upload failure is returned.
        """
        trace_op("close", self.path)
        if self.state is HandleState.CLOSED:
            return Result.success()

        start_time = time.time()
        result = Result.success()
        try:
            if self.state is HandleState.WRITE_OPEN and self._dirty:
                self._upload()
        except Exception as e:
            result = self._failure("close", e)
        finally:
            self._release()
            time_function("close", start_time)
        return result

    def _release(self):
        if self._stream is not None:
            try:
                self._stream.close()
            except Exception as e:
                logger.warning(f"Error closing remote stream for {self.path}: {e}")
            self._stream = None
        if self._staging is not None:
            self._staging.close()
            self._staging = None
        self.endpoint = None
        self.state = HandleState.CLOSED

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def __del__(self):
        if getattr(self, "_staging", None) is not None:
            logger.warning(f"Handle for {self.path} was never closed; discarding staged content")
            self._staging.close()
