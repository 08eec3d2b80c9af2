# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Staging buffers for the blobvfs filesystem.

An object store only replaces whole objects, so an open write or append
handle stages its content in a local temporary file and uploads it in one
piece on flush or close. This module provides that staging file with the
random-access read/write behaviour of a regular file.
"""

import os
import shutil
import tempfile
import time
from contextlib import contextmanager
from threading import RLock

from blobvfs.client.exceptions import StagingError
from .utils import logger

# Chunk size used when copying between the staging file and remote streams
COPY_CHUNK_SIZE = 4 * 1024 * 1024  # 4MB

class StagingBuffer:
    """
    Local temporary file backing one open handle.

    The file is created on construction and removed by ``close``, which is
    safe to call any number of times.

    Attributes:
        path (str): Location of the staging file on local disk
        lock (threading.RLock): Serializes access from concurrent callers
    """

    def __init__(self, staging_dir=None, label=""):
        """
        Create the staging file.

        Args:
            staging_dir (str, optional): Directory to create the file in.
                Defaults to the system temporary directory.
            label (str, optional): Object key, used only for log messages.

        Raises:
            StagingError: If the file cannot be created
        """
        self.label = label
        self.lock = RLock()
        try:
            self._file = tempfile.NamedTemporaryFile(
                mode='w+b', prefix='blobvfs-', suffix='.staging',
                dir=staging_dir, delete=False,
            )
        except OSError as e:
            logger.error(f"Failed to allocate staging file for {label}: {e}", exc_info=True)
            raise StagingError(f"Failed to allocate staging file for {label}: {e}") from e
        self.path = self._file.name
        logger.debug(f"Allocated staging file {self.path} for {label}")

    @property
    def closed(self) -> bool:
        return self._file is None

    def _require_open(self):
        if self._file is None:
            raise StagingError(f"Staging file for {self.label} is closed")
        return self._file

    def write(self, data: bytes) -> int:
        """
        Write ``data`` at the current position.

        Returns:
            int: Number of bytes written, always ``len(data)``

        Raises:
            StagingError: If the local write fails or is partial
        """
        with self.lock:
            staged = self._require_open()
            try:
                written = staged.write(data)
            except OSError as e:
                logger.error(f"Write to staging file for {self.label} failed: {e}", exc_info=True)
                raise StagingError(f"Write to staging file failed: {e}") from e
            if written != len(data):
                logger.error(f"Partial write occurred for {self.label}! Expected {len(data)}, wrote {written}")
                raise StagingError(f"Partial write to staging file: {written} of {len(data)} bytes")
            return written

    def read(self, size: int = -1) -> bytes:
        with self.lock:
            staged = self._require_open()
            try:
                return staged.read(size)
            except OSError as e:
                raise StagingError(f"Read from staging file failed: {e}") from e

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        with self.lock:
            staged = self._require_open()
            try:
                return staged.seek(offset, whence)
            except (OSError, ValueError) as e:
                raise StagingError(f"Seek in staging file failed: {e}") from e

    def tell(self) -> int:
        with self.lock:
            return self._require_open().tell()

    def truncate(self, length: int) -> int:
        """
        Truncate or zero-extend the staged content to ``length`` bytes.

        The position is clamped to the new end of the content.
        """
        with self.lock:
            staged = self._require_open()
            position = staged.tell()
            try:
                staged.truncate(length)
            except OSError as e:
                raise StagingError(f"Truncate of staging file failed: {e}") from e
            if position > length:
                staged.seek(length)
            logger.debug(f"Truncated staging file for {self.label} to {length} bytes")
            return length

    def get_size(self) -> int:
        """Size of the staged content in bytes; the position is left unchanged."""
        with self.lock:
            staged = self._require_open()
            staged.flush()
            return os.fstat(staged.fileno()).st_size

    def fill_from(self, stream) -> int:
        """
        Copy a remote byte stream into the staging file, replacing its content.

        The position is left at the end of the copied content.

        Returns:
            int: Number of bytes copied
        """
        start_time = time.time()
        with self.lock:
            staged = self._require_open()
            try:
                staged.seek(0)
                staged.truncate(0)
                shutil.copyfileobj(stream, staged, COPY_CHUNK_SIZE)
            except OSError as e:
                raise StagingError(f"Copy into staging file failed: {e}") from e
            size = staged.tell()
        logger.debug(f"Staged {size} bytes for {self.label} in {time.time() - start_time:.4f}s")
        return size

    @contextmanager
    def upload_source(self):
        """
        Yield the staging file positioned at its start, for uploading.

        The previous position is restored afterwards, so the handle can keep
        writing and a failed upload can be retried.
        """
        with self.lock:
            staged = self._require_open()
            position = staged.tell()
            staged.flush()
            staged.seek(0)
            try:
                yield staged
            finally:
                if not staged.closed:
                    staged.seek(position)

    def close(self) -> None:
        """Close the staging file and remove it from disk."""
        with self.lock:
            staged, self._file = self._file, None
            if staged is None:
                return
            try:
                staged.close()
            except OSError as e:
                logger.error(f"Error closing staging file {self.path}: {e}", exc_info=True)
            try:
                os.remove(self.path)
                logger.debug(f"Removed staging file {self.path} for {self.label}")
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.error(f"Error removing staging file {self.path}: {e}", exc_info=True)
