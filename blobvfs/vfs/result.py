# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Operation results.

Every public filesystem operation returns a ``Result`` instead of raising:
internal layers raise blobvfs exceptions, and the boundary classifies them
into an ``ErrorKind``.
"""

import errno
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from blobvfs.client.exceptions import (
    BlobVFSError,
    ConfigurationError,
    ContainerMismatchError,
    ContainerNotFoundError,
    DirectoryNotEmptyError,
    InvalidOperationError,
    InvalidPathError,
    ObjectNotFoundError,
    StagingError,
    TransportError,
)

T = TypeVar("T")


class ErrorKind(Enum):
    NOT_FOUND = "not_found"
    INVALID_PATH = "invalid_path"
    CONTAINER_MISMATCH = "container_mismatch"
    NON_EMPTY_DIRECTORY = "non_empty_directory"
    TRANSPORT_FAILURE = "transport_failure"
    LOCAL_IO_FAILURE = "local_io_failure"
    CONFIGURATION = "configuration"
    INVALID_OPERATION = "invalid_operation"

    @classmethod
    def of(cls, exc: BaseException) -> "ErrorKind":
        """Classify an exception raised by the filesystem layer or a store client."""
        if isinstance(exc, (ObjectNotFoundError, ContainerNotFoundError)):
            return cls.NOT_FOUND
        if isinstance(exc, InvalidPathError):
            return cls.INVALID_PATH
        if isinstance(exc, ContainerMismatchError):
            return cls.CONTAINER_MISMATCH
        if isinstance(exc, DirectoryNotEmptyError):
            return cls.NON_EMPTY_DIRECTORY
        if isinstance(exc, ConfigurationError):
            return cls.CONFIGURATION
        if isinstance(exc, InvalidOperationError):
            return cls.INVALID_OPERATION
        if isinstance(exc, StagingError):
            return cls.LOCAL_IO_FAILURE
        if isinstance(exc, OSError) and not isinstance(exc, ConnectionError):
            return cls.LOCAL_IO_FAILURE
        return cls.TRANSPORT_FAILURE

    @property
    def errno(self) -> int:
        return _ERRNO[self]

    def exception(self, message: str) -> BlobVFSError:
        return _EXCEPTIONS[self](message)


_ERRNO = {
    ErrorKind.NOT_FOUND: errno.ENOENT,
    ErrorKind.INVALID_PATH: errno.EINVAL,
    ErrorKind.CONTAINER_MISMATCH: errno.EXDEV,
    ErrorKind.NON_EMPTY_DIRECTORY: errno.ENOTEMPTY,
    ErrorKind.TRANSPORT_FAILURE: errno.EIO,
    ErrorKind.LOCAL_IO_FAILURE: errno.EIO,
    ErrorKind.CONFIGURATION: errno.ENODEV,
    ErrorKind.INVALID_OPERATION: errno.EBADF,
}

_EXCEPTIONS = {
    ErrorKind.NOT_FOUND: ObjectNotFoundError,
    ErrorKind.INVALID_PATH: InvalidPathError,
    ErrorKind.CONTAINER_MISMATCH: ContainerMismatchError,
    ErrorKind.NON_EMPTY_DIRECTORY: DirectoryNotEmptyError,
    ErrorKind.TRANSPORT_FAILURE: TransportError,
    ErrorKind.LOCAL_IO_FAILURE: StagingError,
    ErrorKind.CONFIGURATION: ConfigurationError,
    ErrorKind.INVALID_OPERATION: InvalidOperationError,
}


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a filesystem operation.

    A result is truthy when the operation succeeded. ``value`` holds the
    payload on success; ``error`` and ``message`` describe a failure.
    """

    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    def unwrap(self) -> T:
        """Return the value, or raise the exception matching the failure."""
        if self.error is not None:
            raise self.error.exception(self.message)
        return self.value

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorKind, message: str = "") -> "Result[T]":
        return cls(error=error, message=message)

    @classmethod
    def from_exception(cls, exc: BaseException) -> "Result[T]":
        return cls(error=ErrorKind.of(exc), message=str(exc))
