# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
class BlobVFSError(Exception):
    """Base exception for blobvfs errors."""
    def __init__(self, message: str, code: str = "ERR_UNKNOWN"):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")

class ConfigurationError(BlobVFSError):
    """Configuration or endpoint construction error."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_CONFIG")

class InvalidPathError(BlobVFSError):
    """Malformed path, or empty key where one is required."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_INVALID_PATH")

class InvalidOperationError(BlobVFSError):
    """Operation not valid for the handle's mode or state."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_INVALID_OPERATION")

class ContainerMismatchError(BlobVFSError):
    """Move across containers."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_CONTAINER_MISMATCH")

class DirectoryNotEmptyError(BlobVFSError):
    """Directory removal refused because it still has children."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_NOT_EMPTY")

class StagingError(BlobVFSError):
    """Local staging storage could not be created, written or read."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_LOCAL_IO")

class TransportError(BlobVFSError):
    """The store call failed (network, quota, timeout...)."""
    def __init__(self, message: str, code: str = "ERR_TRANSPORT"):
        super().__init__(message, code=code)

class AuthenticationError(TransportError):
    """Authentication failed."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_AUTH")

class ContainerError(BlobVFSError):
    """Container operation failed."""
    def __init__(self, message: str, operation: str = None):
        code = "ERR_CONTAINER"
        if operation:
            code = f"ERR_CONTAINER_{operation.upper()}"
        super().__init__(message, code=code)

class ContainerNotFoundError(ContainerError):
    """Container does not exist."""
    def __init__(self, message: str):
        super().__init__(message, operation="NOT_FOUND")

class ContainerExistsError(ContainerError):
    """Container already exists."""
    def __init__(self, message: str):
        super().__init__(message, operation="EXISTS")

class ObjectError(BlobVFSError):
    """Object operation failed."""
    def __init__(self, message: str, operation: str = None):
        code = "ERR_OBJECT"
        if operation:
            code = f"ERR_OBJECT_{operation.upper()}"
        super().__init__(message, code=code)

class ObjectNotFoundError(ObjectError):
    """Object does not exist."""
    def __init__(self, message: str):
        super().__init__(message, operation="NOT_FOUND")
