# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
from .exceptions import (
    AuthenticationError,
    BlobVFSError,
    ConfigurationError,
    ContainerError,
    ContainerExistsError,
    ContainerMismatchError,
    ContainerNotFoundError,
    DirectoryNotEmptyError,
    InvalidOperationError,
    InvalidPathError,
    ObjectError,
    ObjectNotFoundError,
    StagingError,
    TransportError,
)
from .memory import InMemoryObjectStore
from .protocol import ObjectStoreClient
from .retry import RetryingStoreClient, retry
from .types import ContainerProperties, ListObjectsOptions, ObjectProperties, PutObjectOptions
