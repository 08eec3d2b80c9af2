# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
blobvfs: file and directory semantics on top of flat object storage.
"""

from .client import InMemoryObjectStore
from .vfs import (
    BlobFileSystem,
    EndpointConfig,
    EndpointRegistry,
    EnvironConfigProvider,
    ErrorKind,
    Result,
    StaticConfigProvider,
)

__version__ = "0.1.0"
