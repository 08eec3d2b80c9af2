# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
from .config import EndpointConfig, EnvironConfigProvider, StaticConfigProvider
from .directory import DirectoryEmulator
from .filesystem import BlobFileSystem
from .listing import DirectoryLister, DirectoryListing
from .metadata import StatResult
from .paths import PathResolver, ResourcePath, basename, dirname, join, split_path
from .registry import EndpointRegistry, StorageEndpoint
from .rename import RenameCoordinator
from .result import ErrorKind, Result
from .stream import HandleState, OpenMode, StreamHandle
