# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Metadata synthesis for objects and virtual directories.
"""

import os
import stat
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime

from blobvfs.client.exceptions import ObjectNotFoundError
from .directory import DirectoryEmulator
from .paths import ResourcePath
from .utils import logger, time_function

BLOCK_SIZE = 4096
DIRECTORY_MODE = stat.S_IFDIR | 0o755
FILE_MODE = stat.S_IFREG | 0o644


def _uid():
    return os.getuid() if hasattr(os, "getuid") else 0


def _gid():
    return os.getgid() if hasattr(os, "getgid") else 0


@dataclass
class StatResult:
    """Synthesized ``stat`` fields for a file or directory."""

    st_mode: int
    st_size: int
    st_atime: float
    st_mtime: float
    st_ctime: float
    st_nlink: int = 1
    st_uid: int = field(default_factory=_uid)
    st_gid: int = field(default_factory=_gid)
    st_blksize: int = BLOCK_SIZE
    st_blocks: int = 0

    @property
    def is_dir(self) -> bool:
        return stat.S_ISDIR(self.st_mode)

    @property
    def is_file(self) -> bool:
        return stat.S_ISREG(self.st_mode)

    def as_dict(self) -> dict:
        return asdict(self)


def directory_stat(mtime: float = None) -> StatResult:
    now = time.time()
    return StatResult(
        st_mode=DIRECTORY_MODE,
        st_size=0,
        st_atime=now,
        st_mtime=now if mtime is None else mtime,
        st_ctime=now if mtime is None else mtime,
        st_nlink=2,
    )


def file_stat(size: int, last_modified: datetime) -> StatResult:
    modified = last_modified.timestamp()
    return StatResult(
        st_mode=FILE_MODE,
        st_size=size,
        st_atime=time.time(),
        st_mtime=modified,
        st_ctime=modified,
        st_blocks=(size + BLOCK_SIZE - 1) // BLOCK_SIZE,
    )


def stat_path(endpoint, path: ResourcePath) -> StatResult:
    """
    Build metadata for ``path``.

    The root and directories with a placeholder are reported as
    directories. Otherwise the object's properties are used. When there is
    no object, directory detection runs again with placeholder repair, so
    a directory known only through its children gains a placeholder here.

    Raises:
        ObjectNotFoundError: If ``path`` is neither an object nor a directory
    """
    start_time = time.time()
    directories = DirectoryEmulator(endpoint)

    if path.is_root:
        return directory_stat()

    try:
        endpoint.client.get_object_properties(path.container, path.placeholder_key)
        logger.debug(f"stat returning directory attributes for {path}")
        return directory_stat()
    except ObjectNotFoundError:
        pass

    try:
        properties = endpoint.client.get_object_properties(path.container, path.key)
        logger.debug(f"stat returning file attributes for {path}")
        time_function("stat (file)", start_time)
        return file_stat(properties.content_length, properties.last_modified)
    except ObjectNotFoundError:
        pass

    if directories.ensure_directory(path):
        logger.debug(f"stat returning directory attributes for {path} (has children)")
        time_function("stat (directory with children)", start_time)
        return directory_stat()

    logger.debug(f"stat: Path {path} does not exist")
    time_function("stat (not found)", start_time)
    raise ObjectNotFoundError(f"{path} does not exist")
