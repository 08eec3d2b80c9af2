# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Directory enumeration.

A listing is taken with one delimiter query at open time and kept as an
immutable tuple of child names. Nested keys are grouped under their first
segment, so ``dir/sub/y.txt`` appears in the listing of ``dir`` as ``sub``.
"""

import time
from typing import Optional, Tuple

from blobvfs.client.types import ListObjectsOptions
from .paths import PLACEHOLDER_NAME, ResourcePath
from .utils import logger, time_function

DELIMITER = "/"


class DirectoryListing:
    """
    Snapshot of a directory's immediate children with a forward-only cursor.

    Attributes:
        path (ResourcePath): The listed directory
        entries (tuple): Child names in store order
    """

    def __init__(self, path: ResourcePath, entries: Tuple[str, ...]):
        self.path = path
        self.entries = tuple(entries)
        self._index = 0
        self._closed = False

    def next(self) -> Optional[str]:
        """Return the next child name, or None once the listing is exhausted or closed."""
        if self._closed or self._index >= len(self.entries):
            return None
        entry = self.entries[self._index]
        self._index += 1
        return entry

    def rewind(self) -> None:
        """Move the cursor back to the first entry without querying the store."""
        self._index = 0

    def close(self) -> None:
        self._closed = True
        self.entries = ()
        self._index = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class DirectoryLister:
    """Builds ``DirectoryListing`` snapshots from one storage endpoint."""

    def __init__(self, endpoint):
        self.endpoint = endpoint

    def open(self, path: ResourcePath) -> DirectoryListing:
        """
        List the immediate children of ``path``.

        Raises:
            BlobVFSError: If the listing call fails; no partial listing is returned
        """
        start_time = time.time()
        prefix = path.directory_prefix
        logger.debug(f"Listing {path} using prefix: '{prefix}'")

        keys = self.endpoint.client.list_objects(
            path.container,
            ListObjectsOptions(prefix=prefix, delimiter=DELIMITER)
        )

        entries = []
        seen = set()
        for key in keys:
            if not key.startswith(prefix):
                continue
            name = key[len(prefix):]
            if name.endswith(DELIMITER):
                name = name[:-len(DELIMITER)]
            # A store without delimiter support returns nested keys in full.
            name = name.split(DELIMITER, 1)[0]
            if not name or name == PLACEHOLDER_NAME or name in seen:
                continue
            seen.add(name)
            entries.append(name)

        logger.debug(f"Listing of {path} returned {len(entries)} entries: {entries}")
        time_function("opendir", start_time)
        return DirectoryListing(path, tuple(entries))
