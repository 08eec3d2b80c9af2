# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Virtual directory emulation.

The object store has no directories. A key ``k`` is treated as a directory
when a zero-byte placeholder object exists at ``k/.placeholder``, or when
at least one object exists under the prefix ``k/``. The container root is
always a directory.

Directory checks come in two flavours: ``directory_exists`` only reads,
while ``reconcile_directory_marker`` writes the missing placeholder when a
directory is recognized through its children, so later checks need a
single properties call instead of a listing.
"""

import time

from blobvfs.client.exceptions import (
    ContainerExistsError,
    ContainerNotFoundError,
    DirectoryNotEmptyError,
    InvalidPathError,
    ObjectNotFoundError,
)
from blobvfs.client.types import ListObjectsOptions, PutObjectOptions
from .paths import ResourcePath
from .utils import logger, time_function

PLACEHOLDER_CONTENT_TYPE = "application/x-directory"

class DirectoryEmulator:
    """
    Directory existence, creation and removal on one storage endpoint.

    Attributes:
        endpoint (StorageEndpoint): Endpoint whose container is operated on
    """

    def __init__(self, endpoint):
        self.endpoint = endpoint

    @property
    def client(self):
        return self.endpoint.client

    def ensure_container(self) -> None:
        """
        Create the endpoint's container if the store reports it missing.

        Raises:
            BlobVFSError: If the store cannot be queried or the container created
        """
        container = self.endpoint.container
        try:
            self.client.get_container_properties(container)
            return
        except ContainerNotFoundError:
            logger.info(f"Container {container} does not exist. Creating...")

        try:
            self.client.create_container(container)
            logger.info(f"Successfully created container {container}")
        except ContainerExistsError:
            logger.debug(f"Container {container} was created concurrently")

    def _placeholder_exists(self, path: ResourcePath) -> bool:
        try:
            self.client.get_object_properties(path.container, path.placeholder_key)
            return True
        except ObjectNotFoundError:
            return False

    def _has_children(self, path: ResourcePath, max_keys: int = 1):
        children = self.client.list_objects(
            path.container,
            ListObjectsOptions(prefix=path.directory_prefix, max_keys=max_keys)
        )
        return list(children)

    def directory_exists(self, path: ResourcePath) -> bool:
        """
        Check whether ``path`` is a directory without writing anything.

        Returns:
            bool: True for the root, a placeholder, or a key with children
        """
        if path.is_root:
            return True
        if self._placeholder_exists(path):
            return True
        try:
            return bool(self._has_children(path))
        except ContainerNotFoundError:
            return False

    def reconcile_directory_marker(self, path: ResourcePath) -> bool:
        """
        Check whether ``path`` is a directory, repairing a missing placeholder.

        When the placeholder is absent but objects exist under the key, the
        placeholder is written before returning True. Calling this twice in a
        row performs at most one write.

        Returns:
            bool: True if ``path`` is a directory
        """
        if path.is_root:
            return True
        if self._placeholder_exists(path):
            return True

        if not self._has_children(path):
            logger.debug(f"{path} has no placeholder and no children; not a directory")
            return False

        logger.info(f"Directory {path} has children but no placeholder; writing {path.placeholder_key}")
        self._write_placeholder(path)
        return True

    def ensure_directory(self, path: ResourcePath) -> bool:
        """
        Make sure the container exists, then report whether ``path`` is a directory.

        Returns:
            bool: True if ``path`` is (now) a recognized directory
        """
        start_time = time.time()
        self.ensure_container()
        result = self.reconcile_directory_marker(path)
        time_function("ensure_directory", start_time)
        return result

    def ensure_parent(self, path: ResourcePath) -> None:
        """
        Make sure the parent of ``path`` exists, creating it when missing.

        Only the immediate parent is materialized; ancestors are recognized
        through their children.
        """
        parent = path.parent
        if not self.ensure_directory(parent):
            logger.debug(f"Parent {parent} of {path} missing; creating it")
            self._write_placeholder(parent)

    def create_directory(self, path: ResourcePath) -> None:
        """
        Create ``path`` as a directory by writing its placeholder.

        Idempotent: recreating an existing directory rewrites the placeholder.
        """
        start_time = time.time()
        self.ensure_container()
        if not path.is_root:
            self._write_placeholder(path)
        logger.debug(f"mkdir successful for {path}")
        time_function("create_directory", start_time)

    def remove_directory(self, path: ResourcePath) -> None:
        """
        Remove the directory ``path`` if it is empty.

        A directory holding only its placeholder is empty. Removing a
        directory that does not exist succeeds.

        Raises:
            InvalidPathError: If ``path`` is the container root
            DirectoryNotEmptyError: If anything besides the placeholder exists
                under the key; nothing is modified in that case
        """
        start_time = time.time()
        if path.is_root:
            raise InvalidPathError(f"Cannot remove the container root {path}")

        # Fetch up to 2 keys: the placeholder plus at most one more.
        contents = self._has_children(path, max_keys=2)
        logger.debug(f"Emptiness check results for {path} (max_keys=2): {contents}")

        if len(contents) > 1 or (contents and contents[0] != path.placeholder_key):
            logger.warning(f"Directory {path} is not empty, cannot remove.")
            time_function("remove_directory", start_time)
            raise DirectoryNotEmptyError(f"Directory {path} is not empty")

        try:
            self.client.delete_object(path.container, path.placeholder_key)
        except ObjectNotFoundError:
            logger.debug(f"Placeholder for {path} already absent")
        logger.debug(f"rmdir successful for {path}")
        time_function("remove_directory", start_time)

    def _write_placeholder(self, path: ResourcePath) -> None:
        self.client.put_object(
            path.container, path.placeholder_key, b"",
            PutObjectOptions(content_type=PLACEHOLDER_CONTENT_TYPE,
                             cache_control=self.endpoint.cache_control)
        )
