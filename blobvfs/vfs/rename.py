# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Rename as copy-then-delete.

The store has no move primitive. A rename copies the source to the target
and then deletes the source. There is no rollback: if the delete fails
after a successful copy, both objects remain and the failure is reported.
"""

import time

from blobvfs.client.exceptions import ContainerMismatchError, InvalidPathError, ObjectNotFoundError
from blobvfs.client.types import ListObjectsOptions
from .directory import DirectoryEmulator
from .paths import ResourcePath
from .utils import logger, time_function


class RenameCoordinator:
    """
    Moves objects, or whole virtual directories, within one container.

    Attributes:
        endpoint (StorageEndpoint): Endpoint of the source path
    """

    def __init__(self, endpoint):
        self.endpoint = endpoint

    def rename(self, source: ResourcePath, target: ResourcePath) -> None:
        """
        Move ``source`` to ``target``.

        Raises:
            ContainerMismatchError: If the paths live in different containers
            InvalidPathError: If either path is a container root
            ObjectNotFoundError: If the source is neither an object nor a directory
            BlobVFSError: If a copy or delete fails
        """
        start_time = time.time()
        logger.info(f"rename: Starting rename operation from {source} to {target}")

        if source.container != target.container:
            logger.error(f"rename: {source} and {target} are in different containers")
            raise ContainerMismatchError(
                f"Cannot move {source} ({source.container}) to {target} ({target.container})"
            )
        if source.key == target.key:
            logger.debug(f"rename: source and target are both {source.key}; nothing to do")
            return
        if source.is_root or target.is_root:
            raise InvalidPathError("Cannot rename to or from a container root")

        client = self.endpoint.client
        try:
            client.copy_object(target.container, target.key, source.container, source.key)
        except ObjectNotFoundError:
            if not DirectoryEmulator(self.endpoint).directory_exists(source):
                raise
            self._rename_directory(source, target)
        else:
            logger.debug(f"rename: Copied {source.key} to {target.key}")
            self._delete_source(source.container, source.key, target.key)

        logger.info(f"rename: Successfully completed rename from {source} to {target}")
        time_function("rename", start_time)

    def _rename_directory(self, source: ResourcePath, target: ResourcePath) -> None:
        client = self.endpoint.client
        old_prefix = source.directory_prefix
        new_prefix = target.directory_prefix
        if target.key.startswith(old_prefix):
            raise InvalidPathError(f"Cannot move directory {source} into itself")

        objects = list(client.list_objects(source.container, ListObjectsOptions(prefix=old_prefix)))
        logger.info(f"rename: Listed {len(objects)} objects in directory {old_prefix}")

        # Copy everything first; sources are only deleted once all copies succeeded.
        for old_key in objects:
            new_key = new_prefix + old_key[len(old_prefix):]
            client.copy_object(target.container, new_key, source.container, old_key)
            logger.debug(f"rename: Copied {old_key} to {new_key}")

        for old_key in objects:
            self._delete_source(source.container, old_key, new_prefix + old_key[len(old_prefix):])

    def _delete_source(self, container, old_key, new_key):
        try:
            self.endpoint.client.delete_object(container, old_key)
        except Exception as e:
            logger.warning(
                f"rename: Copied {old_key} to {new_key} but failed to delete the source; "
                f"both objects now exist: {e}"
            )
            raise
