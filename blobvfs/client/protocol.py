# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Object store client protocol.

The virtual filesystem talks to the backing store only through the
methods below. Implementations signal absence by raising
``ObjectNotFoundError`` or ``ContainerNotFoundError``; any other
exception is treated as a transport failure.
"""

from typing import BinaryIO, List, Protocol, Union

from .types import ContainerProperties, ListObjectsOptions, ObjectProperties, PutObjectOptions


class ObjectStoreClient(Protocol):

    def get_object(self, container: str, key: str) -> BinaryIO:
        """Return a readable byte stream over the object's content."""
        ...

    def put_object(self, container: str, key: str, data: Union[bytes, BinaryIO],
                   options: PutObjectOptions = None) -> None:
        """Replace the object's content with ``data``."""
        ...

    def delete_object(self, container: str, key: str) -> None:
        ...

    def list_objects(self, container: str, options: ListObjectsOptions = None) -> List[str]:
        """Return matching keys (and delimiter-grouped prefixes) in key order."""
        ...

    def get_object_properties(self, container: str, key: str) -> ObjectProperties:
        ...

    def copy_object(self, dest_container: str, dest_key: str,
                    src_container: str, src_key: str) -> None:
        ...

    def create_container(self, name: str) -> None:
        ...

    def get_container_properties(self, name: str) -> ContainerProperties:
        ...
