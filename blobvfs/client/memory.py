# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
In-memory object store.

This module provides a thread-safe, in-process implementation of the
object store client protocol. It is used by the test suite and as the
default client when mounting without a configured client factory.

Classes:
    StoredObject: A stored payload with its headers.
    InMemoryObjectStore: The store itself.
"""

import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone
from io import BytesIO
from threading import RLock
from typing import Dict, List, Tuple

from .exceptions import ContainerExistsError, ContainerNotFoundError, ObjectNotFoundError
from .types import ContainerProperties, ListObjectsOptions, ObjectProperties, PutObjectOptions


@dataclass
class StoredObject:
    data: bytes
    last_modified: datetime
    content_type: str = None
    cache_control: str = None


class InMemoryObjectStore:
    """
    Object store keeping every container in a dictionary.

    Attributes:
        containers (dict): Container name to ``{key: StoredObject}``
        operations (list): ``(operation, container, key)`` for every call,
            in call order. Tests use it to count side effects.
    """

    def __init__(self, containers=()):
        self.containers: Dict[str, Dict[str, StoredObject]] = {}
        self.created: Dict[str, datetime] = {}
        self.operations: List[Tuple[str, str, str]] = []
        self.lock = RLock()
        for name in containers:
            self.create_container(name)
        self.operations.clear()

    def _record(self, operation, container, key=""):
        self.operations.append((operation, container, key))

    def _container(self, name):
        try:
            return self.containers[name]
        except KeyError:
            raise ContainerNotFoundError(f"Container {name} does not exist") from None

    def _object(self, container, key):
        objects = self._container(container)
        try:
            return objects[key]
        except KeyError:
            raise ObjectNotFoundError(f"Object {container}/{key} does not exist") from None

    def count(self, operation, key=None):
        """Number of recorded calls of ``operation`` (optionally for one key)."""
        with self.lock:
            return sum(1 for op, _, k in self.operations
                       if op == operation and (key is None or k == key))

    def get_object(self, container, key):
        with self.lock:
            self._record("get_object", container, key)
            return BytesIO(self._object(container, key).data)

    def put_object(self, container, key, data, options=None):
        if hasattr(data, "read"):
            data = data.read()
        options = options or PutObjectOptions()
        with self.lock:
            self._record("put_object", container, key)
            objects = self._container(container)
            objects[key] = StoredObject(
                data=bytes(data),
                last_modified=datetime.now(timezone.utc),
                content_type=options.content_type,
                cache_control=options.cache_control,
            )

    def delete_object(self, container, key):
        with self.lock:
            self._record("delete_object", container, key)
            self._object(container, key)
            del self.containers[container][key]

    def list_objects(self, container, options=None):
        options = options or ListObjectsOptions()
        prefix = options.prefix or ""
        with self.lock:
            self._record("list_objects", container, prefix)
            keys = sorted(k for k in self._container(container) if k.startswith(prefix))

        results = []
        seen = set()
        for key in keys:
            entry = key
            if options.delimiter:
                rest = key[len(prefix):]
                index = rest.find(options.delimiter)
                if index >= 0:
                    entry = prefix + rest[:index + len(options.delimiter)]
            if entry in seen:
                continue
            seen.add(entry)
            results.append(entry)
            if options.max_keys is not None and len(results) >= options.max_keys:
                break
        return results

    def get_object_properties(self, container, key):
        with self.lock:
            self._record("get_object_properties", container, key)
            stored = self._object(container, key)
            return ObjectProperties(
                content_length=len(stored.data),
                last_modified=stored.last_modified,
                content_type=stored.content_type,
                cache_control=stored.cache_control,
                etag=hashlib.md5(stored.data).hexdigest(),
            )

    def copy_object(self, dest_container, dest_key, src_container, src_key):
        with self.lock:
            self._record("copy_object", dest_container, dest_key)
            source = self._object(src_container, src_key)
            target = self._container(dest_container)
            target[dest_key] = StoredObject(
                data=source.data,
                last_modified=datetime.now(timezone.utc),
                content_type=source.content_type,
                cache_control=source.cache_control,
            )

    def create_container(self, name):
        with self.lock:
            self._record("create_container", name)
            if name in self.containers:
                raise ContainerExistsError(f"Container {name} already exists")
            self.containers[name] = {}
            self.created[name] = datetime.now(timezone.utc)

    def get_container_properties(self, name):
        with self.lock:
            self._record("get_container_properties", name)
            self._container(name)
            return ContainerProperties(name=name, created=self.created[name])

    def keys(self, container):
        """All keys of ``container`` in order (test helper, not recorded)."""
        with self.lock:
            return sorted(self._container(container))

    def read(self, container, key):
        """Raw content of an object (test helper, not recorded)."""
        with self.lock:
            return self._object(container, key).data
