import io
import os

import pytest

from blobvfs.client.memory import InMemoryObjectStore
from blobvfs.vfs.config import EndpointConfig, StaticConfigProvider
from blobvfs.vfs.filesystem import BlobFileSystem
from blobvfs.vfs.registry import EndpointRegistry

def pytest_configure(config):
    """Configure test environment."""
    # Exercise the operation tracing path in every test
    os.environ.setdefault("BLOBVFS_TRACE_OPS", "true")

@pytest.fixture
def store():
    """In-memory store with the ``files`` container already created."""
    return InMemoryObjectStore(containers=["files"])

@pytest.fixture
def registry(store):
    """Registry binding ``c://`` to ``files`` and ``other://`` to ``archive``, both in ``store``."""
    provider = StaticConfigProvider({
        "c": EndpointConfig(container="files", max_attempts=1, url_base="https://cdn.example.com"),
        "other": EndpointConfig(container="archive", max_attempts=1),
    })
    return EndpointRegistry(provider, lambda config: store)

@pytest.fixture
def endpoint(registry):
    return registry.endpoint("c")

@pytest.fixture
def staging_dir(tmp_path):
    path = tmp_path / "staging"
    path.mkdir()
    return str(path)

@pytest.fixture
def fs(registry, staging_dir):
    return BlobFileSystem(registry, staging_dir=staging_dir)

@pytest.fixture
def put(store):
    """Store an object directly, bypassing the filesystem layer."""
    def _put(key, data=b"", container="files"):
        store.put_object(container, key, data)
    return _put

class OneWayStream(io.RawIOBase):
    """A readable body that cannot seek, like a network response."""

    def __init__(self, data):
        self._source = io.BytesIO(data)

    def readable(self):
        return True

    def seekable(self):
        return False

    def readinto(self, buffer):
        data = self._source.read(len(buffer))
        buffer[:len(data)] = data
        return len(data)

@pytest.fixture
def one_way_reads(store, monkeypatch):
    """Make ``store.get_object`` return bodies that cannot seek."""
    original = store.get_object

    def get_object(container, key):
        return OneWayStream(original(container, key).read())

    monkeypatch.setattr(store, "get_object", get_object)
