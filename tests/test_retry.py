import grpc
import pytest

from blobvfs.client.exceptions import (
    AuthenticationError,
    ContainerExistsError,
    ContainerNotFoundError,
    ObjectNotFoundError,
    TransportError,
)
from blobvfs.client.memory import InMemoryObjectStore
from blobvfs.client.retry import RetryingStoreClient, _convert_grpc_error, retry
from blobvfs.vfs.config import EndpointConfig, StaticConfigProvider
from blobvfs.vfs.filesystem import BlobFileSystem
from blobvfs.vfs.registry import EndpointRegistry
from blobvfs.vfs.result import ErrorKind

class FakeRpcError(grpc.RpcError):
    def __init__(self, code, details=""):
        self._code = code
        self._details = details

    def code(self):
        return self._code

    def details(self):
        return self._details

class FlakyStore(InMemoryObjectStore):
    """Fails the first ``failures`` get_object calls with ``error``."""

    def __init__(self, error, failures):
        super().__init__(containers=["files"])
        self.error = error
        self.failures = failures
        self.calls = 0
        self.reauthenticated = 0

    def get_object(self, container, key):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return super().get_object(container, key)

    def _re_authenticate(self):
        self.reauthenticated += 1

@pytest.mark.parametrize("code, operation, expected", [
    (grpc.StatusCode.NOT_FOUND, "GET_OBJECT", ObjectNotFoundError),
    (grpc.StatusCode.NOT_FOUND, "GET_CONTAINER_PROPERTIES", ContainerNotFoundError),
    (grpc.StatusCode.ALREADY_EXISTS, "CREATE_CONTAINER", ContainerExistsError),
    (grpc.StatusCode.PERMISSION_DENIED, "PUT_OBJECT", AuthenticationError),
    (grpc.StatusCode.UNAVAILABLE, "PUT_OBJECT", TransportError),
])
def test_convert_grpc_error(code, operation, expected):
    assert isinstance(_convert_grpc_error(FakeRpcError(code), operation), expected)

def test_timeout_code():
    error = _convert_grpc_error(FakeRpcError(grpc.StatusCode.DEADLINE_EXCEEDED), "GET_OBJECT")
    assert error.code == "ERR_TIMEOUT"

def test_transient_errors_are_retried():
    store = FlakyStore(FakeRpcError(grpc.StatusCode.UNAVAILABLE), failures=2)
    store.put_object("files", "k", b"v")
    client = RetryingStoreClient(store, max_attempts=3, initial_backoff=0)

    assert client.get_object("files", "k").read() == b"v"
    assert store.calls == 3

def test_retries_exhausted_raise_transport_error():
    store = FlakyStore(FakeRpcError(grpc.StatusCode.UNAVAILABLE), failures=5)
    client = RetryingStoreClient(store, max_attempts=2, initial_backoff=0)

    with pytest.raises(TransportError) as excinfo:
        client.get_object("files", "k")
    assert excinfo.value.code == "ERR_UNAVAILABLE"
    assert store.calls == 2

def test_transport_errors_from_plain_clients_are_retried():
    store = FlakyStore(TransportError("reset"), failures=1)
    store.put_object("files", "k", b"v")
    client = RetryingStoreClient(store, max_attempts=2, initial_backoff=0)
    assert client.get_object("files", "k").read() == b"v"

def test_not_found_is_not_retried():
    store = FlakyStore(FakeRpcError(grpc.StatusCode.NOT_FOUND, "object not found"), failures=5)
    client = RetryingStoreClient(store, max_attempts=5, initial_backoff=0)

    with pytest.raises(ObjectNotFoundError):
        client.get_object("files", "k")
    assert store.calls == 1

def test_store_exceptions_pass_through():
    client = RetryingStoreClient(InMemoryObjectStore(containers=["files"]), max_attempts=3, initial_backoff=0)
    with pytest.raises(ObjectNotFoundError):
        client.get_object("files", "missing")

def test_unauthenticated_triggers_one_re_authentication():
    store = FlakyStore(FakeRpcError(grpc.StatusCode.UNAUTHENTICATED), failures=1)
    store.put_object("files", "k", b"v")
    client = RetryingStoreClient(store, max_attempts=3, initial_backoff=0)

    assert client.get_object("files", "k").read() == b"v"
    assert store.reauthenticated == 1

def test_repeated_unauthenticated_fails():
    store = FlakyStore(FakeRpcError(grpc.StatusCode.UNAUTHENTICATED), failures=5)
    client = RetryingStoreClient(store, max_attempts=3, initial_backoff=0)

    with pytest.raises(AuthenticationError):
        client.get_object("files", "k")
    assert store.reauthenticated == 1

def test_retry_decorator_on_plain_function():
    attempts = []

    @retry(max_attempts=3, initial_backoff=0)
    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise TransportError("try again")
        return "done"

    assert flaky() == "done"
    assert len(attempts) == 3

def test_unwrapped_attributes_are_delegated():
    store = InMemoryObjectStore(containers=["files"])
    client = RetryingStoreClient(store, max_attempts=2)
    assert client.containers is store.containers

class GrpcPropertiesStore(InMemoryObjectStore):
    """Reports missing objects from get_object_properties the way a gRPC client does."""

    def get_object_properties(self, container, key):
        try:
            return super().get_object_properties(container, key)
        except ObjectNotFoundError:
            raise FakeRpcError(grpc.StatusCode.NOT_FOUND) from None

@pytest.mark.parametrize("max_attempts", [1, 2])
def test_grpc_not_found_is_converted_without_retries(max_attempts, tmp_path):
    store = GrpcPropertiesStore(containers=["files"])
    store.put_object("files", "d/x.txt", b"x")
    registry = EndpointRegistry(
        StaticConfigProvider({"c": EndpointConfig("files", max_attempts=max_attempts)}),
        lambda config: store,
    )
    fs = BlobFileSystem(registry, staging_dir=str(tmp_path))

    assert fs.stat("c://d").unwrap().is_dir
    assert fs.stat("c://d/x.txt").unwrap().st_size == 1
    assert fs.stat("c://missing").error is ErrorKind.NOT_FOUND

def test_proxy_sees_operations_replaced_after_wrapping(monkeypatch):
    store = InMemoryObjectStore(containers=["files"])
    client = RetryingStoreClient(store, max_attempts=1)

    def failing(container, key):
        raise TransportError("replaced")
    monkeypatch.setattr(store, "get_object", failing)

    with pytest.raises(TransportError, match="replaced"):
        client.get_object("files", "k")
