import pytest

from blobvfs.client.exceptions import (
    ContainerMismatchError,
    InvalidPathError,
    ObjectNotFoundError,
    TransportError,
)
from blobvfs.vfs.paths import ResourcePath
from blobvfs.vfs.rename import RenameCoordinator

def rp(key, container="files"):
    return ResourcePath("c", container, key)

@pytest.fixture
def coordinator(endpoint):
    return RenameCoordinator(endpoint)

def test_rename_file(coordinator, store, put):
    put("a.txt", b"content")
    coordinator.rename(rp("a.txt"), rp("moved/b.txt"))

    assert store.keys("files") == ["moved/b.txt"]
    assert store.read("files", "moved/b.txt") == b"content"

def test_rename_overwrites_target(coordinator, store, put):
    put("src.txt", b"new")
    put("dst.txt", b"old")
    coordinator.rename(rp("src.txt"), rp("dst.txt"))
    assert store.keys("files") == ["dst.txt"]
    assert store.read("files", "dst.txt") == b"new"

def test_cross_container_rename_is_rejected_without_mutation(coordinator, store, put):
    store.create_container("archive")
    put("a.txt", b"content")
    store.operations.clear()

    with pytest.raises(ContainerMismatchError):
        coordinator.rename(rp("a.txt"), rp("a.txt", container="archive"))

    assert store.operations == []
    assert store.keys("files") == ["a.txt"]
    assert store.keys("archive") == []

def test_rename_to_itself_is_a_no_op(coordinator, store, put):
    put("same.txt", b"x")
    store.operations.clear()
    coordinator.rename(rp("same.txt"), rp("same.txt"))
    assert store.operations == []

def test_rename_missing_source(coordinator, store):
    with pytest.raises(ObjectNotFoundError):
        coordinator.rename(rp("ghost.txt"), rp("target.txt"))
    assert store.keys("files") == []

def test_rename_root_is_invalid(coordinator, put):
    put("a.txt")
    with pytest.raises(InvalidPathError):
        coordinator.rename(rp(""), rp("elsewhere"))
    with pytest.raises(InvalidPathError):
        coordinator.rename(rp("a.txt"), rp(""))

def test_rename_directory_moves_every_object(coordinator, store, put):
    put("old/.placeholder")
    put("old/a.txt", b"a")
    put("old/nested/b.txt", b"b")
    put("older.txt", b"untouched")

    coordinator.rename(rp("old"), rp("new"))

    assert store.keys("files") == ["new/.placeholder", "new/a.txt", "new/nested/b.txt", "older.txt"]
    assert store.read("files", "new/nested/b.txt") == b"b"

def test_rename_directory_into_itself_is_invalid(coordinator, store, put):
    put("dir/a.txt")
    with pytest.raises(InvalidPathError):
        coordinator.rename(rp("dir"), rp("dir/inner"))
    assert store.keys("files") == ["dir/a.txt"]

def test_failed_delete_leaves_both_objects(coordinator, store, put, monkeypatch):
    put("a.txt", b"content")

    def failing(container, key):
        raise TransportError("delete failed")
    monkeypatch.setattr(store, "delete_object", failing)

    with pytest.raises(TransportError):
        coordinator.rename(rp("a.txt"), rp("b.txt"))

    assert store.keys("files") == ["a.txt", "b.txt"]

def test_failed_directory_copy_deletes_nothing(coordinator, store, put, monkeypatch):
    put("dir/a.txt", b"a")
    put("dir/b.txt", b"b")
    original = store.copy_object

    def flaky(dest_container, dest_key, src_container, src_key):
        if src_key == "dir/b.txt":
            raise TransportError("copy failed")
        return original(dest_container, dest_key, src_container, src_key)
    monkeypatch.setattr(store, "copy_object", flaky)

    with pytest.raises(TransportError):
        coordinator.rename(rp("dir"), rp("moved"))

    assert "dir/a.txt" in store.keys("files")
    assert "dir/b.txt" in store.keys("files")
