import os

import pytest

from blobvfs.client.exceptions import InvalidOperationError, InvalidPathError, ObjectNotFoundError, TransportError
from blobvfs.vfs.paths import ResourcePath
from blobvfs.vfs.result import ErrorKind
from blobvfs.vfs.stream import HandleState, ModeKind, OpenMode, StreamHandle

def rp(key):
    return ResourcePath("c", "files", key)

@pytest.fixture
def open_handle(endpoint, staging_dir):
    def _open(key, mode):
        return StreamHandle.open(endpoint, rp(key), mode, staging_dir=staging_dir)
    return _open

def fail_puts(monkeypatch, store, times=None, keys=None):
    """Make ``store.put_object`` raise; ``times`` limits how often."""
    original = store.put_object
    calls = {"n": 0}

    def failing(container, key, data, options=None):
        if keys is not None and key not in keys:
            return original(container, key, data, options)
        if times is None or calls["n"] < times:
            calls["n"] += 1
            raise TransportError("store unavailable", code="ERR_UNAVAILABLE")
        return original(container, key, data, options)

    monkeypatch.setattr(store, "put_object", failing)
    return calls

@pytest.mark.parametrize("mode, kind, readable, writable, at_end", [
    ("r", ModeKind.READ, True, False, False),
    ("rb", ModeKind.READ, True, False, False),
    ("r+", ModeKind.APPEND, True, True, False),
    ("w", ModeKind.WRITE, False, True, False),
    ("wb+", ModeKind.WRITE, True, True, False),
    ("a", ModeKind.APPEND, False, True, True),
    ("a+", ModeKind.APPEND, True, True, True),
])
def test_open_mode_parse(mode, kind, readable, writable, at_end):
    parsed = OpenMode.parse(mode)
    assert (parsed.kind, parsed.readable, parsed.writable, parsed.at_end) == (kind, readable, writable, at_end)

@pytest.mark.parametrize("mode", ["q", "x", "", "rw"])
def test_open_mode_rejects_unknown(mode):
    with pytest.raises(InvalidOperationError):
        OpenMode.parse(mode)

def test_write_then_read_round_trip(open_handle, store):
    handle = open_handle("a/b.txt", "w")
    assert handle.state is HandleState.WRITE_OPEN
    assert handle.write(b"hello").value == 5
    assert handle.close()
    assert handle.closed

    assert store.read("files", "a/b.txt") == b"hello"

    reader = open_handle("a/b.txt", "r")
    assert reader.state is HandleState.READ_OPEN
    assert reader.read().value == b"hello"
    assert reader.close()

def test_upload_sets_content_type_and_cache_control(open_handle, store):
    handle = open_handle("notes.txt", "w")
    handle.write(b"x")
    handle.close()

    properties = store.get_object_properties("files", "notes.txt")
    assert properties.content_type == "text/plain"
    assert properties.cache_control == "max-age=0"

def test_write_creates_missing_parent_placeholder(open_handle, store):
    handle = open_handle("reports/q1.csv", "w")
    assert "reports/.placeholder" in store.keys("files")
    handle.close()

def test_open_for_write_without_writing_replaces_object(open_handle, store, put):
    put("old.txt", b"previous")
    open_handle("old.txt", "w").close()
    assert store.read("files", "old.txt") == b""

def test_staging_file_lives_in_staging_dir_and_is_removed(open_handle, staging_dir):
    handle = open_handle("s.txt", "w")
    staged = handle.staging_path
    assert os.path.dirname(staged) == staging_dir
    assert os.path.exists(staged)

    handle.close()
    assert handle.staging_path is None
    assert not os.path.exists(staged)
    assert os.listdir(staging_dir) == []

def test_read_handle_has_no_staging(open_handle, put):
    put("r.txt", b"abc")
    handle = open_handle("r.txt", "r")
    assert handle.staging_path is None
    handle.close()

def test_partial_reads_and_eof(open_handle, put):
    put("data.bin", b"hello world")
    handle = open_handle("data.bin", "r")

    assert handle.read(5).value == b"hello"
    assert handle.tell().value == 5
    assert not handle.eof()
    assert handle.read(100).value == b" world"
    assert handle.eof()
    assert handle.read(10).value == b""
    handle.close()
    assert handle.eof()

def test_seek_on_read_stream(open_handle, put):
    put("data.bin", b"0123456789")
    handle = open_handle("data.bin", "r")

    assert handle.seek(4).value == 4
    assert handle.read(3).value == b"456"
    assert handle.seek(-2, os.SEEK_END).value == 8
    assert handle.read().value == b"89"
    handle.close()

def test_negative_seek_is_invalid(open_handle, put):
    put("data.bin", b"abc")
    handle = open_handle("data.bin", "r")
    result = handle.seek(-1)
    assert result.error is ErrorKind.INVALID_OPERATION
    handle.close()

def test_open_missing_for_read(open_handle, staging_dir):
    with pytest.raises(ObjectNotFoundError):
        open_handle("missing.txt", "r")
    assert os.listdir(staging_dir) == []

def test_open_root_is_invalid(open_handle):
    with pytest.raises(InvalidPathError):
        open_handle("", "w")

def test_append_writes_at_end(open_handle, store, put):
    put("log.txt", b"abc")
    handle = open_handle("log.txt", "a")
    assert handle.tell().value == 3

    handle.write(b"de")
    handle.seek(0)
    handle.write(b"f")
    handle.close()

    assert store.read("files", "log.txt") == b"abcdef"

def test_append_plus_can_read_back(open_handle, put):
    put("log.txt", b"abc")
    handle = open_handle("log.txt", "a+")
    handle.write(b"d")
    handle.seek(0)
    assert handle.read().value == b"abcd"
    handle.close()

def test_append_to_missing_object_fails(open_handle, staging_dir):
    with pytest.raises(ObjectNotFoundError):
        open_handle("nothing.txt", "a")
    assert os.listdir(staging_dir) == []

def test_read_plus_edits_in_place(open_handle, store, put):
    put("word.txt", b"hello")
    handle = open_handle("word.txt", "r+")
    assert handle.read(1).value == b"h"
    handle.seek(0)
    handle.write(b"J")
    handle.close()
    assert store.read("files", "word.txt") == b"Jello"

def test_read_plus_without_changes_does_not_upload(open_handle, store, put):
    put("same.txt", b"same")
    writes = store.count("put_object", "same.txt")
    handle = open_handle("same.txt", "r+")
    handle.read()
    handle.close()
    assert store.count("put_object", "same.txt") == writes

def test_write_plus_reads_back_staged_content(open_handle):
    handle = open_handle("w.txt", "w+")
    handle.write(b"staged")
    handle.seek(0)
    assert handle.read().value == b"staged"
    assert handle.eof()
    handle.close()

def test_truncate(open_handle, store):
    handle = open_handle("t.txt", "w+")
    handle.write(b"hello")
    assert handle.truncate(2).value == 2
    assert handle.tell().value == 2
    handle.truncate(4)
    handle.close()
    assert store.read("files", "t.txt") == b"he\x00\x00"

def test_direction_checks(open_handle, put):
    put("ro.txt", b"abc")
    reader = open_handle("ro.txt", "r")
    assert reader.write(b"x").error is ErrorKind.INVALID_OPERATION
    assert reader.truncate(0).error is ErrorKind.INVALID_OPERATION
    reader.close()

    writer = open_handle("wo.txt", "w")
    assert writer.read().error is ErrorKind.INVALID_OPERATION
    writer.close()

def test_operations_on_closed_handle(open_handle, put):
    put("c.txt", b"abc")
    handle = open_handle("c.txt", "r")
    handle.close()

    assert handle.read().error is ErrorKind.INVALID_OPERATION
    assert handle.tell().error is ErrorKind.INVALID_OPERATION
    assert handle.flush().error is ErrorKind.INVALID_OPERATION
    assert handle.close()
    assert handle.endpoint is None

def test_flush_uploads_and_keeps_handle_open(open_handle, store):
    handle = open_handle("f.txt", "w")
    handle.write(b"one")
    assert handle.flush()
    assert store.read("files", "f.txt") == b"one"
    assert handle.state is HandleState.WRITE_OPEN

    # Nothing changed since the last flush
    writes = store.count("put_object", "f.txt")
    handle.flush()
    handle.close()
    assert store.count("put_object", "f.txt") == writes

    handle2 = open_handle("f.txt", "a")
    handle2.write(b"two")
    handle2.close()
    assert store.read("files", "f.txt") == b"onetwo"

def test_failed_flush_can_be_retried(open_handle, store, monkeypatch):
    handle = open_handle("retry.txt", "w")
    handle.write(b"payload")
    fail_puts(monkeypatch, store, times=1)

    result = handle.flush()
    assert result.error is ErrorKind.TRANSPORT_FAILURE
    assert "retry.txt" not in store.keys("files")
    assert handle.state is HandleState.WRITE_OPEN

    assert handle.flush()
    assert store.read("files", "retry.txt") == b"payload"
    handle.close()

def test_close_removes_staging_even_when_upload_fails(open_handle, store, monkeypatch, staging_dir):
    handle = open_handle("lost.txt", "w")
    handle.write(b"data")
    staged = handle.staging_path
    fail_puts(monkeypatch, store)

    result = handle.close()
    assert result.error is ErrorKind.TRANSPORT_FAILURE
    assert handle.closed
    assert not os.path.exists(staged)
    assert os.listdir(staging_dir) == []

def test_parent_failure_does_not_leak_staging(open_handle, store, monkeypatch, staging_dir):
    fail_puts(monkeypatch, store, keys={"deep/.placeholder"})

    with pytest.raises(TransportError):
        open_handle("deep/file.txt", "w")
    assert os.listdir(staging_dir) == []
    assert "deep/file.txt" not in store.keys("files")

def test_context_manager_closes(open_handle, store):
    with open_handle("ctx.txt", "w") as handle:
        handle.write(b"ctx")
    assert handle.closed
    assert store.read("files", "ctx.txt") == b"ctx"

def test_size_includes_unflushed_writes(open_handle, store):
    handle = open_handle("sized.txt", "w")
    handle.write(b"hello")
    assert handle.size().unwrap() == 5
    assert store.count("put_object", "sized.txt") == 0
    handle.close()

def test_size_of_streaming_handle_is_invalid(open_handle, put):
    put("a.txt", b"abc")
    with open_handle("a.txt", "r") as handle:
        assert handle.size().error is ErrorKind.INVALID_OPERATION

def test_stage_remote_enables_seeking_a_one_way_stream(open_handle, put, one_way_reads, staging_dir):
    put("a.txt", b"0123456789")
    handle = open_handle("a.txt", "r")
    assert not handle.seekable()
    assert handle.seek(4).error is ErrorKind.INVALID_OPERATION

    assert handle.read(3).unwrap() == b"012"
    assert handle.stage_remote()
    assert handle.seekable()
    assert handle.tell().unwrap() == 3
    assert handle.read(2).unwrap() == b"34"
    assert handle.seek(8).unwrap() == 8
    assert handle.read().unwrap() == b"89"

    staged = handle.staging_path
    assert os.path.dirname(staged) == staging_dir
    assert handle.close()
    assert not os.path.exists(staged)

def test_stage_remote_on_write_handle_is_a_no_op(open_handle, store):
    handle = open_handle("w.txt", "w+")
    handle.write(b"abc")
    assert handle.stage_remote()
    assert store.count("get_object", "w.txt") == 0
    handle.close()
