import errno

import pytest

try:
    from fuse import FuseOSError, Operations
    from blobvfs.fuse.fuse_mount import BlobFuse
except (ImportError, OSError):
    pytest.skip("fusepy or libfuse not available", allow_module_level=True)

@pytest.fixture
def ops(fs):
    return BlobFuse(fs, "c")

def test_is_a_fusepy_operations(ops):
    assert isinstance(ops, Operations)

def test_failures_raise_fuse_errors(ops):
    with pytest.raises(FuseOSError) as excinfo:
        ops.getattr("/missing")
    assert excinfo.value.errno == errno.ENOENT

def test_dispatch_through_operations_call(ops, put):
    put("dir/x.txt", b"abc")
    assert ops("readdir", "/dir", None) == [".", "..", "x.txt"]
    assert ops("getattr", "/dir/x.txt")["st_size"] == 3
