# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""MIME type inference for uploads."""

import mimetypes

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def guess_mime_type(path: str) -> str:
    """Content type for ``path`` from its extension, defaulting to octet-stream."""
    content_type, _ = mimetypes.guess_type(path.rpartition("/")[2], strict=False)
    return content_type or DEFAULT_CONTENT_TYPE
