# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

@dataclass
class ContainerProperties:
    """Metadata for a container."""
    name: str
    created: Optional[datetime] = None

@dataclass
class ObjectProperties:
    """Metadata for an object."""
    content_length: int
    last_modified: datetime
    content_type: Optional[str] = None
    cache_control: Optional[str] = None
    etag: Optional[str] = None

@dataclass
class ListObjectsOptions:
    """Options for listing objects.

    With a ``delimiter``, keys sharing the part of their name up to the
    first delimiter after ``prefix`` are grouped into one entry ending
    with the delimiter.
    """
    prefix: Optional[str] = None
    delimiter: Optional[str] = None
    max_keys: Optional[int] = None

@dataclass
class PutObjectOptions:
    """Headers attached to an uploaded object."""
    content_type: Optional[str] = None
    cache_control: Optional[str] = None
