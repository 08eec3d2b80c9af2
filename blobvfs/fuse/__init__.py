# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
FUSE host adapter. ``blobvfs.fuse.adapter`` runs anywhere; importing
``blobvfs.fuse.fuse_mount`` requires fusepy and a libfuse installation.
"""
