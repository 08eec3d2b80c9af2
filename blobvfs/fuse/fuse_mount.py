# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
FUSE binding for blobvfs.

This module exposes one blobvfs scheme as a local filesystem. FUSE calls
are translated by ``blobvfs.fuse.adapter.MountAdapter``; failed results
become ``FuseOSError`` with the errno of their ``ErrorKind``.

Usage:
    # Create a mount point
    mkdir -p /mnt/media

    # Mount the scheme, reading BLOBVFS_MEDIA_* settings from the environment
    python -m blobvfs.fuse media /mnt/media --client-factory mypkg.store:make_client

    # Now you can work with the files as if they were local
    ls /mnt/media
    cat /mnt/media/example.txt
"""

import argparse
import os
import time

from fuse import FUSE, FuseOSError, Operations

from blobvfs.vfs.utils import configure_logging, logger, time_function
from .adapter import MountAdapter, build_filesystem, load_client_factory, memory_client_factory
from .mount_utils import get_mount_options, setup_signal_handlers, unmount


class BlobFuse(MountAdapter, Operations):
    """``MountAdapter`` bound to fusepy; failures are raised as ``FuseOSError``."""

    error_type = FuseOSError


def mount(scheme, mountpoint, client_factory=memory_client_factory, container=None,
          foreground=True, allow_other=False, staging_dir=None):
    """
    Mount a blobvfs scheme at ``mountpoint``.

    Args:
        scheme (str): Scheme to mount
        mountpoint (str): Local directory to mount on (created if missing)
        client_factory (callable): Builds the store client from an EndpointConfig
        container (str, optional): Container name; read from the environment if omitted
        foreground (bool, optional): Run in foreground. Defaults to True.
        allow_other (bool, optional): Allow other users to access the mount
        staging_dir (str, optional): Directory for staging files
    """
    logger.info(f"Mounting scheme {scheme} at {mountpoint}")
    start_time = time.time()

    os.makedirs(mountpoint, mode=0o755, exist_ok=True)
    fs = build_filesystem(scheme, client_factory, container=container, staging_dir=staging_dir)
    options = get_mount_options(foreground, allow_other)
    setup_signal_handlers(mountpoint, unmount)

    try:
        FUSE(BlobFuse(fs, scheme), mountpoint, nothreads=False, **options)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, unmounting...")
        unmount(mountpoint)
    except RuntimeError as e:
        logger.error(f"Error during mount: {type(e).__name__}: {e}")
        unmount(mountpoint)
        raise
    finally:
        time_function("mount", start_time)


def main(argv=None):
    """
    CLI entry point for mounting a blobvfs scheme.

    Usage:
        python -m blobvfs.fuse <scheme> <mountpoint>

    Options:
        --container: Container name (otherwise BLOBVFS_<SCHEME>_CONTAINER)
        --client-factory: module:callable building the store client
        --staging-dir: Directory for staging files
        --allow-other: Allow other users to access the mount
        --trace: Enable detailed tracing of file operations for debugging
    """
    parser = argparse.ArgumentParser(description='Mount a blobvfs scheme as a local filesystem')
    parser.add_argument('scheme', help='The scheme to mount')
    parser.add_argument('mountpoint', help='The directory to mount the scheme on')
    parser.add_argument('--container', help='Container name for the scheme')
    parser.add_argument('--client-factory', default=None,
                        help='module:callable returning a store client (defaults to an in-memory store)')
    parser.add_argument('--staging-dir', default=None, help='Directory for staging files')
    parser.add_argument('--allow-other', action='store_true',
                        help='Allow other users to access the mount (requires user_allow_other in /etc/fuse.conf)')
    parser.add_argument('--trace', action='store_true',
                        help='Enable detailed tracing of file operations for debugging')

    args = parser.parse_args(argv)

    if args.trace:
        os.environ['BLOBVFS_TRACE_OPS'] = 'true'
    configure_logging()

    client_factory = memory_client_factory
    if args.client_factory:
        client_factory = load_client_factory(args.client_factory)

    mount(args.scheme, args.mountpoint, client_factory=client_factory,
          container=args.container, allow_other=args.allow_other,
          staging_dir=args.staging_dir)


if __name__ == '__main__':
    main()
