# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
'''
This example demonstrates reading and writing files through a blobvfs FUSE mount.

Setup:
    # Install blobvfs
    pip install blobvfs

    # Install FUSE on your system
    # On Ubuntu/Debian:
    sudo apt-get install fuse

    # Configure the scheme
    export BLOBVFS_MEDIA_CONTAINER=media-bucket

    # Create a mount point and mount the scheme
    mkdir -p /mnt/media
    python -m blobvfs.fuse media /mnt/media --client-factory mypkg.store:make_client

Usage:
    python fuse_operations.py /mnt/media

    # Unmount when done
    fusermount -u /mnt/media

Troubleshooting:
    # Enable debug logging and operation tracing
    export BLOBVFS_LOG_LEVEL=DEBUG
    python -m blobvfs.fuse media /mnt/media --trace
'''
import sys
import os

def main():
    if len(sys.argv) != 2:
        print("Usage: python fuse_operations.py <mountpoint>")
        sys.exit(1)

    mountpoint = sys.argv[1]
    directory = os.path.join(mountpoint, "example-dir")
    example_file = os.path.join(directory, "example.txt")

    # Create a directory and write a file into it
    try:
        os.makedirs(directory, exist_ok=True)
        with open(example_file, 'w') as f:
            f.write("Hello FUSE")
        print(f"File created and written: {example_file}")
    except OSError as e:
        print(f"Write operation failed: {e}")

    # Read from the file
    try:
        with open(example_file, 'r') as f:
            content = f.read()
        print(f"Content read from file: {content}")
        print(f"Directory listing: {os.listdir(directory)}")
    except OSError as e:
        print(f"Read operation failed: {e}")

    # Delete the file and its directory
    try:
        os.remove(example_file)
        os.rmdir(directory)
        print(f"Removed: {directory}")
    except OSError as e:
        print(f"Delete operation failed: {e}")

if __name__ == '__main__':
    main()
