# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
from blobvfs import (
    BlobFileSystem,
    EndpointConfig,
    EndpointRegistry,
    InMemoryObjectStore,
    StaticConfigProvider,
)

def main():
    # Bind the "media" scheme to a container in an in-memory store
    store = InMemoryObjectStore()
    registry = EndpointRegistry(
        StaticConfigProvider({"media": EndpointConfig("media-bucket", url_base="https://cdn.example.com")}),
        lambda config: store,
    )
    fs = BlobFileSystem(registry)

    # Write a file; the parent directory is created on the way
    with fs.open("media://photos/hello.txt", "w").unwrap() as handle:
        handle.write(b"Hello, World!")
    print("Wrote media://photos/hello.txt")

    # Append to it
    with fs.open("media://photos/hello.txt", "a").unwrap() as handle:
        handle.write(b" Again.")

    # Metadata
    info = fs.stat("media://photos/hello.txt").unwrap()
    print(f"File size: {info.st_size} bytes")
    print(f"media://photos is a directory: {fs.stat('media://photos').unwrap().is_dir}")

    # Read it back
    print(f"Content: {fs.read_bytes('media://photos/hello.txt').unwrap().decode()}")

    # List the directory
    print("Entries in media://photos:")
    for name in fs.listdir("media://photos").unwrap():
        print(f"- {name}")

    # Public URL
    print(f"URL: {fs.url('media://photos/hello.txt')}")

    # Move, then clean up
    fs.rename("media://photos/hello.txt", "media://photos/renamed.txt").unwrap()
    fs.unlink("media://photos/renamed.txt").unwrap()
    fs.rmdir("media://photos").unwrap()
    print(f"Objects left: {store.keys('media-bucket')}")

if __name__ == "__main__":
    main()
