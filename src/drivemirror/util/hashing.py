"""Content fingerprints. MD5 so local hashes compare directly with Drive's md5Checksum."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import BinaryIO, Union

CHUNK_SIZE = 1024 * 1024


def hash_bytes(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def hash_stream(stream: BinaryIO, chunk_size: int = CHUNK_SIZE) -> str:
    digest = hashlib.md5()
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        digest.update(chunk)
    return digest.hexdigest()


def hash_file(path: Union[str, Path], chunk_size: int = CHUNK_SIZE) -> str:
    """Hash a file's bytes. Raises OSError if the file cannot be read."""
    with open(path, "rb") as f:
        return hash_stream(f, chunk_size)
