"""Payload file entries built from files on disk."""

from __future__ import annotations

import hashlib
from pathlib import Path

from uswidkit.coswid import FileEntry, HashAlgorithm, HashEntry


def sha256_file(path: Path) -> str:
    """Return hex-encoded SHA-256 digest of a file's content.

    Args:
        path: File to hash.

    Returns:
        Hex-encoded digest string.
    """
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1 << 16), b""):
            digest.update(chunk)
    return digest.hexdigest()


def file_entry_for(path: Path) -> FileEntry:
    """Describe ``path`` as a payload file: name, size and SHA-256 hash.

    Args:
        path: Payload file, e.g. the firmware image a tag describes.

    Returns:
        File entry naming only the final path component.
    """
    return FileEntry(
        fs_name=path.name,
        size=path.stat().st_size,
        hash=HashEntry(alg_id=HashAlgorithm.SHA_256, hash_value=sha256_file(path)),
    )
