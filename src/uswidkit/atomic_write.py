"""Atomic file write with fsync for converted outputs."""

from __future__ import annotations

import os
import uuid
from pathlib import Path


def atomic_write_bytes(final_path: Path, content: bytes) -> None:
    """Write bytes to final_path atomically: temp -> fsync -> rename -> fsync dir.

    Temp file is created next to the target so rename is atomic. On failure,
    temp is removed and any existing target is left untouched.

    Args:
        final_path: Destination path.
        content: Bytes to write.
    """
    directory = final_path.parent
    directory.mkdir(parents=True, exist_ok=True)
    suffix = f"{os.getpid()}.{uuid.uuid4().hex[:8]}.tmp"
    temp_path = directory / f".{final_path.name}.{suffix}"
    try:
        fd = os.open(
            str(temp_path),
            os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
            0o644,
        )
        try:
            view = memoryview(content)
            while view:
                view = view[os.write(fd, view) :]
            os.fsync(fd)
        finally:
            os.close(fd)
        os.replace(temp_path, final_path)
        try:
            dir_fd = os.open(str(directory), os.O_RDONLY)
            try:
                os.fsync(dir_fd)
            finally:
                os.close(dir_fd)
        except OSError:
            pass  # e.g. Windows: directory fsync best-effort
    finally:
        if temp_path.exists():
            temp_path.unlink(missing_ok=True)
