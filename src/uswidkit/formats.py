"""File format selection by explicit token or file extension."""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path

from uswidkit.errors import UnsupportedExtensionError

_LOGGER = logging.getLogger(__name__)


class FileFormat(StrEnum):
    """Representations an identity collection can be read from or written to."""

    JSON = "json"
    XML = "xml"
    CBOR = "cbor"
    USWID = "uswid"
    PKGCONFIG = "pc"


OUTPUT_FORMATS = frozenset(
    {FileFormat.JSON, FileFormat.XML, FileFormat.CBOR, FileFormat.USWID}
)
DEFAULT_INPUT_FORMAT = FileFormat.USWID


def _extension(path: Path | str) -> str:
    return Path(path).suffix.lower().removeprefix(".")


def input_format_for(
    path: Path | str, declared: FileFormat | None = None
) -> FileFormat:
    """Resolve the format of an input source.

    Unknown or missing extensions fall back to a uSWID container, which is what
    extension-less firmware images carry.

    Args:
        path: Input path.
        declared: Explicit format overriding the extension.

    Returns:
        Format to decode the input with.
    """
    if declared is not None:
        return declared
    extension = _extension(path)
    try:
        return FileFormat(extension)
    except ValueError:
        _LOGGER.warning(
            "Unknown extension %r for %s; reading as %s",
            extension,
            path,
            DEFAULT_INPUT_FORMAT.value,
        )
        return DEFAULT_INPUT_FORMAT


def output_format_for(
    path: Path | str, declared: FileFormat | None = None
) -> FileFormat:
    """Resolve the format of an output target.

    Args:
        path: Output path.
        declared: Explicit format overriding the extension.

    Returns:
        Format to encode the output with.

    Raises:
        UnsupportedExtensionError: If no writable format matches.
    """
    if declared is None:
        extension = _extension(path)
        if not extension:
            raise UnsupportedExtensionError(
                "no file extension found", source=str(path)
            )
        try:
            declared = FileFormat(extension)
        except ValueError:
            raise UnsupportedExtensionError(
                f"output file extension {extension!r} not supported",
                source=str(path),
            ) from None
    if declared not in OUTPUT_FORMATS:
        raise UnsupportedExtensionError(
            f"{declared.value} is an input-only format", source=str(path)
        )
    return declared
