"""uSWID container header: fixed 24-byte header located by magic signature."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Final

from uswidkit.errors import (
    MagicNotFoundError,
    TruncatedContainerError,
    UnsupportedHeaderVersionError,
)

_LOGGER = logging.getLogger(__name__)

USWID_MAGIC: Final = bytes.fromhex("53424F4DD6BA2EACA3E67A52AAEE3BAF")
USWID_HEADER_VERSION: Final = 2
FLAG_COMPRESS_ZLIB: Final = 0x01

# magic, version, header length, payload length, flags; always little-endian.
HEADER_STRUCT: Final = struct.Struct("<16sBHIB")
HEADER_SIZE: Final = HEADER_STRUCT.size


@dataclass(frozen=True)
class ContainerHeader:
    """Decoded uSWID header fields."""

    version: int
    header_length: int
    payload_length: int
    flags: int

    @property
    def compressed(self) -> bool:
        """True when the payload is a zlib (RFC 1950) stream."""
        return bool(self.flags & FLAG_COMPRESS_ZLIB)

    @classmethod
    def for_payload(cls, payload_length: int, *, compressed: bool) -> ContainerHeader:
        """Build the current-version header for a payload of given length."""
        return cls(
            version=USWID_HEADER_VERSION,
            header_length=HEADER_SIZE,
            payload_length=payload_length,
            flags=FLAG_COMPRESS_ZLIB if compressed else 0x00,
        )

    def pack(self) -> bytes:
        """Encode the header including the magic signature."""
        return HEADER_STRUCT.pack(
            USWID_MAGIC,
            self.version,
            self.header_length,
            self.payload_length,
            self.flags,
        )

    @classmethod
    def unpack(cls, blob: bytes, offset: int = 0) -> ContainerHeader:
        """Decode a header whose magic starts at ``offset``.

        Raises:
            TruncatedContainerError: If the blob ends inside the header.
        """
        if offset + HEADER_SIZE > len(blob):
            raise TruncatedContainerError(
                f"header needs {HEADER_SIZE} bytes, only {len(blob) - offset} remain",
                offset=offset,
            )
        _, version, header_length, payload_length, flags = HEADER_STRUCT.unpack_from(
            blob, offset
        )
        return cls(
            version=version,
            header_length=header_length,
            payload_length=payload_length,
            flags=flags,
        )


@dataclass(frozen=True)
class LocatedContainer:
    """A container found inside a larger blob."""

    offset: int
    header: ContainerHeader
    payload: bytes

    @property
    def compressed(self) -> bool:
        """True when the payload is a zlib (RFC 1950) stream."""
        return self.header.compressed


def locate(blob: bytes) -> LocatedContainer:
    """Find the first uSWID container in ``blob`` and slice out its payload.

    The container may be surrounded by unrelated data such as a firmware image.

    Args:
        blob: Bytes to search.

    Returns:
        Offset of the magic, decoded header, and payload bytes.

    Raises:
        MagicNotFoundError: If no magic signature is present.
        UnsupportedHeaderVersionError: If the header version is not 2.
        TruncatedContainerError: If header or payload run past the blob end.
    """
    offset = blob.find(USWID_MAGIC)
    if offset == -1:
        raise MagicNotFoundError("could not find uSWID magic signature")
    # Version gate precedes the length checks.
    version_offset = offset + len(USWID_MAGIC)
    if version_offset < len(blob) and blob[version_offset] != USWID_HEADER_VERSION:
        raise UnsupportedHeaderVersionError(
            f"unsupported uSWID header version {blob[version_offset]}, "
            f"expected {USWID_HEADER_VERSION}",
            offset=offset,
        )
    header = ContainerHeader.unpack(blob, offset)
    payload_start = offset + HEADER_SIZE
    payload_end = payload_start + header.payload_length
    if payload_end > len(blob):
        raise TruncatedContainerError(
            f"payload of {header.payload_length} bytes runs past end of data "
            f"({len(blob) - payload_start} available)",
            offset=offset,
        )
    _LOGGER.debug(
        "Found uSWID container at %#x: payload=%d bytes compressed=%s",
        offset,
        header.payload_length,
        header.compressed,
    )
    return LocatedContainer(
        offset=offset,
        header=header,
        payload=blob[payload_start:payload_end],
    )


def encode_container(payload: bytes, *, compressed: bool) -> bytes:
    """Prefix ``payload`` with a version-2 uSWID header.

    Args:
        payload: Record stream bytes, already compressed when ``compressed``.
        compressed: Whether to set the zlib flag.

    Returns:
        Header followed by the payload verbatim.
    """
    header = ContainerHeader.for_payload(len(payload), compressed=compressed)
    return header.pack() + payload
