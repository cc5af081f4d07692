"""Shared builders for unit tests."""

from __future__ import annotations

import zlib

from uswidkit.container import USWID_MAGIC
from uswidkit.coswid import Entity, EntityRole, SoftwareIdentity

FIRMWARE_TAG_ID = "acbd84ff-9898-4922-8ade-dd4bbe2e40ba"
BOOTLOADER_TAG_ID = "5df4c9e2-6f2b-5b1a-9a83-3a2a4f0d9c31"


def make_identity(tag_id: str, name: str, version: str = "1.0.0") -> SoftwareIdentity:
    """Build a small identity with one tag-creator entity.

    Args:
        tag_id: Tag id of the identity.
        name: Software name.
        version: Software version.

    Returns:
        Identity fixture.
    """
    return SoftwareIdentity(
        tag_id=tag_id,
        software_name=name,
        software_version=version,
        entities=[
            Entity(
                entity_name="Example Corp",
                reg_id="example.com",
                roles=[EntityRole.TAG_CREATOR],
            )
        ],
    )


def raw_header(
    payload_length: int, *, version: int = 2, flags: int = 0, header_length: int = 24
) -> bytes:
    """Hand-assemble a uSWID header, bypassing the encoder."""
    return (
        USWID_MAGIC
        + bytes([version])
        + header_length.to_bytes(2, "little")
        + payload_length.to_bytes(4, "little")
        + bytes([flags])
    )


def zlib_with_trailer(stream: bytes, trailer: bytes) -> bytes:
    """Compress ``stream`` and append bytes the inflater will not consume."""
    return zlib.compress(stream) + trailer
