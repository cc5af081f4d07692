"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.unit.helpers import BOOTLOADER_TAG_ID, FIRMWARE_TAG_ID, make_identity
from uswidkit.coswid import (
    Entity,
    EntityRole,
    FileEntry,
    HashEntry,
    Link,
    LinkRel,
    SoftwareIdentity,
    SoftwareMeta,
    VersionScheme,
)


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """Temporary workspace root. .uswidkit config lives under it."""
    return tmp_path


@pytest.fixture
def firmware_identity() -> SoftwareIdentity:
    """Identity using most CoSWID fields."""
    identity = SoftwareIdentity(
        tag_id=FIRMWARE_TAG_ID,
        software_name="example-firmware",
        software_version="2.4.1",
        version_scheme=VersionScheme.MULTIPART_NUMERIC,
        tag_version=3,
        corpus=True,
        lang="en-US",
    )
    identity.add_entity(
        Entity(
            entity_name="Example Corp",
            reg_id="example.com",
            roles=[EntityRole.TAG_CREATOR, EntityRole.SOFTWARE_CREATOR],
        )
    )
    identity.add_link(
        Link(href="https://example.com/licenses/mit", rel=LinkRel.SEE_ALSO)
    )
    identity.add_software_meta(
        SoftwareMeta(summary="Board firmware", product="Example Board")
    )
    identity.add_file(
        FileEntry(
            fs_name="firmware.bin",
            size=4096,
            hash=HashEntry(hash_value="ab" * 32),
        )
    )
    return identity


@pytest.fixture
def bootloader_identity() -> SoftwareIdentity:
    """Second minimal identity."""
    return make_identity(BOOTLOADER_TAG_ID, "example-bootloader", "0.9")
