"""Unit tests for tag id generation."""

from __future__ import annotations

import uuid

import pytest

from uswidkit.tag_id import generate_tag_id


@pytest.mark.unit
def test_generate_tag_id_is_uuid5_of_dns_namespace() -> None:
    """Default namespace should be the RFC 4122 DNS namespace."""
    tag_id = generate_tag_id("example-firmware")

    assert tag_id == str(uuid.uuid5(uuid.NAMESPACE_DNS, "example-firmware"))
    assert uuid.UUID(tag_id).version == 5


@pytest.mark.unit
def test_generate_tag_id_is_deterministic() -> None:
    """Same input should give the same id; different input a different one."""
    assert generate_tag_id("a") == generate_tag_id("a")
    assert generate_tag_id("a") != generate_tag_id("b")
