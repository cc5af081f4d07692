"""CoSWID JSON representation of a single tag."""

from __future__ import annotations

from pydantic import TypeAdapter

from uswidkit.coswid.models import SoftwareIdentity

_IDENTITY_LIST = TypeAdapter(list[SoftwareIdentity])


def to_json(record: SoftwareIdentity) -> bytes:
    """Serialize one identity as a compact JSON object; unset members are omitted."""
    return record.model_dump_json(by_alias=True, exclude_defaults=True).encode("utf-8")


def from_json(data: bytes | str) -> SoftwareIdentity:
    """Parse exactly one identity from a JSON object.

    Raises:
        pydantic.ValidationError: If the payload is not valid JSON or not a tag.
    """
    return SoftwareIdentity.model_validate_json(data)


def from_json_array(data: bytes | str) -> list[SoftwareIdentity]:
    """Parse a JSON array of identity objects.

    Raises:
        pydantic.ValidationError: If the payload is not a valid array of tags.
    """
    return _IDENTITY_LIST.validate_json(data)
