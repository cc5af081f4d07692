"""Synthesize a minimal identity from pkg-config style ``Key: Value`` lines."""

from __future__ import annotations

from pathlib import PurePath

from uswidkit.config import GeneratorSettings
from uswidkit.coswid import Entity, EntityRole, SoftwareIdentity, SoftwareMeta
from uswidkit.tag_id import generate_tag_id


def parse_fields(text: str) -> dict[str, str]:
    """Return ``Key: Value`` pairs; later keys win, other lines are ignored."""
    fields: dict[str, str] = {}
    for line in text.replace("\r\n", "\n").split("\n"):
        key, separator, value = line.partition(":")
        if not separator:
            continue
        fields[key.strip()] = value.strip()
    return fields


def identity_from_pkgconfig(
    text: str,
    filename: str,
    settings: GeneratorSettings | None = None,
) -> SoftwareIdentity:
    """Build an identity from ``Name``, ``Description`` and ``Version`` fields.

    The tag-id is a UUIDv5 of the final path component only, not of the path
    as given. A file therefore keeps its tag-id when it moves between
    directories, though the id differs from tools that hash the full path.

    Args:
        text: Key-value file content.
        filename: Source path; only its final component feeds the tag-id.
        settings: Generator settings; defaults when omitted.

    Returns:
        Synthesized identity.
    """
    settings = settings or GeneratorSettings()
    fields = parse_fields(text)
    identity = SoftwareIdentity(
        tag_id=generate_tag_id(
            PurePath(filename).name, namespace=settings.tag_id_namespace
        ),
        software_name=fields.get("Name", ""),
        software_version=fields.get("Version"),
    )
    identity.add_software_meta(SoftwareMeta(summary=fields.get("Description")))
    if not identity.entities:
        identity.add_entity(
            Entity(
                entity_name=settings.tag_creator_name,
                reg_id=settings.tag_creator_regid,
                roles=[EntityRole.TAG_CREATOR],
            )
        )
    return identity
