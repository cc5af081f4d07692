"""Concise (CBOR) encoding of CoSWID tags, RFC 9393 integer keys."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any, TypeVar

import cbor2
from pydantic import ValidationError

from uswidkit.coswid.models import (
    EntityRole,
    HashEntry,
    LinkRel,
    SoftwareIdentity,
    VersionScheme,
)

_LOGGER = logging.getLogger(__name__)

COSWID_CBOR_TAG = 1398229316

# Map keys (RFC 9393 section 6.1).
TAG_ID = 0
SOFTWARE_NAME = 1
ENTITY = 2
LINK = 4
SOFTWARE_META = 5
PAYLOAD = 6
HASH = 7
CORPUS = 8
PATCH = 9
SUPPLEMENTAL = 11
TAG_VERSION = 12
SOFTWARE_VERSION = 13
VERSION_SCHEME = 14
LANG = 15
FILE = 17
SIZE = 20
FILE_VERSION = 21
LOCATION = 23
FS_NAME = 24
ENTITY_NAME = 31
REG_ID = 32
ROLE = 33
THUMBPRINT = 34
HREF = 38
OWNERSHIP = 39
REL = 40
MEDIA_TYPE = 41
USE = 42
ACTIVATION_STATUS = 43
COLLOQUIAL_VERSION = 45
DESCRIPTION = 46
EDITION = 47
GENERATOR = 50
PRODUCT = 52
PRODUCT_FAMILY = 53
REVISION = 54
SUMMARY = 55

_ROLE_CODES = {
    EntityRole.TAG_CREATOR: 1,
    EntityRole.SOFTWARE_CREATOR: 2,
    EntityRole.AGGREGATOR: 3,
    EntityRole.DISTRIBUTOR: 4,
    EntityRole.LICENSOR: 5,
    EntityRole.MAINTAINER: 6,
}
_REL_CODES = {
    LinkRel.ANCESTOR: 1,
    LinkRel.COMPONENT: 2,
    LinkRel.FEATURE: 3,
    LinkRel.INSTALLATION_MEDIA: 4,
    LinkRel.PACKAGE_INSTALLER: 5,
    LinkRel.PARENT: 6,
    LinkRel.PATCHES: 7,
    LinkRel.REQUIRES: 8,
    LinkRel.SEE_ALSO: 9,
    LinkRel.SUPERSEDES: 10,
    LinkRel.SUPPLEMENTAL: 11,
}
_VERSION_SCHEME_CODES = {
    VersionScheme.MULTIPART_NUMERIC: 1,
    VersionScheme.MULTIPART_NUMERIC_SUFFIX: 2,
    VersionScheme.ALPHANUMERIC: 3,
    VersionScheme.DECIMAL: 4,
    VersionScheme.SEMVER: 16384,
}
_OWNERSHIP_CODES = {"abandon": 1, "private": 2, "shared": 3}
_USE_CODES = {"optional": 1, "required": 2, "recommended": 3}
_KNOWN_KEYS = frozenset(
    {
        TAG_ID,
        SOFTWARE_NAME,
        SOFTWARE_VERSION,
        VERSION_SCHEME,
        TAG_VERSION,
        CORPUS,
        PATCH,
        SUPPLEMENTAL,
        LANG,
        ENTITY,
        LINK,
        SOFTWARE_META,
        PAYLOAD,
    }
)

_META_KEYS = {
    ACTIVATION_STATUS: "activation_status",
    COLLOQUIAL_VERSION: "colloquial_version",
    DESCRIPTION: "description",
    EDITION: "edition",
    GENERATOR: "generator",
    PRODUCT: "product",
    PRODUCT_FAMILY: "product_family",
    REVISION: "revision",
    SUMMARY: "summary",
}


class CoswidDecodeError(ValueError):
    """Raised when a CBOR item is not a well-formed CoSWID tag."""


K = TypeVar("K")
V = TypeVar("V")
E = TypeVar("E")


def _invert(table: Mapping[K, V]) -> dict[V, K]:
    return {code: name for name, code in table.items()}


def _encode_tag_id(tag_id: str) -> str | bytes:
    try:
        parsed = uuid.UUID(tag_id)
    except ValueError:
        return tag_id
    if str(parsed) != tag_id:
        return tag_id
    return parsed.bytes


def _decode_tag_id(value: object) -> str:
    if isinstance(value, bytes):
        if len(value) != 16:
            raise CoswidDecodeError(
                f"tag-id byte string must be 16 bytes, got {len(value)}"
            )
        return str(uuid.UUID(bytes=value))
    if isinstance(value, str):
        return value
    raise CoswidDecodeError(f"tag-id must be text or bytes, got {type(value).__name__}")


def _decode_enum(value: object, table: Mapping[int, E], field: str) -> E | object:
    if isinstance(value, int):
        try:
            return table[value]
        except KeyError:
            raise CoswidDecodeError(f"unknown {field} value {value}") from None
    return value


def _one_or_more(value: object) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _entries(value: object, field: str) -> list[Mapping[Any, Any]]:
    entries = _one_or_more(value)
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise CoswidDecodeError(f"{field} entries must be maps")
    return entries


def _hash_to_cbor(entry: HashEntry) -> list[Any]:
    return [entry.alg_id, bytes.fromhex(entry.hash_value)]


def _hash_from_cbor(value: object) -> dict[str, Any]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise CoswidDecodeError("hash-entry must be a two element array")
    alg_id, digest = value
    if not isinstance(digest, bytes):
        raise CoswidDecodeError("hash-value must be a byte string")
    return {"alg_id": alg_id, "hash_value": digest.hex()}


def to_cbor_object(record: SoftwareIdentity) -> dict[int, Any]:
    """Convert one identity into its integer-keyed CoSWID map.

    Args:
        record: Identity to convert.

    Returns:
        Map ready for ``cbor2`` encoding.
    """
    item: dict[int, Any] = {
        TAG_ID: _encode_tag_id(record.tag_id),
        SOFTWARE_NAME: record.software_name,
    }
    if record.software_version is not None:
        item[SOFTWARE_VERSION] = record.software_version
    if record.version_scheme is not None:
        item[VERSION_SCHEME] = _VERSION_SCHEME_CODES[record.version_scheme]
    if record.tag_version is not None:
        item[TAG_VERSION] = record.tag_version
    if record.corpus is not None:
        item[CORPUS] = record.corpus
    if record.patch is not None:
        item[PATCH] = record.patch
    if record.supplemental is not None:
        item[SUPPLEMENTAL] = record.supplemental
    if record.lang is not None:
        item[LANG] = record.lang
    if record.entities:
        entities = []
        for entity in record.entities:
            roles = [_ROLE_CODES[role] for role in entity.roles]
            entry: dict[int, Any] = {
                ENTITY_NAME: entity.entity_name,
                ROLE: roles[0] if len(roles) == 1 else roles,
            }
            if entity.reg_id is not None:
                entry[REG_ID] = entity.reg_id
            if entity.thumbprint is not None:
                entry[THUMBPRINT] = _hash_to_cbor(entity.thumbprint)
            entities.append(entry)
        item[ENTITY] = entities
    if record.links:
        links = []
        for link in record.links:
            entry = {HREF: link.href, REL: _REL_CODES[link.rel]}
            if link.media_type is not None:
                entry[MEDIA_TYPE] = link.media_type
            if link.ownership is not None:
                entry[OWNERSHIP] = _OWNERSHIP_CODES.get(link.ownership, link.ownership)
            if link.use is not None:
                entry[USE] = _USE_CODES.get(link.use, link.use)
            links.append(entry)
        item[LINK] = links
    if record.software_meta:
        metas = []
        for meta in record.software_meta:
            values = meta.model_dump()
            metas.append(
                {
                    key: values[name]
                    for key, name in _META_KEYS.items()
                    if values[name] is not None
                }
            )
        item[SOFTWARE_META] = metas
    if record.payload is not None:
        files = []
        for file in record.payload.files:
            entry = {FS_NAME: file.fs_name}
            if file.size is not None:
                entry[SIZE] = file.size
            if file.file_version is not None:
                entry[FILE_VERSION] = file.file_version
            if file.location is not None:
                entry[LOCATION] = file.location
            if file.hash is not None:
                entry[HASH] = _hash_to_cbor(file.hash)
            files.append(entry)
        item[PAYLOAD] = {FILE: files} if files else {}
    return item


def from_cbor_object(item: object) -> SoftwareIdentity:
    """Build one identity from a decoded CoSWID map.

    Args:
        item: Object produced by ``cbor2`` for one stream item.

    Returns:
        Validated identity.

    Raises:
        CoswidDecodeError: If the item is not a CoSWID map or fails validation.
    """
    if isinstance(item, cbor2.CBORTag) and item.tag == COSWID_CBOR_TAG:
        item = item.value
    if not isinstance(item, Mapping):
        raise CoswidDecodeError(f"expected CoSWID map, got {type(item).__name__}")
    if TAG_ID not in item:
        raise CoswidDecodeError("CoSWID map has no tag-id")

    roles = _invert(_ROLE_CODES)
    rels = _invert(_REL_CODES)
    payload: dict[str, Any] = {
        "tag_id": _decode_tag_id(item[TAG_ID]),
        "software_name": item.get(SOFTWARE_NAME, ""),
        "software_version": item.get(SOFTWARE_VERSION),
        "tag_version": item.get(TAG_VERSION),
        "corpus": item.get(CORPUS),
        "patch": item.get(PATCH),
        "supplemental": item.get(SUPPLEMENTAL),
        "lang": item.get(LANG),
    }
    if VERSION_SCHEME in item:
        payload["version_scheme"] = _decode_enum(
            item[VERSION_SCHEME], _invert(_VERSION_SCHEME_CODES), "version-scheme"
        )
    payload["entities"] = [
        {
            "entity_name": entry.get(ENTITY_NAME),
            "reg_id": entry.get(REG_ID),
            "roles": [
                _decode_enum(role, roles, "role")
                for role in _one_or_more(entry.get(ROLE, []))
            ],
            "thumbprint": (
                _hash_from_cbor(entry[THUMBPRINT]) if THUMBPRINT in entry else None
            ),
        }
        for entry in _entries(item.get(ENTITY, []), "entity")
    ]
    payload["links"] = [
        {
            "href": entry.get(HREF),
            "rel": _decode_enum(entry.get(REL), rels, "rel"),
            "media_type": entry.get(MEDIA_TYPE),
            "ownership": _decode_enum(
                entry.get(OWNERSHIP), _invert(_OWNERSHIP_CODES), "ownership"
            ),
            "use": _decode_enum(entry.get(USE), _invert(_USE_CODES), "use"),
        }
        for entry in _entries(item.get(LINK, []), "link")
    ]
    payload["software_meta"] = [
        {name: entry.get(key) for key, name in _META_KEYS.items()}
        for entry in _entries(item.get(SOFTWARE_META, []), "software-meta")
    ]
    if PAYLOAD in item:
        payload_entry = item[PAYLOAD]
        if not isinstance(payload_entry, Mapping):
            raise CoswidDecodeError("payload must be a map")
        payload["payload"] = {
            "files": [
                {
                    "fs_name": entry.get(FS_NAME),
                    "size": entry.get(SIZE),
                    "file_version": entry.get(FILE_VERSION),
                    "location": entry.get(LOCATION),
                    "hash": _hash_from_cbor(entry[HASH]) if HASH in entry else None,
                }
                for entry in _entries(payload_entry.get(FILE, []), "file")
            ]
        }
    unknown = set(item) - _KNOWN_KEYS
    if unknown:
        _LOGGER.debug("Ignoring unsupported CoSWID keys %s", sorted(unknown, key=str))
    try:
        return SoftwareIdentity.model_validate(payload)
    except ValidationError as exc:
        raise CoswidDecodeError(f"invalid CoSWID tag: {exc}") from exc


def encode_cbor(record: SoftwareIdentity) -> bytes:
    """Encode one identity as a self-delimiting CBOR item.

    Args:
        record: Identity to encode.

    Returns:
        CBOR bytes for exactly one item.
    """
    return cbor2.dumps(to_cbor_object(record))

