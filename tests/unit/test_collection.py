"""Unit tests for identity collection import, link injection and export."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tests.unit.helpers import make_identity, raw_header, zlib_with_trailer
from uswidkit.collection import IdentityCollection, ParentPolicy
from uswidkit.config import StreamSettings, UswidConfig
from uswidkit.container import USWID_MAGIC, encode_container
from uswidkit.coswid import (
    SWID_XML_NAMESPACE,
    Link,
    LinkRel,
    SoftwareIdentity,
    encode_cbor,
)
from uswidkit.errors import (
    EmptyInputError,
    MagicNotFoundError,
    MultipleIdentitiesInParentError,
    RecordDecodeError,
    RecordNotFoundError,
    ShortPayloadError,
    TruncatedContainerError,
    UnsupportedExtensionError,
    UnsupportedHeaderVersionError,
)
from uswidkit.formats import FileFormat


def _collection(*identities: SoftwareIdentity) -> IdentityCollection:
    collection = IdentityCollection()
    for identity in identities:
        collection.append(identity, source=identity.tag_id)
    return collection


def _requires(identity: SoftwareIdentity) -> list[str]:
    return [link.href for link in identity.links if link.rel == LinkRel.REQUIRES]


@pytest.mark.unit
@pytest.mark.parametrize("compress", [False, True])
def test_uswid_round_trip(
    firmware_identity: SoftwareIdentity,
    bootloader_identity: SoftwareIdentity,
    compress: bool,
) -> None:
    """Decode(Encode(c)) should equal c, order preserved, either compression."""
    # Arrange
    source = _collection(firmware_identity, bootloader_identity)

    # Act
    decoded = IdentityCollection()
    offset = decoded.from_uswid(source.to_uswid(compress=compress))

    # Assert
    assert offset == 0
    assert decoded.identities == (firmware_identity, bootloader_identity)


@pytest.mark.unit
def test_compression_is_transparent(
    firmware_identity: SoftwareIdentity, bootloader_identity: SoftwareIdentity
) -> None:
    """Compressed and uncompressed containers should decode identically."""
    source = _collection(firmware_identity, bootloader_identity)
    plain = IdentityCollection()
    packed = IdentityCollection()

    plain.from_uswid(source.to_uswid(compress=False))
    packed.from_uswid(source.to_uswid(compress=True))

    assert plain.identities == packed.identities


@pytest.mark.unit
def test_from_uswid_finds_container_inside_firmware(
    bootloader_identity: SoftwareIdentity,
) -> None:
    """Arbitrary bytes around a container should not affect decoding."""
    # Arrange
    container = _collection(bootloader_identity).to_uswid()
    blob = b"\x7fELF" + b"\x00" * 1021 + container + b"\xde\xad\xbe\xef" * 8

    # Act
    decoded = IdentityCollection()
    offset = decoded.from_uswid(blob, source="image.bin")

    # Assert
    assert offset == 1025
    assert decoded.identities == (bootloader_identity,)
    assert decoded.spans[0].source == "image.bin"


@pytest.mark.unit
def test_from_uswid_rejects_other_versions(
    bootloader_identity: SoftwareIdentity,
) -> None:
    """Containers with a header version other than 2 should be rejected."""
    stream = encode_cbor(bootloader_identity)
    blob = raw_header(len(stream), version=3) + stream

    with pytest.raises(UnsupportedHeaderVersionError):
        IdentityCollection().from_uswid(blob)


@pytest.mark.unit
def test_from_uswid_rejects_truncated_payload(
    bootloader_identity: SoftwareIdentity,
) -> None:
    """Declared payload past the end of data should be truncated."""
    blob = encode_container(encode_cbor(bootloader_identity), compressed=False)[:-1]

    with pytest.raises(TruncatedContainerError):
        IdentityCollection().from_uswid(blob)


@pytest.mark.unit
def test_from_uswid_without_magic_fails() -> None:
    """Blob without signature should fail."""
    with pytest.raises(MagicNotFoundError):
        IdentityCollection().from_uswid(b"plain firmware")


@pytest.mark.unit
def test_from_uswid_short_compressed_payload_policy(
    bootloader_identity: SoftwareIdentity,
) -> None:
    """Short compressed payloads are fatal by default and accepted when lenient."""
    # Arrange - zlib stream followed by padding counted in payload_length
    payload = zlib_with_trailer(encode_cbor(bootloader_identity), b"\x00" * 4)
    blob = raw_header(len(payload), flags=0x01) + payload
    lenient = UswidConfig(stream=StreamSettings(strict_payload_length=False))

    # Act / Assert - strict default
    with pytest.raises(ShortPayloadError):
        IdentityCollection().from_uswid(blob)

    # Act / Assert - lenient config
    collection = IdentityCollection(lenient)
    collection.from_uswid(blob)
    assert collection.identities == (bootloader_identity,)


@pytest.mark.unit
def test_from_cbor_reads_bare_stream(
    firmware_identity: SoftwareIdentity, bootloader_identity: SoftwareIdentity
) -> None:
    """A bare record stream should import every record."""
    stream = _collection(firmware_identity, bootloader_identity).to_cbor()

    decoded = IdentityCollection()
    decoded.from_cbor(stream)

    assert len(decoded) == 2
    assert not stream.startswith(USWID_MAGIC)


@pytest.mark.unit
def test_json_export_single_record_is_object(
    bootloader_identity: SoftwareIdentity,
) -> None:
    """One record should export as its own object bytes, not an array."""
    collection = _collection(bootloader_identity)

    data = collection.to_json()

    assert isinstance(json.loads(data), dict)


@pytest.mark.unit
def test_json_export_many_records_is_array(
    firmware_identity: SoftwareIdentity, bootloader_identity: SoftwareIdentity
) -> None:
    """Several records should export as one array in order."""
    collection = _collection(firmware_identity, bootloader_identity)

    document = json.loads(collection.to_json())

    assert [item["tag-id"] for item in document] == [
        firmware_identity.tag_id,
        bootloader_identity.tag_id,
    ]


@pytest.mark.unit
def test_json_export_empty_collection_is_empty_array() -> None:
    """An empty collection should export as []."""
    assert IdentityCollection().to_json() == b"[]"


@pytest.mark.unit
def test_json_round_trip(
    firmware_identity: SoftwareIdentity, bootloader_identity: SoftwareIdentity
) -> None:
    """JSON import should accept what JSON export wrote."""
    source = _collection(firmware_identity, bootloader_identity)

    decoded = IdentityCollection()
    decoded.from_json(b"\n  " + source.to_json() + b"\n")

    assert decoded.identities == source.identities


@pytest.mark.unit
@pytest.mark.parametrize("data", [b"", b"  \n", b"[]"])
def test_from_json_empty_input_fails(data: bytes) -> None:
    """Blank input or an empty array should be an empty-input error."""
    with pytest.raises(EmptyInputError):
        IdentityCollection().from_json(data)


@pytest.mark.unit
def test_from_json_invalid_record_fails() -> None:
    """Objects failing validation should raise a decode error."""
    with pytest.raises(RecordDecodeError):
        IdentityCollection().from_json(b'{"software-name": "missing id"}')


@pytest.mark.unit
def test_xml_export_is_unwrapped_siblings(
    firmware_identity: SoftwareIdentity, bootloader_identity: SoftwareIdentity
) -> None:
    """XML export should concatenate namespaced roots and import them back."""
    # Arrange
    source = _collection(firmware_identity, bootloader_identity)

    # Act
    data = source.to_xml()
    decoded = IdentityCollection()
    decoded.from_xml(data)

    # Assert
    assert data.count(b"<SoftwareIdentity ") == 2
    assert SWID_XML_NAMESPACE.encode() in data
    assert decoded.identities == source.identities
    assert all(identity.xml_name is None for identity in source)


@pytest.mark.unit
def test_xml_round_trip_of_childless_records() -> None:
    """Records with no child elements export as empty roots and read back."""
    # Arrange
    source = _collection(
        SoftwareIdentity(tag_id="a", software_name="one"),
        SoftwareIdentity(tag_id="b", software_name="two"),
    )

    # Act
    decoded = IdentityCollection()
    decoded.from_xml(source.to_xml())

    # Assert
    assert [identity.tag_id for identity in decoded] == ["a", "b"]
    assert decoded.identities == source.identities


@pytest.mark.unit
def test_from_xml_empty_input_fails() -> None:
    """Whitespace-only markup should be an empty-input error."""
    with pytest.raises(EmptyInputError):
        IdentityCollection().from_xml(b" \n")


@pytest.mark.unit
def test_pkgconfig_import_is_deterministic() -> None:
    """Same file name should always yield the same tag id."""
    text = "Name: zlib\r\nDescription: zlib compression library\r\nVersion: 1.3\r\n"
    first = IdentityCollection()
    second = IdentityCollection()

    first.import_bytes(text.encode(), FileFormat.PKGCONFIG, source="/a/zlib.pc")
    second.import_bytes(text.encode(), FileFormat.PKGCONFIG, source="/b/zlib.pc")

    assert first[0].tag_id == second[0].tag_id
    assert first[0].software_name == "zlib"
    assert first[0].software_version == "1.3"


@pytest.mark.unit
def test_import_bytes_annotates_errors_with_source() -> None:
    """Failures should name the source and keep the original as cause."""
    with pytest.raises(MagicNotFoundError) as exc_info:
        IdentityCollection().import_bytes(b"junk", FileFormat.USWID, source="fw.bin")

    assert exc_info.value.source == "fw.bin"
    assert str(exc_info.value).startswith("fw.bin: ")
    assert isinstance(exc_info.value.__cause__, MagicNotFoundError)


@pytest.mark.unit
def test_import_bytes_rejects_non_utf8_pkgconfig() -> None:
    """Key-value input must be UTF-8 text."""
    with pytest.raises(RecordDecodeError):
        IdentityCollection().import_bytes(
            b"\xff\xfe", FileFormat.PKGCONFIG, source="x.pc"
        )


@pytest.mark.unit
def test_import_file_sniffs_extension(
    tmp_path: Path, bootloader_identity: SoftwareIdentity
) -> None:
    """Files should be decoded by extension, unknown ones as uSWID."""
    # Arrange
    json_path = tmp_path / "tag.json"
    json_path.write_bytes(_collection(bootloader_identity).to_json())
    image_path = tmp_path / "firmware.img"
    image_path.write_bytes(b"\x00" * 7 + _collection(bootloader_identity).to_uswid())

    # Act
    collection = IdentityCollection.from_files([json_path, image_path])

    # Assert
    assert len(collection) == 2
    assert [span.source for span in collection.spans] == [
        str(json_path),
        str(image_path),
    ]


@pytest.mark.unit
def test_separate_parent_links_every_record(
    firmware_identity: SoftwareIdentity, bootloader_identity: SoftwareIdentity
) -> None:
    """Parent should require every record and be appended last."""
    # Arrange
    collection = _collection(firmware_identity, bootloader_identity)
    parent = _collection(make_identity("parent-id", "platform"))

    # Act
    collection.inject_parent_links(ParentPolicy.SEPARATE_SOURCE, parent)

    # Assert
    assert len(collection) == 3
    assert collection[2].tag_id == "parent-id"
    assert _requires(collection[2]) == [
        f"swid:{firmware_identity.tag_id}",
        f"swid:{bootloader_identity.tag_id}",
    ]
    assert _requires(collection[0]) == []
    assert _requires(collection[1]) == []


@pytest.mark.unit
def test_separate_parent_keeps_existing_links(
    bootloader_identity: SoftwareIdentity,
) -> None:
    """Link injection should only append."""
    parent_identity = make_identity("parent-id", "platform")
    parent_identity.add_link(Link(href="https://example.com", rel=LinkRel.SEE_ALSO))
    collection = _collection(bootloader_identity)

    collection.inject_parent_links(
        ParentPolicy.SEPARATE_SOURCE, _collection(parent_identity)
    )

    assert [link.rel for link in collection[1].links] == [
        LinkRel.SEE_ALSO,
        LinkRel.REQUIRES,
    ]


@pytest.mark.unit
def test_separate_parent_must_be_single_identity(
    bootloader_identity: SoftwareIdentity,
) -> None:
    """A parent source with two identities should be rejected."""
    collection = _collection(bootloader_identity)
    parent = IdentityCollection()
    parent.from_json(
        _collection(make_identity("p1", "a"), make_identity("p2", "b")).to_json(),
        source="parent.json",
    )

    with pytest.raises(MultipleIdentitiesInParentError) as exc_info:
        collection.inject_parent_links(ParentPolicy.SEPARATE_SOURCE, parent)

    assert exc_info.value.source == "parent.json"
    assert _requires(collection[0]) == []


@pytest.mark.unit
def test_separate_parent_requires_parent(bootloader_identity: SoftwareIdentity) -> None:
    """Missing parent should be an empty-input error."""
    with pytest.raises(EmptyInputError):
        _collection(bootloader_identity).inject_parent_links(
            ParentPolicy.SEPARATE_SOURCE
        )


@pytest.mark.unit
def test_first_of_collection_links_everything_else() -> None:
    """First record should require every later record, across sources."""
    # Arrange
    collection = _collection(
        make_identity("a", "a"), make_identity("b", "b"), make_identity("c", "c")
    )

    # Act
    collection.inject_parent_links(ParentPolicy.FIRST_OF_COLLECTION)

    # Assert
    assert _requires(collection[0]) == ["swid:b", "swid:c"]
    assert _requires(collection[1]) == []
    assert len(collection) == 3


@pytest.mark.unit
def test_first_of_each_source_links_within_source() -> None:
    """Each source's first record should require only its own siblings."""
    # Arrange - two sources of two identities each
    collection = IdentityCollection()
    collection.from_json(
        _collection(make_identity("a1", "a"), make_identity("a2", "a")).to_json(),
        source="a.json",
    )
    collection.from_json(
        _collection(make_identity("b1", "b"), make_identity("b2", "b")).to_json(),
        source="b.json",
    )

    # Act
    collection.inject_parent_links(ParentPolicy.FIRST_OF_EACH_SOURCE)

    # Assert
    assert _requires(collection[0]) == ["swid:a2"]
    assert _requires(collection[2]) == ["swid:b2"]
    assert _requires(collection[1]) == []
    assert _requires(collection[3]) == []


@pytest.mark.unit
def test_select_by_tag_id(
    firmware_identity: SoftwareIdentity, bootloader_identity: SoftwareIdentity
) -> None:
    """select should find the identity with the given tag id."""
    collection = _collection(firmware_identity, bootloader_identity)

    assert collection.select(bootloader_identity.tag_id) is collection[1]


@pytest.mark.unit
def test_select_requires_tag_id_for_several(
    firmware_identity: SoftwareIdentity, bootloader_identity: SoftwareIdentity
) -> None:
    """Without tag id, several identities are ambiguous."""
    collection = _collection(firmware_identity, bootloader_identity)

    with pytest.raises(RecordNotFoundError):
        collection.select()
    with pytest.raises(RecordNotFoundError):
        collection.select("missing")


@pytest.mark.unit
def test_export_rejects_pkgconfig(bootloader_identity: SoftwareIdentity) -> None:
    """pc is an input-only format."""
    with pytest.raises(UnsupportedExtensionError):
        _collection(bootloader_identity).export(FileFormat.PKGCONFIG)


@pytest.mark.unit
def test_export_dispatches_by_format(bootloader_identity: SoftwareIdentity) -> None:
    """export should route to the matching encoder."""
    collection = _collection(bootloader_identity)

    assert collection.export(FileFormat.JSON) == collection.to_json()
    assert collection.export(FileFormat.CBOR) == collection.to_cbor()
    assert collection.export(FileFormat.USWID).startswith(USWID_MAGIC)
    assert collection.export(FileFormat.XML) == collection.to_xml()
