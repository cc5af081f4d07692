"""ISO/IEC 19770-2 SWID XML representation of a single tag."""

from __future__ import annotations

from typing import Any
from xml.parsers import expat

from lxml import etree
from pydantic import ValidationError

from uswidkit.coswid.models import (
    SWID_XML_ROOT,
    EntityRole,
    FileEntry,
    HashAlgorithm,
    SoftwareIdentity,
)

XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"

_HASH_NAMESPACES = {
    HashAlgorithm.SHA_256: ("SHA256", "http://www.w3.org/2001/04/xmlenc#sha256"),
    HashAlgorithm.SHA_384: ("SHA384", "http://www.w3.org/2001/04/xmldsig-more#sha384"),
    HashAlgorithm.SHA_512: ("SHA512", "http://www.w3.org/2001/04/xmlenc#sha512"),
}
_ROLE_NAMES = {
    EntityRole.TAG_CREATOR: "tagCreator",
    EntityRole.SOFTWARE_CREATOR: "softwareCreator",
    EntityRole.AGGREGATOR: "aggregator",
    EntityRole.DISTRIBUTOR: "distributor",
    EntityRole.LICENSOR: "licensor",
    EntityRole.MAINTAINER: "maintainer",
}
_META_ATTRIBUTES = {
    "activation_status": "activationStatus",
    "colloquial_version": "colloquialVersion",
    "description": "description",
    "edition": "edition",
    "generator": "generator",
    "product": "product",
    "product_family": "productFamily",
    "revision": "revision",
    "summary": "summary",
}
_SAFE_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)


class SwidXmlError(ValueError):
    """Raised when markup is not a well-formed SWID element."""


class _RootClosed(Exception):
    def __init__(self, index: int) -> None:
        super().__init__(index)
        self.index = index


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


def _text_bool(value: str | None) -> bool | None:
    if value is None:
        return None
    return value.strip().lower() in {"true", "1"}


def _set(element: etree._Element, name: str, value: object) -> None:
    if value is not None:
        element.set(name, str(value))


def _file_element(parent: etree._Element, tag: str, file: FileEntry) -> None:
    element = etree.SubElement(parent, tag)
    _set(element, "name", file.fs_name)
    _set(element, "size", file.size)
    _set(element, "version", file.file_version)
    _set(element, "location", file.location)
    if file.hash is not None:
        _, namespace = _HASH_NAMESPACES[file.hash.alg_id]
        element.set(f"{{{namespace}}}hash", file.hash.hash_value)


def to_xml(record: SoftwareIdentity) -> bytes:
    """Serialize one identity as a ``SoftwareIdentity`` element.

    The root name and namespace come from ``record.xml_name``; without it the
    element is written unqualified.
    """
    namespace = record.xml_name.namespace if record.xml_name else None
    local = record.xml_name.local if record.xml_name else SWID_XML_ROOT

    def qualified(name: str) -> str:
        return f"{{{namespace}}}{name}" if namespace else name

    nsmap: dict[str | None, str] = {} if namespace is None else {None: namespace}
    if record.payload is not None:
        for file in record.payload.files:
            if file.hash is not None:
                prefix, hash_namespace = _HASH_NAMESPACES[file.hash.alg_id]
                nsmap[prefix] = hash_namespace
    root = etree.Element(qualified(local), nsmap=nsmap)
    _set(root, "name", record.software_name)
    _set(root, "tagId", record.tag_id)
    _set(root, "version", record.software_version)
    if record.version_scheme is not None:
        root.set("versionScheme", record.version_scheme.value)
    _set(root, "tagVersion", record.tag_version)
    for attribute, flag in (
        ("corpus", record.corpus),
        ("patch", record.patch),
        ("supplemental", record.supplemental),
    ):
        if flag is not None:
            root.set(attribute, _bool_text(flag))
    _set(root, XML_LANG, record.lang)

    for entity in record.entities:
        element = etree.SubElement(root, qualified("Entity"))
        element.set("name", entity.entity_name)
        _set(element, "regid", entity.reg_id)
        element.set("role", " ".join(_ROLE_NAMES[role] for role in entity.roles))
        if entity.thumbprint is not None:
            element.set("thumbprint", entity.thumbprint.hash_value)
    for link in record.links:
        element = etree.SubElement(root, qualified("Link"))
        element.set("href", link.href)
        element.set("rel", link.rel.value)
        _set(element, "media", link.media_type)
        _set(element, "ownership", link.ownership)
        _set(element, "use", link.use)
    for meta in record.software_meta:
        element = etree.SubElement(root, qualified("Meta"))
        values = meta.model_dump()
        for field, attribute in _META_ATTRIBUTES.items():
            _set(element, attribute, values[field])
    if record.payload is not None:
        payload = etree.SubElement(root, qualified("Payload"))
        for file in record.payload.files:
            _file_element(payload, qualified("File"), file)
    return etree.tostring(root, encoding="utf-8", pretty_print=True)


def _skip_whitespace(data: bytes, offset: int) -> int:
    while offset < len(data) and data[offset : offset + 1].isspace():
        offset += 1
    return offset


def _tag_end(data: bytes, index: int) -> int:
    quote: int | None = None
    for position in range(index, len(data)):
        char = data[position]
        if quote is not None:
            if char == quote:
                quote = None
        elif char in (0x22, 0x27):
            quote = char
        elif char == 0x3E:
            return position + 1
    raise SwidXmlError("unterminated root element tag")


def _root_span(data: bytes) -> int | None:
    """Return the length of the first complete root element in ``data``."""
    depth = 0
    started = False
    parser = expat.ParserCreate()

    def start(name: str, attrs: dict[str, str]) -> None:
        nonlocal depth, started
        del name, attrs
        depth += 1
        started = True

    def end(name: str) -> None:
        nonlocal depth
        del name
        depth -= 1
        if depth == 0:
            raise _RootClosed(parser.CurrentByteIndex)

    parser.StartElementHandler = start
    parser.EndElementHandler = end
    try:
        parser.Parse(data, True)
    except _RootClosed as closed:
        # An empty root reports its end past "/>"; only "</name>" needs scanning.
        if data[closed.index : closed.index + 2] != b"</":
            return closed.index
        return _tag_end(data, closed.index)
    except expat.ExpatError as exc:
        no_elements = expat.errors.codes[expat.errors.XML_ERROR_NO_ELEMENTS]
        if exc.code == no_elements and not started:
            return None
        raise SwidXmlError(f"malformed XML: {exc}") from exc
    return None


def _element_to_payload(root: etree._Element) -> dict[str, Any]:
    roles = {name: role for role, name in _ROLE_NAMES.items()}
    hash_algorithms = {ns: alg for alg, (_, ns) in _HASH_NAMESPACES.items()}
    tag_id = root.get("tagId")
    if tag_id is None:
        raise SwidXmlError("SoftwareIdentity element has no tagId")
    payload: dict[str, Any] = {
        "tag_id": tag_id,
        "software_name": root.get("name", ""),
        "software_version": root.get("version"),
        "version_scheme": root.get("versionScheme"),
        "tag_version": root.get("tagVersion"),
        "corpus": _text_bool(root.get("corpus")),
        "patch": _text_bool(root.get("patch")),
        "supplemental": _text_bool(root.get("supplemental")),
        "lang": root.get(XML_LANG),
        "entities": [],
        "links": [],
        "software_meta": [],
    }
    for child in root:
        if not isinstance(child.tag, str):
            continue
        name = etree.QName(child).localname
        if name == "Entity":
            thumbprint = child.get("thumbprint")
            payload["entities"].append(
                {
                    "entity_name": child.get("name"),
                    "reg_id": child.get("regid"),
                    "roles": [
                        roles.get(role, role)
                        for role in child.get("role", "").split()
                    ],
                    "thumbprint": (
                        None
                        if thumbprint is None
                        else {"hash_value": thumbprint.lower()}
                    ),
                }
            )
        elif name == "Link":
            payload["links"].append(
                {
                    "href": child.get("href"),
                    "rel": child.get("rel"),
                    "media_type": child.get("media"),
                    "ownership": child.get("ownership"),
                    "use": child.get("use"),
                }
            )
        elif name == "Meta":
            payload["software_meta"].append(
                {
                    field: child.get(attribute)
                    for field, attribute in _META_ATTRIBUTES.items()
                }
            )
        elif name == "Payload":
            files = []
            for entry in child:
                if not isinstance(entry.tag, str):
                    continue
                if etree.QName(entry).localname != "File":
                    continue
                file: dict[str, Any] = {
                    "fs_name": entry.get("name"),
                    "size": entry.get("size"),
                    "file_version": entry.get("version"),
                    "location": entry.get("location"),
                }
                for key, value in entry.attrib.items():
                    qname = etree.QName(key)
                    if qname.localname == "hash" and qname.namespace in hash_algorithms:
                        file["hash"] = {
                            "alg_id": hash_algorithms[qname.namespace],
                            "hash_value": value.lower(),
                        }
                files.append(file)
            payload["payload"] = {"files": files}
    return payload


def read_xml_element(
    data: bytes, offset: int = 0
) -> tuple[SoftwareIdentity, int] | None:
    """Parse one ``SoftwareIdentity`` element starting at ``offset``.

    Sibling root elements may follow without a wrapping element; the returned
    end offset is where the next one starts.

    Args:
        data: Markup bytes holding one or more sibling elements.
        offset: Byte offset to start parsing from.

    Returns:
        Parsed identity and the end offset, or None when only whitespace,
        comments or processing instructions remain.

    Raises:
        SwidXmlError: If the markup is malformed or not a SWID tag.
    """
    start = _skip_whitespace(data, offset)
    if start >= len(data):
        return None
    length = _root_span(data[start:])
    if length is None:
        return None
    fragment = data[start : start + length]
    try:
        root = etree.fromstring(fragment, parser=_SAFE_PARSER)
    except etree.XMLSyntaxError as exc:
        raise SwidXmlError(f"malformed XML: {exc}") from exc
    try:
        record = SoftwareIdentity.model_validate(_element_to_payload(root))
    except ValidationError as exc:
        raise SwidXmlError(f"invalid SWID tag: {exc}") from exc
    return record, start + length
