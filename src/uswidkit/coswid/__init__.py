"""CoSWID/SWID tag model and single-tag codecs."""

from uswidkit.coswid.cbor_codec import (
    CoswidDecodeError,
    encode_cbor,
    from_cbor_object,
    to_cbor_object,
)
from uswidkit.coswid.json_codec import from_json, from_json_array, to_json
from uswidkit.coswid.models import (
    SWID_XML_NAMESPACE,
    SWID_XML_ROOT,
    Entity,
    EntityRole,
    FileEntry,
    HashAlgorithm,
    HashEntry,
    Link,
    LinkRel,
    Payload,
    SoftwareIdentity,
    SoftwareMeta,
    VersionScheme,
    XmlName,
)
from uswidkit.coswid.xml_codec import SwidXmlError, read_xml_element, to_xml

__all__ = [
    "SWID_XML_NAMESPACE",
    "SWID_XML_ROOT",
    "CoswidDecodeError",
    "Entity",
    "EntityRole",
    "FileEntry",
    "HashAlgorithm",
    "HashEntry",
    "Link",
    "LinkRel",
    "Payload",
    "SoftwareIdentity",
    "SoftwareMeta",
    "SwidXmlError",
    "VersionScheme",
    "XmlName",
    "encode_cbor",
    "from_cbor_object",
    "from_json",
    "from_json_array",
    "read_xml_element",
    "to_cbor_object",
    "to_json",
    "to_xml",
]
