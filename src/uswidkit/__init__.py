"""uSWID container codec and CoSWID identity collection aggregator."""

from uswidkit.collection import IdentityCollection, ParentPolicy, SourceSpan
from uswidkit.container import (
    USWID_HEADER_VERSION,
    USWID_MAGIC,
    ContainerHeader,
    LocatedContainer,
    encode_container,
    locate,
)
from uswidkit.formats import FileFormat
from uswidkit.stream import decode_stream, encode_stream
from uswidkit.tag_id import generate_tag_id

__all__ = [
    "USWID_HEADER_VERSION",
    "USWID_MAGIC",
    "ContainerHeader",
    "FileFormat",
    "IdentityCollection",
    "LocatedContainer",
    "ParentPolicy",
    "SourceSpan",
    "decode_stream",
    "encode_container",
    "encode_stream",
    "generate_tag_id",
    "locate",
]
