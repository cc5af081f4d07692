"""Ordered collection of software identities gathered from several sources."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from pydantic import ValidationError

from uswidkit.config import UswidConfig
from uswidkit.container import encode_container, locate
from uswidkit.coswid import (
    SWID_XML_NAMESPACE,
    SWID_XML_ROOT,
    Link,
    LinkRel,
    SoftwareIdentity,
    SwidXmlError,
    XmlName,
    from_json,
    from_json_array,
    read_xml_element,
    to_json,
    to_xml,
)
from uswidkit.errors import (
    EmptyInputError,
    MultipleIdentitiesInParentError,
    RecordDecodeError,
    RecordNotFoundError,
    UnsupportedExtensionError,
    UswidError,
)
from uswidkit.formats import FileFormat, input_format_for
from uswidkit.pkgconfig import identity_from_pkgconfig
from uswidkit.stream import decode_stream, encode_stream

_LOGGER = logging.getLogger(__name__)


class ParentPolicy(StrEnum):
    """How the parent of a ``requires`` link set is chosen."""

    SEPARATE_SOURCE = "separate-source"
    FIRST_OF_COLLECTION = "first-of-collection"
    FIRST_OF_EACH_SOURCE = "first-of-each-source"


@dataclass(frozen=True)
class SourceSpan:
    """Index range of the identities one import contributed."""

    source: str
    start: int
    stop: int


class IdentityCollection:
    """Append-only, insertion-ordered set of identities."""

    def __init__(self, config: UswidConfig | None = None) -> None:
        """Create an empty collection.

        Args:
            config: Decode and synthesis settings; defaults when omitted.
        """
        self._config = config or UswidConfig()
        self._identities: list[SoftwareIdentity] = []
        self._spans: list[SourceSpan] = []

    def __len__(self) -> int:
        return len(self._identities)

    def __iter__(self) -> Iterator[SoftwareIdentity]:
        return iter(self._identities)

    def __getitem__(self, index: int) -> SoftwareIdentity:
        return self._identities[index]

    @property
    def identities(self) -> tuple[SoftwareIdentity, ...]:
        """Snapshot of the identities in insertion order."""
        return tuple(self._identities)

    @property
    def spans(self) -> tuple[SourceSpan, ...]:
        """Per-source index ranges in import order."""
        return tuple(self._spans)

    def select(self, tag_id: str | None = None) -> SoftwareIdentity:
        """Return the identity with ``tag_id``, or the only identity when omitted.

        Raises:
            RecordNotFoundError: If no identity matches, or ``tag_id`` is omitted
                and the collection does not hold exactly one identity.
        """
        if tag_id is None:
            if len(self._identities) != 1:
                raise RecordNotFoundError(
                    f"collection holds {len(self._identities)} identities; "
                    "a tag-id is required to pick one"
                )
            return self._identities[0]
        for identity in self._identities:
            if identity.tag_id == tag_id:
                return identity
        raise RecordNotFoundError(f"no identity with tag-id {tag_id!r}")

    def append(self, identity: SoftwareIdentity, *, source: str = "<memory>") -> None:
        """Append one identity as its own source."""
        self._extend([identity], source)

    def _extend(self, identities: list[SoftwareIdentity], source: str) -> None:
        if not identities:
            raise EmptyInputError("source holds no identities", source=source)
        start = len(self._identities)
        self._identities.extend(identities)
        self._spans.append(SourceSpan(source, start, len(self._identities)))
        _LOGGER.debug("Imported %d identities from %s", len(identities), source)

    # Import

    def from_uswid(self, blob: bytes, *, source: str = "<uswid>") -> int:
        """Append the identities of the first uSWID container in ``blob``.

        Args:
            blob: Bytes holding a container, possibly inside other data.
            source: Name used in errors and source spans.

        Returns:
            Offset of the container inside ``blob``.
        """
        container = locate(blob)
        identities = decode_stream(
            container.payload,
            container.header.payload_length,
            compressed=container.compressed,
            strict=self._config.stream.strict_payload_length,
        )
        self._extend(identities, source)
        return container.offset

    def from_cbor(
        self, blob: bytes, *, compressed: bool = False, source: str = "<cbor>"
    ) -> None:
        """Append identities from a bare record stream."""
        identities = decode_stream(
            blob,
            len(blob),
            compressed=compressed,
            strict=self._config.stream.strict_payload_length,
        )
        self._extend(identities, source)

    def from_json(self, data: bytes | str, *, source: str = "<json>") -> None:
        """Append one identity object or every object of a JSON array."""
        text = data.decode("utf-8") if isinstance(data, bytes) else data
        text = text.strip()
        if not text:
            raise EmptyInputError("input data empty", source=source)
        try:
            if text[0] == "[" and text[-1] == "]":
                identities = from_json_array(text)
            else:
                identities = [from_json(text)]
        except ValidationError as exc:
            raise RecordDecodeError(f"invalid JSON identity: {exc}") from exc
        self._extend(identities, source)

    def from_xml(self, data: bytes, *, source: str = "<xml>") -> None:
        """Append every sibling ``SoftwareIdentity`` element of ``data``."""
        if not data.strip():
            raise EmptyInputError("input data empty", source=source)
        identities: list[SoftwareIdentity] = []
        offset = 0
        while offset < len(data):
            try:
                parsed = read_xml_element(data, offset)
            except SwidXmlError as exc:
                raise RecordDecodeError(str(exc), offset=offset) from exc
            if parsed is None:
                break
            identity, offset = parsed
            identities.append(identity)
        self._extend(identities, source)

    def from_pkgconfig(self, text: str, filename: str) -> None:
        """Append an identity synthesized from a pkg-config style file."""
        identity = identity_from_pkgconfig(text, filename, self._config.generator)
        self._extend([identity], filename)

    def import_bytes(self, data: bytes, fmt: FileFormat, *, source: str) -> None:
        """Decode ``data`` as ``fmt`` and append its identities.

        Raises:
            UswidError: Annotated with ``source``; the original is the cause.
        """
        try:
            if fmt == FileFormat.PKGCONFIG:
                self.from_pkgconfig(data.decode("utf-8"), source)
            elif fmt == FileFormat.USWID:
                self.from_uswid(data, source=source)
            elif fmt == FileFormat.CBOR:
                self.from_cbor(data, source=source)
            elif fmt == FileFormat.JSON:
                self.from_json(data, source=source)
            else:
                self.from_xml(data, source=source)
        except UswidError as exc:
            raise exc.in_source(source) from exc
        except UnicodeDecodeError as exc:
            raise RecordDecodeError(f"not UTF-8 text: {exc}", source=source) from exc

    def import_file(self, path: Path, fmt: FileFormat | None = None) -> None:
        """Read ``path`` and append its identities.

        Args:
            path: Input file.
            fmt: Explicit format; otherwise chosen by extension.
        """
        self.import_bytes(
            path.read_bytes(), input_format_for(path, fmt), source=str(path)
        )

    @classmethod
    def from_files(
        cls, paths: list[Path], config: UswidConfig | None = None
    ) -> IdentityCollection:
        """Build a collection from several files in order."""
        collection = cls(config)
        for path in paths:
            collection.import_file(path)
        return collection

    # Parent links

    def _link_children(
        self, parent: SoftwareIdentity, children: list[SoftwareIdentity]
    ) -> None:
        for child in children:
            parent.add_link(Link(href=child.tag_id_uri(), rel=LinkRel.REQUIRES))

    def inject_parent_links(
        self,
        policy: ParentPolicy,
        parent: IdentityCollection | None = None,
    ) -> None:
        """Add ``requires`` links from a parent identity to its children.

        Args:
            policy: Which identity acts as parent for which children.
            parent: Single-identity collection for ``SEPARATE_SOURCE``.

        Raises:
            MultipleIdentitiesInParentError: If ``parent`` holds several identities.
            EmptyInputError: If ``parent`` is missing or empty.
        """
        if policy == ParentPolicy.SEPARATE_SOURCE:
            if parent is None or len(parent) == 0:
                raise EmptyInputError("parent source holds no identity")
            parent_source = parent.spans[0].source
            if len(parent) > 1:
                raise MultipleIdentitiesInParentError(
                    f"parent should be a single identity, found {len(parent)}",
                    source=parent_source,
                )
            parent_identity = parent[0]
            self._link_children(parent_identity, list(self._identities))
            self._extend([parent_identity], parent_source)
        elif policy == ParentPolicy.FIRST_OF_COLLECTION:
            if self._identities:
                self._link_children(self._identities[0], self._identities[1:])
        else:
            for span in self._spans:
                members = self._identities[span.start : span.stop]
                self._link_children(members[0], members[1:])
        _LOGGER.debug("Injected parent links using %s policy", policy.value)

    # Export

    def to_json(self) -> bytes:
        """Return one JSON object for a single identity, else a JSON array."""
        fragments = [to_json(identity) for identity in self._identities]
        if len(fragments) == 1:
            return fragments[0]
        return b"[" + b",".join(fragments) + b"]"

    def to_xml(self) -> bytes:
        """Return sibling ``SoftwareIdentity`` elements without a wrapper."""
        name = XmlName(SWID_XML_NAMESPACE, SWID_XML_ROOT)
        return b"".join(
            to_xml(identity.model_copy(update={"xml_name": name}))
            for identity in self._identities
        )

    def to_cbor(self, *, compress: bool = False) -> bytes:
        """Return the bare record stream."""
        return encode_stream(self._identities, compress=compress)

    def to_uswid(self, *, compress: bool = False) -> bytes:
        """Return a uSWID container holding the record stream."""
        return encode_container(self.to_cbor(compress=compress), compressed=compress)

    def export(self, fmt: FileFormat, *, compress: bool = False) -> bytes:
        """Encode the collection as ``fmt``.

        Raises:
            UnsupportedExtensionError: If ``fmt`` cannot be written.
        """
        if fmt == FileFormat.JSON:
            return self.to_json()
        if fmt == FileFormat.XML:
            return self.to_xml()
        if fmt == FileFormat.CBOR:
            return self.to_cbor(compress=compress)
        if fmt == FileFormat.USWID:
            return self.to_uswid(compress=compress)
        raise UnsupportedExtensionError(f"cannot write {fmt.value} output")
