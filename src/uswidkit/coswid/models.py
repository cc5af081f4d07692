"""CoSWID software identity models (RFC 9393 / ISO/IEC 19770-2)."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, NamedTuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_serializer,
    model_validator,
)

SWID_XML_NAMESPACE = "http://standards.iso.org/iso/19770/-2/2015/schema.xsd"
SWID_XML_ROOT = "SoftwareIdentity"
TAG_ID_URI_SCHEME = "swid"


class EntityRole(StrEnum):
    """Roles an entity can take for a software identity."""

    TAG_CREATOR = "tag-creator"
    SOFTWARE_CREATOR = "software-creator"
    AGGREGATOR = "aggregator"
    DISTRIBUTOR = "distributor"
    LICENSOR = "licensor"
    MAINTAINER = "maintainer"


class LinkRel(StrEnum):
    """Relation a link expresses between two software identities."""

    ANCESTOR = "ancestor"
    COMPONENT = "component"
    FEATURE = "feature"
    INSTALLATION_MEDIA = "installationmedia"
    PACKAGE_INSTALLER = "packageinstaller"
    PARENT = "parent"
    PATCHES = "patches"
    REQUIRES = "requires"
    SEE_ALSO = "see-also"
    SUPERSEDES = "supersedes"
    SUPPLEMENTAL = "supplemental"


class VersionScheme(StrEnum):
    """Schemes used to interpret ``software-version``."""

    MULTIPART_NUMERIC = "multipartnumeric"
    MULTIPART_NUMERIC_SUFFIX = "multipartnumeric+suffix"
    ALPHANUMERIC = "alphanumeric"
    DECIMAL = "decimal"
    SEMVER = "semver"


class HashAlgorithm:
    """Named-information hash algorithm identifiers (IANA registry)."""

    SHA_256 = 1
    SHA_384 = 7
    SHA_512 = 8


class XmlName(NamedTuple):
    """Qualified XML element name."""

    namespace: str
    local: str


class _CoswidModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class HashEntry(_CoswidModel):
    """Hash value of a file, serialized as ``[alg-id, hash-value]``."""

    alg_id: int = HashAlgorithm.SHA_256
    hash_value: str = Field(min_length=1, pattern=r"^[0-9a-f]+$")

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return {"alg_id": value[0], "hash_value": value[1]}
        return value

    @model_serializer
    def _to_pair(self) -> list[int | str]:
        return [self.alg_id, self.hash_value]


class Entity(_CoswidModel):
    """Organization or person holding one or more roles for a tag."""

    entity_name: str = Field(alias="entity-name", min_length=1)
    reg_id: str | None = Field(default=None, alias="reg-id")
    roles: list[EntityRole] = Field(alias="role", min_length=1)
    thumbprint: HashEntry | None = None

    @field_validator("roles", mode="before")
    @classmethod
    def _single_role(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value


class Link(_CoswidModel):
    """Relation from the owning identity to another resource."""

    href: str = Field(min_length=1)
    rel: LinkRel
    media_type: str | None = Field(default=None, alias="media-type")
    ownership: str | None = None
    use: str | None = None


class SoftwareMeta(_CoswidModel):
    """Descriptive metadata about the software."""

    activation_status: str | None = Field(default=None, alias="activation-status")
    colloquial_version: str | None = Field(default=None, alias="colloquial-version")
    description: str | None = None
    edition: str | None = None
    generator: str | None = None
    product: str | None = None
    product_family: str | None = Field(default=None, alias="product-family")
    revision: str | None = None
    summary: str | None = None


class FileEntry(_CoswidModel):
    """One file shipped in the software payload."""

    fs_name: str = Field(alias="fs-name", min_length=1)
    size: int | None = Field(default=None, ge=0)
    file_version: str | None = Field(default=None, alias="file-version")
    location: str | None = None
    hash: HashEntry | None = None


class Payload(_CoswidModel):
    """Files making up the installed software."""

    files: list[FileEntry] = Field(default_factory=list, alias="file")


class SoftwareIdentity(_CoswidModel):
    """One CoSWID/SWID tag."""

    tag_id: str = Field(alias="tag-id", min_length=1)
    software_name: str = Field(default="", alias="software-name")
    software_version: str | None = Field(default=None, alias="software-version")
    version_scheme: VersionScheme | None = Field(default=None, alias="version-scheme")
    tag_version: int | None = Field(default=None, alias="tag-version", ge=0)
    corpus: bool | None = None
    patch: bool | None = None
    supplemental: bool | None = None
    lang: str | None = None
    entities: list[Entity] = Field(default_factory=list, alias="entity")
    links: list[Link] = Field(default_factory=list, alias="link")
    software_meta: list[SoftwareMeta] = Field(
        default_factory=list, alias="software-meta"
    )
    payload: Payload | None = None
    xml_name: XmlName | None = Field(default=None, exclude=True)

    def tag_id_uri(self) -> str:
        """Return the tag-id expressed as a ``swid:`` URI."""
        return f"{TAG_ID_URI_SCHEME}:{self.tag_id}"

    def add_link(self, link: Link) -> None:
        """Append a link; existing links are kept.

        Args:
            link: Link to append.
        """
        self.links.append(link)

    def add_entity(self, entity: Entity) -> None:
        """Append an entity.

        Args:
            entity: Entity to append.
        """
        self.entities.append(entity)

    def add_software_meta(self, meta: SoftwareMeta) -> None:
        """Append a software-meta block.

        Args:
            meta: Metadata to append.
        """
        self.software_meta.append(meta)

    def add_file(self, file: FileEntry) -> None:
        """Append a file to the payload, creating the payload when absent.

        Args:
            file: File entry to append.
        """
        if self.payload is None:
            self.payload = Payload()
        self.payload.files.append(file)
