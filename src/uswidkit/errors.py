"""Deterministic uSWID error contracts."""

from __future__ import annotations

from enum import StrEnum
from typing import Self


class UswidErrorCode(StrEnum):
    """Stable error codes for container, stream, and aggregation failures."""

    MAGIC_NOT_FOUND = "magic_not_found"
    UNSUPPORTED_HEADER_VERSION = "unsupported_header_version"
    TRUNCATED_CONTAINER = "truncated_container"
    RECORD_DECODE_FAILED = "record_decode_failed"
    SHORT_PAYLOAD = "short_payload"
    UNSUPPORTED_EXTENSION = "unsupported_extension"
    EMPTY_INPUT = "empty_input"
    MULTIPLE_IDENTITIES_IN_PARENT = "multiple_identities_in_parent"
    COMPRESSION_FAILED = "compression_failed"
    RECORD_NOT_FOUND = "record_not_found"


class UswidError(RuntimeError):
    """uSWID failure with stable code and optional source location."""

    code: UswidErrorCode = UswidErrorCode.RECORD_DECODE_FAILED

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        offset: int | None = None,
    ) -> None:
        """Create uSWID failure.

        Args:
            message: Human-readable error message.
            source: Optional input path the failure originated from.
            offset: Optional byte offset inside the source.
        """
        super().__init__(message)
        self.message = message
        self.source = source
        self.offset = offset

    def __str__(self) -> str:
        location = ""
        if self.source is not None:
            location = self.source
            if self.offset is not None:
                location = f"{location}@{self.offset:#x}"
            location = f"{location}: "
        elif self.offset is not None:
            location = f"offset {self.offset:#x}: "
        return f"{location}{self.message}"

    def in_source(self, source: str) -> Self:
        """Return a copy of this error annotated with its originating source.

        Raise the copy ``from`` the original so the cause chain is kept.

        Args:
            source: Input path or name being processed.

        Returns:
            Error of the same type carrying ``source``.
        """
        return type(self)(self.message, source=source, offset=self.offset)


class MagicNotFoundError(UswidError):
    """Raised when a blob holds no uSWID magic signature."""

    code = UswidErrorCode.MAGIC_NOT_FOUND


class UnsupportedHeaderVersionError(UswidError):
    """Raised when the container header version is not supported."""

    code = UswidErrorCode.UNSUPPORTED_HEADER_VERSION


class TruncatedContainerError(UswidError):
    """Raised when the declared payload runs past the end of the blob."""

    code = UswidErrorCode.TRUNCATED_CONTAINER


class RecordDecodeError(UswidError):
    """Raised when one identity record cannot be decoded."""

    code = UswidErrorCode.RECORD_DECODE_FAILED


class ShortPayloadError(UswidError):
    """Raised when a record stream ends before its declared length."""

    code = UswidErrorCode.SHORT_PAYLOAD


class UnsupportedExtensionError(UswidError):
    """Raised when no codec matches a requested output format."""

    code = UswidErrorCode.UNSUPPORTED_EXTENSION


class EmptyInputError(UswidError):
    """Raised when an input source holds no data or no records."""

    code = UswidErrorCode.EMPTY_INPUT


class MultipleIdentitiesInParentError(UswidError):
    """Raised when a parent source holds more than one identity."""

    code = UswidErrorCode.MULTIPLE_IDENTITIES_IN_PARENT


class CompressionError(UswidError):
    """Raised when a zlib stream is malformed or incomplete."""

    code = UswidErrorCode.COMPRESSION_FAILED


class RecordNotFoundError(UswidError):
    """Raised when a requested tag-id is absent from a collection."""

    code = UswidErrorCode.RECORD_NOT_FOUND
