"""Record stream: concatenated self-delimiting CoSWID CBOR items, optional zlib."""

from __future__ import annotations

import io
import logging
import zlib
from collections.abc import Iterable

import cbor2

from uswidkit.coswid import (
    CoswidDecodeError,
    SoftwareIdentity,
    encode_cbor,
    from_cbor_object,
)
from uswidkit.errors import (
    CompressionError,
    EmptyInputError,
    RecordDecodeError,
    ShortPayloadError,
)

_LOGGER = logging.getLogger(__name__)


class CountingReader(io.RawIOBase):
    """Read-only byte stream that reports how many bytes were handed out."""

    def __init__(self, data: bytes) -> None:
        """Wrap in-memory data.

        Args:
            data: Bytes to serve.
        """
        super().__init__()
        self._data = memoryview(data)
        self.consumed = 0

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def read(self, size: int = -1) -> bytes:
        start = self.consumed
        end = len(self._data) if size is None or size < 0 else start + size
        chunk = bytes(self._data[start:end])
        self.consumed += len(chunk)
        return chunk

    @property
    def remaining(self) -> int:
        """Bytes not yet read."""
        return len(self._data) - self.consumed


def encode_stream(records: Iterable[SoftwareIdentity], *, compress: bool) -> bytes:
    """Concatenate per-record CBOR items, compressing the whole stream if asked.

    Args:
        records: Identities in output order.
        compress: Whether to zlib-compress the concatenated stream.

    Returns:
        Stream bytes as they go into a container payload.
    """
    stream = b"".join(encode_cbor(record) for record in records)
    if not compress:
        return stream
    compressed = zlib.compress(stream)
    _LOGGER.debug(
        "Compressed record stream %d -> %d bytes", len(stream), len(compressed)
    )
    return compressed


def _inflate(payload: bytes, *, strict: bool) -> bytes:
    decompressor = zlib.decompressobj()
    try:
        inflated = decompressor.decompress(payload)
    except zlib.error as exc:
        raise CompressionError(f"malformed zlib stream: {exc}") from exc
    if not decompressor.eof:
        raise CompressionError("zlib stream ends before its final block")
    if decompressor.unused_data:
        _short_payload(
            f"zlib stream ends {len(decompressor.unused_data)} bytes before "
            "the declared payload length",
            strict=strict,
        )
    return inflated


def _short_payload(message: str, *, strict: bool) -> None:
    if strict:
        raise ShortPayloadError(message)
    _LOGGER.warning("Accepting short payload: %s", message)


def decode_stream(
    payload: bytes,
    payload_length: int,
    *,
    compressed: bool,
    strict: bool = True,
) -> list[SoftwareIdentity]:
    """Decode concatenated CoSWID items bounded by ``payload_length``.

    Bytes past ``payload_length`` are never parsed, so a payload can be sliced
    out of a larger buffer. A compressed payload is inflated first and its
    inflated stream is decoded until exhausted.

    Args:
        payload: Stream bytes, possibly followed by unrelated data.
        payload_length: Declared length of the stream in ``payload``.
        compressed: Whether the stream is zlib (RFC 1950) compressed.
        strict: Raise on a stream ending before ``payload_length``; otherwise
            log a warning and keep what was decoded.

    Returns:
        Decoded identities in stream order.

    Raises:
        EmptyInputError: If there is nothing to decode.
        CompressionError: If the zlib stream is malformed or incomplete.
        ShortPayloadError: If the stream ends early and ``strict`` is set.
        RecordDecodeError: If an item fails to decode.
    """
    bounded = bytes(payload[:payload_length])
    if not bounded:
        raise EmptyInputError("record stream is empty")
    if compressed:
        stream = _inflate(bounded, strict=strict)
        bound = len(stream)
    else:
        stream = bounded
        bound = payload_length

    reader = CountingReader(stream)
    decoder = cbor2.CBORDecoder(reader)
    records: list[SoftwareIdentity] = []
    while reader.consumed < bound:
        start = reader.consumed
        if reader.remaining == 0:
            _short_payload(
                f"record stream ends after {start} of {bound} bytes", strict=strict
            )
            break
        try:
            item = decoder.decode()
        except cbor2.CBORDecodeError as exc:
            raise RecordDecodeError(
                f"record {len(records)} is not valid CBOR: {exc}", offset=start
            ) from exc
        try:
            records.append(from_cbor_object(item))
        except CoswidDecodeError as exc:
            raise RecordDecodeError(
                f"record {len(records)} is not a CoSWID tag: {exc}", offset=start
            ) from exc
    _LOGGER.debug("Decoded %d records from %d byte stream", len(records), bound)
    return records
