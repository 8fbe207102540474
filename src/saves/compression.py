"""Bounded decompression for chunk payloads and single-document save files."""

import io
import zlib
from pathlib import Path
from typing import BinaryIO

from common.env import env

GZIP_MAGIC = b"\x1f\x8b"

COMPRESSION_GZIP = 1
COMPRESSION_ZLIB = 2
COMPRESSION_NONE = 3
COMPRESSION_LZ4 = 4

# zlib window bits: 16 + MAX_WBITS selects the gzip container
_WBITS = {
    COMPRESSION_GZIP: 16 + zlib.MAX_WBITS,
    COMPRESSION_ZLIB: zlib.MAX_WBITS,
}
_NAMES = {COMPRESSION_GZIP: "gzip", COMPRESSION_ZLIB: "zlib"}


class CompressedDataError(OSError):
    """Corrupt, unsupported or oversized compressed data."""

    pass


def inflate(data: bytes, compression: int, max_bytes: int) -> bytes:
    """Decompress ``data`` without ever producing more than ``max_bytes``.

    Args:
        data: Compressed payload
        compression: Region compression id (gzip, zlib, none)
        max_bytes: Largest decompressed size accepted

    Returns:
        Decompressed bytes

    Raises:
        CompressedDataError: If the payload is corrupt, truncated, uses an
            unsupported compression or inflates past ``max_bytes``
    """
    if compression == COMPRESSION_NONE:
        inflated = data
    elif compression in _WBITS:
        decompressor = zlib.decompressobj(_WBITS[compression])
        try:
            inflated = decompressor.decompress(data, max_bytes + 1)
        except zlib.error as e:
            raise CompressedDataError(f"Corrupt {_NAMES[compression]} data: {e}") from e
        if len(inflated) <= max_bytes and not decompressor.eof:
            raise CompressedDataError(f"Truncated {_NAMES[compression]} data")
    elif compression == COMPRESSION_LZ4:
        raise CompressedDataError("LZ4-compressed data is not supported")
    else:
        raise CompressedDataError(f"Unknown compression type {compression}")

    if len(inflated) > max_bytes:
        raise CompressedDataError(f"Decompressed data exceeds the {max_bytes} byte budget")
    return inflated


def sniff_compression(data: bytes) -> int:
    """Guess the compression of a whole file: gzip, zlib or none."""
    if data[:2] == GZIP_MAGIC:
        return COMPRESSION_GZIP
    # zlib header: CMF 0x78 with a valid FCHECK
    if len(data) >= 2 and data[0] == 0x78 and (data[0] << 8 | data[1]) % 31 == 0:
        return COMPRESSION_ZLIB
    return COMPRESSION_NONE


def decompress(data: bytes, max_bytes: int | None = None) -> bytes:
    """Decompress a whole-file payload, sniffing gzip, then zlib, then raw.

    Raises:
        CompressedDataError: If the data looks compressed but is corrupt or too large
    """
    if max_bytes is None:
        max_bytes = env.max_tag_bytes()
    return inflate(data, sniff_compression(data), max_bytes)


def open_document(path: Path, max_bytes: int | None = None) -> BinaryIO:
    """Open a compressed single-document file (player data, level.dat) as a stream."""
    return io.BytesIO(decompress(Path(path).read_bytes(), max_bytes=max_bytes))
