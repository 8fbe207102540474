"""Chunk access for Anvil region files (``r.<X>.<Z>.mca``).

The container itself is read with ``nbt.region.RegionFile`` from the NBT
package, which parses the 32x32 location table and checks every chunk header.
Chunk payloads are inflated here against a byte budget and handed to ``tags``
for decoding.

If a chunk's compression byte has its high bit set, the payload lives in an
external ``c.<X>.<Z>.mcc`` file next to the region file (chunks over 1 MiB).
"""

import gzip
import io
import re
import struct
import zlib
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

from nbt.region import (
    SECTOR_LENGTH,
    STATUS_CHUNK_IN_HEADER,
    STATUS_CHUNK_NOT_CREATED,
    STATUS_CHUNK_OUT_OF_FILE,
    STATUS_CHUNK_ZERO_LENGTH,
    RegionFileFormatError,
)
from nbt.region import RegionFile as NbtRegionFile

from common.env import env
from common.logger import get_logger

from .compression import (
    COMPRESSION_GZIP,
    COMPRESSION_NONE,
    COMPRESSION_ZLIB,
    CompressedDataError,
    inflate,
)

logger = get_logger(__name__)

SECTOR_SIZE = SECTOR_LENGTH
CHUNKS_PER_SIDE = 32
HEADER_SIZE = 2 * SECTOR_SIZE
EXTERNAL_FLAG = 0x80

REGION_NAME_PATTERN = re.compile(r"^r\.(-?\d+)\.(-?\d+)\.mc[ar]$")

# Chunk header states the NBT package reports for entries it cannot read
_UNREADABLE = {
    STATUS_CHUNK_IN_HEADER: "points into the region header",
    STATUS_CHUNK_OUT_OF_FILE: "points past end of file",
    STATUS_CHUNK_ZERO_LENGTH: "has zero length",
}


class RegionFileError(Exception):
    """Unreadable region file or chunk payload."""

    pass


def parse_region_coords(filename: str) -> tuple[int, int] | None:
    """Parse region coordinates from a name like ``r.-1.2.mca``."""
    match = REGION_NAME_PATTERN.match(filename)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


class RegionFile:
    """Random access to the chunks of one region file.

    Example:
        >>> region = RegionFile(Path("world/region/r.0.0.mca"))
        >>> for x, z in region.present_chunks():
        ...     stream = region.chunk_stream(x, z)
    """

    def __init__(self, path: Path, max_bytes: int | None = None):
        self.path = Path(path)
        self.max_bytes = max_bytes if max_bytes is not None else env.max_tag_bytes()
        self.coords = parse_region_coords(self.path.name)
        self.data = self.path.read_bytes()
        # Zero-byte region files are left behind by the game and hold no chunks
        self._region = None
        if self.data:
            try:
                self._region = NbtRegionFile(fileobj=io.BytesIO(self.data))
            except RegionFileFormatError as e:
                raise RegionFileError(
                    f"{self.path.name}: unreadable region header ({len(self.data)} bytes): {e}"
                ) from e

    def _metadata(self, x: int, z: int):
        if not (0 <= x < CHUNKS_PER_SIDE and 0 <= z < CHUNKS_PER_SIDE):
            raise RegionFileError(f"Chunk coordinates out of range: ({x}, {z})")
        if self._region is None:
            return None
        return self._region.metadata[x, z]

    def has_chunk(self, x: int, z: int) -> bool:
        meta = self._metadata(x, z)
        return meta is not None and meta.status != STATUS_CHUNK_NOT_CREATED

    def present_chunks(self) -> Iterator[tuple[int, int]]:
        """Yield local ``(x, z)`` coordinates of every stored chunk, x-major."""
        for x in range(CHUNKS_PER_SIDE):
            for z in range(CHUNKS_PER_SIDE):
                if self.has_chunk(x, z):
                    yield x, z

    def _external_path(self, x: int, z: int) -> Path:
        if self.coords is None:
            raise RegionFileError(
                f"{self.path.name}: external chunk but region coordinates are unknown"
            )
        region_x, region_z = self.coords
        chunk_x = region_x * CHUNKS_PER_SIDE + x
        chunk_z = region_z * CHUNKS_PER_SIDE + z
        return self.path.with_name(f"c.{chunk_x}.{chunk_z}.mcc")

    def _payload(self, x: int, z: int, meta) -> tuple[bytes, int]:
        """Return the compressed payload of a chunk and its compression id."""
        if meta.compression is not None and meta.compression & EXTERNAL_FLAG:
            external = self._external_path(x, z)
            try:
                return external.read_bytes(), meta.compression & ~EXTERNAL_FLAG
            except OSError as e:
                raise RegionFileError(f"Missing external chunk file {external.name}") from e

        if meta.status in _UNREADABLE:
            raise RegionFileError(
                f"{self.path.name}: chunk ({x}, {z}) {_UNREADABLE[meta.status]}"
            )
        start = meta.blockstart * SECTOR_SIZE + 5
        return self.data[start : start + meta.length - 1], meta.compression

    def chunk_bytes(self, x: int, z: int) -> bytes | None:
        """Return the decompressed tag data of a chunk, or None if absent.

        Raises:
            RegionFileError: If the chunk entry or payload is corrupt, or the
                payload inflates past the byte budget
        """
        if not self.has_chunk(x, z):
            return None
        payload, compression = self._payload(x, z, self._metadata(x, z))
        try:
            return inflate(payload, compression, self.max_bytes)
        except CompressedDataError as e:
            raise RegionFileError(f"{self.path.name}: chunk ({x}, {z}): {e}") from e

    def chunk_stream(self, x: int, z: int) -> BinaryIO | None:
        """Return a decompressed byte stream for a chunk, or None if absent."""
        data = self.chunk_bytes(x, z)
        if data is None:
            return None
        return io.BytesIO(data)


def write_region(path: Path, chunks: dict[tuple[int, int], bytes], compression: int = 2) -> None:
    """Write a region file from raw (uncompressed) chunk tag data.

    Used to build fixture worlds. Every chunk is stored inline.

    Args:
        path: Destination ``.mca`` file
        chunks: Mapping of local ``(x, z)`` to encoded root tag bytes
        compression: Compression type to store (gzip, zlib or none)
    """
    header = bytearray(HEADER_SIZE)
    body = bytearray()
    next_sector = 2

    for (x, z), raw in sorted(chunks.items()):
        if compression == COMPRESSION_GZIP:
            payload = gzip.compress(raw)
        elif compression == COMPRESSION_ZLIB:
            payload = zlib.compress(raw)
        elif compression == COMPRESSION_NONE:
            payload = raw
        else:
            raise ValueError(f"Cannot write compression type {compression}")

        record = struct.pack(">IB", len(payload) + 1, compression) + payload
        record += b"\x00" * ((-len(record)) % SECTOR_SIZE)
        sectors = len(record) // SECTOR_SIZE
        if sectors > 0xFF:
            raise ValueError(f"Chunk ({x}, {z}) is too large for an inline region entry")

        struct.pack_into(">I", header, 4 * (x + z * CHUNKS_PER_SIDE), next_sector << 8 | sectors)
        body += record
        next_sector += sectors

    Path(path).write_bytes(bytes(header) + bytes(body))
    logger.debug(f"Wrote region file {Path(path).name} with {len(chunks)} chunk(s)")
