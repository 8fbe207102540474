"""Binary NBT decoder.

Reads the big-endian tag format used by Minecraft Java Edition save files from an
already decompressed byte stream. Decompression belongs to ``saves``.

Usage:
    from tags.decoder import decode_bytes

    root = decode_bytes(raw_chunk_bytes)
"""

from __future__ import annotations

import io
import struct
from dataclasses import dataclass
from typing import BinaryIO

from .model import Tag, TagType

DEFAULT_MAX_DEPTH = 512
DEFAULT_MAX_BYTES = 128 * 1024 * 1024

_BYTE = struct.Struct(">b")
_UBYTE = struct.Struct(">B")
_SHORT = struct.Struct(">h")
_USHORT = struct.Struct(">H")
_INT = struct.Struct(">i")
_LONG = struct.Struct(">q")
_FLOAT = struct.Struct(">f")
_DOUBLE = struct.Struct(">d")

_CONTAINER_TYPES = frozenset({TagType.LIST, TagType.COMPOUND})


class DecodeError(Exception):
    """Malformed, truncated, too deep or oversized tag stream."""

    pass


def decode_string(raw: bytes) -> str:
    """Decode a tag string.

    Java writes "modified UTF-8": NUL as C0 80 and supplementary characters as
    surrogate pairs. Plain UTF-8 is tried first since almost all strings are valid.
    """
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        pass
    text = raw.replace(b"\xc0\x80", b"\x00").decode("utf-8", errors="surrogatepass")
    return text.encode("utf-16", errors="surrogatepass").decode("utf-16", errors="replace")


@dataclass
class _OpenContainer:
    """A list or compound whose children are still being read."""

    tag: Tag
    depth: int
    remaining: int = 0


class TagReader:
    """Reader over a binary stream, keyed on the type byte.

    Tracks nesting depth and the cumulative number of bytes consumed so that
    malformed or adversarial input fails with ``DecodeError`` instead of
    exhausting the stack or memory.
    """

    def __init__(
        self,
        stream: BinaryIO,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_bytes: int = DEFAULT_MAX_BYTES,
    ):
        self.stream = stream
        self.max_depth = max_depth
        self.max_bytes = max_bytes
        self.bytes_read = 0
        self._payload_readers = {
            TagType.BYTE: lambda: Tag(TagType.BYTE, self._unpack(_BYTE)),
            TagType.SHORT: lambda: Tag(TagType.SHORT, self._unpack(_SHORT)),
            TagType.INT: lambda: Tag(TagType.INT, self._unpack(_INT)),
            TagType.LONG: lambda: Tag(TagType.LONG, self._unpack(_LONG)),
            TagType.FLOAT: lambda: Tag(TagType.FLOAT, self._unpack(_FLOAT)),
            TagType.DOUBLE: lambda: Tag(TagType.DOUBLE, self._unpack(_DOUBLE)),
            TagType.BYTE_ARRAY: self._read_byte_array,
            TagType.STRING: lambda: Tag(TagType.STRING, self._read_string()),
            TagType.INT_ARRAY: lambda: self._read_number_array(TagType.INT_ARRAY, 4, "i"),
            TagType.LONG_ARRAY: lambda: self._read_number_array(TagType.LONG_ARRAY, 8, "q"),
        }

    # Low-level reads

    def _read(self, count: int) -> bytes:
        if self.bytes_read + count > self.max_bytes:
            raise DecodeError(
                f"Tag data exceeds the {self.max_bytes} byte budget "
                f"(at offset {self.bytes_read}, requested {count})"
            )
        data = self.stream.read(count)
        if len(data) != count:
            raise DecodeError(
                f"Unexpected end of stream at offset {self.bytes_read}: "
                f"wanted {count} bytes, got {len(data)}"
            )
        self.bytes_read += count
        return data

    def _unpack(self, fmt: struct.Struct):
        return fmt.unpack(self._read(fmt.size))[0]

    def _read_length(self, item_size: int) -> int:
        length = self._unpack(_INT)
        if length < 0:
            raise DecodeError(f"Negative length prefix {length} at offset {self.bytes_read}")
        if self.bytes_read + length * item_size > self.max_bytes:
            raise DecodeError(
                f"Length prefix {length} exceeds the {self.max_bytes} byte budget"
            )
        return length

    def _read_type(self) -> TagType:
        type_id = self._unpack(_UBYTE)
        try:
            return TagType(type_id)
        except ValueError:
            raise DecodeError(
                f"Unknown tag type {type_id} at offset {self.bytes_read - 1}"
            ) from None

    def _read_string(self) -> str:
        length = self._unpack(_USHORT)
        return decode_string(self._read(length))

    # Payloads

    def _read_byte_array(self) -> Tag:
        length = self._read_length(1)
        return Tag(TagType.BYTE_ARRAY, self._read(length))

    def _read_number_array(self, tag_type: TagType, width: int, code: str) -> Tag:
        length = self._read_length(width)
        values = struct.unpack(f">{length}{code}", self._read(length * width))
        return Tag(tag_type, values)

    def _open(self, tag_type: TagType, depth: int) -> _OpenContainer:
        """Start a list or compound: check depth and read a list's element header."""
        if depth > self.max_depth:
            raise DecodeError(f"Tag nesting exceeds maximum depth of {self.max_depth}")
        if tag_type == TagType.COMPOUND:
            return _OpenContainer(Tag(TagType.COMPOUND, {}), depth)
        element_type = self._read_type()
        length = self._read_length(1)
        if element_type == TagType.END and length > 0:
            raise DecodeError(f"List of END tags with non-zero length {length}")
        return _OpenContainer(Tag(TagType.LIST, [], element_type), depth, length)

    def _read_nested(self, tag_type: TagType, depth: int) -> Tag:
        # Lists and compounds are filled through an explicit stack, so the nesting
        # limit is max_depth and never the interpreter's recursion limit.
        outermost = self._open(tag_type, depth)
        stack = [outermost]
        while stack:
            current = stack[-1]
            parent = current.tag
            if parent.type == TagType.COMPOUND:
                child_type = self._read_type()
                if child_type == TagType.END:
                    stack.pop()
                    continue
                key = self._read_string()
            else:
                if current.remaining == 0:
                    stack.pop()
                    continue
                current.remaining -= 1
                child_type = parent.element_type
                key = None

            if child_type in _CONTAINER_TYPES:
                opened = self._open(child_type, current.depth + 1)
                stack.append(opened)
                child = opened.tag
            else:
                child = self.read_payload(child_type, current.depth + 1)

            if key is None:
                parent.value.append(child)
            else:
                parent.value[key] = child
        return outermost.tag

    def read_payload(self, tag_type: TagType, depth: int = 0) -> Tag:
        """Read the payload of a tag whose type byte has already been consumed."""
        if tag_type in _CONTAINER_TYPES:
            return self._read_nested(tag_type, depth)
        if depth > self.max_depth:
            raise DecodeError(f"Tag nesting exceeds maximum depth of {self.max_depth}")
        if tag_type == TagType.END:
            return Tag.end()
        return self._payload_readers[tag_type]()

    def read_named(self) -> tuple[str, Tag]:
        """Read one named tag: type byte, name, payload."""
        tag_type = self._read_type()
        if tag_type == TagType.END:
            return "", Tag.end()
        name = self._read_string()
        return name, self.read_payload(tag_type)


def read_named(
    stream: BinaryIO,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> tuple[str, Tag]:
    """Read one named tag from a stream and return ``(name, tag)``."""
    return TagReader(stream, max_depth=max_depth, max_bytes=max_bytes).read_named()


def decode_root(
    stream: BinaryIO,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> Tag:
    """Decode a root compound from a decompressed stream.

    Args:
        stream: Readable binary stream positioned at the root type byte
        max_depth: Maximum nesting depth before failing
        max_bytes: Maximum cumulative bytes to consume before failing

    Returns:
        The root COMPOUND tag

    Raises:
        DecodeError: If the stream is malformed or the root is not a compound
    """
    _, root = read_named(stream, max_depth=max_depth, max_bytes=max_bytes)
    if root.type != TagType.COMPOUND:
        raise DecodeError(f"Root tag must be a COMPOUND, got {root.type.name}")
    return root


def decode_bytes(
    data: bytes,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> Tag:
    """Decode a root compound from an in-memory buffer."""
    return decode_root(io.BytesIO(data), max_depth=max_depth, max_bytes=max_bytes)
