"""Binary NBT encoder, the inverse of ``tags.decoder``.

Used to build synthetic save data (region chunks, player files) and to check
that decoding is lossless.
"""

from __future__ import annotations

import io
import struct
from typing import BinaryIO

from .model import Tag, TagType


def encode_string(text: str) -> bytes:
    data = text.encode("utf-8", errors="surrogatepass")
    if len(data) > 0xFFFF:
        raise ValueError(f"String of {len(data)} bytes is too long for a tag string")
    return struct.pack(">H", len(data)) + data


class TagWriter:
    """Serialise ``Tag`` trees to a binary stream."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream

    def _write(self, data: bytes) -> None:
        self.stream.write(data)

    def write_payload(self, tag: Tag) -> None:
        tag_type = tag.type
        if tag_type == TagType.END:
            return
        if tag_type == TagType.BYTE:
            self._write(struct.pack(">b", tag.value))
        elif tag_type == TagType.SHORT:
            self._write(struct.pack(">h", tag.value))
        elif tag_type == TagType.INT:
            self._write(struct.pack(">i", tag.value))
        elif tag_type == TagType.LONG:
            self._write(struct.pack(">q", tag.value))
        elif tag_type == TagType.FLOAT:
            self._write(struct.pack(">f", tag.value))
        elif tag_type == TagType.DOUBLE:
            self._write(struct.pack(">d", tag.value))
        elif tag_type == TagType.BYTE_ARRAY:
            self._write(struct.pack(">i", len(tag.value)) + bytes(tag.value))
        elif tag_type == TagType.STRING:
            self._write(encode_string(tag.value))
        elif tag_type == TagType.LIST:
            self._write(struct.pack(">Bi", tag.element_type, len(tag.value)))
            for item in tag.value:
                self.write_payload(item)
        elif tag_type == TagType.COMPOUND:
            for name, child in tag.value.items():
                self.write_named(name, child)
            self._write(struct.pack(">B", TagType.END))
        elif tag_type == TagType.INT_ARRAY:
            values = tag.value
            self._write(struct.pack(f">i{len(values)}i", len(values), *values))
        elif tag_type == TagType.LONG_ARRAY:
            values = tag.value
            self._write(struct.pack(f">i{len(values)}q", len(values), *values))
        else:
            raise ValueError(f"Cannot encode tag type {tag_type!r}")

    def write_named(self, name: str, tag: Tag) -> None:
        self._write(struct.pack(">B", tag.type))
        if tag.type == TagType.END:
            return
        self._write(encode_string(name))
        self.write_payload(tag)


def write_named(stream: BinaryIO, name: str, tag: Tag) -> None:
    """Write one named tag (type byte, name, payload) to a stream."""
    TagWriter(stream).write_named(name, tag)


def encode_root(tag: Tag, name: str = "") -> bytes:
    """Encode a root tag to bytes, ready for compression or ``decode_bytes``."""
    buffer = io.BytesIO()
    write_named(buffer, name, tag)
    return buffer.getvalue()
