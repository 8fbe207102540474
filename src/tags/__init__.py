"""NBT (Named Binary Tag) model, codec and accessors.

Example:
    >>> from tags import Tag, decode_bytes, encode_root, get_string
    >>>
    >>> data = encode_root(Tag.compound({"id": Tag.string("minecraft:chest")}))
    >>> get_string(decode_bytes(data), "id")
    'minecraft:chest'
"""

from .access import (
    first_present,
    get_compound,
    get_compound_at,
    get_compound_list,
    get_double_at,
    get_int,
    get_list,
    get_string,
    get_string_at,
    get_tag,
    has_key,
    to_json,
    to_python,
    to_text,
)
from .decoder import DecodeError, decode_bytes, decode_root, read_named
from .encoder import encode_root, write_named
from .model import Tag, TagType

__all__ = [
    # Model
    "Tag",
    "TagType",
    # Codec
    "DecodeError",
    "decode_bytes",
    "decode_root",
    "read_named",
    "encode_root",
    "write_named",
    # Accessors
    "first_present",
    "get_compound",
    "get_compound_at",
    "get_compound_list",
    "get_double_at",
    "get_int",
    "get_list",
    "get_string",
    "get_string_at",
    "get_tag",
    "has_key",
    "to_json",
    "to_python",
    "to_text",
]
