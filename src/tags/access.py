"""Null-safe, type-coercing accessors over decoded tag trees.

Every function here is total: it accepts ``None`` or a tag of the wrong type and
returns a documented default instead of raising. The same logical field can be
absent, empty, or differently shaped depending on the save-format version, so
callers rely on these defaults rather than checking types themselves.

Usage:
    from tags.access import get_compound, get_string

    components = get_compound(item, "components")
    item_id = get_string(item, "id")
"""

from __future__ import annotations

import json
from typing import Any

from .model import INTEGER_TYPES, NUMERIC_TYPES, Tag, TagType


def _is_compound(tag: Tag | None) -> bool:
    return tag is not None and tag.type == TagType.COMPOUND


def _is_list(tag: Tag | None) -> bool:
    return tag is not None and tag.type == TagType.LIST


def has_key(compound: Tag | None, key: str) -> bool:
    """Check whether a compound holds ``key``; False for anything that is not a compound."""
    return _is_compound(compound) and key in compound.value


def get_tag(compound: Tag | None, key: str) -> Tag | None:
    """Return the raw child tag for ``key``, or None."""
    if not _is_compound(compound):
        return None
    return compound.value.get(key)


def first_present(compound: Tag | None, keys: tuple[str, ...]) -> str | None:
    """Return the first key of ``keys`` present in ``compound``, or None.

    Used for version fallbacks where a field was renamed between formats,
    e.g. ``("block_entities", "TileEntities")``.
    """
    for key in keys:
        if has_key(compound, key):
            return key
    return None


def get_compound(compound: Tag | None, key: str) -> Tag:
    """Return the child compound for ``key``, or a new empty compound."""
    child = get_tag(compound, key)
    if _is_compound(child):
        return child
    return Tag.compound()


def get_list(compound: Tag | None, key: str) -> Tag:
    """Return the child list for ``key``, or a new empty list."""
    child = get_tag(compound, key)
    if _is_list(child) and child.value:
        return child
    return Tag.list(TagType.END)


def get_compound_list(compound: Tag | None, key: str) -> list[Tag]:
    """Return the elements of a list of compounds, or [] for any other shape."""
    child = get_list(compound, key)
    if child.element_type != TagType.COMPOUND:
        return []
    return list(child.value)


def get_string(compound: Tag | None, key: str) -> str:
    """Return the string value for ``key``, or "" if missing or not a string."""
    child = get_tag(compound, key)
    if child is not None and child.type == TagType.STRING:
        return child.value
    return ""


def _as_number(tag: Tag | None) -> int | float | None:
    if tag is not None and tag.type in NUMERIC_TYPES:
        return tag.value
    return None


def get_int(compound: Tag | None, key: str, default: int = 0) -> int:
    """Return any numeric child as an int (truncating toward zero)."""
    number = _as_number(get_tag(compound, key))
    if number is None:
        return default
    try:
        return int(number)
    except (OverflowError, ValueError):
        # inf / nan floats
        return default


def _element_at(items: Tag | None, index: int) -> Tag | None:
    if not _is_list(items) or index < 0 or index >= len(items.value):
        return None
    return items.value[index]


def get_double_at(items: Tag | None, index: int) -> float:
    """Return element ``index`` of a list as a float.

    Numeric elements are coerced. String elements are parsed as decimal text,
    which very old saves used for entity positions. Anything else is 0.0.
    """
    element = _element_at(items, index)
    if element is None:
        return 0.0
    number = _as_number(element)
    if number is not None:
        return float(number)
    if element.type == TagType.STRING:
        try:
            return float(element.value.strip())
        except ValueError:
            return 0.0
    return 0.0


def get_compound_at(items: Tag | None, index: int) -> Tag:
    """Return element ``index`` of a list if it is a compound, else an empty compound."""
    element = _element_at(items, index)
    if _is_compound(element):
        return element
    return Tag.compound()


def get_string_at(items: Tag | None, index: int) -> str:
    """Return element ``index`` of a list as text.

    Strings are returned as-is. Compounds are serialised to JSON text, which is
    how newer saves store rich-text sign lines. Other tags use ``to_text``.
    """
    element = _element_at(items, index)
    if element is None:
        return ""
    if element.type == TagType.STRING:
        return element.value
    if element.type == TagType.COMPOUND:
        return to_json(element)
    return to_text(element)


def _scalar_python(tag: Tag) -> Any:
    if tag.type == TagType.END:
        return None
    if tag.type == TagType.BYTE_ARRAY:
        return [b - 256 if b > 127 else b for b in tag.value]
    if tag.type in (TagType.INT_ARRAY, TagType.LONG_ARRAY):
        return list(tag.value)
    return tag.value


def to_python(tag: Tag | None) -> Any:
    """Convert a tag tree to plain JSON-compatible Python values.

    Containers are converted with an explicit stack, so any tree the decoder
    accepts converts without hitting the interpreter's recursion limit.
    """
    if tag is None:
        return None
    root: list[Any] = []
    # (tag, container to append the converted value to, key or None for lists)
    pending: list[tuple[Tag, Any, str | None]] = [(tag, root, None)]
    while pending:
        node, parent, key = pending.pop()
        if node.type == TagType.COMPOUND:
            value: Any = {}
            pending.extend((child, value, name) for name, child in reversed(node.value.items()))
        elif node.type == TagType.LIST:
            value = []
            pending.extend((child, value, None) for child in reversed(node.value))
        else:
            value = _scalar_python(node)
        if key is None:
            parent.append(value)
        else:
            parent[key] = value
    return root[0]


def to_json(tag: Tag | None, indent: int | None = None) -> str:
    """Serialise a tag tree to JSON text (compact unless ``indent`` is given)."""
    separators = None if indent is not None else (",", ":")
    return json.dumps(to_python(tag), ensure_ascii=False, indent=indent, separators=separators)


def to_text(tag: Tag | None) -> str:
    """Generic text form of a tag: scalars as their value, containers as JSON."""
    if tag is None or tag.type == TagType.END:
        return ""
    if tag.type == TagType.STRING:
        return tag.value
    if tag.type in INTEGER_TYPES or tag.type in (TagType.FLOAT, TagType.DOUBLE):
        return str(tag.value)
    return to_json(tag)
