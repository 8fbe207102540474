"""In-memory representation of decoded NBT (Named Binary Tag) trees.

Every node is a ``Tag``: a ``TagType`` discriminator plus a payload whose Python
shape depends on the type:

    END                         None
    BYTE/SHORT/INT/LONG         int
    FLOAT/DOUBLE                float
    BYTE_ARRAY                  bytes
    INT_ARRAY/LONG_ARRAY        tuple[int, ...]
    STRING                      str
    LIST                        list[Tag]   (element type in ``element_type``)
    COMPOUND                    dict[str, Tag]

Example:
    >>> book = Tag.compound({"id": Tag.string("minecraft:written_book")})
    >>> book.value["id"].value
    'minecraft:written_book'
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class TagType(IntEnum):
    """Wire ids of the NBT tag types."""

    END = 0
    BYTE = 1
    SHORT = 2
    INT = 3
    LONG = 4
    FLOAT = 5
    DOUBLE = 6
    BYTE_ARRAY = 7
    STRING = 8
    LIST = 9
    COMPOUND = 10
    INT_ARRAY = 11
    LONG_ARRAY = 12


INTEGER_TYPES = frozenset({TagType.BYTE, TagType.SHORT, TagType.INT, TagType.LONG})
NUMERIC_TYPES = INTEGER_TYPES | {TagType.FLOAT, TagType.DOUBLE}
ARRAY_TYPES = frozenset({TagType.BYTE_ARRAY, TagType.INT_ARRAY, TagType.LONG_ARRAY})


@dataclass(eq=True)
class Tag:
    """A single node of a decoded tag tree."""

    type: TagType
    value: Any = None
    element_type: TagType = TagType.END

    # Constructors

    @classmethod
    def end(cls) -> Tag:
        return cls(TagType.END)

    @classmethod
    def byte(cls, value: int) -> Tag:
        return cls(TagType.BYTE, int(value))

    @classmethod
    def short(cls, value: int) -> Tag:
        return cls(TagType.SHORT, int(value))

    @classmethod
    def int(cls, value: int) -> Tag:
        return cls(TagType.INT, int(value))

    @classmethod
    def long(cls, value: int) -> Tag:
        return cls(TagType.LONG, int(value))

    @classmethod
    def float(cls, value: float) -> Tag:
        return cls(TagType.FLOAT, float(value))

    @classmethod
    def double(cls, value: float) -> Tag:
        return cls(TagType.DOUBLE, float(value))

    @classmethod
    def byte_array(cls, value: bytes) -> Tag:
        return cls(TagType.BYTE_ARRAY, bytes(value))

    @classmethod
    def int_array(cls, values) -> Tag:
        return cls(TagType.INT_ARRAY, tuple(values))

    @classmethod
    def long_array(cls, values) -> Tag:
        return cls(TagType.LONG_ARRAY, tuple(values))

    @classmethod
    def string(cls, value: str) -> Tag:
        return cls(TagType.STRING, value)

    @classmethod
    def list(cls, element_type: TagType, items=()) -> Tag:
        """Build a LIST tag.

        Args:
            element_type: Declared type of every element (END for an empty list)
            items: Elements, all of ``element_type``

        Raises:
            ValueError: If an element does not match ``element_type``
        """
        items = [*items]
        for item in items:
            if item.type != element_type:
                raise ValueError(
                    f"List of {element_type.name} cannot hold a {item.type.name} element"
                )
        return cls(TagType.LIST, items, TagType(element_type))

    @classmethod
    def compound(cls, entries: dict[str, Tag] | None = None) -> Tag:
        return cls(TagType.COMPOUND, dict(entries or {}))

    # Predicates

    @property
    def is_compound(self) -> bool:
        return self.type == TagType.COMPOUND

    @property
    def is_list(self) -> bool:
        return self.type == TagType.LIST

    @property
    def is_string(self) -> bool:
        return self.type == TagType.STRING

    @property
    def is_numeric(self) -> bool:
        return self.type in NUMERIC_TYPES

    @property
    def size(self) -> int:
        """Number of children for containers and arrays, 0 for everything else."""
        if self.type in (TagType.LIST, TagType.COMPOUND) or self.type in ARRAY_TYPES:
            return len(self.value)
        return 0

    def __repr__(self) -> str:
        if self.type == TagType.LIST:
            return f"Tag.list({self.element_type.name}, {self.value!r})"
        return f"Tag.{self.type.name.lower()}({self.value!r})"
