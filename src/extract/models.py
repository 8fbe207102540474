"""Data models for extracted books and signs."""

from collections import Counter
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Literal

from tags import Tag


class ItemKind(Enum):
    """Classification of an item by its identifier."""

    WRITTEN_BOOK = "written_book"
    WRITABLE_BOOK = "writable_book"
    SHULKER_BOX = "shulker_box"
    BUNDLE = "bundle"
    COPPER_CHEST = "copper_chest"
    IGNORE = "ignore"


class BookKind(Enum):
    """Kind of book item."""

    WRITTEN = "written"
    WRITABLE = "writable"


@dataclass(frozen=True)
class Location:
    """Where a book or sign was found.

    ``describe()`` renders the text used in output files and as the location
    part of sign fingerprints, e.g.
    ``Chunk [3, 7] Inside minecraft:chest at (10 20 30) r.0.0.mca > shulker_box``.
    ``category`` is the container type used for statistics when it differs from
    the holder id (``Lectern``, ``Player Inventory``, ``Ender Chest``).
    """

    source: str
    location_type: Literal["Block Entity", "Entity", "Player"]
    container: str = ""
    chunk: tuple[int, int] | None = None
    position: tuple[int, int, int] | None = None
    preposition: str = "Inside"
    category: str = ""
    breadcrumbs: tuple[str, ...] = ()

    @property
    def container_type(self) -> str:
        return self.category or self.container or self.location_type

    def nested(self, crumb: str) -> "Location":
        """Return a copy one container level deeper."""
        return replace(self, breadcrumbs=(*self.breadcrumbs, crumb))

    def at(
        self,
        container: str,
        position: tuple[int, int, int] | None = None,
        category: str = "",
    ) -> "Location":
        """Return a copy pointing at a specific holder inside the same chunk or file."""
        return replace(self, container=container, position=position, category=category)

    def describe(self) -> str:
        parts = []
        if self.chunk is not None:
            parts.append(f"Chunk [{self.chunk[0]}, {self.chunk[1]}]")
        if self.container:
            parts.append(f"{self.preposition} {self.container}".strip())
        if self.position is not None:
            x, y, z = self.position
            parts.append(f"at ({x} {y} {z})")
        parts.append(self.source)
        text = " ".join(parts)
        for crumb in self.breadcrumbs:
            text += f" > {crumb}"
        return text

    def __str__(self) -> str:
        return self.describe()


@dataclass
class BookRecord:
    """A written book or book and quill with its decoded content."""

    kind: BookKind
    pages: list[str]
    raw_pages: list[str]
    pages_tag: Tag
    author: str = ""
    title: str = ""
    generation: int = 0
    source_format: Literal["legacy", "modern"] = "legacy"

    @property
    def page_count(self) -> int:
        return len(self.pages)


@dataclass
class SignRecord:
    """The front text of a sign."""

    raw_lines: tuple[str, str, str, str]
    lines: tuple[str, str, str, str]
    block_id: str = ""
    source_format: Literal["legacy", "modern"] = "legacy"

    @property
    def is_blank(self) -> bool:
        """True when every resolved line is empty."""
        return all(line == "" for line in self.lines)


@dataclass(frozen=True)
class CustomNameRecord:
    """A name given to an item with an anvil or to an entity with a name tag."""

    kind: Literal["item", "entity"]
    target_id: str
    name: str


@dataclass
class ExtractionOptions:
    """Which kinds of content a run extracts."""

    books: bool = True
    signs: bool = True
    custom_names: bool = False
    datapacks: bool = False


@dataclass
class ExtractionStats:
    """Counters for one extraction run."""

    books_total: int = 0
    books_unique: int = 0
    books_duplicate: int = 0
    signs_found: int = 0
    signs_duplicate: int = 0
    empty_signs_removed: int = 0
    custom_names_found: int = 0
    custom_names_duplicate: int = 0
    books_by_container: Counter = field(default_factory=Counter)
    books_by_location_type: Counter = field(default_factory=Counter)
    files_processed: int = 0
    files_skipped: int = 0
    chunks_processed: int = 0
    chunks_skipped: int = 0
    skipped_units: list[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    def skip(self, unit: str, is_chunk: bool = False) -> None:
        """Record a file or chunk that could not be processed."""
        if is_chunk:
            self.chunks_skipped += 1
        else:
            self.files_skipped += 1
        self.skipped_units.append(unit)
