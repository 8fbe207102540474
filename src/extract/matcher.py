"""Version-tolerant matching of item, book and sign tag shapes.

Minecraft changed where the same information lives several times. Each family of
shapes below is an ordered table of ``Shape`` strategies; the first one whose
predicate matches a node is used, legacy layouts first:

    Books       tag.pages / tag.author / tag.title                   (pre-1.20.5)
                components."minecraft:written_book_content"          (1.20.5+)
    Containers  tag.BlockEntityTag.Items        direct item list     (pre-1.20.5)
                components."minecraft:container" slot records        (1.20.5+)
                components."minecraft:bundle_contents" direct list   (bundles)
    Signs       Text1..Text4                                         (pre-1.20)
                front_text.messages                                  (1.20+)
    Names       tag.display.Name                                     (pre-1.20.5)
                components."minecraft:custom_name"                   (1.20.5+)
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from common.constants import (
    BUNDLE_CONTENTS_COMPONENT,
    BUNDLE_MARKER,
    CONTAINER_COMPONENT,
    COPPER_CHEST_MARKER,
    CUSTOM_NAME_COMPONENT,
    SHULKER_BOX_MARKER,
    WRITABLE_BOOK_CONTENT,
    WRITABLE_BOOK_ID,
    WRITTEN_BOOK_CONTENT,
    WRITTEN_BOOK_ID,
)
from common.logger import get_logger
from tags import (
    Tag,
    TagType,
    get_compound,
    get_compound_list,
    get_int,
    get_list,
    get_string,
    get_string_at,
    get_tag,
    has_key,
    to_json,
    to_text,
)

from .models import BookKind, BookRecord, CustomNameRecord, ItemKind, SignRecord
from .text import page_text, resolve_rich_text, sign_line_text, strip_formatting

logger = get_logger(__name__)


@dataclass(frozen=True)
class Shape:
    """One historical layout: a predicate and the extractor to use when it matches."""

    name: str
    matches: Callable[[Tag], bool]
    extract: Callable


def first_matching(shapes: tuple[Shape, ...], node: Tag) -> Shape | None:
    """Return the first shape whose predicate accepts ``node``."""
    for shape in shapes:
        if shape.matches(node):
            return shape
    return None


# Item classification


def classify_item(item: Tag) -> ItemKind:
    """Classify an item compound by its ``id``."""
    item_id = get_string(item, "id")
    if item_id == WRITTEN_BOOK_ID:
        return ItemKind.WRITTEN_BOOK
    if item_id == WRITABLE_BOOK_ID:
        return ItemKind.WRITABLE_BOOK
    if SHULKER_BOX_MARKER in item_id:
        return ItemKind.SHULKER_BOX
    if BUNDLE_MARKER in item_id:
        return ItemKind.BUNDLE
    if COPPER_CHEST_MARKER in item_id:
        return ItemKind.COPPER_CHEST
    return ItemKind.IGNORE


# Books

_BOOK_KINDS = {
    ItemKind.WRITTEN_BOOK: BookKind.WRITTEN,
    ItemKind.WRITABLE_BOOK: BookKind.WRITABLE,
}

_CONTENT_COMPONENTS = {
    BookKind.WRITTEN: WRITTEN_BOOK_CONTENT,
    BookKind.WRITABLE: WRITABLE_BOOK_CONTENT,
}

BOOK_SHAPES: tuple[Shape, ...] = (
    Shape(
        name="legacy",
        matches=lambda item: has_key(item, "tag"),
        extract=lambda item, kind: get_compound(item, "tag"),
    ),
    Shape(
        name="modern",
        matches=lambda item: has_key(item, "components"),
        extract=lambda item, kind: get_compound(
            get_compound(item, "components"), _CONTENT_COMPONENTS[kind]
        ),
    ),
)


def filterable_text(tag: Tag | None) -> str:
    """Text of a plain string or of a filterable string (``{raw, filtered}``)."""
    if tag is None:
        return ""
    if tag.type == TagType.STRING:
        return tag.value
    if tag.type == TagType.COMPOUND:
        if has_key(tag, "raw"):
            return get_string(tag, "raw")
        return get_string(tag, "filtered")
    return ""


def extract_book(item: Tag, kind: BookKind) -> BookRecord | None:
    """Extract a book's pages and metadata, or None if it has no pages.

    Author is always a plain string; title is a plain string in legacy data and
    a filterable-string compound in modern data.
    """
    shape = first_matching(BOOK_SHAPES, item)
    if shape is None:
        logger.debug(f"      {kind.value.capitalize()} book has no tag or components")
        return None

    content = shape.extract(item, kind)
    pages_tag = get_list(content, "pages")
    if not pages_tag.value:
        logger.debug(
            f"      {kind.value.capitalize()} book has no pages (format: {shape.name})"
        )
        return None

    raw_pages = [filterable_text(page) for page in pages_tag.value]
    book = BookRecord(
        kind=kind,
        pages=[page_text(raw) for raw in raw_pages],
        raw_pages=raw_pages,
        pages_tag=pages_tag,
        generation=get_int(content, "generation"),
        source_format=shape.name,
    )
    if kind == BookKind.WRITTEN:
        book.author = strip_formatting(get_string(content, "author"))
        book.title = strip_formatting(filterable_text(get_tag(content, "title")))

    logger.debug(
        f'      Extracted {kind.value} book: "{book.title}" by {book.author or "?"} '
        f"({book.page_count} pages, format: {shape.name})"
    )
    return book


# Containers


def _item_stacks(items: list[Tag]) -> list[Tag]:
    # Anything without an id is not an item stack (e.g. a slot record in the wrong place)
    return [item for item in items if has_key(item, "id")]


def _legacy_block_entity_items(item: Tag) -> list[Tag]:
    block_entity = get_compound(get_compound(item, "tag"), "BlockEntityTag")
    return _item_stacks(get_compound_list(block_entity, "Items"))


def _modern_container_slots(item: Tag) -> list[Tag]:
    slots = get_compound_list(get_compound(item, "components"), CONTAINER_COMPONENT)
    return _item_stacks([get_compound(slot, "item") for slot in slots])


def _modern_bundle_contents(item: Tag) -> list[Tag]:
    contents = get_compound_list(get_compound(item, "components"), BUNDLE_CONTENTS_COMPONENT)
    return _item_stacks(contents)


_BLOCK_ENTITY_CONTAINER_SHAPES: tuple[Shape, ...] = (
    Shape("legacy", lambda item: has_key(item, "tag"), _legacy_block_entity_items),
    Shape("modern", lambda item: has_key(item, "components"), _modern_container_slots),
)

CONTAINER_SHAPES: dict[ItemKind, tuple[Shape, ...]] = {
    ItemKind.SHULKER_BOX: _BLOCK_ENTITY_CONTAINER_SHAPES,
    ItemKind.COPPER_CHEST: _BLOCK_ENTITY_CONTAINER_SHAPES,
    ItemKind.BUNDLE: (
        Shape("modern", lambda item: has_key(item, "components"), _modern_bundle_contents),
    ),
}


def extract_contents(item: Tag, kind: ItemKind) -> list[Tag]:
    """Return the item stacks held by a container item, or [] for no match."""
    shape = first_matching(CONTAINER_SHAPES.get(kind, ()), item)
    if shape is None:
        return []
    contents = shape.extract(item)
    logger.debug(f"      {kind.value} contains {len(contents)} items ({shape.name} format)")
    return contents


@dataclass
class ItemMatch:
    """Result of classifying one item compound."""

    kind: ItemKind
    book: BookRecord | None = None
    contents: list[Tag] = field(default_factory=list)


def classify_and_extract(item: Tag) -> ItemMatch:
    """Classify an item and extract its book content or container contents."""
    kind = classify_item(item)
    if kind in _BOOK_KINDS:
        logger.debug(f"    Found {kind.value}")
        return ItemMatch(kind=kind, book=extract_book(item, _BOOK_KINDS[kind]))
    if kind in CONTAINER_SHAPES:
        logger.debug(f"    Found {kind.value}, scanning contents...")
        return ItemMatch(kind=kind, contents=extract_contents(item, kind))
    return ItemMatch(kind=kind)


# Signs


def _legacy_sign_lines(block_entity: Tag) -> tuple[str, ...]:
    return tuple(get_string(block_entity, f"Text{i}") for i in range(1, 5))


def _modern_sign_lines(block_entity: Tag) -> tuple[str, ...] | None:
    messages = get_list(get_compound(block_entity, "front_text"), "messages")
    if not messages.value:
        return None
    return tuple(get_string_at(messages, i) for i in range(4))


SIGN_SHAPES: tuple[Shape, ...] = (
    Shape("legacy", lambda be: has_key(be, "Text1"), _legacy_sign_lines),
    Shape("modern", lambda be: has_key(be, "front_text"), _modern_sign_lines),
)


def _match_sign(block_entity: Tag) -> tuple[Shape, tuple[str, ...]] | None:
    """Return the matching sign shape and its raw front lines, or None."""
    shape = first_matching(SIGN_SHAPES, block_entity)
    if shape is None:
        return None
    raw_lines = shape.extract(block_entity)
    if raw_lines is None:
        logger.debug("    Sign has no front messages")
        return None
    logger.debug(f"    Sign ({shape.name} format) raw text: {list(raw_lines)}")
    return shape, raw_lines


def extract_sign_lines(block_entity: Tag) -> tuple[str, ...] | None:
    """Return the four raw front lines of a sign, or None if it is not a sign."""
    match = _match_sign(block_entity)
    return match[1] if match else None


def extract_sign(block_entity: Tag) -> SignRecord | None:
    """Extract the front text of a sign block entity as a ``SignRecord``."""
    match = _match_sign(block_entity)
    if match is None:
        return None
    shape, raw_lines = match
    return SignRecord(
        raw_lines=raw_lines,
        lines=tuple(sign_line_text(line) for line in raw_lines),
        block_id=get_string(block_entity, "id"),
        source_format=shape.name,
    )


# Custom names


def text_component(tag: Tag | None) -> str:
    """Resolved text of a stored text component, keeping ``§`` formatting codes.

    Names were JSON strings until 1.21.5 and are compounds after it.
    """
    if tag is None:
        return ""
    raw = to_json(tag) if tag.type == TagType.COMPOUND else to_text(tag)
    return resolve_rich_text(raw).strip()


def normalize_item_id(item_id: str) -> str:
    """Add the ``minecraft:`` namespace to a bare item id."""
    if item_id and ":" not in item_id:
        return f"minecraft:{item_id}"
    return item_id


CUSTOM_NAME_SHAPES: tuple[Shape, ...] = (
    # Components win when an item carries both
    Shape(
        "modern",
        lambda item: has_key(item, "components"),
        lambda item: get_tag(get_compound(item, "components"), CUSTOM_NAME_COMPONENT),
    ),
    Shape(
        "legacy",
        lambda item: has_key(item, "tag"),
        lambda item: get_tag(get_compound(get_compound(item, "tag"), "display"), "Name"),
    ),
)


def extract_item_custom_name(item: Tag) -> CustomNameRecord | None:
    """Return the anvil name of an item, or None if it has none."""
    shape = first_matching(CUSTOM_NAME_SHAPES, item)
    if shape is None:
        return None
    name = text_component(shape.extract(item))
    if not name:
        return None
    item_id = normalize_item_id(get_string(item, "id"))
    logger.debug(f'      Item {item_id} is named "{name}" ({shape.name} format)')
    return CustomNameRecord(kind="item", target_id=item_id, name=name)


def extract_entity_custom_name(entity: Tag) -> CustomNameRecord | None:
    """Return the ``CustomName`` of an entity, or None if it has none."""
    name = text_component(get_tag(entity, "CustomName"))
    if not name:
        return None
    entity_id = get_string(entity, "id")
    logger.debug(f'    Entity {entity_id} is named "{name}"')
    return CustomNameRecord(kind="entity", target_id=entity_id, name=name)
