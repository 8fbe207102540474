"""Recursive walk over chunks, block entities, entities and player inventories.

The walker knows where books, signs and named items can be held; what a held item *is* is
decided by ``extract.matcher``. Every record found is handed to ``emit``
together with a ``Location`` describing the path to it.
"""

import math
from collections.abc import Callable
from dataclasses import replace

from common.logger import get_logger
from tags import (
    Tag,
    first_present,
    get_compound,
    get_compound_list,
    get_double_at,
    get_int,
    get_list,
    get_string,
    has_key,
)

from .matcher import (
    classify_and_extract,
    extract_entity_custom_name,
    extract_item_custom_name,
    extract_sign,
)
from .models import BookRecord, CustomNameRecord, ItemKind, Location, SignRecord

logger = get_logger(__name__)

Emit = Callable[[BookRecord | SignRecord | CustomNameRecord, Location], None]

# Breadcrumb appended when descending into a container item
_CRUMBS = {
    ItemKind.SHULKER_BOX: "shulker_box",
    ItemKind.BUNDLE: "bundle",
    ItemKind.COPPER_CHEST: "copper_chest",
}


def chunk_root(chunk: Tag) -> Tag:
    """The compound holding chunk contents: ``Level`` before 1.18, the chunk itself after."""
    if has_key(chunk, "Level"):
        return get_compound(chunk, "Level")
    return chunk


def block_entities(root: Tag) -> list[Tag]:
    key = first_present(root, ("block_entities", "TileEntities"))
    return get_compound_list(root, key) if key else []


def entities(root: Tag) -> list[Tag]:
    key = first_present(root, ("entities", "Entities"))
    return get_compound_list(root, key) if key else []


def block_position(block_entity: Tag) -> tuple[int, int, int]:
    return (
        get_int(block_entity, "x"),
        get_int(block_entity, "y"),
        get_int(block_entity, "z"),
    )


def entity_position(entity: Tag) -> tuple[int, int, int]:
    pos = get_list(entity, "Pos")
    coords = (get_double_at(pos, i) for i in range(3))
    return tuple(int(c) if math.isfinite(c) else 0 for c in coords)


class ContainerWalker:
    """Walks tag trees and emits every book, sign and custom name found."""

    def __init__(self, emit: Emit):
        self.emit = emit

    def walk_item(self, item: Tag, location: Location) -> None:
        """Classify one item; emit it if it is a book, descend into it if it holds items."""
        custom_name = extract_item_custom_name(item)
        if custom_name is not None:
            self.emit(custom_name, location)
        match = classify_and_extract(item)
        if match.book is not None:
            self.emit(match.book, location)
            return
        crumb = _CRUMBS.get(match.kind)
        if crumb is None:
            return
        inner = location.nested(crumb)
        for contained in match.contents:
            self.walk_item(contained, inner)

    def walk_block_entity(self, block_entity: Tag, location: Location) -> None:
        """Walk a chest-like container, a lectern or a sign."""
        block_id = get_string(block_entity, "id")
        position = block_position(block_entity)

        if has_key(block_entity, "Items"):
            holder = location.at(block_id, position)
            for item in get_compound_list(block_entity, "Items"):
                self.walk_item(item, holder)

        if has_key(block_entity, "Book"):
            logger.debug(f"    Lectern at {position} holds a book")
            holder = location.at(block_id, position, category="Lectern")
            self.walk_item(get_compound(block_entity, "Book"), holder)

        sign = extract_sign(block_entity)
        if sign is not None:
            self.emit(sign, location.at(block_id, position))

    def walk_entity(self, entity: Tag, location: Location) -> None:
        """Walk an entity's name, its inventory (``Items``) and its held item (``Item``)."""
        entity_id = get_string(entity, "id")
        holder = replace(
            location.at(entity_id, entity_position(entity)),
            location_type="Entity",
            preposition="In",
        )
        custom_name = extract_entity_custom_name(entity)
        if custom_name is not None:
            self.emit(custom_name, holder)
        for item in get_compound_list(entity, "Items"):
            self.walk_item(item, holder)
        if has_key(entity, "Item"):
            self.walk_item(get_compound(entity, "Item"), holder)

    def walk_player(self, player: Tag, file_name: str) -> None:
        """Walk a player's inventory and ender chest."""
        base = Location(source=file_name, location_type="Player", preposition="")
        inventory = base.at("Inventory of player", category="Player Inventory")
        for item in get_compound_list(player, "Inventory"):
            self.walk_item(item, inventory)
        ender_chest = base.at("Ender Chest of player", category="Ender Chest")
        for item in get_compound_list(player, "EnderItems"):
            self.walk_item(item, ender_chest)

    def walk_chunk(self, chunk: Tag, location: Location) -> None:
        """Walk every block entity and entity stored in one chunk."""
        root = chunk_root(chunk)
        for block_entity in block_entities(root):
            logger.debug(
                f"{location.describe()} - Processing block entity: "
                f"{get_string(block_entity, 'id')}"
            )
            self.walk_block_entity(block_entity, location)
        for entity in entities(root):
            self.walk_entity(entity, location)
