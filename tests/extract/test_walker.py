"""Tests for the recursive container walker."""

import pytest

from extract.models import BookRecord, CustomNameRecord, Location, SignRecord
from extract.walker import ContainerWalker, block_entities, chunk_root, entities, entity_position
from tags import Tag, TagType


def compounds(values):
    return Tag.list(TagType.COMPOUND, list(values))


def written_book(title, pages=("text",)):
    return Tag.compound(
        {
            "id": Tag.string("minecraft:written_book"),
            "tag": Tag.compound(
                {
                    "title": Tag.string(title),
                    "author": Tag.string("Bob"),
                    "pages": Tag.list(TagType.STRING, [Tag.string(p) for p in pages]),
                }
            ),
        }
    )


def modern_book(title):
    content = Tag.compound(
        {
            "title": Tag.compound({"raw": Tag.string(title)}),
            "author": Tag.string("Ann"),
            "pages": compounds([Tag.compound({"raw": Tag.string(title)})]),
        }
    )
    return Tag.compound(
        {
            "id": Tag.string("minecraft:written_book"),
            "components": Tag.compound({"minecraft:written_book_content": content}),
        }
    )


def shulker(items):
    return Tag.compound(
        {
            "id": Tag.string("minecraft:shulker_box"),
            "tag": Tag.compound({"BlockEntityTag": Tag.compound({"Items": compounds(items)})}),
        }
    )


def bundle(items):
    return Tag.compound(
        {
            "id": Tag.string("minecraft:bundle"),
            "components": Tag.compound({"minecraft:bundle_contents": compounds(items)}),
        }
    )


def block_entity(block_id, x, y, z, **fields):
    return Tag.compound(
        {
            "id": Tag.string(block_id),
            "x": Tag.int(x),
            "y": Tag.int(y),
            "z": Tag.int(z),
            **fields,
        }
    )


@pytest.fixture
def found():
    return []


@pytest.fixture
def walker(found):
    return ContainerWalker(lambda record, location: found.append((record, location)))


CHUNK = Location(source="r.0.0.mca", location_type="Block Entity", chunk=(3, 7))


class TestChunkFallbacks:
    """Tests for chunk-format fallbacks."""

    def test_level_wrapper(self):
        inner = Tag.compound({"TileEntities": compounds([])})
        assert chunk_root(Tag.compound({"Level": inner})) is inner

    def test_modern_chunk_is_its_own_root(self):
        chunk = Tag.compound({"block_entities": compounds([])})
        assert chunk_root(chunk) is chunk

    def test_block_entity_and_entity_keys(self):
        legacy = Tag.compound(
            {"TileEntities": compounds([Tag.compound()]), "Entities": compounds([Tag.compound()])}
        )
        modern = Tag.compound({"block_entities": compounds([Tag.compound(), Tag.compound()])})
        assert len(block_entities(legacy)) == 1
        assert len(entities(legacy)) == 1
        assert len(block_entities(modern)) == 2
        assert entities(modern) == []

    def test_entity_position_truncates(self):
        pos = Tag.list(TagType.DOUBLE, [Tag.double(10.9), Tag.double(-0.5), Tag.double(-3.7)])
        assert entity_position(Tag.compound({"Pos": pos})) == (10, 0, -3)

    def test_entity_position_non_finite(self):
        pos = Tag.list(TagType.DOUBLE, [Tag.double(float("nan")), Tag.double(1.0), Tag.double(2.0)])
        assert entity_position(Tag.compound({"Pos": pos})) == (0, 1, 2)


class TestWalkItem:
    """Tests for recursive item walking."""

    def test_nested_containers_add_breadcrumbs(self, walker, found):
        item = shulker([written_book("outer"), bundle([modern_book("inner")])])
        walker.walk_item(item, CHUNK.at("minecraft:chest", (1, 2, 3)))

        titles = [(record.title, location.breadcrumbs) for record, location in found]
        assert titles == [("outer", ("shulker_box",)), ("inner", ("shulker_box", "bundle"))]
        assert found[1][1].describe().endswith("r.0.0.mca > shulker_box > bundle")

    def test_non_book_items_emit_nothing(self, walker, found):
        walker.walk_item(Tag.compound({"id": Tag.string("minecraft:stone")}), CHUNK)
        assert found == []


class TestWalkBlockEntity:
    """Tests for block entity walking."""

    def test_chest_items(self, walker, found):
        chest = block_entity("minecraft:chest", 10, 20, 30, Items=compounds([written_book("My Book")]))
        walker.walk_block_entity(chest, CHUNK)

        (record, location), = found
        assert isinstance(record, BookRecord)
        assert location.describe() == "Chunk [3, 7] Inside minecraft:chest at (10 20 30) r.0.0.mca"

    def test_lectern_book(self, walker, found):
        lectern = block_entity("minecraft:lectern", 1, 2, 3, Book=written_book("On display"))
        walker.walk_block_entity(lectern, CHUNK)

        (record, location), = found
        assert record.title == "On display"
        assert location.container_type == "Lectern"

    def test_sign(self, walker, found):
        sign = block_entity(
            "minecraft:oak_sign",
            4,
            5,
            6,
            front_text=Tag.compound(
                {"messages": Tag.list(TagType.STRING, [Tag.string('{"text":"Hi"}')] * 4)}
            ),
        )
        walker.walk_block_entity(sign, CHUNK)

        (record, location), = found
        assert isinstance(record, SignRecord)
        assert record.lines == ("Hi", "Hi", "Hi", "Hi")
        assert location.position == (4, 5, 6)


class TestWalkEntityAndPlayer:
    """Tests for entity and player walking."""

    def test_item_frame(self, walker, found):
        frame = Tag.compound(
            {
                "id": Tag.string("minecraft:item_frame"),
                "Pos": Tag.list(TagType.DOUBLE, [Tag.double(1.5), Tag.double(64.0), Tag.double(-2.5)]),
                "Item": written_book("Framed"),
            }
        )
        walker.walk_entity(frame, CHUNK)

        (record, location), = found
        assert location.location_type == "Entity"
        assert location.describe() == "Chunk [3, 7] In minecraft:item_frame at (1 64 -2) r.0.0.mca"

    def test_minecart_items(self, walker, found):
        cart = Tag.compound(
            {
                "id": Tag.string("minecraft:chest_minecart"),
                "Items": compounds([written_book("a"), written_book("b", pages=("other",))]),
            }
        )
        walker.walk_entity(cart, CHUNK)
        assert [record.title for record, _ in found] == ["a", "b"]

    def test_player_inventory_and_ender_chest(self, walker, found):
        player = Tag.compound(
            {
                "Inventory": compounds([written_book("Carried")]),
                "EnderItems": compounds([written_book("Stored", pages=("safe",))]),
            }
        )
        walker.walk_player(player, "1234.dat")

        summary = [(r.title, loc.container_type, loc.location_type, str(loc)) for r, loc in found]
        assert summary == [
            ("Carried", "Player Inventory", "Player", "Inventory of player 1234.dat"),
            ("Stored", "Ender Chest", "Player", "Ender Chest of player 1234.dat"),
        ]


class TestCustomNames:
    """Tests for custom names found while walking."""

    def test_named_shulker_is_emitted_before_its_contents(self, walker, found):
        box = shulker([written_book("Inside")])
        box.value["tag"].value["display"] = Tag.compound({"Name": Tag.string("Loot")})
        walker.walk_item(box, CHUNK)

        (name, name_location), (book, book_location) = found
        assert name == CustomNameRecord(kind="item", target_id="minecraft:shulker_box", name="Loot")
        assert name_location == CHUNK
        assert book.title == "Inside"
        assert book_location.breadcrumbs == ("shulker_box",)

    def test_named_entity_uses_entity_location(self, walker, found):
        horse = Tag.compound(
            {
                "id": Tag.string("minecraft:horse"),
                "Pos": Tag.list(TagType.DOUBLE, [Tag.double(4.0), Tag.double(70.2), Tag.double(9.9)]),
                "CustomName": Tag.string('{"text":"Spirit"}'),
            }
        )
        walker.walk_entity(horse, CHUNK)

        (record, location), = found
        assert record == CustomNameRecord(kind="entity", target_id="minecraft:horse", name="Spirit")
        assert location.describe() == "Chunk [3, 7] In minecraft:horse at (4 70 9) r.0.0.mca"


def test_walk_chunk_legacy_and_modern(walker, found):
    legacy = Tag.compound(
        {
            "Level": Tag.compound(
                {
                    "TileEntities": compounds(
                        [block_entity("minecraft:chest", 0, 0, 0, Items=compounds([written_book("old")]))]
                    ),
                    "Entities": compounds(
                        [Tag.compound({"id": Tag.string("minecraft:item"), "Item": written_book("dropped")})]
                    ),
                }
            )
        }
    )
    modern = Tag.compound(
        {
            "block_entities": compounds(
                [block_entity("minecraft:barrel", 0, 0, 0, Items=compounds([modern_book("new")]))]
            )
        }
    )
    walker.walk_chunk(legacy, CHUNK)
    walker.walk_chunk(modern, CHUNK)
    assert [record.title for record, _ in found] == ["old", "dropped", "new"]
