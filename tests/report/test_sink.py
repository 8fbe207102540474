"""Tests for output sinks and file formats."""

import csv
import json
from collections import Counter

from common.constants import (
    BOOKS_CSV,
    CUSTOM_NAMES_CSV,
    CUSTOM_NAMES_JSON,
    CUSTOM_NAMES_TXT,
    SIGNS_CSV,
    SIGNS_FILE,
    SUMMARY_FILE,
)
from extract.models import (
    BookKind,
    BookRecord,
    CustomNameRecord,
    ExtractionStats,
    Location,
    SignRecord,
)
from report.sink import FolderSink, MemorySink
from report.writers import (
    book_filename,
    custom_name_csv_row,
    format_custom_names,
    format_sign,
    pad_sign_line,
    sanitize_filename,
)
from tags import Tag, TagType

CHEST = Location(
    source="r.0.0.mca",
    location_type="Block Entity",
    container="minecraft:chest",
    chunk=(0, 0),
    position=(10, 20, 30),
)


def written(title="My Book", author="Bob", pages=("p1",)):
    return BookRecord(
        kind=BookKind.WRITTEN,
        pages=list(pages),
        raw_pages=list(pages),
        pages_tag=Tag.list(TagType.STRING, [Tag.string(p) for p in pages]),
        title=title,
        author=author,
    )


def sign(*lines):
    return SignRecord(raw_lines=tuple(lines), lines=tuple(lines), block_id="minecraft:oak_sign")


class TestWriters:
    """Tests for formatting helpers."""

    def test_sanitize_filename(self):
        assert sanitize_filename('a/b:c*d?"e"<f>|g') == "a_b_c_d__e__f__g"
        assert sanitize_filename("") == "unnamed"
        assert len(sanitize_filename("x" * 500)) == 200

    def test_sanitize_filename_caps_utf8_bytes(self):
        name = sanitize_filename("书" * 100, max_bytes=50)
        # Three bytes per character, never split
        assert name == "书" * 16
        assert len(name.encode("utf-8")) == 48

    def test_long_cjk_title_stays_within_filename_limit(self):
        filename = book_filename(12, written(title="书" * 100, author="作者" * 40))
        assert filename.startswith("012_written_书")
        assert filename.endswith(".txt")
        assert "_by_作者" in filename
        assert len(filename.encode("utf-8")) <= 255

    def test_book_filenames(self):
        assert book_filename(7, written()) == "007_written_My_Book_by_Bob.txt"
        assert book_filename(8, written(title="", author="")) == "008_written_untitled_by_unknown.txt"
        writable = BookRecord(
            kind=BookKind.WRITABLE, pages=["x"], raw_pages=["x"], pages_tag=Tag.list(TagType.END)
        )
        assert book_filename(9, writable) == "009_writable_book.txt"

    def test_sign_lines_padded_to_sign_width(self):
        assert pad_sign_line("Hi") == "Hi" + " " * 13
        line = format_sign(sign("Hi", "", "", ""), CHEST)
        assert line.startswith("Chunk [0, 0]\t(10 20 30)\t\t")
        assert line.count("│") == 3


    def test_custom_name_report_groups_by_kind(self):
        player = Location(source="1234.dat", location_type="Player", container="Inventory of player", preposition="")
        names = [
            (CustomNameRecord("item", "minecraft:stick", "Wand"), CHEST),
            (CustomNameRecord("entity", "minecraft:wolf", "Rex"), CHEST.at("minecraft:wolf", (1, 64, 2))),
            (CustomNameRecord("item", "minecraft:book", "Diary"), player),
        ]
        report = format_custom_names(names)

        assert report.startswith("Custom Names Extraction Report\n" + "=" * 80 + "\n")
        assert report.index("ITEMS (2):") < report.index("ENTITIES (1):")
        assert "  Name: Wand\n  ID: minecraft:stick\n  Coordinates: (10, 20, 30)\n" in report
        assert "  Name: Diary\n  ID: minecraft:book\n  Location: Inventory of player 1234.dat\n" in report

    def test_custom_name_csv_row_without_position(self):
        player = Location(source="1234.dat", location_type="Player", container="Inventory of player", preposition="")
        row = custom_name_csv_row(CustomNameRecord("item", "minecraft:book", "Diary"), player)
        assert row == ["Diary", "item", "minecraft:book", "", "", "", "Inventory of player 1234.dat"]


class TestFolderSink:
    """Tests for FolderSink."""

    def test_books_and_duplicates_folders(self, tmp_path):
        sink = FolderSink(tmp_path)
        sink.write_book(written(), CHEST, is_duplicate=False)
        sink.write_book(written(), CHEST, is_duplicate=True)
        sink.close(ExtractionStats())

        main_books = list((tmp_path / "books").glob("*.txt"))
        duplicates = list((tmp_path / "books" / ".duplicates").glob("*.txt"))
        assert [p.name for p in main_books] == ["001_written_My_Book_by_Bob.txt"]
        assert [p.name for p in duplicates] == ["002_written_My_Book_by_Bob.txt"]

        text = main_books[0].read_text(encoding="utf-8")
        assert "Title: My Book" in text
        assert "Location: Chunk [0, 0] Inside minecraft:chest at (10 20 30) r.0.0.mca" in text
        assert "--- Page 1 ---\np1" in text

    def test_long_cjk_title_is_written(self, tmp_path):
        sink = FolderSink(tmp_path)
        sink.write_book(written(title="书" * 100, author="作者"), CHEST, is_duplicate=False)
        sink.close(ExtractionStats())

        [path] = (tmp_path / "books").glob("*.txt")
        assert path.name.startswith("001_written_书")
        assert len(path.name.encode("utf-8")) <= 255
        assert "Title: " + "书" * 100 in path.read_text(encoding="utf-8")

    def test_csv_exports(self, tmp_path):
        sink = FolderSink(tmp_path)
        sink.write_book(written(pages=("a", "b")), CHEST, is_duplicate=False)
        sink.write_book(written(pages=("a", "b")), CHEST, is_duplicate=True)
        sink.write_sign(sign("Hello", "", "", ""), CHEST.at("minecraft:oak_sign", (1, 2, 3)))
        sink.close(ExtractionStats())

        with open(tmp_path / BOOKS_CSV, encoding="utf-8", newline="") as f:
            books = list(csv.DictReader(f))
        assert len(books) == 1
        assert books[0]["Bookname"] == "My Book"
        assert books[0]["Pages"] == "a b"
        assert (books[0]["X"], books[0]["Y"], books[0]["Z"]) == ("10", "20", "30")

        with open(tmp_path / SIGNS_CSV, encoding="utf-8", newline="") as f:
            signs = list(csv.DictReader(f))
        assert signs[0]["FoundWhere"] == "minecraft:oak_sign"
        assert signs[0]["SignText"].startswith("Hello")

    def test_signs_grouped_by_source(self, tmp_path):
        sink = FolderSink(tmp_path)
        sink.write_sign(sign("a", "", "", ""), CHEST)
        sink.write_sign(sign("b", "", "", ""), Location(source="r.1.0.mca", location_type="Block Entity"))
        sink.write_sign(sign("c", "", "", ""), CHEST)
        sink.close(ExtractionStats())

        text = (tmp_path / SIGNS_FILE).read_text(encoding="utf-8")
        assert text.index("=== r.0.0.mca ===") < text.index("=== r.1.0.mca ===")
        assert text.count("=== r.0.0.mca ===") == 1

    def test_custom_name_files(self, tmp_path):
        sink = FolderSink(tmp_path)
        sink.write_custom_name(CustomNameRecord("entity", "minecraft:wolf", "Rex"), CHEST)
        sink.close(ExtractionStats(custom_names_found=1))

        with open(tmp_path / CUSTOM_NAMES_CSV, encoding="utf-8", newline="") as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["CustomName"] == "Rex"
        assert rows[0]["ItemOrEntityID"] == "minecraft:wolf"
        assert "ENTITIES (1):" in (tmp_path / CUSTOM_NAMES_TXT).read_text(encoding="utf-8")
        [entry] = json.loads((tmp_path / CUSTOM_NAMES_JSON).read_text(encoding="utf-8"))
        assert entry["customName"] == "Rex"
        assert (entry["x"], entry["y"], entry["z"]) == (10, 20, 30)
        assert "Custom names" in (tmp_path / SUMMARY_FILE).read_text(encoding="utf-8")

    def test_no_custom_name_files_when_none_found(self, tmp_path):
        FolderSink(tmp_path).close(ExtractionStats())
        assert not (tmp_path / CUSTOM_NAMES_CSV).exists()
        assert not (tmp_path / CUSTOM_NAMES_JSON).exists()

    def test_summary(self, tmp_path):
        stats = ExtractionStats(books_total=3, books_unique=2, books_duplicate=1)
        stats.books_by_container = Counter({"minecraft:chest": 3})
        stats.skip("r.9.9.mca")
        FolderSink(tmp_path).close(stats)

        summary = (tmp_path / SUMMARY_FILE).read_text(encoding="utf-8")
        assert "Unique:             2" in summary
        assert "minecraft:chest: 3" in summary
        assert "r.9.9.mca" in summary


def test_memory_sink_routes_duplicates():
    sink = MemorySink()
    sink.write_book(written(), CHEST, is_duplicate=False)
    sink.write_book(written(), CHEST, is_duplicate=True)
    sink.write_sign(sign("x", "", "", ""), CHEST)
    sink.write_custom_name(CustomNameRecord("item", "minecraft:stick", "Wand"), CHEST)
    stats = ExtractionStats()
    sink.close(stats)

    assert len(sink.books) == len(sink.duplicate_books) == len(sink.signs) == 1
    assert sink.custom_names == [(CustomNameRecord("item", "minecraft:stick", "Wand"), CHEST)]
    assert sink.stats is stats
