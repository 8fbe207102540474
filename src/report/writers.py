"""Text, CSV and summary formatting for extracted books, signs and custom names."""

import csv
import re
from pathlib import Path

from common.constants import BOOK_GENERATIONS, SIGN_LINE_WIDTH
from extract.models import (
    BookKind,
    BookRecord,
    CustomNameRecord,
    ExtractionStats,
    Location,
    SignRecord,
)

BOOKS_CSV_HEADER = ["X", "Y", "Z", "FoundWhere", "Bookname", "Author", "PageCount", "Generation", "Pages"]
SIGNS_CSV_HEADER = ["X", "Y", "Z", "FoundWhere", "SignText", "Line1", "Line2", "Line3", "Line4"]
CUSTOM_NAMES_CSV_HEADER = ["CustomName", "Type", "ItemOrEntityID", "X", "Y", "Z", "Location"]

SIGN_DELIMITER = "│"

_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')

# Byte caps for the parts of a book file name; most filesystems allow 255 bytes
TITLE_MAX_BYTES = 64
AUTHOR_MAX_BYTES = 36


def truncate_utf8(text: str, max_bytes: int) -> str:
    """Cut ``text`` to at most ``max_bytes`` UTF-8 bytes without splitting a character."""
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


def sanitize_filename(name: str, default: str = "unnamed", max_bytes: int = 200) -> str:
    """Replace characters that are not allowed in file names and limit the UTF-8 length."""
    if not name or not name.strip():
        return default
    return truncate_utf8(_UNSAFE_FILENAME_CHARS.sub("_", name.strip()), max_bytes)


def generation_name(generation: int) -> str:
    return BOOK_GENERATIONS.get(generation, "Original")


def book_filename(sequence: int, book: BookRecord) -> str:
    """File name of a book, e.g. ``007_written_My_Book_by_Bob.txt``."""
    if book.kind == BookKind.WRITABLE:
        return f"{sequence:03d}_writable_book.txt"
    title = sanitize_filename(book.title, default="untitled", max_bytes=TITLE_MAX_BYTES)
    author = sanitize_filename(book.author, default="unknown", max_bytes=AUTHOR_MAX_BYTES)
    return f"{sequence:03d}_written_{title.replace(' ', '_')}_by_{author.replace(' ', '_')}.txt"


def format_book(book: BookRecord, location: Location) -> str:
    """Render a book as plain text: a short header followed by each page."""
    lines = []
    if book.kind == BookKind.WRITTEN:
        lines.append(f"Title: {book.title or 'untitled'}")
        lines.append(f"Author: {book.author or 'unknown'}")
        lines.append(f"Generation: {generation_name(book.generation)}")
    else:
        lines.append("Book and Quill")
    lines.append(f"Pages: {book.page_count}")
    lines.append(f"Location: {location}")
    for number, page in enumerate(book.pages, start=1):
        lines.append("")
        lines.append(f"--- Page {number} ---")
        lines.append(page)
    return "\n".join(lines) + "\n"


def pad_sign_line(text: str) -> str:
    return text.ljust(SIGN_LINE_WIDTH)


def sign_text(sign: SignRecord) -> str:
    """The four lines of a sign padded to sign width and joined by ``│``."""
    return SIGN_DELIMITER.join(pad_sign_line(line) for line in sign.lines)


def format_sign(sign: SignRecord, location: Location) -> str:
    """One ``signs.txt`` line: chunk and block position, then the padded text."""
    chunk = f"Chunk [{location.chunk[0]}, {location.chunk[1]}]" if location.chunk else ""
    position = "({} {} {})".format(*location.position) if location.position else "()"
    return f"{chunk}\t{position}\t\t{sign_text(sign)}"


def _coordinates(location: Location) -> tuple[int, int, int]:
    return location.position if location.position is not None else (0, 0, 0)


def book_csv_row(book: BookRecord, location: Location) -> list:
    x, y, z = _coordinates(location)
    return [
        x,
        y,
        z,
        location.container_type,
        book.title or "untitled",
        book.author or "unknown",
        book.page_count,
        generation_name(book.generation),
        " ".join(page for page in book.pages if page),
    ]


def sign_csv_row(sign: SignRecord, location: Location) -> list:
    x, y, z = _coordinates(location)
    return [
        x,
        y,
        z,
        sign.block_id or location.container,
        sign_text(sign).strip(),
        *(pad_sign_line(line) for line in sign.lines),
    ]


def custom_name_csv_row(record: CustomNameRecord, location: Location) -> list:
    x, y, z = location.position if location.position is not None else ("", "", "")
    return [record.name, record.kind, record.target_id, x, y, z, location.describe()]


def custom_name_json(record: CustomNameRecord, location: Location) -> dict:
    x, y, z = location.position if location.position is not None else (None, None, None)
    return {
        "type": record.kind,
        "itemOrEntityId": record.target_id,
        "customName": record.name,
        "x": x,
        "y": y,
        "z": z,
        "location": location.describe(),
    }


def format_custom_names(names: list[tuple[CustomNameRecord, Location]]) -> str:
    """Render the custom name report, grouped by kind in order of first appearance."""
    groups: dict[str, list[tuple[CustomNameRecord, Location]]] = {}
    for record, location in names:
        groups.setdefault(record.kind, []).append((record, location))

    lines = ["Custom Names Extraction Report", "=" * 80, ""]
    for kind, entries in groups.items():
        lines.append(f"{kind.upper()}S ({len(entries)}):")
        lines.append("-" * 40)
        for record, location in entries:
            lines.append(f"  Name: {record.name}")
            lines.append(f"  ID: {record.target_id}")
            if location.position is not None:
                lines.append("  Coordinates: ({}, {}, {})".format(*location.position))
            lines.append(f"  Location: {location.describe()}")
            lines.append("")
        lines.append("")
    return "\n".join(lines) + "\n"


def write_csv(path: Path, header: list[str], rows: list[list]) -> None:
    """Write rows to a UTF-8 CSV file with a header line."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        writer.writerows(rows)


def format_summary(stats: ExtractionStats) -> str:
    """Render run statistics as the contents of ``summary.txt``."""
    lines = [
        "Books",
        f"  Total found:        {stats.books_total}",
        f"  Unique:             {stats.books_unique}",
        f"  Duplicates:         {stats.books_duplicate}",
        "",
        "Signs",
        f"  Unique found:       {stats.signs_found}",
        f"  Duplicates skipped: {stats.signs_duplicate}",
        f"  Empty removed:      {stats.empty_signs_removed}",
        "",
        "Files",
        f"  Processed:          {stats.files_processed}",
        f"  Skipped:            {stats.files_skipped}",
        f"  Chunks processed:   {stats.chunks_processed}",
        f"  Chunks skipped:     {stats.chunks_skipped}",
    ]
    if stats.custom_names_found or stats.custom_names_duplicate:
        lines += [
            "",
            "Custom names",
            f"  Unique found:       {stats.custom_names_found}",
            f"  Duplicates skipped: {stats.custom_names_duplicate}",
        ]
    if stats.books_by_container:
        lines += ["", "Books by container"]
        for container, count in stats.books_by_container.most_common():
            lines.append(f"  {container}: {count}")
    if stats.books_by_location_type:
        lines += ["", "Books by location type"]
        for location_type, count in stats.books_by_location_type.most_common():
            lines.append(f"  {location_type}: {count}")
    if stats.skipped_units:
        lines += ["", "Skipped"]
        lines += [f"  {unit}" for unit in stats.skipped_units]
    lines += ["", f"Elapsed: {stats.elapsed_seconds:.2f}s"]
    return "\n".join(lines) + "\n"
