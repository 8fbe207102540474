"""Output destinations for extracted books, signs and custom names."""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from common.constants import (
    BOOKS_CSV,
    BOOKS_DIR,
    CUSTOM_NAMES_CSV,
    CUSTOM_NAMES_JSON,
    CUSTOM_NAMES_TXT,
    DUPLICATES_DIR,
    SIGNS_CSV,
    SIGNS_FILE,
    SUMMARY_FILE,
)
from common.logger import get_logger
from extract.models import BookRecord, CustomNameRecord, ExtractionStats, Location, SignRecord

from .datapack import DatapackWriter
from .writers import (
    BOOKS_CSV_HEADER,
    CUSTOM_NAMES_CSV_HEADER,
    SIGNS_CSV_HEADER,
    book_csv_row,
    book_filename,
    custom_name_csv_row,
    custom_name_json,
    format_book,
    format_custom_names,
    format_sign,
    format_summary,
    sign_csv_row,
    write_csv,
)

logger = get_logger(__name__)


class OutputSink(ABC):
    """Destination for records accepted by an extraction session."""

    @abstractmethod
    def write_book(self, book: BookRecord, location: Location, is_duplicate: bool) -> None:
        """Store one book; duplicates go to a separate destination."""
        pass

    @abstractmethod
    def write_sign(self, sign: SignRecord, location: Location) -> None:
        """Store one unique, non-blank sign."""
        pass

    @abstractmethod
    def write_custom_name(self, record: CustomNameRecord, location: Location) -> None:
        """Store one unique custom name."""
        pass

    @abstractmethod
    def close(self, stats: ExtractionStats) -> None:
        """Finish the run and write any aggregate output."""
        pass


@dataclass
class MemorySink(OutputSink):
    """Collects records in memory."""

    books: list[tuple[BookRecord, Location]] = field(default_factory=list)
    duplicate_books: list[tuple[BookRecord, Location]] = field(default_factory=list)
    signs: list[tuple[SignRecord, Location]] = field(default_factory=list)
    custom_names: list[tuple[CustomNameRecord, Location]] = field(default_factory=list)
    stats: ExtractionStats | None = None

    def write_book(self, book: BookRecord, location: Location, is_duplicate: bool) -> None:
        target = self.duplicate_books if is_duplicate else self.books
        target.append((book, location))

    def write_sign(self, sign: SignRecord, location: Location) -> None:
        self.signs.append((sign, location))

    def write_custom_name(self, record: CustomNameRecord, location: Location) -> None:
        self.custom_names.append((record, location))

    def close(self, stats: ExtractionStats) -> None:
        self.stats = stats


class FolderSink(OutputSink):
    """Writes books, signs, CSV exports and a summary into an output folder.

    Layout::

        <output>/books/NNN_written_<title>_by_<author>.txt
        <output>/books/NNN_writable_book.txt
        <output>/books/.duplicates/...
        <output>/signs.txt
        <output>/all_books.csv
        <output>/all_signs.csv
        <output>/summary.txt
        <output>/all_custom_names.csv|.txt|.json   (only when custom names were found)
        <output>/readbooks_datapack_<version>/...     (only with datapacks enabled)
    """

    def __init__(self, output_dir: Path, datapacks: bool = False):
        self.output_dir = Path(output_dir)
        self.books_dir = self.output_dir / BOOKS_DIR
        self.duplicates_dir = self.books_dir / DUPLICATES_DIR
        self._sequence = 0
        self._book_rows: list[list] = []
        self._sign_rows: list[list] = []
        self._signs_by_source: dict[str, list[str]] = {}
        self._custom_names: list[tuple[CustomNameRecord, Location]] = []
        self.datapack = DatapackWriter(self.output_dir) if datapacks else None

    def write_book(self, book: BookRecord, location: Location, is_duplicate: bool) -> None:
        self._sequence += 1
        folder = self.duplicates_dir if is_duplicate else self.books_dir
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / book_filename(self._sequence, book)
        path.write_text(format_book(book, location), encoding="utf-8")
        logger.debug(f"      Wrote {path.relative_to(self.output_dir)}")
        if not is_duplicate:
            self._book_rows.append(book_csv_row(book, location))
            if self.datapack is not None:
                self.datapack.add_book(book)

    def write_sign(self, sign: SignRecord, location: Location) -> None:
        self._signs_by_source.setdefault(location.source, []).append(format_sign(sign, location))
        self._sign_rows.append(sign_csv_row(sign, location))
        if self.datapack is not None:
            self.datapack.add_sign(sign, location)

    def write_custom_name(self, record: CustomNameRecord, location: Location) -> None:
        self._custom_names.append((record, location))

    def close(self, stats: ExtractionStats) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)

        with open(self.output_dir / SIGNS_FILE, "w", encoding="utf-8") as f:
            for source, lines in self._signs_by_source.items():
                f.write(f"=== {source} ===\n")
                for line in lines:
                    f.write(line + "\n")
                f.write("\n")
            f.write("Completed.\n")

        write_csv(self.output_dir / BOOKS_CSV, BOOKS_CSV_HEADER, self._book_rows)
        write_csv(self.output_dir / SIGNS_CSV, SIGNS_CSV_HEADER, self._sign_rows)
        (self.output_dir / SUMMARY_FILE).write_text(format_summary(stats), encoding="utf-8")
        if self._custom_names:
            self._write_custom_names()
        if self.datapack is not None:
            self.datapack.write()

        logger.info(
            f"[green]✓[/green] Wrote [bold]{len(self._book_rows)}[/bold] unique books and "
            f"[bold]{len(self._sign_rows)}[/bold] signs to {self.output_dir}"
        )

    def _write_custom_names(self) -> None:
        rows = [custom_name_csv_row(record, location) for record, location in self._custom_names]
        write_csv(self.output_dir / CUSTOM_NAMES_CSV, CUSTOM_NAMES_CSV_HEADER, rows)
        (self.output_dir / CUSTOM_NAMES_TXT).write_text(
            format_custom_names(self._custom_names), encoding="utf-8"
        )
        entries = [custom_name_json(record, location) for record, location in self._custom_names]
        with open(self.output_dir / CUSTOM_NAMES_JSON, "w", encoding="utf-8") as f:
            json.dump(entries, f, ensure_ascii=False, indent=2)
        logger.info(f"Wrote [bold]{len(self._custom_names)}[/bold] custom names")
