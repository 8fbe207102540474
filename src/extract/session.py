"""Run-scoped extraction state: duplicate detection, counters and output routing."""

from common.logger import get_logger

from .dedup import DuplicateDetector
from .models import (
    BookRecord,
    CustomNameRecord,
    ExtractionOptions,
    ExtractionStats,
    Location,
    SignRecord,
)

logger = get_logger(__name__)


class ExtractionSession:
    """Receives every record the walker finds and decides what reaches the sink.

    Books are always written, duplicates to the duplicates destination. Signs
    are written once per location and text; blank signs are counted as removed
    and never take a fingerprint slot. Custom names are written once per name,
    kind and id, and only when enabled.
    """

    def __init__(self, sink, options: ExtractionOptions | None = None):
        self.sink = sink
        self.options = options or ExtractionOptions()
        self.detector = DuplicateDetector()
        self.stats = ExtractionStats()

    def reset(self) -> None:
        """Forget all fingerprints and counters from a previous run."""
        self.detector.reset()
        self.stats = ExtractionStats()

    def emit(self, record: BookRecord | SignRecord | CustomNameRecord, location: Location) -> None:
        if isinstance(record, BookRecord):
            if self.options.books:
                self._emit_book(record, location)
        elif isinstance(record, SignRecord):
            if self.options.signs:
                self._emit_sign(record, location)
        elif isinstance(record, CustomNameRecord):
            if self.options.custom_names:
                self._emit_custom_name(record, location)
        else:
            raise TypeError(f"Unsupported record type: {type(record).__name__}")

    def _emit_book(self, book: BookRecord, location: Location) -> None:
        is_duplicate = self.detector.is_duplicate_book(book.pages_tag)
        self.stats.books_total += 1
        if is_duplicate:
            self.stats.books_duplicate += 1
            logger.debug(f"      Duplicate {book.kind.value} book at {location}")
        else:
            self.stats.books_unique += 1
        self.stats.books_by_container[location.container_type] += 1
        self.stats.books_by_location_type[location.location_type] += 1
        self.sink.write_book(book, location, is_duplicate)

    def _emit_sign(self, sign: SignRecord, location: Location) -> None:
        if sign.is_blank:
            self.stats.empty_signs_removed += 1
            logger.debug(f"    Removed empty sign at {location}")
            return
        if self.detector.is_duplicate_sign(location.describe(), sign.raw_lines):
            self.stats.signs_duplicate += 1
            logger.debug(f"    Duplicate sign at {location}")
            return
        self.stats.signs_found += 1
        self.sink.write_sign(sign, location)

    def _emit_custom_name(self, record: CustomNameRecord, location: Location) -> None:
        if self.detector.is_duplicate_custom_name(record.name, record.kind, record.target_id):
            self.stats.custom_names_duplicate += 1
            return
        self.stats.custom_names_found += 1
        self.sink.write_custom_name(record, location)
