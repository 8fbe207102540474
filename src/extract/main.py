"""
Extract books and signs from a Minecraft world save.

Scans player data, region files and entity files, decodes every chunk, and
routes each book, sign and custom name found through an extraction session into
an output sink (by default a folder of text files, CSV exports and a summary).
"""

import time
from pathlib import Path

from rich.progress import Progress

from common.logger import get_logger
from report.sink import FolderSink, OutputSink

from .models import ExtractionOptions, ExtractionStats
from .scanner import WorldScanner
from .session import ExtractionSession

logger = get_logger(__name__)


class WorldNotFoundError(Exception):
    """The world directory does not exist or is not a directory."""

    pass


def resolve_output_dir(world_dir: Path, output_dir: Path) -> Path:
    """Resolve a relative output directory against the world directory."""
    output_dir = Path(output_dir)
    if output_dir.is_absolute():
        return output_dir
    return Path(world_dir) / output_dir


def extract_world(
    world_dir: Path,
    output_dir: Path,
    options: ExtractionOptions | None = None,
    sink: OutputSink | None = None,
    progress: Progress | None = None,
) -> ExtractionStats:
    """
    Extract all books and signs from a world.

    Args:
        world_dir: World save directory (the one containing ``region/``)
        output_dir: Output directory, relative to the world unless absolute
        options: Which content to extract (default: books and signs, no custom names)
        sink: Destination for records (default: FolderSink on output_dir)
        progress: Optional rich progress display for per-folder bars

    Returns:
        Statistics for the run

    Raises:
        WorldNotFoundError: If world_dir is missing or not a directory
    """
    world_dir = Path(world_dir)
    if not world_dir.is_dir():
        raise WorldNotFoundError(f"World directory not found: {world_dir}")

    options = options or ExtractionOptions()
    if sink is None:
        sink = FolderSink(resolve_output_dir(world_dir, output_dir), datapacks=options.datapacks)

    session = ExtractionSession(sink, options)
    session.reset()
    scanner = WorldScanner(world_dir, session, progress=progress)

    logger.info(f"Extracting from [bold]{world_dir}[/bold]")
    started = time.monotonic()

    # Player and entity files hold items and named entities, never signs
    wants_items = options.books or options.custom_names
    if wants_items:
        scanner.scan_player_data()
    scanner.scan_regions()
    if wants_items:
        scanner.scan_entities()

    stats = session.stats
    stats.elapsed_seconds = time.monotonic() - started
    sink.close(stats)

    if options.books:
        logger.info(
            f"Books: [bold]{stats.books_total}[/bold] found, "
            f"[bold]{stats.books_unique}[/bold] unique, "
            f"[bold]{stats.books_duplicate}[/bold] duplicates"
        )
    if options.signs:
        logger.info(
            f"Signs: [bold]{stats.signs_found}[/bold] unique, "
            f"[bold]{stats.signs_duplicate}[/bold] duplicates skipped, "
            f"[bold]{stats.empty_signs_removed}[/bold] empty removed"
        )
    if options.custom_names:
        logger.info(
            f"Custom names: [bold]{stats.custom_names_found}[/bold] unique, "
            f"[bold]{stats.custom_names_duplicate}[/bold] duplicates skipped"
        )
    logger.info(
        f"Files: [bold]{stats.files_processed}[/bold] processed, "
        f"[bold]{stats.files_skipped}[/bold] skipped; "
        f"chunks: [bold]{stats.chunks_processed}[/bold] processed, "
        f"[bold]{stats.chunks_skipped}[/bold] skipped"
    )
    if stats.skipped_units:
        logger.warning(f"Skipped units: {', '.join(stats.skipped_units)}")
    logger.info(f"[green]✓[/green] Completed in {stats.elapsed_seconds:.2f}s")
    return stats
