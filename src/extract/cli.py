#!/usr/bin/env python3
"""CLI interface for readbooks."""

import argparse
from pathlib import Path

from common.constants import LOG_FILE
from common.env import env
from common.logger import error, progress_bar, setup_logging, success, warning
from saves import RegionFile, RegionFileError, open_document
from tags import DecodeError, decode_root, to_json

from .main import WorldNotFoundError, extract_world, resolve_output_dir
from .models import ExtractionOptions


def options_from_args(args) -> ExtractionOptions:
    """Build extraction options from the --no-*/--*-only flags."""
    books = not args.no_books and not args.signs_only
    signs = not args.no_signs and not args.books_only
    return ExtractionOptions(
        books=books,
        signs=signs,
        custom_names=args.extract_custom_names,
        datapacks=args.datapacks,
    )


def cmd_extract(args):
    """Extract books and signs from a world save.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    options = options_from_args(args)
    if not (options.books or options.signs or options.custom_names):
        error("Nothing to extract: books and signs are disabled and custom names are off")
        return 1

    if not args.world.is_dir():
        error(f"World directory not found: {args.world}")
        return 1

    output_dir = resolve_output_dir(args.world, args.output)
    setup_logging(args.log_level, log_file=output_dir / LOG_FILE)

    try:
        with progress_bar() as progress:
            stats = extract_world(args.world, output_dir, options, progress=progress)
    except WorldNotFoundError as e:
        error(str(e))
        return 1

    if stats.files_skipped or stats.chunks_skipped:
        warning(
            f"Skipped {stats.files_skipped} unreadable files and {stats.chunks_skipped} chunks "
            f"(see {LOG_FILE})"
        )
    success(f"Output written to {output_dir}")
    return 0


def cmd_dump(args):
    """Print a decoded player/level file or one region chunk as JSON.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    setup_logging(args.log_level)
    if not args.file.is_file():
        error(f"File not found: {args.file}")
        return 1
    if args.chunk is None and args.file.suffix in (".mca", ".mcr"):
        error("Region files need --chunk X Z")
        return 1

    max_bytes = env.max_tag_bytes()
    try:
        if args.chunk is not None:
            x, z = args.chunk
            stream = RegionFile(args.file, max_bytes=max_bytes).chunk_stream(x, z)
            if stream is None:
                error(f"Chunk [{x}, {z}] is not present in {args.file.name}")
                return 1
        else:
            stream = open_document(args.file, max_bytes=max_bytes)
        root = decode_root(stream, max_depth=env.max_tag_depth(), max_bytes=max_bytes)
    except (DecodeError, RegionFileError, OSError) as e:
        error(f"Failed to decode {args.file.name}: {e}")
        return 1

    print(to_json(root, indent=2))
    return 0


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="readbooks", description="Extract books and signs from Minecraft world saves"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Extract command
    extract_parser = subparsers.add_parser("extract", help="Extract books and signs from a world")
    extract_parser.add_argument(
        "--world",
        "-w",
        type=Path,
        default=env.world_dir(),
        help="World save directory (default: $READBOOKS_WORLD_DIR or current directory)",
    )
    extract_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=env.output_dir(),
        help="Output directory, relative to the world unless absolute (default: ReadBooks/<date>)",
    )
    extract_parser.add_argument("--no-books", action="store_true", help="Skip books")
    extract_parser.add_argument("--no-signs", action="store_true", help="Skip signs")
    only = extract_parser.add_mutually_exclusive_group()
    only.add_argument("--books-only", action="store_true", help="Extract only books")
    only.add_argument("--signs-only", action="store_true", help="Extract only signs")
    extract_parser.add_argument(
        "--extract-custom-names",
        action="store_true",
        help="Also export named items and entities to all_custom_names.csv/.txt/.json",
    )
    extract_parser.add_argument(
        "--datapacks",
        action="store_true",
        help="Also write datapacks that give back the books and rebuild the signs",
    )
    extract_parser.add_argument(
        "--log-level",
        default=env.log_level(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )
    extract_parser.set_defaults(func=cmd_extract)

    # Dump command
    dump_parser = subparsers.add_parser("dump", help="Print a decoded save file as JSON")
    dump_parser.add_argument("file", type=Path, help="Player/level .dat file or region .mca file")
    dump_parser.add_argument(
        "--chunk",
        nargs=2,
        type=int,
        metavar=("X", "Z"),
        default=None,
        help="Local chunk coordinates to dump from a region file",
    )
    dump_parser.add_argument(
        "--log-level",
        default=env.log_level(),
        type=str.upper,
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )
    dump_parser.set_defaults(func=cmd_dump)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    exit(main())
