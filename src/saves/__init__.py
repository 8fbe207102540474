"""Access to Minecraft save containers: region files and compressed documents."""

from .compression import CompressedDataError, decompress, inflate, open_document
from .region import RegionFile, RegionFileError, parse_region_coords, write_region

__all__ = [
    "CompressedDataError",
    "RegionFile",
    "RegionFileError",
    "decompress",
    "inflate",
    "open_document",
    "parse_region_coords",
    "write_region",
]
