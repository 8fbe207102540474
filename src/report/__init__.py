"""Output sinks, file formats and datapacks for extracted books, signs and custom names."""

from .datapack import DatapackWriter
from .sink import FolderSink, MemorySink, OutputSink

__all__ = [
    "DatapackWriter",
    "FolderSink",
    "MemorySink",
    "OutputSink",
]
