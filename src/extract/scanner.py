"""Iterates the files of a world save and feeds each chunk or player to the walker.

Every file, and every chunk inside a region file, is an isolated unit: a corrupt
unit is logged, counted as skipped, and the scan moves on.
"""

from pathlib import Path

from rich.progress import Progress

from common.constants import ENTITIES_DIR, PLAYERDATA_DIR, REGION_DIR
from common.env import env
from common.logger import get_logger
from saves import RegionFile, RegionFileError, open_document
from tags import DecodeError, decode_root

from .models import Location
from .session import ExtractionSession
from .walker import ContainerWalker

logger = get_logger(__name__)


class WorldScanner:
    """Scans ``playerdata/``, ``region/`` and ``entities/`` of one world."""

    def __init__(
        self,
        world_dir: Path,
        session: ExtractionSession,
        progress: Progress | None = None,
        max_depth: int | None = None,
        max_bytes: int | None = None,
    ):
        self.world_dir = Path(world_dir)
        self.session = session
        self.walker = ContainerWalker(session.emit)
        self.progress = progress
        self.max_depth = max_depth if max_depth is not None else env.max_tag_depth()
        self.max_bytes = max_bytes if max_bytes is not None else env.max_tag_bytes()

    @property
    def stats(self):
        return self.session.stats

    def _files(self, folder_name: str, pattern: str, missing_is_normal: bool = False) -> list[Path]:
        folder = self.world_dir / folder_name
        if not folder.is_dir():
            message = f"No {folder_name} folder found in: {self.world_dir}"
            if missing_is_normal:
                logger.debug(f"{message} (normal for pre-1.17 worlds)")
            else:
                logger.warning(message)
            return []
        files = sorted(path for path in folder.glob(pattern) if path.is_file())
        logger.debug(f"Found {len(files)} files in {folder_name}/")
        return files

    def _track(self, description: str, total: int):
        if self.progress is None:
            return None
        return self.progress.add_task(description, total=total)

    def _advance(self, task) -> None:
        if task is not None:
            self.progress.advance(task)

    def _decode(self, stream):
        return decode_root(stream, max_depth=self.max_depth, max_bytes=self.max_bytes)

    def scan_player_data(self) -> None:
        """Walk the inventory and ender chest of every ``playerdata/*.dat`` file."""
        files = self._files(PLAYERDATA_DIR, "*.dat")
        task = self._track("Player data", len(files))
        for path in files:
            logger.debug(f"Processing player data: {path.name}")
            try:
                player = self._decode(open_document(path, max_bytes=self.max_bytes))
            except (DecodeError, OSError) as e:
                logger.warning(f"Failed to read player data {path.name}: {e}")
                self.stats.skip(path.name)
            else:
                self.walker.walk_player(player, path.name)
                self.stats.files_processed += 1
            self._advance(task)

    def scan_regions(self) -> None:
        """Walk block entities and entities of every chunk in ``region/*.mca``."""
        self._scan_chunk_files(REGION_DIR, "Region files")

    def scan_entities(self) -> None:
        """Walk entities of every chunk in ``entities/*.mca`` (1.17+)."""
        self._scan_chunk_files(ENTITIES_DIR, "Entity files", missing_is_normal=True)

    def _scan_chunk_files(self, folder_name: str, description: str, missing_is_normal: bool = False) -> None:
        files = self._files(folder_name, "*.mca", missing_is_normal=missing_is_normal)
        task = self._track(description, len(files))
        for path in files:
            logger.debug(f"Processing {folder_name} file: {path.name}")
            try:
                region = RegionFile(path, max_bytes=self.max_bytes)
            except (RegionFileError, OSError) as e:
                logger.warning(f"Failed to read {folder_name} file {path.name}: {e}")
                self.stats.skip(path.name)
            else:
                self._scan_region(region)
                self.stats.files_processed += 1
            self._advance(task)

    def _scan_region(self, region: RegionFile) -> None:
        for x, z in region.present_chunks():
            unit = f"{region.path.name} chunk [{x}, {z}]"
            try:
                stream = region.chunk_stream(x, z)
                if stream is None:
                    continue
                chunk = self._decode(stream)
            except (DecodeError, RegionFileError) as e:
                logger.warning(f"Skipping {unit}: {e}")
                self.stats.skip(unit, is_chunk=True)
                continue
            location = Location(source=region.path.name, location_type="Block Entity", chunk=(x, z))
            self.walker.walk_chunk(chunk, location)
            self.stats.chunks_processed += 1
