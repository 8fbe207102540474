"""Environment configuration interface for readbooks.

This module provides a clean interface for accessing environment variables,
centralizing all environment variable access in one place. Values can also be
placed in a ``.env`` file in the working directory.
"""

import os
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


class Environment:
    """Interface for accessing environment configuration."""

    @staticmethod
    def world_dir() -> Path:
        """Get the world save directory to scan.

        Returns:
            World directory, defaults to the current directory
        """
        return Path(os.getenv("READBOOKS_WORLD_DIR", "."))

    @staticmethod
    def output_dir() -> Path:
        """Get the output directory.

        Relative paths are resolved against the world directory by the caller.

        Returns:
            Output directory, defaults to ReadBooks/<YYYY-MM-DD>
        """
        configured = os.getenv("READBOOKS_OUTPUT_DIR")
        if configured:
            return Path(configured)
        return Path("ReadBooks") / date.today().isoformat()

    @staticmethod
    def log_level() -> str:
        """Get the logging level.

        Returns:
            Level name, defaults to 'INFO'
        """
        return os.getenv("LOG_LEVEL", "INFO").upper()

    @staticmethod
    def max_tag_depth() -> int:
        """Get the maximum tag nesting depth accepted by the decoder.

        Returns:
            Depth limit, defaults to 512
        """
        return int(os.getenv("NBT_MAX_DEPTH", "512"))

    @staticmethod
    def max_tag_bytes() -> int:
        """Get the per-document decode budget in bytes.

        Returns:
            Byte budget, defaults to 128 MiB
        """
        return int(os.getenv("NBT_MAX_BYTES", str(128 * 1024 * 1024)))


# Singleton instance for convenient access
env = Environment()
