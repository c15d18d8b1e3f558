"""Lists replay files waiting in the watched directory."""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path

from replay_uploader.errors import ScanError

logger = logging.getLogger(__name__)


class ReplayScanner:
    """Finds files in a directory whose name matches the replay pattern."""

    def __init__(self, pattern: str = "*.gif") -> None:
        self.pattern = pattern

    def scan(self, directory: Path | str) -> list[Path]:
        """Return matching regular files, sorted by name.

        Raises:
            ScanError: If the directory is missing or cannot be listed.
        """
        directory = Path(directory)
        try:
            with os.scandir(directory) as entries:
                paths = [
                    Path(entry.path)
                    for entry in entries
                    if fnmatch.fnmatchcase(entry.name, self.pattern)
                    and entry.is_file()
                ]
        except OSError as exc:
            raise ScanError(f"Cannot read replay directory '{directory}': {exc}") from exc

        paths.sort(key=lambda p: p.name)
        logger.debug("Found %d replay(s) matching %s in %s", len(paths), self.pattern, directory)
        return paths
