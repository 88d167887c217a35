"""
Directory scanner for Watch Folder Agent.
Lists matching files in the watched folder with their modification times.
"""

import fnmatch
import os
import stat
from datetime import datetime
from pathlib import Path
from typing import Dict, Union

from .exceptions import ScanError
from .logger import get_logger
from .models import truncate_to_second
from .state_store import is_recordable_name

logger = get_logger(__name__)

DEFAULT_PATTERN = "*.mp4"


class DirectoryScanner:
    """Scans a single folder (non-recursive) for files matching a glob."""

    def __init__(self, pattern: str = DEFAULT_PATTERN):
        """Initialize scanner.

        Args:
            pattern: Filename glob, matched case-insensitively
        """
        self.pattern = pattern

    def matches(self, name: str) -> bool:
        return fnmatch.fnmatchcase(name.lower(), self.pattern.lower())

    def scan(self, directory: Union[str, Path]) -> Dict[str, datetime]:
        """List matching files and their current modification times.

        Args:
            directory: Folder to scan

        Returns:
            Mapping of filename to mtime truncated to whole seconds

        Raises:
            ScanError: If the folder is missing, not a folder, or unreadable
        """
        directory = Path(directory).expanduser()

        if not directory.exists():
            raise ScanError(f"Watch folder does not exist: {directory}")

        if not directory.is_dir():
            raise ScanError(f"Watch folder is not a directory: {directory}")

        current: Dict[str, datetime] = {}

        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    if not self.matches(entry.name):
                        continue

                    if not is_recordable_name(entry.name):
                        logger.warning(f"Skipping file with unsupported name: {entry.name!r}")
                        continue

                    try:
                        st = entry.stat(follow_symlinks=True)
                    except FileNotFoundError:
                        # Removed between listing and stat
                        continue

                    if not stat.S_ISREG(st.st_mode):
                        continue

                    current[entry.name] = truncate_to_second(datetime.fromtimestamp(st.st_mtime))

        except PermissionError as e:
            raise ScanError(f"Permission denied reading watch folder: {directory}") from e

        except OSError as e:
            raise ScanError(f"Failed to scan watch folder {directory}: {e}") from e

        logger.debug(f"Scanned {directory}: {len(current)} file(s) matching {self.pattern}")

        return current
