"""
Exceptions for Watch Folder Agent.
"""

from typing import Optional


class WatchFolderError(Exception):
    """Base exception for watch folder operations."""


class ConfigError(WatchFolderError):
    """Raised when configuration is missing or invalid. Fatal to the process."""


class ScanError(WatchFolderError):
    """Raised when the watched directory cannot be listed."""


class PersistError(WatchFolderError):
    """Raised when the state record cannot be written."""


class UploadError(WatchFolderError):
    """Raised when a single file upload fails."""

    def __init__(self, message: str, file_path: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.file_path = file_path
        self.detail = detail
