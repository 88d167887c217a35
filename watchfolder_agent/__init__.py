"""
Watch Folder Agent
Version: 1.0

A background daemon that uploads new and modified files from a watched
folder, exactly once per observed change, retrying failed uploads on the
next cycle.
"""

__version__ = "1.0.0"

from .config import Config, ConfigManager
from .exceptions import ConfigError, PersistError, ScanError, UploadError, WatchFolderError
from .logger import get_logger
from .models import NEVER_TRACKED, FileRecord, UploadTask
from .reconciler import diff
from .scanner import DirectoryScanner
from .state_store import StateStore
from .sync_engine import CycleState, SyncEngine
from .upload_driver import UploadDriver
from .uploader import HTTPUploader, UploadCredentials

__all__ = [
    "Config",
    "ConfigManager",
    "ConfigError",
    "PersistError",
    "ScanError",
    "UploadError",
    "WatchFolderError",
    "get_logger",
    "NEVER_TRACKED",
    "FileRecord",
    "UploadTask",
    "diff",
    "DirectoryScanner",
    "StateStore",
    "CycleState",
    "SyncEngine",
    "UploadDriver",
    "HTTPUploader",
    "UploadCredentials",
    "__version__"
]
