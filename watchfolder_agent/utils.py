"""
Utility functions for Watch Folder Agent.
"""

import os
import signal
import sys
from pathlib import Path

from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_PID_FILE = "~/.watchfolder/watchfolder-agent.pid"


def format_duration(seconds: float) -> str:
    """Format seconds as human-readable duration.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "2m 5s", "0.42s")
    """
    if seconds < 60:
        return f"{seconds:.2f}s"
    seconds = int(seconds)
    if seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m"


def ensure_single_instance(pid_file: str = DEFAULT_PID_FILE) -> bool:
    """Ensure only one instance of agent is running.

    Args:
        pid_file: Path to PID file

    Returns:
        True if this is the only instance
    """
    pid_file_path = Path(pid_file).expanduser()

    if pid_file_path.exists():
        try:
            old_pid = int(pid_file_path.read_text().strip())
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable PID file, replacing it: {e}")
        else:
            try:
                os.kill(old_pid, 0)
                logger.error(f"Another instance is already running (PID {old_pid})")
                return False
            except ProcessLookupError:
                logger.warning(f"Removing stale PID file for process {old_pid}")
            except PermissionError:
                # Process exists but belongs to another user
                logger.error(f"Another instance is already running (PID {old_pid})")
                return False

    pid_file_path.parent.mkdir(parents=True, exist_ok=True)
    pid_file_path.write_text(str(os.getpid()))

    logger.info(f"PID file created: {pid_file_path}")

    return True


def remove_pid_file(pid_file: str = DEFAULT_PID_FILE) -> None:
    """Remove PID file."""
    pid_file_path = Path(pid_file).expanduser()

    if pid_file_path.exists():
        pid_file_path.unlink()
        logger.info("PID file removed")


def setup_signal_handlers(shutdown_callback) -> None:
    """Setup signal handlers for graceful shutdown.

    Args:
        shutdown_callback: Function to call on shutdown signals
    """
    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        shutdown_callback()
        sys.exit(0)

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    logger.debug("Signal handlers registered")


def check_folder_access(folder: str) -> bool:
    """Check that the watched folder exists and can be listed.

    Args:
        folder: Folder path

    Returns:
        True if accessible
    """
    folder_path = Path(folder).expanduser()

    try:
        if not folder_path.exists():
            logger.error(f"Watch folder does not exist: {folder}")
            return False

        if not folder_path.is_dir():
            logger.error(f"Watch folder is not a directory: {folder}")
            return False

        with os.scandir(folder_path):
            pass

        return True

    except PermissionError:
        logger.error(f"Permission denied accessing watch folder: {folder}")
        return False

    except OSError as e:
        logger.error(f"Watch folder check failed: {e}")
        return False
