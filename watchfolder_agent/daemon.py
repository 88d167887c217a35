"""
Watch Folder Agent Daemon
Background process that syncs the watched folder to the upload server.
"""

import sys
import time
from pathlib import Path
from typing import Optional

from .config import Config, ConfigManager
from .events import EventLog
from .exceptions import ConfigError
from .keychain import KeychainManager
from .logger import get_logger, configure_logging
from .scanner import DirectoryScanner
from .scheduler import CycleScheduler
from .state_store import StateStore
from .sync_engine import SyncEngine
from .upload_driver import UploadDriver
from .uploader import HTTPUploader, UploadCredentials, Uploader
from .utils import (
    check_folder_access,
    ensure_single_instance,
    format_duration,
    remove_pid_file,
    setup_signal_handlers,
)

logger = get_logger(__name__)


def resolve_user_key(config: Config) -> str:
    """User key from the config file, falling back to the keychain.

    Raises:
        ConfigError: If no key is available
    """
    if config.user_key:
        return config.user_key

    user_key = KeychainManager().get_user_key(config.user_id)
    if not user_key:
        raise ConfigError(
            f"No user key for user {config.user_id}: set user_key in the config "
            "or run 'watchfolder-agent setup'"
        )
    return user_key


def build_uploader(config: Config) -> HTTPUploader:
    """Reference HTTP uploader for the configured server."""
    return HTTPUploader(
        server=config.server,
        timeout=config.api_timeout,
        verify_ssl=config.verify_ssl,
        max_retries=config.max_retries
    )


def build_engine(
    config: Config,
    events: Optional[EventLog] = None,
    uploader: Optional[Uploader] = None
) -> SyncEngine:
    """Wire the sync components from configuration.

    Args:
        config: Loaded configuration
        events: Diagnostic sink (created from config if omitted)
        uploader: Uploader collaborator (HTTPUploader if omitted)

    Returns:
        SyncEngine
    """
    events = events or EventLog(config.event_log_path)

    if uploader is None:
        uploader = build_uploader(config)

    credentials = UploadCredentials(
        user_id=config.user_id,
        user_key=resolve_user_key(config),
        folder_id=config.folder_id
    )

    driver = UploadDriver(
        uploader=uploader,
        credentials=credentials,
        part_size_bytes=config.part_size_bytes,
        events=events,
        max_workers=config.max_concurrent_uploads
    )

    return SyncEngine(
        watch_folder=config.watch_path,
        state_store=StateStore(config.info_path),
        scanner=DirectoryScanner(config.file_pattern),
        driver=driver,
        events=events
    )


class WatchFolderDaemon:
    """Main daemon process for Watch Folder Agent."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize daemon.

        Args:
            config_path: Optional custom config path
        """
        self.config_manager = ConfigManager(config_path)
        self.config: Optional[Config] = None
        self.events: Optional[EventLog] = None
        self.uploader: Optional[HTTPUploader] = None
        self.engine: Optional[SyncEngine] = None
        self.scheduler: Optional[CycleScheduler] = None
        self.running = False

    def initialize(self) -> None:
        """Initialize all components.

        Raises:
            ConfigError: On missing or invalid configuration, or an unusable
                watch folder
        """
        self.config = self.config_manager.load()

        configure_logging(
            log_dir=self.config.log_dir,
            log_level=self.config.log_level,
            console=True
        )

        logger.info("=" * 60)
        logger.info("Watch Folder Agent Daemon Starting")
        logger.info("=" * 60)
        logger.info(f"Watch folder: {self.config.watch_folder}")
        logger.info(f"State record: {self.config.info_file_path}")
        logger.info(f"Server: {self.config.server}")
        logger.info(f"Pattern: {self.config.file_pattern}")
        logger.info(f"Interval: {self.config.interval_ms} ms")

        self.config_manager.ensure_directories()

        if not check_folder_access(self.config.watch_folder):
            raise ConfigError(f"Watch folder is not accessible: {self.config.watch_folder}")

        self.events = EventLog(self.config.event_log_path)
        self.uploader = build_uploader(self.config)
        if not self.uploader.check_server():
            # Not fatal; failed uploads are retried every cycle
            logger.warning(f"Upload server not reachable: {self.config.server}")
        self.engine = build_engine(self.config, events=self.events, uploader=self.uploader)

        self.scheduler = CycleScheduler()
        self.scheduler.add_sync_job(self.run_cycle, interval_ms=self.config.interval_ms)

        logger.info("Initialization complete")

    def run_cycle(self) -> None:
        """Scheduled job: one reconcile cycle."""
        result = self.engine.run_cycle()

        if result.success:
            logger.debug(
                f"Cycle {result.cycle_id} complete in {format_duration(result.duration)}: {result.stats}"
            )
        else:
            logger.warning(f"Cycle {result.cycle_id} failed: {result.error}")

    def start(self) -> None:
        """Start the daemon."""
        try:
            self.initialize()
        except ConfigError as e:
            logger.error(f"Initialization failed: {e}")
            sys.exit(1)

        if not ensure_single_instance(self.config.pid_file):
            logger.error("Another instance is already running")
            sys.exit(1)

        setup_signal_handlers(self.shutdown)

        self.running = True
        self.events.info("Service Started Successfully")

        # Run the first cycle before the interval elapses
        self.run_cycle()

        self.scheduler.start()

        logger.info("=" * 60)
        logger.info("Watch Folder Agent Daemon Running")
        logger.info("=" * 60)

        try:
            while self.running:
                time.sleep(1)

        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")

        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Shutdown the daemon gracefully."""
        if not self.running:
            return

        logger.info("Shutting down Watch Folder Agent")

        self.running = False

        if self.scheduler:
            self.scheduler.stop()

        if self.uploader:
            self.uploader.close()

        if self.events:
            self.events.info("Service Stopped Successfully")

        remove_pid_file(self.config.pid_file)

        logger.info("Shutdown complete")


def main():
    """Main entry point."""
    WatchFolderDaemon().start()


if __name__ == "__main__":
    main()
