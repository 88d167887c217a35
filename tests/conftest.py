"""
PyTest fixtures for Watch Folder Agent tests.

Provides:
- Temporary watch folder and state record paths
- A recording fake Uploader
- A fully wired SyncEngine over the fakes
"""

from pathlib import Path

import pytest

from watchfolder_agent.events import EventLog
from watchfolder_agent.scanner import DirectoryScanner
from watchfolder_agent.state_store import StateStore
from watchfolder_agent.sync_engine import SyncEngine
from watchfolder_agent.upload_driver import UploadDriver
from watchfolder_agent.uploader import UploadCredentials

from fakes import FakeUploader


@pytest.fixture
def watch_dir(tmp_path) -> Path:
    directory = tmp_path / "watch"
    directory.mkdir()
    return directory


@pytest.fixture
def state_path(tmp_path) -> Path:
    return tmp_path / "state" / "folder-info.txt"


@pytest.fixture
def credentials() -> UploadCredentials:
    return UploadCredentials(user_id="user-1", user_key="secret", folder_id="folder-9")


@pytest.fixture
def uploader() -> FakeUploader:
    return FakeUploader()


@pytest.fixture
def events() -> EventLog:
    return EventLog()


@pytest.fixture
def engine(watch_dir, state_path, uploader, credentials, events) -> SyncEngine:
    driver = UploadDriver(uploader, credentials, part_size_bytes=1048576, events=events)
    return SyncEngine(
        watch_folder=watch_dir,
        state_store=StateStore(state_path),
        scanner=DirectoryScanner("*.mp4"),
        driver=driver,
        events=events
    )
