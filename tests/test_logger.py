"""
Tests for logging setup.
"""

import json
import logging

import pytest

from watchfolder_agent.events import EventLog
from watchfolder_agent.logger import LOG_FILE_NAME, ROOT_LOGGER_NAME, configure_logging, get_logger


class TestConfigureLogging:

    def teardown_method(self):
        configure_logging(console=False)

    def _file_entries(self, log_dir):
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.flush()
        lines = (log_dir / LOG_FILE_NAME).read_text(encoding="utf-8").splitlines()
        return [json.loads(line) for line in lines]

    def test_file_lines_are_json_with_event_id(self, tmp_path):
        configure_logging(log_dir=tmp_path, log_level="info", console=False)

        EventLog().error("Uploading clip.mp4 Failed: timeout", event_id=1003)

        entries = self._file_entries(tmp_path)
        assert len(entries) == 1
        assert entries[0]['event_id'] == 1003
        assert entries[0]['level'] == "ERROR"
        assert entries[0]['component'] == "watchfolder-agent"
        assert entries[0]['name'] == "watchfolder_agent.events"
        assert "timestamp" in entries[0]

    def test_level_filters_module_loggers(self, tmp_path):
        configure_logging(log_dir=tmp_path, log_level="WARNING", console=False)
        log = get_logger("watchfolder_agent.scanner")

        log.info("hidden")
        log.warning("shown")

        assert [e['message'] for e in self._file_entries(tmp_path)] == ["shown"]

    def test_reconfiguring_replaces_handlers(self, tmp_path):
        configure_logging(log_dir=tmp_path, console=True)
        logger = configure_logging(console=True)

        assert len(logger.handlers) == 1

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            configure_logging(log_level="LOUD", console=False)
