"""
Tests for DirectoryScanner.
"""

import os
import sys
from datetime import datetime
from unittest.mock import patch

import pytest

from watchfolder_agent.exceptions import ScanError
from watchfolder_agent.scanner import DirectoryScanner

from fakes import make_file


class TestDirectoryScanner:
    """Tests for DirectoryScanner.scan."""

    def setup_method(self):
        self.scanner = DirectoryScanner("*.mp4")

    def test_lists_matching_files_with_mtime(self, watch_dir):
        make_file(watch_dir, "clip1.mp4", datetime(2024, 1, 1, 10, 0, 0))
        make_file(watch_dir, "notes.txt", datetime(2024, 1, 1, 10, 0, 0))

        assert self.scanner.scan(watch_dir) == {"clip1.mp4": datetime(2024, 1, 1, 10, 0, 0)}

    def test_truncates_sub_second_mtime(self, watch_dir):
        path = make_file(watch_dir, "clip.mp4", datetime(2024, 1, 1, 10, 0, 0))
        ts = datetime(2024, 1, 1, 10, 0, 0).timestamp() + 0.75
        os.utime(path, (ts, ts))

        assert self.scanner.scan(watch_dir) == {"clip.mp4": datetime(2024, 1, 1, 10, 0, 0)}

    def test_extension_match_ignores_case(self, watch_dir):
        make_file(watch_dir, "UPPER.MP4", datetime(2024, 1, 1))

        assert list(self.scanner.scan(watch_dir)) == ["UPPER.MP4"]

    def test_is_not_recursive(self, watch_dir):
        sub = watch_dir / "sub"
        sub.mkdir()
        make_file(sub, "nested.mp4", datetime(2024, 1, 1))
        (watch_dir / "folder.mp4").mkdir()

        assert self.scanner.scan(watch_dir) == {}

    def test_skips_unrecordable_names(self, watch_dir):
        make_file(watch_dir, "semi;colon.mp4", datetime(2024, 1, 1))
        make_file(watch_dir, "ok.mp4", datetime(2024, 1, 1))

        assert list(self.scanner.scan(watch_dir)) == ["ok.mp4"]

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(ScanError):
            self.scanner.scan(tmp_path / "missing")

    def test_file_path_raises(self, tmp_path):
        path = tmp_path / "file.mp4"
        path.write_bytes(b"")

        with pytest.raises(ScanError):
            self.scanner.scan(path)

    def test_unreadable_directory_raises(self, watch_dir):
        with patch("watchfolder_agent.scanner.os.scandir", side_effect=PermissionError("denied")):
            with pytest.raises(ScanError):
                self.scanner.scan(watch_dir)

    @pytest.mark.skipif(sys.platform != "linux", reason="needs byte filenames")
    def test_skips_names_that_are_not_utf8(self, watch_dir):
        with open(os.path.join(os.fsencode(watch_dir), b"bad\xff.mp4"), "wb") as f:
            f.write(b"data")
        make_file(watch_dir, "good.mp4", datetime(2024, 1, 1))

        assert list(self.scanner.scan(watch_dir)) == ["good.mp4"]

    def test_keeps_names_with_unicode_line_breaks(self, watch_dir):
        make_file(watch_dir, "a\x85b.mp4", datetime(2024, 1, 1))

        assert list(self.scanner.scan(watch_dir)) == ["a\x85b.mp4"]
