"""
Tests for utilities and the cycle scheduler.
"""

import os

import pytest

from watchfolder_agent.scheduler import SYNC_JOB_ID, CycleScheduler
from watchfolder_agent.utils import (
    check_folder_access,
    ensure_single_instance,
    format_duration,
    remove_pid_file,
)


@pytest.mark.parametrize("seconds,expected", [
    (0.5, "0.50s"),
    (125, "2m 5s"),
    (3725, "1h 2m"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


class TestPidFile:

    def test_first_instance_writes_pid(self, tmp_path):
        pid_file = tmp_path / "run" / "agent.pid"

        assert ensure_single_instance(str(pid_file))
        assert pid_file.read_text() == str(os.getpid())

        remove_pid_file(str(pid_file))
        assert not pid_file.exists()

    def test_live_process_blocks_second_instance(self, tmp_path):
        pid_file = tmp_path / "agent.pid"
        pid_file.write_text(str(os.getpid()))

        assert not ensure_single_instance(str(pid_file))

    def test_garbage_pid_file_is_replaced(self, tmp_path):
        pid_file = tmp_path / "agent.pid"
        pid_file.write_text("not-a-pid")

        assert ensure_single_instance(str(pid_file))


def test_check_folder_access(tmp_path):
    assert check_folder_access(str(tmp_path))
    assert not check_folder_access(str(tmp_path / "missing"))

    file_path = tmp_path / "file.txt"
    file_path.write_text("")
    assert not check_folder_access(str(file_path))


def test_sync_job_is_single_instance():
    scheduler = CycleScheduler()
    scheduler.add_sync_job(lambda: None, interval_ms=2500)

    jobs = scheduler.scheduler.get_jobs()

    assert [job.id for job in jobs] == [SYNC_JOB_ID]
    assert jobs[0].max_instances == 1
    assert jobs[0].trigger.interval.total_seconds() == 2.5
