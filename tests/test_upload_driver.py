"""
Tests for UploadDriver.
"""

from datetime import datetime
from pathlib import Path

from watchfolder_agent.context import CycleContext
from watchfolder_agent.events import EventLog
from watchfolder_agent.models import NEVER_TRACKED, UploadTask
from watchfolder_agent.upload_driver import UploadDriver

from fakes import FakeUploader

T1 = datetime(2024, 1, 1, 10, 0, 0)
T2 = datetime(2024, 1, 2, 10, 0, 0)


def _task(name, revert=NEVER_TRACKED, new=T2):
    return UploadTask(name=name, full_path=Path("/watch") / name, new_timestamp=new, revert_timestamp=revert)


class TestUploadDriver:
    """Tests for UploadDriver.execute."""

    def setup_method(self):
        self.events = EventLog()
        self.context = CycleContext(cycle_id=3)

    def _driver(self, uploader, credentials, max_workers=1):
        return UploadDriver(uploader, credentials, part_size_bytes=4096, events=self.events,
                            max_workers=max_workers)

    def test_success_keeps_new_timestamp(self, credentials):
        uploader = FakeUploader()
        proposed = {"a.mp4": T2}

        finalized = self._driver(uploader, credentials).execute([_task("a.mp4", revert=T1)], proposed, self.context)

        assert finalized == {"a.mp4": T2}
        assert uploader.calls == [{
            'user_id': "user-1",
            'user_key': "secret",
            'folder_id': "folder-9",
            'display_name': "a.mp4",
            'local_path': str(Path("/watch") / "a.mp4"),
            'part_size_bytes': 4096,
        }]
        assert self.context.uploaded == 1

    def test_failure_reverts_to_prior_timestamp(self, credentials):
        uploader = FakeUploader(fail={"a.mp4"})
        proposed = {"a.mp4": T2}

        finalized = self._driver(uploader, credentials).execute([_task("a.mp4", revert=T1)], proposed, self.context)

        assert finalized == {"a.mp4": T1}
        assert self.context.failed == 1

    def test_failure_of_new_file_reverts_to_never_tracked(self, credentials):
        uploader = FakeUploader(fail={"a.mp4"})

        finalized = self._driver(uploader, credentials).execute([_task("a.mp4")], {"a.mp4": T2}, self.context)

        assert finalized["a.mp4"] is NEVER_TRACKED

    def test_failure_is_isolated_per_file(self, credentials):
        uploader = FakeUploader(fail={"b.mp4"})
        plan = [_task("a.mp4"), _task("b.mp4", revert=T1), _task("c.mp4")]
        proposed = {"a.mp4": T2, "b.mp4": T2, "c.mp4": T2}

        finalized = self._driver(uploader, credentials).execute(plan, proposed, self.context)

        assert uploader.uploaded_names == ["a.mp4", "b.mp4", "c.mp4"]
        assert finalized == {"a.mp4": T2, "b.mp4": T1, "c.mp4": T2}

    def test_failure_records_error_event(self, credentials):
        uploader = FakeUploader(fail={"a.mp4"})

        self._driver(uploader, credentials).execute([_task("a.mp4")], {"a.mp4": T2}, self.context)

        errors = [e for e in self.events.recent() if e.level == EventLog.ERROR]
        assert len(errors) == 1
        assert str(Path("/watch") / "a.mp4") in errors[0].message
        assert "remote rejected a.mp4" in errors[0].message
        assert errors[0].detail
        assert errors[0].event_id == 3001

    def test_unexpected_exception_is_treated_as_failure(self, credentials):
        class BrokenUploader:
            def upload(self, *args):
                raise RuntimeError("boom")

        finalized = self._driver(BrokenUploader(), credentials).execute(
            [_task("a.mp4", revert=T1)], {"a.mp4": T2}, self.context
        )

        assert finalized == {"a.mp4": T1}
        assert "Traceback" in self.context.outcomes[0].detail

    def test_parallel_uploads_keep_per_file_reverts(self, credentials):
        names = [f"clip{i}.mp4" for i in range(8)]
        uploader = FakeUploader(fail={"clip2.mp4", "clip5.mp4"})
        plan = [_task(name, revert=T1) for name in names]
        proposed = {name: T2 for name in names}

        finalized = self._driver(uploader, credentials, max_workers=4).execute(plan, proposed, self.context)

        assert sorted(uploader.uploaded_names) == names
        for name in names:
            expected = T1 if name in ("clip2.mp4", "clip5.mp4") else T2
            assert finalized[name] == expected
        assert [o.task.name for o in self.context.outcomes] == names

    def test_empty_plan_is_noop(self, credentials):
        uploader = FakeUploader()
        proposed = {"a.mp4": T1}

        assert self._driver(uploader, credentials).execute([], proposed, self.context) == {"a.mp4": T1}
        assert uploader.calls == []
