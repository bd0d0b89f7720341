import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from watchfiles import Change

from codex_waybar.sessions.file_watcher import ChangeWaiter, _is_session_log


class ChangeWaiterTests(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.root = Path(tmpdir.name)

    def test_sleeps_when_watching_disabled(self) -> None:
        waiter = ChangeWaiter(0.25, [self.root], enabled=False)
        with patch("codex_waybar.sessions.file_watcher.time.sleep") as sleep, patch(
            "codex_waybar.sessions.file_watcher.watch"
        ) as watch:
            self.assertEqual(waiter.wait(), set())
        sleep.assert_called_once_with(0.25)
        watch.assert_not_called()

    def test_falls_back_to_sleep_without_existing_paths(self) -> None:
        waiter = ChangeWaiter(0.1, [self.root / "missing"], enabled=True)
        with patch("codex_waybar.sessions.file_watcher.time.sleep") as sleep:
            with self.assertLogs("codex_waybar.watcher", level="WARNING"):
                waiter.wait()
        sleep.assert_called_once_with(0.1)
        self.assertFalse(waiter.enabled)
        self.assertFalse(waiter.is_watching)

    def test_returns_changes_from_watchfiles(self) -> None:
        batches = [{(Change.modified, str(self.root / "a.jsonl"))}, set()]
        waiter = ChangeWaiter(0.25, [self.root, self.root / "missing"], enabled=True)

        with patch(
            "codex_waybar.sessions.file_watcher.watch",
            return_value=iter(batches),
        ) as watch, patch("codex_waybar.sessions.file_watcher.time.sleep") as sleep:
            self.assertEqual(waiter.wait(), batches[0])
            self.assertEqual(waiter.wait(), set())
            self.assertTrue(waiter.is_watching)
            # Exhausted iterator: fall back to polling.
            self.assertEqual(waiter.wait(), set())
            self.assertFalse(waiter.is_watching)

        args, kwargs = watch.call_args
        self.assertEqual(args, (self.root,))
        self.assertEqual(kwargs["rust_timeout"], 250)
        self.assertTrue(kwargs["yield_on_timeout"])
        sleep.assert_not_called()

    def test_start_logs_watched_paths(self) -> None:
        waiter = ChangeWaiter(0.25, [self.root, self.root / "missing"], enabled=True)
        with patch(
            "codex_waybar.sessions.file_watcher.watch",
            return_value=iter([set()]),
        ):
            with self.assertLogs("codex_waybar.watcher", level="INFO") as logs:
                waiter.wait()

        record = logs.records[0]
        self.assertEqual(record.msg, "Watching %d paths: %s")
        self.assertEqual(record.args, (1, [str(self.root)]))
        self.assertEqual(record.getMessage(), f"Watching 1 paths: {[str(self.root)]}")

    def test_watcher_errors_fall_back_to_sleep(self) -> None:
        def broken():
            raise OSError("inotify limit reached")
            yield  # pragma: no cover

        waiter = ChangeWaiter(0.5, [self.root], enabled=True)
        with patch("codex_waybar.sessions.file_watcher.watch", return_value=broken()), patch(
            "codex_waybar.sessions.file_watcher.time.sleep"
        ) as sleep:
            with self.assertLogs("codex_waybar.watcher", level="WARNING"):
                self.assertEqual(waiter.wait(), set())
            waiter.wait()
        self.assertEqual(sleep.call_count, 2)
        self.assertFalse(waiter.enabled)

    def test_filter_accepts_only_session_logs(self) -> None:
        self.assertTrue(_is_session_log(Change.added, "/x/rollout-1.jsonl"))
        self.assertFalse(_is_session_log(Change.added, "/x/latest.json"))


if __name__ == "__main__":
    unittest.main()
