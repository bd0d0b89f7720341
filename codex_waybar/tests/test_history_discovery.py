import tempfile
import unittest
from pathlib import Path

from codex_waybar.parsers.history import recent_session_ids


class RecentSessionIdsTests(unittest.TestCase):
    def _history(self, content: str) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "history.jsonl"
        path.write_text(content, encoding="utf-8")
        return path

    def test_returns_unique_sessions_oldest_first(self) -> None:
        path = self._history(
            '{"session_id":"alpha"}\n'
            '{"session_id":"beta"}\n'
            '{"session_id":"alpha"}\n'
            '{"session_id":"gamma"}\n'
        )

        self.assertEqual(recent_session_ids(path, 2), ["alpha", "gamma"])
        self.assertEqual(recent_session_ids(path, 3), ["beta", "alpha", "gamma"])
        self.assertEqual(recent_session_ids(path, 10), ["beta", "alpha", "gamma"])

    def test_missing_file_and_zero_limit_yield_empty_list(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.assertEqual(recent_session_ids(Path(tmpdir.name) / "missing.jsonl", 3), [])

        path = self._history('{"session_id":"alpha"}\n')
        self.assertEqual(recent_session_ids(path, 0), [])

    def test_skips_malformed_and_id_less_records(self) -> None:
        path = self._history(
            '{"session_id":"alpha","text":"hi"}\n'
            "not json at all\n"
            "\n"
            '{"ts": 1700000000}\n'
            '{"session_id": 42}\n'
            '["session_id"]\n'
            '{"session_id":"beta"'
        )

        with self.assertLogs("codex_waybar.history", level="WARNING") as captured:
            ids = recent_session_ids(path, 5)

        self.assertEqual(ids, ["alpha"])
        self.assertEqual(len(captured.records), 2)


if __name__ == "__main__":
    unittest.main()
