import tempfile
import unittest
from pathlib import Path

from codex_waybar.sessions.tail import read_new_lines


class ReadNewLinesTests(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.path = Path(tmpdir.name) / "session.jsonl"

    def _append(self, data: str) -> None:
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(data)

    def test_offset_tracks_file_length_across_appends(self) -> None:
        batches = [["one", "two"], ["three"], ["four", "five", "six"]]
        collected: list[str] = []
        offset = 0
        for batch in batches:
            self._append("".join(f"{line}\n" for line in batch))
            lines, offset = read_new_lines(self.path, offset)
            self.assertEqual(offset, self.path.stat().st_size)
            collected.extend(lines)

        self.assertEqual(collected, [line for batch in batches for line in batch])

    def test_no_new_data_returns_nothing(self) -> None:
        self._append("only\n")
        _, offset = read_new_lines(self.path, 0)
        lines, again = read_new_lines(self.path, offset)
        self.assertEqual(lines, [])
        self.assertEqual(again, offset)

    def test_resets_offset_when_file_shrinks(self) -> None:
        self.path.write_text("line1\nline2\n", encoding="utf-8")
        offset = self.path.stat().st_size

        self.path.write_text("line3\n", encoding="utf-8")

        lines, offset = read_new_lines(self.path, offset)
        self.assertEqual(lines, ["line3"])
        self.assertEqual(offset, self.path.stat().st_size)

    def test_partial_final_line_is_returned_once(self) -> None:
        self._append('{"a": 1}\n{"b"')
        lines, offset = read_new_lines(self.path, 0)
        self.assertEqual(lines, ['{"a": 1}', '{"b"'])
        self.assertEqual(offset, self.path.stat().st_size)

        self._append(": 2}\n")
        lines, offset = read_new_lines(self.path, offset)
        self.assertEqual(lines, [": 2}"])
        self.assertEqual(offset, self.path.stat().st_size)

    def test_offsets_count_bytes_not_characters(self) -> None:
        self._append("héllo ✓\nnext\n")
        lines, offset = read_new_lines(self.path, 0)
        self.assertEqual(lines, ["héllo ✓", "next"])
        self.assertEqual(offset, len("héllo ✓\nnext\n".encode("utf-8")))

    def test_missing_file_raises_file_not_found(self) -> None:
        with self.assertRaises(FileNotFoundError):
            read_new_lines(self.path, 0)


if __name__ == "__main__":
    unittest.main()
