"""
ingest_test provides tests for reading the emotion corpus CSV.
"""
from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from emovec.store.ingest import read_csv


class ReadCSVTest(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.path = Path(self.tmp.name) / "emotions.csv"

    def write(self, text: str) -> None:
        self.path.write_text(text, encoding="utf-8")

    def test_parses_rows_after_header(self) -> None:
        self.write("Label,Pleasure,Arousal,Dominance\njoy,0.8,0.7,0.6\nfear, -0.6 ,0.8,-0.4\n")
        entries = read_csv(self.path)
        self.assertEqual([e.label for e in entries], ["joy", "fear"])
        self.assertEqual(
            (entries[1].pleasure, entries[1].arousal, entries[1].dominance),
            (-0.6, 0.8, -0.4),
        )
        self.assertTrue(all(e.embedding is None for e in entries))

    def test_single_joy_row(self) -> None:
        self.write("Label,Pleasure,Arousal,Dominance\njoy,0.8,0.7,0.6\n")
        entries = read_csv(self.path)
        self.assertEqual(len(entries), 1)
        joy = entries[0]
        self.assertEqual(joy.label, "joy")
        self.assertEqual((joy.pleasure, joy.arousal, joy.dominance), (0.8, 0.7, 0.6))
        self.assertIsNone(joy.embedding)

    def test_skips_blank_and_short_rows(self) -> None:
        self.write("Label,P,A,D\n\njoy,0.8,0.7,0.6\nbroken,0.1\n,,,\n")
        self.assertEqual([e.label for e in read_csv(self.path)], ["joy"])

    def test_non_numeric_scores_become_zero(self) -> None:
        self.write("Label,P,A,D\nbliss,high,0.5,n/a\n")
        entry = read_csv(self.path)[0]
        self.assertEqual((entry.pleasure, entry.arousal, entry.dominance), (0.0, 0.5, 0.0))

    def test_duplicate_labels_keep_first(self) -> None:
        self.write("Label,P,A,D\njoy,0.8,0.7,0.6\njoy,0.1,0.1,0.1\n")
        entries = read_csv(self.path)
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].pleasure, 0.8)

    def test_header_only(self) -> None:
        self.write("Label,P,A,D\n")
        self.assertEqual(read_csv(self.path), [])


if __name__ == "__main__":
    unittest.main()
