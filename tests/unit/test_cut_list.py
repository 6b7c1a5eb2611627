"""
Tests for cutting list output.

Run with: pytest tests/unit/test_cut_list.py -v
"""

import tempfile
import unittest
from pathlib import Path

from pipesplit.core.split_settings import SplitSettings
from pipesplit.splitting.cut_list import format_cut_list, write_cut_list
from pipesplit.splitting.segmentation_engine import SegmentationEngine
from conftest import PIPE_TYPE, RUN, SYSTEM, SYSTEM_TYPE, run_document


def split_run(length, settings=None):
    doc = run_document(length=length, diameter=150.0)
    with doc.transaction("split pipe"):
        return SegmentationEngine(doc, settings).split(
            doc.get_element(RUN), doc.get_element(SYSTEM), SYSTEM_TYPE, PIPE_TYPE)


class TestCutList(unittest.TestCase):
    """Layout of the cutting list"""

    def setUp(self):
        self.result = split_run(20000.0)
        self.text = format_cut_list(self.result, "Riser A")
        self.lines = self.text.splitlines()

    def test_header(self):
        self.assertEqual(self.lines[0], "Cut List for: Riser A")
        self.assertIn("Run Bounds (mm)", self.lines)
        self.assertIn("Cutting order:", self.lines)

    def test_one_row_per_segment_in_run_order(self):
        header = self.lines.index("Segment\tElement\tLength(mm)\tDiameter(mm)\tStart\tEnd")
        rows = [line.split("\t") for line in self.lines[header + 1:header + 5]]

        self.assertEqual([row[0] for row in rows], ["1", "2", "3", "4"])
        self.assertEqual([int(row[1]) for row in rows], [s.id for s in self.result.segments])
        self.assertEqual([row[2] for row in rows], ["6000.00", "6000.00", "6000.00", "1730.90"])
        self.assertTrue(all(row[3] == "150.00" for row in rows))
        self.assertEqual(rows[0][4], "(0.0, 0.0, 0.0)")
        self.assertEqual(rows[-1][5], "(20000.0, 0.0, 0.0)")

    def test_totals(self):
        self.assertIn("\tUnions: 3 (gap 89.70 mm each)", self.lines)
        self.assertIn("\tTotal Pipe Length: 19730.90", self.lines)

    def test_bounds(self):
        self.assertIn("\tX-min: 0.00\tX_max: 20000.00", self.lines)

    def test_other_unit(self):
        text = format_cut_list(self.result, "Riser A", SplitSettings(length_unit="m"))
        self.assertIn("Length(m)", text)
        self.assertIn("\t6.00\t", text)


class TestCutListNoSplit(unittest.TestCase):

    def test_short_run(self):
        text = format_cut_list(split_run(4000.0), "Short")
        self.assertIn("\tUnions: 0", text)
        self.assertIn("\tTotal Pipe Length: 4000.00", text)


class TestWriteCutList(unittest.TestCase):

    def test_creates_parent_directories(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = write_cut_list(Path(tmp) / "nested" / "cuts.txt", split_run(6500.0), "Job")
            self.assertTrue(path.exists())
            self.assertTrue(path.read_text(encoding="utf-8").startswith("Cut List for: Job"))


if __name__ == '__main__':
    unittest.main()
