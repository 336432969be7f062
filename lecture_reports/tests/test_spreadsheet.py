import io
import unittest
from datetime import datetime, timezone
from decimal import Decimal

from openpyxl import load_workbook

from lecture_reports.spreadsheet import XlsxEncoder


def _read(document: bytes):
    workbook = load_workbook(io.BytesIO(document))
    return workbook.sheetnames, list(workbook.active.iter_rows(values_only=True))


class XlsxEncoderTests(unittest.TestCase):
    def test_header_follows_first_row_key_order(self):
        rows = [
            {"course": "CS101", "lecturer_name": "Smith", "week": 1},
            {"week": 2, "lecturer_name": "Jones", "course": "MA201"},
        ]
        names, values = _read(XlsxEncoder().encode(rows))
        self.assertEqual(names, ["Reports"])
        self.assertEqual(values[0], ("course", "lecturer_name", "week"))
        self.assertEqual(values[1], ("CS101", "Smith", 1))
        self.assertEqual(values[2], ("MA201", "Jones", 2))

    def test_later_rows_are_projected_onto_first_row_columns(self):
        rows = [{"a": 1, "b": 2}, {"a": 3, "c": 4}]
        _, values = _read(XlsxEncoder().encode(rows))
        self.assertEqual(values, [("a", "b"), (1, 2), (3, None)])

    def test_non_native_values_are_stringified(self):
        stamp = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
        rows = [{"score": Decimal("4.5"), "notes": {"k": "v"}, "raw": b"abc", "at": stamp}]
        _, values = _read(XlsxEncoder().encode(rows))
        self.assertEqual(values[1][0], 4.5)
        self.assertEqual(values[1][1], "{'k': 'v'}")
        self.assertEqual(values[1][2], "abc")
        self.assertEqual(values[1][3], datetime(2024, 5, 1, 9, 30))

    def test_formula_like_text_is_written_as_a_string(self):
        rows = [{"lecturer_name": "=1+1", "link": "=HYPERLINK(\"http://x\",\"y\")"}]
        workbook = load_workbook(io.BytesIO(XlsxEncoder().encode(rows)))
        cells = list(workbook.active.iter_rows(min_row=2, max_row=2))[0]
        self.assertEqual(cells[0].value, "=1+1")
        self.assertEqual(cells[0].data_type, "s")
        self.assertEqual(cells[1].value, "=HYPERLINK(\"http://x\",\"y\")")
        self.assertEqual(cells[1].data_type, "s")

    def test_control_characters_are_stripped(self):
        rows = [{"lecturer_name": "Smith\x01", "notes": b"a\x02b"}]
        _, values = _read(XlsxEncoder().encode(rows))
        self.assertEqual(values[1], ("Smith", "ab"))

    def test_empty_rows_are_rejected(self):
        with self.assertRaises(ValueError):
            XlsxEncoder().encode([])


if __name__ == "__main__":
    unittest.main()
