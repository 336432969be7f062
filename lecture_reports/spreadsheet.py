"""
Spreadsheet export of report rows.
"""

from __future__ import annotations

import datetime as dt
import io
from decimal import Decimal
from typing import Any, Mapping, Protocol, Sequence

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

XLSX_MEDIA_TYPE = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
)

_NATIVE_TYPES = (str, int, float, bool, Decimal, dt.datetime, dt.date, dt.time, dt.timedelta)


class TabularEncoder(Protocol):
    """Turns an ordered sequence of rows into a binary document."""

    def encode(self, rows: Sequence[Mapping[str, Any]]) -> bytes:
        ...


def _cell_value(value: Any) -> Any:
    # Excel has no timezone support.
    if isinstance(value, dt.datetime) and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    elif value is not None and not isinstance(value, _NATIVE_TYPES):
        value = str(value)
    if isinstance(value, str):
        # Control characters are not allowed in the sheet XML.
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


def _append_row(sheet, values) -> None:
    sheet.append([_cell_value(value) for value in values])
    # Stored text is written verbatim, never as a formula.
    for cell in sheet[sheet.max_row]:
        if cell.data_type == "f":
            cell.data_type = "s"


class XlsxEncoder:
    """Writes rows to a single-sheet workbook.

    The header row is the key order of the first row; later rows are
    projected onto those columns.
    """

    def __init__(self, sheet_title: str = "Reports"):
        self.sheet_title = sheet_title

    def encode(self, rows: Sequence[Mapping[str, Any]]) -> bytes:
        if not rows:
            raise ValueError("Cannot build a spreadsheet without rows")
        columns = list(rows[0].keys())

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = self.sheet_title
        _append_row(sheet, columns)
        for row in rows:
            _append_row(sheet, [row.get(key) for key in columns])

        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()
