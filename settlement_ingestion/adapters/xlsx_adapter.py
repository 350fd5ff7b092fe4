"""
XLSX workbook adapter for settlement uploads.

Reads the requested sheets of a workbook in one pass:
  - first row of each sheet is the header
  - header cells are stripped and inner whitespace collapsed
  - rows with no value at all are dropped
  - cell values are normalized (strip text, blank -> empty string,
    integral floats -> int, dates left as datetime)

Sheets that are not present in the workbook are simply absent from the
result; callers decide whether that matters.
"""

from __future__ import annotations

import re
from io import BytesIO
from pathlib import Path
from typing import Any, BinaryIO, Iterable, Iterator, Union

import openpyxl

WorkbookSource = Union[Path, str, bytes, BinaryIO]


def _normalize_header_cell(value: Any) -> str:
    """Normalize a header cell for use as a dict key."""
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip()


def _cell_value(value: Any) -> Any:
    """Normalize one cell value read in values_only mode."""
    if value is None:
        return ""
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        return value
    if isinstance(value, str):
        return value.strip()
    return value


def _open(source: WorkbookSource) -> Any:
    if isinstance(source, (bytes, bytearray)):
        return BytesIO(source)
    return source


class XlsxWorkbookReader:
    """
    Read .xlsx / .xlsm workbooks as one list of row dicts per sheet.

    The workbook is opened read-only with cached formula values
    (``data_only=True``) and closed before returning.
    """

    def read_sheets(
        self,
        source: WorkbookSource,
        sheet_names: Iterable[str],
    ) -> dict[str, list[dict[str, Any]]]:
        """Rows of every requested sheet that exists, keyed by sheet name."""
        wb = openpyxl.load_workbook(_open(source), read_only=True, data_only=True)
        try:
            result: dict[str, list[dict[str, Any]]] = {}
            for name in sheet_names:
                if name not in wb.sheetnames:
                    continue
                result[name] = list(self._rows(wb[name]))
            return result
        finally:
            wb.close()

    def _rows(self, sheet: Any) -> Iterator[dict[str, Any]]:
        rows = sheet.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return

        headers: list[str] = []
        for c, v in enumerate(header):
            key = _normalize_header_cell(v) or f"Column_{c + 1}"
            # Dedupe duplicate headers
            base = key
            cnt = 0
            while key in headers:
                cnt += 1
                key = f"{base}_{cnt}"
            headers.append(key)

        for row in rows:
            vals = [_cell_value(v) for v in row[: len(headers)]]
            if not any(v != "" for v in vals):
                continue
            vals.extend([""] * (len(headers) - len(vals)))
            yield dict(zip(headers, vals))
