"""
CSV export of settlement views.

Format:
    - UTF-8 with a byte-order mark so spreadsheet tools detect the encoding
    - header row of column labels, every label quoted
    - values quoted only when they contain a comma, quote or line break
    - rows joined by ``\\n``
    - file name ``settlements_YYYY-MM-DD.csv`` from the export date
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from datetime import date
from enum import Enum
from typing import Any

from settlement_kernel.logging_config import get_logger

from settlement_engines.settlement import SettlementView

from settlement_ingestion.exporters.columns import column_spec, default_visible_columns

logger = get_logger("ingestion.csv_exporter")

BOM = "\ufeff"


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def csv_filename(export_date: date) -> str:
    return f"settlements_{export_date.isoformat()}.csv"


def export_csv(
    views: Iterable[SettlementView],
    columns: Sequence[str] | None,
    export_date: date,
) -> tuple[str, bytes]:
    """Render ``views`` as CSV.  ``columns`` defaults to the visible columns.

    Returns:
        (file name, encoded bytes)

    Raises:
        KeyError: A column key is not in the catalog.
    """
    keys = tuple(columns) if columns else default_visible_columns()
    specs = [column_spec(k) for k in keys]

    buffer = io.StringIO()
    csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n").writerow(
        spec.label for spec in specs
    )
    rows = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    count = 0
    for view in views:
        rows.writerow(_text(view.value(spec.key)) for spec in specs)
        count += 1

    filename = csv_filename(export_date)
    logger.info(
        "csv_exported",
        extra={"export_filename": filename, "row_count": count, "columns": list(keys)},
    )
    # rows are joined by "\n"; no terminator after the last one
    text = buffer.getvalue().removesuffix("\n")
    return filename, (BOM + text).encode("utf-8")


def format_clipboard_rows(
    views: Iterable[SettlementView],
    columns: Sequence[str] | None = None,
) -> str:
    """Tab-separated rows (no header) for pasting selected rows into a sheet."""
    keys = tuple(columns) if columns else default_visible_columns()
    for key in keys:
        column_spec(key)
    return "\n".join(
        "\t".join(_text(view.value(k)) for k in keys) for view in views
    )
