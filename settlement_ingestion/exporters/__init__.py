"""Settlement exporters: column catalog, XLSX workbooks, CSV and clipboard text."""

from settlement_ingestion.exporters.columns import (
    COLUMN_CATALOG,
    ColumnSpec,
    column_spec,
    default_visible_columns,
)
from settlement_ingestion.exporters.csv_exporter import (
    csv_filename,
    export_csv,
    format_clipboard_rows,
)
from settlement_ingestion.exporters.xlsx_exporter import (
    SAMPLE_SETTLEMENTS,
    build_sample_workbook,
    export_workbook,
    sample_filename,
)

__all__ = [
    "COLUMN_CATALOG",
    "ColumnSpec",
    "column_spec",
    "default_visible_columns",
    "csv_filename",
    "export_csv",
    "format_clipboard_rows",
    "SAMPLE_SETTLEMENTS",
    "build_sample_workbook",
    "export_workbook",
    "sample_filename",
]
