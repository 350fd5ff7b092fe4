"""Workbook adapters for settlement ingestion (file I/O only, no DB)."""

from settlement_ingestion.adapters.xlsx_adapter import XlsxWorkbookReader

__all__ = ["XlsxWorkbookReader"]
