"""
settlement_ingestion -- Spreadsheet import and export of settlements.

Provides the upload pre-check, per-sheet row mapping, the two-phase import
service (preview, then confirm) and the XLSX / CSV exporters.

Architecture:
    settlement_ingestion/ sits above the kernel and engines. Nothing in
    settlement_kernel/ or settlement_engines/ imports from ingestion.
"""
