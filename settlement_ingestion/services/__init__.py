"""Ingestion services (import preview and confirmation)."""

from settlement_ingestion.services.import_service import SettlementImportService

__all__ = ["SettlementImportService"]
