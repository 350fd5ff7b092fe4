"""Kernel services (record store)."""

from settlement_kernel.services.record_store import (
    RecordStore,
    SqlRecordStore,
    strip_unset,
)

__all__ = ["RecordStore", "SqlRecordStore", "strip_unset"]
