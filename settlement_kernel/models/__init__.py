"""ORM models for the settlement ledger."""

from settlement_kernel.models.document import DocumentModel

__all__ = ["DocumentModel"]
