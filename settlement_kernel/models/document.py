"""
Module: settlement_kernel.models.document
Responsibility: ORM model for schemaless documents grouped by collection.
    Settlements, events and members all live in this one table; the payload
    carries the camelCase document fields.
Architecture position: Kernel > Models.  Imported by services/record_store.py.

Invariants enforced:
    - (collection, doc_id) is unique.
    - payload never contains the document id; the id lives in doc_id.
"""

from typing import Any

from sqlalchemy import JSON, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from settlement_kernel.db.base import TrackedBase


class DocumentModel(TrackedBase):
    """One stored document of a named collection."""

    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint("collection", "doc_id", name="uq_documents_collection_doc"),
        Index("idx_documents_collection", "collection"),
    )

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection: Mapped[str] = mapped_column(String(100), nullable=False)
    doc_id: Mapped[str] = mapped_column(String(100), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        return f"<DocumentModel {self.collection}/{self.doc_id}>"
