"""
Module: settlement_kernel.services.record_store
Responsibility: Collection-scoped document store over SQLAlchemy.  Exposes the
    get_all / get / add / set_with_id / update / delete / subscribe capability
    that settlement, event and member data is read and written through.
Architecture position: Kernel > Services.  Imports db/ and models/; never
    imported by domain/ or engines.

Invariants enforced:
    - Writes strip unset (None) fields before storing.
    - createdAt is stamped once from the injected Clock and never changed by
      set_with_id or update afterwards.
    - Subscribers receive the full collection snapshot, immediately on
      subscribe and after every committed write.
    - The document id is never stored inside the payload; reads put it back
      under the ``id`` key.
    - New ids are picked with ``next_free_id`` against ``stored_ids`` so a
      create never replaces a stored document.

Failure modes:
    - RecordStoreError wraps any SQLAlchemyError (logged, then re-raised; no
      retry, no compensation).
    - DocumentNotFoundError on update of a missing id.
    - A subscriber callback that raises is logged; the write and the other
      subscribers are unaffected.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Collection, Mapping
from typing import Any, Protocol, runtime_checkable
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from settlement_kernel.db.engine import session_scope
from settlement_kernel.domain.clock import Clock
from settlement_kernel.exceptions import DocumentNotFoundError, RecordStoreError
from settlement_kernel.logging_config import get_logger
from settlement_kernel.models.document import DocumentModel

logger = get_logger("services.record_store")

CREATED_AT = "createdAt"

Document = dict[str, Any]
SnapshotCallback = Callable[[list[Document]], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class RecordStore(Protocol):
    """Capability for reading and writing one collection of documents."""

    collection: str

    def get_all(self) -> list[Document]: ...

    def get(self, doc_id: Any) -> Document | None: ...

    def add(self, data: Mapping[str, Any]) -> str: ...

    def set_with_id(self, doc_id: Any, data: Mapping[str, Any]) -> None: ...

    def update(self, doc_id: Any, partial: Mapping[str, Any]) -> None: ...

    def delete(self, doc_id: Any) -> None: ...

    def subscribe(self, callback: SnapshotCallback) -> Unsubscribe: ...


def strip_unset(data: Mapping[str, Any]) -> Document:
    """Drop keys whose value is None; nested dicts and lists are cleaned too."""
    cleaned: Document = {}
    for key, value in data.items():
        if value is None:
            continue
        cleaned[key] = _strip_value(value)
    return cleaned


def _strip_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return strip_unset(value)
    if isinstance(value, (list, tuple)):
        return [_strip_value(v) for v in value if v is not None]
    return value


def stored_ids(store: RecordStore) -> set[str]:
    """Ids of every document in ``store``, in their stored text form."""
    return {str(doc["id"]) for doc in store.get_all()}


def next_free_id(candidate: int, taken: Collection[str]) -> int:
    """``candidate``, or the first integer above it that ``taken`` lacks."""
    while str(candidate) in taken:
        candidate += 1
    return candidate


def _classify_reason(exc: SQLAlchemyError) -> str | None:
    text = str(exc).lower()
    if "readonly" in text or "read-only" in text or "permission denied" in text:
        return "permission-denied"
    if isinstance(exc, OperationalError):
        return "unavailable"
    return None


class SqlRecordStore:
    """
    Record store for one collection, persisted in the ``documents`` table.

    Contract:
        Every method opens its own transactional scope; a write is committed
        before subscribers are notified.

    Non-goals:
        Optimistic concurrency.  Concurrent writers are last-write-wins.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        collection: str,
        clock: Clock,
    ):
        self._session_factory = session_factory
        self.collection = collection
        self._clock = clock
        self._subscribers: list[SnapshotCallback] = []
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_all(self) -> list[Document]:
        """Return every document of the collection, oldest insert first."""
        try:
            with session_scope(self._session_factory) as session:
                rows = session.scalars(
                    select(DocumentModel)
                    .where(DocumentModel.collection == self.collection)
                    .order_by(DocumentModel.pk)
                ).all()
                return [self._to_document(row) for row in rows]
        except SQLAlchemyError as exc:
            raise self._failure("get_all", None, exc) from exc

    def get(self, doc_id: Any) -> Document | None:
        """Return one document, or None when the id is unknown."""
        key = str(doc_id)
        try:
            with session_scope(self._session_factory) as session:
                row = self._find(session, key)
                return self._to_document(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise self._failure("get", key, exc) from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add(self, data: Mapping[str, Any]) -> str:
        """Insert a new document under a generated id and return the id."""
        doc_id = uuid4().hex
        payload = self._payload(data)
        payload[CREATED_AT] = self._stamp()
        try:
            with session_scope(self._session_factory) as session:
                session.add(
                    DocumentModel(
                        collection=self.collection, doc_id=doc_id, payload=payload
                    )
                )
        except SQLAlchemyError as exc:
            raise self._failure("add", doc_id, exc) from exc

        logger.info(
            "document_added",
            extra={"collection": self.collection, "doc_id": doc_id},
        )
        self._notify()
        return doc_id

    def set_with_id(self, doc_id: Any, data: Mapping[str, Any]) -> None:
        """Create or fully replace the document stored under ``doc_id``."""
        key = str(doc_id)
        payload = self._payload(data)
        try:
            with session_scope(self._session_factory) as session:
                row = self._find(session, key)
                if row is not None:
                    payload[CREATED_AT] = row.payload.get(
                        CREATED_AT, payload.get(CREATED_AT) or self._stamp()
                    )
                    row.payload = payload
                else:
                    payload.setdefault(CREATED_AT, self._stamp())
                    session.add(
                        DocumentModel(
                            collection=self.collection, doc_id=key, payload=payload
                        )
                    )
        except SQLAlchemyError as exc:
            raise self._failure("set_with_id", key, exc) from exc

        logger.info(
            "document_set",
            extra={"collection": self.collection, "doc_id": key},
        )
        self._notify()

    def update(self, doc_id: Any, partial: Mapping[str, Any]) -> None:
        """Merge ``partial`` into an existing document.

        Raises:
            DocumentNotFoundError: No document stored under ``doc_id``.
        """
        key = str(doc_id)
        changes = self._payload(partial)
        changes.pop(CREATED_AT, None)
        try:
            with session_scope(self._session_factory) as session:
                row = self._find(session, key)
                if row is None:
                    raise DocumentNotFoundError(self.collection, key)
                # Reassign so the JSON column is flagged dirty.
                row.payload = {**row.payload, **changes}
        except SQLAlchemyError as exc:
            raise self._failure("update", key, exc) from exc

        logger.info(
            "document_updated",
            extra={
                "collection": self.collection,
                "doc_id": key,
                "fields": sorted(changes),
            },
        )
        self._notify()

    def delete(self, doc_id: Any) -> None:
        """Delete a document.  Deleting an unknown id is a no-op."""
        key = str(doc_id)
        try:
            with session_scope(self._session_factory) as session:
                row = self._find(session, key)
                if row is None:
                    logger.info(
                        "document_delete_missing",
                        extra={"collection": self.collection, "doc_id": key},
                    )
                    return
                session.delete(row)
        except SQLAlchemyError as exc:
            raise self._failure("delete", key, exc) from exc

        logger.info(
            "document_deleted",
            extra={"collection": self.collection, "doc_id": key},
        )
        self._notify()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, callback: SnapshotCallback) -> Unsubscribe:
        """Register ``callback`` for collection snapshots.

        The current snapshot is delivered before this method returns.
        Returns a function that removes the subscription (safe to call twice).
        """
        with self._lock:
            self._subscribers.append(callback)
        self._deliver(callback, self.get_all())

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        if not subscribers:
            return
        try:
            snapshot = self.get_all()
        except RecordStoreError:
            logger.warning(
                "snapshot_refresh_failed",
                extra={"collection": self.collection},
            )
            return
        for callback in subscribers:
            self._deliver(callback, [dict(doc) for doc in snapshot])

    def _deliver(self, callback: SnapshotCallback, snapshot: list[Document]) -> None:
        try:
            callback(snapshot)
        except Exception:
            logger.exception(
                "subscriber_callback_failed",
                extra={"collection": self.collection},
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _find(self, session: Session, key: str) -> DocumentModel | None:
        return session.scalars(
            select(DocumentModel).where(
                DocumentModel.collection == self.collection,
                DocumentModel.doc_id == key,
            )
        ).one_or_none()

    @staticmethod
    def _payload(data: Mapping[str, Any]) -> Document:
        payload = strip_unset(data)
        payload.pop("id", None)
        return payload

    @staticmethod
    def _to_document(row: DocumentModel) -> Document:
        return {"id": row.doc_id, **row.payload}

    def _stamp(self) -> str:
        return self._clock.now().isoformat()

    def _failure(
        self, operation: str, doc_id: str | None, exc: SQLAlchemyError
    ) -> RecordStoreError:
        reason = _classify_reason(exc)
        logger.error(
            "store_operation_failed",
            extra={
                "collection": self.collection,
                "operation": operation,
                "doc_id": doc_id,
                "reason": reason,
            },
            exc_info=exc,
        )
        return RecordStoreError(
            operation=operation,
            collection=self.collection,
            doc_id=doc_id,
            detail=str(exc),
            reason=reason,
        )
