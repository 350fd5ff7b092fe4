"""
SettlementService -- Create, revise, list and delete ledger settlements.

Responsibility:
    Turns settlement documents in the record store into typed records and
    views, and writes records back after validation.  Derived amounts are
    never stored; they are recomputed by the settlement engine on every read.

Architecture position:
    Services -- stateful orchestration over the settlement engines and the
    kernel record store.  The store, the clock and the rate objects are
    injected by the composition root (``build_application``).

Invariants enforced:
    - Validation runs before any write; an invalid record never reaches the
      store.
    - New records get an id from the injected clock; existing records are
      fully replaced under their id, never merged.
    - Activity taxes are re-derived from fee and income type before save.

Failure modes:
    - SettlementValidationError: the record failed ``validate_settlement``.
    - SettlementNotFoundError: ``get`` of an unknown id.
    - UnknownCategoryError: a stored document has an unsupported category.
    - RecordStoreError: the store failed; logged and propagated, no retry.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from settlement_kernel.domain.clock import Clock
from settlement_kernel.domain.settlement import (
    ActivitySettlement,
    EmployeeSettlement,
    Settlement,
    SettlementCategory,
    SettlementId,
    generate_settlement_id,
    new_settlement_draft,
    settlement_from_document,
    settlement_to_document,
    validate_settlement,
)
from settlement_kernel.exceptions import (
    SettlementNotFoundError,
    SettlementValidationError,
)
from settlement_kernel.logging_config import LogContext, get_logger
from settlement_kernel.services.record_store import (
    Document,
    RecordStore,
    Unsubscribe,
    next_free_id,
    stored_ids,
)

from settlement_engines.selection import SelectionCriteria, select_views
from settlement_engines.settlement import (
    DEFAULT_VAT_RULE,
    DEFAULT_WITHHOLDING_RATES,
    SettlementView,
    VatRule,
    WithholdingRates,
    build_view,
    revise_settlement,
    switch_category,
    with_recomputed_tax,
)

from settlement_ingestion.domain.types import SheetNames
from settlement_ingestion.exporters.csv_exporter import export_csv
from settlement_ingestion.exporters.xlsx_exporter import export_workbook

logger = get_logger("services.settlement")

ViewsCallback = Callable[[list[SettlementView]], None]


class SettlementService:
    """Ledger operations over one settlement record store."""

    def __init__(
        self,
        store: RecordStore,
        clock: Clock,
        withholding: WithholdingRates = DEFAULT_WITHHOLDING_RATES,
        vat: VatRule = DEFAULT_VAT_RULE,
        sheet_names: SheetNames | None = None,
    ):
        self._store = store
        self._clock = clock
        self._withholding = withholding
        self._vat = vat
        self._sheet_names = sheet_names or SheetNames()

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def new_draft(self) -> EmployeeSettlement:
        """Blank employee settlement dated today, without an id."""
        return new_settlement_draft(self._clock)

    def switch_category(
        self, record: Settlement, category: SettlementCategory | str
    ) -> Settlement:
        return switch_category(record, category, self._withholding)

    def revise(self, record: Settlement, **changes: Any) -> Settlement:
        return revise_settlement(record, self._withholding, **changes)

    def save(self, record: Settlement) -> Settlement:
        """Validate and persist ``record``; return it as stored.

        A record whose id is falsy is new and receives a clock-derived id,
        moved past any id already stored.
        Otherwise the stored document is replaced as a whole.

        Raises:
            SettlementValidationError: The record failed validation.
        """
        errors = validate_settlement(record)
        if errors:
            logger.warning(
                "settlement_validation_failed",
                extra={
                    "record_id": str(record.id),
                    "error_codes": [e.code for e in errors],
                },
            )
            raise SettlementValidationError(tuple(errors))

        is_new = not record.id
        if is_new:
            new_id = next_free_id(generate_settlement_id(self._clock), stored_ids(self._store))
            record = dataclasses.replace(record, id=new_id)
        if isinstance(record, ActivitySettlement):
            record = with_recomputed_tax(record, self._withholding)

        with LogContext.bind(record_id=str(record.id)):
            self._store.set_with_id(record.id, settlement_to_document(record))
            logger.info(
                "settlement_saved",
                extra={"category": record.category.value, "is_new": is_new},
            )

        stored = self._store.get(record.id)
        return settlement_from_document(stored) if stored is not None else record

    def delete(self, settlement_id: SettlementId) -> None:
        with LogContext.bind(record_id=str(settlement_id)):
            self._store.delete(settlement_id)
            logger.info("settlement_deleted")

    def delete_many(self, settlement_ids: Iterable[SettlementId]) -> int:
        """Delete each id in turn.  Returns how many deletes were issued."""
        count = 0
        for settlement_id in settlement_ids:
            self.delete(settlement_id)
            count += 1
        return count

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def get(self, settlement_id: SettlementId) -> Settlement:
        doc = self._store.get(settlement_id)
        if doc is None:
            raise SettlementNotFoundError(settlement_id)
        return settlement_from_document(doc)

    def list_settlements(self) -> list[Settlement]:
        return self._to_settlements(self._store.get_all())

    def list_views(self, criteria: SelectionCriteria | None = None) -> list[SettlementView]:
        """Every settlement as a view row, filtered and sorted by ``criteria``."""
        return select_views(self._to_views(self._store.get_all()), criteria)

    def subscribe_views(
        self,
        callback: ViewsCallback,
        criteria: SelectionCriteria | None = None,
    ) -> Unsubscribe:
        """Deliver the current view rows now and after every store change."""

        def on_snapshot(docs: list[Document]) -> None:
            callback(select_views(self._to_views(docs), criteria))

        return self._store.subscribe(on_snapshot)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_csv(
        self,
        columns: Sequence[str] | None = None,
        criteria: SelectionCriteria | None = None,
    ) -> tuple[str, bytes]:
        """CSV of the selected view rows as (filename, content)."""
        return export_csv(self.list_views(criteria), columns, self._clock.today())

    def export_workbook(self) -> bytes:
        """Every stored settlement as an importable workbook."""
        return export_workbook(self.list_settlements(), self._sheet_names)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _to_settlements(docs: Iterable[Document]) -> list[Settlement]:
        return [settlement_from_document(doc) for doc in docs]

    def _to_views(self, docs: Iterable[Document]) -> list[SettlementView]:
        return [build_view(record, self._vat) for record in self._to_settlements(docs)]
