"""
Import service: check -> parse -> preview -> confirm.

Orchestrates the upload pre-check, the workbook adapter, row mapping and the
settlement record store.  Nothing is written until ``confirm`` is called
with a preview; ``confirm`` then writes one record at a time.
Uses structured logging (LogContext, get_logger("ingestion.*")).
"""

from __future__ import annotations

import dataclasses
import zipfile
from pathlib import Path
from uuid import uuid4

from openpyxl.utils.exceptions import InvalidFileException

from settlement_kernel.domain.clock import Clock
from settlement_kernel.domain.settlement import settlement_to_document
from settlement_kernel.exceptions import (
    FileRejectedError,
    ImportPersistError,
    NoValidRowsError,
    StoreError,
    WorkbookParseError,
)
from settlement_kernel.logging_config import LogContext, get_logger
from settlement_kernel.services.record_store import RecordStore, next_free_id, stored_ids

from settlement_engines.settlement import DEFAULT_WITHHOLDING_RATES, WithholdingRates

from settlement_ingestion.adapters.xlsx_adapter import WorkbookSource, XlsxWorkbookReader
from settlement_ingestion.domain.row_mapping import map_workbook_rows
from settlement_ingestion.domain.types import (
    ImportLimits,
    ImportOutcome,
    ImportPreview,
    SheetNames,
)
from settlement_ingestion.domain.validators import check_upload

logger = get_logger("ingestion.import_service")

# Errors openpyxl and zipfile raise for files that are not readable workbooks.
_UNREADABLE_WORKBOOK = (
    InvalidFileException,
    zipfile.BadZipFile,
    KeyError,
    ValueError,
    TypeError,
    OSError,
)


class SettlementImportService:
    """Two-phase bulk import of settlements from a workbook upload."""

    def __init__(
        self,
        store: RecordStore,
        clock: Clock,
        limits: ImportLimits | None = None,
        sheet_names: SheetNames | None = None,
        rates: WithholdingRates = DEFAULT_WITHHOLDING_RATES,
        reader: XlsxWorkbookReader | None = None,
    ):
        self._store = store
        self._clock = clock
        self._limits = limits or ImportLimits()
        self._sheet_names = sheet_names or SheetNames()
        self._rates = rates
        self._reader = reader or XlsxWorkbookReader()

    @property
    def limits(self) -> ImportLimits:
        return self._limits

    def check_file(self, filename: str, size: int) -> None:
        """Pre-check only.  Raises FileRejectedError."""
        check_upload(filename, size, self._limits)

    def preview_file(self, path: Path | str) -> ImportPreview:
        """Check and parse a workbook on disk.

        Raises:
            FileRejectedError: The file is missing, unreadable, or fails the
                pre-check.
        """
        path = Path(path)
        try:
            size = path.stat().st_size
        except OSError as exc:
            logger.warning(
                "upload_unreadable",
                extra={"source_filename": path.name, "error": str(exc)},
            )
            raise FileRejectedError(
                path.name, f"파일을 읽을 수 없습니다: {exc.strerror or exc}"
            ) from exc
        self.check_file(path.name, size)
        return self._preview(path.name, path)

    def preview_bytes(self, filename: str, content: bytes) -> ImportPreview:
        """Check and parse an uploaded workbook held in memory."""
        self.check_file(filename, len(content))
        return self._preview(filename, content)

    def _preview(self, filename: str, source: WorkbookSource) -> ImportPreview:
        batch_id = uuid4().hex
        with LogContext.bind(batch_id=batch_id):
            try:
                sheets = self._reader.read_sheets(source, self._sheet_names.all())
            except _UNREADABLE_WORKBOOK as exc:
                logger.warning(
                    "workbook_parse_failed",
                    extra={"source_filename": filename, "error": str(exc)},
                )
                raise WorkbookParseError(filename, str(exc)) from exc

            settlements, summaries = map_workbook_rows(
                sheets,
                self._sheet_names,
                batch_millis=self._clock.epoch_millis(),
                rates=self._rates,
            )
            if not settlements:
                logger.warning(
                    "import_no_valid_rows",
                    extra={
                        "source_filename": filename,
                        "sheets_found": sorted(sheets),
                    },
                )
                raise NoValidRowsError(filename)

            preview = ImportPreview(
                batch_id=batch_id,
                source_filename=filename,
                settlements=settlements,
                sheets=summaries,
            )
            logger.info(
                "import_preview_built",
                extra={
                    "source_filename": filename,
                    "total_records": preview.total,
                    "skipped_rows": sum(s.rows_skipped for s in summaries),
                },
            )
            return preview

    def confirm(self, preview: ImportPreview) -> ImportOutcome:
        """Persist every previewed settlement, in order, one write at a time.

        A previewed id that is already stored (an earlier import or save
        took it) moves up to the next free id, so confirming never replaces
        a stored settlement.  ``settlement_ids`` lists the ids written.

        Raises:
            ImportPersistError: A read or write failed.  Records written
                before it stay stored; ``persisted_count`` says how many.
        """
        total = preview.total
        written: list[object] = []
        with LogContext.bind(batch_id=preview.batch_id):
            logger.info("import_confirm_started", extra={"total_records": total})
            try:
                taken = stored_ids(self._store)
            except StoreError as exc:
                logger.error(
                    "import_persist_failed",
                    extra={"persisted_count": 0, "total_records": total},
                )
                raise ImportPersistError(0, total, str(exc)) from exc

            reassigned = 0
            floor = 0
            for record in preview.settlements:
                settlement_id = next_free_id(max(record.id, floor), taken)
                if settlement_id != record.id:
                    record = dataclasses.replace(record, id=settlement_id)
                    reassigned += 1
                try:
                    self._store.set_with_id(settlement_id, settlement_to_document(record))
                except StoreError as exc:
                    logger.error(
                        "import_persist_failed",
                        extra={
                            "persisted_count": len(written),
                            "total_records": total,
                            "failed_record_id": str(settlement_id),
                        },
                    )
                    raise ImportPersistError(len(written), total, str(exc)) from exc
                taken.add(str(settlement_id))
                floor = settlement_id + 1
                written.append(settlement_id)

            logger.info(
                "import_confirmed",
                extra={"persisted_count": len(written), "reassigned_ids": reassigned},
            )

        return ImportOutcome(
            batch_id=preview.batch_id,
            persisted_count=len(written),
            message=f"{len(written)}건의 정산 내역이 성공적으로 등록되었습니다.",
            settlement_ids=tuple(written),
        )
