"""
Tests for SettlementImportService: check -> preview -> confirm.

Workbooks are written with openpyxl into tmp_path; the store is an
in-memory SQLite SqlRecordStore.
"""

from unittest.mock import MagicMock

import pytest

from settlement_kernel.domain.settlement import (
    ActivitySettlement,
    SettlementCategory,
    settlement_from_document,
)
from settlement_kernel.exceptions import (
    FileRejectedError,
    ImportPersistError,
    NoValidRowsError,
    RecordStoreError,
    WorkbookParseError,
)

from settlement_ingestion.domain.types import MIB, ImportLimits
from settlement_ingestion.services.import_service import SettlementImportService
from tests.conftest import (
    ACTIVITY_HEADERS,
    CLIENT_HEADERS,
    EMPLOYEE_HEADERS,
    build_workbook_bytes,
)


def _full_workbook() -> dict:
    return {
        "직원": [
            EMPLOYEE_HEADERS,
            ["2025-01-15", "홍길동", 3_000_000, 500_000, 200_000, 166_500, 119_700,
             59_200, 13_170, 166_500, 59_200, 150_000, 15_000],
            ["2025-01-15", "", 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1],
        ],
        "거래처": [
            CLIENT_HEADERS,
            ["2025-01-20", "(주)ABC컴퍼니", 5_000_000],
        ],
        "활동비_강사비": [
            ACTIVITY_HEADERS,
            ["2025-01-10", "박강사", "강사비", "사업소득", 1_000_000, 0, 0],
            ["2025-01-12", "이활동가", "활동비", "기타소득", 500_000, 0, 0],
        ],
    }


class TestPreview:
    @pytest.fixture(autouse=True)
    def _service(self, settlement_store, clock):
        self.store = settlement_store
        self.clock = clock
        self.service = SettlementImportService(settlement_store, clock)

    def test_preview_file(self, make_workbook):
        preview = self.service.preview_file(make_workbook(_full_workbook()))
        assert preview.total == 4
        assert preview.source_filename == "settlements.xlsx"
        assert preview.count_by_category() == {
            SettlementCategory.EMPLOYEE: 1,
            SettlementCategory.CLIENT: 1,
            SettlementCategory.INSTRUCTOR: 1,
            SettlementCategory.ACTIVITY: 1,
        }
        assert [s.rows_skipped for s in preview.sheets] == [1, 0, 0]

    def test_preview_writes_nothing(self, make_workbook):
        self.service.preview_file(make_workbook(_full_workbook()))
        assert self.store.get_all() == []

    def test_preview_ids_from_clock(self, make_workbook):
        preview = self.service.preview_file(make_workbook(_full_workbook()))
        base = self.clock.epoch_millis()
        assert [s.id for s in preview.settlements] == [base, base + 2, base + 3, base + 4]

    def test_activity_taxes_recomputed(self, make_workbook):
        preview = self.service.preview_file(make_workbook(_full_workbook()))
        fees = [s for s in preview.settlements if isinstance(s, ActivitySettlement)]
        assert [(s.income_tax, s.local_tax) for s in fees] == [(30_000, 3_000), (40_000, 4_000)]

    def test_preview_bytes(self):
        content = build_workbook_bytes({"거래처": [CLIENT_HEADERS, ["2025-01-20", "ABC", 1234]]})
        preview = self.service.preview_bytes("upload.xlsx", content)
        assert preview.total == 1

    def test_rejected_extension(self):
        with pytest.raises(FileRejectedError):
            self.service.preview_bytes("upload.xls", b"anything")

    def test_missing_file_rejected(self, tmp_path):
        with pytest.raises(FileRejectedError) as exc_info:
            self.service.preview_file(tmp_path / "missing.xlsx")
        assert exc_info.value.code == "IMPORT_FILE_REJECTED"
        assert exc_info.value.filename == "missing.xlsx"
        assert exc_info.value.reason.startswith("파일을 읽을 수 없습니다")
        assert self.store.get_all() == []

    def test_rejected_size(self):
        service = SettlementImportService(self.store, self.clock, limits=ImportLimits(max_file_bytes=MIB))
        with pytest.raises(FileRejectedError):
            service.check_file("a.xlsx", MIB + 1)

    def test_unreadable_workbook(self):
        with pytest.raises(WorkbookParseError) as exc_info:
            self.service.preview_bytes("broken.xlsx", b"PK not really a zip")
        assert str(exc_info.value).startswith("엑셀 파일 파싱 중 오류가 발생했습니다")

    def test_no_valid_rows(self):
        content = build_workbook_bytes({
            "직원": [EMPLOYEE_HEADERS, ["2025-01-15", "  "]],
            "거래처": [CLIENT_HEADERS],
        })
        with pytest.raises(NoValidRowsError) as exc_info:
            self.service.preview_bytes("empty.xlsx", content)
        assert exc_info.value.code == "IMPORT_NO_VALID_ROWS"

    def test_no_known_sheets(self):
        content = build_workbook_bytes({"Sheet1": [["이름"], ["홍길동"]]})
        with pytest.raises(NoValidRowsError):
            self.service.preview_bytes("other.xlsx", content)

    def test_preview_logged_with_batch_id(self, make_workbook, captured_logs):
        preview = self.service.preview_file(make_workbook(_full_workbook()))
        built = [r for r in captured_logs() if r["message"] == "import_preview_built"]
        assert built[0]["batch_id"] == preview.batch_id
        assert built[0]["total_records"] == 4


class TestConfirm:
    @pytest.fixture(autouse=True)
    def _service(self, settlement_store, clock):
        self.store = settlement_store
        self.clock = clock
        self.service = SettlementImportService(settlement_store, clock)

    def test_confirm_persists_all(self, make_workbook):
        preview = self.service.preview_file(make_workbook(_full_workbook()))
        outcome = self.service.confirm(preview)
        assert outcome.persisted_count == 4
        assert outcome.message == "4건의 정산 내역이 성공적으로 등록되었습니다."
        stored = [settlement_from_document(d) for d in self.store.get_all()]
        assert [s.id for s in stored] == [s.id for s in preview.settlements]

    def test_confirmed_documents_carry_created_at(self, make_workbook):
        self.service.confirm(self.service.preview_file(make_workbook(_full_workbook())))
        assert all("createdAt" in d for d in self.store.get_all())

    def test_partial_failure_keeps_written_records(self, make_workbook):
        preview = self.service.preview_file(make_workbook(_full_workbook()))
        store = MagicMock()
        store.get_all.return_value = []
        store.set_with_id.side_effect = [
            None,
            None,
            RecordStoreError("set_with_id", "settlements", "x", "disk I/O error"),
        ]
        service = SettlementImportService(store, self.clock)
        with pytest.raises(ImportPersistError) as exc_info:
            service.confirm(preview)
        assert exc_info.value.persisted_count == 2
        assert exc_info.value.total_count == 4
        assert store.set_with_id.call_count == 3

    def test_partial_failure_on_initial_read(self, make_workbook):
        preview = self.service.preview_file(make_workbook(_full_workbook()))
        store = MagicMock()
        store.get_all.side_effect = RecordStoreError("get_all", "settlements", None, "locked")
        with pytest.raises(ImportPersistError) as exc_info:
            SettlementImportService(store, self.clock).confirm(preview)
        assert exc_info.value.persisted_count == 0
        store.set_with_id.assert_not_called()


class TestIdCollisions:
    @pytest.fixture(autouse=True)
    def _service(self, settlement_store, clock):
        self.store = settlement_store
        self.clock = clock
        self.reader = MagicMock()
        self.service = SettlementImportService(settlement_store, clock, reader=self.reader)

    def _import(self, sheets: dict):
        self.reader.read_sheets.return_value = sheets
        return self.service.confirm(self.service.preview_bytes("upload.xlsx", b"xlsx"))

    @pytest.mark.slow
    def test_large_employee_sheet_keeps_every_row(self):
        outcome = self._import({
            "직원": [{"이름": f"직원{i}"} for i in range(10_001)],
            "거래처": [{"거래처명": "ABC"}],
        })
        assert outcome.persisted_count == 10_002
        assert len(set(outcome.settlement_ids)) == 10_002
        assert len(self.store.get_all()) == 10_002

    def test_back_to_back_imports_keep_both_batches(self):
        first = self._import({"직원": [{"이름": f"A{i}"} for i in range(5)]})
        self.clock.advance(0.002)
        second = self._import({"직원": [{"이름": f"B{i}"} for i in range(5)]})
        assert set(first.settlement_ids).isdisjoint(second.settlement_ids)
        names = sorted(d["name"] for d in self.store.get_all())
        assert names == [f"A{i}" for i in range(5)] + [f"B{i}" for i in range(5)]

    def test_same_file_twice_yields_distinct_records(self, make_workbook):
        path = make_workbook(_full_workbook())
        service = SettlementImportService(self.store, self.clock)
        service.confirm(service.preview_file(path))
        second = service.confirm(service.preview_file(path))
        assert second.persisted_count == 4
        assert len(self.store.get_all()) == 8

    def test_reassigned_ids_keep_preview_order(self):
        base = self.clock.epoch_millis()
        self.store.set_with_id(base + 1, {"category": "거래처", "name": "stored"})
        outcome = self._import({"거래처": [{"거래처명": f"C{i}"} for i in range(3)]})
        assert outcome.settlement_ids == (base, base + 2, base + 3)
        assert self.store.get(base + 1)["name"] == "stored"
        stored = {d["id"]: d["name"] for d in self.store.get_all()}
        assert [stored[str(i)] for i in outcome.settlement_ids] == ["C0", "C1", "C2"]
