"""
Typed Exception Hierarchy for the Settlement Ledger.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers at the boundary (import screen, CLI, service layer) need to tell a
rejected upload apart from a store outage without parsing message text.
Every exception therefore carries:
  1. a TYPED class (catch by type, not by message)
  2. a CODE class attribute (machine-readable, API-safe)
  3. structured DATA attributes (file name, counts, ids)

Messages are user-facing and written in Korean, since they are shown to
the person who has to fix the spreadsheet or retry the action.

Example:
    try:
        preview = imports.preview_file(path)
    except FileRejectedError as e:
        show_alert(e.reason)
    except NoValidRowsError:
        show_alert(str(e))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    SettlementKernelError (base)
    |
    +-- SettlementError
    |   +-- UnknownCategoryError
    |   +-- SettlementValidationError
    |   +-- SettlementNotFoundError
    |
    +-- SettlementImportError
    |   +-- FileRejectedError
    |   +-- WorkbookParseError
    |   +-- NoValidRowsError
    |   +-- ImportPersistError
    |
    +-- StoreError
    |   +-- RecordStoreError
    |   +-- DocumentNotFoundError
    |
    +-- ConfirmationError
        +-- EventNotFoundError
        +-- InstructorNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                    | When Raised
----------------|-------------------------|---------------------------------------
Settlement      | CATEGORY_UNKNOWN        | Document carries an unsupported category
                | SETTLEMENT_INVALID      | Record fails pre-save validation
                | SETTLEMENT_NOT_FOUND    | No settlement with the given id
----------------|-------------------------|---------------------------------------
Import          | IMPORT_FILE_REJECTED    | Bad extension or file too large
                | IMPORT_PARSE_FAILED     | Workbook could not be read
                | IMPORT_NO_VALID_ROWS    | No sheet produced a named row
                | IMPORT_PERSIST_FAILED   | Store write failed mid-import
----------------|-------------------------|---------------------------------------
Store           | STORE_OPERATION_FAILED  | Database error during read or write
                | DOCUMENT_NOT_FOUND      | Update of a missing document
----------------|-------------------------|---------------------------------------
Confirmation    | CONFIRMATION_FAILED     | Bad instructor selection
                | EVENT_NOT_FOUND         | Event id not in the events collection
                | INSTRUCTOR_NOT_FOUND    | Instructor id not among members
"""

from typing import Any


class SettlementKernelError(Exception):
    """
    Base exception for all settlement ledger errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "SETTLEMENT_KERNEL_ERROR"


# Settlement-related exceptions


class SettlementError(SettlementKernelError):
    """Base exception for settlement record errors."""

    code: str = "SETTLEMENT_ERROR"


class UnknownCategoryError(SettlementError):
    """A record carries a category outside the supported set.

    This is a programming or data-corruption condition, not a user error.
    """

    code: str = "CATEGORY_UNKNOWN"

    def __init__(self, category: Any):
        self.category = category
        super().__init__(f"Unknown settlement category: {category!r}")


class SettlementValidationError(SettlementError):
    """A record failed validation before being saved."""

    code: str = "SETTLEMENT_INVALID"

    def __init__(self, errors: tuple[Any, ...]):
        self.errors = errors
        detail = "; ".join(e.message for e in errors)
        super().__init__(f"정산 내역이 올바르지 않습니다: {detail}")


class SettlementNotFoundError(SettlementError):
    """Settlement with the given id was not found."""

    code: str = "SETTLEMENT_NOT_FOUND"

    def __init__(self, settlement_id: Any):
        self.settlement_id = settlement_id
        super().__init__(f"정산 내역을 찾을 수 없습니다: {settlement_id}")


# Import-related exceptions


class SettlementImportError(SettlementKernelError):
    """Base exception for bulk import failures."""

    code: str = "IMPORT_FAILED"


class FileRejectedError(SettlementImportError):
    """The uploaded file failed the pre-check (extension or size)."""

    code: str = "IMPORT_FILE_REJECTED"

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(reason)


class WorkbookParseError(SettlementImportError):
    """The workbook could not be read."""

    code: str = "IMPORT_PARSE_FAILED"

    def __init__(self, filename: str, detail: str):
        self.filename = filename
        self.detail = detail
        super().__init__(f"엑셀 파일 파싱 중 오류가 발생했습니다: {detail}")


class NoValidRowsError(SettlementImportError):
    """No sheet of the workbook produced a single named row."""

    code: str = "IMPORT_NO_VALID_ROWS"

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(
            "유효한 정산 데이터가 없습니다. "
            "최소한 이름/거래처명과 날짜는 입력되어야 합니다."
        )


class ImportPersistError(SettlementImportError):
    """A store write failed part-way through an import confirmation.

    Records written before the failure stay committed.
    """

    code: str = "IMPORT_PERSIST_FAILED"

    def __init__(self, persisted_count: int, total_count: int, detail: str):
        self.persisted_count = persisted_count
        self.total_count = total_count
        self.detail = detail
        super().__init__(
            "정산 내역 일괄 등록 중 오류가 발생했습니다 "
            f"({persisted_count}/{total_count}건 등록됨): {detail}"
        )


# Store-related exceptions


class StoreError(SettlementKernelError):
    """Base exception for record store errors."""

    code: str = "STORE_ERROR"


class RecordStoreError(StoreError):
    """The underlying database rejected or failed an operation."""

    code: str = "STORE_OPERATION_FAILED"

    def __init__(
        self,
        operation: str,
        collection: str,
        doc_id: str | None = None,
        detail: str = "",
        reason: str | None = None,
    ):
        self.operation = operation
        self.collection = collection
        self.doc_id = doc_id
        self.detail = detail
        self.reason = reason
        target = f"{collection}/{doc_id}" if doc_id else collection
        super().__init__(f"Store {operation} failed on {target}: {detail}")


class DocumentNotFoundError(StoreError):
    """An update targeted a document that does not exist."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Document not found: {collection}/{doc_id}")


# Confirmation document exceptions


class ConfirmationError(SettlementKernelError):
    """Base exception for instructor fee confirmation failures."""

    code: str = "CONFIRMATION_FAILED"


class EventNotFoundError(ConfirmationError):
    """Event with given id was not found."""

    code: str = "EVENT_NOT_FOUND"

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"행사를 찾을 수 없습니다: {event_id}")


class InstructorNotFoundError(ConfirmationError):
    """The selected instructor is not among the known members."""

    code: str = "INSTRUCTOR_NOT_FOUND"

    def __init__(self, instructor_id: Any):
        self.instructor_id = instructor_id
        super().__init__(f"강사 정보를 찾을 수 없습니다: {instructor_id}")
