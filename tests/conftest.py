"""
Pytest fixtures for the settlement ledger test suite.

Provides:
- Structured logging for the whole session and a ``captured_logs`` reader
- A DeterministicClock
- In-memory SQLite session factory (StaticPool) and record stores
- Workbook builders that write XLSX fixtures into ``tmp_path``

No external database is needed; every test that touches the store gets a
fresh in-memory database.
"""

import json
import logging
from io import BytesIO, StringIO
from pathlib import Path
from typing import Any, Callable

import openpyxl
import pytest
from sqlalchemy.orm import Session, sessionmaker

from settlement_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from settlement_kernel.domain.clock import DeterministicClock
from settlement_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from settlement_kernel.services.record_store import SqlRecordStore

# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture settlement_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, settlement_service):
            settlement_service.save(record)
            logs = captured_logs()
            assert any(r["message"] == "settlement_saved" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("settlement_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and database fixtures
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    """Clock fixed at 2025-01-15 09:00 UTC."""
    return DeterministicClock()


@pytest.fixture
def session_factory() -> sessionmaker[Session]:
    """Fresh in-memory SQLite database with all tables created."""
    init_engine_from_url("sqlite://")
    create_tables()
    yield get_session_factory()
    reset_engine()


@pytest.fixture
def settlement_store(session_factory, clock) -> SqlRecordStore:
    return SqlRecordStore(session_factory, "settlements", clock)


@pytest.fixture
def event_store(session_factory, clock) -> SqlRecordStore:
    return SqlRecordStore(session_factory, "events", clock)


@pytest.fixture
def member_store(session_factory, clock) -> SqlRecordStore:
    return SqlRecordStore(session_factory, "members", clock)


# =============================================================================
# Workbook fixtures
# =============================================================================

EMPLOYEE_HEADERS = [
    "날짜", "이름", "급여", "상여금", "초과근무수당", "국민연금", "건강보험",
    "고용보험", "장기요양보험", "연금지원", "고용지원", "소득세", "지방세",
]
CLIENT_HEADERS = ["날짜", "거래처명", "거래대금"]
ACTIVITY_HEADERS = ["날짜", "이름", "구분", "소득종류", "활동비/강사비", "소득세", "지방세"]


def build_workbook_bytes(sheets: dict[str, list[list[Any]]]) -> bytes:
    """Workbook with one sheet per entry; each value is a list of rows, header first."""
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title=title)
        for row in rows:
            ws.append(row)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_workbook(tmp_path) -> Callable[..., Path]:
    """
    Write a workbook into ``tmp_path`` and return its path.

    Usage::

        path = make_workbook({"거래처": [CLIENT_HEADERS, ["2025-01-20", "ABC", 1000]]})
    """

    def _make(sheets: dict[str, list[list[Any]]], filename: str = "settlements.xlsx") -> Path:
        path = tmp_path / filename
        path.write_bytes(build_workbook_bytes(sheets))
        return path

    return _make
