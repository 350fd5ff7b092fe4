"""
Row mapping: workbook rows -> settlements.

Each sheet maps its Korean column headers onto one settlement variant.
A row whose name column is blank after trimming is not a settlement and is
skipped.  Amount cells go through ``coerce_amount``; activity taxes are
always recomputed from fee and income type, so tax columns in the file are
ignored.

Ids are ``batch_millis + offset`` where the offset counts data rows across
every sheet of the workbook (skipped ones included), so no two rows of one
batch share an id.

ZERO I/O.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from settlement_kernel.domain.amounts import coerce_amount
from settlement_kernel.domain.settlement import (
    ActivitySettlement,
    ClientSettlement,
    EmployeeSettlement,
    IncomeType,
    Settlement,
    SettlementCategory,
    normalize_date_text,
)

from settlement_engines.settlement import (
    DEFAULT_WITHHOLDING_RATES,
    WithholdingRates,
    with_recomputed_tax,
)

from settlement_ingestion.domain.types import SheetNames, SheetSummary

DATE_COLUMN = "날짜"
NAME_COLUMN = "이름"
CLIENT_NAME_COLUMN = "거래처명"
ACTIVITY_KIND_COLUMN = "구분"
INCOME_TYPE_COLUMN = "소득종류"
FEE_COLUMN = "활동비/강사비"
TRANSACTION_COLUMN = "거래대금"
INCOME_TAX_COLUMN = "소득세"
LOCAL_TAX_COLUMN = "지방세"

# (column header, field name) in sheet order
EMPLOYEE_AMOUNT_COLUMNS: tuple[tuple[str, str], ...] = (
    ("급여", "salary"),
    ("상여금", "bonus"),
    ("초과근무수당", "overtime_pay"),
    ("국민연금", "national_pension"),
    ("건강보험", "health_insurance"),
    ("고용보험", "employment_insurance"),
    ("장기요양보험", "long_term_care_insurance"),
    ("연금지원", "pension_support"),
    ("고용지원", "employment_support"),
    (INCOME_TAX_COLUMN, "income_tax"),
    (LOCAL_TAX_COLUMN, "local_tax"),
)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def map_employee_row(row: Mapping[str, Any], settlement_id: int) -> EmployeeSettlement | None:
    name = _text(row.get(NAME_COLUMN))
    if not name:
        return None
    amounts = {
        field_name: coerce_amount(row.get(column))
        for column, field_name in EMPLOYEE_AMOUNT_COLUMNS
    }
    return EmployeeSettlement(
        id=settlement_id,
        date=normalize_date_text(row.get(DATE_COLUMN)),
        name=name,
        **amounts,
    )


def map_client_row(row: Mapping[str, Any], settlement_id: int) -> ClientSettlement | None:
    name = _text(row.get(CLIENT_NAME_COLUMN))
    if not name:
        return None
    return ClientSettlement(
        id=settlement_id,
        date=normalize_date_text(row.get(DATE_COLUMN)),
        name=name,
        transaction_amount=coerce_amount(row.get(TRANSACTION_COLUMN)),
    )


def map_activity_row(
    row: Mapping[str, Any],
    settlement_id: int,
    rates: WithholdingRates = DEFAULT_WITHHOLDING_RATES,
) -> ActivitySettlement | None:
    """``구분`` of ``강사비`` makes an instructor fee; anything else is an activity fee."""
    name = _text(row.get(NAME_COLUMN))
    if not name:
        return None
    kind = _text(row.get(ACTIVITY_KIND_COLUMN))
    category = (
        SettlementCategory.INSTRUCTOR
        if kind == SettlementCategory.INSTRUCTOR.value
        else SettlementCategory.ACTIVITY
    )
    record = ActivitySettlement(
        id=settlement_id,
        date=normalize_date_text(row.get(DATE_COLUMN)),
        name=name,
        category=category,
        income_type=IncomeType.parse(row.get(INCOME_TYPE_COLUMN)),
        fee=coerce_amount(row.get(FEE_COLUMN)),
    )
    return with_recomputed_tax(record, rates)


def map_workbook_rows(
    sheets: Mapping[str, Sequence[Mapping[str, Any]]],
    sheet_names: SheetNames,
    batch_millis: int,
    rates: WithholdingRates = DEFAULT_WITHHOLDING_RATES,
) -> tuple[tuple[Settlement, ...], tuple[SheetSummary, ...]]:
    """Map every present sheet; returns the settlements and a per-sheet summary.

    Sheets are read in employee, client, activity order.  A missing sheet
    contributes nothing and has no summary.
    """
    settlements: list[Settlement] = []
    summaries: list[SheetSummary] = []

    plan = (
        (sheet_names.employee, lambda r, i: map_employee_row(r, i)),
        (sheet_names.client, lambda r, i: map_client_row(r, i)),
        (sheet_names.activity, lambda r, i: map_activity_row(r, i, rates)),
    )
    offset = 0
    for sheet_name, mapper in plan:
        rows = sheets.get(sheet_name)
        if rows is None:
            continue
        imported = 0
        for row in rows:
            record = mapper(row, batch_millis + offset)
            offset += 1
            if record is None:
                continue
            settlements.append(record)
            imported += 1
        summaries.append(
            SheetSummary(sheet_name=sheet_name, rows_read=len(rows), rows_imported=imported)
        )

    return tuple(settlements), tuple(summaries)
