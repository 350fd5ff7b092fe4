"""
XLSX export of settlements and the blank sample workbook.

The workbook layout is the one the importer reads: one sheet per category
group with a header row and one row per settlement.

    직원            날짜, 이름, 급여 ... 지방세
    거래처          날짜, 거래처명, 거래대금
    활동비_강사비   날짜, 이름, 구분, 소득종류, 활동비/강사비, 소득세, 지방세

The activity sheet's 소득세 / 지방세 columns are informational; the importer
recomputes them from the fee.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from io import BytesIO
from typing import Any

import openpyxl
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from settlement_kernel.domain.settlement import (
    ActivitySettlement,
    ClientSettlement,
    EmployeeSettlement,
    IncomeType,
    Settlement,
    SettlementCategory,
)
from settlement_kernel.logging_config import get_logger

from settlement_engines.settlement import (
    DEFAULT_WITHHOLDING_RATES,
    WithholdingRates,
    with_recomputed_tax,
)

from settlement_ingestion.domain.row_mapping import (
    ACTIVITY_KIND_COLUMN,
    CLIENT_NAME_COLUMN,
    DATE_COLUMN,
    EMPLOYEE_AMOUNT_COLUMNS,
    FEE_COLUMN,
    INCOME_TAX_COLUMN,
    INCOME_TYPE_COLUMN,
    LOCAL_TAX_COLUMN,
    NAME_COLUMN,
    TRANSACTION_COLUMN,
)
from settlement_ingestion.domain.types import SheetNames

logger = get_logger("ingestion.xlsx_exporter")

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(start_color="D6E4F0", end_color="D6E4F0", fill_type="solid")

# (header, width) per sheet
_EMPLOYEE_LAYOUT: tuple[tuple[str, int], ...] = (
    (DATE_COLUMN, 12),
    (NAME_COLUMN, 10),
    ("급여", 12),
    ("상여금", 12),
    ("초과근무수당", 14),
    ("국민연금", 12),
    ("건강보험", 12),
    ("고용보험", 12),
    ("장기요양보험", 14),
    ("연금지원", 12),
    ("고용지원", 12),
    (INCOME_TAX_COLUMN, 10),
    (LOCAL_TAX_COLUMN, 10),
)
_CLIENT_LAYOUT: tuple[tuple[str, int], ...] = (
    (DATE_COLUMN, 12),
    (CLIENT_NAME_COLUMN, 20),
    (TRANSACTION_COLUMN, 15),
)
_ACTIVITY_LAYOUT: tuple[tuple[str, int], ...] = (
    (DATE_COLUMN, 12),
    (NAME_COLUMN, 10),
    (ACTIVITY_KIND_COLUMN, 10),
    (INCOME_TYPE_COLUMN, 12),
    (FEE_COLUMN, 15),
    (INCOME_TAX_COLUMN, 10),
    (LOCAL_TAX_COLUMN, 10),
)


def _employee_row(record: EmployeeSettlement) -> list[Any]:
    return [record.date, record.name] + [
        getattr(record, field_name) for _, field_name in EMPLOYEE_AMOUNT_COLUMNS
    ]


def _client_row(record: ClientSettlement) -> list[Any]:
    return [record.date, record.name, record.transaction_amount]


def _activity_row(record: ActivitySettlement) -> list[Any]:
    return [
        record.date,
        record.name,
        record.category.value,
        record.income_type.value,
        record.fee,
        record.income_tax,
        record.local_tax,
    ]


def _write_sheet(
    wb: Any,
    title: str,
    layout: tuple[tuple[str, int], ...],
    rows: list[list[Any]],
) -> None:
    ws = wb.create_sheet(title=title)
    ws.append([header for header, _ in layout])
    for cell in ws[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
    for col, (_, width) in enumerate(layout, start=1):
        ws.column_dimensions[get_column_letter(col)].width = width
    for row in rows:
        ws.append(row)
    ws.freeze_panes = "A2"


def export_workbook(
    settlements: Iterable[Settlement],
    sheet_names: SheetNames = SheetNames(),
) -> bytes:
    """Write ``settlements`` into an importable workbook and return its bytes.

    All three sheets are always present, possibly with only a header row.
    """
    employees: list[list[Any]] = []
    clients: list[list[Any]] = []
    activities: list[list[Any]] = []
    for record in settlements:
        match record:
            case EmployeeSettlement():
                employees.append(_employee_row(record))
            case ClientSettlement():
                clients.append(_client_row(record))
            case ActivitySettlement():
                activities.append(_activity_row(record))

    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    _write_sheet(wb, sheet_names.employee, _EMPLOYEE_LAYOUT, employees)
    _write_sheet(wb, sheet_names.client, _CLIENT_LAYOUT, clients)
    _write_sheet(wb, sheet_names.activity, _ACTIVITY_LAYOUT, activities)

    buffer = BytesIO()
    wb.save(buffer)

    logger.info(
        "workbook_exported",
        extra={
            "employee_rows": len(employees),
            "client_rows": len(clients),
            "activity_rows": len(activities),
        },
    )
    return buffer.getvalue()


SAMPLE_SETTLEMENTS: tuple[Settlement, ...] = (
    EmployeeSettlement(
        id=1,
        date="2025-01-15",
        name="홍길동",
        salary=3_000_000,
        bonus=500_000,
        overtime_pay=200_000,
        national_pension=166_500,
        health_insurance=119_700,
        employment_insurance=59_200,
        long_term_care_insurance=13_170,
        pension_support=166_500,
        employment_support=59_200,
        income_tax=150_000,
        local_tax=15_000,
    ),
    EmployeeSettlement(
        id=2,
        date="2025-01-15",
        name="김영희",
        salary=2_500_000,
        national_pension=138_750,
        health_insurance=99_750,
        employment_insurance=49_300,
        long_term_care_insurance=10_970,
        pension_support=138_750,
        employment_support=49_300,
        income_tax=120_000,
        local_tax=12_000,
    ),
    ClientSettlement(id=3, date="2025-01-20", name="(주)ABC컴퍼니", transaction_amount=5_000_000),
    ClientSettlement(id=4, date="2025-01-25", name="(주)XYZ파트너스", transaction_amount=3_000_000),
    ActivitySettlement(
        id=5,
        date="2025-01-10",
        name="박강사",
        category=SettlementCategory.INSTRUCTOR,
        income_type=IncomeType.BUSINESS,
        fee=1_000_000,
    ),
    ActivitySettlement(
        id=6,
        date="2025-01-12",
        name="이활동가",
        category=SettlementCategory.ACTIVITY,
        income_type=IncomeType.OTHER,
        fee=500_000,
    ),
)


def sample_filename(export_date: date) -> str:
    return f"정산_샘플_{export_date.isoformat()}.xlsx"


def build_sample_workbook(
    sheet_names: SheetNames = SheetNames(),
    rates: WithholdingRates = DEFAULT_WITHHOLDING_RATES,
) -> bytes:
    """Workbook pre-filled with example rows, ready to edit and import."""
    rows = [
        with_recomputed_tax(r, rates) if isinstance(r, ActivitySettlement) else r
        for r in SAMPLE_SETTLEMENTS
    ]
    return export_workbook(rows, sheet_names)
