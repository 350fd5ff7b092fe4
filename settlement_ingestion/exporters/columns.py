"""
Column catalog of the settlement listing.

Keys are SettlementView field names; labels are the Korean table headers.
The catalog order is the display and export order.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ColumnSpec:
    key: str
    label: str
    default_visible: bool = False
    sortable: bool = True
    is_currency: bool = False


COLUMN_CATALOG: tuple[ColumnSpec, ...] = (
    ColumnSpec("date", "날짜", default_visible=True),
    ColumnSpec("name", "이름", default_visible=True),
    ColumnSpec("category", "구분", default_visible=True),
    ColumnSpec("settlement_type", "정산구분", default_visible=True, sortable=False),
    ColumnSpec("payment", "지급액", default_visible=True, is_currency=True),
    ColumnSpec("deduction", "공제액", default_visible=True, is_currency=True),
    ColumnSpec("net_pay", "실지급액", default_visible=True, is_currency=True),
    ColumnSpec("post_deduction_pay", "공제후급여", is_currency=True),
    ColumnSpec("total_support", "총 지원금", is_currency=True),
    # 직원
    ColumnSpec("salary", "급여", is_currency=True),
    ColumnSpec("bonus", "상여금", is_currency=True),
    ColumnSpec("overtime_pay", "초과근무", is_currency=True),
    ColumnSpec("national_pension", "국민연금", is_currency=True),
    ColumnSpec("health_insurance", "건강보험", is_currency=True),
    ColumnSpec("employment_insurance", "고용보험", is_currency=True),
    ColumnSpec("long_term_care_insurance", "장기요양", is_currency=True),
    ColumnSpec("pension_support", "연금지원", is_currency=True),
    ColumnSpec("employment_support", "고용지원", is_currency=True),
    ColumnSpec("income_tax", "소득세", is_currency=True),
    ColumnSpec("local_tax", "지방세", is_currency=True),
    # 거래처
    ColumnSpec("transaction_amount", "거래대금", is_currency=True),
    # 활동비/강사비
    ColumnSpec("fee", "활동/강사비", is_currency=True),
    ColumnSpec("income_type", "소득종류"),
)

_BY_KEY = {c.key: c for c in COLUMN_CATALOG}


def column_spec(key: str) -> ColumnSpec:
    """Catalog entry for ``key``.

    Raises:
        KeyError: ``key`` is not a listing column.
    """
    return _BY_KEY[key]


def default_visible_columns() -> tuple[str, ...]:
    return tuple(c.key for c in COLUMN_CATALOG if c.default_visible)
