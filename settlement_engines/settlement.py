"""
Settlement Engine - Classify settlements and derive their amounts.

Pure functions with no I/O.  Rates are value objects passed as parameters;
the defaults are the statutory figures the ledger has always used.

Rules:
    Employee:   payment = salary + bonus + overtime pay
                deduction = four social insurances + income tax + local tax
                post-deduction pay = payment - deduction
                total support = pension support + employment support
                net pay = post-deduction pay + total support
    Client:     payment = transaction amount
                deduction = floor(amount x 10% / 10) x 10   (VAT)
                net pay = payment + deduction
    Activity:   payment = fee
                deduction = income tax + local tax
                net pay = payment - deduction

    Activity withholding:
                income tax = floor(fee x rate / 10) x 10, rate 3% business / 8% other
                local tax  = floor(income tax x 10% / 10) x 10
                both 0 when fee is 0

Usage:
    from settlement_engines.settlement import compute_amounts, recompute_tax

    amounts = compute_amounts(record)
    print(amounts.net_pay)

    tax = recompute_tax(1_000_000, IncomeType.BUSINESS)
    print(tax.income_tax, tax.local_tax)  # 30000 3000
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, assert_never

from settlement_kernel.domain.amounts import coerce_amount, truncate_to_unit
from settlement_kernel.domain.settlement import (
    ActivitySettlement,
    ClientSettlement,
    EmployeeSettlement,
    IncomeType,
    Settlement,
    SettlementCategory,
    SettlementType,
    amount_fields,
    normalize_date_text,
    variant_for,
)
from settlement_kernel.logging_config import get_logger

from settlement_engines.tracer import traced_engine

logger = get_logger("engines.settlement")


@dataclass(frozen=True)
class WithholdingRates:
    """Withholding rates for activity and instructor fees."""

    business_rate: Decimal = Decimal("0.03")
    other_rate: Decimal = Decimal("0.08")
    local_rate: Decimal = Decimal("0.1")
    unit: int = 10

    def rate_for(self, income_type: IncomeType) -> Decimal:
        if income_type == IncomeType.OTHER:
            return self.other_rate
        return self.business_rate


@dataclass(frozen=True)
class VatRule:
    """VAT added on top of client transactions."""

    rate: Decimal = Decimal("0.1")
    unit: int = 10


DEFAULT_WITHHOLDING_RATES = WithholdingRates()
DEFAULT_VAT_RULE = VatRule()


@dataclass(frozen=True)
class TaxWithholding:
    """Income tax and local tax withheld from a fee."""

    income_tax: int
    local_tax: int

    @property
    def total(self) -> int:
        return self.income_tax + self.local_tax


@dataclass(frozen=True)
class SettlementAmounts:
    """Derived amounts of one settlement.

    post_deduction_pay and total_support are only meaningful for employee
    payroll and are zero for the other categories.
    """

    payment: int
    deduction: int
    net_pay: int
    post_deduction_pay: int = 0
    total_support: int = 0


@dataclass(frozen=True)
class SettlementView:
    """A settlement flattened into one row with its derived amounts.

    Every category field is present; fields that do not apply to the row's
    category hold zero (or business income for ``income_type``).
    """

    id: Any
    date: str
    name: str
    category: SettlementCategory
    settlement_type: SettlementType
    payment: int
    deduction: int
    net_pay: int
    post_deduction_pay: int
    total_support: int
    salary: int = 0
    bonus: int = 0
    overtime_pay: int = 0
    national_pension: int = 0
    health_insurance: int = 0
    employment_insurance: int = 0
    long_term_care_insurance: int = 0
    pension_support: int = 0
    employment_support: int = 0
    income_tax: int = 0
    local_tax: int = 0
    transaction_amount: int = 0
    income_type: IncomeType = IncomeType.BUSINESS
    fee: int = 0
    created_at: str | None = None

    def value(self, key: str) -> Any:
        """Field value by column key."""
        return getattr(self, key)


VIEW_FIELDS: tuple[str, ...] = tuple(f.name for f in dataclasses.fields(SettlementView))


def classify(record: Settlement) -> SettlementType:
    """Settlement type of ``record``.  Total over every variant."""
    match record:
        case EmployeeSettlement():
            return SettlementType.EARNED_INCOME
        case ClientSettlement():
            return SettlementType.VAT
        case ActivitySettlement():
            if record.income_type == IncomeType.OTHER:
                return SettlementType.OTHER_INCOME
            return SettlementType.BUSINESS_INCOME
        case _:
            assert_never(record)


@traced_engine("settlement_tax", "1.0", fingerprint_fields=("fee", "income_type"))
def recompute_tax(
    fee: Any,
    income_type: IncomeType | str,
    rates: WithholdingRates = DEFAULT_WITHHOLDING_RATES,
) -> TaxWithholding:
    """Withholding on an activity or instructor fee.

    The local tax is truncated from the already-truncated income tax.
    """
    amount = coerce_amount(fee)
    if amount <= 0:
        return TaxWithholding(income_tax=0, local_tax=0)

    rate = rates.rate_for(IncomeType.parse(income_type))
    income_tax = truncate_to_unit(Decimal(amount) * rate, rates.unit)
    local_tax = truncate_to_unit(Decimal(income_tax) * rates.local_rate, rates.unit)
    return TaxWithholding(income_tax=income_tax, local_tax=local_tax)


def vat_amount(transaction_amount: Any, rule: VatRule = DEFAULT_VAT_RULE) -> int:
    """VAT on a client transaction, truncated to the rule's unit."""
    amount = coerce_amount(transaction_amount)
    return truncate_to_unit(Decimal(amount) * rule.rate, rule.unit)


@traced_engine("settlement_amounts", "1.0", fingerprint_fields=("record",))
def compute_amounts(
    record: Settlement,
    vat: VatRule = DEFAULT_VAT_RULE,
) -> SettlementAmounts:
    """Payment, deduction and net pay of ``record``."""
    match record:
        case EmployeeSettlement():
            payment = (
                coerce_amount(record.salary)
                + coerce_amount(record.bonus)
                + coerce_amount(record.overtime_pay)
            )
            deduction = (
                coerce_amount(record.national_pension)
                + coerce_amount(record.health_insurance)
                + coerce_amount(record.employment_insurance)
                + coerce_amount(record.long_term_care_insurance)
                + coerce_amount(record.income_tax)
                + coerce_amount(record.local_tax)
            )
            post_deduction_pay = payment - deduction
            total_support = coerce_amount(record.pension_support) + coerce_amount(
                record.employment_support
            )
            return SettlementAmounts(
                payment=payment,
                deduction=deduction,
                net_pay=post_deduction_pay + total_support,
                post_deduction_pay=post_deduction_pay,
                total_support=total_support,
            )
        case ClientSettlement():
            payment = coerce_amount(record.transaction_amount)
            deduction = vat_amount(payment, vat)
            return SettlementAmounts(
                payment=payment,
                deduction=deduction,
                net_pay=payment + deduction,
            )
        case ActivitySettlement():
            payment = coerce_amount(record.fee)
            deduction = coerce_amount(record.income_tax) + coerce_amount(record.local_tax)
            return SettlementAmounts(
                payment=payment,
                deduction=deduction,
                net_pay=payment - deduction,
            )
        case _:
            assert_never(record)


def build_view(record: Settlement, vat: VatRule = DEFAULT_VAT_RULE) -> SettlementView:
    """Flatten ``record`` and its derived amounts into one view row."""
    amounts = compute_amounts(record, vat)
    values: dict[str, Any] = dict(amount_fields(record))
    if isinstance(record, ActivitySettlement):
        values["income_type"] = record.income_type
    return SettlementView(
        id=record.id,
        date=record.date,
        name=record.name,
        category=record.category,
        settlement_type=classify(record),
        payment=amounts.payment,
        deduction=amounts.deduction,
        net_pay=amounts.net_pay,
        post_deduction_pay=amounts.post_deduction_pay,
        total_support=amounts.total_support,
        created_at=record.created_at,
        **values,
    )


def with_recomputed_tax(
    record: ActivitySettlement,
    rates: WithholdingRates = DEFAULT_WITHHOLDING_RATES,
) -> ActivitySettlement:
    """Copy of ``record`` whose taxes match its fee and income type."""
    tax = recompute_tax(record.fee, record.income_type, rates)
    if tax.income_tax == record.income_tax and tax.local_tax == record.local_tax:
        return record
    return dataclasses.replace(
        record, income_tax=tax.income_tax, local_tax=tax.local_tax
    )


@traced_engine("settlement_category_switch", "1.0", fingerprint_fields=("category",))
def switch_category(
    record: Settlement,
    category: SettlementCategory | str,
    rates: WithholdingRates = DEFAULT_WITHHOLDING_RATES,
) -> Settlement:
    """Move ``record`` to another category.

    Only id, date, name and createdAt carry over; every category field
    starts from zero and activity taxes are recomputed.  Switching to the
    record's own category returns it unchanged.
    """
    target = SettlementCategory(category)
    if target == record.category:
        return record

    common = {
        "id": record.id,
        "date": record.date,
        "name": record.name,
        "created_at": record.created_at,
    }
    if target.is_activity:
        return with_recomputed_tax(
            ActivitySettlement(category=target, income_type=IncomeType.BUSINESS, **common),
            rates,
        )
    return variant_for(target)(**common)


@traced_engine("settlement_revision", "1.0", fingerprint_fields=("record",))
def revise_settlement(
    record: Settlement,
    rates: WithholdingRates = DEFAULT_WITHHOLDING_RATES,
    **changes: Any,
) -> Settlement:
    """Apply field changes to ``record``.

    Amount fields go through ``coerce_amount``.  Activity taxes are
    re-derived from the revised fee and income type, so submitted tax values
    are ignored for activity records.

    Raises:
        ValueError: ``category`` is among the changes (use switch_category),
            or a field does not exist on the record's variant.
    """
    if "category" in changes:
        raise ValueError("Category changes go through switch_category")

    known = {f.name for f in dataclasses.fields(record) if f.init}
    unknown = sorted(set(changes) - known)
    if unknown:
        raise ValueError(
            f"Unknown fields for {type(record).__name__}: {', '.join(unknown)}"
        )

    amounts = amount_fields(record)
    normalized: dict[str, Any] = {}
    for name, value in changes.items():
        if name in amounts:
            normalized[name] = coerce_amount(value)
        elif name == "income_type":
            normalized[name] = IncomeType.parse(value)
        elif name == "date":
            normalized[name] = normalize_date_text(value)
        elif name == "name":
            normalized[name] = "" if value is None else str(value)
        else:
            normalized[name] = value

    revised = dataclasses.replace(record, **normalized)
    if isinstance(revised, ActivitySettlement):
        revised = with_recomputed_tax(revised, rates)
    return revised
