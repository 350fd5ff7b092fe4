"""
Property-based tests for the settlement calculations.

Properties checked:
- coerce_amount never raises and never returns a negative amount
- employee net pay = payment - deduction + support
- activity withholding lands on 10-won steps with local <= income tax
- confirmation net = fee - income deduction - local deduction
- settlement documents convert back to the same record
- select_views returns a subset of its input
"""

from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from settlement_kernel.domain.amounts import coerce_amount
from settlement_kernel.domain.settlement import (
    ActivitySettlement,
    ClientSettlement,
    EmployeeSettlement,
    IncomeType,
    SettlementCategory,
    settlement_from_document,
    settlement_to_document,
)

from settlement_engines.confirmation import compute_confirmation_amounts
from settlement_engines.selection import SelectionCriteria, select_views
from settlement_engines.settlement import (
    build_view,
    compute_amounts,
    recompute_tax,
    with_recomputed_tax,
)

amounts = st.integers(min_value=0, max_value=10_000_000_000)
income_types = st.sampled_from(list(IncomeType))
dates = st.dates().map(lambda d: d.isoformat())
names = st.text(min_size=0, max_size=20)
ids = st.integers(min_value=1, max_value=2**53)

raw_values = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(),
    st.floats(allow_nan=True, allow_infinity=True),
    st.decimals(min_value=-10**15, max_value=10**15),
    st.sampled_from([Decimal("NaN"), Decimal("sNaN"), Decimal("-Infinity")]),
    st.text(max_size=30),
    st.lists(st.integers(), max_size=3),
)


@st.composite
def employee_settlements(draw):
    return EmployeeSettlement(
        id=draw(ids),
        date=draw(dates),
        name=draw(names),
        salary=draw(amounts),
        bonus=draw(amounts),
        overtime_pay=draw(amounts),
        national_pension=draw(amounts),
        health_insurance=draw(amounts),
        employment_insurance=draw(amounts),
        long_term_care_insurance=draw(amounts),
        pension_support=draw(amounts),
        employment_support=draw(amounts),
        income_tax=draw(amounts),
        local_tax=draw(amounts),
    )


@st.composite
def client_settlements(draw):
    return ClientSettlement(
        id=draw(ids), date=draw(dates), name=draw(names), transaction_amount=draw(amounts)
    )


@st.composite
def activity_settlements(draw):
    record = ActivitySettlement(
        id=draw(ids),
        date=draw(dates),
        name=draw(names),
        category=draw(st.sampled_from([SettlementCategory.ACTIVITY, SettlementCategory.INSTRUCTOR])),
        income_type=draw(income_types),
        fee=draw(amounts),
    )
    return with_recomputed_tax(record)


settlements = st.one_of(employee_settlements(), client_settlements(), activity_settlements())


class TestAmountCoercion:
    @given(raw_values)
    def test_never_negative(self, value):
        assert coerce_amount(value) >= 0

    @given(amounts)
    def test_formatted_text_parses_back(self, value):
        assert coerce_amount(f"{value:,}원") == value


class TestSettlementAmounts:
    @given(employee_settlements())
    def test_employee_net_identity(self, record):
        result = compute_amounts(record)
        assert result.net_pay == result.payment - result.deduction + result.total_support
        assert result.post_deduction_pay == result.payment - result.deduction

    @given(client_settlements())
    def test_client_vat_bounded(self, record):
        result = compute_amounts(record)
        assert 0 <= result.deduction <= record.transaction_amount // 10
        assert result.deduction % 10 == 0
        assert result.net_pay == result.payment + result.deduction

    @given(amounts, income_types)
    def test_withholding_steps(self, fee, income_type):
        tax = recompute_tax(fee, income_type)
        assert tax.income_tax % 10 == 0
        assert tax.local_tax % 10 == 0
        assert 0 <= tax.local_tax <= tax.income_tax <= fee

    @given(activity_settlements())
    def test_activity_net_is_fee_minus_withholding(self, record):
        result = compute_amounts(record)
        assert result.net_pay == record.fee - record.income_tax - record.local_tax


class TestConfirmationAmounts:
    @given(amounts, st.one_of(st.none(), st.sampled_from([t.value for t in IncomeType])))
    def test_net_is_fee_minus_deductions(self, fee, income_type):
        result = compute_confirmation_amounts(fee, income_type)
        assert result.net_amount == fee - result.income_deduction_amount - result.local_deduction_amount
        assert result.local_deduction_amount <= result.income_deduction_amount

    @given(amounts)
    def test_business_rate_applied(self, fee):
        result = compute_confirmation_amounts(fee, IncomeType.BUSINESS.value)
        assert abs(Decimal(result.income_deduction_amount) - Decimal(fee) * Decimal("0.033")) <= Decimal("0.5")


class TestDocumentConversion:
    @given(settlements)
    def test_round_trip(self, record):
        assert settlement_from_document(settlement_to_document(record)) == record


class TestSelection:
    @settings(max_examples=50)
    @given(
        st.lists(settlements, max_size=15),
        st.lists(st.sampled_from([c.value for c in SettlementCategory]), max_size=2),
        st.booleans(),
    )
    def test_selection_is_sorted_subset(self, records, categories, descending):
        views = [build_view(r) for r in records]
        criteria = SelectionCriteria(
            categories=tuple(categories), sort_key="net_pay", descending=descending
        )
        selected = select_views(views, criteria)
        assert all(v in views for v in selected)
        if categories:
            assert all(v.category.value in categories for v in selected)
        else:
            assert len(selected) == len(views)
        pays = [v.net_pay for v in selected]
        assert pays == sorted(pays, reverse=descending)
