"""
Tests for the settlement engine: classification, derived amounts,
activity withholding, category switching and revision.
"""

from decimal import Decimal

import pytest

from settlement_kernel.domain.settlement import (
    ActivitySettlement,
    ClientSettlement,
    EmployeeSettlement,
    IncomeType,
    SettlementCategory,
    SettlementType,
)

from settlement_engines.settlement import (
    VIEW_FIELDS,
    VatRule,
    WithholdingRates,
    build_view,
    classify,
    compute_amounts,
    recompute_tax,
    revise_settlement,
    switch_category,
    vat_amount,
    with_recomputed_tax,
)


def _instructor(fee: int, income_type: IncomeType = IncomeType.BUSINESS) -> ActivitySettlement:
    return with_recomputed_tax(
        ActivitySettlement(
            id=5, date="2025-01-10", name="박강사",
            category=SettlementCategory.INSTRUCTOR, income_type=income_type, fee=fee,
        )
    )


class TestClassify:
    """classify is total over the four category labels."""

    def test_employee(self):
        assert classify(EmployeeSettlement()) == SettlementType.EARNED_INCOME

    def test_client(self):
        assert classify(ClientSettlement()) == SettlementType.VAT

    @pytest.mark.parametrize("category", [SettlementCategory.ACTIVITY, SettlementCategory.INSTRUCTOR])
    def test_activity_business(self, category):
        record = ActivitySettlement(category=category, income_type=IncomeType.BUSINESS)
        assert classify(record) == SettlementType.BUSINESS_INCOME

    @pytest.mark.parametrize("category", [SettlementCategory.ACTIVITY, SettlementCategory.INSTRUCTOR])
    def test_activity_other(self, category):
        record = ActivitySettlement(category=category, income_type=IncomeType.OTHER)
        assert classify(record) == SettlementType.OTHER_INCOME


class TestEmployeeAmounts:
    def setup_method(self):
        self.record = EmployeeSettlement(
            id=1, date="2025-01-15", name="홍길동",
            salary=3_000_000, bonus=500_000, overtime_pay=200_000,
            national_pension=166_500, health_insurance=119_700,
            employment_insurance=59_200, long_term_care_insurance=13_170,
            pension_support=166_500, employment_support=59_200,
            income_tax=150_000, local_tax=15_000,
        )

    def test_payment_and_deduction(self):
        amounts = compute_amounts(self.record)
        assert amounts.payment == 3_700_000
        assert amounts.deduction == 166_500 + 119_700 + 59_200 + 13_170 + 150_000 + 15_000

    def test_net_pay_identity(self):
        amounts = compute_amounts(self.record)
        assert amounts.post_deduction_pay == amounts.payment - amounts.deduction
        assert amounts.total_support == 166_500 + 59_200
        assert amounts.net_pay == amounts.post_deduction_pay + amounts.total_support

    def test_deduction_may_exceed_payment(self):
        record = EmployeeSettlement(name="x", national_pension=100)
        amounts = compute_amounts(record)
        assert amounts.post_deduction_pay == -100
        assert amounts.net_pay == -100


class TestClientAmounts:
    def test_vat_truncated_to_ten(self):
        amounts = compute_amounts(ClientSettlement(name="ABC", transaction_amount=1234))
        assert amounts.payment == 1234
        assert amounts.deduction == 120
        assert amounts.net_pay == 1354

    def test_vat_on_round_amount(self):
        assert vat_amount(5_000_000) == 500_000

    def test_custom_vat_rule(self):
        rule = VatRule(rate=Decimal("0.05"), unit=100)
        assert vat_amount(12_345, rule) == 600

    def test_client_has_no_payroll_components(self):
        amounts = compute_amounts(ClientSettlement(name="ABC", transaction_amount=1000))
        assert amounts.post_deduction_pay == 0
        assert amounts.total_support == 0


class TestRecomputeTax:
    """Ledger withholding: 3% / 8%, local 10% of income tax, both floored to 10."""

    def test_business_income(self):
        tax = recompute_tax(1_000_000, IncomeType.BUSINESS)
        assert (tax.income_tax, tax.local_tax) == (30_000, 3_000)

    def test_other_income(self):
        tax = recompute_tax(500_000, IncomeType.OTHER)
        assert (tax.income_tax, tax.local_tax) == (40_000, 4_000)

    def test_zero_fee(self):
        tax = recompute_tax(0, IncomeType.OTHER)
        assert (tax.income_tax, tax.local_tax) == (0, 0)

    def test_local_tax_from_truncated_income_tax(self):
        # 12,345 x 3% = 370.35 -> 370; 370 x 10% = 37 -> 30
        tax = recompute_tax(12_345, IncomeType.BUSINESS)
        assert (tax.income_tax, tax.local_tax) == (370, 30)

    def test_income_type_text(self):
        assert recompute_tax(500_000, "기타소득").income_tax == 40_000
        assert recompute_tax(500_000, "unknown").income_tax == 15_000

    def test_custom_rates(self):
        rates = WithholdingRates(business_rate=Decimal("0.05"), unit=1)
        assert recompute_tax(1_001, IncomeType.BUSINESS, rates).income_tax == 50

    def test_total(self):
        assert recompute_tax(1_000_000, IncomeType.BUSINESS).total == 33_000


class TestActivityAmounts:
    def test_business_instructor_fee(self):
        amounts = compute_amounts(_instructor(1_000_000))
        assert (amounts.payment, amounts.deduction, amounts.net_pay) == (1_000_000, 33_000, 967_000)

    def test_other_income_activity_fee(self):
        amounts = compute_amounts(_instructor(500_000, IncomeType.OTHER))
        assert (amounts.payment, amounts.deduction, amounts.net_pay) == (500_000, 44_000, 456_000)

    def test_with_recomputed_tax_returns_same_object_when_current(self):
        record = _instructor(1_000_000)
        assert with_recomputed_tax(record) is record


class TestBuildView:
    def test_view_flattens_record(self):
        view = build_view(ClientSettlement(id=3, date="2025-01-20", name="ABC", transaction_amount=1234))
        assert view.settlement_type == SettlementType.VAT
        assert view.transaction_amount == 1234
        assert view.salary == 0
        assert view.net_pay == 1354
        assert view.value("deduction") == 120

    def test_view_income_type_defaults_to_business(self):
        assert build_view(EmployeeSettlement(name="x")).income_type == IncomeType.BUSINESS

    def test_view_fields_cover_catalog_keys(self):
        assert {"date", "name", "category", "settlement_type", "net_pay", "fee"} <= set(VIEW_FIELDS)


class TestSwitchCategory:
    def setup_method(self):
        self.employee = EmployeeSettlement(
            id=99, date="2025-02-01", name="홍길동", salary=3_000_000,
            created_at="2025-02-01T00:00:00+00:00",
        )

    def test_previous_fields_reset(self):
        switched = switch_category(self.employee, SettlementCategory.CLIENT)
        assert isinstance(switched, ClientSettlement)
        assert switched.transaction_amount == 0
        assert not hasattr(switched, "salary")

    def test_common_fields_carry_over(self):
        switched = switch_category(self.employee, "활동비")
        assert (switched.id, switched.date, switched.name, switched.created_at) == (
            99, "2025-02-01", "홍길동", "2025-02-01T00:00:00+00:00",
        )

    def test_switch_to_activity_starts_as_business_income(self):
        switched = switch_category(self.employee, SettlementCategory.INSTRUCTOR)
        assert switched.category == SettlementCategory.INSTRUCTOR
        assert switched.income_type == IncomeType.BUSINESS
        assert (switched.fee, switched.income_tax, switched.local_tax) == (0, 0, 0)

    def test_switch_between_activity_categories_resets_fee(self):
        record = _instructor(1_000_000)
        switched = switch_category(record, SettlementCategory.ACTIVITY)
        assert switched.fee == 0
        assert switched.income_tax == 0

    def test_same_category_is_unchanged(self):
        assert switch_category(self.employee, SettlementCategory.EMPLOYEE) is self.employee

    def test_unknown_category(self):
        with pytest.raises(ValueError):
            switch_category(self.employee, "휴가비")


class TestReviseSettlement:
    def test_amounts_are_coerced(self):
        revised = revise_settlement(EmployeeSettlement(name="a"), salary="2,500,000", bonus=-10)
        assert revised.salary == 2_500_000
        assert revised.bonus == 0

    def test_fee_change_recomputes_tax(self):
        revised = revise_settlement(_instructor(1_000_000), fee=2_000_000)
        assert (revised.income_tax, revised.local_tax) == (60_000, 6_000)

    def test_income_type_change_recomputes_tax(self):
        revised = revise_settlement(_instructor(500_000), income_type="기타소득")
        assert (revised.income_tax, revised.local_tax) == (40_000, 4_000)

    def test_submitted_taxes_are_ignored_for_activity(self):
        revised = revise_settlement(_instructor(1_000_000), income_tax=1)
        assert revised.income_tax == 30_000

    def test_category_change_rejected(self):
        with pytest.raises(ValueError):
            revise_settlement(EmployeeSettlement(name="a"), category="거래처")

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="transaction_amount"):
            revise_settlement(EmployeeSettlement(name="a"), transaction_amount=1)

    def test_date_and_name(self):
        revised = revise_settlement(ClientSettlement(name="a"), date=" 2025-03-01 ", name="B")
        assert (revised.date, revised.name) == ("2025-03-01", "B")
