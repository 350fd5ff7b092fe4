"""Tests for the instructor fee payment confirmation engine."""

from decimal import Decimal

import pytest

from settlement_kernel.exceptions import ConfirmationError, InstructorNotFoundError

from settlement_engines.confirmation import (
    MAIN_INSTRUCTOR,
    ConfirmationRates,
    EventInfo,
    InstructorInfo,
    build_payment_confirmation,
    compute_confirmation_amounts,
    format_event_date,
    list_event_instructors,
)


EVENT_DOC = {
    "id": "EVT-1",
    "eventName": "신입 교육",
    "topic": "정산 실무",
    "eventDate": "2025-03-07",
    "eventTime": "14:00",
    "location": "본관 3층",
    "instructorId": 7,
    "instructorFee": 1_000_000,
    "incomeType": "사업소득",
    "instructorPayments": [
        {"instructorId": "8", "instructorFee": 500_000, "incomeType": "기타소득"},
        {"instructorId": 99, "instructorFee": 300_000, "incomeType": "사업소득"},
    ],
}

MEMBER_DOCS = [
    {
        "id": "7", "name": "박강사", "phone": "010-1234-5678",
        "residentRegistrationNumber": "800101-1******",
        "bankName": "국민은행", "accountNumber": "123-456-789",
    },
    {"id": "8", "name": "이강사", "phone": "010-0000-0000"},
]


class TestComputeConfirmationAmounts:
    """Confirmation rates: 3.3% business, 8.8% otherwise, 1% local, half-up."""

    def test_business_income(self):
        amounts = compute_confirmation_amounts(1_000_000, "사업소득")
        assert amounts.income_deduction_amount == 33_000
        assert amounts.local_deduction_amount == 10_000
        assert amounts.net_amount == 957_000
        assert amounts.rate_percent == Decimal("3.3")

    def test_differs_from_ledger_withholding(self):
        # The ledger withholds 30,000 on the same fee.
        assert compute_confirmation_amounts(1_000_000, "사업소득").income_deduction_amount != 30_000

    def test_other_income(self):
        amounts = compute_confirmation_amounts(500_000, "기타소득")
        assert amounts.income_deduction_amount == 44_000
        assert amounts.local_deduction_amount == 5_000
        assert amounts.net_amount == 451_000
        assert amounts.rate_percent == Decimal("8.8")

    def test_missing_income_type_uses_other_rate(self):
        assert compute_confirmation_amounts(100_000, None).income_deduction_amount == 8_800

    def test_half_up_rounding(self):
        # 15 x 3.3% = 0.495 -> 0
        assert compute_confirmation_amounts(15, "사업소득").income_deduction_amount == 0
        # 50 x 1% = 0.5 -> 1
        assert compute_confirmation_amounts(50, "사업소득").local_deduction_amount == 1

    def test_net_is_fee_minus_rounded_parts(self):
        amounts = compute_confirmation_amounts(123_457, "사업소득")
        assert amounts.net_amount == 123_457 - amounts.income_deduction_amount - amounts.local_deduction_amount

    def test_integral_percent_rendering(self):
        rates = ConfirmationRates(business_rate=Decimal("0.03"))
        assert str(compute_confirmation_amounts(1000, "사업소득", rates).rate_percent) == "3"


class TestFormatEventDate:
    def test_weekday_suffix(self):
        assert format_event_date("2025-03-07") == "25-03-07(금)"
        assert format_event_date("2025-03-09") == "25-03-09(일)"

    def test_unparseable_kept(self):
        assert format_event_date("미정") == "미정"
        assert format_event_date("") == ""


class TestEventInstructors:
    def setup_method(self):
        self.event = EventInfo.from_document(EVENT_DOC)
        self.members = [InstructorInfo.from_document(d) for d in MEMBER_DOCS]

    def test_event_from_document(self):
        assert self.event.id == "EVT-1"
        assert self.event.instructor_fee == 1_000_000
        assert len(self.event.instructor_payments) == 2
        assert self.event.instructor_payments[0].income_type == "기타소득"

    def test_list_skips_unknown_members(self):
        options = list_event_instructors(self.event, self.members)
        assert options == [(MAIN_INSTRUCTOR, "박강사 (주강사)"), (0, "이강사 (추가강사)")]


class TestBuildPaymentConfirmation:
    def setup_method(self):
        self.event = EventInfo.from_document(EVENT_DOC)
        self.members = [InstructorInfo.from_document(d) for d in MEMBER_DOCS]

    def test_main_instructor(self):
        confirmation = build_payment_confirmation(self.event, self.members)
        assert confirmation.instructor_name == "박강사"
        assert confirmation.instructor_fee == 1_000_000
        assert confirmation.income_deduction_amount == 33_000
        assert confirmation.local_deduction_amount == 10_000
        assert confirmation.net_amount == 957_000
        assert confirmation.total_deduction == 43_000
        assert confirmation.instructor_bank_name == "국민은행"

    def test_fee_override_for_main_instructor(self):
        confirmation = build_payment_confirmation(self.event, self.members, fee_override=2_000_000)
        assert confirmation.instructor_fee == 2_000_000
        assert confirmation.income_deduction_amount == 66_000

    def test_zero_override_falls_back_to_event_fee(self):
        confirmation = build_payment_confirmation(self.event, self.members, fee_override=0)
        assert confirmation.instructor_fee == 1_000_000

    def test_additional_instructor_uses_own_fee_and_type(self):
        confirmation = build_payment_confirmation(self.event, self.members, instructor_index=0)
        assert confirmation.instructor_name == "이강사"
        assert confirmation.instructor_fee == 500_000
        assert confirmation.income_type == "기타소득"
        assert confirmation.income_deduction_rate == Decimal("8.8")
        assert confirmation.net_amount == 451_000

    def test_unknown_instructor(self):
        with pytest.raises(InstructorNotFoundError) as exc_info:
            build_payment_confirmation(self.event, self.members, instructor_index=1)
        assert exc_info.value.code == "INSTRUCTOR_NOT_FOUND"

    @pytest.mark.parametrize("index", [2, -2, 10])
    def test_index_out_of_range(self, index):
        with pytest.raises(ConfirmationError):
            build_payment_confirmation(self.event, self.members, instructor_index=index)

    def test_event_without_instructor(self):
        event = EventInfo.from_document({"id": "E2", "instructorId": 0})
        with pytest.raises(InstructorNotFoundError):
            build_payment_confirmation(event, self.members)

    def test_rows_and_filename(self):
        confirmation = build_payment_confirmation(self.event, self.members)
        rows = dict(confirmation.as_rows())
        assert rows["강의일시"] == "25-03-07(금) 14:00"
        assert rows["지급금액"] == "1,000,000원(원천징수 후 실지급 957,000원)"
        assert rows["원천징수율"] == "3.3%"
        assert rows["공제액 계(B)"] == "43,000원"
        assert rows["실지급액(A-B)"] == "957,000원"
        assert rows["입금계좌"] == "국민은행 123-456-789"
        assert confirmation.suggested_filename == "강사비지급확인서_박강사_2025-03-07.pdf"
