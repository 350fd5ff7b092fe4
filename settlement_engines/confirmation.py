"""
Confirmation Engine - Amounts of the instructor fee payment confirmation.

The confirmation document uses its own rate table, separate from the
ledger's activity withholding:

    income deduction = round(fee x 3.3%)   business income
                     = round(fee x 8.8%)   any other income type
    local deduction  = round(fee x 1%)
    net amount       = fee - income deduction - local deduction

Rounding is half-up to whole won.

Usage:
    from settlement_engines.confirmation import build_payment_confirmation

    confirmation = build_payment_confirmation(event, members, instructor_index=-1)
    for label, value in confirmation.as_rows():
        print(label, value)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from settlement_kernel.domain.amounts import coerce_amount, round_half_up
from settlement_kernel.domain.settlement import IncomeType
from settlement_kernel.exceptions import ConfirmationError, InstructorNotFoundError
from settlement_kernel.logging_config import get_logger

from settlement_engines.tracer import traced_engine

logger = get_logger("engines.confirmation")

MAIN_INSTRUCTOR = -1

_WEEKDAYS = ("월", "화", "수", "목", "금", "토", "일")


@dataclass(frozen=True)
class ConfirmationRates:
    """Deduction rates printed on the payment confirmation."""

    business_rate: Decimal = Decimal("0.033")
    other_rate: Decimal = Decimal("0.088")
    local_rate: Decimal = Decimal("0.01")

    def rate_for(self, income_type: str | None) -> Decimal:
        if income_type == IncomeType.BUSINESS.value:
            return self.business_rate
        return self.other_rate


DEFAULT_CONFIRMATION_RATES = ConfirmationRates()


def _id_key(value: Any) -> str:
    """Ids compare numerically when both sides are numeric."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value).strip()
    if text.isdigit():
        return str(int(text))
    return text


def _income_type_label(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, IncomeType):
        return value.value
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class InstructorPayment:
    """An additional instructor of an event with their own fee."""

    instructor_id: Any
    instructor_fee: int = 0
    income_type: str | None = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> InstructorPayment:
        return cls(
            instructor_id=doc.get("instructorId"),
            instructor_fee=coerce_amount(doc.get("instructorFee")),
            income_type=_income_type_label(doc.get("incomeType")),
        )


@dataclass(frozen=True)
class EventInfo:
    """The event fields the confirmation document needs."""

    id: str
    event_name: str = ""
    topic: str = ""
    event_date: str = ""
    event_time: str = ""
    location: str = ""
    instructor_id: Any = None
    instructor_fee: int = 0
    income_type: str | None = None
    instructor_payments: tuple[InstructorPayment, ...] = ()

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> EventInfo:
        return cls(
            id=str(doc.get("id", "")),
            event_name=str(doc.get("eventName") or ""),
            topic=str(doc.get("topic") or ""),
            event_date=str(doc.get("eventDate") or ""),
            event_time=str(doc.get("eventTime") or ""),
            location=str(doc.get("location") or ""),
            instructor_id=doc.get("instructorId"),
            instructor_fee=coerce_amount(doc.get("instructorFee")),
            income_type=_income_type_label(doc.get("incomeType")),
            instructor_payments=tuple(
                InstructorPayment.from_document(p)
                for p in doc.get("instructorPayments") or ()
            ),
        )


@dataclass(frozen=True)
class InstructorInfo:
    """Contact and bank details of an instructor (a member)."""

    id: Any
    name: str = ""
    phone: str = ""
    resident_registration_number: str = ""
    bank_name: str = ""
    account_number: str = ""

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> InstructorInfo:
        return cls(
            id=doc.get("id"),
            name=str(doc.get("name") or ""),
            phone=str(doc.get("phone") or ""),
            resident_registration_number=str(doc.get("residentRegistrationNumber") or ""),
            bank_name=str(doc.get("bankName") or ""),
            account_number=str(doc.get("accountNumber") or ""),
        )


@dataclass(frozen=True)
class ConfirmationAmounts:
    """Rounded deductions and net amount for one fee."""

    rate_percent: Decimal
    income_deduction_amount: int
    local_deduction_amount: int
    net_amount: int

    @property
    def total_deduction(self) -> int:
        return self.income_deduction_amount + self.local_deduction_amount


@dataclass(frozen=True)
class PaymentConfirmation:
    """Everything printed on one instructor fee payment confirmation."""

    event_id: str
    event_name: str
    event_date: str
    event_time: str
    location: str
    topic: str
    instructor_name: str
    instructor_phone: str
    instructor_id_number: str
    instructor_bank_name: str
    instructor_account_number: str
    income_type: str
    instructor_fee: int
    income_deduction_rate: Decimal
    income_deduction_amount: int
    local_deduction_amount: int
    net_amount: int

    @property
    def total_deduction(self) -> int:
        return self.income_deduction_amount + self.local_deduction_amount

    @property
    def suggested_filename(self) -> str:
        return f"강사비지급확인서_{self.instructor_name}_{self.event_date}.pdf"

    def as_rows(self) -> list[tuple[str, str]]:
        """Labelled lines in print order."""
        schedule = f"{format_event_date(self.event_date)} {self.event_time}".strip()
        return [
            ("강의명", self.event_name),
            ("강의일시", schedule),
            ("장소", self.location),
            ("강의주제", self.topic),
            ("성함", self.instructor_name),
            ("주민등록번호", self.instructor_id_number),
            ("연락처", self.instructor_phone),
            (
                "지급금액",
                f"{self.instructor_fee:,}원(원천징수 후 실지급 {self.net_amount:,}원)",
            ),
            ("입금계좌", f"{self.instructor_bank_name} {self.instructor_account_number}".strip()),
            ("소득구분", self.income_type),
            ("원천징수율", f"{self.income_deduction_rate}%"),
            ("소득세", f"{self.income_deduction_amount:,}원"),
            ("지방소득세", f"{self.local_deduction_amount:,}원"),
            ("공제액 계(B)", f"{self.total_deduction:,}원"),
            ("실지급액(A-B)", f"{self.net_amount:,}원"),
        ]


def format_event_date(value: str) -> str:
    """``2025-03-07`` -> ``25-03-07(금)``.  Unparseable text is returned as-is."""
    text = (value or "").strip()
    try:
        parsed = date.fromisoformat(text[:10])
    except ValueError:
        return text
    return f"{parsed:%y-%m-%d}({_WEEKDAYS[parsed.weekday()]})"


def _percent(rate: Decimal) -> Decimal:
    percent = rate * 100
    if percent == percent.to_integral_value():
        return percent.quantize(Decimal(1))
    return percent.normalize()


@traced_engine("confirmation_amounts", "1.0", fingerprint_fields=("fee", "income_type"))
def compute_confirmation_amounts(
    fee: Any,
    income_type: str | None,
    rates: ConfirmationRates = DEFAULT_CONFIRMATION_RATES,
) -> ConfirmationAmounts:
    """Deductions printed on the confirmation for ``fee``."""
    amount = coerce_amount(fee)
    rate = rates.rate_for(_income_type_label(income_type))
    income_deduction = round_half_up(Decimal(amount) * rate)
    local_deduction = round_half_up(Decimal(amount) * rates.local_rate)
    return ConfirmationAmounts(
        rate_percent=_percent(rate),
        income_deduction_amount=income_deduction,
        local_deduction_amount=local_deduction,
        net_amount=amount - income_deduction - local_deduction,
    )


def _find_instructor(
    instructors: Iterable[InstructorInfo], instructor_id: Any
) -> InstructorInfo | None:
    key = _id_key(instructor_id)
    if not key or key == "0":
        return None
    for instructor in instructors:
        if _id_key(instructor.id) == key:
            return instructor
    return None


def list_event_instructors(
    event: EventInfo, instructors: Iterable[InstructorInfo]
) -> list[tuple[int, str]]:
    """Selectable instructors of ``event`` as (instructor_index, label).

    Ids that do not resolve to a known member are left out.
    """
    members = list(instructors)
    options: list[tuple[int, str]] = []
    main = _find_instructor(members, event.instructor_id)
    if main is not None:
        options.append((MAIN_INSTRUCTOR, f"{main.name} (주강사)"))
    for index, payment in enumerate(event.instructor_payments):
        extra = _find_instructor(members, payment.instructor_id)
        if extra is not None:
            options.append((index, f"{extra.name} (추가강사)"))
    return options


def build_payment_confirmation(
    event: EventInfo,
    instructors: Iterable[InstructorInfo],
    instructor_index: int = MAIN_INSTRUCTOR,
    fee_override: int | None = None,
    rates: ConfirmationRates = DEFAULT_CONFIRMATION_RATES,
) -> PaymentConfirmation:
    """Assemble the confirmation for one instructor of ``event``.

    ``instructor_index`` -1 selects the main instructor, whose fee is
    ``fee_override`` when given (and non-zero) or the event's fee.  An index
    of 0 or more selects that additional instructor with their own fee and
    income type.

    Raises:
        ConfirmationError: ``instructor_index`` is out of range.
        InstructorNotFoundError: The selected instructor id is not a member.
    """
    if instructor_index == MAIN_INSTRUCTOR:
        instructor_id = event.instructor_id
        fee = coerce_amount(fee_override) or event.instructor_fee
        income_type = event.income_type
    elif 0 <= instructor_index < len(event.instructor_payments):
        payment = event.instructor_payments[instructor_index]
        instructor_id = payment.instructor_id
        fee = payment.instructor_fee
        income_type = payment.income_type
    else:
        raise ConfirmationError(
            f"잘못된 강사 선택입니다: {instructor_index} "
            f"(추가강사 {len(event.instructor_payments)}명)"
        )

    instructor = _find_instructor(instructors, instructor_id)
    if instructor is None:
        raise InstructorNotFoundError(instructor_id)

    amounts = compute_confirmation_amounts(fee, income_type, rates)

    logger.info(
        "payment_confirmation_built",
        extra={
            "event_id": event.id,
            "instructor_index": instructor_index,
            "instructor_fee": fee,
            "net_amount": amounts.net_amount,
        },
    )

    return PaymentConfirmation(
        event_id=event.id,
        event_name=event.event_name,
        event_date=event.event_date,
        event_time=event.event_time,
        location=event.location,
        topic=event.topic,
        instructor_name=instructor.name,
        instructor_phone=instructor.phone,
        instructor_id_number=instructor.resident_registration_number,
        instructor_bank_name=instructor.bank_name,
        instructor_account_number=instructor.account_number,
        income_type=income_type or "",
        instructor_fee=fee,
        income_deduction_rate=amounts.rate_percent,
        income_deduction_amount=amounts.income_deduction_amount,
        local_deduction_amount=amounts.local_deduction_amount,
        net_amount=amounts.net_amount,
    )
