"""
Settlement -- The tagged union of payroll, client and activity settlements.

Responsibility:
    Defines the three settlement variants, the category / income type /
    settlement type enumerations, conversion to and from the camelCase
    document shape the record store holds, draft creation, id generation and
    pre-save validation.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Time arrives through
    an injected Clock; nothing here reads the system clock.

Invariants enforced:
    - Each variant only carries the fields of its own category; a record of
      one category can never hold another category's amounts.
    - Amounts read from documents pass through ``coerce_amount`` and are
      non-negative integers.
    - ``category`` is the discriminant.  Employee and client variants fix it;
      the activity variant accepts ``활동비`` or ``강사비`` only.
    - An unknown category in a document raises UnknownCategoryError.

Failure modes:
    - UnknownCategoryError from settlement_from_document().
    - ValueError when an ActivitySettlement is built with a non-activity
      category.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, Union

from settlement_kernel.domain.amounts import coerce_amount
from settlement_kernel.domain.clock import Clock
from settlement_kernel.domain.dtos import ValidationError
from settlement_kernel.exceptions import UnknownCategoryError

SettlementId = Union[int, str]


class SettlementCategory(str, Enum):
    """Discriminant of the settlement union (values are the stored labels)."""

    EMPLOYEE = "직원"
    CLIENT = "거래처"
    ACTIVITY = "활동비"
    INSTRUCTOR = "강사비"

    @property
    def is_activity(self) -> bool:
        return self in (SettlementCategory.ACTIVITY, SettlementCategory.INSTRUCTOR)


class IncomeType(str, Enum):
    """Income classification of an activity or instructor fee."""

    BUSINESS = "사업소득"
    OTHER = "기타소득"

    @classmethod
    def parse(cls, value: Any) -> IncomeType:
        """``기타소득`` maps to OTHER; anything else is business income."""
        if isinstance(value, IncomeType):
            return value
        text = str(value).strip() if value is not None else ""
        return cls.OTHER if text == cls.OTHER.value else cls.BUSINESS


class SettlementType(str, Enum):
    """Tax classification derived from a settlement."""

    EARNED_INCOME = "근로소득"
    VAT = "부가세"
    BUSINESS_INCOME = "사업소득"
    OTHER_INCOME = "기타소득"


def _key(name: str, **extra: Any) -> dict[str, Any]:
    return {"key": name, **extra}


def _amount(key: str) -> Any:
    return field(default=0, metadata=_key(key, amount=True))


@dataclass(frozen=True)
class SettlementRecord:
    """Fields common to every settlement variant."""

    id: SettlementId = field(default=0, metadata=_key("id"))
    date: str = field(default="", metadata=_key("date"))
    name: str = field(default="", metadata=_key("name"))
    created_at: str | None = field(default=None, metadata=_key("createdAt"))


@dataclass(frozen=True)
class EmployeeSettlement(SettlementRecord):
    """Monthly payroll of an employee."""

    category: SettlementCategory = field(
        default=SettlementCategory.EMPLOYEE, init=False, metadata=_key("category")
    )
    salary: int = _amount("salary")
    bonus: int = _amount("bonus")
    overtime_pay: int = _amount("overtimePay")
    national_pension: int = _amount("nationalPension")
    health_insurance: int = _amount("healthInsurance")
    employment_insurance: int = _amount("employmentInsurance")
    long_term_care_insurance: int = _amount("longTermCareInsurance")
    pension_support: int = _amount("pensionSupport")
    employment_support: int = _amount("employmentSupport")
    income_tax: int = _amount("incomeTax")
    local_tax: int = _amount("localTax")


@dataclass(frozen=True)
class ClientSettlement(SettlementRecord):
    """A transaction with a client or vendor."""

    category: SettlementCategory = field(
        default=SettlementCategory.CLIENT, init=False, metadata=_key("category")
    )
    transaction_amount: int = _amount("transactionAmount")


@dataclass(frozen=True)
class ActivitySettlement(SettlementRecord):
    """An activity fee (``활동비``) or instructor fee (``강사비``).

    ``income_tax`` and ``local_tax`` are derived values; they are kept in
    step with ``fee`` and ``income_type`` by the settlement engine.
    """

    category: SettlementCategory = field(
        default=SettlementCategory.ACTIVITY, metadata=_key("category")
    )
    income_type: IncomeType = field(
        default=IncomeType.BUSINESS, metadata=_key("incomeType")
    )
    fee: int = _amount("fee")
    income_tax: int = _amount("incomeTax")
    local_tax: int = _amount("localTax")

    def __post_init__(self) -> None:
        category = SettlementCategory(self.category)
        if not category.is_activity:
            raise ValueError(
                f"ActivitySettlement requires 활동비 or 강사비, got {category.value}"
            )
        object.__setattr__(self, "category", category)
        object.__setattr__(self, "income_type", IncomeType.parse(self.income_type))


Settlement = Union[EmployeeSettlement, ClientSettlement, ActivitySettlement]

_VARIANTS: dict[SettlementCategory, type] = {
    SettlementCategory.EMPLOYEE: EmployeeSettlement,
    SettlementCategory.CLIENT: ClientSettlement,
    SettlementCategory.ACTIVITY: ActivitySettlement,
    SettlementCategory.INSTRUCTOR: ActivitySettlement,
}


def parse_category(value: Any) -> SettlementCategory:
    """Parse a stored category label.

    Raises:
        UnknownCategoryError: ``value`` is not one of the four labels.
    """
    if isinstance(value, SettlementCategory):
        return value
    try:
        return SettlementCategory(str(value).strip() if value is not None else value)
    except ValueError:
        raise UnknownCategoryError(value) from None


def variant_for(category: SettlementCategory) -> type:
    """Dataclass implementing ``category``."""
    return _VARIANTS[category]


def amount_fields(record: Settlement) -> dict[str, int]:
    """Monetary fields of ``record`` by attribute name."""
    return {
        f.name: getattr(record, f.name)
        for f in fields(record)
        if f.metadata.get("amount")
    }


def document_keys(category: SettlementCategory) -> tuple[str, ...]:
    """Document keys a record of ``category`` is stored with."""
    return tuple(f.metadata["key"] for f in fields(variant_for(category)))


# -----------------------------------------------------------------------------
# Document conversion
# -----------------------------------------------------------------------------


def settlement_to_document(record: Settlement) -> dict[str, Any]:
    """Convert a settlement into its camelCase document form.

    ``createdAt`` is omitted while unset so the store can stamp it.
    """
    doc: dict[str, Any] = {}
    for f in fields(record):
        value = getattr(record, f.name)
        if value is None:
            continue
        if isinstance(value, Enum):
            value = value.value
        doc[f.metadata["key"]] = value
    return doc


def settlement_from_document(doc: dict[str, Any]) -> Settlement:
    """Build the variant matching ``doc["category"]``.

    Keys belonging to other categories are ignored.

    Raises:
        UnknownCategoryError: The document's category is missing or unknown.
    """
    category = parse_category(doc.get("category"))
    cls = variant_for(category)
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        if not f.init:
            continue
        key = f.metadata["key"]
        if f.name == "category":
            kwargs["category"] = category
            continue
        if key not in doc:
            continue
        raw = doc[key]
        if f.metadata.get("amount"):
            kwargs[f.name] = coerce_amount(raw)
        elif f.name == "id":
            kwargs["id"] = parse_settlement_id(raw)
        elif f.name == "date":
            kwargs["date"] = normalize_date_text(raw)
        elif f.name == "name":
            kwargs["name"] = "" if raw is None else str(raw)
        elif f.name == "created_at":
            kwargs["created_at"] = _timestamp_text(raw)
        elif f.name == "income_type":
            kwargs["income_type"] = IncomeType.parse(raw)
    return cls(**kwargs)


def parse_settlement_id(raw: Any) -> SettlementId:
    """Stored ids are strings; numeric ones come back as ints."""
    if isinstance(raw, bool):
        return str(raw)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    text = "" if raw is None else str(raw).strip()
    if text.isdigit():
        return int(text)
    return text


def normalize_date_text(raw: Any) -> str:
    """Render a date-ish value as ``YYYY-MM-DD``; text is trimmed and kept."""
    if raw is None:
        return ""
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    return str(raw).strip()


def _timestamp_text(raw: Any) -> str | None:
    if raw is None:
        return None
    if isinstance(raw, (datetime, date)):
        return raw.isoformat()
    return str(raw)


# -----------------------------------------------------------------------------
# Lifecycle helpers
# -----------------------------------------------------------------------------


def generate_settlement_id(clock: Clock, offset: int = 0) -> int:
    """Epoch milliseconds from ``clock`` plus ``offset``."""
    return clock.epoch_millis() + offset


def new_settlement_draft(clock: Clock) -> EmployeeSettlement:
    """Blank employee settlement dated today, not yet identified."""
    return EmployeeSettlement(id=0, date=clock.today().isoformat(), name="")


_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_settlement(record: Settlement) -> list[ValidationError]:
    """Check a record before it is saved.  Returns an empty list when valid."""
    errors: list[ValidationError] = []

    if not record.name or not record.name.strip():
        errors.append(
            ValidationError(
                code="NAME_REQUIRED",
                message="이름/거래처명을 입력해주세요.",
                field="name",
            )
        )

    if not _is_iso_date(record.date):
        errors.append(
            ValidationError(
                code="DATE_INVALID",
                message="날짜 형식이 올바르지 않습니다 (YYYY-MM-DD).",
                field="date",
                details={"value": record.date},
            )
        )

    for name, value in amount_fields(record).items():
        if not isinstance(value, int) or value < 0:
            errors.append(
                ValidationError(
                    code="AMOUNT_NEGATIVE",
                    message="금액은 0 이상의 정수여야 합니다.",
                    field=name,
                    details={"value": value},
                )
            )

    return errors


def _is_iso_date(value: str) -> bool:
    if not isinstance(value, str) or not _ISO_DATE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True
