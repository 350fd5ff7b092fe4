"""
SettlementConfig schema.

The human-authored YAML configuration is parsed by the loader into these
frozen dataclasses.  Defaults are the statutory figures and the layout the
ledger ships with, so ``SettlementConfig()`` is a complete configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# ---------------------------------------------------------------------------
# Rates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WithholdingRatesDef:
    """Ledger withholding on activity and instructor fees."""

    business_rate: Decimal = Decimal("0.03")
    other_rate: Decimal = Decimal("0.08")
    local_rate: Decimal = Decimal("0.1")
    unit: int = 10


@dataclass(frozen=True)
class VatRuleDef:
    """VAT added to client transactions."""

    rate: Decimal = Decimal("0.1")
    unit: int = 10


@dataclass(frozen=True)
class ConfirmationRatesDef:
    """Rates printed on the instructor fee payment confirmation."""

    business_rate: Decimal = Decimal("0.033")
    other_rate: Decimal = Decimal("0.088")
    local_rate: Decimal = Decimal("0.01")


# ---------------------------------------------------------------------------
# Import / workbook layout
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImportLimitsDef:
    max_file_mb: int = 10
    allowed_extensions: tuple[str, ...] = (".xlsx", ".xlsm")


@dataclass(frozen=True)
class SheetNamesDef:
    employee: str = "직원"
    client: str = "거래처"
    activity: str = "활동비_강사비"


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StoreDef:
    """Database location and collection names."""

    database_url: str = "sqlite:///settlements.db"
    settlements_collection: str = "settlements"
    events_collection: str = "events"
    members_collection: str = "members"
    echo_sql: bool = False


@dataclass(frozen=True)
class LoggingDef:
    level: str = "INFO"


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SettlementConfig:
    """A complete, validated configuration set."""

    config_id: str = "settlement-default"
    version: int = 1
    withholding: WithholdingRatesDef = field(default_factory=WithholdingRatesDef)
    vat: VatRuleDef = field(default_factory=VatRuleDef)
    confirmation: ConfirmationRatesDef = field(default_factory=ConfirmationRatesDef)
    import_limits: ImportLimitsDef = field(default_factory=ImportLimitsDef)
    sheets: SheetNamesDef = field(default_factory=SheetNamesDef)
    store: StoreDef = field(default_factory=StoreDef)
    logging: LoggingDef = field(default_factory=LoggingDef)
    checksum: str = ""
