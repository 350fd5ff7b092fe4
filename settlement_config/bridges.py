"""
Config -> Engine / Ingestion Bridges.

Functions that convert configuration definitions into the value objects
the engines and the import service take.  These live in settlement_config
(the producer) because engines and ingestion must NEVER import
settlement_config.

Usage:
    from settlement_config.bridges import build_withholding_rates, build_import_limits

    config = get_active_config()
    rates = build_withholding_rates(config)
    limits = build_import_limits(config)
"""

from __future__ import annotations

from settlement_engines.confirmation import ConfirmationRates
from settlement_engines.settlement import VatRule, WithholdingRates
from settlement_ingestion.domain.types import MIB, ImportLimits, SheetNames

from settlement_config.schema import SettlementConfig


def build_withholding_rates(config: SettlementConfig) -> WithholdingRates:
    w = config.withholding
    return WithholdingRates(
        business_rate=w.business_rate,
        other_rate=w.other_rate,
        local_rate=w.local_rate,
        unit=w.unit,
    )


def build_vat_rule(config: SettlementConfig) -> VatRule:
    return VatRule(rate=config.vat.rate, unit=config.vat.unit)


def build_confirmation_rates(config: SettlementConfig) -> ConfirmationRates:
    c = config.confirmation
    return ConfirmationRates(
        business_rate=c.business_rate,
        other_rate=c.other_rate,
        local_rate=c.local_rate,
    )


def build_import_limits(config: SettlementConfig) -> ImportLimits:
    limits = config.import_limits
    return ImportLimits(
        max_file_bytes=limits.max_file_mb * MIB,
        allowed_extensions=limits.allowed_extensions,
    )


def build_sheet_names(config: SettlementConfig) -> SheetNames:
    s = config.sheets
    return SheetNames(employee=s.employee, client=s.client, activity=s.activity)
