"""
Module: settlement_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for higher
    layers (settlement_ingestion, settlement_services).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import settlement_kernel (domain, exceptions, logging).
    MUST NOT import settlement_ingestion, settlement_config or
    settlement_services.

Invariants enforced:
    - Purity: engines NEVER read the clock; ids and dates are passed in.
    - Decimal-only arithmetic; every amount leaves an engine as an int.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entrypoints are traced via the ``@traced_engine`` decorator
    (see ``settlement_engines.tracer``), emitting SETTLEMENT_ENGINE_TRACE
    debug records with engine name, version, input fingerprint and duration.

Usage:
    from settlement_engines import classify, compute_amounts, recompute_tax
    from settlement_engines import build_payment_confirmation
    from settlement_engines import SelectionCriteria, select_views
"""

from settlement_engines.confirmation import (
    DEFAULT_CONFIRMATION_RATES,
    MAIN_INSTRUCTOR,
    ConfirmationAmounts,
    ConfirmationRates,
    EventInfo,
    InstructorInfo,
    InstructorPayment,
    PaymentConfirmation,
    build_payment_confirmation,
    compute_confirmation_amounts,
    format_event_date,
    list_event_instructors,
)
from settlement_engines.selection import (
    FilterOptions,
    SelectionCriteria,
    filter_options,
    select_views,
    toggle_sort,
)
from settlement_engines.settlement import (
    DEFAULT_VAT_RULE,
    DEFAULT_WITHHOLDING_RATES,
    VIEW_FIELDS,
    SettlementAmounts,
    SettlementView,
    TaxWithholding,
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
from settlement_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # Settlement
    "DEFAULT_VAT_RULE",
    "DEFAULT_WITHHOLDING_RATES",
    "VIEW_FIELDS",
    "SettlementAmounts",
    "SettlementView",
    "TaxWithholding",
    "VatRule",
    "WithholdingRates",
    "build_view",
    "classify",
    "compute_amounts",
    "recompute_tax",
    "revise_settlement",
    "switch_category",
    "vat_amount",
    "with_recomputed_tax",
    # Confirmation
    "DEFAULT_CONFIRMATION_RATES",
    "MAIN_INSTRUCTOR",
    "ConfirmationAmounts",
    "ConfirmationRates",
    "EventInfo",
    "InstructorInfo",
    "InstructorPayment",
    "PaymentConfirmation",
    "build_payment_confirmation",
    "compute_confirmation_amounts",
    "format_event_date",
    "list_event_instructors",
    # Selection
    "FilterOptions",
    "SelectionCriteria",
    "filter_options",
    "select_views",
    "toggle_sort",
    # Tracing
    "compute_input_fingerprint",
    "traced_engine",
]
