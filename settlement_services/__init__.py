"""
settlement_services -- Composition root and public service API.

Responsibility:
    Wires configuration, the SQLAlchemy engine, the record stores and the
    services into one ``Application``.  This is the only layer that builds
    stores; no module holds a store as a module-level singleton.

Architecture position:
    Services -- stateful orchestration over engines + kernel + ingestion.

        settlement_services/ -> settlement_config/     (allowed)
        settlement_services/ -> settlement_ingestion/  (allowed)
        settlement_services/ -> settlement_engines/    (allowed)
        settlement_kernel/   -> settlement_services/   (FORBIDDEN)
        settlement_engines/  -> settlement_services/   (FORBIDDEN)

Invariants enforced:
    - DI transparency: services receive their stores, clock and rates;
      none constructs its own dependencies.

Failure modes:
    - sqlalchemy errors from engine initialization or table creation
      propagate unchanged from ``build_application``.
"""

from __future__ import annotations

from dataclasses import dataclass

from settlement_config import SettlementConfig
from settlement_config.bridges import (
    build_confirmation_rates,
    build_import_limits,
    build_sheet_names,
    build_vat_rule,
    build_withholding_rates,
)
from settlement_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
)
from settlement_kernel.domain.clock import Clock, SystemClock
from settlement_kernel.logging_config import configure_logging, get_logger
from settlement_kernel.services.record_store import SqlRecordStore

from settlement_ingestion.services.import_service import SettlementImportService

from settlement_services.confirmation_service import ConfirmationService
from settlement_services.errors import describe_store_error
from settlement_services.settlement_service import SettlementService

logger = get_logger("services")

__all__ = [
    "Application",
    "ConfirmationService",
    "SettlementImportService",
    "SettlementService",
    "build_application",
    "describe_store_error",
]


@dataclass(frozen=True)
class Application:
    """Everything a front end needs, built once per process."""

    config: SettlementConfig
    settlements: SettlementService
    imports: SettlementImportService
    confirmations: ConfirmationService
    settlement_store: SqlRecordStore
    event_store: SqlRecordStore
    member_store: SqlRecordStore


def build_application(
    config: SettlementConfig,
    clock: Clock | None = None,
) -> Application:
    """Initialize logging and the database, then build stores and services."""
    clock = clock or SystemClock()
    configure_logging(level=config.logging.level)

    init_engine_from_url(config.store.database_url, echo=config.store.echo_sql)
    create_tables()
    session_factory = get_session_factory()

    settlement_store = SqlRecordStore(
        session_factory, config.store.settlements_collection, clock
    )
    event_store = SqlRecordStore(session_factory, config.store.events_collection, clock)
    member_store = SqlRecordStore(session_factory, config.store.members_collection, clock)

    withholding = build_withholding_rates(config)
    sheet_names = build_sheet_names(config)

    app = Application(
        config=config,
        settlements=SettlementService(
            settlement_store,
            clock,
            withholding=withholding,
            vat=build_vat_rule(config),
            sheet_names=sheet_names,
        ),
        imports=SettlementImportService(
            settlement_store,
            clock,
            limits=build_import_limits(config),
            sheet_names=sheet_names,
            rates=withholding,
        ),
        confirmations=ConfirmationService(
            event_store, member_store, rates=build_confirmation_rates(config)
        ),
        settlement_store=settlement_store,
        event_store=event_store,
        member_store=member_store,
    )

    logger.info(
        "application_built",
        extra={
            "config_set_id": config.config_id,
            "checksum": config.checksum,
            "database_dialect": config.store.database_url.split(":", 1)[0],
        },
    )
    return app
