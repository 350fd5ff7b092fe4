"""
Configuration Loader (``settlement_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed
``settlement_config.schema`` dataclasses.  The single public entry point
for runtime config is ``settlement_config.get_active_config()``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  It has no dependency on
kernel, engines, ingestion or services.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Rates are parsed into ``Decimal`` from their text form; floats never
  reach the engines.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``config_id`` / ``version``  -> ``KeyError`` propagates.
* Out-of-range or non-numeric values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from settlement_config.schema import (
    ConfirmationRatesDef,
    ImportLimitsDef,
    LoggingDef,
    SettlementConfig,
    SheetNamesDef,
    StoreDef,
    VatRuleDef,
    WithholdingRatesDef,
)

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")
    return data


def parse_rate(value: Any, name: str) -> Decimal:
    """Parse a rate in [0, 1) from YAML text or number."""
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number, got {value!r}")
    try:
        rate = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{name} must be a number, got {value!r}") from None
    if not rate.is_finite() or rate < 0 or rate >= 1:
        raise ValueError(f"{name} must be in [0, 1), got {value!r}")
    return rate


def parse_positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
    return value


def parse_text(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} must be a non-empty string, got {value!r}")
    return value.strip()


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Section '{key}' must be a mapping")
    return section


def parse_withholding(data: dict[str, Any]) -> WithholdingRatesDef:
    d = WithholdingRatesDef()
    return WithholdingRatesDef(
        business_rate=parse_rate(data.get("business_rate", d.business_rate), "withholding.business_rate"),
        other_rate=parse_rate(data.get("other_rate", d.other_rate), "withholding.other_rate"),
        local_rate=parse_rate(data.get("local_rate", d.local_rate), "withholding.local_rate"),
        unit=parse_positive_int(data.get("unit", d.unit), "withholding.unit"),
    )


def parse_vat(data: dict[str, Any]) -> VatRuleDef:
    d = VatRuleDef()
    return VatRuleDef(
        rate=parse_rate(data.get("rate", d.rate), "vat.rate"),
        unit=parse_positive_int(data.get("unit", d.unit), "vat.unit"),
    )


def parse_confirmation(data: dict[str, Any]) -> ConfirmationRatesDef:
    d = ConfirmationRatesDef()
    return ConfirmationRatesDef(
        business_rate=parse_rate(data.get("business_rate", d.business_rate), "confirmation.business_rate"),
        other_rate=parse_rate(data.get("other_rate", d.other_rate), "confirmation.other_rate"),
        local_rate=parse_rate(data.get("local_rate", d.local_rate), "confirmation.local_rate"),
    )


def parse_import_limits(data: dict[str, Any]) -> ImportLimitsDef:
    d = ImportLimitsDef()
    raw_exts = data.get("allowed_extensions", d.allowed_extensions)
    if isinstance(raw_exts, str) or not raw_exts:
        raise ValueError("import.allowed_extensions must be a non-empty list")
    extensions = []
    for ext in raw_exts:
        text = parse_text(ext, "import.allowed_extensions").lower()
        extensions.append(text if text.startswith(".") else f".{text}")
    return ImportLimitsDef(
        max_file_mb=parse_positive_int(data.get("max_file_mb", d.max_file_mb), "import.max_file_mb"),
        allowed_extensions=tuple(extensions),
    )


def parse_sheets(data: dict[str, Any]) -> SheetNamesDef:
    d = SheetNamesDef()
    sheets = SheetNamesDef(
        employee=parse_text(data.get("employee", d.employee), "sheets.employee"),
        client=parse_text(data.get("client", d.client), "sheets.client"),
        activity=parse_text(data.get("activity", d.activity), "sheets.activity"),
    )
    if len({sheets.employee, sheets.client, sheets.activity}) != 3:
        raise ValueError("sheets.employee, sheets.client and sheets.activity must differ")
    return sheets


def parse_store(data: dict[str, Any]) -> StoreDef:
    d = StoreDef()
    collections = _section(data, "collections")
    return StoreDef(
        database_url=parse_text(data.get("database_url", d.database_url), "store.database_url"),
        settlements_collection=parse_text(
            collections.get("settlements", d.settlements_collection),
            "store.collections.settlements",
        ),
        events_collection=parse_text(
            collections.get("events", d.events_collection), "store.collections.events"
        ),
        members_collection=parse_text(
            collections.get("members", d.members_collection), "store.collections.members"
        ),
        echo_sql=bool(data.get("echo_sql", d.echo_sql)),
    )


def parse_logging(data: dict[str, Any]) -> LoggingDef:
    level = parse_text(data.get("level", LoggingDef().level), "logging.level").upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"logging.level must be one of {sorted(_LOG_LEVELS)}, got {level!r}")
    return LoggingDef(level=level)


def parse_config(data: dict[str, Any]) -> SettlementConfig:
    """
    Parse a whole configuration document.

    ``config_id`` and ``version`` are required; every section is optional
    and falls back to the schema defaults field by field.
    """
    config = SettlementConfig(
        config_id=parse_text(data["config_id"], "config_id"),
        version=parse_positive_int(data["version"], "version"),
        withholding=parse_withholding(_section(data, "withholding")),
        vat=parse_vat(_section(data, "vat")),
        confirmation=parse_confirmation(_section(data, "confirmation")),
        import_limits=parse_import_limits(_section(data, "import")),
        sheets=parse_sheets(_section(data, "sheets")),
        store=parse_store(_section(data, "store")),
        logging=parse_logging(_section(data, "logging")),
    )
    return replace(config, checksum=compute_checksum(data))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str, ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def load_config_file(path: Path) -> SettlementConfig:
    """Load and parse one configuration file."""
    return parse_config(load_yaml_file(path))
