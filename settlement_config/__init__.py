"""
settlement_config -- single public entrypoint for settlement configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files directly.  Returns a frozen ``SettlementConfig``.

Architecture position:
    Configuration -- YAML-driven settings.  This package sits above
    ``settlement_kernel``, ``settlement_engines`` and
    ``settlement_ingestion`` and below ``settlement_services``.  Lower
    layers MUST NEVER import from ``settlement_config``; bridges in this
    package translate definitions into their inputs.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Deterministic identity: the same YAML always produces the same checksum.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``KeyError`` / ``ValueError`` -- missing identity keys or bad values.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``SETTLEMENT_CONFIG_TRACE`` log entry containing the config_id, version,
    checksum and the rates in force.
"""

from __future__ import annotations

import logging
from pathlib import Path

from settlement_config.loader import load_config_file
from settlement_config.schema import SettlementConfig

_logger = logging.getLogger("settlement_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

__all__ = ["DEFAULT_CONFIG_PATH", "SettlementConfig", "get_active_config"]


def get_active_config(config_path: Path | str | None = None) -> SettlementConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to
            settlement_config/sets/default.yaml.

    Returns:
        SettlementConfig with its checksum set.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        KeyError: If config_id or version is missing.
        ValueError: If a value is out of range.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    config = load_config_file(path)

    _logger.info(
        "SETTLEMENT_CONFIG_TRACE",
        extra={
            "trace_type": "SETTLEMENT_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "config_path": str(path),
            "withholding_rates": [
                config.withholding.business_rate,
                config.withholding.other_rate,
            ],
            "confirmation_rates": [
                config.confirmation.business_rate,
                config.confirmation.other_rate,
            ],
        },
    )
    return config
