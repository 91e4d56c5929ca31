"""
payroll_config -- single public entrypoint for payroll configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns a frozen ``PayrollConfiguration``:
    currency defaults, compensation fallbacks, database and logging
    settings.

Architecture position:
    Configuration -- sits above ``payroll_kernel`` and below
    ``payroll_services``.  Kernel services never read configuration; the
    facade translates it into kernel inputs (settings defaults, engine URL).

Failure modes:
    - ``FileNotFoundError`` -- no configuration set with the requested id.
    - ``ValueError`` -- validation failures.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``PAYROLL_CONFIG_TRACE`` log entry with the config id, version and
    checksum, tying each salary run to the configuration it started from.
"""

from __future__ import annotations

import logging
from pathlib import Path

from payroll_config.loader import load_configuration
from payroll_config.schema import PayrollConfiguration
from payroll_config.validator import validate_configuration

__all__ = ["get_active_config", "PayrollConfiguration"]

_logger = logging.getLogger("payroll_kernel.config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_config(
    config_id: str = "default",
    config_dir: Path | None = None,
) -> PayrollConfiguration:
    """The ONLY public configuration entrypoint.

    Args:
        config_id: Name of the configuration set directory.
        config_dir: Override path to configuration sets directory.
            Defaults to payroll_config/sets/.

    Raises:
        FileNotFoundError: If the configuration set does not exist.
        ValueError: If configuration validation fails.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    root_file = sets_dir / config_id / "root.yaml"
    if not root_file.is_file():
        raise FileNotFoundError(f"Configuration set not found: {root_file}")

    config = load_configuration(root_file)

    validation = validate_configuration(config)
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )
    for warning in validation.warnings:
        _logger.warning("payroll_config_warning", extra={"detail": warning})

    _logger.info(
        "PAYROLL_CONFIG_TRACE",
        extra={
            "trace_type": "PAYROLL_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "usd_to_pkr_rate": str(config.currency.usd_to_pkr_rate),
        },
    )
    return config
