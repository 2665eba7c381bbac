"""
pos_config -- single public entrypoint for purchasing configuration.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_config()``.  The kernel never reads configuration files or
    environment variables; services receive a ``PurchasingSettings`` by
    injection (the wiring factory in ``pos_services`` fetches it here).

Failure modes:
    - ``FileNotFoundError`` -- the configured settings file does not exist.
    - ``ValueError`` -- unknown keys, wrongly typed or invalid values.

Every successful call emits a ``POS_CONFIG_TRACE`` log entry with the
source path and a checksum of the effective settings.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pos_config.loader import compute_checksum, load_settings
from pos_config.schema import PurchasingSettings

_logger = logging.getLogger("pos_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

CONFIG_PATH_ENV = "POS_CONFIG_PATH"


def get_active_config(config_path: Path | str | None = None) -> PurchasingSettings:
    """The ONLY public configuration entrypoint.

    Resolution order: explicit ``config_path``, then the ``POS_CONFIG_PATH``
    environment variable, then the bundled ``sets/default.yaml``.

    Raises:
        FileNotFoundError: If the resolved file does not exist.
        ValueError: If the file contains unknown keys or invalid values.
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_PATH_ENV) or _DEFAULT_CONFIG_PATH
    path = Path(config_path)

    settings = load_settings(path)

    _logger.info(
        "POS_CONFIG_TRACE",
        extra={
            "trace_type": "POS_CONFIG_TRACE",
            "config_path": str(path),
            "checksum": compute_checksum(settings.to_dict()),
        },
    )
    return settings


__all__ = ["CONFIG_PATH_ENV", "PurchasingSettings", "get_active_config"]
