"""
Configuration Loader (``pos_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into a frozen
``PurchasingSettings``.  Runtime callers go through
``pos_config.get_active_config()``; this module is its tooling.

Invariants enforced
-------------------
* Unknown keys and wrongly typed values raise ``ValueError``; nothing is
  silently defaulted or coerced.
* ``compute_checksum`` produces a deterministic SHA-256 hash so the
  active settings can be identified in logs.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Top-level document that is not a mapping  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from pos_config.schema import PurchasingSettings

_EXPECTED_TYPES: dict[str, type] = {f.name: f.type for f in fields(PurchasingSettings)}

_TYPE_BY_NAME = {"str": str, "int": int, "bool": bool}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    An empty file yields an empty dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return data


def _check_type(key: str, value: Any) -> None:
    declared = _EXPECTED_TYPES[key]
    expected = _TYPE_BY_NAME[declared] if isinstance(declared, str) else declared
    if expected is int:
        ok = isinstance(value, int) and not isinstance(value, bool)
    else:
        ok = isinstance(value, expected)
    if not ok:
        raise ValueError(
            f"Setting {key!r} must be of type {expected.__name__}, "
            f"got {type(value).__name__} ({value!r})"
        )


def parse_settings(data: dict[str, Any]) -> PurchasingSettings:
    """
    Parse a raw dict into ``PurchasingSettings``.

    The settings may sit at the top level or under a ``purchasing`` key.

    Raises:
        ValueError: on unknown keys, wrong value types or failed validation.
    """
    section = data["purchasing"] if "purchasing" in data else data
    if section is None:
        section = {}
    if not isinstance(section, dict):
        raise ValueError("'purchasing' must be a mapping of settings")

    unknown = sorted(set(section) - PurchasingSettings.field_names())
    if unknown:
        raise ValueError(f"Unknown purchasing settings: {', '.join(unknown)}")

    for key, value in section.items():
        _check_type(key, value)

    settings = PurchasingSettings(**section)
    settings.validate()
    return settings


def load_settings(path: Path) -> PurchasingSettings:
    """Load and parse a settings file."""
    return parse_settings(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
