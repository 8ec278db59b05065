"""Methodology Registry: numeric ratio thresholds per methodology version.

Maps a record's ``methodology_version`` tag to its debt / cash+investments /
NPIN thresholds. Unknown or missing versions fall back to the default.

Usage:
    from shariah_screening.scorers.methodology_registry import get_thresholds

    thresholds = get_thresholds("aaoifi")
    # thresholds.debt == 30.0
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from ..constants import (
    DEFAULT_CASH_INV_THRESHOLD_PCT,
    DEFAULT_DEBT_THRESHOLD_PCT,
    DEFAULT_METHODOLOGY_VERSION,
    DEFAULT_NPIN_THRESHOLD_PCT,
)

logger = logging.getLogger(__name__)

THRESHOLD_KEYS = ("debt", "cash_inv", "npin")


@dataclass(frozen=True)
class MethodologyThresholds:
    """Ratio thresholds (percent) for a single methodology version."""

    version: str
    debt: float = DEFAULT_DEBT_THRESHOLD_PCT
    cash_inv: float = DEFAULT_CASH_INV_THRESHOLD_PCT
    npin: float = DEFAULT_NPIN_THRESHOLD_PCT
    description: str = ""

    def for_ratio(self, name: str) -> float:
        return getattr(self, name)


# Module-level cache
_registry_cache: Optional[dict] = None


def _get_config_path() -> Path:
    return Path(__file__).parent.parent / "data" / "methodology_versions.yaml"


def _normalize_version(version: Optional[str]) -> str:
    return (version or "").strip().lower().replace(" ", "_").replace("-", "_")


def _load_registry() -> dict:
    """Load and cache methodology versions from YAML."""
    global _registry_cache
    if _registry_cache is not None:
        return _registry_cache

    config_path = _get_config_path()
    if not config_path.exists():
        logger.warning(f"Methodology versions config not found at {config_path}, using defaults")
        _registry_cache = _build_default_registry()
        return _registry_cache

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    versions: dict[str, MethodologyThresholds] = {}
    for name, data in (raw.get("versions") or {}).items():
        thresholds = (data or {}).get("thresholds", {})
        _validate_thresholds(name, thresholds)
        key = _normalize_version(name)
        versions[key] = MethodologyThresholds(
            version=key,
            description=data.get("description", ""),
            **{k: float(v) for k, v in thresholds.items()},
        )

    default_version = _normalize_version(raw.get("default_version", DEFAULT_METHODOLOGY_VERSION))
    if default_version not in versions:
        versions[default_version] = MethodologyThresholds(version=default_version, description="Built-in default")

    _registry_cache = {"versions": versions, "default_version": default_version}
    logger.debug(f"Loaded {len(versions)} methodology versions")
    return _registry_cache


def _build_default_registry() -> dict:
    """Fallback: single default version using the 33/33/5 thresholds."""
    default = MethodologyThresholds(version=DEFAULT_METHODOLOGY_VERSION, description="Default fallback")
    return {
        "versions": {DEFAULT_METHODOLOGY_VERSION: default},
        "default_version": DEFAULT_METHODOLOGY_VERSION,
    }


def _validate_thresholds(version: str, thresholds: dict) -> None:
    """Thresholds must use known keys and lie within (0, 100]."""
    extra = set(thresholds) - set(THRESHOLD_KEYS)
    if extra:
        raise ValueError(f"Methodology {version} has unexpected threshold keys: {extra}")
    for key, value in thresholds.items():
        if not 0 < float(value) <= 100:
            raise ValueError(f"Methodology {version} threshold {key}={value} outside (0, 100]")


def get_thresholds(version: Optional[str]) -> MethodologyThresholds:
    """Thresholds for a methodology version; unknown versions use the default."""
    registry = _load_registry()
    key = _normalize_version(version)
    thresholds = registry["versions"].get(key)
    if thresholds is None:
        if key:
            logger.debug(f"Unknown methodology version '{version}', using {registry['default_version']}")
        thresholds = registry["versions"][registry["default_version"]]
    return thresholds


def list_versions() -> list[str]:
    """List all configured methodology version names."""
    return list(_load_registry()["versions"].keys())


def clear_cache():
    """Clear the registry cache (useful for testing)."""
    global _registry_cache
    _registry_cache = None
