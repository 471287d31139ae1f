"""Validator settings loaded from environment variables.

Environment variables:
    ACTIONFLOW_CACHE_TTL_SECONDS       Validation cache TTL (default: 300)
    ACTIONFLOW_CACHE_MAX_ENTRIES       Entries kept before eviction (default: 100)
    ACTIONFLOW_DEPTH_WARNING           Dependency depth that triggers a warning (default: 10)
    ACTIONFLOW_DEPTH_CEILING           Depth treated as a cycle signal (default: 50)
    ACTIONFLOW_LARGE_WORKFLOW_ACTIONS  Action count that triggers a warning (default: 50)
    ACTIONFLOW_UFIX64_DECIMALS         Decimal places allowed before a warning (default: 8)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not an integer, using {default}")
        return default
    if value < 0:
        logger.warning(f"Ignoring {name}={raw!r}: must be non-negative, using {default}")
        return default
    return value


@dataclass(frozen=True)
class ValidatorSettings:
    """Tunable thresholds for the validation engine.

    Example:
        settings = ValidatorSettings.from_env()
        validator = ExecutionValidator(settings=settings)
    """

    cache_ttl_seconds: float = 300.0
    cache_max_entries: int = 100
    depth_warning: int = 10
    depth_ceiling: int = 50
    large_workflow_actions: int = 50
    ufix64_decimals: int = 8

    @classmethod
    def from_env(cls) -> ValidatorSettings:
        """Build settings from ACTIONFLOW_* environment variables."""
        return cls(
            cache_ttl_seconds=float(_int_from_env("ACTIONFLOW_CACHE_TTL_SECONDS", 300)),
            cache_max_entries=_int_from_env("ACTIONFLOW_CACHE_MAX_ENTRIES", 100),
            depth_warning=_int_from_env("ACTIONFLOW_DEPTH_WARNING", 10),
            depth_ceiling=_int_from_env("ACTIONFLOW_DEPTH_CEILING", 50),
            large_workflow_actions=_int_from_env("ACTIONFLOW_LARGE_WORKFLOW_ACTIONS", 50),
            ufix64_decimals=_int_from_env("ACTIONFLOW_UFIX64_DECIMALS", 8),
        )


__all__ = ["ValidatorSettings"]
