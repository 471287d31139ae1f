"""
In-process TTL cache for execution validation results.

The cache belongs to one ExecutionValidator instance; nothing is shared
between validators. Keys are content hashes (see ``cache_key``) so a change in
workflow shape, in any parameter value or in the metadata map produces a
different key. Results are stored and returned as deep copies, so callers can
mutate what they get back without corrupting the cache.
"""

import hashlib
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .results import ExecutionValidationResult
from .schema import ActionMetadata, Workflow

logger = logging.getLogger(__name__)


def _digest(payload: Any) -> str:
    try:
        encoded = json.dumps(payload, sort_keys=True, default=str, separators=(",", ":"))
    except TypeError:
        # Mixed-type mapping keys cannot be sorted
        encoded = repr(payload)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def workflow_fingerprint(workflow: Workflow) -> str:
    """Hash of the workflow shape as seen by validation and the estimators."""
    return _digest(
        {
            "actions": [
                {
                    "id": action.id,
                    "action_type": action.action_type,
                    "parameters": [
                        {"name": p.name, "type": p.type, "required": p.required}
                        for p in action.parameters
                    ],
                    "next_actions": action.next_actions,
                }
                for action in workflow.actions
            ],
            "execution_order": workflow.execution_order,
            "root_actions": workflow.root_actions,
            "connections": workflow.connection_count,
        }
    )


def metadata_fingerprint(action_metadata: dict[str, ActionMetadata]) -> str:
    """Hash of the metadata map (sorted by action type)."""
    return _digest(
        {
            action_type: metadata.model_dump(mode="json")
            for action_type, metadata in sorted(action_metadata.items())
        }
    )


def cache_key(
    workflow: Workflow,
    action_metadata: dict[str, ActionMetadata],
    parameter_values: dict[str, dict[str, Any]],
) -> str:
    """Cache key covering workflow shape, parameter values and metadata."""
    return "-".join(
        (
            workflow_fingerprint(workflow),
            _digest(parameter_values),
            metadata_fingerprint(action_metadata),
        )
    )


@dataclass
class CacheEntry:
    result: ExecutionValidationResult
    stored_at: float


class ValidationCache:
    """
    TTL cache with a soft size bound.

    When an insert pushes the size above ``max_entries``, expired entries are
    evicted first, then the oldest entries until the bound holds.

    Example:
        cache = ValidationCache(ttl_seconds=300, clock=fake_clock)
        cache.set(key, result)
        cached = cache.get(key)
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at > self.ttl_seconds

    def get(self, key: str) -> ExecutionValidationResult | None:
        """Return a copy of the cached result, or None on miss or expiry."""
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Validation cache miss: {key[:12]}")
            return None
        if self._is_expired(entry, self._clock()):
            del self._entries[key]
            logger.debug(f"Validation cache entry expired: {key[:12]}")
            return None
        logger.debug(f"Validation cache hit: {key[:12]}")
        return entry.result.model_copy(deep=True)

    def set(self, key: str, result: ExecutionValidationResult) -> None:
        """Store a copy of ``result`` under ``key``."""
        self._entries[key] = CacheEntry(
            result=result.model_copy(deep=True), stored_at=self._clock()
        )
        if len(self._entries) > self.max_entries:
            self.clear_expired()
        while len(self._entries) > self.max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k].stored_at)
            del self._entries[oldest]

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def clear_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired validation cache entries")
        return len(expired)
