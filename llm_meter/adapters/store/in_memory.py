"""In-memory stores for tiers and usage.

Notes:
- Per-process only: running multiple workers gives each its own table and
  counter.
- Thread-safe: each store serializes every read and write through its own
  lock, so handlers running on the thread pool never see torn or
  half-applied state.
"""

from __future__ import annotations

import logging
import threading
from typing import Mapping

from llm_meter.adapters.store.base import (
    UINT64_MAX,
    AbstractTierRegistry,
    AbstractUsageCounter,
)
from llm_meter.core.errors import InvalidTierError

logger = logging.getLogger(__name__)


class InMemoryTierRegistry(AbstractTierRegistry):
    """Tier table held in a dict guarded by a single lock.

    The set of tier names is fixed at construction; ``bulk_update`` can only
    change limits of existing names.

    Important:
        A bulk update that hits an unknown name stops there and raises, but
        does not roll back the pairs it already applied. Callers that pass
        a JSON object get document order, so the outcome is deterministic.
    """

    def __init__(self, initial: Mapping[str, int]) -> None:
        """Initialize the registry.

        Args:
            initial: Tier name to limit mapping. Copied; later changes to the
                caller's mapping are not seen.

        Raises:
            ValueError: If a limit is negative.
        """
        for name, limit in initial.items():
            if limit < 0:
                raise ValueError(f"limit for tier {name!r} must be >= 0")

        self._lock = threading.Lock()
        self._limits: dict[str, int] = dict(initial)

    def __len__(self) -> int:
        with self._lock:
            return len(self._limits)

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._limits)

    def bulk_update(self, changes: Mapping[str, int]) -> None:
        """Apply each ``(name, limit)`` pair in order under one lock hold.

        Args:
            changes: Tier name to new limit.

        Raises:
            InvalidTierError: If a name is not registered. Earlier pairs of
                the same call remain applied.
        """
        applied: list[str] = []
        with self._lock:
            for name, limit in changes.items():
                if name not in self._limits:
                    logger.warning(
                        "tiers.invalid_tier",
                        extra={"tier": name, "applied": applied},
                    )
                    raise InvalidTierError(
                        code="invalid_tier",
                        message="Invalid tier",
                        details={
                            "tier": name,
                            "known_tiers": sorted(self._limits),
                            "applied": list(applied),
                        },
                    )
                self._limits[name] = limit
                applied.append(name)

        logger.info("tiers.updated", extra={"applied": applied})


class InMemoryUsageCounter(AbstractUsageCounter):
    """Counter that wraps to zero past 2**64 - 1, like an unsigned 64-bit int.

    ``read`` takes the same lock as the writers, so it returns a value the
    counter actually held at some instant during the call. It makes no
    promise about increments that are still waiting for the lock.
    """

    def __init__(self, initial: int = 0) -> None:
        if not 0 <= initial <= UINT64_MAX:
            raise ValueError("initial must fit in an unsigned 64-bit integer")

        self._lock = threading.Lock()
        self._value = initial

    def increment(self) -> int:
        with self._lock:
            self._value = (self._value + 1) & UINT64_MAX
            value = self._value

        logger.debug("usage.incremented", extra={"counter": value})
        return value

    def read(self) -> int:
        with self._lock:
            return self._value

    def reset(self) -> None:
        with self._lock:
            previous = self._value
            self._value = 0

        logger.info("usage.reset", extra={"previous": previous})
