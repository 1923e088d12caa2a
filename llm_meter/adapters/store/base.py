"""Store interfaces for the tier table and the usage counter.

Routes depend on these abstractions rather than the in-memory classes, so a
shared backend can replace them without touching the HTTP layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping

UINT64_MAX = 2**64 - 1


class AbstractTierRegistry(ABC):
    """Mapping of tier name to its rate-limit value."""

    @abstractmethod
    def snapshot(self) -> dict[str, int]:
        """Return a copy of the full mapping as of a single instant."""
        raise NotImplementedError

    @abstractmethod
    def bulk_update(self, changes: Mapping[str, int]) -> None:
        """Apply ``changes`` in iteration order.

        Raises:
            InvalidTierError: On the first name not already registered.
                Pairs processed before it stay applied.
        """
        raise NotImplementedError


class AbstractUsageCounter(ABC):
    """Unsigned 64-bit usage counter."""

    @abstractmethod
    def increment(self) -> int:
        """Add one and return the new value."""
        raise NotImplementedError

    @abstractmethod
    def read(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        raise NotImplementedError
