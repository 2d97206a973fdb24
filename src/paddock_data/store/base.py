"""
Base record store protocol and types.

Defines the interface the aggregation layer reads through, so the
aggregators never depend on a particular key-value client.

The store is responsible for:
1. Issuing primitive reads (field-maps, set members, scalar values)
2. Batching several primitives into ONE round trip where the method says so
3. Translating client/transport failures into StoreUnavailableError

The store is NOT responsible for:
- Decoding field-maps into typed records (handled by the decoder)
- Deciding which keys belong together (handled by the aggregators)
- Retrying (a failure is surfaced immediately)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Iterator, Sequence

FieldMap = dict[str, str]


class StoreError(Exception):
    """Base exception for store errors."""
    pass


class StoreUnavailableError(StoreError):
    """
    Raised when a round trip to the store fails (connectivity, timeout).

    Transient from the caller's point of view: maps to a 5xx response and
    is never masked as an empty result.
    """

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


@dataclass
class RoundTripTally:
    """Round trips issued inside one ``round_trip_scope()``."""

    count: int = 0


_current_tally: ContextVar[RoundTripTally | None] = ContextVar("round_trip_tally", default=None)


@contextmanager
def round_trip_scope() -> Iterator[RoundTripTally]:
    """
    Count the store round trips issued by the enclosed code.

    The tally lives in a context variable, so tasks spawned with
    asyncio.gather inside the scope add to the same count while
    concurrent requests keep separate counts.
    """
    tally = RoundTripTally()
    token = _current_tally.set(tally)
    try:
        yield tally
    finally:
        _current_tally.reset(token)


class RecordStore(ABC):
    """
    Abstract interface for the backing key-value store.

    Every public coroutine is exactly one round trip unless its docstring
    says otherwise. Implementations call ``_record_round_trip()`` once per
    network exchange.
    """

    def __init__(self) -> None:
        self.round_trips = 0

    def _record_round_trip(self) -> None:
        self.round_trips += 1
        tally = _current_tally.get()
        if tally is not None:
            tally.count += 1

    # ==========================================================================
    # Field-map Operations
    # ==========================================================================

    @abstractmethod
    async def get_field_map(self, key: str) -> FieldMap:
        """Get one record's field-map. Missing key yields an empty map."""

    @abstractmethod
    async def get_field_maps(self, keys: Sequence[str]) -> list[FieldMap]:
        """
        Get several field-maps in one round trip.

        The result is paired with ``keys`` by position. Implementations may
        skip the round trip entirely when ``keys`` is empty.
        """

    @abstractmethod
    async def get_field_map_with_sets(
        self,
        key: str,
        index_keys: Sequence[str],
    ) -> tuple[FieldMap, dict[str, list[str]]]:
        """Get a field-map and the members of several sets, issued together."""

    # ==========================================================================
    # Set Operations
    # ==========================================================================

    @abstractmethod
    async def get_set_members(self, index_key: str) -> list[str]:
        """Get the members of one set. Missing set yields an empty list."""

    @abstractmethod
    async def get_set_members_many(self, index_keys: Sequence[str]) -> dict[str, list[str]]:
        """Get the members of several sets in one round trip."""

    # ==========================================================================
    # Scalar Operations (legacy JSON-string records)
    # ==========================================================================

    @abstractmethod
    async def get_scalar(self, key: str) -> str | None:
        """Get a plain string value."""

    @abstractmethod
    async def get_scalars(self, keys: Sequence[str]) -> list[str | None]:
        """Get several plain string values in one round trip, paired with ``keys``."""

    # ==========================================================================
    # Key Enumeration and Liveness
    # ==========================================================================

    @abstractmethod
    async def scan_keys(self, pattern: str) -> list[str]:
        """
        Enumerate keys matching a glob pattern.

        Cursor based: one round trip per cursor page.
        """

    @abstractmethod
    async def ping(self) -> bool:
        """Liveness check. Returns False instead of raising."""

    async def close(self) -> None:
        """Release pooled connections."""
        return None
