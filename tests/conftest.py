"""
Pytest configuration for paddock-data tests.

Provides an in-memory RecordStore that counts round trips the same way the
Redis store does, so round-trip bounds can be asserted without a server.
"""

from __future__ import annotations

import fnmatch
import json
from typing import Sequence

import pytest

from paddock_data.store.base import FieldMap, RecordStore, StoreUnavailableError


class FakeStore(RecordStore):
    """
    Call-counting store double.

    Every public read is one round trip, matching RedisStore. Failures can
    be injected per operation name or per key prefix.
    """

    def __init__(self) -> None:
        super().__init__()
        self.hashes: dict[str, dict[str, str]] = {}
        self.sets: dict[str, dict[str, None]] = {}
        self.strings: dict[str, str] = {}
        self.calls: list[tuple[str, tuple[str, ...]]] = []
        self.fail_operations: set[str] = set()
        self.fail_key_prefixes: set[str] = set()
        self.alive = True
        self.closed = False

    # -------------------------------------------------------------------------
    # Seeding helpers
    # -------------------------------------------------------------------------

    def add_record(self, key: str, **fields) -> None:
        self.hashes[key] = {
            name: value if isinstance(value, str) else json.dumps(value)
            for name, value in fields.items()
        }

    def add_index(self, key: str, *members: str) -> None:
        self.sets.setdefault(key, {}).update(dict.fromkeys(members))

    def set_string(self, key: str, value) -> None:
        self.strings[key] = value if isinstance(value, str) else json.dumps(value)

    # -------------------------------------------------------------------------
    # Round-trip bookkeeping
    # -------------------------------------------------------------------------

    def _trip(self, operation: str, keys: Sequence[str]) -> None:
        self._record_round_trip()
        self.calls.append((operation, tuple(keys)))
        if operation in self.fail_operations:
            raise StoreUnavailableError(f"injected failure in {operation}", operation=operation)
        for key in keys:
            if any(key.startswith(prefix) for prefix in self.fail_key_prefixes):
                raise StoreUnavailableError(f"injected failure for {key}", operation=operation)

    def _members(self, index_key: str) -> list[str]:
        return list(self.sets.get(index_key, {}))

    # -------------------------------------------------------------------------
    # RecordStore interface
    # -------------------------------------------------------------------------

    async def get_field_map(self, key: str) -> FieldMap:
        self._trip("get_field_map", [key])
        return dict(self.hashes.get(key, {}))

    async def get_field_maps(self, keys: Sequence[str]) -> list[FieldMap]:
        if not keys:
            return []
        self._trip("get_field_maps", keys)
        return [dict(self.hashes.get(key, {})) for key in keys]

    async def get_field_map_with_sets(self, key, index_keys):
        self._trip("get_field_map_with_sets", [key, *index_keys])
        return dict(self.hashes.get(key, {})), {
            index_key: self._members(index_key) for index_key in index_keys
        }

    async def get_set_members(self, index_key: str) -> list[str]:
        self._trip("get_set_members", [index_key])
        return self._members(index_key)

    async def get_set_members_many(self, index_keys):
        if not index_keys:
            return {}
        self._trip("get_set_members_many", index_keys)
        return {index_key: self._members(index_key) for index_key in index_keys}

    async def get_scalar(self, key: str) -> str | None:
        self._trip("get_scalar", [key])
        return self.strings.get(key)

    async def get_scalars(self, keys):
        if not keys:
            return []
        self._trip("get_scalars", keys)
        return [self.strings.get(key) for key in keys]

    async def scan_keys(self, pattern: str) -> list[str]:
        self._trip("scan_keys", [pattern])
        every_key = [*self.hashes, *self.sets, *self.strings]
        return [key for key in dict.fromkeys(every_key) if fnmatch.fnmatchcase(key, pattern)]

    async def ping(self) -> bool:
        return self.alive

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def store() -> FakeStore:
    """Empty call-counting store."""
    return FakeStore()


@pytest.fixture
def seeded_store() -> FakeStore:
    """
    Small championship hierarchy.

    championship:C1 -> seasons S1, S2
    season:S1 -> categories K1, stages T1 T2, regulations R1 R2 R3
    season:S2 -> nothing
    """
    s = FakeStore()

    s.add_record("championship:C1", name="Copa Paddock", isActive="true", sponsors=["Acme"])
    s.add_index("championships:all", "C1")
    s.add_index("championship:C1:seasons", "S1", "S2")

    s.add_record(
        "season:S1",
        name="2024",
        year="2024",
        startDate="2024-03-01T00:00:00Z",
        classification=[{"pilot": "P1", "points": 50}],
    )
    s.add_record("season:S2", name="2025", year="2025")
    s.add_index("seasons:all", "S1", "S2")

    s.add_record("category:K1", name="Pro", maxPilots="30")
    s.add_index("season:S1:categories", "K1")

    s.add_record("stage:T1", name="Opening round", laps="20", results=[{"pilot": "P1", "position": 1}])
    s.add_record("stage:T2", name="Final round", laps="25")
    s.add_index("season:S1:stages", "T1", "stage:T2")

    s.add_record("regulation:R1", title="Technical", order="2")
    s.add_record("regulation:R2", title="Sporting", order="1")
    s.add_record("regulation:R3", title="General", order="3")
    s.add_index("season:S1:regulations", "R1", "R2", "R3")

    s.add_record("raceTrack:RT1", name="Interlagos", isActive="true", capacity="60000")
    s.add_record("raceTrack:RT2", name="Old Oval", isActive="false")
    s.add_index("raceTracks:all", "RT1", "RT2")

    s.add_record("user:U1", name="Ana", email="ana@example.com", roles=["admin"])
    s.add_record("user:U2", name="Bruno", email="bruno@example.com")

    s.add_record("clubs:1", name="Speed Club", foundationDate="1999-01-01")
    s.set_string("clubs:2", {"name": "Kart Riders", "city": "Recife"})
    return s
