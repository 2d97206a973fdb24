"""
Record store access.

Usage:
    from paddock_data.store import RedisStore, round_trip_scope

    store = RedisStore.from_settings(get_settings())
    with round_trip_scope() as tally:
        fields = await store.get_field_map("season:42")
    print(tally.count)  # 1
"""

from .base import (
    FieldMap,
    RecordStore,
    RoundTripTally,
    StoreError,
    StoreUnavailableError,
    round_trip_scope,
)
from .redis_store import RedisStore

__all__ = [
    "FieldMap",
    "RecordStore",
    "RoundTripTally",
    "StoreError",
    "StoreUnavailableError",
    "round_trip_scope",
    "RedisStore",
]
