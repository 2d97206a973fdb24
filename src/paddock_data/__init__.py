"""
Paddock Data

Read-only access layer over denormalized championship data held in Redis:
championships, seasons, categories, stages, regulations, race tracks,
users and clubs.

Key Features:
- Typed decoding of flat Redis hashes (dates, integers, flags, JSON blobs)
- Batched reads: one round trip per collection regardless of its size
- Hierarchy queries (championship -> seasons -> categories/stages/regulations)
  with a fixed, small number of round trips
- Legacy JSON-string records as a fallback path

Usage:
    from paddock_data import HierarchyAggregator, RedisStore, get_settings

    store = RedisStore.from_settings(get_settings())
    aggregator = HierarchyAggregator(store)

    season = await aggregator.get_season_complete("42")
    tree = await aggregator.get_championship_tree("7")
"""

from .aggregation import BatchFetcher, HierarchyAggregator, IndexResolver, LegacyScalarPath
from .core.config import Settings, get_settings
from .core.types import EntityType, InvalidIdentifierError
from .store import RecordStore, RedisStore, StoreUnavailableError, round_trip_scope

__all__ = [
    # Aggregation
    "BatchFetcher",
    "HierarchyAggregator",
    "IndexResolver",
    "LegacyScalarPath",
    # Config
    "Settings",
    "get_settings",
    # Types
    "EntityType",
    "InvalidIdentifierError",
    # Store
    "RecordStore",
    "RedisStore",
    "StoreUnavailableError",
    "round_trip_scope",
]
