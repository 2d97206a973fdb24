"""
Dependency injection for API endpoints.

The record store is built once in the app lifespan (or handed to
create_app by tests) and kept on ``app.state``. Aggregators are cheap
wrappers around it and are created per request.
"""

from typing import Annotated

from fastapi import Depends, Request

from ..aggregation import HierarchyAggregator, LegacyScalarPath
from ..store.base import RecordStore


def get_store(request: Request) -> RecordStore:
    """
    Dependency that provides the shared record store.

    Returns:
        RecordStore instance with connection pooling
    """
    return request.app.state.store


StoreDependency = Annotated[RecordStore, Depends(get_store)]


def get_aggregator(store: StoreDependency) -> HierarchyAggregator:
    """Dependency that provides the hierarchy aggregator."""
    return HierarchyAggregator(store)


def get_legacy_path(store: StoreDependency) -> LegacyScalarPath:
    """Dependency that provides the legacy scalar path."""
    return LegacyScalarPath(store)


# Type aliases for dependency injection
# Usage: aggregator: AggregatorDependency
AggregatorDependency = Annotated[HierarchyAggregator, Depends(get_aggregator)]
LegacyDependency = Annotated[LegacyScalarPath, Depends(get_legacy_path)]
