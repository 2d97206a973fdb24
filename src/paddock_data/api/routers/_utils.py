"""
Shared utilities for API routers.

Contains common functions used across multiple routers:
- Round-trip measurement of one store operation
- Collection / single-item response envelopes
"""

from typing import Any, Awaitable, TypeVar

from pydantic import BaseModel

from ...store.base import round_trip_scope

T = TypeVar("T")


async def measured(awaitable: Awaitable[T]) -> tuple[T, int]:
    """
    Await a store-backed operation and count its round trips.

    Returns:
        (result, number of store round trips it issued)
    """
    with round_trip_scope() as tally:
        result = await awaitable
    return result, tally.count


def _plain(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return data


def performance(network_calls: int, optimized: bool = True, note: str | None = None) -> dict[str, Any]:
    """Performance block reported next to every payload."""
    block: dict[str, Any] = {"networkCalls": network_calls, "optimized": optimized}
    if note:
        block["note"] = note
    return block


def collection_response(data: list[Any], network_calls: int, **extra: Any) -> dict[str, Any]:
    """Envelope for list endpoints: count, data and performance."""
    return {
        "count": len(data),
        "data": [_plain(item) for item in data],
        "performance": {**performance(network_calls), **extra},
    }


def item_response(data: Any, network_calls: int, **extra: Any) -> dict[str, Any]:
    """Envelope for single-item endpoints."""
    return {
        "data": _plain(data),
        "performance": {**performance(network_calls), **extra},
    }
