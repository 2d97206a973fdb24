"""Index resolver: relation and listing sets to member ids."""

from __future__ import annotations

from typing import Sequence

from ..store.base import RecordStore


class IndexResolver:
    """Reads set membership. Missing sets resolve to empty lists, never errors."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def resolve_set(self, index_key: str) -> list[str]:
        """Members of one index (order not guaranteed). One round trip."""
        return await self.store.get_set_members(index_key)

    async def resolve_many_sets(self, index_keys: Sequence[str]) -> dict[str, list[str]]:
        """
        Members of several indexes in a single round trip.

        Every requested key is present in the result, mapped to an empty
        list when the set does not exist.
        """
        if not index_keys:
            return {}
        resolved = await self.store.get_set_members_many(index_keys)
        return {index_key: resolved.get(index_key, []) for index_key in index_keys}
