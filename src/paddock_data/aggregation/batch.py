"""
Batch fetcher: many record keys, one round trip.

All field-maps for a key set are read in a single pipelined exchange,
decoded, and tagged with their originating key under ``_key``. Absent or
empty field-maps, and records whose decoding raises, are dropped from the
result instead of appearing as nulls.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from ..core.types import EntitySchema, schema_for_key
from ..store.base import RecordStore
from .decoder import decode_record

logger = logging.getLogger(__name__)

KEY_FIELD = "_key"


class BatchFetcher:
    """Fetches and decodes record field-maps in bulk."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def fetch_many(
        self,
        keys: Sequence[str],
        schema: EntitySchema | None = None,
    ) -> list[dict[str, Any]]:
        """
        Fetch and decode the records behind ``keys``.

        Args:
            keys: Record keys, e.g. ["stage:1", "stage:2"]
            schema: Schema to decode with; inferred from each key's prefix when omitted

        Returns:
            Decoded records in input order, ``len(result) <= len(keys)``

        Raises:
            StoreUnavailableError: if the round trip itself fails
        """
        if not keys:
            return []

        field_maps = await self.store.get_field_maps(keys)

        records: list[dict[str, Any]] = []
        for key, field_map in zip(keys, field_maps):
            record = self.decode_one(key, field_map, schema)
            if record is not None:
                records.append(record)

        dropped = len(keys) - len(records)
        if dropped:
            logger.debug(f"Batch fetch dropped {dropped}/{len(keys)} absent or undecodable records")
        return records

    async def fetch_one(
        self,
        key: str,
        schema: EntitySchema | None = None,
    ) -> dict[str, Any] | None:
        """Fetch and decode one record; None when absent. One round trip."""
        field_map = await self.store.get_field_map(key)
        return self.decode_one(key, field_map, schema)

    @staticmethod
    def decode_one(
        key: str,
        field_map: dict[str, str] | None,
        schema: EntitySchema | None = None,
    ) -> dict[str, Any] | None:
        """Decode an already-fetched field-map; None when absent, empty or undecodable."""
        if not field_map:
            return None
        try:
            decoded = decode_record(field_map, schema or schema_for_key(key), key=key)
        except Exception as e:
            logger.warning(f"Dropping record {key}: {e}")
            return None
        record = decoded.record
        record[KEY_FIELD] = key
        return record
