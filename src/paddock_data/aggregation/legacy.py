"""
Legacy scalar path: records stored as one JSON string instead of a field-map.

Lookup priority is fixed: the field-map is read first and wins whenever it
has at least one field; the JSON-string value is only consulted when the
field-map comes back empty. The hierarchy types (championship, season,
category, stage, regulation) are never served from here.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from ..core.types import (
    HIERARCHY_PREFIXES,
    EntityType,
    InvalidIdentifierError,
    get_entity_schema,
    validate_identifier,
)
from ..store.base import RecordStore
from .batch import KEY_FIELD, BatchFetcher

logger = logging.getLogger(__name__)


def _parse_json(key: str, value: str | None) -> Any:
    if value is None:
        return None
    try:
        return json.loads(value)
    except ValueError as e:
        logger.error(f"Error parsing stored JSON for key {key}: {e}")
        return None


def _check_prefix(prefix: str) -> str:
    validate_identifier(prefix)
    if prefix in HIERARCHY_PREFIXES:
        raise InvalidIdentifierError(
            prefix, f"use the dedicated {prefix} endpoints (/cache/{get_entity_schema(prefix).plural})"
        )
    return prefix


class LegacyScalarPath:
    """Reads JSON-string records and prefix-scanned key families."""

    def __init__(self, store: RecordStore):
        self.store = store
        self.batch = BatchFetcher(store)

    async def fetch_scalar(self, key: str) -> Any:
        """One GET, JSON-decoded. Absent or malformed values yield None."""
        return _parse_json(key, await self.store.get_scalar(key))

    async def fetch_scalars(self, keys: Sequence[str]) -> list[dict[str, Any]]:
        """
        Pipelined GETs for several keys (one round trip).

        JSON objects are tagged with their key; absent, malformed and
        non-object values are dropped.
        """
        if not keys:
            return []
        values = await self.store.get_scalars(keys)
        records = []
        for key, value in zip(keys, values):
            parsed = _parse_json(key, value)
            if isinstance(parsed, dict):
                parsed[KEY_FIELD] = key
                records.append(parsed)
        return records

    async def get_item(self, prefix: str, item_id: str) -> Any:
        """
        Single record by prefix and id: field-map first, JSON string second.

        Returns:
            Decoded record, or None when neither representation exists

        Raises:
            InvalidIdentifierError: for malformed input or a hierarchy prefix
        """
        _check_prefix(prefix)
        key = f"{prefix}:{validate_identifier(item_id)}"

        record = await self.batch.fetch_one(key)
        if record is not None:
            return record
        return await self.fetch_scalar(key)

    async def get_by_prefix(self, prefix: str) -> list[dict[str, Any]]:
        """
        Every record under ``{prefix}:*``.

        Keys are enumerated with SCAN, then batch-read as field-maps. Keys
        whose field-map is empty or undecodable are read as JSON strings in
        one more round trip; results keep the scan order.
        """
        _check_prefix(prefix)
        # relation indexes ("{prefix}:{id}:{children}") share the prefix but are sets
        keys = [key for key in await self.store.scan_keys(f"{prefix}:*") if key.count(":") == 1]
        if not keys:
            return []

        by_key = {record[KEY_FIELD]: record for record in await self.batch.fetch_many(keys)}
        missing = [key for key in keys if key not in by_key]
        if missing:
            logger.info(f"{len(missing)} keys under {prefix}:* have no field-map, reading JSON string values")
            by_key.update((record[KEY_FIELD], record) for record in await self.fetch_scalars(missing))
        return [by_key[key] for key in keys if key in by_key]

    # =========================================================================
    # Clubs
    # =========================================================================

    async def list_clubs(self) -> list[dict[str, Any]]:
        """All clubs (stored under ``clubs:{id}``)."""
        return await self.get_by_prefix(get_entity_schema(EntityType.club).prefix)

    async def get_club(self, club_id: str) -> dict[str, Any] | None:
        club = await self.get_item(get_entity_schema(EntityType.club).prefix, club_id)
        return club if isinstance(club, dict) else None

    async def find_clubs_by_name(self, name: str) -> list[dict[str, Any]]:
        """Clubs whose name contains ``name``, case-insensitive."""
        needle = name.lower()
        return [
            club
            for club in await self.list_clubs()
            if needle in str(club.get("name") or "").lower()
        ]

