"""
Hierarchical aggregator: parent records with their children.

The only multi-level relation is

    championship -> seasons -> {categories, stages, regulations}

and each join shape has its own composition method so the round-trip cost
can be read off the code:

- get_parent_with_children                   2 round trips
- get_parent_with_multiple_child_types       1 + K (K = child types with members)
- get_championship_tree                      2 + sum over seasons of (1 + K_season)

Record counts never add round trips: every child collection is one
batched fetch no matter how many members its index holds. Sibling
fetches are issued concurrently with asyncio.gather.

Any other entity type is a flat collection (list_entities / get_many).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Sequence

from ..core.models import (
    ChampionshipClassification,
    ParentWithChildren,
    ParentWithChildTypes,
    SeasonClassification,
)
from ..core.types import (
    CLASSIFICATION_FIELD,
    EntityType,
    entity_key,
    get_entity_schema,
    id_from_key,
    member_key,
    validate_identifier,
)
from ..store.base import RecordStore, StoreUnavailableError
from .batch import KEY_FIELD, BatchFetcher
from .index import IndexResolver

logger = logging.getLogger(__name__)

SEASON_CHILD_TYPES: tuple[EntityType, ...] = (
    EntityType.category,
    EntityType.stage,
    EntityType.regulation,
)


def _relation_key(parent_key: str, child_type: EntityType | str) -> str:
    return f"{parent_key}:{get_entity_schema(child_type).plural}"


def _order_value(value: Any) -> int:
    # bool is an int subclass but never a meaningful order
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return 0


def order_children(child_type: EntityType | str, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Apply the display order of a child collection.

    Types with an order field (regulations) are sorted ascending on it,
    missing values counting as 0. The sort is stable, so ties keep
    resolution order. Other types are returned as resolved.
    """
    order_field = get_entity_schema(child_type).order_field
    if order_field is None:
        return records
    return sorted(records, key=lambda record: _order_value(record.get(order_field)))


class HierarchyAggregator:
    """
    Composes index resolution and batch fetches into hierarchy queries.

    Not-found roots come back as None. StoreUnavailableError from a
    mandatory round trip propagates; an optional child-type fetch that
    fails is logged and degraded to an empty collection.
    """

    def __init__(self, store: RecordStore):
        """
        Initialize the aggregator.

        Args:
            store: Shared record store (injected, one per process)
        """
        self.store = store
        self.batch = BatchFetcher(store)
        self.index = IndexResolver(store)

    # =========================================================================
    # Generic compositions
    # =========================================================================

    async def get_parent_with_children(
        self,
        parent_type: EntityType | str,
        parent_id: str,
        child_type: EntityType | str,
    ) -> ParentWithChildren | None:
        """
        Get a parent record with one child collection.

        Round trip 1 reads the parent field-map and the relation index
        together; round trip 2 batch-fetches the children (skipped when the
        index is empty).

        Returns:
            ParentWithChildren, or None when the parent is absent (even if
            its index still has members)
        """
        parent_key = entity_key(parent_type, parent_id)
        index_key = _relation_key(parent_key, child_type)

        field_map, members = await self.store.get_field_map_with_sets(parent_key, [index_key])
        parent = self.batch.decode_one(parent_key, field_map, get_entity_schema(parent_type))
        if parent is None:
            return None

        children = await self._fetch_children(child_type, members.get(index_key, []))
        return ParentWithChildren(parent=parent, children=children)

    async def get_parent_with_multiple_child_types(
        self,
        parent_type: EntityType | str,
        parent_id: str,
        child_types: Iterable[EntityType | str],
    ) -> ParentWithChildTypes | None:
        """
        Get a parent record with several child collections.

        Round trip 1 reads the parent field-map and all N relation indexes;
        then one concurrent batch fetch per child type whose index has
        members. Child types with empty indexes cost nothing.

        Returns:
            ParentWithChildTypes keyed by child plural, or None when the parent is absent
        """
        types = list(dict.fromkeys(EntityType(child_type) for child_type in child_types))
        parent_key = entity_key(parent_type, parent_id)
        index_keys = {child_type: _relation_key(parent_key, child_type) for child_type in types}

        field_map, members = await self.store.get_field_map_with_sets(
            parent_key, list(index_keys.values())
        )
        parent = self.batch.decode_one(parent_key, field_map, get_entity_schema(parent_type))
        if parent is None:
            return None

        resolved = {child_type: members.get(index_keys[child_type], []) for child_type in types}
        children = await self._fetch_child_types(parent_key, resolved)
        return ParentWithChildTypes(parent=parent, children=children)

    async def _fetch_children(
        self,
        child_type: EntityType | str,
        member_ids: Sequence[str],
    ) -> list[dict[str, Any]]:
        if not member_ids:
            return []
        keys = [member_key(child_type, member) for member in member_ids]
        records = await self.batch.fetch_many(keys, get_entity_schema(child_type))
        return order_children(child_type, records)

    async def _fetch_child_types(
        self,
        parent_key: str,
        resolved: dict[EntityType, list[str]],
    ) -> dict[str, list[dict[str, Any]]]:
        async def fetch(child_type: EntityType, member_ids: list[str]) -> list[dict[str, Any]]:
            try:
                return await self._fetch_children(child_type, member_ids)
            except StoreUnavailableError as e:
                logger.warning(
                    f"Degrading {get_entity_schema(child_type).plural} of {parent_key} to empty: {e}"
                )
                return []

        results = await asyncio.gather(
            *(fetch(child_type, member_ids) for child_type, member_ids in resolved.items())
        )
        return {
            get_entity_schema(child_type).plural: records
            for child_type, records in zip(resolved, results)
        }

    # =========================================================================
    # Championship / season shapes
    # =========================================================================

    async def get_championship_with_seasons(self, championship_id: str) -> dict[str, Any] | None:
        """Championship record with a ``seasons`` list. 2 round trips."""
        result = await self.get_parent_with_children(
            EntityType.championship, championship_id, EntityType.season
        )
        return result.merged("seasons") if result else None

    async def get_season_complete(self, season_id: str) -> dict[str, Any] | None:
        """Season record with ``categories``, ``stages`` and ordered ``regulations``."""
        result = await self.get_parent_with_multiple_child_types(
            EntityType.season, season_id, SEASON_CHILD_TYPES
        )
        return result.merged() if result else None

    async def get_championship_tree(self, championship_id: str) -> dict[str, Any] | None:
        """
        Championship -> seasons -> {categories, stages, regulations}.

        Round trips 1-2 come from get_parent_with_children. Each season then
        costs one round trip for its three indexes plus one per non-empty
        child type; seasons are completed concurrently.
        """
        result = await self.get_parent_with_children(
            EntityType.championship, championship_id, EntityType.season
        )
        if result is None:
            return None

        seasons = await asyncio.gather(*(self._complete_season(season) for season in result.children))
        return {**result.parent, "seasons": list(seasons)}

    async def _complete_season(self, season: dict[str, Any]) -> dict[str, Any]:
        season_key = season[KEY_FIELD]
        index_keys = {child_type: _relation_key(season_key, child_type) for child_type in SEASON_CHILD_TYPES}

        members = await self.index.resolve_many_sets(list(index_keys.values()))
        resolved = {child_type: members[index_key] for child_type, index_key in index_keys.items()}
        children = await self._fetch_child_types(season_key, resolved)
        return {**season, **children}

    async def get_season_regulations(self, season_id: str) -> list[dict[str, Any]]:
        """Regulations of a season in ascending ``order``. Missing index yields []."""
        index_key = _relation_key(entity_key(EntityType.season, season_id), EntityType.regulation)
        member_ids = await self.index.resolve_set(index_key)
        return await self._fetch_children(EntityType.regulation, member_ids)

    # =========================================================================
    # Classifications
    # =========================================================================

    async def get_season_classification(self, season_id: str) -> SeasonClassification | None:
        """Classification table of one season; None when the season or its table is absent."""
        season_key = entity_key(EntityType.season, season_id)
        season = await self.batch.fetch_one(season_key, get_entity_schema(EntityType.season))
        if season is None or season.get(CLASSIFICATION_FIELD) is None:
            return None
        return SeasonClassification(
            seasonId=season_id,
            seasonName=season.get("name"),
            classification=season[CLASSIFICATION_FIELD],
        )

    async def get_championship_classification(
        self,
        championship_id: str,
    ) -> ChampionshipClassification | None:
        """Classification of every season of a championship. 2 round trips."""
        result = await self.get_parent_with_children(
            EntityType.championship, championship_id, EntityType.season
        )
        if result is None:
            return None

        classifications = [
            SeasonClassification(
                seasonId=id_from_key(season[KEY_FIELD]),
                seasonName=season.get("name"),
                classification=season[CLASSIFICATION_FIELD],
            )
            for season in result.children
            if season.get(CLASSIFICATION_FIELD) is not None
        ]
        return ChampionshipClassification(championship=result.parent, classifications=classifications)

    # =========================================================================
    # Single records and flat collections
    # =========================================================================

    async def get_entity(self, entity_type: EntityType | str, entity_id: str) -> dict[str, Any] | None:
        """One decoded record, or None. 1 round trip."""
        return await self.batch.fetch_one(
            entity_key(entity_type, entity_id), get_entity_schema(entity_type)
        )

    async def get_stage_with_results(self, stage_id: str) -> dict[str, Any] | None:
        """Stage record; its ``results`` table is a nested document on the record."""
        return await self.get_entity(EntityType.stage, stage_id)

    async def list_entities(self, entity_type: EntityType | str) -> list[dict[str, Any]]:
        """Every record in the type's ``{plural}:all`` index. 2 round trips (1 when empty)."""
        schema = get_entity_schema(entity_type)
        member_ids = await self.index.resolve_set(schema.all_index)
        if not member_ids:
            return []
        keys = [member_key(entity_type, member) for member in member_ids]
        return await self.batch.fetch_many(keys, schema)

    async def list_active_race_tracks(self) -> list[dict[str, Any]]:
        """Race tracks whose ``isActive`` flag decoded to True."""
        tracks = await self.list_entities(EntityType.race_track)
        return [track for track in tracks if track.get("isActive") is True]

    async def get_many(
        self,
        entity_type: EntityType | str,
        entity_ids: Sequence[str],
    ) -> list[dict[str, Any]]:
        """
        Records for explicit ids in one round trip.

        Raises:
            InvalidIdentifierError: if any id is malformed (before any round trip)
        """
        for entity_id in entity_ids:
            validate_identifier(entity_id)
        keys = [entity_key(entity_type, entity_id) for entity_id in entity_ids]
        return await self.batch.fetch_many(keys, get_entity_schema(entity_type))
