"""
Cache router - serves denormalized championship data from the record store.

Endpoints:
- /championships, /seasons, /categories, /stages, /regulations, /raceTracks  flat listings
- /championships/{id}/seasons, /championships/{id}/tree                     hierarchy
- /seasons/{id}/complete, /seasons/{id}/regulations                         hierarchy
- /seasons/{id}/classification, /championships/{id}/classification         classifications
- /users/{id}, POST /users/batch                                            users
- /{prefix}, /{prefix}/{id}                                                 legacy (deprecated)

Every response reports the number of store round trips it took.
"""

import logging
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from ...core.types import EntityType
from ..dependencies import AggregatorDependency, LegacyDependency
from ..errors import NotFoundError
from ._utils import collection_response, item_response, measured, performance

logger = logging.getLogger(__name__)

router = APIRouter()


class UserBatchRequest(BaseModel):
    """Body of POST /users/batch."""

    userIds: list[str]


async def _listing(aggregator, entity_type: EntityType) -> dict[str, Any]:
    records, calls = await measured(aggregator.list_entities(entity_type))
    return collection_response(records, calls)


async def _single(aggregator, entity_type: EntityType, entity_id: str, resource: str) -> dict[str, Any]:
    record, calls = await measured(aggregator.get_entity(entity_type, entity_id))
    if record is None:
        raise NotFoundError(resource=resource, identifier=entity_id)
    return item_response(record, calls)


# =========================================================================
# Championships
# =========================================================================


@router.get("/championships")
async def list_championships(aggregator: AggregatorDependency) -> dict[str, Any]:
    """All championships."""
    return await _listing(aggregator, EntityType.championship)


@router.get("/championships/{championship_id}")
async def get_championship(championship_id: str, aggregator: AggregatorDependency) -> dict[str, Any]:
    """A single championship."""
    return await _single(aggregator, EntityType.championship, championship_id, "Championship")


@router.get("/championships/{championship_id}/seasons")
async def get_championship_with_seasons(
    championship_id: str,
    aggregator: AggregatorDependency,
) -> dict[str, Any]:
    """Championship with all its seasons (2 round trips)."""
    result, calls = await measured(aggregator.get_championship_with_seasons(championship_id))
    if result is None:
        raise NotFoundError(resource="Championship", identifier=championship_id)
    return item_response(result, calls, seasonsCount=len(result["seasons"]))


@router.get("/championships/{championship_id}/tree")
async def get_championship_tree(championship_id: str, aggregator: AggregatorDependency) -> dict[str, Any]:
    """Championship with seasons, each with categories, stages and regulations."""
    result, calls = await measured(aggregator.get_championship_tree(championship_id))
    if result is None:
        raise NotFoundError(resource="Championship", identifier=championship_id)
    return item_response(result, calls, seasonsCount=len(result["seasons"]))


@router.get("/championships/{championship_id}/classification")
async def get_championship_classification(
    championship_id: str,
    aggregator: AggregatorDependency,
) -> dict[str, Any]:
    """Classification tables for every season of a championship."""
    result, calls = await measured(aggregator.get_championship_classification(championship_id))
    if result is None:
        raise NotFoundError(resource="Championship", identifier=championship_id)
    return item_response(result, calls, seasonsCount=len(result.classifications))


# =========================================================================
# Seasons
# =========================================================================


@router.get("/seasons")
async def list_seasons(aggregator: AggregatorDependency) -> dict[str, Any]:
    """All seasons."""
    return await _listing(aggregator, EntityType.season)


@router.get("/seasons/{season_id}")
async def get_season(season_id: str, aggregator: AggregatorDependency) -> dict[str, Any]:
    """A single season."""
    return await _single(aggregator, EntityType.season, season_id, "Season")


@router.get("/seasons/{season_id}/complete")
async def get_season_complete(season_id: str, aggregator: AggregatorDependency) -> dict[str, Any]:
    """Season with categories, stages and ordered regulations."""
    result, calls = await measured(aggregator.get_season_complete(season_id))
    if result is None:
        raise NotFoundError(resource="Season", identifier=season_id)
    return item_response(
        result,
        calls,
        categoriesCount=len(result["categories"]),
        stagesCount=len(result["stages"]),
        regulationsCount=len(result["regulations"]),
    )


@router.get("/seasons/{season_id}/regulations")
async def get_season_regulations(season_id: str, aggregator: AggregatorDependency) -> dict[str, Any]:
    """Regulations of a season sorted by their order field."""
    regulations, calls = await measured(aggregator.get_season_regulations(season_id))
    return collection_response(regulations, calls)


@router.get("/seasons/{season_id}/classification")
async def get_season_classification(season_id: str, aggregator: AggregatorDependency) -> dict[str, Any]:
    """Classification table of a season."""
    result, calls = await measured(aggregator.get_season_classification(season_id))
    if result is None:
        raise NotFoundError(resource="Season classification", identifier=season_id)
    return item_response(result, calls)


# =========================================================================
# Categories, stages, regulations
# =========================================================================


@router.get("/categories")
async def list_categories(aggregator: AggregatorDependency) -> dict[str, Any]:
    """All categories."""
    return await _listing(aggregator, EntityType.category)


@router.get("/stages")
async def list_stages(aggregator: AggregatorDependency) -> dict[str, Any]:
    """All stages."""
    return await _listing(aggregator, EntityType.stage)


@router.get("/stages/{stage_id}")
async def get_stage(stage_id: str, aggregator: AggregatorDependency) -> dict[str, Any]:
    """A stage with its results table."""
    stage, calls = await measured(aggregator.get_stage_with_results(stage_id))
    if stage is None:
        raise NotFoundError(resource="Stage", identifier=stage_id)
    return item_response(stage, calls)


@router.get("/regulations")
async def list_regulations(aggregator: AggregatorDependency) -> dict[str, Any]:
    """All regulations."""
    return await _listing(aggregator, EntityType.regulation)


# =========================================================================
# Race tracks and users (flat collections)
# =========================================================================


@router.get("/raceTracks")
async def list_race_tracks(aggregator: AggregatorDependency) -> dict[str, Any]:
    """All race tracks."""
    return await _listing(aggregator, EntityType.race_track)


@router.get("/raceTracks/active")
async def list_active_race_tracks(aggregator: AggregatorDependency) -> dict[str, Any]:
    """Race tracks flagged active."""
    tracks, calls = await measured(aggregator.list_active_race_tracks())
    return collection_response(tracks, calls)


@router.get("/raceTracks/{race_track_id}")
async def get_race_track(race_track_id: str, aggregator: AggregatorDependency) -> dict[str, Any]:
    """A single race track."""
    return await _single(aggregator, EntityType.race_track, race_track_id, "Race track")


@router.get("/users/{user_id}")
async def get_user(user_id: str, aggregator: AggregatorDependency) -> dict[str, Any]:
    """A single user."""
    return await _single(aggregator, EntityType.user, user_id, "User")


@router.post("/users/batch")
async def get_users_batch(body: UserBatchRequest, aggregator: AggregatorDependency) -> dict[str, Any]:
    """Several users by id in one round trip."""
    users, calls = await measured(aggregator.get_many(EntityType.user, body.userIds))
    return collection_response(users, calls)


# =========================================================================
# Legacy prefix access (deprecated)
# =========================================================================


@router.get("/{prefix}", deprecated=True)
async def get_by_prefix(prefix: str, legacy: LegacyDependency) -> dict[str, Any]:
    """
    Every record whose key starts with ``{prefix}:``.

    Use the dedicated endpoints for hierarchy types; they are refused here.
    """
    records, calls = await measured(legacy.get_by_prefix(prefix))
    if not records:
        raise NotFoundError(resource="Data", identifier=prefix, context="prefix scan")
    return {
        "count": len(records),
        "data": records,
        "performance": performance(calls, optimized=False, note="Prefix scan"),
    }


@router.get("/{prefix}/{item_id}", deprecated=True)
async def get_by_prefix_and_id(prefix: str, item_id: str, legacy: LegacyDependency) -> dict[str, Any]:
    """Single record by prefix and id: field-map first, JSON string fallback."""
    item, calls = await measured(legacy.get_item(prefix, item_id))
    if item is None:
        raise NotFoundError(resource="Item", identifier=f"{prefix}:{item_id}")
    return {
        "data": item,
        "performance": performance(calls, optimized=calls == 1),
    }
