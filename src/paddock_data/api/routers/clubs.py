"""Club API endpoints."""

from typing import Any

from fastapi import APIRouter

from ..dependencies import LegacyDependency
from ..errors import NotFoundError

router = APIRouter()


@router.get("/")
async def list_clubs(legacy: LegacyDependency) -> list[dict[str, Any]]:
    """
    Get all clubs.

    Clubs live under ``clubs:{id}``, as field-maps or as JSON strings.
    """
    return await legacy.list_clubs()


@router.get("/id/{club_id}")
async def get_club(club_id: str, legacy: LegacyDependency) -> dict[str, Any]:
    """
    Get a club by its unique ID.

    Raises:
        NotFoundError: 404 if the club does not exist
    """
    club = await legacy.get_club(club_id)
    if club is None:
        raise NotFoundError(resource="Club", identifier=club_id)
    return club


@router.get("/name/{name}")
async def get_clubs_by_name(name: str, legacy: LegacyDependency) -> list[dict[str, Any]]:
    """Clubs whose name contains ``name`` (case-insensitive partial match)."""
    return await legacy.find_clubs_by_name(name)
