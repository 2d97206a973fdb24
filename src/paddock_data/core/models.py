"""
Pydantic models for aggregation results.

Decoded records stay plain dicts (their field set is owned by the ingestion
process). These models describe the shapes the aggregator assembles around
them.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

Record = dict[str, Any]


class ParentWithChildren(BaseModel):
    """A parent record and one child collection."""

    parent: Record
    children: list[Record] = Field(default_factory=list)

    def merged(self, field: str) -> Record:
        """Parent fields with the children under ``field``."""
        return {**self.parent, field: self.children}


class ParentWithChildTypes(BaseModel):
    """A parent record and one child collection per child type (keyed by plural)."""

    parent: Record
    children: dict[str, list[Record]] = Field(default_factory=dict)

    def merged(self) -> Record:
        """Parent fields with each child collection under its plural name."""
        return {**self.parent, **self.children}


class SeasonClassification(BaseModel):
    """Classification table of one season."""

    seasonId: str
    seasonName: str | None = None
    classification: Any = None


class ChampionshipClassification(BaseModel):
    """Championship record plus the classification of each of its seasons."""

    championship: Record
    classifications: list[SeasonClassification] = Field(default_factory=list)
