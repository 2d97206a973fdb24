"""
Core types and constants for Paddock Data.

This module provides:
- EntityType enum for every record family held in the store
- EntitySchema dataclass describing how a record's fields are typed
- ENTITY_REGISTRY for centralized entity configurations
- Key builders for records, listing indexes and relation indexes

Store layout (written by the ingestion process, read-only here):
    championship:{id}               field-map of one record
    championships:all               set of every championship id
    championship:{id}:seasons       set of the championship's season ids
    season:{id}:categories          (likewise stages, regulations)
"""

import re
from dataclasses import dataclass
from enum import Enum


class InvalidIdentifierError(ValueError):
    """Caller-supplied identifier cannot be used to build a store key."""

    def __init__(self, identifier: object, reason: str):
        super().__init__(f"Invalid identifier {identifier!r}: {reason}")
        self.identifier = identifier
        self.reason = reason


class EntityType(str, Enum):
    """Entity types."""

    championship = "championship"
    season = "season"
    category = "category"
    stage = "stage"
    regulation = "regulation"
    race_track = "raceTrack"
    user = "user"
    club = "club"


@dataclass(frozen=True)
class EntitySchema:
    """
    Field typing for one entity type.

    Every field not listed here is passed through as a plain string.
    """

    # Identifiers
    type: EntityType
    plural: str

    # Field type classes
    integer_fields: frozenset[str] = frozenset()
    timestamp_fields: frozenset[str] = frozenset()
    document_fields: frozenset[str] = frozenset()
    boolean_fields: frozenset[str] = frozenset()

    # Sort key for ordered child collections (None keeps resolution order)
    order_field: str | None = None

    # Record keys use a different prefix than "{type}:" (clubs are stored as "clubs:{id}")
    key_prefix: str | None = None

    @property
    def prefix(self) -> str:
        return self.key_prefix or self.type.value

    @property
    def all_index(self) -> str:
        return f"{self.plural}:all"


_TIMESTAMPS = frozenset({"createdAt", "updatedAt"})

# Document field that decodes to None instead of [] when missing or malformed
CLASSIFICATION_FIELD = "classification"

MAX_IDENTIFIER_LENGTH = 128
_FORBIDDEN_ID_CHARS = re.compile(r"[\s:*?\[\]]")


# =============================================================================
# ENTITY REGISTRY - Central configuration for all entity types
# =============================================================================

ENTITY_REGISTRY: dict[EntityType, EntitySchema] = {
    EntityType.championship: EntitySchema(
        type=EntityType.championship,
        plural="championships",
        timestamp_fields=_TIMESTAMPS,
        document_fields=frozenset({"sponsors"}),
        boolean_fields=frozenset({"isActive"}),
    ),
    EntityType.season: EntitySchema(
        type=EntityType.season,
        plural="seasons",
        integer_fields=frozenset({"year", "maxPilots"}),
        timestamp_fields=_TIMESTAMPS | {"startDate", "endDate"},
        document_fields=frozenset({"sponsors", "pilots", CLASSIFICATION_FIELD}),
        boolean_fields=frozenset({"isActive", "inscriptionsOpen"}),
    ),
    EntityType.category: EntitySchema(
        type=EntityType.category,
        plural="categories",
        integer_fields=frozenset({"maxPilots", "ballast"}),
        timestamp_fields=_TIMESTAMPS,
        document_fields=frozenset({"pilots"}),
        boolean_fields=frozenset({"isActive"}),
    ),
    EntityType.stage: EntitySchema(
        type=EntityType.stage,
        plural="stages",
        integer_fields=frozenset({"laps", "order"}),
        timestamp_fields=_TIMESTAMPS | {"date", "startDate", "endDate"},
        document_fields=frozenset({"results", "pilots", "sponsors"}),
        boolean_fields=frozenset({"isActive", "isFinished"}),
    ),
    EntityType.regulation: EntitySchema(
        type=EntityType.regulation,
        plural="regulations",
        integer_fields=frozenset({"order"}),
        timestamp_fields=_TIMESTAMPS,
        boolean_fields=frozenset({"isActive"}),
        order_field="order",
    ),
    EntityType.race_track: EntitySchema(
        type=EntityType.race_track,
        plural="raceTracks",
        integer_fields=frozenset({"capacity", "length"}),
        timestamp_fields=_TIMESTAMPS,
        document_fields=frozenset({"images", "layouts"}),
        boolean_fields=frozenset({"isActive"}),
    ),
    EntityType.user: EntitySchema(
        type=EntityType.user,
        plural="users",
        timestamp_fields=_TIMESTAMPS | {"birthDate"},
        document_fields=frozenset({"roles"}),
        boolean_fields=frozenset({"isActive", "emailVerified"}),
    ),
    EntityType.club: EntitySchema(
        type=EntityType.club,
        plural="clubs",
        integer_fields=frozenset({"_timestamp"}),
        timestamp_fields=_TIMESTAMPS | {"foundationDate"},
        key_prefix="clubs",
    ),
}

# Prefixes served by the dedicated hierarchy operations, refused on the legacy path
HIERARCHY_PREFIXES = frozenset({"championship", "season", "category", "stage", "regulation"})


def get_entity_schema(entity_type: str | EntityType) -> EntitySchema:
    """
    Get schema for an entity type.

    Args:
        entity_type: Entity type string or EntityType enum

    Returns:
        EntitySchema for the requested type

    Raises:
        KeyError: If the type is not in registry
    """
    return ENTITY_REGISTRY[EntityType(entity_type)]


def schema_for_key(key: str) -> EntitySchema | None:
    """Find the schema whose record prefix matches a store key, if any."""
    prefix = key.split(":", 1)[0]
    for schema in ENTITY_REGISTRY.values():
        if schema.prefix == prefix:
            return schema
    return None


def validate_identifier(identifier: str) -> str:
    """
    Reject identifiers that would produce a malformed or wildcard key.

    Raises:
        InvalidIdentifierError: before any round trip is issued
    """
    if not isinstance(identifier, str) or not identifier:
        raise InvalidIdentifierError(identifier, "must be a non-empty string")
    if len(identifier) > MAX_IDENTIFIER_LENGTH:
        raise InvalidIdentifierError(identifier, f"longer than {MAX_IDENTIFIER_LENGTH} characters")
    if _FORBIDDEN_ID_CHARS.search(identifier):
        raise InvalidIdentifierError(identifier, "contains whitespace, ':' or glob characters")
    return identifier


def entity_key(entity_type: str | EntityType, identifier: str) -> str:
    """Build the record key, e.g. ``season:42``."""
    schema = get_entity_schema(entity_type)
    return f"{schema.prefix}:{validate_identifier(identifier)}"


def member_key(entity_type: str | EntityType, member: str) -> str:
    """
    Turn a relation-index member into a record key.

    Members are stored either as bare ids ("42") or as full keys ("season:42").
    """
    schema = get_entity_schema(entity_type)
    if member.startswith(f"{schema.prefix}:"):
        return member
    return f"{schema.prefix}:{member}"


def relation_index_key(
    parent_type: str | EntityType,
    parent_id: str,
    child_type: str | EntityType,
) -> str:
    """Build a relation index key, e.g. ``season:42:stages``."""
    child = get_entity_schema(child_type)
    return f"{entity_key(parent_type, parent_id)}:{child.plural}"


def id_from_key(key: str) -> str:
    """Strip the type prefix from a record key."""
    return key.split(":", 1)[1] if ":" in key else key
