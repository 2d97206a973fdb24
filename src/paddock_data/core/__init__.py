"""
Core module for Paddock Data.

This module provides the foundational components:
- Configuration management (config.py)
- Entity types, schemas and key builders (types.py)
- Aggregate result models (models.py)

Usage:
    from paddock_data.core import Settings, get_settings
    from paddock_data.core import EntityType, get_entity_schema, entity_key
    from paddock_data.core import ParentWithChildren, ParentWithChildTypes
"""

# Configuration
from .config import Settings, get_settings

# Types
from .types import (
    CLASSIFICATION_FIELD,
    ENTITY_REGISTRY,
    HIERARCHY_PREFIXES,
    EntitySchema,
    EntityType,
    InvalidIdentifierError,
    entity_key,
    get_entity_schema,
    id_from_key,
    member_key,
    relation_index_key,
    schema_for_key,
    validate_identifier,
)

# Models
from .models import (
    ChampionshipClassification,
    ParentWithChildren,
    ParentWithChildTypes,
    Record,
    SeasonClassification,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Types
    "CLASSIFICATION_FIELD",
    "ENTITY_REGISTRY",
    "HIERARCHY_PREFIXES",
    "EntitySchema",
    "EntityType",
    "InvalidIdentifierError",
    "entity_key",
    "get_entity_schema",
    "id_from_key",
    "member_key",
    "relation_index_key",
    "schema_for_key",
    "validate_identifier",
    # Models
    "ChampionshipClassification",
    "ParentWithChildren",
    "ParentWithChildTypes",
    "Record",
    "SeasonClassification",
]
