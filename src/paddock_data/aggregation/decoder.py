"""
Record decoder: flat string field-maps to typed records.

Each field is decoded on its own into a FieldResult; a record-level
DecodedRecord collects the values and any per-field diagnostics. A bad
field never prevents the other fields from decoding.

Type classes (per EntitySchema):
- integer:          base-10 int, invalid -> None
- timestamp:        ISO-8601 or epoch milliseconds, invalid -> None
- nested-document:  JSON, invalid or missing -> [] (classification -> None)
- boolean:          "true" / "1" -> True, anything else or missing -> False
- everything else:  passed through unchanged
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

from ..core.types import CLASSIFICATION_FIELD, EntitySchema

logger = logging.getLogger(__name__)

_EPOCH_MILLIS = re.compile(r"-?\d{10,}")
_TRUE_VALUES = frozenset({"true", "1"})


class FieldKind(str, Enum):
    integer = "integer"
    timestamp = "timestamp"
    document = "document"
    boolean = "boolean"
    string = "string"


@dataclass(frozen=True)
class FieldResult:
    """Outcome of decoding one field: a value, plus an error when a fallback was used."""

    value: Any
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class DecodedRecord:
    """A typed record plus the diagnostics of the fields that fell back."""

    record: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def field_kind(schema: EntitySchema | None, name: str) -> FieldKind:
    """Look up the type class of a field (plain string when unknown)."""
    if schema is None:
        return FieldKind.string
    if name in schema.integer_fields:
        return FieldKind.integer
    if name in schema.timestamp_fields:
        return FieldKind.timestamp
    if name in schema.document_fields:
        return FieldKind.document
    if name in schema.boolean_fields:
        return FieldKind.boolean
    return FieldKind.string


def _document_default(name: str) -> Any:
    return None if name == CLASSIFICATION_FIELD else []


def parse_timestamp(raw: str) -> datetime:
    """Parse ISO-8601 (``Z`` suffix allowed) or epoch milliseconds into an aware datetime."""
    text = raw.strip()
    if _EPOCH_MILLIS.fullmatch(text):
        return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def decode_field(kind: FieldKind, name: str, raw: str | None) -> FieldResult:
    """
    Decode a single raw value.

    Args:
        kind: Type class of the field
        name: Field name (selects the classification default)
        raw: Stored string, or None when the field is missing

    Returns:
        FieldResult; never raises
    """
    if kind is FieldKind.boolean:
        return FieldResult(raw in _TRUE_VALUES)

    if kind is FieldKind.document:
        if raw is None or raw == "":
            return FieldResult(_document_default(name))
        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as e:
            return FieldResult(_document_default(name), f"invalid JSON: {e}")
        return FieldResult(_document_default(name) if value is None else value)

    if raw is None or raw == "":
        return FieldResult(None)

    if kind is FieldKind.integer:
        try:
            return FieldResult(int(raw, 10))
        except (TypeError, ValueError):
            return FieldResult(None, f"invalid integer {raw!r}")

    if kind is FieldKind.timestamp:
        try:
            return FieldResult(parse_timestamp(raw))
        except (TypeError, ValueError, OverflowError, OSError):
            return FieldResult(None, f"invalid timestamp {raw!r}")

    return FieldResult(raw)


def decode_record(
    field_map: Mapping[str, str],
    schema: EntitySchema | None,
    key: str | None = None,
) -> DecodedRecord:
    """
    Decode a whole field-map.

    Declared document and boolean fields are always present in the output
    (filled with their defaults when missing). Diagnostics are logged and
    returned; they never turn into an exception.

    Args:
        field_map: Raw field name -> string value mapping
        schema: Entity schema, or None to pass every field through as a string
        key: Store key, only used in log messages
    """
    decoded = DecodedRecord()

    for name, raw in field_map.items():
        result = decode_field(field_kind(schema, name), name, raw)
        decoded.record[name] = result.value
        if not result.ok:
            decoded.errors[name] = result.error

    if schema is not None:
        for name in schema.document_fields:
            if name not in decoded.record:
                decoded.record[name] = _document_default(name)
        for name in schema.boolean_fields:
            decoded.record.setdefault(name, False)

    for name, error in decoded.errors.items():
        logger.warning(f"Partial decode of {key or 'record'}: field {name!r} {error}")

    return decoded
