"""
Relational aggregation over the record store.

Layers, leaves first:
- decoder:    field-map -> typed record
- batch:      many keys -> records, one round trip
- index:      relation/listing sets -> member ids
- hierarchy:  championship -> seasons -> {categories, stages, regulations}
- legacy:     JSON-string records, prefix scans, clubs
"""

from .batch import KEY_FIELD, BatchFetcher
from .decoder import DecodedRecord, FieldKind, FieldResult, decode_field, decode_record
from .hierarchy import SEASON_CHILD_TYPES, HierarchyAggregator, order_children
from .index import IndexResolver
from .legacy import LegacyScalarPath

__all__ = [
    "KEY_FIELD",
    "BatchFetcher",
    "DecodedRecord",
    "FieldKind",
    "FieldResult",
    "decode_field",
    "decode_record",
    "SEASON_CHILD_TYPES",
    "HierarchyAggregator",
    "order_children",
    "IndexResolver",
    "LegacyScalarPath",
]
