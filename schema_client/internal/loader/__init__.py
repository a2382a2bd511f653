from .schema_loader import (
    INTROSPECTION_QUERY,
    LoadedSchema,
    detect_kind,
    load_schema,
    parse_document,
)

__all__ = [
    "INTROSPECTION_QUERY",
    "LoadedSchema",
    "detect_kind",
    "load_schema",
    "parse_document",
]
