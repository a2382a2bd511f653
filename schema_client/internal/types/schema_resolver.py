from typing import Dict, Optional

from ..utils import clean_type_name
from .type_ref import NamedRef, TypeGraph


class SchemaNameResolver:
    """Резолвер имен схем для консистентности"""

    def __init__(self, graph: TypeGraph):
        self._graph = graph
        self._schema_registry: Dict[str, str] = {}

    def register_schema(self, original_name: str, key: Optional[str] = None) -> NamedRef:
        """Регистрация схемы с чистым уникальным именем"""
        key = key or original_name
        if key in self._schema_registry:
            return NamedRef(self._schema_registry[key])

        clean_name = self._graph.unique_name(clean_type_name(original_name))
        self._schema_registry[key] = clean_name
        return self._graph.reserve(clean_name)

    def resolve_schema_name(self, key: str) -> Optional[str]:
        return self._schema_registry.get(key)

    def new_name(self, hint: str) -> NamedRef:
        """Имя для inline схемы, вынесенной в отдельное определение"""
        return self._graph.reserve(self._graph.unique_name(clean_type_name(hint)))
