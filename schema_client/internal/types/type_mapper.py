"""
Отображение JSON-схем (OpenAPI) в узлы графа типов
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Set, Tuple

from jsonref import JsonRef

from ...errors import SchemaParseError
from ..utils import clean_type_name, pascal_case
from .ir import Operation
from .schema_resolver import SchemaNameResolver
from .type_ref import (
    ANY,
    NULL,
    ArrayType,
    EnumType,
    FieldSpec,
    NamedRef,
    ObjectType,
    PrimitiveKind,
    PrimitiveType,
    TypeGraph,
    TypeRef,
    make_nullable,
    make_union,
)

logger = logging.getLogger(__name__)

_PRIMITIVES = {
    "string": PrimitiveKind.STRING,
    "number": PrimitiveKind.NUMBER,
    "integer": PrimitiveKind.INTEGER,
    "boolean": PrimitiveKind.BOOLEAN,
    "null": PrimitiveKind.NULL,
}


def reference_of(schema: Any) -> Optional[str]:
    """Строка $ref, если узел является jsonref-прокси"""
    if isinstance(schema, JsonRef):
        return schema.__reference__["$ref"]
    return None


def reference_name(ref: str) -> str:
    """Последний сегмент JSON pointer: #/components/schemas/User -> User"""
    pointer = ref.split("#", 1)[-1]
    name = pointer.rstrip("/").split("/")[-1] if pointer else ref
    name = name.replace("~1", "/").replace("~0", "~")
    if not name:
        # Ссылка на весь внешний документ: other.json -> other
        name = ref.rsplit("/", 1)[-1].split(".", 1)[0]
    return name or "Model"


class TypeMapper:
    """Маппер типов: schema -> TypeRef, с материализацией именованных схем"""

    def __init__(self, graph: Optional[TypeGraph] = None):
        self.graph = graph if graph is not None else TypeGraph()
        self.schema_resolver = SchemaNameResolver(self.graph)
        self._references: Dict[str, NamedRef] = {}

    def map_type(self, schema: Any, hint: str = "Model") -> TypeRef:
        """Тотальное отображение схемы в TypeRef"""
        return self._map(schema, hint, named=False)

    def register_component(self, name: str, schema: Any, ref: str) -> NamedRef:
        """Материализация схемы из components/definitions по имени"""
        if ref in self._references:
            return self._references[ref]

        target = self.schema_resolver.register_schema(name, key=ref)
        self._references[ref] = target
        if isinstance(schema, JsonRef):
            schema = schema.__subject__
        definition = self._map(schema, target.name, named=True)
        self.graph.define(target.name, definition)
        return target

    def map_operation(self, operation: Operation) -> Tuple[str, str]:
        """Пара типов запрос/ответ для операции"""
        base = clean_type_name(operation.id)

        request_ref = self.schema_resolver.new_name(f"{base}Request")
        fields: List[FieldSpec] = []
        seen: Set[str] = set()
        for param in operation.parameters:
            if param.name in seen:
                continue
            seen.add(param.name)
            fields.append(
                FieldSpec(param.name, param.type, param.required, param.description)
            )
        if operation.request_body is not None and "body" not in seen:
            fields.append(
                FieldSpec("body", operation.request_body, operation.body_required)
            )
        self.graph.define(request_ref.name, ObjectType(tuple(fields)))

        response_ref = self.schema_resolver.new_name(f"{base}Response")
        self.graph.define(response_ref.name, self._response_type(operation))

        return request_ref.name, response_ref.name

    @staticmethod
    def _response_type(operation: Operation) -> TypeRef:
        responses = operation.success_responses()
        if not responses and "default" in operation.responses:
            responses = [operation.responses["default"]]
        if not responses:
            return ANY

        types = [
            type_ref for spec in responses for type_ref in spec.content.values()
        ]
        return make_union(types) if types else NULL

    def _map(self, schema: Any, hint: str, named: bool) -> TypeRef:
        if schema is None or isinstance(schema, bool):
            return ANY

        ref = reference_of(schema)
        if ref is not None:
            return self.register_component(reference_name(ref), schema, ref)

        if not isinstance(schema, Mapping):
            raise SchemaParseError(f"Schema must be an object, got {schema!r}")

        nullable = schema.get("nullable") is True or schema.get("x-nullable") is True
        # Inline объект допустим только как целое определение
        result = self._map_plain(schema, hint, named and not nullable)
        if nullable:
            result = make_nullable(result)
        return result

    def _map_plain(self, schema: Mapping, hint: str, named: bool) -> TypeRef:
        if "const" in schema:
            return EnumType((schema["const"],))

        if schema.get("enum"):
            values = tuple(value for value in schema["enum"] if value is not None)
            result = EnumType(values) if values else NULL
            if len(values) != len(schema["enum"]):
                result = make_nullable(result)
            return result

        if schema.get("allOf"):
            return self._map_all_of(schema, hint, named)

        for key in ("oneOf", "anyOf"):
            if schema.get(key):
                return make_union(
                    [
                        self._map(member, f"{hint}Variant{index}", named=False)
                        for index, member in enumerate(schema[key], start=1)
                    ]
                )

        schema_type = schema.get("type")

        # OpenAPI 3.1: type может быть списком
        if isinstance(schema_type, list):
            return make_union(
                [
                    self._map_plain(
                        {**schema, "type": item}, hint, named and len(schema_type) == 1
                    )
                    for item in schema_type
                ]
            )

        if schema_type is None:
            if "properties" in schema or "additionalProperties" in schema:
                schema_type = "object"
            elif "items" in schema:
                schema_type = "array"
            else:
                return ANY

        if schema_type == "array":
            return ArrayType(self._map(schema.get("items"), f"{hint}Item", False))

        if schema_type == "object":
            return self._map_object(schema, hint, named)

        if schema_type == "file":
            return PrimitiveType(PrimitiveKind.STRING, "binary")

        if schema_type in _PRIMITIVES:
            return PrimitiveType(_PRIMITIVES[schema_type], schema.get("format"))

        logger.debug(f"Unknown schema type {schema_type!r}, mapped to any")
        return ANY

    def _map_object(self, schema: Mapping, hint: str, named: bool) -> TypeRef:
        properties = schema.get("properties") or {}

        if not properties:
            additional = schema.get("additionalProperties", True)
            if isinstance(additional, bool) or not additional:
                value_type = ANY
            else:
                value_type = self._map(additional, f"{hint}Value", False)
            return ObjectType((), additional=value_type)

        return self._named_object(
            properties, set(schema.get("required") or []), schema, hint, named
        )

    def _named_object(
        self,
        properties: Mapping,
        required: Set[str],
        schema: Mapping,
        hint: str,
        named: bool,
    ) -> TypeRef:
        # Определение уже именованное - строим объект на месте
        if named:
            return self._build_object(properties, required, hint)

        target = self.schema_resolver.new_name(schema.get("title") or hint)
        self.graph.define(
            target.name, self._build_object(properties, required, target.name)
        )
        return target

    def _build_object(
        self, properties: Mapping, required: Set[str], owner: str
    ) -> ObjectType:
        fields = []
        for name, prop in properties.items():
            description = None
            if isinstance(prop, Mapping) and reference_of(prop) is None:
                description = prop.get("description")
            fields.append(
                FieldSpec(
                    name=name,
                    type=self._map(prop, f"{owner}{pascal_case(name)}", False),
                    required=name in required,
                    description=description,
                )
            )
        return ObjectType(tuple(fields))

    def _map_all_of(self, schema: Mapping, hint: str, named: bool) -> TypeRef:
        members = list(schema["allOf"])

        # allOf из одного элемента - обертка над ссылкой (обычно ради description)
        if len(members) == 1 and not schema.get("properties"):
            return self._map(members[0], hint, named)

        properties: Dict[str, Any] = {}
        required: Set[str] = set()
        self._collect_all_of(schema, properties, required, set())

        if not properties:
            return self._map(members[-1], hint, named)

        return self._named_object(properties, required, schema, hint, named)

    def _collect_all_of(
        self,
        schema: Mapping,
        properties: Dict[str, Any],
        required: Set[str],
        seen: Set[str],
    ) -> None:
        """Слияние полей членов allOf; поздние члены перекрывают ранние"""
        for member in schema.get("allOf") or []:
            ref = reference_of(member)
            if ref is not None:
                if ref in seen:
                    continue
                seen = seen | {ref}
            if not isinstance(member, Mapping):
                continue
            if member.get("allOf"):
                self._collect_all_of(member, properties, required, seen)
            properties.update(member.get("properties") or {})
            required.update(member.get("required") or [])

        properties.update(schema.get("properties") or {})
        required.update(schema.get("required") or [])
