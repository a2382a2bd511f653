"""
Нормализация результата GraphQL introspection

Вся схема - одна pass-through операция graphql. Типы выводятся по возможности
и только достижимые из корневых типов query/mutation/subscription.
"""

import logging
from collections import deque
from collections.abc import Mapping
from typing import Any, Deque, Dict, Optional, Tuple

from ...errors import SchemaParseError
from ..types.ir import Operation, OperationIR, ResponseSpec, SchemaKind
from ..types.schema_resolver import SchemaNameResolver
from ..types.type_ref import (
    ANY,
    BOOLEAN,
    INTEGER,
    NUMBER,
    STRING,
    ArrayType,
    EnumType,
    FieldSpec,
    NamedRef,
    ObjectType,
    TypeGraph,
    TypeRef,
    make_nullable,
    make_union,
)

logger = logging.getLogger(__name__)

SCALARS: Dict[str, TypeRef] = {
    "String": STRING,
    "ID": STRING,
    "Int": INTEGER,
    "Float": NUMBER,
    "Boolean": BOOLEAN,
}

ROOT_KEYS = ("queryType", "mutationType", "subscriptionType")


class GraphQLParser:
    """Парсер introspection ответа в IR"""

    def __init__(self, introspection: Mapping[str, Any], graphql_path: str = "/graphql"):
        self.introspection = introspection
        self.graphql_path = graphql_path
        self.graph = TypeGraph()
        self.schema_resolver = SchemaNameResolver(self.graph)
        self._types: Dict[str, Mapping[str, Any]] = {}

    def parse(self) -> OperationIR:
        schema = self._schema_root()
        self._types = {
            item["name"]: item
            for item in schema.get("types") or []
            if isinstance(item, Mapping) and item.get("name")
        }

        queue: Deque[str] = deque()
        for key in ROOT_KEYS:
            root = schema.get(key)
            if isinstance(root, Mapping) and root.get("name"):
                queue.append(root["name"])

        visited = set()
        while queue:
            name = queue.popleft()
            if name in visited or name.startswith("__"):
                continue
            visited.add(name)
            self._define(name, queue)

        ir = pass_through_ir(self.graphql_path, self.graph)
        logger.debug(f"Normalized GraphQL schema with {len(visited)} reachable types")
        return ir

    def _schema_root(self) -> Mapping[str, Any]:
        document = self.introspection
        data = document.get("data")
        if isinstance(data, Mapping) and "__schema" in data:
            document = data

        schema = document.get("__schema")
        if not isinstance(schema, Mapping):
            raise SchemaParseError("GraphQL introspection result has no __schema")
        return schema

    def _name(self, graphql_name: str) -> NamedRef:
        return self.schema_resolver.register_schema(graphql_name)

    def _define(self, name: str, queue: Deque[str]) -> None:
        target = self._name(name)
        spec = self._types.get(name)
        if spec is None:
            logger.warning(f"GraphQL type {name!r} is referenced but not described")
            self.graph.define(target.name, ANY)
            return

        kind = spec.get("kind")
        if kind in ("OBJECT", "INTERFACE", "INPUT_OBJECT"):
            raw_fields = spec.get("inputFields" if kind == "INPUT_OBJECT" else "fields")
            fields = []
            for raw in raw_fields or []:
                field_type, non_null = self._type_ref(raw["type"], queue)
                fields.append(
                    FieldSpec(
                        name=raw["name"],
                        type=field_type if non_null else make_nullable(field_type),
                        required=non_null,
                        description=raw.get("description"),
                    )
                )
                # Типы аргументов тоже достижимы
                for arg in raw.get("args") or []:
                    self._type_ref(arg["type"], queue)
            self.graph.define(target.name, ObjectType(tuple(fields)))
        elif kind == "ENUM":
            values = tuple(value["name"] for value in spec.get("enumValues") or [])
            self.graph.define(target.name, EnumType(values) if values else STRING)
        elif kind == "UNION":
            members = []
            for possible in spec.get("possibleTypes") or []:
                member_type, _ = self._type_ref(possible, queue)
                members.append(member_type)
            self.graph.define(target.name, make_union(members) if members else ANY)
        else:
            self.graph.define(target.name, SCALARS.get(name, ANY))

    def _type_ref(self, node: Mapping[str, Any], queue: Deque[str]) -> Tuple[TypeRef, bool]:
        """TypeRef и признак NON_NULL для ссылки на тип"""
        kind = node.get("kind")
        if kind == "NON_NULL":
            inner, _ = self._type_ref(node["ofType"], queue)
            return inner, True
        if kind == "LIST":
            item, item_non_null = self._type_ref(node["ofType"], queue)
            return ArrayType(item if item_non_null else make_nullable(item)), False

        name = node.get("name")
        if kind == "SCALAR" or not name:
            return SCALARS.get(name, ANY), False

        queue.append(name)
        return self._name(name), False


def pass_through_ir(graphql_path: str = "/graphql", graph: Optional[TypeGraph] = None) -> OperationIR:
    """IR с единственной операцией graphql (POST на graphql_path)"""
    operation = Operation(
        id="graphql",
        method="post",
        path=graphql_path,
        responses={"200": ResponseSpec("200", {"application/json": ANY})},
        summary="GraphQL pass-through",
        explicit_id=True,
        python_name="graphql",
    )
    ir = OperationIR(
        kind=SchemaKind.GRAPHQL,
        operations=[operation],
        types=graph if graph is not None else TypeGraph(),
        title="graphql",
        graphql_path=graphql_path,
    )
    ir.reindex()
    return ir
