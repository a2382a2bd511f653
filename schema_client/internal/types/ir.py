"""
Промежуточное представление (IR) операций
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, NamedTuple, Optional, Tuple

from .type_ref import TypeGraph, TypeRef


class SchemaKind(str, Enum):
    OPENAPI = "openapi"
    GRAPHQL = "graphql"


class ParamLocation(str, Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"
    BODY = "body"


class BodyKind(str, Enum):
    JSON = "json"
    MULTIPART = "multipart/form-data"
    OTHER = "other"


@dataclass
class OperationParameter:
    name: str
    location: ParamLocation
    required: bool
    type: TypeRef
    explode: bool = True
    description: Optional[str] = None


@dataclass
class ResponseSpec:
    """Описание ответа для одного статуса (или диапазона/default)"""

    status: str
    content: Dict[str, TypeRef] = field(default_factory=dict)
    description: Optional[str] = None


@dataclass
class Operation:
    id: str
    method: str
    path: str
    parameters: List[OperationParameter] = field(default_factory=list)
    request_body: Optional[TypeRef] = None
    body_kind: Optional[BodyKind] = None
    request_content_type: Optional[str] = None
    body_required: bool = False
    responses: Dict[str, ResponseSpec] = field(default_factory=dict)

    summary: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    deprecated: bool = False
    explicit_id: bool = False
    python_name: str = ""

    def parameters_in(self, location: ParamLocation) -> List[OperationParameter]:
        return [param for param in self.parameters if param.location == location]

    def parameter(self, name: str) -> Optional[OperationParameter]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def success_responses(self) -> List[ResponseSpec]:
        return [
            spec
            for status, spec in self.responses.items()
            if status.startswith("2")
        ]


class Route(NamedTuple):
    path: str
    method: str


@dataclass
class OperationIR:
    kind: SchemaKind
    operations: List[Operation] = field(default_factory=list)
    types: TypeGraph = field(default_factory=TypeGraph)
    title: str = "api"
    version: str = ""
    servers: List[str] = field(default_factory=list)
    graphql_path: str = "/graphql"
    # id операции -> (имя типа запроса, имя типа ответа)
    operation_types: Dict[str, Tuple[str, str]] = field(default_factory=dict)

    def __post_init__(self):
        self._index: Dict[str, Operation] = {}

    def reindex(self) -> None:
        self._index = {operation.id: operation for operation in self.operations}

    def get(self, operation_id: str) -> Optional[Operation]:
        return self._index.get(operation_id)

    def routes(self) -> Mapping[str, Route]:
        """Read-only соответствие id операции -> (path, method)"""
        return MappingProxyType(
            {
                operation.id: Route(operation.path, operation.method.upper())
                for operation in self.operations
            }
        )
