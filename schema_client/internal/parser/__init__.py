"""Нормализация схем OpenAPI / GraphQL в IR"""

from typing import Any, Mapping, Optional, Union

from ..types.ir import OperationIR, SchemaKind
from .graphql import GraphQLParser, pass_through_ir
from .openapi import OpenApiParser


def normalize(
    document: Mapping[str, Any],
    kind: Union[SchemaKind, str],
    *,
    source: Optional[str] = None,
    graphql_path: str = "/graphql",
) -> OperationIR:
    """Документ схемы -> OperationIR"""
    if SchemaKind(kind) == SchemaKind.GRAPHQL:
        return GraphQLParser(document, graphql_path=graphql_path).parse()
    return OpenApiParser(dict(document), source_url=source).parse()


__all__ = ["GraphQLParser", "OpenApiParser", "normalize", "pass_through_ir"]
