"""
Главный модуль генератора - чистый интерфейс
"""

import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Union

from .internal.generator import EmitOptions, Emitter, GeneratedArtifact
from .internal.loader import load_schema
from .internal.parser import normalize
from .internal.types.ir import OperationIR, SchemaKind

logger = logging.getLogger(__name__)

Source = Union[str, os.PathLike, Mapping[str, Any]]


class ApiClientGenerator:
    """Чистый интерфейс для генерации API клиентов"""

    def __init__(
        self,
        source: Source,
        *,
        kind: Union[SchemaKind, str, None] = None,
        headers: Optional[Dict[str, str]] = None,
        graphql_path: str = "/graphql",
    ):
        self.loaded = load_schema(source, kind=kind, headers=headers)
        self.graphql_path = graphql_path
        self._ir: Optional[OperationIR] = None

    @property
    def ir(self) -> OperationIR:
        if self._ir is None:
            self._ir = normalize(
                self.loaded.document,
                self.loaded.kind,
                source=self.loaded.source,
                graphql_path=self.graphql_path,
            )
        return self._ir

    def generate(self, options: Optional[EmitOptions] = None, **emit_options) -> List[GeneratedArtifact]:
        """Генерация модулей клиента"""
        if options is None:
            if "schema_file" not in emit_options and self.loaded.source:
                emit_options["schema_file"] = self.loaded.source
            options = EmitOptions(**emit_options)

        artifacts = Emitter(self.ir, options).emit()
        logger.debug(
            f"Generated {len(artifacts)} artifact(s) for {len(self.ir.operations)} operation(s)"
        )
        return artifacts


def generate_client(source: Source, **emit_options) -> List[GeneratedArtifact]:
    """Создание модулей клиента из схемы OpenAPI или GraphQL"""
    kind = emit_options.pop("kind", None)
    headers = emit_options.pop("headers", None)
    graphql_path = emit_options.pop("graphql_path", "/graphql")
    generator = ApiClientGenerator(source, kind=kind, headers=headers, graphql_path=graphql_path)
    return generator.generate(**emit_options)
