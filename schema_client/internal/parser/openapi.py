import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import jsonref

from ...errors import SchemaParseError, UnsupportedSchemaVersion
from ..loader.schema_loader import is_url
from ..naming import derive_name, resolve_names
from ..types.ir import (
    BodyKind,
    Operation,
    OperationIR,
    OperationParameter,
    ParamLocation,
    ResponseSpec,
    SchemaKind,
)
from ..types.type_mapper import TypeMapper
from ..types.type_ref import ANY, STRING, FieldSpec, ObjectType, TypeRef
from ..utils import clean_type_name, pascal_case

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

_PATH_TEMPLATE = re.compile(r"\{([^}]+)\}")

_JSON = "application/json"
_MULTIPART = "multipart/form-data"


def body_kind_of(content_type: str) -> BodyKind:
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type == _JSON or media_type.endswith("+json"):
        return BodyKind.JSON
    if media_type == _MULTIPART:
        return BodyKind.MULTIPART
    return BodyKind.OTHER


def _normalize_status(status: Any) -> str:
    status = str(status).strip()
    if status.lower() == "default":
        return "default"
    return status.upper()


def _escape_pointer(name: str) -> str:
    return name.replace("~", "~0").replace("/", "~1")


class OpenApiParser:
    """Парсер OpenAPI 3.x / Swagger 2.0 спецификации в IR"""

    def __init__(self, openapi_dict: Dict[str, Any], source_url: Optional[str] = None):
        self.openapi_dict = openapi_dict
        self.source_url = source_url
        self.mapper = TypeMapper()
        self.version = 3

    def parse(self) -> OperationIR:
        """Парсинг OpenAPI в IR"""
        self.version = self._detect_version()

        try:
            document = jsonref.replace_refs(
                self.openapi_dict, base_uri=self._base_uri(), lazy_load=True
            )
            return self._build(document)
        except jsonref.JsonRefError as exc:
            raise SchemaParseError(
                f"Unresolvable reference: {exc}", source=self.source_url
            )

    def _base_uri(self) -> str:
        if not self.source_url:
            return ""
        if is_url(self.source_url):
            return self.source_url
        return Path(os.path.abspath(self.source_url)).as_uri()

    def _detect_version(self) -> int:
        if "openapi" in self.openapi_dict:
            version = str(self.openapi_dict["openapi"])
            if version.split(".")[0] == "3":
                return 3
        elif "swagger" in self.openapi_dict:
            version = str(self.openapi_dict["swagger"])
            if version.split(".")[0] == "2":
                return 2
        else:
            raise UnsupportedSchemaVersion(
                "Document declares neither 'openapi' nor 'swagger' version",
                source=self.source_url,
            )

        raise UnsupportedSchemaVersion(
            f"Unsupported OpenAPI version {version!r}", source=self.source_url
        )

    def _build(self, document: Mapping[str, Any]) -> OperationIR:
        info = document.get("info") or {}
        ir = OperationIR(
            kind=SchemaKind.OPENAPI,
            types=self.mapper.graph,
            title=str(info.get("title") or "api"),
            version=str(info.get("version") or ""),
            servers=self._servers(document),
        )

        self._register_components(document)

        paths = document.get("paths") or {}
        if not isinstance(paths, Mapping):
            raise SchemaParseError("'paths' must be an object", source=self.source_url)

        for path, path_item in paths.items():
            if not isinstance(path_item, Mapping):
                raise SchemaParseError(
                    f"Path item {path!r} must be an object", source=self.source_url
                )
            for method in HTTP_METHODS:
                if method in path_item:
                    ir.operations.append(
                        self._operation(document, path, method, path_item)
                    )

        resolve_names(ir.operations)
        ir.reindex()

        for operation in ir.operations:
            ir.operation_types[operation.id] = self.mapper.map_operation(operation)

        logger.debug(
            f"Normalized {len(ir.operations)} operations and {len(ir.types)} types"
        )
        return ir

    def _register_components(self, document: Mapping[str, Any]) -> None:
        """Регистрация всех именованных схем в исходном порядке"""
        if self.version == 3:
            schemas = (document.get("components") or {}).get("schemas") or {}
            prefix = "#/components/schemas/"
        else:
            schemas = document.get("definitions") or {}
            prefix = "#/definitions/"

        for name, schema in schemas.items():
            self.mapper.register_component(name, schema, prefix + _escape_pointer(name))

    def _servers(self, document: Mapping[str, Any]) -> List[str]:
        if self.version == 2:
            host = document.get("host")
            if not host:
                return []
            scheme = (document.get("schemes") or ["https"])[0]
            return [f"{scheme}://{host}{document.get('basePath') or ''}"]

        servers = []
        for server in document.get("servers") or []:
            if not isinstance(server, Mapping) or not server.get("url"):
                continue
            url = str(server["url"])
            for name, variable in (server.get("variables") or {}).items():
                url = url.replace("{" + name + "}", str(variable.get("default", "")))
            servers.append(url)
        return servers

    def _operation(
        self,
        document: Mapping[str, Any],
        path: str,
        method: str,
        path_item: Mapping[str, Any],
    ) -> Operation:
        spec = path_item[method]
        if not isinstance(spec, Mapping):
            raise SchemaParseError(
                f"Operation {method.upper()} {path} must be an object",
                source=self.source_url,
            )

        explicit_id = spec.get("operationId")
        hint = clean_type_name(explicit_id or derive_name(method, path))

        operation = Operation(
            id=str(explicit_id) if explicit_id else "",
            method=method,
            path=path,
            summary=spec.get("summary"),
            description=spec.get("description"),
            tags=list(spec.get("tags") or []),
            deprecated=bool(spec.get("deprecated", False)),
            explicit_id=bool(explicit_id),
        )

        form_fields = []
        for raw in self._merge_parameters(
            path_item.get("parameters"), spec.get("parameters")
        ):
            location = raw.get("in")
            if self.version == 2 and location == "body":
                operation.request_body = self.mapper.map_type(
                    raw.get("schema"), f"{hint}Body"
                )
                operation.body_required = bool(raw.get("required", False))
                content_type = self._consumes(document, spec)[0]
                operation.request_content_type = content_type
                operation.body_kind = body_kind_of(content_type)
            elif self.version == 2 and location == "formData":
                form_fields.append(raw)
            else:
                operation.parameters.append(self._parameter(raw, hint))

        if form_fields:
            self._form_body(operation, document, spec, form_fields, hint)
        elif self.version == 3 and spec.get("requestBody"):
            self._request_body(operation, spec["requestBody"], hint)

        self._check_path_parameters(operation)
        operation.responses = self._responses(document, spec, hint)
        return operation

    def _merge_parameters(self, path_level, operation_level) -> List[Mapping[str, Any]]:
        """Параметры уровня пути, перекрытые параметрами операции по (name, in)"""
        merged: Dict[Tuple[str, str], Mapping[str, Any]] = {}
        for params in (path_level or [], operation_level or []):
            for raw in params:
                if not isinstance(raw, Mapping) or "name" not in raw or "in" not in raw:
                    raise SchemaParseError(
                        f"Malformed parameter {raw!r}", source=self.source_url
                    )
                merged[(str(raw["name"]), str(raw["in"]))] = raw
        return list(merged.values())

    def _parameter(self, raw: Mapping[str, Any], hint: str) -> OperationParameter:
        name = str(raw["name"])
        location = raw["in"]
        try:
            location = ParamLocation(location)
            if location == ParamLocation.BODY:
                raise ValueError(location)
        except ValueError:
            raise SchemaParseError(
                f"Unknown parameter location {location!r} for {name!r}",
                source=self.source_url,
            )

        if self.version == 2:
            schema = dict(raw)
            explode = raw.get("collectionFormat", "csv") == "multi"
        else:
            schema = raw.get("schema")
            if schema is None and raw.get("content"):
                schema = next(iter(raw["content"].values())).get("schema")
            explode = bool(raw.get("explode", raw.get("style", "form") == "form"))

        return OperationParameter(
            name=name,
            location=location,
            required=bool(raw.get("required", False))
            or location == ParamLocation.PATH,
            type=self.mapper.map_type(schema, f"{hint}{pascal_case(name)}"),
            explode=explode,
            description=raw.get("description"),
        )

    def _request_body(
        self, operation: Operation, request_body: Mapping[str, Any], hint: str
    ) -> None:
        content = request_body.get("content") or {}
        operation.body_required = bool(request_body.get("required", False))
        if not content:
            operation.request_body = ANY
            operation.body_kind = BodyKind.OTHER
            return

        content_type = self._preferred_content_type(list(content))
        operation.request_content_type = content_type
        operation.body_kind = body_kind_of(content_type)
        operation.request_body = self.mapper.map_type(
            (content[content_type] or {}).get("schema"), f"{hint}Body"
        )

    @staticmethod
    def _preferred_content_type(content_types: List[str]) -> str:
        for kind in (BodyKind.JSON, BodyKind.MULTIPART):
            for content_type in content_types:
                if body_kind_of(content_type) == kind:
                    return content_type
        return content_types[0]

    def _form_body(
        self,
        operation: Operation,
        document: Mapping[str, Any],
        spec: Mapping[str, Any],
        form_fields: List[Mapping[str, Any]],
        hint: str,
    ) -> None:
        """Swagger 2.0: параметры formData собираются в объект тела"""
        consumes = self._consumes(document, spec)
        is_multipart = _MULTIPART in consumes or any(
            field.get("type") == "file" for field in form_fields
        )
        operation.request_content_type = (
            _MULTIPART if is_multipart else "application/x-www-form-urlencoded"
        )
        operation.body_kind = BodyKind.MULTIPART if is_multipart else BodyKind.OTHER
        operation.body_required = any(field.get("required") for field in form_fields)

        body_name = self.mapper.schema_resolver.new_name(f"{hint}Body")
        fields = tuple(
            FieldSpec(
                name=str(field["name"]),
                type=self.mapper.map_type(
                    dict(field), f"{body_name.name}{pascal_case(str(field['name']))}"
                ),
                required=bool(field.get("required", False)),
                description=field.get("description"),
            )
            for field in form_fields
        )
        operation.request_body = self.mapper.graph.define(
            body_name.name, ObjectType(fields)
        )

    def _check_path_parameters(self, operation: Operation) -> None:
        """Каждый {param} шаблона пути - ровно один path параметр"""
        template_names = list(dict.fromkeys(_PATH_TEMPLATE.findall(operation.path)))
        declared = {
            param.name: param
            for param in operation.parameters
            if param.location == ParamLocation.PATH
        }

        for name in template_names:
            if name not in declared:
                logger.warning(
                    f"{operation.method.upper()} {operation.path}: "
                    f"path parameter {name!r} is not declared, assuming string"
                )
                operation.parameters.append(
                    OperationParameter(name, ParamLocation.PATH, True, STRING)
                )

        for name in declared:
            if name not in template_names:
                logger.warning(
                    f"{operation.method.upper()} {operation.path}: "
                    f"path parameter {name!r} is not in the template, dropped"
                )
                operation.parameters = [
                    param
                    for param in operation.parameters
                    if not (param.location == ParamLocation.PATH and param.name == name)
                ]

    def _consumes(self, document: Mapping[str, Any], spec: Mapping[str, Any]) -> List[str]:
        return list(spec.get("consumes") or document.get("consumes") or [_JSON])

    def _produces(self, document: Mapping[str, Any], spec: Mapping[str, Any]) -> List[str]:
        return list(spec.get("produces") or document.get("produces") or [_JSON])

    def _responses(
        self, document: Mapping[str, Any], spec: Mapping[str, Any], hint: str
    ) -> Dict[str, ResponseSpec]:
        responses: Dict[str, ResponseSpec] = {}
        for status, raw in (spec.get("responses") or {}).items():
            status = _normalize_status(status)
            if not isinstance(raw, Mapping):
                raise SchemaParseError(
                    f"Response {status} must be an object", source=self.source_url
                )

            type_hint = f"{hint}Response{pascal_case(status)}"
            content: Dict[str, TypeRef] = {}
            if self.version == 2:
                if raw.get("schema") is not None:
                    body_type = self.mapper.map_type(raw["schema"], type_hint)
                    for content_type in self._produces(document, spec):
                        content[content_type] = body_type
            else:
                for content_type, media in (raw.get("content") or {}).items():
                    content[content_type] = self.mapper.map_type(
                        (media or {}).get("schema"), type_hint
                    )

            responses[status] = ResponseSpec(
                status=status, content=content, description=raw.get("description")
            )
        return responses
