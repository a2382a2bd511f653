"""
Проверка значений по графу типов и сопоставление ответов
"""

import json
from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel

from ..types.ir import Operation, ResponseSpec
from ..types.type_ref import (
    ArrayType,
    EnumType,
    NamedRef,
    ObjectType,
    PrimitiveKind,
    PrimitiveType,
    TypeGraph,
    TypeRef,
    UnionType,
)

_NUMERIC = (int, float)


def _check_primitive(type_ref: PrimitiveType, value: Any) -> bool:
    kind = type_ref.kind
    if kind == PrimitiveKind.ANY:
        return True
    if kind == PrimitiveKind.NULL:
        return value is None
    if kind == PrimitiveKind.BOOLEAN:
        return isinstance(value, bool)
    if kind == PrimitiveKind.INTEGER:
        if isinstance(value, bool):
            return False
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    if kind == PrimitiveKind.NUMBER:
        return isinstance(value, _NUMERIC) and not isinstance(value, bool)
    if type_ref.format == "binary" and isinstance(value, (bytes, bytearray)):
        return True
    return isinstance(value, str)


def _enum_member(values, value: Any) -> bool:
    for item in values:
        if isinstance(item, bool) != isinstance(value, bool):
            continue
        if item == value:
            return True
    return False


def check_value(
    graph: TypeGraph, type_ref: TypeRef, value: Any, path: str = "$"
) -> Optional[str]:
    """Возвращает описание первого несоответствия или None"""
    if isinstance(type_ref, NamedRef):
        type_ref = graph.resolve(type_ref)

    if isinstance(type_ref, PrimitiveType):
        if _check_primitive(type_ref, value):
            return None
        return f"{path}: expected {type_ref.kind.value}, got {type(value).__name__}"

    if isinstance(type_ref, EnumType):
        if _enum_member(type_ref.values, value):
            return None
        return f"{path}: {value!r} is not one of {list(type_ref.values)!r}"

    if isinstance(type_ref, UnionType):
        problems = [check_value(graph, member, value, path) for member in type_ref.members]
        if any(problem is None for problem in problems):
            return None
        return f"{path}: no union member matches ({problems[0]})"

    if isinstance(type_ref, ArrayType):
        if not isinstance(value, (list, tuple)):
            return f"{path}: expected array, got {type(value).__name__}"
        for index, item in enumerate(value):
            problem = check_value(graph, type_ref.items, item, f"{path}[{index}]")
            if problem:
                return problem
        return None

    if isinstance(type_ref, ObjectType):
        if not isinstance(value, Mapping):
            return f"{path}: expected object, got {type(value).__name__}"
        for spec in type_ref.fields:
            if spec.name not in value:
                if spec.required:
                    return f"{path}: missing required field {spec.name!r}"
                continue
            item = value[spec.name]
            if item is None and not spec.required:
                continue
            problem = check_value(graph, spec.type, item, f"{path}.{spec.name}")
            if problem:
                return problem
        # Лишние поля допустимы; проверяются только по additionalProperties
        if type_ref.additional is not None:
            known = {spec.name for spec in type_ref.fields}
            for key, item in value.items():
                if key in known:
                    continue
                problem = check_value(graph, type_ref.additional, item, f"{path}.{key}")
                if problem:
                    return problem
        return None

    return None


def _coerce_scalar(type_ref: PrimitiveType, value: str) -> bool:
    kind = type_ref.kind
    if kind == PrimitiveKind.INTEGER:
        return value.lstrip("-").isdigit()
    if kind == PrimitiveKind.NUMBER:
        try:
            float(value)
        except ValueError:
            return False
        return True
    if kind == PrimitiveKind.BOOLEAN:
        return value in ("true", "false")
    return kind != PrimitiveKind.NULL


def check_argument(
    graph: TypeGraph, type_ref: TypeRef, value: Any, path: str
) -> Optional[str]:
    """Проверка параметра path/query/header: строковые представления допустимы"""
    resolved = graph.resolve(type_ref)
    if isinstance(value, str) and isinstance(resolved, PrimitiveType):
        if _coerce_scalar(resolved, value):
            return None
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, (date, datetime)) and isinstance(resolved, PrimitiveType):
        if resolved.kind == PrimitiveKind.STRING:
            return None
    if isinstance(resolved, ArrayType) and not isinstance(value, (list, tuple)):
        return check_argument(graph, resolved.items, value, path)
    return check_value(graph, resolved, jsonable(value), path)


def jsonable(value: Any) -> Any:
    """Приведение моделей pydantic, дат и Enum к JSON-совместимому виду"""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, Enum):
        return jsonable(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(key): jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(item) for item in value]
    return value


def match_response(operation: Operation, status: int) -> Optional[ResponseSpec]:
    """Точный статус, затем диапазон NXX, затем default"""
    responses = operation.responses
    exact = responses.get(str(status))
    if exact is not None:
        return exact
    ranged = responses.get(f"{str(status)[0]}XX")
    if ranged is not None:
        return ranged
    return responses.get("default")


def media_type(content_type: Optional[str]) -> str:
    return (content_type or "").split(";")[0].strip().lower()


def match_content_type(
    content: Dict[str, TypeRef], actual: Optional[str]
) -> Optional[str]:
    """Объявленный content type, подходящий под фактический (с учетом wildcard)"""
    actual_type = media_type(actual)
    for declared in content:
        expected = media_type(declared)
        if expected == actual_type or expected == "*/*":
            return declared
        if expected.endswith("/*") and actual_type.startswith(expected[:-1]):
            return declared
    return None


def is_json(content_type: Optional[str]) -> bool:
    kind = media_type(content_type)
    return kind == "application/json" or kind.endswith("+json")


def decode_body(content_type: Optional[str], raw: bytes) -> Any:
    """JSON разбирается (ValueError при ошибке), text/* - строка, иначе байты"""
    if not raw:
        return None
    if is_json(content_type):
        return json.loads(raw)
    if media_type(content_type).startswith("text/"):
        return raw.decode("utf-8", errors="replace")
    return raw
