"""
Обратный разбор сгенерированного модуля типов в граф типов

Используется для проверки, что модуль типов описывает тот же граф,
из которого он был сгенерирован.
"""

import ast
from typing import Any, Optional, Tuple

from ...errors import SchemaParseError
from ..types.type_ref import (
    ANY,
    BOOLEAN,
    INTEGER,
    NULL,
    NUMBER,
    STRING,
    ArrayType,
    EnumType,
    FieldSpec,
    NamedRef,
    ObjectType,
    PrimitiveKind,
    PrimitiveType,
    TypeGraph,
    TypeRef,
    UnionType,
    make_nullable,
)

_NAMES = {
    "str": STRING,
    "int": INTEGER,
    "float": NUMBER,
    "bool": BOOLEAN,
    "Any": ANY,
    "datetime": PrimitiveType(PrimitiveKind.STRING, "date-time"),
    "date": PrimitiveType(PrimitiveKind.STRING, "date"),
    "bytes": PrimitiveType(PrimitiveKind.STRING, "binary"),
}


def _base_names(node: ast.ClassDef) -> set:
    return {base.id for base in node.bases if isinstance(base, ast.Name)}


def _subscript_elements(node: ast.Subscript) -> Tuple[ast.expr, ...]:
    inner = node.slice
    if isinstance(inner, ast.Tuple):
        return tuple(inner.elts)
    return (inner,)


def parse_annotation(node: ast.expr) -> TypeRef:
    """Выражение типа -> TypeRef"""
    if isinstance(node, ast.Constant):
        if node.value is None:
            return NULL
        if isinstance(node.value, str):
            return NamedRef(node.value)
    elif isinstance(node, ast.Name):
        return _NAMES.get(node.id, NamedRef(node.id))
    elif isinstance(node, ast.Attribute):
        return NamedRef(node.attr)
    elif isinstance(node, ast.Subscript) and isinstance(node.value, ast.Name):
        wrapper = node.value.id
        elements = _subscript_elements(node)
        if wrapper == "List":
            return ArrayType(parse_annotation(elements[0]))
        if wrapper == "Dict":
            return ObjectType((), additional=parse_annotation(elements[-1]))
        if wrapper == "Union":
            return UnionType(tuple(parse_annotation(element) for element in elements))
        if wrapper == "Optional":
            return make_nullable(parse_annotation(elements[0]))
        if wrapper == "Literal":
            return EnumType(tuple(ast.literal_eval(element) for element in elements))

    raise SchemaParseError(f"Unsupported type expression: {ast.unparse(node)}")


def _field_call(value: Optional[ast.expr]) -> Tuple[bool, Optional[str]]:
    """(есть ли значение по умолчанию, alias) для правой части поля"""
    if value is None:
        return False, None

    if (
        isinstance(value, ast.Call)
        and isinstance(value.func, ast.Name)
        and value.func.id == "Field"
    ):
        default: Any = ...
        alias = None
        if value.args:
            default = ast.literal_eval(value.args[0])
        for keyword in value.keywords:
            if keyword.arg == "default":
                default = ast.literal_eval(keyword.value)
            elif keyword.arg == "alias":
                alias = ast.literal_eval(keyword.value)
        return default is not ..., alias

    return True, None


def _model(node: ast.ClassDef) -> ObjectType:
    fields = []
    for statement in node.body:
        if not isinstance(statement, ast.AnnAssign) or not isinstance(
            statement.target, ast.Name
        ):
            continue

        has_default, alias = _field_call(statement.value)
        annotation = statement.annotation
        # Необязательное поле оборачивается в Optional ровно один раз
        if (
            has_default
            and isinstance(annotation, ast.Subscript)
            and isinstance(annotation.value, ast.Name)
            and annotation.value.id == "Optional"
        ):
            field_type = parse_annotation(_subscript_elements(annotation)[0])
        else:
            field_type = parse_annotation(annotation)

        fields.append(
            FieldSpec(
                name=alias or statement.target.id,
                type=field_type,
                required=not has_default,
            )
        )
    return ObjectType(tuple(fields))


def _enum(node: ast.ClassDef) -> EnumType:
    values = []
    for statement in node.body:
        if isinstance(statement, ast.Assign):
            values.append(ast.literal_eval(statement.value))
    return EnumType(tuple(values))


def parse_type_declarations(source: str) -> TypeGraph:
    """Исходный текст модуля типов -> TypeGraph"""
    try:
        module = ast.parse(source)
    except SyntaxError as exc:
        raise SchemaParseError(f"Type declarations are not valid Python: {exc}")

    graph = TypeGraph()
    for node in module.body:
        if isinstance(node, ast.ClassDef):
            bases = _base_names(node)
            if "Enum" in bases:
                graph.define(node.name, _enum(node))
            elif "BaseModel" in bases:
                graph.define(node.name, _model(node))
        elif (
            isinstance(node, ast.Assign)
            and len(node.targets) == 1
            and isinstance(node.targets[0], ast.Name)
        ):
            graph.define(node.targets[0].id, parse_annotation(node.value))

    return graph
