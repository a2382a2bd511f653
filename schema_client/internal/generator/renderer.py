"""
Рендер графа типов в модуль pydantic моделей
"""

import logging
from typing import Dict, List, Optional, Set

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
from ..utils import clean_enum_attribute_name, clean_field_name
from .models import Class, CodeBlock, CodeFile, Parameter, Variable
from .templates import templates

logger = logging.getLogger(__name__)

_PRIMITIVES = {
    PrimitiveKind.STRING: "str",
    PrimitiveKind.NUMBER: "float",
    PrimitiveKind.INTEGER: "int",
    PrimitiveKind.BOOLEAN: "bool",
    PrimitiveKind.NULL: "None",
    PrimitiveKind.ANY: "Any",
}

_STRING_FORMATS = {
    "date-time": "datetime",
    "date": "date",
    "binary": "bytes",
}


def is_string_enum(type_ref: TypeRef) -> bool:
    return isinstance(type_ref, EnumType) and all(
        isinstance(value, str) for value in type_ref.values
    )


def is_model(type_ref: TypeRef) -> bool:
    return isinstance(type_ref, ObjectType) and (
        type_ref.fields or type_ref.additional is None
    )


class TypeRenderer:
    """TypeRef -> выражение типа Python"""

    def __init__(self, qualifier: str = "", quote_refs: bool = True):
        self.qualifier = qualifier
        self.quote_refs = quote_refs

    def variable(self, type_ref: TypeRef) -> Variable:
        if isinstance(type_ref, PrimitiveType):
            if type_ref.kind == PrimitiveKind.STRING and type_ref.format in _STRING_FORMATS:
                return Variable(value=_STRING_FORMATS[type_ref.format])
            return Variable(value=_PRIMITIVES[type_ref.kind])

        if isinstance(type_ref, NamedRef):
            name = self.qualifier + type_ref.name
            return Variable(value=f'"{name}"' if self.quote_refs else name)

        if isinstance(type_ref, ArrayType):
            return Variable(value=self.variable(type_ref.items), wrap_name="List")

        if isinstance(type_ref, EnumType):
            return Variable(
                value=[repr(value) for value in type_ref.values], wrap_name="Literal"
            )

        if isinstance(type_ref, UnionType):
            return Variable(
                value=[self.variable(member) for member in type_ref.members],
                wrap_name="Union",
            )

        if isinstance(type_ref, ObjectType):
            if type_ref.fields:
                logger.debug("Inline object with fields rendered as a plain dict")
            additional = type_ref.additional
            value_type = self.variable(additional) if additional is not None else "Any"
            return Variable(value=["str", value_type], wrap_name="Dict")

        raise TypeError(f"Unknown type node: {type_ref!r}")

    def render(self, type_ref: TypeRef) -> str:
        return str(self.variable(type_ref))


class TypesModuleRenderer:
    """Граф типов -> файл с Enum, BaseModel и алиасами"""

    def __init__(self, graph: TypeGraph, props_optional: bool = True):
        self.graph = graph
        self.props_optional = props_optional
        self.renderer = TypeRenderer()

    def render(self, code_file: CodeFile) -> CodeFile:
        code_file.imports.extend(templates.types_imports)

        models: List[str] = []
        aliases: Dict[str, NamedRef] = {}

        for name, definition in self.graph:
            if is_string_enum(definition):
                code_file.add_class(self._enum_class(name, definition))
            elif is_model(definition):
                code_file.add_class(self._model_class(name, definition))
                models.append(name)
            elif isinstance(definition, NamedRef):
                aliases[name] = definition
            else:
                code_file.add_code_block(
                    f"{name} = {self.renderer.render(definition)}"
                )

        # Алиас на именованный тип должен идти после своей цели
        for name in self._alias_order(aliases):
            target = aliases[name]
            if self._alias_cycle(name, aliases):
                logger.warning(f"Type alias {name!r} is cyclic, rendered as Any")
                code_file.add_code_block(f"{name} = Any")
            else:
                code_file.add_code_block(f"{name} = {target.name}")

        if models:
            code_file.add_code_block(
                "\n".join(f"{name}.model_rebuild()" for name in models)
            )
        return code_file

    @staticmethod
    def _alias_cycle(name: str, aliases: Dict[str, NamedRef]) -> bool:
        seen: Set[str] = set()
        while name in aliases:
            if name in seen:
                return True
            seen.add(name)
            name = aliases[name].name
        return False

    @staticmethod
    def _alias_order(aliases: Dict[str, NamedRef]) -> List[str]:
        ordered: List[str] = []
        visiting: Set[str] = set()

        def visit(name: str) -> None:
            if name in ordered or name in visiting or name not in aliases:
                return
            visiting.add(name)
            visit(aliases[name].name)
            visiting.discard(name)
            ordered.append(name)

        for name in aliases:
            visit(name)
        return ordered

    @staticmethod
    def _enum_class(name: str, definition: EnumType) -> Class:
        enum_class = Class(name=name, inherits=["str", "Enum"])
        used: Set[str] = set()
        for value in definition.values:
            attribute = clean_enum_attribute_name(value)
            candidate, index = attribute, 2
            while candidate in used:
                candidate = f"{attribute}_{index}"
                index += 1
            used.add(candidate)
            enum_class.parameters.append(Parameter(name=candidate, default=repr(value)))
        return enum_class

    def _model_class(self, name: str, definition: ObjectType) -> Class:
        model_class = Class(name=name, inherits=["BaseModel"])
        model_class.add_code_block(templates.model_config)

        used: Set[str] = set()
        for spec in definition.fields:
            field_name = clean_field_name(spec.name)
            candidate, index = field_name, 2
            while candidate in used:
                candidate = f"{field_name}_{index}"
                index += 1
            used.add(candidate)

            required = spec.required or not self.props_optional
            annotation = self.renderer.variable(spec.type)
            if not required:
                annotation = Variable(value=annotation, wrap_name="Optional")

            model_class.parameters.append(
                Parameter(
                    name=candidate,
                    var_type=annotation,
                    default=self._field_default(
                        required,
                        alias=spec.name if candidate != spec.name else None,
                        description=spec.description,
                    ),
                )
            )
        return model_class

    @staticmethod
    def _field_default(
        required: bool, alias: Optional[str], description: Optional[str]
    ) -> Optional[str]:
        if alias is None and not description:
            return None if required else "None"

        arguments = ["..." if required else "None"]
        if alias is not None:
            arguments.append(f"alias={alias!r}")
        if description:
            arguments.append(f"description={description!r}")
        return f"Field({', '.join(arguments)})"
