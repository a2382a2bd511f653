"""
Граф типов: узлы TypeRef и арена именованных определений
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union


class PrimitiveKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    NULL = "null"
    ANY = "any"


@dataclass(frozen=True)
class PrimitiveType:
    kind: PrimitiveKind
    format: Optional[str] = None


@dataclass(frozen=True)
class FieldSpec:
    name: str
    type: "TypeRef"
    required: bool = False
    description: Optional[str] = None


@dataclass(frozen=True)
class ObjectType:
    fields: Tuple[FieldSpec, ...] = ()
    additional: Optional["TypeRef"] = None

    def field(self, name: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    @property
    def is_map(self) -> bool:
        return not self.fields


@dataclass(frozen=True)
class ArrayType:
    items: "TypeRef"


@dataclass(frozen=True)
class EnumType:
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class UnionType:
    members: Tuple["TypeRef", ...]

    @property
    def nullable(self) -> bool:
        return any(is_null(member) for member in self.members)


@dataclass(frozen=True)
class NamedRef:
    name: str


TypeRef = Union[PrimitiveType, ObjectType, ArrayType, EnumType, UnionType, NamedRef]

STRING = PrimitiveType(PrimitiveKind.STRING)
NUMBER = PrimitiveType(PrimitiveKind.NUMBER)
INTEGER = PrimitiveType(PrimitiveKind.INTEGER)
BOOLEAN = PrimitiveType(PrimitiveKind.BOOLEAN)
NULL = PrimitiveType(PrimitiveKind.NULL)
ANY = PrimitiveType(PrimitiveKind.ANY)


def is_null(type_ref: TypeRef) -> bool:
    return isinstance(type_ref, PrimitiveType) and type_ref.kind == PrimitiveKind.NULL


def make_union(members: List[TypeRef]) -> TypeRef:
    """Union с раскрытием вложенных union и удалением дублей"""
    flat: List[TypeRef] = []
    for member in members:
        nested = member.members if isinstance(member, UnionType) else (member,)
        for item in nested:
            if item not in flat:
                flat.append(item)

    if any(item == ANY for item in flat):
        return ANY
    if len(flat) == 1:
        return flat[0]
    return UnionType(tuple(flat))


def make_nullable(type_ref: TypeRef) -> TypeRef:
    return make_union([type_ref, NULL])


class TypeGraph:
    """Арена именованных типов; циклы выражаются только через NamedRef"""

    def __init__(self):
        self._definitions: Dict[str, Optional[TypeRef]] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._definitions

    def __iter__(self) -> Iterator[Tuple[str, TypeRef]]:
        for name, definition in self._definitions.items():
            if definition is not None:
                yield name, definition

    def __len__(self) -> int:
        return len(self._definitions)

    def names(self) -> List[str]:
        return list(self._definitions)

    def reserve(self, name: str) -> NamedRef:
        """Резервирует имя до материализации (нужно для циклов)"""
        self._definitions.setdefault(name, None)
        return NamedRef(name)

    def define(self, name: str, definition: TypeRef) -> NamedRef:
        self._definitions[name] = definition
        return NamedRef(name)

    def is_defined(self, name: str) -> bool:
        return self._definitions.get(name) is not None

    def get(self, name: str) -> Optional[TypeRef]:
        return self._definitions.get(name)

    def resolve(self, type_ref: TypeRef) -> TypeRef:
        """Разыменование цепочки NamedRef"""
        seen = set()
        while isinstance(type_ref, NamedRef):
            if type_ref.name in seen:
                return ANY
            seen.add(type_ref.name)
            definition = self._definitions.get(type_ref.name)
            if definition is None:
                return ANY
            type_ref = definition
        return type_ref

    def unique_name(self, base: str) -> str:
        if base not in self._definitions:
            return base
        index = 2
        while f"{base}{index}" in self._definitions:
            index += 1
        return f"{base}{index}"

    def canonical(self) -> Dict[str, Any]:
        """Структурная форма графа без деталей форматирования"""
        return {name: canonical(definition) for name, definition in self}


def canonical(type_ref: TypeRef) -> Any:
    """Структурная форма одного узла (формат примитивов игнорируется)"""
    if isinstance(type_ref, PrimitiveType):
        return (type_ref.kind.value,)
    if isinstance(type_ref, NamedRef):
        return ("ref", type_ref.name)
    if isinstance(type_ref, ArrayType):
        return ("array", canonical(type_ref.items))
    if isinstance(type_ref, EnumType):
        return ("enum", tuple(type_ref.values))
    if isinstance(type_ref, UnionType):
        return ("union", tuple(canonical(member) for member in type_ref.members))
    if isinstance(type_ref, ObjectType):
        return (
            "object",
            tuple(
                (spec.name, canonical(spec.type), spec.required)
                for spec in type_ref.fields
            ),
            canonical(type_ref.additional) if type_ref.additional is not None else None,
        )
    raise TypeError(f"Unknown type node: {type_ref!r}")


def iter_refs(type_ref: TypeRef) -> Iterator[str]:
    """Имена, на которые ссылается узел (без захода внутрь определений)"""
    if isinstance(type_ref, NamedRef):
        yield type_ref.name
    elif isinstance(type_ref, ArrayType):
        yield from iter_refs(type_ref.items)
    elif isinstance(type_ref, UnionType):
        for member in type_ref.members:
            yield from iter_refs(member)
    elif isinstance(type_ref, ObjectType):
        for spec in type_ref.fields:
            yield from iter_refs(spec.type)
        if type_ref.additional is not None:
            yield from iter_refs(type_ref.additional)
