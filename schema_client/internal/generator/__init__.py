"""Генерация модулей клиента и моделей типов"""

from .declarations import parse_type_declarations
from .emitter import (
    ArtifactKind,
    Emitter,
    EmitOptions,
    Flavor,
    GeneratedArtifact,
    ImportStyle,
)

__all__ = [
    "ArtifactKind",
    "EmitOptions",
    "Emitter",
    "Flavor",
    "GeneratedArtifact",
    "ImportStyle",
    "parse_type_declarations",
]
