"""Утилиты для генератора"""

from .field_utils import (
    clean_enum_attribute_name,
    clean_field_name,
    clean_parameter_name,
    clean_type_name,
    pascal_case,
    snake_case,
    split_words,
    title_word,
)

__all__ = [
    "clean_enum_attribute_name",
    "clean_field_name",
    "clean_parameter_name",
    "clean_type_name",
    "pascal_case",
    "snake_case",
    "split_words",
    "title_word",
]
