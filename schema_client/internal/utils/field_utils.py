"""Утилиты для работы с именами полей, параметров и типов"""

import keyword
import re

# Атрибуты pydantic.BaseModel, которые нельзя использовать как имена полей
_MODEL_RESERVED = {
    "copy",
    "dict",
    "json",
    "schema",
    "schema_json",
    "construct",
    "validate",
    "fields",
    "parse_obj",
    "parse_raw",
    "parse_file",
    "from_orm",
    "update_forward_refs",
}

# Встроенные имена, используемые в аннотациях сгенерированных моделей
_ANNOTATION_NAMES = {"bool", "bytes", "date", "datetime", "float", "int", "str"}

# Имена, которые сгенерированный модуль импортирует сам
RESERVED_TYPE_NAMES = {
    "Any",
    "BaseModel",
    "ConfigDict",
    "Dict",
    "Enum",
    "Field",
    "List",
    "Literal",
    "Optional",
    "Union",
    "bytes",
    "date",
    "datetime",
}


def snake_case(name: str) -> str:
    """camelCase / PascalCase / kebab-case -> snake_case"""
    name = re.sub(r"[^0-9a-zA-Z_]", "_", name)

    # HTTPValidationError -> http_validation_error
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    s2 = re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1)
    s3 = re.sub("([A-Z]+)([A-Z][a-z])", r"\1_\2", s2)
    s4 = re.sub("_+", "_", s3)
    return s4.strip("_").lower()


def split_words(name: str) -> list:
    """Разбивка на слова по любым не буквенно-цифровым символам"""
    return [part for part in re.split(r"[^0-9a-zA-Z]+", name) if part]


def title_word(word: str) -> str:
    """Первая буква заглавная, остальное без изменений (quoteId -> QuoteId)"""
    return word[:1].upper() + word[1:]


def pascal_case(name: str) -> str:
    """Правильное PascalCase преобразование"""
    return "".join(title_word(part) for part in split_words(name))


def clean_parameter_name(name: str) -> str:
    """Очистка имени параметра для использования в Python"""
    name = snake_case(name)

    if name and name[0].isdigit():
        name = f"param_{name}"
    if not name:
        name = "param"
    if keyword.iskeyword(name):
        name = f"{name}_"

    return name


def clean_field_name(name: str) -> str:
    """Имя атрибута pydantic модели для поля схемы"""
    field_name = clean_parameter_name(name)
    if (
        field_name in _MODEL_RESERVED
        or field_name in _ANNOTATION_NAMES
        or field_name.startswith("model_")
    ):
        field_name = f"{field_name}_"
    return field_name


def clean_enum_attribute_name(value) -> str:
    """Очистка значения enum для использования как имя атрибута Python"""
    value = str(value)
    if not value:
        return "EMPTY"
    if value.isspace():
        return "SPACE"

    name = "".join(c.upper() if c.isalnum() else "_" for c in value)
    name = re.sub("_+", "_", name).strip("_")

    if name and name[0].isdigit():
        name = f"VALUE_{name}"
    if not name:
        return "VALUE"
    if len(name) > 50:
        name = name[:47] + "_LONG"

    return name


def clean_type_name(name: str) -> str:
    """Имя класса/алиаса для схемы"""
    clean = pascal_case(name)
    if not clean:
        return "Model"
    if clean[0].isdigit():
        clean = f"Model{clean}"
    if clean in RESERVED_TYPE_NAMES or keyword.iskeyword(clean):
        clean = f"{clean}Model"
    return clean
