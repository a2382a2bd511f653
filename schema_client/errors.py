"""
Иерархия ошибок генератора и runtime клиента
"""

from typing import Any, Dict, Optional

CODE_PREFIX = "SCHEMA_CLIENT_"


class ClientError(Exception):
    """Базовая ошибка runtime клиента"""

    code = CODE_PREFIX + "ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None, **context):
        self.message = message
        self.status_code = status_code
        self.context: Dict[str, Any] = context

        for key, value in context.items():
            setattr(self, key, value)

        super().__init__(f"[{self.code}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Сериализуемое представление ошибки"""
        data = {"code": self.code, "message": self.message}
        if self.status_code is not None:
            data["status_code"] = self.status_code
        for key, value in self.context.items():
            data[key] = repr(value) if isinstance(value, BaseException) else value
        return data


class OptionsUrlRequired(ClientError):
    code = CODE_PREFIX + "OPTIONS_URL_REQUIRED"

    def __init__(self, message: str = "A base url is required to build a client"):
        super().__init__(message)


class WrongOptionType(ClientError):
    code = CODE_PREFIX + "WRONG_OPTION_TYPE"


class MissingParamsRequired(ClientError):
    code = CODE_PREFIX + "MISSING_PARAMS_REQUIRED"


MissingRequiredParam = MissingParamsRequired


class FormDataRequired(ClientError):
    code = CODE_PREFIX + "FORM_DATA_REQUIRED"


class InvalidResponseSchema(ClientError):
    code = CODE_PREFIX + "INVALID_RESPONSE_SCHEMA"


class InvalidContentType(ClientError):
    code = CODE_PREFIX + "INVALID_CONTENT_TYPE"


class InvalidResponseFormat(ClientError):
    code = CODE_PREFIX + "INVALID_RESPONSE_FORMAT"


class UnexpectedCallFailure(ClientError):
    code = CODE_PREFIX + "UNEXPECTED_CALL_FAILURE"


# Ошибки, которые никогда не повторяются политикой retry
CALLER_ERRORS = (
    OptionsUrlRequired,
    WrongOptionType,
    MissingParamsRequired,
    FormDataRequired,
    InvalidResponseSchema,
    InvalidContentType,
    InvalidResponseFormat,
)


class SchemaError(Exception):
    """Ошибка загрузки или нормализации схемы"""

    code = CODE_PREFIX + "SCHEMA_ERROR"

    def __init__(self, message: str, source: Optional[str] = None):
        self.message = message
        self.source = source
        super().__init__(f"[{self.code}] {message}")


class SchemaParseError(SchemaError):
    code = CODE_PREFIX + "SCHEMA_PARSE_FAILURE"


class UnsupportedSchemaVersion(SchemaError):
    code = CODE_PREFIX + "SCHEMA_UNSUPPORTED_VERSION"


class AmbiguousSchemaKind(SchemaError):
    code = CODE_PREFIX + "SCHEMA_AMBIGUOUS_KIND"


class NameResolutionError(Exception):
    """Не удалось получить уникальные имена операций"""

    code = CODE_PREFIX + "NAME_UNRESOLVABLE"

    def __init__(self, message: str, names: Optional[list] = None):
        self.message = message
        self.names = names or []
        super().__init__(f"[{self.code}] {message}")
