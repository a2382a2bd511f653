"""
Конфигурация runtime клиента и генератора
"""

import logging
import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Callable, Dict, Literal, Optional

import toml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import WrongOptionType
from .internal.generator import EmitOptions

logger = logging.getLogger(__name__)

CONFIG_FILE = "schema_client.toml"


class ClientOptions(BaseModel):
    """Снимок настроек клиента; неизвестные ключи и неверные типы отклоняются"""

    model_config = ConfigDict(
        extra="forbid", strict=True, frozen=True, arbitrary_types_allowed=True
    )

    url: Optional[str] = None
    path: Optional[str] = None
    headers: Dict[str, str] = {}
    get_headers: Optional[Callable[..., Any]] = None

    full_response: bool = False
    full_request: bool = False
    throw_on_error: bool = False
    validate_response: bool = True

    # Миллисекунды
    body_timeout: Optional[float] = Field(None, gt=0)
    headers_timeout: Optional[float] = Field(None, gt=0)

    query_parser: Optional[Callable[..., str]] = None
    transport: Optional[Any] = None

    retry_timeout_ms: Optional[float] = Field(None, gt=0)
    max_retries: int = Field(3, ge=0)
    retry_delay_ms: float = Field(100, ge=0)

    graphql_path: str = "/graphql"
    schema_kind: Optional[Literal["openapi", "graphql"]] = None
    schema_headers: Dict[str, str] = {}
    request_options: Dict[str, Any] = {}

    def __init__(self, **data):
        try:
            super().__init__(**data)
        except ValidationError as exc:
            error = exc.errors()[0]
            param = ".".join(str(part) for part in error["loc"]) or None
            raise WrongOptionType(
                f"Invalid option {param!r}: {error['msg']}", param=param
            ) from exc

    def replace(self, **changes) -> "ClientOptions":
        """Новый снимок с измененными ключами (с повторной проверкой типов)"""
        return ClientOptions(**{**dict(self), **changes})


@dataclass
class GeneratorConfig:
    """Конфигурация генератора, сохраняемая рядом со сгенерированным клиентом"""

    url: Optional[str] = None
    name: Optional[str] = None
    flavor: str = "plugin"
    full_request: bool = False
    full_response: bool = False
    annotated: bool = True
    import_style: str = "relative"
    props_optional: bool = True
    single_file: bool = False
    kind: Optional[str] = None

    @classmethod
    def from_file(
        cls, config_path: str = CONFIG_FILE, search_dir: Optional[str] = None
    ) -> Optional["GeneratorConfig"]:
        """Загрузка конфигурации из файла"""
        if search_dir and os.path.isdir(search_dir):
            config_in_dir = os.path.join(search_dir, CONFIG_FILE)
            if os.path.exists(config_in_dir):
                config_path = config_in_dir

        if not os.path.exists(config_path):
            return None

        try:
            config_data = toml.load(config_path)
        except (toml.TomlDecodeError, OSError) as exc:
            logger.warning(f"Cannot read {config_path}: {exc}")
            return None

        known = {item.name for item in fields(cls)}
        unknown = sorted(set(config_data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown keys in {config_path}: {', '.join(unknown)}")

        return cls(**{key: value for key, value in config_data.items() if key in known})

    def save_to_file(self, config_path: str = CONFIG_FILE) -> None:
        """Сохранение конфигурации в файл"""
        # toml не умеет None
        config_data = {key: value for key, value in asdict(self).items() if value is not None}

        with open(config_path, "w", encoding="utf-8") as f:
            toml.dump(config_data, f)

    def merge_with(self, **overrides) -> "GeneratorConfig":
        """Объединение с явно переданными значениями (None не перекрывает)"""
        data = asdict(self)
        data.update({key: value for key, value in overrides.items() if value is not None})
        return GeneratorConfig(**data)

    def to_emit_options(self, schema_file: Optional[str] = None) -> EmitOptions:
        return EmitOptions(
            name=self.name,
            flavor=self.flavor,
            full_request=self.full_request,
            full_response=self.full_response,
            import_style=self.import_style,
            annotated=self.annotated,
            props_optional=self.props_optional,
            single_file=self.single_file,
            schema_file=schema_file,
        )
