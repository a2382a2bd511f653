"""Генератор клиентов и runtime по схемам OpenAPI и GraphQL"""

from .client import ApiClient, build_client
from .config import CONFIG_FILE, ClientOptions, GeneratorConfig
from .errors import (
    AmbiguousSchemaKind,
    ClientError,
    FormDataRequired,
    InvalidContentType,
    InvalidResponseFormat,
    InvalidResponseSchema,
    MissingParamsRequired,
    MissingRequiredParam,
    NameResolutionError,
    OptionsUrlRequired,
    SchemaError,
    SchemaParseError,
    UnexpectedCallFailure,
    UnsupportedSchemaVersion,
    WrongOptionType,
)
from .generator import ApiClientGenerator, generate_client
from .internal.generator import (
    ArtifactKind,
    EmitOptions,
    Flavor,
    GeneratedArtifact,
    ImportStyle,
    parse_type_declarations,
)
from .internal.loader import LoadedSchema, detect_kind, load_schema
from .internal.naming import derive_name, resolve_names
from .internal.parser import normalize
from .internal.runtime.dispatcher import FullResponse, RequestContext
from .internal.runtime.headers import trace_context
from .internal.runtime.middleware import CachingDispatcher, LoggingDispatcher
from .internal.runtime.plugin import register_plugin
from .internal.runtime.transport import AiohttpTransport, FormData, HttpxTransport
from .internal.types.ir import Operation, OperationIR, Route, SchemaKind

__version__ = "0.3.0"

__all__ = [
    "AiohttpTransport",
    "AmbiguousSchemaKind",
    "ApiClient",
    "ApiClientGenerator",
    "ArtifactKind",
    "CONFIG_FILE",
    "CachingDispatcher",
    "ClientError",
    "ClientOptions",
    "EmitOptions",
    "Flavor",
    "FormData",
    "FormDataRequired",
    "FullResponse",
    "GeneratedArtifact",
    "GeneratorConfig",
    "HttpxTransport",
    "ImportStyle",
    "InvalidContentType",
    "InvalidResponseFormat",
    "InvalidResponseSchema",
    "LoadedSchema",
    "LoggingDispatcher",
    "MissingParamsRequired",
    "MissingRequiredParam",
    "NameResolutionError",
    "Operation",
    "OperationIR",
    "OptionsUrlRequired",
    "RequestContext",
    "Route",
    "SchemaError",
    "SchemaKind",
    "SchemaParseError",
    "UnexpectedCallFailure",
    "UnsupportedSchemaVersion",
    "WrongOptionType",
    "build_client",
    "derive_name",
    "detect_kind",
    "generate_client",
    "load_schema",
    "normalize",
    "parse_type_declarations",
    "register_plugin",
    "resolve_names",
    "trace_context",
]
