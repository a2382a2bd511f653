"""
Runtime клиент: одна асинхронная функция на каждую операцию схемы
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional, Union

from .config import ClientOptions
from .errors import OptionsUrlRequired, WrongOptionType
from .internal.loader import load_schema
from .internal.parser import normalize, pass_through_ir
from .internal.runtime.dispatcher import Dispatcher, FullResponse, RequestContext
from .internal.runtime.graphql import execute_graphql
from .internal.runtime.transport import AiohttpTransport, FormData
from .internal.types.ir import Operation, OperationIR, SchemaKind
from .internal.utils import snake_case

logger = logging.getLogger(__name__)


class _ClientState:
    """Изменяемое состояние, общее для клиента и всех его представлений"""

    def __init__(self, options: ClientOptions, base_url: str):
        self.options = options
        self.base_url = base_url


def _base_url(options: ClientOptions, ir: OperationIR) -> str:
    if options.url:
        return options.url
    for server in ir.servers:
        if server.startswith(("http://", "https://")):
            return server
    raise OptionsUrlRequired()


class ApiClient:
    """
    Клиент над OperationIR.

    IR не копируется и не изменяется. Каждый вызов берет снимок настроек
    в момент начала; мутаторы заменяют снимок целиком.
    """

    def __init__(
        self,
        options: ClientOptions,
        ir: OperationIR,
        transport=None,
        context: Optional[Mapping[str, Any]] = None,
    ):
        if not isinstance(options, ClientOptions):
            raise WrongOptionType("options must be ClientOptions", param="options")

        self._ir = ir
        self._state = _ClientState(options, _base_url(options, ir))
        self._transport = transport or options.transport or AiohttpTransport()
        self._context: Dict[str, Any] = dict(context or {})
        self._attach_operations()

    def _attach_operations(self) -> None:
        if self._ir.kind == SchemaKind.GRAPHQL:
            return

        for operation in self._ir.operations:
            name = operation.python_name or snake_case(operation.id)
            if hasattr(ApiClient, name):
                name += "_"
            setattr(self, name, self._operation_method(operation))

    def _operation_method(self, operation: Operation):
        operation_id = operation.id

        async def call(args: Optional[Mapping[str, Any]] = None, *, headers=None, **kwargs):
            values = dict(args or {})
            values.update(kwargs)
            return await self.invoke(operation_id, values, headers=headers)

        call.__name__ = operation.python_name or operation_id
        call.__doc__ = operation.summary or f"{operation.method.upper()} {operation.path}"
        return call

    @property
    def options(self) -> ClientOptions:
        return self._state.options

    @property
    def base_url(self) -> str:
        return self._state.base_url

    @property
    def ir(self) -> OperationIR:
        return self._ir

    @property
    def routes(self):
        """id операции -> Route(path, method), только чтение"""
        return self._ir.routes()

    @property
    def context(self) -> Mapping[str, Any]:
        return dict(self._context)

    def set_base_url(self, url: str) -> None:
        self._state.options = self._state.options.replace(url=url)
        self._state.base_url = url

    def set_default_headers(self, headers: Mapping[str, str]) -> None:
        self._state.options = self._state.options.replace(headers=dict(headers))

    def set_default_request_options(self, request_options: Mapping[str, Any]) -> None:
        self._state.options = self._state.options.replace(
            request_options=dict(request_options)
        )

    def _dispatcher(self) -> Dispatcher:
        state = self._state
        return Dispatcher(
            self._ir, state.options, self._transport, state.base_url, self._context
        )

    async def invoke(
        self,
        operation_id: str,
        args: Optional[Mapping[str, Any]] = None,
        *,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return await self._dispatcher().invoke(operation_id, args, headers)

    async def graphql(
        self,
        query: str,
        variables: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return await execute_graphql(self._dispatcher(), query, variables, headers)

    def with_context(self, **extra) -> "ApiClient":
        """Представление с общими настройками, IR и транспортом"""
        view = ApiClient.__new__(ApiClient)
        view._ir = self._ir
        view._state = self._state
        view._transport = self._transport
        view._context = {**self._context, **extra}
        view._attach_operations()
        return view

    async def close(self) -> None:
        """Закрытие транспорта и освобождение соединений"""
        close = getattr(self._transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def _load_ir(options: ClientOptions) -> OperationIR:
    if options.path:
        loaded = load_schema(
            options.path,
            kind=options.schema_kind,
            headers=dict(options.schema_headers) or None,
        )
        logger.debug(f"Loaded {loaded.kind.value} schema from {loaded.source}")
        return normalize(
            loaded.document,
            loaded.kind,
            source=loaded.source,
            graphql_path=options.graphql_path,
        )

    if options.schema_kind == SchemaKind.GRAPHQL.value:
        return pass_through_ir(options.graphql_path)

    raise WrongOptionType("A schema path is required to build a client", param="path")


def build_client(
    options: Union[ClientOptions, Mapping[str, Any], None] = None,
    ir: Optional[OperationIR] = None,
    *,
    transport=None,
    **option_values,
) -> ApiClient:
    """Клиент по настройкам; схема загружается из options.path, если IR не передан"""
    if options is None:
        options = ClientOptions(**option_values)
    elif isinstance(options, ClientOptions):
        if option_values:
            options = options.replace(**option_values)
    elif isinstance(options, Mapping):
        options = ClientOptions(**{**options, **option_values})
    else:
        raise WrongOptionType("options must be ClientOptions or a mapping", param="options")

    if ir is None:
        ir = _load_ir(options)
    return ApiClient(options, ir, transport=transport)


__all__ = [
    "ApiClient",
    "FormData",
    "FullResponse",
    "RequestContext",
    "build_client",
]
