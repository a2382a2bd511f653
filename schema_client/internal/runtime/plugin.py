"""
Регистрация клиента в aiohttp.web приложении
"""

import logging
from typing import Optional

from aiohttp import web

from ...client import build_client
from ..types.ir import OperationIR
from .headers import trace_context

logger = logging.getLogger(__name__)


def register_plugin(
    app: web.Application,
    name: str,
    options,
    *,
    ir: Optional[OperationIR] = None,
    transport=None,
):
    """
    Клиент доступен в обработчиках как request[name].

    Заголовки traceparent/tracestate/baggage входящего запроса
    передаются во все вызовы, сделанные из обработчика.
    """
    client = build_client(options, ir, transport=transport)

    @web.middleware
    async def client_middleware(request: web.Request, handler):
        with trace_context(request.headers):
            request[name] = client.with_context(request=request)
            return await handler(request)

    async def close_client(_app: web.Application) -> None:
        logger.debug(f"Closing client {name!r}")
        await client.close()

    app.middlewares.append(client_middleware)
    app.on_cleanup.append(close_client)
    logger.debug(f"Registered client {name!r}")
    return client
