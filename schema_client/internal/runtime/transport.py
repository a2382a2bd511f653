"""
Транспорты: отправка одного HTTP запроса и чтение одного ответа
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, NamedTuple, Optional, Union

import aiohttp
import httpx
from aiohttp import ClientResponse, ClientSession, TCPConnector

logger = logging.getLogger(__name__)


class FormField(NamedTuple):
    name: str
    value: Any
    filename: Optional[str] = None
    content_type: Optional[str] = None


class FormData:
    """Тело multipart/form-data, независимое от транспорта"""

    def __init__(self, fields: Optional[Mapping[str, Any]] = None):
        self._fields: List[FormField] = []
        for name, value in (fields or {}).items():
            self.add_field(name, value)

    def add_field(
        self,
        name: str,
        value: Any,
        *,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> "FormData":
        self._fields.append(FormField(name, value, filename, content_type))
        return self

    def __iter__(self) -> Iterator[FormField]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"FormData({[item.name for item in self._fields]!r})"

    @staticmethod
    def _text(value: Any) -> Any:
        if isinstance(value, (str, bytes, bytearray)) or hasattr(value, "read"):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def to_aiohttp(self) -> aiohttp.FormData:
        form_data = aiohttp.FormData(default_to_multipart=True)
        for item in self._fields:
            form_data.add_field(
                item.name,
                self._text(item.value),
                filename=item.filename,
                content_type=item.content_type,
            )
        return form_data

    def to_httpx(self) -> List[Any]:
        """Аргумент files для httpx; текстовые поля - части без filename"""
        files = []
        for item in self._fields:
            part = (item.filename, self._text(item.value))
            if item.content_type:
                part += (item.content_type,)
            files.append((item.name, part))
        return files


@dataclass
class HttpRequest:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Union[bytes, FormData, None] = None
    options: Dict[str, Any] = field(default_factory=dict)


class ConnectionPool:
    """Пул соединений для эффективного управления ресурсами"""

    def __init__(self, max_connections: int = 100, max_connections_per_host: int = 10):
        self.max_connections = max_connections
        self.max_connections_per_host = max_connections_per_host
        self._connector: Optional[TCPConnector] = None

    def get_connector(self) -> TCPConnector:
        if self._connector is None or self._connector.closed:
            self._connector = TCPConnector(
                limit=self.max_connections,
                limit_per_host=self.max_connections_per_host,
                ttl_dns_cache=30,
                use_dns_cache=True,
                keepalive_timeout=60,
            )
        return self._connector

    async def close(self):
        if self._connector and not self._connector.closed:
            await self._connector.close()


class AiohttpResponse:
    def __init__(self, response: ClientResponse):
        self.status = response.status
        self.headers = response.headers
        self._response = response
        self._content: Optional[bytes] = None

    async def read(self) -> bytes:
        if self._content is None:
            self._content = await self._response.read()
        return self._content

    async def release(self) -> None:
        await self._response.release()


class AiohttpTransport:
    """Транспорт по умолчанию на базе aiohttp с connection pooling"""

    def __init__(
        self,
        default_headers: Optional[Dict[str, str]] = None,
        max_connections: int = 100,
        max_connections_per_host: int = 10,
    ):
        self.default_headers: Dict[str, str] = dict(default_headers or {})
        self._connection_pool = ConnectionPool(max_connections, max_connections_per_host)
        self._session: Optional[ClientSession] = None
        self._session_lock = asyncio.Lock()

    async def _ensure_session(self) -> ClientSession:
        # Быстрая проверка без блокировки
        if self._session is not None and not self._session.closed:
            return self._session

        async with self._session_lock:
            if self._session is None or self._session.closed:
                self._session = ClientSession(
                    connector=self._connection_pool.get_connector(),
                    connector_owner=False,
                    trust_env=True,  # Использовать системные прокси
                )
        return self._session

    async def send(self, request: HttpRequest) -> AiohttpResponse:
        session = await self._ensure_session()

        data = request.body
        if isinstance(data, FormData):
            data = data.to_aiohttp()

        logger.debug(f"Making {request.method} request to {request.url}")
        response = await session.request(
            request.method,
            request.url,
            headers=request.headers,
            data=data,
            **request.options,
        )
        logger.debug(f"Response status: {response.status}")
        return AiohttpResponse(response)

    async def close(self) -> None:
        """Закрытие сессии и освобождение соединений"""
        async with self._session_lock:
            if self._session and not self._session.closed:
                await self._session.close()
            self._session = None

        await self._connection_pool.close()


class HttpxResponse:
    def __init__(self, response: httpx.Response):
        self.status = response.status_code
        self.headers = response.headers
        self._response = response

    async def read(self) -> bytes:
        return await self._response.aread()

    async def release(self) -> None:
        await self._response.aclose()


class HttpxTransport:
    """Транспорт на базе httpx.AsyncClient (в тестах - с httpx.MockTransport)"""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        default_headers: Optional[Dict[str, str]] = None,
        **client_options,
    ):
        self.default_headers: Dict[str, str] = dict(default_headers or {})
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(**client_options)

    async def send(self, request: HttpRequest) -> HttpxResponse:
        options = dict(request.options)
        if isinstance(request.body, FormData):
            options["files"] = request.body.to_httpx()
        else:
            options["content"] = request.body

        logger.debug(f"Making {request.method} request to {request.url}")
        built = self._client.build_request(
            request.method, request.url, headers=request.headers, **options
        )
        response = await self._client.send(built, stream=True)
        logger.debug(f"Response status: {response.status_code}")
        return HttpxResponse(response)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
