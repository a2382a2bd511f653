"""
Выполнение операций: привязка аргументов, заголовки, отправка, проверка ответа
"""

import asyncio
import inspect
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

from ...errors import (
    CALLER_ERRORS,
    FormDataRequired,
    InvalidContentType,
    InvalidResponseFormat,
    InvalidResponseSchema,
    MissingParamsRequired,
    UnexpectedCallFailure,
    WrongOptionType,
)
from ..types.ir import BodyKind, Operation, OperationIR, ParamLocation
from ..types.type_ref import canonical
from .headers import current_trace_headers, header_value, merge_headers
from .query import encode_query, scalar
from .transport import FormData, HttpRequest
from .validation import (
    check_argument,
    check_value,
    decode_body,
    is_json,
    jsonable,
    match_content_type,
    match_response,
)

logger = logging.getLogger(__name__)

_FULL_REQUEST_KEYS = ("path", "query", "headers", "cookies", "body")

_GROUPS = {
    ParamLocation.PATH: "path",
    ParamLocation.QUERY: "query",
    ParamLocation.HEADER: "headers",
    ParamLocation.COOKIE: "cookies",
}


@dataclass
class FullResponse:
    status_code: int
    headers: Dict[str, str]
    body: Any


@dataclass(frozen=True)
class RequestContext:
    """Передается в провайдер заголовков"""

    operation_id: str
    method: str
    path: str
    url: str
    extra: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class BoundArguments:
    values: Dict[ParamLocation, Dict[str, Any]] = field(
        default_factory=lambda: {location: {} for location in _GROUPS}
    )
    body: Any = None


def _seconds(milliseconds: Optional[float]) -> Optional[float]:
    return None if milliseconds is None else milliseconds / 1000


def _text(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(scalar(item) for item in value)
    return scalar(value)


class Dispatcher:
    """Один снимок настроек на все время вызова"""

    def __init__(
        self,
        ir: OperationIR,
        options,
        transport,
        base_url: str,
        extra: Optional[Mapping[str, Any]] = None,
    ):
        self.ir = ir
        self.options = options
        self.transport = transport
        self.base_url = base_url
        self.extra: Mapping[str, Any] = dict(extra or {})

    def url_for(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    async def invoke(
        self,
        operation_id: str,
        args: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        operation = self.ir.get(operation_id)
        if operation is None:
            raise WrongOptionType(
                f"Unknown operation {operation_id!r}", param="operation_id"
            )

        bound = self.bind(operation, args or {})
        request = await self.build_request(operation, bound, headers)
        status, response_headers, raw = await self.send(request)
        return self.handle_response(operation, status, response_headers, raw)

    # Привязка аргументов

    def bind(self, operation: Operation, args: Mapping[str, Any]) -> BoundArguments:
        if not isinstance(args, Mapping):
            raise WrongOptionType("Call arguments must be a mapping", param="args")

        if self.options.full_request:
            bound = self._bind_grouped(operation, args)
        else:
            bound = self._bind_flat(operation, args)

        for param in operation.parameters:
            value = bound.values[param.location].get(param.name)
            if value is None:
                if param.required:
                    raise MissingParamsRequired(
                        f"Missing required parameter {param.name!r}", param=param.name
                    )
                continue
            problem = check_argument(self.ir.types, param.type, value, param.name)
            if problem:
                raise WrongOptionType(
                    f"Invalid value for parameter {param.name!r}: {problem}",
                    param=param.name,
                )

        self._check_body(operation, bound.body)
        return bound

    def _bind_flat(self, operation: Operation, args: Mapping[str, Any]) -> BoundArguments:
        bound = BoundArguments()
        rest: Dict[str, Any] = {}
        for key, value in args.items():
            param = operation.parameter(key)
            if param is not None:
                bound.values[param.location][key] = value
            else:
                rest[key] = value

        if "body" in rest:
            bound.body = rest.pop("body")
            if rest:
                key = next(iter(rest))
                raise WrongOptionType(f"Unknown argument {key!r}", param=key)
        elif rest:
            if operation.request_body is None:
                key = next(iter(rest))
                raise WrongOptionType(f"Unknown argument {key!r}", param=key)
            bound.body = rest
        return bound

    def _bind_grouped(self, operation: Operation, args: Mapping[str, Any]) -> BoundArguments:
        for key in args:
            if key not in _FULL_REQUEST_KEYS:
                raise WrongOptionType(f"Unknown request key {key!r}", param=key)

        bound = BoundArguments(body=args.get("body"))
        for location, group in _GROUPS.items():
            values = args.get(group) or {}
            if not isinstance(values, Mapping):
                raise WrongOptionType(f"{group!r} must be a mapping", param=group)
            bound.values[location].update(values)
        return bound

    def _check_body(self, operation: Operation, body: Any) -> None:
        if body is None:
            if operation.body_required:
                raise MissingParamsRequired("Missing required request body", param="body")
            return

        if operation.request_body is None:
            raise WrongOptionType(
                f"Operation {operation.id!r} does not accept a body", param="body"
            )

        if operation.body_kind == BodyKind.MULTIPART:
            if not isinstance(body, FormData):
                raise FormDataRequired(
                    f"Operation {operation.id!r} expects FormData body", param="body"
                )
        elif operation.body_kind == BodyKind.JSON:
            problem = check_value(
                self.ir.types, operation.request_body, jsonable(body), "body"
            )
            if problem:
                raise WrongOptionType(f"Invalid request body: {problem}", param="body")
        elif not isinstance(body, (Mapping, str, bytes, bytearray)):
            raise WrongOptionType(
                "Request body must be a mapping, str or bytes", param="body"
            )

    # Сборка запроса

    def _render_path(self, operation: Operation, values: Mapping[str, Any]) -> str:
        path = operation.path
        for name, value in values.items():
            path = path.replace("{" + name + "}", quote(_text(value), safe=""))
        return path

    def _query_string(self, operation: Operation, query: Mapping[str, Any]) -> str:
        query = {key: value for key, value in query.items() if value is not None}
        if not query:
            return ""
        if self.options.query_parser is not None:
            return self.options.query_parser(jsonable(query)).lstrip("?")

        explode = {param.name: param.explode for param in operation.parameters_in(ParamLocation.QUERY)}
        return encode_query(query, explode)

    def _encode_body(self, operation: Operation, body: Any) -> Tuple[Any, Optional[str]]:
        if body is None:
            return None, None
        if operation.body_kind == BodyKind.MULTIPART:
            # Граница multipart выставляется транспортом
            return body, None
        if operation.body_kind == BodyKind.JSON:
            payload = json.dumps(jsonable(body), ensure_ascii=False).encode("utf-8")
            return payload, operation.request_content_type or "application/json"

        content_type = operation.request_content_type
        if isinstance(body, Mapping):
            return encode_query(body).encode("utf-8"), content_type or "application/x-www-form-urlencoded"
        if isinstance(body, str):
            return body.encode("utf-8"), content_type or "text/plain"
        return bytes(body), content_type or "application/octet-stream"

    async def build_request(
        self,
        operation: Operation,
        bound: BoundArguments,
        call_headers: Optional[Mapping[str, Any]] = None,
    ) -> HttpRequest:
        path = self._render_path(operation, bound.values[ParamLocation.PATH])
        url = self.url_for(path)
        query = self._query_string(operation, bound.values[ParamLocation.QUERY])
        if query:
            url = f"{url}?{query}"

        param_headers = {
            name: _text(value)
            for name, value in bound.values[ParamLocation.HEADER].items()
            if value is not None
        }
        cookies = [
            f"{name}={quote(_text(value), safe='')}"
            for name, value in bound.values[ParamLocation.COOKIE].items()
            if value is not None
        ]
        if cookies:
            param_headers["Cookie"] = "; ".join(cookies)

        body, content_type = self._encode_body(operation, bound.body)
        context = RequestContext(
            operation_id=operation.id,
            method=operation.method.upper(),
            path=path,
            url=url,
            extra=self.extra,
        )
        headers = await self.resolve_headers(
            context, call_headers, content_type=content_type, param_headers=param_headers
        )
        return HttpRequest(
            method=context.method,
            url=url,
            headers=headers,
            body=body,
            options=dict(self.options.request_options),
        )

    async def resolve_headers(
        self,
        context: RequestContext,
        call_headers: Optional[Mapping[str, Any]] = None,
        content_type: Optional[str] = None,
        param_headers: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, str]:
        """Транспорт < content-type < options.headers < trace+провайдер < параметры < вызов"""
        provided = await self._provided_headers(context)
        dynamic = merge_headers(current_trace_headers(), provided)
        return merge_headers(
            getattr(self.transport, "default_headers", None),
            {"Content-Type": content_type} if content_type else None,
            self.options.headers,
            dynamic,
            param_headers,
            call_headers,
        )

    async def _provided_headers(self, context: RequestContext) -> Optional[Mapping[str, Any]]:
        provider = self.options.get_headers
        if provider is None:
            return None

        try:
            result = provider(context)
            if inspect.isawaitable(result):
                result = await asyncio.wait_for(
                    result, _seconds(self.options.headers_timeout)
                )
        except asyncio.TimeoutError as exc:
            raise UnexpectedCallFailure("Header provider timed out", cause=exc) from exc
        except Exception as exc:
            logger.error(f"Header provider failed: {exc}")
            raise UnexpectedCallFailure(f"Header provider failed: {exc}", cause=exc) from exc

        if result is not None and not isinstance(result, Mapping):
            raise UnexpectedCallFailure(
                "Header provider must return a mapping", cause=TypeError(type(result).__name__)
            )
        return result

    # Отправка

    async def round_trip(self, request: HttpRequest) -> Tuple[int, Dict[str, str], bytes]:
        """Один обмен с транспортом; ошибки и таймауты -> UnexpectedCallFailure"""
        logger.debug(f"Making {request.method} request to {request.url}")
        try:
            response = await asyncio.wait_for(
                self.transport.send(request), _seconds(self.options.headers_timeout)
            )
        except asyncio.TimeoutError as exc:
            raise UnexpectedCallFailure(
                f"Timed out waiting for response headers from {request.url}", cause=exc
            ) from exc
        except CALLER_ERRORS:
            raise
        except Exception as exc:
            raise UnexpectedCallFailure(
                f"{request.method} {request.url} failed: {exc}", cause=exc
            ) from exc

        try:
            raw = await asyncio.wait_for(
                response.read(), _seconds(self.options.body_timeout)
            )
        except asyncio.TimeoutError as exc:
            raise UnexpectedCallFailure(
                f"Timed out reading response body from {request.url}",
                status_code=response.status,
                cause=exc,
            ) from exc
        except Exception as exc:
            raise UnexpectedCallFailure(
                f"Cannot read response body from {request.url}: {exc}",
                status_code=response.status,
                cause=exc,
            ) from exc
        finally:
            await response.release()

        logger.debug(f"Response status: {response.status}")
        return response.status, dict(response.headers.items()), raw

    def _may_retry(self, attempt: int, deadline: float, delay: float) -> bool:
        loop = asyncio.get_running_loop()
        return attempt <= self.options.max_retries and loop.time() + delay < deadline

    async def send(self, request: HttpRequest) -> Tuple[int, Dict[str, str], bytes]:
        """round_trip с повторами на ошибках транспорта и 5xx"""
        if self.options.retry_timeout_ms is None:
            return await self.round_trip(request)

        deadline = asyncio.get_running_loop().time() + self.options.retry_timeout_ms / 1000
        delay = self.options.retry_delay_ms / 1000
        attempt = 0

        while True:
            attempt += 1
            try:
                result = await self.round_trip(request)
            except UnexpectedCallFailure as exc:
                if not self._may_retry(attempt, deadline, delay):
                    logger.error(f"Request failed after {attempt} attempt(s): {exc.message}")
                    raise
                logger.warning(f"Request failed (attempt {attempt}): {exc.message}")
            else:
                if result[0] < 500 or not self._may_retry(attempt, deadline, delay):
                    return result
                logger.warning(f"Server error {result[0]} (attempt {attempt}), retrying")

            await asyncio.sleep(delay)

    # Ответ

    @staticmethod
    def _lenient_body(content_type: Optional[str], raw: bytes) -> Any:
        try:
            return decode_body(content_type, raw)
        except ValueError:
            return raw.decode("utf-8", errors="replace")

    def handle_response(
        self,
        operation: Operation,
        status: int,
        headers: Dict[str, str],
        raw: bytes,
    ) -> Any:
        content_type = header_value(headers, "content-type")

        if self.options.throw_on_error and status >= 400:
            body = self._lenient_body(content_type, raw)
            raise UnexpectedCallFailure(
                f"{operation.method.upper()} {operation.path} failed with status {status}",
                status_code=status,
                body=body,
            )

        if self.options.validate_response:
            body = self._validated_body(operation, status, content_type, raw)
        else:
            body = self._lenient_body(content_type, raw)

        if status >= 400 or self.options.full_response:
            return FullResponse(status_code=status, headers=headers, body=body)
        return body

    def _validated_body(
        self, operation: Operation, status: int, content_type: Optional[str], raw: bytes
    ) -> Any:
        spec = match_response(operation, status)
        if spec is None:
            raise InvalidResponseSchema(
                f"Status {status} is not declared for operation {operation.id!r}",
                status_code=status,
            )

        if not raw or not spec.content:
            return self._lenient_body(content_type, raw)

        declared = match_content_type(spec.content, content_type)
        if declared is None:
            raise InvalidContentType(
                f"Unexpected content type {content_type!r} for operation {operation.id!r}",
                status_code=status,
                content_type=content_type,
                expected=sorted(spec.content),
            )

        try:
            body = decode_body(content_type, raw)
        except ValueError as exc:
            raise InvalidResponseFormat(
                f"Response body of {operation.id!r} is not valid JSON",
                status_code=status,
                actual_data=raw.decode("utf-8", errors="replace"),
            ) from exc

        if is_json(content_type):
            expected = spec.content[declared]
            problem = check_value(self.ir.types, expected, body)
            if problem:
                raise InvalidResponseFormat(
                    f"Response of {operation.id!r} does not match schema: {problem}",
                    status_code=status,
                    expected_schema=canonical(expected),
                    actual_data=body,
                )
        return body
