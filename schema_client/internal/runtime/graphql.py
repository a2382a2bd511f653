"""
GraphQL pass-through: строка запроса передается серверу как есть
"""

import json
import logging
from collections.abc import Mapping
from typing import Any, Optional

from ...errors import UnexpectedCallFailure
from .dispatcher import Dispatcher, RequestContext
from .headers import header_value
from .transport import HttpRequest
from .validation import is_json, jsonable

logger = logging.getLogger(__name__)


async def execute_graphql(
    dispatcher: Dispatcher,
    query: str,
    variables: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, Any]] = None,
) -> Any:
    """POST {query, variables} на graphql_path, результат - поле data"""
    url = dispatcher.url_for(dispatcher.options.graphql_path)
    context = RequestContext(
        operation_id="graphql",
        method="POST",
        path=dispatcher.options.graphql_path,
        url=url,
        extra=dispatcher.extra,
    )
    request_headers = await dispatcher.resolve_headers(
        context, headers, content_type="application/json"
    )
    payload = {"query": query, "variables": jsonable(dict(variables or {}))}
    request = HttpRequest(
        method="POST",
        url=url,
        headers=request_headers,
        body=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
        options=dict(dispatcher.options.request_options),
    )

    status, response_headers, raw = await dispatcher.send(request)
    content_type = header_value(response_headers, "content-type")

    if not 200 <= status < 300:
        raise UnexpectedCallFailure(
            f"GraphQL request failed with status {status}",
            status_code=status,
            body=raw.decode("utf-8", errors="replace"),
        )

    try:
        if not is_json(content_type):
            raise ValueError(f"unexpected content type {content_type!r}")
        result = json.loads(raw)
    except ValueError as exc:
        raise UnexpectedCallFailure(
            f"GraphQL response is not JSON: {exc}", status_code=status, cause=exc
        ) from exc

    if not isinstance(result, Mapping):
        raise UnexpectedCallFailure(
            "GraphQL response is not an object", status_code=status, body=result
        )

    errors = result.get("errors")
    if errors:
        logger.debug(f"GraphQL returned {len(errors)} error(s)")
        raise UnexpectedCallFailure(
            "GraphQL request returned errors", status_code=status, errors=list(errors)
        )
    return result.get("data")
