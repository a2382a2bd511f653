"""
Слияние заголовков и контекст трассировки
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Dict, Iterator, Mapping, Optional, Tuple

TRACE_HEADERS = ("traceparent", "tracestate", "baggage")

_trace_headers: ContextVar[Optional[Dict[str, str]]] = ContextVar(
    "schema_client_trace_headers", default=None
)


def trace_headers_of(headers: Mapping[str, str]) -> Dict[str, str]:
    return {name: value for name, value in headers.items() if name.lower() in TRACE_HEADERS}


@contextmanager
def trace_context(headers: Mapping[str, str]) -> Iterator[Dict[str, str]]:
    """Заголовки трассировки для всех вызовов внутри блока"""
    trace = trace_headers_of(headers)
    token = _trace_headers.set(trace)
    try:
        yield trace
    finally:
        _trace_headers.reset(token)


def current_trace_headers() -> Dict[str, str]:
    return dict(_trace_headers.get() or {})


def header_value(headers: Mapping[str, str], name: str) -> Optional[str]:
    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def merge_headers(*layers: Optional[Mapping[str, object]]) -> Dict[str, str]:
    """Слияние без учета регистра: поздний слой перекрывает ранний, None удаляет"""
    merged: Dict[str, Tuple[str, str]] = {}
    for layer in layers:
        if not layer:
            continue
        for name, value in layer.items():
            if value is None:
                merged.pop(name.lower(), None)
            else:
                merged[name.lower()] = (name, str(value))
    return dict(merged.values())
