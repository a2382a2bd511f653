"""
Декораторы поверх любого объекта с методом invoke
"""

import logging
import time
from typing import Any, Dict, Mapping, Optional, Tuple

from .dispatcher import FullResponse

logger = logging.getLogger(__name__)


class LoggingDispatcher:
    """Логирует начало, конец и ошибки каждого вызова"""

    def __init__(self, target, log: Optional[logging.Logger] = None):
        self._target = target
        self._logger = log or logger

    def __getattr__(self, name: str) -> Any:
        return getattr(self._target, name)

    async def invoke(
        self,
        operation_id: str,
        args: Optional[Mapping[str, Any]] = None,
        *,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        started = time.monotonic()
        self._logger.info(f"Calling {operation_id}")
        try:
            result = await self._target.invoke(operation_id, args, headers=headers)
        except Exception as exc:
            duration = (time.monotonic() - started) * 1000
            self._logger.error(f"Call {operation_id} failed after {duration:.1f} ms: {exc}")
            raise
        duration = (time.monotonic() - started) * 1000
        self._logger.info(f"Call {operation_id} finished in {duration:.1f} ms")
        return result


class CachingDispatcher:
    """Кэш успешных результатов GET операций с ограниченным временем жизни"""

    def __init__(self, target, ttl: float = 60.0):
        self._target = target
        self.ttl = ttl
        self._cache: Dict[Tuple[str, str, str], Tuple[float, Any]] = {}

    def __getattr__(self, name: str) -> Any:
        return getattr(self._target, name)

    def _is_cacheable(self, operation_id: str) -> bool:
        route = self._target.routes.get(operation_id)
        return route is not None and route.method == "GET"

    @staticmethod
    def _is_success(result: Any) -> bool:
        if isinstance(result, FullResponse):
            return 200 <= result.status_code < 300
        return True

    @staticmethod
    def _key(
        operation_id: str,
        args: Optional[Mapping[str, Any]],
        headers: Optional[Mapping[str, Any]],
    ) -> Tuple[str, str, str]:
        call_headers = sorted((str(k).lower(), v) for k, v in (headers or {}).items())
        return operation_id, repr(sorted((args or {}).items())), repr(call_headers)

    def _evict_expired(self, now: float) -> None:
        expired = [
            key for key, (stored, _) in self._cache.items() if now - stored >= self.ttl
        ]
        for key in expired:
            del self._cache[key]

    def clear(self) -> None:
        self._cache.clear()

    async def invoke(
        self,
        operation_id: str,
        args: Optional[Mapping[str, Any]] = None,
        *,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        if not self._is_cacheable(operation_id):
            return await self._target.invoke(operation_id, args, headers=headers)

        key = self._key(operation_id, args, headers)
        now = time.monotonic()
        cached = self._cache.get(key)
        if cached is not None:
            if now - cached[0] < self.ttl:
                logger.debug(f"Cache hit for {operation_id}")
                return cached[1]
            del self._cache[key]

        result = await self._target.invoke(operation_id, args, headers=headers)
        if self._is_success(result):
            self._evict_expired(now)
            self._cache[key] = (now, result)
        return result
