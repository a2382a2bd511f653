"""
Кодирование query строки по умолчанию
"""

from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional, Tuple
from urllib.parse import quote, urlencode


def scalar(value: Any) -> str:
    """Строковое представление значения параметра"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return scalar(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def encode_query(
    query: Mapping[str, Any], explode: Optional[Mapping[str, bool]] = None
) -> str:
    """Массивы - повтор ключа (через запятую при explode=false), объекты - key[sub]"""
    pairs: List[Tuple[str, str]] = []
    for key, value in query.items():
        if value is None:
            continue

        if isinstance(value, Mapping):
            for sub_key, item in value.items():
                if item is not None:
                    pairs.append((f"{key}[{sub_key}]", scalar(item)))
        elif isinstance(value, (list, tuple)):
            if explode is not None and not explode.get(key, True):
                pairs.append((key, ",".join(scalar(item) for item in value)))
            else:
                pairs.extend((key, scalar(item)) for item in value)
        else:
            pairs.append((key, scalar(value)))

    return urlencode(pairs, quote_via=quote)
