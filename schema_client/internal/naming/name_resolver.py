"""
Вывод уникальных идентификаторов операций

Примеры:
  GET    /movies                    -> getMovies
  GET    /movies/{id}/quotes        -> getMoviesIdQuotes
  POST   /movies                    -> createMovies
  POST   /users/login               -> loginUsers
  POST   /jobs/{id}:cancel          -> cancelJobsId
  PUT    /movies/{id}               -> updateMoviesId
  DELETE /movies/{id}               -> deleteMoviesId
"""

import keyword
import logging
import re
from collections import defaultdict
from typing import Dict, List, Optional

from ...errors import NameResolutionError
from ..types.ir import Operation
from ..utils import snake_case, split_words, title_word

logger = logging.getLogger(__name__)

_METHOD_VERBS: Dict[str, str] = {
    "get": "get",
    "post": "create",
    "put": "update",
    "patch": "update",
    "delete": "delete",
}

# Сегменты, которые обозначают действие, а не ресурс
ACTION_SEGMENTS = {
    "accept",
    "activate",
    "approve",
    "archive",
    "authenticate",
    "authorize",
    "cancel",
    "check",
    "clone",
    "close",
    "confirm",
    "convert",
    "copy",
    "deactivate",
    "decline",
    "disable",
    "enable",
    "execute",
    "export",
    "import",
    "invite",
    "lock",
    "login",
    "logout",
    "merge",
    "move",
    "open",
    "preview",
    "publish",
    "refresh",
    "register",
    "reject",
    "render",
    "reset",
    "restore",
    "retry",
    "run",
    "search",
    "send",
    "signin",
    "signout",
    "signup",
    "start",
    "stop",
    "submit",
    "subscribe",
    "sync",
    "trigger",
    "unlock",
    "unpublish",
    "unsubscribe",
    "upload",
    "validate",
    "verify",
}

_TEMPLATE = re.compile(r"^\{([^}]+)\}$")


def path_segments(path: str) -> List[str]:
    return [segment for segment in path.strip("/").split("/") if segment]


def _segment_words(segment: str) -> str:
    """{quoteId} -> QuoteId, user-profiles -> UserProfiles"""
    return "".join(title_word(word) for word in split_words(segment))


def _action_of(segments: List[str]) -> Optional[str]:
    """Действие в конце пути: /users/login или /jobs/{id}:cancel"""
    if not segments:
        return None

    last = segments[-1]
    if ":" in last:
        action = last.rsplit(":", 1)[1]
        return action or None
    if _TEMPLATE.match(last):
        return None
    if last.lower() in ACTION_SEGMENTS and len(segments) > 1:
        return last
    return None


def derive_name(method: str, path: str) -> str:
    """Имя операции из HTTP метода и шаблона пути"""
    method = method.lower()
    segments = path_segments(path)
    verb = _METHOD_VERBS.get(method, method)

    if method == "post":
        action = _action_of(segments)
        if action is not None:
            words = split_words(action)
            verb = words[0].lower() + "".join(title_word(w) for w in words[1:])
            last = segments[-1]
            if ":" in last:
                segments = segments[:-1] + [last.rsplit(":", 1)[0]]
            else:
                segments = segments[:-1]

    return verb + "".join(_segment_words(segment) for segment in segments)


def _disambiguation_suffix(operation: Operation, others: List[Operation]) -> str:
    """Суффикс из первого сегмента пути, отличающего операцию от остальных"""
    segments = path_segments(operation.path)
    other_paths = [path_segments(other.path) for other in others]

    for index, segment in enumerate(segments):
        if all(
            index >= len(other) or other[index] != segment for other in other_paths
        ):
            match = _TEMPLATE.match(segment)
            if match:
                return "By" + _segment_words(match.group(1))
            return _segment_words(segment)
    return ""


def resolve_names(operations: List[Operation]) -> None:
    """Назначение уникальных id и python-имен всем операциям

    Явный operationId используется без изменений. Коллизии выведенных имен
    разрешаются суффиксом из отличающегося сегмента пути; если это не помогло -
    NameResolutionError.
    """
    for operation in operations:
        if not operation.explicit_id:
            operation.id = derive_name(operation.method, operation.path)

    groups: Dict[str, List[Operation]] = defaultdict(list)
    for operation in operations:
        groups[operation.id].append(operation)

    renamed: Dict[int, str] = {}
    for name, group in groups.items():
        if len(group) < 2:
            continue

        explicit = [operation for operation in group if operation.explicit_id]
        if len(explicit) > 1:
            raise NameResolutionError(
                f"Duplicate operationId {name!r}",
                names=[name],
            )

        for operation in group:
            if operation.explicit_id:
                continue
            others = [other for other in group if other is not operation]
            suffix = _disambiguation_suffix(operation, others)
            if not suffix:
                raise NameResolutionError(
                    f"Cannot disambiguate operation name {name!r} "
                    f"for {operation.method.upper()} {operation.path}",
                    names=[name],
                )
            renamed[id(operation)] = name + suffix

    for operation in operations:
        if id(operation) in renamed:
            logger.debug(
                f"Operation {operation.method.upper()} {operation.path} "
                f"renamed to {renamed[id(operation)]}"
            )
            operation.id = renamed[id(operation)]

    _check_unique(operations, lambda operation: operation.id, "operation id")

    for operation in operations:
        operation.python_name = _python_name(operation)

    _check_unique(operations, lambda operation: operation.python_name, "method name")


def _check_unique(operations: List[Operation], key, label: str) -> None:
    seen: Dict[str, Operation] = {}
    for operation in operations:
        value = key(operation)
        if value in seen:
            first = seen[value]
            raise NameResolutionError(
                f"Unresolvable {label} {value!r}: "
                f"{first.method.upper()} {first.path} and "
                f"{operation.method.upper()} {operation.path}",
                names=[value],
            )
        seen[value] = operation


def _python_name(operation: Operation) -> str:
    name = snake_case(operation.id) or operation.method.lower()
    if name[0].isdigit():
        name = f"op_{name}"
    if keyword.iskeyword(name):
        name = f"{name}_"
    return name
