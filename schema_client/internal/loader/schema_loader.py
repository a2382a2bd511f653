"""
Загрузка схемы из URL, файла или готового словаря и определение ее вида
"""

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
from urllib.parse import urlparse

import httpx
import yaml

from ...errors import AmbiguousSchemaKind, SchemaParseError
from ..types.ir import SchemaKind

logger = logging.getLogger(__name__)

INTROSPECTION_QUERY = """
query IntrospectionQuery {
  __schema {
    queryType { name }
    mutationType { name }
    subscriptionType { name }
    types { ...FullType }
  }
}

fragment FullType on __Type {
  kind
  name
  description
  fields(includeDeprecated: true) {
    name
    description
    args { ...InputValue }
    type { ...TypeRef }
    isDeprecated
  }
  inputFields { ...InputValue }
  interfaces { ...TypeRef }
  enumValues(includeDeprecated: true) { name }
  possibleTypes { ...TypeRef }
}

fragment InputValue on __InputValue {
  name
  description
  type { ...TypeRef }
  defaultValue
}

fragment TypeRef on __Type {
  kind
  name
  ofType {
    kind
    name
    ofType {
      kind
      name
      ofType {
        kind
        name
        ofType {
          kind
          name
          ofType {
            kind
            name
            ofType {
              kind
              name
            }
          }
        }
      }
    }
  }
}
"""


@dataclass
class LoadedSchema:
    document: Dict[str, Any]
    kind: SchemaKind
    source: Optional[str] = None


def is_url(source: str) -> bool:
    return str(source).startswith(("http://", "https://"))


def parse_document(text: str, source: Optional[str] = None) -> Dict[str, Any]:
    """Разбор текста схемы: JSON, затем YAML"""
    try:
        document = json.loads(text)
    except ValueError:
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise SchemaParseError(f"Malformed schema document: {exc}", source=source)

    if not isinstance(document, dict):
        raise SchemaParseError(
            "Schema document must be a JSON/YAML object", source=source
        )
    return document


def detect_kind(
    document: Mapping[str, Any], override: Union[SchemaKind, str, None] = None
) -> SchemaKind:
    """Определение вида схемы: OpenAPI или GraphQL introspection"""
    if override:
        return SchemaKind(override)

    if "openapi" in document or "swagger" in document:
        return SchemaKind.OPENAPI

    data = document.get("data")
    if "__schema" in document or (isinstance(data, dict) and "__schema" in data):
        return SchemaKind.GRAPHQL

    raise AmbiguousSchemaKind(
        "Cannot detect whether the schema is OpenAPI or GraphQL; pass kind explicitly"
    )


def _is_detectable(document: Mapping[str, Any]) -> bool:
    try:
        detect_kind(document)
    except AmbiguousSchemaKind:
        return False
    return True


def _looks_like_graphql(url: str) -> bool:
    return urlparse(url).path.rstrip("/").endswith("graphql")


def introspect(
    url: str, headers: Optional[Dict[str, str]] = None, timeout: float = 30.0
) -> Dict[str, Any]:
    """Запрос introspection у GraphQL endpoint"""
    logger.debug(f"Introspecting GraphQL schema at {url}")
    try:
        response = httpx.post(
            url,
            json={"query": INTROSPECTION_QUERY},
            headers=headers,
            timeout=timeout,
            follow_redirects=True,
        )
        response.raise_for_status()
        payload = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise SchemaParseError(f"GraphQL introspection failed: {exc}", source=url)

    if not isinstance(payload, dict) or payload.get("errors"):
        raise SchemaParseError(
            f"GraphQL introspection returned errors: {payload!r}", source=url
        )
    return payload


def fetch_document(
    url: str,
    kind: Optional[SchemaKind] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 30.0,
) -> Dict[str, Any]:
    """Загрузка схемы по HTTP"""
    if kind == SchemaKind.GRAPHQL:
        return introspect(url, headers, timeout)

    logger.debug(f"Fetching schema from {url}")
    try:
        response = httpx.get(
            url, headers=headers, timeout=timeout, follow_redirects=True
        )
        response.raise_for_status()
    except httpx.HTTPError as exc:
        if kind is None and _looks_like_graphql(url):
            return introspect(url, headers, timeout)
        raise SchemaParseError(f"Failed to fetch schema: {exc}", source=url)

    try:
        document = parse_document(response.text, url)
    except SchemaParseError:
        if kind is None and _looks_like_graphql(url):
            return introspect(url, headers, timeout)
        raise

    if kind is None and not _is_detectable(document) and _looks_like_graphql(url):
        return introspect(url, headers, timeout)
    return document


def load_schema(
    source: Union[str, os.PathLike, Mapping[str, Any]],
    *,
    kind: Union[SchemaKind, str, None] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 30.0,
) -> LoadedSchema:
    """Загрузка схемы из URL, локального файла или словаря"""
    kind = SchemaKind(kind) if kind else None

    if isinstance(source, Mapping):
        document = dict(source)
        source_name = None
    elif is_url(str(source)):
        source_name = str(source)
        document = fetch_document(source_name, kind, headers, timeout)
    else:
        source_name = os.fspath(source)
        if not os.path.exists(source_name):
            raise SchemaParseError("Schema file not found", source=source_name)
        with open(source_name, "r", encoding="utf-8") as f:
            document = parse_document(f.read(), source_name)

    return LoadedSchema(
        document=document, kind=detect_kind(document, kind), source=source_name
    )
