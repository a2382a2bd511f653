"""
Общие фикстуры: примеры схем и фейковые транспорты
"""

import asyncio
import copy
import json

import httpx
import pytest

from schema_client import ClientOptions, HttpxTransport, build_client, normalize

PETSTORE = {
    "openapi": "3.0.3",
    "info": {"title": "Pet Store", "version": "1.0.0"},
    "servers": [{"url": "https://petstore.example.com/v1"}],
    "paths": {
        "/pets": {
            "get": {
                "operationId": "listPets",
                "summary": "List pets",
                "parameters": [
                    {"name": "limit", "in": "query", "schema": {"type": "integer"}},
                    {
                        "name": "tags",
                        "in": "query",
                        "schema": {"type": "array", "items": {"type": "string"}},
                    },
                    {
                        "name": "ids",
                        "in": "query",
                        "explode": False,
                        "schema": {"type": "array", "items": {"type": "integer"}},
                    },
                    {
                        "name": "filter",
                        "in": "query",
                        "style": "deepObject",
                        "schema": {
                            "type": "object",
                            "additionalProperties": {"type": "string"},
                        },
                    },
                    {"name": "active", "in": "query", "schema": {"type": "boolean"}},
                    {"name": "X-Request-Id", "in": "header", "schema": {"type": "string"}},
                ],
                "responses": {
                    "200": {
                        "description": "ok",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "array",
                                    "items": {"$ref": "#/components/schemas/Pet"},
                                }
                            }
                        },
                    },
                    "default": {
                        "description": "error",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Error"}
                            }
                        },
                    },
                },
            },
            "post": {
                "operationId": "createPet",
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {
                            "schema": {"$ref": "#/components/schemas/NewPet"}
                        }
                    },
                },
                "responses": {
                    "201": {
                        "description": "created",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Pet"}
                            }
                        },
                    }
                },
            },
        },
        "/pets/{petId}": {
            "parameters": [
                {
                    "name": "petId",
                    "in": "path",
                    "required": True,
                    "schema": {"type": "integer"},
                }
            ],
            "get": {
                "operationId": "getPet",
                "parameters": [
                    {"name": "session", "in": "cookie", "schema": {"type": "string"}}
                ],
                "responses": {
                    "200": {
                        "description": "ok",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Pet"}
                            }
                        },
                    },
                    "404": {
                        "description": "not found",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Error"}
                            }
                        },
                    },
                },
            },
            "delete": {
                "operationId": "deletePet",
                "responses": {"204": {"description": "deleted"}},
            },
        },
        "/pets/{petId}/photo": {
            "post": {
                "operationId": "uploadPhoto",
                "parameters": [
                    {
                        "name": "petId",
                        "in": "path",
                        "required": True,
                        "schema": {"type": "integer"},
                    }
                ],
                "requestBody": {
                    "required": True,
                    "content": {
                        "multipart/form-data": {
                            "schema": {
                                "type": "object",
                                "properties": {
                                    "file": {"type": "string", "format": "binary"},
                                    "caption": {"type": "string"},
                                },
                            }
                        }
                    },
                },
                "responses": {
                    "200": {
                        "description": "ok",
                        "content": {"text/plain": {"schema": {"type": "string"}}},
                    }
                },
            }
        },
    },
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "required": ["id", "name"],
                "properties": {
                    "id": {"type": "integer", "format": "int64"},
                    "name": {"type": "string", "description": "Pet name"},
                    "tag": {"type": "string"},
                    "status": {"$ref": "#/components/schemas/PetStatus"},
                },
            },
            "PetStatus": {"type": "string", "enum": ["available", "pending", "sold"]},
            "NewPet": {
                "type": "object",
                "required": ["name"],
                "properties": {"name": {"type": "string"}, "tag": {"type": "string"}},
            },
            "Error": {
                "type": "object",
                "required": ["code", "message"],
                "properties": {
                    "code": {"type": "integer"},
                    "message": {"type": "string"},
                },
            },
        }
    },
}

SWAGGER = {
    "swagger": "2.0",
    "info": {"title": "Legacy", "version": "2.1"},
    "host": "legacy.example.com",
    "basePath": "/api",
    "schemes": ["http"],
    "consumes": ["application/json"],
    "produces": ["application/json"],
    "paths": {
        "/users": {
            "post": {
                "parameters": [
                    {
                        "name": "user",
                        "in": "body",
                        "required": True,
                        "schema": {"$ref": "#/definitions/User"},
                    }
                ],
                "responses": {"200": {"description": "ok", "schema": {"$ref": "#/definitions/User"}}},
            },
            "get": {
                "parameters": [
                    {
                        "name": "ids",
                        "in": "query",
                        "type": "array",
                        "items": {"type": "integer"},
                        "collectionFormat": "multi",
                    }
                ],
                "responses": {
                    "200": {
                        "description": "ok",
                        "schema": {"type": "array", "items": {"$ref": "#/definitions/User"}},
                    }
                },
            },
        },
        "/users/{id}/avatar": {
            "post": {
                "consumes": ["multipart/form-data"],
                "parameters": [
                    {"name": "id", "in": "path", "required": True, "type": "integer"},
                    {"name": "avatar", "in": "formData", "required": True, "type": "file"},
                    {"name": "note", "in": "formData", "type": "string"},
                ],
                "responses": {"204": {"description": "stored"}},
            }
        },
        "/users/login": {
            "post": {
                "consumes": ["application/x-www-form-urlencoded"],
                "parameters": [
                    {"name": "username", "in": "formData", "required": True, "type": "string"},
                    {"name": "password", "in": "formData", "required": True, "type": "string"},
                ],
                "responses": {"200": {"description": "ok", "schema": {"type": "string"}}},
            }
        },
    },
    "definitions": {
        "User": {
            "type": "object",
            "required": ["id"],
            "properties": {
                "id": {"type": "integer"},
                "email": {"type": "string", "x-nullable": True},
            },
        }
    },
}

CYCLIC = {
    "openapi": "3.1.0",
    "info": {"title": "Tree", "version": "1"},
    "paths": {
        "/nodes/{id}": {
            "get": {
                "responses": {
                    "200": {
                        "description": "ok",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Node"}
                            }
                        },
                    }
                }
            }
        }
    },
    "components": {
        "schemas": {
            "Node": {
                "type": "object",
                "required": ["value"],
                "properties": {
                    "value": {"type": ["string", "null"]},
                    "children": {
                        "type": "array",
                        "items": {"$ref": "#/components/schemas/Node"},
                    },
                    "parent": {"$ref": "#/components/schemas/Node"},
                },
            }
        }
    },
}

MOVIES = {
    "openapi": "3.0.3",
    "info": {"title": "Movies", "version": "1"},
    "paths": {
        "/movies/{id}": {
            "get": {
                "operationId": "getMovie",
                "parameters": [
                    {"name": "id", "in": "path", "required": True, "schema": {"type": "string"}}
                ],
                "responses": {
                    "200": {
                        "description": "ok",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Movie"}
                            }
                        },
                    }
                },
            }
        },
        "/movies/{id}/quotes/{quoteId}": {
            "parameters": [
                {"name": "id", "in": "path", "required": True, "schema": {"type": "string"}},
                {
                    "name": "quoteId",
                    "in": "path",
                    "required": True,
                    "schema": {"type": "string"},
                },
            ],
            "get": {"responses": {"200": {"description": "ok"}}},
        },
    },
    "components": {
        "schemas": {
            "Entity": {
                "type": "object",
                "required": ["id"],
                "properties": {"id": {"type": "string"}},
            },
            "Movie": {
                "allOf": [
                    {"$ref": "#/components/schemas/Entity"},
                    {
                        "type": "object",
                        "required": ["title"],
                        "properties": {"title": {"type": "string"}},
                    },
                ]
            },
        }
    },
}

GRAPHQL_INTROSPECTION = {
    "data": {
        "__schema": {
            "queryType": {"name": "Query"},
            "mutationType": None,
            "subscriptionType": None,
            "types": [
                {
                    "kind": "OBJECT",
                    "name": "Query",
                    "fields": [
                        {
                            "name": "hero",
                            "args": [
                                {
                                    "name": "episode",
                                    "type": {"kind": "ENUM", "name": "Episode", "ofType": None},
                                }
                            ],
                            "type": {"kind": "OBJECT", "name": "Character", "ofType": None},
                        },
                        {
                            "name": "search",
                            "args": [],
                            "type": {
                                "kind": "NON_NULL",
                                "name": None,
                                "ofType": {
                                    "kind": "LIST",
                                    "name": None,
                                    "ofType": {
                                        "kind": "UNION",
                                        "name": "SearchResult",
                                        "ofType": None,
                                    },
                                },
                            },
                        },
                    ],
                },
                {
                    "kind": "OBJECT",
                    "name": "Character",
                    "fields": [
                        {
                            "name": "id",
                            "args": [],
                            "type": {
                                "kind": "NON_NULL",
                                "name": None,
                                "ofType": {"kind": "SCALAR", "name": "ID", "ofType": None},
                            },
                        },
                        {
                            "name": "name",
                            "args": [],
                            "type": {"kind": "SCALAR", "name": "String", "ofType": None},
                        },
                        {
                            "name": "friends",
                            "args": [],
                            "type": {
                                "kind": "LIST",
                                "name": None,
                                "ofType": {"kind": "OBJECT", "name": "Character", "ofType": None},
                            },
                        },
                    ],
                },
                {
                    "kind": "OBJECT",
                    "name": "Starship",
                    "fields": [
                        {
                            "name": "length",
                            "args": [],
                            "type": {"kind": "SCALAR", "name": "Float", "ofType": None},
                        }
                    ],
                },
                {
                    "kind": "UNION",
                    "name": "SearchResult",
                    "possibleTypes": [
                        {"kind": "OBJECT", "name": "Character", "ofType": None},
                        {"kind": "OBJECT", "name": "Starship", "ofType": None},
                    ],
                },
                {
                    "kind": "ENUM",
                    "name": "Episode",
                    "enumValues": [{"name": "NEWHOPE"}, {"name": "EMPIRE"}],
                },
                {
                    "kind": "OBJECT",
                    "name": "Unreachable",
                    "fields": [
                        {
                            "name": "x",
                            "args": [],
                            "type": {"kind": "SCALAR", "name": "Int", "ofType": None},
                        }
                    ],
                },
                {"kind": "OBJECT", "name": "__Type", "fields": []},
                {"kind": "SCALAR", "name": "String"},
            ],
        }
    }
}


@pytest.fixture
def petstore():
    return copy.deepcopy(PETSTORE)


@pytest.fixture
def swagger():
    return copy.deepcopy(SWAGGER)


@pytest.fixture
def cyclic():
    return copy.deepcopy(CYCLIC)


@pytest.fixture
def introspection():
    return copy.deepcopy(GRAPHQL_INTROSPECTION)


@pytest.fixture
def petstore_ir(petstore):
    return normalize(petstore, "openapi")


@pytest.fixture
def movies_ir():
    return normalize(copy.deepcopy(MOVIES), "openapi")


@pytest.fixture
def mock_client(petstore_ir):
    """Фабрика клиента над httpx.MockTransport; handler(request) -> httpx.Response"""

    def factory(handler, ir=None, **options):
        options.setdefault("url", "http://api.test")
        transport = HttpxTransport(
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            default_headers=options.pop("transport_headers", None),
        )
        return build_client(ClientOptions(**options), ir or petstore_ir, transport=transport)

    return factory


class FakeResponse:
    def __init__(self, status=200, body=b"", headers=None, delay=0.0):
        self.status = status
        self.headers = headers or {}
        self._body = body
        self.delay = delay
        self.released = False

    @classmethod
    def json(cls, status, payload, **kwargs):
        return cls(
            status,
            json.dumps(payload).encode(),
            {"Content-Type": "application/json"},
            **kwargs,
        )

    async def read(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        return self._body

    async def release(self):
        self.released = True


class FakeTransport:
    """Отдает заранее заданные ответы по очереди; последний повторяется"""

    def __init__(self, *responses, delay=0.0):
        self.default_headers = {}
        self.responses = list(responses)
        self.requests = []
        self.delay = delay
        self.closed = False

    async def send(self, request):
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self):
        self.closed = True


@pytest.fixture
def fake():
    """Доступ к фейковым транспорту и ответу из тестов"""

    class Fakes:
        Response = FakeResponse
        Transport = FakeTransport

    return Fakes


@pytest.fixture
def fake_client(petstore_ir):
    def factory(transport, ir=None, **options):
        options.setdefault("url", "http://api.test")
        return build_client(ClientOptions(**options), ir or petstore_ir, transport=transport)

    return factory
