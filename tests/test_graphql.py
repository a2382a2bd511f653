"""
Тесты GraphQL pass-through вызовов
"""

import json

import pytest

from schema_client import UnexpectedCallFailure, build_client


@pytest.fixture
def graphql_client():
    def factory(transport, **options):
        return build_client(
            url="http://api.test", schema_kind="graphql", transport=transport, **options
        )

    return factory


class TestGraphQL:
    """GraphQL запросы через ApiClient.graphql"""

    @pytest.mark.asyncio
    async def test_data_returned(self, graphql_client, fake):
        """Тест: результат - поле data, запрос уходит как есть"""
        transport = fake.Transport(fake.Response.json(200, {"data": {"hero": {"name": "R2"}}}))
        client = graphql_client(transport, headers={"Authorization": "Bearer 1"})

        data = await client.graphql(
            "query Hero($e: Episode) { hero(episode: $e) { name } }", {"e": "EMPIRE"}
        )

        assert data == {"hero": {"name": "R2"}}
        request = transport.requests[0]
        assert request.method == "POST"
        assert request.url == "http://api.test/graphql"
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Authorization"] == "Bearer 1"
        assert json.loads(request.body) == {
            "query": "query Hero($e: Episode) { hero(episode: $e) { name } }",
            "variables": {"e": "EMPIRE"},
        }

    @pytest.mark.asyncio
    async def test_custom_path(self, graphql_client, fake):
        transport = fake.Transport(fake.Response.json(200, {"data": None}))
        client = graphql_client(transport, graphql_path="/api/gql")

        assert await client.graphql("{ ping }") is None
        assert transport.requests[0].url == "http://api.test/api/gql"

    @pytest.mark.asyncio
    async def test_errors_raised(self, graphql_client, fake):
        """Тест непустого списка errors"""
        errors = [{"message": "Cannot query field"}]
        transport = fake.Transport(fake.Response.json(200, {"data": None, "errors": errors}))

        with pytest.raises(UnexpectedCallFailure) as exc_info:
            await graphql_client(transport).graphql("{ nope }")

        assert exc_info.value.errors == errors
        assert exc_info.value.status_code == 200

    @pytest.mark.asyncio
    async def test_not_json(self, graphql_client, fake):
        transport = fake.Transport(
            fake.Response(200, b"<html></html>", {"Content-Type": "text/html"})
        )

        with pytest.raises(UnexpectedCallFailure) as exc_info:
            await graphql_client(transport).graphql("{ ping }")

        assert isinstance(exc_info.value.cause, ValueError)

    @pytest.mark.asyncio
    async def test_server_error(self, graphql_client, fake):
        """Тест ответа 5xx"""
        transport = fake.Transport(fake.Response(500, b"boom", {"Content-Type": "text/plain"}))

        with pytest.raises(UnexpectedCallFailure) as exc_info:
            await graphql_client(transport).graphql("{ ping }")

        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "boom"

    @pytest.mark.asyncio
    async def test_retried_on_server_error(self, graphql_client, fake):
        """Тест повтора после 5xx при заданном бюджете"""
        transport = fake.Transport(
            fake.Response(503),
            fake.Response.json(200, {"data": {"ok": True}}),
        )
        client = graphql_client(transport, retry_timeout_ms=5000, retry_delay_ms=1)

        assert await client.graphql("{ ok }") == {"ok": True}
        assert len(transport.requests) == 2

    def test_no_operation_methods(self, graphql_client, fake):
        """Тест: для GraphQL есть только метод graphql"""
        client = graphql_client(fake.Transport())

        assert list(client.routes) == ["graphql"]
        assert not hasattr(client, "hero")
