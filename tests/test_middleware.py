"""
Тесты декораторов LoggingDispatcher и CachingDispatcher
"""

import logging

import pytest

from schema_client import CachingDispatcher, LoggingDispatcher, UnexpectedCallFailure

PET = {"id": 1, "name": "Rex"}


class TestLoggingDispatcher:
    """Логирование вызовов"""

    @pytest.mark.asyncio
    async def test_success_logged(self, fake_client, fake, caplog):
        client = LoggingDispatcher(fake_client(fake.Transport(fake.Response.json(200, PET))))

        with caplog.at_level(logging.INFO):
            result = await client.invoke("getPet", {"petId": 1})

        assert result == PET
        assert "Calling getPet" in caplog.text
        assert "Call getPet finished in" in caplog.text

    @pytest.mark.asyncio
    async def test_failure_logged_and_raised(self, fake_client, fake, caplog):
        """Тест: ошибка логируется и пробрасывается"""
        client = LoggingDispatcher(fake_client(fake.Transport(OSError("refused"))))

        with caplog.at_level(logging.INFO):
            with pytest.raises(UnexpectedCallFailure):
                await client.invoke("getPet", {"petId": 1})

        assert "Call getPet failed after" in caplog.text

    def test_delegates_attributes(self, fake_client, fake):
        client = LoggingDispatcher(fake_client(fake.Transport()))
        assert client.base_url == "http://api.test"


class TestCachingDispatcher:
    """Кэш GET операций"""

    @pytest.mark.asyncio
    async def test_get_cached(self, fake_client, fake):
        """Тест повторного GET с теми же аргументами"""
        transport = fake.Transport(fake.Response.json(200, PET))
        client = CachingDispatcher(fake_client(transport))

        first = await client.invoke("getPet", {"petId": 1})
        second = await client.invoke("getPet", {"petId": 1})
        await client.invoke("getPet", {"petId": 2})

        assert first == second == PET
        assert len(transport.requests) == 2

    @pytest.mark.asyncio
    async def test_post_not_cached(self, fake_client, fake):
        transport = fake.Transport(fake.Response.json(201, PET))
        client = CachingDispatcher(fake_client(transport))

        await client.invoke("createPet", {"body": {"name": "Rex"}})
        await client.invoke("createPet", {"body": {"name": "Rex"}})

        assert len(transport.requests) == 2

    @pytest.mark.asyncio
    async def test_ttl_and_clear(self, fake_client, fake):
        """Тест истечения срока и очистки кэша"""
        transport = fake.Transport(fake.Response.json(200, PET))
        client = CachingDispatcher(fake_client(transport), ttl=0)

        await client.invoke("getPet", {"petId": 1})
        await client.invoke("getPet", {"petId": 1})
        assert len(transport.requests) == 2

        client.ttl = 60
        client.clear()
        await client.invoke("getPet", {"petId": 1})
        await client.invoke("getPet", {"petId": 1})
        assert len(transport.requests) == 3

    @pytest.mark.asyncio
    async def test_stacked(self, fake_client, fake, caplog):
        """Тест: декораторы комбинируются"""
        transport = fake.Transport(fake.Response.json(200, [PET]))
        client = LoggingDispatcher(CachingDispatcher(fake_client(transport)))

        with caplog.at_level(logging.INFO):
            await client.invoke("listPets")
            await client.invoke("listPets")

        assert len(transport.requests) == 1
        assert caplog.text.count("Calling listPets") == 2

    @pytest.mark.asyncio
    async def test_call_headers_in_key(self, fake_client, fake):
        """Тест: ответы для разных заголовков вызова не смешиваются"""
        transport = fake.Transport(fake.Response.json(200, PET))
        client = CachingDispatcher(fake_client(transport))

        await client.invoke("getPet", {"petId": 1}, headers={"Authorization": "a"})
        await client.invoke("getPet", {"petId": 1}, headers={"Authorization": "b"})
        await client.invoke("getPet", {"petId": 1}, headers={"authorization": "a"})

        assert [r.headers["Authorization"] for r in transport.requests] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_error_status_not_cached(self, fake_client, fake):
        """Тест: ответ с ошибочным статусом не попадает в кэш"""
        transport = fake.Transport(
            fake.Response.json(404, {"code": 404, "message": "not found"}),
            fake.Response.json(200, PET),
        )
        client = CachingDispatcher(fake_client(transport, throw_on_error=False))

        first = await client.invoke("getPet", {"petId": 1})
        second = await client.invoke("getPet", {"petId": 1})

        assert first.status_code == 404
        assert second == PET
        assert len(transport.requests) == 2

    @pytest.mark.asyncio
    async def test_expired_entries_evicted(self, fake_client, fake):
        """Тест удаления устаревших записей"""
        transport = fake.Transport(fake.Response.json(200, PET))
        client = CachingDispatcher(fake_client(transport), ttl=0)

        for pet_id in range(5):
            await client.invoke("getPet", {"petId": pet_id})

        assert len(client._cache) == 1
