"""
Интеграционные тесты: генерация, импорт и вызов сгенерированного клиента
"""

import importlib
import json

import pytest

from schema_client import generate_client


def write_artifacts(directory, artifacts):
    for artifact in artifacts:
        (directory / artifact.file_name).write_text(artifact.content, encoding="utf-8")


@pytest.fixture
def schema_file(tmp_path, petstore):
    path = tmp_path / "petstore.json"
    path.write_text(json.dumps(petstore), encoding="utf-8")
    return path


class TestIntegration:
    """Интеграционные тесты"""

    @pytest.mark.asyncio
    async def test_complete_generation_workflow(self, tmp_path, schema_file, monkeypatch, fake):
        """Тест полного процесса: схема -> модули -> импорт -> вызов"""
        artifacts = generate_client(str(schema_file), name="shop", import_style="absolute")
        write_artifacts(tmp_path, artifacts)
        monkeypatch.syspath_prepend(str(tmp_path))

        shop = importlib.import_module("shop")
        shop_types = importlib.import_module("shop_types")

        transport = fake.Transport(
            fake.Response.json(200, {"id": 1, "name": "Rex", "status": "sold"})
        )
        client = shop.ShopClient.from_options(url="http://api.test", transport=transport)

        pet = await client.get_pet(pet_id=1, session="abc")
        model = shop_types.Pet.model_validate(pet)

        assert model.status == shop_types.PetStatus.SOLD
        request = transport.requests[0]
        assert request.url == "http://api.test/pets/1"
        assert request.headers["Cookie"] == "session=abc"

        await client.close()
        assert transport.closed

    @pytest.mark.asyncio
    async def test_generated_body_argument(self, tmp_path, schema_file, monkeypatch, fake):
        """Тест тела запроса через сгенерированный метод"""
        write_artifacts(
            tmp_path,
            generate_client(str(schema_file), name="shop_body", import_style="absolute"),
        )
        monkeypatch.syspath_prepend(str(tmp_path))
        shop = importlib.import_module("shop_body")

        transport = fake.Transport(fake.Response.json(201, {"id": 2, "name": "Tom"}))
        client = shop.ShopBodyClient.from_options(url="http://api.test", transport=transport)

        created = await client.create_pet(body={"name": "Tom"})

        assert created == {"id": 2, "name": "Tom"}
        assert json.loads(transport.requests[0].body) == {"name": "Tom"}

    def test_frontend_module_state(self, tmp_path, schema_file, monkeypatch):
        """Тест мутаторов модуля frontend до и после создания клиента"""
        write_artifacts(
            tmp_path,
            generate_client(
                str(schema_file),
                name="shop_front",
                flavor="frontend",
                import_style="absolute",
            ),
        )
        monkeypatch.syspath_prepend(str(tmp_path))
        front = importlib.import_module("shop_front")

        front.set_base_url("http://front.test")
        front.set_default_headers({"X-App": "1"})
        client = front._state.get_client()

        assert client.base_url == "http://front.test"
        assert client.options.headers == {"X-App": "1"}

        front.set_default_fetch_params({"allow_redirects": False})
        assert client.options.request_options == {"allow_redirects": False}
        assert front._state.get_client() is client

    def test_single_file_module(self, tmp_path, schema_file, monkeypatch):
        """Тест импорта модуля с типами и привязками в одном файле"""
        write_artifacts(
            tmp_path,
            generate_client(str(schema_file), name="shop_single", single_file=True),
        )
        monkeypatch.syspath_prepend(str(tmp_path))
        single = importlib.import_module("shop_single")

        assert single.Pet(id=1, name="Rex").name == "Rex"
        assert callable(single.register)
