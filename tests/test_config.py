"""
Тесты для системы конфигурации генератора
"""

import logging
import os
import tempfile

import pytest

from schema_client import CONFIG_FILE, EmitOptions, Flavor, GeneratorConfig, WrongOptionType


class TestGeneratorConfig:
    """Тесты конфигурации генератора"""

    def test_config_creation(self):
        """Тест создания конфигурации"""
        config = GeneratorConfig(url="http://localhost:8000/openapi.json", name="test_client")

        assert config.url == "http://localhost:8000/openapi.json"
        assert config.name == "test_client"

    def test_config_save_and_load(self):
        """Тест сохранения и загрузки конфигурации"""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = os.path.join(temp_dir, "test_schema_client.toml")

            # Создаем и сохраняем конфиг
            original_config = GeneratorConfig(
                url="http://api.example.com/openapi.json",
                name="example",
                flavor="frontend",
                full_response=True,
            )
            original_config.save_to_file(config_path)

            # Загружаем конфиг
            loaded_config = GeneratorConfig.from_file(config_path)

            assert loaded_config == original_config

    def test_config_found_in_directory(self):
        """Тест поиска конфига в каталоге"""
        with tempfile.TemporaryDirectory() as temp_dir:
            GeneratorConfig(name="dir_client").save_to_file(
                os.path.join(temp_dir, CONFIG_FILE)
            )

            loaded_config = GeneratorConfig.from_file(search_dir=temp_dir)

            assert loaded_config is not None
            assert loaded_config.name == "dir_client"

    def test_config_file_not_exists(self):
        """Тест загрузки несуществующего конфига"""
        config = GeneratorConfig.from_file("nonexistent.toml")
        assert config is None

    def test_broken_config_file(self, caplog):
        """Тест поврежденного файла конфигурации"""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = os.path.join(temp_dir, CONFIG_FILE)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write("name = [unclosed")

            with caplog.at_level(logging.WARNING):
                assert GeneratorConfig.from_file(config_path) is None

    def test_unknown_keys_ignored(self, caplog):
        """Тест неизвестных ключей в файле"""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = os.path.join(temp_dir, CONFIG_FILE)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write('name = "api"\ndirname = "old"\n')

            with caplog.at_level(logging.WARNING):
                config = GeneratorConfig.from_file(config_path)

            assert config.name == "api"
            assert "dirname" in caplog.text

    def test_config_merge_with_overrides(self):
        """Тест объединения конфига с явными значениями"""
        config = GeneratorConfig(url="http://localhost:8000", name="original_client")

        merged = config.merge_with(url="http://api.new.com", name=None)

        assert merged.url == "http://api.new.com"  # Переписан
        assert merged.name == "original_client"  # Остался из config

    def test_default_values(self):
        """Тест значений по умолчанию"""
        config = GeneratorConfig()

        assert config.url is None
        assert config.name is None
        assert config.flavor == "plugin"
        assert config.annotated is True
        assert config.props_optional is True

    def test_to_emit_options(self):
        """Тест преобразования в параметры генерации"""
        options = GeneratorConfig(name="shop", flavor="types-only").to_emit_options(
            schema_file="shop.json"
        )

        assert isinstance(options, EmitOptions)
        assert options.flavor == Flavor.TYPES_ONLY
        assert options.schema_file == "shop.json"

    def test_invalid_flavor(self):
        """Тест неизвестного варианта генерации"""
        with pytest.raises(WrongOptionType) as exc_info:
            GeneratorConfig(flavor="node").to_emit_options()

        assert exc_info.value.param == "flavor"
