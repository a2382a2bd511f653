"""
Тесты вывода имен операций
"""

import pytest

from schema_client import NameResolutionError, derive_name, resolve_names
from schema_client.internal.types.ir import Operation


def make_operation(method, path, operation_id=None):
    return Operation(
        id=operation_id or "",
        method=method,
        path=path,
        explicit_id=bool(operation_id),
    )


class TestDeriveName:
    """Имя из метода и пути"""

    @pytest.mark.parametrize(
        "method, path, expected",
        [
            ("get", "/movies", "getMovies"),
            ("get", "/movies/{id}/quotes", "getMoviesIdQuotes"),
            ("post", "/movies", "createMovies"),
            ("post", "/users/login", "loginUsers"),
            ("post", "/jobs/{id}:cancel", "cancelJobsId"),
            ("put", "/movies/{id}", "updateMoviesId"),
            ("patch", "/movies/{id}", "updateMoviesId"),
            ("delete", "/movies/{id}", "deleteMoviesId"),
            ("get", "/user-profiles/{profileId}", "getUserProfilesProfileId"),
            ("head", "/status", "headStatus"),
        ],
    )
    def test_examples(self, method, path, expected):
        assert derive_name(method, path) == expected

    def test_action_only_for_post(self):
        """Тест: действие в пути распознается только для POST"""
        assert derive_name("get", "/users/login") == "getUsersLogin"

    def test_single_action_segment_is_resource(self):
        """Тест: /search без родителя - ресурс"""
        assert derive_name("post", "/search") == "createSearch"


class TestResolveNames:
    """Уникальность имен"""

    def test_explicit_ids_kept(self):
        operations = [make_operation("get", "/pets", "listPets")]
        resolve_names(operations)

        assert operations[0].id == "listPets"
        assert operations[0].python_name == "list_pets"

    def test_collision_disambiguated_by_path(self):
        """Тест: /users/{id} и /users/id дают одно имя"""
        by_template = make_operation("get", "/users/{id}")
        literal = make_operation("get", "/users/id")

        resolve_names([by_template, literal])

        assert by_template.id == "getUsersIdById"
        assert literal.id == "getUsersIdId"
        assert by_template.python_name == "get_users_id_by_id"

    def test_explicit_wins_collision(self):
        """Тест: явный id не переименовывается"""
        explicit = make_operation("get", "/films", "getMovies")
        derived = make_operation("get", "/movies")

        resolve_names([explicit, derived])

        assert explicit.id == "getMovies"
        assert derived.id == "getMoviesMovies"

    def test_unresolvable_collision(self):
        """Тест: /a-b и /a_b неразличимы"""
        with pytest.raises(NameResolutionError) as exc_info:
            resolve_names([make_operation("get", "/a-b"), make_operation("get", "/a_b")])

        assert exc_info.value.names == ["getABAB"]

    def test_duplicate_explicit_ids(self):
        with pytest.raises(NameResolutionError):
            resolve_names(
                [
                    make_operation("get", "/a", "fetch"),
                    make_operation("get", "/b", "fetch"),
                ]
            )

    def test_python_name_clash(self):
        """Тест: разные id, одинаковое python-имя"""
        with pytest.raises(NameResolutionError):
            resolve_names(
                [
                    make_operation("get", "/a", "getItem"),
                    make_operation("get", "/b", "get_item"),
                ]
            )

    def test_python_name_keyword_and_digit(self):
        operations = [
            make_operation("get", "/a", "import"),
            make_operation("get", "/b", "2fa"),
        ]
        resolve_names(operations)

        assert operations[0].python_name == "import_"
        assert operations[1].python_name == "op_2fa"
