class Templates:
    """Шаблоны для генерации модулей"""

    types_imports = [
        "from datetime import date, datetime",
        "from enum import Enum",
        "from typing import Any, Dict, List, Literal, Optional, Union",
        "",
        "from pydantic import BaseModel, ConfigDict, Field",
    ]

    model_config = 'model_config = ConfigDict(populate_by_name=True, extra="allow")'

    typing_import = "from typing import Any, Dict, List, Optional, Union"

    constants = """SCHEMA_FILE = {schema_file!r}
FULL_REQUEST = {full_request!r}
FULL_RESPONSE = {full_response!r}"""

    options_factory = """def _options(**options) -> ClientOptions:
    if SCHEMA_FILE is not None:
        options.setdefault("path", SCHEMA_FILE)
    options.setdefault("full_request", FULL_REQUEST)
    options.setdefault("full_response", FULL_RESPONSE)
    return ClientOptions(**options)"""

    plugin_init = """def __init__(self, client: ApiClient) -> None:
    self._client = client"""

    plugin_from_options = """@classmethod
def from_options(cls, **options) -> "{class_name}":
    return cls(build_client(_options(**options)))"""

    plugin_close = """async def close(self) -> None:
    await self._client.close()"""

    plugin_register = '''def register(app, name: str = {name!r}, **options) -> None:
    """Клиент доступен в обработчиках как request[name]"""
    register_plugin(app, name, _options(**options))'''

    frontend_state = '''class _State:
    """Общий клиент модуля"""

    def __init__(self) -> None:
        self.base_url: Optional[str] = None
        self.headers: Dict[str, str] = {}
        self.fetch_params: Dict[str, Any] = {}
        self.client: Optional[ApiClient] = None

    def get_client(self) -> ApiClient:
        if self.client is None:
            options = {"headers": self.headers, "request_options": self.fetch_params}
            if self.base_url is not None:
                options["url"] = self.base_url
            self.client = build_client(_options(**options))
        return self.client


_state = _State()'''

    frontend_mutators = '''def set_base_url(url: str) -> None:
    _state.base_url = url
    if _state.client is not None:
        _state.client.set_base_url(url)


def set_default_headers(headers: Dict[str, str]) -> None:
    _state.headers = dict(headers)
    if _state.client is not None:
        _state.client.set_default_headers(_state.headers)


def set_default_fetch_params(params: Dict[str, Any]) -> None:
    """Дополнительные параметры транспорта для каждого запроса"""
    _state.fetch_params = dict(params)
    if _state.client is not None:
        _state.client.set_default_request_options(_state.fetch_params)'''


templates = Templates()
