from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Any, Mapping, Protocol, cast

if TYPE_CHECKING:
    class _TomlModule(Protocol):
        TOMLDecodeError: type[ValueError]

        def loads(self, s: str, /) -> Mapping[str, Any]: ...


def import_toml_module() -> "_TomlModule":
    try:
        module = importlib.import_module("tomllib")
    except ModuleNotFoundError:
        module = importlib.import_module("tomli")
    return cast("_TomlModule", module)
