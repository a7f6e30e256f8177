from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import Any, Mapping

import numpy as np

from geombridge._toml import import_toml_module
from geombridge.errors import ConfigSyntaxError, ConfigTypeError

logger = logging.getLogger(__name__)

# Deeper documents are rejected rather than recursed into.
MAX_DEPTH = 32


def parse_text(raw: str) -> dict[str, Any]:
    """Parse TOML text into a plain key/value document."""
    parser = import_toml_module()
    try:
        parsed = parser.loads(raw)
    except parser.TOMLDecodeError as e:
        raise ConfigSyntaxError(f"Failed to parse TOML: {e}") from e
    return dict(parsed)


def load_config(path: Path) -> dict[str, Any]:
    path = Path(path)
    logger.debug("Loading optimizer configuration from %s", path)
    return parse_text(path.read_text(encoding="utf-8"))


def _join_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _convert(value: Any, *, path: str, depth: int) -> Any:
    if depth > MAX_DEPTH:
        raise ConfigTypeError(path, f"nesting deeper than {MAX_DEPTH} levels is not supported")

    # Exact type matters downstream: bool before int, int never widened to float.
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        return float(value)
    if isinstance(value, np.generic) and isinstance(value, (np.bool_, np.integer, np.floating)):
        return value.item()
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, Mapping):
        out: dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise ConfigTypeError(path, f"keys must be strings, got {type(key).__name__}")
            out[key] = _convert(item, path=_join_path(path, key), depth=depth + 1)
        return out
    if isinstance(value, (list, tuple)):
        return [
            _convert(item, path=f"{path}[{index}]", depth=depth + 1)
            for index, item in enumerate(value)
        ]
    raise ConfigTypeError(path, f"unsupported value type {type(value).__name__}")


def to_foreign_dict(doc: Mapping[str, Any]) -> dict[str, Any]:
    """Structurally convert a configuration document into an optimizer kwargs dict.

    Option names are never interpreted; only the shape and scalar types of the
    values are checked. The input document is left untouched.
    """
    if not isinstance(doc, Mapping):
        raise ConfigTypeError("root", f"expected a mapping, got {type(doc).__name__}")
    converted = _convert(doc, path="root", depth=0)
    logger.debug("Converted configuration with %d top-level option(s)", len(converted))
    return converted
