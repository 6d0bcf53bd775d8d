"""
Environment helpers shared by the config dataclasses.
"""

from __future__ import annotations

import os
from dataclasses import MISSING
from logging import getLogger
from typing import Any, Callable, Dict

logger = getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}


def read_env_defaults(env_map: Dict[str, str], dataclass_fields: Dict[str, Any]) -> Dict[str, Any]:
    """Read overrides for dataclass fields from the environment.

    Values are coerced to the type of the field's default. A value that
    cannot be coerced is skipped with a warning and the default stays.
    """
    values: Dict[str, Any] = {}
    for field_name, env_name in env_map.items():
        raw = os.environ.get(env_name)
        if raw is None or field_name not in dataclass_fields:
            continue
        default = dataclass_fields[field_name].default
        try:
            values[field_name] = _coerce(raw, default)
        except ValueError:
            logger.warning(f"Ignoring invalid {env_name}={raw!r}")
    return values


def env_sync(env_name: str) -> Callable[[Any], None]:
    """Return a hook that mirrors a field change into ``os.environ``."""

    def _apply(value: Any) -> None:
        os.environ[env_name] = str(value)

    return _apply


def _coerce(raw: str, default: Any) -> Any:
    if default is MISSING or isinstance(default, str):
        return raw
    if isinstance(default, bool):
        return raw.strip().lower() in _TRUE
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw
