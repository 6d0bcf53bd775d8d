"""
Configuration base — dataclass configs with field metadata and a registry.

Each config is a ``@dataclass`` subclass of ``BaseConfig`` decorated with
``@register_config``. Defaults come from the environment through the
class's ``_ENV_MAP``; ``get_fields_metadata`` describes the fields for a
settings form.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from enum import Enum
from logging import getLogger
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

logger = getLogger(__name__)


class FieldType(str, Enum):
    """Input widget hint for a config field."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    TEXTAREA = "textarea"
    PASSWORD = "password"
    SELECT = "select"


@dataclass
class ConfigField:
    """Metadata for one editable config field."""
    name: str
    field_type: FieldType
    label: str
    description: str = ""
    default: Any = None
    placeholder: str = ""
    group: str = "general"
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    secure: bool = False
    apply_change: Optional[Callable[[Any], None]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.field_type.value,
            "label": self.label,
            "description": self.description,
            "default": self.default,
            "placeholder": self.placeholder,
            "group": self.group,
            "min": self.min_value,
            "max": self.max_value,
            "secure": self.secure,
        }


C = TypeVar("C", bound="BaseConfig")


@dataclass
class BaseConfig:
    """Common behaviour of every registered config."""

    @classmethod
    def get_default_instance(cls: Type[C]) -> C:
        return cls()

    @classmethod
    def get_config_name(cls) -> str:
        raise NotImplementedError

    @classmethod
    def get_display_name(cls) -> str:
        return cls.get_config_name().title()

    @classmethod
    def get_description(cls) -> str:
        return ""

    @classmethod
    def get_category(cls) -> str:
        return "general"

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return []

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> List[str]:
        """Check number fields against their declared bounds."""
        errors: List[str] = []
        for meta in self.get_fields_metadata():
            value = getattr(self, meta.name, None)
            if meta.field_type != FieldType.NUMBER or value is None:
                continue
            if meta.min_value is not None and value < meta.min_value:
                errors.append(f"{meta.label} must be at least {meta.min_value}")
            if meta.max_value is not None and value > meta.max_value:
                errors.append(f"{meta.label} must be at most {meta.max_value}")
        return errors

    def update(self, **changes: Any) -> List[str]:
        """Apply field changes, run their ``apply_change`` hooks.

        Unknown names are ignored. Returns the names that were applied.
        """
        known = {f.name for f in fields(self)}
        hooks = {m.name: m.apply_change for m in self.get_fields_metadata()}
        applied: List[str] = []
        for name, value in changes.items():
            if name not in known:
                logger.warning(f"Ignoring unknown {self.get_config_name()} field: {name}")
                continue
            setattr(self, name, value)
            hook = hooks.get(name)
            if hook is not None:
                hook(value)
            applied.append(name)
        return applied


# ── Registry ──

_registry: Dict[str, Type[BaseConfig]] = {}
_instances: Dict[str, BaseConfig] = {}


def register_config(cls: Type[C]) -> Type[C]:
    """Class decorator adding a config to the registry."""
    _registry[cls.get_config_name()] = cls
    return cls


def get_config(name: str) -> BaseConfig:
    """Return the shared instance of a registered config.

    Raises:
        KeyError: If no config is registered under ``name``.
    """
    if name not in _instances:
        _instances[name] = _registry[name].get_default_instance()
    return _instances[name]


def list_configs() -> List[Type[BaseConfig]]:
    return list(_registry.values())


def reset_configs() -> None:
    """Drop cached instances so the next lookup re-reads the environment."""
    _instances.clear()
