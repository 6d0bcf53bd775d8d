"""
Configuration package.

Importing it registers every config class.
"""

from flowbuilder.config.base import (
    BaseConfig,
    ConfigField,
    FieldType,
    get_config,
    list_configs,
    register_config,
    reset_configs,
)
from flowbuilder.config.sub_config.general.editor_config import EditorConfig
from flowbuilder.config.sub_config.general.layout_config import LayoutConfig

__all__ = [
    "BaseConfig",
    "ConfigField",
    "FieldType",
    "get_config",
    "list_configs",
    "register_config",
    "reset_configs",
    "EditorConfig",
    "LayoutConfig",
]
