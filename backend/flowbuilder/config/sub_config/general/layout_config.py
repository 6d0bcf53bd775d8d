"""
Canvas Layout Configuration.

Controls the fixed spacing used when nodes are inserted and lanes are
re-spaced.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from flowbuilder.config.base import BaseConfig, ConfigField, FieldType, register_config
from flowbuilder.config.sub_config.general.env_utils import env_sync, read_env_defaults


@register_config
@dataclass
class LayoutConfig(BaseConfig):
    """Vertical/horizontal spacing of the lane layout."""

    vertical_spacing: float = 120.0
    horizontal_spacing: float = 200.0
    # Rows opened below the source when an if/else block is inserted
    conditional_push_rows: int = 3

    _ENV_MAP = {
        "vertical_spacing": "FLOW_VERTICAL_SPACING",
        "horizontal_spacing": "FLOW_HORIZONTAL_SPACING",
        "conditional_push_rows": "FLOW_CONDITIONAL_PUSH_ROWS",
    }

    @classmethod
    def get_default_instance(cls) -> "LayoutConfig":
        defaults = read_env_defaults(cls._ENV_MAP, cls.__dataclass_fields__)
        return cls(**defaults)

    @classmethod
    def get_config_name(cls) -> str:
        return "layout"

    @classmethod
    def get_display_name(cls) -> str:
        return "Canvas Layout"

    @classmethod
    def get_description(cls) -> str:
        return "Spacing between rows and between the lanes of an if/else node."

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return [
            ConfigField(
                name="vertical_spacing",
                field_type=FieldType.NUMBER,
                label="Row Spacing",
                description="Vertical distance between consecutive nodes of a lane",
                default=120.0,
                min_value=20,
                max_value=1000,
                group="layout",
                apply_change=env_sync("FLOW_VERTICAL_SPACING"),
            ),
            ConfigField(
                name="horizontal_spacing",
                field_type=FieldType.NUMBER,
                label="Lane Span",
                description="Total width over which the lanes of an if/else node are spread",
                default=200.0,
                min_value=20,
                max_value=4000,
                group="layout",
                apply_change=env_sync("FLOW_HORIZONTAL_SPACING"),
            ),
            ConfigField(
                name="conditional_push_rows",
                field_type=FieldType.NUMBER,
                label="If/Else Push Rows",
                description="Rows the rest of the lane is pushed down when an if/else node is inserted",
                default=3,
                min_value=1,
                max_value=20,
                group="layout",
            ),
        ]
