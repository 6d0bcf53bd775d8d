"""
Editor Label Configuration.

Default labels given to nodes the editor creates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from flowbuilder.config.base import BaseConfig, ConfigField, FieldType, register_config
from flowbuilder.config.sub_config.general.env_utils import read_env_defaults


@register_config
@dataclass
class EditorConfig(BaseConfig):
    """Default node labels."""

    start_label: str = "Start Node"
    end_label: str = "END"
    action_label: str = "Action"
    conditional_label: str = "If / Else"
    branch_name: str = "Branch"
    else_name: str = "Else"

    _ENV_MAP = {
        "start_label": "FLOW_START_LABEL",
        "end_label": "FLOW_END_LABEL",
        "action_label": "FLOW_ACTION_LABEL",
        "conditional_label": "FLOW_CONDITIONAL_LABEL",
        "branch_name": "FLOW_BRANCH_NAME",
        "else_name": "FLOW_ELSE_NAME",
    }

    @classmethod
    def get_default_instance(cls) -> "EditorConfig":
        defaults = read_env_defaults(cls._ENV_MAP, cls.__dataclass_fields__)
        return cls(**defaults)

    @classmethod
    def get_config_name(cls) -> str:
        return "editor"

    @classmethod
    def get_display_name(cls) -> str:
        return "Editor Labels"

    @classmethod
    def get_description(cls) -> str:
        return "Labels given to new start, end, action and if/else nodes."

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return [
            ConfigField(
                name=name,
                field_type=FieldType.STRING,
                label=label,
                default=default,
                group="labels",
            )
            for name, label, default in (
                ("start_label", "Start Label", "Start Node"),
                ("end_label", "End Label", "END"),
                ("action_label", "Action Label", "Action"),
                ("conditional_label", "If/Else Label", "If / Else"),
                ("branch_name", "First Branch Name", "Branch"),
                ("else_name", "Else Name", "Else"),
            )
        ]
