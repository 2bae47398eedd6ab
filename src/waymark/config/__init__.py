"""
waymark.config - Configuration loading and defaults
"""

from waymark.config.defaults import DEFAULT_CONFIG
from waymark.config.loader import (
    CONFIG_FILENAME,
    find_config_file,
    get_value,
    load_config,
    merge_configs,
    parse_toml_document,
    set_value_in_file,
)

__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
    "find_config_file",
    "get_value",
    "load_config",
    "merge_configs",
    "parse_toml_document",
    "set_value_in_file",
]
