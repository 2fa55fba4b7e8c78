"""Configuration management module."""

from chainagg.config.loader import load_yaml_config
from chainagg.config.schemas import AggregationConfig, ProtocolDefaults
from chainagg.config.settings import Settings, get_settings

__all__ = [
    "AggregationConfig",
    "ProtocolDefaults",
    "Settings",
    "get_settings",
    "load_yaml_config",
]
