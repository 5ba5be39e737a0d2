"""Configuration models and parser for conduit.yaml."""

from conduit.config.models import ChatConfig, CLIConfig, ServerConfig, Settings
from conduit.config.parser import ConfigError, load_settings

__all__ = [
    "CLIConfig",
    "ChatConfig",
    "ConfigError",
    "ServerConfig",
    "Settings",
    "load_settings",
]
