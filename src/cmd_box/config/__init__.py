"""Configuration management."""

from cmd_box.config.loader import get_config, load_config, reload_config, reset_config
from cmd_box.config.schema import CmdBoxConfig

__all__ = ["CmdBoxConfig", "get_config", "load_config", "reload_config", "reset_config"]
