"""Default configuration values and paths."""

import os
from pathlib import Path
from typing import Final

# Default directories
DEFAULT_CONFIG_DIR: Final[Path] = Path.home() / ".config" / "cmd-box"

# Default file paths
DEFAULT_CONFIG_FILE: Final[Path] = DEFAULT_CONFIG_DIR / "config.toml"

# Placeholder written to logs in place of sensitive values
DEFAULT_MASK: Final[str] = "******"

# Environment variable names
ENV_CONFIG_PATH: Final[str] = "CMDBOX_CONFIG"
ENV_LOG_LEVEL: Final[str] = "CMDBOX_LOG_LEVEL"
ENV_TARGET_VERSION: Final[str] = "CMDBOX_VERSION"
ENV_NO_PROMPT: Final[str] = "CMDBOX_NO_PROMPT"
ENV_MODULES: Final[str] = "CMDBOX_MODULES"

# Default config content (TOML)
DEFAULT_CONFIG_TOML: Final[str] = """\
# cmd-box configuration

# Modules whose classes declare commands, factories and settings
modules = []

[engine]
mask = "******"
prompt_for_missing = true
# target_version = "11.1.2"

[logging]
level = "INFO"
json_format = false
color = true
"""


def get_config_path() -> Path:
    """Get the configuration file path."""
    env_path = os.environ.get(ENV_CONFIG_PATH)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_FILE
