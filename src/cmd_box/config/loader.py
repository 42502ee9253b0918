"""Configuration loading from TOML files and environment variables."""

import os
from pathlib import Path

from cmd_box.config.defaults import (
    DEFAULT_CONFIG_TOML,
    ENV_LOG_LEVEL,
    ENV_MODULES,
    ENV_NO_PROMPT,
    ENV_TARGET_VERSION,
    get_config_path,
)
from cmd_box.config.schema import CmdBoxConfig
from cmd_box.exceptions import ConfigFileError, ConfigValidationError

# Global config instance (singleton)
_config: CmdBoxConfig | None = None


def load_config(
    config_path: Path | None = None,
    *,
    create_if_missing: bool = True,
) -> CmdBoxConfig:
    """Load configuration from TOML file and environment variables.

    Args:
        config_path: Path to config file. If None, uses default.
        create_if_missing: Create default config if file doesn't exist.

    Returns:
        Loaded and validated configuration.

    Raises:
        ConfigFileError: If configuration cannot be loaded.
        ConfigValidationError: If configuration is invalid.
    """
    # Use Python 3.11+ tomllib or fallback
    try:
        import tomllib
    except ImportError:
        try:
            import tomli as tomllib
        except ImportError as err:
            raise ConfigFileError(
                "tomllib not available. Install 'tomli' for Python < 3.11"
            ) from err

    path = config_path or get_config_path()

    # Create default config if missing
    if not path.exists():
        if create_if_missing:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(DEFAULT_CONFIG_TOML)
            except OSError as e:
                raise ConfigFileError(
                    f"Failed to create default config at {path}: {e}"
                ) from e
        else:
            # Return default config without file
            return _apply_env_overrides(CmdBoxConfig())

    # Load TOML file
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except Exception as e:
        raise ConfigFileError(f"Failed to load config from {path}: {e}") from e

    # Parse into Pydantic model
    try:
        config = CmdBoxConfig.model_validate(data)
    except Exception as e:
        raise ConfigValidationError(f"Invalid configuration: {e}") from e

    return _apply_env_overrides(config)


def _apply_env_overrides(config: CmdBoxConfig) -> CmdBoxConfig:
    """Apply environment variable overrides to configuration."""
    log_level = os.environ.get(ENV_LOG_LEVEL)
    if log_level:
        config.logging.level = log_level.upper()

    version = os.environ.get(ENV_TARGET_VERSION)
    if version:
        config.engine.target_version = version

    no_prompt = os.environ.get(ENV_NO_PROMPT)
    if no_prompt and no_prompt.lower() in ("1", "true", "yes"):
        config.engine.prompt_for_missing = False

    # Extra modules are appended to those listed in the file
    modules = os.environ.get(ENV_MODULES)
    if modules:
        for module in modules.split(","):
            module = module.strip()
            if module and module not in config.modules:
                config.modules.append(module)

    return config


def get_config() -> CmdBoxConfig:
    """Get the current configuration (singleton).

    Loads config on first access, caches for subsequent calls.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Path | None = None) -> CmdBoxConfig:
    """Reload configuration from disk.

    Args:
        config_path: Path to config file. If None, uses default.

    Returns:
        Reloaded configuration.
    """
    global _config
    _config = load_config(config_path)
    return _config


def reset_config() -> None:
    """Reset the configuration singleton (mainly for testing)."""
    global _config
    _config = None
