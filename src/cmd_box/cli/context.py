"""Factories for creating a Registry and Context from configuration."""

from collections.abc import Iterable
from typing import Any

import typer

from cmd_box.commands import Context, Registry, Setting
from cmd_box.config import get_config
from cmd_box.config.schema import CmdBoxConfig
from cmd_box.exceptions import ConfigurationError


def prompt_for_missing_arg(setting: Setting) -> Any:
    """Prompt the user for a value for a setting.

    Sensitive settings are read without echo. An empty answer leaves
    the setting unresolved.
    """
    label = setting.name[:1].upper() + setting.name[1:]
    prompt = f"Enter a value for {label}"
    if setting.description:
        prompt += f" ({setting.description})"
    value = typer.prompt(
        prompt,
        default="",
        show_default=False,
        hide_input=setting.sensitive,
    )
    return value or None


def create_registry(
    modules: Iterable[str] | None = None,
    config: CmdBoxConfig | None = None,
) -> Registry:
    """Create a Registry from the configured and requested modules.

    Args:
        modules: Extra dotted module names to register.
        config: Configuration to use. If None, uses global config.

    Raises:
        ConfigurationError: If a module cannot be imported.
    """
    if config is None:
        config = get_config()

    names = list(config.modules)
    for name in modules or []:
        if name not in names:
            names.append(name)

    registry = Registry()
    for name in names:
        try:
            registry.register_module(name)
        except ImportError as e:
            raise ConfigurationError(f"Cannot import command module '{name}': {e}") from e
    return registry


def create_context(
    registry: Registry,
    *,
    prompt: bool = True,
    config: CmdBoxConfig | None = None,
) -> Context:
    """Create a Context for invoking commands.

    Args:
        registry: Registry of available commands.
        prompt: Whether to prompt for missing arguments.
        config: Configuration to use. If None, uses global config.
    """
    if config is None:
        config = get_config()

    handler = None
    if prompt and config.engine.prompt_for_missing:
        handler = prompt_for_missing_arg

    return Context(registry, handler, mask=config.engine.mask)
