"""Command registry and resolution engine.

This module provides the declarative command infrastructure: classes
declare commands, factories and settings with decorators, a Registry
catalogues them, and a Context invokes commands by name, constructing
whatever objects they need first.

Usage:
    from typing import Annotated

    from cmd_box.commands import Context, Param, Registry, command, factory

    class Client:
        @factory
        def __init__(self) -> None: ...

        @command("Log in to the server")
        @factory
        def login(
            self,
            user: Annotated[str, Param("User name")],
            password: Annotated[str, Param("Password", sensitive=True)],
        ) -> "Session":
            return Session(user)

    registry = Registry()
    registry.register_types(Client, Session)
    ctx = Context(registry)
    ctx.invoke("login", {"user": "admin", "password": "secret"})
"""

from cmd_box.commands.arguments import ArgumentMap
from cmd_box.commands.base import (
    Command,
    DynamicSettingDef,
    DynamicSettingsCollection,
    Factory,
    FactoryKind,
    Parameter,
    Setting,
    SettingDef,
    SettingsCollection,
)
from cmd_box.commands.context import Context, MissingArgHandler
from cmd_box.commands.converter import TypeConverter
from cmd_box.commands.declarations import (
    Param,
    alternate_factory,
    command,
    dynamic_setting,
    factory,
    setting,
)
from cmd_box.commands.registry import Registry
from cmd_box.commands.result import Resolution

__all__ = [
    # Metadata
    "Command",
    "DynamicSettingDef",
    "DynamicSettingsCollection",
    "Factory",
    "FactoryKind",
    "Parameter",
    "Setting",
    "SettingDef",
    "SettingsCollection",
    # Declarations
    "Param",
    "alternate_factory",
    "command",
    "dynamic_setting",
    "factory",
    "setting",
    # Engine
    "ArgumentMap",
    "Context",
    "MissingArgHandler",
    "Registry",
    "Resolution",
    "TypeConverter",
]
