"""Decorators used to declare commands, factories and settings on classes.

The decorators only attach metadata; nothing is registered until the
class is passed to Registry.register_type().

Example:
    @setting("Delimiter", "File delimiter", type=str, default=",", order=1)
    class LoadOptions(SettingsCollection):
        ...

    class Server:
        @command("Log in to the server")
        @factory
        def login(
            self,
            user: Annotated[str, Param("User name", alias="u")],
            password: Annotated[str, Param("Password", sensitive=True)],
        ) -> Session:
            ...

    class Session:
        @factory
        def __init__(self, server: Server) -> None:
            ...

        @property
        @factory(single_use=True)
        def options(self) -> LoadOptions:
            ...
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from cmd_box.commands.base import DynamicSettingDef, SettingDef

F = TypeVar("F", bound=Callable[..., Any])
C = TypeVar("C", bound=type)

COMMAND_ATTR = "__cmd_box_command__"
FACTORY_ATTR = "__cmd_box_factory__"
SETTINGS_ATTR = "__cmd_box_settings__"


@dataclass(frozen=True)
class Param:
    """Parameter metadata, attached via typing.Annotated.

    Example:
        def login(self, password: Annotated[str, Param("Password", sensitive=True)]):
            ...
    """

    description: str | None = None
    alias: str | None = None
    sensitive: bool = False
    since: str | None = None
    deprecated: str | None = None
    positional: bool = False


@dataclass(frozen=True)
class CommandSpec:
    """Metadata recorded by @command."""

    description: str | None = None
    name: str | None = None
    alias: str | None = None
    since: str | None = None
    deprecated: str | None = None


@dataclass(frozen=True)
class FactorySpec:
    """Metadata recorded by @factory."""

    alternate: bool = False
    single_use: bool = False


def command(
    description: str | None = None,
    *,
    name: str | None = None,
    alias: str | None = None,
    since: str | None = None,
    deprecated: str | None = None,
) -> Callable[[F], F]:
    """Mark a method as an invocable command.

    Args:
        description: Human description of the command.
        name: Override the command name (defaults to the function name).
        alias: Alternate name for the command.
        since: Version in which the command was introduced.
        deprecated: Version in which the command was withdrawn.
    """

    def decorator(func: F) -> F:
        setattr(
            func,
            COMMAND_ATTR,
            CommandSpec(description, name, alias, since, deprecated),
        )
        return func

    return decorator


def factory(
    func: F | None = None,
    *,
    alternate: bool = False,
    single_use: bool = False,
) -> Any:
    """Mark a constructor, property getter or command as a factory.

    Usable bare (@factory) or with options (@factory(single_use=True)).
    For a property, apply it beneath @property.

    Args:
        alternate: Only use this factory when the primary one cannot be
            satisfied from the supplied arguments.
        single_use: Purge produced instances from the context once the
            top-level invocation that needed them completes.
    """
    spec = FactorySpec(alternate=alternate, single_use=single_use)

    def decorator(fn: F) -> F:
        setattr(fn, FACTORY_ATTR, spec)
        return fn

    if func is not None:
        return decorator(func)
    return decorator


def alternate_factory(func: F | None = None, *, single_use: bool = False) -> Any:
    """Shorthand for @factory(alternate=True)."""
    return factory(func, alternate=True, single_use=single_use)


def _add_setting(cls: C, definition: SettingDef) -> C:
    # Settings are only declared on the class itself, never inherited
    settings = cls.__dict__.get(SETTINGS_ATTR)
    if settings is None:
        settings = []
        setattr(cls, SETTINGS_ATTR, settings)
    settings.append(definition)
    return cls


def setting(
    name: str,
    description: str | None = None,
    *,
    type: Any = bool,
    alias: str | None = None,
    default: Any = None,
    has_default: bool = True,
    sensitive: bool = False,
    order: int = 0,
    since: str | None = None,
    deprecated: str | None = None,
    internal_name: str | None = None,
) -> Callable[[C], C]:
    """Declare a setting accepted by a settings-collection class.

    Settings default to boolean flags with a default, as most options in
    a large collection are switches.
    """

    def decorator(cls: C) -> C:
        return _add_setting(
            cls,
            SettingDef(
                name=name,
                type=type,
                description=description,
                alias=alias,
                sensitive=sensitive,
                has_default=has_default,
                default=default,
                since=since,
                deprecated=deprecated,
                order=order,
                internal_name=internal_name,
            ),
        )

    return decorator


def dynamic_setting(
    name: str,
    description: str | None = None,
    *,
    type: Any = str,
    sensitive: bool = False,
    order: int = 0,
    since: str | None = None,
    deprecated: str | None = None,
) -> Callable[[C], C]:
    """Declare a setting whose names are reported by the collection at runtime.

    Only valid on DynamicSettingsCollection subclasses; the registry
    rejects it anywhere else.
    """

    def decorator(cls: C) -> C:
        return _add_setting(
            cls,
            DynamicSettingDef(
                name=name,
                type=type,
                description=description,
                sensitive=sensitive,
                has_default=False,
                since=since,
                deprecated=deprecated,
                order=order,
            ),
        )

    return decorator
