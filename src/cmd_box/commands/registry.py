"""Registry of commands, factories and settings declared on classes."""

import importlib
import inspect
import logging
from collections.abc import Iterator
from types import ModuleType
from typing import Annotated, Any, get_args, get_origin, get_type_hints

from cmd_box.commands.base import (
    Command,
    DynamicSettingsCollection,
    Factory,
    FactoryKind,
    Parameter,
    Setting,
    SettingDef,
    SettingsCollection,
)
from cmd_box.commands.converter import TypeConverter, runtime_class
from cmd_box.commands.declarations import (
    COMMAND_ATTR,
    FACTORY_ATTR,
    SETTINGS_ATTR,
    CommandSpec,
    FactorySpec,
    Param,
)
from cmd_box.exceptions import (
    ConfigurationError,
    DuplicateCommandError,
    DuplicateFactoryError,
    NoFactoryError,
    UnknownCommandError,
)
from cmd_box.utils.logging import get_logger


def _type_hints(func: Any, owner: type) -> dict[str, Any]:
    try:
        return get_type_hints(func, include_extras=True)
    except NameError as e:
        raise ConfigurationError(
            f"Cannot resolve type annotations of {owner.__name__}.{func.__name__}: {e}"
        ) from e


def _split_annotation(hint: Any) -> tuple[Any, Param | None]:
    """Separate an Annotated[T, Param(...)] hint into T and its Param."""
    if get_origin(hint) is Annotated:
        base, *extras = get_args(hint)
        for extra in extras:
            if isinstance(extra, Param):
                return base, extra
        return base, None
    return hint, None


class Registry:
    """Catalogue of the commands, factories and settings available to a Context.

    A registry is populated once at startup by scanning classes for
    declared metadata, and is treated as immutable thereafter.

    Usage:
        registry = Registry()
        registry.register_types(Server, Session, Application)

        cmd = registry.lookup("login")
        if registry.has_factory(Session):
            factory = registry.get_factory(Session)
    """

    def __init__(
        self,
        converter: TypeConverter | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._converter = converter or TypeConverter()
        self._log = logger or get_logger("cmd_box.registry")
        # Command name -> Command
        self._commands: dict[str, Command] = {}
        # Casefolded name or alias -> Command
        self._index: dict[str, Command] = {}
        # Produced type -> primary Factory
        self._factories: dict[type, Factory] = {}
        # Alternate factories, in registration order
        self._alternates: list[Factory] = []
        # Settings-collection type -> ordered settings
        self._settings: dict[type, list[SettingDef]] = {}

    @property
    def converter(self) -> TypeConverter:
        """The TypeConverter used for argument values."""
        return self._converter

    # --- Registration ---

    def register_module(self, module: ModuleType | str) -> None:
        """Register every class defined in a module.

        Args:
            module: The module object, or its dotted name.
        """
        if isinstance(module, str):
            module = importlib.import_module(module)
        self._log.debug("Searching for commands in module '%s'...", module.__name__)
        for _, cls in inspect.getmembers(module, inspect.isclass):
            if cls.__module__ == module.__name__:
                self.register_type(cls)

    def register_types(self, *classes: type) -> None:
        """Register several classes in order."""
        for cls in classes:
            self.register_type(cls)

    def register_type(self, cls: type) -> None:
        """Register the commands, factories and settings declared on a class.

        Raises:
            DuplicateCommandError: If a command name or alias is taken.
            DuplicateFactoryError: If a primary factory for a type exists.
            ConfigurationError: If the declarations are inconsistent.
        """
        if not inspect.isclass(cls):
            raise ConfigurationError(f"{cls!r} is not a class")

        declared = cls.__dict__.get(SETTINGS_ATTR)
        if declared:
            self.add_settings(cls, declared)

        for attr_name, member in vars(cls).items():
            if isinstance(member, property):
                func = member.fget
            elif isinstance(member, (staticmethod, classmethod)):
                func = member.__func__
            else:
                func = member
            cmd_spec: CommandSpec | None = getattr(func, COMMAND_ATTR, None)
            factory_spec: FactorySpec | None = getattr(func, FACTORY_ATTR, None)
            if cmd_spec is None and factory_spec is None:
                continue
            if not inspect.isfunction(func) or isinstance(
                member, (staticmethod, classmethod)
            ):
                raise ConfigurationError(
                    f"{cls.__name__}.{attr_name} must be an instance method or "
                    "property to be a command or factory"
                )

            cmd = None
            if cmd_spec is not None:
                if isinstance(member, property):
                    raise ConfigurationError(
                        f"Property {cls.__name__}.{attr_name} cannot be a command"
                    )
                cmd = self._build_command(cls, func, cmd_spec)
                self.add_command(cmd)

            if factory_spec is not None:
                if attr_name == "__init__":
                    factory = self._build_constructor_factory(cls, func, factory_spec)
                elif isinstance(member, property):
                    factory = self._build_property_factory(
                        cls, attr_name, member, factory_spec
                    )
                elif cmd is not None:
                    factory = self._build_command_factory(cls, cmd, factory_spec)
                else:
                    raise ConfigurationError(
                        f"Factory method {cls.__name__}.{attr_name} must also be "
                        "declared as a command"
                    )
                self.add_factory(factory, alternate=factory_spec.alternate)

    def _build_command(self, cls: type, func: Any, spec: CommandSpec) -> Command:
        name = spec.name or func.__name__
        hints = _type_hints(func, cls)
        parameters: list[Parameter] = []

        for index, (pname, param) in enumerate(inspect.signature(func).parameters.items()):
            if index == 0:
                continue  # self
            if param.kind in (
                inspect.Parameter.POSITIONAL_ONLY,
                inspect.Parameter.VAR_POSITIONAL,
                inspect.Parameter.VAR_KEYWORD,
            ):
                raise ConfigurationError(
                    f"Parameter '{pname}' of command {name} must be passable by keyword"
                )
            if pname not in hints:
                raise ConfigurationError(
                    f"Parameter '{pname}' of command {name} has no type annotation"
                )
            ptype, meta = _split_annotation(hints[pname])
            klass = runtime_class(ptype)
            is_collection = klass is not None and issubclass(klass, SettingsCollection)
            has_default = param.default is not inspect.Parameter.empty
            meta = meta or Param()
            parameters.append(
                Parameter(
                    name=pname,
                    type=ptype,
                    description=meta.description,
                    alias=meta.alias,
                    sensitive=meta.sensitive,
                    has_default=has_default,
                    default=param.default if has_default else None,
                    since=meta.since,
                    deprecated=meta.deprecated,
                    has_metadata=not is_collection
                    and (
                        meta != Param() or self._converter.can_convert(ptype)
                    ),
                    is_settings_collection=is_collection,
                    positional=meta.positional,
                )
            )

        return_type = hints.get("return")
        if return_type is type(None):
            return_type = None
        cmd = Command(
            name=name,
            func=func,
            type=cls,
            parameters=parameters,
            description=spec.description,
            alias=spec.alias,
            return_type=return_type,
            since=spec.since,
            deprecated=spec.deprecated,
        )
        self._log.debug("Found command %s on %s", name, cls.__name__)
        return cmd

    def _build_constructor_factory(
        self, cls: type, func: Any, spec: FactorySpec
    ) -> Factory:
        hints = _type_hints(func, cls)
        types_: list[type] = []
        for index, (pname, param) in enumerate(inspect.signature(func).parameters.items()):
            if index == 0:
                continue
            klass = runtime_class(_split_annotation(hints.get(pname))[0])
            if klass is None or param.kind in (
                inspect.Parameter.KEYWORD_ONLY,
                inspect.Parameter.VAR_POSITIONAL,
                inspect.Parameter.VAR_KEYWORD,
            ):
                raise ConfigurationError(
                    f"Constructor parameter '{pname}' of factory for "
                    f"{cls.__name__} must be a single value annotated with a class"
                )
            types_.append(klass)
        return Factory(
            kind=FactoryKind.CONSTRUCTOR,
            return_type=cls,
            declaring_type=cls,
            name=cls.__name__,
            member=cls,
            alternate=spec.alternate,
            single_use=spec.single_use,
            constructor_types=types_,
        )

    def _build_property_factory(
        self, cls: type, attr_name: str, prop: property, spec: FactorySpec
    ) -> Factory:
        return_type = runtime_class(_type_hints(prop.fget, cls).get("return"))
        if return_type is None:
            raise ConfigurationError(
                f"Factory property {cls.__name__}.{attr_name} must declare a return class"
            )
        return Factory(
            kind=FactoryKind.PROPERTY,
            return_type=return_type,
            declaring_type=cls,
            name=attr_name,
            member=prop,
            alternate=spec.alternate,
            single_use=spec.single_use,
        )

    def _build_command_factory(
        self, cls: type, cmd: Command, spec: FactorySpec
    ) -> Factory:
        return_type = runtime_class(cmd.return_type)
        if return_type is None:
            raise ConfigurationError(
                f"Factory command {cmd.name} must declare a return class"
            )
        factory = Factory(
            kind=FactoryKind.COMMAND,
            return_type=return_type,
            declaring_type=cls,
            name=cmd.name,
            member=cmd.func,
            alternate=spec.alternate,
            single_use=spec.single_use,
            command=cmd,
        )
        cmd.factory = factory
        return factory

    def add_command(self, cmd: Command) -> None:
        """Register a Command.

        Raises:
            DuplicateCommandError: If its name or alias is already in use.
        """
        keys = [cmd.name] + ([cmd.alias] if cmd.alias else [])
        for key in keys:
            if key.casefold() in self._index:
                raise DuplicateCommandError(key)
        if len({k.casefold() for k in keys}) != len(keys):
            raise DuplicateCommandError(cmd.alias or cmd.name)
        self._commands[cmd.name] = cmd
        for key in keys:
            self._index[key.casefold()] = cmd

    def add_factory(self, factory: Factory, alternate: bool = False) -> None:
        """Register a Factory, as the primary for its type or as an alternate.

        Raises:
            DuplicateFactoryError: If a primary factory for the type exists.
        """
        factory.alternate = alternate
        if alternate:
            self._alternates.append(factory)
        else:
            if factory.return_type in self._factories:
                raise DuplicateFactoryError(factory.return_type)
            self._factories[factory.return_type] = factory
        self._log.debug("Found %s", factory)

    def add_settings(self, cls: type, settings: list[SettingDef]) -> None:
        """Register the settings accepted by a settings-collection class.

        Raises:
            ConfigurationError: If the class cannot hold the settings.
        """
        if not issubclass(cls, SettingsCollection):
            raise ConfigurationError(
                f"Settings are declared on {cls.__name__}, which is not a SettingsCollection"
            )
        for definition in settings:
            if definition.is_dynamic and not issubclass(cls, DynamicSettingsCollection):
                raise ConfigurationError(
                    f"Dynamic setting {definition.name} is declared on {cls.__name__}, "
                    "which does not implement DynamicSettingsCollection"
                )
        # sorted() is stable, so equal order keys keep declaration order
        self._settings[cls] = sorted(settings, key=lambda s: s.order)

    # --- Lookup ---

    def lookup(self, name: str) -> Command:
        """Return the command registered under a name or alias.

        Raises:
            UnknownCommandError: If no such command exists.
        """
        cmd = self._index.get(name.casefold())
        if cmd is None:
            raise UnknownCommandError(name, sorted(self._commands))
        return cmd

    def get(self, name: str) -> Command | None:
        """Return the command for a name or alias, or None."""
        return self._index.get(name.casefold())

    def contains(self, name: str) -> bool:
        """Check if a command with the given name or alias exists."""
        return name.casefold() in self._index

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.contains(name)

    def commands(self) -> Iterator[Command]:
        """Iterate over registered commands, sorted by name."""
        return iter(sorted(self._commands.values(), key=lambda c: c.name.casefold()))

    def list_names(self) -> list[str]:
        """List command names (not aliases), sorted."""
        return [cmd.name for cmd in self.commands()]

    def has_factory(self, type_: Any) -> bool:
        """Check whether a primary factory is registered for a type."""
        return isinstance(type_, type) and type_ in self._factories

    def get_factory(self, type_: type) -> Factory:
        """Return the primary factory for a type.

        Raises:
            NoFactoryError: If none is registered.
        """
        if not self.has_factory(type_):
            raise NoFactoryError(type_)
        return self._factories[type_]

    def get_alternates(self, type_: type) -> list[Factory]:
        """Return the alternate factories for a type, in registration order."""
        return [f for f in self._alternates if f.return_type is type_]

    def get_settings(self, type_: type) -> list[SettingDef]:
        """Return the ordered settings of a settings-collection type.

        Settings declared on the nearest registered base class apply to
        subclasses that declare none of their own.
        """
        for klass in getattr(type_, "__mro__", ()):
            if klass in self._settings:
                return list(self._settings[klass])
        return []

    def user_settings(self, cmd: Command, version: str | None = None) -> list[Setting]:
        """Return the settings a caller can supply to a command.

        Settings collections are expanded into their member settings.
        Settings not current for version are omitted.
        """
        result: list[Setting] = []
        for param in cmd.user_parameters:
            if param.is_settings_collection:
                result.extend(self.get_settings(param.type))
            else:
                result.append(param)
        return [s for s in result if s.is_current(version)]
