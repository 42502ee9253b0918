"""Metadata model for commands, factories and settings.

A Registry is built from these descriptors. They describe *what* can be
invoked and *how* instances of a type can be obtained; the Context uses
them at runtime to resolve and execute a command.

Settings are the common capability shared by command parameters and the
members of settings collections: a name, a value type, an optional alias,
a description, a default, a sensitivity flag, and a version range.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


def parse_version(version: str) -> tuple[int, ...]:
    """Parse a dotted version string such as '11.1.2.2' into a tuple of ints.

    Non-numeric suffixes on a component are ignored ('2b' -> 2).
    """
    parts = []
    for component in version.strip().split("."):
        match = re.match(r"\d+", component)
        parts.append(int(match.group()) if match else 0)
    return tuple(parts)


def version_in_range(
    version: str | None, since: str | None, deprecated: str | None
) -> bool:
    """Check since <= version < deprecated; missing bounds are open."""
    if version is None:
        return True
    target = parse_version(version)
    if since is not None and target < parse_version(since):
        return False
    if deprecated is not None and target >= parse_version(deprecated):
        return False
    return True


@dataclass
class Setting:
    """A named, described value descriptor.

    Attributes:
        name: Name used to match supplied arguments.
        type: The type of value the setting accepts.
        description: Human description, shown in help.
        alias: Alternate name that may be used in place of name.
        sensitive: Whether values must be masked when logged.
        has_default: Whether default holds a usable value (None may be it).
        default: The default value.
        since: Version in which the setting was introduced.
        deprecated: Version in which the setting was withdrawn.
    """

    name: str
    type: Any = str
    description: str | None = None
    alias: str | None = None
    sensitive: bool = False
    has_default: bool = False
    default: Any = None
    since: str | None = None
    deprecated: str | None = None

    @property
    def has_alias(self) -> bool:
        return bool(self.alias)

    @property
    def is_versioned(self) -> bool:
        return self.since is not None or self.deprecated is not None

    @property
    def is_dynamic(self) -> bool:
        return False

    def is_current(self, version: str | None) -> bool:
        """Check whether the setting applies to the given version.

        A setting is current from its since version (inclusive) up to its
        deprecated version (exclusive). Unversioned settings, or a None
        version, are always current.
        """
        return version_in_range(version, self.since, self.deprecated)

    def lookup(self, args: Mapping[str, Any]) -> tuple[bool, Any]:
        """Find a value for this setting by name, then by alias.

        Returns:
            (found, value) tuple.
        """
        if self.name in args:
            return True, args[self.name]
        if self.alias and self.alias in args:
            return True, args[self.alias]
        return False, None

    def __str__(self) -> str:
        type_name = getattr(self.type, "__name__", str(self.type))
        return f"{self.name} ({type_name})"


@dataclass
class SettingDef(Setting):
    """A setting declared on a settings-collection class.

    Attributes:
        order: Sort key; declaration order is not otherwise preserved.
        internal_name: Key used when assigning into the collection.
    """

    has_default: bool = True
    order: int = 0
    internal_name: str | None = None

    def __post_init__(self) -> None:
        if self.internal_name is None:
            self.internal_name = self.name


@dataclass
class DynamicSettingDef(SettingDef):
    """A setting whose concrete names are only known at runtime.

    The owning collection reports them via dynamic_setting_names().
    """

    @property
    def is_dynamic(self) -> bool:
        return True


@dataclass
class Parameter(Setting):
    """A parameter of a command.

    Attributes:
        has_metadata: True if the parameter is user-suppliable (declared
            with Param or of a string-convertible type); False if it is
            resolved purely by type from the context.
        is_settings_collection: True if the parameter type aggregates a
            set of related settings.
        positional: Hint for argument front-ends.
    """

    has_metadata: bool = False
    is_settings_collection: bool = False
    positional: bool = False

    @property
    def is_required(self) -> bool:
        return (
            self.has_metadata
            and not self.has_default
            and not self.is_settings_collection
        )


class SettingsCollection(ABC):
    """A collection of what would otherwise be individual command parameters.

    Used for commands that take an impractically large set of options,
    many of which have defaults. The settings a collection class accepts
    are declared with the @setting class decorator.
    """

    @abstractmethod
    def __getitem__(self, key: str) -> Any:
        """Get the current value of a setting."""

    @abstractmethod
    def __setitem__(self, key: str, value: Any) -> None:
        """Set the value of a setting."""

    def default_value(self, key: str) -> Any:
        """Return the default value for a setting in the collection."""
        return None


class DynamicSettingsCollection(SettingsCollection):
    """A settings collection whose setting names are determined at runtime."""

    @abstractmethod
    def dynamic_setting_names(self) -> Iterable[str]:
        """Return the names of the dynamic settings this instance accepts."""


class FactoryKind(str, Enum):
    """The member used by a factory to produce instances."""

    CONSTRUCTOR = "constructor"
    PROPERTY = "property"
    COMMAND = "command"


@dataclass(eq=False)
class Command:
    """An invocable operation bound to a host type.

    Attributes:
        name: Command name (unique, case-insensitive, within a registry).
        func: The underlying function; called as func(host, **arguments).
        type: The host type an instance of which the command runs on.
        parameters: Ordered parameter descriptors.
        description: Human description.
        alias: Optional alternate name.
        return_type: Declared return type, or None.
        factory: Linked Factory if the result is a producible type.
        since: Version in which the command was introduced.
        deprecated: Version in which the command was withdrawn.
    """

    name: str
    func: Callable[..., Any]
    type: type
    parameters: list[Parameter] = field(default_factory=list)
    description: str | None = None
    alias: str | None = None
    return_type: Any = None
    factory: "Factory | None" = None
    since: str | None = None
    deprecated: str | None = None

    @property
    def is_factory(self) -> bool:
        return self.factory is not None

    @property
    def user_parameters(self) -> list[Parameter]:
        """Parameters a caller may supply directly or via a collection."""
        return [
            p for p in self.parameters if p.has_metadata or p.is_settings_collection
        ]

    @property
    def num_user_supplied_parameters(self) -> int:
        return len(self.user_parameters)

    def missing_parameters(self, args: Mapping[str, Any]) -> list[Parameter]:
        """Return required user parameters that have no value in args."""
        return [
            p for p in self.parameters if p.is_required and not p.lookup(args)[0]
        ]

    def has_required_values(self, args: Mapping[str, Any]) -> bool:
        """Check whether args supply every required user parameter.

        Parameters with defaults, settings collections and parameters
        resolved by type from the context do not need a value in args.
        """
        return not self.missing_parameters(args)

    def is_current(self, version: str | None) -> bool:
        """Check whether the command exists in the given version."""
        return version_in_range(version, self.since, self.deprecated)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Command(name={self.name!r}, type={self.type.__name__})"


@dataclass(eq=False)
class Factory:
    """A registered way to obtain an instance of return_type.

    Attributes:
        kind: Constructor, property read, or command invocation.
        return_type: The type of object produced.
        declaring_type: The class the factory member is declared on.
        name: Name of the member.
        member: The constructor class, property object, or command function.
        alternate: Only tried when the primary factory cannot be satisfied.
        single_use: Instances are purged after the top-level invocation.
        command: Linked Command for command factories.
        constructor_types: Parameter types of a constructor factory.
    """

    kind: FactoryKind
    return_type: type
    declaring_type: type
    name: str
    member: Any = None
    alternate: bool = False
    single_use: bool = False
    command: Command | None = None
    constructor_types: list[type] = field(default_factory=list)

    @property
    def is_constructor(self) -> bool:
        return self.kind == FactoryKind.CONSTRUCTOR

    @property
    def is_property(self) -> bool:
        return self.kind == FactoryKind.PROPERTY

    @property
    def is_command(self) -> bool:
        return self.kind == FactoryKind.COMMAND

    @property
    def prerequisites(self) -> list[type]:
        """Types that must be in the context before this factory can run."""
        if self.is_constructor:
            return list(self.constructor_types)
        return [self.declaring_type]

    def __str__(self) -> str:
        if self.is_constructor:
            return f"Factory constructor for {self.return_type.__name__}"
        return (
            f"Factory {self.kind.value} {self.name} for {self.return_type.__name__}"
        )
