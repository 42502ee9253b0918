"""Exception hierarchy for cmd-box."""

from typing import Any


class CmdBoxError(Exception):
    """Base exception for all cmd-box errors."""

    exit_code: int = 1
    user_message: str = "An error occurred"

    def __init__(
        self,
        message: str | None = None,
        *,
        user_message: str | None = None,
    ) -> None:
        super().__init__(message or self.user_message)
        if user_message:
            self.user_message = user_message


# Config Errors
class ConfigFileError(CmdBoxError):
    """Configuration file errors."""

    exit_code = 20
    user_message = "Configuration error"


class ConfigValidationError(ConfigFileError):
    """Configuration validation failed."""

    exit_code = 21
    user_message = "Invalid configuration"


# Registration Errors
class RegistrationError(CmdBoxError):
    """Programmer errors detected while building a registry."""

    exit_code = 30
    user_message = "Command registration error"


class DuplicateCommandError(RegistrationError):
    """A command name or alias is already registered."""

    exit_code = 31
    user_message = "A command with the same name or alias is already registered"

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(
            message or f"A command named or aliased '{name}' is already registered"
        )


class DuplicateFactoryError(RegistrationError):
    """A primary factory for the type is already registered."""

    exit_code = 32
    user_message = "A factory for the same type is already registered"

    def __init__(self, type_: type, message: str | None = None) -> None:
        self.type = type_
        super().__init__(
            message
            or f"A primary factory for {type_.__name__} objects is already registered"
        )


class ConfigurationError(RegistrationError):
    """Declared metadata is inconsistent or unusable."""

    exit_code = 33
    user_message = "Invalid command or factory declaration"


# Resolution Errors
class ResolutionError(CmdBoxError):
    """A command or the objects it needs cannot be located."""

    exit_code = 40
    user_message = "Unable to resolve command"


class UnknownCommandError(ResolutionError):
    """No command is registered under the requested name."""

    exit_code = 41
    user_message = "Unknown command"

    def __init__(self, name: str, available: list[str] | None = None) -> None:
        self.name = name
        self.available = available or []
        message = f"Unknown command '{name}'"
        if self.available:
            message += f". Available commands: {', '.join(self.available)}"
        super().__init__(message)


class NoFactoryError(ResolutionError):
    """No factory is registered for a type a command needs."""

    exit_code = 42
    user_message = "No way to obtain a required object"

    def __init__(self, type_: type, command_name: str | None = None) -> None:
        self.type = type_
        self.command_name = command_name
        message = (
            "No method, property, or constructor is registered as a factory "
            f"for {type_.__name__} objects"
        )
        if command_name:
            message += f", which are required by {command_name}"
        super().__init__(message)


class ContextResolutionError(ResolutionError):
    """An object of the required type cannot be produced from the current context."""

    exit_code = 44
    user_message = "Required object is not available in the current context"

    def __init__(self, type_: type, message: str | None = None) -> None:
        self.type = type_
        super().__init__(
            message
            or f"No object of type {type_.__name__} can be constructed from the "
            "current context, using the supplied arguments"
        )


class MissingContextObjectError(ContextResolutionError):
    """A constructor argument's type is not present in the context."""

    exit_code = 45

    def __init__(self, type_: type) -> None:
        super().__init__(
            type_,
            f"No object of type {type_.__name__} can be obtained from the current context",
        )


class MissingHostError(ContextResolutionError):
    """The object a command is invoked on is not present in the context."""

    exit_code = 46

    def __init__(self, type_: type, command_name: str) -> None:
        self.command_name = command_name
        super().__init__(
            type_,
            f"No object of type {type_.__name__} is available in the current "
            f"context to invoke {command_name} on",
        )


# Argument Errors
class ArgumentError(CmdBoxError):
    """Invalid or missing argument values."""

    exit_code = 50
    user_message = "Invalid argument"


class MissingRequiredArgumentError(ArgumentError):
    """A parameter has no value from any source."""

    exit_code = 51
    user_message = "A required argument was not supplied"

    def __init__(self, parameter_name: str, command_name: str) -> None:
        self.parameter_name = parameter_name
        self.command_name = command_name
        super().__init__(
            f"No value was specified for the required argument '{parameter_name}' "
            f"to command '{command_name}'"
        )


class ConversionError(ArgumentError):
    """A value cannot be converted to the declared type."""

    exit_code = 52
    user_message = "Argument value has the wrong type or format"

    def __init__(
        self,
        value: Any,
        type_: Any,
        message: str | None = None,
        *,
        valid_values: list[str] | None = None,
    ) -> None:
        self.value = value
        self.type = type_
        self.valid_values = valid_values or []
        type_name = getattr(type_, "__name__", str(type_))
        if message is None:
            message = f"Unable to convert {value!r} to {type_name}"
            if self.valid_values:
                message += f". Valid values are: {', '.join(self.valid_values)}"
        super().__init__(message)


class UnsatisfiableFactoryError(ResolutionError, MissingRequiredArgumentError):
    """Neither a factory nor any of its alternates can run with the supplied args.

    Also a MissingRequiredArgumentError: the factory's command lacks values
    for the parameters listed in `missing`.
    """

    exit_code = 43
    user_message = "Insufficient arguments to obtain a required object"

    def __init__(
        self,
        type_: type,
        command_name: str | None = None,
        missing: list[str] | None = None,
    ) -> None:
        self.type = type_
        self.command_name = command_name or ""
        self.missing = missing or []
        self.parameter_name = self.missing[0] if self.missing else ""
        message = f"No factory for {type_.__name__} objects can be satisfied"
        if command_name:
            message += f" (via {command_name})"
        if self.missing:
            message += f"; missing arguments: {', '.join(self.missing)}"
        CmdBoxError.__init__(self, message)


# Execution Errors
class CommandExecutionError(CmdBoxError):
    """The body of a command raised an exception."""

    exit_code = 60
    user_message = "Command failed"

    def __init__(self, command_name: str, cause: BaseException) -> None:
        self.command_name = command_name
        self.cause = cause
        super().__init__(f"Command {command_name} threw an exception: {cause}")
