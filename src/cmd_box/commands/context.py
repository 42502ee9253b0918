"""Runtime context in which commands are resolved and executed.

A Context is like a session object: it holds the live object instances
on which commands are invoked, at most one per type. When a command's
host object (or an argument object) is missing, the Context walks the
registered factories backwards from the required type to what it already
holds, then runs the resulting construction steps in dependency order.
"""

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import Any, TypeVar

from cmd_box.commands.arguments import ArgumentMap
from cmd_box.commands.base import Command, Factory, Parameter, Setting
from cmd_box.commands.converter import runtime_class
from cmd_box.commands.registry import Registry
from cmd_box.commands.result import Resolution
from cmd_box.config.defaults import DEFAULT_MASK
from cmd_box.exceptions import (
    CommandExecutionError,
    ConfigurationError,
    ContextResolutionError,
    ConversionError,
    MissingContextObjectError,
    MissingHostError,
    MissingRequiredArgumentError,
    NoFactoryError,
    UnsatisfiableFactoryError,
)
from cmd_box.utils.logging import get_logger, log_with_context

T = TypeVar("T")

# Obtains a value for a setting out-of-band; None means still unresolved
MissingArgHandler = Callable[[Setting], Any]


class Context:
    """Holds live objects and invokes commands against them.

    Not safe for concurrent use: an invocation, including its purge of
    single-use objects, must complete before the next one starts.

    Usage:
        ctx = Context(registry, missing_arg_handler=prompt)
        ctx.set(Server("localhost"))
        ctx.invoke("close", {"user": "admin", "password": "secret", "app": "Fin1"})
        app = ctx.get(Application)
    """

    def __init__(
        self,
        registry: Registry,
        missing_arg_handler: MissingArgHandler | None = None,
        *,
        mask: str = DEFAULT_MASK,
        logger: logging.Logger | None = None,
    ) -> None:
        self._registry = registry
        self.missing_arg_handler = missing_arg_handler
        self.mask = mask
        self._log = logger or get_logger("cmd_box.context")
        self._objects: list[Any] = []
        self._pending_purge: list[Any] = []
        self._depth = 0

    @property
    def registry(self) -> Registry:
        return self._registry

    # --- Object pool ---

    def set(self, value: Any) -> None:
        """Add an object, replacing any held object whose type it is an instance of."""
        if value is None:
            raise ValueError("Cannot add None to a context")
        for index, existing in enumerate(self._objects):
            if isinstance(value, type(existing)):
                self._log.debug(
                    "Replacing object of type %s in context", type(existing).__name__
                )
                self._objects[index] = value
                return
        self._log.debug("Adding object of type %s to context", type(value).__name__)
        self._objects.append(value)

    def get(self, type_: type[T]) -> T | None:
        """Return the held object that is an instance of type_, or None."""
        klass = runtime_class(type_)
        if klass is None:
            return None
        for obj in self._objects:
            if isinstance(obj, klass):
                return obj
        return None

    def __getitem__(self, type_: type[T]) -> T:
        obj = self.get(type_)
        if obj is None:
            raise MissingContextObjectError(type_)
        return obj

    def has_object(self, type_: Any) -> bool:
        """Return True if the context holds an instance of type_."""
        result = self.get(type_) is not None
        self._log.debug(
            "Context %s contain an object of type %s",
            "does" if result else "does not",
            getattr(type_, "__name__", type_),
        )
        return result

    def remove(self, obj: Any) -> bool:
        """Remove a specific object (by identity). Returns True if it was held."""
        for index, existing in enumerate(self._objects):
            if existing is obj:
                del self._objects[index]
                return True
        return False

    def __contains__(self, type_: Any) -> bool:
        return self.get(type_) is not None

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._objects))

    def __len__(self) -> int:
        return len(self._objects)

    # --- Path finding ---

    def find_path(self, target: type, command_name: str | None = None) -> list[Factory]:
        """Determine the factory steps needed to obtain an instance of target.

        Returns:
            Steps in dependency-first order; empty if an instance is
            already held.

        Raises:
            NoFactoryError: If some required type has no factory.
            ConfigurationError: If the factory graph is cyclic.
        """
        return self._plan([target], command_name).unwrap()

    def _plan(self, targets: list[type], command_name: str | None) -> Resolution:
        steps: list[Factory] = []

        def scan(type_: type, chain: tuple[type, ...]) -> None:
            if self.has_object(type_):
                return
            if type_ in chain:
                cycle = " -> ".join(t.__name__ for t in chain + (type_,))
                raise ConfigurationError(f"Cyclic factory dependency: {cycle}")
            if not self._registry.has_factory(type_):
                raise NoFactoryError(type_, command_name)
            factory = self._registry.get_factory(type_)
            self._log.debug("Found %s on %s", factory, factory.declaring_type.__name__)
            steps.append(factory)
            for prerequisite in factory.prerequisites:
                scan(prerequisite, chain + (type_,))

        try:
            for target in targets:
                scan(target, ())
        except NoFactoryError as e:
            return Resolution.fail(e)

        # Consume most-recently-pushed first; keep the earliest occurrence
        # of a shared prerequisite
        ordered: list[Factory] = []
        for step in reversed(steps):
            if step not in ordered:
                ordered.append(step)
        return Resolution.ok(ordered)

    def required_settings(self, command_name: str, version: str | None = None) -> list[Setting]:
        """Return the user-suppliable settings needed to invoke a command.

        Includes the settings of every command that must run first to
        obtain the command's host object, given the current context.
        """
        cmd = self._registry.lookup(command_name)
        settings: list[Setting] = []
        for step in self.find_path(cmd.type, cmd.name):
            if step.is_command and step.command is not None:
                settings.extend(self._registry.user_settings(step.command, version))
        settings.extend(self._registry.user_settings(cmd, version))
        return settings

    # --- Invocation ---

    def invoke(self, command_name: str, args: Mapping[str, Any] | None = None) -> Any:
        """Invoke a command by name, constructing whatever it needs first.

        Args:
            command_name: Command name or alias.
            args: Argument values keyed by parameter name or alias
                (case-insensitive); strings are converted as needed.

        Returns:
            The command's result.
        """
        cmd = self._registry.lookup(command_name)
        arguments = ArgumentMap(args)

        self._depth += 1
        try:
            for step in self.find_path(cmd.type, cmd.name):
                self._instantiate(step, arguments).unwrap()
            return self.invoke_command(cmd, arguments)
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._purge()

    def _purge(self) -> None:
        for obj in self._pending_purge:
            if self.remove(obj):
                self._log.debug("Purged single-use %s from context", type(obj).__name__)
        self._pending_purge.clear()

    def instantiate(self, step: Factory, args: Mapping[str, Any] | None = None) -> Any:
        """Run one factory step and store its product in the context.

        Raises:
            MissingContextObjectError: If a prerequisite object is absent.
            UnsatisfiableFactoryError: If no factory path fits the arguments.
            ContextResolutionError: If the factory produced nothing.
        """
        if not isinstance(args, ArgumentMap):
            args = ArgumentMap(args)
        return self._instantiate(step, args).unwrap()

    def _instantiate(self, step: Factory, args: ArgumentMap) -> Resolution:
        self._log.debug(
            "Attempting to create an instance of %s via %s",
            step.return_type.__name__,
            step,
        )
        if step.is_constructor:
            result = self._invoke_constructor(step)
        elif step.is_property:
            host = self.get(step.declaring_type)
            if host is None:
                result = Resolution.fail(MissingContextObjectError(step.declaring_type))
            else:
                result = Resolution.ok(getattr(host, step.name))
        else:
            result = self._invoke_command_factory(step, args)

        if not result.success:
            return result
        obj = result.value
        if obj is None:
            return Resolution.fail(ContextResolutionError(step.return_type))

        self.set(obj)
        if step.single_use:
            self._pending_purge.append(obj)
        return Resolution.ok(obj)

    def _invoke_constructor(self, step: Factory) -> Resolution:
        values = []
        for type_ in step.constructor_types:
            obj = self.get(type_)
            if obj is None:
                return Resolution.fail(MissingContextObjectError(type_))
            values.append(obj)
        return Resolution.ok(step.member(*values))

    def unsatisfied_parameters(
        self, cmd: Command, args: Mapping[str, Any]
    ) -> list[Parameter]:
        """Return the parameters of cmd that cannot be bound right now.

        A parameter is satisfied by a supplied value (by name or alias), a
        default, an instance already held, or, for parameters resolved by
        type and settings collections, a factory path to its type.
        """
        missing = []
        for param in cmd.parameters:
            if param.lookup(args)[0] or param.has_default:
                continue
            if self.has_object(param.type):
                continue
            if not param.has_metadata and self._plan([param.type], cmd.name).success:
                continue
            missing.append(param)
        return missing

    def _invoke_command_factory(self, step: Factory, args: ArgumentMap) -> Resolution:
        cmd = step.command
        if cmd is None:
            raise ConfigurationError(f"{step} is not linked to a command")
        if not self.unsatisfied_parameters(cmd, args):
            return Resolution.ok(self.invoke_command(cmd, args))

        for alternate in self._registry.get_alternates(step.return_type):
            if alternate.command is not None and self.unsatisfied_parameters(
                alternate.command, args
            ):
                continue
            plan = self._plan(alternate.prerequisites, cmd.name)
            if not plan.success:
                continue
            self._log.debug("Using alternate %s", alternate)
            for prerequisite in plan.value:
                prepared = self._instantiate(prerequisite, args)
                if not prepared.success:
                    return prepared
            return self._instantiate(alternate, args)

        if self.missing_arg_handler is not None:
            for param in self.unsatisfied_parameters(cmd, args):
                if not param.has_metadata:
                    continue
                value = self.missing_arg_handler(param)
                if value is not None:
                    args[param.name] = value
            if not self.unsatisfied_parameters(cmd, args):
                return Resolution.ok(self.invoke_command(cmd, args))

        return Resolution.fail(
            UnsatisfiableFactoryError(
                step.return_type,
                cmd.name,
                [p.name for p in self.unsatisfied_parameters(cmd, args)],
            )
        )

    def invoke_command(self, cmd: Command, args: Mapping[str, Any] | None = None) -> Any:
        """Invoke a command on the context's instance of its host type.

        Raises:
            MissingHostError: If no host object is held.
            MissingRequiredArgumentError: If a parameter has no value.
            ConversionError: If a value cannot be converted.
            CommandExecutionError: If the command body raises.
        """
        if not isinstance(args, ArgumentMap):
            args = ArgumentMap(args)
        host = self.get(cmd.type)
        if host is None:
            raise MissingHostError(cmd.type, cmd.name)

        values, logged = self._prepare_arguments(cmd, args)
        self._log_invocation(cmd, logged)

        try:
            result = cmd.func(host, **values)
        except Exception as e:
            self._log.debug("Command %s threw an exception", cmd.name, exc_info=True)
            raise CommandExecutionError(cmd.name, e) from e

        if result is not None and cmd.is_factory:
            self.set(result)
        return result

    def _prepare_arguments(
        self, cmd: Command, args: ArgumentMap
    ) -> tuple[dict[str, Any], list[tuple[Setting, Any]]]:
        """Bind a value to every parameter; nothing runs until all are bound."""
        values: dict[str, Any] = {}
        logged: list[tuple[Setting, Any]] = []

        for param in cmd.parameters:
            self._log.debug("Processing parameter %s", param.name)
            found, raw = param.lookup(args)
            if found:
                value = self.convert_setting(raw, param)
                logged.append((param, value))
            elif param.is_settings_collection:
                value = self._populate_collection(cmd, param, args, logged)
            elif param.has_default:
                self._log.debug(
                    "No value supplied for %s; using default value '%s'",
                    param.name,
                    self.mask if param.sensitive else param.default,
                )
                value = self.convert_setting(param.default, param)
                logged.append((param, value))
            elif self.has_object(param.type):
                value = self.get(param.type)
                if param.has_metadata:
                    logged.append((param, value))
            elif self._registry.has_factory(param.type):
                for step in self.find_path(param.type, cmd.name):
                    self._instantiate(step, args).unwrap()
                value = self[param.type]
                if param.has_metadata:
                    logged.append((param, value))
            else:
                value = self._prompt(param, args)
                if value is None:
                    raise MissingRequiredArgumentError(param.name, cmd.name)
                value = self.convert_setting(value, param)
                logged.append((param, value))
            values[param.name] = value

        return values, logged

    def _prompt(self, param: Parameter, args: ArgumentMap) -> Any:
        if self.missing_arg_handler is None:
            return None
        value = self.missing_arg_handler(param)
        if value is not None:
            args[param.name] = value
        return value

    def _populate_collection(
        self,
        cmd: Command,
        param: Parameter,
        args: ArgumentMap,
        logged: list[tuple[Setting, Any]],
    ) -> Any:
        if not self.has_object(param.type):
            for step in self.find_path(param.type, cmd.name):
                self._instantiate(step, args).unwrap()
        collection = self[param.type]

        for definition in self._registry.get_settings(param.type):
            if definition.is_dynamic:
                for name in collection.dynamic_setting_names():
                    if name in args:
                        named = Setting(
                            name=name,
                            type=definition.type,
                            sensitive=definition.sensitive,
                        )
                        collection[name] = self.convert_setting(args[name], named)
                        logged.append((named, collection[name]))
            else:
                found, raw = definition.lookup(args)
                if found:
                    key = definition.internal_name or definition.name
                    collection[key] = self.convert_setting(raw, definition)
                    logged.append((definition, collection[key]))
        return collection

    def convert_setting(self, value: Any, setting: Setting) -> Any:
        """Ensure a value is of the setting's type, converting strings."""
        if value is None:
            return None
        klass = runtime_class(setting.type)
        if klass is None or klass is object or isinstance(value, klass):
            return value
        if klass is float and isinstance(value, int) and not isinstance(value, bool):
            return float(value)
        if isinstance(value, str):
            return self._registry.converter.convert(value, setting.type)
        raise ConversionError(
            value,
            setting.type,
            f"Unable to convert {type(value).__name__} to {klass.__name__} "
            f"for {setting.name}",
        )

    def _log_invocation(self, cmd: Command, logged: list[tuple[Setting, Any]]) -> None:
        lines = []
        parameters: dict[str, Any] = {}
        for setting, value in logged:
            if value is None:
                continue
            shown = self.mask if setting.sensitive else value
            label = setting.name[:1].upper() + setting.name[1:]
            lines.append(f"\n          {label:<19}: {shown}")
            parameters[setting.name] = shown if setting.sensitive else str(value)

        if lines:
            message = f"Executing {cmd.type.__name__} command {cmd.name}:{''.join(lines)}"
        else:
            message = f"Executing {cmd.type.__name__} command {cmd.name}..."
        log_with_context(
            self._log,
            logging.INFO,
            message,
            command=cmd.name,
            host=cmd.type.__name__,
            parameters=parameters,
        )
