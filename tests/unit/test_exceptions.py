"""Tests for exception hierarchy."""

import pytest

from cmd_box.exceptions import (
    ArgumentError,
    CmdBoxError,
    CommandExecutionError,
    ConfigFileError,
    ConfigurationError,
    ConfigValidationError,
    ContextResolutionError,
    ConversionError,
    DuplicateCommandError,
    DuplicateFactoryError,
    MissingContextObjectError,
    MissingHostError,
    MissingRequiredArgumentError,
    NoFactoryError,
    RegistrationError,
    ResolutionError,
    UnknownCommandError,
    UnsatisfiableFactoryError,
)


class Widget:
    pass


class TestCmdBoxError:
    """Tests for base CmdBoxError."""

    def test_default_message(self) -> None:
        """Test default error message."""
        error = CmdBoxError()
        assert str(error) == "An error occurred"
        assert error.user_message == "An error occurred"
        assert error.exit_code == 1

    def test_custom_message(self) -> None:
        """Test custom error message."""
        error = CmdBoxError("Custom error")
        assert str(error) == "Custom error"

    def test_custom_user_message(self) -> None:
        """Test custom user message."""
        error = CmdBoxError("Internal", user_message="User-friendly message")
        assert error.user_message == "User-friendly message"


class TestConfigErrors:
    """Tests for configuration errors."""

    def test_config_file_error(self) -> None:
        error = ConfigFileError()
        assert error.exit_code == 20
        assert "configuration" in error.user_message.lower()

    def test_config_validation_error(self) -> None:
        error = ConfigValidationError("bad value")
        assert error.exit_code == 21
        assert isinstance(error, ConfigFileError)


class TestRegistrationErrors:
    """Tests for registration errors."""

    def test_duplicate_command(self) -> None:
        error = DuplicateCommandError("login")
        assert error.name == "login"
        assert "login" in str(error)
        assert error.exit_code == 31

    def test_duplicate_factory(self) -> None:
        error = DuplicateFactoryError(Widget)
        assert error.type is Widget
        assert "Widget" in str(error)

    def test_configuration_error(self) -> None:
        error = ConfigurationError("Cyclic factory dependency")
        assert isinstance(error, RegistrationError)
        assert error.exit_code == 33


class TestResolutionErrors:
    """Tests for resolution errors."""

    def test_unknown_command_lists_available(self) -> None:
        error = UnknownCommandError("lgoin", ["close", "login"])
        assert "lgoin" in str(error)
        assert "close, login" in str(error)
        assert error.available == ["close", "login"]

    def test_no_factory_names_type_and_command(self) -> None:
        error = NoFactoryError(Widget, "polish")
        message = str(error)
        assert "Widget" in message
        assert "polish" in message
        assert error.exit_code == 42

    def test_missing_context_object(self) -> None:
        error = MissingContextObjectError(Widget)
        assert isinstance(error, ContextResolutionError)
        assert error.type is Widget

    def test_missing_host(self) -> None:
        error = MissingHostError(Widget, "polish")
        assert "polish" in str(error)
        assert error.command_name == "polish"


class TestUnsatisfiableFactoryError:
    """Tests for the error raised when no factory path fits the arguments."""

    def test_is_resolution_and_missing_argument_error(self) -> None:
        error = UnsatisfiableFactoryError(Widget, "build", ["size", "colour"])
        assert isinstance(error, ResolutionError)
        assert isinstance(error, MissingRequiredArgumentError)
        assert error.exit_code == 43

    def test_attributes(self) -> None:
        error = UnsatisfiableFactoryError(Widget, "build", ["size", "colour"])
        assert error.type is Widget
        assert error.command_name == "build"
        assert error.missing == ["size", "colour"]
        assert error.parameter_name == "size"
        assert "size, colour" in str(error)

    def test_without_missing(self) -> None:
        error = UnsatisfiableFactoryError(Widget)
        assert error.missing == []
        assert "Widget" in str(error)


class TestArgumentErrors:
    """Tests for argument errors."""

    def test_missing_required_argument(self) -> None:
        error = MissingRequiredArgumentError("password", "login")
        assert error.parameter_name == "password"
        assert error.command_name == "login"
        assert "password" in str(error)
        assert error.exit_code == 51

    def test_conversion_error_valid_values(self) -> None:
        error = ConversionError("maybe", bool, valid_values=["true", "false"])
        assert error.valid_values == ["true", "false"]
        assert "true, false" in str(error)
        assert isinstance(error, ArgumentError)


class TestExecutionErrors:
    """Tests for command execution errors."""

    def test_wraps_cause(self) -> None:
        cause = RuntimeError("disk full")
        error = CommandExecutionError("save", cause)
        assert error.cause is cause
        assert error.command_name == "save"
        assert "disk full" in str(error)
        assert error.exit_code == 60


class TestExceptionHierarchy:
    """Tests for exception inheritance."""

    @pytest.mark.parametrize(
        "error",
        [
            ConfigFileError(),
            DuplicateCommandError("x"),
            UnknownCommandError("x"),
            MissingRequiredArgumentError("a", "b"),
            CommandExecutionError("x", ValueError()),
        ],
    )
    def test_inherits_from_base(self, error: CmdBoxError) -> None:
        assert isinstance(error, CmdBoxError)

    def test_can_catch_base_exception(self) -> None:
        """Test catching all cmd-box errors with base class."""
        with pytest.raises(CmdBoxError):
            raise NoFactoryError(Widget)
