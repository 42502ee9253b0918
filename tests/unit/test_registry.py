"""Tests for the command registry."""

import sys
from collections.abc import Iterable
from typing import Annotated, Any

import pytest

from cmd_box.commands import (
    DynamicSettingsCollection,
    FactoryKind,
    Param,
    Registry,
    SettingsCollection,
    alternate_factory,
    command,
    dynamic_setting,
    factory,
    setting,
)
from cmd_box.exceptions import (
    ConfigurationError,
    DuplicateCommandError,
    DuplicateFactoryError,
    NoFactoryError,
    UnknownCommandError,
)

# --- Sample Declarations ---


class Server:
    @factory
    def __init__(self) -> None:
        self.connected = False

    @command("Log in to the server", alias="signon")
    @factory
    def login(
        self,
        user: Annotated[str, Param("User name", alias="u")],
        password: Annotated[str, Param("Password", sensitive=True)],
    ) -> "Session":
        return Session(user)

    @command("Log in with a token")
    @alternate_factory
    def token_login(self, token: Annotated[str, Param("Access token")]) -> "Session":
        return Session("token")

    @command("Log in as guest")
    @factory(alternate=True)
    def guest_login(self) -> "Session":
        return Session("guest")


@setting("Delimiter", "Field delimiter", type=str, default=",", order=2)
@setting("Header", "Include a header row", default=True, order=1, internal_name="hdr")
@setting("Audit", "Audit the export", default=False, order=2, since="11.1.2")
class ExportOptions(SettingsCollection):
    def __init__(self) -> None:
        self.values: dict[str, Any] = {}

    def __getitem__(self, key: str) -> Any:
        return self.values.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.values[key] = value


class Session:
    def __init__(self, user: str) -> None:
        self.user = user

    @property
    @factory(single_use=True)
    def export_options(self) -> ExportOptions:
        return ExportOptions()

    @command("Export data", since="11.1.1")
    def export(
        self,
        options: ExportOptions,
        target: Annotated[str, Param("Target file", since="9.3", deprecated="11.1.2")],
        retries: int = 3,
        note: Annotated[str, Param("Optional note")] = "",
    ) -> None:
        pass

    @command()
    def whoami(self, server: Server) -> str:
        return self.user


# --- Tests ---


@pytest.fixture
def registry() -> Registry:
    registry = Registry()
    registry.register_types(Server, ExportOptions, Session)
    return registry


class TestCommandRegistration:
    """Tests for command discovery and lookup."""

    def test_commands_found(self, registry: Registry) -> None:
        assert registry.list_names() == [
            "export",
            "guest_login",
            "login",
            "token_login",
            "whoami",
        ]

    def test_lookup_is_case_insensitive(self, registry: Registry) -> None:
        assert registry.lookup("LOGIN") is registry.lookup("login")

    def test_lookup_by_alias(self, registry: Registry) -> None:
        assert registry.lookup("SignOn").name == "login"
        assert "signon" in registry
        assert registry.contains("Login")

    def test_unknown_command(self, registry: Registry) -> None:
        with pytest.raises(UnknownCommandError) as exc_info:
            registry.lookup("logout")
        assert "login" in exc_info.value.available
        assert registry.get("logout") is None

    def test_command_metadata(self, registry: Registry) -> None:
        cmd = registry.lookup("login")

        assert cmd.type is Server
        assert cmd.description == "Log in to the server"
        assert cmd.return_type is Session
        assert [p.name for p in cmd.parameters] == ["user", "password"]
        assert cmd.parameters[0].alias == "u"
        assert cmd.parameters[1].sensitive is True
        assert cmd.num_user_supplied_parameters == 2

    def test_parameter_defaults(self, registry: Registry) -> None:
        cmd = registry.lookup("export")
        params = {p.name: p for p in cmd.parameters}

        assert params["retries"].has_default is True
        assert params["retries"].default == 3
        assert params["retries"].has_metadata is True
        assert params["options"].is_settings_collection is True
        assert params["options"].has_metadata is False

    def test_type_injected_parameter(self, registry: Registry) -> None:
        cmd = registry.lookup("whoami")
        assert cmd.parameters[0].type is Server
        assert cmd.parameters[0].has_metadata is False
        assert cmd.user_parameters == []
        assert cmd.has_required_values({})

    def test_has_required_values(self, registry: Registry) -> None:
        cmd = registry.lookup("login")

        assert not cmd.has_required_values({"user": "admin"})
        assert cmd.has_required_values({"u": "admin", "password": "secret"})
        assert [p.name for p in cmd.missing_parameters({"user": "x"})] == ["password"]

    def test_void_command(self, registry: Registry) -> None:
        assert registry.lookup("export").return_type is None
        assert not registry.lookup("export").is_factory


class TestUniqueness:
    """Tests for name and factory uniqueness."""

    def test_duplicate_name(self, registry: Registry) -> None:
        class Other:
            @command()
            def Login(self) -> None:
                pass

        with pytest.raises(DuplicateCommandError):
            registry.register_type(Other)

    def test_name_clashes_with_alias(self, registry: Registry) -> None:
        class Other:
            @command()
            def signon(self) -> None:
                pass

        with pytest.raises(DuplicateCommandError):
            registry.register_type(Other)

    def test_alias_clashes_with_name(self, registry: Registry) -> None:
        class Other:
            @command(alias="WHOAMI")
            def identify(self) -> None:
                pass

        with pytest.raises(DuplicateCommandError):
            registry.register_type(Other)

    def test_duplicate_primary_factory(self, registry: Registry) -> None:
        class Other:
            @command()
            @factory
            def connect(self) -> Session:
                return Session("other")

        with pytest.raises(DuplicateFactoryError) as exc_info:
            registry.register_type(Other)
        assert exc_info.value.type is Session


class TestFactories:
    """Tests for factory registration and lookup."""

    def test_constructor_factory(self, registry: Registry) -> None:
        step = registry.get_factory(Server)
        assert step.kind == FactoryKind.CONSTRUCTOR
        assert step.prerequisites == []

    def test_command_factory(self, registry: Registry) -> None:
        step = registry.get_factory(Session)
        assert step.is_command
        assert step.command is registry.lookup("login")
        assert registry.lookup("login").factory is step
        assert step.prerequisites == [Server]

    def test_property_factory(self, registry: Registry) -> None:
        step = registry.get_factory(ExportOptions)
        assert step.is_property
        assert step.single_use is True
        assert step.declaring_type is Session

    def test_lookup_is_idempotent(self, registry: Registry) -> None:
        assert registry.has_factory(Session)
        assert registry.has_factory(Session)
        assert registry.get_factory(Session) is registry.get_factory(Session)

    def test_no_factory(self, registry: Registry) -> None:
        assert not registry.has_factory(str)
        with pytest.raises(NoFactoryError):
            registry.get_factory(str)

    def test_alternates_in_registration_order(self, registry: Registry) -> None:
        alternates = registry.get_alternates(Session)
        assert [f.name for f in alternates] == ["token_login", "guest_login"]
        assert all(f.alternate for f in alternates)
        assert registry.get_alternates(Server) == []

    def test_factory_method_must_be_command(self) -> None:
        class Broken:
            @factory
            def make(self) -> Session:
                return Session("x")

        with pytest.raises(ConfigurationError):
            Registry().register_type(Broken)

    def test_factory_needs_return_class(self) -> None:
        class Broken:
            @command()
            @factory
            def make(self) -> None:
                pass

        with pytest.raises(ConfigurationError):
            Registry().register_type(Broken)


class TestSettings:
    """Tests for settings collections."""

    def test_settings_sorted_by_order(self, registry: Registry) -> None:
        names = [s.name for s in registry.get_settings(ExportOptions)]
        assert names[0] == "Header"
        assert set(names[1:]) == {"Delimiter", "Audit"}

    def test_internal_name(self, registry: Registry) -> None:
        by_name = {s.name: s for s in registry.get_settings(ExportOptions)}
        assert by_name["Header"].internal_name == "hdr"
        assert by_name["Delimiter"].internal_name == "Delimiter"

    def test_settings_inherited_by_subclass(self, registry: Registry) -> None:
        class CsvOptions(ExportOptions):
            pass

        assert registry.get_settings(CsvOptions) == registry.get_settings(ExportOptions)

    def test_settings_on_non_collection(self) -> None:
        @setting("Verbose")
        class NotACollection:
            pass

        with pytest.raises(ConfigurationError):
            Registry().register_type(NotACollection)

    def test_dynamic_setting_requires_dynamic_collection(self) -> None:
        @dynamic_setting("Member", "Member selection")
        class StaticOptions(SettingsCollection):
            def __getitem__(self, key: str) -> Any:
                return None

            def __setitem__(self, key: str, value: Any) -> None:
                pass

        with pytest.raises(ConfigurationError):
            Registry().register_type(StaticOptions)

    def test_dynamic_setting_accepted(self) -> None:
        @dynamic_setting("Member", "Member selection")
        class DimensionOptions(DynamicSettingsCollection):
            def __getitem__(self, key: str) -> Any:
                return None

            def __setitem__(self, key: str, value: Any) -> None:
                pass

            def dynamic_setting_names(self) -> Iterable[str]:
                return []

        registry = Registry()
        registry.register_type(DimensionOptions)
        assert registry.get_settings(DimensionOptions)[0].is_dynamic


class TestVersionedSettings:
    """Tests for version filtering of user settings."""

    def test_all_settings_without_version(self, registry: Registry) -> None:
        names = [s.name for s in registry.user_settings(registry.lookup("export"))]
        assert "target" in names
        assert "Audit" in names
        assert "retries" in names

    def test_filtered_by_version(self, registry: Registry) -> None:
        cmd = registry.lookup("export")

        old = [s.name for s in registry.user_settings(cmd, "11.1.1")]
        new = [s.name for s in registry.user_settings(cmd, "11.1.2.3")]

        assert "target" in old and "Audit" not in old
        assert "target" not in new and "Audit" in new

    def test_command_version(self, registry: Registry) -> None:
        cmd = registry.lookup("export")

        assert not cmd.is_current("11.1.0")
        assert cmd.is_current("11.1.1")
        assert cmd.is_current(None)
        assert registry.lookup("login").is_current("1.0")


class TestModuleRegistration:
    """Tests for registering whole modules."""

    def test_register_module_by_name(self) -> None:
        registry = Registry()
        registry.register_module(__name__)
        assert "login" in registry
        assert registry.has_factory(ExportOptions)

    def test_register_module_object(self) -> None:
        registry = Registry()
        registry.register_module(sys.modules[__name__])
        assert registry.lookup("whoami").type is Session
