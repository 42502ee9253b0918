"""Main CLI application for cmd-box."""

from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from cmd_box import __version__
from cmd_box.cli.context import create_context, create_registry
from cmd_box.cli.options import (
    LogLevelOption,
    ModuleOption,
    NoPromptOption,
    parse_arguments,
)
from cmd_box.commands import Registry, Setting
from cmd_box.config import get_config
from cmd_box.exceptions import CmdBoxError, CommandExecutionError
from cmd_box.utils.logging import setup_logging

# Create Typer app
app = typer.Typer(
    name="cmd-box",
    help="Invoke declaratively registered commands by name",
    add_completion=True,
    no_args_is_help=True,
)

# Rich console for output
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"cmd-box version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Invoke declaratively registered commands by name."""
    pass


def _configure_logging(level: str | None) -> None:
    config = get_config()
    setup_logging(
        level=level or config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        use_color=config.logging.color,
    )


def _fail(error: CmdBoxError) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {error}")
    if isinstance(error, CommandExecutionError) and error.cause is not None:
        err_console.print(f"[dim]Caused by {type(error.cause).__name__}[/dim]")
    return typer.Exit(error.exit_code)


def _load_registry(module: list[str] | None) -> Registry:
    try:
        return create_registry(module)
    except CmdBoxError as e:
        raise _fail(e) from None


@app.command()
def run(
    command_name: str = typer.Argument(..., metavar="COMMAND", help="Command to invoke."),
    arguments: list[str] | None = typer.Argument(
        None, metavar="[KEY=VALUE]...", help="Command arguments."
    ),
    module: ModuleOption = None,
    no_prompt: NoPromptOption = False,
    log_level: LogLevelOption = None,
) -> None:
    """Invoke a command, constructing whatever objects it needs first."""
    _configure_logging(log_level)
    registry = _load_registry(module)
    args = parse_arguments(arguments)

    ctx = create_context(registry, prompt=not no_prompt)
    try:
        result = ctx.invoke(command_name, args)
    except CmdBoxError as e:
        raise _fail(e) from None

    if result is not None:
        console.print(result)


@app.command("commands")
def list_commands(module: ModuleOption = None) -> None:
    """List all available commands."""
    registry = _load_registry(module)
    version = get_config().engine.target_version

    table = Table(title="Commands")
    table.add_column("Name", style="cyan")
    table.add_column("Alias")
    table.add_column("Host")
    table.add_column("Description")

    count = 0
    for cmd in registry.commands():
        if not cmd.is_current(version):
            continue
        table.add_row(cmd.name, cmd.alias or "", cmd.type.__name__, cmd.description or "")
        count += 1

    if count == 0:
        console.print("[dim]No commands registered[/dim]")
        return
    console.print(table)
    console.print(
        "\n[dim]For detailed help on any of the above commands, use "
        "'cmd-box describe <COMMAND>'[/dim]"
    )


def _settings_table(title: str, settings: list[Setting], mask: str) -> Table:
    table = Table(title=title)
    table.add_column("Parameter", style="cyan")
    table.add_column("Alias")
    table.add_column("Default Value")
    table.add_column("Description")
    for item in settings:
        default: Any = ""
        if item.has_default and item.default is not None:
            default = mask if item.sensitive else str(item.default)
        description = item.description or ""
        if description and not description.endswith("."):
            description += "."
        label = item.name[:1].upper() + item.name[1:]
        table.add_row(label, item.alias or "", default, description)
    return table


@app.command()
def describe(
    command_name: str = typer.Argument(..., metavar="COMMAND", help="Command to describe."),
    module: ModuleOption = None,
) -> None:
    """Show a command's description and the settings it accepts."""
    registry = _load_registry(module)
    config = get_config()
    version = config.engine.target_version
    ctx = create_context(registry, prompt=False, config=config)

    try:
        cmd = registry.lookup(command_name)
        steps = ctx.find_path(cmd.type, cmd.name)
    except CmdBoxError as e:
        raise _fail(e) from None

    console.print(f"[bold]{cmd.name}[/bold]  [dim]({cmd.type.__name__})[/dim]")
    if cmd.description:
        console.print(cmd.description)
    console.print()

    own = registry.user_settings(cmd, version)
    if own:
        console.print(_settings_table("Parameters", own, config.engine.mask))
    else:
        console.print("[dim]This command takes no parameters[/dim]")

    for step in steps:
        if step.is_command and step.command is not None:
            prerequisite = registry.user_settings(step.command, version)
            if prerequisite:
                console.print(
                    _settings_table(
                        f"Required to obtain {step.return_type.__name__} "
                        f"(via {step.command.name})",
                        prerequisite,
                        config.engine.mask,
                    )
                )


@app.command("config")
def config_cmd(
    show_path: bool = typer.Option(
        False,
        "--path",
        "-p",
        help="Show config file path.",
    ),
) -> None:
    """Show current configuration."""
    from cmd_box.config.defaults import get_config_path

    if show_path:
        console.print(str(get_config_path()))
        return

    config = get_config()
    console.print("[bold]cmd-box configuration[/bold]\n")
    console.print(f"Config file: {get_config_path()}")
    console.print(f"Modules: {', '.join(config.modules) or '(none)'}")
    console.print(f"Prompt for missing arguments: {config.engine.prompt_for_missing}")
    console.print(f"Target version: {config.engine.target_version or '(any)'}")
    console.print(f"Log level: {config.logging.level}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
