"""Shared CLI options for cmd-box commands."""

from typing import Annotated

import typer

ModuleOption = Annotated[
    list[str] | None,
    typer.Option(
        "--module",
        "-m",
        help="Module whose classes declare commands (repeatable). Added to config modules.",
    ),
]

NoPromptOption = Annotated[
    bool,
    typer.Option(
        "--no-prompt",
        help="Fail instead of prompting for missing arguments.",
    ),
]

LogLevelOption = Annotated[
    str | None,
    typer.Option(
        "--log-level",
        "-l",
        help="Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config setting.",
        case_sensitive=False,
    ),
]


def parse_arguments(tokens: list[str] | None) -> dict[str, str]:
    """Convert KEY=VALUE tokens into an argument dictionary.

    Args:
        tokens: Tokens as given on the command line.

    Returns:
        Mapping of argument name to (string) value.

    Raises:
        typer.BadParameter: If a token has no '=' or an empty key.
    """
    args: dict[str, str] = {}
    for token in tokens or []:
        key, sep, value = token.partition("=")
        key = key.strip().lstrip("-")
        if not sep or not key:
            raise typer.BadParameter(
                f"Invalid argument '{token}'. Arguments must be given as KEY=VALUE"
            )
        args[key] = value
    return args
