"""CLI layer for cmd-box.

This module provides the command-line interface for cmd-box,
built on Typer with Rich formatting support.

Usage:
    cmd-box --help
    cmd-box commands -m myapp.commands
    cmd-box run close user=admin app=Fin1 -m myapp.commands
"""

from cmd_box.cli.app import app, main
from cmd_box.cli.context import create_context, create_registry, prompt_for_missing_arg
from cmd_box.cli.options import (
    LogLevelOption,
    ModuleOption,
    NoPromptOption,
    parse_arguments,
)

__all__ = [
    # App
    "app",
    "main",
    # Context
    "create_context",
    "create_registry",
    "prompt_for_missing_arg",
    # Options
    "LogLevelOption",
    "ModuleOption",
    "NoPromptOption",
    "parse_arguments",
]
