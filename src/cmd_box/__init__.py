"""cmd-box: declarative command dispatch with automatic dependency resolution."""

__version__ = "0.3.0"
