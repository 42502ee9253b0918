"""Pydantic models for cmd-box configuration."""

from pathlib import Path

from pydantic import BaseModel, Field

from cmd_box.config.defaults import DEFAULT_MASK


class EngineConfig(BaseModel):
    """Command engine configuration."""

    mask: str = DEFAULT_MASK
    prompt_for_missing: bool = True
    target_version: str | None = None  # Hide settings not current for this version


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: Path | None = None  # Default: no file logging
    json_format: bool = False
    color: bool = True


class CmdBoxConfig(BaseModel):
    """Root configuration for cmd-box."""

    modules: list[str] = Field(default_factory=list)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
