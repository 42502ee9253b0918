"""Pytest fixtures for cmd-box tests."""

import logging
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from cmd_box.config import reset_config
from cmd_box.config.defaults import (
    ENV_CONFIG_PATH,
    ENV_LOG_LEVEL,
    ENV_MODULES,
    ENV_NO_PROMPT,
    ENV_TARGET_VERSION,
)
from cmd_box.config.schema import CmdBoxConfig


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def default_config() -> CmdBoxConfig:
    """Get default configuration."""
    return CmdBoxConfig()


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Keep tests away from the user's config file and environment."""
    for name in (ENV_LOG_LEVEL, ENV_MODULES, ENV_NO_PROMPT, ENV_TARGET_VERSION):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv(ENV_CONFIG_PATH, str(tmp_path / "cmd-box" / "config.toml"))
    yield


@pytest.fixture(autouse=True)
def reset_config_fixture() -> Generator[None, None, None]:
    """Reset config singleton between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo setup_logging() so caplog sees cmd_box records."""
    yield
    logger = logging.getLogger("cmd_box")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def config_file(temp_dir: Path) -> Path:
    """Create a test config file."""
    config_path = temp_dir / "config.toml"
    config_path.write_text("""
modules = ["myapp.commands"]

[engine]
mask = "<hidden>"
prompt_for_missing = false
target_version = "11.1.2"

[logging]
level = "DEBUG"
json_format = true
""")
    return config_path
