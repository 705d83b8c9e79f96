"""TOML configuration loading for herbtrace.

Configuration files live in a ``config/`` directory:

- ``default.toml``: base values shipped with the repository
- ``{HERBTRACE_ENV}.toml``: optional per-environment overrides
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_ENV = "HERBTRACE_CONFIG_DIR"
ENVIRONMENT_ENV = "HERBTRACE_ENV"
DEFAULT_ENVIRONMENT = "development"

# How many parent directories to search for a config/ directory
_SEARCH_DEPTH = 5


def get_config_dir() -> Path:
    """Locate the configuration directory.

    ``HERBTRACE_CONFIG_DIR`` wins when set and must exist. Otherwise the
    current directory and its parents are searched for ``config/``.

    Raises:
        FileNotFoundError: If HERBTRACE_CONFIG_DIR points nowhere
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        path = Path(override)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {override}")
        return path

    current = Path.cwd()
    for _ in range(_SEARCH_DEPTH):
        candidate = current / "config"
        if candidate.is_dir():
            return candidate
        if current.parent == current:
            break
        current = current.parent

    return Path("config")


def get_environment() -> str:
    """Return the deployment environment name (HERBTRACE_ENV)."""
    return os.environ.get(ENVIRONMENT_ENV, DEFAULT_ENVIRONMENT)


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse a TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    with file_path.open("rb") as f:
        return tomllib.load(f)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``.

    Nested tables are merged key by key; any other value in ``override``
    replaces the one in ``base``. Neither argument is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_config(config_dir: Path | None = None, env: str | None = None) -> dict[str, Any]:
    """Load and merge the TOML configuration files.

    A missing ``default.toml`` yields an empty configuration so the
    pydantic model defaults apply; the environment file is optional.

    Args:
        config_dir: Directory to read from (defaults to get_config_dir())
        env: Environment name (defaults to get_environment())

    Returns:
        Merged configuration dictionary
    """
    directory = config_dir or get_config_dir()
    environment = env or get_environment()

    config: dict[str, Any] = {}
    default_path = directory / "default.toml"
    if default_path.exists():
        config = load_toml(default_path)

    env_path = directory / f"{environment}.toml"
    if env_path.exists():
        config = deep_merge(config, load_toml(env_path))

    return config
