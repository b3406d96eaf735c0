"""XDG-compliant path management for sdrsweep.

This module provides standardized paths following the XDG Base Directory
Specification for configuration and state storage, plus the default
locations of the reader's own metadata stores.

XDG defaults:
- Config: ~/.config/sdrsweep/
- State: ~/.local/state/sdrsweep/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "sdrsweep"

# Reader data directory holding the centralized sidecar stores
READER_DATA_DIRNAME = "koreader"
DOCSETTINGS_DIRNAME = "docsettings"
HASH_DOCSETTINGS_DIRNAME = "hashdocsettings"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/sdrsweep/ (or XDG_CONFIG_HOME/sdrsweep/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes the run history that should persist between
    runs but is not configuration.

    Returns:
        Path to ~/.local/state/sdrsweep/ (or XDG_STATE_HOME/sdrsweep/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to ~/.config/sdrsweep/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_history_path() -> Path:
    """Get the history file path.

    Returns:
        Path to ~/.local/state/sdrsweep/history.jsonl.
    """
    return get_state_dir() / "history.jsonl"


def get_theme_path() -> Path:
    """Get the user theme override path.

    Returns:
        Path to ~/.config/sdrsweep/theme.toml.
    """
    return get_config_dir() / "theme.toml"


def get_reader_data_dir() -> Path:
    """Get the reader's default data directory.

    Returns:
        Path to ~/.config/koreader/ (or XDG_CONFIG_HOME/koreader/).
    """
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / READER_DATA_DIRNAME
    return Path.home() / ".config" / READER_DATA_DIRNAME


def _ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_config_dir() -> Path:
    """Create the configuration directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_config_dir(), "config")


def ensure_state_dir() -> Path:
    """Create the state directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_state_dir(), "state")
