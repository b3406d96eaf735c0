"""Sweep configuration and settings.

This module provides the configuration model and I/O functions for a
sweep: which storage topology is active, where each topology's root
lives, and the naming conventions used to recognise sidecars.

Configuration is stored in ~/.config/sdrsweep/config.toml and resolved
once per run; the engine receives the resulting value explicitly.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sdrsweep.core.paths import (
    DOCSETTINGS_DIRNAME,
    HASH_DOCSETTINGS_DIRNAME,
    get_config_path,
    get_reader_data_dir,
)
from sdrsweep.sidecars.classifier import DEFAULT_SIDECAR_SUFFIX
from sdrsweep.sidecars.strategies import (
    DEFAULT_EXTENSIONS,
    DEFAULT_METADATA_FILENAME,
    DEFAULT_PATH_FIELD,
    normalize_extensions,
)

logger = logging.getLogger(__name__)


class SweepConfig(BaseModel):
    """Configuration for a sidecar sweep.

    Attributes:
        topology: Active storage topology identifier ("doc", "dir" or "hash").
        home_dir: Content library root, scanned in "doc" mode.
        data_dir: Reader data directory holding the centralized stores.
        docsettings_dir: Centralized mirrored sidecar root ("dir" mode).
        hash_docsettings_dir: Hash-bucketed sidecar root ("hash" mode).
        content_root: Root of the content tree mirrored in "dir" mode.
        sidecar_suffix: Suffix identifying sidecar directories.
        metadata_filename: Metadata record inside hash-bucketed sidecars.
        doc_path_field: Metadata field holding the original content path.
        extensions: Recognised content extensions, compound ones included.
        follow_symlinks: Descend into symlinked directories while walking.
    """

    model_config = ConfigDict(extra="forbid")

    topology: Annotated[
        str,
        Field(min_length=1, description="Active storage topology identifier"),
    ] = "doc"
    home_dir: Annotated[
        Path | None,
        Field(description="Content library root (None = home directory)"),
    ] = None
    data_dir: Annotated[
        Path | None,
        Field(description="Reader data directory (None = ~/.config/koreader)"),
    ] = None
    docsettings_dir: Annotated[
        Path | None,
        Field(description="Mirrored sidecar root (None = <data_dir>/docsettings)"),
    ] = None
    hash_docsettings_dir: Annotated[
        Path | None,
        Field(description="Hash sidecar root (None = <data_dir>/hashdocsettings)"),
    ] = None
    content_root: Annotated[
        Path,
        Field(description="Content root mirrored by the docsettings tree"),
    ] = Path("/")
    sidecar_suffix: Annotated[
        str,
        Field(description="Suffix of sidecar directories"),
    ] = DEFAULT_SIDECAR_SUFFIX
    metadata_filename: Annotated[
        str,
        Field(min_length=1, description="Metadata record file name"),
    ] = DEFAULT_METADATA_FILENAME
    doc_path_field: Annotated[
        str,
        Field(min_length=1, description="Metadata field holding the content path"),
    ] = DEFAULT_PATH_FIELD
    extensions: Annotated[
        list[str],
        Field(min_length=1, description="Recognised content extensions"),
    ] = list(normalize_extensions(DEFAULT_EXTENSIONS))
    follow_symlinks: Annotated[
        bool,
        Field(description="Descend into symlinked directories"),
    ] = False

    @field_validator(
        "home_dir", "data_dir", "docsettings_dir", "hash_docsettings_dir", "content_root"
    )
    @classmethod
    def expand_path(cls, v: Path | None) -> Path | None:
        """Expand ~ in configured paths."""
        if v is None:
            return None
        return v.expanduser()

    @field_validator("sidecar_suffix")
    @classmethod
    def validate_suffix(cls, v: str) -> str:
        """Validate that the suffix looks like '.ext'."""
        if not v.startswith(".") or len(v) < 2 or "/" in v:
            msg = f"sidecar_suffix must look like '.sdr', got {v!r}"
            raise ValueError(msg)
        return v

    @field_validator("metadata_filename")
    @classmethod
    def validate_metadata_filename(cls, v: str) -> str:
        """Validate that the metadata filename is a bare name."""
        if "/" in v or v in (".", ".."):
            msg = f"metadata_filename must be a file name, got {v!r}"
            raise ValueError(msg)
        return v

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, v: list[str]) -> list[str]:
        """Normalize extensions to lower-case with a leading dot."""
        normalized = list(normalize_extensions(v))
        if not normalized:
            msg = "extensions must contain at least one non-empty extension"
            raise ValueError(msg)
        return normalized

    @property
    def effective_home_dir(self) -> Path:
        """Get the content library root.

        Falls back to the user's home directory when the configured one
        is unset or is not a directory.
        """
        if self.home_dir is not None and self.home_dir.is_dir():
            return self.home_dir
        if self.home_dir is not None:
            logger.warning("Configured home_dir is not a directory: %s", self.home_dir)
        return Path.home()

    @property
    def effective_data_dir(self) -> Path:
        """Get the reader data directory."""
        return self.data_dir or get_reader_data_dir()

    @property
    def effective_docsettings_dir(self) -> Path:
        """Get the mirrored sidecar root."""
        return self.docsettings_dir or self.effective_data_dir / DOCSETTINGS_DIRNAME

    @property
    def effective_hash_docsettings_dir(self) -> Path:
        """Get the hash-bucketed sidecar root."""
        return self.hash_docsettings_dir or self.effective_data_dir / HASH_DOCSETTINGS_DIRNAME


class SweepConfigError(Exception):
    """Base exception for sweep configuration errors."""


class SweepConfigNotFoundError(SweepConfigError):
    """Raised when the config file is not found."""


class SweepConfigParseError(SweepConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> SweepConfig:
    """Load sweep configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated SweepConfig object.

    Raises:
        SweepConfigNotFoundError: If the config file doesn't exist.
        SweepConfigParseError: If the TOML syntax is invalid.
        SweepConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise SweepConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise SweepConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise SweepConfigError(f"Failed to read config: {e}") from e

    try:
        return SweepConfig.model_validate(data)
    except ValidationError as e:
        raise SweepConfigError(f"Invalid config content: {e}") from e


def load_config_or_default(path: Path | None = None) -> SweepConfig:
    """Load the config file, or return defaults if it does not exist.

    Raises:
        SweepConfigParseError: If the TOML syntax is invalid.
        SweepConfigError: If the content doesn't match the schema.
    """
    try:
        return load_config(path)
    except SweepConfigNotFoundError:
        logger.debug("No config file, using defaults")
        return SweepConfig()


def save_config(config: SweepConfig, path: Path | None = None) -> Path:
    """Save sweep configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The SweepConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        SweepConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    data = _config_to_dict(config)

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        # os.replace() is atomic on POSIX
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise SweepConfigError(f"Failed to write config: {e}") from e

    return config_path


def _config_to_dict(config: SweepConfig) -> dict[str, object]:
    """Convert SweepConfig to a dictionary for TOML serialization.

    The topology is always written; other settings only when they differ
    from the defaults, and paths only when set.

    Args:
        config: The SweepConfig to convert.

    Returns:
        Dictionary ready for TOML serialization.
    """
    defaults = SweepConfig()
    result: dict[str, object] = {"topology": config.topology}

    for name in ("home_dir", "data_dir", "docsettings_dir", "hash_docsettings_dir"):
        value = getattr(config, name)
        if value is not None:
            result[name] = str(value)

    if config.content_root != defaults.content_root:
        result["content_root"] = str(config.content_root)

    for name in ("sidecar_suffix", "metadata_filename", "doc_path_field", "follow_symlinks"):
        value = getattr(config, name)
        if value != getattr(defaults, name):
            result[name] = value

    if config.extensions != defaults.extensions:
        result["extensions"] = list(config.extensions)

    return result
