"""Configuration parsing from ``.covinfo.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from covinfo.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".covinfo.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

_MIN_EXTENSION_LENGTH = 2


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    return value if isinstance(value, dict) else {}


@dataclass
class GcovConfig:
    """External annotation tool settings."""

    executable: str = "gcov"
    """Program to run (supports ${ENV_VAR} expansion)."""

    timeout: float = 300.0
    """Seconds to wait for one invocation before killing it."""

    extra_args: list[str] = field(default_factory=list)
    """Additional arguments appended to every invocation."""


@dataclass
class FilesConfig:
    """File naming conventions of the instrumented build."""

    data_extension: str = ".da"
    """Extension of raw coverage data files."""

    metadata_extension: str = ".bb"
    """Extension of basic-block metadata files."""

    source_extension: str = ".c"
    """Extension of the source file passed to gcov."""

    annotated_suffix: str = ".gcov"
    """Suffix of the annotated listings gcov writes."""


@dataclass
class OutputConfig:
    """Tracefile output settings."""

    test_name: str = ""
    """Label written to every ``TN:`` line."""

    filename: str = ""
    """Single output file; empty writes ``<data file>.info`` per data file, ``-`` is stdout."""

    quiet: bool = False
    """Suppress progress messages."""

    @property
    def to_stdout(self) -> bool:
        """Return True when tracefile data goes to standard output."""
        return self.filename == "-"


@dataclass
class CovinfoConfig:
    """Complete covinfo configuration."""

    gcov: GcovConfig = field(default_factory=GcovConfig)
    files: FilesConfig = field(default_factory=FilesConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    raw: dict[str, Any] = field(default_factory=dict)
    """Raw parsed YAML for extension/debugging."""


def _parse_gcov_config(raw: dict[str, Any]) -> GcovConfig:
    gcov_raw = _section(raw, "gcov")
    extra_args = gcov_raw.get("extra_args", [])
    return GcovConfig(
        executable=str(gcov_raw.get("executable", os.environ.get("COVINFO_GCOV", "gcov"))),
        timeout=float(gcov_raw.get("timeout", 300.0)),
        extra_args=[str(arg) for arg in extra_args] if isinstance(extra_args, list) else [],
    )


def _parse_files_config(raw: dict[str, Any]) -> FilesConfig:
    files_raw = _section(raw, "files")
    defaults = FilesConfig()
    return FilesConfig(
        data_extension=str(files_raw.get("data_extension", defaults.data_extension)),
        metadata_extension=str(files_raw.get("metadata_extension", defaults.metadata_extension)),
        source_extension=str(files_raw.get("source_extension", defaults.source_extension)),
        annotated_suffix=str(files_raw.get("annotated_suffix", defaults.annotated_suffix)),
    )


def _parse_output_config(raw: dict[str, Any]) -> OutputConfig:
    output_raw = _section(raw, "output")
    return OutputConfig(
        test_name=str(output_raw.get("test_name", "")),
        filename=str(output_raw.get("filename", "")),
        quiet=bool(output_raw.get("quiet", False)),
    )


def load_config(path: str | Path | None = None) -> CovinfoConfig:
    """Load configuration from *path* (default: ``./.covinfo.yml``).

    A missing file yields the defaults.

    Raises:
        ConfigurationError: If the file exists but is not valid YAML, or a
            value has the wrong type.
    """
    config_path = Path(path) if path else Path.cwd() / CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.is_file():
        try:
            parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"cannot load {config_path}: {exc}") from exc
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        logger.debug("Loaded configuration from %s", config_path)

    try:
        return CovinfoConfig(
            gcov=_parse_gcov_config(raw),
            files=_parse_files_config(raw),
            output=_parse_output_config(raw),
            raw=raw,
        )
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"invalid value in {config_path}: {exc}") from exc


def _validate_files_config(files: FilesConfig) -> list[str]:
    errors: list[str] = []
    for name in ("data_extension", "metadata_extension", "source_extension", "annotated_suffix"):
        value = getattr(files, name)
        if not value.startswith(".") or len(value) < _MIN_EXTENSION_LENGTH:
            errors.append(f"files.{name} must start with '.' (got: {value!r})")
    if files.data_extension == files.metadata_extension:
        errors.append("files.data_extension and files.metadata_extension must differ")
    return errors


def validate_config(config: CovinfoConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []

    if not config.gcov.executable.strip():
        errors.append("gcov.executable must not be empty")
    if config.gcov.timeout <= 0:
        errors.append(f"gcov.timeout must be positive (got: {config.gcov.timeout})")

    errors.extend(_validate_files_config(config.files))
    return errors
