"""Tests for config.py: .covinfo.yml parsing and validation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
import yaml

from covinfo.config import (
    CONFIG_FILENAME,
    CovinfoConfig,
    FilesConfig,
    GcovConfig,
    OutputConfig,
    _resolve_dict,
    _resolve_env_vars,
    load_config,
    validate_config,
)
from covinfo.errors import ConfigurationError

if TYPE_CHECKING:
    from pathlib import Path


def _write_config(root: Path, data: dict[str, Any]) -> Path:
    """Write .covinfo.yml with given data."""
    path = root / CONFIG_FILENAME
    path.write_text(yaml.dump(data), encoding="utf-8")
    return path


# ── _resolve_env_vars / _resolve_dict ────────────────────────────


class TestResolveEnvVars:
    def test_resolves_existing_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GCC_HOME", "/opt/gcc-3.3")
        assert _resolve_env_vars("${GCC_HOME}/bin/gcov") == "/opt/gcc-3.3/bin/gcov"

    def test_missing_var_returns_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MISSING_VAR", raising=False)
        assert _resolve_env_vars("${MISSING_VAR}") == ""

    def test_no_vars_unchanged(self) -> None:
        assert _resolve_env_vars("plain text") == "plain text"


class TestResolveDict:
    def test_resolves_nested_dicts_and_lists(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FLAG", "-b")
        data = {"gcov": {"executable": "gcov", "extra_args": ["${FLAG}", 3]}, "n": 1}

        assert _resolve_dict(data) == {
            "gcov": {"executable": "gcov", "extra_args": ["-b", 3]},
            "n": 1,
        }


# ── load_config ──────────────────────────────────────────────────


class TestLoadConfig:
    def test_load_missing_yml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("COVINFO_GCOV", raising=False)
        config = load_config(tmp_path / CONFIG_FILENAME)

        assert config.gcov == GcovConfig()
        assert config.files == FilesConfig()
        assert config.output == OutputConfig()
        assert config.raw == {}

    def test_load_default_location(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_config(tmp_path, {"output": {"test_name": "nightly"}})
        monkeypatch.chdir(tmp_path)

        assert load_config().output.test_name == "nightly"

    def test_load_empty_yml(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text("", encoding="utf-8")

        assert load_config(path).files.data_extension == ".da"

    def test_load_full_yml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GCC_HOME", "/opt/gcc")
        path = _write_config(
            tmp_path,
            {
                "gcov": {
                    "executable": "${GCC_HOME}/bin/gcov",
                    "timeout": 30,
                    "extra_args": ["-b", "-c"],
                },
                "files": {
                    "data_extension": ".gcda",
                    "metadata_extension": ".gcno",
                    "source_extension": ".cc",
                    "annotated_suffix": ".gcov",
                },
                "output": {"test_name": "unit", "filename": "all.info", "quiet": True},
            },
        )

        config = load_config(path)

        assert config.gcov == GcovConfig(
            executable="/opt/gcc/bin/gcov", timeout=30.0, extra_args=["-b", "-c"]
        )
        assert config.files.data_extension == ".gcda"
        assert config.files.metadata_extension == ".gcno"
        assert config.files.source_extension == ".cc"
        assert config.output == OutputConfig(test_name="unit", filename="all.info", quiet=True)
        assert config.raw["gcov"]["timeout"] == 30

    def test_gcov_from_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COVINFO_GCOV", "gcov-3.3")

        assert load_config(tmp_path / CONFIG_FILENAME).gcov.executable == "gcov-3.3"

    def test_load_non_dict_sections(self, tmp_path: Path) -> None:
        path = _write_config(tmp_path, {"gcov": "fast", "files": [1, 2], "output": None})

        config = load_config(path)

        assert config.files == FilesConfig()
        assert config.output == OutputConfig()

    def test_extra_args_not_list(self, tmp_path: Path) -> None:
        path = _write_config(tmp_path, {"gcov": {"extra_args": "-b"}})

        assert load_config(path).gcov.extra_args == []

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text("gcov: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="cannot load"):
            load_config(path)

    def test_invalid_value_raises(self, tmp_path: Path) -> None:
        path = _write_config(tmp_path, {"gcov": {"timeout": "soon"}})

        with pytest.raises(ConfigurationError, match="invalid value"):
            load_config(path)


# ── OutputConfig ─────────────────────────────────────────────────


class TestOutputConfig:
    def test_dash_means_stdout(self) -> None:
        assert OutputConfig(filename="-").to_stdout

    def test_file_is_not_stdout(self) -> None:
        assert not OutputConfig(filename="all.info").to_stdout
        assert not OutputConfig().to_stdout


# ── validate_config ──────────────────────────────────────────────


class TestValidateConfig:
    def test_defaults_are_valid(self) -> None:
        assert validate_config(CovinfoConfig()) == []

    def test_empty_executable(self) -> None:
        config = CovinfoConfig(gcov=GcovConfig(executable="  "))
        assert validate_config(config) == ["gcov.executable must not be empty"]

    def test_non_positive_timeout(self) -> None:
        config = CovinfoConfig(gcov=GcovConfig(timeout=0))
        errors = validate_config(config)
        assert len(errors) == 1
        assert "gcov.timeout" in errors[0]

    @pytest.mark.parametrize("value", ["da", ".", ""])
    def test_bad_extension(self, value: str) -> None:
        config = CovinfoConfig(files=FilesConfig(data_extension=value))
        errors = validate_config(config)
        assert any("files.data_extension" in error for error in errors)

    def test_data_and_metadata_extension_must_differ(self) -> None:
        config = CovinfoConfig(files=FilesConfig(data_extension=".bb"))
        assert validate_config(config) == [
            "files.data_extension and files.metadata_extension must differ"
        ]

    def test_collects_all_errors(self) -> None:
        config = CovinfoConfig(
            gcov=GcovConfig(executable="", timeout=-1),
            files=FilesConfig(annotated_suffix="gcov"),
        )
        assert len(validate_config(config)) == 3
