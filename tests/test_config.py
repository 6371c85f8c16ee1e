"""Tests for configuration module."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from unmake.config import Settings, get_settings, print_settings_json
from unmake.errors import ConfigurationError


class TestSettings:
    """Test Settings class."""

    def test_default_settings(self, project) -> None:
        """Settings should have the conventional layout by default."""
        settings = Settings()

        assert settings.target == "build"
        assert settings.compiler == "cc"
        assert settings.linker == "cc"
        assert settings.cflags == ["-Wall"]
        assert settings.src_dir == Path("src")
        assert settings.src_ext == ".c"
        assert settings.inc_dir == Path("include")
        assert settings.obj_dir == Path("obj")
        assert settings.bin_dir == Path("bin")
        assert settings.lib_dir == Path("lib")
        assert settings.clean_command == ["rm", "-rf"]
        assert settings.init_command == "git init"
        assert settings.self_source == ""
        assert settings.compile_commands is True
        assert settings.log_level == "INFO"

    def test_settings_from_env(self, project, monkeypatch) -> None:
        """Settings should be loadable from environment variables."""
        monkeypatch.setenv("UNMAKE_TARGET", "app")
        monkeypatch.setenv("UNMAKE_CFLAGS", '["-O2", "-g"]')
        monkeypatch.setenv("UNMAKE_SRC_DIR", "source")
        monkeypatch.setenv("UNMAKE_RPATH", "false")

        settings = Settings()

        assert settings.target == "app"
        assert settings.cflags == ["-O2", "-g"]
        assert settings.src_dir == Path("source")
        assert settings.rpath is False

    def test_settings_from_yaml(self, project) -> None:
        """unmake.yaml in the working directory should be read."""
        (project / "unmake.yaml").write_text(
            "target: tool\nlib_flags:\n  - -lm\nsrc_ext: .cc\n"
        )
        settings = Settings()
        assert settings.target == "tool"
        assert settings.lib_flags == ["-lm"]
        assert settings.src_ext == ".cc"

    def test_env_overrides_yaml(self, project, monkeypatch) -> None:
        (project / "unmake.yaml").write_text("target: tool\n")
        monkeypatch.setenv("UNMAKE_TARGET", "other")
        assert Settings().target == "other"

    def test_settings_are_frozen(self, settings) -> None:
        with pytest.raises(ValidationError):
            settings.target = "changed"

    def test_properties(self, project) -> None:
        settings = Settings(bin_dir=Path("out"), lib_dir=Path("vendor/shared"))
        assert settings.target_path == Path("out/build")
        assert settings.bin_lib_dir == Path("out/shared")
        assert settings.cleaned_directories == [Path("obj"), Path("out")]
        assert Path("out/shared") in settings.directories


class TestValidation:
    """Test layout validation."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"obj_dir": Path("src")},
            {"obj_dir": Path("src/obj")},
            {"bin_dir": Path(".")},
            {"bin_dir": Path("lib")},
            {"obj_dir": Path("include/../include")},
        ],
    )
    def test_cleaned_dirs_must_not_overlap_protected(self, project, overrides) -> None:
        """Clean must never be able to reach sources, headers or libraries."""
        with pytest.raises(ValidationError, match="overlaps"):
            Settings(**overrides)

    @pytest.mark.parametrize("src_ext", ["c", ".", ""])
    def test_bad_extension(self, project, src_ext) -> None:
        with pytest.raises(ValidationError, match="src_ext"):
            Settings(src_ext=src_ext)

    def test_target_must_be_a_file_name(self, project) -> None:
        with pytest.raises(ValidationError, match="target"):
            Settings(target="bin/build")

    def test_empty_compiler(self, project) -> None:
        with pytest.raises(ValidationError):
            Settings(compiler="")

    def test_empty_clean_command(self, project) -> None:
        with pytest.raises(ValidationError):
            Settings(clean_command=[])

    @pytest.mark.parametrize(
        "clean_command",
        [["rm", "-rf", "src", "lib"], ["rm", "-rf", "."], ["trash", "include"]],
    )
    def test_clean_command_takes_no_operands(self, project, clean_command) -> None:
        """Only obj_dir and bin_dir may ever be handed to the clean command."""
        with pytest.raises(ValidationError, match="clean_command"):
            Settings(clean_command=clean_command)

    def test_clean_command_options_allowed(self, project) -> None:
        settings = Settings(clean_command=["rm", "-r", "-f", "--one-file-system"])
        assert settings.clean_command[0] == "rm"

    def test_bad_log_level(self, project) -> None:
        with pytest.raises(ValidationError):
            Settings(log_level="LOUD")


class TestGetSettings:
    """Test get_settings function."""

    def test_returns_settings(self, project) -> None:
        assert isinstance(get_settings(), Settings)

    def test_overrides(self, project) -> None:
        assert get_settings(target="tool").target == "tool"

    def test_wraps_validation_error(self, project, monkeypatch) -> None:
        """Invalid values should surface as ConfigurationError."""
        monkeypatch.setenv("UNMAKE_SRC_EXT", "c")
        with pytest.raises(ConfigurationError) as exc_info:
            get_settings()
        assert exc_info.value.code == "configuration_error"
        assert "Invalid configuration" in str(exc_info.value)


class TestPrintSettingsJson:
    """Test print_settings_json function."""

    def test_valid_json(self, settings) -> None:
        data = json.loads(print_settings_json(settings))
        assert data["target"] == "build"
        assert data["obj_dir"] == "obj"
        assert data["clean_command"] == ["rm", "-rf"]

    def test_defaults_when_no_settings(self, project) -> None:
        data = json.loads(print_settings_json())
        assert "compile_commands_path" in data
