from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from celltemplate.config import (
    TemplateSettings,
    configure_logging_from_settings,
    get_project_config_path,
    load_settings,
)
from celltemplate.exceptions import ConfigError


def test_load_defaults_when_no_config(clean_env: None, temp_dir: Path) -> None:
    """Test that defaults are used when no config file exists."""
    os.chdir(temp_dir)

    settings = load_settings()
    assert isinstance(settings, TemplateSettings)
    assert settings.temp_variable_prefix == "_temp_"
    assert settings.error_font_color == "FF0000"
    assert settings.division_by_zero == "error"
    assert settings.process_hidden_sheets is False
    assert settings.register_builtins is True


def test_load_project_config(
    clean_env: None, temp_dir: Path, sample_settings_yaml: str
) -> None:
    """Test loading settings from celltemplate.yaml."""
    os.chdir(temp_dir)
    get_project_config_path().write_text(sample_settings_yaml)

    settings = load_settings()
    assert settings.temp_variable_prefix == "_tmp_"
    assert settings.error_font_color == "C00000"
    assert settings.division_by_zero == "zero"
    assert settings.process_hidden_sheets is True
    assert settings.verbosity == "info"


def test_user_config(clean_env: None, temp_dir: Path) -> None:
    """Test that the user config is read when the project has none."""
    os.chdir(temp_dir)
    user_config = temp_dir / "home" / ".config" / "celltemplate" / "config.yaml"
    user_config.parent.mkdir(parents=True)
    user_config.write_text("division_by_zero: zero\n")

    assert load_settings().division_by_zero == "zero"


def test_project_overrides_user(
    clean_env: None, temp_dir: Path, sample_settings_yaml: str
) -> None:
    os.chdir(temp_dir)
    user_config = temp_dir / "home" / ".config" / "celltemplate" / "config.yaml"
    user_config.parent.mkdir(parents=True)
    user_config.write_text("temp_variable_prefix: _user_\n")
    get_project_config_path().write_text(sample_settings_yaml)

    assert load_settings().temp_variable_prefix == "_tmp_"


def test_env_var_overrides(
    clean_env: None, temp_dir: Path, sample_settings_yaml: str
) -> None:
    """Test that CELLTEMPLATE_* environment variables override files."""
    os.chdir(temp_dir)
    get_project_config_path().write_text(sample_settings_yaml)
    os.environ["CELLTEMPLATE_DIVISION_BY_ZERO"] = "error"
    os.environ["CELLTEMPLATE_PROCESS_HIDDEN_SHEETS"] = "false"

    settings = load_settings()
    assert settings.division_by_zero == "error"
    assert settings.process_hidden_sheets is False


def test_explicit_overrides_win(clean_env: None, temp_dir: Path) -> None:
    os.chdir(temp_dir)
    os.environ["CELLTEMPLATE_TEMP_VARIABLE_PREFIX"] = "_env_"

    assert load_settings(temp_variable_prefix="_mine_").temp_variable_prefix == "_mine_"


def test_invalid_value_raises_config_error(clean_env: None, temp_dir: Path) -> None:
    """Test that invalid configuration raises ConfigError."""
    os.chdir(temp_dir)
    get_project_config_path().write_text("division_by_zero: explode\n")

    with pytest.raises(ConfigError) as exc_info:
        load_settings()

    assert exc_info.value.field == "division_by_zero"
    assert exc_info.value.value == "explode"


def test_invalid_color_raises_config_error(clean_env: None, temp_dir: Path) -> None:
    os.chdir(temp_dir)

    with pytest.raises(ConfigError) as exc_info:
        load_settings(error_font_color="red")

    assert exc_info.value.field == "error_font_color"


def test_invalid_yaml_raises_config_error(clean_env: None, temp_dir: Path) -> None:
    os.chdir(temp_dir)
    get_project_config_path().write_text("division_by_zero: [unclosed\n")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_settings()


def test_non_mapping_yaml_raises_config_error(clean_env: None, temp_dir: Path) -> None:
    os.chdir(temp_dir)
    get_project_config_path().write_text("- just\n- a list\n")

    with pytest.raises(ConfigError, match="must contain a mapping"):
        load_settings()


def test_empty_file_uses_defaults(clean_env: None, temp_dir: Path) -> None:
    os.chdir(temp_dir)
    get_project_config_path().write_text("")

    assert load_settings().temp_variable_prefix == "_temp_"


def test_unknown_keys_ignored(clean_env: None, temp_dir: Path) -> None:
    """Test that unknown configuration keys are ignored."""
    os.chdir(temp_dir)
    get_project_config_path().write_text("unknown_section:\n  foo: bar\n")

    settings = load_settings()
    assert not hasattr(settings, "unknown_section")


@pytest.mark.parametrize(
    ("verbosity", "level"),
    [
        ("error", logging.ERROR),
        ("warning", logging.WARNING),
        ("info", logging.INFO),
        ("debug", logging.DEBUG),
    ],
)
def test_verbosity_maps_to_log_level(verbosity: str, level: int) -> None:
    assert TemplateSettings(verbosity=verbosity).log_level == level


def test_configure_logging_from_settings(clean_env: None, temp_dir: Path) -> None:
    """Test that the configured verbosity becomes the root log level."""
    os.chdir(temp_dir)
    get_project_config_path().write_text("verbosity: debug\n")

    settings = configure_logging_from_settings()

    assert settings.verbosity == "debug"
    assert logging.getLogger().level == logging.DEBUG
