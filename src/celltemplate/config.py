"""Settings for template generation.

Settings are read, highest priority first, from ``CELLTEMPLATE_*`` environment
variables, ``./celltemplate.yaml``, ``~/.config/celltemplate/config.yaml`` and
finally the defaults below.

Example celltemplate.yaml:
    temp_variable_prefix: "_tmp_"
    error_font_color: "C00000"
    division_by_zero: zero
    process_hidden_sheets: true
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from celltemplate.constants import (
    CONFIG_FILE_NAME,
    DEFAULT_ERROR_FONT_COLOR,
    DEFAULT_TEMP_VARIABLE_PREFIX,
)
from celltemplate.exceptions import ConfigError
from celltemplate.logging import configure_logging, get_logger

__all__ = [
    "TemplateSettings",
    "load_settings",
    "get_user_config_path",
    "get_project_config_path",
    "configure_logging_from_settings",
    "VERBOSITY_LEVELS",
]

logger = get_logger(__name__)

VERBOSITY_LEVELS: dict[str, int] = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


class YamlConfigSource(PydanticBaseSettingsSource):
    """Settings source reading a flat YAML mapping."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._config_data: dict[str, Any] = {}
        if yaml_file and yaml_file.exists():
            self._config_data = self._read(yaml_file)

    @staticmethod
    def _read(yaml_file: Path) -> dict[str, Any]:
        try:
            with open(yaml_file) as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {yaml_file}: {e}") from e

        if loaded is None:
            logger.warning("config_file_empty", path=str(yaml_file))
            return {}
        if not isinstance(loaded, dict):
            raise ConfigError(
                f"Config file {yaml_file} must contain a mapping",
                value=loaded,
            )
        return loaded

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        """Get value for a specific field from the YAML config."""
        if field_name in self._config_data:
            return self._config_data[field_name], field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return the complete config data."""
        return self._config_data


class TemplateSettings(BaseSettings):
    """Tunable behaviour of a generation run.

    Attributes:
        temp_variable_prefix: Prefix of the temporary variables bound during
            the pre-pass.
        error_font_color: Hex RGB foreground colour applied to cells whose
            formatter or function raised.
        division_by_zero: "error" yields the ``#DIV/0!`` error value, "zero"
            yields numeric 0.
        process_hidden_sheets: Scan hidden worksheets as well.
        register_builtins: Register the built-in formatters and functions when
            a ``CellTemplate`` is created.
        verbosity: Log level applied by :func:`configure_logging_from_settings`.
    """

    model_config = SettingsConfigDict(
        env_prefix="CELLTEMPLATE_",
        extra="ignore",
    )

    temp_variable_prefix: str = Field(
        default=DEFAULT_TEMP_VARIABLE_PREFIX, min_length=1, pattern=r"^\w+$"
    )
    error_font_color: str = DEFAULT_ERROR_FONT_COLOR
    division_by_zero: Literal["error", "zero"] = "error"
    process_hidden_sheets: bool = False
    register_builtins: bool = True
    verbosity: Literal["error", "warning", "info", "debug"] = "warning"

    @property
    def log_level(self) -> int:
        """The stdlib logging level named by ``verbosity``."""
        return VERBOSITY_LEVELS[self.verbosity]

    @field_validator("error_font_color")
    @classmethod
    def check_hex_color(cls, v: str) -> str:
        """Normalize ``#rrggbb`` / ``rrggbb`` to upper-case ``RRGGBB``."""
        color = v.removeprefix("#").upper()
        if len(color) != 6 or any(c not in "0123456789ABCDEF" for c in color):
            raise ValueError(f"'{v}' is not a hex RGB colour")
        return color

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Order sources: init kwargs, env, project YAML, user YAML.

        pydantic-settings lets the first source that provides a value win.
        """
        return (
            init_settings,
            env_settings,
            YamlConfigSource(settings_cls, get_project_config_path()),
            YamlConfigSource(settings_cls, get_user_config_path()),
        )


def get_user_config_path() -> Path:
    """Return ``~/.config/celltemplate/config.yaml``."""
    return Path.home() / ".config" / "celltemplate" / "config.yaml"


def get_project_config_path() -> Path:
    """Return ``./celltemplate.yaml`` relative to the working directory."""
    return Path.cwd() / CONFIG_FILE_NAME


def load_settings(**overrides: Any) -> TemplateSettings:
    """Load settings with hierarchy: defaults -> user -> project -> env -> overrides.

    Args:
        **overrides: Explicit field values taking precedence over every file
            and environment source.

    Returns:
        TemplateSettings instance with merged configuration.

    Raises:
        ConfigError: If a source holds invalid YAML or an invalid value.
    """
    if not get_project_config_path().exists():
        logger.debug("no_project_config", path=str(get_project_config_path()))

    try:
        return TemplateSettings(**overrides)
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            message=f"Invalid configuration: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e


def configure_logging_from_settings(
    settings: TemplateSettings | None = None,
    *,
    force_json: bool = False,
) -> TemplateSettings:
    """Configure logging at the level named by ``settings.verbosity``.

    Args:
        settings: Settings to use. If None, they are loaded with
            :func:`load_settings`.
        force_json: Emit JSON regardless of ``CELLTEMPLATE_LOG_FORMAT``.

    Returns:
        The settings that were applied.
    """
    if settings is None:
        settings = load_settings()
    configure_logging(force_json=force_json, level=settings.log_level)
    return settings
