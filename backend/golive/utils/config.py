"""
golive Configuration Module.

Merges defaults, golive.toml, .env and GOLIVE_* environment variables
using Pydantic Settings.
Requires Python 3.11+.
"""

import re
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any

from dotenv import dotenv_values
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from golive import __version__
from golive.models import WatchConfig
from golive.utils.logger import get_logger

CONFIG_FILE_NAME = "golive.toml"

# Later files win, so the project file overrides the user file.
CONFIG_FILES = [
    Path.home() / ".golive" / CONFIG_FILE_NAME,
    Path(CONFIG_FILE_NAME),
]

logger = get_logger("golive.config")

CommaList = Annotated[list[str], NoDecode]


def _split_commas(v: str | list[str] | None) -> list[str]:
    if v is None:
        return []
    if isinstance(v, str):
        return [p.strip() for p in v.split(",") if p.strip()]
    return v


# A comma only separates entries when a new KEY= follows it, so values
# such as KEY=a,b survive.
_ENV_SEPARATOR = re.compile(r",\s*(?=[A-Za-z_][A-Za-z0-9_]*=)")


def _split_envs(v: str | list[str] | None) -> list[str]:
    if v is None:
        return []
    if isinstance(v, str):
        return [p.strip() for p in _ENV_SEPARATOR.split(v) if p.strip()]
    return v


def _single_flag_string(v: str | list[str] | None) -> list[str]:
    # Flags are shell-split later, so one string may hold several of them
    if v is None:
        return []
    if isinstance(v, str):
        return [v] if v.strip() else []
    return v


_LIST_PARSERS = {
    "ext": _split_commas,
    "ignore": _split_commas,
    "cli": _split_commas,
    "envs": _split_envs,
    "flags": _single_flag_string,
}


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: str = Field(default="console")  # "json" or "console"


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="GOLIVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        toml_file=CONFIG_FILES,
    )

    app_name: str = Field(default="golive")
    app_version: str = Field(default=__version__)

    path: Path = Field(default=Path("./"), description="Directory to watch")
    ext: CommaList = Field(default=[".go", ".yaml"], description="Extensions to watch")
    ignore: CommaList = Field(default=[".git", "vendor"], description="Paths or names to skip")
    out: Path = Field(default=Path("./appb"), description="Compiled binary path")
    entry: Path | None = Field(default=None, description="Entry .go file")
    debounce: int = Field(default=1000, description="Debounce delay in milliseconds")
    envs: CommaList = Field(default_factory=list, description="KEY=VALUE entries for the child")
    env_file: Path | None = Field(default=None, description=".env file for the child")
    flags: CommaList = Field(default_factory=list, description="Flags passed to go build")
    cli: CommaList = Field(default_factory=list, description="Arguments passed to the program")
    toolchain: str = Field(default="go", description="Toolchain binary")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("ext", "ignore", "envs", "flags", "cli", mode="before")
    @classmethod
    def parse_list(cls, v: str | list[str] | None, info: ValidationInfo) -> list[str]:
        """
        Parse list fields given as a single string.

        ext, ignore and cli are comma separated. envs split only before a
        new KEY=, and flags stay one shell-style string.
        """
        return _LIST_PARSERS[info.field_name](v)

    @field_validator("entry", "env_file", mode="before")
    @classmethod
    def empty_path_is_none(cls, v: Any) -> Any:
        """Treat an empty string as an unset path."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
        )

    def to_watch_config(self, **overrides: Any) -> WatchConfig:
        """
        Build the immutable watch configuration.

        Args:
            **overrides: Field values from the command line; None means
                the value was not given and the setting is kept.

        Returns:
            WatchConfig for the watch loop
        """
        values = self.model_dump(
            include={
                "path", "ext", "ignore", "out", "entry", "debounce",
                "envs", "env_file", "flags", "cli", "toolchain",
            }
        )
        for key, value in overrides.items():
            if key not in values:
                raise TypeError(f"unknown setting: {key}")
            if value is None:
                continue
            if key in _LIST_PARSERS:
                value = _LIST_PARSERS[key](value) if isinstance(value, str) else list(value)
            values[key] = value

        envs = list(values["envs"])
        if values["env_file"]:
            envs = load_env_file(Path(values["env_file"])) + envs

        return WatchConfig(
            path=Path(values["path"]),
            extensions=tuple(e.strip() for e in values["ext"]),
            ignore=frozenset(values["ignore"]),
            output=str(values["out"]) if values["out"] is not None else "",
            entry=Path(values["entry"]) if values["entry"] else None,
            debounce_ms=int(values["debounce"]),
            envs=tuple(envs),
            build_flags=tuple(values["flags"]),
            cli_args=tuple(values["cli"]),
            toolchain=values["toolchain"],
        )


def load_env_file(path: Path) -> list[str]:
    """
    Read KEY=VALUE entries from a dotenv file.

    Keys declared without a value are skipped. A missing file is
    logged and yields no entries.
    """
    if not path.is_file():
        logger.warning("env_file_not_found", path=str(path))
        return []

    entries = [
        f"{key}={value}"
        for key, value in dotenv_values(path).items()
        if value is not None
    ]
    logger.debug("env_file_loaded", path=str(path), count=len(entries))
    return entries


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance of Settings.
    """
    return Settings()
