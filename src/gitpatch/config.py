"""Configuration models and enums for gitpatch.

Settings resolve from CLI overrides, then environment, then ``config.toml``,
then built-in defaults.
"""

from __future__ import annotations

import codecs
import os
import tomllib
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gitpatch.paths import get_gitpatch_home


class FsMode(str, Enum):
    RESTRICTED = "restricted"
    UNRESTRICTED = "unrestricted"


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class NewlineStyle(str, Enum):
    PLATFORM = "platform"
    LF = "lf"
    CRLF = "crlf"

    def terminator(self) -> str:
        if self is NewlineStyle.LF:
            return "\n"
        if self is NewlineStyle.CRLF:
            return "\r\n"
        return os.linesep


class Settings(BaseModel):
    """Resolved gitpatch settings."""

    model_config = ConfigDict(frozen=True, validate_default=True, extra="forbid")

    fs_mode: FsMode = FsMode.RESTRICTED
    log_level: LogLevel = LogLevel.INFO
    encoding: str = "utf-8"
    new_file_newline: NewlineStyle = NewlineStyle.PLATFORM
    tab_width: int = Field(default=4, ge=1)
    strict_hunk_counts: bool = False

    @field_validator("encoding")
    @classmethod
    def _validate_encoding(cls, value: str) -> str:
        stripped = value.strip()
        try:
            codecs.lookup(stripped)
        except LookupError as exc:
            raise ValueError(f"unknown encoding '{value}'") from exc
        return stripped


def default_config_path() -> Path:
    return get_gitpatch_home() / "config.toml"


def load_settings(
    cli_overrides: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
    config_path: Path | str | None = None,
    *,
    create_if_missing: bool = False,
) -> Settings:
    env = os.environ if env is None else env
    cli_overrides = cli_overrides or {}
    path = Path(config_path) if config_path else default_config_path()

    if not path.exists() and create_if_missing:
        write_config(Settings(), path)

    config_data: dict[str, Any] = {}
    if path.exists():
        config_data = _read_toml(path)

    defaults = Settings()

    fs_mode = _first_value(
        _clean_str(cli_overrides.get("fs_mode")),
        _clean_str(env.get("GITPATCH_FS_MODE")),
        _clean_str(_get_config_value(config_data, "runtime", "fs_mode")),
    )

    log_level = _first_value(
        _clean_str(cli_overrides.get("log_level")),
        _clean_str(env.get("GITPATCH_LOG_LEVEL")),
        _clean_str(_get_config_value(config_data, "logging", "log_level")),
    )

    encoding = _first_value(
        _clean_str(cli_overrides.get("encoding")),
        _clean_str(_get_config_value(config_data, "apply", "encoding")),
        defaults.encoding,
    )

    newline = _first_value(
        _clean_str(cli_overrides.get("new_file_newline")),
        _clean_str(_get_config_value(config_data, "apply", "new_file_newline")),
    )

    tab_width = _first_value(
        cli_overrides.get("tab_width"),
        _get_config_value(config_data, "apply", "tab_width"),
        defaults.tab_width,
    )

    strict_counts = _first_value(
        cli_overrides.get("strict_hunk_counts"),
        _get_config_value(config_data, "apply", "strict_hunk_counts"),
        defaults.strict_hunk_counts,
    )

    return Settings(
        fs_mode=cast(FsMode, _coerce_enum(fs_mode, FsMode, defaults.fs_mode)),
        log_level=cast(LogLevel, _coerce_enum(log_level, LogLevel, defaults.log_level)),
        encoding=encoding,
        new_file_newline=cast(NewlineStyle, _coerce_enum(newline, NewlineStyle, defaults.new_file_newline)),
        tab_width=tab_width,
        strict_hunk_counts=bool(strict_counts),
    )


def write_config(settings: Settings, config_path: Path | str | None = None) -> Path:
    path = Path(config_path) if config_path else default_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    sections: list[str] = []
    _append_section(sections, "runtime", {"fs_mode": settings.fs_mode})
    _append_section(
        sections,
        "apply",
        {
            "encoding": settings.encoding,
            "new_file_newline": settings.new_file_newline,
            "tab_width": settings.tab_width,
            "strict_hunk_counts": settings.strict_hunk_counts,
        },
    )
    _append_section(sections, "logging", {"log_level": settings.log_level})

    content = "\n\n".join(sections) + "\n"
    path.write_text(content, encoding="utf-8")
    return path


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _get_config_value(config: Mapping[str, Any], section: str, key: str) -> Any:
    section_data = config.get(section)
    if not isinstance(section_data, dict):
        return None
    return section_data.get(key)


def _clean_str(value: Any) -> Any:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    return value


def _first_value(*candidates: Any) -> Any:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def _coerce_enum(value: Any, enum_cls: type[Enum], default: Enum) -> Enum:
    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.lower())
        except ValueError:
            return default
    return default


def _append_section(parts: list[str], name: str, values: Mapping[str, Any]) -> None:
    lines = [f"[{name}]"]
    for key, val in values.items():
        if isinstance(val, Enum):
            lines.append(f'{key} = "{val.value}"')
        elif isinstance(val, bool):
            lines.append(f"{key} = {'true' if val else 'false'}")
        elif isinstance(val, str):
            escaped = val.replace('"', '\\"')
            lines.append(f'{key} = "{escaped}"')
        else:
            lines.append(f"{key} = {val}")
    parts.append("\n".join(lines))


__all__ = [
    "FsMode",
    "LogLevel",
    "NewlineStyle",
    "Settings",
    "default_config_path",
    "load_settings",
    "write_config",
]
