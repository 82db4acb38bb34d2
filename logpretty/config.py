from __future__ import annotations

from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, PositiveInt, ValidationError, field_validator

from .errors import ConfigError, PatternError
from .pattern import CompiledPattern, compile_pattern
from .sink import ColorMode

DEFAULT_PATTERN = (
    "{h({l}):<5} {X(correlation-id):<12} {X(tenant):<30.30} {t:<20.20} {X(__log-timestamp)} - {m}{n}"
)

# Environment variable -> config field
ENV_VARS: dict[str, str] = {
    "LOGPRETTY_PATTERN": "pattern",
    "LOGPRETTY_ENVELOPED": "enveloped",
    "LOGPRETTY_COLOR": "color",
    "LOGPRETTY_MAX_LINE_LENGTH": "max_line_length",
}


class Config(BaseModel):
    """Settings for a logpretty run.

    Values come from an optional YAML file, then the environment, then the
    command line, each overriding the previous one.
    """
    pattern: str = Field(default=DEFAULT_PATTERN, description="Layout pattern for rendered lines")
    enveloped: bool = Field(default=False, description="Input lines wrap the record in a {'message': ...} envelope")
    color: ColorMode = Field(default=ColorMode.AUTO, description="auto, always or never")
    max_line_length: PositiveInt = Field(default=1024 * 1024, description="Longest accepted input line, in characters")

    @field_validator("pattern")
    @classmethod
    def _validate_pattern(cls, v: str) -> str:
        try:
            _compile_cached(v)
        except PatternError as e:
            raise ValueError(str(e))
        return v

    def compile_pattern(self) -> CompiledPattern:
        """Return the pattern compiled while validating this config."""
        return _compile_cached(self.pattern)


@lru_cache(maxsize=16)
def _compile_cached(source: str) -> CompiledPattern:
    # CompiledPattern is immutable; instances are shared
    return compile_pattern(source)


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML config file into a plain mapping."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}")
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    return data


def env_overrides(environ: Mapping[str, str]) -> dict[str, str]:
    """Pick config values out of LOGPRETTY_* environment variables."""
    return {name: environ[var] for var, name in ENV_VARS.items() if environ.get(var)}


def resolve_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Config:
    """Merge file, environment and explicit overrides into a validated Config.

    Overrides with a None value are ignored so unset CLI flags fall through.
    """
    data: dict[str, Any] = load_config_file(path) if path else {}
    data.update(env_overrides(environ or {}))
    data.update({k: v for k, v in (overrides or {}).items() if v is not None})
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        # Re-raise with a cleaner message for CLI users
        raise ConfigError(str(e))
