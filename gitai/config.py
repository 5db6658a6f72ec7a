"""Configuration for gitai.

Settings are merged from, lowest to highest precedence:
1. The default tables below
2. ~/.gitai/config.yaml (or the file given with --config)
3. ~/.gitai/credentials (API key only)
4. Environment variables GITAI_<FIELD> (a repo-level .env file is loaded first)
5. Command line flags
"""

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, Union

from dotenv import load_dotenv
from pydantic import TypeAdapter, ValidationError

from gitai import global_config
from gitai.llm.budget import DEFAULT_TOKEN_CEILING, DEFAULT_TOKEN_DIVISOR
from gitai.llm.client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT


class ConfigError(Exception):
    """Raised when the effective configuration is invalid."""
    pass


# ============================================================
# DEFAULT VALUES
# ============================================================

DEFAULT_MODEL = "gpt-3.5-turbo-instruct"
DEFAULT_LANGUAGE = "Python"
MIN_NUM_TRIES = 1
MAX_NUM_TRIES = 5

DEFAULT_AI_SETTINGS: dict[str, Any] = {
    "api_url": DEFAULT_BASE_URL,
    "model": DEFAULT_MODEL,
    "max_tokens": DEFAULT_TOKEN_CEILING,
    "token_divisor": DEFAULT_TOKEN_DIVISOR,
    "temperature": 0.05,
    "top_p": 1.0,
    "presence_penalty": 0.1,
    "frequency_penalty": 0.1,
    "best_of": None,
    "stop": None,
    "suffix": None,
    "timeout": DEFAULT_TIMEOUT,
    "language": DEFAULT_LANGUAGE,
    "stochastic": False,
    "num_tries": 1,
    "auto_ai": False,
}

DEFAULT_GIT_SETTINGS: dict[str, Any] = {
    "local_path": ".",
    "auto_add": False,
    "sign_commits": False,
    "key_id": None,
    "user_name": None,
    "user_email": None,
}

# ============================================================
# ENVIRONMENT VARIABLES
# ============================================================

# Every AISettings and GitSettings field can be set as GITAI_<FIELD>
ENV_PREFIX = "GITAI_"
# Checked in order for the API key
API_KEY_ENV_VARS = ["GITAI_API_KEY", "OPENAI_API_KEY"]
API_KEY_CREDENTIAL = "GITAI_API_KEY"


@dataclass
class AISettings:
    """Completion endpoint and pipeline settings."""

    api_key: Optional[str] = None
    api_url: str = DEFAULT_AI_SETTINGS["api_url"]
    model: str = DEFAULT_AI_SETTINGS["model"]
    # Ceiling of the response length budget
    max_tokens: int = DEFAULT_AI_SETTINGS["max_tokens"]
    token_divisor: int = DEFAULT_AI_SETTINGS["token_divisor"]
    temperature: Optional[float] = DEFAULT_AI_SETTINGS["temperature"]
    top_p: Optional[float] = DEFAULT_AI_SETTINGS["top_p"]
    presence_penalty: Optional[float] = DEFAULT_AI_SETTINGS["presence_penalty"]
    frequency_penalty: Optional[float] = DEFAULT_AI_SETTINGS["frequency_penalty"]
    best_of: Optional[int] = None
    stop: Optional[Union[str, list[str]]] = None
    suffix: Optional[str] = None
    timeout: float = DEFAULT_AI_SETTINGS["timeout"]
    language: str = DEFAULT_AI_SETTINGS["language"]
    stochastic: bool = False
    num_tries: int = DEFAULT_AI_SETTINGS["num_tries"]
    auto_ai: bool = False


@dataclass
class GitSettings:
    """Repository and commit settings."""

    local_path: str = DEFAULT_GIT_SETTINGS["local_path"]
    auto_add: bool = False
    sign_commits: bool = False
    key_id: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None


@dataclass
class Settings:
    """The effective configuration."""

    ai: AISettings = field(default_factory=AISettings)
    git: GitSettings = field(default_factory=GitSettings)


def _section(config_dict: dict, name: str) -> dict:
    section = config_dict.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    return section


def _known(cls, section: dict) -> dict:
    names = {f.name for f in fields(cls)}
    return {key: value for key, value in section.items() if key in names}


def _build(cls, values: dict):
    """Create a settings dataclass, coercing values to the declared field types.

    Raises:
        ConfigError: If a value cannot be converted (e.g. num_tries: "three").
    """
    try:
        return TypeAdapter(cls).validate_python(values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid {cls.__name__} value ({problems})")


def load_settings_from_dict(config_dict: dict) -> Settings:
    """Load Settings from a configuration dictionary.

    Unknown keys are ignored. Values are converted to the field types, so
    ``num_tries: "3"`` is read as 3.

    Args:
        config_dict: Dictionary with "ai" and "git" sections.

    Returns:
        Settings instance.

    Raises:
        ConfigError: If a section is not a mapping or a value has the wrong type.
    """
    ai_section = {**DEFAULT_AI_SETTINGS, **_known(AISettings, _section(config_dict, "ai"))}
    git_section = {**DEFAULT_GIT_SETTINGS, **_known(GitSettings, _section(config_dict, "git"))}
    return Settings(ai=_build(AISettings, ai_section), git=_build(GitSettings, git_section))


def settings_to_dict(settings: Settings, include_secrets: bool = False) -> dict:
    """Convert Settings to a dictionary for saving or display.

    Args:
        settings: Settings instance.
        include_secrets: Keep the API key in the output.

    Returns:
        Dictionary representation.
    """
    result = {"ai": asdict(settings.ai), "git": asdict(settings.git)}
    if not include_secrets:
        result["ai"].pop("api_key", None)
    return result


def default_config_dict() -> dict:
    """The default configuration written by `gitai config init`."""
    return {"ai": dict(DEFAULT_AI_SETTINGS), "git": dict(DEFAULT_GIT_SETTINGS)}


# (field, accepted range check, description of the range)
_AI_RANGES = [
    ("num_tries", lambda v: MIN_NUM_TRIES <= v <= MAX_NUM_TRIES, f"between {MIN_NUM_TRIES} and {MAX_NUM_TRIES}"),
    ("max_tokens", lambda v: v >= 1, ">= 1"),
    ("token_divisor", lambda v: v >= 1, ">= 1"),
    ("timeout", lambda v: v > 0, "positive"),
    ("temperature", lambda v: 0.0 <= v <= 2.0, "between 0 and 2"),
    ("top_p", lambda v: 0.0 < v <= 1.0, "greater than 0 and at most 1"),
    ("presence_penalty", lambda v: -2.0 <= v <= 2.0, "between -2 and 2"),
    ("frequency_penalty", lambda v: -2.0 <= v <= 2.0, "between -2 and 2"),
    ("best_of", lambda v: v >= 1, ">= 1"),
]


def validate_settings(settings: Settings) -> Settings:
    """Check value ranges of the effective configuration.

    The sampling ranges match what the completion endpoint accepts. Unset
    optional values are not checked.

    Raises:
        ConfigError: If a value is out of range.
    """
    ai = settings.ai
    for name, accepted, description in _AI_RANGES:
        value = getattr(ai, name)
        if value is not None and not accepted(value):
            raise ConfigError(f"{name} must be {description}, got {value}")
    if not ai.api_url:
        raise ConfigError("api_url must not be empty")
    return settings


def _merge(target: dict, values: dict) -> None:
    for key, value in values.items():
        if value is not None:
            target[key] = value


def _from_environment(cls, environ: dict) -> dict:
    """Collect GITAI_<FIELD> values for the fields of ``cls`` (empty values are ignored)."""
    values = {}
    for f in fields(cls):
        value = environ.get(f"{ENV_PREFIX}{f.name.upper()}")
        if value:
            values[f.name] = value
    return values


def load_settings(
    config_file: Optional[Path] = None,
    ai_overrides: Optional[dict] = None,
    git_overrides: Optional[dict] = None,
    environ: Optional[dict] = None,
) -> Settings:
    """Build the effective configuration.

    Args:
        config_file: Settings file (defaults to ~/.gitai/config.yaml).
        ai_overrides: AISettings fields from the command line (None values are ignored).
        git_overrides: GitSettings fields from the command line (None values are ignored).
        environ: Environment mapping (defaults to os.environ after loading .env).

    Returns:
        The validated Settings.

    Raises:
        ConfigError: If the configuration is invalid.
    """
    if environ is None:
        load_dotenv()
        environ = dict(os.environ)

    try:
        config_dict = global_config.load_global_config(config_file)
        credential = global_config.get_credential(API_KEY_CREDENTIAL)
    except global_config.GlobalConfigError as e:
        raise ConfigError(str(e))

    ai_values = {**DEFAULT_AI_SETTINGS, **_known(AISettings, _section(config_dict, "ai"))}
    git_values = {**DEFAULT_GIT_SETTINGS, **_known(GitSettings, _section(config_dict, "git"))}

    _merge(ai_values, {"api_key": credential})

    _merge(ai_values, _from_environment(AISettings, environ))
    _merge(git_values, _from_environment(GitSettings, environ))
    env_key = next((environ[name] for name in API_KEY_ENV_VARS if environ.get(name)), None)
    _merge(ai_values, {"api_key": env_key})

    _merge(ai_values, ai_overrides or {})
    _merge(git_values, git_overrides or {})

    settings = Settings(ai=_build(AISettings, ai_values), git=_build(GitSettings, git_values))
    return validate_settings(settings)
