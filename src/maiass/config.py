"""Configuration management for maiass."""

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import tomli_w
from pydantic import BaseModel, Field, ValidationError

from .constants import CONFIG_FILENAME, DEFAULT_NOISE_PREFIXES


class ConfigError(Exception):
    """Configuration could not be loaded."""


class AIMode(str, Enum):
    """When to offer an AI-suggested commit message."""

    ASK = "ask"
    AUTOSUGGEST = "autosuggest"
    OFF = "off"


class CommitMessageStyle(str, Enum):
    """Shape of the AI-suggested commit message."""

    BULLET = "bullet"
    SIMPLE = "simple"


class PatchTagging(str, Enum):
    """Whether patch releases get a release branch and tag."""

    ASK = "ask"
    ALL = "all"
    NONE = "none"


class BranchesConfig(BaseModel):
    """Names of the long-lived branches."""

    develop: str = "develop"
    staging: str = "staging"
    master: str = "master"


class AIConfig(BaseModel):
    """Configuration for the commit message suggestion service."""

    mode: AIMode = AIMode.ASK
    token: str | None = None
    endpoint: str = "https://api.openai.com/v1/chat/completions"
    model: str = "gpt-3.5-turbo"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_characters: int = Field(default=8000, gt=0, description="Diff budget sent to the AI")
    commit_message_style: CommitMessageStyle = CommitMessageStyle.BULLET
    timeout: float = Field(default=30.0, gt=0)

    @property
    def enabled(self) -> bool:
        """True when a token is configured and the mode allows suggestions."""
        return bool(self.token) and self.mode != AIMode.OFF


class ChangelogConfig(BaseModel):
    """Configuration for the public and internal changelogs."""

    path: str = "."
    name: str = "CHANGELOG.md"
    internal_name: str = "CHANGELOG_internal.md"
    noise_prefixes: list[str] = Field(default_factory=lambda: list(DEFAULT_NOISE_PREFIXES))


class VersionConfig(BaseModel):
    """Configuration for version file discovery and release tagging."""

    path: str = "."
    primary_file: str | None = None
    secondary_files: list[str] = Field(default_factory=list)
    constant_name: str = "VERSION"
    patch_tagging: PatchTagging = PatchTagging.ASK


class GitConfig(BaseModel):
    """Configuration for remote interaction."""

    remote: str = "origin"
    autopush_commits: bool = False


class DevlogConfig(BaseModel):
    """Configuration for the devlog side channel."""

    enabled: bool = True
    executable: str = "devlog.sh"


class MaiassConfig(BaseModel):
    """Root configuration for maiass."""

    branches: BranchesConfig = Field(default_factory=BranchesConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)
    version: VersionConfig = Field(default_factory=VersionConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    devlog: DevlogConfig = Field(default_factory=DevlogConfig)

    def changelog_dir(self, repo_root: Path) -> Path:
        """Directory holding both changelog files."""
        return repo_root / self.changelog.path

    def version_dir(self, repo_root: Path) -> Path:
        """Directory scanned for version files."""
        return repo_root / self.version.path


# Environment variable -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "MAIASS_DEVELOPBRANCH": ("branches", "develop"),
    "MAIASS_STAGINGBRANCH": ("branches", "staging"),
    "MAIASS_MASTERBRANCH": ("branches", "master"),
    "MAIASS_AI_MODE": ("ai", "mode"),
    "MAIASS_AI_TOKEN": ("ai", "token"),
    "MAIASS_AI_ENDPOINT": ("ai", "endpoint"),
    "MAIASS_AI_MODEL": ("ai", "model"),
    "MAIASS_AI_TEMPERATURE": ("ai", "temperature"),
    "MAIASS_AI_MAX_CHARACTERS": ("ai", "max_characters"),
    "MAIASS_AI_COMMIT_MESSAGE_STYLE": ("ai", "commit_message_style"),
    "MAIASS_CHANGELOG_PATH": ("changelog", "path"),
    "MAIASS_CHANGELOG_NAME": ("changelog", "name"),
    "MAIASS_CHANGELOG_INTERNAL_NAME": ("changelog", "internal_name"),
    "MAIASS_VERSION_PATH": ("version", "path"),
    "MAIASS_VERSION_PRIMARY_FILE": ("version", "primary_file"),
    "MAIASS_VERSION_SECONDARY_FILES": ("version", "secondary_files"),
    "MAIASS_PATCH_TAGGING": ("version", "patch_tagging"),
    "MAIASS_AUTOPUSH_COMMITS": ("git", "autopush_commits"),
    "MAIASS_DEVLOG_ENABLED": ("devlog", "enabled"),
}

_LIST_KEYS = {("version", "secondary_files")}


def apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Merge MAIASS_* environment variables over file data.

    Empty variables are ignored. Values stay strings; pydantic coerces them.
    """
    merged = {section: dict(values) for section, values in data.items()}
    for env_key, (section, key) in ENV_OVERRIDES.items():
        raw = environ.get(env_key)
        if raw is None or raw == "":
            continue
        value: Any = raw
        if (section, key) in _LIST_KEYS:
            value = [item.strip() for item in raw.split(",") if item.strip()]
        merged.setdefault(section, {})[key] = value
    return merged


def read_config_file(repo_root: Path) -> dict[str, Any]:
    """Read the raw .maiass.toml tables, or an empty dict when there is no file.

    Raises:
        ConfigError: If the file is not valid TOML
    """
    config_path = repo_root / CONFIG_FILENAME
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e


def _validate(data: dict[str, Any], environ: Mapping[str, str]) -> MaiassConfig:
    try:
        return MaiassConfig.model_validate(apply_env_overrides(data, environ))
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config(repo_root: Path, environ: Mapping[str, str] | None = None) -> MaiassConfig:
    """Load config from .maiass.toml and the environment.

    Args:
        repo_root: Repository root containing the optional .maiass.toml
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Resolved configuration

    Raises:
        ConfigError: If the file is not valid TOML or a value fails validation
    """
    if environ is None:
        environ = os.environ
    return _validate(read_config_file(repo_root), environ)


# Keys whose values are masked when shown and never written to .maiass.toml
SENSITIVE_KEYS = frozenset({"ai.token"})

_ENV_BY_KEY = {f"{section}.{key}": env for env, (section, key) in ENV_OVERRIDES.items()}


@dataclass
class ConfigEntry:
    """One resolved setting and where its value came from."""

    key: str
    value: Any
    source: str  # "default", "file" or "env"
    env_var: str | None = None

    @property
    def sensitive(self) -> bool:
        return self.key in SENSITIVE_KEYS


def mask_value(value: Any) -> Any:
    """Hide all but the last four characters of a secret."""
    if not value:
        return value
    return "***" + str(value)[-4:]


def config_keys() -> list[tuple[str, str]]:
    """Every (section, key) pair of MaiassConfig, in declaration order."""
    defaults = MaiassConfig()
    return [
        (section, key)
        for section in MaiassConfig.model_fields
        for key in type(getattr(defaults, section)).model_fields
    ]


def resolve_key(name: str) -> tuple[str, str]:
    """Map ``section.key`` or a ``MAIASS_*`` variable name to (section, key).

    Raises:
        ConfigError: If the name is not a known setting
    """
    if name in ENV_OVERRIDES:
        return ENV_OVERRIDES[name]
    section, _, key = name.partition(".")
    if (section, key) in config_keys():
        return section, key
    raise ConfigError(f"Unknown configuration key: {name} (see --list-vars)")


def describe_config(
    repo_root: Path, environ: Mapping[str, str] | None = None
) -> list[ConfigEntry]:
    """Resolve every setting and record whether it came from the env, the file or a default.

    Raises:
        ConfigError: If the file or the merged values are invalid
    """
    if environ is None:
        environ = os.environ
    data = read_config_file(repo_root)
    resolved = _validate(data, environ).model_dump(mode="json")

    entries = []
    for section, key in config_keys():
        name = f"{section}.{key}"
        env_var = _ENV_BY_KEY.get(name)
        if env_var and environ.get(env_var):
            source = "env"
        elif key in data.get(section, {}):
            source = "file"
        else:
            source = "default"
        entries.append(ConfigEntry(name, resolved[section][key], source, env_var))
    return entries


def set_config_value(repo_root: Path, name: str, raw: str) -> Any:
    """Validate ``raw`` for one setting and store it in .maiass.toml.

    List settings take a comma-separated value. Sensitive keys are refused.

    Returns:
        The stored value after validation

    Raises:
        ConfigError: For unknown or sensitive keys and values that fail validation
    """
    section, key = resolve_key(name)
    dotted = f"{section}.{key}"
    if dotted in SENSITIVE_KEYS:
        raise ConfigError(f"{dotted} is not stored in {CONFIG_FILENAME}; set {_ENV_BY_KEY[dotted]}")

    data = {s: dict(values) for s, values in read_config_file(repo_root).items()}
    value: Any = raw
    if isinstance(getattr(getattr(MaiassConfig(), section), key), list):
        value = [item.strip() for item in raw.split(",") if item.strip()]
    data.setdefault(section, {})[key] = value

    try:
        validated = MaiassConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {dotted}: {e}") from e

    data[section][key] = validated.model_dump(mode="json")[section][key]
    with open(repo_root / CONFIG_FILENAME, "wb") as f:
        tomli_w.dump(data, f)
    return data[section][key]


def write_config_template(repo_root: Path) -> Path:
    """Write default .maiass.toml template.

    The AI token is never written; set MAIASS_AI_TOKEN instead.

    Args:
        repo_root: Repository root

    Returns:
        Path to the written config file
    """
    config_path = repo_root / CONFIG_FILENAME
    defaults = MaiassConfig()
    template = {
        "branches": defaults.branches.model_dump(),
        "ai": defaults.ai.model_dump(mode="json", exclude={"token"}),
        "changelog": defaults.changelog.model_dump(),
        "version": defaults.version.model_dump(mode="json", exclude_none=True),
        "git": defaults.git.model_dump(),
        "devlog": defaults.devlog.model_dump(),
    }
    with open(config_path, "wb") as f:
        tomli_w.dump(template, f)
    return config_path
