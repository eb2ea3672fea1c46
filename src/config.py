"""Configuration loaded from .markflow.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from datetime import date
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from markflow.content.models import Platform
from markflow.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".markflow.toml"
GLOBAL_CONFIG = Path.home() / ".config" / "markflow" / "config.toml"
ALL_PLATFORMS = "all"

# Characters that are not safe in file names on common filesystems.
_UNSAFE_FILENAME_CHARS = str.maketrans({c: "_" for c in '/\\?%*:|"<>'})


class GeneralConfig(BaseModel):
    """[general] section."""

    author: str | None = None
    default_platform: str = ALL_PLATFORMS
    log_level: str = "WARNING"

    @field_validator("default_platform")
    @classmethod
    def _check_platform(cls, value: str) -> str:
        value = value.strip().lower()
        if value != ALL_PLATFORMS and value not in {p.value for p in Platform}:
            raise ValueError(f"unknown platform {value!r}")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {value!r}")
        return level


class WeChatSectionConfig(BaseModel):
    """[wechat] section."""

    enabled: bool = True
    max_content_length: int = 20000
    title_max_length: int = 64
    references_heading: str = "References"


class ZhihuSectionConfig(BaseModel):
    """[zhihu] section."""

    enabled: bool = True
    enable_math: bool = True
    code_theme: str = "github"
    max_content_length: int = 30000


class OutputConfig(BaseModel):
    """[output] section."""

    directory: str = "./output"
    create_subdirs: bool = True
    filename_pattern: str = "{title}_{platform}.html"

    def path_for(self, title: str, platform: Platform, root: Path | None = None) -> Path:
        """Compute where the rendering of ``title`` for ``platform`` is written.

        Args:
            title: Document title; unsafe filename characters become ``_``.
            platform: Target platform.
            root: Overrides ``directory``.

        Raises:
            ConfigurationError: If ``filename_pattern`` uses an unknown placeholder.
        """
        try:
            filename = self.filename_pattern.format(
                title=sanitize_filename(title),
                platform=platform.value,
                date=date.today().isoformat(),
            )
        except (KeyError, IndexError, ValueError) as exc:
            raise ConfigurationError(
                f"Invalid output.filename_pattern {self.filename_pattern!r}: {exc}"
            ) from exc

        base = root if root is not None else Path(self.directory)
        if self.create_subdirs:
            base = base / platform.value
        return base / filename


class MarkflowConfig(BaseModel):
    """Top-level configuration model."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    wechat: WeChatSectionConfig = Field(default_factory=WeChatSectionConfig)
    zhihu: ZhihuSectionConfig = Field(default_factory=ZhihuSectionConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def is_enabled(self, platform: Platform) -> bool:
        if platform is Platform.WECHAT:
            return self.wechat.enabled
        return self.zhihu.enabled

    def target_platforms(self, requested: str | None = None) -> list[Platform]:
        """Resolve a platform selection to concrete platforms.

        An explicit platform name is always honored. ``all`` (or no request
        with an ``all`` default) expands to every enabled platform.

        Args:
            requested: ``wechat``, ``zhihu``, ``all`` or None for the default.

        Raises:
            ConfigurationError: If the name is not a known platform.
        """
        name = (requested or self.general.default_platform).strip().lower()
        if name == ALL_PLATFORMS:
            return [p for p in Platform if self.is_enabled(p)]
        try:
            return [Platform(name)]
        except ValueError as exc:
            raise ConfigurationError(f"Unknown platform: {name!r}") from exc


def sanitize_filename(name: str) -> str:
    return name.translate(_UNSAFE_FILENAME_CHARS)


def load_config(path: str | Path | None = None) -> MarkflowConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .markflow.toml in CWD
    3. ~/.config/markflow/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged MarkflowConfig.

    Raises:
        ConfigurationError: If the merged values fail validation.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for candidate in (Path(".") / CONFIG_FILENAME, GLOBAL_CONFIG):
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break

    config = _validate(data)
    return _apply_env_vars(config)


def merge_cli_overrides(config: MarkflowConfig, **cli_kwargs: object) -> MarkflowConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).

    Args:
        config: Base config.
        **cli_kwargs: CLI flag values, e.g. ``output_directory``, ``platform``.

    Returns:
        Updated config with CLI overrides applied.
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "output_directory": ("output", "directory"),
        "platform": ("general", "default_platform"),
        "author": ("general", "author"),
        "log_level": ("general", "log_level"),
        "enable_math": ("zhihu", "enable_math"),
        "code_theme": ("zhihu", "code_theme"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = str(value) if isinstance(value, Path) else value

    return _validate(data)


def _validate(data: dict[str, object]) -> MarkflowConfig:
    try:
        return MarkflowConfig.model_validate(data) if data else MarkflowConfig()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("true", "1", "yes")


def _apply_env_vars(config: MarkflowConfig) -> MarkflowConfig:
    """Apply MARKFLOW_* environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "MARKFLOW_AUTHOR": ("general", "author"),
        "MARKFLOW_DEFAULT_PLATFORM": ("general", "default_platform"),
        "MARKFLOW_LOG_LEVEL": ("general", "log_level"),
        "MARKFLOW_OUTPUT_DIR": ("output", "directory"),
        "MARKFLOW_ZHIHU_CODE_THEME": ("zhihu", "code_theme"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    for env_var, (section, field) in {
        "MARKFLOW_WECHAT_ENABLED": ("wechat", "enabled"),
        "MARKFLOW_ZHIHU_ENABLED": ("zhihu", "enabled"),
        "MARKFLOW_ZHIHU_ENABLE_MATH": ("zhihu", "enable_math"),
    }.items():
        raw = os.environ.get(env_var)
        if raw is not None:
            data[section][field] = _parse_bool(raw)

    # Integer limits are validated by the model
    for env_var, (section, field) in {
        "MARKFLOW_WECHAT_MAX_LENGTH": ("wechat", "max_content_length"),
        "MARKFLOW_ZHIHU_MAX_LENGTH": ("zhihu", "max_content_length"),
    }.items():
        raw = os.environ.get(env_var)
        if raw is not None:
            data[section][field] = raw.strip()

    return _validate(data)
