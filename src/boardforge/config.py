"""Application configuration with pydantic-settings + TOML."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict, TomlConfigSettingsSource


def _default_config_dir() -> Path:
    return Path.home() / ".boardforge"


def _default_exports_dir() -> Path:
    return _default_config_dir() / "exports"


class ArchiveSettings(BaseSettings):
    """ZIP packaging parameters."""

    # Moderate DEFLATE level; image payloads are already compressed.
    compression_level: int = Field(default=6, ge=0, le=9)
    # Displayed progress while the compressor runs, until it reports 100%.
    progress_floor_percent: int = Field(default=90, ge=0, le=100)


class UISettings(BaseSettings):
    """Interactive export view timings."""

    success_close_delay: float = Field(default=1.5, ge=0.0)
    error_reset_delay: float = Field(default=2.0, ge=0.0)


class AppConfig(BaseSettings):
    """Root application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BOARDFORGE_",
        env_nested_delimiter="__",
    )

    config_dir: Path = Field(default_factory=_default_config_dir)
    exports_dir: Path = Field(default_factory=_default_exports_dir)
    archive: ArchiveSettings = Field(default_factory=ArchiveSettings)
    ui: UISettings = Field(default_factory=UISettings)

    @classmethod
    def settings_customise_sources(cls, settings_cls, **kwargs):  # type: ignore[override]
        toml_path = _default_config_dir() / "config.toml"
        sources = (
            kwargs.get("init_settings"),
            kwargs.get("env_settings"),
        )
        if toml_path.exists():
            sources = (*sources, TomlConfigSettingsSource(settings_cls, toml_file=toml_path))
        return (*sources, kwargs.get("dotenv_settings"), kwargs.get("file_secret_settings"))

    def ensure_dirs(self) -> None:
        """Create config and export directories if they don't exist."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.exports_dir.mkdir(parents=True, exist_ok=True)


def load_config() -> AppConfig:
    """Load application config, creating defaults if needed."""
    config = AppConfig()
    config.ensure_dirs()
    return config
