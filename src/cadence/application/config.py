from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from cadence.domain.constants import (
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_K_FACTOR,
    ELO_TREND_WINDOW,
)
from cadence.domain.models import Algorithm


def _config_files() -> list[Path]:
    home = Path.home()
    return [home / ".config/cadence/config.toml", home / ".cadence.toml"]


class AppConfig(BaseSettings):
    """
    Configuration model for cadence.
    Supports loading from:
    1. Environment variables (CADENCE_*)
    2. Config file (~/.config/cadence/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="CADENCE_",
        extra="ignore",
    )

    # Scheduling
    default_algorithm: Algorithm = Algorithm.FSRS
    default_user: str = "local"

    # Storage
    store_backend: Literal["memory", "json"] = "json"
    store_path: Path = Field(default_factory=lambda: Path.home() / ".config/cadence/progress.json")

    # ELO
    elo_k_factor: float = Field(default=DEFAULT_K_FACTOR, gt=0)
    dynamic_k_factor: bool = True
    elo_trend_window: int = Field(default=ELO_TREND_WINDOW, ge=1)

    # Telemetry
    history_limit: int = Field(default=DEFAULT_HISTORY_LIMIT, ge=0)
    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # Find the first existing file
        toml_file = next((f for f in _config_files() if f.exists()), None)

        # Later sources lose: CLI overrides beat env vars, env vars beat the file
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("default_algorithm", mode="before")
    @classmethod
    def resolve_algorithm(cls, v: Any) -> Algorithm:
        # Unknown tags fall back to FSRS rather than failing startup
        return Algorithm.from_tag(v) or Algorithm.FSRS

    @field_validator("store_path", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        return Path(v).expanduser()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/cadence/config.toml (if exists)
    3. Environment variables (CADENCE_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
