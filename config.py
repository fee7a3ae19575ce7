"""
Configuration management using Pydantic Settings for validation and environment handling.
"""

from typing import Any, Dict, Optional
from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings
from pathlib import Path
import yaml

from bakeoff_types import WorkerPhase
from bakeoff_errors import ConfigurationError


class KitchenSettings(BaseSettings):
    """Shared kitchen resources and timings."""

    mixer_capacity: int = Field(
        default=2,
        ge=1,
        description="Number of mixers"
    )
    bowl_capacity: int = Field(
        default=3,
        ge=1,
        description="Number of bowls"
    )
    spoon_capacity: int = Field(
        default=5,
        ge=1,
        description="Number of spoons"
    )
    ingredient_units: int = Field(
        default=1,
        ge=1,
        description="Units of each ingredient stocked at start"
    )
    mixing_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Time spent mixing one recipe"
    )
    baking_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Time spent baking one recipe"
    )
    record_history: bool = Field(
        default=False,
        description="Record every exclusive area acquire/release"
    )

    class Config:
        env_prefix = "KITCHEN_"


class PreemptionSettings(BaseSettings):
    """The single run-wide interruption."""

    enabled: bool = Field(
        default=True,
        description="Select a preemption target for the run"
    )
    probability: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Chance of firing at each eligible checkpoint"
    )
    target: Optional[int] = Field(
        default=None,
        ge=0,
        description="Worker id to target; random when unset"
    )
    trigger_phase: Optional[WorkerPhase] = Field(
        default=None,
        description="Only fire at checkpoints of this phase"
    )

    class Config:
        env_prefix = "PREEMPTION_"


class Settings(BaseSettings):
    """Main application settings."""

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    debug: bool = Field(
        default=False,
        description="Log at DEBUG regardless of log_level"
    )

    # Run parameters
    seed: Optional[int] = Field(
        default=None,
        description="Seed for the run's random source"
    )
    min_bakers: int = Field(
        default=1,
        ge=1,
        description="Smallest accepted worker count"
    )
    max_bakers: int = Field(
        default=10,
        ge=1,
        le=10,
        description="Largest accepted worker count"
    )
    default_bakers: Optional[int] = Field(
        default=None,
        description="Worker count used when none is given"
    )
    recipes_file: Optional[Path] = Field(
        default=None,
        description="YAML recipe catalog; built-in recipes when unset"
    )
    run_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Give up waiting for bakers after this long"
    )

    # Component configurations
    kitchen: KitchenSettings = Field(default_factory=KitchenSettings)
    preemption: PreemptionSettings = Field(default_factory=PreemptionSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @model_validator(mode="after")
    def check_baker_bounds(self) -> "Settings":
        if self.min_bakers > self.max_bakers:
            raise ValueError(
                f"min_bakers ({self.min_bakers}) exceeds max_bakers ({self.max_bakers})"
            )
        return self

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level.upper()

    def validate_worker_count(self, worker_count: int) -> int:
        """Check a requested worker count against the configured bounds."""
        if not isinstance(worker_count, int) or isinstance(worker_count, bool):
            raise ConfigurationError(f"Worker count must be an integer, got {worker_count!r}")
        if worker_count < self.min_bakers or worker_count > self.max_bakers:
            raise ConfigurationError(
                f"Invalid number of bakers: {worker_count}. "
                f"Must be between {self.min_bakers} and {self.max_bakers}"
            )
        return worker_count


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings(config_file: Optional[Path] = None, **overrides: Any) -> Settings:
    """Load settings from a YAML file or the environment."""
    global _settings

    config_data: Dict[str, Any] = {}
    if config_file and Path(config_file).exists():
        with open(config_file) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Settings file {config_file} must contain a mapping")

        # Flat run keys at top level, nested sections copied as-is
        for key in ['log_level', 'debug', 'seed', 'min_bakers', 'max_bakers',
                    'default_bakers', 'recipes_file', 'run_timeout_seconds']:
            if key in loaded:
                config_data[key] = loaded[key]
        for key in ['kitchen', 'preemption']:
            if key in loaded:
                config_data[key] = loaded[key]

    config_data.update(overrides)

    try:
        _settings = Settings(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e

    return _settings

