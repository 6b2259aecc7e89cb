# src/etlguard/core/config.py
"""Configuration schema and loading for etlguard.

Settings are frozen pydantic models. load_settings() reads a YAML file
through Dynaconf so any value can be overridden from the environment with
the ETLGUARD_ prefix (ETLGUARD_CACHE__TTL_SECONDS=10 for nested keys).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from etlguard.contracts.enums import EtlMode, ValidationMode


class CacheSettings(BaseModel):
    """Validation result cache configuration."""

    model_config = {"frozen": True}

    enabled: bool = Field(default=True, description="Reuse summaries for structurally identical graphs")
    ttl_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Seconds a cached summary stays live",
    )


class LoggingSettings(BaseModel):
    """Logging output configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO", description="Root log level")
    json_output: bool = Field(default=False, description="Emit JSON lines instead of console output")

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: object) -> object:
        if isinstance(v, str):
            return v.upper()
        return v


class ValidationSettings(BaseModel):
    """Top-level validation engine configuration.

    Example YAML:
        mode: lenient
        enable_etl_validation: true
        etl_mode: relaxed
        enabled_rules:
          - cycle-detection
          - etl-connectivity
        cache:
          ttl_seconds: 10
        catalogue_path: ./components.yaml
    """

    model_config = {"frozen": True}

    mode: ValidationMode = Field(default=ValidationMode.STRICT, description="Which severities survive into a summary")
    enable_etl_validation: bool = Field(default=True, description="Run the ETL connectivity rule")
    etl_mode: EtlMode = Field(default=EtlMode.STRICT, description="RELAXED downgrades ETL errors to warnings")
    enabled_rules: tuple[str, ...] | None = Field(
        default=None,
        description="Built-in rule ids to run; None runs them all",
    )
    cache: CacheSettings = Field(default_factory=CacheSettings, description="Result cache configuration")
    logging: LoggingSettings = Field(default_factory=LoggingSettings, description="Logging configuration")
    catalogue_path: Path | None = Field(
        default=None,
        description="YAML file with extra component schemas and connection rules",
    )

    @field_validator("enabled_rules")
    @classmethod
    def _validate_enabled_rules(cls, v: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if v is not None and len(set(v)) != len(v):
            raise ValueError(f"enabled_rules contains duplicates: {list(v)}")
        return v


def load_settings(config_path: Path) -> ValidationSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (ETLGUARD_*) - highest priority
    2. Config file
    3. Defaults from Pydantic schema - lowest priority

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated ValidationSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="ETLGUARD",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; Pydantic fields are lowercase
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): _lower_keys(v) for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    return ValidationSettings(**raw_config)


def _lower_keys(value: object) -> object:
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value
