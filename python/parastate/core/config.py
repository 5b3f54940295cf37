"""Configuration management for parastate."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from parastate.core.types import address_prefix


class AnalysisConfig(BaseModel):
    """Dependency recording and DAG analysis configuration."""

    ignore_addresses: list[str] = Field(
        default_factory=list,
        description="System or precompile accounts whose accesses are not recorded",
    )

    @field_validator("ignore_addresses")
    @classmethod
    def _normalize(cls, value: list[str]) -> list[str]:
        return [address_prefix(addr) for addr in value]


class ParastateConfig(BaseSettings):
    """Root configuration for parastate."""

    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    model_config = {"env_prefix": "PARASTATE_", "env_nested_delimiter": "__"}

    @classmethod
    def from_yaml(cls, path: Path) -> ParastateConfig:
        import yaml
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)
