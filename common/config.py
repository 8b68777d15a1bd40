from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_PATH = Path("config/config.yaml")

DEFAULT_TRANSLATOR_FLAGS: Dict[str, Union[bool, str]] = {
    "annotations": True,
    "locators": True,
    "result-types": True,
    "detailed-errors": True,
    "date-range-optimization": True,
}


class TranslatorConfig(BaseModel):
    endpoint: str = "http://localhost:8081/cql/translator"
    timeout: int = 120
    user_agent: str = "cql-elm-processor/1.0"
    flags: Dict[str, Union[bool, str]] = Field(
        default_factory=lambda: dict(DEFAULT_TRANSLATOR_FLAGS)
    )

    @field_validator("flags", mode="before")
    @classmethod
    def _merge_default_flags(cls, value):
        # User flags override the defaults, they never replace the whole set.
        return {**DEFAULT_TRANSLATOR_FLAGS, **(value or {})}


class PathsConfig(BaseModel):
    source_dir: Path = Path("input/cql")
    resources_dir: Path = Path("input/resources/library")
    output_dir: Path = Path("output/resources/library")
    elm_output_dir: Path = Path("output/elm")
    output_suffix: str = "_with_elm"


class GlobalYAMLConfig(BaseModel):
    translator: TranslatorConfig = Field(default_factory=TranslatorConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)


class EnvOverrides(BaseSettings):
    translator_endpoint: Optional[str] = None
    source_dir: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_prefix="CQL_ELM_", env_file=".env", extra="ignore"
    )


def load_yaml_config(path: Path = DEFAULT_CONFIG_PATH) -> GlobalYAMLConfig:
    """
    Load the YAML config (defaults when the file is absent) and apply
    CQL_ELM_* environment overrides on top.
    """
    raw = {}
    if Path(path).exists():
        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}
    cfg = GlobalYAMLConfig(**raw)

    env = EnvOverrides()
    if env.translator_endpoint:
        cfg.translator.endpoint = env.translator_endpoint
    if env.source_dir:
        cfg.paths.source_dir = env.source_dir
    return cfg
