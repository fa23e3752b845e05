#!/usr/bin/env python3
"""
Configuration for the nutrition estimator, read from environment variables
and optionally overridden by a JSON file.
"""

import os
import json
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

LOG_FORMATS = ("json", "console")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class EstimatorConfig:
    """Configuration for recipe fetching, reference data, batching and the API."""
    use_recipe_api: bool = False
    openai_api_key: Optional[str] = None
    recipe_api_url: str = "https://api.openai.com/v1/chat/completions"
    recipe_api_model: str = "gpt-3.5-turbo"
    recipe_api_timeout: float = 30.0
    recipe_api_max_retries: int = 3
    nutrition_table_path: Optional[str] = None
    household_measurements_path: Optional[str] = None
    batch_max_workers: int = 4
    log_level: str = "INFO"
    log_format: str = "json"
    sentry_dsn: Optional[str] = None
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    def __post_init__(self):
        """Validate configuration."""
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level}")
        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {self.log_format}")
        if self.recipe_api_timeout <= 0:
            raise ValueError("recipe_api_timeout must be positive")
        if self.recipe_api_max_retries < 1:
            self.recipe_api_max_retries = 1
        if self.batch_max_workers < 1:
            self.batch_max_workers = 1
        if not 0 < self.api_port < 65536:
            raise ValueError(f"api_port out of range: {self.api_port}")

    @classmethod
    def from_env(cls) -> "EstimatorConfig":
        """Build configuration from environment variables."""
        return cls(
            use_recipe_api=_env_bool("USE_RECIPE_API"),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            recipe_api_url=os.getenv("RECIPE_API_URL", "https://api.openai.com/v1/chat/completions"),
            recipe_api_model=os.getenv("RECIPE_API_MODEL", "gpt-3.5-turbo"),
            recipe_api_timeout=float(os.getenv("RECIPE_API_TIMEOUT", "30")),
            recipe_api_max_retries=int(os.getenv("RECIPE_API_MAX_RETRIES", "3")),
            nutrition_table_path=os.getenv("NUTRITION_TABLE_PATH") or None,
            household_measurements_path=os.getenv("HOUSEHOLD_MEASUREMENTS_PATH") or None,
            batch_max_workers=int(os.getenv("BATCH_MAX_WORKERS", "4")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
            sentry_dsn=os.getenv("SENTRY_DSN") or None,
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=int(os.getenv("API_PORT", "8000")),
        )

    def update(self, overrides: Dict[str, Any]) -> "EstimatorConfig":
        """Return a copy with the given fields replaced; unknown keys are rejected."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        data = asdict(self)
        data.update(overrides)
        return EstimatorConfig(**data)

    @classmethod
    def from_json(cls, file_path: Union[str, Path],
                  base: Optional["EstimatorConfig"] = None) -> "EstimatorConfig":
        """Load a JSON file of overrides on top of base (environment by default)."""
        with open(file_path, 'r') as f:
            overrides = json.load(f)
        return (base or cls.from_env()).update(overrides)

    def to_dict(self, redact: bool = True) -> Dict[str, Any]:
        data = asdict(self)
        if redact:
            for secret in ("openai_api_key", "sentry_dsn"):
                if data[secret]:
                    data[secret] = "***"
        return data
