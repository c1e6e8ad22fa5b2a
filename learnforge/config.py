"""
Centralized configuration for learnforge.

All settings are loaded from environment variables with sensible defaults.
Pydantic Settings provides validation and type coercion; the model catalog
can additionally be overridden from config/models.yaml.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# Load .env then .env.local (so .env.local overrides).
_repo_root = Path(__file__).resolve().parent.parent
load_dotenv(_repo_root / ".env")
_env_local = _repo_root / ".env.local"
if _env_local.exists():
    load_dotenv(_env_local, override=True)


class LLMConfig(BaseSettings):
    """Upstream completion endpoint (OpenAI-compatible chat completions)."""

    api_key: str = Field(default="", alias="GROQ_API_KEY")
    api_base: str = Field(
        default="https://api.groq.com/openai/v1",
        alias="LLM_API_BASE",
        description="Base URL of the OpenAI-compatible endpoint; /chat/completions is appended.",
    )
    timeout_seconds: float = Field(default=30.0, alias="LLM_TIMEOUT_SECONDS")

    # Shared generation params
    temperature: float = 0.3
    max_tokens: int = 4096
    top_p: float = 0.95

    # 401/403 normally burn through the whole fallback chain like any other status.
    fail_fast_on_auth: bool = Field(default=False, alias="LLM_FAIL_FAST_ON_AUTH")


class RetryConfig(BaseSettings):
    """Backoff and outer retry (full re-drive) settings."""

    max_retries: int = Field(default=5, alias="LLM_MAX_RETRIES")
    base_delay_seconds: float = Field(default=1.0, alias="LLM_BASE_RETRY_DELAY")
    max_delay_seconds: float = Field(default=15.0, alias="LLM_MAX_RETRY_DELAY")

    # Per content kind: re-drive sweep + recovery + validation before serving the fallback
    module_content: bool = Field(default=True, alias="OUTER_RETRY_MODULE_CONTENT")
    learning_path: bool = Field(default=True, alias="OUTER_RETRY_LEARNING_PATH")
    career_paths: bool = Field(default=True, alias="OUTER_RETRY_CAREER_PATHS")
    flashcards: bool = Field(default=False, alias="OUTER_RETRY_FLASHCARDS")
    quiz: bool = Field(default=False, alias="OUTER_RETRY_QUIZ")
    nudges: bool = Field(default=False, alias="OUTER_RETRY_NUDGES")
    elaboration: bool = Field(default=False, alias="OUTER_RETRY_ELABORATION")

    @property
    def max_attempts(self) -> int:
        """Total attempts of a retried call: the first one plus max_retries re-drives."""
        return max(1, self.max_retries + 1)

    def outer_retry_enabled(self, kind: str) -> bool:
        return bool(getattr(self, kind, False))


class RateLimitConfig(BaseSettings):
    """Soft request-volume governor shared by every caller in the process."""

    window_seconds: float = Field(default=60.0, alias="LLM_RATE_LIMIT_WINDOW_SECONDS")
    max_requests: int = Field(default=25, alias="LLM_RATE_LIMIT_MAX_REQUESTS")
    throttle_ratio: float = 0.9


class GenerationConfig(BaseSettings):
    """Content generation tuning."""

    career_path_deadline_seconds: float = Field(default=45.0, alias="CAREER_PATH_DEADLINE_SECONDS")
    advanced_model_latency_ms: float = 300.0
    default_flashcards: int = 5


class ObservabilityConfig(BaseSettings):
    """Logging and Prometheus metrics."""

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    metrics_enabled: bool = Field(default=False, alias="PROMETHEUS_METRICS_ENABLED")
    metrics_port: int = Field(default=8000, alias="PROMETHEUS_METRICS_PORT")


class YAMLConfigLoader:
    """Loads YAML config files from a configurable directory."""

    def __init__(self, config_dir: str | Path = "config") -> None:
        self._dir = _repo_root / config_dir

    def load(self, filename: str) -> dict[str, Any]:
        """Load a YAML file; returns empty dict if the file is missing or not a mapping."""
        path = self._dir / filename
        if not path.exists():
            return {}
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}


class Settings(BaseSettings):
    """Root settings container: access all config from one object."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    # YAML-loaded config (populated in get_settings)
    model_catalog: dict[str, Any] = Field(default_factory=dict)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton settings instance. Cached after first call."""
    settings = Settings()
    settings.model_catalog = YAMLConfigLoader().load("models.yaml")
    return settings
