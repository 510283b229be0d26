"""
Centralized Configuration for Deployment Assessor

CRITICAL: This is the ONLY place for runtime configuration in the codebase.
Environment variables, API keys, model names, retry budgets and paths
MUST be defined here. Algorithm constants live in core/constants.py.

Usage:
    from core.config import settings

    api_key = settings.LLM_API_KEY
    model = settings.EVALUATION_MODEL

Environment Variables:
    All settings can be overridden via .env file or environment variables.

Default LLM:
    - Provider: Qianfan OpenAI-compatible endpoint
    - Model: ernie-4.5-turbo-128k (JSON mode, long context)
"""

from typing import Optional
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


PROVIDER_BASE_URLS = {
    "qianfan": "https://qianfan.baidubce.com/v2",
    "openrouter": "https://openrouter.ai/api/v1",
    "openai": None,
}


class Settings(BaseSettings):
    """
    Centralized configuration for Deployment Assessor.

    All configuration must be defined here. This enforces:
    - Single source of truth for all settings
    - Type safety via Pydantic
    - Environment variable override support
    """

    # ========== API Keys ==========
    LLM_API_KEY: str = Field(
        default="",
        description="Bearer credential for the remote evaluation endpoint"
    )

    # ========== LLM Provider Settings ==========
    LLM_PROVIDER: str = Field(
        default="qianfan",
        description="Remote provider (qianfan, openrouter, openai)"
    )
    LLM_BASE_URL: Optional[str] = Field(
        default=None,
        description="Override the provider base URL"
    )
    EVALUATION_MODEL: str = Field(
        default="ernie-4.5-turbo-128k",
        description="Model used for the technical and business evaluations"
    )
    INTENT_MODEL: Optional[str] = Field(
        default=None,
        description="Model used for the intent check (defaults to EVALUATION_MODEL)"
    )
    LLM_TEMPERATURE: float = Field(
        default=0.3,
        description="Sampling temperature for evaluation calls"
    )

    # ========== Pipeline Settings ==========
    SUMMARY_SCORE_THRESHOLD: int = Field(
        default=70,
        description="Scores at or above this get the strength-framed summary"
    )
    MIN_DESCRIPTION_CHARS: int = Field(
        default=10,
        description="Minimum characters for scenario and data descriptions"
    )
    INTENT_CHECK_ENABLED: bool = Field(
        default=True,
        description="Run the LLM intent check before evaluating a plan"
    )
    CONCURRENT_STAGES: bool = Field(
        default=False,
        description="Run technical and business evaluations concurrently"
    )

    # ========== Retry Budgets ==========
    TECHNICAL_MAX_RETRIES: int = Field(default=3, description="Retries for the technical evaluation call")
    TECHNICAL_TIMEOUT_MS: int = Field(default=60000, description="Per-attempt timeout for the technical evaluation")
    BUSINESS_MAX_RETRIES: int = Field(default=6, description="Retries for the business evaluation call")
    BUSINESS_TIMEOUT_MS: int = Field(default=180000, description="Per-attempt timeout for the business evaluation")
    BUSINESS_INITIAL_DELAY_MS: int = Field(default=3000, description="First backoff delay for the business evaluation")
    SUMMARY_MAX_RETRIES: int = Field(default=3, description="Retries for the summarization pass")
    SUMMARY_TIMEOUT_MS: int = Field(default=60000, description="Per-attempt timeout for the summarization pass")
    INTENT_MAX_RETRIES: int = Field(default=3, description="Retries for the intent check")
    INTENT_TIMEOUT_MS: int = Field(default=20000, description="Per-attempt timeout for the intent check")

    # ========== Logging Settings ==========
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Console logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    LOG_FILE_ENABLED: bool = Field(
        default=False,
        description="Enable file logging"
    )

    # ========== Paths ==========
    OUTPUT_DIR: Path = Field(
        default=Path("./output"),
        description="Directory for pipeline outputs"
    )
    LOG_DIR: Path = Field(
        default=Path("./output/logs"),
        description="Directory for log files"
    )
    RECORD_DIR: Path = Field(
        default=Path("./output/evaluations"),
        description="Directory for persisted evaluation records"
    )

    # ========== Pydantic Settings Config ==========
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True
    )

    def get_base_url(self) -> Optional[str]:
        """Resolve the endpoint base URL for the configured provider."""
        if self.LLM_BASE_URL:
            return self.LLM_BASE_URL
        return PROVIDER_BASE_URLS.get(self.LLM_PROVIDER)

    def get_intent_model(self) -> str:
        return self.INTENT_MODEL or self.EVALUATION_MODEL


# Singleton instance - import this everywhere
settings = Settings()
