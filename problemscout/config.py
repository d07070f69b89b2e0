"""Application configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

LLMProvider = Literal["anthropic", "google", "groq"]

DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-sonnet-4-5-20250929",
    "google": "gemini-2.5-flash",
    "groq": "llama-3.3-70b-versatile",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # LLM provider keys (only the selected provider's key is required)
    anthropic_api_key: str = ""
    google_api_key: str = ""
    groq_api_key: str = ""

    # LLM settings
    llm_provider: LLMProvider = "google"
    llm_model: str = ""
    llm_max_tokens: int = 8192
    llm_temperature: float = 0.7
    evidence_temperature: float = 0.8
    llm_timeout_s: float = 120.0
    llm_max_retries: int = 2
    llm_retry_base_delay: float = 1.0
    llm_output_retries: int = 1

    # Research pipeline
    evidence_sample_size: int = 15
    min_problems: int = 5
    max_problems: int = 10
    # Serve canned results instead of calling the LLM
    dry_run: bool = False

    # Payments (Razorpay)
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    razorpay_base_url: str = "https://api.razorpay.com/v1"
    pro_price_amount: int = 9900  # paise, i.e. INR 99
    pro_credit_grant: int = 1000

    # Credits
    free_credits: int = 4

    # Data directory
    data_dir: Path = Path("./data")

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    # API server
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    @property
    def resolved_llm_model(self) -> str:
        return self.llm_model or DEFAULT_MODELS[self.llm_provider]

    @property
    def llm_api_key(self) -> str:
        return {
            "anthropic": self.anthropic_api_key,
            "google": self.google_api_key,
            "groq": self.groq_api_key,
        }[self.llm_provider]

    @property
    def razorpay_configured(self) -> bool:
        return bool(self.razorpay_key_id and self.razorpay_key_secret)

    @property
    def db_path(self) -> Path:
        return self.data_dir / "problemscout.db"

    def ensure_data_dir(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
