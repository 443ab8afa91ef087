"""Application settings."""

import os
from pathlib import Path
from typing import Optional
from pydantic import BaseModel


DEFAULT_DATA_PATH = str(Path(__file__).parent.parent / "datastore" / "sample_data.yaml")
DEFAULT_KEYWORDS_PATH = str(Path(__file__).parent / "intent_keywords.yaml")


class Settings(BaseModel):
    """Application configuration settings."""

    # LLM Provider settings
    llm_provider: str = "gemini"  # "gemini", "openai" or "anthropic"
    llm_model: Optional[str] = None  # Override the provider's default model
    llm_temperature: float = 0.1
    classifier_max_tokens: int = 500
    classifier_timeout_seconds: float = 15.0

    # API Keys
    gemini_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    # Session memory
    max_interactions_per_session: int = 20
    session_timeout_minutes: int = 30
    session_sweep_interval_minutes: int = 15

    # Data
    data_path: str = DEFAULT_DATA_PATH
    keywords_path: str = DEFAULT_KEYWORDS_PATH

    # Notifications
    notifications_enabled: bool = True
    webhook_base_url: Optional[str] = None
    webhook_timeout_seconds: float = 5.0

    # Logging
    verbose: bool = False

    def __init__(self, **data):
        # Auto-load API keys from environment if not provided
        if data.get("gemini_api_key") is None:
            data["gemini_api_key"] = os.environ.get("GEMINI_API_KEY")

        if data.get("openai_api_key") is None:
            data["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

        if data.get("anthropic_api_key") is None:
            data["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")

        if data.get("webhook_base_url") is None:
            data["webhook_base_url"] = os.environ.get("BASE_URL", "http://localhost:5000")

        if data.get("llm_provider") is None:
            data.pop("llm_provider", None)
            if os.environ.get("LLM_PROVIDER"):
                data["llm_provider"] = os.environ["LLM_PROVIDER"]

        super().__init__(**data)

    def get_llm_api_key(self) -> Optional[str]:
        """Get the API key for the configured LLM provider."""
        if self.llm_provider == "gemini":
            return self.gemini_api_key
        elif self.llm_provider == "openai":
            return self.openai_api_key
        elif self.llm_provider == "anthropic":
            return self.anthropic_api_key
        return None
