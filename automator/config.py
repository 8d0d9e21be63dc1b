"""Pydantic Settings: loads configuration from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    host_url: str = "http://127.0.0.1:5174"
    host_timeout_seconds: float = 120.0

    openai_api_key: str = ""
    anthropic_api_key: str = ""

    llm_provider: str = "openai"
    llm_model: str = "gpt-4o-mini"
    output_dir: str = "reports"
    log_level: str = "INFO"

    @property
    def chat_model(self) -> str:
        return f"{self.llm_provider}:{self.llm_model}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
