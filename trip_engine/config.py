"""
Configuration management using Pydantic Settings.
Reads from environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, populate_by_name=True)

    # Chat feature switch
    chat_enabled: bool = Field(default=True, alias="CHAT_ENABLED")

    # LLM Configuration
    deepseek_api_key: str | None = Field(default=None, alias="DEEPSEEK_API_KEY")
    litellm_model: str = Field(default="deepseek/deepseek-chat", alias="LITELLM_MODEL")
    ai_model_name: str = Field(default="deepseek-chat", alias="AI_MODEL_NAME")
    ai_provider: str = Field(default="deepseek", alias="AI_PROVIDER")
    max_tokens: int = Field(default=4096, alias="MAX_TOKENS")
    temperature: float = Field(default=0.7, alias="TEMPERATURE")
    request_timeout_seconds: float = Field(default=60.0, alias="REQUEST_TIMEOUT_SECONDS")

    # Pricing in USD per million tokens
    input_cost_per_million: float = Field(default=0.14, alias="INPUT_COST_PER_MILLION")
    output_cost_per_million: float = Field(default=0.28, alias="OUTPUT_COST_PER_MILLION")

    # Metrics
    metrics_enabled: bool = Field(default=True, alias="METRICS_ENABLED")
    metrics_queue_size: int = Field(default=1000, alias="METRICS_QUEUE_SIZE")

    # Application Configuration
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


# Global settings instance
settings = Settings()
