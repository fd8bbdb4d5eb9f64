"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings

# Values shipped in sample .env files; treated as "not configured".
PLACEHOLDER_KEYS = {"", "your_exa_api_key", "your_gnews_api_key", "your_anthropic_api_key"}


def _is_configured(key: str) -> bool:
    return key.strip() not in PLACEHOLDER_KEYS


class Settings(BaseSettings):
    """Central configuration — reads from environment / .env file."""

    # Anthropic (generative fallback tier)
    anthropic_api_key: str = ""
    claude_model: str = "claude-sonnet-4-6"

    # Live upstream APIs
    gnews_api_key: str = ""
    gnews_base_url: str = "https://gnews.io/api/v4"
    exa_api_key: str = ""
    exa_base_url: str = "https://api.exa.ai"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: str = "*"
    rate_limit_per_minute: int = 30

    # Timeouts (seconds)
    upstream_timeout_seconds: float = 10.0
    generative_timeout_seconds: float = 30.0

    # Live-tier circuit breaker and upstream self-throttling
    live_cooldown_seconds: float = 300.0      # 5 minutes
    rate_limit_window_seconds: float = 60.0

    # News service
    news_cache_ttl_seconds: float = 300.0     # 5 minutes
    news_cache_max_entries: int = 50
    news_rate_limit_per_minute: int = 10

    # Events service
    events_cache_ttl_seconds: float = 600.0   # 10 minutes
    events_cache_max_entries: int = 50
    events_rate_limit_per_minute: int = 10

    # Local news service
    local_news_cache_ttl_seconds: float = 900.0  # 15 minutes
    local_news_cache_max_entries: int = 50
    local_news_rate_limit_per_minute: int = 10

    # Destination safety service
    safety_cache_ttl_seconds: float = 1800.0  # 30 minutes
    safety_cache_max_entries: int = 20
    safety_rate_limit_per_minute: int = 10

    # Cancel a shared upstream call once every caller waiting on it is gone
    cancel_abandoned_requests: bool = True

    # LLM defaults
    llm_max_retries: int = 1
    llm_timeout_seconds: int = 60

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def has_anthropic_key(self) -> bool:
        return _is_configured(self.anthropic_api_key)

    @property
    def has_gnews_key(self) -> bool:
        return _is_configured(self.gnews_api_key)

    @property
    def has_exa_key(self) -> bool:
        return _is_configured(self.exa_api_key)

    @property
    def is_demo_mode(self) -> bool:
        return not (self.has_anthropic_key or self.has_gnews_key or self.has_exa_key)

    @property
    def cors_origins(self) -> list[str]:
        if self.allowed_origins == "*":
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",")]


settings = Settings()
