"""Application settings and configuration."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from investor.domain.models.enums import UpdateCashPolicy


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "Smart Investor API"
    app_version: str = "0.1.0"

    # Persistence
    database_url: str = "sqlite:///./investor.db"

    log_level: str = "INFO"

    # Market data (Alpaca); without an API key the stream stays offline
    alpaca_api_key: Optional[str] = None
    alpaca_secret_key: Optional[str] = None
    alpaca_stream_url: str = "wss://stream.data.alpaca.markets/v2/iex"
    alpaca_data_url: str = "https://data.alpaca.markets"
    price_feed_connect_attempts: int = 3
    price_feed_backoff_seconds: float = 1.0
    price_feed_auth_timeout_seconds: float = 10.0
    quote_timeout_seconds: float = 10.0
    # Offline/demo quotes for a fixed symbol list; ignored when credentials are set
    use_stub_quotes: bool = False

    # Read-through caches
    user_cache_ttl_seconds: int = 300
    transaction_cache_ttl_seconds: int = 120
    cache_sweep_interval_seconds: int = 60

    # Ledger behavior
    ledger_fetch_cap: int = 1000
    update_cash_policy: UpdateCashPolicy = UpdateCashPolicy.REAPPLY

    @property
    def has_market_data_credentials(self) -> bool:
        return bool(self.alpaca_api_key and self.alpaca_secret_key)


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
