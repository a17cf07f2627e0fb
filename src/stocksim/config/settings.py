"""Application settings and configuration."""

from decimal import Decimal
from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Return the default data directory."""
    return Path.home() / ".stocksim"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables (STOCKSIM_*)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STOCKSIM_",
        extra="ignore",
    )

    app_name: str = "StockSim Paper Trading"
    app_version: str = "0.1.0"

    # Data directory (all app data lives here)
    data_dir: Optional[Path] = None

    # Database URL (derived from data_dir if not set explicitly)
    database_url: Optional[str] = None

    log_level: str = "INFO"

    # Portfolio
    starting_cash: Decimal = Decimal("10000.00")

    # Market data
    market_data_source: Literal["finnhub", "yfinance", "stub"] = "stub"
    finnhub_api_key: Optional[str] = None
    alpha_vantage_api_key: Optional[str] = None
    quote_cache_ttl_seconds: int = 120
    profile_cache_ttl_seconds: int = 24 * 60 * 60
    news_cache_ttl_seconds: int = 10 * 60
    request_timeout_seconds: float = 10.0
    fetch_workers: int = 4

    # Loaded per-user portfolios kept in memory by the API (least recently used evicted)
    max_loaded_portfolios: int = 256

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_url(self) -> str:
        """Get database URL, deriving from data_dir if not set."""
        if self.database_url:
            return self.database_url
        db_path = self.get_data_dir() / "stocksim.db"
        return f"sqlite:///{db_path}"


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
