"""Centralized configuration settings for the trading copilot."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # LLM Configuration
    OLLAMA_BASE_URL: str = "http://localhost:11434/v1"
    OLLAMA_MODEL: str = "llama3.1"
    OLLAMA_VISION_MODEL: str = "llava"  # Chart screenshots
    LLM_TEMPERATURE: float = 0.0
    LLM_TIMEOUT: int = 120

    # Conversation control
    COMPLETION_MARKER: str = "FINAL ANSWER"
    MAX_NODE_VISITS: int = 25

    # Market data
    QUOTE_CURRENCY: str = "USD"  # BTC -> BTC-USD
    MARKET_DATA_INTERVAL: str = "1d"
    MARKET_DATA_LOOKBACK_DAYS: int = 60

    # Analysis Parameters
    SMA_PERIOD: int = 14
    RSI_PERIOD: int = 14
    RSI_OVERBOUGHT: float = 70.0
    RSI_OVERSOLD: float = 30.0
    MACD_FAST_PERIOD: int = 12
    MACD_SLOW_PERIOD: int = 26
    MACD_SIGNAL_PERIOD: int = 9
    BOLLINGER_PERIOD: int = 20
    BOLLINGER_MULTIPLIER: float = 2.0
    TREND_THRESHOLD_PERCENT: float = 2.0  # Price change fallback when no indicator is warm

    # HTTP transport
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_parse_none_str = ""
        env_parse_enums = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
