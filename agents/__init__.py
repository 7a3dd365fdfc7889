"""Agents module containing the copilot's capabilities and analysis tools."""

from .exceptions import (
    TradingCopilotError,
    ToolFailure,
    MarketDataError,
    CapabilityError,
    InvalidStateError,
    RunawayConversationError,
)
from .market_data import MARKET_DATA_TOOL, OHLCVPoint, fetch_market_data, parse_market_series
from .technical_indicators import sma, ema, rsi, macd, bollinger_bands, MACDResult, BollingerBands
from .technical_analysis import (
    Recommendation,
    IndicatorSnapshot,
    TradingDecision,
    compute_indicator_snapshot,
    get_technical_signals,
    recommend,
    analyze_technicals,
)
from .tool_registry import (
    TECHNICAL_INDICATORS_TOOL,
    ToolSpec,
    ToolRegistry,
    build_default_registry,
)
from .llm import ChatCapability, OllamaChatCapability
from .chart_vision import ChartDescription, ChartVisionCapability, enrich_message

__all__ = [
    "TradingCopilotError",
    "ToolFailure",
    "MarketDataError",
    "CapabilityError",
    "InvalidStateError",
    "RunawayConversationError",
    "MARKET_DATA_TOOL",
    "OHLCVPoint",
    "fetch_market_data",
    "parse_market_series",
    "sma",
    "ema",
    "rsi",
    "macd",
    "bollinger_bands",
    "MACDResult",
    "BollingerBands",
    "Recommendation",
    "IndicatorSnapshot",
    "TradingDecision",
    "compute_indicator_snapshot",
    "get_technical_signals",
    "recommend",
    "analyze_technicals",
    "TECHNICAL_INDICATORS_TOOL",
    "ToolSpec",
    "ToolRegistry",
    "build_default_registry",
    "ChatCapability",
    "OllamaChatCapability",
    "ChartDescription",
    "ChartVisionCapability",
    "enrich_message",
]
