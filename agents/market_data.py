"""Market data capability: OHLCV series from Yahoo Finance."""

import json
from datetime import date, datetime, timedelta, timezone
from typing import Any, List, Optional

import pandas as pd
import yfinance as yf
from langchain_core.messages import BaseMessage, ToolMessage
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from config import get_settings
from .exceptions import MarketDataError

MARKET_DATA_TOOL = "fetch_market_data"


class OHLCVPoint(BaseModel):
    """One price bar."""
    model_config = ConfigDict(frozen=True)

    low: float
    open: float
    high: float
    close: float
    volume: float
    timestamp: int  # epoch seconds
    date: date


_SERIES_ADAPTER = TypeAdapter(List[OHLCVPoint])


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO date or datetime string into an aware UTC datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError as e:
        raise MarketDataError(f"Invalid date '{value}', expected ISO format (YYYY-MM-DD)") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def yahoo_ticker(symbol: str) -> str:
    """Map a coin symbol to its Yahoo Finance pair (BTC -> BTC-USD)."""
    symbol = symbol.strip().upper()
    if "-" in symbol:
        return symbol
    return f"{symbol}-{get_settings().QUOTE_CURRENCY}"


def fetch_market_data(
    symbol: str,
    interval: Optional[str] = None,
    time_start: Optional[str] = None,
    time_end: Optional[str] = None,
) -> List[OHLCVPoint]:
    """
    Fetch an OHLCV series for a symbol.

    Args:
        symbol: Coin symbol (e.g., 'BTC', 'ETH') or a full Yahoo pair ('BTC-USD')
        interval: Bar interval ('1d', '1h', '15m'); defaults to settings
        time_start: ISO start date; defaults to the configured lookback
        time_end: ISO end date; defaults to now

    Returns:
        Ordered list of OHLCV points

    Raises:
        MarketDataError: If the provider returns no usable data
    """
    settings = get_settings()
    ticker = yahoo_ticker(symbol)
    interval = interval or settings.MARKET_DATA_INTERVAL

    end = _parse_time(time_end) or datetime.now(timezone.utc)
    start = _parse_time(time_start) or end - timedelta(days=settings.MARKET_DATA_LOOKBACK_DAYS)
    if start >= end:
        raise MarketDataError(f"Start {start.date()} is not before end {end.date()}")

    print(f"\n   ⏳ [TOOL] Market data for {ticker} ({interval}, {start.date()} → {end.date()})...")

    df = yf.Ticker(ticker).history(start=start, end=end, interval=interval)
    if df.empty:
        raise MarketDataError(f"No market data for {ticker}.")

    df = df.dropna(subset=["Open", "High", "Low", "Close"])
    series = [
        OHLCVPoint(
            low=float(row["Low"]),
            open=float(row["Open"]),
            high=float(row["High"]),
            close=float(row["Close"]),
            volume=0.0 if pd.isna(row["Volume"]) else float(row["Volume"]),
            timestamp=int(index.timestamp()),
            date=index.date(),
        )
        for index, row in df.iterrows()
    ]
    if not series:
        raise MarketDataError(f"No complete price bars for {ticker}.")

    print(f"       ✅ {len(series)} bars received.")
    return series


def parse_market_series(message: BaseMessage) -> Optional[List[OHLCVPoint]]:
    """
    Extract the OHLCV series carried by a market data tool result.

    Args:
        message: Any conversation message

    Returns:
        The series, or None if the message is not a successful, non-empty
        market data result (error payloads and other tools give None)
    """
    if not isinstance(message, ToolMessage) or message.name != MARKET_DATA_TOOL:
        return None
    if not isinstance(message.content, str):
        return None

    try:
        payload: Any = json.loads(message.content)
    except json.JSONDecodeError:
        return None

    if not isinstance(payload, list) or not payload:
        return None

    try:
        return _SERIES_ADAPTER.validate_python(payload)
    except ValidationError:
        return None
