"""Scripted stand-ins for the language model and the market data provider."""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from langchain_core.messages import AIMessage, BaseMessage

from agents import MARKET_DATA_TOOL, OHLCVPoint


def make_series(closes: Sequence[float], start: date = date(2024, 1, 1)) -> List[OHLCVPoint]:
    """Daily OHLCV points with the given closes."""
    series = []
    for i, close in enumerate(closes):
        day = start + timedelta(days=i)
        series.append(OHLCVPoint(
            low=close - 1,
            open=close - 0.5,
            high=close + 1,
            close=close,
            volume=1000 + i,
            timestamp=int(datetime(day.year, day.month, day.day, tzinfo=timezone.utc).timestamp()),
            date=day,
        ))
    return series


def tool_call_message(name: str = MARKET_DATA_TOOL, args: Optional[Dict[str, Any]] = None,
                      call_id: str = "call_1") -> AIMessage:
    return AIMessage(content="", tool_calls=[{"name": name, "args": args or {}, "id": call_id}])


class ScriptedChat:
    """Returns queued replies in order; exceptions in the script are raised."""

    def __init__(self, replies: Sequence[Any], repeat_last: bool = False):
        self.replies = list(replies)
        self.repeat_last = repeat_last
        self.calls: List[Dict[str, Any]] = []

    async def ainvoke(self, messages: Sequence[BaseMessage], tool_names: List[str]) -> AIMessage:
        self.calls.append({"messages": list(messages), "tool_names": list(tool_names)})
        if len(self.replies) > 1 or not self.repeat_last:
            reply = self.replies.pop(0)
        else:
            reply = self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeFetcher:
    """Market data fetcher returning a fixed series, or raising a fixed error."""

    def __init__(self, series: Optional[List[OHLCVPoint]] = None, error: Optional[Exception] = None):
        self.series = series or []
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, symbol, interval=None, time_start=None, time_end=None):
        self.calls.append({
            "symbol": symbol,
            "interval": interval,
            "time_start": time_start,
            "time_end": time_end,
        })
        if self.error is not None:
            raise self.error
        return self.series
