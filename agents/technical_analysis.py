"""Technical analysis: indicator snapshot, signals and a buy/sell/hold call."""

from enum import Enum
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel

from config import Settings, get_settings
from .market_data import OHLCVPoint
from .technical_indicators import bollinger_bands, macd, rsi, sma

BULLISH = "bullish"
BEARISH = "bearish"
NEUTRAL = "neutral"


class Recommendation(str, Enum):
    """Trading action."""
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class IndicatorSnapshot(BaseModel):
    """Latest indicator values for a series. None means still warming up."""
    points: int
    first_date: str
    last_date: str
    first_close: float
    last_close: float
    change_percent: float
    sma: Optional[float] = None
    rsi: Optional[float] = None
    macd: Optional[float] = None
    macd_signal: Optional[float] = None
    macd_histogram: Optional[float] = None
    bb_upper: Optional[float] = None
    bb_middle: Optional[float] = None
    bb_lower: Optional[float] = None


class TradingDecision(BaseModel):
    """Recommendation with the signals that voted for it."""
    action: Recommendation
    confidence: float  # 0-1
    signals: Dict[str, str]


def compute_indicator_snapshot(
    series: Sequence[OHLCVPoint], settings: Optional[Settings] = None
) -> IndicatorSnapshot:
    """
    Run every indicator over the series in one pass and keep the latest values.

    Args:
        series: Ordered OHLCV points (at least one)
        settings: Indicator periods; defaults to the cached settings

    Returns:
        IndicatorSnapshot for the last bar
    """
    if not series:
        raise ValueError("Cannot analyze an empty series")
    settings = settings or get_settings()

    first, last = series[0], series[-1]
    macd_result = macd(
        series, settings.MACD_FAST_PERIOD, settings.MACD_SLOW_PERIOD, settings.MACD_SIGNAL_PERIOD
    )
    bands = bollinger_bands(series, settings.BOLLINGER_PERIOD, settings.BOLLINGER_MULTIPLIER)
    change = (last.close - first.close) / first.close * 100 if first.close else 0.0

    return IndicatorSnapshot(
        points=len(series),
        first_date=first.date.isoformat(),
        last_date=last.date.isoformat(),
        first_close=first.close,
        last_close=last.close,
        change_percent=change,
        sma=sma(series, settings.SMA_PERIOD)[-1],
        rsi=rsi(series, settings.RSI_PERIOD)[-1],
        macd=macd_result.macd[-1],
        macd_signal=macd_result.signal[-1],
        macd_histogram=macd_result.histogram[-1],
        bb_upper=bands.upper[-1],
        bb_middle=bands.middle[-1],
        bb_lower=bands.lower[-1],
    )


def get_technical_signals(
    snapshot: IndicatorSnapshot, settings: Optional[Settings] = None
) -> Dict[str, str]:
    """
    Turn indicator values into bullish / bearish / neutral signals.

    Indicators still in their warm-up window give no signal. When none is
    available, the price change over the series is used instead.

    Args:
        snapshot: Latest indicator values
        settings: Thresholds; defaults to the cached settings

    Returns:
        Dictionary {indicator: signal}
    """
    settings = settings or get_settings()
    close = snapshot.last_close
    signals: Dict[str, str] = {}

    # Trend (price vs SMA)
    if snapshot.sma is not None:
        if close > snapshot.sma:
            signals["trend"] = BULLISH
        elif close < snapshot.sma:
            signals["trend"] = BEARISH
        else:
            signals["trend"] = NEUTRAL

    # Momentum (RSI)
    if snapshot.rsi is not None:
        if snapshot.rsi < settings.RSI_OVERSOLD:
            signals["rsi"] = BULLISH
        elif snapshot.rsi > settings.RSI_OVERBOUGHT:
            signals["rsi"] = BEARISH
        else:
            signals["rsi"] = NEUTRAL

    # MACD vs signal line
    if snapshot.macd_histogram is not None:
        if snapshot.macd_histogram > 0:
            signals["macd"] = BULLISH
        elif snapshot.macd_histogram < 0:
            signals["macd"] = BEARISH
        else:
            signals["macd"] = NEUTRAL

    # Bollinger Bands position
    if snapshot.bb_upper is not None and snapshot.bb_lower is not None:
        if close <= snapshot.bb_lower:
            signals["bollinger"] = BULLISH
        elif close >= snapshot.bb_upper:
            signals["bollinger"] = BEARISH
        else:
            signals["bollinger"] = NEUTRAL

    if not signals:
        threshold = settings.TREND_THRESHOLD_PERCENT
        if snapshot.change_percent >= threshold:
            signals["price_change"] = BULLISH
        elif snapshot.change_percent <= -threshold:
            signals["price_change"] = BEARISH
        else:
            signals["price_change"] = NEUTRAL

    return signals


def recommend(signals: Dict[str, str]) -> TradingDecision:
    """
    Vote a recommendation from the signals.

    BUY when bullish signals outnumber bearish ones, SELL on the opposite,
    HOLD otherwise. Confidence is the share of signals agreeing with the call.
    """
    total = len(signals) or 1
    bullish = sum(1 for s in signals.values() if s == BULLISH)
    bearish = sum(1 for s in signals.values() if s == BEARISH)

    if bullish > bearish:
        return TradingDecision(action=Recommendation.BUY, confidence=bullish / total, signals=signals)
    if bearish > bullish:
        return TradingDecision(action=Recommendation.SELL, confidence=bearish / total, signals=signals)
    # Tie: neutral signals back the HOLD, the two opposing camps cancel out.
    neutral = total - bullish - bearish
    return TradingDecision(
        action=Recommendation.HOLD,
        confidence=neutral / total,
        signals=signals,
    )


def _describe(label: str, value: Optional[str], signal: Optional[str]) -> str:
    if value is None:
        return f"- {label}: not enough history"
    return f"- {label}: {value} → {signal}"


def analyze_technicals(
    series: Sequence[OHLCVPoint],
    symbol: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> str:
    """
    Analyze a series and write the recommendation message.

    Args:
        series: Ordered OHLCV points
        symbol: Symbol for the heading, if known
        settings: Periods and thresholds; defaults to the cached settings

    Returns:
        Technical analysis summary ending with the recommendation
    """
    settings = settings or get_settings()
    snapshot = compute_indicator_snapshot(series, settings)
    signals = get_technical_signals(snapshot, settings)
    decision = recommend(signals)

    heading = f"Technical analysis for {symbol.upper()}" if symbol else "Technical analysis"
    lines: List[str] = [
        f"{heading} over {snapshot.points} bars ({snapshot.first_date} → {snapshot.last_date})",
        f"Last close: {snapshot.last_close:,.2f} ({snapshot.change_percent:+.2f}% over the period)",
        "",
        _describe(
            f"Trend (SMA {settings.SMA_PERIOD})",
            None if snapshot.sma is None else f"price {snapshot.last_close:,.2f} vs SMA {snapshot.sma:,.2f}",
            signals.get("trend"),
        ),
        _describe(
            f"Momentum (RSI {settings.RSI_PERIOD})",
            None if snapshot.rsi is None else f"{snapshot.rsi:.2f}",
            signals.get("rsi"),
        ),
        _describe(
            f"MACD ({settings.MACD_FAST_PERIOD}/{settings.MACD_SLOW_PERIOD}/{settings.MACD_SIGNAL_PERIOD})",
            None if snapshot.macd_histogram is None else (
                f"MACD {snapshot.macd:.4f} vs signal {snapshot.macd_signal:.4f}"
            ),
            signals.get("macd"),
        ),
        _describe(
            f"Volatility (Bollinger {settings.BOLLINGER_PERIOD}, {settings.BOLLINGER_MULTIPLIER:g}σ)",
            None if snapshot.bb_upper is None else (
                f"bands {snapshot.bb_lower:,.2f} - {snapshot.bb_upper:,.2f}"
            ),
            signals.get("bollinger"),
        ),
    ]

    if "price_change" in signals:
        lines.append(
            f"- Price change: {snapshot.change_percent:+.2f}% → {signals['price_change']}"
        )

    lines.extend([
        "",
        f"Recommendation: {decision.action.value} (confidence {decision.confidence:.0%})",
        "Trading involves risk; this is not financial advice.",
    ])
    return "\n".join(lines)
