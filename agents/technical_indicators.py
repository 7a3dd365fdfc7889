"""Technical indicator engine.

Every function takes an ordered series and returns a list of the same length,
aligned index-for-index with the input. Positions inside the warm-up window
hold ``None``; a computed value is always a float.
"""

from typing import Any, List, NamedTuple, Optional, Sequence

import pandas as pd

IndicatorSeries = List[Optional[float]]


class MACDResult(NamedTuple):
    """MACD line, signal line and histogram."""
    macd: IndicatorSeries
    signal: IndicatorSeries
    histogram: IndicatorSeries


class BollingerBands(NamedTuple):
    """Upper, middle (SMA) and lower bands."""
    upper: IndicatorSeries
    middle: IndicatorSeries
    lower: IndicatorSeries


def _check_period(period: int, name: str = "period") -> None:
    if period < 1:
        raise ValueError(f"{name} must be a positive integer, got {period}")


def field_values(points: Sequence[Any], field: str = "close") -> List[float]:
    """Extract one price field from OHLCV points (models or dicts)."""
    if field not in ("open", "high", "low", "close", "volume"):
        raise ValueError(f"Unknown price field: {field}")
    return [
        float(p[field]) if isinstance(p, dict) else float(getattr(p, field))
        for p in points
    ]


def _to_indicator_series(values: pd.Series) -> IndicatorSeries:
    return [None if pd.isna(v) else float(v) for v in values]


def sma(points: Sequence[Any], period: int = 14, field: str = "close") -> IndicatorSeries:
    """
    Simple moving average of ``field`` over the trailing ``period`` points.

    Args:
        points: Ordered OHLCV points
        period: Window length
        field: Price field to average ('open', 'high', 'low', 'close')

    Returns:
        SMA values, ``None`` for indices below ``period - 1``
    """
    _check_period(period)
    values = pd.Series(field_values(points, field), dtype="float64")
    return _to_indicator_series(values.rolling(window=period).mean())


def ema(values: Sequence[float], period: int) -> IndicatorSeries:
    """
    Exponential moving average seeded with the SMA of the first ``period`` values.

    Args:
        values: Ordered price values
        period: EMA period

    Returns:
        EMA values, ``None`` before the seed index ``period - 1``
    """
    _check_period(period)
    prices = [float(v) for v in values]
    if len(prices) < period:
        return [None] * len(prices)

    result: IndicatorSeries = [None] * (period - 1)
    previous = sum(prices[:period]) / period
    result.append(previous)

    k = 2 / (period + 1)
    for price in prices[period:]:
        previous = price * k + previous * (1 - k)
        result.append(previous)

    return result


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    # No losses in the window: the ratio is unbounded, RSI saturates at 100.
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


def rsi(points: Sequence[Any], period: int = 14) -> IndicatorSeries:
    """
    Relative Strength Index with Wilder smoothing.

    The first value sits at index ``period`` (it needs ``period`` close-to-close
    deltas). When the average loss is zero the RSI is 100.

    Args:
        points: Ordered OHLCV points
        period: RSI period (typically 14)

    Returns:
        RSI values in [0, 100], ``None`` for the first ``period`` indices
    """
    _check_period(period)
    closes = field_values(points, "close")
    if len(closes) < period + 1:
        return [None] * len(closes)

    gains = []
    losses = []
    for previous, current in zip(closes, closes[1:]):
        change = current - previous
        gains.append(change if change > 0 else 0.0)
        losses.append(-change if change < 0 else 0.0)

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period

    result: IndicatorSeries = [None] * period
    result.append(_rsi_value(avg_gain, avg_loss))

    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period
        result.append(_rsi_value(avg_gain, avg_loss))

    return result


def macd(
    points: Sequence[Any],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MACDResult:
    """
    Moving Average Convergence Divergence.

    The signal line is the EMA of the defined part of the MACD line, shifted
    back into the input's index space.

    Args:
        points: Ordered OHLCV points
        fast_period: Fast EMA period (typically 12)
        slow_period: Slow EMA period (typically 26)
        signal_period: Signal EMA period (typically 9)

    Returns:
        MACDResult with three series the length of ``points``
    """
    _check_period(fast_period, "fast_period")
    _check_period(slow_period, "slow_period")
    _check_period(signal_period, "signal_period")

    closes = field_values(points, "close")
    fast = ema(closes, fast_period)
    slow = ema(closes, slow_period)

    macd_line: IndicatorSeries = [
        None if f is None or s is None else f - s
        for f, s in zip(fast, slow)
    ]

    defined = [v for v in macd_line if v is not None]
    offset = len(macd_line) - len(defined)
    signal_line: IndicatorSeries = [None] * offset + ema(defined, signal_period)

    histogram: IndicatorSeries = [
        None if m is None or s is None else m - s
        for m, s in zip(macd_line, signal_line)
    ]

    return MACDResult(macd=macd_line, signal=signal_line, histogram=histogram)


def bollinger_bands(
    points: Sequence[Any],
    period: int = 20,
    multiplier: float = 2.0,
) -> BollingerBands:
    """
    Bollinger Bands around the close SMA.

    The standard deviation is the population deviation of the same trailing
    close window the middle band averages.

    Args:
        points: Ordered OHLCV points
        period: SMA window (typically 20)
        multiplier: Standard deviation multiplier (typically 2)

    Returns:
        BollingerBands with three series the length of ``points``
    """
    _check_period(period)
    if multiplier < 0:
        raise ValueError(f"multiplier must not be negative, got {multiplier}")
    closes = pd.Series(field_values(points, "close"), dtype="float64")
    window = closes.rolling(window=period)

    middle = window.mean()
    stddev = window.var(ddof=0).clip(lower=0) ** 0.5

    return BollingerBands(
        upper=_to_indicator_series(middle + multiplier * stddev),
        middle=_to_indicator_series(middle),
        lower=_to_indicator_series(middle - multiplier * stddev),
    )
