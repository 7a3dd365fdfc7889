"""
Tests for the technical indicator engine.
"""

import math

import pytest

from agents.technical_indicators import (
    bollinger_bands,
    ema,
    field_values,
    macd,
    rsi,
    sma,
)
from tests.fakes import make_series


# ===== SMA Tests =====

class TestSMA:
    """Tests for the simple moving average."""

    def test_trailing_window_average(self):
        """SMA(3) over closes 1..5 averages each trailing window."""
        result = sma(make_series([1, 2, 3, 4, 5]), period=3)
        assert result == [None, None, 2.0, 3.0, 4.0]

    def test_shorter_than_period_is_undefined(self):
        """Fewer points than the period gives no value at all."""
        result = sma(make_series([1, 2]), period=3)
        assert result == [None, None]

    def test_other_price_field(self):
        """SMA can average a field other than the close."""
        result = sma(make_series([10, 20]), period=2, field="high")
        assert result == [None, 16.0]

    def test_accepts_dict_points(self):
        """Plain dict points are read like models."""
        points = [{"close": 2.0}, {"close": 4.0}]
        assert sma(points, period=2) == [None, 3.0]

    def test_unknown_field_raises(self):
        with pytest.raises(ValueError):
            field_values(make_series([1]), "vwap")

    @pytest.mark.parametrize("period", [0, -3])
    def test_invalid_period_raises(self, period):
        with pytest.raises(ValueError):
            sma(make_series([1, 2, 3]), period=period)


# ===== EMA Tests =====

class TestEMA:
    """Tests for the exponential moving average."""

    def test_seeded_with_sma(self):
        """The first EMA value is the SMA of the first period values."""
        result = ema([1, 2, 3, 4, 5], period=3)
        # k = 0.5: 4 * 0.5 + 2 * 0.5 = 3, then 5 * 0.5 + 3 * 0.5 = 4
        assert result == [None, None, 2.0, 3.0, 4.0]

    def test_shorter_than_period_is_undefined(self):
        assert ema([1, 2], period=3) == [None, None]

    def test_empty_input(self):
        assert ema([], period=3) == []

    def test_period_one_follows_price(self):
        """With period 1 the smoothing factor is 1."""
        assert ema([5, 7, 9], period=1) == [5.0, 7.0, 9.0]


# ===== RSI Tests =====

class TestRSI:
    """Tests for the Wilder RSI."""

    def test_wilder_smoothing(self):
        """RSI(2) on an alternating series, checked by hand."""
        # deltas +1 -1 +1; seed gain 0.5 loss 0.5 -> 50
        # next: gain (0.5 + 1) / 2 = 0.75, loss 0.5 / 2 = 0.25 -> RS 3 -> 75
        result = rsi(make_series([10, 11, 10, 11]), period=2)
        assert result[:2] == [None, None]
        assert result[2] == pytest.approx(50.0)
        assert result[3] == pytest.approx(75.0)

    def test_first_value_at_period_index(self):
        result = rsi(make_series(list(range(1, 21))), period=14)
        assert all(v is None for v in result[:14])
        assert all(v is not None for v in result[14:])

    def test_only_gains_saturates_at_100(self):
        """No losses means an RSI of 100."""
        result = rsi(make_series(list(range(100, 120))), period=14)
        assert result[-1] == 100.0

    def test_only_losses_is_zero(self):
        result = rsi(make_series(list(range(120, 100, -1))), period=14)
        assert result[-1] == pytest.approx(0.0)

    def test_needs_period_plus_one_points(self):
        """period points give only period - 1 deltas, so nothing is defined."""
        assert rsi(make_series([1, 2, 3]), period=3) == [None, None, None]

    def test_values_within_bounds(self, long_series):
        result = rsi(long_series, period=14)
        assert len(result) == len(long_series)
        assert all(0 <= v <= 100 for v in result if v is not None)


# ===== MACD Tests =====

class TestMACD:
    """Tests for the MACD line, signal and histogram."""

    def test_series_aligned_with_input(self, long_series):
        result = macd(long_series)
        assert len(result.macd) == len(result.signal) == len(result.histogram) == len(long_series)

    def test_histogram_defined_only_where_both_lines_are(self, long_series):
        result = macd(long_series)
        for m, s, h in zip(result.macd, result.signal, result.histogram):
            if m is None or s is None:
                assert h is None
            else:
                assert h == pytest.approx(m - s)

    def test_warm_up_offsets(self):
        """MACD starts at slow - 1; the signal needs signal_period more values."""
        result = macd(make_series([float(i) for i in range(1, 11)]), 2, 3, 2)
        assert result.macd[1] is None
        assert result.macd[2] is not None
        assert result.signal[2] is None
        assert result.signal[3] is not None

    def test_signal_is_ema_of_defined_macd(self):
        result = macd(make_series([1, 3, 2, 5, 4, 6, 8, 7]), 2, 3, 2)
        defined = [v for v in result.macd if v is not None]
        expected = ema(defined, 2)
        assert result.signal[-len(expected):] == expected

    def test_not_enough_points_for_signal(self):
        """A short series has a MACD line but no signal line."""
        result = macd(make_series(list(range(1, 30))))
        assert result.macd[-1] is not None
        assert all(v is None for v in result.signal)
        assert all(v is None for v in result.histogram)

    def test_invalid_period_raises(self):
        with pytest.raises(ValueError):
            macd(make_series([1, 2, 3]), 12, 26, 0)


# ===== Bollinger Bands Tests =====

class TestBollingerBands:
    """Tests for the Bollinger Bands."""

    def test_population_deviation(self):
        bands = bollinger_bands(make_series([1, 2, 3]), period=3, multiplier=2)
        std = math.sqrt(2 / 3)
        assert bands.middle == [None, None, 2.0]
        assert bands.upper[2] == pytest.approx(2 + 2 * std)
        assert bands.lower[2] == pytest.approx(2 - 2 * std)

    def test_flat_series_collapses_bands(self):
        bands = bollinger_bands(make_series([5, 5, 5, 5]), period=3)
        assert bands.upper[-1] == bands.middle[-1] == bands.lower[-1] == 5.0

    def test_band_ordering(self, long_series):
        bands = bollinger_bands(long_series)
        for upper, middle, lower in zip(bands.upper, bands.middle, bands.lower):
            if middle is None:
                assert upper is None and lower is None
            else:
                assert lower <= middle <= upper

    def test_middle_band_is_sma(self, long_series):
        bands = bollinger_bands(long_series, period=20)
        assert bands.middle == sma(long_series, 20)

    def test_negative_multiplier_raises(self):
        with pytest.raises(ValueError):
            bollinger_bands(make_series([1, 2, 3]), period=2, multiplier=-1)
