from __future__ import annotations

import random
from datetime import date, timedelta

import pytest

from stockanalysis.analysis.trend import TrendDetector
from stockanalysis.domain.models import PriceBar, TrendType, latest_bollinger, latest_macd
from stockanalysis.indicators import (
    atr,
    bollinger_bands,
    calculate_all,
    ema,
    macd,
    rsi,
    sma,
    vwap,
)


def _bars(closes: list[float], volume: int = 1000, spread: float = 1.0) -> list[PriceBar]:
    start = date(2024, 1, 1)
    return [
        PriceBar(
            date=start + timedelta(days=offset),
            open=close,
            high=close + spread,
            low=close - spread,
            close=close,
            volume=volume,
        )
        for offset, close in enumerate(closes)
    ]


def test_sma_starts_at_first_complete_window() -> None:
    bars = _bars([1.0, 2.0, 3.0, 4.0, 5.0])

    values = sma(bars, 3)

    assert values.to_list() == pytest.approx([2.0, 3.0, 4.0])
    assert list(values.index) == [bars[2].date, bars[3].date, bars[4].date]
    assert values.name == "SMA3"


def test_indicators_need_more_bars_than_period() -> None:
    bars = _bars([1.0, 2.0, 3.0])

    assert sma(bars, 3).empty
    assert ema(bars, 3).empty
    assert rsi(bars, 3).empty
    assert vwap(bars, 3).empty
    assert atr(bars, 3).empty
    assert bollinger_bands(bars, 3).empty


@pytest.mark.parametrize("bars", [None, []])
def test_indicators_return_empty_for_missing_input(bars: list[PriceBar] | None) -> None:
    assert sma(bars, 3).empty
    assert ema(bars, 3).empty
    assert rsi(bars).empty
    assert macd(bars).empty
    assert calculate_all(bars) is None


def test_non_positive_periods_return_empty_results() -> None:
    bars = _bars([float(value) for value in range(1, 40)])

    assert sma(bars, 0).empty
    assert ema(bars, -1).empty
    assert macd(bars, 12, 26, 0).empty
    assert bollinger_bands(bars, 20, num_std=0).empty


def test_ema_is_seeded_with_simple_average() -> None:
    bars = _bars([1.0, 2.0, 3.0, 4.0, 5.0])

    values = ema(bars, 3)

    # seed 2.0, multiplier 0.5
    assert values.to_list() == pytest.approx([2.0, 3.0, 4.0])
    assert values.index[0] == bars[2].date


def test_rsi_near_hundred_for_monotonic_gains() -> None:
    bars = _bars([100.0 + offset for offset in range(16)])

    values = rsi(bars, 14)

    assert len(values) == 2
    assert values.iloc[-1] == pytest.approx(100.0 - 100.0 / 1001.0)


def test_rsi_for_flat_series_is_zero() -> None:
    values = rsi(_bars([50.0] * 20), 14)

    assert (values == 0.0).all()


def test_rsi_stays_within_bounds() -> None:
    generator = random.Random(7)
    closes = [100.0]
    for _ in range(80):
        closes.append(max(1.0, closes[-1] + generator.uniform(-3.0, 3.0)))

    values = rsi(_bars(closes), 14)

    assert not values.empty
    assert ((values >= 0.0) & (values <= 100.0)).all()


def test_macd_aligns_line_signal_and_histogram() -> None:
    bars = _bars([100.0 + offset * 0.5 for offset in range(40)])

    frame = macd(bars, 12, 26, 9)

    # 15 line values, signal needs 9 of them
    assert len(frame) == 7
    assert list(frame.columns) == ["macd", "signal", "histogram"]
    assert (frame["histogram"] - (frame["macd"] - frame["signal"])).abs().max() < 1e-12
    point = latest_macd(frame)
    assert point is not None
    assert point.macd > 0


def test_macd_empty_when_line_too_short_for_signal() -> None:
    frame = macd(_bars([100.0 + offset for offset in range(30)]), 12, 26, 9)

    assert frame.empty
    assert latest_macd(frame) is None


def test_bollinger_bands_collapse_on_constant_prices() -> None:
    frame = bollinger_bands(_bars([10.0] * 21), 20, 2.0)

    assert len(frame) == 2
    point = latest_bollinger(frame)
    assert point is not None
    assert point.middle == pytest.approx(10.0)
    assert point.upper == pytest.approx(10.0)
    assert point.lower == pytest.approx(10.0)


def test_bollinger_bands_use_population_deviation() -> None:
    frame = bollinger_bands(_bars([1.0, 3.0, 1.0, 3.0]), 2, 1.0)

    assert frame["middle"].to_list() == pytest.approx([2.0, 2.0, 2.0])
    assert frame["upper"].to_list() == pytest.approx([3.0, 3.0, 3.0])
    assert frame["lower"].to_list() == pytest.approx([1.0, 1.0, 1.0])


def test_vwap_uses_typical_price_and_tolerates_zero_volume() -> None:
    weighted = vwap(_bars([10.0] * 5, volume=100, spread=0.0), 3)
    unweighted = vwap(_bars([10.0] * 5, volume=0), 3)

    assert weighted.to_list() == pytest.approx([10.0, 10.0, 10.0])
    assert unweighted.to_list() == pytest.approx([0.0, 0.0, 0.0])


def test_atr_with_constant_range() -> None:
    values = atr(_bars([50.0] * 20, spread=1.0), 14)

    assert len(values) == 7
    assert values.to_list() == pytest.approx([2.0] * 7)


def test_results_do_not_depend_on_input_order() -> None:
    bars = _bars([100.0 + (offset % 7) * 1.5 for offset in range(30)])
    shuffled = list(bars)
    random.Random(3).shuffle(shuffled)

    assert sma(shuffled, 5).equals(sma(bars, 5))
    assert rsi(shuffled, 14).equals(rsi(bars, 14))


def test_calculate_all_sets_trend_only_with_enough_bars() -> None:
    short = calculate_all(_bars([100.0 + offset for offset in range(10)]))
    full = calculate_all(_bars([100.0 + offset * 0.2 for offset in range(25)]))

    assert short is not None
    assert short.current_trend is None
    assert full is not None
    assert full.current_trend == TrendType.UPTREND
    assert full.sma50.empty
    assert len(full.sma20) == 6


def test_sma_matches_trailing_mean_for_random_series() -> None:
    generator = random.Random(11)
    for _ in range(50):
        size = generator.randint(2, 60)
        period = generator.randint(1, size - 1)
        closes = [round(generator.uniform(1.0, 500.0), 2) for _ in range(size)]

        values = sma(_bars(closes), period).to_list()

        assert len(values) == size - period + 1
        expected = [
            sum(closes[end - period + 1 : end + 1]) / period for end in range(period - 1, size)
        ]
        assert values == pytest.approx(expected)


def test_repeated_bar_date_keeps_last_bar() -> None:
    bars = _bars([100.0 + offset for offset in range(60)])
    revised = PriceBar(
        date=bars[-1].date,
        open=bars[-1].open,
        high=bars[-1].high,
        low=bars[-1].low,
        close=200.0,
        volume=bars[-1].volume,
    )

    values = sma(bars + [revised], 3)

    assert len(values) == 58
    assert values.iloc[-1] == pytest.approx((157.0 + 158.0 + 200.0) / 3)


def test_repeated_bar_date_does_not_raise() -> None:
    bars = _bars([100.0 + offset for offset in range(60)])
    repeated = bars + [bars[-1]]

    assert len(sma(repeated, 20)) == len(sma(bars, 20))
    assert ema(repeated, 12).equals(ema(bars, 12))
    assert rsi(repeated, 14).equals(rsi(bars, 14))
    assert macd(repeated).equals(macd(bars))
    assert bollinger_bands(repeated).equals(bollinger_bands(bars))
    assert vwap(repeated).equals(vwap(bars))
    assert atr(repeated).equals(atr(bars))
    assert calculate_all(repeated) is not None
    detector = TrendDetector()
    assert detector.detect_trend(repeated) == TrendType.UPTREND
    assert detector.detect_breakout(repeated) is False


def test_period_checked_against_distinct_dates() -> None:
    bars = _bars([100.0 + offset for offset in range(14)])

    assert rsi(bars + [bars[-1]], 14).empty
    assert atr(bars + [bars[-1]], 14).empty
    doubled = _bars([100.0 + offset for offset in range(19)]) * 2
    assert TrendDetector().detect_trend(doubled) == TrendType.SIDEWAYS
