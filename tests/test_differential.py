# tests/test_differential.py

from datetime import datetime, timezone

import pytest

from jnetstats.differential import build_candles, build_differential_timeline
from jnetstats.models import DifferentialFilters, DifferentialPoint
from tests.helpers import IDENTITY_MAP, alice_games, day, make_game


def _points(results, start_offset=0, step=1):
    """Differential points for a W/L string, one game per ``step`` days."""
    cumulative = 0
    points = []
    for index, result in enumerate(results):
        delta = 1 if result == 'W' else -1
        cumulative += delta
        points.append(DifferentialPoint(
            date=day(start_offset + index * step),
            cumulative=cumulative,
            delta=delta,
            did_win=result == 'W',
            role='runner',
        ))
    return points


class TestDifferentialTimeline:

    def test_basic_differential(self):
        timeline = build_differential_timeline(alice_games(), 'Alice', IDENTITY_MAP)

        assert [point.cumulative for point in timeline] == [1, 0, 1]
        assert [point.role for point in timeline] == ['runner', 'corp', 'runner']
        assert [point.did_win for point in timeline] == [True, False, True]

    def test_sum_invariant(self):
        games = [
            make_game(runner='Alice', winner='runner' if i % 3 else 'corp', when=day(i))
            for i in range(20)
        ]
        timeline = build_differential_timeline(games, ['Alice'], IDENTITY_MAP)

        running = 0
        for point in timeline:
            assert point.delta in (1, -1)
            running += point.delta
            assert point.cumulative == running

    def test_skips_undated_undecided_and_foreign_games(self):
        games = [
            make_game(when=None),
            make_game(winner=None, when=day(1)),
            make_game(runner='Carol', corp='Dave', when=day(2)),
            make_game(when=day(3)),
        ]
        timeline = build_differential_timeline(games, 'Alice', IDENTITY_MAP)
        assert len(timeline) == 1
        assert timeline[0].date == day(3)

    def test_sorted_by_date_and_stable(self):
        games = [
            make_game(winner='corp', when=day(5)),
            make_game(winner='runner', when=day(1)),
            make_game(winner='corp', when=day(1)),
        ]
        timeline = build_differential_timeline(games, 'Alice', IDENTITY_MAP)

        assert [point.date for point in timeline] == [day(1), day(1), day(5)]
        assert [point.did_win for point in timeline] == [True, False, False]

    def test_format_filter(self):
        games = [
            make_game(when=day(0), fmt='standard'),
            make_game(when=day(1), fmt='startup'),
            make_game(when=day(2), fmt=None),
        ]
        timeline = build_differential_timeline(
            games, 'Alice', IDENTITY_MAP, DifferentialFilters(format=' Startup ')
        )
        assert [point.date for point in timeline] == [day(1)]

    def test_side_filter(self):
        timeline = build_differential_timeline(
            alice_games(), 'Alice', IDENTITY_MAP, DifferentialFilters(side='corp')
        )
        assert [point.cumulative for point in timeline] == [-1]

    def test_identity_filter_uses_viewer_identity(self):
        timeline = build_differential_timeline(
            alice_games(), 'Alice', IDENTITY_MAP,
            DifferentialFilters(identity='Haas-Bioroid: Precision Design'),
        )
        assert len(timeline) == 1
        assert timeline[0].role == 'corp'

    def test_faction_filter_and_unknown(self):
        games = alice_games() + [
            make_game(when=day(3), runner_id='Some Unlisted Runner'),
            make_game(when=day(4), runner_id=None),
        ]
        anarch = build_differential_timeline(
            games, 'Alice', IDENTITY_MAP, DifferentialFilters(faction='anarch')
        )
        unknown = build_differential_timeline(
            games, 'Alice', IDENTITY_MAP, DifferentialFilters(faction='UNKNOWN')
        )
        assert len(anarch) == 2
        assert [point.date for point in unknown] == [day(3), day(4)]

    def test_is_idempotent(self):
        games = alice_games()
        assert build_differential_timeline(games, 'Alice', IDENTITY_MAP) == \
            build_differential_timeline(games, 'Alice', IDENTITY_MAP)

    def test_empty(self):
        assert build_differential_timeline([], 'Alice', IDENTITY_MAP) == []
        assert build_differential_timeline(alice_games(), [], IDENTITY_MAP) == []


class TestCandles:

    def test_empty_points(self):
        assert build_candles([], 'daily') == []

    def test_inverted_range(self):
        assert build_candles(_points('WWL'), 'daily', start=day(5), end=day(1)) == []

    def test_unknown_period(self):
        with pytest.raises(ValueError):
            build_candles(_points('W'), 'yearly')

    def test_daily_candles(self):
        candles = build_candles(_points('WLW'), 'daily')

        assert len(candles) == 3
        first = candles[0]
        assert first.start == datetime(2024, 3, 4, tzinfo=timezone.utc)
        assert first.end == datetime(2024, 3, 5, tzinfo=timezone.utc)
        assert (first.open, first.close, first.high, first.low) == (0, 1, 1, 0)
        assert (candles[1].open, candles[1].close) == (1, 0)

    def test_weekly_bucket_starts_on_monday(self):
        # BASE_DATE is Monday 2024-03-04; days 0..6 share a week, day 7 starts the next
        candles = build_candles(_points('WWWWWWWL'), 'weekly')

        assert [candle.start.day for candle in candles] == [4, 11]
        assert (candles[0].open, candles[0].close, candles[0].high) == (0, 7, 7)
        assert (candles[1].open, candles[1].close, candles[1].low) == (7, 6, 6)

    def test_weekly_sunday_belongs_to_previous_monday(self):
        point = _points('W', start_offset=6)
        candles = build_candles(point, 'weekly')
        assert candles[0].start == datetime(2024, 3, 4, tzinfo=timezone.utc)

    def test_monthly_candles(self):
        candles = build_candles(_points('WLWL', step=10), 'monthly')
        assert [candle.start.month for candle in candles] == [3, 4]
        assert candles[0].start.day == 1
        assert candles[1].end == datetime(2024, 5, 1, tzinfo=timezone.utc)

    def test_intra_bucket_swing_captured(self):
        # W W L L L in one week: peaks at 2, ends at -1
        candles = build_candles(_points('WWLLL'), 'weekly')
        assert len(candles) == 1
        candle = candles[0]
        assert (candle.open, candle.high, candle.low, candle.close) == (0, 2, -1, -1)

    def test_baseline_carry_in(self):
        # Three early losses, then a win inside the window
        points = _points('LLLW', step=7)
        candles = build_candles(points, 'weekly', start=day(21), end=day(21))

        assert len(candles) == 1
        assert candles[0].open == -3
        assert candles[0].low == -3
        assert candles[0].close == -2
        assert candles[0].high == -2

    def test_range_end_excludes_later_points(self):
        candles = build_candles(_points('WWWW'), 'daily', start=day(1), end=day(2))
        assert [candle.close for candle in candles] == [2, 3]
        assert candles[0].open == 1

    def test_containment(self):
        points = _points('WLLWWWLLLWLWWLLLWWWW', step=2)
        for period in ('daily', 'weekly', 'monthly'):
            for candle in build_candles(points, period):
                assert candle.low <= min(candle.open, candle.close)
                assert candle.high >= max(candle.open, candle.close)

    def test_is_idempotent(self):
        points = _points('WLWWL')
        assert build_candles(points, 'weekly') == build_candles(points, 'weekly')

    def test_naive_range_treated_as_utc(self):
        candles = build_candles(_points('WW'), 'daily', start=datetime(2024, 3, 5), end=datetime(2024, 3, 6))
        assert len(candles) == 1
        assert candles[0].open == 1
