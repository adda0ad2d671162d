"""
jnetstats/dashboard.py
======================
Every visualization series for one loaded history, computed in one pass.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from jnetstats.categorical import (
    build_access_buckets,
    build_games_played_buckets,
    build_identity_performance,
    build_opponent_performance,
    build_turn_buckets,
)
from jnetstats.config import Settings, load_settings
from jnetstats.differential import build_candles, build_differential_timeline
from jnetstats.filters import build_filter_options, data_bounds, filter_games
from jnetstats.models import GameFilters, LoadedHistory
from jnetstats.periods import clamp_date_to_bounds, end_of_day, isoformat, start_of_day
from jnetstats.reference import ReferenceData, get_known_ranges, load_reference, short_identity_name
from jnetstats.rolling import build_rolling_win_rate, normalize_window

logger = logging.getLogger(__name__)

TOP_IDENTITIES = 10


class HistoryDashboard:
    def __init__(
        self,
        history: LoadedHistory,
        settings: Optional[Settings] = None,
        reference: Optional[ReferenceData] = None,
        filters: Optional[GameFilters] = None,
        diff_period: Optional[str] = None,
        rolling_window: Optional[int] = None,
        games_played_period: Optional[str] = None,
    ):
        self.history = history
        self.settings = settings or load_settings()
        self.reference = reference or load_reference(self.settings.reference_path)
        self.filters = filters or GameFilters()
        self.diff_period = diff_period or self.settings.diff_period
        self.rolling_window = normalize_window(
            rolling_window if rolling_window is not None else self.settings.rolling_window
        )
        self.games_played_period = games_played_period or self.settings.games_played_period
        self._result: dict | None = None

    def analyze(self) -> dict:
        games = self.history.games
        profile = self.history.profile
        if not games:
            return self._empty_result("No games found in the uploaded history")
        if profile is None:
            return self._empty_result("Could not detect which player the history belongs to")

        usernames = profile.usernames
        identity_map = self.reference.identity_map
        selection = filter_games(games, usernames, identity_map, self.filters)
        logger.debug(
            "Filtered %d games to %d (base %d)",
            len(games), len(selection.filtered), len(selection.base),
        )

        points = build_differential_timeline(selection.filtered, usernames, identity_map)
        candles = build_candles(
            points, self.diff_period, start=selection.range_start, end=selection.range_end
        )
        rolling = build_rolling_win_rate(points, self.rolling_window)

        identity_rows = build_identity_performance(
            selection.filtered, usernames, identity_map, base_games=selection.base
        )
        opponent_rows = build_opponent_performance(
            selection.filtered, usernames, identity_map, base_games=selection.base
        )

        earliest, latest = data_bounds(games)
        warnings = []
        if profile.unmatched_games:
            warnings.append(
                f"{profile.unmatched_games} games did not include "
                f"{' / '.join(profile.usernames)} as runner or corp. They were ignored."
            )

        result = {
            'profile': profile.to_dict(),
            'sources': [source.to_dict() for source in self.history.sources],
            'bounds': {'min': isoformat(earliest), 'max': isoformat(latest)},
            'filter_options': build_filter_options(games, usernames, identity_map),
            'known_ranges': [
                known.to_dict() for known in get_known_ranges(self.filters.format, self.reference)
            ],
            'games_considered': len(selection.filtered),
            'differential': {
                'period': self.diff_period,
                'points': [point.to_dict() for point in points],
                'candles': [candle.to_dict() for candle in candles],
            },
            'rolling': {
                'window': self.rolling_window,
                'points': [point.to_dict() for point in rolling],
            },
            'identity_performance': [self._stat_row(stat) for stat in identity_rows],
            'opponent_performance': [self._stat_row(stat) for stat in opponent_rows],
            'unique_accesses': [
                bucket.to_dict()
                for bucket in build_access_buckets(selection.filtered, usernames, 'runner')
            ],
            'corp_accesses': [
                bucket.to_dict()
                for bucket in build_access_buckets(selection.filtered, usernames, 'corp')
            ],
            'turns': [
                bucket.to_dict() for bucket in build_turn_buckets(selection.filtered, usernames)
            ],
            'games_played': {
                'period': self.games_played_period,
                'buckets': [
                    bucket.to_dict()
                    for bucket in build_games_played_buckets(
                        selection.filtered,
                        usernames,
                        self.games_played_period,
                        start=self._clamped(selection.range_start, earliest, latest),
                        end=self._clamped(selection.range_end, earliest, latest),
                    )
                ],
            },
            'warnings': warnings,
        }
        self._result = result
        return result

    def summary(self) -> None:
        result = self._result or self.analyze()
        if result.get('error'):
            print(f"[Dashboard] {result['error']}")
            return

        profile = result['profile']
        print(f"\n=== MATCH HISTORY: {' / '.join(profile['usernames'])} ===")
        print(
            f"Games: {profile['total_games']}  "
            f"(runner {profile['runner_games']}, corp {profile['corp_games']}, "
            f"coverage {profile['coverage'] * 100:.1f}%)"
        )
        for warning in result['warnings']:
            print(f"  [WARN] {warning}")

        points = result['differential']['points']
        if points:
            print(f"\nDifferential: {points[-1]['cumulative']:+d} over {len(points)} decided games")
            print(f"  {'Start':<12} {'Open':>5} {'High':>5} {'Low':>5} {'Close':>6}")
            for candle in result['differential']['candles'][-8:]:
                print(
                    f"  {candle['start'][:10]:<12} {candle['open']:>5} {candle['high']:>5} "
                    f"{candle['low']:>5} {candle['close']:>6}"
                )

        rolling = result['rolling']['points']
        if rolling:
            last = rolling[-1]
            print(
                f"\nRolling win rate (last {last['total']} of window {result['rolling']['window']}): "
                f"{last['win_rate'] * 100:.1f}%"
            )

        print(f"\n  {'Identity':<28} {'Side':<7} {'W':>4} {'L':>4} {'Win%':>6}")
        for row in result['identity_performance'][:TOP_IDENTITIES]:
            print(
                f"  {row['short_name'][:28]:<28} {row['role']:<7} {row['wins']:>4} "
                f"{row['losses']:>4} {row['win_rate'] * 100:>5.1f}%"
            )

        games_played = result['games_played']['buckets']
        if games_played:
            busiest = max(games_played, key=lambda bucket: bucket['total'])
            print(f"\nMost active period: {busiest['label']} ({busiest['total']} games)")

    @staticmethod
    def _clamped(value, earliest, latest):
        # Games-played buckets never extend past the days with data
        if value is None or earliest is None:
            return value
        return clamp_date_to_bounds(value, start_of_day(earliest), end_of_day(latest))

    @staticmethod
    def _stat_row(stat) -> dict[str, Any]:
        row = stat.to_dict()
        row['short_name'] = short_identity_name(stat.identity)
        return row

    def _empty_result(self, message: str) -> dict:
        self._result = {'error': message, 'profile': None, 'warnings': []}
        return self._result
