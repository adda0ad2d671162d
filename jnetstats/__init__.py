# jnetstats/__init__.py
"""
Match-history statistics for jinteki.net game exports.

Parses game_history.json files and derives differential, rolling win rate,
identity and histogram series for the viewer.
"""

from .parser import FormatError, HistoryParser, load_history_file, parse_and_normalize
from .profile import build_combined_profile, combine_uploads, detect_profile, merge_games
from .roles import resolve_role
from .differential import build_candles, build_differential_timeline
from .rolling import build_rolling_win_rate
from .categorical import (
    build_access_buckets,
    build_games_played_buckets,
    build_identity_stats,
    build_opponent_identity_stats,
    build_overall_stat,
    build_turn_buckets,
)

__version__ = '0.3.0'

__all__ = [
    'FormatError',
    'HistoryParser',
    'load_history_file',
    'parse_and_normalize',
    'build_combined_profile',
    'combine_uploads',
    'detect_profile',
    'merge_games',
    'resolve_role',
    'build_candles',
    'build_differential_timeline',
    'build_rolling_win_rate',
    'build_access_buckets',
    'build_games_played_buckets',
    'build_identity_stats',
    'build_opponent_identity_stats',
    'build_overall_stat',
    'build_turn_buckets',
]
