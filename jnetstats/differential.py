"""
jnetstats/differential.py
=========================
Cumulative win/loss differential and OHLC candles over it.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Mapping, Optional, Sequence

from jnetstats.config import DIFF_PERIODS
from jnetstats.models import DifferentialCandle, DifferentialFilters, DifferentialPoint, GameRecord
from jnetstats.periods import add_period, ensure_utc, truncate_to_period
from jnetstats.reference import faction_for_identity
from jnetstats.roles import Usernames, did_win, resolve_role, username_set


def _matches_filters(
    game: GameRecord,
    role: str,
    identity_map: Mapping[str, str],
    filters: Optional[DifferentialFilters],
) -> bool:
    if filters is None:
        return True
    if filters.format:
        if (game.format or '') != filters.format.strip().lower():
            return False
    if filters.side and filters.side != role:
        return False
    player_identity = game.side(role).identity
    if filters.identity and player_identity != filters.identity:
        return False
    if filters.faction:
        if faction_for_identity(player_identity, identity_map) != filters.faction:
            return False
    return True


def build_differential_timeline(
    games: Sequence[GameRecord],
    usernames: Usernames,
    identity_map: Mapping[str, str],
    filters: Optional[DifferentialFilters] = None,
) -> List[DifferentialPoint]:
    """
    Chronological running win-minus-loss count for the viewer.

    Only games with a completion date, a winner and a side the viewer
    played are counted. Games sharing a timestamp keep their input order.

    Args:
        games: Normalized games
        usernames: Viewer username or aliases
        identity_map: Identity name -> faction
        filters: Optional format/side/faction/identity constraints (ANDed)

    Returns:
        One point per counted game, each delta +1 (win) or -1 (loss)
    """
    accepted = username_set(usernames)
    relevant = []
    for game in games:
        if game.completed_at is None or game.winner is None:
            continue
        role = resolve_role(game, accepted)
        if role is None:
            continue
        if not _matches_filters(game, role, identity_map, filters):
            continue
        relevant.append((game, role))

    relevant.sort(key=lambda pair: pair[0].completed_at)

    cumulative = 0
    timeline = []
    for game, role in relevant:
        won = did_win(game, role)
        delta = 1 if won else -1
        cumulative += delta
        timeline.append(DifferentialPoint(
            date=game.completed_at,
            cumulative=cumulative,
            delta=delta,
            did_win=won,
            role=role,
        ))
    return timeline


def build_candles(
    points: Sequence[DifferentialPoint],
    period: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[DifferentialCandle]:
    """
    Bucket a differential timeline into open/high/low/close candles.

    The first candle opens at the cumulative value carried in from the last
    point before ``start``, so a window starting mid-history keeps its level.

    Args:
        points: Differential points
        period: 'daily', 'weekly' (ISO Monday) or 'monthly'
        start: Inclusive range start (defaults to the first point)
        end: Inclusive range end (defaults to the last point)

    Returns:
        Candles in chronological order; empty for no points or an inverted range

    Raises:
        ValueError: If period is not a known candle period
    """
    if period not in DIFF_PERIODS:
        raise ValueError(f"Unknown period '{period}'. Expected one of: {', '.join(DIFF_PERIODS)}")
    if not points:
        return []

    ordered = sorted(points, key=lambda point: point.date)
    range_start = ensure_utc(start) if start is not None else ordered[0].date
    range_end = ensure_utc(end) if end is not None else ordered[-1].date
    if range_start > range_end:
        return []

    candles = []
    current = None
    prev_value = 0

    for point in ordered:
        if point.date < range_start:
            prev_value = point.cumulative
            continue
        if point.date > range_end:
            break

        bucket_start = truncate_to_period(point.date, period)
        if current is None or current['start'] != bucket_start:
            if current is not None:
                candles.append(DifferentialCandle(**current))
            current = {
                'start': bucket_start,
                'end': add_period(bucket_start, period),
                'open': prev_value,
                'close': prev_value,
                'high': prev_value,
                'low': prev_value,
            }

        new_value = point.cumulative
        current['high'] = max(current['high'], prev_value, new_value)
        current['low'] = min(current['low'], prev_value, new_value)
        current['close'] = new_value
        prev_value = new_value

    if current is not None:
        candles.append(DifferentialCandle(**current))
    return candles
