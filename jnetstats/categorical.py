"""
jnetstats/categorical.py
========================
Win/loss aggregation grouped by a derived key: played identity, opponent
identity, unique accesses, turn count and calendar period.

Only games with a winner count towards win rates. Games without a winner
are still counted as draws in games-played buckets.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from jnetstats.config import HISTOGRAM_PERIODS, UNKNOWN_IDENTITY
from jnetstats.models import GameRecord, GamesPlayedBucket, HistogramBucket, IdentityStat
from jnetstats.periods import add_period, format_period_label, to_epoch_ms, truncate_to_period
from jnetstats.reference import faction_for_identity
from jnetstats.roles import Usernames, opponent_role, resolve_role, username_set

OVERALL_LABELS = {
    (None, False): ('Overall', 'neutral'),
    ('runner', False): ('Runner Overall', 'neutral_runner'),
    ('corp', False): ('Corp Overall', 'neutral_corp'),
    (None, True): ('Vs Overall', 'neutral'),
    ('runner', True): ('Vs Corp Overall', 'neutral_corp'),
    ('corp', True): ('Vs Runner Overall', 'neutral_runner'),
}


def _win_rate(wins: int, total: int) -> float:
    return wins / total if total else 0.0


def _stats_from_accumulator(role: str, acc: Dict[str, Dict]) -> List[IdentityStat]:
    stats = [
        IdentityStat(
            role=role,
            identity=identity,
            faction=data['faction'],
            wins=data['wins'],
            losses=data['total'] - data['wins'],
            total=data['total'],
            win_rate=_win_rate(data['wins'], data['total']),
        )
        for identity, data in acc.items()
    ]
    stats.sort(key=lambda stat: stat.total, reverse=True)
    return stats


def _group_identities(
    games: Sequence[GameRecord],
    usernames: Usernames,
    role: str,
    identity_of: Callable[[GameRecord], Optional[str]],
    identity_map: Mapping[str, str],
) -> Dict[str, Dict]:
    accepted = username_set(usernames)
    acc: Dict[str, Dict] = {}
    for game in games:
        if game.winner is None:
            continue
        if resolve_role(game, accepted) != role:
            continue
        identity = identity_of(game) or UNKNOWN_IDENTITY
        bucket = acc.setdefault(identity, {'wins': 0, 'total': 0, 'faction': None})
        bucket['total'] += 1
        if game.winner == role:
            bucket['wins'] += 1
        bucket['faction'] = faction_for_identity(identity, identity_map)
    return acc


def build_identity_stats(
    games: Sequence[GameRecord],
    usernames: Usernames,
    role: str,
    identity_map: Mapping[str, str],
) -> List[IdentityStat]:
    """Win rate per identity the viewer played on ``role``, most played first."""
    acc = _group_identities(
        games, usernames, role, lambda game: game.side(role).identity, identity_map
    )
    return _stats_from_accumulator(role, acc)


def build_opponent_identity_stats(
    games: Sequence[GameRecord],
    usernames: Usernames,
    role: str,
    identity_map: Mapping[str, str],
) -> List[IdentityStat]:
    """
    Viewer win rate against each opposing identity while playing ``role``.

    The returned stats carry the opponent's role.
    """
    other = opponent_role(role)
    acc = _group_identities(
        games, usernames, role, lambda game: game.side(other).identity, identity_map
    )
    return _stats_from_accumulator(other, acc)


def build_overall_stat(
    games: Sequence[GameRecord],
    usernames: Usernames,
    role: Optional[str] = None,
    versus: bool = False,
) -> Optional[IdentityStat]:
    """
    Roll up every decided game the viewer played into one row.

    Args:
        games: Normalized games
        usernames: Viewer username or aliases
        role: Restrict to games the viewer played on this side; None for both
        versus: Label the row from the opponent's side ("Vs Corp Overall")

    Returns:
        The rollup row, or None when no decided game qualifies
    """
    accepted = username_set(usernames)
    wins = 0
    total = 0
    for game in games:
        if game.winner is None:
            continue
        played = resolve_role(game, accepted)
        if played is None or (role is not None and played != role):
            continue
        total += 1
        if game.winner == played:
            wins += 1
    if not total:
        return None

    label, faction = OVERALL_LABELS[(role, versus)]
    if role is None:
        stat_role = 'runner'
    else:
        stat_role = opponent_role(role) if versus else role
    return IdentityStat(
        role=stat_role,
        identity=label,
        faction=faction,
        wins=wins,
        losses=total - wins,
        total=total,
        win_rate=_win_rate(wins, total),
    )


def _with_overall_rows(
    base_games: Sequence[GameRecord],
    usernames: Usernames,
    rows: List[IdentityStat],
    versus: bool,
) -> List[IdentityStat]:
    merged = []
    for role in (None, 'runner', 'corp'):
        overall = build_overall_stat(base_games, usernames, role, versus=versus)
        if overall is not None:
            merged.append(overall)
    merged.extend(rows)
    merged.sort(key=lambda stat: stat.total, reverse=True)
    return merged


def build_identity_performance(
    games: Sequence[GameRecord],
    usernames: Usernames,
    identity_map: Mapping[str, str],
    base_games: Optional[Sequence[GameRecord]] = None,
) -> List[IdentityStat]:
    """Overall rows (from ``base_games``) plus per-identity rows for both sides."""
    rows = (
        build_identity_stats(games, usernames, 'runner', identity_map)
        + build_identity_stats(games, usernames, 'corp', identity_map)
    )
    return _with_overall_rows(games if base_games is None else base_games, usernames, rows, False)


def build_opponent_performance(
    games: Sequence[GameRecord],
    usernames: Usernames,
    identity_map: Mapping[str, str],
    base_games: Optional[Sequence[GameRecord]] = None,
) -> List[IdentityStat]:
    rows = (
        build_opponent_identity_stats(games, usernames, 'runner', identity_map)
        + build_opponent_identity_stats(games, usernames, 'corp', identity_map)
    )
    return _with_overall_rows(games if base_games is None else base_games, usernames, rows, True)


def densify(buckets: Mapping[int, Dict[str, int]]) -> List[HistogramBucket]:
    """Fill every integer between the smallest and largest key with a bucket."""
    if not buckets:
        return []
    result = []
    for value in range(min(buckets), max(buckets) + 1):
        data = buckets.get(value, {'wins': 0, 'losses': 0})
        total = data['wins'] + data['losses']
        result.append(HistogramBucket(
            value=value,
            wins=data['wins'],
            losses=data['losses'],
            total=total,
            win_rate=_win_rate(data['wins'], total),
        ))
    return result


def _histogram(
    games: Sequence[GameRecord],
    usernames: Usernames,
    key_of: Callable[[GameRecord], Optional[int]],
    role: Optional[str] = None,
) -> List[HistogramBucket]:
    accepted = username_set(usernames)
    buckets: Dict[int, Dict[str, int]] = {}
    for game in games:
        if game.winner is None:
            continue
        played = resolve_role(game, accepted)
        if played is None or (role is not None and played != role):
            continue
        value = key_of(game)
        if value is None:
            continue
        bucket = buckets.setdefault(value, {'wins': 0, 'losses': 0})
        if game.winner == played:
            bucket['wins'] += 1
        else:
            bucket['losses'] += 1
    return densify(buckets)


def build_access_buckets(
    games: Sequence[GameRecord],
    usernames: Usernames,
    role: str = 'runner',
) -> List[HistogramBucket]:
    """
    Viewer wins/losses by the runner's unique accesses.

    With role='runner' this is accesses the viewer made; with role='corp'
    it is accesses the viewer's opponents made against them.
    """
    if role not in ('runner', 'corp'):
        raise ValueError(f"Unknown role '{role}'")
    return _histogram(games, usernames, lambda game: game.unique_accesses, role)


def build_turn_buckets(games: Sequence[GameRecord], usernames: Usernames) -> List[HistogramBucket]:
    """Viewer wins/losses by how many turns the game lasted."""
    return _histogram(games, usernames, lambda game: game.turns)


def build_games_played_buckets(
    games: Sequence[GameRecord],
    usernames: Usernames,
    period: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[GamesPlayedBucket]:
    """
    Games the viewer played per calendar period.

    Every period between the range start and end (defaulting to the first
    and last bucket with games) is present, zero filled when empty.

    Raises:
        ValueError: If period is not daily/weekly/monthly/yearly
    """
    if period not in HISTOGRAM_PERIODS:
        raise ValueError(
            f"Unknown period '{period}'. Expected one of: {', '.join(HISTOGRAM_PERIODS)}"
        )

    accepted = username_set(usernames)
    counts: Dict[datetime, Dict[str, int]] = {}
    for game in games:
        if game.completed_at is None:
            continue
        played = resolve_role(game, accepted)
        if played is None:
            continue
        key = truncate_to_period(game.completed_at, period)
        bucket = counts.setdefault(key, {'wins': 0, 'losses': 0, 'draws': 0})
        if game.winner is None:
            bucket['draws'] += 1
        elif game.winner == played:
            bucket['wins'] += 1
        else:
            bucket['losses'] += 1

    if not counts and start is None and end is None:
        return []

    first = start if start is not None else (min(counts) if counts else end)
    last = end if end is not None else (max(counts) if counts else start)
    cursor = truncate_to_period(first, period)
    stop = truncate_to_period(last, period)
    if cursor > stop:
        return []

    result = []
    while cursor <= stop:
        data = counts.get(cursor, {'wins': 0, 'losses': 0, 'draws': 0})
        result.append(GamesPlayedBucket(
            value=to_epoch_ms(cursor),
            label=format_period_label(cursor, period),
            date=cursor,
            wins=data['wins'],
            losses=data['losses'],
            draws=data['draws'],
            total=data['wins'] + data['losses'] + data['draws'],
        ))
        cursor = add_period(cursor, period)
    return result
