# jnetstats/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from jnetstats.periods import isoformat

ROLES = ('runner', 'corp')


@dataclass(frozen=True)
class RoleSnapshot:
    username: Optional[str] = None
    identity: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'username': self.username, 'identity': self.identity}


@dataclass(frozen=True)
class GameRecord:
    """One normalized game from a history export. Never mutated after parsing."""

    winner: Optional[str] = None
    runner: RoleSnapshot = field(default_factory=RoleSnapshot)
    corp: RoleSnapshot = field(default_factory=RoleSnapshot)
    completed_at: Optional[datetime] = None
    format: Optional[str] = None
    game_id: Optional[str] = None
    turns: Optional[int] = None
    unique_accesses: Optional[int] = None

    def side(self, role: str) -> RoleSnapshot:
        if role == 'runner':
            return self.runner
        if role == 'corp':
            return self.corp
        raise ValueError(f"Unknown role '{role}'")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'winner': self.winner,
            'runner': self.runner.to_dict(),
            'corp': self.corp.to_dict(),
            'completed_at': isoformat(self.completed_at),
            'format': self.format,
            'game_id': self.game_id,
            'turns': self.turns,
            'unique_accesses': self.unique_accesses,
        }


@dataclass(frozen=True)
class UserProfile:
    username: str
    usernames: Tuple[str, ...]
    total_games: int
    runner_games: int
    corp_games: int
    coverage: float
    matched_games: int
    unmatched_games: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'username': self.username,
            'usernames': list(self.usernames),
            'total_games': self.total_games,
            'runner_games': self.runner_games,
            'corp_games': self.corp_games,
            'coverage': self.coverage,
            'matched_games': self.matched_games,
            'unmatched_games': self.unmatched_games,
        }


@dataclass(frozen=True)
class IdentityStat:
    role: str
    identity: str
    faction: str
    wins: int
    losses: int
    total: int
    win_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'role': self.role,
            'identity': self.identity,
            'faction': self.faction,
            'wins': self.wins,
            'losses': self.losses,
            'total': self.total,
            'win_rate': self.win_rate,
        }


@dataclass(frozen=True)
class DifferentialPoint:
    date: datetime
    cumulative: int
    delta: int
    did_win: bool
    role: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': isoformat(self.date),
            'cumulative': self.cumulative,
            'delta': self.delta,
            'did_win': self.did_win,
            'role': self.role,
        }


@dataclass(frozen=True)
class DifferentialCandle:
    start: datetime
    end: datetime
    open: int
    close: int
    high: int
    low: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'start': isoformat(self.start),
            'end': isoformat(self.end),
            'open': self.open,
            'close': self.close,
            'high': self.high,
            'low': self.low,
        }


@dataclass(frozen=True)
class RollingWinRatePoint:
    date: datetime
    win_rate: float
    wins: int
    total: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': isoformat(self.date),
            'win_rate': self.win_rate,
            'wins': self.wins,
            'total': self.total,
        }


@dataclass(frozen=True)
class HistogramBucket:
    """Wins and losses for one integer value (unique accesses, turns)."""

    value: int
    wins: int
    losses: int
    total: int
    win_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'value': self.value,
            'wins': self.wins,
            'losses': self.losses,
            'total': self.total,
            'win_rate': self.win_rate,
        }


@dataclass(frozen=True)
class GamesPlayedBucket:
    value: int
    label: str
    date: datetime
    wins: int
    losses: int
    draws: int
    total: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'value': self.value,
            'label': self.label,
            'date': isoformat(self.date),
            'wins': self.wins,
            'losses': self.losses,
            'draws': self.draws,
            'total': self.total,
        }


@dataclass(frozen=True)
class KnownRange:
    label: str
    start: datetime
    end: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {'label': self.label, 'start': isoformat(self.start), 'end': isoformat(self.end)}


@dataclass(frozen=True)
class DifferentialFilters:
    format: Optional[str] = None
    side: Optional[str] = None
    faction: Optional[str] = None
    identity: Optional[str] = None


@dataclass(frozen=True)
class EntityFilter:
    """A side, faction or identity constraint on one player of a game."""

    type: str
    value: str
    label: str = ''

    def __post_init__(self):
        if self.type not in ('side', 'faction', 'identity'):
            raise ValueError(f"Unknown entity filter type '{self.type}'")

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'value': self.value, 'label': self.label or self.value}


@dataclass(frozen=True)
class GameFilters:
    format: Optional[str] = None
    range_start: Optional[datetime] = None
    range_end: Optional[datetime] = None
    entity_filters: Tuple[EntityFilter, ...] = ()
    opponent_filters: Tuple[EntityFilter, ...] = ()


@dataclass(frozen=True)
class FilteredGames:
    base: List[GameRecord]
    filtered: List[GameRecord]
    range_start: Optional[datetime] = None
    range_end: Optional[datetime] = None


@dataclass(frozen=True)
class ParsedUpload:
    file_name: str
    games: List[GameRecord]
    profile: Optional[UserProfile] = None


@dataclass(frozen=True)
class SourceSummary:
    name: Optional[str]
    file_name: str
    total_games: int

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'file_name': self.file_name, 'total_games': self.total_games}


@dataclass(frozen=True)
class LoadedHistory:
    games: List[GameRecord]
    profile: Optional[UserProfile]
    sources: List[SourceSummary] = field(default_factory=list)
