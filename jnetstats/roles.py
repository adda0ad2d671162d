# jnetstats/roles.py

from typing import FrozenSet, Iterable, Optional, Union

from jnetstats.models import GameRecord

Usernames = Union[str, Iterable[str], None]


def username_set(usernames: Usernames) -> FrozenSet[str]:
    """Normalize one username or a collection of aliases into a set."""
    if usernames is None:
        return frozenset()
    if isinstance(usernames, str):
        return frozenset([usernames]) if usernames else frozenset()
    return frozenset(name for name in usernames if name)


def resolve_role(game: GameRecord, usernames: Usernames) -> Optional[str]:
    """Return the side the viewer played in ``game``, checking runner first."""
    accepted = usernames if isinstance(usernames, frozenset) else username_set(usernames)
    if not accepted:
        return None
    if game.runner.username is not None and game.runner.username in accepted:
        return 'runner'
    if game.corp.username is not None and game.corp.username in accepted:
        return 'corp'
    return None


def opponent_role(role: str) -> str:
    return 'corp' if role == 'runner' else 'runner'


def did_win(game: GameRecord, role: Optional[str]) -> bool:
    return role is not None and game.winner == role
