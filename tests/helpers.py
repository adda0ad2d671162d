# tests/helpers.py

from datetime import datetime, timedelta, timezone

from jnetstats.models import GameRecord, RoleSnapshot

BASE_DATE = datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)  # a Monday

IDENTITY_MAP = {
    'Noise: Hacker Extraordinaire': 'anarch',
    'Hayley Kaplan: Universal Scholar': 'shaper',
    'Haas-Bioroid: Precision Design': 'haas_bioroid',
    'NBN: Making News': 'nbn',
}


def day(offset: int, hour: int = 0) -> datetime:
    """BASE_DATE shifted by whole days (and optionally hours)."""
    return BASE_DATE + timedelta(days=offset, hours=hour)


def make_game(
    runner: str = 'Alice',
    corp: str = 'Bob',
    winner='runner',
    when=None,
    fmt='standard',
    runner_id: str = 'Noise: Hacker Extraordinaire',
    corp_id: str = 'NBN: Making News',
    turns=None,
    accesses=None,
    game_id=None,
) -> GameRecord:
    """Build a normalized game directly, bypassing the parser."""
    return GameRecord(
        winner=winner,
        runner=RoleSnapshot(username=runner, identity=runner_id),
        corp=RoleSnapshot(username=corp, identity=corp_id),
        completed_at=when,
        format=fmt,
        game_id=game_id,
        turns=turns,
        unique_accesses=accesses,
    )


def raw_game(
    runner: str = 'Alice',
    corp: str = 'Bob',
    winner='runner',
    end_date='2024-03-04T12:00:00.000Z',
    fmt='standard',
    runner_id: str = 'Noise: Hacker Extraordinaire',
    corp_id: str = 'NBN: Making News',
    **extra,
) -> dict:
    """Build one element of a game_history.json export."""
    game = {
        'winner': winner,
        'runner': {'player': {'username': runner}, 'identity': runner_id},
        'corp': {'player': {'username': corp}, 'identity': corp_id},
        'format': fmt,
        'end-date': end_date,
    }
    game.update(extra)
    return game


def alice_games():
    """Alice wins as runner, loses as corp, wins as runner on consecutive days."""
    return [
        make_game(runner='Alice', corp='Bob', winner='runner', when=day(0)),
        make_game(
            runner='Carol', corp='Alice', winner='runner', when=day(1),
            runner_id='Hayley Kaplan: Universal Scholar',
            corp_id='Haas-Bioroid: Precision Design',
        ),
        make_game(runner='Alice', corp='Dave', winner='runner', when=day(2)),
    ]
