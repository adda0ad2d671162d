# jnetstats/filters.py

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from jnetstats.models import EntityFilter, FilteredGames, GameFilters, GameRecord
from jnetstats.periods import end_of_day, start_of_day
from jnetstats.reference import faction_for_identity, faction_label, format_label, sort_factions
from jnetstats.roles import Usernames, opponent_role, resolve_role, username_set

SIDE_OPTIONS = (
    EntityFilter(type='side', value='runner', label='Runner'),
    EntityFilter(type='side', value='corp', label='Corp'),
)


def _matches_entity(
    game: GameRecord,
    role: str,
    entity: EntityFilter,
    identity_map: Mapping[str, str],
) -> bool:
    if entity.type == 'side':
        return role == entity.value
    identity = game.side(role).identity
    if entity.type == 'identity':
        return identity == entity.value
    return faction_for_identity(identity, identity_map) == entity.value


def filter_games(
    games: Sequence[GameRecord],
    usernames: Usernames,
    identity_map: Mapping[str, str],
    filters: Optional[GameFilters] = None,
) -> FilteredGames:
    """
    Apply the dashboard filters to a game list.

    ``base`` holds games matching the format and date range. ``filtered``
    further requires the viewer to match any of the entity filters and the
    opponent to match any of the opponent filters.

    Args:
        games: Normalized games
        usernames: Viewer username or aliases
        identity_map: Identity name -> faction
        filters: Filter selection; None keeps everything

    Returns:
        FilteredGames with both lists and the day-aligned range bounds
    """
    filters = filters or GameFilters()
    range_start = start_of_day(filters.range_start) if filters.range_start else None
    range_end = end_of_day(filters.range_end) if filters.range_end else None
    target_format = filters.format.strip().lower() if filters.format else ''

    base = []
    for game in games:
        if target_format and (game.format or '') != target_format:
            continue
        if range_start and (game.completed_at is None or game.completed_at < range_start):
            continue
        if range_end and (game.completed_at is None or game.completed_at > range_end):
            continue
        base.append(game)

    accepted = username_set(usernames)
    entity_filters = tuple(filters.entity_filters)
    opponent_filters = tuple(filters.opponent_filters)
    if (not entity_filters and not opponent_filters) or not accepted:
        return FilteredGames(base=base, filtered=list(base), range_start=range_start, range_end=range_end)

    filtered = []
    for game in base:
        role = resolve_role(game, accepted)
        if role is None:
            continue
        other = opponent_role(role)
        matches_player = not entity_filters or any(
            _matches_entity(game, role, entity, identity_map) for entity in entity_filters
        )
        matches_opponent = not opponent_filters or any(
            _matches_entity(game, other, entity, identity_map) for entity in opponent_filters
        )
        if matches_player and matches_opponent:
            filtered.append(game)

    return FilteredGames(base=base, filtered=filtered, range_start=range_start, range_end=range_end)


def data_bounds(games: Sequence[GameRecord]) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Earliest and latest completion dates across the games."""
    dates = [game.completed_at for game in games if game.completed_at is not None]
    if not dates:
        return None, None
    return min(dates), max(dates)


def build_filter_options(
    games: Sequence[GameRecord],
    usernames: Usernames,
    identity_map: Mapping[str, str],
) -> Dict[str, List[Dict[str, Any]]]:
    """Choices for the format selector and the player entity filter."""
    formats = sorted({game.format for game in games if game.format})

    accepted = username_set(usernames)
    factions = set()
    identities = set()
    for game in games:
        role = resolve_role(game, accepted)
        if role is None:
            continue
        identity = game.side(role).identity
        factions.add(faction_for_identity(identity, identity_map))
        if identity:
            identities.add(identity)

    entities = list(SIDE_OPTIONS)
    entities.extend(
        EntityFilter(type='faction', value=faction, label=faction_label(faction))
        for faction in sort_factions(factions)
    )
    entities.extend(
        EntityFilter(type='identity', value=identity, label=identity)
        for identity in sorted(identities, key=str.casefold)
    )

    return {
        'formats': [{'value': fmt, 'label': format_label(fmt)} for fmt in formats],
        'entities': [entity.to_dict() for entity in entities],
    }
