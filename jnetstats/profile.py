# jnetstats/profile.py

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from jnetstats.models import (
    GameRecord,
    LoadedHistory,
    ParsedUpload,
    SourceSummary,
    UserProfile,
    ROLES,
)
from jnetstats.roles import username_set

logger = logging.getLogger(__name__)


def _pick_top(counts: Dict[str, int]) -> Optional[str]:
    # Strict '>' keeps the first username seen on equal counts.
    top_name = None
    top_count = 0
    for username, count in counts.items():
        if top_name is None or count > top_count:
            top_name, top_count = username, count
    return top_name


def detect_profile(games: Sequence[GameRecord]) -> Optional[UserProfile]:
    """
    Infer which player a single history export belongs to.

    The username appearing in the most games (either side) is the viewer.

    Args:
        games: Normalized games from one upload

    Returns:
        UserProfile for the detected viewer, or None when there are no
        games or no usernames at all
    """
    if not games:
        return None

    overall: Dict[str, int] = {}
    for game in games:
        for role in ROLES:
            username = game.side(role).username
            if not username:
                continue
            overall[username] = overall.get(username, 0) + 1

    chosen = _pick_top(overall)
    if chosen is None:
        return None
    return build_combined_profile(games, [chosen], chosen)


def build_combined_profile(
    games: Sequence[GameRecord],
    usernames: Iterable[str],
    primary: Optional[str] = None,
) -> Optional[UserProfile]:
    """Profile for an explicit set of aliases treated as one viewer."""
    aliases: List[str] = []
    for name in usernames:
        if name and name not in aliases:
            aliases.append(name)
    if primary and primary in aliases:
        aliases.remove(primary)
        aliases.insert(0, primary)
    if not aliases:
        return None

    accepted = username_set(aliases)
    runner_games = sum(1 for game in games if game.runner.username in accepted)
    corp_games = sum(1 for game in games if game.corp.username in accepted)
    matched_games = sum(
        1 for game in games
        if game.runner.username in accepted or game.corp.username in accepted
    )
    total = len(games)

    return UserProfile(
        username=aliases[0],
        usernames=tuple(aliases),
        total_games=total,
        runner_games=runner_games,
        corp_games=corp_games,
        coverage=matched_games / total if total else 0.0,
        matched_games=matched_games,
        unmatched_games=total - matched_games,
    )


def merge_games(uploads: Sequence[ParsedUpload]) -> List[GameRecord]:
    """
    Merge games from several uploads, dropping duplicates.

    Games are keyed by their game id when present, otherwise by runner,
    corp and completion time. Games with neither an id nor a completion
    time are always kept. The first occurrence wins.
    """
    deduped: Dict[str, GameRecord] = {}
    fallback = 0
    for upload in uploads:
        for game in upload.games:
            if game.game_id:
                key = f"id:{game.game_id}"
            else:
                key = (
                    f"{game.runner.username or 'runner'}-{game.corp.username or 'corp'}-"
                    f"{game.completed_at.isoformat() if game.completed_at else 'unknown'}"
                )
                if game.completed_at is None:
                    key = f"{key}-{fallback}"
                    fallback += 1
            if key in deduped:
                continue
            deduped[key] = game

    dropped = sum(len(upload.games) for upload in uploads) - len(deduped)
    if dropped:
        logger.info("Dropped %d duplicate games while merging %d uploads.", dropped, len(uploads))
    return list(deduped.values())


def parse_upload(file_name: str, games: List[GameRecord]) -> ParsedUpload:
    return ParsedUpload(file_name=file_name, games=games, profile=detect_profile(games))


def combine_uploads(uploads: Sequence[ParsedUpload]) -> LoadedHistory:
    """
    Combine per-file uploads into one history with a merged viewer profile.

    Each file's detected username becomes an alias; the username from the
    file with the most games is the primary name.
    """
    games = merge_games(uploads)
    sources = [
        SourceSummary(
            name=upload.profile.username if upload.profile else None,
            file_name=upload.file_name,
            total_games=len(upload.games),
        )
        for upload in uploads
    ]
    alias_candidates = [source.name for source in sources if source.name]

    primary_upload = None
    for upload in uploads:
        if primary_upload is None or len(upload.games) > len(primary_upload.games):
            primary_upload = upload

    primary_name = None
    if primary_upload is not None and primary_upload.profile is not None:
        primary_name = primary_upload.profile.username
    elif alias_candidates:
        primary_name = alias_candidates[0]

    profile = None
    if alias_candidates:
        profile = build_combined_profile(games, alias_candidates, primary_name)
    return LoadedHistory(games=games, profile=profile, sources=sources)
