# jnetstats/parser.py

import json
import logging
import os
from typing import Any, Dict, List, Optional, Union

from jnetstats.models import GameRecord, RoleSnapshot, ROLES
from jnetstats.periods import parse_timestamp

logger = logging.getLogger(__name__)

DATE_FIELDS = ('end-date', 'start-date', 'creation-date')
GAME_ID_FIELDS = ('gameid', 'game-id')


class FormatError(ValueError):
    """The uploaded history cannot be read as an array of games."""


class HistoryParser:
    """
    Parse a jinteki.net game history export into normalized game records.

    The export is a JSON array with one object per game:
    - winner: "runner" | "corp" (anything else means no winner)
    - runner / corp: {"player": {"username": ...}, "identity": ...}
    - format: ruleset label ("standard", "startup", ...)
    - end-date / start-date / creation-date: ISO-8601 timestamps
    - turn, stats.runner.access.unique-cards, gameid: optional extras

    Individual fields that are missing or of the wrong type become None;
    only the top-level shape can fail the parse.
    """

    def parse(self, raw_text: Union[str, bytes]) -> List[GameRecord]:
        """
        Parse history text into game records.

        Args:
            raw_text: File contents (str, or UTF-8 bytes)

        Returns:
            One GameRecord per array element, in file order

        Raises:
            FormatError: If the text is not JSON or not a JSON array
        """
        if isinstance(raw_text, (bytes, bytearray)):
            try:
                raw_text = bytes(raw_text).decode('utf-8-sig')
            except UnicodeDecodeError:
                raise FormatError("The uploaded file is not valid JSON; expected an array of games.")

        try:
            parsed = json.loads(raw_text)
        except (TypeError, RecursionError, json.JSONDecodeError):
            raise FormatError("The uploaded file is not valid JSON; expected an array of games.")

        if not isinstance(parsed, list):
            raise FormatError("game_history.json must contain an array of games.")

        games = [self.normalize_game(raw) for raw in parsed]

        degraded = sum(1 for game in games if game.completed_at is None or game.winner is None)
        if degraded:
            logger.debug(
                "Parsed %d games; %d without a completion date or winner.", len(games), degraded
            )
        return games

    def normalize_game(self, raw_game: Any) -> GameRecord:
        """Normalize one array element. Non-objects become an empty record."""
        if not isinstance(raw_game, dict):
            return GameRecord()

        winner = raw_game.get('winner')
        raw_format = raw_game.get('format')

        return GameRecord(
            winner=winner if winner in ROLES else None,
            runner=self._normalize_role(raw_game.get('runner')),
            corp=self._normalize_role(raw_game.get('corp')),
            completed_at=self._resolve_date(raw_game),
            format=raw_format.strip().lower() if isinstance(raw_format, str) else None,
            game_id=self._resolve_game_id(raw_game),
            turns=self._to_count(raw_game.get('turn')),
            unique_accesses=self._to_count(self._runner_unique_accesses(raw_game)),
        )

    @staticmethod
    def _normalize_role(raw_role: Any) -> RoleSnapshot:
        if not isinstance(raw_role, dict):
            return RoleSnapshot()
        player = raw_role.get('player')
        username = player.get('username') if isinstance(player, dict) else None
        identity = raw_role.get('identity')
        return RoleSnapshot(
            username=username if isinstance(username, str) else None,
            identity=identity if isinstance(identity, str) else None,
        )

    @staticmethod
    def _resolve_date(raw_game: Dict[str, Any]):
        # First present field wins, even if it does not parse.
        for key in DATE_FIELDS:
            value = raw_game.get(key)
            if value is not None:
                return parse_timestamp(value)
        return None

    @staticmethod
    def _resolve_game_id(raw_game: Dict[str, Any]) -> Optional[str]:
        for key in GAME_ID_FIELDS:
            value = raw_game.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None

    @staticmethod
    def _runner_unique_accesses(raw_game: Dict[str, Any]) -> Any:
        node: Any = raw_game.get('stats')
        for key in ('runner', 'access', 'unique-cards'):
            if not isinstance(node, dict):
                return None
            node = node.get(key)
        return node

    @staticmethod
    def _to_count(value: Any) -> Optional[int]:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value if value >= 0 else None
        if isinstance(value, float) and value.is_integer() and value >= 0:
            return int(value)
        return None


def parse_and_normalize(raw_text: Union[str, bytes]) -> List[GameRecord]:
    """Parse history text with the default parser."""
    return HistoryParser().parse(raw_text)


def load_history_file(path: str) -> List[GameRecord]:
    """Read and parse a history file from disk."""
    try:
        with open(path, 'rb') as f:
            content = f.read()
    except OSError as e:
        raise FormatError(f"Unable to read {os.path.basename(path)}: {e.strerror or e}")
    return parse_and_normalize(content)
