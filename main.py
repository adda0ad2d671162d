# main.py

import argparse
import json
import logging
import os
import sys

from jnetstats.config import DIFF_PERIODS, HISTOGRAM_PERIODS, load_settings
from jnetstats.dashboard import HistoryDashboard
from jnetstats.models import EntityFilter, GameFilters
from jnetstats.parser import FormatError, load_history_file
from jnetstats.periods import parse_timestamp
from jnetstats.profile import combine_uploads, parse_upload
from jnetstats.ui import TerminalUI

logger = logging.getLogger(__name__)


def _safe_print(message: str) -> None:
    """Print with Unicode fallback for restricted terminal encodings."""
    try:
        print(message)
    except UnicodeEncodeError:
        print(message.encode('ascii', 'replace').decode('ascii'))


def _parse_date_arg(value: str):
    parsed = parse_timestamp(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"not an ISO date: {value!r}")
    return parsed


def _parse_entity_arg(value: str) -> EntityFilter:
    kind, sep, target = value.partition('=')
    if not sep or kind not in ('side', 'faction', 'identity') or not target:
        raise argparse.ArgumentTypeError(
            f"expected side=..., faction=... or identity=..., got {value!r}"
        )
    return EntityFilter(type=kind, value=target, label=target)


def build_arg_parser() -> argparse.ArgumentParser:
    settings = load_settings()
    parser = argparse.ArgumentParser(
        description='Win/loss statistics from jinteki.net game history exports',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py game_history.json
  python main.py main_account.json alt_account.json --period monthly
  python main.py game_history.json --format standard --start 2024-03-01
  python main.py game_history.json --side runner --opponent faction=nbn --json out.json
        """
    )
    parser.add_argument('files', nargs='+', help='History JSON files (merged, duplicates dropped)')
    parser.add_argument(
        '--period',
        default=settings.diff_period,
        choices=DIFF_PERIODS,
        help=f'Differential candle period (default: {settings.diff_period})'
    )
    parser.add_argument(
        '--window',
        type=int,
        default=settings.rolling_window,
        help=f'Rolling win rate window in games (default: {settings.rolling_window})'
    )
    parser.add_argument(
        '--games-period',
        default=settings.games_played_period,
        choices=HISTOGRAM_PERIODS,
        help=f'Games played bucket size (default: {settings.games_played_period})'
    )
    parser.add_argument('--format', default=None, help='Only count games of this format')
    parser.add_argument('--start', type=_parse_date_arg, default=None, help='Range start (YYYY-MM-DD)')
    parser.add_argument('--end', type=_parse_date_arg, default=None, help='Range end (YYYY-MM-DD)')
    parser.add_argument(
        '--side',
        choices=('runner', 'corp'),
        default=None,
        help='Shortcut for --entity side=...'
    )
    parser.add_argument(
        '--entity',
        type=_parse_entity_arg,
        action='append',
        default=[],
        help='Player filter, repeatable: side=runner, faction=anarch, identity="..."'
    )
    parser.add_argument(
        '--opponent',
        type=_parse_entity_arg,
        action='append',
        default=[],
        help='Opponent filter, repeatable, same syntax as --entity'
    )
    parser.add_argument('--json', dest='json_out', default=None, help='Write the full dashboard to this file')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    return parser


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)
    settings = load_settings()
    logging.basicConfig(level=logging.DEBUG if args.verbose else settings.log_level)
    ui = TerminalUI()

    uploads = []
    for path in args.files:
        try:
            games = load_history_file(path)
        except FormatError as e:
            ui.show_error(f"{os.path.basename(path)}: {e}")
            return 1
        uploads.append(parse_upload(os.path.basename(path), games))
        logger.info("Loaded %d games from %s", len(games), path)

    history = combine_uploads(uploads)

    entity_filters = list(args.entity)
    if args.side:
        entity_filters.append(EntityFilter(type='side', value=args.side, label=args.side.title()))

    filters = GameFilters(
        format=args.format,
        range_start=args.start,
        range_end=args.end,
        entity_filters=tuple(entity_filters),
        opponent_filters=tuple(args.opponent),
    )

    try:
        dashboard = HistoryDashboard(
            history,
            settings=settings,
            filters=filters,
            diff_period=args.period,
            rolling_window=args.window,
            games_played_period=args.games_period,
        )
        result = dashboard.analyze()
    except ValueError as e:
        ui.show_error(str(e))
        return 1

    if result.get('error'):
        ui.show_error(result['error'])
        return 1

    ui.show_sources(result['sources'])
    dashboard.summary()
    ui.show_identity_table('Opponent performance', result['opponent_performance'])
    ui.show_histogram('Unique accesses (as runner)', result['unique_accesses'])
    ui.show_histogram('Turns to finish', result['turns'])

    if args.json_out:
        with open(args.json_out, 'w', encoding='utf-8') as f:
            json.dump(result, f, indent=2, ensure_ascii=False)
        _safe_print(f"✅ Dashboard written to {args.json_out}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
