# tests/test_parser.py

import json
from datetime import datetime, timezone

import pytest

from jnetstats.parser import FormatError, HistoryParser, load_history_file, parse_and_normalize
from tests.helpers import raw_game


class TestHistoryParser:
    """Test suite for history normalization."""

    @pytest.fixture
    def parser(self):
        return HistoryParser()

    def test_parse_basic_game(self, parser):
        games = parser.parse(json.dumps([raw_game()]))

        assert len(games) == 1
        game = games[0]
        assert game.winner == 'runner'
        assert game.runner.username == 'Alice'
        assert game.runner.identity == 'Noise: Hacker Extraordinaire'
        assert game.corp.username == 'Bob'
        assert game.format == 'standard'
        assert game.completed_at == datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)

    def test_invalid_json_raises_format_error(self, parser):
        with pytest.raises(FormatError, match='not valid JSON') as excinfo:
            parser.parse('{not an array}')
        assert 'array' in str(excinfo.value)

    def test_deeply_nested_json_raises_format_error(self, parser):
        with pytest.raises(FormatError, match='array'):
            parser.parse('[' * 200000)

    def test_non_array_raises_format_error(self, parser):
        with pytest.raises(FormatError, match='must contain an array'):
            parser.parse(json.dumps({'games': []}))

    def test_format_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_and_normalize('42')

    def test_empty_array(self, parser):
        assert parser.parse('[]') == []

    def test_bytes_with_bom(self, parser):
        content = '﻿' + json.dumps([raw_game()])
        games = parser.parse(content.encode('utf-8'))
        assert games[0].runner.username == 'Alice'

    def test_undecodable_bytes(self, parser):
        with pytest.raises(FormatError):
            parser.parse(b'\xff\xfe\x00garbage')

    def test_unknown_winner_normalizes_to_none(self, parser):
        games = parser.parse(json.dumps([
            raw_game(winner='Runner'),
            raw_game(winner='draw'),
            raw_game(winner=None),
            raw_game(winner=1),
        ]))
        assert [game.winner for game in games] == [None, None, None, None]

    def test_non_object_entries_degrade(self, parser):
        games = parser.parse(json.dumps([None, 3, 'text', []]))

        assert len(games) == 4
        for game in games:
            assert game.winner is None
            assert game.runner.username is None
            assert game.corp.identity is None
            assert game.completed_at is None
            assert game.format is None

    def test_mistyped_fields_degrade(self, parser):
        games = parser.parse(json.dumps([{
            'winner': 'corp',
            'runner': {'player': 'Alice', 'identity': 7},
            'corp': {'player': {'username': 12}, 'identity': 'NBN: Making News'},
            'format': ['standard'],
        }]))
        game = games[0]
        assert game.winner == 'corp'
        assert game.runner.username is None
        assert game.runner.identity is None
        assert game.corp.username is None
        assert game.corp.identity == 'NBN: Making News'
        assert game.format is None

    def test_format_trimmed_and_lowercased(self, parser):
        games = parser.parse(json.dumps([raw_game(fmt='  Standard ')]))
        assert games[0].format == 'standard'

    def test_date_preference_order(self, parser):
        games = parser.parse(json.dumps([
            {
                'end-date': '2024-03-05T10:00:00Z',
                'start-date': '2024-03-04T10:00:00Z',
                'creation-date': '2024-03-03T10:00:00Z',
            },
            {
                'start-date': '2024-03-04T10:00:00Z',
                'creation-date': '2024-03-03T10:00:00Z',
            },
            {'creation-date': '2024-03-03T10:00:00Z'},
            {},
        ]))
        assert [game.completed_at.day if game.completed_at else None for game in games] == [
            5, 4, 3, None,
        ]

    def test_unparseable_date_is_none(self, parser):
        games = parser.parse(json.dumps([raw_game(end_date='yesterday')]))
        assert games[0].completed_at is None

    def test_naive_date_read_as_utc(self, parser):
        games = parser.parse(json.dumps([raw_game(end_date='2024-03-04T08:30:00')]))
        assert games[0].completed_at == datetime(2024, 3, 4, 8, 30, tzinfo=timezone.utc)

    def test_offset_date_converted_to_utc(self, parser):
        games = parser.parse(json.dumps([raw_game(end_date='2024-03-04T08:30:00+02:00')]))
        assert games[0].completed_at == datetime(2024, 3, 4, 6, 30, tzinfo=timezone.utc)

    def test_optional_extras(self, parser):
        games = parser.parse(json.dumps([
            raw_game(gameid='abc-123', turn=9, stats={'runner': {'access': {'unique-cards': 14}}}),
            raw_game(turn=-1, stats={'runner': {'access': 'many'}}),
            raw_game(turn=True, stats=None),
            raw_game(turn=7.0),
        ]))
        assert games[0].game_id == 'abc-123'
        assert games[0].turns == 9
        assert games[0].unique_accesses == 14
        assert games[1].turns is None
        assert games[1].unique_accesses is None
        assert games[2].turns is None
        assert games[3].turns == 7

    def test_records_are_immutable(self, parser):
        game = parser.parse(json.dumps([raw_game()]))[0]
        with pytest.raises(AttributeError):
            game.winner = 'corp'


def test_load_history_file(tmp_path):
    path = tmp_path / 'game_history.json'
    path.write_text(json.dumps([raw_game(), raw_game(winner='corp')]), encoding='utf-8')

    games = load_history_file(str(path))
    assert [game.winner for game in games] == ['runner', 'corp']


def test_load_missing_file(tmp_path):
    with pytest.raises(FormatError, match='Unable to read'):
        load_history_file(str(tmp_path / 'missing.json'))
