"""
Unit tests for blind structure normalization.
"""
import pytest

from pokerclub.tournaments.utils import normalize_blind_structure
from tests.fixtures.factories import TournamentFactory


@pytest.mark.unit
class TestNormalizeBlindStructure:
    """Test cases for normalize_blind_structure"""

    def test_canonical_list_is_unchanged(self):
        levels = [{'level': 1, 'small_blind': 100, 'big_blind': 200, 'ante': 200, 'duration': 20, 'is_break': False}]

        assert normalize_blind_structure(levels) == levels

    def test_camel_case_keys(self):
        result = normalize_blind_structure([
            {'level': 2, 'smallBlind': 100, 'bigBlind': 200, 'ante': 200, 'duration': 20}
        ])

        assert result == [{'level': 2, 'small_blind': 100, 'big_blind': 200, 'ante': 200,
                           'duration': 20, 'is_break': False}]

    def test_short_keys_and_string_numbers(self):
        result = normalize_blind_structure([
            {'levelNumber': '3', 'sb': '200', 'bb': '400', 'anteAmount': '400', 'durationMinutes': '15'}
        ])

        assert result[0] == {'level': 3, 'small_blind': 200, 'big_blind': 400, 'ante': 400,
                             'duration': 15, 'is_break': False}

    def test_levels_wrapper(self):
        result = normalize_blind_structure({'levels': [{'level': 1, 'sb': 50, 'bb': 100}]})

        assert result[0]['big_blind'] == 100
        assert result[0]['ante'] == 0

    def test_dict_keyed_by_level_is_sorted(self):
        result = normalize_blind_structure({
            'b': {'level': 2, 'small_blind': 200, 'big_blind': 400},
            'a': {'level': 1, 'small_blind': 100, 'big_blind': 200},
        })

        assert [level['level'] for level in result] == [1, 2]

    @pytest.mark.parametrize('level', [
        {'level': 4, 'isBreak': True, 'duration': 10},
        {'level': 4, 'type': 'break', 'breakDuration': 10},
        {'level': 4, 'level_type': 'break', 'duration_minutes': 10},
        {'break_duration': 10},
    ])
    def test_break_shapes(self, level):
        result = normalize_blind_structure([level])

        assert result[0]['is_break'] is True
        assert result[0]['duration'] == 10
        assert result[0]['small_blind'] == 0
        assert result[0]['big_blind'] == 0

    @pytest.mark.parametrize('raw', [None, [], {}, 'not a structure', 42])
    def test_unusable_input(self, raw):
        assert normalize_blind_structure(raw) == []

    def test_non_dict_levels_are_skipped(self):
        result = normalize_blind_structure([None, 'x', {'level': 1, 'small_blind': 1, 'big_blind': 2}])

        assert len(result) == 1

    def test_tournament_stores_normalized_structure(self, db_session):
        tournament = TournamentFactory.create(structure=[{'level': 1, 'smallBlind': 25, 'bigBlind': 50}])

        assert tournament.structure == [{'level': 1, 'small_blind': 25, 'big_blind': 50, 'ante': 0,
                                         'duration': 0, 'is_break': False}]
