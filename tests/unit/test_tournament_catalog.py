"""
Unit tests for tournament catalog functions.
"""
import pytest
from datetime import datetime, timedelta

from pokerclub.tournaments.utils import (
    is_late_reg_ended, get_reserved_count, list_tournaments, list_clubs,
    get_entrants, serialize_tournament
)
from tests.fixtures.factories import ClubFactory, TournamentFactory, RegistrationFactory


@pytest.mark.unit
class TestTournamentCatalog:
    """Test cases for listing tournaments and occupancy"""

    def test_reserved_count_counts_reserved_and_paid_only(self, db_session, test_tournament):
        RegistrationFactory.create(tournament=test_tournament, status='reserved')
        RegistrationFactory.create(tournament=test_tournament, status='paid')
        RegistrationFactory.create(tournament=test_tournament, status='cancelled')

        assert get_reserved_count(test_tournament.id) == 2

    def test_list_tournaments_ordered_by_start_with_counts(self, db_session, test_club):
        now = datetime.utcnow()
        late = TournamentFactory.create(club=test_club, start_time=now + timedelta(hours=5))
        early = TournamentFactory.create(club=test_club, start_time=now + timedelta(hours=1))
        TournamentFactory.create()  # another club
        RegistrationFactory.create(tournament=late, status='paid')
        RegistrationFactory.create(tournament=late, status='reserved')

        rows = list_tournaments(test_club.id)

        assert [(t.id, count) for t, count in rows] == [(early.id, 0), (late.id, 2)]

    def test_list_tournaments_for_empty_club(self, db_session, test_club):
        assert list_tournaments(test_club.id) == []

    def test_list_clubs_by_name(self, db_session):
        ClubFactory.create(name='Royal Flush Arena')
        ClubFactory.create(name='Ace High Taipei')

        assert [club.name for club in list_clubs()] == ['Ace High Taipei', 'Royal Flush Arena']

    def test_entrants_in_registration_order(self, db_session, test_tournament):
        first = RegistrationFactory.create(tournament=test_tournament, status='paid')
        RegistrationFactory.create(tournament=test_tournament, status='cancelled')
        second = RegistrationFactory.create(tournament=test_tournament, status='reserved')

        assert [r.id for r in get_entrants(test_tournament.id)] == [first.id, second.id]


@pytest.mark.unit
class TestLateRegistration:
    """Test cases for the registration window"""

    def test_open_before_start(self, db_session, test_tournament):
        assert not is_late_reg_ended(test_tournament, now=test_tournament.start_time - timedelta(seconds=1))

    def test_open_at_start(self, db_session, test_tournament):
        assert not is_late_reg_ended(test_tournament, now=test_tournament.start_time)

    def test_closed_after_start(self, db_session, test_tournament):
        assert is_late_reg_ended(test_tournament, now=test_tournament.start_time + timedelta(seconds=1))


@pytest.mark.unit
def test_serialize_tournament_derived_fields(db_session, test_tournament):
    data = serialize_tournament(test_tournament, 60)

    assert data['type'] == 'Tournament'
    assert data['total_cost'] == 3400
    assert data['reserved_count'] == 60
    assert data['remaining_seats'] == 0
    assert data['is_full'] is True
    assert data['is_late_reg_ended'] is False
    assert data['structure'][0] == {
        'level': 1, 'small_blind': 100, 'big_blind': 100, 'ante': 100, 'duration': 20, 'is_break': False
    }


@pytest.mark.unit
def test_serialize_overbooked_tournament(db_session, test_club):
    tournament = TournamentFactory.create(club=test_club, max_cap=10)

    data = serialize_tournament(tournament, 12)

    assert data['remaining_seats'] == 0
    assert data['is_full'] is True
