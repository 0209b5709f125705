"""
Unit tests for member utility functions.
"""
import pytest
from datetime import date, datetime, timedelta

from pokerclub.models import Member
from pokerclub.errors import NotAMember, TournamentNotFound, UsernameTaken
from pokerclub.members.utils import (
    create_member, update_profile, submit_kyc, get_member_data,
    get_game_history, record_game_result, serialize_game_record
)
from tests.fixtures.factories import MemberFactory, WalletFactory, GameRecordFactory, TournamentFactory


@pytest.mark.unit
class TestProfile:
    """Test cases for signup, profile and KYC"""

    def test_create_member(self, db_session):
        member = create_member('newshark', 'longpassword1', '0911222333')

        assert member.id is not None
        assert member.nickname == 'newshark'
        assert member.check_password('longpassword1')
        assert member.is_profile_complete is False

    def test_create_member_with_taken_username(self, db_session):
        MemberFactory.create(username='newshark')

        with pytest.raises(UsernameTaken) as exc_info:
            create_member('newshark', 'longpassword1')

        assert exc_info.value.status_code == 409
        assert exc_info.value.details == {'field': 'username'}
        assert db_session.query(Member).filter_by(username='newshark').count() == 1

    def test_update_profile_keeps_memberships(self, db_session, test_member, test_wallet):
        update_profile(test_member, nickname='The Rock', avatar_url='https://example.com/a.png')

        assert test_member.nickname == 'The Rock'
        assert test_wallet.status == 'active'

    def test_blank_nickname_falls_back_to_username(self, db_session, test_member):
        update_profile(test_member, nickname='')

        assert test_member.nickname == 'testplayer'

    def test_submit_kyc_resets_memberships_to_pending(self, db_session, test_member, test_wallet):
        pending = WalletFactory.create(member=test_member, status='pending')
        banned = WalletFactory.create(member=test_member, status='banned')

        reset = submit_kyc(test_member, name='Chen Wei', national_id='A123456789',
                           birthday=date(1990, 5, 1), mobile=test_member.mobile)

        assert reset == 2
        assert test_wallet.status == 'pending'
        assert pending.status == 'pending'
        assert banned.status == 'banned'
        assert test_member.is_profile_complete is True
        assert test_member.name == 'Chen Wei'

    def test_changing_mobile_clears_verification(self, db_session, test_member):
        assert test_member.mobile_verified is True

        submit_kyc(test_member, name='Chen Wei', national_id='A123456789',
                   birthday=date(1990, 5, 1), mobile='0999888777')

        assert test_member.mobile_verified is False
        assert test_member.mobile == '0999888777'

    def test_same_mobile_keeps_verification(self, db_session, test_member):
        submit_kyc(test_member, name='Chen Wei', national_id='A123456789',
                   birthday=date(1990, 5, 1), mobile=test_member.mobile)

        assert test_member.mobile_verified is True

    def test_member_data(self, db_session, club_manager):
        data = get_member_data(club_manager)

        assert data['username'] == 'manager'
        assert data['display_name'] == 'Counter'
        assert data['roles'] == ['Club Manager']
        assert 'password_hash' not in data


@pytest.mark.unit
class TestGameHistory:
    """Test cases for game history and results"""

    def test_history_newest_first(self, db_session, test_member):
        old = GameRecordFactory.create(member=test_member, played_at=datetime.utcnow() - timedelta(days=10))
        new = GameRecordFactory.create(member=test_member, played_at=datetime.utcnow() - timedelta(days=1))
        GameRecordFactory.create()  # someone else

        assert [r.id for r in get_game_history(test_member.id)] == [new.id, old.id]

    def test_record_result_awards_points(self, db_session, test_member, test_wallet, test_tournament):
        record = record_game_result(test_member.id, test_wallet.club_id, 'Daily Deepstack',
                                    played_at=datetime(2026, 1, 2, 20, 0), buy_in=3000,
                                    profit=12000, points=150, tournament_id=test_tournament.id)

        assert record.tournament_type == test_tournament.tournament_type
        assert test_wallet.points == 150
        assert test_wallet.balance == 5000

    def test_record_result_for_non_member(self, db_session, test_member, test_club):
        with pytest.raises(NotAMember):
            record_game_result(test_member.id, test_club.id, 'Cash game', played_at=None)

    def test_record_result_for_unknown_tournament(self, db_session, test_member, test_wallet):
        with pytest.raises(TournamentNotFound):
            record_game_result(test_member.id, test_wallet.club_id, 'Ghost', played_at=None, tournament_id=999999)

        assert test_wallet.points == 0

    def test_serialize_game_record(self, db_session, test_member, test_club):
        record = GameRecordFactory.create(member=test_member, club=test_club, profit=-2000)

        data = serialize_game_record(record)

        assert data['club_name'] == 'Hyper Poker Club'
        assert data['profit'] == -2000
