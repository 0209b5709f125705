"""
Integration tests for member authentication, profile and game history routes.
"""
import pytest

from pokerclub.members.forms import SignupForm
from pokerclub.models import Member
from pokerclub.wallets.utils import get_wallet
from tests.fixtures.factories import MemberFactory, ClubFactory, WalletFactory, GameRecordFactory


@pytest.mark.integration
@pytest.mark.api
class TestMemberAuthRoutes:
    """Test cases for login, logout and signup."""

    def test_login(self, client, db_session):
        MemberFactory.create(username='shark', password='sharkpassword1')

        response = client.post('/members/api/v1/login', json={'username': 'shark', 'password': 'sharkpassword1'})

        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['member']['username'] == 'shark'
        member = db_session.query(Member).filter_by(username='shark').first()
        assert member.last_login is not None

    def test_login_wrong_password(self, client, db_session):
        MemberFactory.create(username='shark', password='sharkpassword1')

        response = client.post('/members/api/v1/login', json={'username': 'shark', 'password': 'guess'})

        assert response.status_code == 401
        assert response.get_json()['success'] is False

    def test_login_unknown_user(self, client, db_session):
        response = client.post('/members/api/v1/login', json={'username': 'ghost', 'password': 'whatever1'})

        assert response.status_code == 401

    def test_login_missing_fields(self, client, db_session):
        response = client.post('/members/api/v1/login', json={'username': 'shark'})

        assert response.status_code == 400
        assert 'password' in response.get_json()['errors']

    def test_login_locked_account(self, client, db_session):
        MemberFactory.create(username='locked', password='lockedpassword1', lockout=True)

        response = client.post('/members/api/v1/login', json={'username': 'locked', 'password': 'lockedpassword1'})

        assert response.status_code == 403

    def test_logout(self, authenticated_client):
        response = authenticated_client.post('/members/api/v1/logout')

        assert response.status_code == 200
        assert response.get_json()['success'] is True

    def test_signup(self, client, db_session):
        response = client.post('/members/api/v1/signup',
                               json={'username': 'newshark', 'password': 'longpassword1', 'mobile': '0911222333'})

        assert response.status_code == 201
        data = response.get_json()
        assert data['member']['username'] == 'newshark'
        assert data['member']['is_profile_complete'] is False
        assert db_session.query(Member).filter_by(username='newshark').count() == 1

    def test_signup_duplicate_username(self, client, db_session):
        MemberFactory.create(username='taken')

        response = client.post('/members/api/v1/signup', json={'username': 'taken', 'password': 'longpassword1'})

        assert response.status_code == 400
        assert 'username' in response.get_json()['errors']

    def test_signup_losing_username_race(self, client, db_session, monkeypatch):
        MemberFactory.create(username='taken')
        # The other signup commits between form validation and insert
        monkeypatch.setattr(SignupForm, 'validate_username', lambda form, field: None)

        response = client.post('/members/api/v1/signup', json={'username': 'taken', 'password': 'longpassword1'})

        assert response.status_code == 409
        data = response.get_json()
        assert data['kind'] == 'UsernameTaken'
        assert data['retryable'] is False

    @pytest.mark.parametrize('payload', [
        {'username': 'ok_name', 'password': 'short'},
        {'username': 'bad name!', 'password': 'longpassword1'},
        {'username': 'ab', 'password': 'longpassword1'},
    ])
    def test_signup_invalid(self, client, db_session, payload):
        response = client.post('/members/api/v1/signup', json=payload)

        assert response.status_code == 400

    def test_locked_session_is_logged_out(self, authenticated_client, db_session, test_member):
        test_member.lockout = True
        db_session.commit()

        response = authenticated_client.get('/members/api/v1/profile')

        assert response.status_code == 403


@pytest.mark.integration
@pytest.mark.api
class TestProfileRoutes:
    """Test cases for profile and KYC."""

    def test_profile_requires_login(self, client, db_session):
        response = client.get('/members/api/v1/profile')

        assert response.status_code == 401

    def test_get_profile(self, authenticated_client, test_member):
        response = authenticated_client.get('/members/api/v1/profile')

        assert response.status_code == 200
        assert response.get_json()['member']['nickname'] == 'Tester'

    def test_update_profile(self, authenticated_client, test_wallet):
        response = authenticated_client.put('/members/api/v1/profile',
                                            json={'nickname': 'River Rat', 'avatar_url': 'https://example.com/rat.png'})

        assert response.status_code == 200
        assert response.get_json()['member']['display_name'] == 'River Rat'
        assert get_wallet(test_wallet.member_id, test_wallet.club_id).status == 'active'

    def test_update_profile_bad_avatar(self, authenticated_client, test_member):
        response = authenticated_client.put('/members/api/v1/profile', json={'avatar_url': 'not a url'})

        assert response.status_code == 400

    def test_submit_kyc(self, authenticated_client, db_session, test_member, test_wallet):
        WalletFactory.create(member=test_member, status='banned')

        response = authenticated_client.post('/members/api/v1/kyc', json={
            'name': 'Chen Wei',
            'national_id': 'A123456789',
            'birthday': '1990-05-01',
            'mobile': '0955666777',
            'is_foreigner': False,
            'kyc_uploaded': True,
        })

        assert response.status_code == 200
        data = response.get_json()
        assert data['memberships_pending'] == 1
        assert data['member']['is_profile_complete'] is True
        assert data['member']['mobile_verified'] is False
        assert data['member']['kyc_uploaded'] is True
        assert get_wallet(test_member.id, test_wallet.club_id).status == 'pending'

    def test_submit_kyc_future_birthday(self, authenticated_client, test_member):
        response = authenticated_client.post('/members/api/v1/kyc', json={
            'name': 'Chen Wei',
            'national_id': 'A123456789',
            'birthday': '2999-01-01',
            'mobile': '0955666777',
        })

        assert response.status_code == 400
        assert 'birthday' in response.get_json()['errors']

    def test_submit_kyc_missing_fields(self, authenticated_client, test_member):
        response = authenticated_client.post('/members/api/v1/kyc', json={'name': 'Chen Wei'})

        assert response.status_code == 400


@pytest.mark.integration
@pytest.mark.api
class TestGameHistoryRoutes:
    """Test cases for game history."""

    def test_game_history_with_summary(self, authenticated_client, test_member, test_club):
        GameRecordFactory.create(member=test_member, club=test_club, buy_in=2000, entry_count=2,
                                 profit=5000, points=20)
        GameRecordFactory.create(member=test_member, club=test_club, buy_in=1000, entry_count=1,
                                 profit=-1000, points=5)

        response = authenticated_client.get('/members/api/v1/games')

        assert response.status_code == 200
        data = response.get_json()
        assert len(data['games']) == 2
        assert data['summary'] == {
            'games_played': 2,
            'total_buy_in': 5000,
            'total_profit': 4000,
            'total_points': 25,
        }

    def test_manager_records_result(self, manager_client, db_session, test_club, test_tournament):
        player = MemberFactory.create()
        WalletFactory.create(member=player, club=test_club)

        response = manager_client.post('/members/api/v1/games', json={
            'member_id': player.id,
            'club_id': test_club.id,
            'tournament_id': test_tournament.id,
            'game_name': 'Daily Deepstack',
            'played_at': '2026-01-02T20:00:00',
            'buy_in': 3000,
            'profit': 9000,
            'points': 120,
        })

        assert response.status_code == 201
        assert response.get_json()['game']['points'] == 120
        assert get_wallet(player.id, test_club.id).points == 120

    def test_record_result_for_non_member(self, manager_client, db_session, test_club):
        player = MemberFactory.create()

        response = manager_client.post('/members/api/v1/games', json={
            'member_id': player.id,
            'club_id': test_club.id,
            'game_name': 'Cash game',
            'played_at': '2026-01-02T20:00:00',
        })

        assert response.status_code == 403
        assert response.get_json()['kind'] == 'NotAMember'

    def test_plain_member_cannot_record_results(self, authenticated_client, test_wallet, test_member):
        response = authenticated_client.post('/members/api/v1/games', json={
            'member_id': test_member.id,
            'club_id': test_wallet.club_id,
            'game_name': 'Self-awarded',
            'played_at': '2026-01-02T20:00:00',
            'points': 100000,
        })

        assert response.status_code == 403

    def test_manager_cannot_record_results_for_another_club(self, manager_client, db_session):
        other_club = ClubFactory.create(name='Ace High Taipei')
        player = MemberFactory.create()
        WalletFactory.create(member=player, club=other_club)

        response = manager_client.post('/members/api/v1/games', json={
            'member_id': player.id,
            'club_id': other_club.id,
            'game_name': 'Cash game',
            'played_at': '2026-01-02T20:00:00',
            'points': 500,
        })

        assert response.status_code == 403
        assert get_wallet(player.id, other_club.id).points == 0
