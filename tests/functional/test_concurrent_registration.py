"""
Functional tests for concurrent registrations racing for the last seats.

These run against a file-backed SQLite database so that every thread gets
its own connection, as worker threads would in production.
"""
import threading
import pytest
import sqlalchemy as sa

from pokerclub import create_app, db
from pokerclub.errors import TournamentFull, AlreadyRegistered
from pokerclub.models import Registration, Wallet
from pokerclub.registrations.engine import register
from tests.fixtures.factories import MemberFactory, ClubFactory, WalletFactory, TournamentFactory


@pytest.fixture
def file_app(tmp_path):
    app = create_app('testing', test_config={
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{tmp_path / "race.db"}'
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def _race(app, attempts):
    """Run each (member_id, tournament_id, mode) attempt on its own thread, all released together"""
    barrier = threading.Barrier(len(attempts))
    outcomes = []
    outcomes_lock = threading.Lock()

    def attempt(member_id, tournament_id, mode):
        with app.app_context():
            barrier.wait()
            try:
                register(member_id, tournament_id, mode)
                result = 'registered'
            except TournamentFull:
                result = 'full'
            except AlreadyRegistered:
                result = 'duplicate'
            except Exception as e:
                result = repr(e)
            with outcomes_lock:
                outcomes.append(result)

    threads = [threading.Thread(target=attempt, args=args) for args in attempts]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return outcomes


@pytest.mark.functional
class TestConcurrentRegistration:
    """Capacity and double-submit behaviour under concurrent requests."""

    def test_last_seats_are_never_oversold(self, file_app):
        with file_app.app_context():
            club = ClubFactory.create()
            tournament = TournamentFactory.create(club=club, max_cap=3)
            member_ids = []
            for _ in range(8):
                member = MemberFactory.create()
                WalletFactory.create(member=member, club=club, balance=5000)
                member_ids.append(member.id)
            tournament_id = tournament.id
            club_id = club.id

        outcomes = _race(file_app, [(member_id, tournament_id, 'buy-in') for member_id in member_ids])

        assert sorted(outcomes) == ['full'] * 5 + ['registered'] * 3

        with file_app.app_context():
            active = db.session.scalar(
                sa.select(sa.func.count(Registration.id)).where(
                    Registration.tournament_id == tournament_id,
                    Registration.status.in_(['reserved', 'paid'])
                )
            )
            charged = db.session.scalar(
                sa.select(sa.func.count(Wallet.id)).where(Wallet.club_id == club_id, Wallet.balance == 1600)
            )
            untouched = db.session.scalar(
                sa.select(sa.func.count(Wallet.id)).where(Wallet.club_id == club_id, Wallet.balance == 5000)
            )
            assert active == 3
            assert charged == 3
            assert untouched == 5

    def test_double_submitted_buy_in_charges_once(self, file_app):
        with file_app.app_context():
            wallet = WalletFactory.create(balance=10000)
            tournament = TournamentFactory.create(club=wallet.club)
            member_id = wallet.member_id
            tournament_id = tournament.id
            wallet_id = wallet.id

        outcomes = _race(file_app, [(member_id, tournament_id, 'buy-in')] * 4)

        assert sorted(outcomes) == ['duplicate'] * 3 + ['registered']

        with file_app.app_context():
            assert db.session.get(Wallet, wallet_id).balance == 6600
