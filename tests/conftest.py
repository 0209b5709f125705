"""
Test configuration and fixtures for the Poker Club application.
"""
import pytest
import os

# Set environment variables for testing before the config module is imported
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'

from pokerclub import create_app, db
from pokerclub.models import Role
from tests.fixtures.factories import (
    MemberFactory, VerifiedMemberFactory, ClubFactory, WalletFactory, TournamentFactory
)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app('testing')

    with app.app_context():
        # Ensure all models are registered with SQLAlchemy
        from pokerclub import models

        db.create_all()

        import sqlalchemy as sa
        tables = sa.inspect(db.engine).get_table_names()
        if 'registrations' not in tables:
            raise RuntimeError(f"Database setup failed. Tables created: {tables}")

        yield app

        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create test CLI runner."""
    return app.test_cli_runner()


@pytest.fixture
def db_session(app):
    """Create database session for testing."""
    with app.app_context():
        yield db.session

        # Clear all tables for clean state between tests
        try:
            db.session.rollback()
            for table in reversed(db.metadata.sorted_tables):
                db.session.execute(table.delete())
            db.session.commit()
        except Exception:
            db.session.rollback()
        finally:
            db.session.remove()


@pytest.fixture
def core_roles(db_session):
    """Create core roles for testing."""
    roles = []
    for role_name in ['Club Manager']:
        existing_role = db_session.query(Role).filter_by(name=role_name).first()
        if existing_role:
            roles.append(existing_role)
        else:
            role = Role(name=role_name)
            db_session.add(role)
            roles.append(role)

    db_session.commit()
    return roles


@pytest.fixture
def test_member(db_session):
    """Create a verified test member."""
    return VerifiedMemberFactory.create(username='testplayer', nickname='Tester', password='testpassword123')


@pytest.fixture
def club_manager(db_session, core_roles, test_club):
    """Create a member with the Club Manager role running the test club counter."""
    member = MemberFactory.create(username='manager', nickname='Counter', password='managerpassword123')
    member.roles = core_roles
    member.managed_clubs = [test_club]
    db_session.commit()
    return member


@pytest.fixture
def test_club(db_session):
    """Create a test club."""
    return ClubFactory.create(name='Hyper Poker Club', local_id='Hyper-888')


@pytest.fixture
def test_wallet(db_session, test_member, test_club):
    """Approved wallet for test_member at test_club with 5,000 on balance."""
    return WalletFactory.create(member=test_member, club=test_club, balance=5000, status='active')


@pytest.fixture
def test_tournament(db_session, test_club):
    """Tournament at test_club costing 3,000 + 400 with 60 seats."""
    return TournamentFactory.create(club=test_club, name='Daily Deepstack',
                                    buy_in=3000, fee=400, max_cap=60)


@pytest.fixture
def authenticated_client(client, test_member):
    """Create an authenticated client session."""
    with client.session_transaction() as sess:
        sess['_user_id'] = str(test_member.id)
        sess['_fresh'] = True
    return client


@pytest.fixture
def manager_client(client, club_manager):
    """Create an authenticated Club Manager client session."""
    with client.session_transaction() as sess:
        sess['_user_id'] = str(club_manager.id)
        sess['_fresh'] = True
    return client
