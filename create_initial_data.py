#!/usr/bin/env python3
"""
Initial Data Population Script

Seeds a fresh database with the Club Manager role, the launch clubs and
their tournament schedules, and an optional demo player.
Run this after creating the database schema with the initial migration.

Usage:
    source venv/bin/activate
    flask db upgrade
    python create_initial_data.py [--demo]
"""

import os
import sys
from datetime import datetime, timedelta

import sqlalchemy as sa
from dotenv import load_dotenv
from flask import current_app

# Load environment variables from .flaskenv before the config module is imported
load_dotenv(".flaskenv")

from pokerclub import create_app, db
from pokerclub.models import Role, Member, Club, Tournament, Wallet
from pokerclub.audit import audit_log_system_event
from pokerclub.wallets.utils import join, approve_membership, cashier_deposit


BLIND_STRUCTURE = [
    {'level': 1, 'small_blind': 100, 'big_blind': 100, 'ante': 100, 'duration': 20},
    {'level': 2, 'small_blind': 100, 'big_blind': 200, 'ante': 200, 'duration': 20},
    {'level': 3, 'small_blind': 200, 'big_blind': 300, 'ante': 300, 'duration': 20},
    {'level': 4, 'small_blind': 200, 'big_blind': 400, 'ante': 400, 'duration': 20},
    {'level': 5, 'small_blind': 300, 'big_blind': 600, 'ante': 600, 'duration': 20},
    {'level': 6, 'small_blind': 400, 'big_blind': 800, 'ante': 800, 'duration': 20},
    {'level': 7, 'small_blind': 500, 'big_blind': 1000, 'ante': 1000, 'duration': 20},
    {'level': 8, 'small_blind': 600, 'big_blind': 1200, 'ante': 1200, 'duration': 20},
]

SEED_CLUBS = [
    {
        'local_id': 'Hyper-888',
        'name': 'Hyper Poker Club',
        'description': "Taipei's premier hold'em association. High-stakes events every week.",
        'tier': 'Platinum',
        'feedback_url': 'https://forms.gle/placeholder_feedback_form',
    },
    {
        'local_id': 'AH-007',
        'name': 'Ace High Taipei',
        'description': 'Promoting poker as a healthy sport. Beginner friendly.',
        'tier': 'Emerald',
        'feedback_url': 'https://forms.gle/placeholder_feedback_form',
    },
    {
        'local_id': 'RFA-999',
        'name': 'Royal Flush Arena',
        'description': 'The largest tournament venue in Taiwan.',
        'tier': 'Diamond',
    },
]

# start_offset is hours from now; negative values are already under way
SEED_TOURNAMENTS = {
    'Hyper-888': [
        {'name': 'Daily Deepstack', 'tournament_type': 1, 'buy_in': 3000, 'fee': 400,
         'starting_chips': 20000, 'max_cap': 60, 'late_reg_level': 6, 'start_offset': 1,
         'promotion_note': 'Early bird: register before the start for 2,000 bonus chips.'},
        {'name': 'High Roller', 'tournament_type': 1, 'buy_in': 10000, 'fee': 1000,
         'starting_chips': 50000, 'max_cap': 20, 'late_reg_level': 8, 'start_offset': 4,
         'promotion_note': 'Buffet and open bar included.'},
        {'name': 'Turbo Bounty Hunter', 'tournament_type': 4, 'buy_in': 2000, 'fee': 300,
         'starting_chips': 15000, 'max_cap': 60, 'late_reg_level': 4, 'start_offset': -2,
         'promotion_note': '500 bounty for every player you knock out.'},
    ],
    'AH-007': [
        {'name': 'Friday Night Frenzy', 'tournament_type': 1, 'buy_in': 2000, 'fee': 200,
         'starting_chips': 15000, 'max_cap': 50, 'late_reg_level': 6, 'start_offset': 2,
         'promotion_note': 'Free beer at the venue.'},
        {'name': 'Elite Heads-Up', 'tournament_type': 1, 'buy_in': 5000, 'fee': 500,
         'starting_chips': 30000, 'max_cap': 10, 'late_reg_level': 4, 'start_offset': 3},
        {'name': 'Afternoon Tea Satellite', 'tournament_type': 3, 'buy_in': 500, 'fee': 50,
         'starting_chips': 5000, 'max_cap': 40, 'late_reg_level': 4, 'start_offset': -1},
    ],
    'RFA-999': [],
}


def create_initial_roles():
    """Create the core club management roles."""
    print("Creating initial roles...")
    created_count = 0

    for role_name in current_app.config['CORE_ROLES']:
        existing_role = db.session.scalar(sa.select(Role).where(Role.name == role_name))
        if not existing_role:
            db.session.add(Role(name=role_name))
            created_count += 1
            print(f"  - Created role: {role_name}")
        else:
            print(f"  - Role already exists: {role_name}")

    db.session.commit()
    print(f"Roles created: {created_count}")
    return created_count


def create_clubs_and_tournaments():
    """Create the launch clubs and their schedules, skipping clubs already present."""
    print("\nCreating clubs and tournaments...")
    now = datetime.utcnow()
    clubs_created = 0
    tournaments_created = 0

    for club_data in SEED_CLUBS:
        existing_club = db.session.scalar(sa.select(Club).where(Club.local_id == club_data['local_id']))
        if existing_club:
            print(f"  - Club already exists: {existing_club.name}")
            continue

        club = Club(**club_data)
        db.session.add(club)
        db.session.flush()
        clubs_created += 1
        print(f"  - Created club: {club.name}")

        for tournament_data in SEED_TOURNAMENTS.get(club.local_id, []):
            values = dict(tournament_data)
            start_time = now + timedelta(hours=values.pop('start_offset'))
            db.session.add(Tournament(
                club_id=club.id,
                start_time=start_time,
                structure=BLIND_STRUCTURE,
                **values
            ))
            tournaments_created += 1
            print(f"      * {values['name']} at {start_time:%Y-%m-%d %H:%M} UTC")

    db.session.commit()
    print(f"Clubs created: {clubs_created}, tournaments created: {tournaments_created}")
    return clubs_created, tournaments_created


def create_demo_player():
    """
    Create a demo player: approved with a funded wallet at the first club,
    and a pending application at the second.
    """
    print("\nCreating demo player...")
    if db.session.scalar(sa.select(Member).where(Member.username == 'demo')):
        print("  - Demo player already exists")
        return None

    member = Member(username='demo', nickname='Demo Player', mobile='0912345678',
                    name='Demo Player', is_profile_complete=True)
    member.set_password(os.environ.get('DEMO_PASSWORD', 'demo-password'))
    db.session.add(member)
    db.session.commit()

    clubs = db.session.scalars(sa.select(Club).order_by(Club.id)).all()
    if clubs:
        join(member.id, clubs[0].id)
        approve_membership(member.id, clubs[0].id)
        cashier_deposit(member.id, clubs[0].id, 50000, 'Opening balance')
    if len(clubs) > 1:
        join(member.id, clubs[1].id)

    wallet_count = db.session.scalar(
        sa.select(sa.func.count(Wallet.id)).where(Wallet.member_id == member.id)
    )
    print(f"  - Created demo player 'demo' with {wallet_count} club wallets")
    return member


def verify_database_structure():
    """Verify that all expected tables exist."""
    print("\nVerifying database structure...")

    expected_tables = [
        'roles', 'member', 'member_roles', 'clubs', 'club_managers', 'wallets', 'wallet_transactions',
        'tournaments', 'registrations', 'idempotency_keys', 'game_records'
    ]

    existing_tables = sa.inspect(db.engine).get_table_names()

    missing_tables = []
    for table in expected_tables:
        if table in existing_tables:
            print(f"  ✓ Table '{table}' exists")
        else:
            print(f"  ✗ Table '{table}' missing")
            missing_tables.append(table)

    if missing_tables:
        print(f"\nERROR: Missing tables: {missing_tables}")
        print("Please run the database migration first:")
        print("  flask db upgrade")
        return False

    print("Database structure verification complete!")
    return True


def main():
    """Main function to set up initial data."""
    print("=" * 60)
    print("POKER CLUB - Initial Data Setup")
    print("=" * 60)

    app = create_app(os.getenv('FLASK_CONFIG') or 'development')
    with app.app_context():
        if not verify_database_structure():
            sys.exit(1)

        roles_created = create_initial_roles()
        clubs_created, tournaments_created = create_clubs_and_tournaments()
        demo = create_demo_player() if '--demo' in sys.argv else None

        audit_log_system_event(
            'INITIALIZATION',
            f'Initial data: {roles_created} roles, {clubs_created} clubs, '
            f'{tournaments_created} tournaments, demo player {"created" if demo else "skipped"}'
        )

        print("\n" + "=" * 60)
        print("SETUP COMPLETE!")
        print("=" * 60)
        print("\nNEXT STEPS:")
        print("1. Start the Flask application (flask run)")
        print("2. Sign up through /members/api/v1/signup")
        print("3. Grant the 'Club Manager' role to counter staff and assign their clubs")


if __name__ == '__main__':
    main()
