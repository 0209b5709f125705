# Standard library imports
from datetime import datetime, date
from typing import Optional

# Third-party imports
import sqlalchemy as sa
import sqlalchemy.orm as so
from flask_login import UserMixin
from sqlalchemy import Table, Column, Integer, ForeignKey
from sqlalchemy.orm import relationship, validates
from werkzeug.security import generate_password_hash, check_password_hash

# Local application imports
from pokerclub import db, login

# Registrations that hold a seat
ACTIVE_REGISTRATION_STATUSES = ('reserved', 'paid')

# Association table for many-to-many relationship
member_roles = Table(
    'member_roles',
    db.Model.metadata,
    Column('member_id', Integer, ForeignKey('member.id', ondelete='CASCADE'), primary_key=True),
    Column('role_id', Integer, ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True)
)

# Clubs whose counter a Club Manager runs
club_managers = Table(
    'club_managers',
    db.Model.metadata,
    Column('member_id', Integer, ForeignKey('member.id', ondelete='CASCADE'), primary_key=True),
    Column('club_id', Integer, ForeignKey('clubs.id', ondelete='CASCADE'), primary_key=True)
)


class Role(db.Model):
    __tablename__ = 'roles'

    id: so.Mapped[int] = so.mapped_column(sa.Integer, primary_key=True)
    name: so.Mapped[str] = so.mapped_column(sa.String(50), nullable=False, unique=True)

    # Relationships
    members: so.Mapped[list['Member']] = so.relationship(
        'Member', secondary=member_roles, back_populates='roles'
    )

    def __repr__(self):
        return f"<Role {self.name}>"


class Member(UserMixin, db.Model):
    __tablename__ = 'member'
    id: so.Mapped[int] = so.mapped_column(primary_key=True)
    username: so.Mapped[str] = so.mapped_column(sa.String(64), index=True,
                                                unique=True)
    password_hash: so.Mapped[Optional[str]] = so.mapped_column(sa.String(256))
    nickname: so.Mapped[Optional[str]] = so.mapped_column(sa.String(64))
    avatar_url: so.Mapped[Optional[str]] = so.mapped_column(sa.String(512), nullable=True)

    # Real-name (KYC) profile
    name: so.Mapped[Optional[str]] = so.mapped_column(sa.String(128), nullable=True)
    national_id: so.Mapped[Optional[str]] = so.mapped_column(sa.String(32), nullable=True)
    birthday: so.Mapped[Optional[date]] = so.mapped_column(sa.Date, nullable=True)
    mobile: so.Mapped[Optional[str]] = so.mapped_column(sa.String(20), index=True, nullable=True)
    mobile_verified: so.Mapped[bool] = so.mapped_column(sa.Boolean, default=False, nullable=False)
    is_foreigner: so.Mapped[bool] = so.mapped_column(sa.Boolean, default=False, nullable=False)
    kyc_uploaded: so.Mapped[bool] = so.mapped_column(sa.Boolean, default=False, nullable=False)
    is_profile_complete: so.Mapped[bool] = so.mapped_column(sa.Boolean, default=False, nullable=False)

    is_admin: so.Mapped[bool] = so.mapped_column(sa.Boolean, default=False)
    last_login: so.Mapped[Optional[datetime]] = so.mapped_column(sa.DateTime, nullable=True)  # Last successful login
    lockout: so.Mapped[bool] = so.mapped_column(sa.Boolean, default=False, nullable=False)  # User lockout status
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)
    roles = relationship('Role', secondary=member_roles, back_populates='members')

    wallets: so.Mapped[list['Wallet']] = so.relationship('Wallet', back_populates='member')
    managed_clubs: so.Mapped[list['Club']] = so.relationship('Club', secondary=club_managers)

    def __repr__(self):
        return '<Member {}>'.format(self.username)

    @property
    def display_name(self):
        return self.nickname or self.username

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if self.password_hash is None or password is None:
            return False
        return check_password_hash(self.password_hash, password)

    def has_role(self, role_name):
        """Check if the member has a specific role."""
        for role in self.roles:
            if role.name == role_name:
                return True
        return False

    def manages_club(self, club_id):
        """Admins manage every club; a Club Manager only the clubs assigned to them."""
        if self.is_admin:
            return True
        return self.has_role('Club Manager') and any(club.id == club_id for club in self.managed_clubs)


@login.user_loader
def load_user(id):
    return db.session.get(Member, int(id))


class Club(db.Model):
    __tablename__ = 'clubs'

    id: so.Mapped[int] = so.mapped_column(sa.Integer, primary_key=True)
    name: so.Mapped[str] = so.mapped_column(sa.String(128), nullable=False)
    description: so.Mapped[Optional[str]] = so.mapped_column(sa.Text, nullable=True)
    banner_url: so.Mapped[Optional[str]] = so.mapped_column(sa.String(512), nullable=True)
    tier: so.Mapped[str] = so.mapped_column(sa.String(16), nullable=False, default='Silver')
    local_id: so.Mapped[str] = so.mapped_column(sa.String(32), nullable=False, unique=True)
    currency: so.Mapped[str] = so.mapped_column(sa.String(8), nullable=False, default='USD')
    feedback_url: so.Mapped[Optional[str]] = so.mapped_column(sa.String(512), nullable=True)
    latitude: so.Mapped[Optional[float]] = so.mapped_column(sa.Float, nullable=True)
    longitude: so.Mapped[Optional[float]] = so.mapped_column(sa.Float, nullable=True)

    tournaments: so.Mapped[list['Tournament']] = so.relationship('Tournament', back_populates='club')
    wallets: so.Mapped[list['Wallet']] = so.relationship('Wallet', back_populates='club')

    def __repr__(self):
        return f"<Club id={self.id}, name='{self.name}', tier={self.tier}>"


class Wallet(db.Model):
    """
    Per-member, per-club balance and membership record.

    A wallet's existence means the member has applied to the club; only
    'active' wallets may register for tournaments. The balance is changed
    exclusively through the ledger functions in pokerclub.wallets.utils.
    """
    __tablename__ = 'wallets'
    __table_args__ = (
        sa.UniqueConstraint('member_id', 'club_id', name='uq_wallet_member_club'),
    )

    id: so.Mapped[int] = so.mapped_column(sa.Integer, primary_key=True)
    member_id: so.Mapped[int] = so.mapped_column(sa.Integer, sa.ForeignKey('member.id'), nullable=False, index=True)
    club_id: so.Mapped[int] = so.mapped_column(sa.Integer, sa.ForeignKey('clubs.id'), nullable=False, index=True)
    balance: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False, default=0)
    points: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False, default=0)
    status: so.Mapped[str] = so.mapped_column(sa.String(16), nullable=False, default='pending')
    join_date: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)

    member: so.Mapped['Member'] = so.relationship('Member', back_populates='wallets')
    club: so.Mapped['Club'] = so.relationship('Club', back_populates='wallets')
    transactions: so.Mapped[list['WalletTransaction']] = so.relationship(
        'WalletTransaction', back_populates='wallet', order_by='WalletTransaction.id'
    )

    def __repr__(self):
        return f"<Wallet member_id={self.member_id}, club_id={self.club_id}, balance={self.balance}, status={self.status}>"

    @property
    def is_active(self):
        return self.status == 'active'


class WalletTransaction(db.Model):
    """Immutable ledger row, one per balance movement"""
    __tablename__ = 'wallet_transactions'

    id: so.Mapped[int] = so.mapped_column(sa.Integer, primary_key=True)
    wallet_id: so.Mapped[int] = so.mapped_column(sa.Integer, sa.ForeignKey('wallets.id'), nullable=False, index=True)
    amount: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False)  # Always positive; direction is given by type
    type: so.Mapped[str] = so.mapped_column(sa.String(16), nullable=False)  # deposit, withdraw, buy_in, refund
    registration_id: so.Mapped[Optional[int]] = so.mapped_column(sa.Integer, sa.ForeignKey('registrations.id'), nullable=True)
    description: so.Mapped[Optional[str]] = so.mapped_column(sa.String(255), nullable=True)
    balance_after: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False)
    completed_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)

    wallet: so.Mapped['Wallet'] = so.relationship('Wallet', back_populates='transactions')
    registration: so.Mapped[Optional['Registration']] = so.relationship('Registration')

    def __repr__(self):
        return f"<WalletTransaction id={self.id}, type={self.type}, amount={self.amount}, wallet_id={self.wallet_id}>"


class Tournament(db.Model):
    __tablename__ = 'tournaments'

    id: so.Mapped[int] = so.mapped_column(sa.Integer, primary_key=True)
    club_id: so.Mapped[int] = so.mapped_column(sa.Integer, sa.ForeignKey('clubs.id'), nullable=False, index=True)
    name: so.Mapped[str] = so.mapped_column(sa.String(256), nullable=False)
    description: so.Mapped[Optional[str]] = so.mapped_column(sa.Text, nullable=True)
    tournament_type: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False, default=1)
    promotion_note: so.Mapped[Optional[str]] = so.mapped_column(sa.Text, nullable=True)
    buy_in: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False)
    fee: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False, default=0)
    starting_chips: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False, default=0)
    max_cap: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False)
    start_time: so.Mapped[datetime] = so.mapped_column(sa.DateTime, nullable=False, index=True)
    late_reg_level: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False, default=0)
    clock_url: so.Mapped[Optional[str]] = so.mapped_column(sa.String(512), nullable=True)
    structure: so.Mapped[list] = so.mapped_column(sa.JSON, nullable=False, default=list)
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)

    club: so.Mapped['Club'] = so.relationship('Club', back_populates='tournaments')
    registrations: so.Mapped[list['Registration']] = so.relationship('Registration', back_populates='tournament')

    def __repr__(self):
        return f"<Tournament id={self.id}, name='{self.name}', club_id={self.club_id}, start={self.start_time}>"

    @validates('structure')
    def validate_structure(self, key, value):
        """Store blind structures in the canonical level shape only"""
        from pokerclub.tournaments.utils import normalize_blind_structure
        return normalize_blind_structure(value)

    @property
    def total_cost(self):
        """Amount debited from the wallet on buy-in"""
        return self.buy_in + self.fee

    def get_tournament_type_name(self):
        """
        Get the human-readable name for the tournament type.
        """
        from flask import current_app
        tournament_types = current_app.config.get('TOURNAMENT_TYPES', {})
        for name, value in tournament_types.items():
            if value == self.tournament_type:
                return name
        return "Unknown"


class Registration(db.Model):
    """
    A member's entry into a tournament.

    Status moves reserved -> paid (upgrade) and reserved/paid -> cancelled.
    Cancelled rows are kept; a member may hold at most one non-cancelled
    registration per tournament.
    """
    __tablename__ = 'registrations'

    id: so.Mapped[int] = so.mapped_column(sa.Integer, primary_key=True)
    tournament_id: so.Mapped[int] = so.mapped_column(sa.Integer, sa.ForeignKey('tournaments.id'), nullable=False, index=True)
    member_id: so.Mapped[int] = so.mapped_column(sa.Integer, sa.ForeignKey('member.id'), nullable=False, index=True)
    status: so.Mapped[str] = so.mapped_column(sa.String(16), nullable=False, default='reserved')
    registered_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)
    last_updated: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    cancelled_at: so.Mapped[Optional[datetime]] = so.mapped_column(sa.DateTime, nullable=True)

    tournament: so.Mapped['Tournament'] = so.relationship('Tournament', back_populates='registrations')
    member: so.Mapped['Member'] = so.relationship('Member')

    def __repr__(self):
        return f"<Registration id={self.id}, tournament_id={self.tournament_id}, member_id={self.member_id}, status={self.status}>"

    @property
    def is_active(self):
        return self.status != 'cancelled'


class IdempotencyKey(db.Model):
    """Outcome of a keyed register/cancel call, replayed on retry"""
    __tablename__ = 'idempotency_keys'
    __table_args__ = (
        sa.UniqueConstraint('member_id', 'key', name='uq_idempotency_member_key'),
    )

    id: so.Mapped[int] = so.mapped_column(sa.Integer, primary_key=True)
    member_id: so.Mapped[int] = so.mapped_column(sa.Integer, sa.ForeignKey('member.id'), nullable=False)
    key: so.Mapped[str] = so.mapped_column(sa.String(128), nullable=False)
    operation: so.Mapped[str] = so.mapped_column(sa.String(32), nullable=False)
    registration_id: so.Mapped[int] = so.mapped_column(sa.Integer, sa.ForeignKey('registrations.id'), nullable=False)
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)

    registration: so.Mapped['Registration'] = so.relationship('Registration')


class GameRecord(db.Model):
    __tablename__ = 'game_records'

    id: so.Mapped[int] = so.mapped_column(sa.Integer, primary_key=True)
    member_id: so.Mapped[int] = so.mapped_column(sa.Integer, sa.ForeignKey('member.id'), nullable=False, index=True)
    club_id: so.Mapped[int] = so.mapped_column(sa.Integer, sa.ForeignKey('clubs.id'), nullable=False)
    tournament_id: so.Mapped[Optional[int]] = so.mapped_column(sa.Integer, sa.ForeignKey('tournaments.id'), nullable=True)
    played_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, nullable=False)
    game_name: so.Mapped[str] = so.mapped_column(sa.String(256), nullable=False)
    tournament_type: so.Mapped[Optional[int]] = so.mapped_column(sa.Integer, nullable=True)
    buy_in: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False, default=0)
    entry_count: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False, default=1)
    seat_number: so.Mapped[Optional[int]] = so.mapped_column(sa.Integer, nullable=True)
    profit: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False, default=0)
    points: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False, default=0)
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)

    member: so.Mapped['Member'] = so.relationship('Member')
    club: so.Mapped['Club'] = so.relationship('Club')

    def __repr__(self):
        return f"<GameRecord id={self.id}, member_id={self.member_id}, game='{self.game_name}', profit={self.profit}>"
