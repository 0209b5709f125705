"""
Tournament registration engine.

A member's relationship to a tournament moves through these states:

    NONE --register(reserve)--> RESERVED --register(buy-in)/upgrade--> PAID
    NONE --register(buy-in)---> PAID
    RESERVED/PAID --cancel--> CANCELLED

CANCELLED is terminal for that registration row; a new row may be created
for the same member and tournament afterwards. Each public operation runs
as a single database transaction: the wallet movement and the registration
change are committed together or not at all, and every rejected call leaves
both untouched.

Capacity is checked and the seat taken while holding a per-tournament lock
(an in-process mutex plus SELECT ... FOR UPDATE on the tournament row), so
concurrent callers cannot both pass the check at the last seat.
"""

import threading
import weakref
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from flask import current_app

from pokerclub import db
from pokerclub.models import Tournament, Registration, IdempotencyKey, Wallet, ACTIVE_REGISTRATION_STATUSES
from pokerclub.errors import (
    TournamentNotFound, RegistrationClosed, NotAMember, MembershipPending, MembershipSuspended,
    AlreadyRegistered, NotRegistered, TournamentFull, IdempotencyKeyReused
)
from pokerclub.utils import atomic
from pokerclub.wallets.utils import get_wallet, credit, debit
from pokerclub.tournaments.utils import is_late_reg_ended, get_reserved_count
from pokerclub.audit import audit_log_create, audit_log_update, audit_log_wallet_movement

MODE_RESERVE = 'reserve'
MODE_BUY_IN = 'buy-in'

STATE_NONE = 'NONE'
STATE_RESERVED = 'RESERVED'
STATE_PAID = 'PAID'

_REFUND_POLICIES = {
    'full': lambda tournament: tournament.buy_in + tournament.fee,
    'buy_in_only': lambda tournament: tournament.buy_in,
}

# Entries vanish once no caller holds the lock
_tournament_locks = weakref.WeakValueDictionary()
_tournament_locks_guard = threading.Lock()


def _tournament_lock(tournament_id: int) -> threading.Lock:
    with _tournament_locks_guard:
        return _tournament_locks.setdefault(tournament_id, threading.Lock())


def _load_tournament(tournament_id: int) -> Tournament:
    tournament = db.session.scalar(
        sa.select(Tournament).where(Tournament.id == tournament_id).with_for_update()
    )
    if tournament is None:
        raise TournamentNotFound()
    return tournament


def _check_membership(wallet: Optional[Wallet]):
    if wallet is None:
        raise NotAMember()
    if wallet.status == 'banned':
        raise MembershipSuspended()
    if wallet.status != 'active':
        raise MembershipPending()


def _get_active_registration(member_id: int, tournament_id: int) -> Optional[Registration]:
    return db.session.scalar(
        sa.select(Registration)
        .where(
            Registration.member_id == member_id,
            Registration.tournament_id == tournament_id,
            Registration.status.in_(ACTIVE_REGISTRATION_STATUSES)
        )
        .with_for_update()
    )


def _replay(member_id: int, key: Optional[str], operation: str, tournament_id: int) -> Optional[Registration]:
    """Return the registration recorded for a previously used key, if any"""
    if not key:
        return None

    record = db.session.scalar(
        sa.select(IdempotencyKey).where(IdempotencyKey.member_id == member_id, IdempotencyKey.key == key)
    )
    if record is None:
        return None
    if record.operation != operation or record.registration.tournament_id != tournament_id:
        raise IdempotencyKeyReused()

    current_app.logger.info(f"Replaying {operation} for member {member_id} with idempotency key {key}")
    return record.registration


def _remember(member_id: int, key: Optional[str], operation: str, registration: Registration):
    if key:
        db.session.add(IdempotencyKey(
            member_id=member_id, key=key, operation=operation, registration=registration
        ))


def _refund_amount(tournament: Tournament) -> int:
    policy = current_app.config.get('REFUND_POLICY', 'full')
    if policy not in _REFUND_POLICIES:
        raise ValueError(f"Unknown REFUND_POLICY: {policy}")
    return _REFUND_POLICIES[policy](tournament)


def _pay(member_id: int, tournament: Tournament, registration: Registration):
    """Debit buy_in + fee; a free tournament moves no money and returns None"""
    if tournament.total_cost == 0:
        return None
    return debit(member_id, tournament.club_id, tournament.total_cost, 'buy_in',
                 registration=registration,
                 description=f'Buy-in: {tournament.name}')


def _upgrade_in_place(member_id: int, tournament: Tournament, registration: Registration):
    """Pay for a reserved seat; the registration keeps its id and timestamp"""
    transaction = _pay(member_id, tournament, registration)
    registration.status = 'paid'
    return transaction


def register(member_id: int, tournament_id: int, mode: str,
             idempotency_key: Optional[str] = None) -> Registration:
    """
    Register a member for a tournament.

    With mode 'reserve' a seat is held and no money moves. With mode 'buy-in'
    buy_in + fee is debited from the member's club wallet and the seat is
    paid. A 'buy-in' against an existing reserved registration upgrades that
    registration in place instead of creating a second one.

    Args:
        member_id: The registering member
        tournament_id: The tournament
        mode: 'reserve' or 'buy-in'
        idempotency_key: Optional client key; a repeated key returns the
            original registration without further effect

    Returns:
        The created or upgraded Registration

    Raises:
        TournamentNotFound, RegistrationClosed, NotAMember, MembershipPending,
        MembershipSuspended, AlreadyRegistered, TournamentFull,
        InsufficientFunds, IdempotencyKeyReused, StoreUnavailable
    """
    if mode not in (MODE_RESERVE, MODE_BUY_IN):
        raise ValueError(f"Unknown registration mode: {mode}")

    upgraded = False
    transaction = None
    with _tournament_lock(tournament_id):
        with atomic('tournament registration'):
            replayed = _replay(member_id, idempotency_key, 'register', tournament_id)
            if replayed is not None:
                return replayed

            tournament = _load_tournament(tournament_id)
            if is_late_reg_ended(tournament):
                raise RegistrationClosed()

            _check_membership(get_wallet(member_id, tournament.club_id, for_update=True))

            registration = _get_active_registration(member_id, tournament_id)
            if registration is not None:
                if registration.status == 'reserved' and mode == MODE_BUY_IN:
                    transaction = _upgrade_in_place(member_id, tournament, registration)
                    upgraded = True
                else:
                    raise AlreadyRegistered()
            else:
                reserved_count = get_reserved_count(tournament_id)
                if reserved_count >= tournament.max_cap:
                    raise TournamentFull(
                        f'{tournament.name} is full ({reserved_count}/{tournament.max_cap}).',
                        max_cap=tournament.max_cap
                    )

                registration = Registration(
                    tournament_id=tournament_id,
                    member_id=member_id,
                    status='paid' if mode == MODE_BUY_IN else 'reserved'
                )
                if mode == MODE_BUY_IN:
                    transaction = _pay(member_id, tournament, registration)
                db.session.add(registration)

            _remember(member_id, idempotency_key, 'register', registration)
            db.session.flush()
            tournament_name = tournament.name

    if upgraded:
        audit_log_update('Registration', registration.id,
                         f'Upgraded reservation to paid for: {tournament_name}', {'status': 'reserved'})
    else:
        audit_log_create('Registration', registration.id,
                         f'Registered ({registration.status}) for: {tournament_name}',
                         {'member_id': member_id, 'tournament_id': tournament_id})
    if transaction is not None:
        audit_log_wallet_movement('buy_in', transaction.wallet, transaction.amount, transaction.description)

    return registration


def upgrade(member_id: int, tournament_id: int, idempotency_key: Optional[str] = None) -> Registration:
    """
    Pay for an existing reservation.

    Debits buy_in + fee and moves the reserved registration to 'paid' in
    place. Capacity is not re-checked since the seat is already held.

    Raises:
        TournamentNotFound, RegistrationClosed, NotAMember, MembershipPending,
        MembershipSuspended, NotRegistered (no reservation),
        AlreadyRegistered (already paid), InsufficientFunds, StoreUnavailable
    """
    with _tournament_lock(tournament_id):
        with atomic('registration upgrade'):
            replayed = _replay(member_id, idempotency_key, 'upgrade', tournament_id)
            if replayed is not None:
                return replayed

            tournament = _load_tournament(tournament_id)
            if is_late_reg_ended(tournament):
                raise RegistrationClosed()

            _check_membership(get_wallet(member_id, tournament.club_id, for_update=True))

            registration = _get_active_registration(member_id, tournament_id)
            if registration is None:
                raise NotRegistered()
            if registration.status != 'reserved':
                raise AlreadyRegistered()

            transaction = _upgrade_in_place(member_id, tournament, registration)
            _remember(member_id, idempotency_key, 'upgrade', registration)
            tournament_name = tournament.name

    audit_log_update('Registration', registration.id,
                     f'Upgraded reservation to paid for: {tournament_name}', {'status': 'reserved'})
    if transaction is not None:
        audit_log_wallet_movement('buy_in', transaction.wallet, transaction.amount, transaction.description)
    return registration


def cancel(member_id: int, tournament_id: int, idempotency_key: Optional[str] = None) -> Registration:
    """
    Cancel a member's active registration.

    A paid registration is refunded according to REFUND_POLICY ('full'
    returns buy_in + fee, 'buy_in_only' keeps the fee). A reserved one
    moves no money. The row is kept with status 'cancelled'.

    Returns:
        The cancelled Registration

    Raises:
        TournamentNotFound, NotRegistered, IdempotencyKeyReused, StoreUnavailable
    """
    transaction = None
    with _tournament_lock(tournament_id):
        with atomic('registration cancellation'):
            replayed = _replay(member_id, idempotency_key, 'cancel', tournament_id)
            if replayed is not None:
                return replayed

            tournament = _load_tournament(tournament_id)

            registration = _get_active_registration(member_id, tournament_id)
            if registration is None:
                raise NotRegistered()

            old_status = registration.status
            if old_status == 'paid':
                refund = _refund_amount(tournament)
                if refund > 0:
                    transaction = credit(member_id, tournament.club_id, refund, 'refund',
                                         registration=registration,
                                         description=f'Refund: {tournament.name}')

            registration.status = 'cancelled'
            registration.cancelled_at = datetime.utcnow()
            _remember(member_id, idempotency_key, 'cancel', registration)
            tournament_name = tournament.name

    audit_log_update('Registration', registration.id,
                     f'Cancelled registration for: {tournament_name}', {'status': old_status})
    if transaction is not None:
        audit_log_wallet_movement('refund', transaction.wallet, transaction.amount, transaction.description)

    return registration


def get_registration_state(member_id: int, tournament_id: int) -> str:
    """Return 'NONE', 'RESERVED' or 'PAID' for a member and tournament"""
    registration = db.session.scalar(
        sa.select(Registration).where(
            Registration.member_id == member_id,
            Registration.tournament_id == tournament_id,
            Registration.status.in_(ACTIVE_REGISTRATION_STATUSES)
        )
    )
    if registration is None:
        return STATE_NONE
    return STATE_PAID if registration.status == 'paid' else STATE_RESERVED


def get_my_registrations(member_id: int) -> list[Registration]:
    """A member's active registrations, soonest tournament first"""
    return db.session.scalars(
        sa.select(Registration)
        .join(Tournament, Registration.tournament_id == Tournament.id)
        .where(
            Registration.member_id == member_id,
            Registration.status.in_(ACTIVE_REGISTRATION_STATUSES)
        )
        .order_by(Tournament.start_time, Registration.id)
    ).all()
