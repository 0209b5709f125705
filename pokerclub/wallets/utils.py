"""
Wallet ledger utility functions.

A wallet is a member's account with one club: membership status, spendable
balance and loyalty points. credit() and debit() never commit; they are
always called inside a larger transaction opened by the registration engine
or by a cashier operation below.
"""

from typing import Dict, Any, Optional
from sqlalchemy.exc import IntegrityError
import sqlalchemy as sa

from pokerclub import db
from pokerclub.models import Wallet, WalletTransaction, Registration, Club
from pokerclub.errors import NotAMember, AlreadyMember, InsufficientFunds, StoreUnavailable
from pokerclub.utils import atomic
from pokerclub.audit import audit_log_create, audit_log_update, audit_log_wallet_movement


def get_wallet(member_id: int, club_id: int, for_update: bool = False) -> Optional[Wallet]:
    """
    Get a member's wallet for a club.

    Args:
        member_id: The member
        club_id: The club
        for_update: Lock the wallet row until the transaction ends

    Returns:
        The Wallet, or None if the member has never applied to the club
    """
    query = sa.select(Wallet).where(Wallet.member_id == member_id, Wallet.club_id == club_id)
    if for_update:
        query = query.with_for_update()
    return db.session.scalar(query)


def _require_wallet(member_id: int, club_id: int) -> Wallet:
    wallet = get_wallet(member_id, club_id, for_update=True)
    if wallet is None:
        raise NotAMember()
    return wallet


def _check_amount(amount: int):
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValueError(f"Ledger amounts must be positive integers, got {amount!r}")


def credit(member_id: int, club_id: int, amount: int, transaction_type: str,
           registration: Optional[Registration] = None,
           description: Optional[str] = None) -> WalletTransaction:
    """
    Add to a wallet balance and record the movement.

    Does not commit. Raises NotAMember if the wallet does not exist.
    """
    _check_amount(amount)
    wallet = _require_wallet(member_id, club_id)

    wallet.balance += amount
    transaction = WalletTransaction(
        wallet=wallet,
        amount=amount,
        type=transaction_type,
        registration=registration,
        description=description,
        balance_after=wallet.balance
    )
    db.session.add(transaction)
    return transaction


def debit(member_id: int, club_id: int, amount: int, transaction_type: str,
          registration: Optional[Registration] = None,
          description: Optional[str] = None) -> WalletTransaction:
    """
    Subtract from a wallet balance and record the movement.

    Does not commit. Raises NotAMember if the wallet does not exist and
    InsufficientFunds if the balance is lower than the amount; the balance
    never goes negative.
    """
    _check_amount(amount)
    wallet = _require_wallet(member_id, club_id)

    if wallet.balance < amount:
        raise InsufficientFunds(
            f'Insufficient balance. Required: {amount:,}, available: {wallet.balance:,}',
            required=amount,
            balance=wallet.balance
        )

    wallet.balance -= amount
    transaction = WalletTransaction(
        wallet=wallet,
        amount=amount,
        type=transaction_type,
        registration=registration,
        description=description,
        balance_after=wallet.balance
    )
    db.session.add(transaction)
    return transaction


def join(member_id: int, club_id: int) -> Wallet:
    """
    Apply for membership of a club.

    Creates a wallet with zero balance and points in 'pending' status.

    Args:
        member_id: The applying member
        club_id: The club to join

    Returns:
        The new Wallet

    Raises:
        AlreadyMember: A wallet already exists for the pair
    """
    try:
        with atomic('club join'):
            if get_wallet(member_id, club_id) is not None:
                raise AlreadyMember()

            wallet = Wallet(member_id=member_id, club_id=club_id, balance=0, points=0, status='pending')
            db.session.add(wallet)
            db.session.flush()
    except StoreUnavailable as e:
        # A concurrent join won the race for the unique (member, club) pair
        if isinstance(e.__cause__, IntegrityError):
            raise AlreadyMember() from e
        raise

    audit_log_create('Wallet', wallet.id, f'Applied to join club {club_id}',
                     {'member_id': member_id, 'status': wallet.status})
    return wallet


def list_wallets(member_id: int) -> list[Wallet]:
    """All of a member's wallets except banned ones, oldest membership first"""
    return db.session.scalars(
        sa.select(Wallet)
        .where(Wallet.member_id == member_id, Wallet.status != 'banned')
        .order_by(Wallet.join_date, Wallet.id)
    ).all()


def _set_membership_status(member_id: int, club_id: int, status: str, description: str) -> Wallet:
    with atomic(f'membership status change to {status}'):
        wallet = _require_wallet(member_id, club_id)
        old_status = wallet.status
        wallet.status = status

    audit_log_update('Wallet', wallet.id, description, {'status': old_status})
    return wallet


def approve_membership(member_id: int, club_id: int) -> Wallet:
    """Mark a member verified at the counter, allowing tournament registration"""
    return _set_membership_status(member_id, club_id, 'active',
                                  f'Approved membership of member {member_id} in club {club_id}')


def ban_membership(member_id: int, club_id: int) -> Wallet:
    """Suspend a member from a club"""
    return _set_membership_status(member_id, club_id, 'banned',
                                  f'Suspended membership of member {member_id} in club {club_id}')


def cashier_deposit(member_id: int, club_id: int, amount: int,
                    description: Optional[str] = None) -> WalletTransaction:
    """
    Credit cash taken at the club counter to a member's wallet.

    Raises:
        NotAMember: The member has no wallet with the club
    """
    with atomic('cashier deposit'):
        transaction = credit(member_id, club_id, amount, 'deposit',
                             description=description or 'Counter deposit')

    audit_log_wallet_movement('deposit', transaction.wallet, amount, transaction.description)
    return transaction


def cashier_withdraw(member_id: int, club_id: int, amount: int,
                     description: Optional[str] = None) -> WalletTransaction:
    """
    Pay out wallet balance at the club counter.

    Raises:
        NotAMember: The member has no wallet with the club
        InsufficientFunds: The withdrawal exceeds the balance
    """
    with atomic('cashier withdrawal'):
        transaction = debit(member_id, club_id, amount, 'withdraw',
                            description=description or 'Counter withdrawal')

    audit_log_wallet_movement('withdraw', transaction.wallet, amount, transaction.description)
    return transaction


def get_transactions(member_id: int, club_id: int, include_all: bool = False) -> list[WalletTransaction]:
    """
    Get a member's ledger for a club, most recent first.

    Args:
        member_id: The member
        club_id: The club
        include_all: Also include buy-in and refund movements; by default
            only counter deposits and withdrawals are returned

    Raises:
        NotAMember: The member has no wallet with the club
    """
    wallet = get_wallet(member_id, club_id)
    if wallet is None:
        raise NotAMember()

    query = sa.select(WalletTransaction).where(WalletTransaction.wallet_id == wallet.id)
    if not include_all:
        query = query.where(WalletTransaction.type.in_(['deposit', 'withdraw']))

    return db.session.scalars(
        query.order_by(WalletTransaction.completed_at.desc(), WalletTransaction.id.desc())
    ).all()


def serialize_wallet(wallet: Wallet) -> Dict[str, Any]:
    club: Club = wallet.club
    return {
        'member_id': wallet.member_id,
        'club_id': wallet.club_id,
        'club_name': club.name if club else None,
        'currency': club.currency if club else None,
        'balance': wallet.balance,
        'points': wallet.points,
        'status': wallet.status,
        'join_date': wallet.join_date.isoformat() if wallet.join_date else None,
    }


def serialize_transaction(transaction: WalletTransaction) -> Dict[str, Any]:
    return {
        'id': transaction.id,
        'type': transaction.type,
        'amount': transaction.amount,
        'balance_after': transaction.balance_after,
        'registration_id': transaction.registration_id,
        'description': transaction.description,
        'completed_at': transaction.completed_at.isoformat() if transaction.completed_at else None,
    }
