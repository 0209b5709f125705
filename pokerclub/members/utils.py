# Standard library imports
from datetime import datetime

# Third-party imports
import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from flask import current_app

# Local application imports
from pokerclub import db
from pokerclub.models import Member, Wallet, GameRecord, Tournament
from pokerclub.errors import NotAMember, TournamentNotFound, UsernameTaken, StoreUnavailable
from pokerclub.utils import atomic
from pokerclub.audit import audit_log_create, audit_log_update, get_model_changes


def get_member_data(member):
    """
    Format a member's own profile for the API.

    Args:
        member (Member): The member to format.

    Returns:
        dict: Profile fields, including the KYC fields the member entered.
    """
    return {
        'id': member.id,
        'username': member.username,
        'nickname': member.nickname,
        'display_name': member.display_name,
        'avatar_url': member.avatar_url,
        'name': member.name,
        'national_id': member.national_id,
        'birthday': member.birthday.isoformat() if member.birthday else None,
        'mobile': member.mobile,
        'mobile_verified': member.mobile_verified,
        'is_foreigner': member.is_foreigner,
        'kyc_uploaded': member.kyc_uploaded,
        'is_profile_complete': member.is_profile_complete,
        'roles': [role.name for role in member.roles],
    }


def create_member(username, password, mobile=None):
    """
    Create a member account with an incomplete profile.

    Returns:
        Member: The new member.

    Raises:
        UsernameTaken: Another signup claimed the username first
    """
    try:
        with atomic('member signup'):
            member = Member(username=username, nickname=username, mobile=mobile or None)
            member.set_password(password)
            db.session.add(member)
            db.session.flush()
    except StoreUnavailable as e:
        # A concurrent signup won the race for the unique username
        if isinstance(e.__cause__, IntegrityError):
            raise UsernameTaken(field='username') from e
        raise

    audit_log_create('Member', member.id, f'Signed up: {member.username}')
    return member


def update_profile(member, nickname=None, avatar_url=None):
    """
    Update non-sensitive profile fields. Membership status is unaffected.
    """
    new_values = {'nickname': nickname or member.username, 'avatar_url': avatar_url}
    changes = get_model_changes(member, new_values)

    with atomic('profile update'):
        member.nickname = new_values['nickname']
        member.avatar_url = new_values['avatar_url']

    if changes:
        audit_log_update('Member', member.id, 'Updated profile', changes)
    return member


def submit_kyc(member, name, national_id, birthday, mobile, is_foreigner=False, kyc_uploaded=False):
    """
    Store a member's real-name details and mark the profile complete.

    Every wallet the member holds that is not banned goes back to 'pending':
    changed identity details must be re-verified at each club's counter
    before the member can register for tournaments again.

    Returns:
        int: Number of wallets reset to pending.
    """
    with atomic('KYC submission'):
        mobile_changed = member.mobile != mobile
        member.name = name
        member.national_id = national_id
        member.birthday = birthday
        member.mobile = mobile
        if mobile_changed:
            member.mobile_verified = False
        member.is_foreigner = bool(is_foreigner)
        member.kyc_uploaded = bool(kyc_uploaded)
        member.is_profile_complete = True

        wallets = db.session.scalars(
            sa.select(Wallet).where(Wallet.member_id == member.id, Wallet.status != 'banned')
        ).all()
        for wallet in wallets:
            wallet.status = 'pending'

    audit_log_update('Member', member.id, f'Submitted KYC details; {len(wallets)} memberships reset to pending')
    current_app.logger.info(f"Member {member.id} submitted KYC details")
    return len(wallets)


def get_game_history(member_id):
    """A member's game records, most recent first"""
    return db.session.scalars(
        sa.select(GameRecord)
        .where(GameRecord.member_id == member_id)
        .order_by(GameRecord.played_at.desc(), GameRecord.id.desc())
    ).all()


def record_game_result(member_id, club_id, game_name, played_at, buy_in=0, entry_count=1,
                       seat_number=None, profit=0, points=0, tournament_id=None):
    """
    Record a finished game in a member's history and award club points.

    Points are added to the member's wallet with the club; prize money is
    not credited here.

    Raises:
        NotAMember: The member has no wallet with the club.
        TournamentNotFound: tournament_id does not match a tournament.
    """
    with atomic('game result'):
        wallet = db.session.scalar(
            sa.select(Wallet).where(Wallet.member_id == member_id, Wallet.club_id == club_id)
            .with_for_update()
        )
        if wallet is None:
            raise NotAMember()

        tournament_type = None
        if tournament_id is not None:
            tournament = db.session.get(Tournament, tournament_id)
            if tournament is None:
                raise TournamentNotFound()
            tournament_type = tournament.tournament_type

        record = GameRecord(
            member_id=member_id,
            club_id=club_id,
            tournament_id=tournament_id,
            tournament_type=tournament_type,
            played_at=played_at or datetime.utcnow(),
            game_name=game_name,
            buy_in=buy_in or 0,
            entry_count=entry_count or 1,
            seat_number=seat_number,
            profit=profit or 0,
            points=points or 0
        )
        db.session.add(record)
        wallet.points += record.points
        db.session.flush()

    audit_log_create('GameRecord', record.id, f'Recorded result for member {member_id}: {game_name}',
                     {'profit': record.profit, 'points': record.points})
    return record


def serialize_game_record(record):
    return {
        'id': record.id,
        'club_id': record.club_id,
        'club_name': record.club.name if record.club else None,
        'tournament_id': record.tournament_id,
        'played_at': record.played_at.isoformat(),
        'game_name': record.game_name,
        'buy_in': record.buy_in,
        'entry_count': record.entry_count,
        'seat_number': record.seat_number,
        'profit': record.profit,
        'points': record.points,
    }
