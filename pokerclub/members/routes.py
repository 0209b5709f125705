# Member blueprint routes - authentication, profile/KYC and game history (JSON API)

from datetime import datetime
from flask import jsonify, current_app
from flask_login import login_user, logout_user, current_user, login_required
import sqlalchemy as sa
from pokerclub import db, limiter
from pokerclub.models import Member
from pokerclub.errors import ClubError
from pokerclub.members import bp
from pokerclub.members.forms import LoginForm, SignupForm, ProfileForm, KycForm, GameResultForm
from pokerclub.members.utils import (
    get_member_data, create_member, update_profile, submit_kyc,
    get_game_history, record_game_result, serialize_game_record
)
from pokerclub.routes import role_required, club_access_denied, form_errors
from pokerclub.audit import audit_log_authentication, audit_log_security_event


def _invalid(form, message):
    return jsonify({
        'success': False,
        'error': message,
        'errors': form_errors(form)
    }), 400


# =============================================================================
# AUTHENTICATION ROUTES
# =============================================================================

@bp.route('/api/v1/login', methods=['POST'])
@limiter.limit(lambda: current_app.config['LOGIN_RATE_LIMIT'])
def api_login():
    """
    Member login with rate limiting and security logging
    """
    form = LoginForm()
    if not form.validate_on_submit():
        return _invalid(form, 'Username and password are required')

    user = db.session.scalar(
        sa.select(Member).where(Member.username == form.username.data)
    )

    if user is None or not user.check_password(form.password.data):
        audit_log_authentication('LOGIN', form.username.data, False)
        return jsonify({
            'success': False,
            'error': 'Invalid username or password'
        }), 401

    if user.lockout:
        audit_log_security_event('LOGIN_ATTEMPT_LOCKED_ACCOUNT',
                                 f'Login attempt on locked account: {user.username}')
        return jsonify({
            'success': False,
            'error': 'Your account has been locked. Please contact the club.'
        }), 403

    login_user(user, remember=form.remember_me.data)
    user.last_login = datetime.utcnow()
    db.session.commit()

    audit_log_authentication('LOGIN', user.username, True)
    return jsonify({
        'success': True,
        'member': get_member_data(user)
    })


@bp.route('/api/v1/logout', methods=['POST'])
@login_required
def api_logout():
    """
    Member logout with audit logging
    """
    audit_log_authentication('LOGOUT', current_user.username, True)
    logout_user()
    return jsonify({'success': True})


@bp.route('/api/v1/signup', methods=['POST'])
@limiter.limit(lambda: current_app.config['LOGIN_RATE_LIMIT'])
def api_signup():
    """
    Create an account and sign in. The real-name profile is completed later.
    """
    form = SignupForm()
    if not form.validate_on_submit():
        return _invalid(form, 'Invalid signup details')

    member = create_member(form.username.data, form.password.data, form.mobile.data)
    login_user(member)
    audit_log_authentication('SIGNUP', member.username, True)

    return jsonify({
        'success': True,
        'member': get_member_data(member)
    }), 201


# =============================================================================
# PROFILE ROUTES
# =============================================================================

@bp.route('/api/v1/profile')
@login_required
def api_get_profile():
    """
    Get the current member's profile
    """
    return jsonify({
        'success': True,
        'member': get_member_data(current_user)
    })


@bp.route('/api/v1/profile', methods=['PUT'])
@login_required
def api_update_profile():
    """
    Update nickname and avatar
    """
    form = ProfileForm()
    if not form.validate_on_submit():
        return _invalid(form, 'Invalid profile details')

    member = update_profile(current_user, form.nickname.data, form.avatar_url.data or None)
    return jsonify({
        'success': True,
        'member': get_member_data(member)
    })


@bp.route('/api/v1/kyc', methods=['POST'])
@login_required
def api_submit_kyc():
    """
    Submit real-name details. All memberships return to pending verification.
    """
    form = KycForm()
    if not form.validate_on_submit():
        return _invalid(form, 'Invalid identity details')

    reset_count = submit_kyc(
        current_user,
        name=form.name.data,
        national_id=form.national_id.data,
        birthday=form.birthday.data,
        mobile=form.mobile.data,
        is_foreigner=form.is_foreigner.data,
        kyc_uploaded=form.kyc_uploaded.data
    )
    return jsonify({
        'success': True,
        'member': get_member_data(current_user),
        'memberships_pending': reset_count
    })


# =============================================================================
# GAME HISTORY ROUTES
# =============================================================================

@bp.route('/api/v1/games')
@login_required
def api_game_history():
    """
    The current member's game history with totals
    """
    records = get_game_history(current_user.id)
    return jsonify({
        'success': True,
        'games': [serialize_game_record(record) for record in records],
        'summary': {
            'games_played': len(records),
            'total_buy_in': sum(record.buy_in * record.entry_count for record in records),
            'total_profit': sum(record.profit for record in records),
            'total_points': sum(record.points for record in records)
        }
    })


@bp.route('/api/v1/games', methods=['POST'])
@login_required
@role_required('Club Manager')
def api_record_game():
    """
    Record a finished game for a member and award points
    """
    form = GameResultForm()
    if not form.validate_on_submit():
        return _invalid(form, 'Invalid game result')

    if not current_user.manages_club(form.club_id.data):
        return club_access_denied(form.club_id.data)

    try:
        record = record_game_result(
            member_id=form.member_id.data,
            club_id=form.club_id.data,
            tournament_id=form.tournament_id.data,
            game_name=form.game_name.data,
            played_at=form.played_at.data,
            buy_in=form.buy_in.data,
            entry_count=form.entry_count.data,
            seat_number=form.seat_number.data,
            profit=form.profit.data,
            points=form.points.data
        )
        return jsonify({
            'success': True,
            'game': serialize_game_record(record)
        }), 201

    except ClubError:
        raise
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error recording game result: {str(e)}")
        return jsonify({
            'success': False,
            'error': 'An error occurred while recording the game'
        }), 500
