# Tournament registration routes (JSON API)
from flask import jsonify, request, current_app
from flask_login import login_required, current_user

from pokerclub import db
from pokerclub.errors import ClubError, InvalidIdempotencyKey
from pokerclub.registrations import bp
from pokerclub.registrations import engine
from pokerclub.registrations.forms import RegistrationForm
from pokerclub.routes import form_errors
from pokerclub.tournaments.utils import get_reserved_count, serialize_tournament
from pokerclub.wallets.utils import get_wallet

MAX_IDEMPOTENCY_KEY_LENGTH = 128


def _registration_data(registration):
    """Format a registration together with the member's current club balance"""
    tournament = registration.tournament
    wallet = get_wallet(registration.member_id, tournament.club_id)
    return {
        'id': registration.id,
        'tournament_id': registration.tournament_id,
        'member_id': registration.member_id,
        'status': registration.status,
        'registered_at': registration.registered_at.isoformat(),
        'cancelled_at': registration.cancelled_at.isoformat() if registration.cancelled_at else None,
        'balance': wallet.balance if wallet else None,
    }


def _idempotency_key():
    key = request.headers.get('Idempotency-Key', '').strip()
    if len(key) > MAX_IDEMPOTENCY_KEY_LENGTH:
        raise InvalidIdempotencyKey()
    return key or None


@bp.route('/api/v1/')
@login_required
def api_my_registrations():
    """
    List the current member's active registrations, soonest first
    """
    try:
        entries = []
        for registration in engine.get_my_registrations(current_user.id):
            tournament = registration.tournament
            entries.append({
                'registration': _registration_data(registration),
                'tournament': serialize_tournament(tournament, get_reserved_count(tournament.id))
            })

        return jsonify({
            'success': True,
            'registrations': entries
        })

    except Exception as e:
        current_app.logger.error(f"Error listing registrations for member {current_user.id}: {str(e)}")
        return jsonify({
            'success': False,
            'error': 'An error occurred while loading your registrations'
        }), 500


@bp.route('/api/v1/<int:tournament_id>')
@login_required
def api_registration_state(tournament_id):
    """
    Get the current member's registration state for a tournament
    """
    return jsonify({
        'success': True,
        'tournament_id': tournament_id,
        'state': engine.get_registration_state(current_user.id, tournament_id)
    })


@bp.route('/api/v1/<int:tournament_id>', methods=['POST'])
@login_required
def api_register(tournament_id):
    """
    Reserve a seat or buy in. A buy-in on a reserved seat upgrades it.
    """
    form = RegistrationForm()
    if not form.validate_on_submit():
        return jsonify({
            'success': False,
            'error': 'Invalid registration request',
            'errors': form_errors(form)
        }), 400

    try:
        registration = engine.register(current_user.id, tournament_id, form.mode.data,
                                       idempotency_key=_idempotency_key())
        return jsonify({
            'success': True,
            'registration': _registration_data(registration)
        }), 201

    except ClubError:
        raise
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error registering member {current_user.id} for tournament {tournament_id}: {str(e)}")
        return jsonify({
            'success': False,
            'error': 'An error occurred while registering for the tournament'
        }), 500


@bp.route('/api/v1/<int:tournament_id>/upgrade', methods=['POST'])
@login_required
def api_upgrade(tournament_id):
    """
    Pay for an existing reservation
    """
    try:
        registration = engine.upgrade(current_user.id, tournament_id,
                                      idempotency_key=_idempotency_key())
        return jsonify({
            'success': True,
            'registration': _registration_data(registration)
        })

    except ClubError:
        raise
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error upgrading registration of member {current_user.id} for tournament {tournament_id}: {str(e)}")
        return jsonify({
            'success': False,
            'error': 'An error occurred while paying for the reservation'
        }), 500


@bp.route('/api/v1/<int:tournament_id>', methods=['DELETE'])
@login_required
def api_cancel(tournament_id):
    """
    Cancel the current member's registration, refunding a paid seat
    """
    try:
        registration = engine.cancel(current_user.id, tournament_id,
                                     idempotency_key=_idempotency_key())
        return jsonify({
            'success': True,
            'registration': _registration_data(registration)
        })

    except ClubError:
        raise
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error cancelling registration of member {current_user.id} for tournament {tournament_id}: {str(e)}")
        return jsonify({
            'success': False,
            'error': 'An error occurred while cancelling the registration'
        }), 500
