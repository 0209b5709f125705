# Wallet, membership and cashier routes (JSON API)
from flask import jsonify, request, current_app
from flask_login import login_required, current_user

from pokerclub import db
from pokerclub.errors import ClubError
from pokerclub.models import Club, Member
from pokerclub.routes import club_manager_required, form_errors
from pokerclub.wallets import bp
from pokerclub.wallets.forms import CashierForm
from pokerclub.wallets.utils import (
    get_wallet, join, list_wallets, approve_membership, ban_membership,
    cashier_deposit, cashier_withdraw, get_transactions,
    serialize_wallet, serialize_transaction
)


def _club_or_404(club_id):
    club = db.session.get(Club, club_id)
    if not club:
        return None, (jsonify({'success': False, 'error': 'Club not found'}), 404)
    return club, None


@bp.route('/api/v1/')
@login_required
def api_list_wallets():
    """
    List the current member's club wallets (banned memberships excluded)
    """
    wallets = list_wallets(current_user.id)
    return jsonify({
        'success': True,
        'wallets': [serialize_wallet(wallet) for wallet in wallets]
    })


@bp.route('/api/v1/<int:club_id>')
@login_required
def api_get_wallet(club_id):
    """
    Get the current member's wallet for a club; 404 means not a member
    """
    wallet = get_wallet(current_user.id, club_id)
    if wallet is None:
        return jsonify({
            'success': False,
            'kind': 'NotAMember',
            'error': 'You are not a member of this club.'
        }), 404

    return jsonify({
        'success': True,
        'wallet': serialize_wallet(wallet)
    })


@bp.route('/api/v1/<int:club_id>/join', methods=['POST'])
@login_required
def api_join_club(club_id):
    """
    Apply to join a club; the new wallet starts 'pending'
    """
    club, error_response = _club_or_404(club_id)
    if error_response:
        return error_response

    wallet = join(current_user.id, club.id)
    return jsonify({
        'success': True,
        'wallet': serialize_wallet(wallet)
    }), 201


@bp.route('/api/v1/<int:club_id>/transactions')
@login_required
def api_get_transactions(club_id):
    """
    Get the current member's ledger for a club.
    Pass ?all=1 to include buy-ins and refunds.
    """
    include_all = request.args.get('all', '').lower() in ['1', 'true', 'yes']
    transactions = get_transactions(current_user.id, club_id, include_all=include_all)
    return jsonify({
        'success': True,
        'transactions': [serialize_transaction(transaction) for transaction in transactions]
    })


# =============================================================================
# CLUB MANAGER ROUTES
# =============================================================================

@bp.route('/api/v1/<int:club_id>/members/<int:member_id>/approve', methods=['POST'])
@login_required
@club_manager_required
def api_approve_membership(club_id, member_id):
    """
    Approve a pending membership after in-person verification
    """
    wallet = approve_membership(member_id, club_id)
    return jsonify({
        'success': True,
        'wallet': serialize_wallet(wallet)
    })


@bp.route('/api/v1/<int:club_id>/members/<int:member_id>/ban', methods=['POST'])
@login_required
@club_manager_required
def api_ban_membership(club_id, member_id):
    """
    Suspend a member from the club
    """
    wallet = ban_membership(member_id, club_id)
    return jsonify({
        'success': True,
        'wallet': serialize_wallet(wallet)
    })


def _cashier(club_id, member_id, operation):
    form = CashierForm()
    if not form.validate_on_submit():
        return jsonify({
            'success': False,
            'error': 'Invalid cashier request',
            'errors': form_errors(form)
        }), 400

    if not db.session.get(Member, member_id):
        return jsonify({'success': False, 'error': 'Member not found'}), 404

    try:
        transaction = operation(member_id, club_id, form.amount.data, form.description.data or None)
        return jsonify({
            'success': True,
            'transaction': serialize_transaction(transaction),
            'wallet': serialize_wallet(transaction.wallet)
        })

    except ClubError:
        raise
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error in cashier operation for member {member_id} in club {club_id}: {str(e)}")
        return jsonify({
            'success': False,
            'error': 'An error occurred while updating the wallet'
        }), 500


@bp.route('/api/v1/<int:club_id>/members/<int:member_id>/deposit', methods=['POST'])
@login_required
@club_manager_required
def api_cashier_deposit(club_id, member_id):
    """
    Credit cash taken at the counter
    """
    return _cashier(club_id, member_id, cashier_deposit)


@bp.route('/api/v1/<int:club_id>/members/<int:member_id>/withdraw', methods=['POST'])
@login_required
@club_manager_required
def api_cashier_withdraw(club_id, member_id):
    """
    Pay out wallet balance at the counter
    """
    return _cashier(club_id, member_id, cashier_withdraw)
