# Club and tournament catalog routes (JSON API)
from flask import jsonify, current_app
from flask_login import login_required

from pokerclub import db
from pokerclub.models import Club
from pokerclub.tournaments import bp
from pokerclub.tournaments.utils import (
    list_clubs, list_tournaments, get_tournament, get_reserved_count, get_entrants,
    serialize_club, serialize_tournament
)


@bp.route('/api/v1/clubs')
@login_required
def api_list_clubs():
    """
    List all clubs
    """
    try:
        clubs = list_clubs()
        return jsonify({
            'success': True,
            'clubs': [serialize_club(club) for club in clubs]
        })

    except Exception as e:
        current_app.logger.error(f"Error listing clubs: {str(e)}")
        return jsonify({
            'success': False,
            'error': 'An error occurred while loading clubs'
        }), 500


@bp.route('/api/v1/clubs/<int:club_id>')
@login_required
def api_get_club(club_id):
    """
    Get a single club
    """
    club = db.session.get(Club, club_id)
    if not club:
        return jsonify({
            'success': False,
            'error': 'Club not found'
        }), 404

    return jsonify({
        'success': True,
        'club': serialize_club(club)
    })


@bp.route('/api/v1/clubs/<int:club_id>/tournaments')
@login_required
def api_list_tournaments(club_id):
    """
    List a club's tournaments with live occupancy, ordered by start time
    """
    try:
        club = db.session.get(Club, club_id)
        if not club:
            return jsonify({
                'success': False,
                'error': 'Club not found'
            }), 404

        tournaments = [
            serialize_tournament(tournament, reserved_count)
            for tournament, reserved_count in list_tournaments(club_id)
        ]
        return jsonify({
            'success': True,
            'club_id': club_id,
            'tournaments': tournaments
        })

    except Exception as e:
        current_app.logger.error(f"Error listing tournaments for club {club_id}: {str(e)}")
        return jsonify({
            'success': False,
            'error': 'An error occurred while loading tournaments'
        }), 500


@bp.route('/api/v1/<int:tournament_id>')
@login_required
def api_get_tournament(tournament_id):
    """
    Get tournament details including the blind structure
    """
    tournament = get_tournament(tournament_id)
    if not tournament:
        return jsonify({
            'success': False,
            'error': 'Tournament not found'
        }), 404

    return jsonify({
        'success': True,
        'tournament': serialize_tournament(tournament, get_reserved_count(tournament_id))
    })


@bp.route('/api/v1/<int:tournament_id>/entrants')
@login_required
def api_get_entrants(tournament_id):
    """
    List members holding a seat, earliest registration first
    """
    tournament = get_tournament(tournament_id)
    if not tournament:
        return jsonify({
            'success': False,
            'error': 'Tournament not found'
        }), 404

    entrants = [{
        'registration_id': registration.id,
        'member_id': registration.member_id,
        'display_name': registration.member.display_name,
        'status': registration.status,
        'registered_at': registration.registered_at.isoformat()
    } for registration in get_entrants(tournament_id)]

    return jsonify({
        'success': True,
        'tournament_id': tournament_id,
        'count': len(entrants),
        'entrants': entrants
    })
