"""
Error taxonomy for membership, wallet and registration operations.

Every business-rule rejection is a ClubError subclass carrying a stable
``kind`` the client can switch on. They are raised after the session has
been rolled back, so a rejected operation never leaves partial state behind.
StoreUnavailable is the only retryable kind: it signals a database failure
rather than a rule violation.
"""

from flask import jsonify
from pokerclub import db


class ClubError(Exception):
    """Base class for all expected, user-recoverable failures"""
    kind = 'ClubError'
    status_code = 400
    retryable = False
    default_message = 'The request could not be completed.'

    def __init__(self, message=None, **details):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self):
        payload = {
            'success': False,
            'kind': self.kind,
            'error': self.message,
            'retryable': self.retryable,
        }
        if self.details:
            payload['details'] = self.details
        return payload


class BusinessRuleError(ClubError):
    """A precondition of a club operation was not met"""


class NotAMember(BusinessRuleError):
    kind = 'NotAMember'
    status_code = 403
    default_message = 'You are not a member of this club.'


class MembershipPending(BusinessRuleError):
    kind = 'MembershipPending'
    status_code = 403
    default_message = 'Your membership is awaiting verification at the club counter.'


class MembershipSuspended(BusinessRuleError):
    kind = 'MembershipSuspended'
    status_code = 403
    default_message = 'Your membership of this club has been suspended.'


class AlreadyMember(BusinessRuleError):
    kind = 'AlreadyMember'
    status_code = 409
    default_message = 'You are already a member of this club or your application is under review.'


class UsernameTaken(BusinessRuleError):
    kind = 'UsernameTaken'
    status_code = 409
    default_message = 'This username is already taken.'


class AlreadyRegistered(BusinessRuleError):
    kind = 'AlreadyRegistered'
    status_code = 409
    default_message = 'You are already registered for this tournament.'


class NotRegistered(BusinessRuleError):
    kind = 'NotRegistered'
    status_code = 404
    default_message = 'No active registration was found for this tournament.'


class TournamentFull(BusinessRuleError):
    kind = 'TournamentFull'
    status_code = 409
    default_message = 'This tournament has no seats left.'


class TournamentNotFound(BusinessRuleError):
    kind = 'TournamentNotFound'
    status_code = 404
    default_message = 'Tournament not found.'


class RegistrationClosed(BusinessRuleError):
    kind = 'RegistrationClosed'
    status_code = 409
    default_message = 'Registration for this tournament has closed.'


class InsufficientFunds(BusinessRuleError):
    kind = 'InsufficientFunds'
    status_code = 402
    default_message = 'Insufficient balance.'


class IdempotencyKeyReused(BusinessRuleError):
    kind = 'IdempotencyKeyReused'
    status_code = 422
    default_message = 'This idempotency key was already used for a different request.'


class InvalidIdempotencyKey(BusinessRuleError):
    kind = 'InvalidIdempotencyKey'
    status_code = 400
    default_message = 'The Idempotency-Key header must be at most 128 characters.'


class StoreUnavailable(ClubError):
    kind = 'StoreUnavailable'
    status_code = 503
    retryable = True
    default_message = 'The service is temporarily unavailable. Please try again.'


def register_error_handlers(app):
    """Register error handlers with the Flask application"""

    @app.errorhandler(ClubError)
    def club_error(error):
        if error.retryable:
            app.logger.error(f"{error.kind}: {error.message}")
        else:
            app.logger.info(f"Rejected with {error.kind}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(400)
    def bad_request_error(error):
        return jsonify({'success': False, 'error': 'Bad request'}), 400

    @app.errorhandler(401)
    def unauthorized_error(error):
        return jsonify({'success': False, 'error': 'Authentication required'}), 401

    @app.errorhandler(403)
    def forbidden_error(error):
        return jsonify({'success': False, 'error': 'Access denied'}), 403

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'success': False, 'error': 'Not found'}), 404

    @app.errorhandler(429)
    def rate_limited_error(error):
        return jsonify({'success': False, 'error': 'Too many requests'}), 429

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({'success': False, 'error': 'Internal server error'}), 500
