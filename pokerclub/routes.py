# Utility functions and decorators for Flask routes
# Route handlers live in their blueprints:
# - Members, authentication, profile and game history: pokerclub/members/routes.py
# - Clubs and tournament catalog: pokerclub/tournaments/routes.py
# - Wallets and cashier: pokerclub/wallets/routes.py
# - Tournament registration: pokerclub/registrations/routes.py

from functools import wraps
from flask import current_app, jsonify, request
from flask_login import current_user
from pokerclub.audit import audit_log_security_event


def role_required(*required_roles):
    """
    Decorator to require specific roles.
    Usage: @role_required('Club Manager')
    Can be used in addition to @login_required.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return current_app.login_manager.unauthorized()

            # Admin users bypass role checks
            if current_user.is_admin:
                return f(*args, **kwargs)

            user_roles = [role.name for role in current_user.roles]
            if not any(role in user_roles for role in required_roles):
                current_app.logger.warning(f"Access denied for user {current_user.username} with roles {user_roles} to resource requiring {required_roles}")
                audit_log_security_event('ACCESS_DENIED',
                                         f'User {current_user.username} with roles {user_roles} attempted {request.method} {request.path} requiring roles {required_roles}')
                return jsonify({
                    'success': False,
                    'error': f'Access denied. Required roles: {", ".join(required_roles)}'
                }), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def club_manager_required(f):
    """
    Decorator for counter routes taking a club_id URL argument.
    The caller must manage that club; admins manage every club.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return current_app.login_manager.unauthorized()

        club_id = kwargs.get('club_id')
        if not current_user.manages_club(club_id):
            return club_access_denied(club_id)

        return f(*args, **kwargs)
    return decorated_function


def club_access_denied(club_id):
    current_app.logger.warning(f"Access denied for user {current_user.username} to counter of club {club_id}")
    audit_log_security_event('ACCESS_DENIED',
                             f'User {current_user.username} attempted {request.method} {request.path} for unmanaged club {club_id}')
    return jsonify({
        'success': False,
        'error': 'Access denied. You do not manage this club.'
    }), 403


def form_errors(form):
    """Flatten WTForms errors into a single JSON-friendly dict"""
    return {field: messages[0] for field, messages in form.errors.items() if messages}
