"""
Registrations blueprint: reserve, buy in, upgrade and cancel tournament seats.

The state machine and its wallet settlement rules live in
pokerclub.registrations.engine.
"""

from flask import Blueprint

bp = Blueprint('registrations', __name__, url_prefix='/registrations')

from pokerclub.registrations import routes
