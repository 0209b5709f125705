"""
Tournaments blueprint: the read-only club and tournament catalog.

Occupancy (reserved_count) is always derived from active registrations at
read time; it is never stored on the tournament row.
"""

from flask import Blueprint

bp = Blueprint('tournaments', __name__, url_prefix='/tournaments')

from pokerclub.tournaments import routes
