"""
Wallets blueprint: club membership and per-club balances.

The ledger functions in pokerclub.wallets.utils are the only code that
changes a wallet balance; routes call them, never the model directly.
"""

from flask import Blueprint

bp = Blueprint('wallets', __name__, url_prefix='/wallets')

from pokerclub.wallets import routes
