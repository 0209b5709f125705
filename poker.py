import sqlalchemy as sa
import sqlalchemy.orm as so
from pokerclub import create_app, db
from pokerclub.models import Member, Role, Club, Wallet, WalletTransaction, Tournament, Registration, GameRecord
import os

app = create_app(os.getenv('FLASK_CONFIG') or 'development')

@app.shell_context_processor
def make_shell_context():
    return {
        'sa': sa,
        'so': so,
        'db': db,
        'Member': Member,
        'Role': Role,
        'Club': Club,
        'Wallet': Wallet,
        'WalletTransaction': WalletTransaction,
        'Tournament': Tournament,
        'Registration': Registration,
        'GameRecord': GameRecord,
    }

if __name__ == '__main__':
    app.run(debug=True)
