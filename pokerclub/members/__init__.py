from flask import Blueprint

bp = Blueprint('members', __name__, url_prefix='/members')

from pokerclub.members import routes
