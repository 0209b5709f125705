"""
Tournament registration forms.
"""

from flask import current_app
from flask_wtf import FlaskForm
from wtforms import SelectField
from wtforms.validators import DataRequired


class RegistrationForm(FlaskForm):
    """
    JSON form for registering for a tournament: {"mode": "reserve" | "buy-in"}
    """
    class Meta:
        csrf = False

    mode = SelectField('Registration Mode', validators=[DataRequired()])

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.mode.choices = [(mode, mode) for mode in current_app.config['REGISTRATION_MODES']]
