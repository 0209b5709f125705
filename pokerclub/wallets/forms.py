"""
Wallet cashier forms.
"""

from flask_wtf import FlaskForm
from wtforms import IntegerField, StringField
from wtforms.validators import DataRequired, Optional, NumberRange, Length


class CashierForm(FlaskForm):
    """
    JSON form for a counter deposit or withdrawal.
    """
    class Meta:
        csrf = False

    amount = IntegerField('Amount',
                          validators=[DataRequired(), NumberRange(min=1, max=10_000_000)])
    description = StringField('Description',
                              validators=[Optional(), Length(max=255)])
