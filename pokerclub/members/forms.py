# Standard library imports
from datetime import date

# Third-party imports
import sqlalchemy as sa
from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, BooleanField, DateField, DateTimeField, IntegerField
from wtforms.validators import ValidationError, DataRequired, Length, Optional, NumberRange, Regexp, URL

# Local application imports
from pokerclub import db
from pokerclub.models import Member


class JsonForm(FlaskForm):
    """Base for forms posted as JSON by the mobile client"""
    class Meta:
        csrf = False


class LoginForm(JsonForm):
    username = StringField('Username', validators=[DataRequired()])
    password = PasswordField('Password', validators=[DataRequired()])
    remember_me = BooleanField('Remember Me')


class SignupForm(JsonForm):
    username = StringField('Username', validators=[
        DataRequired(), Length(min=3, max=64),
        Regexp(r'^[A-Za-z0-9_.-]+$', message='Username may only contain letters, numbers, dots, dashes and underscores')
    ])
    password = PasswordField('Password', validators=[DataRequired(), Length(min=8, max=128)])
    mobile = StringField('Mobile', validators=[Optional(), Length(max=20)])

    def validate_username(self, username):
        member = db.session.scalar(sa.select(Member).where(Member.username == username.data))
        if member is not None:
            raise ValidationError('This username is already taken.')


class ProfileForm(JsonForm):
    """Non-sensitive profile fields; changing these never affects membership status"""
    nickname = StringField('Nickname', validators=[Optional(), Length(max=64)])
    avatar_url = StringField('Avatar URL', validators=[Optional(), URL(), Length(max=512)])


class KycForm(JsonForm):
    """Real-name details; submitting them sends every membership back to verification"""
    name = StringField('Full Name', validators=[DataRequired(), Length(max=128)])
    national_id = StringField('National ID', validators=[DataRequired(), Length(min=6, max=32)])
    birthday = DateField('Birthday', validators=[DataRequired()], format='%Y-%m-%d')
    mobile = StringField('Mobile', validators=[DataRequired(), Length(max=20)])
    is_foreigner = BooleanField('Foreign National')
    kyc_uploaded = BooleanField('ID Document Uploaded')

    def validate_birthday(self, birthday):
        if birthday.data and birthday.data >= date.today():
            raise ValidationError('Birthday must be in the past.')


class GameResultForm(JsonForm):
    """Club Manager entry of a finished game for a member's history"""
    member_id = IntegerField('Member', validators=[DataRequired()])
    club_id = IntegerField('Club', validators=[DataRequired()])
    tournament_id = IntegerField('Tournament', validators=[Optional()])
    game_name = StringField('Game', validators=[DataRequired(), Length(max=256)])
    played_at = DateTimeField('Played At', validators=[DataRequired()], format='%Y-%m-%dT%H:%M:%S')
    buy_in = IntegerField('Buy-in', validators=[Optional(), NumberRange(min=0)], default=0)
    entry_count = IntegerField('Entries', validators=[Optional(), NumberRange(min=1)], default=1)
    seat_number = IntegerField('Seat', validators=[Optional(), NumberRange(min=1)])
    profit = IntegerField('Profit', validators=[Optional()], default=0)
    points = IntegerField('Points', validators=[Optional(), NumberRange(min=0)], default=0)
