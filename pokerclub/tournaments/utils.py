"""
Tournament catalog utility functions.
"""

from datetime import datetime
from typing import Dict, Any, Optional
import sqlalchemy as sa

from pokerclub import db
from pokerclub.models import Club, Tournament, Registration, Member, ACTIVE_REGISTRATION_STATUSES


_BREAK_TYPES = ('break', 'Break')


def _to_int(value) -> int:
    """Coerce a stored numeric value (int, float or digit string) to int, 0 if unusable"""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return 0


def _first_present(level: Dict[str, Any], *keys):
    """Return the first key's value that is present and not None"""
    for key in keys:
        if key in level and level[key] is not None:
            return level[key]
    return None


def _normalize_level(level: Dict[str, Any]) -> Dict[str, Any]:
    small_blind = _to_int(_first_present(level, 'small_blind', 'smallBlind', 'sb'))
    big_blind = _to_int(_first_present(level, 'big_blind', 'bigBlind', 'bb'))
    level_number = _to_int(_first_present(level, 'level', 'level_number', 'levelNumber'))

    has_break_flag = (
        level.get('is_break') is True
        or level.get('isBreak') is True
        or level.get('break') is True
        or level.get('type') in _BREAK_TYPES
        or level.get('level_type') == 'break'
    )
    has_duration = any(
        _to_int(level.get(key)) > 0 for key in ('duration', 'breakDuration', 'break_duration')
    )
    # Untagged breaks: no level number, no blinds, but a duration
    looks_like_break = level_number == 0 and small_blind == 0 and big_blind == 0 and has_duration

    if has_break_flag or looks_like_break:
        duration = _to_int(_first_present(
            level, 'durationMinutes', 'duration_minutes', 'duration', 'breakDuration', 'break_duration'
        ))
        return {
            'level': level_number,
            'small_blind': 0,
            'big_blind': 0,
            'ante': 0,
            'duration': duration,
            'is_break': True,
        }

    return {
        'level': level_number,
        'small_blind': small_blind,
        'big_blind': big_blind,
        'ante': _to_int(_first_present(level, 'ante', 'ante_amount', 'anteAmount')),
        'duration': _to_int(_first_present(level, 'duration', 'duration_minutes', 'durationMinutes')),
        'is_break': False,
    }


def normalize_blind_structure(raw) -> list[Dict[str, Any]]:
    """
    Convert a blind structure in any historical shape to the canonical list.

    Accepted inputs are a list of level dicts, a dict with a 'levels' list, or
    a dict keyed by level whose values are level dicts. Key spellings from the
    older imports (smallBlind, sb, ante_amount, isBreak, type='break', ...)
    are all understood. The output is a list of dicts with exactly the keys
    level, small_blind, big_blind, ante, duration and is_break.

    Args:
        raw: The structure as received from an import or an API payload

    Returns:
        List of canonical level dicts (empty for unusable input)
    """
    if not raw:
        return []

    if isinstance(raw, list):
        return [_normalize_level(level) for level in raw if isinstance(level, dict)]

    if isinstance(raw, dict):
        if isinstance(raw.get('levels'), list):
            return normalize_blind_structure(raw['levels'])

        levels = [_normalize_level(level) for level in raw.values() if isinstance(level, dict)]
        return sorted(levels, key=lambda level: level['level'])

    return []


def is_late_reg_ended(tournament: Tournament, now: Optional[datetime] = None) -> bool:
    """
    Check whether registration for a tournament has closed.

    Registration closes once the scheduled start has passed.

    Args:
        tournament: The tournament to check
        now: Reference time (naive UTC), defaults to the current time

    Returns:
        True if registration is closed, False otherwise
    """
    now = now or datetime.utcnow()
    return now > tournament.start_time


def _active_count_subquery():
    return (
        sa.select(
            Registration.tournament_id,
            sa.func.count(Registration.id).label('reserved_count')
        )
        .where(Registration.status.in_(ACTIVE_REGISTRATION_STATUSES))
        .group_by(Registration.tournament_id)
        .subquery()
    )


def get_reserved_count(tournament_id: int) -> int:
    """Count registrations currently holding a seat in the tournament"""
    return db.session.scalar(
        sa.select(sa.func.count(Registration.id)).where(
            Registration.tournament_id == tournament_id,
            Registration.status.in_(ACTIVE_REGISTRATION_STATUSES)
        )
    ) or 0


def list_tournaments(club_id: int) -> list[tuple[Tournament, int]]:
    """
    List a club's tournaments with their live occupancy.

    Args:
        club_id: The club to list tournaments for

    Returns:
        List of (Tournament, reserved_count) ordered by start time
    """
    counts = _active_count_subquery()
    rows = db.session.execute(
        sa.select(Tournament, sa.func.coalesce(counts.c.reserved_count, 0))
        .outerjoin(counts, counts.c.tournament_id == Tournament.id)
        .where(Tournament.club_id == club_id)
        .order_by(Tournament.start_time, Tournament.id)
    ).all()
    return [(tournament, reserved_count) for tournament, reserved_count in rows]


def list_clubs() -> list[Club]:
    return db.session.scalars(sa.select(Club).order_by(Club.name)).all()


def get_tournament(tournament_id: int) -> Optional[Tournament]:
    return db.session.get(Tournament, tournament_id)


def get_entrants(tournament_id: int) -> list[Registration]:
    """Active registrations for a tournament in the order they were made"""
    return db.session.scalars(
        sa.select(Registration)
        .join(Member, Registration.member_id == Member.id)
        .where(
            Registration.tournament_id == tournament_id,
            Registration.status.in_(ACTIVE_REGISTRATION_STATUSES)
        )
        .order_by(Registration.registered_at, Registration.id)
    ).all()


def serialize_club(club: Club) -> Dict[str, Any]:
    return {
        'id': club.id,
        'name': club.name,
        'description': club.description,
        'banner_url': club.banner_url,
        'tier': club.tier,
        'local_id': club.local_id,
        'currency': club.currency,
        'feedback_url': club.feedback_url,
        'latitude': club.latitude,
        'longitude': club.longitude,
    }


def serialize_tournament(tournament: Tournament, reserved_count: int,
                         now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Format a tournament with its derived fields for the API.

    Args:
        tournament: The tournament to format
        reserved_count: Live count of active registrations
        now: Reference time for the late registration flag

    Returns:
        Dictionary of tournament data
    """
    return {
        'id': tournament.id,
        'club_id': tournament.club_id,
        'name': tournament.name,
        'description': tournament.description,
        'type': tournament.get_tournament_type_name(),
        'promotion_note': tournament.promotion_note,
        'buy_in': tournament.buy_in,
        'fee': tournament.fee,
        'total_cost': tournament.total_cost,
        'starting_chips': tournament.starting_chips,
        'start_time': tournament.start_time.isoformat(),
        'max_cap': tournament.max_cap,
        'reserved_count': reserved_count,
        'remaining_seats': max(tournament.max_cap - reserved_count, 0),
        'is_full': reserved_count >= tournament.max_cap,
        'is_late_reg_ended': is_late_reg_ended(tournament, now),
        'late_reg_level': tournament.late_reg_level,
        'clock_url': tournament.clock_url,
        'structure': tournament.structure,
    }
