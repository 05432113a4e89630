"""Stay duration, long-stay and shift classification."""
from __future__ import annotations

import datetime
from typing import Optional, Tuple, Union

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

LONG_STAY_THRESHOLD = 6

WEEKDAY_SHIFTS = ('morning', 'evening', 'night')
WEEKEND_SHIFTS = ('weekend_morning', 'weekend_night')

DateLike = Union[str, datetime.date, datetime.datetime]


def _as_datetime(value: DateLike) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        dt = value
    elif isinstance(value, datetime.date):
        dt = datetime.datetime.combine(value, datetime.time.min)
    else:
        dt = parse_datetime(value)
        if dt is None:
            d = parse_date(value)
            if d is None:
                raise ValueError(f'invalid date: {value!r}')
            dt = datetime.datetime.combine(d, datetime.time.min)
    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt)
    return dt


def stay_duration(admission_date: DateLike, now: Optional[DateLike] = None) -> int:
    """Whole days elapsed since ``admission_date``, floored."""
    now_dt = _as_datetime(now) if now is not None else timezone.now()
    return (now_dt - _as_datetime(admission_date)).days


def is_long_stay(admission_date: DateLike, now: Optional[DateLike] = None,
                 threshold: int = LONG_STAY_THRESHOLD) -> bool:
    return stay_duration(admission_date, now) >= threshold


def is_weekend_day(value: DateLike) -> bool:
    if isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
        d = value
    else:
        d = timezone.localtime(_as_datetime(value)).date()
    # the ward weekend is Friday and Saturday
    return d.weekday() in (4, 5)


def classify_shift(admission_date: DateLike, requested: str = 'morning',
                   use_weekend: bool = False) -> Tuple[str, bool]:
    """Return ``(shift_type, is_weekend)`` for an admission.

    Weekend scheduling only applies on weekend days; elsewhere a weekend
    shift request falls back to the morning shift.
    """
    if use_weekend and is_weekend_day(admission_date):
        return (requested if requested in WEEKEND_SHIFTS else 'weekend_morning'), True
    return ('morning' if requested in WEEKEND_SHIFTS else requested), False
