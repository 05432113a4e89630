import datetime

import pytest

from ward.services.stay import (
    LONG_STAY_THRESHOLD,
    classify_shift,
    is_long_stay,
    is_weekend_day,
    stay_duration,
)
from ward.tests.factories import aware


@pytest.mark.parametrize('now, expected', [
    (aware(2024, 1, 1, 0, 0), 0),
    (aware(2024, 1, 6, 23, 59), 5),
    (aware(2024, 1, 7, 0, 0), 6),
    (aware(2024, 1, 7, 23, 59), 6),
])
def test_stay_duration_floors_to_whole_days(now, expected):
    assert stay_duration(aware(2024, 1, 1), now) == expected


def test_stay_duration_accepts_strings_and_dates():
    assert stay_duration('2024-01-01', '2024-01-10') == 9
    assert stay_duration(datetime.date(2024, 1, 1), aware(2024, 1, 3, 12)) == 2
    assert stay_duration('2024-01-01T08:00:00', '2024-01-02T07:59:00') == 0


def test_stay_duration_rejects_invalid_dates():
    with pytest.raises(ValueError):
        stay_duration('not-a-date', aware(2024, 1, 1))


def test_long_stay_threshold():
    admitted = aware(2024, 1, 1)
    assert LONG_STAY_THRESHOLD == 6
    assert not is_long_stay(admitted, aware(2024, 1, 6, 12))
    assert is_long_stay(admitted, aware(2024, 1, 7))
    assert is_long_stay(admitted, aware(2024, 1, 3), threshold=2)


def test_weekend_is_friday_and_saturday():
    # 2024-01-01 was a Monday
    assert not is_weekend_day(datetime.date(2024, 1, 4))
    assert is_weekend_day(datetime.date(2024, 1, 5))
    assert is_weekend_day(datetime.date(2024, 1, 6))
    assert not is_weekend_day(datetime.date(2024, 1, 7))
    assert is_weekend_day('2024-01-05')


def test_classify_shift():
    friday, monday = aware(2024, 1, 5, 9), aware(2024, 1, 8, 9)
    assert classify_shift(friday, 'weekend_night', use_weekend=True) == ('weekend_night', True)
    assert classify_shift(friday, 'evening', use_weekend=True) == ('weekend_morning', True)
    assert classify_shift(friday, 'evening') == ('evening', False)
    assert classify_shift(monday, 'weekend_night', use_weekend=True) == ('morning', False)
    assert classify_shift(monday, 'night') == ('night', False)
