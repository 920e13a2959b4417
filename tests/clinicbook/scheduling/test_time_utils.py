from datetime import time

import pytest

from clinicbook.scheduling.time_utils import (
    add_minutes,
    compare_times,
    format_minutes,
    is_valid_hhmm,
    overlaps,
    parse_hhmm,
    to_time,
)


def test_parse_hhmm_accepts_strings_and_time_values() -> None:
    assert parse_hhmm('00:00') == 0
    assert parse_hhmm('09:30') == 570
    assert parse_hhmm('23:59') == 1439
    assert parse_hhmm(time(13, 15)) == 795


def test_parse_hhmm_ignores_seconds_suffix() -> None:
    assert parse_hhmm('10:45:00') == 645


@pytest.mark.parametrize('value', ['9:30', '24:00', '12:60', 'noon', ''])
def test_parse_hhmm_rejects_malformed_values(value: str) -> None:
    with pytest.raises(ValueError):
        parse_hhmm(value)

    assert not is_valid_hhmm(value)


def test_format_minutes_zero_pads_and_wraps() -> None:
    assert format_minutes(545) == '09:05'
    assert format_minutes(1440 + 30) == '00:30'


def test_add_minutes_steps_forward_and_carries_hours() -> None:
    assert add_minutes('09:45', 30) == '10:15'
    assert add_minutes(time(11, 0), 90) == '12:30'


def test_add_minutes_wraps_past_midnight() -> None:
    assert add_minutes('23:30', 45) == '00:15'


def test_add_minutes_rejects_non_positive_step() -> None:
    with pytest.raises(ValueError):
        add_minutes('09:00', 0)


def test_compare_times_orders_by_minutes() -> None:
    assert compare_times('09:00', '10:00') == -1
    assert compare_times('10:00', time(10, 0)) == 0
    assert compare_times('17:30', '08:15') == 1


def test_overlaps_uses_half_open_intervals() -> None:
    assert overlaps('09:00', '10:00', '09:30', '10:30')
    assert not overlaps('09:00', '10:00', '10:00', '11:00')
    assert not overlaps('12:00', '13:00', '08:00', '12:00')


def test_to_time_round_trips_minutes() -> None:
    assert to_time(615) == time(10, 15)
    assert to_time('07:05') == time(7, 5)
