from datetime import datetime, time

import pytest

from portal.services.weeks import (
    NO_ACTIVE_WEEK,
    effective_moment,
    parse_week_label,
    resolve_active_week,
)

WEEKS = ["01/01/24 au 07/01/24", "08/01/24 au 14/01/24"]


def test_parse_valid_label_spans_whole_days():
    interval = parse_week_label("01/01/24 au 07/01/24")
    assert interval.start == datetime(2024, 1, 1, 0, 0)
    assert interval.end.date() == datetime(2024, 1, 7).date()
    assert interval.end.time() == time.max


def test_single_day_week_is_valid():
    interval = parse_week_label("29/02/24 au 29/02/24")
    assert interval.first_day == interval.last_day


@pytest.mark.parametrize('label', [
    "01/01/24 - 07/01/24",             # missing separator
    "01/01/24 au 07/01/24 au 14/01/24",  # repeated separator
    "31/04/24 au 07/05/24",            # impossible day
    "29/02/23 au 05/03/23",            # not a leap year
    "07/01/24 au 01/01/24",            # end before start
    "2024-01-01 au 2024-01-07",
    "",
    None,
])
def test_malformed_labels_are_rejected_without_raising(label):
    assert parse_week_label(label) is None


def test_effective_moment_shifts_before_cutover():
    assert effective_moment(datetime(2024, 1, 8, 6, 59)).date() == datetime(2024, 1, 7).date()
    assert effective_moment(datetime(2024, 1, 8, 7, 0)).date() == datetime(2024, 1, 8).date()


def test_before_cutover_resolves_previous_week():
    assert resolve_active_week(WEEKS, datetime(2024, 1, 8, 6, 59)) == 0


def test_after_cutover_resolves_current_week():
    assert resolve_active_week(WEEKS, datetime(2024, 1, 8, 7, 1)) == 1


def test_custom_cutover_hour():
    assert resolve_active_week(WEEKS, datetime(2024, 1, 8, 8, 30), cutover_hour=9) == 0


def test_no_match_returns_minus_one_not_zero():
    assert resolve_active_week(WEEKS, datetime(2024, 3, 1, 12, 0)) == NO_ACTIVE_WEEK == -1
    assert resolve_active_week([], datetime(2024, 1, 3, 12, 0)) == -1


def test_malformed_entries_are_skipped():
    labels = ["pas une semaine", "08/01/24 au 14/01/24"]
    assert resolve_active_week(labels, datetime(2024, 1, 9, 12, 0)) == 1


def test_overlapping_weeks_first_match_wins():
    labels = ["05/01/24 au 12/01/24", "08/01/24 au 14/01/24"]
    assert resolve_active_week(labels, datetime(2024, 1, 9, 12, 0)) == 0
