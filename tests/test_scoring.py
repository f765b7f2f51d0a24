import pytest

from utils.catalog import SelectedCourse
from utils.scoring import (
    Preference,
    UNALIGNED_SLOT_PENALTY,
    calculate_lecture_alignment,
    calculate_preference_score,
    calculate_schedule_metrics,
    calculate_seat_availability_score,
    compare_evaluated_schedules,
    evaluate_schedule,
    rank_schedules,
)

from tests.factories import course, csci1120, lecture, pick, slot, tutorial


def busy_week():
    sample = course(
        'TEST1000',
        lecture('A',
                slot('Monday', '09:00', '10:00'),
                slot('Monday', '11:30', '12:00'),
                slot('Monday', '12:30', '13:00'),
                slot('Wednesday', '10:00', '11:00'),
                slot('Saturday', '10:00', '11:00')),
    )
    return [SelectedCourse(sample, sample.get_section('A'))]


def test_metrics_for_busy_week():
    metrics = calculate_schedule_metrics(busy_week())
    assert metrics.total_gap_minutes == 120
    assert metrics.gap_count == 2
    assert metrics.max_gap_minutes == 90
    assert metrics.long_break_count == 1
    assert metrics.total_long_break_minutes == 90
    assert metrics.total_campus_span == 360
    # Saturday is not a weekday
    assert metrics.days_used == 2
    assert metrics.free_days == 3
    assert metrics.avg_start_time == 580
    assert metrics.avg_end_time == 700
    assert metrics.start_variance == 800
    assert metrics.earliest_start == 540
    assert metrics.latest_end == 780


def test_metrics_for_empty_schedule():
    metrics = calculate_schedule_metrics([])
    assert metrics.free_days == 5
    assert metrics.days_used == 0
    assert metrics.total_gap_minutes == 0
    assert metrics.earliest_start == 0


def test_overlapping_slots_on_one_day_leave_no_gap():
    sample = course(
        'TEST1000',
        lecture('A', slot('Monday', '09:00', '12:00'), slot('Monday', '10:00', '11:00'),
                slot('Monday', '12:00', '13:00')),
    )
    metrics = calculate_schedule_metrics(pick(sample, 'A'))
    assert metrics.total_gap_minutes == 0
    assert metrics.total_campus_span == 240


def test_seat_availability_score():
    assert calculate_seat_availability_score(pick(csci1120(), 'A', 'AT01')) == 840
    assert calculate_seat_availability_score(pick(csci1120(), 'B', 'BT01')) == 120
    assert calculate_seat_availability_score([]) == 0


def test_preference_parsing():
    assert Preference.parse('daysOff') == Preference.DAYS_OFF
    assert Preference.parse('START_LATE') == Preference.START_LATE
    assert Preference.parse(None) is None
    assert Preference.parse('') is None
    assert Preference.parse('none') is None
    with pytest.raises(ValueError):
        Preference.parse('lunchBreaks')
    with pytest.raises(ValueError):
        Preference.parse(3)


def test_days_off_ranks_more_free_days_first():
    catalog = csci1120()
    three_days = evaluate_schedule(pick(catalog, 'A', 'AT01'), Preference.DAYS_OFF)
    two_days = evaluate_schedule(pick(catalog, 'B', 'BT01'), Preference.DAYS_OFF)
    ranked = rank_schedules([three_days, two_days], Preference.DAYS_OFF)
    assert ranked[0] is two_days
    assert ranked[0].metrics.free_days == 3


def test_without_preference_open_seats_decide():
    catalog = csci1120()
    open_schedule = evaluate_schedule(pick(catalog, 'A', 'AT01'), None)
    full_schedule = evaluate_schedule(pick(catalog, 'B', 'BT01'), None)
    assert open_schedule.ranking_score == 200 + 840
    assert full_schedule.ranking_score == 285 + 120
    assert rank_schedules([full_schedule, open_schedule], None)[0] is open_schedule


def test_comparison_is_antisymmetric():
    catalog = csci1120()
    a = evaluate_schedule(pick(catalog, 'A', 'AT01'), Preference.END_EARLY)
    b = evaluate_schedule(pick(catalog, 'B', 'BT01'), Preference.END_EARLY)
    assert compare_evaluated_schedules(a, b, Preference.END_EARLY) == -compare_evaluated_schedules(
        b, a, Preference.END_EARLY)
    assert compare_evaluated_schedules(a, a, Preference.END_EARLY) == 0


def test_fingerprint_breaks_exact_ties():
    first = course('AAAA1000', lecture('A', slot('Monday', '09:30', '10:15')))
    second = course('BBBB1000', lecture('A', slot('Monday', '09:30', '10:15')))
    a = evaluate_schedule(pick(first, 'A'), Preference.START_LATE)
    b = evaluate_schedule(pick(second, 'A'), Preference.START_LATE)
    assert compare_evaluated_schedules(a, b, Preference.START_LATE) < 0
    assert compare_evaluated_schedules(b, a, Preference.START_LATE) > 0


def test_lecture_alignment():
    sample = course(
        'TEST1000',
        lecture('A', slot('Monday', '09:30', '10:15')),
        tutorial('AT1', slot('Monday', '10:15', '11:00'), parent='A'),
        tutorial('AT2', slot('Tuesday', '10:15', '11:00'), parent='A'),
    )
    assert calculate_lecture_alignment(pick(sample, 'A', 'AT1')) == 0
    assert calculate_lecture_alignment(pick(sample, 'A', 'AT2')) == UNALIGNED_SLOT_PENALTY


def test_primary_weight_dominates_short_breaks_score():
    sample = course(
        'TEST1000',
        lecture('A', slot('Monday', '09:30', '10:15'), slot('Monday', '10:45', '11:30')),
        lecture('B', slot('Monday', '09:30', '10:15'), slot('Monday', '10:30', '18:00')),
    )
    spaced = calculate_schedule_metrics(pick(sample, 'A'))
    long_day = calculate_schedule_metrics(pick(sample, 'B'))
    assert spaced.total_gap_minutes > long_day.total_gap_minutes
    assert (calculate_preference_score(long_day, Preference.SHORT_BREAKS)
            > calculate_preference_score(spaced, Preference.SHORT_BREAKS))
