"""
Schedule metrics, preference scoring and ranking.

Every candidate timetable is reduced to a ScheduleMetrics record. A
preference turns the metrics into a score, and candidates are ordered by
a total, deterministic ranking key:

    1. the preference's primary metric
    2. ranking score (preference score, or neutral + seat score)
    3. seat availability score
    4. preference-specific secondary metrics
    5. universal priorities
    6. lecture adjacency (shortBreaks only)
    7. course/section fingerprint
"""

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .catalog import WEEKDAYS, SelectedCourse


class Preference(str, Enum):
    SHORT_BREAKS = 'shortBreaks'
    LONG_BREAKS = 'longBreaks'
    CONSISTENT_START = 'consistentStart'
    START_LATE = 'startLate'
    END_EARLY = 'endEarly'
    DAYS_OFF = 'daysOff'

    @classmethod
    def parse(cls, value) -> Optional['Preference']:
        """Map the wire value onto a Preference; None, '' and 'none' mean no preference."""
        if value is None or isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f'Invalid preference: {value!r}')
        key = value.strip()
        if key == '' or key.lower() in ('none', 'null'):
            return None
        for preference in cls:
            if key == preference.value or key.upper() == preference.name:
                return preference
        raise ValueError(
            f"Invalid preference '{value}'. Expected one of: "
            + ', '.join(p.value for p in cls)
        )


# Gaps of at least this many minutes count as long breaks
LONG_BREAK_MINUTES = 60

# Seat availability bonus
SEAT_BONUS_PER_SECTION = 120
SEAT_BONUS_ALL_AVAILABLE = 600

# Neutral scoring: kept below one seat bonus per unit so seats decide close calls
NEUTRAL_FREE_DAY_WEIGHT = 100
NEUTRAL_GAP_MINUTE_WEIGHT = 1

# Weight of the leading term of each preference formula
PRIMARY_WEIGHT = 1000

# Penalty for a tutorial/lab slot on a day without its lecture
UNALIGNED_SLOT_PENALTY = 720


@dataclass
class ScheduleMetrics:
    """Aggregate statistics of one timetable. Times are minutes since midnight."""
    total_gap_minutes: int = 0
    gap_count: int = 0
    max_gap_minutes: int = 0
    total_campus_span: int = 0
    days_used: int = 0
    free_days: int = 5
    avg_start_time: float = 0.0
    avg_end_time: float = 0.0
    start_variance: float = 0.0
    long_break_count: int = 0
    total_long_break_minutes: int = 0
    earliest_start: int = 0
    latest_end: int = 0

    def to_dict(self):
        return {
            'totalGapMinutes': self.total_gap_minutes,
            'gapCount': self.gap_count,
            'maxGapMinutes': self.max_gap_minutes,
            'totalCampusSpan': self.total_campus_span,
            'daysUsed': self.days_used,
            'freeDays': self.free_days,
            'avgStartTime': round(self.avg_start_time, 2),
            'avgEndTime': round(self.avg_end_time, 2),
            'startVariance': round(self.start_variance, 2),
            'longBreakCount': self.long_break_count,
            'totalLongBreakMinutes': self.total_long_break_minutes,
            'earliestStart': self.earliest_start,
            'latestEnd': self.latest_end,
        }


def calculate_schedule_metrics(entries: Iterable[SelectedCourse]) -> ScheduleMetrics:
    """Derive ScheduleMetrics from the time slots of every entry."""
    by_day: Dict = defaultdict(list)
    for entry in entries:
        for slot in entry.section.time_slots:
            by_day[slot.day].append((slot.start_minutes, slot.end_minutes))

    metrics = ScheduleMetrics()
    if not by_day:
        metrics.free_days = len(WEEKDAYS)
        return metrics

    day_starts: List[int] = []
    day_ends: List[int] = []

    for day, intervals in by_day.items():
        intervals.sort()
        day_start = intervals[0][0]
        day_end = max(end for _, end in intervals)
        day_starts.append(day_start)
        day_ends.append(day_end)
        metrics.total_campus_span += day_end - day_start

        running_end = intervals[0][1]
        for start, end in intervals[1:]:
            gap = start - running_end
            if gap > 0:
                metrics.total_gap_minutes += gap
                metrics.gap_count += 1
                metrics.max_gap_minutes = max(metrics.max_gap_minutes, gap)
                if gap >= LONG_BREAK_MINUTES:
                    metrics.long_break_count += 1
                    metrics.total_long_break_minutes += gap
            running_end = max(running_end, end)

    metrics.days_used = sum(1 for day in WEEKDAYS if day in by_day)
    metrics.free_days = max(0, len(WEEKDAYS) - metrics.days_used)

    count = len(day_starts)
    metrics.avg_start_time = sum(day_starts) / count
    metrics.avg_end_time = sum(day_ends) / count
    metrics.start_variance = sum((s - metrics.avg_start_time) ** 2 for s in day_starts) / count
    metrics.earliest_start = min(day_starts)
    metrics.latest_end = max(day_ends)
    return metrics


def calculate_neutral_score(metrics: ScheduleMetrics) -> float:
    """Mildly favour free days and fewer gap minutes."""
    return (
        NEUTRAL_FREE_DAY_WEIGHT * metrics.free_days
        - NEUTRAL_GAP_MINUTE_WEIGHT * metrics.total_gap_minutes
    )


def calculate_preference_score(metrics: ScheduleMetrics, preference: Optional[Preference]) -> float:
    """
    Score a timetable for one preference. Higher is better.

    Each formula leads with its primary metric scaled by PRIMARY_WEIGHT;
    the remaining terms only separate timetables that are close on it.
    """
    m = metrics
    if preference is None:
        return calculate_neutral_score(m)

    if preference == Preference.DAYS_OFF:
        return (
            PRIMARY_WEIGHT * 1000 * m.free_days
            - 10_000 * m.days_used
            - 10 * m.total_gap_minutes
            - m.avg_end_time
        )
    if preference == Preference.SHORT_BREAKS:
        # Lightly prefer days starting around 10:00
        return (
            -PRIMARY_WEIGHT * m.total_gap_minutes
            - 200 * m.max_gap_minutes
            - 5 * m.total_campus_span
            - abs(m.avg_start_time - 600)
        )
    if preference == Preference.LONG_BREAKS:
        return (
            PRIMARY_WEIGHT * m.total_long_break_minutes
            + 20_000 * m.long_break_count
            - 2_000 * m.days_used
            - 5 * m.total_campus_span
        )
    if preference == Preference.CONSISTENT_START:
        return (
            -PRIMARY_WEIGHT * m.start_variance
            - 10 * m.total_gap_minutes
            - m.avg_start_time
        )
    if preference == Preference.START_LATE:
        return (
            PRIMARY_WEIGHT * m.earliest_start
            + 10 * m.avg_start_time
            - m.total_gap_minutes
        )
    if preference == Preference.END_EARLY:
        return (
            -PRIMARY_WEIGHT * m.latest_end
            - 10 * m.avg_end_time
            - m.total_gap_minutes
        )
    raise ValueError(f'Unknown preference: {preference!r}')


def calculate_seat_availability_score(entries: Sequence[SelectedCourse]) -> int:
    """Bonus per section with open seats, plus a bonus when every section has seats."""
    available = sum(1 for entry in entries if entry.section.has_seats)
    score = available * SEAT_BONUS_PER_SECTION
    if entries and available == len(entries):
        score += SEAT_BONUS_ALL_AVAILABLE
    return score


def calculate_lecture_alignment(entries: Sequence[SelectedCourse]) -> int:
    """
    Total distance in minutes between each tutorial/lab slot and the nearest
    same-day slot of its course's lecture. Slots on a day without the
    lecture cost UNALIGNED_SLOT_PENALTY.
    """
    lecture_slots: Dict[str, List] = defaultdict(list)
    for entry in entries:
        if entry.section.is_lecture:
            lecture_slots[entry.course.course_code].extend(entry.section.time_slots)

    total = 0
    for entry in entries:
        if entry.section.is_lecture:
            continue
        lectures = lecture_slots.get(entry.course.course_code, [])
        for slot in entry.section.time_slots:
            distances = []
            for lecture in lectures:
                if lecture.day != slot.day:
                    continue
                if slot.start_minutes >= lecture.end_minutes:
                    distances.append(slot.start_minutes - lecture.end_minutes)
                elif lecture.start_minutes >= slot.end_minutes:
                    distances.append(lecture.start_minutes - slot.end_minutes)
                else:
                    distances.append(0)
            total += min(distances) if distances else UNALIGNED_SLOT_PENALTY
    return total


def schedule_fingerprint(entries: Iterable[SelectedCourse]) -> str:
    return '|'.join(f'{entry.course.course_code}-{entry.section.section_id}' for entry in entries)


# (metric, descending) pairs
PRIMARY_METRIC = {
    Preference.DAYS_OFF: ('free_days', True),
    Preference.SHORT_BREAKS: ('total_gap_minutes', False),
    Preference.LONG_BREAKS: ('total_long_break_minutes', True),
    Preference.CONSISTENT_START: ('start_variance', False),
    Preference.START_LATE: ('earliest_start', True),
    Preference.END_EARLY: ('latest_end', False),
}

SECONDARY_METRICS = {
    Preference.DAYS_OFF: [('days_used', False), ('total_gap_minutes', False), ('avg_end_time', False)],
    Preference.SHORT_BREAKS: [('max_gap_minutes', False), ('total_campus_span', False)],
    Preference.LONG_BREAKS: [('long_break_count', True), ('total_gap_minutes', True)],
    Preference.CONSISTENT_START: [('avg_start_time', False), ('total_gap_minutes', False)],
    Preference.START_LATE: [('avg_start_time', True), ('total_gap_minutes', False)],
    Preference.END_EARLY: [('avg_end_time', False), ('total_gap_minutes', False)],
}

_UNIVERSAL_TAIL = [
    ('earliest_start', True),
    ('latest_end', False),
    ('start_variance', False),
    ('avg_start_time', True),
    ('avg_end_time', False),
    ('gap_count', False),
]

UNIVERSAL_PRIORITIES = [
    ('free_days', True),
    ('long_break_count', False),
    ('total_long_break_minutes', False),
    ('max_gap_minutes', False),
    ('total_gap_minutes', False),
    ('total_campus_span', False),
] + _UNIVERSAL_TAIL

LONG_BREAK_UNIVERSAL_PRIORITIES = [
    ('free_days', True),
    ('long_break_count', True),
    ('total_long_break_minutes', True),
    ('total_gap_minutes', True),
    ('total_campus_span', True),
] + _UNIVERSAL_TAIL


def _metric_keys(metrics: ScheduleMetrics, fields: List[Tuple[str, bool]]) -> Tuple:
    return tuple(
        -getattr(metrics, name) if descending else getattr(metrics, name)
        for name, descending in fields
    )


@dataclass
class EvaluatedSchedule:
    """A candidate timetable together with everything used to rank it."""
    entries: Tuple[SelectedCourse, ...]
    metrics: ScheduleMetrics
    preference_score: float
    seat_score: int
    ranking_score: float
    fingerprint: str
    alignment: int = 0

    def metadata(self) -> Dict:
        data = self.metrics.to_dict()
        data['seatScore'] = self.seat_score
        data['preferenceScore'] = round(self.preference_score, 2)
        return data


def evaluate_schedule(entries: Sequence[SelectedCourse], preference: Optional[Preference]) -> EvaluatedSchedule:
    metrics = calculate_schedule_metrics(entries)
    preference_score = calculate_preference_score(metrics, preference)
    seat_score = calculate_seat_availability_score(entries)
    if preference is None:
        ranking_score = preference_score + seat_score
    else:
        ranking_score = preference_score

    return EvaluatedSchedule(
        entries=tuple(entries),
        metrics=metrics,
        preference_score=preference_score,
        seat_score=seat_score,
        ranking_score=ranking_score,
        fingerprint=schedule_fingerprint(entries),
        alignment=calculate_lecture_alignment(entries) if preference == Preference.SHORT_BREAKS else 0,
    )


def ranking_key(evaluated: EvaluatedSchedule, preference: Optional[Preference]) -> Tuple:
    """Sort key implementing the ranking order; smaller sorts first."""
    metrics = evaluated.metrics
    primary = (PRIMARY_METRIC[preference],) if preference is not None else ()
    secondary = SECONDARY_METRICS.get(preference, [])
    universal = LONG_BREAK_UNIVERSAL_PRIORITIES if preference == Preference.LONG_BREAKS else UNIVERSAL_PRIORITIES

    return (
        _metric_keys(metrics, list(primary)),
        -evaluated.ranking_score,
        -evaluated.seat_score,
        _metric_keys(metrics, secondary),
        _metric_keys(metrics, universal),
        evaluated.alignment,
        evaluated.fingerprint,
    )


def compare_evaluated_schedules(a: EvaluatedSchedule, b: EvaluatedSchedule,
                                preference: Optional[Preference]) -> int:
    """Negative when a ranks ahead of b, positive when behind, 0 when identical."""
    key_a = ranking_key(a, preference)
    key_b = ranking_key(b, preference)
    return (key_a > key_b) - (key_a < key_b)


def rank_schedules(evaluated: List[EvaluatedSchedule], preference: Optional[Preference]) -> List[EvaluatedSchedule]:
    return sorted(evaluated, key=lambda e: ranking_key(e, preference))
