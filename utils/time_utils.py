"""Time arithmetic and clash detection shared by the generator and manual selection."""

import re

TIME_PATTERN = re.compile(r'^([01]?\d|2[0-3]):([0-5]\d)$')

DAY_ABBREVIATIONS = {
    'Monday': 'Mon',
    'Tuesday': 'Tue',
    'Wednesday': 'Wed',
    'Thursday': 'Thu',
    'Friday': 'Fri',
    'Saturday': 'Sat',
    'Sunday': 'Sun',
}


def time_to_minutes(time: str) -> int:
    """Convert 'HH:MM' into minutes since midnight."""
    hours, minutes = time.split(':')
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight back into zero padded 'HH:MM'."""
    return f'{minutes // 60:02d}:{minutes % 60:02d}'


def is_valid_time(value) -> bool:
    """True when value looks like a 24h 'H:MM' or 'HH:MM' string."""
    return isinstance(value, str) and bool(TIME_PATTERN.match(value.strip()))


def slots_overlap(slot1, slot2) -> bool:
    """
    Two weekly slots overlap when they share a day and their half-open
    [start, end) intervals intersect. Touching endpoints do not clash.
    """
    if slot1.day != slot2.day:
        return False
    return slot1.start_minutes < slot2.end_minutes and slot2.start_minutes < slot1.end_minutes


def sections_conflict(section1, section2) -> bool:
    """Check every slot pair of two sections for an overlap."""
    for slot1 in section1.time_slots:
        for slot2 in section2.time_slots:
            if slots_overlap(slot1, slot2):
                return True
    return False


def has_available_seats(section) -> bool:
    """
    A section has room when its reported remaining seats are positive.
    Sources that do not report remaining seats fall back to enrolled < quota.
    """
    if section.seats_remaining is not None:
        return section.seats_remaining > 0
    return section.enrolled < section.quota


def slot_duration(slot) -> int:
    """Length of a slot in minutes."""
    return slot.end_minutes - slot.start_minutes


def format_time(time: str) -> str:
    """'13:05' -> '1:05PM'."""
    hours, minutes = (int(part) for part in time.split(':'))
    suffix = 'PM' if hours >= 12 else 'AM'
    display_hour = hours % 12 or 12
    return f'{display_hour}:{minutes:02d}{suffix}'


def format_time_slot(slot) -> str:
    """Short human label such as 'Mon 9:30AM-10:15AM'."""
    day_name = slot.day.value if hasattr(slot.day, 'value') else str(slot.day)
    day = DAY_ABBREVIATIONS.get(day_name, day_name[:3])
    return f'{day} {format_time(slot.start_time)}-{format_time(slot.end_time)}'
