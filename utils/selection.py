"""Helpers for a hand-picked timetable: clash reporting, lecture switching, totals."""

import zlib
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .catalog import DAY_ORDER, Course, DayOfWeek, SelectedCourse, TimeSlot
from .time_utils import slots_overlap

PRIMARY_COURSE_COLORS = [
    '#8B5CF6',  # purple
    '#3B82F6',  # blue
    '#10B981',  # green
    '#F59E0B',  # amber
    '#EF4444',  # red
    '#EC4899',  # pink
    '#6366F1',  # indigo
    '#14B8A6',  # teal
    '#F97316',  # orange
    '#8B5A00',  # brown
]

SECONDARY_COURSE_COLORS = [
    '#A3E635',
    '#22D3EE',
    '#F472B6',
    '#FACC15',
    '#94A3B8',
    '#C084FC',
]


@dataclass
class Conflict:
    """Two selected entries of different courses that meet at the same time."""
    first: SelectedCourse
    second: SelectedCourse
    slots: List[Tuple[TimeSlot, TimeSlot]]

    def to_dict(self):
        return {
            'course1': {'courseCode': self.first.course.course_code, 'sectionId': self.first.section.section_id},
            'course2': {'courseCode': self.second.course.course_code, 'sectionId': self.second.section.section_id},
            'conflictingTimeSlots': [
                {'slot1': a.to_dict(), 'slot2': b.to_dict()} for a, b in self.slots
            ],
        }


def detect_conflicts(selected: Sequence[SelectedCourse]) -> List[Conflict]:
    """Every pair of entries from different courses with overlapping slots."""
    conflicts = []
    for i, first in enumerate(selected):
        for second in selected[i + 1:]:
            if first.course.course_code == second.course.course_code:
                continue
            overlapping = [
                (a, b)
                for a in first.section.time_slots
                for b in second.section.time_slots
                if slots_overlap(a, b)
            ]
            if overlapping:
                conflicts.append(Conflict(first, second, overlapping))
    return conflicts


def detect_new_course_conflicts(new_entry: SelectedCourse, existing: Iterable[SelectedCourse]) -> List[str]:
    """Course codes the new entry would clash with, each reported once."""
    codes: List[str] = []
    for entry in existing:
        code = entry.course.course_code
        if code in codes:
            continue
        if any(slots_overlap(a, b)
               for a in new_entry.section.time_slots
               for b in entry.section.time_slots):
            codes.append(code)
    return codes


def get_active_lecture_id(selected: Iterable[SelectedCourse], course: Course) -> Optional[str]:
    """
    The lecture currently chosen for a course. When only a tutorial or lab
    has been picked, its parent lecture counts as active if it exists.
    """
    selected = [s for s in selected if s.course.course_code == course.course_code]
    for entry in selected:
        if entry.section.is_lecture:
            return entry.section.section_id

    for entry in selected:
        parent = entry.section.parent_lecture
        if not entry.section.is_lecture and parent:
            lecture = course.get_section(parent)
            return parent if lecture is not None and lecture.is_lecture else None
    return None


def remove_dependent_sections_for_lecture(selected: Iterable[SelectedCourse], course_code: str,
                                          lecture_id: str) -> List[SelectedCourse]:
    """Keep only the sections of a course that belong with lecture_id."""
    kept = []
    for entry in selected:
        section = entry.section
        if entry.course.course_code != course_code:
            kept.append(entry)
        elif section.is_lecture:
            if section.section_id == lecture_id:
                kept.append(entry)
        elif section.parent_lecture == lecture_id:
            kept.append(entry)
    return kept


def remove_lecture_and_dependents(selected: Iterable[SelectedCourse], course_code: str,
                                  lecture_id: str) -> List[SelectedCourse]:
    """
    Drop a lecture together with its tutorials and labs. Universal sections
    of the course go as well since they only make sense next to a lecture.
    """
    kept = []
    for entry in selected:
        section = entry.section
        if entry.course.course_code != course_code:
            kept.append(entry)
        elif section.is_lecture:
            if section.section_id != lecture_id:
                kept.append(entry)
        elif section.parent_lecture and section.parent_lecture != lecture_id:
            kept.append(entry)
    return kept


def calculate_total_credits(selected: Iterable[SelectedCourse]) -> float:
    """Credits of every selected course, counted once per course."""
    credits = {}
    for entry in selected:
        credits.setdefault(entry.course.course_code, entry.course.credits or 0)
    return sum(credits.values())


def count_unique_courses(selected: Iterable[SelectedCourse]) -> int:
    return len({entry.course.course_code for entry in selected})


def get_schedule_days(selected: Iterable[SelectedCourse]) -> List[DayOfWeek]:
    days = {slot.day for entry in selected for slot in entry.section.time_slots}
    return sorted(days, key=DAY_ORDER.get)


def generate_course_color(course_code: str, used_colors: Iterable[str]) -> str:
    """First palette colour not in use yet; once all are taken, a stable pick by course code."""
    used = set(used_colors)
    for color in PRIMARY_COURSE_COLORS + SECONDARY_COURSE_COLORS:
        if color not in used:
            return color
    palette = PRIMARY_COURSE_COLORS + SECONDARY_COURSE_COLORS
    return palette[zlib.crc32(course_code.encode('utf-8')) % len(palette)]


def assign_course_colors(entries: Sequence[SelectedCourse]) -> List[SelectedCourse]:
    """Give every course in a timetable its own colour, shared by all its sections."""
    colors = {}
    for entry in entries:
        code = entry.course.course_code
        if code not in colors:
            colors[code] = entry.color or generate_course_color(code, colors.values())
    return [
        SelectedCourse(entry.course, entry.section, colors[entry.course.course_code])
        for entry in entries
    ]
