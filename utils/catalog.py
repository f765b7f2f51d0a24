"""
Catalog domain types.

Courses, sections and weekly time slots as immutable values, plus the
parsing and validation used whenever catalog data enters the scheduler
(JSON uploads, database rows, seed data).
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .time_utils import has_available_seats, is_valid_time, time_to_minutes

logger = logging.getLogger(__name__)


class CatalogError(ValueError):
    """Raised when a catalog record cannot be turned into a domain object."""


class DayOfWeek(str, Enum):
    MONDAY = 'Monday'
    TUESDAY = 'Tuesday'
    WEDNESDAY = 'Wednesday'
    THURSDAY = 'Thursday'
    FRIDAY = 'Friday'
    SATURDAY = 'Saturday'
    SUNDAY = 'Sunday'

    @classmethod
    def parse(cls, value) -> 'DayOfWeek':
        """Accept full names and the usual two/three letter abbreviations."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value.strip():
            raise CatalogError('missing day')
        key = value.strip().lower()
        for day in cls:
            name = day.value.lower()
            if key == name or key == name[:3] or key == name[:2]:
                return day
        raise CatalogError(f'unknown day {value!r}')


DAY_ORDER = {day: i for i, day in enumerate(DayOfWeek)}
WEEKDAYS = (
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
)


class SectionType(str, Enum):
    LECTURE = 'Lecture'
    TUTORIAL = 'Tutorial'
    LAB = 'Lab'
    SEMINAR = 'Seminar'

    @classmethod
    def parse(cls, value) -> 'SectionType':
        """Accept the display names and the LEC/TUT/LAB/SEM component codes."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value.strip():
            raise CatalogError('missing section type')
        key = value.strip().upper()
        for section_type in cls:
            if key == section_type.value.upper() or key == section_type.value.upper()[:3]:
                return section_type
        raise CatalogError(f'unknown section type {value!r}')


# Non-lecture kinds in the order they are combined with a lecture
DEPENDENT_TYPES = (SectionType.TUTORIAL, SectionType.LAB, SectionType.SEMINAR)


@dataclass(frozen=True)
class TimeSlot:
    """One weekly meeting of a section."""
    day: DayOfWeek
    start_time: str
    end_time: str
    location: Optional[str] = None

    def __post_init__(self):
        try:
            object.__setattr__(self, 'day', DayOfWeek.parse(self.day))
        except CatalogError:
            # Left as-is; find_slot_problem reports it during validation
            pass

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    @classmethod
    def from_dict(cls, data: Dict) -> 'TimeSlot':
        if not isinstance(data, dict):
            raise CatalogError('time slot is not an object')
        slot = cls(
            day=DayOfWeek.parse(data.get('day')),
            start_time=(data.get('startTime') or '').strip(),
            end_time=(data.get('endTime') or '').strip(),
            location=data.get('location') or None,
        )
        problem = find_slot_problem(slot)
        if problem:
            raise CatalogError(problem)
        return slot

    def to_dict(self):
        return {
            'day': self.day.value if isinstance(self.day, DayOfWeek) else self.day,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'location': self.location,
        }


@dataclass(frozen=True)
class Instructor:
    name: str
    email: Optional[str] = None
    department: Optional[str] = None

    @classmethod
    def from_value(cls, value) -> Optional['Instructor']:
        """Instructors arrive either as a plain name or as an object."""
        if not value:
            return None
        if isinstance(value, str):
            return cls(name=value.strip())
        if isinstance(value, dict) and value.get('name'):
            return cls(
                name=value['name'].strip(),
                email=value.get('email') or None,
                department=value.get('department') or None,
            )
        return None

    def to_dict(self):
        return {'name': self.name, 'email': self.email, 'department': self.department}


@dataclass(frozen=True)
class Section:
    """
    A concrete offering of one course component.

    Dependent sections (tutorials, labs, seminars) name the lecture they
    belong to in parent_lecture; when it is None the section is universal
    and pairs with every lecture of the course.
    """
    section_id: str
    section_type: SectionType
    time_slots: Tuple[TimeSlot, ...] = ()
    quota: int = 0
    enrolled: int = 0
    seats_remaining: Optional[int] = None
    parent_lecture: Optional[str] = None
    instructor: Optional[Instructor] = None
    language: Optional[str] = None
    class_number: Optional[str] = None
    add_consent: bool = False
    drop_consent: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'section_type', SectionType.parse(self.section_type))
        object.__setattr__(self, 'time_slots', tuple(self.time_slots))
        if self.parent_lecture == '':
            object.__setattr__(self, 'parent_lecture', None)

    @property
    def is_lecture(self) -> bool:
        return self.section_type == SectionType.LECTURE

    @property
    def has_seats(self) -> bool:
        return has_available_seats(self)

    @property
    def available_seats(self) -> int:
        if self.seats_remaining is not None:
            return max(0, self.seats_remaining)
        return max(0, self.quota - self.enrolled)

    @classmethod
    def from_dict(cls, data: Dict) -> 'Section':
        if not isinstance(data, dict):
            raise CatalogError('section is not an object')
        section_id = str(data.get('sectionId') or '').strip()
        if not section_id:
            raise CatalogError('missing sectionId')

        seats_remaining = data.get('seatsRemaining')
        return cls(
            section_id=section_id,
            section_type=SectionType.parse(data.get('sectionType')),
            time_slots=tuple(TimeSlot.from_dict(s) for s in data.get('timeSlots') or []),
            quota=_to_int(data.get('quota')),
            enrolled=_to_int(data.get('enrolled')),
            seats_remaining=None if seats_remaining is None else _to_int(seats_remaining),
            parent_lecture=data.get('parentLecture') or None,
            instructor=Instructor.from_value(data.get('instructor')),
            language=data.get('language') or None,
            class_number=str(data['classNumber']) if data.get('classNumber') else None,
            add_consent=bool(data.get('addConsent', False)),
            drop_consent=bool(data.get('dropConsent', False)),
        )

    def to_dict(self):
        return {
            'sectionId': self.section_id,
            'sectionType': self.section_type.value,
            'timeSlots': [slot.to_dict() for slot in self.time_slots],
            'quota': self.quota,
            'enrolled': self.enrolled,
            'seatsRemaining': self.seats_remaining if self.seats_remaining is not None else self.available_seats,
            'parentLecture': self.parent_lecture,
            'instructor': self.instructor.to_dict() if self.instructor else None,
            'language': self.language,
            'classNumber': self.class_number,
            'addConsent': self.add_consent,
            'dropConsent': self.drop_consent,
        }


@dataclass(frozen=True)
class Course:
    course_code: str
    course_name: str = ''
    department: str = ''
    credits: float = 0
    sections: Tuple[Section, ...] = ()
    term: Optional[str] = None
    career: Optional[str] = None
    description: Optional[str] = None
    enrollment_requirements: Optional[str] = None
    prerequisites: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'sections', tuple(self.sections))
        object.__setattr__(self, 'prerequisites', tuple(self.prerequisites))

    @property
    def lectures(self) -> List[Section]:
        return [s for s in self.sections if s.is_lecture]

    def get_section(self, section_id: str) -> Optional[Section]:
        for section in self.sections:
            if section.section_id == section_id:
                return section
        return None

    @classmethod
    def from_dict(cls, data: Dict, sections: Optional[Iterable[Section]] = None) -> 'Course':
        """
        Build a course from its JSON form.

        Args:
            data: Course object with camelCase keys
            sections: Already parsed sections; when omitted they are parsed
                from data['sections'] and the first bad one raises CatalogError
        """
        if not isinstance(data, dict):
            raise CatalogError('course is not an object')
        code = str(data.get('courseCode') or '').strip().upper()
        if not code:
            raise CatalogError('missing courseCode')
        if sections is None:
            sections = [Section.from_dict(s) for s in data.get('sections') or []]

        credits = data.get('credits') or 0
        try:
            credits = float(credits)
        except (TypeError, ValueError):
            raise CatalogError(f'invalid credits {credits!r}')
        if credits.is_integer():
            credits = int(credits)

        return cls(
            course_code=code,
            course_name=data.get('courseName') or '',
            department=data.get('department') or '',
            credits=credits,
            sections=tuple(sections),
            term=data.get('term') or None,
            career=data.get('career') or None,
            description=data.get('description') or None,
            enrollment_requirements=data.get('enrollmentRequirements') or None,
            prerequisites=tuple(data.get('prerequisites') or ()),
        )

    def to_dict(self):
        return {
            'courseCode': self.course_code,
            'courseName': self.course_name,
            'department': self.department,
            'credits': self.credits,
            'sections': [s.to_dict() for s in self.sections],
            'term': self.term,
            'career': self.career,
            'description': self.description,
            'enrollmentRequirements': self.enrollment_requirements,
            'prerequisites': list(self.prerequisites),
        }


@dataclass(frozen=True)
class SelectedCourse:
    """One entry of a timetable: a course together with one of its sections."""
    course: Course
    section: Section
    color: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.course.course_code, self.section.section_id)

    def to_dict(self):
        return {
            'courseCode': self.course.course_code,
            'courseName': self.course.course_name,
            'credits': self.course.credits,
            'sectionId': self.section.section_id,
            'sectionType': self.section.section_type.value,
            'parentLecture': self.section.parent_lecture,
            'timeSlots': [slot.to_dict() for slot in self.section.time_slots],
            'seatsRemaining': self.section.available_seats,
            'hasSeats': self.section.has_seats,
            'instructor': self.section.instructor.name if self.section.instructor else None,
            'color': self.color,
        }


def _to_int(value) -> int:
    if value is None or value == '':
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        raise CatalogError(f'expected a number, got {value!r}')


def find_slot_problem(slot: TimeSlot) -> Optional[str]:
    """Describe what is wrong with a slot, or return None when it is usable."""
    if not isinstance(slot.day, DayOfWeek):
        return f'unknown day {slot.day!r}'
    if not slot.start_time or not slot.end_time:
        return 'time slot is missing a start or end time'
    if not is_valid_time(slot.start_time) or not is_valid_time(slot.end_time):
        return f'malformed time {slot.start_time!r}-{slot.end_time!r}'
    if slot.start_minutes >= slot.end_minutes:
        return f'start {slot.start_time} is not before end {slot.end_time}'
    return None


def validate_course(course: Course) -> Tuple[Optional[Course], List[str]]:
    """
    Check a course before it is scheduled.

    Sections with unusable time slots or a parent lecture that does not
    exist are dropped. A course left without a lecture is dropped
    entirely.

    Returns:
        (course with bad sections removed or None, list of warnings)
    """
    warnings: List[str] = []
    code = course.course_code
    kept: List[Section] = []
    seen_ids = set()

    for section in course.sections:
        label = f'{code} {section.section_type.value} {section.section_id}'
        if section.section_id in seen_ids:
            warnings.append(f'{label}: duplicate section id, ignored')
            continue

        problems = [p for p in (find_slot_problem(slot) for slot in section.time_slots) if p]
        if problems:
            warnings.append(f'{label}: excluded, {problems[0]}')
            continue

        if not section.time_slots:
            warnings.append(f'{label}: has no scheduled time slots')

        seen_ids.add(section.section_id)
        kept.append(section)

    lecture_ids = {s.section_id for s in kept if s.is_lecture}
    if not lecture_ids:
        warnings.append(f'{code}: no valid lecture section, course excluded')
        return None, warnings

    valid: List[Section] = []
    for section in kept:
        if not section.is_lecture and section.parent_lecture and section.parent_lecture not in lecture_ids:
            warnings.append(
                f'{code} {section.section_type.value} {section.section_id}: '
                f'parent lecture {section.parent_lecture} does not exist, excluded'
            )
            continue
        valid.append(section)

    if len(valid) != len(course.sections):
        course = replace(course, sections=tuple(valid))
    return course, warnings


def load_courses(raw: Iterable[Dict]) -> Tuple[List[Course], List[str]]:
    """
    Parse a JSON course list leniently.

    A malformed section is skipped with a warning instead of failing the
    whole course; a malformed course is skipped instead of failing the list.
    """
    courses: List[Course] = []
    warnings: List[str] = []

    for index, item in enumerate(raw or []):
        if not isinstance(item, dict) or not item.get('courseCode'):
            warnings.append(f'Catalog entry {index}: missing courseCode, skipped')
            continue

        code = str(item['courseCode']).strip().upper()
        sections = []
        for section_data in item.get('sections') or []:
            try:
                sections.append(Section.from_dict(section_data))
            except CatalogError as e:
                section_id = section_data.get('sectionId', '?') if isinstance(section_data, dict) else '?'
                warnings.append(f'{code} {section_id}: excluded, {e}')

        try:
            courses.append(Course.from_dict(item, sections=sections))
        except CatalogError as e:
            warnings.append(f'{code}: skipped, {e}')

    for message in warnings:
        logger.warning(message)
    return courses, warnings
