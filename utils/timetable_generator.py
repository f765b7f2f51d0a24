"""
Timetable Generator Module
Generates clash-free timetable combinations across courses and ranks them
by a scheduling preference.
"""

import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .catalog import (
    DEPENDENT_TYPES,
    Course,
    DayOfWeek,
    SelectedCourse,
    Section,
    validate_course,
)
from .scoring import Preference, evaluate_schedule, rank_schedules
from .time_utils import sections_conflict

logger = logging.getLogger(__name__)

TUE_THU = frozenset({DayOfWeek.TUESDAY, DayOfWeek.THURSDAY})
MON_WED_FRI = frozenset({DayOfWeek.MONDAY, DayOfWeek.WEDNESDAY, DayOfWeek.FRIDAY})

# Preferences that want classes packed into fewer days
CONSOLIDATING_PREFERENCES = (
    Preference.DAYS_OFF,
    Preference.LONG_BREAKS,
    Preference.CONSISTENT_START,
)


@dataclass
class GenerationOptions:
    """User options for timetable generation."""
    preference: Optional[Preference] = None
    max_results: int = 100
    exclude_full_sections: bool = False

    # Search bounds: the search stops after max(max_results * oversample_factor, min_pool)
    # candidates, or when time_limit seconds have passed
    oversample_factor: int = 40
    min_pool: int = 4000
    time_limit: Optional[float] = None

    debug: bool = False

    def __post_init__(self):
        self.preference = Preference.parse(self.preference)
        if isinstance(self.max_results, bool) or not isinstance(self.max_results, int) or self.max_results < 1:
            raise ValueError(f'max_results must be a positive integer, got {self.max_results!r}')
        if self.oversample_factor < 1 or self.min_pool < 1:
            raise ValueError('oversample_factor and min_pool must be positive')
        if self.time_limit is not None and self.time_limit <= 0:
            raise ValueError(f'time_limit must be positive, got {self.time_limit!r}')

    @property
    def combination_target(self) -> int:
        return max(self.max_results * self.oversample_factor, self.min_pool)

    @classmethod
    def from_dict(cls, data: Dict, **defaults) -> 'GenerationOptions':
        """Build options from the camelCase request body, falling back to defaults."""
        values = dict(defaults)
        if 'preference' in data:
            values['preference'] = data['preference']
        if data.get('maxResults') is not None:
            try:
                values['max_results'] = int(data['maxResults'])
            except (TypeError, ValueError):
                raise ValueError(f"maxResults must be an integer, got {data['maxResults']!r}")
        if 'excludeFullSections' in data:
            values['exclude_full_sections'] = bool(data['excludeFullSections'])
        return cls(**values)


@dataclass
class GeneratedSchedule:
    """
    A single valid timetable combination.

    score is the ranking score: the preference score when a preference is
    set, otherwise the neutral score plus the seat availability bonus.
    metadata['preferenceScore'] always holds the bare preference score.
    """
    sections: List[SelectedCourse]
    score: float
    metadata: Dict = field(default_factory=dict)

    @property
    def total_credits(self) -> float:
        seen = {}
        for entry in self.sections:
            seen.setdefault(entry.course.course_code, entry.course.credits)
        return sum(seen.values())

    def to_dict(self):
        return {
            'sections': [entry.to_dict() for entry in self.sections],
            'score': round(self.score, 2),
            'totalCredits': self.total_credits,
            'metadata': self.metadata,
        }


@dataclass(frozen=True)
class _PlacementGroup:
    """One lecture plus one section of every kind it requires, with ordering hints."""
    entries: Tuple[SelectedCourse, ...]
    days: FrozenSet[DayOfWeek]
    earliest_start: int
    latest_end: int
    seats: int

    @classmethod
    def build(cls, entries: Sequence[SelectedCourse]) -> '_PlacementGroup':
        slots = [slot for entry in entries for slot in entry.section.time_slots]
        return cls(
            entries=tuple(entries),
            days=frozenset(slot.day for slot in slots),
            earliest_start=min((s.start_minutes for s in slots), default=0),
            latest_end=max((s.end_minutes for s in slots), default=0),
            seats=sum(entry.section.available_seats for entry in entries),
        )


class TimetableGenerator:
    """
    Backtracking timetable generator.

    Courses are placed one at a time; each course contributes one placement
    group (a lecture and its tutorials/labs). Groups that clash with what is
    already placed are skipped before descending, so the full Cartesian
    product across courses is never built.

    Performance notes:
    - Pairwise section clash results are memoised for the lifetime of the generator
    - Courses and groups are tried in an order that suits the preference, so
      good timetables appear early when the search is cut short
    """

    def __init__(self, courses: Iterable[Course], options: GenerationOptions = None):
        """
        Initialize generator with courses to schedule.

        Args:
            courses: Courses the student wants to take
            options: Optional generation options
        """
        self.options = options or GenerationOptions()
        self.preference = self.options.preference

        # Warnings collection
        self.warnings: List[str] = []
        self.stats: Dict = {}

        self._conflict_cache: Dict[Tuple[Tuple[str, str], Tuple[str, str]], bool] = {}
        self._deadline: Optional[float] = None
        self._timed_out = False

        self.courses: List[Course] = self._validate_courses(courses)

    @property
    def prefers_consolidation(self) -> bool:
        return self.preference in CONSOLIDATING_PREFERENCES

    def _warn(self, message: str) -> None:
        if message not in self.warnings:
            self.warnings.append(message)
            logger.warning(message)

    def _trace(self, message: str, *args) -> None:
        if self.options.debug:
            logger.debug(message, *args)

    def _validate_courses(self, courses: Iterable[Course]) -> List[Course]:
        """Drop unusable courses and sections, recording why."""
        valid = []
        seen_codes = set()
        for course in courses:
            if course.course_code in seen_codes:
                self._warn(f'{course.course_code}: listed more than once, duplicate ignored')
                continue
            checked, warnings = validate_course(course)
            for message in warnings:
                self._warn(message)
            if checked is not None:
                seen_codes.add(course.course_code)
                valid.append(checked)
        return valid

    # ------------------------------------------------------------------
    # Per-course expansion
    # ------------------------------------------------------------------

    def get_course_combinations(self, course: Course) -> List[Tuple[SelectedCourse, ...]]:
        """
        Enumerate every legal placement group for one course.

        Dependent sections tied to a lecture take precedence over universal
        sections of the same kind. With exclude_full_sections, full sections
        are removed before that choice is made, so an open universal section
        is used when every dedicated one is full; a lecture left without an
        open option for a kind it requires yields no groups.
        """
        exclude_full = self.options.exclude_full_sections
        lectures = course.lectures
        if not lectures:
            self._warn(f'{course.course_code}: no valid lecture section, course excluded')
            return []

        dependents = [s for s in course.sections if not s.is_lecture]
        universal = [s for s in dependents if s.parent_lecture is None]

        combinations: List[Tuple[SelectedCourse, ...]] = []
        for lecture in self._order_lectures(lectures):
            if exclude_full and not lecture.has_seats:
                self._trace('%s %s skipped: lecture is full', course.course_code, lecture.section_id)
                continue

            options_by_kind: Optional[List[List[Section]]] = []
            for kind in DEPENDENT_TYPES:
                specific = [s for s in dependents
                            if s.section_type == kind and s.parent_lecture == lecture.section_id]
                shared = [s for s in universal if s.section_type == kind]
                if not specific and not shared:
                    continue
                if exclude_full:
                    # An open universal section stands in when every dedicated one is full
                    specific = [s for s in specific if s.has_seats]
                    shared = [s for s in shared if s.has_seats]
                options = specific or shared
                if not options:
                    self._trace('%s %s skipped: every %s is full',
                                course.course_code, lecture.section_id, kind.value)
                    options_by_kind = None
                    break
                options_by_kind.append(sorted(options, key=lambda s: (not s.has_seats, s.section_id)))

            if options_by_kind is None:
                continue

            for choice in itertools.product(*options_by_kind):
                combinations.append(tuple(SelectedCourse(course, s) for s in (lecture,) + choice))

        if not combinations and exclude_full:
            self._warn(f'{course.course_code}: no combination with available seats')
        return combinations

    def _order_lectures(self, lectures: List[Section]) -> List[Section]:
        """Try lectures with a day pattern that suits the preference first."""
        consolidate = self.prefers_consolidation
        preference = self.preference

        def sort_key(lecture: Section):
            days = {slot.day for slot in lecture.time_slots}
            only_tue_thu = bool(days) and days <= TUE_THU
            only_mon_wed_fri = bool(days) and days <= MON_WED_FRI
            if consolidate:
                pattern = (not only_mon_wed_fri, only_tue_thu)
            else:
                pattern = (not only_tue_thu,)

            starts = [slot.start_minutes for slot in lecture.time_slots] or [0]
            ends = [slot.end_minutes for slot in lecture.time_slots] or [0]
            timing = 0
            if preference == Preference.END_EARLY:
                timing = max(ends)
            elif preference == Preference.START_LATE:
                timing = -min(starts)
            return (pattern, timing, -lecture.available_seats, lecture.section_id)

        return sorted(lectures, key=sort_key)

    # ------------------------------------------------------------------
    # Cross-course search
    # ------------------------------------------------------------------

    def _order_courses(self, courses: List[Course]) -> List[Course]:
        """
        Place courses whose lectures pin down a day pattern first.

        Consolidating preferences start from Mon/Wed/Fri-only courses and
        leave Tue/Thu-only ones for last; the others start from Tue/Thu-only
        courses.
        """
        exclude_full = self.options.exclude_full_sections

        def sort_key(course: Course):
            has_tue_thu = has_mon_wed_fri = False
            for lecture in course.lectures:
                if exclude_full and not lecture.has_seats:
                    continue
                days = {slot.day for slot in lecture.time_slots}
                if days & TUE_THU and not days & MON_WED_FRI:
                    has_tue_thu = True
                if days & MON_WED_FRI and not days & TUE_THU:
                    has_mon_wed_fri = True

            if self.prefers_consolidation:
                if has_mon_wed_fri and not has_tue_thu:
                    rank = 0
                elif has_mon_wed_fri and has_tue_thu:
                    rank = 1
                elif has_tue_thu:
                    rank = 3
                else:
                    rank = 2
            else:
                if has_tue_thu and not has_mon_wed_fri:
                    rank = 0
                elif has_tue_thu and has_mon_wed_fri:
                    rank = 1
                else:
                    rank = 2
            return (rank, course.course_code)

        return sorted(courses, key=sort_key)

    def _order_groups(self, groups: List[_PlacementGroup], current_days: FrozenSet[DayOfWeek]) -> List[_PlacementGroup]:
        consolidate = self.prefers_consolidation
        preference = self.preference

        def sort_key(group: _PlacementGroup):
            total_days = len(current_days | group.days)
            new_days = len(group.days - current_days)
            day_key = (new_days, total_days) if consolidate else (total_days,)
            timing = 0
            if preference == Preference.END_EARLY:
                timing = group.latest_end
            elif preference == Preference.START_LATE:
                timing = -group.earliest_start
            return (day_key, timing, -group.seats)

        # Stable sort keeps the lecture ordering for ties
        return sorted(groups, key=sort_key)

    def _sections_clash(self, first: SelectedCourse, second: SelectedCourse) -> bool:
        """Memoised pairwise clash check keyed by the order-normalised pair."""
        key = (first.key, second.key) if first.key <= second.key else (second.key, first.key)
        result = self._conflict_cache.get(key)
        if result is None:
            result = sections_conflict(first.section, second.section)
            self._conflict_cache[key] = result
        return result

    def _clashes_with(self, group: _PlacementGroup, placed: List[SelectedCourse]) -> bool:
        for entry in group.entries:
            for existing in placed:
                if entry.course.course_code == existing.course.course_code:
                    continue
                if self._sections_clash(entry, existing):
                    return True
        return False

    def _out_of_time(self) -> bool:
        if self._deadline is None:
            return False
        if not self._timed_out and time.monotonic() >= self._deadline:
            self._timed_out = True
        return self._timed_out

    def build_candidates(self, combination_target: int = None) -> List[List[SelectedCourse]]:
        """
        Collect conflict-free timetables by backtracking over the courses.

        Args:
            combination_target: Stop after finding this many candidates (safety limit)

        Returns:
            List of candidates, each a flat list of SelectedCourse entries
        """
        if not self.courses:
            return []
        if combination_target is None:
            combination_target = self.options.combination_target

        ordered = self._order_courses(self.courses)
        groups_by_course: Dict[str, List[_PlacementGroup]] = {}
        for course in ordered:
            groups = [_PlacementGroup.build(c) for c in self.get_course_combinations(course)]
            if not groups:
                # Nothing can be placed for this course, so no timetable can be complete
                self._trace('%s has no placement groups, search skipped', course.course_code)
                return []
            groups_by_course[course.course_code] = groups

        self._trace('Course order: %s', ', '.join(c.course_code for c in ordered))

        candidates: List[List[SelectedCourse]] = []

        def backtrack(index: int, placed: List[SelectedCourse], days: FrozenSet[DayOfWeek]) -> None:
            if len(candidates) >= combination_target or self._out_of_time():
                return

            if index == len(ordered):
                candidates.append(placed[:])
                return

            course = ordered[index]
            for group in self._order_groups(groups_by_course[course.course_code], days):
                if len(candidates) >= combination_target or self._out_of_time():
                    return

                if self._clashes_with(group, placed):
                    continue

                placed.extend(group.entries)
                backtrack(index + 1, placed, days | group.days)
                del placed[-len(group.entries):]

        backtrack(0, [], frozenset())

        if len(candidates) >= combination_target:
            logger.info('Search stopped at %d candidates', combination_target)
        if self._timed_out:
            self._warn(
                f'Search stopped after {self.options.time_limit:g}s; '
                f'results are ranked from the {len(candidates)} timetables found so far'
            )
        return candidates

    def generate(self) -> List[GeneratedSchedule]:
        """
        Generate, score and rank timetables.

        Returns:
            Up to max_results GeneratedSchedule objects, best first
        """
        started = time.monotonic()
        self._conflict_cache.clear()
        self._timed_out = False
        if self.options.time_limit is not None:
            self._deadline = started + self.options.time_limit

        candidates = self.build_candidates()
        evaluated = [evaluate_schedule(entries, self.preference) for entries in candidates]
        ranked = rank_schedules(evaluated, self.preference)[:self.options.max_results]

        elapsed_ms = round((time.monotonic() - started) * 1000, 1)
        self.stats = {
            'courses': len(self.courses),
            'candidates': len(candidates),
            'returned': len(ranked),
            'combinationTarget': self.options.combination_target,
            'truncated': len(candidates) >= self.options.combination_target,
            'timedOut': self._timed_out,
            'conflictChecks': len(self._conflict_cache),
            'elapsedMs': elapsed_ms,
        }
        logger.info(
            'Generated %d timetables from %d candidates for %d courses in %.1fms (preference=%s)',
            len(ranked), len(candidates), len(self.courses), elapsed_ms,
            self.preference.value if self.preference else 'none',
        )

        return [
            GeneratedSchedule(
                sections=list(e.entries),
                score=e.ranking_score,
                metadata=e.metadata(),
            )
            for e in ranked
        ]


def generate_schedules(courses: Iterable[Course], options: GenerationOptions = None,
                       **overrides) -> List[GeneratedSchedule]:
    """
    Generate ranked timetables for a set of courses.

    Keyword overrides (preference, max_results, exclude_full_sections, ...)
    are applied on top of options.
    """
    if options is None:
        options = GenerationOptions(**overrides)
    elif overrides:
        values = {name: getattr(options, name) for name in options.__dataclass_fields__}
        values.update(overrides)
        options = GenerationOptions(**values)
    return TimetableGenerator(courses, options).generate()
