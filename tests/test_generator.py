import itertools

import pytest

from utils import timetable_generator
from utils.catalog import SelectedCourse
from utils.scoring import Preference
from utils.time_utils import slots_overlap
from utils.timetable_generator import GenerationOptions, TimetableGenerator, generate_schedules

from tests.factories import (
    course,
    csci1120,
    csci1130,
    csci3100,
    engg1110,
    lecture,
    math1510,
    slot,
    tutorial,
)


def section_ids(schedule):
    return [(e.course.course_code, e.section.section_id) for e in schedule.sections]


def lecture_of(schedule, code):
    for entry in schedule.sections:
        if entry.course.course_code == code and entry.section.is_lecture:
            return entry.section.section_id
    return None


def catalog():
    return [csci1120(), csci1130(), csci3100(), math1510()]


def test_empty_input_returns_empty_list():
    assert generate_schedules([]) == []
    assert generate_schedules([], preference='daysOff') == []


def test_single_lecture_course():
    single = course('GESC1000', lecture('A', slot('Friday', '12:30', '14:15')))
    schedules = generate_schedules([single])
    assert len(schedules) == 1
    assert section_ids(schedules[0]) == [('GESC1000', 'A')]


def test_open_lecture_outranks_full_lecture():
    schedules = generate_schedules([csci1120()], preference=None)
    assert len(schedules) == 2
    assert all(len(s.sections) == 2 for s in schedules)
    assert section_ids(schedules[0]) == [('CSCI1120', 'A'), ('CSCI1120', 'AT01')]
    assert section_ids(schedules[1]) == [('CSCI1120', 'B'), ('CSCI1120', 'BT01')]
    assert schedules[0].metadata['seatScore'] > schedules[1].metadata['seatScore']


def test_complex_course_yields_five_schedules():
    schedules = generate_schedules([csci3100()])
    assert len(schedules) == 5
    assert all(len(s.sections) == 3 for s in schedules)
    assert sorted(lecture_of(s, 'CSCI3100') for s in schedules) == ['A', 'A', 'A', 'A', 'B']


def test_universal_lab_with_two_lectures():
    schedules = generate_schedules([engg1110()])
    assert sorted(section_ids(s)[0][1] for s in schedules) == ['A', 'B']
    assert all(section_ids(s)[1] == ('ENGG1110', 'L1') for s in schedules)


def test_lecture_with_universal_tutorial():
    csci1540 = course(
        'CSCI1540',
        lecture('-', slot('Monday', '12:30', '14:15'), slot('Wednesday', '16:30', '17:15')),
        tutorial('-T01', slot('Thursday', '17:30', '18:15')),
    )
    schedules = generate_schedules([csci1540])
    assert len(schedules) == 1
    assert len(schedules[0].sections) == 2


def test_conflicting_lectures_never_paired():
    x = course(
        'XXXX1000',
        lecture('A', slot('Monday', '09:30', '11:15')),
        lecture('B', slot('Tuesday', '09:30', '11:15')),
    )
    y = course('YYYY1000', lecture('A', slot('Monday', '10:30', '11:30')))
    schedules = generate_schedules([x, y])
    assert len(schedules) == 1
    assert lecture_of(schedules[0], 'XXXX1000') == 'B'
    assert lecture_of(schedules[0], 'YYYY1000') == 'A'


def test_two_courses_with_one_clashing_pair():
    # CSCI1120 B and CSCI1130 B both meet on Monday around noon
    schedules = generate_schedules([csci1120(), csci1130()])
    pairs = sorted((lecture_of(s, 'CSCI1120'), lecture_of(s, 'CSCI1130')) for s in schedules)
    assert pairs == [('A', 'A'), ('A', 'B'), ('B', 'A')]


@pytest.mark.parametrize('preference', [None] + [p.value for p in Preference])
def test_every_schedule_is_complete_and_clash_free(preference):
    courses = catalog()
    schedules = generate_schedules(courses, preference=preference)
    assert schedules

    for schedule in schedules:
        entries = schedule.sections
        for first, second in itertools.combinations(entries, 2):
            if first.course.course_code == second.course.course_code:
                continue
            for a in first.section.time_slots:
                for b in second.section.time_slots:
                    assert not slots_overlap(a, b)

        for c in courses:
            mine = [e for e in entries if e.course.course_code == c.course_code]
            lectures = [e for e in mine if e.section.is_lecture]
            assert len(lectures) == 1
            kinds = [e.section.section_type for e in mine if not e.section.is_lecture]
            assert len(kinds) == len(set(kinds))
            for entry in mine:
                parent = entry.section.parent_lecture
                if not entry.section.is_lecture and parent is not None:
                    assert parent == lectures[0].section.section_id


def test_generation_is_deterministic():
    first = generate_schedules(catalog(), preference='shortBreaks')
    second = generate_schedules(catalog(), preference='shortBreaks')
    assert [section_ids(s) for s in first] == [section_ids(s) for s in second]
    assert [s.score for s in first] == [s.score for s in second]


PRIMARY_METRICS = {
    'daysOff': ('freeDays', True),
    'shortBreaks': ('totalGapMinutes', False),
    'longBreaks': ('totalLongBreakMinutes', True),
    'consistentStart': ('startVariance', False),
    'startLate': ('earliestStart', True),
    'endEarly': ('latestEnd', False),
}


@pytest.mark.parametrize('preference', sorted(PRIMARY_METRICS))
def test_ranking_never_worsens_primary_metric(preference):
    metric, higher_is_better = PRIMARY_METRICS[preference]
    schedules = generate_schedules(catalog(), preference=preference)
    values = [s.metadata[metric] for s in schedules]
    for current, following in zip(values, values[1:]):
        if higher_is_better:
            assert current >= following
        else:
            assert current <= following


def test_bad_course_does_not_block_others():
    broken = course('BROKEN1000', tutorial('T1', slot('Monday', '09:30', '10:15')))
    generator = TimetableGenerator([csci1120(), broken])
    schedules = generator.generate()
    assert len(schedules) == 2
    assert any('BROKEN1000' in w for w in generator.warnings)
    assert all(e.course.course_code == 'CSCI1120' for s in schedules for e in s.sections)


def test_exclude_full_sections():
    schedules = generate_schedules([csci1120()], exclude_full_sections=True)
    assert len(schedules) == 1
    assert lecture_of(schedules[0], 'CSCI1120') == 'A'


def test_max_results_caps_output():
    assert len(generate_schedules([csci3100()], max_results=2)) == 2


def test_search_stops_at_combination_target():
    options = GenerationOptions(max_results=1, oversample_factor=1, min_pool=3)
    generator = TimetableGenerator([csci3100(), math1510()], options)
    assert len(generator.build_candidates()) == 3
    generator.generate()
    assert generator.stats['truncated'] is True
    assert generator.stats['candidates'] == 3


def test_time_limit_stops_search(monkeypatch):
    clock = itertools.count()
    monkeypatch.setattr(timetable_generator.time, 'monotonic', lambda: next(clock))

    generator = TimetableGenerator([csci3100()], GenerationOptions(time_limit=0.5))
    assert generator.generate() == []
    assert generator.stats['timedOut'] is True
    assert any('Search stopped' in w for w in generator.warnings)


def test_invalid_options_rejected():
    with pytest.raises(ValueError):
        GenerationOptions(preference='mostFun')
    with pytest.raises(ValueError):
        GenerationOptions(max_results=0)
    with pytest.raises(ValueError):
        GenerationOptions(time_limit=0)


def test_options_from_request_body():
    options = GenerationOptions.from_dict(
        {'preference': 'endEarly', 'maxResults': '5', 'excludeFullSections': True},
        max_results=100,
    )
    assert options.preference == Preference.END_EARLY
    assert options.max_results == 5
    assert options.exclude_full_sections is True
    assert options.combination_target == 4000


def test_overrides_apply_on_top_of_options():
    base = GenerationOptions(preference='daysOff', max_results=10)
    schedules = generate_schedules([csci3100()], base, max_results=1)
    assert len(schedules) == 1


def test_schedule_serialisation():
    schedule = generate_schedules([csci1120()])[0]
    data = schedule.to_dict()
    assert data['totalCredits'] == 3
    assert [s['sectionId'] for s in data['sections']] == ['A', 'AT01']
    assert set(data['metadata']) >= {'freeDays', 'seatScore', 'preferenceScore', 'totalGapMinutes'}
    assert isinstance(schedule.sections[0], SelectedCourse)


def test_score_includes_seat_bonus_only_without_preference():
    neutral = generate_schedules([csci1120()])[0]
    assert neutral.score == neutral.metadata['preferenceScore'] + neutral.metadata['seatScore']

    ranked = generate_schedules([csci1120()], preference='endEarly')[0]
    assert ranked.score == ranked.metadata['preferenceScore']
