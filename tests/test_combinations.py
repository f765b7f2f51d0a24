from utils.timetable_generator import GenerationOptions, TimetableGenerator, generate_schedules

from tests.factories import course, csci3100, engg1110, lab, lecture, slot, tutorial


def combination_ids(groups):
    return sorted(tuple(entry.section.section_id for entry in group) for group in groups)


def test_complex_course_expands_per_lecture():
    generator = TimetableGenerator([])
    groups = generator.get_course_combinations(csci3100())
    assert combination_ids(groups) == [
        ('A', 'AT1', 'AL1'),
        ('A', 'AT1', 'AL2'),
        ('A', 'AT2', 'AL1'),
        ('A', 'AT2', 'AL2'),
        ('B', 'BT1', 'BL1'),
    ]


def test_universal_lab_pairs_with_every_lecture():
    groups = TimetableGenerator([]).get_course_combinations(engg1110())
    assert combination_ids(groups) == [('A', 'L1'), ('B', 'L1')]


def test_specific_sections_override_universal_ones():
    mixed = course(
        'PHYS1110',
        lecture('A', slot('Monday', '09:30', '10:15')),
        lecture('B', slot('Tuesday', '09:30', '10:15')),
        tutorial('AT1', slot('Wednesday', '09:30', '10:15'), parent='A'),
        tutorial('T9', slot('Friday', '09:30', '10:15')),
    )
    groups = TimetableGenerator([]).get_course_combinations(mixed)
    assert combination_ids(groups) == [('A', 'AT1'), ('B', 'T9')]


def test_lecture_without_dependents_is_one_group():
    single = course('GESC1000', lecture('A', slot('Friday', '12:30', '14:15')))
    groups = TimetableGenerator([]).get_course_combinations(single)
    assert combination_ids(groups) == [('A',)]


def test_full_sections_removed_when_excluded():
    full_tutorials = course(
        'CSCI2100',
        lecture('A', slot('Monday', '09:30', '10:15')),
        tutorial('AT1', slot('Tuesday', '09:30', '10:15'), parent='A', seats=0),
        lecture('B', slot('Monday', '11:30', '12:15')),
        tutorial('BT1', slot('Tuesday', '11:30', '12:15'), parent='B'),
        lecture('C', slot('Monday', '14:30', '15:15'), seats=0),
        tutorial('CT1', slot('Tuesday', '14:30', '15:15'), parent='C'),
    )
    strict = TimetableGenerator([], GenerationOptions(exclude_full_sections=True))
    assert combination_ids(strict.get_course_combinations(full_tutorials)) == [('B', 'BT1')]

    lenient = TimetableGenerator([])
    assert len(lenient.get_course_combinations(full_tutorials)) == 3


def test_open_universal_section_replaces_full_dedicated_ones():
    fallback = course(
        'PHYS1110',
        lecture('A', slot('Monday', '09:30', '10:15')),
        tutorial('AT1', slot('Tuesday', '09:30', '10:15'), parent='A', seats=0),
        tutorial('U1', slot('Wednesday', '09:30', '10:15')),
    )
    strict = TimetableGenerator([], GenerationOptions(exclude_full_sections=True))
    assert combination_ids(strict.get_course_combinations(fallback)) == [('A', 'U1')]

    lenient = TimetableGenerator([])
    assert combination_ids(lenient.get_course_combinations(fallback)) == [('A', 'AT1')]

    schedules = generate_schedules([fallback], exclude_full_sections=True)
    assert len(schedules) == 1


def test_every_option_full_leaves_no_groups():
    full = course(
        'CSCI2100',
        lecture('A', slot('Monday', '09:30', '10:15')),
        lab('L1', slot('Tuesday', '09:30', '10:15'), seats=0),
    )
    generator = TimetableGenerator([], GenerationOptions(exclude_full_sections=True))
    assert generator.get_course_combinations(full) == []
    assert any('available seats' in w for w in generator.warnings)


def test_course_without_lecture_records_warning():
    generator = TimetableGenerator([])
    groups = generator.get_course_combinations(course('NOLEC1000', tutorial('T1', slot('Monday', '09:30', '10:15'))))
    assert groups == []
    assert generator.warnings == ['NOLEC1000: no valid lecture section, course excluded']


def test_lecture_order_follows_preference():
    spread = course(
        'CSCI2100',
        lecture('MWF', slot('Monday', '09:30', '10:15'), slot('Wednesday', '09:30', '10:15')),
        lecture('TTH', slot('Tuesday', '09:30', '10:15'), slot('Thursday', '09:30', '10:15')),
    )
    no_preference = TimetableGenerator([]).get_course_combinations(spread)
    assert no_preference[0][0].section.section_id == 'TTH'

    days_off = TimetableGenerator([], GenerationOptions(preference='daysOff')).get_course_combinations(spread)
    assert days_off[0][0].section.section_id == 'MWF'
