import pytest

from utils.catalog import (
    CatalogError,
    Course,
    DayOfWeek,
    Section,
    SectionType,
    TimeSlot,
    load_courses,
    validate_course,
)

from tests.factories import course, lecture, slot, tutorial


def test_day_parsing_accepts_abbreviations():
    assert DayOfWeek.parse('Mo') == DayOfWeek.MONDAY
    assert DayOfWeek.parse('tue') == DayOfWeek.TUESDAY
    assert DayOfWeek.parse('Thursday') == DayOfWeek.THURSDAY
    with pytest.raises(CatalogError):
        DayOfWeek.parse('Funday')
    with pytest.raises(CatalogError):
        DayOfWeek.parse('')


def test_section_type_parsing_accepts_component_codes():
    assert SectionType.parse('LEC') == SectionType.LECTURE
    assert SectionType.parse('tut') == SectionType.TUTORIAL
    assert SectionType.parse('Lab') == SectionType.LAB
    assert SectionType.parse('SEM') == SectionType.SEMINAR
    with pytest.raises(CatalogError):
        SectionType.parse('Workshop')


def test_section_from_dict():
    section = Section.from_dict({
        'sectionId': 'AT01',
        'sectionType': 'Tutorial',
        'timeSlots': [{'day': 'Tuesday', 'startTime': '13:30', 'endTime': '14:15', 'location': 'SHB 924'}],
        'quota': 40,
        'enrolled': 30,
        'seatsRemaining': 10,
        'parentLecture': 'A',
        'instructor': 'Dr. Chan',
    })
    assert section.section_type == SectionType.TUTORIAL
    assert section.parent_lecture == 'A'
    assert section.time_slots[0].day == DayOfWeek.TUESDAY
    assert section.time_slots[0].start_minutes == 810
    assert section.instructor.name == 'Dr. Chan'
    assert section.has_seats


def test_empty_parent_lecture_means_universal():
    section = Section.from_dict({'sectionId': 'L1', 'sectionType': 'Lab', 'parentLecture': ''})
    assert section.parent_lecture is None


def test_time_slot_rejects_end_before_start():
    with pytest.raises(CatalogError):
        TimeSlot.from_dict({'day': 'Monday', 'startTime': '11:00', 'endTime': '10:00'})
    with pytest.raises(CatalogError):
        TimeSlot.from_dict({'day': 'Monday', 'startTime': '11:00'})


def test_load_courses_skips_bad_sections_only():
    raw = [{
        'courseCode': 'CSCI1120',
        'courseName': 'Intro',
        'credits': 3,
        'sections': [
            {'sectionId': 'A', 'sectionType': 'Lecture',
             'timeSlots': [{'day': 'Monday', 'startTime': '09:30', 'endTime': '10:15'}]},
            {'sectionId': 'AT01', 'sectionType': 'Tutorial', 'parentLecture': 'A',
             'timeSlots': [{'day': 'Monday', 'startTime': 'soon', 'endTime': '10:15'}]},
        ],
    }, {'courseName': 'no code'}]

    courses, warnings = load_courses(raw)
    assert [c.course_code for c in courses] == ['CSCI1120']
    assert [s.section_id for s in courses[0].sections] == ['A']
    assert any('AT01' in w for w in warnings)
    assert any('missing courseCode' in w for w in warnings)


def test_course_to_dict_uses_wire_names():
    data = course('CSCI1120', lecture('A', slot('Monday', '09:30', '10:15'))).to_dict()
    assert data['courseCode'] == 'CSCI1120'
    assert data['sections'][0]['sectionType'] == 'Lecture'
    assert data['sections'][0]['timeSlots'][0] == {
        'day': 'Monday', 'startTime': '09:30', 'endTime': '10:15', 'location': None,
    }
    assert Course.from_dict(data).sections == course(
        'CSCI1120', lecture('A', slot('Monday', '09:30', '10:15'))).sections


def test_validate_course_without_lecture():
    checked, warnings = validate_course(course('BROKEN1000', tutorial('T01', slot('Monday', '09:30', '10:15'))))
    assert checked is None
    assert any('no valid lecture' in w for w in warnings)


def test_validate_course_drops_dangling_parent():
    checked, warnings = validate_course(course(
        'CSCI2100',
        lecture('A', slot('Monday', '09:30', '10:15')),
        tutorial('ZT01', slot('Tuesday', '09:30', '10:15'), parent='Z'),
    ))
    assert [s.section_id for s in checked.sections] == ['A']
    assert any('parent lecture Z' in w for w in warnings)


def test_validate_course_drops_malformed_slot():
    checked, warnings = validate_course(course(
        'CSCI2100',
        lecture('A', slot('Monday', '09:30', '10:15')),
        lecture('B', slot('Monday', '10:15', '09:30')),
        lecture('C', slot('Someday', '09:30', '10:15')),
    ))
    assert [s.section_id for s in checked.sections] == ['A']
    assert len(warnings) == 2


def test_validate_course_keeps_section_without_slots():
    checked, warnings = validate_course(course(
        'CSCI2100',
        lecture('A', slot('Monday', '09:30', '10:15')),
        tutorial('AT01', parent='A'),
    ))
    assert [s.section_id for s in checked.sections] == ['A', 'AT01']
    assert any('no scheduled time slots' in w for w in warnings)


def test_course_codes_are_uppercased():
    courses, _ = load_courses([{
        'courseCode': ' csci1120 ',
        'sections': [{'sectionId': 'A', 'sectionType': 'Lecture'}],
    }])
    assert courses[0].course_code == 'CSCI1120'
    assert Course.from_dict({'courseCode': 'math1510'}).course_code == 'MATH1510'
