"""Seed data script to populate the database with a sample course catalog."""

import logging

from flask import current_app

from models import db, Course, Term
from utils.catalog import load_courses

logger = logging.getLogger(__name__)

SEED_TERM = '2025-26-T1'


def _slot(day, start, end, location=None):
    slot = {'day': day, 'startTime': start, 'endTime': end}
    if location:
        slot['location'] = location
    return slot


def _section(section_id, section_type, slots, quota=60, enrolled=0, parent=None, instructor=None):
    return {
        'sectionId': section_id,
        'sectionType': section_type,
        'timeSlots': slots,
        'quota': quota,
        'enrolled': enrolled,
        'seatsRemaining': max(0, quota - enrolled),
        'parentLecture': parent,
        'instructor': {'name': instructor} if instructor else None,
        'language': 'English',
    }


COURSES_DATA = [
    {
        'courseCode': 'CSCI1120',
        'courseName': 'Introduction to Computing Using C++',
        'department': 'CSCI',
        'credits': 3,
        'career': 'Undergraduate',
        'sections': [
            _section('A', 'Lecture', [
                _slot('Monday', '15:30', '16:15', 'LSB LT1'),
                _slot('Wednesday', '11:30', '13:15', 'LSB LT1'),
            ], quota=120, enrolled=95, instructor='Prof. CHAN Siu Ming'),
            _section('AT01', 'Tutorial', [_slot('Tuesday', '13:30', '14:15', 'SHB 924')],
                     quota=40, enrolled=30, parent='A'),
            _section('B', 'Lecture', [
                _slot('Monday', '11:30', '13:15', 'MMW 705'),
                _slot('Wednesday', '10:30', '11:15', 'MMW 705'),
            ], quota=100, enrolled=100, instructor='Prof. WONG Ka Fai'),
            _section('BT01', 'Tutorial', [_slot('Wednesday', '11:30', '12:15', 'SHB 924')],
                     quota=40, enrolled=25, parent='B'),
        ],
    },
    {
        'courseCode': 'CSCI1130',
        'courseName': 'Introduction to Computing Using Java',
        'department': 'CSCI',
        'credits': 3,
        'career': 'Undergraduate',
        'sections': [
            _section('A', 'Lecture', [
                _slot('Tuesday', '10:30', '12:15', 'ERB LT'),
                _slot('Thursday', '10:30', '11:15', 'ERB LT'),
            ], quota=150, enrolled=120, instructor='Prof. LEE Tin Yau'),
            _section('AT01', 'Tutorial', [_slot('Thursday', '16:30', '17:15', 'SHB 910')],
                     quota=50, enrolled=40, parent='A'),
            _section('B', 'Lecture', [
                _slot('Monday', '12:30', '14:15', 'YIA LT6'),
                _slot('Friday', '09:30', '10:15', 'YIA LT6'),
            ], quota=150, enrolled=90, instructor='Prof. HO Wing Kin'),
            _section('BT01', 'Tutorial', [_slot('Friday', '14:30', '15:15', 'SHB 910')],
                     quota=50, enrolled=20, parent='B'),
        ],
    },
    {
        'courseCode': 'CSCI1540',
        'courseName': 'Computer Principles and C++ Programming',
        'department': 'CSCI',
        'credits': 3,
        'career': 'Undergraduate',
        'sections': [
            _section('-', 'Lecture', [
                _slot('Monday', '12:30', '14:15', 'LSK LT1'),
                _slot('Wednesday', '16:30', '17:15', 'LSK LT1'),
            ], quota=200, enrolled=160, instructor='Prof. YU Bei'),
            _section('-T01', 'Tutorial', [_slot('Thursday', '17:30', '18:15', 'SHB 833')],
                     quota=60, enrolled=45),
        ],
    },
    {
        'courseCode': 'CSCI3100',
        'courseName': 'Software Engineering',
        'department': 'CSCI',
        'credits': 3,
        'career': 'Undergraduate',
        'prerequisites': ['CSCI2100'],
        'sections': [
            _section('A', 'Lecture', [_slot('Monday', '09:30', '11:15', 'ERB 407')],
                     quota=90, enrolled=60, instructor='Prof. LYU Rung Tsong'),
            _section('AT1', 'Tutorial', [_slot('Wednesday', '09:30', '10:15')], quota=45, enrolled=30, parent='A'),
            _section('AT2', 'Tutorial', [_slot('Wednesday', '14:30', '15:15')], quota=45, enrolled=30, parent='A'),
            _section('AL1', 'Lab', [_slot('Thursday', '14:30', '16:15')], quota=45, enrolled=30, parent='A'),
            _section('AL2', 'Lab', [_slot('Friday', '14:30', '16:15')], quota=45, enrolled=30, parent='A'),
            _section('B', 'Lecture', [_slot('Tuesday', '09:30', '11:15', 'ERB 407')],
                     quota=90, enrolled=80, instructor='Prof. KING Kuo Chin'),
            _section('BT1', 'Tutorial', [_slot('Thursday', '09:30', '10:15')], quota=45, enrolled=40, parent='B'),
            _section('BL1', 'Lab', [_slot('Friday', '09:30', '11:15')], quota=45, enrolled=40, parent='B'),
        ],
    },
    {
        'courseCode': 'MATH1510',
        'courseName': 'Calculus for Engineers',
        'department': 'MATH',
        'credits': 3,
        'career': 'Undergraduate',
        'sections': [
            _section('A', 'Lecture', [
                _slot('Tuesday', '14:30', '16:15', 'LSB LT2'),
                _slot('Thursday', '14:30', '15:15', 'LSB LT2'),
            ], quota=180, enrolled=170, instructor='Dr. TAM Hon Wah'),
            _section('B', 'Lecture', [
                _slot('Monday', '09:30', '11:15', 'LSB LT3'),
                _slot('Wednesday', '09:30', '10:15', 'LSB LT3'),
            ], quota=180, enrolled=120, instructor='Dr. CHEUNG Kin Yip'),
            _section('T01', 'Tutorial', [_slot('Friday', '11:30', '12:15', 'LSB C1')], quota=60, enrolled=50),
            _section('T02', 'Tutorial', [_slot('Friday', '16:30', '17:15', 'LSB C1')], quota=60, enrolled=60),
        ],
    },
    {
        'courseCode': 'ENGG1110',
        'courseName': 'Problem Solving by Programming',
        'department': 'ENGG',
        'credits': 3,
        'career': 'Undergraduate',
        'sections': [
            _section('A', 'Lecture', [_slot('Monday', '11:30', '13:15', 'SC L1')],
                     quota=200, enrolled=150, instructor='Prof. LAU Wing Cheong'),
            _section('B', 'Lecture', [_slot('Tuesday', '11:30', '13:15', 'SC L1')],
                     quota=200, enrolled=190, instructor='Prof. LAU Wing Cheong'),
            _section('L1', 'Lab', [_slot('Friday', '14:30', '16:15', 'SHB 924')], quota=100, enrolled=60),
        ],
    },
    {
        'courseCode': 'GESC1000',
        'courseName': 'College Assembly',
        'department': 'GESC',
        'credits': 1,
        'career': 'Undergraduate',
        'sections': [
            _section('A', 'Lecture', [_slot('Friday', '12:30', '14:15', 'Sir Run Run Shaw Hall')],
                     quota=500, enrolled=300),
        ],
    },
]


def seed_database(term_id=SEED_TERM):
    """Populate database with the sample catalog. Returns counts of what was written."""

    # Clear existing data
    for course in Course.query.all():
        db.session.delete(course)
    db.session.flush()
    Term.query.delete()

    terms_data = current_app.config.get('DEFAULT_TERMS', [])
    for t_data in terms_data:
        db.session.add(Term(**t_data))
    db.session.flush()

    courses, warnings = load_courses(COURSES_DATA)
    for message in warnings:
        logger.warning('Seed data: %s', message)

    for course in courses:
        Course.upsert_from_catalog(course, term_id)

    db.session.commit()
    logger.info('Seeded %d terms and %d courses', len(terms_data), len(courses))
    return {'terms': len(terms_data), 'courses': len(courses)}
