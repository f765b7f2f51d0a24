"""HTML Parser for saved teaching timetable search results."""

from bs4 import BeautifulSoup
import logging
import re

logger = logging.getLogger(__name__)

COMPONENT_MAP = {
    'LEC': 'Lecture',
    'LECTURE': 'Lecture',
    'TUT': 'Tutorial',
    'TUTORIAL': 'Tutorial',
    'LAB': 'Lab',
    'LABORATORY': 'Lab',
    'SEM': 'Seminar',
    'SEMINAR': 'Seminar',
}

LANGUAGE_MAP = {
    'E': 'English',
    'ENGLISH': 'English',
    'C': 'Cantonese',
    'CANTONESE': 'Cantonese',
    'P': 'Putonghua',
    'PUTONGHUA': 'Putonghua',
}

DAY_MAP = {
    'Mo': 'Monday',
    'Tu': 'Tuesday',
    'We': 'Wednesday',
    'Th': 'Thursday',
    'Fr': 'Friday',
    'Sa': 'Saturday',
    'Su': 'Sunday',
}

# Column order of the results table when no header row can be matched
DEFAULT_COLUMNS = [
    'class_code', 'class_nbr', 'title', 'units', 'staff', 'quota', 'vacancy',
    'component', 'section', 'language', 'period', 'room', 'meeting_dates',
    'add_consent', 'drop_consent', 'department',
]

HEADER_ALIASES = {
    'class_code': re.compile(r'^(class|course)\s*code$', re.IGNORECASE),
    'class_nbr': re.compile(r'^class\s*(nbr|no\.?|number)$', re.IGNORECASE),
    'title': re.compile(r'^(course\s*)?title$', re.IGNORECASE),
    'units': re.compile(r'^units?$', re.IGNORECASE),
    'staff': re.compile(r'^(staff|instructor)', re.IGNORECASE),
    'quota': re.compile(r'^quota', re.IGNORECASE),
    'vacancy': re.compile(r'^vacanc', re.IGNORECASE),
    'component': re.compile(r'^component$', re.IGNORECASE),
    'section': re.compile(r'^section', re.IGNORECASE),
    'language': re.compile(r'^language', re.IGNORECASE),
    'period': re.compile(r'^(period|days?\s*&?\s*times?)', re.IGNORECASE),
    'room': re.compile(r'^(room|venue)', re.IGNORECASE),
    'meeting_dates': re.compile(r'^meeting\s*dates?', re.IGNORECASE),
    'add_consent': re.compile(r'^add\s*consent', re.IGNORECASE),
    'drop_consent': re.compile(r'^drop\s*consent', re.IGNORECASE),
    'department': re.compile(r'^(dept|department)', re.IGNORECASE),
}

PERIOD_PATTERN = re.compile(r'^([A-Za-z]{2})\s+([0-9:]+\s*[AaPp][Mm])\s*-\s*([0-9:]+\s*[AaPp][Mm])')
TIME_12H_PATTERN = re.compile(r'^(\d{1,2}):?(\d{2})?\s*(AM|PM)$', re.IGNORECASE)


def to_24_hour(value):
    """'1:30PM' -> '13:30'. Returns None when value is not a 12h time."""
    match = TIME_12H_PATTERN.match(value.strip())
    if not match:
        return None
    hours = int(match.group(1))
    minutes = match.group(2) or '00'
    suffix = match.group(3).upper()
    if suffix == 'PM' and hours < 12:
        hours += 12
    if suffix == 'AM' and hours == 12:
        hours = 0
    return f'{hours:02d}:{minutes}'


def parse_period(period, room=''):
    """
    Parse a period cell such as 'Mo 9:30AM - 10:15AM' (one meeting per line)
    into time slot dicts. Rooms are matched line by line when the room cell
    lists one room per meeting.
    """
    lines = [re.sub(r'\s+', ' ', chunk).strip() for chunk in re.split(r'\n|,', period or '')]
    lines = [line for line in lines if line]
    rooms = [r.strip() for r in (room or '').split('\n') if r.strip()]

    slots = []
    for i, line in enumerate(lines):
        match = PERIOD_PATTERN.match(line)
        if not match:
            continue
        day_abbr, start, end = match.groups()
        day = DAY_MAP.get(day_abbr.capitalize())
        start_time = to_24_hour(start)
        end_time = to_24_hour(end)
        if not day or not start_time or not end_time:
            continue

        if len(rooms) == len(lines):
            location = rooms[i]
        else:
            location = rooms[0] if rooms else None

        slot = {'day': day, 'startTime': start_time, 'endTime': end_time}
        if location:
            slot['location'] = location
        slots.append(slot)
    return slots


def _cell_text(cell):
    return cell.get_text('\n', strip=True)


def _to_int(text):
    digits = re.sub(r'[^\d-]', '', text or '')
    try:
        return int(digits)
    except ValueError:
        return 0


def _to_units(text):
    """'3.00' -> 3, '1.5' -> 1.5, anything unreadable -> 0."""
    try:
        units = float((text or '').strip())
    except ValueError:
        return 0
    return int(units) if units.is_integer() else units


def _find_results_table(soup):
    """
    Locate the results table and its column layout.

    Returns:
        (table, {column_name: index}, header_row) or (None, None, None)
    """
    for table in soup.find_all('table'):
        for row in table.find_all('tr'):
            headers = [c.get_text(' ', strip=True) for c in row.find_all(['th', 'td'])]
            columns = {}
            for index, text in enumerate(headers):
                for name, pattern in HEADER_ALIASES.items():
                    if name not in columns and pattern.match(text):
                        columns[name] = index
                        break
            if {'component', 'section', 'period'} <= columns.keys():
                return table, columns, row

    # No header row: fall back to the first table with full width rows
    for table in soup.find_all('table'):
        if any(len(row.find_all('td')) >= 11 for row in table.find_all('tr')):
            return table, {name: i for i, name in enumerate(DEFAULT_COLUMNS)}, None

    return None, None, None


def _link_parent_lectures(sections):
    """Tie tutorials/labs to the lecture whose code prefixes theirs, e.g. AT01 -> A."""
    lecture_ids = sorted(
        (s['sectionId'] for s in sections if s['sectionType'] == 'Lecture'),
        key=len,
        reverse=True,
    )
    for section in sections:
        if section['sectionType'] == 'Lecture':
            continue
        for lecture_id in lecture_ids:
            code = section['sectionId']
            if code != lecture_id and code.startswith(lecture_id):
                section['parentLecture'] = lecture_id
                break


def parse_timetable_html(html_content, term=None, department=None):
    """
    Parse a saved teaching timetable results page into course dicts.

    Each table row is one class (a lecture, tutorial, lab or seminar
    section). Rows are grouped by course code.

    Args:
        html_content: Raw HTML string from a saved results page
        term: Term id stamped on every course
        department: Fallback department when the page has no department column

    Returns:
        dict with 'courses' (list of course dicts) and 'warnings'
    """
    soup = BeautifulSoup(html_content, 'html.parser')
    result = {'courses': [], 'warnings': []}

    table, columns, header_row = _find_results_table(soup)
    if table is None:
        result['warnings'].append('No timetable results table found')
        return result

    def column(cells, name):
        index = columns.get(name)
        if index is None or index >= len(cells):
            return ''
        return _cell_text(cells[index])

    courses = {}
    for row in table.find_all('tr'):
        if row is header_row:
            continue
        cells = row.find_all('td')
        if len(cells) < 3:
            continue

        title = column(cells, 'title')
        code = column(cells, 'class_code').replace(' ', '') or (title.split(' ')[0] if title else '')
        if not code:
            continue

        component = column(cells, 'component').strip().upper()
        section_type = COMPONENT_MAP.get(component)
        if section_type is None:
            result['warnings'].append(f'{code}: unknown component {component!r}, treated as Lecture')
            section_type = 'Lecture'

        section_id = column(cells, 'section').strip() or section_type
        quota = _to_int(column(cells, 'quota'))
        vacancy = _to_int(column(cells, 'vacancy'))
        slots = parse_period(column(cells, 'period'), column(cells, 'room'))
        if not slots:
            result['warnings'].append(f'{code} {section_id}: no meeting times could be read')

        if code not in courses:
            courses[code] = {
                'courseCode': code,
                'courseName': title or code,
                'department': column(cells, 'department') or department or re.sub(r'\d.*$', '', code),
                'credits': _to_units(column(cells, 'units')),
                'term': term,
                'career': 'Undergraduate',
                'prerequisites': [],
                'sections': [],
            }

        staff = column(cells, 'staff')
        instructor = staff.split('\n')[0].split(' - ')[-1].strip() if staff else ''
        class_nbr = column(cells, 'class_nbr')

        courses[code]['sections'].append({
            'sectionId': section_id,
            'sectionType': section_type,
            'timeSlots': slots,
            'quota': quota,
            'enrolled': max(0, quota - vacancy),
            'seatsRemaining': vacancy,
            'instructor': {'name': instructor} if instructor else None,
            'language': LANGUAGE_MAP.get(column(cells, 'language').strip().upper()),
            'classNumber': class_nbr if class_nbr.isdigit() else None,
            'addConsent': 'yes' in column(cells, 'add_consent').lower(),
            'dropConsent': 'yes' in column(cells, 'drop_consent').lower(),
        })

    for course in courses.values():
        _link_parent_lectures(course['sections'])

    result['courses'] = list(courses.values())
    logger.info('Parsed %d courses from timetable HTML', len(result['courses']))
    return result


def merge_courses(merged, courses):
    """
    Fold parsed course dicts into merged, keyed by course code. Sections
    not seen before are appended and parent lectures are linked again, so
    a tutorial parsed apart from its lecture still finds it.

    Returns:
        The merged course dicts for the codes in courses, in order
    """
    codes = []
    for course in courses:
        code = course['courseCode']
        existing = merged.get(code)
        if existing is None:
            merged[code] = course
        else:
            known = {s['sectionId'] for s in existing['sections']}
            existing['sections'].extend(s for s in course['sections'] if s['sectionId'] not in known)
            _link_parent_lectures(existing['sections'])
        if code not in codes:
            codes.append(code)
    return [merged[code] for code in codes]


def parse_multiple_html_files(html_contents, term=None):
    """
    Parse multiple HTML files and combine results.
    Sections of a course split across files are merged.
    """
    merged = {}
    warnings = []
    for html in html_contents:
        parsed = parse_timetable_html(html, term=term)
        warnings.extend(parsed['warnings'])
        merge_courses(merged, parsed['courses'])
    return {'courses': list(merged.values()), 'warnings': warnings}
