"""Routes for automatic timetable generation and manual selection checks."""

from flask import Blueprint, current_app, jsonify, request
from models import Course
from utils.catalog import SelectedCourse, load_courses
from utils.scoring import Preference, evaluate_schedule
from utils.selection import (
    assign_course_colors,
    calculate_total_credits,
    count_unique_courses,
    detect_conflicts,
    detect_new_course_conflicts,
    get_schedule_days,
)
from utils.timetable_generator import GenerationOptions, TimetableGenerator

schedules_bp = Blueprint('schedules', __name__)


def _load_catalog_courses(codes, term=None):
    """
    Fetch courses by code and convert them for the generator.

    Returns:
        (list of catalog courses in request order, list of codes not found)
    """
    query = Course.query.filter(Course.code.in_(codes))
    if term:
        query = query.filter(Course.term_id == term)

    rows = {}
    for row in query.order_by(Course.term_id.desc()).all():
        rows.setdefault(row.code, row)

    found = [rows[code].to_catalog() for code in codes if code in rows]
    missing = [code for code in codes if code not in rows]
    return found, missing


def _normalise_codes(values):
    codes = []
    for value in values:
        code = str(value).strip().upper()
        if code and code not in codes:
            codes.append(code)
    return codes


def _resolve_selections(items, term=None):
    """
    Turn [{courseCode, sectionId}, ...] into SelectedCourse entries.

    Returns:
        (entries, errors)
    """
    if not isinstance(items, list):
        return [], ['selections must be a list']

    codes = _normalise_codes(item.get('courseCode', '') for item in items if isinstance(item, dict))
    courses, missing = _load_catalog_courses(codes, term)
    by_code = {course.course_code: course for course in courses}
    errors = [f'Course {code} not found' for code in missing]

    entries = []
    for item in items:
        if not isinstance(item, dict):
            errors.append('Each selection must be an object')
            continue
        course = by_code.get(str(item.get('courseCode', '')).strip().upper())
        if course is None:
            continue
        section = course.get_section(str(item.get('sectionId', '')).strip())
        if section is None:
            errors.append(f"Section {item.get('sectionId')} not found in {course.course_code}")
            continue
        entries.append(SelectedCourse(course, section))
    return entries, errors


@schedules_bp.route('/generate', methods=['POST'])
def generate_schedules():
    """
    Generate ranked, clash-free timetables.

    Body:
        courseCodes: list of course codes to schedule (looked up in the catalog)
        courses: optional inline course objects, used instead of courseCodes
        term, preference, maxResults, excludeFullSections
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'JSON body required'}), 400

    config = current_app.config
    limit = config.get('SCHEDULE_MAX_RESULTS_LIMIT', 500)
    try:
        options = GenerationOptions.from_dict(
            data,
            max_results=config.get('SCHEDULE_MAX_RESULTS', 100),
            oversample_factor=config.get('SCHEDULE_OVERSAMPLE_FACTOR', 40),
            min_pool=config.get('SCHEDULE_MIN_POOL', 4000),
            time_limit=config.get('SCHEDULE_TIME_LIMIT'),
            debug=config.get('SCHEDULER_DEBUG', False),
        )
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    options.max_results = min(options.max_results, limit)

    warnings = []
    if 'courses' in data:
        courses, load_warnings = load_courses(data['courses'])
        warnings.extend(load_warnings)
    else:
        codes = data.get('courseCodes')
        if not isinstance(codes, list):
            return jsonify({'success': False, 'error': 'courseCodes must be a list'}), 400
        courses, missing = _load_catalog_courses(_normalise_codes(codes), data.get('term'))
        warnings.extend(f'Course {code} not found' for code in missing)

    generator = TimetableGenerator(courses, options)
    schedules = generator.generate()
    warnings.extend(generator.warnings)

    results = []
    for schedule in schedules:
        schedule.sections = assign_course_colors(schedule.sections)
        results.append(schedule.to_dict())

    current_app.logger.info('Generated %d schedules for %d courses', len(results), len(courses))
    return jsonify({
        'success': True,
        'count': len(results),
        'schedules': results,
        'warnings': warnings,
        'stats': generator.stats
    })


@schedules_bp.route('/conflicts', methods=['POST'])
def check_conflicts():
    """
    Check a hand-picked selection for clashes.

    Body:
        selections: [{courseCode, sectionId}, ...]
        candidate: optional {courseCode, sectionId} about to be added
        term: optional term id
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'JSON body required'}), 400

    entries, errors = _resolve_selections(data.get('selections', []), data.get('term'))
    if errors:
        return jsonify({'success': False, 'error': '; '.join(errors)}), 400

    response = {
        'success': True,
        'conflicts': [conflict.to_dict() for conflict in detect_conflicts(entries)],
        'totalCredits': calculate_total_credits(entries),
        'courseCount': count_unique_courses(entries),
        'days': [day.value for day in get_schedule_days(entries)],
    }

    candidate = data.get('candidate')
    if candidate is not None:
        resolved, errors = _resolve_selections([candidate], data.get('term'))
        if errors or not resolved:
            return jsonify({'success': False, 'error': '; '.join(errors) or 'Invalid candidate'}), 400
        new_entry = resolved[0]
        existing = [e for e in entries if e.course.course_code != new_entry.course.course_code]
        response['candidateConflicts'] = detect_new_course_conflicts(new_entry, existing)

    return jsonify(response)


@schedules_bp.route('/metrics', methods=['POST'])
def schedule_metrics():
    """Metrics and scores of a hand-picked selection."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'JSON body required'}), 400

    try:
        preference = Preference.parse(data.get('preference'))
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    entries, errors = _resolve_selections(data.get('selections', []), data.get('term'))
    if errors:
        return jsonify({'success': False, 'error': '; '.join(errors)}), 400

    evaluated = evaluate_schedule(entries, preference)
    return jsonify({
        'success': True,
        'score': round(evaluated.ranking_score, 2),
        'metadata': evaluated.metadata()
    })
