"""Routes for catalog upload: saved timetable HTML pages and JSON exports."""

import json

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from models import db, Course, Term
from utils.catalog import load_courses
from utils.html_parser import merge_courses, parse_timetable_html

upload_bp = Blueprint('upload', __name__)

HTML_EXTENSIONS = ('.html', '.htm', '.mhtml')
JSON_EXTENSIONS = ('.json',)


def ensure_term(term_id):
    """Create the term row on first use so courses can reference it."""
    if not term_id:
        return None
    term = db.session.get(Term, term_id)
    if term is None:
        names = {t['id']: t['name'] for t in current_app.config.get('DEFAULT_TERMS', [])}
        term = Term(id=term_id, name=names.get(term_id, term_id))
        db.session.add(term)
    return term


def save_catalog_courses(courses, term_id=None):
    """Upsert catalog courses and commit. Returns how many were saved."""
    for course in courses:
        ensure_term(term_id or course.term)
        Course.upsert_from_catalog(course, term_id)
    db.session.commit()
    return len(courses)


@upload_bp.route('/parse', methods=['POST'])
def parse_html_file():
    """
    Parse an uploaded timetable HTML page and return the courses found.
    Nothing is saved.
    """
    if 'file' not in request.files:
        return jsonify({'error': 'No file provided'}), 400

    file = request.files['file']

    if file.filename == '':
        return jsonify({'error': 'No file selected'}), 400

    if not file.filename.lower().endswith(HTML_EXTENSIONS):
        return jsonify({'error': 'File must be HTML or MHTML'}), 400

    try:
        html_content = file.read().decode('utf-8')
    except UnicodeDecodeError:
        return jsonify({'error': 'File is not UTF-8 encoded'}), 400

    parsed = parse_timetable_html(html_content, term=request.form.get('term') or None)
    if not parsed['courses']:
        return jsonify({'error': 'Could not find any courses in the HTML', 'warnings': parsed['warnings']}), 400

    return jsonify({
        'success': True,
        'courses': parsed['courses'],
        'course_count': len(parsed['courses']),
        'warnings': parsed['warnings']
    })


@upload_bp.route('/import', methods=['POST'])
def import_files():
    """
    Parse uploaded HTML or JSON files and save the courses.
    Accepts multiple files under 'files[]' and an optional 'term' form field.
    """
    files = request.files.getlist('files[]')

    if not files:
        if 'file' in request.files:
            files = [request.files['file']]
        else:
            return jsonify({'error': 'No files provided'}), 400

    term_id = request.form.get('term') or None
    merged_html = {}
    results = []
    success_count = 0

    for file in files:
        if file.filename == '':
            continue

        name = file.filename.lower()
        if not name.endswith(HTML_EXTENSIONS + JSON_EXTENSIONS):
            results.append({
                'filename': file.filename,
                'status': 'error',
                'message': 'Invalid file type'
            })
            continue

        try:
            result = _process_single_file_import(file, term_id, merged_html)
        except (UnicodeDecodeError, ValueError, SQLAlchemyError) as e:
            # Commit per file so one bad file does not undo the others
            db.session.rollback()
            current_app.logger.warning('Import of %s failed: %s', file.filename, e)
            result = {
                'filename': file.filename,
                'status': 'error',
                'message': str(e)
            }

        results.append(result)
        if result['status'] == 'success':
            success_count += 1

    return jsonify({
        'success': True,
        'summary': f'Processed {len(files)} files. {success_count} succeeded.',
        'results': results,
        'success_count': success_count
    })


def _process_single_file_import(file, term_id, merged_html):
    """Helper to process a single file import within the batch."""
    content = file.read().decode('utf-8')

    if file.filename.lower().endswith(JSON_EXTENSIONS):
        raw = json.loads(content)
        if isinstance(raw, dict):
            raw = raw.get('courses', [])
        warnings = []
    else:
        parsed = parse_timetable_html(content, term=term_id)
        # Courses split across pages are saved with every section seen so far
        raw = merge_courses(merged_html, parsed['courses'])
        warnings = parsed['warnings']

    courses, load_warnings = load_courses(raw)
    warnings.extend(load_warnings)

    if not courses:
        return {'filename': file.filename, 'status': 'error', 'message': 'No courses found', 'warnings': warnings}

    saved = save_catalog_courses(courses, term_id)
    current_app.logger.info('Imported %d courses from %s', saved, file.filename)

    return {
        'filename': file.filename,
        'status': 'success',
        'courses_imported': saved,
        'course_codes': [c.course_code for c in courses],
        'warnings': warnings
    }
