from flask import Blueprint, jsonify, request
from models import db, Course, Section

courses_bp = Blueprint('courses', __name__)


@courses_bp.route('')
def list_courses():
    """
    List courses, optionally filtered.

    Query params:
        term: term id, e.g. 2025-26-T1
        department: department code, e.g. CSCI
        search: matches course code, course name or instructor name
    """
    term = request.args.get('term', '').strip()
    department = request.args.get('department', '').strip()
    search = request.args.get('search', '').strip()

    query = Course.query
    if term:
        query = query.filter(Course.term_id == term)
    if department:
        query = query.filter(Course.department.ilike(department))
    if search:
        pattern = f'%{search}%'
        query = query.filter(
            db.or_(
                Course.code.ilike(pattern),
                Course.name.ilike(pattern),
                Course.sections.any(Section.instructor_name.ilike(pattern))
            )
        )

    courses = query.order_by(Course.code, Course.term_id).all()
    return jsonify({
        'success': True,
        'count': len(courses),
        'data': [course.to_dict() for course in courses]
    })


@courses_bp.route('/<course_code>')
def get_course(course_code):
    """Get one course by code, optionally within a term."""
    query = Course.query.filter(Course.code == course_code.strip().upper())
    term = request.args.get('term', '').strip()
    if term:
        query = query.filter(Course.term_id == term)

    course = query.order_by(Course.term_id.desc()).first()
    if course is None:
        return jsonify({'success': False, 'error': f'Course {course_code} not found'}), 404

    return jsonify({
        'success': True,
        'data': course.to_dict()
    })
