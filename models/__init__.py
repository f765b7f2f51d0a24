from .database import db
from .term import Term
from .course import Course
from .section import Section, Meeting

__all__ = ['db', 'Term', 'Course', 'Section', 'Meeting']
