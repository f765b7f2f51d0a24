from datetime import datetime
from .database import db
from .section import Section
from utils import catalog


class Course(db.Model):
    """Course model representing a course offered in a term."""

    __tablename__ = 'courses'
    __table_args__ = (db.UniqueConstraint('term_id', 'code', name='uq_course_term_code'),)

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(20), nullable=False, index=True)  # e.g. "CSCI1120"
    name = db.Column(db.String(200), nullable=False)
    department = db.Column(db.String(100), nullable=True)
    credits = db.Column(db.Float, default=0)
    description = db.Column(db.Text, nullable=True)
    enrollment_requirements = db.Column(db.Text, nullable=True)
    prerequisites = db.Column(db.JSON, default=list)
    career = db.Column(db.String(50), nullable=True)  # Undergraduate, Postgraduate

    term_id = db.Column(db.String(20), db.ForeignKey('terms.id'), nullable=True, index=True)
    last_updated = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationship to sections
    sections = db.relationship('Section', backref='course', lazy='select',
                               cascade='all, delete-orphan', order_by='Section.id')

    def __repr__(self):
        return f'<Course {self.code}: {self.name}>'

    def to_catalog(self) -> catalog.Course:
        """Immutable copy used by the timetable generator."""
        credits = self.credits or 0
        return catalog.Course(
            course_code=self.code,
            course_name=self.name,
            department=self.department or '',
            credits=int(credits) if float(credits).is_integer() else credits,
            sections=tuple(s.to_catalog() for s in self.sections),
            term=self.term_id,
            career=self.career,
            description=self.description,
            enrollment_requirements=self.enrollment_requirements,
            prerequisites=tuple(self.prerequisites or ()),
        )

    def to_dict(self):
        data = self.to_catalog().to_dict()
        data['id'] = self.id
        data['lastUpdated'] = self.last_updated.isoformat() if self.last_updated else None
        return data

    def apply_catalog(self, course: catalog.Course) -> None:
        """Overwrite fields and sections with the contents of a catalog course."""
        self.name = course.course_name or course.course_code
        self.department = course.department
        self.credits = course.credits
        self.description = course.description
        self.enrollment_requirements = course.enrollment_requirements
        self.prerequisites = list(course.prerequisites)
        self.career = course.career
        self.sections = [Section.from_catalog(s) for s in course.sections]
        self.last_updated = datetime.utcnow()

    @classmethod
    def upsert_from_catalog(cls, course: catalog.Course, term_id=None) -> 'Course':
        """
        Insert or replace a course for a term. Existing sections are replaced.
        The caller commits.
        """
        term_id = term_id or course.term
        row = cls.query.filter_by(code=course.course_code, term_id=term_id).first()
        if row is None:
            row = cls(code=course.course_code, term_id=term_id)
            db.session.add(row)
        row.apply_catalog(course)
        return row
