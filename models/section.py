from .database import db
from utils import catalog


class Section(db.Model):
    """A lecture, tutorial, lab or seminar section of a course."""

    __tablename__ = 'sections'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False, index=True)
    section_code = db.Column(db.String(20), nullable=False)  # e.g. "A", "AT01"
    section_type = db.Column(db.String(20), nullable=False)  # Lecture, Tutorial, Lab, Seminar
    parent_lecture = db.Column(db.String(20), nullable=True)  # None = pairs with any lecture

    quota = db.Column(db.Integer, default=0)
    enrolled = db.Column(db.Integer, default=0)
    seats_remaining = db.Column(db.Integer, nullable=True)

    instructor_name = db.Column(db.String(200), nullable=True)
    instructor_email = db.Column(db.String(200), nullable=True)
    instructor_department = db.Column(db.String(100), nullable=True)
    language = db.Column(db.String(30), nullable=True)
    class_number = db.Column(db.String(20), nullable=True)
    add_consent = db.Column(db.Boolean, default=False)
    drop_consent = db.Column(db.Boolean, default=False)

    meetings = db.relationship('Meeting', backref='section', lazy='select',
                               cascade='all, delete-orphan', order_by='Meeting.id')

    def __repr__(self):
        return f'<Section {self.section_code} ({self.section_type})>'

    def to_catalog(self) -> catalog.Section:
        instructor = None
        if self.instructor_name:
            instructor = catalog.Instructor(
                name=self.instructor_name,
                email=self.instructor_email,
                department=self.instructor_department,
            )
        return catalog.Section(
            section_id=self.section_code,
            section_type=self.section_type,
            time_slots=tuple(m.to_catalog() for m in self.meetings),
            quota=self.quota or 0,
            enrolled=self.enrolled or 0,
            seats_remaining=self.seats_remaining,
            parent_lecture=self.parent_lecture,
            instructor=instructor,
            language=self.language,
            class_number=self.class_number,
            add_consent=bool(self.add_consent),
            drop_consent=bool(self.drop_consent),
        )

    @classmethod
    def from_catalog(cls, section: catalog.Section) -> 'Section':
        instructor = section.instructor
        row = cls(
            section_code=section.section_id,
            section_type=section.section_type.value,
            parent_lecture=section.parent_lecture,
            quota=section.quota,
            enrolled=section.enrolled,
            seats_remaining=section.seats_remaining,
            instructor_name=instructor.name if instructor else None,
            instructor_email=instructor.email if instructor else None,
            instructor_department=instructor.department if instructor else None,
            language=section.language,
            class_number=section.class_number,
            add_consent=section.add_consent,
            drop_consent=section.drop_consent,
        )
        row.meetings = [Meeting.from_catalog(slot) for slot in section.time_slots]
        return row

    def to_dict(self):
        data = self.to_catalog().to_dict()
        data['id'] = self.id
        return data


class Meeting(db.Model):
    """One weekly meeting time of a section."""

    __tablename__ = 'meetings'

    id = db.Column(db.Integer, primary_key=True)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id'), nullable=False, index=True)
    day = db.Column(db.String(10), nullable=False)  # Monday..Sunday
    start_time = db.Column(db.String(5), nullable=False)  # "HH:MM"
    end_time = db.Column(db.String(5), nullable=False)
    location = db.Column(db.String(100), nullable=True)

    def __repr__(self):
        return f'<Meeting {self.day} {self.start_time}-{self.end_time}>'

    def to_catalog(self) -> catalog.TimeSlot:
        return catalog.TimeSlot(
            day=self.day,
            start_time=self.start_time,
            end_time=self.end_time,
            location=self.location,
        )

    @classmethod
    def from_catalog(cls, slot: catalog.TimeSlot) -> 'Meeting':
        return cls(
            day=slot.day.value,
            start_time=slot.start_time,
            end_time=slot.end_time,
            location=slot.location,
        )
