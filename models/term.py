from .database import db


class Term(db.Model):
    """An academic term such as '2025-26 Term 1'."""

    __tablename__ = 'terms'

    id = db.Column(db.String(20), primary_key=True)  # e.g. "2025-26-T1"
    name = db.Column(db.String(100), nullable=False)

    courses = db.relationship('Course', backref='term', lazy='dynamic')

    def __repr__(self):
        return f'<Term {self.id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name
        }
