from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def init_app(app):
    db.init_app(app)
    # Import models to register them with SQLAlchemy
    from .term import Term
    from .course import Course
    from .section import Section, Meeting
