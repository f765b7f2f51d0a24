import pytest

from app import create_app
from data.seed_data import seed_database
from models import db


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SCHEDULE_TIME_LIMIT': None,
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def seeded_app(app):
    with app.app_context():
        seed_database()
    return app


@pytest.fixture
def client(seeded_app):
    return seeded_app.test_client()
