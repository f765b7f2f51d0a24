import json
import logging

import click
from flask import Flask

from models import db
from models.database import init_app as init_db
from routes import courses_bp, terms_bp, schedules_bp, upload_bp


def create_app(overrides=None):
    """Application factory. overrides are applied on top of config.py."""
    app = Flask(__name__)
    app.config.from_object('config')
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    if app.config.get('SCHEDULER_DEBUG'):
        logging.getLogger('utils.timetable_generator').setLevel(logging.DEBUG)

    # Initialize database
    init_db(app)

    # Register blueprints
    app.register_blueprint(terms_bp, url_prefix='/api/terms')
    app.register_blueprint(courses_bp, url_prefix='/api/courses')
    app.register_blueprint(schedules_bp, url_prefix='/api/schedules')
    app.register_blueprint(upload_bp, url_prefix='/api/upload')

    # Create tables
    with app.app_context():
        db.create_all()

    @app.after_request
    def add_header(response):
        """Add headers to prevent caching."""
        response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
        response.headers['Pragma'] = 'no-cache'
        response.headers['Expires'] = '0'
        return response

    register_commands(app)
    return app


def register_commands(app):
    @app.cli.command('seed-db')
    def seed_db_command():
        """Recreate the tables and load the sample catalog."""
        from data.seed_data import seed_database

        db.drop_all()
        db.create_all()
        summary = seed_database()
        click.echo(f"Seeded {summary['terms']} terms and {summary['courses']} courses.")

    @app.cli.command('import-courses')
    @click.argument('path', type=click.Path(exists=True, dir_okay=False))
    @click.option('--term', default=None, help='Term id to file the courses under.')
    def import_courses_command(path, term):
        """Import a JSON course export (a list of courses or {"courses": [...]})."""
        from routes.upload import save_catalog_courses
        from utils.catalog import load_courses

        with open(path, encoding='utf-8') as f:
            raw = json.load(f)
        if isinstance(raw, dict):
            raw = raw.get('courses', [])

        courses, warnings = load_courses(raw)
        for message in warnings:
            click.echo(f'warning: {message}', err=True)

        saved = save_catalog_courses(courses, term)
        click.echo(f'Imported {saved} courses from {path}.')


if __name__ == '__main__':
    create_app().run(debug=True, port=5000)
