import os
import dotenv
dotenv.load_dotenv()
basedir = os.path.abspath(os.path.dirname(__file__))


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


# Flask configuration
SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-key-please-change-in-production'
DEBUG = _env_bool('FLASK_DEBUG')

# Database configuration
if os.environ.get('DATABASE_URL'):
    SQLALCHEMY_DATABASE_URI = os.environ['DATABASE_URL']
elif os.environ.get('VERCEL'):
    # Vercel filesystem is read-only, use ephemeral /tmp
    SQLALCHEMY_DATABASE_URI = 'sqlite:////tmp/timetable.db'
else:
    SQLALCHEMY_DATABASE_URI = 'sqlite:///' + os.path.join(basedir, 'timetable.db')
SQLALCHEMY_TRACK_MODIFICATIONS = False

# Uploads (saved timetable pages and JSON exports)
MAX_CONTENT_LENGTH = 16 * 1024 * 1024

# Logging
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
SCHEDULER_DEBUG = _env_bool('SCHEDULER_DEBUG')

# Timetable generation
SCHEDULE_MAX_RESULTS = int(os.environ.get('SCHEDULE_MAX_RESULTS', 100))
SCHEDULE_MAX_RESULTS_LIMIT = 500
SCHEDULE_OVERSAMPLE_FACTOR = 40
SCHEDULE_MIN_POOL = 4000
SCHEDULE_TIME_LIMIT = float(os.environ.get('SCHEDULE_TIME_LIMIT', 10.0))

# Terms offered when the database has none
DEFAULT_TERMS = [
    {'id': '2025-26-T1', 'name': '2025-26 Term 1'},
    {'id': '2025-26-T2', 'name': '2025-26 Term 2'},
    {'id': '2025-26-Summer', 'name': '2025-26 Summer Session'},
]
