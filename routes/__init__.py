from .terms import terms_bp
from .courses import courses_bp
from .schedules import schedules_bp
from .upload import upload_bp

__all__ = ['terms_bp', 'courses_bp', 'schedules_bp', 'upload_bp']
