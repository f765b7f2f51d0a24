from flask import Blueprint, current_app, jsonify
from models import Term

terms_bp = Blueprint('terms', __name__)


@terms_bp.route('')
def get_terms():
    """List terms, falling back to the configured defaults when none are stored."""
    terms = Term.query.order_by(Term.id).all()
    if terms:
        data = [term.to_dict() for term in terms]
    else:
        data = list(current_app.config.get('DEFAULT_TERMS', []))

    return jsonify({
        'success': True,
        'data': data
    })
