"""
Authentication blueprint.
Handles signup, login, logout and the current-user endpoint.
"""
from flask import Blueprint, jsonify, request, session, g
from flask_wtf.csrf import generate_csrf
import logging

from storefront.database import get_session
from storefront.forms.store_forms import SignupForm, LoginForm
from storefront.middleware import require_login
from storefront.services import auth_service

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def _start_session(user):
    session.clear()
    session['user_id'] = user.id
    session.permanent = True


@auth_bp.route('/signup', methods=['POST'])
def signup():
    form = SignupForm.from_json(request.get_json(silent=True)).validate_or_raise()
    user = auth_service.register_user(
        get_session(),
        name=form.name.data,
        email=form.email.data,
        password=form.password.data,
    )
    _start_session(user)
    return jsonify({
        'success': True,
        'message': 'Account created successfully',
        'user': user.to_dict(),
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    form = LoginForm.from_json(request.get_json(silent=True)).validate_or_raise()
    user = auth_service.authenticate(get_session(), form.email.data, form.password.data)
    _start_session(user)
    logger.info(f"[AUTH] Login {user.email}")
    return jsonify({'success': True, 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'success': True, 'message': 'Logged out'})


@auth_bp.route('/me', methods=['GET'])
@require_login
def me():
    return jsonify({'success': True, 'user': g.user.to_dict()})


@auth_bp.route('/csrf', methods=['GET'])
def csrf_token():
    """Token for the X-CSRFToken header on state-changing requests."""
    return jsonify({'success': True, 'csrfToken': generate_csrf()})
