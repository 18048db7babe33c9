"""Middleware for authentication context and access control."""
from functools import wraps
from flask import session, g, current_app
from storefront.database import get_session
from storefront.models import AppUser
from storefront.exceptions import AuthenticationRequired, UnauthorizedError


def load_user():
    """
    Load the current user into g (Flask's per-request global).

    Called before each request. Sets g.user and g.user_id if authenticated.
    """
    g.user = None
    g.user_id = None

    try:
        user_id = session.get('user_id')
        if user_id:
            db_session = get_session()
            if not db_session:
                return

            user = db_session.query(AppUser).filter_by(id=user_id, active=True).first()
            if user:
                g.user = user
                g.user_id = user.id
            else:
                # Deleted or deactivated since login
                session.pop('user_id', None)
    except Exception as e:
        # Anonymous request rather than a crashed one
        current_app.logger.error(f"Error in load_user: {e}")


def require_login(f):
    """Decorator: reject anonymous requests with 401."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise AuthenticationRequired()
        return f(*args, **kwargs)
    return decorated_function


def require_admin(f):
    """Decorator: 401 when anonymous, 403 for non-admin users."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = g.get('user')
        if user is None:
            raise AuthenticationRequired()
        if not user.is_admin:
            current_app.logger.warning(f"[SECURITY] Non-admin user {user.id} denied admin endpoint")
            raise UnauthorizedError()
        return f(*args, **kwargs)
    return decorated_function
