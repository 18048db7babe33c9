"""
Authentication service for storefront accounts.

Handles user registration and password login. Session handling lives in
the auth blueprint.
"""
from sqlalchemy.exc import IntegrityError
import logging

from storefront.models import AppUser, UserRole
from storefront.exceptions import ConflictError, AuthenticationRequired

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or '').strip().lower()


def register_user(session, name: str, email: str, password: str, role: str = UserRole.CUSTOMER) -> AppUser:
    """
    Create a new account.

    Raises:
        ConflictError: if the email is already registered
    """
    email = normalize_email(email)
    if session.query(AppUser.id).filter_by(email=email).first():
        raise ConflictError('User with this email already exists')

    user = AppUser(name=name.strip(), email=email, role=role, active=True)
    user.set_password(password)
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError('User with this email already exists')

    logger.info(f"[AUTH] Registered {role} {email}")
    return user


def authenticate(session, email: str, password: str) -> AppUser:
    """Return the active user matching the credentials."""
    user = session.query(AppUser).filter_by(email=normalize_email(email), active=True).first()
    if not user or not user.check_password(password):
        logger.warning(f"[AUTH] Failed login for {normalize_email(email)}")
        raise AuthenticationRequired('Invalid email or password')
    return user


def ensure_admin(session, name: str, email: str, password: str) -> AppUser:
    """Create an admin account, or promote and reset an existing one."""
    user = session.query(AppUser).filter_by(email=normalize_email(email)).first()
    if user is None:
        return register_user(session, name, email, password, role=UserRole.ADMIN)

    user.role = UserRole.ADMIN
    user.active = True
    user.set_password(password)
    session.commit()
    logger.info(f"[AUTH] Promoted {user.email} to admin")
    return user
