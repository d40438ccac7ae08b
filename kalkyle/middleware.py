"""Middleware for bearer-token authentication and owner context."""
from functools import wraps
from flask import g, request
from kalkyle.database import get_session
from kalkyle.exceptions import AuthError
from kalkyle.models import AppUser, UserRole
from kalkyle.services.auth_service import decode_token


def _bearer_token():
    header = request.headers.get('Authorization', '')
    if header.lower().startswith('bearer '):
        return header[7:].strip() or None
    return None


def load_user():
    """
    Load the authenticated user into g (Flask's per-request global).

    Called by require_auth. Sets g.user, g.user_id and g.user_role. Every
    owner-scoped query uses g.user_id.

    Raises:
        AuthError(401): no bearer token
        AuthError(403): invalid or expired token, or unknown/inactive user
    """
    g.user = None
    g.user_id = None
    g.user_role = None

    token = _bearer_token()
    if not token:
        raise AuthError('Ingen tilgangstoken oppgitt', status_code=401)

    payload = decode_token(token)

    db_session = get_session()
    user = db_session.query(AppUser).filter_by(id=payload['user_id'], active=True).first()
    if not user:
        raise AuthError('Ugyldig tilgangstoken', status_code=403)

    g.user = user
    g.user_id = user.id
    # Current role from the database, not the token claim
    g.user_role = user.role


def require_auth(f):
    """Decorator: require a valid bearer token."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        load_user()
        return f(*args, **kwargs)
    return decorated_function


def require_role(role=UserRole.ADMIN.value):
    """
    Decorator: require a role (after authentication).

    Only 'admin' is checked today; it guards catalog mutations.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            load_user()
            if g.user_role != role:
                raise AuthError('Krever administratortilgang', status_code=403)
            return f(*args, **kwargs)
        return decorated_function
    return decorator
