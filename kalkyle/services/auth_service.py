"""
Authentication service for user management.

Handles registration, password login, bearer token issuing and profile
updates. Tokens are HS256 JWTs carrying the user id and role.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from kalkyle.models import AppUser, UserRole
from kalkyle.exceptions import AuthError, ConflictError, ValidationError
from kalkyle.services.settings_service import create_default_settings

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def find_user_by_email(session: Session, email: str) -> Optional[AppUser]:
    """Case-insensitive email lookup."""
    return session.query(AppUser).filter(func.lower(AppUser.email) == email.strip().lower()).first()


def register_user(session: Session, email: str, password: str, name: str,
                  company: Optional[str] = None, role: str = UserRole.USER.value) -> AppUser:
    """
    Create a user together with its company settings.

    Raises:
        ValidationError: password too short
        ConflictError: email already registered
    """
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'Passord må være minst {MIN_PASSWORD_LENGTH} tegn', field='password')

    email = email.strip().lower()
    if find_user_by_email(session, email):
        raise ConflictError('E-postadressen er allerede registrert')

    try:
        user = AppUser(email=email, name=name, company=company, role=role, active=True)
        user.set_password(password)
        session.add(user)
        session.flush()

        create_default_settings(
            session, user.id,
            company_name=company,
            vat_percent=current_app.config.get('DEFAULT_VAT_PERCENT', 25.0),
            validity_days=current_app.config.get('DEFAULT_VALIDITY_DAYS', 30)
        )
        session.commit()
        logger.info(f"Registered user {email} (role={role})")
        return user
    except IntegrityError:
        # Concurrent registration of the same email
        session.rollback()
        raise ConflictError('E-postadressen er allerede registrert')
    except Exception:
        session.rollback()
        raise


def authenticate(session: Session, email: str, password: str) -> AppUser:
    """Return the active user matching the credentials or raise AuthError(401)."""
    user = find_user_by_email(session, email or '')
    if not user or not user.active or not user.check_password(password or ''):
        logger.warning(f"Failed login attempt for {email}")
        raise AuthError('Ugyldig e-post eller passord', status_code=401)
    return user


def issue_token(user: AppUser, now: Optional[datetime] = None) -> str:
    """Signed bearer token for the user."""
    now = now or datetime.now(timezone.utc)
    payload = {
        'user_id': user.id,
        'role': user.role,
        'iat': now,
        'exp': now + timedelta(days=current_app.config['JWT_EXPIRES_DAYS'])
    }
    return jwt.encode(
        payload,
        current_app.config['JWT_SECRET'],
        algorithm=current_app.config['JWT_ALGORITHM']
    )


def decode_token(token: str) -> Dict[str, Any]:
    """
    Verify a bearer token and return its claims.

    Raises:
        AuthError(403): expired, tampered or malformed token
    """
    try:
        payload = jwt.decode(
            token,
            current_app.config['JWT_SECRET'],
            algorithms=[current_app.config['JWT_ALGORITHM']]
        )
    except jwt.ExpiredSignatureError:
        raise AuthError('Tilgangstoken er utløpt', status_code=403)
    except jwt.InvalidTokenError:
        raise AuthError('Ugyldig tilgangstoken', status_code=403)

    if 'user_id' not in payload:
        raise AuthError('Ugyldig tilgangstoken', status_code=403)
    return payload


def update_profile(session: Session, user: AppUser, name: Optional[str] = None,
                   company: Optional[str] = None, current_password: Optional[str] = None,
                   new_password: Optional[str] = None) -> AppUser:
    """
    Update name, company and optionally the password.

    A password change requires the current password.
    """
    if new_password:
        if not current_password or not user.check_password(current_password):
            raise ValidationError('Nåværende passord er feil', field='currentPassword')
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f'Passord må være minst {MIN_PASSWORD_LENGTH} tegn', field='newPassword')

    try:
        if name:
            user.name = name
        if company is not None:
            user.company = company
        if new_password:
            user.set_password(new_password)
        user.updated_at = datetime.now(timezone.utc)
        session.commit()
        return user
    except Exception:
        session.rollback()
        raise
