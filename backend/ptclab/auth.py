from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models
from .database import utcnow
from .errors import InvalidCredentials, SessionInvalid

# purpose: credential checks and opaque bearer sessions for the local principal store
# status: active

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

SESSION_LIFETIME = timedelta(hours=24)
TOKEN_BYTES = 32


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # unrecognised or corrupt hash
        return False


def authenticate(db: Session, username: str, password: str) -> models.User:
    """Return the active user for the credentials or raise InvalidCredentials.

    Unknown user, inactive user and wrong password share one error.
    """
    user = db.execute(
        select(models.User).where(
            models.User.username == username, models.User.is_active.is_(True)
        )
    ).scalar_one_or_none()
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Rejected login for %r", username)
        raise InvalidCredentials()
    return user


def create_session(
    db: Session,
    user_id: str,
    now: datetime | None = None,
    lifetime: timedelta = SESSION_LIFETIME,
) -> str:
    issued = now or utcnow()
    token = secrets.token_urlsafe(TOKEN_BYTES)
    db.add(
        models.UserSession(
            user_id=user_id,
            token=token,
            created_at=issued,
            expires_at=issued + lifetime,
        )
    )
    db.commit()
    return token


def validate_session(db: Session, token: str | None, now: datetime | None = None) -> models.User:
    """Resolve a token to its user with a single session/user join."""
    if not token:
        raise SessionInvalid()
    moment = now or utcnow()
    user = db.execute(
        select(models.User)
        .join(models.UserSession, models.UserSession.user_id == models.User.id)
        .where(
            models.UserSession.token == token,
            models.UserSession.expires_at > moment,
            models.User.is_active.is_(True),
        )
    ).scalar_one_or_none()
    if user is None:
        raise SessionInvalid()
    return user


def invalidate_session(db: Session, token: str) -> None:
    db.query(models.UserSession).filter(models.UserSession.token == token).delete(
        synchronize_session=False
    )
    db.commit()
