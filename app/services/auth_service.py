"""
Password hashing and session authentication.

Every router depends on this module for authentication; nothing else hashes
passwords or touches the session keys.
"""
import hashlib
import hmac
import logging
import secrets
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from app.database import get_db
from app.errors import NotAuthenticated, Forbidden
from app.models.user import User

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"

# scrypt work factors; stored hashes are "<hex hash>.<hex salt>"
_SCRYPT_N = 16384
_SCRYPT_R = 8
_SCRYPT_P = 1
_KEY_LEN = 64


def _scrypt(password: str, salt: str) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=_SCRYPT_N,
        r=_SCRYPT_R,
        p=_SCRYPT_P,
        dklen=_KEY_LEN,
    )


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    return f"{_scrypt(password, salt).hex()}.{salt}"


def verify_password(password: str, stored: str) -> bool:
    try:
        hashed, salt = stored.split(".", 1)
        expected = bytes.fromhex(hashed)
    except (AttributeError, ValueError):
        return False
    return hmac.compare_digest(_scrypt(password, salt), expected)


def issue_session(request: Request, user: User) -> None:
    # Drop anything from a previous login before binding the new principal
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id
    logger.info(f"Session issued for user {user.username} (id={user.id})")


def clear_session(request: Request) -> None:
    user_id = request.session.get(SESSION_USER_KEY)
    request.session.clear()
    if user_id is not None:
        logger.info(f"Session cleared for user id={user_id}")


def require_authenticated(request: Request, db: Session = Depends(get_db)) -> User:
    """FastAPI dependency: the logged-in user, or NotAuthenticated."""
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        raise NotAuthenticated()

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        # Session refers to a deleted account
        request.session.clear()
        raise NotAuthenticated()
    return user


def require_admin(user: User = Depends(require_authenticated)) -> User:
    if not user.is_admin:
        raise Forbidden("Only admin users can perform this action")
    return user
