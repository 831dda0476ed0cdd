import secrets
from functools import lru_cache
from sqlalchemy.orm import Session
from typing import List, Optional
from app.config import get_settings
from app.errors import Conflict, NotFound, ValidationError
from app.models.user import User, UserRole
from app.services.auth_service import hash_password, verify_password
import logging

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    return hash_password(secrets.token_hex(16))


class UserService:
    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_by_username(db: Session, username: str) -> Optional[User]:
        return db.query(User).filter(User.username == username).first()

    @staticmethod
    def list_users(db: Session) -> List[User]:
        return db.query(User).order_by(User.id).all()

    @staticmethod
    def authenticate(db: Session, username: str, password: str) -> Optional[User]:
        """Return the user when the password matches, else None."""
        user = UserService.get_by_username(db, username)
        # Unknown usernames still pay for one hash check
        stored = user.password if user is not None else _dummy_password_hash()
        if not verify_password(password, stored) or user is None:
            logger.info(f"Failed login for username '{username}'")
            return None
        return user

    @staticmethod
    def create_user(
        db: Session,
        username: str,
        password: str,
        display_name: str = None,
        email: str = None,
        role: UserRole = UserRole.MEMBER
    ) -> User:
        if UserService.get_by_username(db, username):
            raise Conflict("Username already exists")

        user = User(
            username=username,
            password=hash_password(password),
            display_name=display_name,
            email=email,
            role=role
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Created user {username} with role {role.value}")
        return user

    @staticmethod
    def change_password(db: Session, user_id: int, current_password: str, new_password: str) -> User:
        user = UserService.get_user(db, user_id)
        if user is None:
            raise NotFound("User not found")

        if not verify_password(current_password, user.password):
            raise ValidationError("Current password is incorrect")

        user.password = hash_password(new_password)
        db.commit()
        db.refresh(user)
        logger.info(f"Password changed for user {user.username}")
        return user

    @staticmethod
    def ensure_bootstrap_admin(db: Session) -> Optional[User]:
        """Create the configured admin account if it does not exist yet."""
        settings = get_settings()
        existing = UserService.get_by_username(db, settings.admin_username)
        if existing:
            if not existing.is_admin:
                logger.warning(f"Bootstrap admin '{settings.admin_username}' exists without admin role")
            return existing

        if not settings.admin_password:
            logger.warning("ADMIN_PASSWORD is not set; skipping bootstrap admin creation")
            return None

        user = UserService.create_user(
            db,
            username=settings.admin_username,
            password=settings.admin_password,
            display_name=settings.admin_display_name,
            email=settings.admin_email or None,
            role=UserRole.ADMIN
        )
        logger.info("Admin account created successfully")
        return user
