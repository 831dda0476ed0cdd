from sqlalchemy import Column, Integer, String, DateTime, Enum
from app.database import Base
from app.utils.timezone import utcnow
import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    MEMBER = "member"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), nullable=False, unique=True, index=True)
    # "<hex hash>.<hex salt>", see app.services.auth_service
    password = Column(String(300), nullable=False)
    display_name = Column(String(200), nullable=True)
    email = Column(String(200), nullable=True)
    role = Column(Enum(UserRole, values_callable=lambda e: [m.value for m in e]), nullable=False, default=UserRole.MEMBER)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self):
        return f"<User(username={self.username}, role={self.role})>"
