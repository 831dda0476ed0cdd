from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from app.database import Base
from app.utils.timezone import utcnow


class ZohoCredentials(Base):
    __tablename__ = "zoho_credentials"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True, index=True)
    client_id = Column(String(200), nullable=False)
    client_secret = Column(String(200), nullable=False)
    organization = Column(String(200), nullable=False)
    access_token = Column(String(500), nullable=True)
    refresh_token = Column(String(500), nullable=True)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def has_token(self) -> bool:
        return bool(self.access_token)

    def is_expired(self, now=None) -> bool:
        if self.expires_at is None:
            return False
        return (now or utcnow()) >= self.expires_at

    def is_active(self, now=None) -> bool:
        """A usable link: token present and not past its expiry."""
        return self.has_token() and not self.is_expired(now)

    def __repr__(self):
        # never include client_secret or tokens
        return f"<ZohoCredentials(user={self.user_id}, organization={self.organization}, token={'yes' if self.access_token else 'no'})>"
