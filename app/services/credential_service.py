from sqlalchemy.orm import Session
from typing import Optional, Tuple
from app.errors import UpstreamError, UpstreamAuthExpired, UpstreamUnavailable, ZohoNotConnected
from app.models.credentials import ZohoCredentials
from app.models.records import TokenGrant
from app.services.record_source import RecordSource
from app.utils.timezone import utcnow
import logging

logger = logging.getLogger(__name__)


class CredentialService:
    @staticmethod
    def get_credentials(db: Session, user_id: int) -> Optional[ZohoCredentials]:
        return db.query(ZohoCredentials).filter(ZohoCredentials.user_id == user_id).first()

    @staticmethod
    def _apply_grant(credentials: ZohoCredentials, grant: Optional[TokenGrant]):
        credentials.access_token = grant.access_token if grant else None
        credentials.refresh_token = grant.refresh_token if grant else None
        credentials.expires_at = grant.expires_at if grant else None
        credentials.updated_at = utcnow()

    @staticmethod
    def connect(
        db: Session,
        user_id: int,
        client_id: str,
        client_secret: str,
        organization: str,
        source: RecordSource
    ) -> Tuple[ZohoCredentials, bool]:
        """
        Save the user's Zoho credentials and try to obtain a token.

        The link is saved even when the token exchange fails; the second
        element of the result tells whether a token was acquired.
        """
        grant = None
        try:
            grant = source.exchange_token(client_id, client_secret, organization)
        except UpstreamError as e:
            logger.warning(f"Token exchange failed for user {user_id}, saving link without token: {e.message}")

        credentials = CredentialService.get_credentials(db, user_id)
        if credentials is None:
            credentials = ZohoCredentials(user_id=user_id)
            db.add(credentials)

        credentials.client_id = client_id
        credentials.client_secret = client_secret
        credentials.organization = organization
        CredentialService._apply_grant(credentials, grant)

        db.commit()
        db.refresh(credentials)
        logger.info(f"Zoho credentials saved for user {user_id} (organization={organization}, token={'yes' if grant else 'no'})")
        return credentials, grant is not None

    @staticmethod
    def disconnect(db: Session, user_id: int) -> bool:
        """Clear tokens but keep client id, secret and organization for reconnecting."""
        credentials = CredentialService.get_credentials(db, user_id)
        if credentials is None:
            return False

        CredentialService._apply_grant(credentials, None)
        db.commit()
        logger.info(f"Zoho tokens cleared for user {user_id}")
        return True

    @staticmethod
    def status(db: Session, user_id: int) -> dict:
        credentials = CredentialService.get_credentials(db, user_id)
        if credentials is None:
            return {"connected": False, "expires_at": None, "organization": None}
        connected = credentials.is_active()
        return {
            "connected": connected,
            "expires_at": credentials.expires_at if connected else None,
            "organization": credentials.organization,
        }

    @staticmethod
    def get_active_credentials(db: Session, user_id: int, source: RecordSource) -> ZohoCredentials:
        """
        Credentials ready for a fetch. An expired token is refreshed once.
        A rejected refresh means the link has expired; an unreachable Zoho
        is reported as such.
        """
        credentials = CredentialService.get_credentials(db, user_id)
        if credentials is None or not credentials.has_token():
            raise ZohoNotConnected()

        if not credentials.is_expired():
            return credentials

        logger.info(f"Zoho token for user {user_id} expired at {credentials.expires_at}, refreshing")
        try:
            grant = source.refresh_token(credentials)
        except UpstreamUnavailable as e:
            logger.error(f"Token refresh for user {user_id} could not reach Zoho: {e.message}")
            raise
        except UpstreamError as e:
            logger.warning(f"Token refresh rejected for user {user_id}: {e.message}")
            raise UpstreamAuthExpired() from e

        CredentialService._apply_grant(credentials, grant)
        db.commit()
        db.refresh(credentials)
        logger.info(f"Zoho token refreshed for user {user_id}, expires at {credentials.expires_at}")
        return credentials
