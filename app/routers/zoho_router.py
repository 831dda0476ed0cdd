from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.errors import ValidationError
from app.models.schemas import ZohoConnectRequest
from app.models.user import User
from app.services.auth_service import require_authenticated
from app.services.credential_service import CredentialService
from app.services.record_source import RecordSource, get_record_source
from app.utils.timezone import to_utc_iso
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/zoho", tags=["zoho"])


@router.post("/connect")
def connect(
    body: ZohoConnectRequest,
    user: User = Depends(require_authenticated),
    db: Session = Depends(get_db),
    source: RecordSource = Depends(get_record_source)
):
    client_id = body.client_id.strip()
    client_secret = body.client_secret.strip()
    organization = body.organization.strip()
    if not client_id or not client_secret or not organization:
        raise ValidationError("Client ID, Client Secret, and Organization are required")

    _, token_acquired = CredentialService.connect(
        db,
        user.id,
        client_id=client_id,
        client_secret=client_secret,
        organization=organization,
        source=source
    )

    if token_acquired:
        message = "Successfully connected to Zoho People"
    else:
        message = "Zoho credentials saved, but no access token could be obtained. Check the credentials and reconnect."
    return {"success": True, "message": message, "tokenAcquired": token_acquired}


@router.post("/disconnect")
def disconnect(user: User = Depends(require_authenticated), db: Session = Depends(get_db)):
    CredentialService.disconnect(db, user.id)
    return {"success": True, "message": "Successfully disconnected from Zoho People"}


@router.get("/status")
def status(user: User = Depends(require_authenticated), db: Session = Depends(get_db)):
    state = CredentialService.status(db, user.id)
    return {
        "success": True,
        "connected": state["connected"],
        "expiresAt": to_utc_iso(state["expires_at"]),
        "organization": state["organization"],
    }
