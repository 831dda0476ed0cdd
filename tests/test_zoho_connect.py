from datetime import timedelta

from app.errors import UpstreamUnavailable
from app.models.credentials import ZohoCredentials
from app.services import zoho_service
from app.services.record_source import FixtureRecordSource, ZohoRecordSource, get_record_source
from app.main import app
from app.utils.timezone import utcnow

CONNECT_BODY = {"clientId": "1000.ABC", "clientSecret": "s3cret", "organization": "acme"}


class BrokenExchangeSource(FixtureRecordSource):
    def exchange_token(self, client_id, client_secret, organization):
        raise UpstreamUnavailable("accounts server down")


def _credentials(db):
    db.expire_all()
    return db.query(ZohoCredentials).one()


def test_connect_requires_session(client):
    res = client.post("/api/zoho/connect", json=CONNECT_BODY)
    assert res.status_code == 401


def test_connect_requires_all_fields(member_client):
    res = member_client.post("/api/zoho/connect", json={"clientId": "1000.ABC", "organization": "acme"})
    assert res.status_code == 400
    assert res.json()["message"] == "Client ID, Client Secret, and Organization are required"


def test_connect_then_status(member_client, db):
    res = member_client.post("/api/zoho/connect", json=CONNECT_BODY)
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["tokenAcquired"] is True
    assert "s3cret" not in res.text

    status = member_client.get("/api/zoho/status").json()
    assert status["connected"] is True
    assert status["expiresAt"] is not None
    assert status["organization"] == "acme"

    creds = _credentials(db)
    assert creds.client_secret == "s3cret"
    assert creds.access_token


def test_reconnect_updates_existing_row(linked_client, db):
    res = linked_client.post(
        "/api/zoho/connect",
        json={"clientId": "1000.XYZ", "clientSecret": "other", "organization": "globex"},
    )
    assert res.status_code == 200

    creds = _credentials(db)
    assert creds.client_id == "1000.XYZ"
    assert creds.organization == "globex"


def test_disconnect_clears_tokens_but_keeps_credentials(linked_client, db):
    res = linked_client.post("/api/zoho/disconnect")
    assert res.status_code == 200
    assert res.json()["success"] is True

    status = linked_client.get("/api/zoho/status").json()
    assert status["connected"] is False
    assert status["expiresAt"] is None

    creds = _credentials(db)
    assert creds.access_token is None
    assert creds.refresh_token is None
    assert creds.expires_at is None
    assert creds.client_id == "1000.ABC"
    assert creds.client_secret == "s3cret"
    assert creds.organization == "acme"


def test_disconnect_without_link(member_client):
    res = member_client.post("/api/zoho/disconnect")
    assert res.status_code == 200
    assert member_client.get("/api/zoho/status").json()["connected"] is False


def test_degraded_connect_reads_as_disconnected(member_client, db):
    app.dependency_overrides[get_record_source] = lambda: BrokenExchangeSource()

    res = member_client.post("/api/zoho/connect", json=CONNECT_BODY)
    assert res.status_code == 200
    assert res.json()["success"] is True
    assert res.json()["tokenAcquired"] is False

    assert member_client.get("/api/zoho/status").json()["connected"] is False
    creds = _credentials(db)
    assert creds.organization == "acme"
    assert creds.access_token is None


def test_expired_token_reads_as_disconnected(linked_client, db):
    creds = _credentials(db)
    creds.expires_at = utcnow() - timedelta(minutes=1)
    db.commit()

    assert linked_client.get("/api/zoho/status").json()["connected"] is False


def test_connect_rejects_blank_secret(member_client):
    res = member_client.post("/api/zoho/connect", json={**CONNECT_BODY, "clientSecret": "   "})
    assert res.status_code == 400


def test_connect_secret_is_stripped(member_client, db):
    member_client.post("/api/zoho/connect", json={**CONNECT_BODY, "clientSecret": " s3cret \n"})
    assert _credentials(db).client_secret == "s3cret"


class _BadTokenResponse:
    status_code = 200

    def json(self):
        return {"access_token": "at", "expires_in": "later"}


def test_malformed_token_response_degrades_connect(member_client, db, monkeypatch):
    monkeypatch.setattr(zoho_service.requests, "post", lambda *args, **kwargs: _BadTokenResponse())
    app.dependency_overrides[get_record_source] = lambda: ZohoRecordSource()

    res = member_client.post("/api/zoho/connect", json=CONNECT_BODY)

    assert res.status_code == 200
    assert res.json()["tokenAcquired"] is False
    assert _credentials(db).access_token is None
