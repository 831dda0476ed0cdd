from datetime import date

import pytest
import requests

from app.errors import UpstreamAuthExpired, UpstreamUnavailable
from app.services import zoho_service
from app.services.zoho_service import ZohoService, parse_timesheet_record, parse_work_date
from app.utils.timezone import utcnow


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


@pytest.fixture
def calls():
    return []


@pytest.fixture
def fake_get(monkeypatch, calls):
    def install(response=None, exc=None):
        def _get(url, params=None, headers=None, timeout=None):
            calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
            if exc is not None:
                raise exc
            return response

        monkeypatch.setattr(zoho_service.requests, "get", _get)

    return install


@pytest.fixture
def fake_post(monkeypatch, calls):
    def install(response=None, exc=None):
        def _post(url, params=None, timeout=None):
            calls.append({"url": url, "params": params, "timeout": timeout})
            if exc is not None:
                raise exc
            return response

        monkeypatch.setattr(zoho_service.requests, "post", _post)

    return install


ZOHO_ROW = {
    "timesheetId": "4132000000123",
    "workDate": "2024-03-04",
    "projectId": "P1",
    "projectName": "Mobile App Development",
    "userId": "U9",
    "userName": "Jane Smith",
    "taskName": "Code review",
    "clientName": "Globex",
    "billableHours": "5.5",
    "nonBillableHours": 1,
    "totalHours": 6.5,
    "approvalStatus": "Approved",
    "notes": "sprint 12",
}


def test_get_timesheets_request_shape(fake_get, calls):
    fake_get(FakeResponse(200, {"response": {"result": [ZOHO_ROW]}}))

    records = ZohoService(timeout=12).get_timesheets("acme", "tok-123", date(2024, 3, 1), date(2024, 3, 7))

    assert len(calls) == 1
    call = calls[0]
    assert call["url"] == "https://acme.zoho.com/people/api/timesheet/getTimesheets"
    assert call["params"] == {"fromDate": "2024-03-01", "toDate": "2024-03-07", "status": "All"}
    assert call["headers"] == {"Authorization": "Zoho-oauthtoken tok-123"}
    assert call["timeout"] == 12

    record = records[0]
    assert record.record_id == "4132000000123"
    assert record.work_date == date(2024, 3, 4)
    assert record.project_name == "Mobile App Development"
    assert record.employee_name == "Jane Smith"
    assert record.job_name == "Code review"
    assert record.billable_hours == 5.5
    assert record.non_billable_hours == 1.0


def test_default_timeout_from_settings(fake_get, calls):
    fake_get(FakeResponse(200, {"response": {"result": []}}))
    ZohoService().get_timesheets("acme", "tok", date(2024, 3, 1), date(2024, 3, 1))
    assert calls[0]["timeout"] == 30


def test_empty_result_is_empty(fake_get):
    fake_get(FakeResponse(200, {"response": {"result": []}}))
    assert ZohoService().get_timesheets("acme", "tok", date(2024, 3, 1), date(2024, 3, 7)) == []


def test_http_401_is_auth_expired(fake_get):
    fake_get(FakeResponse(401, {"message": "invalid token"}))
    with pytest.raises(UpstreamAuthExpired):
        ZohoService().get_timesheets("acme", "tok", date(2024, 3, 1), date(2024, 3, 7))


@pytest.mark.parametrize("status", [403, 500, 503])
def test_other_http_errors_are_unavailable(fake_get, status):
    fake_get(FakeResponse(status, {}))
    with pytest.raises(UpstreamUnavailable):
        ZohoService().get_timesheets("acme", "tok", date(2024, 3, 1), date(2024, 3, 7))


def test_timeout_is_unavailable(fake_get):
    fake_get(exc=requests.Timeout("read timed out"))
    with pytest.raises(UpstreamUnavailable):
        ZohoService().get_timesheets("acme", "tok", date(2024, 3, 1), date(2024, 3, 7))


def test_connection_error_is_unavailable(fake_get, calls):
    fake_get(exc=requests.ConnectionError("refused"))
    with pytest.raises(UpstreamUnavailable):
        ZohoService().get_timesheets("acme", "tok", date(2024, 3, 1), date(2024, 3, 7))
    # no retries
    assert len(calls) == 1


def test_non_json_body_is_unavailable(fake_get):
    fake_get(FakeResponse(200, None))
    with pytest.raises(UpstreamUnavailable):
        ZohoService().get_timesheets("acme", "tok", date(2024, 3, 1), date(2024, 3, 7))


def test_bad_record_is_unavailable(fake_get):
    fake_get(FakeResponse(200, {"response": {"result": [{"workDate": "someday"}]}}))
    with pytest.raises(UpstreamUnavailable):
        ZohoService().get_timesheets("acme", "tok", date(2024, 3, 1), date(2024, 3, 7))


def test_parse_record_defaults():
    record = parse_timesheet_record({"workDate": "04-Mar-2024", "hours": "3"}, index=2)

    assert record.record_id == "TS-2024-03-04-2"
    assert record.work_date == date(2024, 3, 4)
    assert record.project_name == "Unassigned"
    assert record.employee_name == "Unknown"
    assert record.job_name == "General"
    assert record.client_name == "Unknown Client"
    assert record.approval_status == "Pending"
    assert record.billable_hours == 0
    assert record.non_billable_hours == 0
    assert record.total_hours == 3


def test_parse_record_ignores_bad_numbers():
    record = parse_timesheet_record({"workDate": "2024-03-04", "billableHours": "abc", "nonBillableHours": -2})
    assert record.billable_hours == 0
    assert record.non_billable_hours == 0


@pytest.mark.parametrize("value", ["2024-03-04", "04-Mar-2024", "04/03/2024", date(2024, 3, 4)])
def test_parse_work_date_formats(value):
    assert parse_work_date(value) == date(2024, 3, 4)


def test_exchange_token(fake_post, calls):
    fake_post(FakeResponse(200, {"access_token": "at", "refresh_token": "rt", "expires_in": 3600}))

    grant = ZohoService().exchange_token("1000.ABC", "secret", "acme")

    assert calls[0]["url"] == "https://accounts.zoho.com/oauth/v2/token"
    assert calls[0]["params"]["grant_type"] == "client_credentials"
    assert calls[0]["params"]["client_id"] == "1000.ABC"
    assert grant.access_token == "at"
    assert grant.refresh_token == "rt"
    assert grant.expires_at > utcnow()


def test_exchange_token_rejected(fake_post):
    fake_post(FakeResponse(200, {"error": "invalid_client"}))
    with pytest.raises(UpstreamAuthExpired):
        ZohoService().exchange_token("1000.ABC", "wrong", "acme")


def test_exchange_token_network_failure(fake_post):
    fake_post(exc=requests.ConnectionError("dns"))
    with pytest.raises(UpstreamUnavailable):
        ZohoService().exchange_token("1000.ABC", "secret", "acme")


def test_refresh_keeps_refresh_token_when_not_rotated(fake_post, calls):
    fake_post(FakeResponse(200, {"access_token": "at2", "expires_in": 60}))

    grant = ZohoService().refresh_access_token("1000.ABC", "secret", "rt-old")

    assert calls[0]["params"]["grant_type"] == "refresh_token"
    assert grant.access_token == "at2"
    assert grant.refresh_token == "rt-old"


def test_zoho_token_error_body_is_auth_expired(fake_get):
    body = {"response": {"status": 1, "errors": {"code": 7218, "message": "Invalid OAuthToken"}}}
    fake_get(FakeResponse(200, body))
    with pytest.raises(UpstreamAuthExpired):
        ZohoService().get_timesheets("acme", "tok", date(2024, 3, 1), date(2024, 3, 7))


def test_zoho_other_error_body_is_unavailable(fake_get):
    body = {"response": {"status": 1, "errors": [{"code": 7005, "message": "Internal error"}]}}
    fake_get(FakeResponse(200, body))
    with pytest.raises(UpstreamUnavailable):
        ZohoService().get_timesheets("acme", "tok", date(2024, 3, 1), date(2024, 3, 7))


def test_zoho_errors_without_status_are_unavailable(fake_get):
    fake_get(FakeResponse(200, {"response": {"errors": {"message": "throttled"}}}))
    with pytest.raises(UpstreamUnavailable):
        ZohoService().get_timesheets("acme", "tok", date(2024, 3, 1), date(2024, 3, 7))


def test_status_zero_without_result_is_empty(fake_get):
    fake_get(FakeResponse(200, {"response": {"status": 0, "message": "No records"}}))
    assert ZohoService().get_timesheets("acme", "tok", date(2024, 3, 1), date(2024, 3, 7)) == []


@pytest.mark.parametrize("body", [
    {"response": "oops"},
    {"unexpected": True},
    ["not", "a", "dict"],
    {"response": {"status": 0, "result": "nope"}},
    {"response": {"status": 0, "result": ["not a row"]}},
])
def test_malformed_timesheet_body_is_unavailable(fake_get, body):
    fake_get(FakeResponse(200, body))
    with pytest.raises(UpstreamUnavailable):
        ZohoService().get_timesheets("acme", "tok", date(2024, 3, 1), date(2024, 3, 7))


@pytest.mark.parametrize("payload", [
    ["access_token"],
    {"access_token": "at", "expires_in": "soon"},
])
def test_malformed_token_response_is_unavailable(fake_post, payload):
    fake_post(FakeResponse(200, payload))
    with pytest.raises(UpstreamUnavailable):
        ZohoService().exchange_token("1000.ABC", "secret", "acme")
