import requests
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional
from app.config import get_settings
from app.errors import UpstreamAuthExpired, UpstreamUnavailable
from app.models.records import RawTimesheetRecord, TokenGrant, DEFAULT_JOB_NAME
from app.utils.timezone import utcnow
import logging

logger = logging.getLogger(__name__)

ZOHO_DATE_FORMATS = ("%Y-%m-%d", "%d-%b-%Y", "%d/%m/%Y")

# Zoho People error codes for an invalid or expired OAuth token
ZOHO_AUTH_ERROR_CODES = {"7202", "7218", "7219"}


def _to_float(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    # NaN and negatives are treated as "no hours"
    if number != number or number < 0:
        return 0.0
    return number


def parse_work_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    for fmt in ZOHO_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognised work date: {value!r}")


def parse_timesheet_record(record: Dict[str, Any], index: int = 0) -> RawTimesheetRecord:
    """Map one Zoho getTimesheets result row onto a RawTimesheetRecord."""
    work_date = parse_work_date(record.get("workDate") or record.get("work_date"))
    billable = _to_float(record.get("billableHours"))
    non_billable = _to_float(record.get("nonBillableHours"))
    total = _to_float(record.get("totalHours")) or _to_float(record.get("hours"))

    return RawTimesheetRecord(
        record_id=str(record.get("timesheetId") or record.get("timesheet_id") or f"TS-{work_date.isoformat()}-{index}"),
        work_date=work_date,
        project_id=str(record.get("projectId") or ""),
        project_name=record.get("projectName") or "Unassigned",
        employee_id=str(record.get("userId") or ""),
        employee_name=record.get("userName") or "Unknown",
        job_name=record.get("jobName") or record.get("taskName") or DEFAULT_JOB_NAME,
        client_name=record.get("clientName") or "Unknown Client",
        billable_hours=billable,
        non_billable_hours=non_billable,
        total_hours=total,
        approval_status=record.get("approvalStatus") or "Pending",
        notes=record.get("notes") or "",
    )


def _zoho_errors(errors: Any) -> List[Dict[str, Any]]:
    if isinstance(errors, dict):
        return [errors]
    if isinstance(errors, list):
        return [e for e in errors if isinstance(e, dict)]
    return []


def _timesheet_result(body: Any) -> List[Any]:
    """
    Unwrap the result list of a getTimesheets body.

    Zoho reports API errors with HTTP 200 and a non-zero response.status, so
    those are raised here; only status 0 with no result is an empty period.
    """
    response = body.get("response") if isinstance(body, dict) else None
    if not isinstance(response, dict):
        raise UpstreamUnavailable("Unexpected Zoho timesheet response format")

    status = response.get("status", 0)
    errors = _zoho_errors(response.get("errors"))
    if status not in (0, "0") or response.get("errors"):
        codes = {str(e.get("code")) for e in errors}
        message = "; ".join(str(e.get("message", "")) for e in errors) or f"status {status}"
        if codes & ZOHO_AUTH_ERROR_CODES:
            logger.warning(f"Zoho rejected access token: {message}")
            raise UpstreamAuthExpired()
        logger.error(f"Zoho timesheet request failed: {message}")
        raise UpstreamUnavailable(f"Zoho timesheet request failed: {message}")

    result = response.get("result")
    if result is None:
        return []
    if not isinstance(result, list):
        raise UpstreamUnavailable("Unexpected Zoho timesheet result format")
    return result


class ZohoService:
    """Thin client for the Zoho People timesheet and OAuth endpoints."""

    def __init__(self, timeout: float = None):
        self.settings = get_settings()
        self.timeout = timeout if timeout is not None else self.settings.upstream_timeout_seconds

    def _timesheets_url(self, organization: str) -> str:
        return f"https://{organization}.{self.settings.zoho_api_domain}/people/api/timesheet/getTimesheets"

    def _token_url(self) -> str:
        return f"{self.settings.zoho_accounts_url.rstrip('/')}/oauth/v2/token"

    def _grant_from_response(self, payload: Any, refresh_token: Optional[str] = None) -> TokenGrant:
        if not isinstance(payload, dict):
            raise UpstreamUnavailable("Unexpected Zoho token response format")

        access_token = payload.get("access_token")
        if not access_token:
            error = payload.get("error", "no access_token in response")
            raise UpstreamAuthExpired(f"Zoho token request rejected: {error}")

        try:
            expires_in = int(payload.get("expires_in") or self.settings.token_lifetime_seconds)
        except (TypeError, ValueError):
            raise UpstreamUnavailable(f"Invalid expires_in in Zoho token response: {payload.get('expires_in')!r}")

        return TokenGrant(
            access_token=access_token,
            refresh_token=payload.get("refresh_token") or refresh_token,
            expires_at=utcnow() + timedelta(seconds=expires_in)
        )

    def _post_token(self, params: Dict[str, str]) -> Dict[str, Any]:
        try:
            response = requests.post(self._token_url(), params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Zoho token request failed: {e}")
            raise UpstreamUnavailable(f"Zoho token request failed: {e}")

        if response.status_code in (400, 401):
            logger.warning(f"Zoho token request rejected with HTTP {response.status_code}")
            raise UpstreamAuthExpired(f"Zoho token request rejected (HTTP {response.status_code})")
        if response.status_code >= 300:
            logger.error(f"Zoho token request returned HTTP {response.status_code}")
            raise UpstreamUnavailable(f"Zoho token request returned HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError:
            raise UpstreamUnavailable("Zoho token response was not JSON")

    def exchange_token(self, client_id: str, client_secret: str, organization: str) -> TokenGrant:
        """Self-client token exchange for the given organization."""
        logger.info(f"Requesting Zoho token for organization {organization}")
        payload = self._post_token({
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
            "scope": self.settings.zoho_scope,
            "soid": f"ZohoPeople.{organization}",
        })
        grant = self._grant_from_response(payload)
        logger.info(f"Zoho token acquired for organization {organization}, expires at {grant.expires_at}")
        return grant

    def refresh_access_token(self, client_id: str, client_secret: str, refresh_token: str) -> TokenGrant:
        logger.info("Refreshing Zoho access token")
        payload = self._post_token({
            "grant_type": "refresh_token",
            "client_id": client_id,
            "client_secret": client_secret,
            "refresh_token": refresh_token,
        })
        return self._grant_from_response(payload, refresh_token=refresh_token)

    def get_timesheets(self, organization: str, access_token: str, start: date, end: date) -> List[RawTimesheetRecord]:
        """
        One request for the closed interval [start, end].

        Raises UpstreamAuthExpired on HTTP 401 or a Zoho token error code and
        UpstreamUnavailable on any other failure.
        """
        params = {
            "fromDate": start.isoformat(),
            "toDate": end.isoformat(),
            "status": "All",
        }
        headers = {"Authorization": f"Zoho-oauthtoken {access_token}"}

        try:
            response = requests.get(
                self._timesheets_url(organization),
                params=params,
                headers=headers,
                timeout=self.timeout
            )
        except requests.Timeout:
            logger.error(f"Zoho timesheet request timed out after {self.timeout}s")
            raise UpstreamUnavailable("Zoho timesheet request timed out")
        except requests.RequestException as e:
            logger.error(f"Zoho timesheet request failed: {e}")
            raise UpstreamUnavailable(f"Zoho timesheet request failed: {e}")

        if response.status_code == 401:
            logger.warning(f"Zoho rejected access token for organization {organization}")
            raise UpstreamAuthExpired()
        if response.status_code >= 300:
            logger.error(f"Zoho timesheet request returned HTTP {response.status_code}")
            raise UpstreamUnavailable(f"Zoho returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError:
            raise UpstreamUnavailable("Zoho timesheet response was not JSON")

        result = _timesheet_result(body)
        if not result:
            logger.info(f"Zoho returned no timesheet records for {start} - {end}")
            return []

        try:
            records = [parse_timesheet_record(row, i) for i, row in enumerate(result)]
        except (AttributeError, TypeError, ValueError) as e:
            logger.error(f"Unexpected Zoho record format: {e}")
            raise UpstreamUnavailable(f"Unexpected Zoho record format: {e}")

        logger.info(f"Fetched {len(records)} Zoho timesheet records for {start} - {end}")
        return records
