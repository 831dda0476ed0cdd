"""
Where a sync gets its timesheet records.

The source is picked by the RECORD_SOURCE setting:
- "zoho": the real Zoho People API
- "fixture": synthetic records, for demos and local development

An empty upstream result is just empty; it never falls back to fixtures.
"""
import random
import secrets
from datetime import date, timedelta
from typing import List
from app.config import get_settings
from app.errors import UpstreamAuthExpired
from app.models.credentials import ZohoCredentials
from app.models.records import RawTimesheetRecord, TokenGrant
from app.services.zoho_service import ZohoService
from app.utils.date_range import iter_days
from app.utils.timezone import utcnow
import logging

logger = logging.getLogger(__name__)

SOURCE_ZOHO = "zoho"
SOURCE_FIXTURE = "fixture"


class RecordSource:
    name = "base"

    def exchange_token(self, client_id: str, client_secret: str, organization: str) -> TokenGrant:
        raise NotImplementedError

    def refresh_token(self, credentials: ZohoCredentials) -> TokenGrant:
        raise NotImplementedError

    def fetch_records(self, credentials: ZohoCredentials, start: date, end: date) -> List[RawTimesheetRecord]:
        raise NotImplementedError


class ZohoRecordSource(RecordSource):
    name = SOURCE_ZOHO

    def __init__(self, zoho_service: ZohoService = None):
        self.zoho = zoho_service or ZohoService()

    def exchange_token(self, client_id, client_secret, organization):
        return self.zoho.exchange_token(client_id, client_secret, organization)

    def refresh_token(self, credentials):
        if not credentials.refresh_token:
            raise UpstreamAuthExpired()
        return self.zoho.refresh_access_token(
            credentials.client_id,
            credentials.client_secret,
            credentials.refresh_token
        )

    def fetch_records(self, credentials, start, end):
        return self.zoho.get_timesheets(credentials.organization, credentials.access_token, start, end)


class FixtureRecordSource(RecordSource):
    """
    Synthetic Zoho-shaped records.

    Generation is seeded from (user, start, end), so the same interval always
    produces the same records and repeated syncs store identical data.
    """
    name = SOURCE_FIXTURE

    PROJECTS = ["Website Redesign", "Mobile App Development", "E-commerce Platform", "CRM Implementation", "Data Migration"]
    EMPLOYEES = ["John Doe", "Jane Smith", "Robert Johnson", "Emily Davis", "Michael Wilson"]
    JOBS = ["Design", "Development", "Testing", "Project Management", "Documentation"]

    def __init__(self, token_lifetime_seconds: int = None):
        self.token_lifetime_seconds = token_lifetime_seconds or get_settings().token_lifetime_seconds

    def _grant(self) -> TokenGrant:
        return TokenGrant(
            access_token=f"fixture-{secrets.token_hex(16)}",
            refresh_token=f"fixture-refresh-{secrets.token_hex(16)}",
            expires_at=utcnow() + timedelta(seconds=self.token_lifetime_seconds)
        )

    def exchange_token(self, client_id, client_secret, organization):
        logger.warning(f"Fixture record source: issuing a placeholder token for organization {organization}")
        return self._grant()

    def refresh_token(self, credentials):
        if not credentials.refresh_token:
            raise UpstreamAuthExpired()
        return self._grant()

    def fetch_records(self, credentials, start, end):
        return self.generate(credentials.user_id, start, end)

    def generate(self, user_id: int, start: date, end: date) -> List[RawTimesheetRecord]:
        rng = random.Random(f"{user_id}:{start.isoformat()}:{end.isoformat()}")
        records = []

        for day in iter_days(start, end):
            for i in range(rng.randint(2, 4)):
                project_index = rng.randrange(len(self.PROJECTS))
                employee_index = rng.randrange(len(self.EMPLOYEES))
                job_index = rng.randrange(len(self.JOBS))

                billable = round(rng.uniform(0, 6), 1)
                non_billable = round(rng.uniform(0, 2), 1)

                records.append(RawTimesheetRecord(
                    record_id=f"TS{day:%Y%m%d}{i:02d}",
                    work_date=day,
                    project_id=f"PRJ{project_index}",
                    project_name=self.PROJECTS[project_index],
                    employee_id=f"USR{employee_index}",
                    employee_name=self.EMPLOYEES[employee_index],
                    job_name=self.JOBS[job_index],
                    client_name=f"Client {project_index + 1}",
                    billable_hours=billable,
                    non_billable_hours=non_billable,
                    total_hours=billable + non_billable,
                    approval_status="Approved",
                    notes=f"Work done on {day.isoformat()}"
                ))

        logger.info(f"Generated {len(records)} fixture records for user {user_id} ({start} - {end})")
        return records


def get_record_source() -> RecordSource:
    """FastAPI dependency returning the configured record source."""
    source = get_settings().record_source.strip().lower()
    if source == SOURCE_FIXTURE:
        return FixtureRecordSource()
    if source != SOURCE_ZOHO:
        logger.warning(f"Unknown RECORD_SOURCE '{source}', using zoho")
    return ZohoRecordSource()
