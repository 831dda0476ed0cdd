"""
In-memory data structures for the sync pipeline.

- RawTimesheetRecord: one record as reported by Zoho (or the fixture source)
- EntryData: normalized, per-record time entry
- HoursSummary: rollup of entries by project or employee
- AggregationResult: everything a sync persists
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional


DEFAULT_JOB_NAME = "General"


@dataclass(frozen=True)
class RawTimesheetRecord:
    record_id: str
    work_date: date
    project_id: str
    project_name: str
    employee_id: str
    employee_name: str
    job_name: Optional[str]
    client_name: str
    billable_hours: float
    non_billable_hours: float
    total_hours: float
    approval_status: str = "Pending"
    notes: str = ""


@dataclass(frozen=True)
class EntryData:
    """Normalized time entry. total_hours == billable_hours + non_billable_hours."""
    record_id: str
    date: date
    project: str
    employee: str
    job: Optional[str]
    billable_hours: float
    non_billable_hours: float
    total_hours: float


@dataclass
class HoursSummary:
    name: str
    billable_hours: float = 0.0
    non_billable_hours: float = 0.0
    total_hours: float = 0.0

    def add(self, entry: EntryData):
        self.billable_hours += entry.billable_hours
        self.non_billable_hours += entry.non_billable_hours
        self.total_hours += entry.total_hours


@dataclass(frozen=True)
class DashboardStats:
    billable_hours: float = 0.0
    non_billable_hours: float = 0.0
    total_hours: float = 0.0
    active_projects: int = 0
    active_employees: int = 0


@dataclass
class AggregationResult:
    entries: list[EntryData] = field(default_factory=list)
    project_summaries: list[HoursSummary] = field(default_factory=list)
    employee_summaries: list[HoursSummary] = field(default_factory=list)
    stats: DashboardStats = field(default_factory=DashboardStats)


@dataclass(frozen=True)
class TokenGrant:
    access_token: str
    refresh_token: Optional[str]
    expires_at: Optional[datetime]


@dataclass(frozen=True)
class SyncOutcome:
    source: str
    start_date: date
    end_date: date
    time_entries: int
    project_hours: int
    employee_hours: int
