"""
Timesheet aggregation.

Pure functions, no I/O:
- to_entry: RawTimesheetRecord -> EntryData
- summarize_by: group entries into HoursSummary rows
- compute_stats: dashboard totals
- aggregate_records: all of the above in one result
"""

from typing import Callable, Iterable, List, Sequence
from app.models.records import (
    AggregationResult,
    DashboardStats,
    EntryData,
    HoursSummary,
    RawTimesheetRecord,
    DEFAULT_JOB_NAME,
)


def to_entry(record: RawTimesheetRecord) -> EntryData:
    billable = record.billable_hours
    # Hours in the reported total not covered by the parts count as non-billable
    non_billable = max(record.non_billable_hours, record.total_hours - billable)

    return EntryData(
        record_id=record.record_id,
        date=record.work_date,
        project=record.project_name,
        employee=record.employee_name,
        job=record.job_name or DEFAULT_JOB_NAME,
        billable_hours=billable,
        non_billable_hours=non_billable,
        total_hours=billable + non_billable,
    )


def summarize_by(entries: Iterable[EntryData], key: Callable[[EntryData], str]) -> List[HoursSummary]:
    """Sum hours per key, in order of first appearance."""
    summaries = {}
    for entry in entries:
        name = key(entry)
        if name not in summaries:
            summaries[name] = HoursSummary(name=name)
        summaries[name].add(entry)
    return list(summaries.values())


def compute_stats(entries: Sequence, project_count: int = None, employee_count: int = None) -> DashboardStats:
    """
    Dashboard totals. Works on EntryData and on stored TimeEntry rows alike,
    since both expose the same hour and name attributes.
    """
    billable = sum(e.billable_hours for e in entries)
    non_billable = sum(e.non_billable_hours for e in entries)
    if project_count is None:
        project_count = len({e.project for e in entries})
    if employee_count is None:
        employee_count = len({e.employee for e in entries})

    return DashboardStats(
        billable_hours=billable,
        non_billable_hours=non_billable,
        total_hours=billable + non_billable,
        active_projects=project_count,
        active_employees=employee_count,
    )


def aggregate_records(records: Iterable[RawTimesheetRecord]) -> AggregationResult:
    entries = [to_entry(r) for r in records]
    project_summaries = summarize_by(entries, lambda e: e.project)
    employee_summaries = summarize_by(entries, lambda e: e.employee)

    return AggregationResult(
        entries=entries,
        project_summaries=project_summaries,
        employee_summaries=employee_summaries,
        stats=compute_stats(entries, len(project_summaries), len(employee_summaries)),
    )
