"""Dashboard view built from stored assignees and worklog entries."""

from models import AssigneeSummary, DashboardView, TaskRow
from storage import Storage
from utils import (
    format_date_display,
    format_hours_value,
    get_initials,
    get_previous_working_day,
    parse_hours,
    progress_percent,
)


def _group_of(storage: Storage, assignee_id: str) -> str | None:
    assignee = storage.get_assignee(assignee_id)
    return assignee.group if assignee else None


def build_dashboard(
    storage: Storage, worklog_date: str | None = None, group: str | None = None
) -> DashboardView:
    """Aggregate one day's entries into totals, per-assignee rows and task rows.

    Active assignees without entries are listed as Inactive with zero values.
    With a group, rows and totals cover only that group's assignees.
    """
    worklog_date = worklog_date or get_previous_working_day()
    group = group or None

    entries = storage.get_worklog_entries(worklog_date)
    if group:
        # Membership by id so historical entries of removed assignees still count
        entries = [e for e in entries if _group_of(storage, e.assignee_id) == group]

    summaries: dict[str, AssigneeSummary] = {}
    tasks = []
    total_hours = 0.0

    for entry in entries:
        hours = parse_hours(entry.hours_logged)
        total_hours += hours
        name = entry.assignee_name or "Unknown"

        summary = summaries.get(entry.assignee_id)
        if summary is None:
            assignee = storage.get_assignee(entry.assignee_id)
            summary = AssigneeSummary(
                assignee_id=entry.assignee_id,
                name=name,
                email=(assignee.email if assignee else None) or "",
                initials=get_initials(name),
                status="Active",
                group=assignee.group if assignee else None,
                is_preconfigured=assignee.is_preconfigured if assignee else False,
            )
            summaries[entry.assignee_id] = summary

        summary.tasks_count += 1
        summary.hours += hours

        tasks.append(
            TaskRow(
                key=entry.task_key,
                summary=entry.task_summary or "",
                status=entry.task_status or "",
                assignee=name,
                assignee_id=entry.assignee_id,
                worklog_hours=entry.hours_logged,
            )
        )

    for summary in summaries.values():
        summary.hours_logged = format_hours_value(summary.hours)
        summary.progress_percent = progress_percent(summary.hours)

    rows = list(summaries.values())

    listed = storage.get_assignees()
    if group:
        listed = [a for a in listed if a.group == group]
    for assignee in listed:
        if assignee.assignee_id in summaries:
            continue
        name = assignee.name or "Unknown"
        rows.append(
            AssigneeSummary(
                assignee_id=assignee.assignee_id,
                name=name,
                email=assignee.email or "",
                initials=get_initials(name),
                group=assignee.group,
                is_preconfigured=assignee.is_preconfigured,
            )
        )

    return DashboardView(
        total_hours=format_hours_value(total_hours),
        active_assignees=sum(1 for r in rows if r.status == "Active"),
        tasks_worked=len(tasks),
        worklog_date=format_date_display(worklog_date),
        selected_group=group,
        assignee_worklogs=rows,
        tasks=tasks,
    )
