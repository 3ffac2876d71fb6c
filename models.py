"""Data models for the worklog dashboard."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Assignee:
    """A tracked Jira user."""

    id: str
    assignee_id: str  # Jira account id
    name: str | None = None
    email: str | None = None
    group: str | None = None  # PJ, AG, LOS or None for user-added
    is_preconfigured: bool = False
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "assigneeId": self.assignee_id,
            "name": self.name,
            "email": self.email,
            "group": self.group,
            "isPreconfigured": self.is_preconfigured,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass
class WorklogEntry:
    """Hours one assignee logged on one task on one day."""

    assignee_id: str
    task_key: str
    hours_logged: str  # e.g. "2.5h"
    worklog_date: str  # YYYY-MM-DD
    assignee_name: str | None = None
    task_summary: str | None = None
    task_status: str | None = None
    id: str | None = None  # Set by storage
    created_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "assigneeId": self.assignee_id,
            "assigneeName": self.assignee_name,
            "taskKey": self.task_key,
            "taskSummary": self.task_summary,
            "taskStatus": self.task_status,
            "hoursLogged": self.hours_logged,
            "worklogDate": self.worklog_date,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class AssigneeSummary:
    """Per-assignee rollup row of the dashboard."""

    assignee_id: str
    name: str
    email: str
    initials: str
    tasks_count: int = 0
    hours: float = 0.0
    hours_logged: str = "0h"
    progress_percent: int = 0
    status: str = "Inactive"  # Active | Inactive
    group: str | None = None
    is_preconfigured: bool = False

    def to_dict(self) -> dict:
        return {
            "assigneeId": self.assignee_id,
            "name": self.name,
            "email": self.email,
            "initials": self.initials,
            "tasksCount": self.tasks_count,
            "hoursLogged": self.hours_logged,
            "progressPercent": self.progress_percent,
            "status": self.status,
            "group": self.group,
            "isPreconfigured": self.is_preconfigured,
        }


@dataclass
class TaskRow:
    """A single task line of the dashboard."""

    key: str
    summary: str
    status: str
    assignee: str
    assignee_id: str
    worklog_hours: str

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "summary": self.summary,
            "status": self.status,
            "assignee": self.assignee,
            "assigneeId": self.assignee_id,
            "worklogHours": self.worklog_hours,
        }


@dataclass
class DashboardView:
    """Aggregated view for one date, optionally one group."""

    total_hours: str
    active_assignees: int
    tasks_worked: int
    worklog_date: str  # Display format
    selected_group: str | None
    assignee_worklogs: list[AssigneeSummary] = field(default_factory=list)
    tasks: list[TaskRow] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "totalHours": self.total_hours,
            "activeAssignees": self.active_assignees,
            "tasksWorked": self.tasks_worked,
            "worklogDate": self.worklog_date,
            "selectedGroup": self.selected_group,
            "assigneeWorklogs": [a.to_dict() for a in self.assignee_worklogs],
            "tasks": [t.to_dict() for t in self.tasks],
        }


@dataclass
class FetchResult:
    """Outcome of a single fetch-and-aggregate run."""

    worklog_date: str
    entries: list[WorklogEntry] = field(default_factory=list)
    assignees_processed: int = 0
    assignees_failed: int = 0
    tasks_failed: int = 0
    skipped: bool = False  # No active assignees, store untouched

    def to_dict(self) -> dict:
        return {
            "worklogDate": self.worklog_date,
            "entriesSaved": len(self.entries),
            "assigneesProcessed": self.assignees_processed,
            "assigneesFailed": self.assignees_failed,
            "tasksFailed": self.tasks_failed,
            "skipped": self.skipped,
        }
