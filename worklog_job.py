"""Fetch worklogs from Jira and aggregate them per assignee and task."""

import logging

from clients import ApiError, JiraClient
from models import Assignee, FetchResult, WorklogEntry
from storage import Storage
from utils import format_time_spent, get_previous_working_day

logger = logging.getLogger(__name__)


def _backfill_assignee(storage: Storage, client: JiraClient, assignee: Assignee) -> Assignee:
    """Fill in missing name/email from a Jira user lookup."""
    if assignee.name and assignee.email:
        return assignee

    user_info = client.get_user_info(assignee.assignee_id)
    if not user_info:
        return assignee

    return storage.update_assignee_info(
        assignee.assignee_id,
        user_info.get("displayName") or assignee.name,
        user_info.get("emailAddress") or assignee.email,
    )


def _collect_assignee_entries(
    client: JiraClient, assignee: Assignee, worklog_date: str, result: FetchResult
) -> list[WorklogEntry]:
    """Build one entry per task the assignee logged time on.

    A failing task is logged and skipped; a failing search raises to the
    caller.
    """
    entries = []
    tasks = client.search_tasks(assignee.assignee_id, worklog_date)

    for task in tasks:
        try:
            entry = _build_task_entry(client, assignee, task, worklog_date)
        except ApiError as e:
            logger.error("Failed to fetch worklogs for task %s: %s", _task_key(task), e)
            result.tasks_failed += 1
            continue
        except Exception:
            logger.exception("Error processing task %s", _task_key(task))
            result.tasks_failed += 1
            continue

        if entry is not None:
            entries.append(entry)

    return entries


def _task_key(task) -> str:
    return task.get("key", "?") if isinstance(task, dict) else "?"


def _build_task_entry(
    client: JiraClient, assignee: Assignee, task: dict, worklog_date: str
) -> WorklogEntry | None:
    """Sum one task's worklogs for the day; None if nothing was logged."""
    task_key = task["key"]
    fields = task.get("fields") or {}
    worklogs = client.get_worklogs(task_key, worklog_date)
    if not worklogs:
        return None

    total_seconds = sum(wl.get("timeSpentSeconds") or 0 for wl in worklogs)
    task_assignee = fields.get("assignee") or {}
    return WorklogEntry(
        assignee_id=assignee.assignee_id,
        assignee_name=assignee.name or task_assignee.get("displayName") or "Unknown",
        task_key=task_key,
        task_summary=fields.get("summary"),
        task_status=(fields.get("status") or {}).get("name"),
        hours_logged=format_time_spent(total_seconds),
        worklog_date=worklog_date,
    )


def fetch_worklogs(
    storage: Storage, client: JiraClient, worklog_date: str | None = None
) -> FetchResult:
    """Fetch worklogs for all active assignees and replace the date's entries.

    Args:
        storage: Store to read assignees from and write entries to
        client: Jira client
        worklog_date: Target day (YYYY-MM-DD), default: previous working day

    Returns:
        FetchResult with the entries written and failure counts
    """
    worklog_date = worklog_date or get_previous_working_day()
    result = FetchResult(worklog_date=worklog_date)

    assignees = storage.get_assignees()
    if not assignees:
        logger.info("No assignees configured, skipping worklog fetch")
        result.skipped = True
        return result

    logger.info("Fetching worklog data for %s (%d assignees)", worklog_date, len(assignees))

    all_entries = []
    for assignee in assignees:
        logger.info("Fetching tasks for assignee: %s", assignee.assignee_id)
        try:
            assignee = _backfill_assignee(storage, client, assignee)
            entries = _collect_assignee_entries(client, assignee, worklog_date, result)
        except ApiError as e:
            logger.error("Error processing assignee %s: %s", assignee.assignee_id, e)
            result.assignees_failed += 1
            continue
        except Exception:
            logger.exception("Error processing assignee %s", assignee.assignee_id)
            result.assignees_failed += 1
            continue

        result.assignees_processed += 1
        all_entries.extend(entries)

    result.entries = storage.replace_worklog_entries(worklog_date, all_entries)

    if result.entries:
        logger.info("Saved %d worklog entries for %s", len(result.entries), worklog_date)
    else:
        logger.info("No worklog entries found for %s", worklog_date)

    return result
