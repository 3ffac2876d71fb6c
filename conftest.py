"""Shared fixtures: an in-memory store and a scripted Jira client."""

import pytest

from clients import ApiError
from storage import MemoryStorage


class FakeJiraClient:
    """Stands in for JiraClient with canned issues and worklogs.

    tasks:     {assignee_id: [issue dict, ...]}
    worklogs:  {task_key: [worklog dict, ...]} (already filtered by date)
    users:     {assignee_id: {"displayName": ..., "emailAddress": ...}}
    fail_search / fail_worklogs: ids / keys that raise ApiError
    """

    def __init__(self, tasks=None, worklogs=None, users=None, fail_search=(), fail_worklogs=()):
        self.tasks = tasks or {}
        self.worklogs = worklogs or {}
        self.users = users or {}
        self.fail_search = set(fail_search)
        self.fail_worklogs = set(fail_worklogs)
        self.connected = True
        self.search_calls = []

    def test_connection(self):
        return self.connected

    def search_tasks(self, assignee_id, worklog_date):
        self.search_calls.append((assignee_id, worklog_date))
        if assignee_id in self.fail_search:
            raise ApiError("Jira: Connection timed out. The server may be slow.")
        return self.tasks.get(assignee_id, [])

    def get_worklogs(self, task_key, worklog_date):
        if task_key in self.fail_worklogs:
            raise ApiError("Jira: Server error.", 500)
        return self.worklogs.get(task_key, [])

    def get_user_info(self, account_id):
        return self.users.get(account_id)


def make_issue(key, summary="Some task", status="In Progress", assignee_name=None):
    fields = {"summary": summary, "status": {"name": status}}
    if assignee_name:
        fields["assignee"] = {"displayName": assignee_name}
    return {"key": key, "fields": fields}


def make_worklog(seconds, started="2024-01-10T09:00:00.000+0000"):
    return {"timeSpentSeconds": seconds, "started": started}


@pytest.fixture
def storage():
    """Empty roster, no seed data."""
    return MemoryStorage(preconfigured=[])


@pytest.fixture
def seeded_storage():
    return MemoryStorage(preconfigured=[("pj-1", "PJ"), ("pj-2", "PJ"), ("ag-1", "AG")])
