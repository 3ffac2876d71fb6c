"""Tests for the HTTP API."""

import pytest

from app import create_app, main, validate_assignee_payload
from conftest import FakeJiraClient, make_issue, make_worklog
from scheduler import WorklogScheduler
from utils import ConfigError

DAY = "2024-01-10"
DENIED = "712020:denied"


@pytest.fixture
def jira():
    return FakeJiraClient(
        tasks={"pj-1": [make_issue("PROJ-1", "Build API"), make_issue("PROJ-2", "Docs")]},
        worklogs={"PROJ-1": [make_worklog(9000)], "PROJ-2": [make_worklog(3600)]},
        users={"pj-1": {"displayName": "Pat Jones", "emailAddress": "pat@example.com"}},
    )


@pytest.fixture
def scheduler(seeded_storage, jira):
    return WorklogScheduler(seeded_storage, client_factory=lambda: jira)


@pytest.fixture
def client(seeded_storage, scheduler):
    app = create_app(seeded_storage, scheduler, denylist=[DENIED])
    app.config["TESTING"] = True
    return app.test_client()


# ---------------------------------------------------------------------------
# Assignees
# ---------------------------------------------------------------------------

class TestAssignees:

    def test_list_active(self, client):
        r = client.get("/api/assignees")
        assert r.status_code == 200
        ids = [a["assigneeId"] for a in r.get_json()]
        assert ids == ["pj-1", "pj-2", "ag-1"]
        assert r.get_json()[0]["isPreconfigured"] is True

    def test_add(self, client):
        r = client.post("/api/assignees", json={"assigneeId": " u-9 ", "group": "LOS"})
        assert r.status_code == 200
        body = r.get_json()
        assert body["assigneeId"] == "u-9"
        assert body["group"] == "LOS"
        assert body["isActive"] is True
        assert body["isPreconfigured"] is False
        assert "u-9" in [a["assigneeId"] for a in client.get("/api/assignees").get_json()]

    def test_add_duplicate(self, client):
        r = client.post("/api/assignees", json={"assigneeId": "pj-1"})
        assert r.status_code == 400
        assert r.get_json()["message"] == "Assignee already exists"

    @pytest.mark.parametrize(
        "payload",
        [{}, {"assigneeId": ""}, {"assigneeId": 42}, {"assigneeId": "u-1", "isActive": "yes"}, []],
    )
    def test_add_invalid(self, client, payload):
        r = client.post("/api/assignees", json=payload)
        assert r.status_code == 400
        assert r.get_json()["message"]

    def test_add_non_json(self, client):
        r = client.post("/api/assignees", data="assigneeId=u-1")
        assert r.status_code == 400

    def test_add_denylisted(self, client):
        r = client.post("/api/assignees", json={"assigneeId": DENIED})
        assert r.status_code == 400
        ids = [a["assigneeId"] for a in client.get("/api/assignees").get_json()]
        assert DENIED not in ids

    def test_remove_user_added(self, client):
        client.post("/api/assignees", json={"assigneeId": "u-9"})
        r = client.delete("/api/assignees/u-9")
        assert r.status_code == 200
        assert r.get_json() == {"success": True}
        ids = [a["assigneeId"] for a in client.get("/api/assignees").get_json()]
        assert "u-9" not in ids

    def test_remove_preconfigured_is_noop(self, client):
        r = client.delete("/api/assignees/pj-1")
        assert r.status_code == 200
        ids = [a["assigneeId"] for a in client.get("/api/assignees").get_json()]
        assert "pj-1" in ids

    def test_remove_id_with_colon(self, client):
        client.post("/api/assignees", json={"assigneeId": "712020:abc-def"})
        assert client.delete("/api/assignees/712020:abc-def").status_code == 200
        ids = [a["assigneeId"] for a in client.get("/api/assignees").get_json()]
        assert "712020:abc-def" not in ids


class TestPayloadValidation:

    def test_valid(self):
        assert validate_assignee_payload({"assigneeId": "u-1", "group": None, "isActive": True}) == []

    def test_collects_all_errors(self):
        errors = validate_assignee_payload({"group": 1, "isPreconfigured": "no"})
        assert errors == [
            "assigneeId is required",
            "group must be a string",
            "isPreconfigured must be a boolean",
        ]


# ---------------------------------------------------------------------------
# Refresh and dashboard
# ---------------------------------------------------------------------------

class TestRefresh:

    def test_refresh_then_dashboard(self, client):
        r = client.post("/api/refresh", json={"date": DAY})
        assert r.status_code == 200
        body = r.get_json()
        assert body["success"] is True
        assert body["entriesSaved"] == 2
        assert body["worklogDate"] == DAY

        view = client.get(f"/api/dashboard?date={DAY}").get_json()
        assert view["totalHours"] == "3.5h"
        assert view["tasksWorked"] == 2
        assert view["activeAssignees"] == 1
        assert view["worklogDate"] == "Wednesday, January 10, 2024"
        pat = next(a for a in view["assigneeWorklogs"] if a["assigneeId"] == "pj-1")
        assert pat["name"] == "Pat Jones"
        assert pat["progressPercent"] == 44

    def test_refresh_twice_does_not_duplicate(self, client):
        client.post("/api/refresh", json={"date": DAY})
        client.post("/api/refresh", json={"date": DAY})
        view = client.get(f"/api/dashboard?date={DAY}").get_json()
        assert view["tasksWorked"] == 2

    def test_refresh_without_body(self, client, jira):
        r = client.post("/api/refresh")
        assert r.status_code == 200
        assert jira.search_calls

    def test_refresh_bad_date(self, client):
        r = client.post("/api/refresh", json={"date": "10/01/2024"})
        assert r.status_code == 400

    def test_refresh_config_error(self, seeded_storage):
        def no_config():
            raise ConfigError("JIRA environment variables not configured")

        scheduler = WorklogScheduler(seeded_storage, client_factory=no_config)
        app = create_app(seeded_storage, scheduler, denylist=[])
        r = app.test_client().post("/api/refresh", json={})
        assert r.status_code == 400
        assert r.get_json()["success"] is False

    def test_refresh_unexpected_error(self, seeded_storage):
        def broken():
            raise RuntimeError("store exploded")

        scheduler = WorklogScheduler(seeded_storage, client_factory=broken)
        app = create_app(seeded_storage, scheduler, denylist=[])
        r = app.test_client().post("/api/refresh", json={"date": DAY})
        assert r.status_code == 500
        assert r.get_json()["message"] == "store exploded"

    def test_refresh_while_running(self, seeded_storage, scheduler):
        app = create_app(seeded_storage, scheduler, denylist=[])
        scheduler._guard.acquire()
        try:
            r = app.test_client().post("/api/refresh", json={"date": DAY})
        finally:
            scheduler._guard.release()
        assert r.status_code == 409


class TestDashboard:

    def test_empty_day(self, client):
        view = client.get(f"/api/dashboard?date={DAY}").get_json()
        assert view["totalHours"] == "0h"
        assert view["tasksWorked"] == 0
        assert view["selectedGroup"] is None
        assert all(a["status"] == "Inactive" for a in view["assigneeWorklogs"])

    def test_group_filter(self, client):
        client.post("/api/refresh", json={"date": DAY})
        view = client.get(f"/api/dashboard?date={DAY}&group=AG").get_json()
        assert view["selectedGroup"] == "AG"
        assert view["totalHours"] == "0h"
        assert view["tasks"] == []
        assert [a["assigneeId"] for a in view["assigneeWorklogs"]] == ["ag-1"]

    def test_bad_date(self, client):
        assert client.get("/api/dashboard?date=2024-02-30").status_code == 400

    def test_store_failure_is_500(self, seeded_storage, scheduler, monkeypatch):
        app = create_app(seeded_storage, scheduler, denylist=[])

        def boom(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(seeded_storage, "get_worklog_entries", boom)
        r = app.test_client().get(f"/api/dashboard?date={DAY}")
        assert r.status_code == 500
        assert r.get_json() == {"message": "Failed to get dashboard data"}


# ---------------------------------------------------------------------------
# Connection test and scheduler status
# ---------------------------------------------------------------------------

class TestConnection:

    def test_connected(self, client):
        r = client.post("/api/test-connection")
        assert r.status_code == 200
        assert r.get_json()["success"] is True

    def test_rejected(self, client, jira):
        jira.connected = False
        r = client.post("/api/test-connection")
        assert r.status_code == 400
        assert r.get_json()["success"] is False

    def test_not_configured(self, seeded_storage, scheduler):
        def no_config():
            raise ConfigError("JIRA environment variables not configured")

        app = create_app(seeded_storage, scheduler, client_factory=no_config, denylist=[])
        r = app.test_client().post("/api/test-connection")
        assert r.status_code == 400
        assert "not configured" in r.get_json()["message"]

    def test_credentials_not_exposed(self, client):
        body = client.post("/api/test-connection").get_data(as_text=True)
        assert "secret" not in body


class TestSchedulerStatus:

    def test_status(self, client):
        client.post("/api/refresh", json={"date": DAY})
        status = client.get("/api/scheduler").get_json()
        assert status["state"] == "idle"
        assert status["lastResult"]["entriesSaved"] == 2

    def test_status_failure_is_500(self, seeded_storage, scheduler, monkeypatch):
        app = create_app(seeded_storage, scheduler, denylist=[])

        def boom():
            raise RuntimeError("boom")

        monkeypatch.setattr(scheduler, "status", boom)
        r = app.test_client().get("/api/scheduler")
        assert r.status_code == 500
        assert r.get_json() == {"message": "Failed to get scheduler status"}


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

class TestCli:

    def test_bad_timezone_reports_error(self, monkeypatch, capsys):
        monkeypatch.setenv("WORKLOG_TIMEZONE", "Mars/Olympus_Mons")
        monkeypatch.delenv("WORKLOG_SCHEDULE_TIME", raising=False)
        monkeypatch.setattr("sys.argv", ["app.py", "fetch", "--date", DAY])
        assert main() == 1
        assert "[!] ERROR: Invalid WORKLOG_TIMEZONE" in capsys.readouterr().out
