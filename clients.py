"""API client for Jira."""

import logging

import requests

from utils import load_config, require_jira_config

logger = logging.getLogger(__name__)

TASK_FIELDS = ["summary", "status", "assignee"]

# Per-call timeouts in seconds
USER_TIMEOUT = 10
SEARCH_TIMEOUT = 30
WORKLOG_TIMEOUT = 15


class ApiError(Exception):
    """User-friendly API error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _handle_api_error(response: requests.Response, service: str) -> str:
    """Convert HTTP errors to user-friendly messages."""
    status = response.status_code

    messages = {
        400: f"{service}: Bad request. Check the assignee id and date.",
        401: f"{service}: Authentication failed. Check JIRA_USER_EMAIL and JIRA_API_TOKEN!",
        403: f"{service}: Access denied. Check your permissions or API token!",
        404: f"{service}: Resource not found. Check JIRA_URL!",
        429: f"{service}: Too many requests. Wait a moment and try again.",
        500: f"{service}: Server error. The service may be temporarily unavailable.",
        502: f"{service}: Bad gateway. The service may be temporarily unavailable.",
        503: f"{service}: Service unavailable. Try again later.",
    }

    return messages.get(status, f"{service}: HTTP {status} - {response.reason}")


def jql_quote(value: str) -> str:
    """Quote a value as a JQL string literal, escaping backslashes and quotes."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class JiraClient:
    """Client for Jira REST API."""

    def __init__(self, config: dict):
        self.base_url = config["jira"]["base_url"]
        self.email = config["jira"]["user_email"]
        self.token = config["jira"]["api_token"]

    @classmethod
    def from_env(cls) -> "JiraClient":
        """Build a client from environment config, raising ConfigError if incomplete."""
        config = load_config()
        require_jira_config(config)
        return cls(config)

    def _request(self, method: str, path: str, timeout: int, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        headers = {"Accept": "application/json"}
        if "json" in kwargs:
            headers["Content-Type"] = "application/json"
        try:
            r = requests.request(
                method,
                url,
                auth=(self.email, self.token),
                headers=headers,
                timeout=timeout,
                **kwargs,
            )
        except requests.exceptions.ConnectionError:
            raise ApiError(f"Jira: Cannot connect to {self.base_url}. Check your network!")
        except requests.exceptions.Timeout:
            raise ApiError("Jira: Connection timed out. The server may be slow.")
        except requests.exceptions.RequestException as e:
            raise ApiError(f"Jira: Request failed: {e}")

        if not r.ok:
            raise ApiError(_handle_api_error(r, "Jira"), r.status_code)
        try:
            return r.json()
        except ValueError:
            raise ApiError(f"Jira: Invalid JSON response from {path}", r.status_code)

    def get_myself(self) -> dict:
        """Get the authenticated user's profile."""
        return self._request("GET", "/rest/api/3/myself", USER_TIMEOUT)

    def test_connection(self) -> bool:
        """Check that the configured credentials are accepted."""
        try:
            self.get_myself()
        except ApiError as e:
            logger.error("Jira connection test failed: %s", e)
            return False
        return True

    def search_tasks(self, assignee_id: str, worklog_date: str) -> list[dict]:
        """Find issues assigned to a user with work logged on a date."""
        jql = f"worklogDate = '{worklog_date}' AND assignee = {jql_quote(assignee_id)}"
        issues = []
        next_page_token = None

        while True:
            payload = {"jql": jql, "fields": TASK_FIELDS, "maxResults": 100}
            if next_page_token:
                payload["nextPageToken"] = next_page_token
            data = self._request("POST", "/rest/api/3/search/jql", SEARCH_TIMEOUT, json=payload)

            issues.extend(data.get("issues", []))

            # Handle pagination
            next_page_token = data.get("nextPageToken")
            if data.get("isLast") or not next_page_token:
                break

        return issues

    def get_worklogs(self, task_key: str, worklog_date: str) -> list[dict]:
        """Fetch an issue's worklogs and keep those started on the given date."""
        worklogs = []
        start_at = 0

        while True:
            data = self._request(
                "GET",
                f"/rest/api/3/issue/{task_key}/worklog",
                WORKLOG_TIMEOUT,
                params={"startAt": start_at, "maxResults": 1000},
            )
            page = data.get("worklogs", [])
            worklogs.extend(page)

            start_at += len(page)
            if not page or start_at >= data.get("total", 0):
                break

        # started looks like 2024-01-10T09:00:00.000+0000
        return [wl for wl in worklogs if wl.get("started", "")[:10] == worklog_date]

    def get_user_info(self, account_id: str) -> dict | None:
        """Look up display name and email; None if the lookup fails."""
        try:
            data = self._request(
                "GET", "/rest/api/3/user", USER_TIMEOUT, params={"accountId": account_id}
            )
        except ApiError as e:
            logger.warning("Failed to fetch user info for %s: %s", account_id, e)
            return None
        if not isinstance(data, dict):
            logger.warning("Unexpected user payload for %s", account_id)
            return None
        return {
            "displayName": data.get("displayName"),
            "emailAddress": data.get("emailAddress"),
        }
