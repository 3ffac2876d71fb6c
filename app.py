"""
Worklog dashboard: HTTP API and daily Jira worklog fetch.

Usage:
    # Serve the API and run the daily fetch at WORKLOG_SCHEDULE_TIME
    python app.py serve --port 5000

    # Fetch one day now (default: previous working day)
    python app.py fetch --date 2024-01-10

    # Check Jira credentials
    python app.py check
"""

import argparse
import logging
from typing import Any, Callable

from dotenv import load_dotenv
from flask import Flask, jsonify, request

from clients import JiraClient
from dashboard import build_dashboard
from scheduler import JobAlreadyRunningError, WorklogScheduler
from storage import DuplicateAssigneeError, MemoryStorage, Storage
from utils import ConfigError, is_valid_date, load_config, validate_config

logger = logging.getLogger(__name__)


def validate_assignee_payload(payload: Any) -> list[str]:
    """Validate an add-assignee request body and return list of error messages."""
    if not isinstance(payload, dict):
        return ["Request body must be a JSON object"]

    errors = []
    assignee_id = payload.get("assigneeId")
    if not isinstance(assignee_id, str) or not assignee_id.strip():
        errors.append("assigneeId is required")

    for key in ("group", "name", "email"):
        value = payload.get(key)
        if value is not None and not isinstance(value, str):
            errors.append(f"{key} must be a string")

    for key in ("isPreconfigured", "isActive"):
        value = payload.get(key)
        if value is not None and not isinstance(value, bool):
            errors.append(f"{key} must be a boolean")

    return errors


def create_app(
    storage: Storage,
    scheduler: WorklogScheduler,
    client_factory: Callable[[], JiraClient] | None = None,
    denylist: list[str] | None = None,
) -> Flask:
    app = Flask(__name__)
    client_factory = client_factory or scheduler.client_factory
    if denylist is None:
        denylist = load_config()["assignees"]["denylist"]
    denied = set(denylist)

    @app.post("/api/test-connection")
    def api_test_connection():
        try:
            client = client_factory()
        except ConfigError as e:
            return jsonify({"success": False, "message": str(e)}), 400

        try:
            connected = client.test_connection()
        except Exception:
            logger.exception("Connection test failed")
            return jsonify({"success": False, "message": "Connection test failed"}), 500

        if connected:
            return jsonify({"success": True, "message": "Successfully connected to JIRA"})
        return jsonify({"success": False, "message": "Failed to connect to JIRA"}), 400

    @app.get("/api/assignees")
    def api_assignees():
        try:
            assignees = storage.get_assignees()
        except Exception:
            logger.exception("Failed to get assignees")
            return jsonify({"message": "Failed to get assignees"}), 500
        return jsonify([a.to_dict() for a in assignees])

    @app.post("/api/assignees")
    def api_add_assignee():
        payload = request.get_json(silent=True)
        errors = validate_assignee_payload(payload)
        if errors:
            return jsonify({"message": "; ".join(errors)}), 400

        assignee_id = payload["assigneeId"].strip()
        if assignee_id in denied:
            logger.warning("Rejected denylisted assignee %s", assignee_id)
            return (
                jsonify(
                    {"message": "This assignee cannot be added, please check their worklog manually"}
                ),
                400,
            )

        try:
            assignee = storage.add_assignee(
                assignee_id,
                group=payload.get("group"),
                name=payload.get("name"),
                email=payload.get("email"),
                is_preconfigured=payload.get("isPreconfigured") or False,
                is_active=payload.get("isActive") is not False,
            )
        except DuplicateAssigneeError as e:
            return jsonify({"message": str(e)}), 400
        return jsonify(assignee.to_dict())

    @app.delete("/api/assignees/<path:assignee_id>")
    def api_remove_assignee(assignee_id: str):
        try:
            storage.remove_assignee(assignee_id)
        except Exception:
            logger.exception("Failed to remove assignee %s", assignee_id)
            return jsonify({"message": "Failed to remove assignee"}), 500
        return jsonify({"success": True})

    @app.get("/api/dashboard")
    def api_dashboard():
        worklog_date = request.args.get("date") or None
        group = request.args.get("group") or None
        if worklog_date and not is_valid_date(worklog_date):
            return jsonify({"message": "date must be YYYY-MM-DD"}), 400

        try:
            view = build_dashboard(storage, worklog_date, group)
        except Exception:
            logger.exception("Dashboard data error")
            return jsonify({"message": "Failed to get dashboard data"}), 500
        return jsonify(view.to_dict())

    @app.post("/api/refresh")
    def api_refresh():
        payload = request.get_json(silent=True) or {}
        worklog_date = payload.get("date") if isinstance(payload, dict) else None
        if worklog_date and not (isinstance(worklog_date, str) and is_valid_date(worklog_date)):
            return jsonify({"success": False, "message": "date must be YYYY-MM-DD"}), 400

        try:
            result = scheduler.run(worklog_date or None)
        except JobAlreadyRunningError as e:
            return jsonify({"success": False, "message": str(e)}), 409
        except ConfigError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except Exception as e:
            logger.exception("Manual worklog refresh failed")
            return jsonify({"success": False, "message": str(e) or "Failed to refresh worklog data"}), 500

        body = {"success": True, "message": "Worklog data refreshed successfully"}
        body.update(result.to_dict())
        return jsonify(body)

    @app.get("/api/scheduler")
    def api_scheduler():
        try:
            status = scheduler.status()
        except Exception:
            logger.exception("Failed to get scheduler status")
            return jsonify({"message": "Failed to get scheduler status"}), 500
        return jsonify(status)

    return app


# ============================================================================
# CLI
# ============================================================================


def build_scheduler(storage: Storage, config: dict) -> WorklogScheduler:
    return WorklogScheduler(
        storage,
        schedule_time=config["schedule"]["time"],
        timezone=config["schedule"]["timezone"],
    )


def cmd_serve(args: argparse.Namespace, config: dict) -> int:
    storage = MemoryStorage()
    try:
        scheduler = build_scheduler(storage, config)
    except ConfigError as e:
        print(f"[!] ERROR: {e}")
        return 1
    app = create_app(storage, scheduler, denylist=config["assignees"]["denylist"])

    if not args.no_scheduler:
        scheduler.start()
    try:
        app.run(host=args.host, port=args.port, threaded=True)
    finally:
        scheduler.shutdown()
    return 0


def cmd_fetch(args: argparse.Namespace, config: dict) -> int:
    if args.date and not is_valid_date(args.date):
        print(f"Error: Invalid date format '{args.date}'. Expected YYYY-MM-DD")
        return 1

    storage = MemoryStorage()
    try:
        scheduler = build_scheduler(storage, config)
        result = scheduler.run(args.date)
    except ConfigError as e:
        print(f"[!] ERROR: {e}")
        return 1

    print(f"[*] {result.worklog_date}: {len(result.entries)} entries")
    for entry in result.entries:
        print(f"    {entry.assignee_name}: {entry.task_key} {entry.hours_logged}")
    if result.assignees_failed or result.tasks_failed:
        print(f"[!] {result.assignees_failed} assignees and {result.tasks_failed} tasks failed")
    return 0


def cmd_check(args: argparse.Namespace, config: dict) -> int:
    try:
        client = JiraClient.from_env()
    except ConfigError as e:
        print(f"[!] ERROR: {e}")
        return 1

    print(f"[*] Testing {client.base_url} ...")
    if client.test_connection():
        print("    Connected.")
        return 0
    print("    [!] Connection failed, see log above.")
    return 1


def main():
    parser = argparse.ArgumentParser(
        description="Jira worklog dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python app.py serve --port 5000
    python app.py serve --no-scheduler
    python app.py fetch --date 2024-01-10
    python app.py check
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API and daily scheduler")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=5000)
    serve.add_argument("--no-scheduler", action="store_true", help="Do not schedule the daily fetch")

    fetch = sub.add_parser("fetch", help="Fetch one day of worklogs and print them")
    fetch.add_argument("--date", help="Day to fetch (YYYY-MM-DD), default: previous working day")

    sub.add_parser("check", help="Test the Jira connection")

    args = parser.parse_args()

    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config()
    schedule_errors = [e for e in validate_config(config) if "JIRA_" not in e]
    if schedule_errors:
        for err in schedule_errors:
            print(f"[!] ERROR: {err}")
        return 1

    commands = {"serve": cmd_serve, "fetch": cmd_fetch, "check": cmd_check}
    return commands[args.command](args, config)


if __name__ == "__main__":
    exit(main())
