# FocusFlow/cli.py

import argparse
import json
import logging
import os
import sys
from datetime import date

from dotenv import load_dotenv
load_dotenv()

from pydantic import ValidationError

from FocusFlow.ai.client import create_ai_client
from FocusFlow.config import Settings
from FocusFlow.database import init_database
from FocusFlow.database.store import open_store
from FocusFlow.models import AuthUser, CoreTaskSet, PlannedTask, TaskLogCreate, UserPreferences
from FocusFlow.session import Session
from FocusFlow.tracker import PlannedTaskNotFoundError, Tracker, UnknownCoreTaskError, month_bounds, today

log = logging.getLogger("FocusFlow.cli")


def _day(value: str) -> date:
    return date.fromisoformat(value)


def _print_model(model) -> None:
    print(model.model_dump_json(indent=2, by_alias=True))


def _print_models(models) -> None:
    print(json.dumps([m.model_dump(mode="json", by_alias=True) for m in models], indent=2))


def build_tracker(args_ns, current_settings: Settings) -> Tracker:
    if not args_ns.user:
        raise SystemExit("A user id is required: pass --user UID or set FOCUSFLOW_USER.")
    store = open_store(current_settings)
    session = Session(store, current_settings.default_reminder_times)
    session.sign_in(AuthUser(uid=args_ns.user))
    return Tracker(session, store, create_ai_client(current_settings), current_settings)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="focusflow",
        description="FocusFlow: core tasks, focus logging and AI weekly insights"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging for all FocusFlow modules."
    )
    parser.add_argument(
        "--user",
        default=os.getenv("FOCUSFLOW_USER"),
        help="User id to act as (default: $FOCUSFLOW_USER)."
    )
    subparsers = parser.add_subparsers(dest="command", title="Available Commands", required=True)

    # --- Database Init Subcommand ---
    parser_dbinit = subparsers.add_parser("init-db", help="Initialize the DuckDB database and create all tables.")
    def handle_init_db(args_ns, current_settings: Settings):
        if current_settings.database_path is None:
            log.warning("No database path configured; nothing to initialize.")
            return
        init_database(current_settings.database_path)
        log.info(f"DuckDB database initialized at {current_settings.database_path}.")
    parser_dbinit.set_defaults(func=handle_init_db)

    # --- Core Tasks Subcommand ---
    parser_core = subparsers.add_parser("core-tasks", help="Show or replace your three core tasks.")
    core_subparsers = parser_core.add_subparsers(dest="core_action", required=True)
    parser_core_show = core_subparsers.add_parser("show", help="List the core tasks.")
    def handle_core_show(args_ns, current_settings):
        _print_models(build_tracker(args_ns, current_settings).get_core_tasks())
    parser_core_show.set_defaults(func=handle_core_show)

    parser_core_set = core_subparsers.add_parser("set", help="Replace the core tasks (exactly three names).")
    parser_core_set.add_argument("names", nargs="+", help="Three task names, in slot order.")
    def handle_core_set(args_ns, current_settings):
        # Validate before opening the store so a bad count never touches it.
        core_tasks = CoreTaskSet.from_names(args_ns.names)
        _print_model(build_tracker(args_ns, current_settings).set_core_tasks(core_tasks))
    parser_core_set.set_defaults(func=handle_core_set)

    # --- Plan Subcommand ---
    parser_plan = subparsers.add_parser("plan", help="Manage planned time blocks.")
    plan_subparsers = parser_plan.add_subparsers(dest="plan_action", required=True)
    parser_plan_add = plan_subparsers.add_parser("add", help="Schedule a time block.")
    parser_plan_add.add_argument("--day", type=_day, default=None, help="Day YYYY-MM-DD (default: today).")
    parser_plan_add.add_argument("--start", required=True, help="Start time HH:MM.")
    parser_plan_add.add_argument("--end", required=True, help="End time HH:MM.")
    parser_plan_add.add_argument("--task", required=True, help="Core task id, e.g. task1.")
    parser_plan_add.add_argument("--title", default=None)
    parser_plan_add.add_argument("--description", default=None)
    def handle_plan_add(args_ns, current_settings):
        task = PlannedTask(
            date=args_ns.day or today(),
            start_time=args_ns.start,
            end_time=args_ns.end,
            core_task_id=args_ns.task,
            title=args_ns.title,
            description=args_ns.description,
        )
        task_id = build_tracker(args_ns, current_settings).plan_task(task)
        log.info(f"Planned task saved with id {task_id}.")
    parser_plan_add.set_defaults(func=handle_plan_add)

    parser_plan_list = plan_subparsers.add_parser("list", help="List planned blocks (default: this month).")
    parser_plan_list.add_argument("--start", type=_day, default=None)
    parser_plan_list.add_argument("--end", type=_day, default=None)
    def handle_plan_list(args_ns, current_settings):
        month_start, month_end = month_bounds(today())
        tracker = build_tracker(args_ns, current_settings)
        _print_models(tracker.planned_tasks_between(args_ns.start or month_start, args_ns.end or month_end))
    parser_plan_list.set_defaults(func=handle_plan_list)

    parser_plan_delete = plan_subparsers.add_parser("delete", help="Delete a planned block.")
    parser_plan_delete.add_argument("task_id")
    def handle_plan_delete(args_ns, current_settings):
        build_tracker(args_ns, current_settings).delete_planned_task(args_ns.task_id)
        log.info(f"Planned task {args_ns.task_id} deleted.")
    parser_plan_delete.set_defaults(func=handle_plan_delete)

    # --- Log Subcommand ---
    parser_log = subparsers.add_parser("log", help="Record focus (and optionally energy) for a core task.")
    parser_log.add_argument("--task", required=True, help="Core task id, e.g. task1.")
    parser_log.add_argument("--focus", type=int, required=True, help="Focus level 1-5.")
    parser_log.add_argument("--energy", default=None, help="Free-text note on how you feel.")
    parser_log.add_argument("--duration", type=float, default=None, help="Minutes spent (optional).")
    def handle_log(args_ns, current_settings):
        entry = TaskLogCreate(
            core_task_id=args_ns.task,
            focus_level=args_ns.focus,
            energy_input=args_ns.energy,
            duration_minutes=args_ns.duration,
        )
        log_id = build_tracker(args_ns, current_settings).log_task(entry)
        log.info(f"Task log saved with id {log_id}.")
    parser_log.set_defaults(func=handle_log)

    # --- Analytics / Insights Subcommands ---
    parser_analytics = subparsers.add_parser("analytics", help="Time distribution and average focus for a week.")
    parser_analytics.add_argument("--day", type=_day, default=None, help="Any day of the week (default: today).")
    def handle_analytics(args_ns, current_settings):
        _print_model(build_tracker(args_ns, current_settings).analytics(args_ns.day))
    parser_analytics.set_defaults(func=handle_analytics)

    parser_insights = subparsers.add_parser("insights", help="AI weekly summary and suggestions.")
    parser_insights.add_argument("--day", type=_day, default=None, help="Any day of the week (default: today).")
    def handle_insights(args_ns, current_settings):
        _print_model(build_tracker(args_ns, current_settings).weekly_insights(args_ns.day))
    parser_insights.set_defaults(func=handle_insights)

    # --- Preferences Subcommand ---
    parser_prefs = subparsers.add_parser("preferences", help="Show or set reminder times.")
    prefs_subparsers = parser_prefs.add_subparsers(dest="prefs_action", required=True)
    parser_prefs_show = prefs_subparsers.add_parser("show")
    def handle_prefs_show(args_ns, current_settings):
        _print_model(build_tracker(args_ns, current_settings).get_preferences())
    parser_prefs_show.set_defaults(func=handle_prefs_show)

    parser_prefs_set = prefs_subparsers.add_parser("set")
    parser_prefs_set.add_argument("times", nargs="+", help="Reminder times HH:MM.")
    def handle_prefs_set(args_ns, current_settings):
        prefs = UserPreferences(reminder_times=args_ns.times)
        _print_model(build_tracker(args_ns, current_settings).update_preferences(prefs))
    parser_prefs_set.set_defaults(func=handle_prefs_set)

    # --- Serve Subcommand ---
    parser_serve = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn.")
    parser_serve.add_argument("--host", default=None)
    parser_serve.add_argument("--port", type=int, default=None)
    def handle_serve(args_ns, current_settings: Settings):
        import uvicorn
        from FocusFlow.api.main import create_app
        uvicorn.run(
            create_app(current_settings),
            host=args_ns.host or current_settings.api_host,
            port=args_ns.port or current_settings.api_port,
        )
    parser_serve.set_defaults(func=handle_serve)

    return parser


def main(argv=None):
    settings = Settings()
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-8s | %(name)-20s | %(funcName)-25s | %(message)s",
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        logging.getLogger("FocusFlow").setLevel(logging.DEBUG)
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)
        for handler in root_logger.handlers:
            handler.setLevel(logging.DEBUG)
        log.debug("Debug logging enabled via CLI.")

    try:
        args.func(args, settings)
    except ValidationError as e:
        log.error(f"Invalid input: {e}")
        sys.exit(1)
    except (UnknownCoreTaskError, PlannedTaskNotFoundError) as e:
        log.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
