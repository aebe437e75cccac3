"""CLI entry point for BlanketBuddy."""

import argparse
import logging

from blanket.config.loader import (
    get_config_value,
    load_config,
    save_config,
    set_config_value,
)
from blanket.daemon import ReminderDaemon, daemon_status, stop_daemon
from blanket.models.fetch import FetchFailure
from blanket.notify.scheduler import LocalReminderScheduler
from blanket.reporting.formatters import (
    format_quilt_text,
    format_records_json,
    format_records_text,
)
from blanket.storage import preferences_repo, refresh_repo
from blanket.storage.database import open_store
from blanket.viewmodel.app_view_model import AppViewModel

DEFAULT_CONFIG = "blanket.yaml"
DEFAULT_DB = "data/blanket.db"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="blanket",
        description="Daily temperatures and colors for a temperature blanket",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="Config YAML path")
    parser.add_argument("--db", default=DEFAULT_DB, help="SQLite DB path")

    sub = parser.add_subparsers(dest="command")

    # fetch
    fetch_p = sub.add_parser("fetch", help="Fetch records and print them")
    fetch_p.add_argument("--zip", dest="postal_code", help="Postal code (saved)")
    fetch_p.add_argument("--json", action="store_true", help="Print JSON")
    fetch_p.add_argument("--quilt", action="store_true", help="Print the quilt view")
    fetch_p.add_argument("--knit-purl", action="store_true", help="Show K/P letters")

    # color
    color_p = sub.add_parser("color", help="Show the color for a temperature")
    color_p.add_argument("temperature", type=float)

    # status
    sub.add_parser("status", help="Show preferences and recent refreshes")

    # prefs show / prefs set
    prefs_p = sub.add_parser("prefs", help="Preference operations")
    prefs_sub = prefs_p.add_subparsers(dest="prefs_command")
    prefs_sub.add_parser("show", help="Display saved preferences")
    pset_p = prefs_sub.add_parser("set", help="Set a preference")
    pset_p.add_argument("keyvalue", help="postal_code=... or reminder_time=HH:MM")

    # config show / config set
    config_p = sub.add_parser("config", help="Config operations")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Display current config")
    set_p = config_sub.add_parser("set", help="Set a config value")
    set_p.add_argument("keyvalue", help="key=value to set")

    # remind
    remind_p = sub.add_parser("remind", help="Run the daily reminder daemon")
    remind_p.add_argument("--stop", action="store_true", help="Stop a running daemon")
    remind_p.add_argument("--status", action="store_true", help="Show daemon status")
    remind_p.add_argument(
        "--test", action="store_true", help="Also send a one-off reminder shortly"
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)

    if args.command == "fetch":
        return _cmd_fetch(config, args)
    elif args.command == "color":
        return _cmd_color(config, args)
    elif args.command == "status":
        return _cmd_status(args)
    elif args.command == "prefs":
        return _cmd_prefs(args)
    elif args.command == "config":
        return _cmd_config(config, args)
    elif args.command == "remind":
        return _cmd_remind(config, args)
    else:
        parser.print_help()
        return 1


def _cmd_fetch(config, args) -> int:
    conn = open_store(args.db)
    try:
        vm = AppViewModel(config, store=conn)
        if args.postal_code is not None:
            vm.set_postal_code(args.postal_code)
        if args.knit_purl:
            vm.set_show_knit_purl(True)
        result = vm.refresh_sync()
    finally:
        conn.close()

    if isinstance(result, FetchFailure):
        print(f"Error: {vm.state.last_error}")
        return 1

    rows = vm.quilt()
    if args.json:
        print(format_records_json(rows))
    elif args.quilt:
        print(format_quilt_text(rows))
    else:
        print(format_records_text(rows))
    return 0


def _cmd_color(config, args) -> int:
    vm = AppViewModel(config)
    print(vm.color_for(args.temperature))
    return 0


def _cmd_status(args) -> int:
    conn = open_store(args.db)
    prefs = preferences_repo.get_all_preferences(conn)
    print(f"Postal code: {prefs.get('postal_code') or '-'} | "
          f"Reminder: {prefs.get('reminder_time') or '-'}")
    refreshes = refresh_repo.get_recent_refreshes(conn, limit=5)
    print(f"Recent refreshes: {len(refreshes)}")
    for r in refreshes:
        detail = f"{r['record_count']} records" if r["status"] == "ok" else r["error_message"]
        print(f"  {r['completed_at']} {r['status']}: {detail}")
    conn.close()
    return 0


def _cmd_prefs(args) -> int:
    conn = open_store(args.db)
    try:
        if args.prefs_command == "show":
            prefs = preferences_repo.get_all_preferences(conn)
            for key in preferences_repo.KNOWN_KEYS:
                print(f"{key}: {prefs.get(key, '')}")
            return 0
        elif args.prefs_command == "set":
            kv = args.keyvalue
            if "=" not in kv:
                print("Error: use key=value format")
                return 1
            key, value = (s.strip() for s in kv.split("=", 1))
            try:
                if key == preferences_repo.REMINDER_TIME_KEY:
                    at = preferences_repo.parse_time_of_day(value)
                    preferences_repo.set_reminder_time(conn, at)
                elif key == preferences_repo.POSTAL_CODE_KEY:
                    preferences_repo.set_postal_code(conn, value)
                else:
                    raise KeyError(f"Unknown preference: {key}")
            except (KeyError, ValueError) as e:
                print(f"Error: {e}")
                return 1
            print(f"Set {key} = {preferences_repo.get_preference(conn, key)}")
            return 0
        else:
            print("Use: prefs show | prefs set key=value")
            return 1
    finally:
        conn.close()


def _cmd_config(config, args) -> int:
    if args.config_command == "show":
        print(config.model_dump_json(indent=2))
        return 0
    elif args.config_command == "set":
        kv = args.keyvalue
        if "=" not in kv:
            print("Error: use key=value format")
            return 1
        key, value = kv.split("=", 1)
        try:
            new_config = set_config_value(config, key.strip(), value.strip())
            save_config(new_config, args.config)
            print(f"Set {key} = {get_config_value(new_config, key.strip())}")
            return 0
        except Exception as e:
            print(f"Error: {e}")
            return 1
    else:
        print("Use: config show | config set key=value")
        return 1


def _cmd_remind(config, args) -> int:
    if args.stop:
        return stop_daemon()
    if args.status:
        return daemon_status()

    conn = open_store(args.db)
    scheduler = LocalReminderScheduler(config.reminder)
    vm = AppViewModel(config, scheduler=scheduler, store=conn)
    conn.close()
    if vm.state.reminder_time is None and not args.test:
        print("No reminder time set. Use: blanket prefs set reminder_time=HH:MM")
        return 1

    vm.schedule_reminder()
    if args.test:
        vm.send_test_reminder()
    ReminderDaemon(
        scheduler, poll_seconds=config.ops.reminder_poll_seconds, db_path=args.db
    ).start()
    return 0
