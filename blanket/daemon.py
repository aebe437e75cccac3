"""Reminder daemon: keeps the daily blanket reminder firing in the foreground.

Usage:
    python -m blanket remind           # run until SIGTERM/SIGINT
    python -m blanket remind --status
    python -m blanket remind --stop
"""

import json
import logging
import os
import signal
import sys
import time
from pathlib import Path

from blanket.models.common import utc_now, utc_now_iso
from blanket.notify.scheduler import LocalReminderScheduler
from blanket.storage import preferences_repo
from blanket.storage.database import open_store

logger = logging.getLogger(__name__)

DEFAULT_POLL_SECONDS = 30
PID_DIR = Path("data")
PID_FILE = PID_DIR / "reminder.pid"
STATE_FILE = PID_DIR / "reminder_state.json"
LOG_DIR = Path("logs")
MAX_LOG_FILES = 30  # Keep the last 30 daemon run logs


class ReminderDaemon:
    """Polls the scheduler and delivers due reminders, with signal handling."""

    def __init__(
        self,
        scheduler: LocalReminderScheduler,
        poll_seconds: int = DEFAULT_POLL_SECONDS,
        db_path: str | Path | None = None,
    ):
        self.scheduler = scheduler
        self.poll_seconds = poll_seconds
        self.db_path = db_path
        self._running = False
        self._total_delivered = 0
        self._started_at: str | None = None

    def start(self) -> None:
        self._check_not_already_running()
        self._write_pid()
        self._setup_signals()
        self._running = True
        self._started_at = utc_now_iso()
        file_handler = self._attach_log_file()

        next_fire = self.scheduler.next_fire_at()
        logger.info(
            "Reminder daemon started, poll=%ds pid=%d next=%s",
            self.poll_seconds, os.getpid(),
            next_fire.isoformat(timespec="minutes") if next_fire else "none",
        )
        print(f"⏰ Reminder daemon started (pid {os.getpid()}, polling every {self.poll_seconds}s)")
        print(f"   Logs: {LOG_DIR}/")
        print("   Stop: python -m blanket remind --stop")

        try:
            self._loop()
        except KeyboardInterrupt:
            logger.info("Daemon interrupted by keyboard")
        finally:
            self._cleanup()
            logging.getLogger().removeHandler(file_handler)
            file_handler.close()

    def _loop(self) -> None:
        while self._running:
            self.tick()
            self._save_state()

            # Sleep in 1-second increments so we can respond to signals
            sleep_until = time.monotonic() + self.poll_seconds
            while self._running and time.monotonic() < sleep_until:
                time.sleep(1)

    def tick(self) -> int:
        """Deliver anything due now. Returns the number delivered."""
        if self.db_path is not None:
            self._sync_reminder_time()
        fired = self.scheduler.fire_due()
        self._total_delivered += len(fired)
        return len(fired)

    def _sync_reminder_time(self) -> None:
        """Pick up a reminder time changed by another process."""
        conn = open_store(self.db_path)
        try:
            at = preferences_repo.get_reminder_time(conn)
        finally:
            conn.close()
        current = self.scheduler.daily_at
        if at is not None and at != current:
            logger.info("Reminder time changed to %s", at.strftime("%H:%M"))
            self.scheduler.schedule_daily(at)

    def _attach_log_file(self) -> logging.Handler:
        """Send this run's log records to logs/remind_<timestamp>.log."""
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        self._rotate_logs()
        timestamp = utc_now().strftime("%Y%m%dT%H%M%SZ")
        file_handler = logging.FileHandler(LOG_DIR / f"remind_{timestamp}.log")
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logging.getLogger().addHandler(file_handler)
        return file_handler

    def _rotate_logs(self) -> None:
        """Keep only the most recent log files."""
        logs = sorted(LOG_DIR.glob("remind_*.log"))
        if len(logs) >= MAX_LOG_FILES:
            for old in logs[: len(logs) - MAX_LOG_FILES + 1]:
                old.unlink(missing_ok=True)

    def _setup_signals(self) -> None:
        def _stop(signum: int, frame: object) -> None:
            sig_name = signal.Signals(signum).name
            logger.info("Received %s, shutting down", sig_name)
            self._running = False

        signal.signal(signal.SIGTERM, _stop)
        signal.signal(signal.SIGINT, _stop)

    def _check_not_already_running(self) -> None:
        if PID_FILE.exists():
            try:
                pid = int(PID_FILE.read_text().strip())
                os.kill(pid, 0)
                print(f"❌ Reminder daemon already running (pid {pid}).")
                sys.exit(1)
            except (ProcessLookupError, ValueError):
                # Stale PID file
                PID_FILE.unlink(missing_ok=True)
            except PermissionError:
                print(f"❌ Reminder daemon may be running (pid {pid}), can't verify.")
                sys.exit(1)

    def _write_pid(self) -> None:
        PID_DIR.mkdir(parents=True, exist_ok=True)
        PID_FILE.write_text(str(os.getpid()))

    def _save_state(self) -> None:
        next_fire = self.scheduler.next_fire_at()
        state = {
            "pid": os.getpid(),
            "started_at": self._started_at,
            "poll_seconds": self.poll_seconds,
            "total_delivered": self._total_delivered,
            "next_fire": next_fire.isoformat(timespec="minutes") if next_fire else None,
            "last_update": utc_now_iso(),
        }
        PID_DIR.mkdir(parents=True, exist_ok=True)
        STATE_FILE.write_text(json.dumps(state, indent=2))

    def _cleanup(self) -> None:
        PID_FILE.unlink(missing_ok=True)
        self._save_state()
        logger.info("Reminder daemon stopped, %d reminders delivered", self._total_delivered)
        print(f"⏹️  Reminder daemon stopped ({self._total_delivered} reminders delivered)")


def stop_daemon() -> int:
    """Stop a running reminder daemon by sending SIGTERM."""
    if not PID_FILE.exists():
        print("No reminder daemon running (no PID file found)")
        return 1

    try:
        pid = int(PID_FILE.read_text().strip())
    except ValueError:
        print("Corrupt PID file, removing")
        PID_FILE.unlink(missing_ok=True)
        return 1

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        print(f"Reminder daemon not running (stale pid {pid}), cleaning up")
        PID_FILE.unlink(missing_ok=True)
        STATE_FILE.unlink(missing_ok=True)
        return 0

    print(f"Stopping reminder daemon (pid {pid})...")
    os.kill(pid, signal.SIGTERM)
    for _ in range(30):
        time.sleep(1)
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            print("✅ Reminder daemon stopped")
            PID_FILE.unlink(missing_ok=True)
            return 0

    print("⚠️  Reminder daemon didn't stop in 30s, sending SIGKILL")
    os.kill(pid, signal.SIGKILL)
    PID_FILE.unlink(missing_ok=True)
    return 0


def daemon_status() -> int:
    if not STATE_FILE.exists():
        print("No reminder daemon state found")
        return 1

    state = json.loads(STATE_FILE.read_text())
    pid = state.get("pid", "?")

    running = False
    try:
        os.kill(int(pid), 0)
        running = True
    except (ProcessLookupError, ValueError, TypeError):
        pass

    print(f"{'🟢' if running else '🔴'} Reminder daemon {'running' if running else 'stopped'}")
    print(f"  PID: {pid}")
    print(f"  Started: {state.get('started_at', '?')}")
    print(f"  Delivered: {state.get('total_delivered', 0)}")
    print(f"  Next reminder: {state.get('next_fire') or 'none'}")
    print(f"  Last update: {state.get('last_update', '?')}")
    return 0
