import atexit
import threading
from typing import Optional

from lab_panic.leaderboard.errors import StorageFailure


class SessionReaper(threading.Thread):
    """Deletes expired sessions every ``interval`` seconds.

    Expired sessions are already rejected on submit; this only bounds
    storage growth, so a failed pass is logged and retried next interval.
    """

    def __init__(self, app, service, interval: float):
        super().__init__(name='session-reaper', daemon=True)
        self.app = app
        self.service = service
        self.interval = interval
        self._stop_event = threading.Event()

    def stop(self) -> None:
        self._stop_event.set()

    def run_once(self) -> int:
        with self.app.app_context():
            try:
                deleted = self.service.reap_expired_sessions()
            except StorageFailure as exc:
                self.app.logger.error(f"[reaper] failed: {exc.message}")
                return 0
            if deleted:
                self.app.logger.info(f"[reaper] deleted={deleted}")
            return deleted

    def run(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.run_once()


def start_reaper(app) -> Optional[SessionReaper]:
    """Start the reaper thread; no-ops in TESTING mode or when disabled."""
    if app.config.get('TESTING'):
        return None
    interval = int(app.config.get('REAPER_INTERVAL_SEC', 60))
    if interval <= 0:
        return None
    reaper = SessionReaper(app, app.extensions['lab_panic'], interval)
    reaper.start()
    atexit.register(reaper.stop)
    app.extensions['lab_panic_reaper'] = reaper
    app.logger.info(f"[reaper] started interval={interval}s")
    return reaper
