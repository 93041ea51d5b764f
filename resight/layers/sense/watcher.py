"""
Snapshot Watcher - Event-driven rescans.

``WATCH_SCRIPT`` installs mutation observers on the body's top-level
children plus capturing scroll/resize listeners; each event bumps a
page-side change counter. A background thread polls that counter and
triggers a rescan when it moved, or when the periodic fallback tick is due.
"""

from typing import Callable, Optional, TYPE_CHECKING
import logging
import threading
import time

from resight.core.errors import SurfaceDisconnected

if TYPE_CHECKING:
    from resight.layers.action.surface import RenderSurface

logger = logging.getLogger(__name__)

WATCH_SCRIPT = r"""
if (window.__resight_watch__) {
    return window.__resight_watch__.changes;
}
const state = { changes: 0, observers: [] };
const bump = () => { state.changes++; };
const roots = document.querySelectorAll('body > *');
for (const root of Array.from(roots)) {
    const observer = new MutationObserver(bump);
    observer.observe(root, { attributes: true, childList: true, characterData: true, subtree: true });
    state.observers.push(observer);
}
if (document.body) {
    const bodyObserver = new MutationObserver(bump);
    bodyObserver.observe(document.body, { childList: true });
    state.observers.push(bodyObserver);
}
window.addEventListener('scroll', bump, true);
window.addEventListener('resize', bump, true);
window.addEventListener('beforeunload', () => {
    state.observers.forEach((o) => o.disconnect());
    window.removeEventListener('scroll', bump, true);
    window.removeEventListener('resize', bump, true);
});
window.__resight_watch__ = state;
return state.changes;
"""


class SnapshotWatcher:
    """
    Background poller that calls ``on_change`` whenever the page changed.

    All surface access happens while holding ``lock`` so the watcher never
    overlaps with a host-side action on the same page.
    """

    def __init__(
        self,
        surface: "RenderSurface",
        on_change: Callable[[], None],
        lock: threading.RLock,
        poll_interval: float = 0.5,
        change_poll_interval: float = 0.1,
        on_disconnect: Optional[Callable[[SurfaceDisconnected], None]] = None,
    ):
        self.surface = surface
        self.on_change = on_change
        self.lock = lock
        self.poll_interval = poll_interval
        self.change_poll_interval = change_poll_interval
        self.on_disconnect = on_disconnect
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_count: Optional[int] = None
        self._last_scan = 0.0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="resight-watcher", daemon=True)
        self._thread.start()
        logger.info("[Watcher] Started")

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None

    def poll_once(self) -> bool:
        """
        Check the change counter and rescan if needed.

        Returns:
            True if a rescan was triggered
        """
        with self.lock:
            count = self.surface.evaluate(WATCH_SCRIPT)
            now = time.monotonic()
            changed = count != self._last_count
            due = now - self._last_scan >= self.poll_interval
            if not (changed or due):
                return False
            self._last_count = count
            self._last_scan = now
            self.on_change()
            return True

    def _run(self) -> None:
        while not self._stop.wait(self.change_poll_interval):
            try:
                self.poll_once()
            except SurfaceDisconnected as e:
                logger.error(f"[Watcher] Surface disconnected, stopping: {e}")
                if self.on_disconnect:
                    self.on_disconnect(e)
                return
            except Exception as e:
                # Navigations tear down the page context mid-poll; the next
                # tick reinstalls the observers.
                logger.warning(f"[Watcher] Poll failed: {e}")
