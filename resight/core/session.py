"""
Page Session - The host-side API.

Owns the latest snapshot, a short history of earlier snapshots, the context
fingerprint of every element it has scanned (kept for as long as the caller
holds the element), the pointer position and the optional background watcher.

All surface access is serialized by one lock; only one logical action runs
against a page at a time. The session must not be used re-entrantly.
"""

from collections import OrderedDict
from concurrent.futures import Future
from typing import Any, List, Optional, Tuple, TYPE_CHECKING
import logging
import threading
import weakref

from resight.core.channel import SnapshotChannel
from resight.core.config import LocatorConfig
from resight.core.errors import ElementNotFound, OutOfBounds
from resight.core.geometry import (
    Vector,
    ViewportPoint,
    document_to_viewport,
    is_outside_viewport,
    vector_distance,
)
from resight.layers.action.finders import (
    Finder,
    Predicate,
    around,
    below,
    find_elements,
)
from resight.layers.action.scroll_search import ScrollSearchController, find_with_waiting
from resight.layers.action.surface import RenderSurface, SeleniumSurface
from resight.layers.intelligence.fingerprint import Fingerprint, build_fingerprints
from resight.layers.intelligence.reidentify import reidentify_by_context
from resight.layers.sense.scanner import SnapshotScanner
from resight.layers.sense.snapshot import Element, Snapshot, describe_element
from resight.layers.sense.watcher import SnapshotWatcher

if TYPE_CHECKING:
    from selenium.webdriver.remote.webdriver import WebDriver
    from resight.reporters.flight_recorder import FlightRecorder

logger = logging.getLogger(__name__)

# Candidate points inside an element rect, as fractions of its size.
POINTER_TARGETS = ((0.5, 0.5), (0.2, 0.2), (0.2, 0.8), (0.8, 0.2), (0.8, 0.8))

INITIAL_POINTER_FRACTION = 0.8


class PageSession:
    """
    Snapshot, re-identification, finder and interaction API for one page.

    Example:
        >>> session = PageSession.from_driver(driver)
        >>> [label] = session.search_with_scroll(around(ViewportPoint(0, 0), text_equals("Email")))
        >>> [field] = session.find_below(label.viewport_center, tag_is("input"))
        >>> session.fill_input(field, "me@example.com")
    """

    def __init__(
        self,
        surface: RenderSurface,
        config: Optional[LocatorConfig] = None,
        scanner: Optional[SnapshotScanner] = None,
        recorder: Optional["FlightRecorder"] = None,
    ):
        self.surface = surface
        self.config = config or LocatorConfig()
        self.scanner = scanner or SnapshotScanner(surface)
        self.recorder = recorder
        self.channel = SnapshotChannel()
        self._lock = threading.RLock()
        self._history: "OrderedDict[int, Snapshot]" = OrderedDict()
        self._contexts: "weakref.WeakKeyDictionary[Element, Fingerprint]" = weakref.WeakKeyDictionary()
        self._pointer: Optional[ViewportPoint] = None
        self._watcher: Optional[SnapshotWatcher] = None

    @classmethod
    def from_driver(cls, driver: "WebDriver", **kwargs: Any) -> "PageSession":
        return cls(SeleniumSurface(driver), **kwargs)

    # Snapshots

    def scan(self) -> Snapshot:
        """Rescan the page and publish the result."""
        with self._lock:
            snapshot = self.scanner.scan()
            self._remember(snapshot)
            for index, fingerprint in build_fingerprints(snapshot, self.config).items():
                self._contexts[snapshot[index]] = fingerprint.detached()
        self.channel.publish(snapshot)
        if self.recorder:
            self.recorder.log_scan(snapshot)
        return snapshot

    def get_latest_snapshot(self) -> Snapshot:
        latest = self.channel.latest
        if latest is None:
            return self.scan()
        return latest

    @property
    def latest_snapshot(self) -> Optional[Snapshot]:
        return self.channel.latest

    def wait_for_next_snapshot(self) -> "Future[Snapshot]":
        """Future resolved by the next publish after this call."""
        return self.channel.wait_for_next()

    def refresh(self, timeout: Optional[float] = None) -> Snapshot:
        """
        Get a snapshot that reflects everything dispatched so far.

        With the watcher running this waits for its next publish, otherwise
        it scans directly.
        """
        if self.watching:
            future = self.wait_for_next_snapshot()
            return future.result(timeout if timeout is not None else self.config.wait_timeout)
        return self.scan()

    def snapshot_for(self, element: Element) -> Optional[Snapshot]:
        """The retained snapshot ``element`` was scanned in, if any."""
        with self._lock:
            return self._history.get(element.version)

    def context_of(self, element: Element) -> Optional[Fingerprint]:
        """The context ``element`` had when it was scanned, if this session scanned it."""
        with self._lock:
            return self._contexts.get(element)

    def _remember(self, snapshot: Snapshot) -> None:
        self._history[snapshot.version] = snapshot
        while len(self._history) > max(1, self.config.history_size):
            self._history.popitem(last=False)

    # Watching

    @property
    def watching(self) -> bool:
        return self._watcher is not None and self._watcher.running

    def start_watching(self) -> None:
        """Rescan in the background on DOM mutation, scroll, resize and a periodic tick."""
        if self.watching:
            return
        self._watcher = SnapshotWatcher(
            self.surface,
            on_change=self.scan,
            lock=self._lock,
            poll_interval=self.config.poll_interval,
            change_poll_interval=self.config.change_poll_interval,
            on_disconnect=self.channel.fail,
        )
        self._watcher.start()

    def stop_watching(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None

    def close(self) -> None:
        self.stop_watching()

    def __enter__(self) -> "PageSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    # Re-identification

    def reidentify(self, element: Element, snapshot: Optional[Snapshot] = None) -> Element:
        """
        Map ``element`` onto ``snapshot`` (default: the latest one).

        Raises:
            ElementNotFound: if no confident counterpart exists, or the
                element was not scanned by this session
        """
        current = snapshot if snapshot is not None else self.get_latest_snapshot()
        if current.contains(element):
            return element
        context = self.context_of(element)
        if context is None:
            raise ElementNotFound(
                f"{describe_element(element)} was not scanned by this session",
                descriptor={"kind": "reidentify", "params": {"origin_version": element.version}},
            )
        try:
            return reidentify_by_context(element, context, current, self.config)
        except ElementNotFound as e:
            if self.recorder:
                self.recorder.log_not_found(e)
            raise

    # Finders

    def find(self, finder: Finder) -> List[Element]:
        return find_elements(self.get_latest_snapshot(), finder)

    def find_around(
        self,
        point: ViewportPoint,
        predicate: Optional[Predicate] = None,
        max_distance: Optional[float] = None,
    ) -> List[Element]:
        return self.find(around(point, predicate, max_distance))

    def find_below(
        self,
        point: ViewportPoint,
        predicate: Optional[Predicate] = None,
        max_distance: Optional[float] = None,
    ) -> List[Element]:
        return self.find(below(point, predicate, max_distance))

    def search_with_scroll(self, finder: Finder) -> List[Element]:
        try:
            found = ScrollSearchController(self).search(finder)
        except ElementNotFound as e:
            if self.recorder:
                self.recorder.log_not_found(e)
            raise
        if self.recorder:
            self.recorder.log_found(finder, found)
        return found

    def find_with_waiting(self, finder: Finder, timeout: Optional[float] = None) -> List[Element]:
        return find_with_waiting(self, finder, timeout if timeout is not None else self.config.wait_timeout)

    def find_below_label(
        self,
        point: ViewportPoint,
        label_predicate: Predicate,
        element_predicate: Predicate,
    ) -> Tuple[Element, Element]:
        """
        Find a label around ``point``, then the element below that label.

        Returns:
            (element, label)
        """
        label = self.search_with_scroll(around(point, label_predicate))[0]
        snapshot = self.get_latest_snapshot()
        origin = self.snapshot_for(label) or snapshot
        anchor = document_to_viewport(label.document_center, origin.scroll)
        element = self.search_with_scroll(below(anchor, element_predicate))[0]
        return element, label

    # Pointer and input

    @property
    def pointer(self) -> ViewportPoint:
        if self._pointer is None:
            size = self.get_latest_snapshot().viewport_size
            self._pointer = ViewportPoint(
                size.x * INITIAL_POINTER_FRACTION, size.y * INITIAL_POINTER_FRACTION
            )
        return self._pointer

    def _check_in_viewport(self, point: ViewportPoint, snapshot: Snapshot) -> None:
        if is_outside_viewport(point, snapshot.viewport_size):
            raise OutOfBounds(
                f"Viewport point ({point.x:.1f}, {point.y:.1f}) is outside the viewport "
                f"{snapshot.viewport_size.x:.0f}x{snapshot.viewport_size.y:.0f}. Scroll there first.",
                point=point,
                viewport_size=snapshot.viewport_size,
            )

    def scroll_at(self, point: ViewportPoint, delta: Vector) -> bool:
        """
        Wheel-scroll at ``point``.

        Returns:
            True if the document moved by at least ``min_scroll_progress``
        """
        before = self.get_latest_snapshot()
        self._check_in_viewport(point, before)
        with self._lock:
            self.surface.wheel_scroll(point, delta)
        after = self.refresh()
        moved = vector_distance(before.scroll, after.scroll)
        logger.debug(f"[Session] scroll {delta} at {point} moved {moved:.2f}")
        return moved >= self.config.min_scroll_progress

    def move_pointer_into(self, element: Element) -> Element:
        """
        Move the pointer to the in-rect point nearest to where it is now.

        Raises:
            OutOfBounds: the chosen point is outside the viewport
        """
        snapshot = self.get_latest_snapshot()
        current = self.reidentify(element, snapshot)
        rect = current.viewport_rect
        pointer = self.pointer
        target = min(
            (rect.relative_point(fx, fy) for fx, fy in POINTER_TARGETS),
            key=lambda p: vector_distance(pointer, p),
        )
        self._check_in_viewport(target, snapshot)
        with self._lock:
            self.surface.pointer_move(target)
            self._pointer = target
        self.refresh()
        return self.reidentify(current)

    def click_element(self, element: Element) -> Element:
        """Move into ``element`` and click; returns the element after the click."""
        before_move = self.reidentify(element)
        after_move = self.move_pointer_into(before_move)
        with self._lock:
            self.surface.pointer_click(self.pointer)
        self.refresh()
        return self.reidentify(after_move)

    def fill_input(self, element: Element, text: str) -> Element:
        """Focus ``element`` with a click and type ``text`` into it."""
        target = self.click_element(element)
        with self._lock:
            self.surface.key_input(text)
        self.refresh()
        return self.reidentify(target)
