"""
Scroll Search - Retry a finder across scroll positions.

The controller rescans, applies the finder and, when nothing matches,
scrolls down one step at the pointer position. It stops when the finder
succeeds, when scrolling stops moving the page, or when the attempt
budget runs out.
"""

from typing import List, Optional, TYPE_CHECKING
import logging
import time

from resight.core.config import LocatorConfig
from resight.core.errors import ElementNotFound, ScrollExhausted
from resight.core.geometry import Vector
from resight.layers.action.finders import Finder, describe_finder, find_elements
from resight.layers.sense.scanner import sort_canonical
from resight.layers.sense.snapshot import Element, Snapshot

if TYPE_CHECKING:
    from resight.core.session import PageSession

logger = logging.getLogger(__name__)


def correction_for(found: List[Element], snapshot: Snapshot, step: float) -> Optional[Vector]:
    """
    Small scroll towards matched elements that spill over the viewport edge.

    ``found`` must be in canonical order: the first element supplies the
    top-left corner, the last one the bottom-right corner.
    """
    top_left = found[0].viewport_rect.top_left
    bottom_right = found[-1].viewport_rect.bottom_right
    size = snapshot.viewport_size

    if top_left.x < 0:
        dx = -step
    elif bottom_right.x > size.x:
        dx = step
    else:
        dx = 0.0

    if top_left.y < 0:
        dy = -step
    elif bottom_right.y > size.y:
        dy = step
    else:
        dy = 0.0

    if dx == 0 and dy == 0:
        return None
    return Vector(dx, dy)


class ScrollSearchController:
    """
    Bounded scroll-and-retry loop around a finder.

    Example:
        >>> controller = ScrollSearchController(session)
        >>> [button] = controller.search(below(label.viewport_center, text_equals("Save")))
    """

    def __init__(self, session: "PageSession", config: Optional[LocatorConfig] = None):
        self.session = session
        self.config = config or session.config
        self.attempts = 0

    def search(self, finder: Finder) -> List[Element]:
        """
        Returns:
            Matching elements in canonical visual order

        Raises:
            ScrollExhausted: scrolling stopped making progress
            ElementNotFound: the attempt budget was used up
        """
        config = self.config
        step = config.scroll_step
        stalls = 0
        last_error: Optional[ElementNotFound] = None
        self.attempts = 0

        while self.attempts < config.scroll_max_attempts:
            self.attempts += 1
            snapshot = self.session.refresh()
            try:
                found = sort_canonical(find_elements(snapshot, finder))
            except ElementNotFound as e:
                last_error = e
                if self.session.scroll_at(self.session.pointer, Vector(0.0, step)):
                    stalls = 0
                    continue
                stalls += 1
                if stalls >= config.stall_limit:
                    logger.info(
                        f"[ScrollSearch] Scroll limit reached after {self.attempts} attempts: "
                        f"{describe_finder(finder)}"
                    )
                    raise ScrollExhausted(
                        f"Element not found while scrolling (scroll limit reached): "
                        f"{describe_finder(finder)}",
                        descriptor=e.descriptor,
                        candidates=e.candidates,
                        attempts=self.attempts,
                        last_error=e,
                    ) from e
                continue

            correction = correction_for(found, snapshot, step)
            if correction is None:
                return found

            logger.debug(f"[ScrollSearch] Corrective scroll {correction} towards matches")
            if not self.session.scroll_at(self.session.pointer, correction):
                return found
            snapshot = self.session.refresh()
            try:
                return sort_canonical(find_elements(snapshot, finder))
            except ElementNotFound as e:
                last_error = e

        logger.info(
            f"[ScrollSearch] Attempt budget ({config.scroll_max_attempts}) exhausted: "
            f"{describe_finder(finder)}"
        )
        raise ElementNotFound(
            f"Element not found while scrolling (attempt budget exhausted): "
            f"{describe_finder(finder)}",
            descriptor=last_error.descriptor if last_error else describe_finder(finder).to_dict(),
            candidates=last_error.candidates if last_error else [],
        )


def find_with_waiting(session: "PageSession", finder: Finder, timeout: float) -> List[Element]:
    """
    Rescan and retry ``finder`` until it matches or ``timeout`` seconds pass.

    Raises:
        ElementNotFound: if the finder never matched in time
    """
    deadline = time.monotonic() + timeout
    last_error: Optional[ElementNotFound] = None
    while True:
        snapshot = session.refresh()
        try:
            return find_elements(snapshot, finder)
        except ElementNotFound as e:
            last_error = e
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        time.sleep(min(session.config.change_poll_interval, remaining))
    raise ElementNotFound(
        f"Element not found while waiting (max {timeout}s): {describe_finder(finder)}",
        descriptor=last_error.descriptor,
        candidates=last_error.candidates,
    )
