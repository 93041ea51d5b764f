"""Shared test doubles: a scrollable fake page behind the RenderSurface API."""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from resight.core.config import LocatorConfig
from resight.core.geometry import Vector, ViewportPoint
from resight.core.session import PageSession
from resight.layers.action.surface import RenderSurface
from resight.layers.sense.scanner import PROBE_SCRIPT, assemble_snapshot, next_snapshot_version
from resight.layers.sense.watcher import WATCH_SCRIPT


def box(
    left: float,
    top: float,
    width: float,
    height: float,
    text: str = "",
    tag: str = "div",
    classes: Sequence[str] = (),
    z: int = 0,
    depth: int = 1,
    interactive: bool = False,
    errors: Sequence[Dict[str, Any]] = (),
) -> Dict[str, Any]:
    """A page element in document coordinates."""
    return {
        "left": left,
        "top": top,
        "width": width,
        "height": height,
        "text": text,
        "tag": tag,
        "classes": list(classes),
        "z": z,
        "depth": depth,
        "interactive": interactive,
        "errors": list(errors),
    }


def probe_result(
    boxes: Sequence[Dict[str, Any]],
    scroll: Tuple[float, float] = (0.0, 0.0),
    viewport: Tuple[float, float] = (800.0, 600.0),
    document: Optional[Tuple[float, float]] = None,
) -> Dict[str, Any]:
    """What the in-page probe script returns for ``boxes`` at ``scroll``."""
    sx, sy = scroll
    records = []
    for i, b in enumerate(boxes):
        records.append({
            "tag": b["tag"],
            "classes": b["classes"],
            "attributes": {},
            "path": f"body>{b['tag']}:nth-child({i + 1})",
            "isImage": b["tag"] == "img",
            "isInteractive": b["interactive"],
            "text": b["text"],
            "depth": b["depth"],
            "zIndex": b["z"],
            "viewportRect": {
                "left": b["left"] - sx,
                "top": b["top"] - sy,
                "width": b["width"],
                "height": b["height"],
            },
            "documentRect": {
                "left": b["left"],
                "top": b["top"],
                "width": b["width"],
                "height": b["height"],
            },
            "errors": b["errors"],
        })
    doc_w, doc_h = document or viewport
    return {
        "elements": records,
        "scroll": {"x": sx, "y": sy},
        "viewport": {"x": viewport[0], "y": viewport[1]},
        "scrollSize": {"x": doc_w, "y": doc_h},
    }


def snapshot_of(boxes, scroll=(0.0, 0.0), viewport=(800.0, 600.0)):
    return assemble_snapshot(probe_result(boxes, scroll, viewport), next_snapshot_version())


def by_text(snapshot, text):
    return next(el for el in snapshot if el.text == text)


class FakeSurface(RenderSurface):
    """
    A scrollable page of static boxes.

    Wheel scrolling moves the document and is clamped to the document
    size. Every dispatched input is appended to a log.
    """

    def __init__(
        self,
        boxes: Sequence[Dict[str, Any]] = (),
        viewport: Tuple[float, float] = (800.0, 600.0),
        document: Optional[Tuple[float, float]] = None,
    ):
        self.boxes: List[Dict[str, Any]] = list(boxes)
        self.viewport = viewport
        self.document = document or viewport
        self.scroll = [0.0, 0.0]
        self.changes = 0
        self.probe_count = 0
        self.pointer_log: List[ViewportPoint] = []
        self.click_log: List[ViewportPoint] = []
        self.key_log: List[str] = []
        self.wheel_log: List[Vector] = []
        self._reveals: List[Tuple[int, Dict[str, Any]]] = []

    def reveal_after(self, probes: int, new_box: Dict[str, Any]) -> None:
        """Add ``new_box`` to the page once ``probes`` scans have run."""
        self._reveals.append((probes, new_box))

    def evaluate(self, script: str, *args: Any) -> Any:
        if script == WATCH_SCRIPT:
            return self.changes
        if script == PROBE_SCRIPT:
            self.probe_count += 1
            for entry in list(self._reveals):
                if self.probe_count > entry[0]:
                    self.boxes.append(entry[1])
                    self._reveals.remove(entry)
            return probe_result(self.boxes, tuple(self.scroll), self.viewport, self.document)
        return None

    def pointer_move(self, point: ViewportPoint) -> None:
        self.pointer_log.append(point)

    def pointer_click(self, point: ViewportPoint) -> None:
        self.click_log.append(point)

    def key_input(self, text: str) -> None:
        self.key_log.append(text)

    def wheel_scroll(self, point: ViewportPoint, delta: Vector) -> None:
        self.wheel_log.append(delta)
        max_x = max(0.0, self.document[0] - self.viewport[0])
        max_y = max(0.0, self.document[1] - self.viewport[1])
        new = [
            min(max_x, max(0.0, self.scroll[0] + delta.x)),
            min(max_y, max(0.0, self.scroll[1] + delta.y)),
        ]
        if new != self.scroll:
            self.scroll = new
            self.changes += 1


@pytest.fixture
def login_boxes():
    return [
        box(100, 20, 200, 30, text="Login", tag="h1"),
        box(100, 80, 80, 20, text="Email", tag="label"),
        box(100, 105, 200, 30, tag="input", classes=["field"], interactive=True),
        box(100, 160, 100, 30, text="Submit", tag="button", classes=["btn"], interactive=True),
    ]


@pytest.fixture
def fast_config():
    return LocatorConfig(poll_interval=0.05, change_poll_interval=0.01, wait_timeout=2.0)


@pytest.fixture
def make_session(fast_config):
    def _make(boxes=(), viewport=(800.0, 600.0), document=None, config=None, **kwargs):
        surface = FakeSurface(boxes, viewport=viewport, document=document)
        session = PageSession(surface, config=config or fast_config, **kwargs)
        return session, surface
    return _make
