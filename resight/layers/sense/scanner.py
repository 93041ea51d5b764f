"""
Snapshot Scanner - Geometric capture of the rendered page.

The scan is split in two halves:

1. ``PROBE_SCRIPT`` runs inside the page (``execute_script``) and does
   everything that needs live layout and style: candidate enumeration,
   visibility, the ancestor walk for z-order, text probing and rects.
2. ``assemble_snapshot`` runs host-side over the returned records and
   applies the canonical ordering, viewport culling, occlusion culling,
   depth normalization and versioning.
"""

from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, TYPE_CHECKING
import logging
import threading

from resight.core.geometry import (
    DocumentPoint,
    DocumentRect,
    Vector,
    ViewportRect,
    rects_intersect,
)
from resight.layers.sense.snapshot import Element, ProbeError, Snapshot, normalize_text

if TYPE_CHECKING:
    from resight.layers.action.surface import RenderSurface

logger = logging.getLogger(__name__)

# Elements considered by the probe. Non-leaf nodes that are neither
# interactive nor images are skipped in favour of their children.
CANDIDATE_SELECTOR = (
    "a, button, label, span, div, p, li, dt, dd, "
    "h1, h2, h3, h4, h5, h6, img, svg, input, select, textarea, "
    "[tabindex], [role]"
)

MAX_ANCESTORS = 512

PROBE_SCRIPT = r"""
const selector = arguments[0];
const maxAncestors = arguments[1];

const INTERACTIVE_TAGS = ['a', 'button', 'input', 'select', 'textarea'];
const INTERACTIVE_ROLES = [
    'alert', 'alertdialog', 'button', 'checkbox', 'dialog', 'link',
    'menuitem', 'menuitemcheckbox', 'menuitemradio', 'option', 'radio',
    'scrollbar', 'slider', 'spinbutton', 'tab', 'textbox'
];
const TEXT_SOURCES = ['aria-label', 'alt', 'innerText', 'value', 'placeholder', 'title', 'href'];

const isInvisible = (style) => (
    style.display === 'none' ||
    style.visibility === 'hidden' ||
    (style.opacity !== null && style.opacity !== '' && parseFloat(style.opacity) < 0.01)
);

const isImage = (el) => ['img', 'svg'].indexOf(el.nodeName.toLowerCase()) >= 0;

const isInteractive = (el) => {
    if (INTERACTIVE_TAGS.indexOf(el.nodeName.toLowerCase()) >= 0) return true;
    const tabindex = el.getAttribute('tabindex');
    if (tabindex !== null && tabindex !== '-1') return true;
    return INTERACTIVE_ROLES.indexOf(el.getAttribute('role') || '') >= 0;
};

const getText = (el) => {
    if (el.nodeName.toLowerCase() === 'select') {
        const options = Array.from(el.querySelectorAll('option'));
        if (el.multiple) {
            return options.map((o) => getText(o)).join('\n');
        }
        const selected = options.filter((o) => o.selected);
        return selected[0] ? getText(selected[0]) : (options[0] ? getText(options[0]) : '');
    }
    for (const source of TEXT_SOURCES) {
        let value = null;
        if (source === 'innerText' || source === 'value') {
            value = el[source];
        } else {
            value = el.getAttribute(source);
        }
        if (value !== null && value !== undefined && String(value) !== '') {
            return String(value);
        }
    }
    return '';
};

const getPath = (el) => {
    const parts = [];
    let cur = el;
    while (cur && cur.nodeType === Node.ELEMENT_NODE) {
        if (cur.id) {
            parts.unshift('id("' + cur.id + '")');
            break;
        }
        if (cur === document.body) {
            parts.unshift(cur.tagName);
            break;
        }
        let ix = 1;
        let sib = cur.previousElementSibling;
        while (sib) {
            if (sib.tagName === cur.tagName) ix++;
            sib = sib.previousElementSibling;
        }
        parts.unshift(cur.tagName + '[' + ix + ']');
        cur = cur.parentElement;
    }
    return parts.join('/');
};

const getDocumentTopLeft = (el, rect) => {
    if (typeof el.offsetLeft !== 'number') {
        return { x: rect.left + window.pageXOffset, y: rect.top + window.pageYOffset };
    }
    let x = 0;
    let y = 0;
    let cur = el;
    while (cur && typeof cur.offsetLeft === 'number') {
        x += cur.offsetLeft - cur.scrollLeft;
        y += cur.offsetTop - cur.scrollTop;
        cur = cur.offsetParent;
    }
    return { x: x, y: y };
};

const records = [];
const nodes = Array.from(document.body ? document.body.querySelectorAll(selector) : []);

for (const el of nodes) {
    const image = isImage(el);
    const interactive = isInteractive(el);
    if (!image && !interactive && el.firstElementChild) continue;

    const rect = el.getBoundingClientRect();
    if (rect.width * rect.height < 1) continue;

    // Bounded ancestor walk: visibility short-circuits, z-order is the max
    // explicit z-index on the chain. Failures are reported, not dropped.
    let invisible = false;
    let depth = 0;
    let zIndex = 0;
    const errors = [];
    let cur = el;
    while (cur && cur.nodeType === Node.ELEMENT_NODE && depth < maxAncestors) {
        depth++;
        try {
            const style = window.getComputedStyle(cur);
            if (isInvisible(style)) {
                invisible = true;
                break;
            }
            const z = parseInt(style.zIndex || '', 10) || 0;
            if (z > zIndex) zIndex = z;
        } catch (e) {
            errors.push({ depth: depth, message: String(e && e.message || e) });
        }
        cur = cur.parentElement;
    }
    if (invisible) continue;

    const attributes = {};
    for (const attr of Array.from(el.attributes)) {
        attributes[attr.name] = attr.value;
    }
    for (const prop of ['disabled', 'checked', 'selected', 'multiple']) {
        if (prop in el) attributes[prop] = el[prop];
    }

    const topLeft = getDocumentTopLeft(el, rect);
    records.push({
        tag: el.nodeName.toLowerCase(),
        classes: Array.from(el.classList || []),
        attributes: attributes,
        path: getPath(el),
        isImage: image,
        isInteractive: interactive,
        text: getText(el),
        depth: depth,
        zIndex: zIndex,
        viewportRect: { left: rect.left, top: rect.top, width: rect.width, height: rect.height },
        documentRect: { left: topLeft.x, top: topLeft.y, width: rect.width, height: rect.height },
        errors: errors
    });
}

return {
    elements: records,
    scroll: { x: window.pageXOffset, y: window.pageYOffset },
    viewport: { x: window.innerWidth, y: window.innerHeight },
    scrollSize: {
        x: document.documentElement.scrollWidth,
        y: document.documentElement.scrollHeight
    }
};
"""

_version_lock = threading.Lock()
_last_version = 0


def next_snapshot_version() -> int:
    """Process-wide, strictly increasing snapshot version."""
    global _last_version
    with _version_lock:
        _last_version += 1
        return _last_version


def canonical_sort_key(element: Element) -> Tuple[float, float, float, float]:
    """z-order descending, top ascending, left ascending, area descending."""
    vr = element.viewport_rect
    return (-element.z_index, vr.top, vr.left, -vr.area)


def sort_canonical(elements: Iterable[Element]) -> List[Element]:
    return sorted(elements, key=canonical_sort_key)


def _vector(raw: Optional[Dict[str, Any]], cls=Vector):
    raw = raw or {}
    return cls(float(raw.get("x", 0.0)), float(raw.get("y", 0.0)))


def _rect(raw: Dict[str, Any], cls):
    return cls(
        float(raw.get("left", 0.0)),
        float(raw.get("top", 0.0)),
        float(raw.get("width", 0.0)),
        float(raw.get("height", 0.0)),
    )


def parse_record(record: Dict[str, Any]) -> Tuple[Element, List[ProbeError]]:
    """Convert one probe record into an (unindexed) Element."""
    text = str(record.get("text") or "")
    path = str(record.get("path", ""))
    depth = int(record.get("depth", 0))
    element = Element(
        tag=str(record.get("tag", "")).lower(),
        classes=frozenset(record.get("classes") or ()),
        attributes=dict(record.get("attributes") or {}),
        path=path,
        is_image=bool(record.get("isImage", False)),
        is_interactive=bool(record.get("isInteractive", False)),
        text=text,
        text_normalized=normalize_text(text),
        depth=depth,
        z_index=int(record.get("zIndex", 0) or 0),
        viewport_rect=_rect(record.get("viewportRect") or {}, ViewportRect),
        document_rect=_rect(record.get("documentRect") or {}, DocumentRect),
    )
    errors = [
        ProbeError(path=path, depth=int(err.get("depth", 0)), message=str(err.get("message", "")))
        for err in record.get("errors") or ()
    ]
    return element, errors


def normalize_depths(elements: Sequence[Element]) -> List[Element]:
    """Map raw ancestor counts onto [0, 1] via (max - depth) / max."""
    max_depth = max((el.depth for el in elements), default=0)
    if max_depth <= 0:
        return [replace(el, depth=0.0) for el in elements]
    return [replace(el, depth=(max_depth - el.depth) / max_depth) for el in elements]


def cull_outside_viewport(elements: Sequence[Element], viewport_size: Vector) -> List[Element]:
    return [
        el for el in elements
        if el.viewport_rect.left < viewport_size.x
        and el.viewport_rect.top < viewport_size.y
        and el.viewport_rect.right > 0
        and el.viewport_rect.bottom > 0
    ]


def cull_occluded(elements: Sequence[Element]) -> List[Element]:
    """
    Drop an element when an earlier (canonically ordered) element with a
    strictly greater z-order intersects it.
    """
    kept = []
    for i, a in enumerate(elements):
        occluded = any(
            b.z_index > a.z_index and rects_intersect(b.viewport_rect, a.viewport_rect)
            for b in elements[:i]
        )
        if not occluded:
            kept.append(a)
    return kept


def assemble_snapshot(raw: Optional[Dict[str, Any]], version: int) -> Snapshot:
    """
    Build a Snapshot from the probe script result.

    An empty or missing result produces an empty Snapshot; scanning never
    raises for "nothing found".
    """
    raw = raw or {}
    viewport_size = _vector(raw.get("viewport"))
    scroll = _vector(raw.get("scroll"), DocumentPoint)
    scroll_size = _vector(raw.get("scrollSize"))

    parsed: List[Element] = []
    probe_errors: List[ProbeError] = []
    for record in raw.get("elements") or ():
        element, errors = parse_record(record)
        probe_errors.extend(errors)
        if element.viewport_rect.area < 1:
            continue
        parsed.append(element)

    elements = normalize_depths(parsed)
    elements = sort_canonical(elements)
    in_view = cull_outside_viewport(elements, viewport_size)
    visible = cull_occluded(in_view)

    final = tuple(
        replace(el, index=i, version=version) for i, el in enumerate(visible)
    )

    if probe_errors:
        logger.warning(
            f"[Scanner] {len(probe_errors)} style probe failure(s) during scan v{version}"
        )
    logger.debug(
        f"[Scanner] v{version}: {len(final)} elements "
        f"({len(parsed) - len(in_view)} outside viewport, "
        f"{len(in_view) - len(visible)} occluded)"
    )

    return Snapshot(
        elements=final,
        version=version,
        scroll=scroll,
        viewport_size=viewport_size,
        scroll_size=scroll_size,
        probe_errors=tuple(probe_errors),
    )


class SnapshotScanner:
    """
    Runs the probe script on a render surface and publishes Snapshots.

    Example:
        >>> scanner = SnapshotScanner(SeleniumSurface(driver))
        >>> snapshot = scanner.scan()
        >>> for element in snapshot:
        ...     print(element.tag, element.text)
    """

    def __init__(
        self,
        surface: "RenderSurface",
        selector: str = CANDIDATE_SELECTOR,
        max_ancestors: int = MAX_ANCESTORS,
    ):
        self.surface = surface
        self.selector = selector
        self.max_ancestors = max_ancestors

    def scan(self) -> Snapshot:
        """Capture the current render state as a new Snapshot."""
        raw = self.surface.evaluate(PROBE_SCRIPT, self.selector, self.max_ancestors)
        return assemble_snapshot(raw, next_snapshot_version())
