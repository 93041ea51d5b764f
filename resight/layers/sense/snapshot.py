"""
Snapshot Model - Immutable captures of the rendered page.

An ``Element`` never points back at the ``Snapshot`` it came from. It records
its position (``index``) in that snapshot's element list and the snapshot's
``version``; callers that need the surrounding elements look the snapshot up
explicitly.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Optional, Tuple
import re

from resight.core.geometry import (
    DocumentPoint,
    DocumentRect,
    Vector,
    ViewportPoint,
    ViewportRect,
)

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: Optional[str]) -> str:
    """Trim, collapse internal whitespace to single spaces and lower-case."""
    return _WHITESPACE.sub(" ", str(text or "")).strip().lower()


@dataclass(frozen=True, eq=False)
class Element:
    """
    A scanned element.

    Identity matters: two scans of the same button produce two distinct
    ``Element`` values, even when every attribute is equal. Equality is
    therefore identity (``eq=False``).
    """
    tag: str
    classes: FrozenSet[str]
    attributes: Mapping[str, Any]
    path: str
    is_image: bool
    is_interactive: bool
    text: str
    text_normalized: str
    depth: float  # 0 = shallowest, 1 = deepest within the scan
    z_index: int
    viewport_rect: ViewportRect
    document_rect: DocumentRect
    index: int = -1
    version: int = 0

    @property
    def viewport_center(self) -> ViewportPoint:
        return self.viewport_rect.center

    @property
    def viewport_center_left(self) -> ViewportPoint:
        return self.viewport_rect.center_left

    @property
    def viewport_center_right(self) -> ViewportPoint:
        return self.viewport_rect.center_right

    @property
    def document_center(self) -> DocumentPoint:
        return self.document_rect.center

    @property
    def document_center_left(self) -> DocumentPoint:
        return self.document_rect.center_left

    @property
    def document_center_right(self) -> DocumentPoint:
        return self.document_rect.center_right

    @property
    def area(self) -> float:
        return self.document_rect.area

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe summary for logs and reports."""
        return {
            "index": self.index,
            "version": self.version,
            "tag": self.tag,
            "classes": sorted(self.classes),
            "path": self.path,
            "text": self.text,
            "is_image": self.is_image,
            "is_interactive": self.is_interactive,
            "depth": self.depth,
            "z_index": self.z_index,
            "viewport_rect": self.viewport_rect.to_dict(),
            "document_rect": self.document_rect.to_dict(),
        }

    def __str__(self) -> str:
        return describe_element(self)


@dataclass(frozen=True)
class ProbeError:
    """A failure reported by the in-page ancestor walk for one node."""
    path: str
    depth: int
    message: str


@dataclass(frozen=True, eq=False)
class Snapshot:
    """An immutable, versioned capture of visible relevant elements."""
    elements: Tuple[Element, ...]
    version: int
    scroll: DocumentPoint = DocumentPoint(0.0, 0.0)
    viewport_size: Vector = Vector(0.0, 0.0)
    scroll_size: Vector = Vector(0.0, 0.0)
    probe_errors: Tuple[ProbeError, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self) -> Iterator[Element]:
        return iter(self.elements)

    def __getitem__(self, index: int) -> Element:
        return self.elements[index]

    def contains(self, element: Element) -> bool:
        """Identity membership test."""
        return any(el is element for el in self.elements)

    def owns(self, element: Element) -> bool:
        """True if ``element`` was produced by this scan."""
        return (
            element.version == self.version
            and 0 <= element.index < len(self.elements)
            and self.elements[element.index] is element
        )

    def to_dict(self, limit: Optional[int] = None) -> Dict[str, Any]:
        elements: List[Element] = list(self.elements[:limit] if limit else self.elements)
        return {
            "version": self.version,
            "element_count": len(self.elements),
            "scroll": self.scroll.to_dict(),
            "viewport_size": self.viewport_size.to_dict(),
            "scroll_size": self.scroll_size.to_dict(),
            "probe_errors": len(self.probe_errors),
            "elements": [el.to_dict() for el in elements],
        }


def describe_element(element: Element) -> str:
    """One-line debug rendering of an element."""
    vr = element.viewport_rect
    dr = element.document_rect
    classes = ",".join(sorted(element.classes))
    return (
        f'<{element.tag}> "{element.text[:50]}" classes:{classes}'
        f" z:{element.z_index}"
        f" doc:({dr.left:.1f},{dr.top:.1f} {dr.width:.1f}x{dr.height:.1f})"
        f" view:({vr.left:.1f},{vr.top:.1f})"
    )
