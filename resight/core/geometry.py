"""
Geometry Kernel - Rect and point math.

Two coordinate spaces are modelled as distinct types:

- viewport space (``ViewportPoint`` / ``ViewportRect``): relative to the
  visible window, changes whenever the page scrolls.
- document space (``DocumentPoint`` / ``DocumentRect``): relative to the full
  scrollable content, scroll-invariant.

``Vector`` is the unbranded type used for offsets, sizes and arithmetic.
Combining a viewport value with a document value raises ``TypeError``; use
the explicit conversion helpers instead.
"""

from dataclasses import dataclass
from typing import Dict, Type, TypeVar, Union
import math

P = TypeVar("P", bound="Vector")
R = TypeVar("R", bound="Rect")


@dataclass(frozen=True)
class Vector:
    """Unbranded 2D vector used for offsets and sizes."""
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class ViewportPoint(Vector):
    """A point relative to the visible window."""


@dataclass(frozen=True)
class DocumentPoint(Vector):
    """A point relative to the full scrollable document."""


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle. Use the space-specific subclasses."""
    left: float
    top: float
    width: float
    height: float

    point_type = Vector

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def ratio(self) -> float:
        return self.width / self.height if self.height > 0 else 1.0

    @property
    def top_left(self) -> Vector:
        return self.point_type(self.left, self.top)

    @property
    def bottom_right(self) -> Vector:
        return self.point_type(self.right, self.bottom)

    @property
    def center(self) -> Vector:
        return self.relative_point(0.5, 0.5)

    @property
    def center_left(self) -> Vector:
        """Vertical center, biased towards the left edge."""
        return self.relative_point(0.1, 0.5)

    @property
    def center_right(self) -> Vector:
        """Vertical center, biased towards the right edge."""
        return self.relative_point(0.9, 0.5)

    def relative_point(self, fx: float, fy: float) -> Vector:
        """Point at fractional offsets (``fx``, ``fy``) inside the rect."""
        return self.point_type(self.left + fx * self.width, self.top + fy * self.height)

    def to_dict(self) -> Dict[str, float]:
        return {
            "left": self.left,
            "top": self.top,
            "width": self.width,
            "height": self.height,
            "area": self.area,
            "ratio": self.ratio,
        }


@dataclass(frozen=True)
class ViewportRect(Rect):
    """A rect relative to the visible window."""

    point_type = ViewportPoint


@dataclass(frozen=True)
class DocumentRect(Rect):
    """A rect relative to the full scrollable document."""

    point_type = DocumentPoint


_RECT_FOR_POINT: Dict[type, Type[Rect]] = {
    Vector: Rect,
    ViewportPoint: ViewportRect,
    DocumentPoint: DocumentRect,
}

_BRANDED = (ViewportPoint, DocumentPoint, ViewportRect, DocumentRect)


def _space(value: Union[Vector, Rect]) -> type:
    for cls in _BRANDED:
        if isinstance(value, cls):
            return cls
    return type(None)


def _check_same_space(a: Union[Vector, Rect], b: Union[Vector, Rect]) -> None:
    """Reject combining two branded values of different coordinate spaces."""
    space_a = _space(a)
    space_b = _space(b)
    if space_a is type(None) or space_b is type(None):
        return
    if isinstance(a, Vector) != isinstance(b, Vector):
        # point vs rect: compare the rect's point space
        rect, point = (a, b) if isinstance(b, Vector) else (b, a)
        if rect.point_type is not type(point):
            raise TypeError(f"Cannot mix {type(a).__name__} with {type(b).__name__}")
        return
    if space_a is not space_b:
        raise TypeError(f"Cannot mix {type(a).__name__} with {type(b).__name__}")


def vector_sum(a: P, b: Vector) -> P:
    """Offset ``a`` by ``b``. The result keeps the type of ``a``."""
    _check_same_space(a, b)
    return type(a)(a.x + b.x, a.y + b.y)


def vector_diff(a: Vector, b: Vector) -> Vector:
    """Unbranded difference ``a - b``."""
    _check_same_space(a, b)
    return Vector(a.x - b.x, a.y - b.y)


def vector_scale(a: P, factor: float) -> P:
    return type(a)(a.x * factor, a.y * factor)


def vector_distance(a: Vector, b: Vector) -> float:
    """Euclidean distance between two points of the same space."""
    d = vector_diff(b, a)
    return math.sqrt(d.x * d.x + d.y * d.y)


def vector_length(a: Vector) -> float:
    return math.sqrt(a.x * a.x + a.y * a.y)


def rect_center(rect: Rect) -> Vector:
    return rect.center


def rect_from_point(point: P) -> Rect:
    """Degenerate 1x1 rect anchored at ``point``, in the point's space."""
    rect_type = _RECT_FOR_POINT.get(type(point), Rect)
    return rect_type(point.x, point.y, 1.0, 1.0)


def rect_translate(rect: R, offset: Vector) -> R:
    """Shift ``rect`` by an unbranded offset, keeping its space."""
    return type(rect)(rect.left + offset.x, rect.top + offset.y, rect.width, rect.height)


def rect_distance(a: Rect, b: Rect) -> float:
    """
    Minimum distance between two rects of the same space.

    0 when the rects overlap or touch. Otherwise the eight-region
    classification of ``b`` relative to ``a`` selects either a corner-to-corner
    Euclidean distance or an edge-to-edge axis distance.
    """
    _check_same_space(a, b)
    x1, y1, x1b, y1b = a.left, a.top, a.right, a.bottom
    x2, y2, x2b, y2b = b.left, b.top, b.right, b.bottom

    left = x2b < x1
    right = x1b < x2
    above = y2b < y1
    below = y1b < y2

    if below and left:
        return math.hypot(x1 - x2b, y1b - y2)
    if left and above:
        return math.hypot(x1 - x2b, y1 - y2b)
    if above and right:
        return math.hypot(x1b - x2, y1 - y2b)
    if right and below:
        return math.hypot(x1b - x2, y1b - y2)
    if left:
        return x1 - x2b
    if right:
        return x2 - x1b
    if above:
        return y1 - y2b
    if below:
        return y2 - y1b
    return 0.0


def rects_intersect(a: Rect, b: Rect) -> bool:
    """True when the rects overlap or touch."""
    _check_same_space(a, b)
    return not (
        b.right < a.left
        or a.right < b.left
        or b.bottom < a.top
        or a.bottom < b.top
    )


def rect_contains(outer: Rect, inner: Rect) -> bool:
    _check_same_space(outer, inner)
    return (
        outer.left <= inner.left
        and outer.top <= inner.top
        and inner.right <= outer.right
        and inner.bottom <= outer.bottom
    )


def viewport_to_document(point: ViewportPoint, scroll: DocumentPoint) -> DocumentPoint:
    """Convert using the current scroll offset (document point of the viewport origin)."""
    if not isinstance(point, ViewportPoint):
        raise TypeError(f"Expected ViewportPoint, got {type(point).__name__}")
    return DocumentPoint(point.x + scroll.x, point.y + scroll.y)


def document_to_viewport(point: DocumentPoint, scroll: DocumentPoint) -> ViewportPoint:
    if not isinstance(point, DocumentPoint):
        raise TypeError(f"Expected DocumentPoint, got {type(point).__name__}")
    return ViewportPoint(point.x - scroll.x, point.y - scroll.y)


def document_rect_to_viewport(rect: DocumentRect, scroll: DocumentPoint) -> ViewportRect:
    if not isinstance(rect, DocumentRect):
        raise TypeError(f"Expected DocumentRect, got {type(rect).__name__}")
    return ViewportRect(rect.left - scroll.x, rect.top - scroll.y, rect.width, rect.height)


def is_outside_viewport(point: ViewportPoint, viewport_size: Vector) -> bool:
    return (
        point.x < 0
        or point.x > viewport_size.x
        or point.y < 0
        or point.y > viewport_size.y
    )
