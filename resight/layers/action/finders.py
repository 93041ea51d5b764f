"""
Finder Combinators - Directional spatial queries over a snapshot.

A finder is a plain callable ``elements -> matching elements``. Each finder
and predicate also carries a ``Descriptor`` (kind + params) that is used
only to explain failures; the callables themselves hold no mutable state.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
import math

from resight.core.errors import ElementNotFound
from resight.core.geometry import ViewportPoint, rect_distance, rect_from_point
from resight.layers.sense.snapshot import Element, Snapshot, describe_element, normalize_text

COLUMN_WIDTH = 100.0
CANDIDATE_LIMIT = 5


@dataclass(frozen=True)
class Descriptor:
    """Diagnostic description of a predicate or finder."""
    kind: str
    params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        params = {
            k: (v.to_dict() if hasattr(v, "to_dict") else v) for k, v in self.params.items()
        }
        return {"kind": self.kind, "params": params}

    def __str__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in self.to_dict()["params"].items())
        return f"{self.kind}({params})"


@dataclass(frozen=True)
class Predicate:
    """An element test plus its description."""
    fn: Callable[[Element], bool]
    descriptor: Descriptor

    def __call__(self, element: Element) -> bool:
        return bool(self.fn(element))

    def __and__(self, other: "Predicate") -> "Predicate":
        return all_of(self, other)


def matches(fn: Callable[[Element], bool], description: str = "custom") -> Predicate:
    """Wrap an arbitrary callable as a described predicate."""
    return Predicate(fn, Descriptor("matches", {"description": description}))


def always() -> Predicate:
    return Predicate(lambda el: True, Descriptor("always"))


def text_equals(text: str) -> Predicate:
    """Normalized text equality."""
    expected = normalize_text(text)
    return Predicate(lambda el: el.text_normalized == expected, Descriptor("text_equals", {"text": text}))


def text_contains(text: str) -> Predicate:
    expected = normalize_text(text)
    return Predicate(
        lambda el: expected in el.text_normalized, Descriptor("text_contains", {"text": text})
    )


def tag_is(*tags: str) -> Predicate:
    wanted = frozenset(t.lower() for t in tags)
    return Predicate(lambda el: el.tag in wanted, Descriptor("tag_is", {"tags": sorted(wanted)}))


def has_class(name: str) -> Predicate:
    return Predicate(lambda el: name in el.classes, Descriptor("has_class", {"name": name}))


def attribute_equals(name: str, value: Any) -> Predicate:
    return Predicate(
        lambda el: el.attributes.get(name) == value,
        Descriptor("attribute_equals", {"name": name, "value": value}),
    )


def is_interactive() -> Predicate:
    return Predicate(lambda el: el.is_interactive, Descriptor("is_interactive"))


def all_of(*predicates: Predicate) -> Predicate:
    return Predicate(
        lambda el: all(p(el) for p in predicates),
        Descriptor("all_of", {"predicates": [str(p.descriptor) for p in predicates]}),
    )


@dataclass(frozen=True)
class RankedElement:
    element: Element
    distance: float
    vertical_distance: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distance": round(self.distance, 2),
            "vertical_distance": round(self.vertical_distance, 2),
            "element": describe_element(self.element),
        }


def _max_distance(value: Optional[float]) -> float:
    return value if value is not None and value > 0 else math.inf


@dataclass(frozen=True)
class _PointFinder(ABC):
    point: ViewportPoint
    predicate: Predicate
    max_distance: Optional[float] = None
    column_width: float = COLUMN_WIDTH

    kind = "point"

    @property
    def descriptor(self) -> Descriptor:
        return Descriptor(self.kind, {
            "point": self.point,
            "predicate": str(self.predicate.descriptor),
            "max_distance": _max_distance(self.max_distance),
        })

    def rank(self, elements: Sequence[Element]) -> List[RankedElement]:
        """All elements, stable-sorted by (left column, distance to the point)."""
        anchor = rect_from_point(self.point)
        ranked = [
            RankedElement(
                element=el,
                distance=rect_distance(anchor, el.viewport_rect),
                vertical_distance=el.viewport_rect.top - self.point.y,
            )
            for el in elements
        ]
        ranked.sort(key=lambda r: (math.floor(r.element.viewport_rect.left / self.column_width), r.distance))
        return ranked

    @abstractmethod
    def accepts(self, ranked: RankedElement) -> bool:
        """Whether a ranked element lies in the direction this finder searches."""

    def __call__(self, elements: Sequence[Element]) -> List[Element]:
        return [
            r.element for r in self.rank(elements)
            if self.accepts(r) and self.predicate(r.element)
        ]

    def candidates(self, elements: Sequence[Element], limit: int = CANDIDATE_LIMIT) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self.rank(elements)[:limit]]


@dataclass(frozen=True)
class AroundFinder(_PointFinder):
    """Elements ranked by distance around a viewport point."""

    kind = "around"

    def accepts(self, ranked: RankedElement) -> bool:
        return ranked.distance < _max_distance(self.max_distance)


@dataclass(frozen=True)
class BelowFinder(_PointFinder):
    """Elements whose top edge lies strictly below a viewport point."""

    kind = "below"

    def accepts(self, ranked: RankedElement) -> bool:
        return 0 < ranked.vertical_distance < _max_distance(self.max_distance)


def around(
    point: ViewportPoint,
    predicate: Optional[Predicate] = None,
    max_distance: Optional[float] = None,
) -> AroundFinder:
    return AroundFinder(point=point, predicate=predicate or always(), max_distance=max_distance)


def below(
    point: ViewportPoint,
    predicate: Optional[Predicate] = None,
    max_distance: Optional[float] = None,
) -> BelowFinder:
    return BelowFinder(point=point, predicate=predicate or always(), max_distance=max_distance)


Finder = Callable[[Sequence[Element]], List[Element]]


def describe_finder(finder: Finder) -> Descriptor:
    descriptor = getattr(finder, "descriptor", None)
    if isinstance(descriptor, Descriptor):
        return descriptor
    return Descriptor("custom", {"finder": getattr(finder, "__name__", repr(finder))})


def find_elements(source: Union[Snapshot, Sequence[Element]], finder: Finder) -> List[Element]:
    """
    Apply ``finder`` and treat an empty result as a failure.

    Raises:
        ElementNotFound: with the finder descriptor and the best-ranked
            candidates when nothing matched
    """
    elements = source.elements if isinstance(source, Snapshot) else tuple(source)
    found = finder(elements)
    if found:
        return list(found)
    descriptor = describe_finder(finder)
    candidates_fn = getattr(finder, "candidates", None)
    candidates = candidates_fn(elements) if callable(candidates_fn) else []
    raise ElementNotFound(
        f"Elements not found: {descriptor}",
        descriptor=descriptor.to_dict(),
        candidates=candidates,
    )
