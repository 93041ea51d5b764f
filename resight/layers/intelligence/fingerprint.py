"""
Context Fingerprint Builder.

An element's fingerprint is the bounded, distance-ranked set of its nearest
neighbours in the same snapshot, measured in document space so scrolling
does not change it.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Tuple

from resight.core.config import LocatorConfig
from resight.core.geometry import rect_distance
from resight.layers.sense.snapshot import Element, Snapshot, describe_element

DEFAULT_CONFIG = LocatorConfig()


@dataclass(frozen=True)
class ContextItem:
    """A neighbour of the fingerprint source, by position in the same snapshot."""
    index: int
    neighbor: Element
    distance: float


@dataclass(frozen=True)
class Fingerprint:
    source: Element
    items: Tuple[ContextItem, ...]

    def __len__(self) -> int:
        return len(self.items)

    def detached(self) -> "Fingerprint":
        """
        Copy holding its own element values.

        The copy shares no ``Element`` objects with the snapshot, so it can be
        kept per element without keeping that element or its neighbours alive.
        """
        return Fingerprint(
            source=replace(self.source),
            items=tuple(replace(item, neighbor=replace(item.neighbor)) for item in self.items),
        )


def _context_sort_key(item: ContextItem) -> Tuple[float, float, float, float]:
    rect = item.neighbor.document_rect
    return (-item.neighbor.z_index, item.distance, rect.left, rect.top)


def build_fingerprint(
    source: Element,
    snapshot: Snapshot,
    config: LocatorConfig = DEFAULT_CONFIG,
) -> Fingerprint:
    """
    Compute the context of ``source`` within ``snapshot``.

    Every other element closer than ``config.context_max_distance`` is kept,
    ordered by (z-order desc, distance, left, top), and truncated to
    ``config.context_max_items``.
    """
    items = []
    for index, element in enumerate(snapshot.elements):
        if element is source:
            continue
        distance = rect_distance(source.document_rect, element.document_rect)
        if distance < config.context_max_distance:
            items.append(ContextItem(index=index, neighbor=element, distance=distance))
    items.sort(key=_context_sort_key)
    return Fingerprint(source=source, items=tuple(items[: config.context_max_items]))


def build_fingerprints(
    snapshot: Snapshot,
    config: LocatorConfig = DEFAULT_CONFIG,
) -> Dict[int, Fingerprint]:
    """Fingerprints for every element of a snapshot, keyed by index."""
    return {
        index: build_fingerprint(element, snapshot, config)
        for index, element in enumerate(snapshot.elements)
    }


def describe_fingerprint(fingerprint: Fingerprint) -> str:
    lines: List[str] = [f"context of {describe_element(fingerprint.source)}"]
    for item in fingerprint.items:
        lines.append(f"    {item.distance:.2f} {describe_element(item.neighbor)}")
    return "\n".join(lines)
