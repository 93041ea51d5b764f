"""
Re-identification Engine - Find an old element in a new snapshot.

Elements held by callers go stale as soon as the page re-renders. Before
any interaction they are mapped to their counterpart in the latest
snapshot by comparing context fingerprints.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple
import logging
import math

from resight.core.config import LocatorConfig
from resight.core.errors import ElementNotFound
from resight.layers.intelligence.fingerprint import (
    Fingerprint,
    build_fingerprint,
    describe_fingerprint,
)
from resight.layers.intelligence.similarity import Similarity, score_similarity
from resight.layers.sense.snapshot import Element, Snapshot, describe_element

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = LocatorConfig()


@dataclass(frozen=True)
class ScoredCandidate:
    element: Element
    similarity: Similarity

    @property
    def score(self) -> float:
        return self.similarity.score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": round(self.score, 4),
            "matched_pairs": len(self.similarity.matched_pairs),
            "context_items": len(self.similarity.b.items),
            "element": describe_element(self.element),
        }


def column_order_key(element: Element, column_width: float) -> Tuple[int, float]:
    """Left edge bucketed into columns, then top."""
    return (math.floor(element.viewport_rect.left / column_width), element.viewport_rect.top)


def reidentify(
    source: Element,
    origin: Snapshot,
    current: Snapshot,
    config: LocatorConfig = DEFAULT_CONFIG,
) -> Element:
    """
    Resolve ``source`` (captured in ``origin``) to its counterpart in ``current``.

    Args:
        source: Element from an earlier snapshot
        origin: The snapshot ``source`` was scanned in
        current: The snapshot to search
        config: Thresholds (similarity threshold, column width, context bounds)

    Returns:
        ``source`` itself when it is still part of ``current``, otherwise the
        first candidate in column order scoring above the threshold.

    Raises:
        ElementNotFound: when no candidate is similar enough
    """
    if current.contains(source):
        return source
    return reidentify_by_context(source, build_fingerprint(source, origin, config), current, config)


def reidentify_by_context(
    source: Element,
    context: Fingerprint,
    current: Snapshot,
    config: LocatorConfig = DEFAULT_CONFIG,
) -> Element:
    """Like ``reidentify``, with the context of ``source`` captured beforehand."""
    if current.contains(source):
        return source

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"[Reidentify] source {describe_fingerprint(context)}")

    ordered = sorted(
        (el for el in current.elements if el is not source),
        key=lambda el: column_order_key(el, config.column_width),
    )

    scored: List[ScoredCandidate] = []
    for element in ordered:
        similarity = score_similarity(context, build_fingerprint(element, current, config), config)
        candidate = ScoredCandidate(element, similarity)
        if candidate.score > config.similarity_threshold:
            logger.debug(
                f"[Reidentify] v{source.version} -> v{current.version}: "
                f"{describe_element(element)} score={candidate.score:.3f}"
            )
            return element
        scored.append(candidate)

    best = sorted(scored, key=lambda c: -c.score)[:5]
    logger.info(
        f"[Reidentify] No match for {describe_element(source)} in v{current.version} "
        f"({len(ordered)} candidates, best score "
        f"{best[0].score if best else 0.0:.3f})"
    )
    raise ElementNotFound(
        f"Element not found again: {describe_element(source)}",
        descriptor={
            "kind": "reidentify",
            "params": {
                "source": source.to_dict(),
                "origin_version": source.version,
                "current_version": current.version,
                "threshold": config.similarity_threshold,
            },
        },
        candidates=[c.to_dict() for c in best],
    )
