"""
Similarity Scorer - Compare two context fingerprints.

Context items of the two fingerprints are paired when their recorded
distances to the source differ by less than ``pair_distance_tolerance``.
A pair *matches* when area, normalized text, tag and classes agree. The
distance agreement is only used for pairing; it is recorded on each pair
but does not gate the match.

Pairs are weighted ``1 / (i + 1)`` by enumeration order, so the nearest
context items dominate the score without the farther ones being ignored.
Items with no partner inside the window are not pairs and do not affect the
score; a new neighbour at an unrelated distance leaves it unchanged.
"""

from dataclasses import dataclass
from typing import List, Set, Tuple
import logging

from resight.core.config import LocatorConfig
from resight.layers.intelligence.fingerprint import (
    ContextItem,
    Fingerprint,
    describe_fingerprint,
)
from resight.layers.sense.snapshot import Element, describe_element

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = LocatorConfig()


@dataclass(frozen=True)
class PairMatch:
    """Per-pair match detail kept for diagnostics."""
    a: ContextItem
    b: ContextItem
    match_area: bool
    match_text: bool
    match_tag: bool
    match_classes: bool
    match_distance: bool
    weight: float

    @property
    def match(self) -> bool:
        return (
            self.match_area
            and self.match_text
            and self.match_tag
            and self.match_classes
        )


@dataclass(frozen=True)
class Similarity:
    a: Fingerprint
    b: Fingerprint
    score: float
    pairs: Tuple[PairMatch, ...]

    @property
    def matched_pairs(self) -> List[PairMatch]:
        return [p for p in self.pairs if p.match]


def classes_match(a: Element, b: Element) -> bool:
    """Class sets intersect, or both are empty."""
    if not a.classes and not b.classes:
        return True
    return bool(a.classes & b.classes)


def compare_items(
    a: ContextItem,
    b: ContextItem,
    weight: float,
    config: LocatorConfig = DEFAULT_CONFIG,
) -> PairMatch:
    ael = a.neighbor
    bel = b.neighbor
    return PairMatch(
        a=a,
        b=b,
        match_area=abs(ael.area - bel.area) < config.area_tolerance,
        match_text=ael.text_normalized == bel.text_normalized,
        match_tag=ael.tag == bel.tag,
        match_classes=classes_match(ael, bel),
        match_distance=abs(a.distance - b.distance) < config.pair_distance_tolerance,
        weight=weight,
    )


def _pair_items(
    aa: Fingerprint,
    bb: Fingerprint,
    config: LocatorConfig,
) -> List[Tuple[ContextItem, ContextItem]]:
    """
    Pair items in ``aa`` order. Among the unused ``bb`` items inside the
    distance window, a fully matching one is preferred, then the one closest
    in distance. Each item takes part in at most one pair.
    """
    pairs: List[Tuple[ContextItem, ContextItem]] = []
    used: Set[int] = set()
    for a in aa.items:
        window = [
            (j, b) for j, b in enumerate(bb.items)
            if j not in used and abs(a.distance - b.distance) < config.pair_distance_tolerance
        ]
        chosen = None
        for j, b in window:
            if compare_items(a, b, 0.0, config).match:
                chosen = (j, b)
                break
        if chosen is None and window:
            chosen = min(window, key=lambda jb: abs(a.distance - jb[1].distance))
        if chosen is not None:
            used.add(chosen[0])
            pairs.append((a, chosen[1]))
    return pairs


def score_similarity(
    aa: Fingerprint,
    bb: Fingerprint,
    config: LocatorConfig = DEFAULT_CONFIG,
) -> Similarity:
    """
    Score how likely two fingerprints denote the same logical element.

    Returns:
        Similarity with ``score`` in [0, 1]; 0 when no context items pair up.
    """
    numerator = 0.0
    denominator = 0.0
    pairs = []
    for i, (a, b) in enumerate(_pair_items(aa, bb, config)):
        weight = 1.0 / (i + 1)
        pair = compare_items(a, b, weight, config)
        pairs.append(pair)
        if pair.match:
            numerator += weight
        denominator += weight
    score = numerator / denominator if denominator > 0 else 0.0
    similarity = Similarity(a=aa, b=bb, score=score, pairs=tuple(pairs))
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"[Similarity] {describe_similarity(similarity)}")
    return similarity


def describe_similarity(similarity: Similarity) -> str:
    lines = [
        f"similarity:{similarity.score:.3f} "
        f"{describe_element(similarity.a.source)} <-> {describe_element(similarity.b.source)}",
        "aa: " + describe_fingerprint(similarity.a),
        "bb: " + describe_fingerprint(similarity.b),
    ]
    for pair in similarity.pairs:
        a = f'{pair.a.distance:.2f} "{pair.a.neighbor.text[:30]}"'
        b = f'{pair.b.distance:.2f} "{pair.b.neighbor.text[:30]}"'
        flags = (
            f"area={pair.match_area} text={pair.match_text} tag={pair.match_tag} "
            f"classes={pair.match_classes} distance={pair.match_distance}"
        )
        lines.append(f"  {a} | {b} -> match={pair.match} w={pair.weight:.3f} ({flags})")
    return "\n".join(lines)
