"""Intelligence Layer - Context fingerprints, similarity and re-identification."""

from resight.layers.intelligence.fingerprint import build_fingerprint
from resight.layers.intelligence.reidentify import reidentify
from resight.layers.intelligence.similarity import score_similarity

__all__ = ["build_fingerprint", "reidentify", "score_similarity"]
