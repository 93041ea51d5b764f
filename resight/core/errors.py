"""
Error taxonomy.

- ElementNotFound: a finder or re-identification produced no usable result.
  Recoverable (retry with scrolling, or report as a failed assertion).
- ScrollExhausted: scroll search stopped making progress. A flavour of
  ElementNotFound with extra detail.
- OutOfBounds: an interaction point lies outside the viewport. The caller
  must scroll first; points are never clamped.
- SurfaceDisconnected: the browser went away. Fatal, never retried.
"""

from typing import Any, Dict, List, Optional


class ResightError(Exception):
    """Base class for all resight errors."""


class ElementNotFound(ResightError):
    """
    No element satisfied a finder, or re-identification was not confident.

    Attributes:
        descriptor: What was searched for (finder descriptor or a description
            of the element being re-identified)
        candidates: Diagnostic trace of the best near-misses
    """

    def __init__(
        self,
        message: str,
        descriptor: Optional[Dict[str, Any]] = None,
        candidates: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.descriptor = descriptor or {}
        self.candidates = candidates or []

    def __str__(self) -> str:
        text = super().__str__()
        if self.candidates:
            lines = [f"  {i + 1}. {c}" for i, c in enumerate(self.candidates)]
            text += "\nCandidates were:\n" + "\n".join(lines)
        return text


class ScrollExhausted(ElementNotFound):
    """Scrolling stopped moving the page before the finder succeeded."""

    def __init__(
        self,
        message: str,
        descriptor: Optional[Dict[str, Any]] = None,
        candidates: Optional[List[Dict[str, Any]]] = None,
        attempts: int = 0,
        last_error: Optional[ElementNotFound] = None,
    ):
        super().__init__(message, descriptor=descriptor, candidates=candidates)
        self.attempts = attempts
        self.last_error = last_error


class OutOfBounds(ResightError):
    """An interaction point is outside the current viewport."""

    def __init__(self, message: str, point: Any = None, viewport_size: Any = None):
        super().__init__(message)
        self.point = point
        self.viewport_size = viewport_size


class SurfaceDisconnected(ResightError):
    """The render surface (browser / driver session) is gone."""
