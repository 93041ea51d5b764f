"""
resight - Visual element re-identification for web pages.

Scans a rendered page into a versioned snapshot of visible elements and
finds elements again after the page moved or re-rendered, using their
geometry and surrounding context instead of selectors.
"""

__version__ = "0.1.0"

from resight.core.config import LocatorConfig
from resight.core.errors import (
    ElementNotFound,
    OutOfBounds,
    ResightError,
    ScrollExhausted,
    SurfaceDisconnected,
)
from resight.core.geometry import DocumentPoint, ViewportPoint
from resight.core.session import PageSession
from resight.layers.action.finders import around, below

__all__ = [
    "PageSession",
    "LocatorConfig",
    "ViewportPoint",
    "DocumentPoint",
    "around",
    "below",
    "ResightError",
    "ElementNotFound",
    "ScrollExhausted",
    "OutOfBounds",
    "SurfaceDisconnected",
    "__version__",
]
