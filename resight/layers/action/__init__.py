"""Action Layer - Finders, scroll search and input dispatch."""

from resight.layers.action.executor import ActionExecutor, ActionResult
from resight.layers.action.finders import around, below, find_elements
from resight.layers.action.scroll_search import ScrollSearchController
from resight.layers.action.surface import RenderSurface, SeleniumSurface

__all__ = [
    "ActionExecutor",
    "ActionResult",
    "RenderSurface",
    "ScrollSearchController",
    "SeleniumSurface",
    "around",
    "below",
    "find_elements",
]
