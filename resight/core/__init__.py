"""Core module - Session, geometry, configuration and errors."""

from resight.core.config import LocatorConfig
from resight.core.driver_factory import create_driver
from resight.core.session import PageSession

__all__ = ["LocatorConfig", "PageSession", "create_driver"]
