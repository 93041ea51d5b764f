"""
Render Surface - The browser seen as a geometry source and input sink.

``RenderSurface`` is the contract the locator consumes. ``SeleniumSurface``
implements it on top of a Selenium WebDriver using ``execute_script`` for
in-page evaluation and W3C actions for pointer, wheel and key input.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, TYPE_CHECKING

from selenium.common.exceptions import InvalidSessionIdException, NoSuchWindowException
from selenium.webdriver.common.action_chains import ActionChains
from selenium.webdriver.common.actions.action_builder import ActionBuilder
from selenium.webdriver.common.actions.wheel_input import ScrollOrigin
from urllib3.exceptions import MaxRetryError

from resight.core.errors import SurfaceDisconnected
from resight.core.geometry import Vector, ViewportPoint

if TYPE_CHECKING:
    from selenium.webdriver.remote.webdriver import WebDriver

_DISCONNECT_ERRORS = (
    InvalidSessionIdException,
    NoSuchWindowException,
    MaxRetryError,
    ConnectionError,
)


class RenderSurface(ABC):
    """Where scans run and where input is dispatched."""

    @abstractmethod
    def evaluate(self, script: str, *args: Any) -> Any:
        """Run ``script`` in the page with ``args`` and return its result."""

    @abstractmethod
    def pointer_move(self, point: ViewportPoint) -> None:
        ...

    @abstractmethod
    def pointer_click(self, point: ViewportPoint) -> None:
        ...

    @abstractmethod
    def key_input(self, text: str) -> None:
        """Send ``text`` to the focused target."""

    @abstractmethod
    def wheel_scroll(self, point: ViewportPoint, delta: Vector) -> None:
        """Dispatch a wheel scroll of ``delta`` at a viewport point."""


class SeleniumSurface(RenderSurface):
    """
    RenderSurface backed by a Selenium WebDriver.

    Example:
        >>> driver = create_driver(headless=True)
        >>> surface = SeleniumSurface(driver)
        >>> surface.evaluate("return document.title")
    """

    def __init__(self, driver: "WebDriver"):
        self.driver = driver

    @contextmanager
    def _guard(self) -> Iterator[None]:
        try:
            yield
        except _DISCONNECT_ERRORS as e:
            raise SurfaceDisconnected(f"Render surface disconnected: {e}") from e

    def evaluate(self, script: str, *args: Any) -> Any:
        with self._guard():
            return self.driver.execute_script(script, *args)

    def pointer_move(self, point: ViewportPoint) -> None:
        with self._guard():
            builder = ActionBuilder(self.driver)
            builder.pointer_action.move_to_location(round(point.x), round(point.y))
            builder.perform()

    def pointer_click(self, point: ViewportPoint) -> None:
        with self._guard():
            builder = ActionBuilder(self.driver)
            builder.pointer_action.move_to_location(round(point.x), round(point.y))
            builder.pointer_action.click()
            builder.perform()

    def key_input(self, text: str) -> None:
        with self._guard():
            ActionChains(self.driver).send_keys(text).perform()

    def wheel_scroll(self, point: ViewportPoint, delta: Vector) -> None:
        with self._guard():
            origin = ScrollOrigin.from_viewport(round(point.x), round(point.y))
            ActionChains(self.driver).scroll_from_origin(
                origin, round(delta.x), round(delta.y)
            ).perform()
