from unittest.mock import MagicMock, patch

import pytest
from selenium.common.exceptions import InvalidSessionIdException, JavascriptException

from resight.core.driver_factory import build_chrome_options, create_driver
from resight.core.errors import SurfaceDisconnected
from resight.core.geometry import Vector, ViewportPoint
from resight.layers.action.surface import SeleniumSurface


def test_chrome_options_for_headless_runs():
    options = build_chrome_options(headless=True, window_size=(1024, 768))
    assert "--headless=new" in options.arguments
    assert "--window-size=1024,768" in options.arguments


def test_chrome_options_for_headed_runs_with_profile():
    options = build_chrome_options(headless=False, profile_path="/tmp/profile")
    assert "--headless=new" not in options.arguments
    assert "--user-data-dir=/tmp/profile" in options.arguments


def test_create_driver_starts_chrome():
    with patch("resight.core.driver_factory.webdriver.Chrome") as chrome:
        driver = create_driver(headless=True)
    assert driver is chrome.return_value
    assert "--headless=new" in chrome.call_args.kwargs["options"].arguments


def test_evaluate_runs_script_with_arguments():
    driver = MagicMock()
    driver.execute_script.return_value = 3
    assert SeleniumSurface(driver).evaluate("return arguments[0] + 1", 2) == 3
    driver.execute_script.assert_called_once_with("return arguments[0] + 1", 2)


def test_lost_session_becomes_surface_disconnected():
    driver = MagicMock()
    driver.execute_script.side_effect = InvalidSessionIdException("session deleted")
    with pytest.raises(SurfaceDisconnected):
        SeleniumSurface(driver).evaluate("return 1")


def test_script_errors_propagate_unchanged():
    driver = MagicMock()
    driver.execute_script.side_effect = JavascriptException("boom")
    with pytest.raises(JavascriptException):
        SeleniumSurface(driver).evaluate("throw new Error()")


def test_input_is_dispatched_as_w3c_actions():
    driver = MagicMock()
    surface = SeleniumSurface(driver)

    surface.pointer_move(ViewportPoint(10.4, 20.6))
    surface.pointer_click(ViewportPoint(10, 20))
    surface.key_input("hello")
    surface.wheel_scroll(ViewportPoint(5, 5), Vector(0, 20))

    assert driver.execute.call_count == 4
