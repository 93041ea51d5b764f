from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from resight.cli.main import cli
from resight.core.session import PageSession

from conftest import FakeSurface, box


def _patched(boxes, document=None):
    driver = MagicMock()
    surface = FakeSurface(boxes, document=document)
    session = PageSession(surface)
    return driver, session


def test_scan_prints_visible_elements():
    driver, session = _patched([box(10, 10, 80, 20, text="Save", tag="button")])
    with patch("resight.core.driver_factory.create_driver", return_value=driver), \
            patch("resight.core.session.PageSession.from_driver", return_value=session):
        result = CliRunner().invoke(cli, ["scan", "https://example.com", "--limit", "5"])

    assert result.exit_code == 0, result.output
    assert "1 elements" in result.output
    assert "Save" in result.output
    driver.get.assert_called_once_with("https://example.com")
    driver.quit.assert_called_once()


def test_find_prints_matches():
    driver, session = _patched([box(10, 10, 80, 20, text="Email"), box(10, 50, 80, 20, text="Save")])
    with patch("resight.core.driver_factory.create_driver", return_value=driver), \
            patch("resight.core.session.PageSession.from_driver", return_value=session):
        result = CliRunner().invoke(cli, ["find", "https://example.com", "--text", "save", "--below", "10,20"])

    assert result.exit_code == 0, result.output
    assert "Found 1 element(s)" in result.output
    driver.quit.assert_called_once()


def test_find_not_found_exits_nonzero():
    driver, session = _patched([box(10, 10, 80, 20, text="Email")])
    with patch("resight.core.driver_factory.create_driver", return_value=driver), \
            patch("resight.core.session.PageSession.from_driver", return_value=session):
        result = CliRunner().invoke(cli, ["find", "https://example.com", "--text", "Missing"])

    assert result.exit_code == 1
    assert "Not found after 2 attempts" in result.output
    driver.quit.assert_called_once()


def test_find_rejects_conflicting_directions():
    with patch("resight.core.driver_factory.create_driver") as create:
        result = CliRunner().invoke(
            cli, ["find", "https://example.com", "--text", "x", "--below", "1,2", "--around", "3,4"]
        )
    assert result.exit_code == 2
    create.assert_not_called()


def test_find_rejects_malformed_point():
    with patch("resight.core.driver_factory.create_driver") as create:
        result = CliRunner().invoke(cli, ["find", "https://example.com", "--text", "x", "--below", "oops"])
    assert result.exit_code == 2
    assert "Expected X,Y" in result.output
    create.assert_not_called()
