import pytest

from resight.core.geometry import DocumentPoint
from resight.layers.sense.snapshot import Snapshot, describe_element, normalize_text

from conftest import box, by_text, snapshot_of


def test_normalize_text_collapses_and_lowercases():
    assert normalize_text("  Hello   World  ") == "hello world"
    assert normalize_text("Line\n\tbreak") == "line break"
    assert normalize_text(None) == ""


@pytest.mark.parametrize("text", ["  Hello   World  ", "A B", "", "\n\n", "MiXeD Case"])
def test_normalize_text_is_idempotent(text):
    once = normalize_text(text)
    assert normalize_text(once) == once


def test_elements_compare_by_identity():
    first = snapshot_of([box(10, 10, 50, 20, text="Save")])
    second = snapshot_of([box(10, 10, 50, 20, text="Save")])
    a = first[0]
    b = second[0]
    assert a != b
    assert first.contains(a)
    assert not first.contains(b)
    assert first.owns(a)
    assert not second.owns(a)


def test_snapshot_container_protocol():
    snapshot = snapshot_of([box(10, 10, 50, 20, text="One"), box(10, 40, 50, 20, text="Two")])
    assert len(snapshot) == 2
    assert [el.text for el in snapshot] == ["One", "Two"]
    assert snapshot[1].index == 1
    assert by_text(snapshot, "Two").version == snapshot.version


def test_empty_snapshot_is_valid():
    snapshot = Snapshot(elements=(), version=1)
    assert len(snapshot) == 0
    assert snapshot.scroll == DocumentPoint(0, 0)
    assert snapshot.to_dict()["element_count"] == 0


def test_to_dict_and_describe():
    snapshot = snapshot_of([box(10, 10, 50, 20, text="Save", tag="button", classes=["btn"])])
    element = snapshot[0]
    data = element.to_dict()
    assert data["tag"] == "button"
    assert data["classes"] == ["btn"]
    assert data["viewport_rect"]["area"] == 1000
    assert '"Save"' in describe_element(element)
    assert snapshot.to_dict(limit=1)["elements"] == [data]
