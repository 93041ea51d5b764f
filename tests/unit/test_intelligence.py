import pytest

from resight.core.config import LocatorConfig
from resight.core.errors import ElementNotFound
from resight.layers.intelligence.fingerprint import Fingerprint, build_fingerprint, build_fingerprints
from resight.layers.intelligence.reidentify import column_order_key, reidentify
from resight.layers.intelligence.similarity import score_similarity

from conftest import box, by_text, snapshot_of


def _shift(boxes, dx=0, dy=0):
    return [dict(b, left=b["left"] + dx, top=b["top"] + dy) for b in boxes]


# Fingerprints

def test_fingerprint_is_bounded_in_size_and_distance():
    boxes = [box(300, 300, 20, 20, text="source")]
    boxes += [box(325 + 5 * i, 300, 20, 20, text=f"n{i}") for i in range(15)]
    boxes.append(box(20, 20, 10, 10, text="far"))
    snapshot = snapshot_of(boxes)
    source = by_text(snapshot, "source")

    fingerprint = build_fingerprint(source, snapshot)

    assert len(fingerprint) == 10
    assert all(item.distance < 100 for item in fingerprint.items)
    assert all(item.neighbor is not source for item in fingerprint.items)
    assert "far" not in [item.neighbor.text for item in fingerprint.items]
    assert [item.distance for item in fingerprint.items] == sorted(item.distance for item in fingerprint.items)


def test_fingerprint_orders_higher_z_first():
    snapshot = snapshot_of([
        box(100, 100, 50, 50, text="source"),
        box(160, 100, 20, 20, text="near"),
        box(100, 200, 20, 20, text="badge", z=3),
    ])
    fingerprint = build_fingerprint(by_text(snapshot, "source"), snapshot)
    assert [item.neighbor.text for item in fingerprint.items] == ["badge", "near"]
    assert fingerprint.items[0].index == by_text(snapshot, "badge").index


def test_fingerprint_respects_config_limits():
    snapshot = snapshot_of([box(100, 100, 20, 20, text="source")] + [
        box(100, 130 + 30 * i, 20, 20, text=f"n{i}") for i in range(5)
    ])
    config = LocatorConfig(context_max_items=2, context_max_distance=50)
    fingerprint = build_fingerprint(by_text(snapshot, "source"), snapshot, config)
    assert [item.neighbor.text for item in fingerprint.items] == ["n0", "n1"]


def test_build_fingerprints_covers_every_element(login_boxes):
    snapshot = snapshot_of(login_boxes)
    fingerprints = build_fingerprints(snapshot)
    assert sorted(fingerprints) == list(range(len(snapshot)))


def test_detached_fingerprint_shares_no_elements(login_boxes):
    snapshot = snapshot_of(login_boxes)
    fingerprint = build_fingerprint(by_text(snapshot, "Submit"), snapshot)

    detached = fingerprint.detached()

    assert detached.source is not fingerprint.source
    assert not any(snapshot.contains(item.neighbor) for item in detached.items)
    assert [item.neighbor.text for item in detached.items] == [item.neighbor.text for item in fingerprint.items]
    assert score_similarity(detached, fingerprint).score == 1.0


# Similarity

def test_rescanned_page_scores_one(login_boxes):
    first = snapshot_of(login_boxes)
    second = snapshot_of(login_boxes)
    a = build_fingerprint(by_text(first, "Submit"), first)
    b = build_fingerprint(by_text(second, "Submit"), second)

    similarity = score_similarity(a, b)

    assert similarity.score == 1.0
    assert len(similarity.matched_pairs) == len(a.items)


def test_changed_neighbor_lowers_score_by_its_weight():
    base = [
        box(100, 100, 80, 30, text="OK", tag="button"),
        box(100, 60, 80, 20, text="Title"),
        box(200, 100, 50, 30, text="Cancel", tag="button"),
    ]
    changed = [dict(b) for b in base]
    changed[2]["text"] = "Close"
    first = snapshot_of(base)
    second = snapshot_of(changed)

    similarity = score_similarity(
        build_fingerprint(by_text(first, "OK"), first),
        build_fingerprint(by_text(second, "OK"), second),
    )

    # Pair 1 (weight 1) matches, pair 2 (weight 1/2) does not.
    assert similarity.score == pytest.approx(2 / 3)
    assert len(similarity.pairs) == 2
    assert not similarity.pairs[1].match_text


def test_items_without_a_partner_do_not_count():
    first = snapshot_of([box(100, 100, 50, 20, text="x"), box(100, 130, 50, 20, text="y")])
    second = snapshot_of([
        box(100, 100, 50, 20, text="x"),
        box(100, 130, 50, 20, text="y"),
        box(100, 170, 50, 20, text="z"),
    ])
    similarity = score_similarity(
        build_fingerprint(by_text(first, "x"), first),
        build_fingerprint(by_text(second, "x"), second),
    )
    assert similarity.score == 1.0
    assert [(p.a.neighbor.text, p.b.neighbor.text) for p in similarity.pairs] == [("y", "y")]


def test_fingerprints_without_pairs_score_zero():
    first = snapshot_of([box(100, 100, 50, 20, text="x"), box(100, 130, 50, 20, text="y")])
    second = snapshot_of([box(100, 100, 50, 20, text="x"), box(100, 170, 50, 20, text="y")])
    similarity = score_similarity(
        build_fingerprint(by_text(first, "x"), first),
        build_fingerprint(by_text(second, "x"), second),
    )
    assert similarity.score == 0.0
    assert similarity.pairs == ()


def _ok_dialog(badges=()):
    boxes = [
        box(300, 300, 80, 30, text="OK", tag="button"),
        box(300, 230, 80, 20, text="Title"),
        box(440, 300, 50, 30, text="Cancel", tag="button"),
    ]
    # Small badges left of OK, ``distance`` units from its left edge.
    boxes += [box(296 - distance, 310, 4, 4, text=f"b{distance}", tag="span") for distance in badges]
    return boxes


def test_new_neighbors_at_other_distances_leave_score_unchanged():
    first = snapshot_of(_ok_dialog())
    second = snapshot_of(_ok_dialog(badges=range(5, 40, 5)))
    a = build_fingerprint(by_text(first, "OK"), first)
    b = build_fingerprint(by_text(second, "OK"), second)
    assert [item.distance for item in a.items] == [50, 60]
    assert len(b.items) == 9

    similarity = score_similarity(a, b)

    assert similarity.score == 1.0
    assert [p.b.neighbor.text for p in similarity.pairs] == ["Title", "Cancel"]


def test_reidentify_ignores_new_unrelated_neighbors():
    origin = snapshot_of(_ok_dialog())
    current = snapshot_of(_ok_dialog(badges=range(5, 45, 5)))
    source = by_text(origin, "OK")

    found = reidentify(source, origin, current)

    assert current.owns(found)
    assert found.text == "OK"


def test_small_neighbor_shift_still_matches():
    first = snapshot_of([box(100, 100, 50, 20, text="x"), box(100, 130, 50, 20, text="y")])
    second = snapshot_of([box(100, 100, 50, 20, text="x"), box(100, 132, 50, 20, text="y")])
    config = LocatorConfig(pair_distance_tolerance=3.0)
    similarity = score_similarity(
        build_fingerprint(by_text(first, "x"), first, config),
        build_fingerprint(by_text(second, "x"), second, config),
        config,
    )
    assert similarity.score == 1.0
    assert similarity.pairs[0].match_distance


def test_empty_fingerprints_score_zero():
    snapshot = snapshot_of([box(10, 10, 10, 10, text="alone")])
    element = snapshot[0]
    similarity = score_similarity(Fingerprint(element, ()), Fingerprint(element, ()))
    assert similarity.score == 0.0
    assert similarity.pairs == ()


# Re-identification

def test_reidentify_is_reflexive(login_boxes):
    snapshot = snapshot_of(login_boxes)
    element = by_text(snapshot, "Submit")
    assert reidentify(element, snapshot, snapshot) is element


def test_reidentify_survives_translation(login_boxes):
    origin = snapshot_of(login_boxes)
    current = snapshot_of(_shift(login_boxes, dx=40, dy=30))
    source = next(el for el in origin if el.tag == "input")

    found = reidentify(source, origin, current)

    assert found is not source
    assert found.tag == "input"
    assert found.document_rect.left == source.document_rect.left + 40
    assert current.owns(found)


def test_reidentify_survives_scrolling(login_boxes):
    origin = snapshot_of(login_boxes)
    current = snapshot_of(login_boxes, scroll=(0, 15))
    source = by_text(origin, "Submit")
    assert reidentify(source, origin, current).viewport_rect.top == source.viewport_rect.top - 15


def test_reidentify_raises_when_nothing_is_similar(login_boxes):
    origin = snapshot_of(login_boxes)
    current = snapshot_of([box(400, 400, 30, 30, text="Unrelated", tag="span", classes=["other"])])
    source = by_text(origin, "Submit")

    with pytest.raises(ElementNotFound) as exc_info:
        reidentify(source, origin, current)

    error = exc_info.value
    assert error.descriptor["kind"] == "reidentify"
    assert error.descriptor["params"]["current_version"] == current.version
    assert len(error.candidates) == 1
    assert error.candidates[0]["score"] == 0.0
    assert "Candidates were:" in str(error)


def test_column_order_key_buckets_left_edges():
    snapshot = snapshot_of([box(150, 300, 10, 10, text="a"), box(199, 10, 10, 10, text="b")])
    a = by_text(snapshot, "a")
    b = by_text(snapshot, "b")
    assert column_order_key(a, 100) == (1, 300)
    assert sorted([a, b], key=lambda el: column_order_key(el, 100)) == [b, a]
