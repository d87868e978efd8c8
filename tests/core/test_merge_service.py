# tests/core/test_merge_service.py
import pytest

from pagefacts.services.merge_service import ResultMerger

A = {"images": {"total_count": 2, "images": [1, 2]}, "links": {"total_count": 1, "external_count": 1}}
B = {"images": {"total_count": 3, "images": [3, 4, 5]}, "links": {"total_count": 4, "external_count": 0}}
C = {"images": {"total_count": 1, "images": [6]}, "links": {"total_count": 2, "external_count": 2}, "extra": 7}


@pytest.fixture
def merger():
    return ResultMerger()


def test_lists_concatenate_in_order(merger):
    assert merger.merge({"a": [1, 2]}, {"a": [3]}) == {"a": [1, 2, 3]}


def test_numbers_are_summed(merger):
    assert merger.merge({"n": 2, "f": 0.5}, {"n": 3, "f": 1.25}) == {"n": 5, "f": 1.75}


def test_maps_merge_recursively(merger):
    merged = merger.merge({"m": {"x": 1, "keep": "a"}}, {"m": {"x": 2, "new": "b"}})
    assert merged == {"m": {"x": 3, "keep": "a", "new": "b"}}


@pytest.mark.parametrize("existing, incoming, expected", [
    ("old", "new", "new"),
    ([1], {"a": 1}, {"a": 1}),
    (1, "one", "one"),
    (True, True, True),
    (None, 5, 5),
])
def test_everything_else_is_replaced(merger, existing, incoming, expected):
    assert merger.merge({"k": existing}, {"k": incoming}) == {"k": expected}


def test_json_ld_is_last_wins_per_type(merger):
    merged = merger.merge(
        {"json_ld": {"Article": {"headline": "old", "author": "A"}, "Organization": {"name": "Org"}}},
        {"json_ld": {"Article": {"headline": "new"}, "Product": {"name": "P"}}},
    )
    assert merged == {"json_ld": {
        "Article": {"headline": "new"},
        "Organization": {"name": "Org"},
        "Product": {"name": "P"},
    }}
    assert set(merged["json_ld"]) == {"Article", "Organization", "Product"}


def test_inputs_are_not_mutated(merger):
    existing = {"a": [1], "m": {"n": 1}}
    incoming = {"a": [2], "m": {"n": 1}}
    merger.merge(existing, incoming)
    assert existing == {"a": [1], "m": {"n": 1}}
    assert incoming == {"a": [2], "m": {"n": 1}}


def test_counters_are_associative(merger):
    left = merger.merge(merger.merge(A, B), C)
    right = merger.merge(A, merger.merge(B, C))
    assert left == right
    assert left["images"]["total_count"] == 6
    assert left["images"]["images"] == [1, 2, 3, 4, 5, 6]
    assert left["links"] == {"total_count": 7, "external_count": 3}


def test_merge_all_keeps_given_order(merger):
    assert merger.merge_all([A, B, C]) == merger.merge(merger.merge(A, B), C)
    assert merger.merge_all([]) == {}
