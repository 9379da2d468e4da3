import random

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from seqalign.kbtree import DEFAULT_SIZE, KBTree, generic_cmp

SMALL = 60  # smallest node size giving minimum degree 2, so trees grow deep quickly


def build(keys, size=SMALL):
    tree = KBTree(size, generic_cmp)
    for k in keys:
        tree.put(k)
    return tree


def test_generic_cmp_signs():
    assert generic_cmp(1, 2) == -1
    assert generic_cmp(2, 1) == 1
    assert generic_cmp(3, 3) == 0
    assert generic_cmp("a", "b") == -1


def test_too_small_node_size_rejected():
    with pytest.raises(ValueError):
        KBTree(20)


def test_minimum_degree_bounds():
    tree = KBTree(SMALL)
    assert tree.t == 2
    assert tree.max_keys == 2 * tree.t - 1
    assert KBTree(DEFAULT_SIZE).t > tree.t


def test_empty_tree():
    tree = KBTree()
    assert len(tree) == 0
    assert list(tree) == []
    assert tree.get(5) is None
    assert tree.interval(5) == (None, None)


def test_iteration_is_sorted():
    rng = random.Random(7)
    keys = [rng.randrange(10000) for _ in range(500)]
    tree = build(keys)
    assert list(tree) == sorted(keys)
    assert len(tree) == len(keys)


def test_get_present_and_absent():
    tree = build(range(0, 200, 2))
    assert tree.get(100) == 100
    assert tree.get(101) is None
    assert 150 in tree
    assert 151 not in tree


def test_interval():
    tree = build(range(0, 200, 10))
    assert tree.interval(50) == (50, 50)
    assert tree.interval(55) == (50, 60)
    assert tree.interval(-5) == (None, 0)
    assert tree.interval(500) == (190, None)


def test_duplicates_kept():
    tree = build([3, 1, 3, 2, 3])
    assert list(tree) == [1, 2, 3, 3, 3]
    assert tree.delete(3) == 3
    assert list(tree) == [1, 2, 3, 3]


def test_delete_missing_raises_and_keeps_size():
    tree = build(range(20))
    with pytest.raises(KeyError):
        tree.delete(100)
    assert len(tree) == 20
    assert list(tree) == list(range(20))


def test_delete_all_random_order():
    rng = random.Random(11)
    keys = list(range(300))
    tree = build(keys)
    order = keys[:]
    rng.shuffle(order)
    remaining = sorted(keys)
    for k in order:
        assert tree.delete(k) == k
        remaining.remove(k)
        assert tree.get(k) is None
    assert list(tree) == remaining == []
    assert len(tree) == 0
    tree.put(42)
    assert list(tree) == [42]


def test_custom_comparison_reverse():
    tree = KBTree(SMALL, lambda a, b: generic_cmp(b, a))
    for k in [5, 1, 9, 3]:
        tree.put(k)
    assert list(tree) == [9, 5, 3, 1]


@settings(max_examples=60)
@given(
    st.lists(st.integers(-1000, 1000), max_size=150),
    st.lists(st.integers(-1000, 1000), max_size=150),
)
def test_matches_sorted_list_model(inserts, deletes):
    tree = build(inserts)
    model = sorted(inserts)
    for k in deletes:
        if k in model:
            assert tree.delete(k) == k
            model.remove(k)
        else:
            with pytest.raises(KeyError):
                tree.delete(k)
    assert list(tree) == model
    assert len(tree) == len(model)


@settings(max_examples=60)
@given(st.lists(st.integers(-500, 500), min_size=1, max_size=100), st.integers(-600, 600))
def test_interval_matches_model(keys, probe):
    tree = build(keys)
    lower, upper = tree.interval(probe)
    below = [k for k in keys if k <= probe]
    above = [k for k in keys if k >= probe]
    if probe in keys:
        assert lower == upper == probe
    else:
        assert lower == (max(below) if below else None)
        assert upper == (min(above) if above else None)