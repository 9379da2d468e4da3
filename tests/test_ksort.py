import random

import pytest
from hypothesis import given, strategies as st

from seqalign.ksort import (
    combsort,
    heapadjust,
    heapmake,
    heapsort,
    introsort,
    ksmall,
    mergesort,
)

int_lists = st.lists(st.integers(min_value=-1000, max_value=1000), max_size=300)


def _is_max_heap(items):
    n = len(items)
    return all(
        items[i] >= items[c]
        for i in range(n)
        for c in (2 * i + 1, 2 * i + 2)
        if c < n
    )


@given(int_lists)
def test_mergesort_sorts(items):
    data = list(items)
    mergesort(data)
    assert data == sorted(items)


def test_mergesort_is_stable():
    pairs = [(random.Random(i).randint(0, 5), i) for i in range(200)]
    data = list(pairs)
    mergesort(data, lambda a, b: a[0] < b[0])
    assert data == sorted(pairs, key=lambda p: p[0])


@given(int_lists)
def test_introsort_sorts(items):
    data = list(items)
    introsort(data)
    assert data == sorted(items)


@pytest.mark.parametrize("n", [0, 1, 2, 3, 17, 100, 1000])
def test_introsort_reverse_and_duplicates(n):
    rev = list(range(n, 0, -1))
    introsort(rev)
    assert rev == list(range(1, n + 1))
    dup = [i % 3 for i in range(n)]
    introsort(dup)
    assert dup == sorted(i % 3 for i in range(n))


def test_introsort_custom_order():
    data = list(range(50))
    random.Random(7).shuffle(data)
    introsort(data, lambda a, b: a > b)
    assert data == list(range(49, -1, -1))


def test_introsort_tuples():
    rng = random.Random(3)
    pairs = [(rng.randint(0, 9), rng.randint(0, 9)) for _ in range(500)]
    data = list(pairs)
    introsort(data)
    assert data == sorted(pairs)


@given(int_lists)
def test_combsort_sorts(items):
    data = list(items)
    combsort(data)
    assert data == sorted(items)


@given(int_lists)
def test_heapmake_then_heapsort(items):
    data = list(items)
    heapmake(data)
    assert _is_max_heap(data)
    assert sorted(data) == sorted(items)
    heapsort(data)
    assert data == sorted(items)


def test_heapadjust_restores_heap():
    data = list(range(31))
    heapmake(data)
    data[0] = -1
    heapadjust(data, 0, len(data))
    assert _is_max_heap(data)
    assert data[0] == 29


@given(st.lists(st.integers(min_value=-50, max_value=50), min_size=1, max_size=200), st.data())
def test_ksmall_selects(items, data):
    k = data.draw(st.integers(min_value=0, max_value=len(items) - 1))
    work = list(items)
    assert ksmall(work, k) == sorted(items)[k]
    assert sorted(work) == sorted(items)


@pytest.mark.parametrize("k", [-1, 5])
def test_ksmall_out_of_range(k):
    with pytest.raises(IndexError):
        ksmall([1, 2, 3, 4, 5], k)