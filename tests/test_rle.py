import pytest
from hypothesis import given, settings, strategies as st

from seqalign import rle

SYMS = "$ACGTN"

ops_strategy = st.lists(
    st.tuples(st.integers(0, 10**6), st.integers(0, 5), st.integers(1, 300)),
    max_size=30,
)


def _expand(model):
    return "".join(SYMS[s] for s in model)


def _prefix_counts(model, x):
    return [model[:x].count(s) for s in range(6)]


def _encoded_size(block):
    return sum(len(rle.encode_run(c, n)) for c, n in rle.runs(block))


def _build(ops, cache=None, size=4096):
    block = rle.new_block(size)
    model = []
    for seed, a, rl in ops:
        x = seed % (len(model) + 1)
        ec = rle.count(block)
        size_after, cnt = rle.insert(block, x, a, rl, ec, cache)
        assert cnt == _prefix_counts(model, x)
        model[x:x] = [a] * rl
        assert size_after == _encoded_size(block)
    return block, model


@given(st.integers(0, 7), st.integers(1, rle.MAX_RUN))
def test_encode_decode_round_trip(c, length):
    enc = rle.encode_run(c, length)
    assert rle.decode_run(enc, 0) == (c, length, len(enc))


@pytest.mark.parametrize(
    "length,size",
    [(15, 1), (16, 2), (255, 2), (256, 4), ((1 << 19) - 1, 4), (1 << 19, 8)],
)
def test_encoded_sizes(length, size):
    assert len(rle.encode_run(3, length)) == size


def test_encode_rejects_bad_input():
    with pytest.raises(ValueError):
        rle.encode_run(1, 1 << 43)
    with pytest.raises(ValueError):
        rle.encode_run(8, 1)


def test_decode_at_offset():
    enc = rle.encode_run(2, 1000)
    buf = b"\x00\x00" + enc
    assert rle.decode_run(buf, 2) == (2, 1000, 2 + len(enc))


def test_new_block_too_small():
    with pytest.raises(ValueError):
        rle.new_block(1)


@settings(max_examples=60)
@given(ops_strategy)
def test_insert_matches_model(ops):
    block, model = _build(ops)
    assert rle.to_string(block) == _expand(model)


@settings(max_examples=60)
@given(ops_strategy)
def test_insert_with_cache_matches_model(ops):
    block, model = _build(ops, cache=rle.InsertCache())
    assert rle.to_string(block) == _expand(model)


def test_insert_large_runs():
    block, model = _build([(0, 1, 1 << 20), (5, 2, 3), (10**6, 1, 300000)])
    assert rle.count(block) == [model.count(s) for s in range(6)]
    assert sum(n for _, n in rle.runs(block)) == len(model)


@settings(max_examples=60)
@given(ops_strategy)
def test_count_matches_model(ops):
    block, model = _build(ops)
    assert rle.count(block) == [model.count(s) for s in range(6)]


@settings(max_examples=60)
@given(ops_strategy, st.integers(0, 10**6), st.integers(0, 10**6))
def test_rank_matches_prefix_counts(ops, xs, ys):
    block, model = _build(ops)
    ec = rle.count(block)
    x = xs % (len(model) + 1)
    y = ys % (len(model) + 1)
    cx, cy = rle.rank(block, x, ec)
    assert cx == _prefix_counts(model, x)
    assert cy is None
    cx2, cy2 = rle.rank(block, x, ec, y)
    assert cx2 == _prefix_counts(model, x)
    assert cy2 == _prefix_counts(model, max(x, y))


def test_rank_empty_block():
    block = rle.new_block(64)
    assert rle.rank(block, 0, [0] * 6, 0) == ([0] * 6, [0] * 6)


@settings(max_examples=60)
@given(ops_strategy.filter(lambda ops: len(ops) > 0))
def test_split_preserves_content(ops):
    block, model = _build(ops)
    before = rle.to_string(block)
    other = rle.new_block(4096)
    rle.split(block, other)
    assert rle.to_string(block) + rle.to_string(other) == before
    assert [p + q for p, q in zip(rle.count(block), rle.count(other))] == [
        model.count(s) for s in range(6)
    ]
    assert len(list(rle.runs(other))) >= 1


def test_to_string_forms():
    block = rle.new_block(64)
    rle.insert(block, 0, 1, 3, rle.count(block))
    rle.insert(block, 3, 2, 2, rle.count(block))
    assert rle.to_string(block, expand=False) == "A3C2"
    assert rle.to_string(block, expand=True) == "AAACC"


def test_adjacent_same_symbol_merges():
    block = rle.new_block(64)
    rle.insert(block, 0, 4, 3, rle.count(block))
    rle.insert(block, 3, 4, 2, rle.count(block))
    rle.insert(block, 0, 4, 1, rle.count(block))
    assert list(rle.runs(block)) == [(4, 6)]