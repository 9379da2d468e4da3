import gzip
import io
import sys
import time

import pytest
from hypothesis import given, strategies as st

from seqalign.utils import (
    FatalError,
    cputime,
    fatal,
    flush,
    hash_64,
    realtime,
    xopen,
    xzopen,
)


def test_fatal_raises_with_header():
    with pytest.raises(FatalError) as info:
        fatal("main", "something broke")
    assert str(info.value) == "[main] something broke"
    assert info.value.header == "main"
    assert info.value.message == "something broke"


def test_xopen_dash_read_is_stdin(monkeypatch):
    fake = io.StringIO("abc")
    monkeypatch.setattr(sys, "stdin", fake)
    assert xopen("-", "r") is fake


def test_xopen_dash_write_is_stdout(monkeypatch):
    fake = io.StringIO()
    monkeypatch.setattr(sys, "stdout", fake)
    assert xopen("-", "w") is fake


def test_xopen_missing_file(tmp_path):
    missing = tmp_path / "nope" / "file.txt"
    with pytest.raises(FatalError) as info:
        xopen(str(missing), "r")
    assert str(info.value).startswith(f"[xopen] fail to open file '{missing}' : ")


def test_xopen_round_trip(tmp_path):
    path = tmp_path / "a.txt"
    with xopen(str(path), "w") as fh:
        fh.write("hello\n")
    with xopen(str(path), "r") as fh:
        assert fh.read() == "hello\n"


def test_xzopen_writes_gzip(tmp_path):
    path = tmp_path / "a.gz"
    with xzopen(str(path), "w") as fh:
        fh.write(b"ACGT\n")
    raw = path.read_bytes()
    assert raw[:2] == b"\x1f\x8b"
    assert gzip.decompress(raw) == b"ACGT\n"


def test_xzopen_reads_gzip(tmp_path):
    path = tmp_path / "b.gz"
    path.write_bytes(gzip.compress(b">x\nACGT\n"))
    with xzopen(str(path), "r") as fh:
        assert fh.read() == b">x\nACGT\n"


def test_xzopen_reads_plain(tmp_path):
    path = tmp_path / "c.fa"
    path.write_bytes(b">y\nTTTT\n")
    with xzopen(str(path), "r") as fh:
        assert fh.read() == b">y\nTTTT\n"


def test_xzopen_missing_file(tmp_path):
    missing = tmp_path / "missing.gz"
    with pytest.raises(FatalError) as info:
        xzopen(str(missing), "r")
    assert info.value.header == "xzopen"


def test_flush_regular_file(tmp_path):
    path = tmp_path / "f.txt"
    with open(path, "w") as fh:
        fh.write("data")
        flush(fh)
        assert path.read_text() == "data"


def test_flush_in_memory_stream():
    buf = io.BytesIO()
    buf.write(b"xyz")
    flush(buf)
    assert buf.getvalue() == b"xyz"


def test_cputime_monotonic():
    first = cputime()
    sum(range(100000))
    second = cputime()
    assert 0 <= first <= second


def test_realtime_matches_clock():
    assert abs(realtime() - time.time()) < 5.0


def test_hash_64_is_injective_on_small_keys():
    hashes = {hash_64(k) for k in range(1000)}
    assert len(hashes) == 1000


@given(st.integers(min_value=0, max_value=(1 << 64) - 1))
def test_hash_64_range_and_wrap(key):
    value = hash_64(key)
    assert 0 <= value < (1 << 64)
    assert hash_64(key + (1 << 64)) == value
    assert hash_64(key) == value