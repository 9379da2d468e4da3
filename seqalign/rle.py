"""Run-length encoded symbol blocks over the alphabet ``$ACGTN``.

A block is a ``bytearray`` whose first two bytes hold, little-endian, the
number of bytes of encoded runs that follow. Each run stores a symbol
(0..5) and a length in 1, 2, 4 or 8 bytes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

SYMBOLS = "$ACGTN"
MIN_SPACE = 18
MAX_RUN = (1 << 43) - 1

_BASE = 2
_AUXTAB = (0x01, 0x11, 0x21, 0x31, 0x03, 0x13, 0x07, 0x17)


@dataclass
class InsertCache:
    """Remembers a run boundary of a block and the symbol counts before it."""

    beg: int = 0
    bc: List[int] = field(default_factory=lambda: [0] * 6)

    def reset(self) -> None:
        """Forget the remembered position."""
        self.beg = 0
        self.bc = [0] * 6


def _get_nptr(block: Sequence[int]) -> int:
    return block[0] | block[1] << 8


def _set_nptr(block: bytearray, value: int) -> None:
    block[0:2] = value.to_bytes(2, "little")


def _write(block: bytearray, pos: int, data: bytes) -> None:
    block[pos:pos + len(data)] = data


def encode_run(c: int, length: int) -> bytes:
    """Encode a run of ``length`` copies of symbol ``c``."""
    if not 0 <= c < 8:
        raise ValueError(f"symbol {c} out of range")
    if not 0 <= length <= MAX_RUN:
        raise ValueError(f"run length {length} out of range")
    if length < 1 << 4:
        return bytes([length << 3 | c])
    if length < 1 << 8:
        return bytes([0xC0 | (length >> 6) << 3 | c, 0x80 | (length & 0x3F)])
    if length < 1 << 19:
        return bytes([
            0xE0 | (length >> 18) << 3 | c,
            0x80 | (length >> 12 & 0x3F),
            0x80 | (length >> 6 & 0x3F),
            0x80 | (length & 0x3F),
        ])
    head = 0xF0 | (length >> 42) << 3 | c
    return bytes([head] + [0x80 | (length >> shift & 0x3F) for shift in range(36, -1, -6)])


def decode_run(buf: Sequence[int], pos: int) -> Tuple[int, int, int]:
    """Decode the run starting at ``pos``; return (symbol, length, next position)."""
    b = buf[pos]
    c = b & 7
    if b & 0x80 == 0:
        return c, b >> 3, pos + 1
    if b >> 5 == 6:
        return c, (b & 0x18) << 3 | (buf[pos + 1] & 0x3F), pos + 2
    n = ((b & 0x10) >> 2) + 4
    length = b >> 3 & 1
    pos += 1
    for _ in range(n - 1):
        length = length << 6 | (buf[pos] & 0x3F)
        pos += 1
    return c, length, pos


def new_block(size: int) -> bytearray:
    """Return an empty block of ``size`` bytes."""
    if size < _BASE:
        raise ValueError(f"block size {size} is too small")
    return bytearray(size)


def runs(block: Sequence[int]) -> Iterator[Tuple[int, int]]:
    """Yield the (symbol, length) runs of ``block`` in order."""
    pos = _BASE
    end = _BASE + _get_nptr(block)
    while pos < end:
        c, length, pos = decode_run(block, pos)
        yield c, length


def count(block: Sequence[int]) -> List[int]:
    """Return the number of each symbol in ``block``."""
    cnt = [0] * 6
    for c, length in runs(block):
        cnt[c] += length
    return cnt


def insert(
    block: bytearray,
    x: int,
    a: int,
    rl: int,
    ec: Sequence[int],
    cache: Optional[InsertCache] = None,
) -> Tuple[int, List[int]]:
    """Insert ``rl`` copies of symbol ``a`` after the first ``x`` symbols of ``block``.

    ``ec`` holds the symbol counts of the block before the insertion. Returns
    the new number of encoded bytes and the symbol counts of the first ``x``
    symbols. ``cache`` speeds up repeated insertions into the same block.
    """
    if cache is None:
        cache = InsertCache()
    nptr = _get_nptr(block)
    if nptr == 0:
        cnt = [0] * 6
        enc = encode_run(a, rl)
        _write(block, _BASE, enc)
        diff = len(enc)
    else:
        end = _BASE + nptr
        beg_l = sum(cache.bc)
        tot = sum(ec)
        c = -1
        length = 0
        if x < beg_l:
            beg_l = 0
            cache.reset()
        if x == beg_l:
            p = q = _BASE + cache.beg
            z = beg_l
            cnt = list(cache.bc)
        elif x - beg_l <= ((tot - beg_l) >> 1) + ((tot - beg_l) >> 3):
            z = beg_l
            p = _BASE + cache.beg
            cnt = list(cache.bc)
            while z < x:
                c, length, p = decode_run(block, p)
                z += length
                cnt[c] += length
            q = p - 1
            while block[q] >> 6 == 2:
                q -= 1
        else:
            cnt = list(ec)
            z = tot
            p = end
            acc = 0
            shift = 0
            while z >= x:
                p -= 1
                b = block[p]
                if b >> 6 != 2:
                    acc |= ((_AUXTAB[b >> 3 & 7] >> 4) << shift) if b >> 7 else b >> 3
                    z -= acc
                    cnt[b & 7] -= acc
                    acc = 0
                    shift = 0
                else:
                    acc |= (b & 0x3F) << shift
                    shift += 6
            q = p
            c, length, p = decode_run(block, p)
            z += length
            cnt[c] += length
        cache.beg = q - _BASE
        cache.bc = list(cnt)
        if c >= 0:
            cache.bc[c] -= length
        n_bytes = p - q
        if x == z and a != c and p < end:
            tc, tl, nxt = decode_run(block, p)
            if a == tc:
                c, n_bytes, length = tc, nxt - p, tl
                z += tl
                p = nxt
                cnt[tc] += tl
        if z != x:
            cnt[c] -= z - x
        pre = x - (z - length)
        p -= n_bytes
        if a == c:
            tmp = encode_run(c, length + rl)
        elif x == z:
            p += n_bytes
            n_bytes = 0
            tmp = encode_run(a, rl)
        else:
            tmp = encode_run(c, pre) + encode_run(a, rl) + encode_run(c, length - pre)
        tail = bytes(block[p + n_bytes:end])
        _write(block, p, tmp + tail)
        diff = len(tmp) - n_bytes
    nptr += diff
    _set_nptr(block, nptr)
    return nptr, cnt


def split(block: bytearray, new_block: bytearray) -> None:
    """Move the second half of the runs of ``block`` into ``new_block``."""
    n = _get_nptr(block)
    end = _BASE + n
    q = _BASE + (n >> 1)
    while block[q] >> 6 == 2:
        q -= 1
    _write(new_block, _BASE, bytes(block[q:end]))
    _set_nptr(new_block, end - q)
    _set_nptr(block, q - _BASE)


def _move_backward(
    block: Sequence[int], p: int, z: int, cnt: List[int], target: int
) -> Tuple[int, int]:
    acc = 0
    shift = 0
    while z >= target:
        p -= 1
        b = block[p]
        if b >> 6 != 2:
            acc |= ((_AUXTAB[b >> 3 & 7] >> 4) << shift) if b >> 7 else b >> 3
            z -= acc
            cnt[b & 7] -= acc
            acc = 0
            shift = 0
        else:
            acc |= (b & 0x3F) << shift
            shift += 6
    return p, z


def rank(
    block: Sequence[int], x: int, ec: Sequence[int], y: Optional[int] = None
) -> Tuple[List[int], Optional[List[int]]]:
    """Count each symbol among the first ``x`` symbols of ``block``.

    ``ec`` holds the symbol counts of the whole block. When ``y`` is given
    the counts for the first ``max(x, y)`` symbols are returned as well;
    otherwise the second item is None.
    """
    cx = [0] * 6
    cy: Optional[List[int]] = None if y is None else [0] * 6
    tot = sum(ec)
    if tot == 0:
        return cx, cy
    yy = x if y is None or y < x else y
    if x <= (tot - yy) + (tot >> 3):
        c = 0
        z = 0
        cnt = [0] * 6
        p = _BASE
        while z < x:
            c, length, p = decode_run(block, p)
            z += length
            cnt[c] += length
        cx = list(cnt)
        cx[c] -= z - x
        if cy is not None:
            while z < yy:
                c, length, p = decode_run(block, p)
                z += length
                cnt[c] += length
            cy = list(cnt)
            cy[c] -= z - yy
    else:
        cnt = list(ec)
        z = tot
        p = _BASE + _get_nptr(block)
        if cy is not None:
            p, z = _move_backward(block, p, z, cnt, yy)
            cy = list(cnt)
            cy[block[p] & 7] += yy - z
        p, z = _move_backward(block, p, z, cnt, x)
        cx = list(cnt)
        cx[block[p] & 7] += x - z
    return cx, cy


def to_string(block: Sequence[int], expand: bool = True) -> str:
    """Render ``block`` as symbols, or as symbol-and-length pairs when not expanded."""
    if expand:
        return "".join(SYMBOLS[c] * length for c, length in runs(block))
    return "".join(f"{SYMBOLS[c]}{length}" for c, length in runs(block))