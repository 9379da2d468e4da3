"""Banded extension of a seeded alignment and banded global alignment with a CIGAR."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

MINUS_INF = -0x40000000

CIGAR_MATCH = 0
CIGAR_INS = 1
CIGAR_DEL = 2

Cigar = List[Tuple[int, int]]


@dataclass
class ExtendResult:
    """Outcome of extending an alignment from a seed.

    ``score`` is the best semi-local score, reached after ``qle`` query and
    ``tle`` target residues. ``gscore`` is the best score with the whole
    query aligned (negative if never reached), at ``gtle`` target residues.
    """

    score: int
    qle: int
    tle: int
    gtle: int
    gscore: int
    max_off: int


def _profile(query: Sequence[int], m: int, mat: Sequence[int]) -> List[List[int]]:
    if len(mat) < m * m:
        raise ValueError(f"scoring matrix has {len(mat)} entries, {m * m} needed")
    if any(not 0 <= c < m for c in query):
        raise ValueError(f"residues must lie in [0, {m})")
    return [[mat[k * m + c] for c in query] for k in range(m)]


def _check_target(target: Sequence[int], m: int) -> None:
    if any(not 0 <= c < m for c in target):
        raise ValueError(f"residues must lie in [0, {m})")


def extend2(
    query: Sequence[int],
    target: Sequence[int],
    m: int,
    mat: Sequence[int],
    o_del: int,
    e_del: int,
    o_ins: int,
    e_ins: int,
    w: int,
    end_bonus: int,
    zdrop: int,
    h0: int,
) -> ExtendResult:
    """Extend an alignment whose upstream part already scored ``h0``.

    Deletions cost ``o_del + l * e_del``, insertions ``o_ins + l * e_ins``;
    ``w`` is the band width and a positive ``zdrop`` stops the extension
    once the score falls that far below the best.
    """
    if h0 <= 0:
        raise ValueError(f"h0 must be positive, got {h0}")
    if e_del <= 0 or e_ins <= 0:
        raise ValueError("gap extension penalties must be positive")
    query = list(query)
    target = list(target)
    _check_target(target, m)
    qp = _profile(query, m, mat)
    qlen = len(query)
    oe_del, oe_ins = o_del + e_del, o_ins + e_ins
    eh_h = [0] * (qlen + 1)
    eh_e = [0] * (qlen + 1)
    eh_h[0] = h0
    if qlen >= 1:
        eh_h[1] = h0 - oe_ins if h0 > oe_ins else 0
    j = 2
    while j <= qlen and eh_h[j - 1] > e_ins:
        eh_h[j] = eh_h[j - 1] - e_ins
        j += 1
    top = max([0, *mat[: m * m]])
    max_ins = max(int((qlen * top + end_bonus - o_ins) / e_ins + 1.0), 1)
    w = min(w, max_ins)
    max_del = max(int((qlen * top + end_bonus - o_del) / e_del + 1.0), 1)
    w = min(w, max_del)

    best, max_i, max_j, max_ie, gscore, max_off = h0, -1, -1, -1, -1, 0
    beg, end = 0, qlen
    for i, residue in enumerate(target):
        q = qp[residue]
        f, row_max, mj = 0, 0, -1
        if beg < i - w:
            beg = i - w
        if end > i + w + 1:
            end = i + w + 1
        if end > qlen:
            end = qlen
        h1 = max(h0 - (o_del + e_del * (i + 1)), 0) if beg == 0 else 0
        for j in range(beg, end):
            big_m, e = eh_h[j], eh_e[j]
            eh_h[j] = h1
            big_m = big_m + q[j] if big_m else 0
            h = max(big_m, e, f)
            h1 = h
            if row_max <= h:
                mj = j
            row_max = max(row_max, h)
            eh_e[j] = max(e - e_del, big_m - oe_del, 0)
            f = max(f - e_ins, big_m - oe_ins, 0)
        eh_h[end] = h1
        eh_e[end] = 0
        if (end if beg < end else beg) == qlen:
            if gscore <= h1:
                max_ie = i
            gscore = max(gscore, h1)
        if row_max == 0:
            break
        if row_max > best:
            best, max_i, max_j = row_max, i, mj
            max_off = max(max_off, abs(mj - i))
        elif zdrop > 0:
            if i - max_i > mj - max_j:
                if best - row_max - ((i - max_i) - (mj - max_j)) * e_del > zdrop:
                    break
            elif best - row_max - ((mj - max_j) - (i - max_i)) * e_ins > zdrop:
                break
        j = beg
        while j < end and eh_h[j] == 0 and eh_e[j] == 0:
            j += 1
        beg = j
        j = end
        while j >= beg and eh_h[j] == 0 and eh_e[j] == 0:
            j -= 1
        end = min(j + 2, qlen)
    return ExtendResult(best, max_j + 1, max_i + 1, max_ie + 1, gscore, max_off)


def extend(
    query: Sequence[int],
    target: Sequence[int],
    m: int,
    mat: Sequence[int],
    gapo: int,
    gape: int,
    w: int,
    end_bonus: int,
    zdrop: int,
    h0: int,
) -> ExtendResult:
    """Extend with the same gap costs for insertions and deletions."""
    return extend2(query, target, m, mat, gapo, gape, gapo, gape, w, end_bonus, zdrop, h0)


def _push(cigar: Cigar, op: int, length: int) -> None:
    if cigar and cigar[-1][0] == op:
        cigar[-1] = (op, cigar[-1][1] + length)
    else:
        cigar.append((op, length))


def global_align2(
    query: Sequence[int],
    target: Sequence[int],
    m: int,
    mat: Sequence[int],
    o_del: int,
    e_del: int,
    o_ins: int,
    e_ins: int,
    w: int,
    with_cigar: bool = True,
) -> Tuple[int, Optional[Cigar]]:
    """Banded global alignment of ``query`` against ``target``.

    Returns the score and, when ``with_cigar`` is set, the CIGAR as a list
    of (operation, length) pairs with operations CIGAR_MATCH, CIGAR_INS
    and CIGAR_DEL; otherwise the CIGAR is None.
    """
    query = list(query)
    target = list(target)
    _check_target(target, m)
    qp = _profile(query, m, mat)
    qlen = len(query)
    oe_del, oe_ins = o_del + e_del, o_ins + e_ins
    n_col = max(min(qlen, 2 * w + 1), 0)
    z: List[bytearray] = []
    eh_h = [MINUS_INF] * (qlen + 1)
    eh_e = [MINUS_INF] * (qlen + 1)
    eh_h[0] = 0
    for j in range(1, min(qlen, w) + 1):
        eh_h[j] = -(o_ins + e_ins * j)
    for i, residue in enumerate(target):
        q = qp[residue]
        f = MINUS_INF
        beg = i - w if i > w else 0
        end = min(i + w + 1, qlen)
        h1 = -(o_del + e_del * (i + 1)) if beg == 0 else MINUS_INF
        zi = bytearray(n_col) if with_cigar else None
        for j in range(beg, end):
            mm, e = eh_h[j], eh_e[j]
            eh_h[j] = h1
            mm += q[j]
            d = 0 if mm >= e else 1
            h = mm if mm >= e else e
            if h < f:
                d, h = 2, f
            h1 = h
            t = mm - oe_del
            e -= e_del
            if e > t:
                d |= 1 << 2
            else:
                e = t
            eh_e[j] = e
            t = mm - oe_ins
            f -= e_ins
            if f > t:
                d |= 2 << 4
            else:
                f = t
            if zi is not None:
                zi[j - beg] = d
        if zi is not None:
            z.append(zi)
        eh_h[end] = h1
        eh_e[end] = MINUS_INF
    score = eh_h[qlen]
    if not with_cigar:
        return score, None
    cigar: Cigar = []
    which = 0
    i = len(target) - 1
    k = min(i + w + 1, qlen) - 1
    while i >= 0 and k >= 0:
        idx = k - (i - w if i > w else 0)
        row = z[i]
        d = row[idx] if 0 <= idx < len(row) else 0
        which = d >> (which << 1) & 3
        if which == 0:
            _push(cigar, CIGAR_MATCH, 1)
            i -= 1
            k -= 1
        elif which == 1:
            _push(cigar, CIGAR_DEL, 1)
            i -= 1
        else:
            _push(cigar, CIGAR_INS, 1)
            k -= 1
    if i >= 0:
        _push(cigar, CIGAR_DEL, i + 1)
    if k >= 0:
        _push(cigar, CIGAR_INS, k + 1)
    cigar.reverse()
    return score, cigar


def global_align(
    query: Sequence[int],
    target: Sequence[int],
    m: int,
    mat: Sequence[int],
    gapo: int,
    gape: int,
    w: int,
    with_cigar: bool = True,
) -> Tuple[int, Optional[Cigar]]:
    """Banded global alignment with the same gap costs for insertions and deletions."""
    return global_align2(query, target, m, mat, gapo, gape, gapo, gape, w, with_cigar)