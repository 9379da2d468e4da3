"""Striped Smith-Waterman local alignment with optional start and second-best search.

Sequences are given as sequences of small integers (residue codes below
``m``), and scores come from an ``m * m`` matrix stored row by row. Scores
are kept either in unsigned bytes, which saturate at 255, or in 16-bit
integers.
"""

from __future__ import annotations

import contextlib
import getopt
import sys
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from .kseq import QualityError, SequenceReader
from .kseq import Sequence as SeqRecord
from .utils import FatalError, xzopen

XBYTE = 0x10000
XSTOP = 0x20000
XSUBO = 0x40000
XSTART = 0x80000

_NT4 = bytes(
    {ord("A"): 0, ord("a"): 0, ord("C"): 1, ord("c"): 1,
     ord("G"): 2, ord("g"): 2, ord("T"): 3, ord("t"): 3}.get(i, 4)
    for i in range(256)
)

Vector = List[int]


@dataclass
class AlignResult:
    """Best score, its end (and start) positions, and the second-best score."""

    score: int = 0
    te: int = -1
    qe: int = -1
    score2: int = -1
    te2: int = -1
    tb: int = -1
    qb: int = -1


class QueryProfile:
    """A query laid out in striped vectors for one of the two score widths.

    ``size`` 1 selects unsigned-byte scores (16 lanes), anything larger
    16-bit scores (8 lanes).
    """

    def __init__(self, size: int, query: Sequence[int], m: int, mat: Sequence[int]) -> None:
        if len(mat) < m * m:
            raise ValueError(f"scoring matrix has {len(mat)} entries, {m * m} needed")
        query = list(query)
        if any(not 0 <= c < m for c in query):
            raise ValueError(f"query residues must lie in [0, {m})")
        self.size = 2 if size > 1 else 1
        self.lanes = 8 * (3 - self.size)
        self.m = m
        self.qlen = len(query)
        self.slen = (self.qlen + self.lanes - 1) // self.lanes
        scores = list(mat[: m * m])
        lowest = min([127, *scores])
        highest = max([0, *scores])
        self.max = highest & 0xFF
        self.shift = (256 - (lowest & 0xFF)) & 0xFF
        self.mdiff = (highest + self.shift) & 0xFF
        nlen = self.slen * self.lanes
        self.qp: List[List[Vector]] = []
        for a in range(m):
            row = scores[a * m:(a + 1) * m]
            vectors = []
            for i in range(self.slen):
                lane_scores = [row[query[k]] if k < self.qlen else 0 for k in range(i, nlen, self.slen)]
                if self.size == 1:
                    vectors.append([(s + self.shift) & 0xFF for s in lane_scores])
                else:
                    vectors.append(lane_scores)
            self.qp.append(vectors)


def _thresholds(xtra: int) -> Tuple[int, int]:
    minsc = xtra & 0xFFFF if xtra & XSUBO else 0x10000
    endsc = xtra & 0xFFFF if xtra & XSTOP else 0x10000
    return minsc, endsc


def _record(best: List[List[int]], imax: int, i: int, minsc: int) -> None:
    if imax < minsc:
        return
    if not best or best[-1][1] + 1 != i:
        best.append([imax, i])
    elif best[-1][0] < imax:
        best[-1] = [imax, i]


def _query_end(hmax: List[Vector], slen: int, mask: int) -> int:
    best, qe = -1, -1
    for vi, vec in enumerate(hmax):
        for lane, value in enumerate(vec):
            value &= mask
            pos = vi + lane * slen
            if value > best:
                best, qe = value, pos
            elif value == best and pos < qe:
                qe = pos
    return qe


def _second_best(best: List[List[int]], r: AlignResult, te: int, max_score: int) -> None:
    if not best:
        return
    width = (r.score + max_score - 1) // (max_score or 1)
    low, high = te - width, te + width
    for score, end in best:
        if (end < low or end > high) and score > r.score2:
            r.score2, r.te2 = score, end


def _shift_in(vec: Vector) -> Vector:
    return [0] + vec[:-1]


def _lazy_f_u8(h1: List[Vector], f: Vector, oe_ins: int, e_ins: int) -> None:
    for _ in range(16):
        f = _shift_in(f)
        for j, vec in enumerate(h1):
            h = [max(hv, fv) for hv, fv in zip(vec, f)]
            h1[j] = h
            h = [max(hv - oe_ins, 0) for hv in h]
            f = [max(fv - e_ins, 0) for fv in f]
            if all(fv <= hv for fv, hv in zip(f, h)):
                return


def align_u8(
    profile: QueryProfile,
    target: Sequence[int],
    o_del: int,
    e_del: int,
    o_ins: int,
    e_ins: int,
    xtra: int = 0,
) -> AlignResult:
    """Local alignment with byte scores; a score that overflows is reported as 255."""
    slen, shift = profile.slen, profile.shift
    minsc, endsc = _thresholds(xtra)
    oe_d, e_d = (o_del + e_del) & 0xFF, e_del & 0xFF
    oe_i, e_i = (o_ins + e_ins) & 0xFF, e_ins & 0xFF
    zero = [0] * 16
    h0 = [zero] * slen
    h1 = [zero] * slen
    e_vecs = [zero] * slen
    hmax = [zero] * slen
    best: List[List[int]] = []
    gmax, te = 0, -1
    for i, residue in enumerate(target):
        scores = profile.qp[residue]
        h = _shift_in(h0[-1]) if slen else zero
        f = zero
        mx = zero
        for j, (s, e, h_up) in enumerate(zip(scores, e_vecs, h0)):
            h = [max(min(hv + sv, 255) - shift, ev, fv, 0) for hv, sv, ev, fv in zip(h, s, e, f)]
            mx = [max(a, b) for a, b in zip(mx, h)]
            h1[j] = h
            e_vecs[j] = [max(ev - e_d, hv - oe_d, 0) for ev, hv in zip(e, h)]
            f = [max(fv - e_i, hv - oe_i, 0) for fv, hv in zip(f, h)]
            h = h_up
        _lazy_f_u8(h1, f, oe_i, e_i)
        imax = max(mx) & 0xFF
        _record(best, imax, i, minsc)
        if imax > gmax:
            gmax, te = imax, i
            hmax = list(h1)
            if gmax + shift >= 255 or gmax >= endsc:
                break
        h0, h1 = h1, h0
    r = AlignResult()
    r.score = gmax if gmax + shift < 255 else 255
    r.te = te
    if r.score != 255:
        r.qe = _query_end(hmax, slen, 0xFF)
        _second_best(best, r, te, profile.max)
    return r


def _s16(x: int) -> int:
    x &= 0xFFFF
    return x - 0x10000 if x & 0x8000 else x


def _adds16(a: int, b: int) -> int:
    return max(-32768, min(32767, a + b))


def _subs_u16(a: int, b: int) -> int:
    return _s16(max(0, (a & 0xFFFF) - b))


def _lazy_f_i16(h1: List[Vector], f: Vector, oe_ins: int, e_ins: int) -> None:
    for _ in range(16):
        f = _shift_in(f)
        for j, vec in enumerate(h1):
            h = [max(hv, fv) for hv, fv in zip(vec, f)]
            h1[j] = h
            h = [_subs_u16(hv, oe_ins) for hv in h]
            f = [_subs_u16(fv, e_ins) for fv in f]
            if not any(fv > hv for fv, hv in zip(f, h)):
                return


def align_i16(
    profile: QueryProfile,
    target: Sequence[int],
    o_del: int,
    e_del: int,
    o_ins: int,
    e_ins: int,
    xtra: int = 0,
) -> AlignResult:
    """Local alignment with 16-bit scores."""
    slen = profile.slen
    minsc, endsc = _thresholds(xtra)
    oe_d, e_d = (o_del + e_del) & 0xFFFF, e_del & 0xFFFF
    oe_i, e_i = (o_ins + e_ins) & 0xFFFF, e_ins & 0xFFFF
    zero = [0] * 8
    h0 = [zero] * slen
    h1 = [zero] * slen
    e_vecs = [zero] * slen
    hmax = [zero] * slen
    best: List[List[int]] = []
    gmax, te = 0, -1
    for i, residue in enumerate(target):
        scores = profile.qp[residue]
        h = _shift_in(h0[-1]) if slen else zero
        f = zero
        mx = zero
        for j, (s, e, h_up) in enumerate(zip(scores, e_vecs, h0)):
            h = [max(_adds16(hv, sv), ev, fv) for hv, sv, ev, fv in zip(h, s, e, f)]
            mx = [max(a, b) for a, b in zip(mx, h)]
            h1[j] = h
            e_vecs[j] = [max(_subs_u16(ev, e_d), _subs_u16(hv, oe_d)) for ev, hv in zip(e, h)]
            f = [max(_subs_u16(fv, e_i), _subs_u16(hv, oe_i)) for fv, hv in zip(f, h)]
            h = h_up
        _lazy_f_i16(h1, f, oe_i, e_i)
        imax = max(mx) & 0xFFFF
        _record(best, imax, i, minsc)
        if imax > gmax:
            gmax, te = imax, i
            hmax = list(h1)
            if gmax >= endsc:
                break
        h0, h1 = h1, h0
    r = AlignResult(score=gmax, te=te)
    r.qe = _query_end(hmax, slen, 0xFFFF)
    _second_best(best, r, te, profile.max)
    return r


def align2(
    query: Sequence[int],
    target: Sequence[int],
    m: int,
    mat: Sequence[int],
    o_del: int,
    e_del: int,
    o_ins: int,
    e_ins: int,
    xtra: int = 0,
    profile: Optional[QueryProfile] = None,
) -> AlignResult:
    """Align ``query`` to ``target`` with separate deletion and insertion gap costs.

    A gap of length ``l`` costs ``o + l * e``. ``xtra`` combines the flags
    XBYTE, XSUBO, XSTOP and XSTART with a 16-bit threshold. A prepared
    ``profile`` of ``query`` may be passed to reuse it across targets.
    """
    query = list(query)
    target = list(target)
    q = profile if profile is not None else QueryProfile(1 if xtra & XBYTE else 2, query, m, mat)
    func = align_i16 if q.size == 2 else align_u8
    r = func(q, target, o_del, e_del, o_ins, e_ins, xtra)
    if not xtra & XSTART or (xtra & XSUBO and r.score < (xtra & 0xFFFF)):
        return r
    qend, tend = r.qe + 1, r.te + 1
    rev_query = query[:qend][::-1]
    rev_target = target[:tend][::-1] + target[tend:]
    rq = QueryProfile(q.size, rev_query, m, mat)
    rr = func(rq, rev_target, o_del, e_del, o_ins, e_ins, XSTOP | r.score)
    if r.score == rr.score:
        r.tb = r.te - rr.te
        r.qb = r.qe - rr.qe
    return r


def align(
    query: Sequence[int],
    target: Sequence[int],
    m: int,
    mat: Sequence[int],
    gapo: int,
    gape: int,
    xtra: int = 0,
    profile: Optional[QueryProfile] = None,
) -> AlignResult:
    """Align with the same gap open and extension costs for insertions and deletions."""
    return align2(query, target, m, mat, gapo, gape, gapo, gape, xtra, profile)


def scoring_matrix(match: int, mismatch: int) -> List[int]:
    """5x5 nucleotide matrix: ``match`` on the diagonal, ``-mismatch`` off it, 0 for N."""
    mat: List[int] = []
    for i in range(4):
        mat.extend(match if i == j else -mismatch for j in range(4))
        mat.append(0)
    mat.extend([0] * 5)
    return mat


def encode_nt4(seq: Union[str, bytes, bytearray]) -> bytes:
    """Map A, C, G, T (either case) to 0..3 and every other character to 4."""
    data = seq.encode("latin-1") if isinstance(seq, str) else bytes(seq)
    return data.translate(_NT4)


def _records(reader: SequenceReader) -> Iterator[SeqRecord]:
    while True:
        try:
            record = reader.read()
        except QualityError:
            return
        if record is None or len(record) == 0:
            return
        yield record


def _open(stack: contextlib.ExitStack, path: str):
    fp = xzopen(path, "r")
    if path != "-":
        stack.callback(fp.close)
    return fp


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Align every query against every target and print the hits as tab-separated lines."""
    args = list(sys.argv[1:] if argv is None else argv)
    sa, sb, gapo, gape, minsc = 1, 3, 5, 2, 0
    forward_only = False
    xtra = XSTART
    try:
        opts, rest = getopt.getopt(args, "a:b:q:r:ft:1")
        for opt, val in opts:
            if opt == "-a":
                sa = int(val)
            elif opt == "-b":
                sb = int(val)
            elif opt == "-q":
                gapo = int(val)
            elif opt == "-r":
                gape = int(val)
            elif opt == "-t":
                minsc = int(val)
            elif opt == "-f":
                forward_only = True
            elif opt == "-1":
                xtra |= XBYTE
    except (getopt.GetoptError, ValueError) as err:
        print(f"[main] {err}", file=sys.stderr)
        return 1
    if len(rest) < 2:
        print(
            f"Usage: align [-1] [-f] [-a{sa}] [-b{sb}] [-q{gapo}] [-r{gape}] [-t{minsc}] "
            "<target.fa> <query.fa>",
            file=sys.stderr,
        )
        return 1
    minsc = min(minsc, 0xFFFF)
    xtra |= XSUBO | (minsc & 0xFFFF)
    mat = scoring_matrix(sa, sb)
    size = 1 if xtra & XBYTE else 2
    out = sys.stdout
    try:
        with contextlib.ExitStack() as stack:
            targets = SequenceReader(_open(stack, rest[0]))
            queries = SequenceReader(_open(stack, rest[1]))
            for qrec in _records(queries):
                qseq = encode_nt4(qrec.seq)
                qlen = len(qseq)
                fwd = QueryProfile(size, qseq, 5, mat)
                rseq = None
                rev = None
                if not forward_only:
                    rseq = bytes(4 if c == 4 else 3 - c for c in reversed(qseq))
                    rev = QueryProfile(size, rseq, 5, mat)
                targets.rewind()
                for trec in _records(targets):
                    tseq = encode_nt4(trec.seq)
                    r = align(qseq, tseq, 5, mat, gapo, gape, xtra, fwd)
                    if r.score >= minsc:
                        out.write(
                            f"{trec.name}\t{r.tb}\t{r.te + 1}\t{qrec.name}\t{r.qb}\t{r.qe + 1}"
                            f"\t{r.score}\t{r.score2}\t{r.te2}\n"
                        )
                    if rseq is not None:
                        r = align(rseq, tseq, 5, mat, gapo, gape, xtra, rev)
                        if r.score >= minsc:
                            out.write(
                                f"{trec.name}\t{r.tb}\t{r.te + 1}\t{qrec.name}\t{qlen - r.qb}"
                                f"\t{qlen - 1 - r.qe}\t{r.score}\t{r.score2}\t{r.te2}\n"
                            )
    except FatalError as err:
        print(err, file=sys.stderr)
        return 1
    return 0