"""A B+ tree of run-length encoded blocks holding a string over ``$ACGTN``.

The rope supports inserting runs of a symbol at any position and counting
the occurrences of every symbol before a position. Leaves are blocks in the
format of :mod:`seqalign.rle`.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import IO, Iterator, List, Optional, Tuple, Union

from . import rle

MAX_DEPTH = 80
DEFAULT_MAX_NODES = 64
DEFAULT_BLOCK_LEN = 512

_HEADER = struct.Struct("<ii")
_NODE_HEADER = struct.Struct("<Bh")
_COUNTS = struct.Struct("<6q")
_NPTR = struct.Struct("<H")


@dataclass
class _Node:
    child: Union["_Bucket", bytearray]
    l: int = 0
    c: List[int] = field(default_factory=lambda: [0] * 6)


@dataclass
class _Bucket:
    is_bottom: bool
    nodes: List[_Node] = field(default_factory=list)


@dataclass
class RopeCache:
    """Remembers the last leaf block written to, to speed up nearby insertions."""

    block: Optional[bytearray] = None
    state: rle.InsertCache = field(default_factory=rle.InsertCache)

    def reset(self) -> None:
        """Forget the remembered block."""
        self.block = None
        self.state = rle.InsertCache()


def _read(fp: IO[bytes], size: int) -> bytes:
    data = fp.read(size)
    if len(data) != size:
        raise ValueError("truncated rope data")
    return data


class Rope:
    """A dynamic string over the six symbols ``$ACGTN`` (coded 0 to 5)."""

    def __init__(self, max_nodes: int = DEFAULT_MAX_NODES, block_len: int = DEFAULT_BLOCK_LEN) -> None:
        if block_len < 32:
            block_len = 32
        self.max_nodes = (max_nodes + 1) >> 1 << 1
        self.block_len = (block_len + 7) >> 3 << 3
        if self.max_nodes < 2:
            raise ValueError(f"max_nodes {max_nodes} is too small")
        self.c: List[int] = [0] * 6
        self._root = _Bucket(is_bottom=True, nodes=[_Node(child=rle.new_block(self.block_len))])

    def _split_node(self, parent: Optional[_Bucket], vi: int) -> Tuple[_Bucket, int]:
        """Split the child of ``parent.nodes[vi]`` in two; a new root is made when ``parent`` is None."""
        if parent is None:
            top = _Node(child=self._root, c=list(self.c))
            top.l = sum(top.c)
            parent = _Bucket(is_bottom=False, nodes=[top])
            self._root = parent
            vi = 0
        v = parent.nodes[vi]
        if parent.is_bottom:
            leaf = rle.new_block(self.block_len)
            rle.split(v.child, leaf)
            w = _Node(child=leaf, c=rle.count(leaf))
        else:
            half = self.max_nodes >> 1
            src = v.child
            moved = src.nodes[-half:]
            del src.nodes[-half:]
            w = _Node(
                child=_Bucket(is_bottom=src.is_bottom, nodes=moved),
                c=[sum(node.c[j] for node in moved) for j in range(6)],
            )
        w.l = sum(w.c)
        for j in range(6):
            v.c[j] -= w.c[j]
        v.l -= w.l
        parent.nodes.insert(vi + 1, w)
        return parent, vi

    def insert_run(self, x: int, a: int, rl: int = 1, cache: Optional[RopeCache] = None) -> int:
        """Insert ``rl`` copies of symbol ``a`` after the first ``x`` symbols.

        Returns the number of ``a`` among the first ``x`` symbols before the
        insertion.
        """
        if not 0 <= a < 6:
            raise ValueError(f"symbol {a} out of range")
        if rl < 1:
            raise ValueError(f"run length {rl} must be positive")
        total = sum(self.c)
        if not 0 <= x <= total:
            raise IndexError(f"position {x} out of range for length {total}")
        parent: Optional[_Bucket] = None
        vi = -1
        bucket = self._root
        y = z = 0
        while True:
            if len(bucket.nodes) == self.max_nodes:
                parent, vi = self._split_node(parent, vi)
                v = parent.nodes[vi]
                if y + v.l < x:
                    y += v.l
                    z += v.c[a]
                    vi += 1
                    bucket = parent.nodes[vi].child
            u = bucket
            v = parent.nodes[vi] if parent is not None else None
            if v is not None and x - y > v.l >> 1:
                pi = len(u.nodes) - 1
                y += v.l
                z += v.c[a]
                while y >= x:
                    y -= u.nodes[pi].l
                    z -= u.nodes[pi].c[a]
                    pi -= 1
                pi += 1
            else:
                pi = 0
                while y + u.nodes[pi].l < x:
                    y += u.nodes[pi].l
                    z += u.nodes[pi].c[a]
                    pi += 1
            if v is not None:
                v.c[a] += rl
                v.l += rl
            parent, vi = u, pi
            if u.is_bottom:
                break
            bucket = u.nodes[pi].child
        self.c[a] += rl
        v = parent.nodes[vi]
        leaf = v.child
        if cache is not None:
            if cache.block is not leaf:
                cache.reset()
            n_runs, cnt = rle.insert(leaf, x - y, a, rl, v.c, cache.state)
            cache.block = leaf
        else:
            n_runs, cnt = rle.insert(leaf, x - y, a, rl, v.c)
        z += cnt[a]
        v.c[a] += rl
        v.l += rl
        if n_runs + rle.MIN_SPACE > self.block_len:
            self._split_node(parent, vi)
            if cache is not None:
                cache.reset()
        return z

    def _count_to_leaf(self, x: int) -> Tuple[_Node, List[int], int]:
        cx = [0] * 6
        v: Optional[_Node] = None
        bucket = self._root
        y = 0
        while True:
            u = bucket
            if v is not None and x - y > v.l >> 1:
                pi = len(u.nodes) - 1
                y += v.l
                for j in range(6):
                    cx[j] += v.c[j]
                while y >= x:
                    node = u.nodes[pi]
                    y -= node.l
                    for j in range(6):
                        cx[j] -= node.c[j]
                    pi -= 1
                pi += 1
            else:
                pi = 0
                while y + u.nodes[pi].l < x:
                    node = u.nodes[pi]
                    y += node.l
                    for j in range(6):
                        cx[j] += node.c[j]
                    pi += 1
            v = u.nodes[pi]
            if u.is_bottom:
                return v, cx, x - y
            bucket = v.child

    @staticmethod
    def _add(base: List[int], extra: List[int]) -> List[int]:
        return [p + q for p, q in zip(base, extra)]

    def rank(self, x: int, y: Optional[int] = None) -> Tuple[List[int], Optional[List[int]]]:
        """Count each symbol among the first ``x`` (and, if given, ``y``) symbols.

        The second item is None when ``y`` is None or smaller than ``x``.
        """
        total = sum(self.c)
        if not 0 <= x <= total:
            raise IndexError(f"position {x} out of range for length {total}")
        if y is not None and y > total:
            raise IndexError(f"position {y} out of range for length {total}")
        v, cx, rest = self._count_to_leaf(x)
        if y is None or y < x:
            return self._add(cx, rle.rank(v.child, rest, v.c)[0]), None
        if rest + (y - x) <= v.l:
            rx, ry = rle.rank(v.child, rest, v.c, rest + (y - x))
            return self._add(cx, rx), self._add(cx, ry)
        cx = self._add(cx, rle.rank(v.child, rest, v.c)[0])
        v2, cy, rest2 = self._count_to_leaf(y)
        return cx, self._add(cy, rle.rank(v2.child, rest2, v2.c)[0])

    def blocks(self) -> Iterator[bytearray]:
        """Yield the leaf blocks from left to right."""
        return self._leaves(self._root)

    def _leaves(self, bucket: _Bucket) -> Iterator[bytearray]:
        for node in bucket.nodes:
            if bucket.is_bottom:
                yield node.child
            else:
                yield from self._leaves(node.child)

    def _render(self, bucket: _Bucket) -> str:
        if bucket.is_bottom:
            parts = [rle.to_string(node.child) for node in bucket.nodes]
        else:
            parts = [self._render(node.child) for node in bucket.nodes]
        return "(" + ",".join(parts) + ")"

    def __str__(self) -> str:
        return self._render(self._root)

    def _dump_bucket(self, bucket: _Bucket, fp: IO[bytes]) -> None:
        fp.write(_NODE_HEADER.pack(1 if bucket.is_bottom else 0, len(bucket.nodes)))
        for node in bucket.nodes:
            if bucket.is_bottom:
                fp.write(_COUNTS.pack(*node.c))
                nptr = _NPTR.unpack_from(node.child)[0]
                fp.write(bytes(node.child[: nptr + 2]))
            else:
                self._dump_bucket(node.child, fp)

    def dump(self, fp: IO[bytes]) -> None:
        """Write the rope to the binary stream ``fp``."""
        fp.write(_HEADER.pack(self.max_nodes, self.block_len))
        self._dump_bucket(self._root, fp)

    def _restore_bucket(self, fp: IO[bytes]) -> Tuple[_Bucket, List[int]]:
        is_bottom, n = _NODE_HEADER.unpack(_read(fp, _NODE_HEADER.size))
        bucket = _Bucket(is_bottom=bool(is_bottom))
        for _ in range(n):
            if is_bottom:
                counts = list(_COUNTS.unpack(_read(fp, _COUNTS.size)))
                head = _read(fp, _NPTR.size)
                nptr = _NPTR.unpack(head)[0]
                leaf = rle.new_block(max(self.block_len, nptr + 2))
                leaf[0:2] = head
                leaf[2 : 2 + nptr] = _read(fp, nptr)
                node = _Node(child=leaf, c=counts)
            else:
                child, counts = self._restore_bucket(fp)
                node = _Node(child=child, c=counts)
            node.l = sum(node.c)
            bucket.nodes.append(node)
        totals = [sum(node.c[j] for node in bucket.nodes) for j in range(6)]
        return bucket, totals

    @classmethod
    def restore(cls, fp: IO[bytes]) -> "Rope":
        """Read a rope written by :meth:`dump` from the binary stream ``fp``."""
        max_nodes, block_len = _HEADER.unpack(_read(fp, _HEADER.size))
        rope = cls.__new__(cls)
        rope.max_nodes = max_nodes
        rope.block_len = block_len
        rope._root, rope.c = rope._restore_bucket(fp)
        return rope