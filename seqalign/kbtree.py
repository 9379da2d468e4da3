"""An in-memory B-tree keyed by a three-way comparison function."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, Optional, Tuple

Compare = Callable[[Any, Any], int]

DEFAULT_SIZE = 512

_HEADER_BYTES = 4
_POINTER_BYTES = 8
_KEY_BYTES = 8


def generic_cmp(a: Any, b: Any) -> int:
    """Three-way comparison: negative, zero or positive as ``a`` is below, equal to or above ``b``."""
    return (b < a) - (a < b)


@dataclass
class _Node:
    is_internal: bool
    keys: List[Any] = field(default_factory=list)
    children: List["_Node"] = field(default_factory=list)


class KBTree:
    """A B-tree holding keys in sorted order; equal keys may be stored more than once.

    ``size`` is the node size in bytes the tree is laid out for; it fixes the
    minimum degree ``t``, and a node holds between ``t - 1`` and ``2t - 1`` keys.
    """

    def __init__(self, size: int = DEFAULT_SIZE, cmp: Compare = generic_cmp) -> None:
        t = ((size - _HEADER_BYTES - _POINTER_BYTES) // (_POINTER_BYTES + _KEY_BYTES) + 1) >> 1
        if t < 2:
            raise ValueError(f"node size {size} is too small for a B-tree")
        self.t = t
        self.max_keys = 2 * t - 1
        self._cmp = cmp
        self._root = _Node(is_internal=False)
        self._n_keys = 0

    def __len__(self) -> int:
        return self._n_keys

    def __contains__(self, key: Any) -> bool:
        return self.get(key) is not None

    def _locate(self, x: _Node, k: Any) -> Tuple[int, int]:
        """Index of the last key not above ``k`` and the comparison of ``k`` with the next key."""
        keys = x.keys
        n = len(keys)
        if n == 0:
            return -1, 0
        begin, end = 0, n
        while begin < end:
            mid = (begin + end) >> 1
            if self._cmp(keys[mid], k) < 0:
                begin = mid + 1
            else:
                end = mid
        if begin == n:
            return n - 1, 1
        r = self._cmp(k, keys[begin])
        if r < 0:
            begin -= 1
        return begin, r

    def get(self, key: Any) -> Optional[Any]:
        """Return the stored key equal to ``key``, or None if there is none."""
        x: Optional[_Node] = self._root
        while x is not None:
            i, r = self._locate(x, key)
            if i >= 0 and r == 0:
                return x.keys[i]
            if not x.is_internal:
                return None
            x = x.children[i + 1]
        return None

    def interval(self, key: Any) -> Tuple[Optional[Any], Optional[Any]]:
        """Return the nearest stored keys at or below and at or above ``key``.

        Both are the same key when ``key`` is present; either is None when
        no such key exists.
        """
        lower: Optional[Any] = None
        upper: Optional[Any] = None
        x: Optional[_Node] = self._root
        while x is not None:
            i, r = self._locate(x, key)
            if i >= 0 and r == 0:
                return x.keys[i], x.keys[i]
            if i >= 0:
                lower = x.keys[i]
            if i < len(x.keys) - 1:
                upper = x.keys[i + 1]
            if not x.is_internal:
                break
            x = x.children[i + 1]
        return lower, upper

    def _split(self, x: _Node, i: int, y: _Node) -> None:
        t = self.t
        z = _Node(is_internal=y.is_internal, keys=y.keys[t:])
        if y.is_internal:
            z.children = y.children[t:]
            del y.children[t:]
        middle = y.keys[t - 1]
        del y.keys[t - 1:]
        x.children.insert(i + 1, z)
        x.keys.insert(i, middle)

    def _put_into(self, x: _Node, k: Any) -> None:
        while x.is_internal:
            i = self._locate(x, k)[0] + 1
            if len(x.children[i].keys) == self.max_keys:
                self._split(x, i, x.children[i])
                if self._cmp(k, x.keys[i]) > 0:
                    i += 1
            x = x.children[i]
        i = self._locate(x, k)[0]
        x.keys.insert(i + 1, k)

    def put(self, key: Any) -> None:
        """Insert ``key``; an equal key already stored is kept as well."""
        self._n_keys += 1
        r = self._root
        if len(r.keys) == self.max_keys:
            s = _Node(is_internal=True, children=[r])
            self._root = s
            self._split(s, 0, r)
            r = s
        self._put_into(r, key)

    def _delete_from(self, x: _Node, k: Any, s: int) -> Any:
        """Remove from the subtree at ``x``: ``k`` (s=0), its largest key (s=1) or smallest (s=2)."""
        t = self.t
        if s:
            r = 0 if not x.is_internal else (1 if s == 1 else -1)
            i = len(x.keys) - 1 if s == 1 else -1
        else:
            i, r = self._locate(x, k)
        if not x.is_internal:
            if s == 2:
                i += 1
            return x.keys.pop(i)
        if r == 0:
            y = x.children[i]
            if len(y.keys) >= t:
                kp = x.keys[i]
                x.keys[i] = self._delete_from(y, None, 1)
                return kp
            z = x.children[i + 1]
            if len(z.keys) >= t:
                kp = x.keys[i]
                x.keys[i] = self._delete_from(z, None, 2)
                return kp
            y.keys.append(x.keys[i])
            y.keys.extend(z.keys)
            if y.is_internal:
                y.children.extend(z.children)
            del x.keys[i]
            del x.children[i + 1]
            return self._delete_from(y, k, s)
        i += 1
        xp = x.children[i]
        if len(xp.keys) == t - 1:
            n = len(x.keys)
            if i > 0 and len(x.children[i - 1].keys) >= t:
                y = x.children[i - 1]
                xp.keys.insert(0, x.keys[i - 1])
                x.keys[i - 1] = y.keys.pop()
                if xp.is_internal:
                    xp.children.insert(0, y.children.pop())
            elif i < n and len(x.children[i + 1].keys) >= t:
                y = x.children[i + 1]
                xp.keys.append(x.keys[i])
                x.keys[i] = y.keys.pop(0)
                if xp.is_internal:
                    xp.children.append(y.children.pop(0))
            elif i > 0 and len(x.children[i - 1].keys) == t - 1:
                y = x.children[i - 1]
                y.keys.append(x.keys[i - 1])
                y.keys.extend(xp.keys)
                if y.is_internal:
                    y.children.extend(xp.children)
                del x.keys[i - 1]
                del x.children[i]
                xp = y
            elif i < n and len(x.children[i + 1].keys) == t - 1:
                y = x.children[i + 1]
                xp.keys.append(x.keys[i])
                xp.keys.extend(y.keys)
                if xp.is_internal:
                    xp.children.extend(y.children)
                del x.keys[i]
                del x.children[i + 1]
        return self._delete_from(xp, k, s)

    def delete(self, key: Any) -> Any:
        """Remove one key equal to ``key`` and return it; KeyError if none is stored."""
        if self.get(key) is None:
            raise KeyError(key)
        removed = self._delete_from(self._root, key, 0)
        self._n_keys -= 1
        root = self._root
        if not root.keys and root.is_internal:
            self._root = root.children[0]
        return removed

    def _walk(self, x: _Node) -> Iterator[Any]:
        if not x.is_internal:
            yield from x.keys
            return
        for child, key in zip(x.children, x.keys):
            yield from self._walk(child)
            yield key
        yield from self._walk(x.children[-1])

    def __iter__(self) -> Iterator[Any]:
        """Yield the stored keys in ascending order."""
        return self._walk(self._root)