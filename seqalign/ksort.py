"""In-place sorting and selection on lists with a custom less-than."""

from __future__ import annotations

import operator
from typing import Any, Callable, List

LessThan = Callable[[Any, Any], bool]

_SHRINK_FACTOR = 1.2473309501039786540366528676643


def mergesort(items: List[Any], lt: LessThan = operator.lt) -> None:
    """Stable bottom-up merge sort of ``items`` in place."""
    n = len(items)
    src = list(items)
    dst: List[Any] = [None] * n
    shift = 0
    while (1 << shift) < n:
        if shift == 0:
            for i in range(0, n, 2):
                if i == n - 1:
                    dst[i] = src[i]
                elif lt(src[i + 1], src[i]):
                    dst[i], dst[i + 1] = src[i + 1], src[i]
                else:
                    dst[i], dst[i + 1] = src[i], src[i + 1]
        else:
            step = 1 << shift
            for i in range(0, n, step << 1):
                if n < i + step:
                    ea, eb = n, 0
                else:
                    ea, eb = i + step, min(n, i + (step << 1))
                j, k, p = i, i + step, i
                while j < ea and k < eb:
                    if lt(src[k], src[j]):
                        dst[p] = src[k]
                        k += 1
                    else:
                        dst[p] = src[j]
                        j += 1
                    p += 1
                while j < ea:
                    dst[p] = src[j]
                    j += 1
                    p += 1
                while k < eb:
                    dst[p] = src[k]
                    k += 1
                    p += 1
        src, dst = dst, src
        shift += 1
    items[:] = src


def heapadjust(items: List[Any], i: int, n: int, lt: LessThan = operator.lt) -> None:
    """Sift ``items[i]`` down within the first ``n`` elements of a max-heap."""
    tmp = items[i]
    k = i
    while True:
        k = (k << 1) + 1
        if k >= n:
            break
        if k != n - 1 and lt(items[k], items[k + 1]):
            k += 1
        if lt(items[k], tmp):
            break
        items[i] = items[k]
        i = k
    items[i] = tmp


def heapmake(items: List[Any], lt: LessThan = operator.lt) -> None:
    """Rearrange ``items`` into a max-heap."""
    n = len(items)
    for i in range((n >> 1) - 1, -1, -1):
        heapadjust(items, i, n, lt)


def heapsort(items: List[Any], lt: LessThan = operator.lt) -> None:
    """Sort a max-heap (as built by heapmake) into ascending order in place."""
    for i in range(len(items) - 1, 0, -1):
        items[0], items[i] = items[i], items[0]
        heapadjust(items, 0, i, lt)


def _insertsort(items: List[Any], lo: int, hi: int, lt: LessThan) -> None:
    for i in range(lo + 1, hi):
        j = i
        while j > lo and lt(items[j], items[j - 1]):
            items[j], items[j - 1] = items[j - 1], items[j]
            j -= 1


def _combsort(items: List[Any], lo: int, hi: int, lt: LessThan) -> None:
    n = hi - lo
    gap = n
    while True:
        if gap > 2:
            gap = int(gap / _SHRINK_FACTOR)
            if gap in (9, 10):
                gap = 11
        swapped = False
        for i in range(lo, hi - gap):
            j = i + gap
            if lt(items[j], items[i]):
                items[i], items[j] = items[j], items[i]
                swapped = True
        if not (swapped or gap > 2):
            break
    if gap != 1:
        _insertsort(items, lo, hi, lt)


def combsort(items: List[Any], lt: LessThan = operator.lt) -> None:
    """Comb sort of ``items`` in place."""
    _combsort(items, 0, len(items), lt)


def introsort(items: List[Any], lt: LessThan = operator.lt) -> None:
    """Introspective sort of ``items`` in place (quicksort, comb sort fallback)."""
    a = items
    n = len(a)
    if n < 1:
        return
    if n == 2:
        if lt(a[1], a[0]):
            a[0], a[1] = a[1], a[0]
        return
    d = 2
    while (1 << d) < n:
        d += 1
    stack: List[tuple] = []
    s, t = 0, n - 1
    d <<= 1
    while True:
        if s < t:
            d -= 1
            if d == 0:
                _combsort(a, s, t + 1, lt)
                t = s
                continue
            i, j = s, t
            k = i + ((j - i) >> 1) + 1
            if lt(a[k], a[i]):
                if lt(a[k], a[j]):
                    k = j
            else:
                k = i if lt(a[j], a[i]) else j
            rp = a[k]
            if k != t:
                a[k], a[t] = a[t], a[k]
            while True:
                i += 1
                while lt(a[i], rp):
                    i += 1
                j -= 1
                while i <= j and lt(rp, a[j]):
                    j -= 1
                if j <= i:
                    break
                a[i], a[j] = a[j], a[i]
            a[i], a[t] = a[t], a[i]
            if i - s > t - i:
                if i - s > 16:
                    stack.append((s, i - 1, d))
                s = i + 1 if t - i > 16 else t
            else:
                if t - i > 16:
                    stack.append((i + 1, t, d))
                t = i - 1 if i - s > 16 else s
        elif stack:
            s, t, d = stack.pop()
        else:
            _insertsort(a, 0, n, lt)
            return


def ksmall(items: List[Any], k: int, lt: LessThan = operator.lt) -> Any:
    """Return the ``k``-th smallest element (0-based), partially reordering ``items``."""
    a = items
    n = len(a)
    if not 0 <= k < n:
        raise IndexError(f"rank {k} out of range for {n} items")
    low, high = 0, n - 1
    while True:
        if high <= low:
            return a[k]
        if high == low + 1:
            if lt(a[high], a[low]):
                a[low], a[high] = a[high], a[low]
            return a[k]
        mid = low + (high - low) // 2
        if lt(a[high], a[mid]):
            a[mid], a[high] = a[high], a[mid]
        if lt(a[high], a[low]):
            a[low], a[high] = a[high], a[low]
        if lt(a[low], a[mid]):
            a[mid], a[low] = a[low], a[mid]
        a[mid], a[low + 1] = a[low + 1], a[mid]
        ll, hh = low + 1, high
        while True:
            ll += 1
            while lt(a[ll], a[low]):
                ll += 1
            hh -= 1
            while lt(a[low], a[hh]):
                hh -= 1
            if hh < ll:
                break
            a[ll], a[hh] = a[hh], a[ll]
        a[low], a[hh] = a[hh], a[low]
        if hh <= k:
            low = ll
        if hh >= k:
            high = hh - 1