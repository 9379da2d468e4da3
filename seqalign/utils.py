"""Error reporting, file opening, flushing, timers and a 64-bit integer hash."""

from __future__ import annotations

import gzip
import io
import os
import stat
import sys
import time
from typing import IO, Any

_MASK64 = (1 << 64) - 1
_GZIP_MAGIC = b"\x1f\x8b"


class FatalError(Exception):
    """An unrecoverable error, tagged with the name of the operation that failed."""

    def __init__(self, header: str, message: str) -> None:
        super().__init__(f"[{header}] {message}")
        self.header = header
        self.message = message


def fatal(header: str, message: str) -> None:
    """Raise a FatalError for ``header`` with ``message``."""
    raise FatalError(header, message)


def _describe(err: OSError) -> str:
    return err.strerror or str(err)


def xopen(path: str, mode: str) -> IO[Any]:
    """Open ``path``; ``"-"`` stands for standard input or output.

    Standard input is chosen when ``mode`` contains ``r``, standard output
    otherwise. Failure to open raises FatalError.
    """
    if path == "-":
        stream = sys.stdin if "r" in mode else sys.stdout
        return stream.buffer if "b" in mode else stream
    try:
        return open(path, mode)
    except OSError as err:
        raise FatalError("xopen", f"fail to open file '{path}' : {_describe(err)}") from err


def _is_gzip(stream: IO[bytes]) -> bool:
    peek = getattr(stream, "peek", None)
    if peek is None:
        return False
    return peek(2)[:2] == _GZIP_MAGIC


def _compress_level(mode: str) -> int:
    digits = [ch for ch in mode if ch.isdigit()]
    return int(digits[-1]) if digits else 6


def xzopen(path: str, mode: str) -> IO[bytes]:
    """Open ``path`` as a possibly gzip-compressed binary stream.

    Reading accepts both compressed and plain data; writing always
    compresses. ``"-"`` stands for standard input or output.
    """
    reading = "r" in mode
    try:
        if path == "-":
            if reading:
                raw = sys.stdin.buffer
                return gzip.GzipFile(fileobj=raw, mode="rb") if _is_gzip(raw) else raw
            return gzip.GzipFile(
                fileobj=sys.stdout.buffer, mode="wb", compresslevel=_compress_level(mode)
            )
        if reading:
            raw = open(path, "rb")
            if _is_gzip(raw):
                raw.close()
                return gzip.open(path, "rb")
            return raw
        return gzip.open(path, "ab" if "a" in mode else "wb", compresslevel=_compress_level(mode))
    except OSError as err:
        raise FatalError("xzopen", f"fail to open file '{path}' : {_describe(err)}") from err


def flush(stream: IO[Any]) -> None:
    """Flush ``stream`` and, when it is backed by a regular file, sync it to disk."""
    try:
        stream.flush()
    except OSError as err:
        raise FatalError("fflush", _describe(err)) from err
    try:
        fd = stream.fileno()
    except (AttributeError, io.UnsupportedOperation, ValueError):
        return
    try:
        info = os.fstat(fd)
    except OSError as err:
        raise FatalError("fstat", _describe(err)) from err
    if stat.S_ISREG(info.st_mode):
        try:
            os.fsync(fd)
        except OSError as err:
            raise FatalError("fsync", _describe(err)) from err


def cputime() -> float:
    """CPU time (user plus system) used by this process, in seconds."""
    return time.process_time()


def realtime() -> float:
    """Wall-clock time in seconds since the epoch."""
    return time.time()


def hash_64(key: int) -> int:
    """Mix a 64-bit integer into a 64-bit hash; keys are taken modulo 2**64."""
    key &= _MASK64
    key = (key + ~(key << 32)) & _MASK64
    key ^= key >> 22
    key = (key + ~(key << 13)) & _MASK64
    key ^= key >> 8
    key = (key + (key << 3)) & _MASK64
    key ^= key >> 15
    key = (key + ~(key << 27)) & _MASK64
    key ^= key >> 31
    return key