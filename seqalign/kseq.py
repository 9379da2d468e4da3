"""Streaming FASTA/FASTQ reader."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import IO, Any, Iterator, Optional, Tuple

SEP_SPACE = 0
SEP_TAB = 1
SEP_LINE = 2
SEP_MAX = 2

_BUFSIZE = 16384
_SPACE_RE = re.compile(rb"[\t\n\v\f\r ]")
_TAB_RE = re.compile(rb"[\t\n\v\f\r]")
_GT, _AT, _PLUS, _NL, _CR = ord(">"), ord("@"), ord("+"), ord("\n"), ord("\r")


class QualityError(ValueError):
    """A FASTQ record whose quality string is missing or of the wrong length."""


@dataclass
class Sequence:
    """One FASTA or FASTQ record; ``qual`` is None for FASTA."""

    name: str
    comment: str
    seq: str
    qual: Optional[str] = None

    def __len__(self) -> int:
        return len(self.seq)


def _text(data: bytearray) -> str:
    return data.decode("latin-1")


class _Stream:
    def __init__(self, f: IO[Any]) -> None:
        self.f = f
        self.reset()

    def reset(self) -> None:
        self.buf = b""
        self.begin = 0
        self.end = 0
        self.is_eof = False

    @property
    def eof(self) -> bool:
        return self.is_eof and self.begin >= self.end

    def _fill(self) -> None:
        data = self.f.read(_BUFSIZE) or b""
        if isinstance(data, str):
            data = data.encode("latin-1")
        self.buf = data
        self.begin = 0
        self.end = len(data)
        if not data:
            self.is_eof = True

    def getc(self) -> int:
        if self.eof:
            return -1
        if self.begin >= self.end:
            self._fill()
            if self.end == 0:
                return -1
        c = self.buf[self.begin]
        self.begin += 1
        return c

    def _find(self, delimiter: int) -> int:
        if delimiter == SEP_LINE:
            i = self.buf.find(b"\n", self.begin, self.end)
        elif delimiter > SEP_MAX:
            i = self.buf.find(bytes([delimiter]), self.begin, self.end)
        else:
            pattern = _SPACE_RE if delimiter == SEP_SPACE else _TAB_RE
            m = pattern.search(self.buf, self.begin, self.end)
            i = m.start() if m else -1
        return self.end if i < 0 else i

    def getuntil(self, delimiter: int, out: bytearray, append: bool = False) -> Tuple[int, int]:
        """Read up to ``delimiter`` into ``out``; return (length, delimiter seen) or (-1, 0)."""
        dret = 0
        if not append:
            del out[:]
        gotany = False
        while True:
            if self.begin >= self.end:
                if self.is_eof:
                    break
                self._fill()
                if self.end == 0:
                    break
            i = self._find(delimiter)
            gotany = True
            out += self.buf[self.begin:i]
            self.begin = i + 1
            if i < self.end:
                dret = self.buf[i]
                break
        if not gotany and self.eof:
            return -1, dret
        if delimiter == SEP_LINE and len(out) > 1 and out[-1] == _CR:
            del out[-1]
        return len(out), dret


class SequenceReader:
    """Read FASTA and FASTQ records, mixed freely, from a binary or text stream."""

    def __init__(self, stream: IO[Any]) -> None:
        self._stream = _Stream(stream)
        self._last_char = 0

    def rewind(self) -> None:
        """Start reading again from the beginning of the stream, if it can seek."""
        f = self._stream.f
        seekable = getattr(f, "seekable", None)
        if seekable is not None and seekable():
            f.seek(0)
        self._stream.reset()
        self._last_char = 0

    def read(self) -> Optional[Sequence]:
        """Return the next record, or None at end of input.

        Raises QualityError for a FASTQ record with a missing or
        wrong-length quality string.
        """
        ks = self._stream
        if self._last_char == 0:
            while True:
                c = ks.getc()
                if c in (-1, _GT, _AT):
                    break
            if c == -1:
                return None
            self._last_char = c
        name, comment, seq, qual = bytearray(), bytearray(), bytearray(), bytearray()
        n, c = ks.getuntil(SEP_SPACE, name)
        if n < 0:
            return None
        if c != _NL:
            ks.getuntil(SEP_LINE, comment)
        while True:
            c = ks.getc()
            if c in (-1, _GT, _PLUS, _AT):
                break
            if c == _NL:
                continue
            seq.append(c)
            ks.getuntil(SEP_LINE, seq, append=True)
        if c in (_GT, _AT):
            self._last_char = c
        if c != _PLUS:
            return Sequence(_text(name), _text(comment), _text(seq), None)
        while True:
            c = ks.getc()
            if c in (-1, _NL):
                break
        if c == -1:
            raise QualityError(f"no quality string for record {_text(name)!r}")
        while ks.getuntil(SEP_LINE, qual, append=True)[0] >= 0 and len(qual) < len(seq):
            pass
        self._last_char = 0
        if len(seq) != len(qual):
            raise QualityError(
                f"quality string of record {_text(name)!r} has length {len(qual)}, "
                f"sequence has {len(seq)}"
            )
        return Sequence(_text(name), _text(comment), _text(seq), _text(qual))

    def __iter__(self) -> Iterator[Sequence]:
        while True:
            record = self.read()
            if record is None:
                return
            yield record