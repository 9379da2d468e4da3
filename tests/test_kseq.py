import io

import pytest
from hypothesis import given, strategies as st

from seqalign.kseq import QualityError, Sequence, SequenceReader


def _reader(text):
    return SequenceReader(io.BytesIO(text.encode("latin-1")))


def test_fasta_records_with_comments_and_wrapped_lines():
    records = list(_reader(">r1 first read\nACGT\nGG\n>r2\nTTTT\n"))
    assert records == [
        Sequence("r1", "first read", "ACGTGG", None),
        Sequence("r2", "", "TTTT", None),
    ]


def test_fastq_with_multiline_quality_and_at_sign():
    records = list(_reader("@q1 c\nACGT\n+\n@I\nII\n@q2\nAA\n+q2\n##\n"))
    assert records[0] == Sequence("q1", "c", "ACGT", "@III")
    assert records[1] == Sequence("q2", "", "AA", "##")
    assert len(records) == 2


def test_crlf_line_endings_are_stripped():
    rec = _reader(">r1 note\r\nACG\r\nTT\r\n").read()
    assert rec.seq == "ACGTT"
    assert rec.comment == "note"


def test_leading_text_before_header_is_skipped():
    rec = _reader("junk line\n>r1\nAC\n").read()
    assert rec.name == "r1"
    assert rec.seq == "AC"


def test_empty_input():
    reader = _reader("")
    assert reader.read() is None
    assert list(reader) == []


def test_missing_quality_raises():
    with pytest.raises(QualityError):
        _reader("@r\nACGT\n+").read()


def test_short_quality_raises():
    with pytest.raises(QualityError):
        _reader("@r\nACGT\n+\nII\n").read()


def test_reading_continues_after_bad_quality():
    reader = _reader("@r\nACGT\n+\nIII\n")
    with pytest.raises(QualityError):
        reader.read()
    assert reader.read() is None


def test_rewind_reads_same_records():
    reader = _reader(">a\nAC\n>b\nGT\n")
    first = list(reader)
    reader.rewind()
    assert list(reader) == first
    assert [r.name for r in first] == ["a", "b"]


def test_long_sequence_spans_buffers():
    seq = "ACGT" * 10000
    body = "\n".join(seq[i:i + 70] for i in range(0, len(seq), 70))
    records = list(_reader(f">long\n{body}\n>short\nA\n"))
    assert records[0].seq == seq
    assert records[1].seq == "A"


def test_text_stream_is_accepted():
    rec = SequenceReader(io.StringIO(">t x\nAC\n")).read()
    assert (rec.name, rec.comment, rec.seq) == ("t", "x", "AC")


names = st.text(alphabet="abcdefXYZ0123456789_", min_size=1, max_size=10)
comments = st.text(alphabet="abc xyz", max_size=12).filter(lambda s: not s.startswith(" "))
seqs = st.text(alphabet="ACGTN", min_size=1, max_size=200)
record_strategy = st.tuples(names, comments, seqs, st.booleans(), st.integers(33, 126))


def _format(name, comment, seq, fastq, qchar):
    header = name + (" " + comment if comment else "")
    lines = [seq[i:i + 60] for i in range(0, len(seq), 60)]
    if fastq:
        qual = chr(qchar) * len(seq)
        return "@" + header + "\n" + seq + "\n+\n" + qual + "\n", qual
    return ">" + header + "\n" + "\n".join(lines) + "\n", None


@given(st.lists(record_strategy, max_size=8))
def test_round_trip(recs):
    text = ""
    expected = []
    for name, comment, seq, fastq, qchar in recs:
        chunk, qual = _format(name, comment, seq, fastq, qchar)
        text += chunk
        expected.append(Sequence(name, comment, seq, qual))
    assert list(_reader(text)) == expected


@given(seqs)
def test_length_matches_sequence(seq):
    rec = _reader(">n\n" + seq + "\n").read()
    assert len(rec) == len(seq)
    assert rec.seq == seq