# seqalign

Sequence alignment building blocks for short-read bioinformatics, written in
plain Python with no third-party dependencies.

What is inside:

- `seqalign.align` – striped Smith-Waterman local alignment with 8-bit and
  16-bit score profiles (`QueryProfile`, `align`, `align2`, `align_u8`,
  `align_i16`), second-best hit tracking and start-position recovery, plus
  `scoring_matrix` and `encode_nt4` for nucleotide input.
- `seqalign.extend` – banded seed extension (`extend`, `extend2`) and banded
  global alignment with CIGAR output (`global_align`, `global_align2`).
- `seqalign.kseq` – a streaming FASTA/FASTQ reader (`SequenceReader`).
- `seqalign.rle` and `seqalign.rope` – run-length encoded blocks and a B+ rope
  over them, supporting insertion and rank queries over the alphabet `$ACGTN`.
- `seqalign.kbtree` – an ordered B-tree with interval lookup (`KBTree`).
- `seqalign.ksort` – merge, heap, comb and intro sort plus k-th smallest
  selection (`ksmall`) with a custom "less than".
- `seqalign.kthread` – a work-stealing `parallel_for` and a step `pipeline`.
- `seqalign.utils` – file opening helpers (`xopen`, `xzopen`), `flush`,
  timers (`cputime`, `realtime`), `FatalError` and the integer hash `hash_64`.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Command-line tool: all-pairs local alignment

```
seqalign-ksw [-1] [-f] [-a INT] [-b INT] [-q INT] [-r INT] [-t INT] <target.fa> <query.fa>
```

Both inputs may be FASTA or FASTQ, plain or gzip-compressed; `-` reads
standard input. Every query is aligned against every target and, unless `-f`
is given, its reverse complement is aligned as well. Each hit scoring at
least `-t` is printed as a tab-separated line: target name, target start and
end, query name, query start and end, score, second-best score and the
target end of the second-best hit.

- `-a` match score (default 1), `-b` mismatch penalty (default 3)
- `-q` gap open (default 5), `-r` gap extension penalty (default 2)
- `-t` minimum score to report (default 0)
- `-1` use 8-bit scores (saturates at 255)

## Library use

Local alignment of two nucleotide sequences:

```python
from seqalign.align import XSTART, align, encode_nt4, scoring_matrix

mat = scoring_matrix(1, 3)            # 5x5 matrix, N scores 0
query = encode_nt4("ACGTACGTTTGACA")
target = encode_nt4("GGGACGTACGTTTGACAGG")
result = align(query, target, 5, mat, 5, 2, XSTART, None)
print(result.score, result.tb, result.te, result.qb, result.qe)
```

Global alignment with a CIGAR of `(operation, length)` pairs:

```python
from seqalign.extend import global_align

score, cigar = global_align(query, target, 5, mat, 5, 2, 10, True)
```

Reading FASTA or FASTQ records:

```python
from seqalign.kseq import SequenceReader

with open("reads.fq", "rb") as fh:
    for record in SequenceReader(fh):
        print(record.name, len(record.seq))
```

A truncated or mismatched quality string raises `QualityError`.

An ordered B-tree:

```python
from seqalign.kbtree import KBTree, generic_cmp

tree = KBTree(512, generic_cmp)
for key in (5, 1, 9, 3):
    tree.put(key)
print(list(tree))          # [1, 3, 5, 9]
print(tree.interval(4))    # (3, 5)
```

Building a rope of runs and querying ranks:

```python
from seqalign.rope import Rope

rope = Rope(64, 512)
rope.insert_run(0, 1, 3, None)   # three 'A' symbols at the start
rope.insert_run(3, 4, 2, None)   # two 'T' symbols after them
print(rope)                      # (AAATT)
print(rope.rank(4))              # counts of each symbol among the first 4
```

A rope can be written with `dump` to a binary stream and read back with
`Rope.restore`.

Running a function over a range in parallel:

```python
from seqalign.kthread import parallel_for

results = [0] * 100

def work(i, thread_id):
    results[i] = i * i

parallel_for(4, work, 100)
```

## What the package does not do

The package provides alignment kernels and data structures, not a complete
read mapper. It does not build a genome index, map reads against a
reference, write SAM output, or merge overlapping paired-end reads; the only
command it installs is `seqalign-ksw`.