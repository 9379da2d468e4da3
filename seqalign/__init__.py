"""Local, extension and global alignment, a FASTA/FASTQ reader and supporting data structures."""

__version__ = "0.7.17"

__all__ = [
    "align",
    "extend",
    "kbtree",
    "kseq",
    "ksort",
    "kthread",
    "rle",
    "rope",
    "utils",
]