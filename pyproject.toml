[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "seqalign"
version = "0.7.17"
description = "Smith-Waterman alignment, FASTA/FASTQ reading and sequence data structures for short-read bioinformatics"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "bioinformatics",
    "alignment",
    "smith-waterman",
    "fasta",
    "fastq",
    "run-length encoding",
    "rope",
    "b-tree",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
    "hypothesis",
]

[project.scripts]
seqalign-ksw = "seqalign.align:main"

[tool.hatch.build.targets.wheel]
packages = ["seqalign"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
